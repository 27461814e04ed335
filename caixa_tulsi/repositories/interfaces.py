# ==============================================================================
# INTERFACES DE REPOSITORIOS - JSON Y MYSQL
# ==============================================================================
#
# Contratos que cumplen las dos implementaciones de almacenamiento:
#   - JSON  (entry_repository.py, settings_repository.py, ...)
#   - MySQL (mysql_repository.py)
#
# Los servicios dependen de estas interfaces; el contenedor decide cuál
# implementación instanciar según CAIXA_STORAGE.
#
# ==============================================================================

from typing import Any, Callable, Dict, List, Optional, Protocol, runtime_checkable


@runtime_checkable
class IEntryRepository(Protocol):
    """Lanzamientos diarios, uno por fecha (id = AAAA-MM-DD)."""

    def get_all_entries(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Lanzamientos del rango (inclusivo), ordenados por fecha."""
        ...

    def get_entry(self, date_id: str) -> Optional[Dict[str, Any]]:
        """Lanzamiento de una fecha o None."""
        ...

    def save_entry(self, date_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Merge superficial con lo existente; devuelve el lanzamiento guardado."""
        ...


@runtime_checkable
class ISettingsRepository(Protocol):
    """Configuraciones clave/valor."""

    def get_setting(self, config_id: str) -> Any:
        ...

    def save_setting(self, config_id: str, value: Any) -> None:
        ...


@runtime_checkable
class IUserRepository(Protocol):
    """Usuarios indexados por id."""

    def get_all_users(self) -> List[Dict[str, Any]]:
        ...

    def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        ...

    def get_user_by_username(self, username: str) -> Optional[Dict[str, Any]]:
        """Búsqueda sin distinguir mayúsculas."""
        ...

    def save_user(self, user: Dict[str, Any]) -> None:
        ...

    def delete_user(self, user_id: str) -> bool:
        ...


@runtime_checkable
class IAuditRepository(Protocol):
    """Log de auditoría (más reciente primero)."""

    def add_log(self, log: Dict[str, Any]) -> None:
        ...

    def get_recent(self, limit: int = 100) -> List[Dict[str, Any]]:
        ...


@runtime_checkable
class IEstornoRepository(Protocol):
    """Estornos agrupados por fecha (AAAA-MM-DD)."""

    def get_items(self, start_date: str, end_date: str) -> List[Dict[str, Any]]:
        ...

    def get_items_for_date(self, date_id: str) -> Optional[List[Dict[str, Any]]]:
        """None si la fecha no tiene registro de estornos."""
        ...

    def add_item(self, item: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def delete_item(self, date_id: str, item_id: str) -> Optional[Dict[str, Any]]:
        ...

    def relaunch_item(
        self,
        original_date: str,
        original_id: str,
        build_credit: Callable[[Dict[str, Any]], Dict[str, Any]]
    ) -> Optional[Dict[str, Any]]:
        """Crédito guardado, o None si el item original no existe."""
        ...
