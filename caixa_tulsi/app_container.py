# ==============================================================================
# CONTENEDOR DE DEPENDENCIAS - Inyección de servicios
# ==============================================================================
# Punto único para obtener repositorios y servicios.
#
# ═══════════════════════════════════════════════════════════════════════════════
# ALMACENAMIENTO
# ═══════════════════════════════════════════════════════════════════════════════
# storage='json'  → archivos en base_path (CAIXA_DATA_DIR)
# storage='mysql' → tablas MySQL (variables DB_*)
# Los servicios reciben el repositorio y no saben cuál es.
# ==============================================================================

from typing import Any, Callable, Dict, Optional

from caixa_tulsi.config import STORAGE_MYSQL, load_config

# ═══════════════════════════════════════════════════════════════════════════════
# REPOSITORIOS
# ═══════════════════════════════════════════════════════════════════════════════
from caixa_tulsi.repositories import (
    EntryRepository,
    SettingsRepository,
    UserRepository,
    AuditRepository,
    EstornoRepository,
    MySQLEntryRepository,
    MySQLSettingsRepository,
    MySQLUserRepository,
    MySQLAuditRepository,
    MySQLEstornoRepository,
    get_db_connection,
)

# ═══════════════════════════════════════════════════════════════════════════════
# SERVICIOS
# ═══════════════════════════════════════════════════════════════════════════════
from caixa_tulsi.services import (
    AuditService,
    UserService,
    SettingsService,
    EntryService,
    ReportService,
    EstornoService,
    PersonService,
)


class AppContainer:
    """
    Contenedor de dependencias (singleton, inicialización perezosa).

    Uso:
        container = get_container('/ruta/a/data')
        container.report_service.build_report(request.args)
    """

    _instance: Optional['AppContainer'] = None

    def __new__(cls, base_path: str = None, storage: str = None, connection_factory=None):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(
        self,
        base_path: str = None,
        storage: str = None,
        connection_factory: Optional[Callable[[], Any]] = None
    ):
        """
        Args:
            base_path: Directorio de los JSON (default: CAIXA_DATA_DIR)
            storage: 'json' o 'mysql' (default: CAIXA_STORAGE)
            connection_factory: Fábrica de conexiones MySQL (tests)
        """
        if self._initialized:
            return

        config = load_config()
        self.config = config
        self._base_path = base_path or config.data_dir
        self._storage = storage or config.storage
        self._connection_factory = connection_factory or (lambda: get_db_connection(config.db))

        self._repos: Dict[str, Any] = {}
        self._audit_service: Optional[AuditService] = None
        self._user_service: Optional[UserService] = None
        self._settings_service: Optional[SettingsService] = None
        self._entry_service: Optional[EntryService] = None
        self._report_service: Optional[ReportService] = None
        self._estorno_service: Optional[EstornoService] = None
        self._person_service: Optional[PersonService] = None

        self._initialized = True

    @property
    def uses_mysql(self) -> bool:
        return self._storage == STORAGE_MYSQL

    def _repo(self, name: str, json_cls, mysql_cls):
        if name not in self._repos:
            if self.uses_mysql:
                self._repos[name] = mysql_cls(self._connection_factory)
            else:
                self._repos[name] = json_cls(self._base_path)
        return self._repos[name]

    # =========================================================================
    # REPOSITORIOS
    # =========================================================================

    @property
    def entry_repo(self):
        """Lanzamientos diarios."""
        return self._repo('entry', EntryRepository, MySQLEntryRepository)

    @property
    def settings_repo(self):
        return self._repo('settings', SettingsRepository, MySQLSettingsRepository)

    @property
    def user_repo(self):
        return self._repo('user', UserRepository, MySQLUserRepository)

    @property
    def audit_repo(self):
        return self._repo('audit', AuditRepository, MySQLAuditRepository)

    @property
    def estorno_repo(self):
        return self._repo('estorno', EstornoRepository, MySQLEstornoRepository)

    # =========================================================================
    # SERVICIOS
    # =========================================================================

    @property
    def audit_service(self) -> AuditService:
        if self._audit_service is None:
            self._audit_service = AuditService(self.audit_repo)
        return self._audit_service

    @property
    def user_service(self) -> UserService:
        if self._user_service is None:
            self._user_service = UserService(self.user_repo, self.audit_service)
            self._user_service.ensure_default_admin(self.config.admin_password)
        return self._user_service

    @property
    def settings_service(self) -> SettingsService:
        if self._settings_service is None:
            self._settings_service = SettingsService(self.settings_repo, self.audit_service)
        return self._settings_service

    @property
    def entry_service(self) -> EntryService:
        if self._entry_service is None:
            self._entry_service = EntryService(self.entry_repo, self.audit_service)
        return self._entry_service

    @property
    def report_service(self) -> ReportService:
        """Servicio de reportes con loaders sobre el repositorio y settings."""
        if self._report_service is None:
            self._report_service = ReportService(
                entries_loader=self.entry_repo.get_all_entries,
                config_loader=self.settings_service.build_aggregation_config,
                visibility_loader=self.settings_service.dashboard_visibility,
            )
        return self._report_service

    @property
    def estorno_service(self) -> EstornoService:
        if self._estorno_service is None:
            self._estorno_service = EstornoService(self.estorno_repo, self.audit_service)
        return self._estorno_service

    @property
    def person_service(self) -> PersonService:
        if self._person_service is None:
            self._person_service = PersonService(self.entry_repo, self.settings_repo, self.audit_service)
        return self._person_service


    # =========================================================================
    # UTILIDADES
    # =========================================================================

    def reset(self) -> None:
        """Reinicia todas las instancias."""
        self._repos = {}
        self._audit_service = None
        self._user_service = None
        self._settings_service = None
        self._entry_service = None
        self._report_service = None
        self._estorno_service = None
        self._person_service = None

    @classmethod
    def get_instance(cls, base_path: str = None, **kwargs) -> 'AppContainer':
        if cls._instance is None:
            return cls(base_path, **kwargs)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Elimina la instancia singleton (útil para tests)."""
        if cls._instance is not None:
            cls._instance.reset()
            cls._instance = None


def get_container(base_path: str = None, **kwargs) -> AppContainer:
    """
    Obtiene el contenedor de dependencias global.

    Args:
        base_path: Directorio de datos (solo se usa en la primera llamada)
    """
    return AppContainer.get_instance(base_path, **kwargs)
