# ==============================================================================
# SERVICIO DE CONFIGURACIONES
# ==============================================================================
# Claves válidas, lectura/escritura auditada y construcción de la
# configuración inmutable que recibe el agregador.
# ==============================================================================

from typing import Any, Optional

from caixa_tulsi.services.aggregation import AggregationConfig
from caixa_tulsi.services.audit_service import AuditService


VALID_CONFIG_IDS = frozenset([
    'cardVisibilityConfig',
    'channelUnitPricesConfig',
    'mysqlConnectionConfig',
    'dashboardItemVisibilityConfig',
    'summaryCardItemsConfig',
    'billedClients',
    'noShowClients',
    'apiAccessConfig',
    'appName',
])


class InvalidConfigIdError(ValueError):
    """ConfigId fuera de VALID_CONFIG_IDS."""

    def __init__(self, config_id: Any):
        super().__init__(f'ConfigId inválido: {config_id}.')
        self.config_id = config_id


class SettingsService:
    """Lectura y escritura de configuraciones."""

    def __init__(self, settings_repo, audit_service: Optional[AuditService] = None):
        self.settings_repo = settings_repo
        self.audit_service = audit_service

    @staticmethod
    def _check(config_id: str) -> None:
        if config_id not in VALID_CONFIG_IDS:
            raise InvalidConfigIdError(config_id)

    def get_setting(self, config_id: str) -> Any:
        """
        Raises:
            InvalidConfigIdError: Si la clave no es válida
        """
        self._check(config_id)
        return self.settings_repo.get_setting(config_id)

    def save_setting(self, config_id: str, value: Any, username: str = 'sistema') -> None:
        """
        Guarda una configuración y la registra en auditoría.

        Raises:
            InvalidConfigIdError: Si la clave no es válida
        """
        self._check(config_id)
        self.settings_repo.save_setting(config_id, value)
        if self.audit_service:
            self.audit_service.log_setting_saved(username, config_id)

    def build_aggregation_config(self) -> AggregationConfig:
        """Precios unitarios + toggles del card de resumen vigentes."""
        return AggregationConfig.from_settings(
            self.settings_repo.get_setting('channelUnitPricesConfig'),
            self.settings_repo.get_setting('summaryCardItemsConfig'),
        )

    def dashboard_visibility(self) -> dict:
        value = self.settings_repo.get_setting('dashboardItemVisibilityConfig')
        return value if isinstance(value, dict) else {}
