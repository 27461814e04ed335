# ==============================================================================
# REPOSITORIO DE CONFIGURACIONES
# ==============================================================================
# Encapsula el acceso a settings.json
# Formato: {"channelUnitPricesConfig": {...}, "summaryCardItemsConfig": {...}}
# ==============================================================================

import os
from typing import Any

from .base import DictRepository


class SettingsRepository(DictRepository):
    """Configuraciones clave/valor de la aplicación."""

    def __init__(self, base_path: str):
        super().__init__(os.path.join(base_path, 'settings.json'))

    def get_setting(self, config_id: str) -> Any:
        """
        Args:
            config_id: Clave de configuración

        Returns:
            Valor guardado o None
        """
        return self.get_all().get(config_id)

    def save_setting(self, config_id: str, value: Any) -> None:
        self.update(config_id, value)
