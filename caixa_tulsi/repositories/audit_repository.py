# ==============================================================================
# REPOSITORIO DE AUDITORÍA
# ==============================================================================
# Encapsula el acceso a audit_log.json
# La auditoría se guarda como lista, el registro más reciente primero:
# [{"id": ..., "timestamp": ..., "username": ..., "action": ..., "details": ...}]
# ==============================================================================

import os
from typing import Any, Dict, List

from .base import ListRepository


class AuditRepository(ListRepository):
    """Log de auditoría en JSON."""

    # Límite de registros para evitar archivos muy grandes
    MAX_LOGS = 10000

    def __init__(self, base_path: str):
        super().__init__(os.path.join(base_path, 'audit_log.json'))

    def add_log(self, log: Dict[str, Any]) -> None:
        """Agrega un registro al principio respetando MAX_LOGS."""
        self.insert_first(log, self.MAX_LOGS)

    def get_recent(self, limit: int = 100) -> List[Dict[str, Any]]:
        """
        Args:
            limit: Cantidad máxima de registros

        Returns:
            Registros más recientes primero
        """
        return self.get_all()[:max(limit, 0)]
