# ==============================================================================
# SERVICIO DE LANZAMIENTOS DIARIOS
# ==============================================================================
# Validación de fechas y payloads, merge y auditoría de lanzamientos.
# ==============================================================================

from typing import Any, Dict, List, Optional

from caixa_tulsi.services.audit_service import AuditService
from caixa_tulsi.services.report_service import parse_iso_date


class EntryValidationError(ValueError):
    """Fecha o payload de lanzamiento inválido."""
    pass


class EntryService:
    """
    Servicio de lanzamientos.

    Responsabilidades:
    - Listar por rango (opcionalmente solo ids)
    - Obtener uno por fecha
    - Guardar con merge y auditar CREATE_ENTRY / UPDATE_ENTRY
    """

    def __init__(self, entry_repo, audit_service: Optional[AuditService] = None):
        self.entry_repo = entry_repo
        self.audit_service = audit_service

    def list_entries(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        fields: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """
        Args:
            start_date: AAAA-MM-DD inclusivo (opcional)
            end_date: AAAA-MM-DD inclusivo (opcional)
            fields: 'id' para devolver solo {id}

        Raises:
            EntryValidationError: Si alguna fecha no es válida
        """
        for label, value in (('startDate', start_date), ('endDate', end_date)):
            if value and not parse_iso_date(value):
                raise EntryValidationError(f"Parâmetro '{label}' inválido. Use AAAA-MM-DD.")
        entries = self.entry_repo.get_all_entries(start_date, end_date)
        if fields == 'id':
            return [{'id': e['id']} for e in entries]
        return entries

    def get_entry(self, date_id: str) -> Optional[Dict[str, Any]]:
        """
        Raises:
            EntryValidationError: Si la fecha de la URL no es válida
        """
        if not parse_iso_date(date_id):
            raise EntryValidationError('Formato de data inválido na URL.')
        return self.entry_repo.get_entry(date_id)

    def save_entry(self, date_id: str, payload: Any, username: str = 'sistema') -> Dict[str, Any]:
        """
        Guarda el lanzamiento de una fecha (merge con lo existente).

        Args:
            date_id: Fecha de la URL
            payload: Cuerpo recibido (debe ser un objeto)
            username: Usuario para auditoría

        Returns:
            {'entry': lanzamiento guardado, 'created': bool}

        Raises:
            EntryValidationError: Fecha, payload o fecha del payload inválidos
        """
        if not parse_iso_date(date_id):
            raise EntryValidationError('Formato de data inválido na URL para POST.')
        if not isinstance(payload, dict):
            raise EntryValidationError('Payload da requisição inválido. Esperado um objeto JSON.')

        payload_date = payload.get('date') or payload.get('id')
        if payload_date and str(payload_date)[:10] != date_id:
            raise EntryValidationError(
                f'A data do lançamento ({payload_date}) não corresponde à data da URL ({date_id}).'
            )

        created = self.entry_repo.get_entry(date_id) is None
        saved = self.entry_repo.save_entry(date_id, payload)
        if self.audit_service:
            self.audit_service.log_entry_saved(username, date_id, created)
        return {'entry': saved, 'created': created}
