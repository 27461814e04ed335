# ==============================================================================
# SERVICIO DE PERSONAS (faturados y consumo interno)
# ==============================================================================
# Renombra una persona en los items faturados y de consumo interno de los
# turnos de almoço/jantar de un rango de fechas, y en la lista de pessoas
# faturadas (setting billedClients).
# ==============================================================================

from typing import Any, Dict, Optional

from caixa_tulsi.models import SHIFT_PREFIXES
from caixa_tulsi.repositories import STORAGE_ERRORS
from caixa_tulsi.services import calculations as calc
from caixa_tulsi.services.audit_service import AuditService
from caixa_tulsi.services.report_service import parse_iso_date


BILLED_CLIENTS_ID = 'billedClients'


class PersonValidationError(ValueError):
    """Nombres o fechas del renombrado inválidos (400)."""
    pass


class PersonService:
    """Renombrado de personas en lanzamientos y en billedClients."""

    def __init__(self, entry_repo, settings_repo, audit_service: Optional[AuditService] = None):
        self.entry_repo = entry_repo
        self.settings_repo = settings_repo
        self.audit_service = audit_service

    @staticmethod
    def _rename_items(entry: Dict[str, Any], old_name: str, new_name: str) -> list:
        """
        Renombra en el lugar los items cuyo clientName es exactamente old_name.

        Returns:
            Ids de los turnos modificados
        """
        modified = []
        for period_id in SHIFT_PREFIXES:
            period = calc.get_period(entry, period_id)
            changed = False
            for item in calc.faturado_items(period) + calc.consumo_interno_items(period):
                if item.get('clientName') == old_name:
                    item['clientName'] = new_name
                    changed = True
            if changed:
                modified.append(period_id)
        return modified

    def _rename_billed_client(self, old_name: str, new_name: str) -> str:
        """Sufijo del mensaje según el resultado en billedClients."""
        try:
            clients = self.settings_repo.get_setting(BILLED_CLIENTS_ID)
            if not isinstance(clients, list):
                return ''
            for client in clients:
                if isinstance(client, dict) and client.get('name') == old_name:
                    client['name'] = new_name
                    self.settings_repo.save_setting(BILLED_CLIENTS_ID, clients)
                    return ' O nome também foi atualizado na lista de pessoas faturadas.'
            return ''
        except STORAGE_ERRORS as e:
            print(f"[ERROR PESSOAS] No se pudo actualizar billedClients: {type(e).__name__}: {e}")
            return ' (Falha ao atualizar a lista de pessoas faturadas).'

    def rename_person(self, payload: Any, username: str = 'sistema') -> Dict[str, Any]:
        """
        Renombra una persona en el rango [startDate, endDate].

        Args:
            payload: {oldName, newName, startDate, endDate}
            username: Usuario para auditoría

        Returns:
            {'updated': lanzamientos modificados, 'message': texto para la interfaz}

        Raises:
            PersonValidationError: Nombres o fechas faltantes o inválidos
        """
        payload = payload if isinstance(payload, dict) else {}
        old_name = payload.get('oldName')
        new_name = payload.get('newName')
        if not isinstance(old_name, str) or not isinstance(new_name, str) \
                or not old_name.strip() or not new_name.strip():
            raise PersonValidationError('Nome antigo e novo são obrigatórios.')
        start_date, end_date = payload.get('startDate'), payload.get('endDate')
        if not start_date or not end_date:
            raise PersonValidationError('Datas de início e fim são obrigatórias.')
        for label, value in (('startDate', start_date), ('endDate', end_date)):
            if not isinstance(value, str) or not parse_iso_date(value):
                raise PersonValidationError(f"Parâmetro '{label}' inválido. Use AAAA-MM-DD.")
        new_name = new_name.strip()

        updated = 0
        for entry in self.entry_repo.get_all_entries(start_date, end_date):
            modified = self._rename_items(entry, old_name, new_name)
            if modified:
                # Solo los turnos tocados: el resto del lanzamiento no se reescribe
                self.entry_repo.save_entry(entry['id'], {pid: entry[pid] for pid in modified})
                updated += 1

        suffix = self._rename_billed_client(old_name, new_name)
        if self.audit_service:
            self.audit_service.log_person_renamed(username, old_name, new_name, updated)
        return {
            'updated': updated,
            'message': f'Nome alterado com sucesso em {updated} registro(s).{suffix}',
        }
