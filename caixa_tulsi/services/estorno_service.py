# ==============================================================================
# SERVICIO DE ESTORNOS
# ==============================================================================
# Estornos (devoluciones) de restaurante, frigobar y room service.
# Un estorno se guarda siempre con valor negativo, salvo el motivo
# 'relancamento', que es un crédito (valor positivo). Relanzar un estorno
# genera ese crédito con la fecha de hoy a partir del item original.
# ==============================================================================

import math
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from caixa_tulsi.models import EstornoReason
from caixa_tulsi.services.audit_service import AuditService
from caixa_tulsi.services.report_service import parse_iso_date


VALID_REASONS = frozenset(r.value for r in EstornoReason)

ALL_CATEGORIES = 'all'

TEXT_FIELDS = ('registeredBy', 'uh', 'nf', 'observation', 'hora')


class EstornoValidationError(ValueError):
    """Parámetros o payload de estorno inválidos (400)."""
    pass


class EstornoNotFoundError(LookupError):
    """Fecha o item de estorno inexistente (404)."""
    pass


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _is_uuid(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


class EstornoService:
    """
    Servicio de estornos.

    Responsabilidades:
    - Listar por rango de fechas y categoría
    - Registrar (con el signo según el motivo) y eliminar
    - Relanzar un estorno como crédito
    - Auditar CREATE_ESTORNO / DELETE_ESTORNO / RELAUNCH_ESTORNO
    """

    def __init__(
        self,
        estorno_repo,
        audit_service: Optional[AuditService] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Args:
            estorno_repo: Repositorio de estornos (JSON o MySQL)
            audit_service: Auditoría (opcional)
            clock: f() -> datetime para la fecha/hora de los créditos
        """
        self.estorno_repo = estorno_repo
        self.audit_service = audit_service
        self.clock = clock or datetime.now

    # =========================================================================
    # CONSULTA
    # =========================================================================

    def list_items(
        self,
        start_date: Optional[str],
        end_date: Optional[str],
        category: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """
        Args:
            start_date: AAAA-MM-DD inclusivo (obligatorio)
            end_date: AAAA-MM-DD inclusivo (obligatorio)
            category: Categoría a filtrar; None o 'all' = todas

        Raises:
            EstornoValidationError: Si falta alguna fecha o no es válida
        """
        if not start_date or not end_date:
            raise EstornoValidationError('Data de início e fim são obrigatórios.')
        for label, value in (('startDate', start_date), ('endDate', end_date)):
            if not parse_iso_date(value):
                raise EstornoValidationError(f"Parâmetro '{label}' inválido. Use AAAA-MM-DD.")

        items = self.estorno_repo.get_items(start_date, end_date)
        if category and category != ALL_CATEGORIES:
            items = [item for item in items if item.get('category') == category]
        return items

    # =========================================================================
    # ALTA Y BAJA
    # =========================================================================

    @staticmethod
    def _validate_item(payload: Any) -> Dict[str, Any]:
        """Copia solo los campos conocidos; los demás se descartan."""
        if not isinstance(payload, dict):
            raise EstornoValidationError('Dados inválidos.')

        date_id = payload.get('date')
        valid = (
            isinstance(date_id, str) and parse_iso_date(date_id)
            and payload.get('reason') in VALID_REASONS
            and _is_number(payload.get('quantity'))
            and _is_number(payload.get('valorEstorno'))
            and isinstance(payload.get('category'), str)
            and (payload.get('id') is None or isinstance(payload.get('id'), str))
            and (payload.get('valorTotalNota') is None or _is_number(payload.get('valorTotalNota')))
            and all(payload.get(f) is None or isinstance(payload.get(f), str) for f in TEXT_FIELDS)
        )
        if not valid:
            raise EstornoValidationError('Dados inválidos.')

        item = {
            'id': payload.get('id') or str(uuid.uuid4()),
            'date': date_id,
            'reason': payload['reason'],
            'quantity': payload['quantity'],
            'valorEstorno': payload['valorEstorno'],
            'category': payload['category'],
        }
        for field in TEXT_FIELDS + ('valorTotalNota',):
            if payload.get(field) is not None:
                item[field] = payload[field]
        return item

    def create_item(self, payload: Any, username: str = 'sistema') -> Dict[str, Any]:
        """
        Registra un estorno bajo su fecha.

        Args:
            payload: Item recibido
            username: Usuario de la sesión (registeredBy por defecto)

        Returns:
            Item guardado (con id y valor con signo)

        Raises:
            EstornoValidationError: Si el item no es válido
        """
        item = self._validate_item(payload)
        item.setdefault('registeredBy', username)
        if item['reason'] == EstornoReason.RELANCAMENTO.value:
            item['valorEstorno'] = abs(item['valorEstorno'])
        else:
            item['valorEstorno'] = -abs(item['valorEstorno'])

        self.estorno_repo.add_item(item)
        if self.audit_service:
            self.audit_service.log_estorno_created(item['registeredBy'], item)
        return item

    def _require_date_record(self, date_id: str, message: str) -> None:
        if self.estorno_repo.get_items_for_date(date_id) is None:
            raise EstornoNotFoundError(message)

    def delete_item(self, payload: Any, username: str = 'sistema') -> Dict[str, Any]:
        """
        Elimina un estorno identificado por {id, date}.

        Returns:
            Item eliminado

        Raises:
            EstornoValidationError: Payload sin id/date
            EstornoNotFoundError: Fecha sin estornos o item inexistente
        """
        if not isinstance(payload, dict) or not isinstance(payload.get('date'), str) \
                or not isinstance(payload.get('id'), str):
            raise EstornoValidationError('Dados inválidos para exclusão.')

        date_id, item_id = payload['date'], payload['id']
        self._require_date_record(date_id, 'Nenhum estorno encontrado para esta data.')
        removed = self.estorno_repo.delete_item(date_id, item_id)
        if removed is None:
            raise EstornoNotFoundError('Item de estorno não encontrado para exclusão.')

        if self.audit_service:
            self.audit_service.log_estorno_deleted(username, removed)
        return removed

    # =========================================================================
    # RELANZAMIENTO
    # =========================================================================

    def relaunch_item(self, payload: Any, username: str = 'sistema') -> Dict[str, Any]:
        """
        Relanza un estorno como crédito con la fecha de hoy.

        El crédito copia uh, nf, quantity, valorTotalNota y category del
        original, con motivo 'relancamento' y el valor absoluto del original.

        Args:
            payload: {originalItemId, originalItemDate, additionalObservation?, registeredBy?}
            username: Usuario de la sesión (registeredBy por defecto)

        Returns:
            Crédito guardado

        Raises:
            EstornoValidationError: Payload inválido
            EstornoNotFoundError: Fecha original sin estornos o item inexistente
        """
        if not isinstance(payload, dict):
            raise EstornoValidationError('Dados de relançamento inválidos.')
        original_id = payload.get('originalItemId')
        original_date = payload.get('originalItemDate')
        observation = payload.get('additionalObservation')
        registered_by = payload.get('registeredBy')
        if not _is_uuid(original_id) or not isinstance(original_date, str) \
                or (observation is not None and not isinstance(observation, str)) \
                or (registered_by is not None and not isinstance(registered_by, str)):
            raise EstornoValidationError('Dados de relançamento inválidos.')
        registered_by = registered_by or username or 'sistema'

        self._require_date_record(original_date, 'Registro de estorno original não encontrado para esta data.')
        now = self.clock()

        def build_credit(original: Dict[str, Any]) -> Dict[str, Any]:
            credit = {
                'id': str(uuid.uuid4()),
                'date': now.strftime('%Y-%m-%d'),
                'hora': now.strftime('%H:%M'),
                'registeredBy': registered_by,
                'reason': EstornoReason.RELANCAMENTO.value,
                'valorEstorno': abs(original.get('valorEstorno') or 0),
                'observation': observation or '',
                'uh': original.get('uh'),
                'nf': original.get('nf'),
                'quantity': original.get('quantity') or 0,
                'valorTotalNota': original.get('valorTotalNota'),
                'category': original.get('category'),
            }
            return {k: v for k, v in credit.items() if v is not None}

        credit = self.estorno_repo.relaunch_item(original_date, original_id, build_credit)
        if credit is None:
            raise EstornoNotFoundError('Item de estorno original específico não encontrado para relançamento.')

        if self.audit_service:
            self.audit_service.log_estorno_relaunched(registered_by, original_id, credit)
        return credit
