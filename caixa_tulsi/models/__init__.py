# ==============================================================================
# CAPA DE MODELOS - Estructuras de datos del sistema
# ==============================================================================
# Entidades del dominio (dataclasses) y catálogo de períodos.
# Independientes del mecanismo de persistencia (JSON o MySQL).
# ==============================================================================

from .entities import (
    # Usuarios
    User,
    UserRole,
    OperatorShift,
    PageId,
    ALL_PAGES,

    # Lanzamientos
    FaturadoType,
    EventLocation,
    Totals,
    MadrugadaTotals,
    ConsumoInternoTotals,

    # Auditoría
    AuditLog,
    AuditAction,
    EstornoReason,
)
from .periods import (
    PERIOD_DEFINITIONS,
    PERIOD_IDS,
    GENERIC_PERIOD_IDS,
    SHIFT_PREFIXES,
    SHIFT_SHORT_NAMES,
    SUMMARY_CARD_ITEMS,
)

__all__ = [
    'User',
    'UserRole',
    'OperatorShift',
    'PageId',
    'ALL_PAGES',
    'FaturadoType',
    'EventLocation',
    'Totals',
    'MadrugadaTotals',
    'ConsumoInternoTotals',
    'AuditLog',
    'AuditAction',
    'EstornoReason',
    'PERIOD_DEFINITIONS',
    'PERIOD_IDS',
    'GENERIC_PERIOD_IDS',
    'SHIFT_PREFIXES',
    'SHIFT_SHORT_NAMES',
    'SUMMARY_CARD_ITEMS',
]
