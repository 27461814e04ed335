# ==============================================================================
# CAPA DE SERVICIOS - Lógica de negocio
# ==============================================================================
# ├── calculations.py     → Accesores tipados y calculadoras por categoría
# ├── aggregation.py      → Totales de un lanzamiento (card de resumen)
# ├── report_service.py   → Reportes general, por período, por persona
# ├── entry_service.py    → Lanzamientos diarios
# ├── settings_service.py → Configuraciones
# ├── user_service.py     → Autenticación y usuarios
# ├── estorno_service.py  → Estornos y relanzamiento como crédito
# ├── person_service.py   → Renombrado de personas faturadas/CI
# └── audit_service.py    → Auditoría
# ==============================================================================

from . import calculations
from .aggregation import AggregationConfig, EntryTotals, calculate_entry_totals
from .audit_service import AuditService
from .user_service import UserService, AuthenticationError
from .settings_service import SettingsService, InvalidConfigIdError, VALID_CONFIG_IDS
from .report_service import ReportService, ReportParameterError
from .entry_service import EntryService, EntryValidationError
from .estorno_service import EstornoService, EstornoValidationError, EstornoNotFoundError
from .person_service import PersonService, PersonValidationError

__all__ = [
    'calculations',
    'AggregationConfig',
    'EntryTotals',
    'calculate_entry_totals',
    'AuditService',
    'UserService',
    'AuthenticationError',
    'SettingsService',
    'InvalidConfigIdError',
    'VALID_CONFIG_IDS',
    'ReportService',
    'ReportParameterError',
    'EntryService',
    'EntryValidationError',
    'EstornoService',
    'EstornoValidationError',
    'EstornoNotFoundError',
    'PersonService',
    'PersonValidationError',
]
