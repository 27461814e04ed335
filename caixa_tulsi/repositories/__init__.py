# ==============================================================================
# CAPA DE REPOSITORIOS - Acceso a datos
# ==============================================================================
# Dos implementaciones con los mismos métodos públicos:
#
# ├── interfaces.py          → Protocolos (contratos comunes)
# ├── base.py                → Clases base JSON (DictRepository, ListRepository)
# ├── entry_repository.py    → daily_entries.json
# ├── settings_repository.py → settings.json
# ├── user_repository.py     → users.json
# ├── audit_repository.py    → audit_log.json
# ├── estorno_repository.py  → estornos.json
# └── mysql_repository.py    → Las cinco anteriores sobre MySQL (con pool)
#
# El contenedor elige la implementación según CAIXA_STORAGE (json | mysql).
# ==============================================================================

from .interfaces import (
    IEntryRepository,
    ISettingsRepository,
    IUserRepository,
    IAuditRepository,
    IEstornoRepository,
)

from .base import BaseRepository, DictRepository, ListRepository
from .entry_repository import EntryRepository, merge_entry, now_iso
from .settings_repository import SettingsRepository
from .user_repository import UserRepository
from .audit_repository import AuditRepository
from .estorno_repository import EstornoRepository
from .mysql_repository import (
    get_db_connection,
    STORAGE_ERRORS,
    MySQLEntryRepository,
    MySQLSettingsRepository,
    MySQLUserRepository,
    MySQLAuditRepository,
    MySQLEstornoRepository,
)

__all__ = [
    # Interfaces
    'IEntryRepository',
    'ISettingsRepository',
    'IUserRepository',
    'IAuditRepository',
    'IEstornoRepository',

    # Clases base
    'BaseRepository',
    'DictRepository',
    'ListRepository',

    # JSON
    'EntryRepository',
    'merge_entry',
    'now_iso',
    'SettingsRepository',
    'UserRepository',
    'AuditRepository',
    'EstornoRepository',

    # MySQL
    'get_db_connection',
    'STORAGE_ERRORS',
    'MySQLEntryRepository',
    'MySQLSettingsRepository',
    'MySQLUserRepository',
    'MySQLAuditRepository',
    'MySQLEstornoRepository',
]
