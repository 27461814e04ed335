# ==============================================================================
# REPOSITORIOS MYSQL
# ==============================================================================
# Implementaciones de las mismas interfaces que los repositorios JSON,
# sobre mysql-connector-python. Se activan con CAIXA_STORAGE=mysql.
#
# TABLAS:
#   daily_entries (id PK, date, generalObservations, <un JSON por período>,
#                  createdAt, lastModifiedAt)
#   estornos      (daily_entry_id PK → daily_entries.id, items JSON)
#   settings      (configId PK, value JSON)
#   users         (id PK, username UNIQUE, password, role, shifts JSON,
#                  allowedPages JSON, createdAt)
#   audit_log     (id PK, timestamp VARCHAR(24) ISO UTC, username, action, details)
#
# Todas las consultas son parametrizadas (%s). Las conexiones salen de un
# pool por proceso; los repositorios reciben una fábrica inyectable para
# poder testear sin servidor.
# ==============================================================================

import json
import os
import threading
from contextlib import closing, contextmanager
from typing import Any, Callable, Dict, List, Optional

import mysql.connector
from mysql.connector import pooling

from caixa_tulsi.models import PERIOD_IDS
from .entry_repository import merge_entry


ENTRY_META_COLUMNS = ('id', 'date', 'generalObservations', 'createdAt', 'lastModifiedAt')
ENTRY_JSON_COLUMNS = tuple(PERIOD_IDS)
ENTRY_COLUMNS = ENTRY_META_COLUMNS + ENTRY_JSON_COLUMNS

USER_JSON_COLUMNS = ('shifts', 'allowedPages')

# Fallos de persistencia de cualquiera de los dos backends (JSON o MySQL)
STORAGE_ERRORS = (OSError, mysql.connector.Error)

POOL_NAME = 'caixa_tulsi'

_pool = None
_pool_lock = threading.Lock()


def _connection_settings(cfg: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'host': cfg.get('host') or os.getenv('DB_HOST', '127.0.0.1'),
        'port': int(cfg.get('port') or os.getenv('DB_PORT', '3306')),
        'user': cfg.get('user') or os.getenv('DB_USER', 'caixa'),
        'password': cfg.get('password') or os.getenv('DB_PASS', ''),
        'database': cfg.get('database') or os.getenv('DB_NAME', 'caixa_tulsi'),
        'charset': cfg.get('charset') or os.getenv('DB_CHARSET', 'utf8mb4'),
        'use_unicode': True,
        'autocommit': False,
    }


def get_db_connection(db_config: Optional[Dict[str, Any]] = None):
    """
    Toma una conexión del pool del proceso.

    El pool se crea en la primera llamada con las variables DB_* (o db_config),
    con DB_POOL_SIZE conexiones. close() devuelve la conexión al pool.

    Raises:
        mysql.connector.Error: Si no se puede conectar o el pool está agotado
    """
    global _pool
    with _pool_lock:
        if _pool is None:
            cfg = db_config or {}
            _pool = pooling.MySQLConnectionPool(
                pool_name=POOL_NAME,
                pool_size=int(cfg.get('pool_size') or os.getenv('DB_POOL_SIZE', '10')),
                pool_reset_session=True,
                **_connection_settings(cfg)
            )
    return _pool.get_connection()


def _dumps(value: Any) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False)


def _loads(value: Any) -> Any:
    """Las columnas JSON llegan como str, bytes o ya decodificadas."""
    if isinstance(value, (bytes, bytearray)):
        value = value.decode('utf-8')
    if isinstance(value, str):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            print(f"[ADVERTENCIA] Columna JSON inválida en MySQL: {value[:80]!r}")
            return None
    return value


class MySQLRepository:
    """
    Base de los repositorios MySQL.

    Args:
        connection_factory: f() -> conexión DB-API (por defecto get_db_connection)
    """

    def __init__(self, connection_factory: Optional[Callable[[], Any]] = None):
        self._connection_factory = connection_factory or get_db_connection

    def _fetch_all(self, query: str, params: tuple = ()) -> List[Dict[str, Any]]:
        with closing(self._connection_factory()) as conn:
            with closing(conn.cursor(dictionary=True)) as cur:
                cur.execute(query, params)
                return list(cur.fetchall())

    def _fetch_one(self, query: str, params: tuple = ()) -> Optional[Dict[str, Any]]:
        rows = self._fetch_all(query, params)
        return rows[0] if rows else None

    def _execute(self, query: str, params: tuple = ()) -> int:
        """Ejecuta una sentencia en una transacción. Devuelve filas afectadas."""
        with closing(self._connection_factory()) as conn:
            try:
                with closing(conn.cursor()) as cur:
                    cur.execute(query, params)
                    affected = cur.rowcount
                conn.commit()
                return affected
            except mysql.connector.Error:
                conn.rollback()
                raise

    @contextmanager
    def _transaction(self):
        """
        Conexión y cursor dedicados a una transacción explícita.

        Commit al salir del bloque; ante cualquier excepción, rollback y se
        propaga. Las lecturas con FOR UPDATE dentro del bloque bloquean la
        fila hasta el commit.
        """
        with closing(self._connection_factory()) as conn:
            try:
                with closing(conn.cursor(dictionary=True)) as cur:
                    cur.execute('START TRANSACTION')
                    yield cur
                conn.commit()
            except Exception:
                conn.rollback()
                raise


# ═══════════════════════════════════════════════════════════════════════════
# LANZAMIENTOS
# ═══════════════════════════════════════════════════════════════════════════

class MySQLEntryRepository(MySQLRepository):
    """Lanzamientos diarios: una columna JSON por período."""

    @staticmethod
    def _row_to_entry(row: Dict[str, Any]) -> Dict[str, Any]:
        entry = {}
        for column in ENTRY_META_COLUMNS:
            value = row.get(column)
            if value is not None:
                entry[column] = value if isinstance(value, str) else str(value)
        for column in ENTRY_JSON_COLUMNS:
            value = _loads(row.get(column))
            if value is not None:
                entry[column] = value
        return entry

    def get_all_entries(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        query = 'SELECT * FROM daily_entries'
        conditions, params = [], []
        if start_date:
            conditions.append('id >= %s')
            params.append(start_date)
        if end_date:
            conditions.append('id <= %s')
            params.append(end_date)
        if conditions:
            query += ' WHERE ' + ' AND '.join(conditions)
        query += ' ORDER BY id ASC'
        return [self._row_to_entry(r) for r in self._fetch_all(query, tuple(params))]

    def get_entry(self, date_id: str) -> Optional[Dict[str, Any]]:
        row = self._fetch_one('SELECT * FROM daily_entries WHERE id = %s', (date_id,))
        return self._row_to_entry(row) if row else None

    def save_entry(self, date_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Merge con lo existente y UPSERT, con la fila bloqueada durante la transacción."""
        with self._transaction() as cur:
            cur.execute('SELECT * FROM daily_entries WHERE id = %s FOR UPDATE', (date_id,))
            rows = cur.fetchall()
            merged = merge_entry(self._row_to_entry(rows[0]) if rows else None, date_id, data)
            values = []
            for column in ENTRY_COLUMNS:
                value = merged.get(column)
                values.append(_dumps(value) if column in ENTRY_JSON_COLUMNS else value)

            columns_sql = ', '.join(f'`{c}`' for c in ENTRY_COLUMNS)
            placeholders = ', '.join(['%s'] * len(ENTRY_COLUMNS))
            updates = ', '.join(f'`{c}` = VALUES(`{c}`)' for c in ENTRY_COLUMNS if c != 'id')
            cur.execute(
                f'INSERT INTO daily_entries ({columns_sql}) VALUES ({placeholders}) '
                f'ON DUPLICATE KEY UPDATE {updates}',
                tuple(values)
            )
        return merged


# ═══════════════════════════════════════════════════════════════════════════
# ESTORNOS
# ═══════════════════════════════════════════════════════════════════════════

def _estorno_items(value: Any) -> List[Dict[str, Any]]:
    items = _loads(value)
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]


class MySQLEstornoRepository(MySQLRepository):
    """Estornos: una fila por fecha con la lista de items en una columna JSON."""

    def get_items(self, start_date: str, end_date: str) -> List[Dict[str, Any]]:
        rows = self._fetch_all(
            'SELECT daily_entry_id, items FROM estornos '
            'WHERE daily_entry_id BETWEEN %s AND %s ORDER BY daily_entry_id ASC',
            (start_date, end_date)
        )
        items = []
        for row in rows:
            items.extend(_estorno_items(row.get('items')))
        return items

    def get_items_for_date(self, date_id: str) -> Optional[List[Dict[str, Any]]]:
        row = self._fetch_one('SELECT items FROM estornos WHERE daily_entry_id = %s', (date_id,))
        return _estorno_items(row.get('items')) if row else None

    @staticmethod
    def _lock_items(cur, date_id: str) -> Optional[List[Dict[str, Any]]]:
        cur.execute('SELECT items FROM estornos WHERE daily_entry_id = %s FOR UPDATE', (date_id,))
        rows = cur.fetchall()
        return _estorno_items(rows[0].get('items')) if rows else None

    def _append(self, cur, item: Dict[str, Any]) -> None:
        """Agrega el item a la fila de su fecha; crea la hoja del día si falta (FK)."""
        date_id = item['date']
        cur.execute(
            'INSERT INTO daily_entries (id, date) VALUES (%s, %s) ON DUPLICATE KEY UPDATE date = date',
            (date_id, date_id)
        )
        items = self._lock_items(cur, date_id) or []
        items.append(item)
        cur.execute(
            'INSERT INTO estornos (daily_entry_id, items) VALUES (%s, %s) '
            'ON DUPLICATE KEY UPDATE items = VALUES(items)',
            (date_id, _dumps(items))
        )

    def add_item(self, item: Dict[str, Any]) -> Dict[str, Any]:
        with self._transaction() as cur:
            self._append(cur, item)
        return item

    def delete_item(self, date_id: str, item_id: str) -> Optional[Dict[str, Any]]:
        """
        Returns:
            Item eliminado o None si no existía
        """
        with self._transaction() as cur:
            items = self._lock_items(cur, date_id) or []
            removed = next((item for item in items if item.get('id') == item_id), None)
            if removed is None:
                return None
            remaining = [item for item in items if item.get('id') != item_id]
            cur.execute(
                'UPDATE estornos SET items = %s WHERE daily_entry_id = %s',
                (_dumps(remaining), date_id)
            )
        return removed

    def relaunch_item(
        self,
        original_date: str,
        original_id: str,
        build_credit: Callable[[Dict[str, Any]], Dict[str, Any]]
    ) -> Optional[Dict[str, Any]]:
        """
        Busca el item original y guarda el crédito armado por build_credit,
        todo en una transacción.

        Returns:
            Crédito guardado o None si el item original no existe
        """
        with self._transaction() as cur:
            original = next(
                (item for item in self._lock_items(cur, original_date) or [] if item.get('id') == original_id),
                None
            )
            if original is None:
                return None
            credit = build_credit(original)
            self._append(cur, credit)
        return credit


# ═══════════════════════════════════════════════════════════════════════════
# CONFIGURACIONES
# ═══════════════════════════════════════════════════════════════════════════

class MySQLSettingsRepository(MySQLRepository):

    def get_setting(self, config_id: str) -> Any:
        row = self._fetch_one('SELECT value FROM settings WHERE configId = %s', (config_id,))
        return _loads(row['value']) if row else None

    def save_setting(self, config_id: str, value: Any) -> None:
        self._execute(
            'INSERT INTO settings (configId, value) VALUES (%s, %s) '
            'ON DUPLICATE KEY UPDATE value = VALUES(value)',
            (config_id, _dumps(value))
        )


# ═══════════════════════════════════════════════════════════════════════════
# USUARIOS
# ═══════════════════════════════════════════════════════════════════════════

class MySQLUserRepository(MySQLRepository):

    @staticmethod
    def _row_to_user(row: Dict[str, Any]) -> Dict[str, Any]:
        user = dict(row)
        user['id'] = str(user.get('id', ''))
        for column in USER_JSON_COLUMNS:
            user[column] = _loads(user.get(column)) or []
        if user.get('createdAt') is not None:
            user['createdAt'] = str(user['createdAt'])
        return user

    def get_all_users(self) -> List[Dict[str, Any]]:
        return [self._row_to_user(r) for r in self._fetch_all('SELECT * FROM users ORDER BY id ASC')]

    def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        row = self._fetch_one('SELECT * FROM users WHERE id = %s', (str(user_id),))
        return self._row_to_user(row) if row else None

    def get_user_by_username(self, username: str) -> Optional[Dict[str, Any]]:
        row = self._fetch_one(
            'SELECT * FROM users WHERE LOWER(username) = %s',
            ((username or '').strip().lower(),)
        )
        return self._row_to_user(row) if row else None

    def save_user(self, user: Dict[str, Any]) -> None:
        self._execute(
            'INSERT INTO users (id, username, password, role, shifts, allowedPages, createdAt) '
            'VALUES (%s, %s, %s, %s, %s, %s, %s) '
            'ON DUPLICATE KEY UPDATE username = VALUES(username), password = VALUES(password), '
            'role = VALUES(role), shifts = VALUES(shifts), allowedPages = VALUES(allowedPages)',
            (
                str(user['id']),
                user.get('username'),
                user.get('password'),
                user.get('role'),
                _dumps(user.get('shifts') or []),
                _dumps(user.get('allowedPages') or []),
                user.get('createdAt'),
            )
        )

    def delete_user(self, user_id: str) -> bool:
        return self._execute('DELETE FROM users WHERE id = %s', (str(user_id),)) > 0


# ═══════════════════════════════════════════════════════════════════════════
# AUDITORÍA
# ═══════════════════════════════════════════════════════════════════════════

class MySQLAuditRepository(MySQLRepository):

    def add_log(self, log: Dict[str, Any]) -> None:
        self._execute(
            'INSERT INTO audit_log (id, timestamp, username, action, details) VALUES (%s, %s, %s, %s, %s)',
            (log['id'], log['timestamp'], log.get('username'), log.get('action'), log.get('details', ''))
        )

    def get_recent(self, limit: int = 100) -> List[Dict[str, Any]]:
        rows = self._fetch_all(
            'SELECT id, timestamp, username, action, details FROM audit_log '
            'ORDER BY timestamp DESC LIMIT %s',
            (max(int(limit), 0),)
        )
        return [{**r, 'timestamp': str(r['timestamp'])} for r in rows]
