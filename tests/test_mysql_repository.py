import json

import mysql.connector
import pytest

from caixa_tulsi.repositories import (
    get_db_connection,
    mysql_repository,
    MySQLEntryRepository,
    MySQLEstornoRepository,
    MySQLSettingsRepository,
    MySQLUserRepository,
    MySQLAuditRepository,
    IEntryRepository,
    IEstornoRepository,
)


class FakeCursor:
    def __init__(self, conn):
        self.conn = conn
        self.rowcount = 0

    def execute(self, query, params=()):
        self.conn.queries.append((query, params))
        if self.conn.fail_on_execute or (self.conn.fail_on and self.conn.fail_on in query):
            raise mysql.connector.Error(msg='falha simulada')
        self.rowcount = self.conn.rowcount

    def fetchall(self):
        return self.conn.rows.pop(0) if self.conn.rows else []

    def close(self):
        pass


class FakeConnection:
    """Conexión DB-API mínima: registra consultas y devuelve filas preparadas."""

    def __init__(self, rows=None, rowcount=1, fail_on_execute=False, fail_on=None):
        self.rows = list(rows or [])
        self.rowcount = rowcount
        self.fail_on_execute = fail_on_execute
        self.fail_on = fail_on
        self.queries = []
        self.commits = 0
        self.rollbacks = 0
        self.closed = 0

    def cursor(self, dictionary=False):
        return FakeCursor(self)

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1

    def close(self):
        self.closed += 1


def test_entry_rows_decode_json_columns():
    conn = FakeConnection(rows=[[{
        'id': '2024-07-15',
        'date': '2024-07-15',
        'generalObservations': None,
        'createdAt': '2024-07-15T10:00:00.000Z',
        'lastModifiedAt': '2024-07-15T11:00:00.000Z',
        'madrugada': json.dumps({'channels': {'x': {'qtd': 1}}}),
        'jantar': b'{"channels": {}}',
        'breakfast': None,
    }]])
    repo = MySQLEntryRepository(lambda: conn)
    entry = repo.get_entry('2024-07-15')

    assert isinstance(repo, IEntryRepository)
    assert entry['madrugada'] == {'channels': {'x': {'qtd': 1}}}
    assert entry['jantar'] == {'channels': {}}
    assert 'breakfast' not in entry and 'generalObservations' not in entry
    assert conn.queries == [('SELECT * FROM daily_entries WHERE id = %s', ('2024-07-15',))]
    assert conn.closed == 1


def test_get_all_entries_builds_parameterized_range():
    conn = FakeConnection(rows=[[]])
    MySQLEntryRepository(lambda: conn).get_all_entries('2024-07-01', '2024-07-31')
    query, params = conn.queries[0]
    assert query == 'SELECT * FROM daily_entries WHERE id >= %s AND id <= %s ORDER BY id ASC'
    assert params == ('2024-07-01', '2024-07-31')


def test_save_entry_locks_row_and_upserts_in_one_transaction():
    existing = {'id': '2024-07-15', 'date': '2024-07-15', 'createdAt': '2024-07-15T10:00:00.000Z',
                'madrugada': '{"channels": {}}'}
    conn = FakeConnection(rows=[[existing]])
    opened = []

    def factory():
        opened.append(conn)
        return conn

    saved = MySQLEntryRepository(factory).save_entry('2024-07-15', {'jantar': {'channels': {}}})

    assert saved['createdAt'] == '2024-07-15T10:00:00.000Z'
    assert saved['madrugada'] == {'channels': {}}
    assert len(opened) == 1
    statements = [query for query, _ in conn.queries]
    assert statements[0] == 'START TRANSACTION'
    assert statements[1] == 'SELECT * FROM daily_entries WHERE id = %s FOR UPDATE'
    assert statements[2].startswith('INSERT INTO daily_entries')
    assert 'ON DUPLICATE KEY UPDATE' in statements[2]
    assert len(statements) == 3
    params = conn.queries[2][1]
    assert params[0] == '2024-07-15'
    assert '{"channels": {}}' in params
    assert conn.commits == 1
    assert conn.closed == 1


def test_save_entry_rolls_back_when_upsert_fails():
    conn = FakeConnection(rows=[[]], fail_on='INSERT INTO daily_entries')
    with pytest.raises(mysql.connector.Error):
        MySQLEntryRepository(lambda: conn).save_entry('2024-07-15', {})
    assert conn.rollbacks == 1
    assert conn.commits == 0
    assert conn.closed == 1


def test_failed_write_rolls_back_and_raises():
    conn = FakeConnection(fail_on_execute=True)
    with pytest.raises(mysql.connector.Error):
        MySQLSettingsRepository(lambda: conn).save_setting('appName', 'Caixa')
    assert conn.rollbacks == 1
    assert conn.commits == 0


def test_settings_roundtrip_through_json_column():
    conn = FakeConnection(rows=[[{'value': '{"consumoInterno": 12.5}'}]])
    repo = MySQLSettingsRepository(lambda: conn)
    assert repo.get_setting('channelUnitPricesConfig') == {'consumoInterno': 12.5}

    repo.save_setting('appName', 'Caixa Tulsi')
    assert conn.queries[-1][1] == ('appName', '"Caixa Tulsi"')


def test_user_lookup_lowercases_username():
    conn = FakeConnection(rows=[[{
        'id': 3, 'username': 'Maria', 'password': 'h', 'role': 'operator',
        'shifts': '["first"]', 'allowedPages': None, 'createdAt': None,
    }]])
    user = MySQLUserRepository(lambda: conn).get_user_by_username(' MARIA ')
    assert conn.queries[0][1] == ('maria',)
    assert user['id'] == '3'
    assert user['shifts'] == ['first']
    assert user['allowedPages'] == []


def test_delete_user_reports_affected_rows():
    assert MySQLUserRepository(lambda: FakeConnection(rowcount=1)).delete_user('5') is True
    assert MySQLUserRepository(lambda: FakeConnection(rowcount=0)).delete_user('5') is False


def test_audit_recent_uses_limit_parameter():
    conn = FakeConnection(rows=[[{'id': 'a', 'timestamp': '2024-07-15 10:00:00', 'username': 'admin',
                                  'action': 'LOGIN_SUCCESS', 'details': ''}]])
    logs = MySQLAuditRepository(lambda: conn).get_recent(25)
    assert conn.queries[0][1] == (25,)
    assert logs[0]['action'] == 'LOGIN_SUCCESS'


# ═══════════════════════════════════════════════════════════════════════════
# ESTORNOS
# ═══════════════════════════════════════════════════════════════════════════

ESTORNO = {'id': 'e1', 'date': '2024-07-15', 'reason': 'duplicidade', 'quantity': 1,
           'valorEstorno': -30, 'category': 'frigobar', 'uh': '101'}


def test_estorno_rows_are_flattened_in_date_order():
    conn = FakeConnection(rows=[[
        {'daily_entry_id': '2024-07-15', 'items': json.dumps([ESTORNO])},
        {'daily_entry_id': '2024-07-16', 'items': 'não é json'},
    ]])
    repo = MySQLEstornoRepository(lambda: conn)
    assert isinstance(repo, IEstornoRepository)
    assert repo.get_items('2024-07-01', '2024-07-31') == [ESTORNO]
    query, params = conn.queries[0]
    assert 'BETWEEN %s AND %s' in query
    assert params == ('2024-07-01', '2024-07-31')


def test_add_estorno_creates_day_and_appends_under_lock():
    conn = FakeConnection(rows=[[{'items': '[]'}]])
    MySQLEstornoRepository(lambda: conn).add_item(ESTORNO)

    statements = [query for query, _ in conn.queries]
    assert statements[0] == 'START TRANSACTION'
    assert statements[1].startswith('INSERT INTO daily_entries (id, date)')
    assert statements[2] == 'SELECT items FROM estornos WHERE daily_entry_id = %s FOR UPDATE'
    assert statements[3].startswith('INSERT INTO estornos')
    assert json.loads(conn.queries[3][1][1]) == [ESTORNO]
    assert conn.commits == 1


def test_delete_missing_estorno_writes_nothing():
    conn = FakeConnection(rows=[[{'items': json.dumps([ESTORNO])}]])
    assert MySQLEstornoRepository(lambda: conn).delete_item('2024-07-15', 'outro') is None
    assert not any(query.startswith('UPDATE') for query, _ in conn.queries)

    conn = FakeConnection(rows=[[{'items': json.dumps([ESTORNO])}]])
    removed = MySQLEstornoRepository(lambda: conn).delete_item('2024-07-15', 'e1')
    assert removed == ESTORNO
    assert conn.queries[-1] == ('UPDATE estornos SET items = %s WHERE daily_entry_id = %s', ('[]', '2024-07-15'))
    assert conn.commits == 1


def test_relaunch_runs_in_a_single_transaction():
    conn = FakeConnection(rows=[[{'items': json.dumps([ESTORNO])}], []])
    opened = []

    def factory():
        opened.append(conn)
        return conn

    credit = MySQLEstornoRepository(factory).relaunch_item('2024-07-15', 'e1', lambda original: {
        'id': 'c1', 'date': '2024-08-01', 'reason': 'relancamento', 'valorEstorno': abs(original['valorEstorno']),
    })

    assert credit['valorEstorno'] == 30
    assert len(opened) == 1
    statements = [query for query, _ in conn.queries]
    assert statements[0] == 'START TRANSACTION'
    assert statements[1] == 'SELECT items FROM estornos WHERE daily_entry_id = %s FOR UPDATE'
    assert conn.queries[2][1] == ('2024-08-01', '2024-08-01')
    assert statements[4].startswith('INSERT INTO estornos')
    assert conn.queries[4][1][0] == '2024-08-01'
    assert conn.commits == 1


def test_failed_relaunch_rolls_back():
    conn = FakeConnection(rows=[[{'items': json.dumps([ESTORNO])}], []], fail_on='INSERT INTO estornos')
    with pytest.raises(mysql.connector.Error):
        MySQLEstornoRepository(lambda: conn).relaunch_item(
            '2024-07-15', 'e1', lambda original: {'id': 'c1', 'date': '2024-08-01', 'valorEstorno': 30}
        )
    assert conn.rollbacks == 1
    assert conn.commits == 0


# ═══════════════════════════════════════════════════════════════════════════
# POOL DE CONEXIONES
# ═══════════════════════════════════════════════════════════════════════════

def test_connections_come_from_one_shared_pool(monkeypatch):
    created = []

    class FakePool:
        def __init__(self, **kwargs):
            created.append(kwargs)

        def get_connection(self):
            return FakeConnection()

    monkeypatch.setattr(mysql_repository, '_pool', None)
    monkeypatch.setattr(mysql_repository.pooling, 'MySQLConnectionPool', FakePool)

    first = get_db_connection({'host': 'db.local', 'pool_size': 3})
    second = get_db_connection({'host': 'db.local', 'pool_size': 3})

    assert len(created) == 1
    assert created[0]['pool_name'] == 'caixa_tulsi'
    assert created[0]['pool_size'] == 3
    assert created[0]['host'] == 'db.local'
    assert created[0]['autocommit'] is False
    assert isinstance(first, FakeConnection) and first is not second
