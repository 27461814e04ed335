import json
import os

import pytest

from caixa_tulsi.repositories import (
    EntryRepository,
    SettingsRepository,
    UserRepository,
    AuditRepository,
    EstornoRepository,
    IEntryRepository,
    ISettingsRepository,
    IUserRepository,
    IAuditRepository,
    IEstornoRepository,
)


def test_json_repositories_fulfil_interfaces(tmp_path):
    base = str(tmp_path)
    assert isinstance(EntryRepository(base), IEntryRepository)
    assert isinstance(SettingsRepository(base), ISettingsRepository)
    assert isinstance(UserRepository(base), IUserRepository)
    assert isinstance(AuditRepository(base), IAuditRepository)
    assert isinstance(EstornoRepository(base), IEstornoRepository)


def test_repository_creates_missing_data_dir(tmp_path):
    base = tmp_path / 'nested' / 'data'
    EntryRepository(str(base))
    assert json.loads((base / 'daily_entries.json').read_text(encoding='utf-8')) == {}


def test_save_entry_merges_and_stamps(tmp_path):
    repo = EntryRepository(str(tmp_path))
    first = repo.save_entry('2024-07-15', {'date': '2024-07-15', 'madrugada': {'channels': {'a': {'qtd': 1}}}})
    assert first['id'] == '2024-07-15'
    assert first['createdAt'] == first['lastModifiedAt']

    second = repo.save_entry('2024-07-15', {'jantar': {'channels': {}}, 'createdAt': 'forjado'})
    assert second['createdAt'] == first['createdAt']
    assert 'madrugada' in second and 'jantar' in second
    assert repo.get_entry('2024-07-15') == second


def test_get_all_entries_filters_and_sorts(tmp_path):
    repo = EntryRepository(str(tmp_path))
    for date_id in ('2024-07-20', '2024-06-30', '2024-07-01', '2024-08-01'):
        repo.save_entry(date_id, {})
    ids = [e['id'] for e in repo.get_all_entries('2024-07-01', '2024-07-31')]
    assert ids == ['2024-07-01', '2024-07-20']
    assert [e['id'] for e in repo.get_all_entries('2024-07-15')] == ['2024-07-20', '2024-08-01']
    assert len(repo.get_all_entries()) == 4


def test_corrupted_file_reads_as_empty(tmp_path):
    repo = EntryRepository(str(tmp_path))
    with open(repo.file_path, 'w', encoding='utf-8') as f:
        f.write('{ isto não é json')
    assert repo.get_all_entries() == []
    assert repo.get_entry('2024-07-15') is None


def test_write_is_atomic_without_leftover_tmp(tmp_path):
    repo = SettingsRepository(str(tmp_path))
    repo.save_setting('appName', 'Caixa Tulsi')
    assert not os.path.exists(repo.file_path + '.tmp')
    assert repo.get_setting('appName') == 'Caixa Tulsi'
    assert repo.get_setting('billedClients') is None


def test_unserializable_value_keeps_previous_file(tmp_path):
    repo = SettingsRepository(str(tmp_path))
    repo.save_setting('appName', 'Caixa Tulsi')
    with pytest.raises(TypeError):
        repo.save_setting('appName', {1, 2, 3})
    assert repo.get_setting('appName') == 'Caixa Tulsi'
    assert not os.path.exists(repo.file_path + '.tmp')


def test_user_lookup_is_case_insensitive(tmp_path):
    repo = UserRepository(str(tmp_path))
    repo.save_user({'id': '7', 'username': 'Maria', 'password': 'x', 'role': 'operator'})
    assert repo.get_user_by_username(' maria ')['id'] == '7'
    assert repo.get_user(7)['username'] == 'Maria'
    assert repo.delete_user('7') is True
    assert repo.delete_user('7') is False


def test_audit_log_newest_first_and_capped(tmp_path):
    repo = AuditRepository(str(tmp_path))
    repo.MAX_LOGS = 3
    for i in range(5):
        repo.add_log({'id': str(i), 'action': 'LOGIN_SUCCESS'})
    assert [log['id'] for log in repo.get_recent(10)] == ['4', '3', '2']
    assert [log['id'] for log in repo.get_recent(1)] == ['4']


# ═══════════════════════════════════════════════════════════════════════════
# ESTORNOS
# ═══════════════════════════════════════════════════════════════════════════

def estorno(item_id, date_id, valor=-30, category='frigobar'):
    return {'id': item_id, 'date': date_id, 'reason': 'duplicidade', 'quantity': 1,
            'valorEstorno': valor, 'category': category}


def test_estornos_grouped_by_date(tmp_path):
    repo = EstornoRepository(str(tmp_path))
    repo.add_item(estorno('b', '2024-07-16'))
    repo.add_item(estorno('a', '2024-07-15'))
    repo.add_item(estorno('c', '2024-07-15'))

    assert [i['id'] for i in repo.get_items('2024-07-01', '2024-07-31')] == ['a', 'c', 'b']
    assert [i['id'] for i in repo.get_items('2024-07-16', '2024-07-16')] == ['b']
    assert repo.get_items_for_date('2024-07-17') is None
    stored = json.loads((tmp_path / 'estornos.json').read_text(encoding='utf-8'))
    assert sorted(stored) == ['2024-07-15', '2024-07-16']


def test_delete_estorno_keeps_date_record(tmp_path):
    repo = EstornoRepository(str(tmp_path))
    repo.add_item(estorno('a', '2024-07-15'))
    assert repo.delete_item('2024-07-15', 'x') is None
    assert repo.delete_item('2024-07-15', 'a')['id'] == 'a'
    assert repo.get_items_for_date('2024-07-15') == []
    assert repo.delete_item('2024-07-15', 'a') is None


def test_relaunch_stores_credit_under_its_own_date(tmp_path):
    repo = EstornoRepository(str(tmp_path))
    repo.add_item(estorno('a', '2024-07-15', valor=-42.5))

    credit = repo.relaunch_item('2024-07-15', 'a', lambda original: {
        'id': 'credito', 'date': '2024-08-01', 'valorEstorno': abs(original['valorEstorno']),
    })
    assert credit['valorEstorno'] == 42.5
    assert repo.get_items_for_date('2024-08-01') == [credit]
    assert [i['id'] for i in repo.get_items_for_date('2024-07-15')] == ['a']
    assert repo.relaunch_item('2024-07-15', 'nenhum', lambda original: {}) is None
