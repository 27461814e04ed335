import pytest

from caixa_tulsi.models import Totals
from caixa_tulsi.services.aggregation import AggregationConfig, calculate_entry_totals


def lunch_entry(date_id='2024-07-15', qtd=10, valor=250.0):
    return {
        'id': date_id,
        'almocoPrimeiroTurno': {'channels': {'aptAvulso': {'qtd': qtd, 'vtotal': valor}}},
    }


def entry_with_ci():
    """Almoço PT con venta a huéspedes, CI y reajuste; jantar solo con CI sin valor."""
    return {
        'id': '2024-07-16',
        'almocoPrimeiroTurno': {'subTabs': {
            'hospedes': {'channels': {
                'aptHospedesQtdHospedes': {'qtd': 4},
                'aptHospedesPagamentoHospedes': {'vtotal': 100},
            }},
            'consumoInterno': {
                'consumoInternoItems': [{'clientName': 'Cozinha', 'quantity': 2, 'value': 30}],
                'channels': {'reajusteCI': {'vtotal': 5}},
            },
        }},
        'jantar': {'subTabs': {'consumoInterno': {
            'consumoInternoItems': [{'clientName': 'Recepção', 'quantity': 1, 'value': None}],
        }}},
    }


CI_PRICES = AggregationConfig(unit_prices={'consumoInterno': 12})


def test_single_lunch_channel():
    totals = calculate_entry_totals(lunch_entry())
    assert totals.turnos['almocoPT'] == Totals(10, 250)
    assert totals.grand_total_com_ci.valor == pytest.approx(250)
    assert totals.grand_total_sem_ci.valor == pytest.approx(250)
    assert totals.total_reajuste_ci == 0


def test_empty_entry_is_all_zero():
    totals = calculate_entry_totals({'id': '2024-07-01'})
    assert totals.grand_total_com_ci == Totals()
    assert totals.grand_total_sem_ci == Totals()
    assert all(t.is_zero() for t in totals.summary_items.values())


def test_malformed_entry_does_not_raise():
    entry = {'id': '2024-07-01', 'jantar': 'lixo', 'madrugada': {'channels': {'x': 'y'}}, 'eventos': 3}
    assert calculate_entry_totals(entry).grand_total_com_ci == Totals()


def test_com_ci_minus_sem_ci_is_ci_plus_reajuste():
    totals = calculate_entry_totals(entry_with_ci(), CI_PRICES)
    assert totals.total_ci == Totals(3, 42)
    assert totals.total_reajuste_ci == pytest.approx(5)
    assert totals.grand_total_com_ci.valor == pytest.approx(147)
    assert totals.grand_total_sem_ci.valor == pytest.approx(100)
    diff = totals.grand_total_com_ci.valor - totals.grand_total_sem_ci.valor
    assert diff == pytest.approx(totals.total_ci.valor + totals.total_reajuste_ci)


def test_shift_total_includes_reajuste_but_not_ci_quantity():
    totals = calculate_entry_totals(entry_with_ci(), CI_PRICES)
    assert totals.turnos['almocoPT'] == Totals(4, 105)
    assert totals.almoco == Totals(4, 105)
    assert totals.almoco_ci == Totals(2, 30)
    assert totals.jantar_ci == Totals(1, 12)


def test_excluded_ci_item_leaves_grand_total_but_keeps_its_line():
    config = AggregationConfig(unit_prices={'consumoInterno': 12}, summary_items={'almocoCI': False})
    totals = calculate_entry_totals(entry_with_ci(), config)
    assert totals.grand_total_com_ci.valor == pytest.approx(117)
    assert totals.grand_total_sem_ci.valor == pytest.approx(100)
    assert totals.summary_items['almocoCI'] == Totals(2, 30)
    assert totals.included_items['almocoCI'] is False


def test_excluded_meal_drops_its_reajuste_from_sem_ci():
    config = AggregationConfig(unit_prices={'consumoInterno': 12}, summary_items={'almoco': False})
    totals = calculate_entry_totals(entry_with_ci(), config)
    assert totals.grand_total_com_ci.valor == pytest.approx(42)
    assert totals.grand_total_sem_ci.valor == pytest.approx(0)


def test_only_explicit_false_excludes():
    config = AggregationConfig(summary_items={'almoco': None, 'jantar': 0})
    assert config.is_included('almoco')
    assert config.is_included('jantar')
    assert not AggregationConfig(summary_items={'almoco': False}).is_included('almoco')


def test_room_service_shifts_separate_from_madrugada():
    entry = {
        'id': '2024-07-17',
        'madrugada': {'channels': {
            'madrugadaRoomServiceQtdPedidos': {'qtd': 2},
            'madrugadaRoomServicePagDireto': {'vtotal': 70},
        }},
        'jantar': {'subTabs': {'roomService': {'channels': {
            'jntRoomServiceQtdPedidos': {'qtd': 1},
            'jntRoomServicePagDireto': {'vtotal': 40},
        }}}},
    }
    totals = calculate_entry_totals(entry)
    assert totals.summary_items['rsMadrugada'] == Totals(2, 70)
    assert totals.summary_items['roomService'] == Totals(1, 40)
    assert totals.period_totals('roomService') == Totals(1, 40)
    assert totals.grand_total_com_ci.valor == pytest.approx(110)


def test_from_settings_ignores_malformed_values():
    config = AggregationConfig.from_settings(['not', 'a', 'dict'], None)
    assert config.unit_price('consumoInterno') == 0
    assert config.is_included('almocoCI')


def test_to_dict_rounds_to_cents():
    entry = {'id': '2024-07-18', 'breakfast': {'channels': {
        'a': {'qtd': 1, 'vtotal': 0.1},
        'b': {'qtd': 1, 'vtotal': 0.2},
    }}}
    data = calculate_entry_totals(entry).to_dict()
    assert data['breakfast'] == {'qtd': 2, 'valor': 0.3}
    assert data['grandTotal']['comCI']['valor'] == 0.3
    assert data['summaryItems']['breakfast']['included'] is True


def test_to_dict_splits_frigobar_and_reajuste_by_shift():
    entry = entry_with_ci()
    entry['almocoSegundoTurno'] = {'subTabs': {'frigobar': {'channels': {
        'frgSTTotalQuartos': {'qtd': 2},
        'frgSTPagHotel': {'vtotal': 25},
    }}}}
    data = calculate_entry_totals(entry, CI_PRICES).to_dict()
    assert data['frigobarTurnos']['almocoST'] == {'qtd': 2, 'valor': 25}
    assert data['frigobarTurnos']['jantar'] == {'qtd': 0, 'valor': 0}
    assert data['frigobar'] == {'qtd': 2, 'valor': 25}
    assert data['reajustePorTurno'] == {'almocoPT': 5, 'almocoST': 0, 'jantar': 0}
