# ==============================================================================
# AGREGADOR DE LANZAMIENTOS
# ==============================================================================
# Combina todas las calculadoras por categoría en un único objeto de totales
# para UN lanzamiento diario.
#
# La configuración (precios unitarios y toggles del card de resumen) entra
# como un objeto explícito: el agregador no lee settings por su cuenta y
# es una función pura.
#
# Composición del total general (items del card de resumen):
#   rsMadrugada + roomService + cafeHospedes + avulsoAssinado + breakfast
#   + almoco + jantar + RW (4) + bali (2) + frigobar + eventos (2)
#   + almocoCI + jantarCI
# Un item desactivado sale del total general pero sigue informado en su línea.
# ==============================================================================

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from caixa_tulsi.models import (
    Totals,
    MadrugadaTotals,
    SUMMARY_CARD_ITEMS,
    GENERIC_PERIOD_IDS,
    SHIFT_PREFIXES,
)
from caixa_tulsi.performance_logger import profile_function
from caixa_tulsi.services import calculations as calc


# Items de consumo interno dentro del card de resumen
CI_ITEMS = ('almocoCI', 'jantarCI')

# Items que cargan el reajuste de CI de sus turnos
REAJUSTE_CARRIERS = {'almoco': ('apt', 'ast'), 'jantar': ('jnt',)}


@dataclass(frozen=True)
class AggregationConfig:
    """
    Configuración inmutable que recibe el agregador.

    Attributes:
        unit_prices: Precios unitarios por canal (channelUnitPricesConfig)
        summary_items: Toggles del card de resumen (summaryCardItemsConfig).
                       Un item está incluido salvo que valga explícitamente False.
    """
    unit_prices: Mapping[str, Any] = field(default_factory=dict)
    summary_items: Mapping[str, Any] = field(default_factory=dict)

    def is_included(self, item_id: str) -> bool:
        return self.summary_items.get(item_id) is not False

    def unit_price(self, channel_id: str) -> float:
        return calc.to_number(self.unit_prices.get(channel_id))

    @classmethod
    def from_settings(cls, unit_prices: Any = None, summary_items: Any = None) -> 'AggregationConfig':
        """Construye la configuración desde los valores crudos de settings."""
        return cls(
            unit_prices=dict(calc.as_dict(unit_prices)),
            summary_items=dict(calc.as_dict(summary_items)),
        )


@dataclass
class EntryTotals:
    """Resultado del agregador para un lanzamiento."""
    rs_madrugada: MadrugadaTotals
    rs_almoco_pt: Totals
    rs_almoco_st: Totals
    rs_jantar: Totals
    frigobar: Totals
    frigobar_turnos: Dict[str, Totals]
    cafe_hospedes: Totals
    cafe_avulsos: Totals
    controle_cafe: Totals
    cafe_manha_no_show: Totals
    eventos: Dict[str, Totals]
    almoco_ci: Totals
    jantar_ci: Totals
    generic: Dict[str, Totals]
    almoco: Totals
    jantar: Totals
    turnos: Dict[str, Totals]
    room_service_total: Totals
    total_ci: Totals
    total_reajuste_ci: float
    reajuste_por_turno: Dict[str, float]
    summary_items: Dict[str, Totals]
    included_items: Dict[str, bool]
    grand_total_com_ci: Totals
    grand_total_sem_ci: Totals

    def period_totals(self, period_id: str) -> Totals:
        """
        Total de una columna de período del reporte general.

        Args:
            period_id: Id de PERIOD_DEFINITIONS o 'roomService'

        Returns:
            Totals del período (cero si no aplica)
        """
        if period_id == 'madrugada':
            return self.rs_madrugada.as_totals
        if period_id == 'cafeDaManha':
            return self.cafe_hospedes + self.cafe_avulsos
        if period_id == 'controleCafeDaManha':
            return self.controle_cafe
        if period_id == 'cafeManhaNoShow':
            return self.cafe_manha_no_show
        if period_id == 'almocoPrimeiroTurno':
            return self.turnos['almocoPT']
        if period_id == 'almocoSegundoTurno':
            return self.turnos['almocoST']
        if period_id == 'jantar':
            return self.turnos['jantar']
        if period_id == 'eventos':
            return self.eventos['direto'] + self.eventos['hotel']
        if period_id == 'frigobar':
            return self.frigobar
        if period_id == 'roomService':
            return self.room_service_total
        return self.generic.get(period_id, Totals())

    def to_dict(self) -> Dict[str, Any]:
        """Serialización para API (montos redondeados a centavos)."""
        return {
            'rsMadrugada': self.rs_madrugada.to_dict(),
            'rsAlmocoPT': self.rs_almoco_pt.to_dict(),
            'rsAlmocoST': self.rs_almoco_st.to_dict(),
            'rsJantar': self.rs_jantar.to_dict(),
            'frigobar': self.frigobar.to_dict(),
            'frigobarTurnos': {k: v.to_dict() for k, v in self.frigobar_turnos.items()},
            'cafeHospedes': self.cafe_hospedes.to_dict(),
            'cafeAvulsos': self.cafe_avulsos.to_dict(),
            'controleCafe': self.controle_cafe.to_dict(),
            'cafeManhaNoShow': self.cafe_manha_no_show.to_dict(),
            'eventos': {k: v.to_dict() for k, v in self.eventos.items()},
            'almocoCI': self.almoco_ci.to_dict(),
            'jantarCI': self.jantar_ci.to_dict(),
            **{k: v.to_dict() for k, v in self.generic.items()},
            'almoco': self.almoco.to_dict(),
            'jantar': self.jantar.to_dict(),
            'turnos': {k: v.to_dict() for k, v in self.turnos.items()},
            'roomServiceTotal': self.room_service_total.to_dict(),
            'totalCI': self.total_ci.to_dict(),
            'totalReajusteCI': round(self.total_reajuste_ci, 2),
            'reajustePorTurno': {k: round(v, 2) for k, v in self.reajuste_por_turno.items()},
            'summaryItems': {
                k: {**v.to_dict(), 'included': self.included_items[k]}
                for k, v in self.summary_items.items()
            },
            'grandTotal': {
                'comCI': self.grand_total_com_ci.to_dict(),
                'semCI': self.grand_total_sem_ci.to_dict(),
            },
        }


@profile_function(name="Calcular totales de lanzamiento")
def calculate_entry_totals(
    entry: Mapping[str, Any],
    config: Optional[AggregationConfig] = None
) -> EntryTotals:
    """
    Calcula todos los totales de un lanzamiento diario.

    Args:
        entry: Lanzamiento (dict con un registro por período)
        config: Precios unitarios y toggles del card de resumen

    Returns:
        EntryTotals con los totales por categoría, por turno y generales
    """
    config = config or AggregationConfig()
    entry = calc.as_dict(entry)
    ci_price = config.unit_price('consumoInterno')

    # -- Componentes por turno --------------------------------------------
    restaurant, faturado, room_service, frigobar, ci = {}, {}, {}, {}, {}
    for period_id, prefix in SHIFT_PREFIXES.items():
        period = calc.get_period(entry, period_id)
        restaurant[prefix] = calc.restaurant_totals(period)
        faturado[prefix] = calc.faturado_totals(period, prefix)
        room_service[prefix] = calc.room_service_totals(period, prefix)
        frigobar[prefix] = calc.shift_frigobar_totals(period, prefix)
        ci[prefix] = calc.consumo_interno_totals(period, prefix, ci_price)

    def turno(prefix: str) -> Totals:
        # La cantidad del turno no incluye CI; el valor sí incluye el reajuste
        return (restaurant[prefix] + room_service[prefix] + faturado[prefix]
                + frigobar[prefix] + Totals(0, ci[prefix].reajuste))

    def meal(prefixes) -> Totals:
        total = Totals()
        for p in prefixes:
            total = total + restaurant[p] + faturado[p] + Totals(0, ci[p].reajuste)
        return total

    # -- Otras categorías --------------------------------------------------
    rs_madrugada = calc.madrugada_totals(entry)
    eventos = calc.eventos_totals(entry)
    generic = {pid: calc.generic_period_totals(entry, pid) for pid in GENERIC_PERIOD_IDS}
    cafe_hospedes = calc.cafe_hospedes_totals(entry)
    cafe_avulsos = calc.cafe_avulsos_totals(entry)

    almoco_ci = ci['apt'].as_totals + ci['ast'].as_totals
    jantar_ci = ci['jnt'].as_totals
    total_ci = almoco_ci + jantar_ci
    reajuste = {p: ci[p].reajuste for p in ci}
    total_reajuste = sum(reajuste.values())

    frigobar_total = frigobar['apt'] + frigobar['ast'] + frigobar['jnt']
    room_service_total = room_service['apt'] + room_service['ast'] + room_service['jnt']

    # -- Items del card de resumen -----------------------------------------
    summary_items = {
        'rsMadrugada': rs_madrugada.as_totals,
        'roomService': room_service_total,
        'avulsoAssinado': cafe_avulsos,
        'breakfast': generic['breakfast'],
        'almoco': meal(('apt', 'ast')),
        'jantar': meal(('jnt',)),
        'rwItalianoAlmoco': generic['italianoAlmoco'],
        'rwItalianoJantar': generic['italianoJantar'],
        'rwIndianoAlmoco': generic['indianoAlmoco'],
        'rwIndianoJantar': generic['indianoJantar'],
        'baliAlmoco': generic['baliAlmoco'],
        'baliHappy': generic['baliHappy'],
        'frigobar': frigobar_total,
        'cafeHospedes': cafe_hospedes,
        'almocoCI': almoco_ci,
        'jantarCI': jantar_ci,
        'eventosDireto': eventos['direto'],
        'eventosHotel': eventos['hotel'],
    }
    included = {item_id: config.is_included(item_id) for item_id in SUMMARY_CARD_ITEMS}

    com_ci = Totals()
    ci_included = Totals()
    reajuste_included = 0.0
    for item_id, amount in summary_items.items():
        if not included[item_id]:
            continue
        com_ci = com_ci + amount
        if item_id in CI_ITEMS:
            ci_included = ci_included + amount
        for prefix in REAJUSTE_CARRIERS.get(item_id, ()):
            reajuste_included += reajuste[prefix]
    sem_ci = com_ci - ci_included - Totals(0, reajuste_included)

    return EntryTotals(
        rs_madrugada=rs_madrugada,
        rs_almoco_pt=room_service['apt'],
        rs_almoco_st=room_service['ast'],
        rs_jantar=room_service['jnt'],
        frigobar=frigobar_total,
        frigobar_turnos={'almocoPT': frigobar['apt'], 'almocoST': frigobar['ast'], 'jantar': frigobar['jnt']},
        cafe_hospedes=cafe_hospedes,
        cafe_avulsos=cafe_avulsos,
        controle_cafe=calc.controle_cafe_totals(entry, config.unit_prices),
        cafe_manha_no_show=calc.no_show_totals(entry, config.unit_prices),
        eventos=eventos,
        almoco_ci=almoco_ci,
        jantar_ci=jantar_ci,
        generic=generic,
        almoco=summary_items['almoco'],
        jantar=summary_items['jantar'],
        turnos={'almocoPT': turno('apt'), 'almocoST': turno('ast'), 'jantar': turno('jnt')},
        room_service_total=room_service_total,
        total_ci=total_ci,
        total_reajuste_ci=total_reajuste,
        reajuste_por_turno={'almocoPT': reajuste['apt'], 'almocoST': reajuste['ast'], 'jantar': reajuste['jnt']},
        summary_items=summary_items,
        included_items=included,
        grand_total_com_ci=com_ci,
        grand_total_sem_ci=sem_ci,
    )
