# ==============================================================================
# SERVICIO DE REPORTES
# ==============================================================================
# Genera los reportes sobre una lista de lanzamientos ya filtrada por fecha:
#   - General (mensual o por rango): una fila por día + resumen acumulado
#   - Por período: detalle por canal de UN período a lo largo de los días
#   - Por persona: extracto de items faturados / consumo interno y su resumen
#   - Dashboard: acumulado mensual por item del card de resumen
#
# Los generadores son puros: reciben lanzamientos y configuración.
# build_report() es la única parte que valida parámetros y carga datos.
# ==============================================================================

import re
import calendar
from collections import OrderedDict, defaultdict
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from caixa_tulsi.models import (
    Totals,
    PERIOD_DEFINITIONS,
    PERIOD_IDS,
    SHIFT_PREFIXES,
    SHIFT_SHORT_NAMES,
    SUMMARY_CARD_ITEMS,
    FaturadoType,
)
from caixa_tulsi.performance_logger import profile_function
from caixa_tulsi.services import calculations as calc
from caixa_tulsi.services.aggregation import AggregationConfig, calculate_entry_totals


class ReportParameterError(ValueError):
    """Parámetro de reporte inválido (fecha, mes, período, tipo de consumo)."""
    pass


DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')
MONTH_PATTERN = re.compile(r'^\d{4}-\d{2}$')

FILTER_TYPES = ('date', 'range', 'month', 'period', 'client-extract', 'client-summary')

CONSUMPTION_TYPES = (
    'all', 'faturado-all', 'faturado-hotel', 'faturado-funcionario', 'faturado-outros', 'ci',
)

FATURADO_ORIGINS = {
    FaturadoType.HOTEL.value: 'Faturado - Hotel',
    FaturadoType.FUNCIONARIO.value: 'Faturado - Funcionário',
    FaturadoType.OUTROS.value: 'Faturado - Outros',
}

# Canal "principal" de los períodos genéricos en el reporte por período
GENERIC_ENTRY_CHANNELS = {
    'breakfast': 'breakfastEntry',
    'italianoAlmoco': 'rwItalianoAlmocoEntry',
    'italianoJantar': 'rwItalianoJantarEntry',
    'indianoAlmoco': 'rwIndianoAlmocoEntry',
    'indianoJantar': 'rwIndianoJantarEntry',
}


MESA_PAYMENTS = (
    ('dinheiro', 'Dinheiro'),
    ('credito', 'Credito'),
    ('debito', 'Debito'),
    ('pix', 'Pix'),
    ('ticket', 'TicketRefeicao'),
)


# ═══════════════════════════════════════════════════════════════════════════
# UTILIDADES
# ═══════════════════════════════════════════════════════════════════════════

def parse_iso_date(value: Optional[str]) -> Optional[str]:
    """
    Valida una fecha AAAA-MM-DD.

    Returns:
        La fecha normalizada o None si no es válida
    """
    if not value or not DATE_PATTERN.match(value):
        return None
    try:
        return datetime.strptime(value, '%Y-%m-%d').strftime('%Y-%m-%d')
    except ValueError:
        return None


def month_range(month: Optional[str]) -> Optional[Tuple[str, str]]:
    """Primer y último día de un mes AAAA-MM (o None si es inválido)."""
    if not month or not MONTH_PATTERN.match(month):
        return None
    year, month_num = int(month[:4]), int(month[5:7])
    if not 1 <= month_num <= 12:
        return None
    last_day = calendar.monthrange(year, month_num)[1]
    return f'{month}-01', f'{month}-{last_day:02d}'


def format_display_date(entry_id: Any) -> str:
    """AAAA-MM-DD -> dd/MM/yyyy."""
    text = str(entry_id or '')
    if not DATE_PATTERN.match(text):
        return 'Inválida'
    return f'{text[8:10]}/{text[5:7]}/{text[0:4]}'


def _round(value: float) -> float:
    return round(value, 2)


def _sorted_entries(entries: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted((e for e in entries if isinstance(e, dict)), key=lambda e: str(e.get('id', '')))


class ReportService:
    """
    Servicio de reportes.

    Responsabilidades:
    - Generar reportes general, por período y por persona
    - Acumular el dashboard mensual
    - Validar parámetros HTTP y cargar lanzamientos (build_report)

    Preparado para MySQL: los lanzamientos y la configuración llegan por
    funciones inyectadas, no se leen archivos aquí.
    """

    def __init__(
        self,
        entries_loader: Optional[Callable[..., List[Dict[str, Any]]]] = None,
        config_loader: Optional[Callable[[], AggregationConfig]] = None,
        visibility_loader: Optional[Callable[[], Mapping[str, Any]]] = None
    ):
        """
        Args:
            entries_loader: f(start_date, end_date) -> lista de lanzamientos
            config_loader: f() -> AggregationConfig vigente
            visibility_loader: f() -> dashboardItemVisibilityConfig
        """
        self._entries_loader = entries_loader
        self._config_loader = config_loader
        self._visibility_loader = visibility_loader

    def _load_entries(self, start_date: Optional[str], end_date: Optional[str]) -> List[Dict[str, Any]]:
        if self._entries_loader:
            return self._entries_loader(start_date, end_date)
        return []

    def _load_config(self) -> AggregationConfig:
        if self._config_loader:
            return self._config_loader()
        return AggregationConfig()

    def _load_visibility(self) -> Mapping[str, Any]:
        if self._visibility_loader:
            return self._visibility_loader() or {}
        return {}

    # =========================================================================
    # REPORTE GENERAL
    # =========================================================================

    @profile_function(name="Gerar relatório geral")
    def generate_general_report(
        self,
        entries: List[Dict[str, Any]],
        config: Optional[AggregationConfig] = None,
        visibility: Optional[Mapping[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Reporte general: una fila por día y un resumen acumulado.

        Args:
            entries: Lanzamientos del rango
            config: Precios unitarios y toggles del card de resumen
            visibility: Columnas ocultas (valor False) quedan en cero

        Returns:
            {dailyBreakdowns, summary, reportTitle}
        """
        config = config or AggregationConfig()
        visibility = visibility or {}
        column_ids = PERIOD_IDS + ['roomService']

        summary_periods = OrderedDict((pid, Totals()) for pid in column_ids)
        grand_com_ci = grand_sem_ci = grand_reajuste = 0.0
        grand_qtd = grand_ci_qtd = 0.0
        daily = []

        for entry in _sorted_entries(entries):
            totals = calculate_entry_totals(entry, config)
            period_totals = OrderedDict()
            for pid in column_ids:
                amount = totals.period_totals(pid) if visibility.get(pid) is not False else Totals()
                period_totals[pid] = amount.to_dict()
                summary_periods[pid] = summary_periods[pid] + amount

            daily.append({
                'date': format_display_date(entry.get('id')),
                'periodTotals': period_totals,
                'totalComCI': _round(totals.grand_total_com_ci.valor),
                'totalSemCI': _round(totals.grand_total_sem_ci.valor),
                'totalReajusteCI': _round(totals.total_reajuste_ci),
                'totalQtd': _round(totals.grand_total_com_ci.qtd),
                'totalCIQtd': _round(totals.total_ci.qtd),
            })
            grand_com_ci += totals.grand_total_com_ci.valor
            grand_sem_ci += totals.grand_total_sem_ci.valor
            grand_reajuste += totals.total_reajuste_ci
            grand_qtd += totals.grand_total_com_ci.qtd
            grand_ci_qtd += totals.total_ci.qtd

        return {
            'dailyBreakdowns': daily,
            'summary': {
                'periodTotals': {pid: t.to_dict() for pid, t in summary_periods.items()},
                'grandTotalComCI': _round(grand_com_ci),
                'grandTotalSemCI': _round(grand_sem_ci),
                'grandTotalReajusteCI': _round(grand_reajuste),
                'grandTotalQtd': _round(grand_qtd),
                'grandTotalCIQtd': _round(grand_ci_qtd),
            },
            'reportTitle': 'GERAL (MÊS)',
        }

    # =========================================================================
    # REPORTE POR PERÍODO
    # =========================================================================

    def _shift_categories(self, period: Dict[str, Any], prefix: str, ci_price: float) -> Dict[str, Dict[str, Any]]:
        """Desglose por canal de un turno (almoço PT/ST o jantar)."""
        delivery = calc.get_channels(calc.sub_tab(period, 'delivery'))
        mesa = calc.get_channels(calc.sub_tab(period, 'clienteMesa'))
        hospedes = calc.get_channels(calc.sub_tab(period, 'hospedes'))

        # Faturados: canales + items + legacy, separados por tipo de cliente
        by_channel = calc.channel_faturado_totals(period, prefix)
        legacy = calc.get_channels(calc.sub_tab(period, 'ciEFaturados'))
        fat = {
            'qtd': by_channel['qtd'] + calc.channel_qtd(legacy, f'{prefix}CiEFaturadosFaturadosQtd'),
            'hotel': by_channel['hotel'] + calc.channel_value(legacy, f'{prefix}CiEFaturadosValorHotel'),
            'funcionario': by_channel['funcionario']
            + calc.channel_value(legacy, f'{prefix}CiEFaturadosValorFuncionario'),
            'outros': 0.0,
        }
        for item in calc.faturado_items(period):
            fat['qtd'] += calc.to_number(item.get('quantity'))
            kind = item.get('type') if item.get('type') in FATURADO_ORIGINS else FaturadoType.OUTROS.value
            fat[kind] += calc.to_number(item.get('value'))
        fat['total'] = fat['hotel'] + fat['funcionario'] + fat['outros']

        mesa_row = {'qtd': calc.channel_qtd(mesa, f'{prefix}ClienteMesaTotaisQtd')}
        for key, suffix in MESA_PAYMENTS:
            mesa_row[key] = calc.channel_value(mesa, f'{prefix}ClienteMesa{suffix}')
        mesa_row['total'] = sum(mesa_row[key] for key, _ in MESA_PAYMENTS)

        ci = calc.consumo_interno_totals(period, prefix, ci_price)
        room_service = calc.room_service_totals(period, prefix)
        frigobar = calc.shift_frigobar_totals(period, prefix)
        flat = calc.sum_channels(calc.get_channels(period))

        return {
            'faturados': fat,
            'ifood': {
                'qtd': calc.channel_qtd(delivery, f'{prefix}DeliveryIfoodQtd'),
                'total': calc.channel_value(delivery, f'{prefix}DeliveryIfoodValor'),
            },
            'rappi': {
                'qtd': calc.channel_qtd(delivery, f'{prefix}DeliveryRappiQtd'),
                'total': calc.channel_value(delivery, f'{prefix}DeliveryRappiValor'),
            },
            'mesa': mesa_row,
            'hospedes': {
                'qtd': calc.channel_qtd(hospedes, f'{prefix}HospedesQtdHospedes'),
                'total': calc.channel_value(hospedes, f'{prefix}HospedesPagamentoHospedes'),
            },
            'retirada': {
                'qtd': calc.channel_qtd(delivery, f'{prefix}ClienteMesaRetiradaQtd'),
                'total': calc.channel_value(delivery, f'{prefix}ClienteMesaRetiradaValor'),
            },
            'consumoInterno': {'qtd': ci.qtd, 'total': ci.valor, 'reajuste': ci.reajuste},
            'roomService': {'qtd': room_service.qtd, 'total': room_service.valor},
            'frigobar': {'qtd': frigobar.qtd, 'total': frigobar.valor},
            'outrosCanais': {'qtd': flat.qtd, 'total': flat.valor},
        }

    def _period_categories(
        self,
        entry: Dict[str, Any],
        period_id: str,
        config: AggregationConfig
    ) -> Dict[str, Dict[str, Any]]:
        """
        Desglose diario de un período en categorías.

        Cada categoría es un dict con al menos 'qtd' y 'total'.
        """
        if period_id in SHIFT_PREFIXES:
            period = calc.get_period(entry, period_id)
            return self._shift_categories(period, SHIFT_PREFIXES[period_id], config.unit_price('consumoInterno'))

        if period_id == 'madrugada':
            rs = calc.madrugada_totals(entry)
            return {'madrugadaResumo': {
                'qtdPedidos': rs.qtd_pedidos,
                'qtdPratos': rs.qtd_pratos,
                'pagDireto': rs.pag_direto,
                'valorServico': rs.valor_servico,
                'qtd': rs.qtd_pedidos,
                'total': rs.valor,
            }}

        if period_id == 'cafeDaManha':
            channels = calc.get_channels(calc.get_period(entry, 'cafeDaManha'))
            lista = calc.channel_totals(channels, 'cdmListaHospedes')
            no_show = calc.channel_totals(channels, 'cdmNoShow')
            sem_check_in = calc.channel_totals(channels, 'cdmSemCheckIn')
            assinado = calc.channel_totals(channels, 'cdmCafeAssinado')
            direto = calc.channel_totals(channels, 'cdmDiretoCartao')
            hospedes = lista + no_show + sem_check_in
            avulsos = assinado + direto
            return {
                'cdmHospedes': {
                    'listaQtd': lista.qtd, 'listaValor': lista.valor,
                    'noShowQtd': no_show.qtd, 'noShowValor': no_show.valor,
                    'semCheckInQtd': sem_check_in.qtd, 'semCheckInValor': sem_check_in.valor,
                    'qtd': hospedes.qtd, 'total': hospedes.valor,
                },
                'cdmAvulsos': {
                    'assinadoQtd': assinado.qtd, 'assinadoValor': assinado.valor,
                    'diretoQtd': direto.qtd, 'diretoValor': direto.valor,
                    'qtd': avulsos.qtd, 'total': avulsos.valor,
                },
            }

        if period_id == 'eventos':
            events = calc.eventos_totals(entry)
            direto, hotel = events['direto'], events['hotel']
            return {'eventos': {
                'diretoQtd': direto.qtd, 'diretoValor': direto.valor,
                'hotelQtd': hotel.qtd, 'hotelValor': hotel.valor,
                'qtd': direto.qtd + hotel.qtd, 'total': direto.valor + hotel.valor,
            }}

        if period_id == 'frigobar':
            row = {'qtd': 0.0, 'total': 0.0}
            for pid, prefix in SHIFT_PREFIXES.items():
                amount = calc.shift_frigobar_totals(calc.get_period(entry, pid), prefix)
                row[f'{prefix}Qtd'] = amount.qtd
                row[f'{prefix}Valor'] = amount.valor
                row['qtd'] += amount.qtd
                row['total'] += amount.valor
            return {'frigobar': row}

        if period_id == 'controleCafeDaManha':
            amount = calc.controle_cafe_totals(entry, config.unit_prices)
            return {'generic': {'qtd': amount.qtd, 'total': amount.valor}}

        if period_id == 'cafeManhaNoShow':
            amount = calc.no_show_totals(entry, config.unit_prices)
            return {'generic': {'qtd': amount.qtd, 'total': amount.valor}}

        # Períodos genéricos: canal principal si existe, si no suma de canales
        channels = calc.get_channels(calc.get_period(entry, period_id))
        main_channel = GENERIC_ENTRY_CHANNELS.get(period_id)
        if main_channel and main_channel in channels:
            amount = calc.channel_totals(channels, main_channel)
        else:
            amount = calc.generic_period_totals(entry, period_id)
        return {'generic': {'qtd': amount.qtd, 'total': amount.valor}}

    @profile_function(name="Gerar relatório por período")
    def generate_period_report(
        self,
        entries: List[Dict[str, Any]],
        period_id: str,
        config: Optional[AggregationConfig] = None
    ) -> Dict[str, Any]:
        """
        Reporte de un período: categorías día a día y subtotales.

        Solo se agregan filas diarias con movimiento (algún campo != 0).

        Args:
            entries: Lanzamientos del rango
            period_id: Id del período (ver PERIOD_DEFINITIONS)
            config: Configuración de agregación

        Returns:
            {dailyBreakdowns, summary, subtotalGeralComCI, subtotalGeralSemCI, reportTitle}

        Raises:
            ReportParameterError: Si el período no existe
        """
        if period_id not in PERIOD_DEFINITIONS:
            raise ReportParameterError(f"Parâmetro 'periodId' inválido: {period_id}.")
        config = config or AggregationConfig()

        daily: Dict[str, List[Dict[str, Any]]] = OrderedDict()
        summary: Dict[str, Dict[str, float]] = OrderedDict()

        for entry in _sorted_entries(entries):
            date = format_display_date(entry.get('id'))
            for category, row in self._period_categories(entry, period_id, config).items():
                daily.setdefault(category, [])
                acc = summary.setdefault(category, defaultdict(float))
                for key, value in row.items():
                    acc[key] += value
                if any(row.values()):
                    daily[category].append({'date': date, **{k: _round(v) for k, v in row.items()}})

        com_ci_total = sum(acc['total'] for acc in summary.values())
        com_ci_qtd = sum(acc['qtd'] for acc in summary.values())
        ci = summary.get('consumoInterno', {})
        ci_total, ci_qtd, ci_reajuste = ci.get('total', 0.0), ci.get('qtd', 0.0), ci.get('reajuste', 0.0)
        com_ci_total += ci_reajuste

        return {
            'dailyBreakdowns': dict(daily),
            'summary': {cat: {k: _round(v) for k, v in acc.items()} for cat, acc in summary.items()},
            'subtotalGeralComCI': {'qtd': _round(com_ci_qtd), 'total': _round(com_ci_total)},
            'subtotalGeralSemCI': {
                'qtd': _round(com_ci_qtd - ci_qtd),
                'total': _round(com_ci_total - ci_total - ci_reajuste),
            },
            'reportTitle': f'TOTAL {PERIOD_DEFINITIONS[period_id].upper()}',
        }

    # =========================================================================
    # REPORTE POR PERSONA
    # =========================================================================

    def extract_person_transactions(
        self,
        entries: List[Dict[str, Any]],
        consumption_type: str = 'all',
        ci_unit_price: float = 0.0
    ) -> List[Dict[str, Any]]:
        """
        Extracto plano de items faturados y de consumo interno por persona.

        Args:
            entries: Lanzamientos del rango
            consumption_type: all, faturado-all, faturado-{hotel|funcionario|outros} o ci
            ci_unit_price: Precio para items de CI sin valor cargado

        Returns:
            Lista ordenada por fecha y luego por nombre

        Raises:
            ReportParameterError: Si el tipo de consumo no es válido
        """
        if consumption_type not in CONSUMPTION_TYPES:
            raise ReportParameterError(f"Parâmetro 'consumptionType' inválido: {consumption_type}.")

        show_faturado = consumption_type == 'all' or consumption_type.startswith('faturado')
        show_ci = consumption_type in ('all', 'ci')
        transactions = []

        def add(name: Any, row: Dict[str, Any]) -> None:
            clean_name = str(name or '').strip()
            if clean_name:
                transactions.append({'personName': clean_name, **row})

        for entry in _sorted_entries(entries):
            entry_id = str(entry.get('id', ''))
            date = format_display_date(entry_id)
            for period_id, period_name in SHIFT_SHORT_NAMES.items():
                period = calc.get_period(entry, period_id)
                if show_faturado:
                    for item in calc.faturado_items(period):
                        item_type = item.get('type')
                        if consumption_type not in ('all', 'faturado-all', f'faturado-{item_type}'):
                            continue
                        add(item.get('clientName'), {
                            'id': item.get('id') or f'{entry_id}-{period_id}-{len(transactions)}',
                            'date': date,
                            'sortKey': entry_id,
                            'origin': FATURADO_ORIGINS.get(item_type, FATURADO_ORIGINS['outros']),
                            'observation': item.get('observation') or '-',
                            'quantity': calc.to_number(item.get('quantity')),
                            'value': calc.to_number(item.get('value')),
                        })
                if show_ci:
                    for item in calc.consumo_interno_items(period):
                        qty = calc.to_number(item.get('quantity'))
                        raw_value = item.get('value')
                        value = qty * ci_unit_price if raw_value in (None, '') else calc.to_number(raw_value)
                        add(item.get('clientName'), {
                            'id': item.get('id') or f'{entry_id}-{period_id}-{len(transactions)}',
                            'date': date,
                            'sortKey': entry_id,
                            'origin': f'Consumo Interno - {period_name}',
                            'observation': item.get('observation') or '-',
                            'quantity': qty,
                            'value': value,
                        })

        transactions.sort(key=lambda t: (t['sortKey'], t['personName']))
        for t in transactions:
            del t['sortKey']
        return transactions

    def summarize_person_transactions(self, transactions: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Agrupa el extracto por nombre exacto (sensible a mayúsculas).

        Returns:
            [{clientName, totalQtd, totalValue}] ordenado por nombre
        """
        grouped: Dict[str, Totals] = {}
        for t in transactions:
            name = t['personName']
            grouped[name] = grouped.get(name, Totals()) + Totals(t['quantity'], t['value'])
        return [
            {'clientName': name, 'totalQtd': _round(total.qtd), 'totalValue': _round(total.valor)}
            for name, total in sorted(grouped.items())
        ]

    # =========================================================================
    # DASHBOARD
    # =========================================================================

    @profile_function(name="Acumular dashboard")
    def generate_dashboard_summary(
        self,
        entries: List[Dict[str, Any]],
        config: Optional[AggregationConfig] = None
    ) -> Dict[str, Any]:
        """
        Acumulado de los items del card de resumen en el rango.

        Returns:
            {items: {id: {label, qtd, valor, included}}, totalComCI, totalSemCI,
             totalCI, totalReajusteCI, days}
        """
        config = config or AggregationConfig()
        items = OrderedDict((item_id, Totals()) for item_id in SUMMARY_CARD_ITEMS)
        com_ci, sem_ci, total_ci = Totals(), Totals(), Totals()
        reajuste = 0.0
        days = 0

        for entry in _sorted_entries(entries):
            totals = calculate_entry_totals(entry, config)
            days += 1
            for item_id, amount in totals.summary_items.items():
                items[item_id] = items[item_id] + amount
            com_ci = com_ci + totals.grand_total_com_ci
            sem_ci = sem_ci + totals.grand_total_sem_ci
            total_ci = total_ci + totals.total_ci
            reajuste += totals.total_reajuste_ci

        return {
            'items': {
                item_id: {'label': SUMMARY_CARD_ITEMS[item_id], 'included': config.is_included(item_id),
                          **amount.to_dict()}
                for item_id, amount in items.items()
            },
            'totalComCI': com_ci.to_dict(),
            'totalSemCI': sem_ci.to_dict(),
            'totalCI': total_ci.to_dict(),
            'totalReajusteCI': _round(reajuste),
            'days': days,
        }

    # =========================================================================
    # PARÁMETROS HTTP -> REPORTE
    # =========================================================================

    def resolve_date_range(self, params: Mapping[str, Any], internal: bool = False) -> Tuple[str, Optional[str], Optional[str]]:
        """
        Valida filterType y fechas de la petición.

        Args:
            params: Query string (request.args)
            internal: En la ruta interna los filtros client-* usan startDate/endDate

        Returns:
            (filter_type, start_date, end_date)

        Raises:
            ReportParameterError: Con el mensaje para el usuario
        """
        filter_type = params.get('filterType') or 'month'
        if filter_type not in FILTER_TYPES:
            raise ReportParameterError(f"Parâmetro 'filterType' inválido: {filter_type}.")

        if filter_type == 'date':
            date = parse_iso_date(params.get('date'))
            if not date:
                raise ReportParameterError("Parâmetro 'date' inválido ou ausente. Use AAAA-MM-DD.")
            return filter_type, date, date

        if filter_type == 'range' or (internal and filter_type.startswith('client-')):
            start = parse_iso_date(params.get('startDate'))
            if not start:
                raise ReportParameterError("Parâmetro 'startDate' inválido ou ausente. Use AAAA-MM-DD.")
            raw_end = params.get('endDate')
            end = parse_iso_date(raw_end) if raw_end else None
            if raw_end and not end:
                raise ReportParameterError("Parâmetro 'endDate' inválido. Use AAAA-MM-DD.")
            return filter_type, start, end

        bounds = month_range(params.get('month'))
        if not bounds:
            raise ReportParameterError(
                "Parâmetro 'month' inválido ou ausente para este tipo de filtro. Use AAAA-MM."
            )
        return filter_type, bounds[0], bounds[1]

    def build_report(self, params: Mapping[str, Any], internal: bool = False) -> Any:
        """
        Punto de entrada de las rutas de reportes.

        Valida parámetros, carga los lanzamientos del rango y despacha al
        generador que corresponde al filterType.

        Raises:
            ReportParameterError: Parámetros inválidos (400)
        """
        filter_type, start_date, end_date = self.resolve_date_range(params, internal)

        consumption_type = params.get('consumptionType') or 'all'
        period_id = params.get('periodId') or 'all'
        if filter_type.startswith('client-') and consumption_type not in CONSUMPTION_TYPES:
            raise ReportParameterError(f"Parâmetro 'consumptionType' inválido: {consumption_type}.")
        if filter_type == 'period' and period_id != 'all' and period_id not in PERIOD_DEFINITIONS:
            raise ReportParameterError(f"Parâmetro 'periodId' inválido: {period_id}.")

        entries = self._load_entries(start_date, end_date)

        if filter_type == 'date':
            return entries[0] if entries else {}

        config = self._load_config()

        if filter_type.startswith('client-'):
            transactions = self.extract_person_transactions(
                entries, consumption_type, config.unit_price('consumoInterno')
            )
            if filter_type == 'client-extract':
                return transactions
            return self.summarize_person_transactions(transactions)

        if filter_type in ('month', 'range') or period_id == 'all':
            data = self.generate_general_report(entries, config, self._load_visibility())
            return {'type': 'general', 'data': data}

        return {'type': 'period', 'data': self.generate_period_report(entries, period_id, config)}
