# ==============================================================================
# CALCULADORAS POR CATEGORÍA
# ==============================================================================
# Funciones puras que leen un lanzamiento diario (dict JSON) y devuelven
# totales {qtd, valor} por categoría.
#
# REGLA PRINCIPAL: los datos históricos pueden venir incompletos o corruptos.
# Ninguna función de este módulo lanza excepciones por datos faltantes:
# cualquier campo ausente, None o no numérico cuenta como 0.
#
# Formatos soportados por turno (almoço PT/ST, jantar):
# - Nuevo: subTabs.faturado.faturadoItems / subTabs.consumoInterno.consumoInternoItems
# - Legacy: subTabs.ciEFaturados.channels con canales {prefijo}CiEFaturados*
# ==============================================================================

from typing import Any, Dict, List, Mapping

from caixa_tulsi.models import (
    Totals,
    MadrugadaTotals,
    ConsumoInternoTotals,
    EventLocation,
)


# Sub-tabs que forman la venta de restaurante de un turno
RESTAURANT_SUB_TABS = ('hospedes', 'clienteMesa', 'delivery')

# Sub-tab de frigobar dentro de cada turno -> código de canal
FRIGOBAR_CODES = {'apt': 'PT', 'ast': 'ST', 'jnt': 'JNT'}

# Contadores del control de café da manhã
CONTROLE_CAFE_FIELDS = ('adultoQtd', 'crianca01Qtd', 'crianca02Qtd', 'contagemManual', 'semCheckIn')


# ═══════════════════════════════════════════════════════════════════════════
# ACCESORES TIPADOS
# ═══════════════════════════════════════════════════════════════════════════

def to_number(value: Any, default: float = 0.0) -> float:
    """
    Convierte un valor almacenado a número.

    Acepta int, float y strings numéricos ("12,50" también).
    Cualquier otra cosa (None, dict, bool, texto) devuelve el default.
    """
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        # NaN / infinito no son montos válidos
        if value != value or value in (float('inf'), float('-inf')):
            return default
        return float(value)
    if isinstance(value, str):
        text = value.strip().replace(',', '.')
        if not text:
            return default
        try:
            return to_number(float(text), default)
        except ValueError:
            return default
    return default


def as_dict(value: Any) -> Dict[str, Any]:
    """Devuelve el valor si es dict, si no un dict vacío."""
    return value if isinstance(value, dict) else {}


def as_list(value: Any) -> List[Any]:
    """Devuelve el valor si es lista, si no una lista vacía."""
    return value if isinstance(value, list) else []


def get_period(entry: Mapping[str, Any], period_id: str) -> Dict[str, Any]:
    """Registro de un período dentro del lanzamiento (o {})."""
    return as_dict(as_dict(entry).get(period_id))


def sub_tab(period: Mapping[str, Any], name: str) -> Dict[str, Any]:
    """Sub-tab de un período (o {})."""
    return as_dict(as_dict(as_dict(period).get('subTabs')).get(name))


def get_channels(container: Mapping[str, Any]) -> Dict[str, Any]:
    """Mapa de canales de un período o sub-tab (o {})."""
    return as_dict(as_dict(container).get('channels'))


def channel_qtd(channels: Mapping[str, Any], channel_id: str) -> float:
    """Cantidad de un canal. Acepta tanto 'qtd' como 'quantity'."""
    channel = as_dict(as_dict(channels).get(channel_id))
    if 'qtd' in channel:
        return to_number(channel.get('qtd'))
    return to_number(channel.get('quantity'))


def channel_value(channels: Mapping[str, Any], channel_id: str) -> float:
    """Valor total de un canal. Acepta tanto 'vtotal' como 'totalValue'."""
    channel = as_dict(as_dict(channels).get(channel_id))
    if 'vtotal' in channel:
        return to_number(channel.get('vtotal'))
    return to_number(channel.get('totalValue'))


def channel_totals(channels: Mapping[str, Any], channel_id: str) -> Totals:
    return Totals(channel_qtd(channels, channel_id), channel_value(channels, channel_id))


def faturado_items(period: Mapping[str, Any]) -> List[Dict[str, Any]]:
    """Items faturados (formato nuevo) de un turno."""
    return [i for i in as_list(sub_tab(period, 'faturado').get('faturadoItems')) if isinstance(i, dict)]


def consumo_interno_items(period: Mapping[str, Any]) -> List[Dict[str, Any]]:
    """Items de consumo interno (formato nuevo) de un turno."""
    items = as_list(sub_tab(period, 'consumoInterno').get('consumoInternoItems'))
    return [i for i in items if isinstance(i, dict)]


def event_items(period: Mapping[str, Any]) -> List[Dict[str, Any]]:
    return [i for i in as_list(as_dict(period).get('items')) if isinstance(i, dict)]


# ═══════════════════════════════════════════════════════════════════════════
# REDUCTOR GENÉRICO
# ═══════════════════════════════════════════════════════════════════════════

def sum_channels(channels: Mapping[str, Any]) -> Totals:
    """
    Suma cantidad y valor de todos los canales de un mapa.

    Args:
        channels: {channelId: {qtd, vtotal}}

    Returns:
        Totals con (Σqtd, Σvalor)
    """
    total = Totals()
    for channel_id in as_dict(channels):
        total = total + channel_totals(channels, channel_id)
    return total


def generic_period_totals(entry: Mapping[str, Any], period_id: str) -> Totals:
    """
    Total de un período "simple": suma de todos sus canales.

    Si el período no tiene canales propios se suman los canales de cada sub-tab.
    """
    period = get_period(entry, period_id)
    channels = get_channels(period)
    if channels:
        return sum_channels(channels)
    total = Totals()
    for tab in as_dict(period.get('subTabs')).values():
        total = total + sum_channels(get_channels(tab))
    return total


# ═══════════════════════════════════════════════════════════════════════════
# TURNOS (ALMOÇO PT / ST, JANTAR)
# ═══════════════════════════════════════════════════════════════════════════

def restaurant_totals(period: Mapping[str, Any]) -> Totals:
    """
    Venta de restaurante de un turno.

    Suma los canales propios del período (formato plano) más los de
    las sub-tabs hospedes, clienteMesa y delivery.
    """
    total = sum_channels(get_channels(period))
    for name in RESTAURANT_SUB_TABS:
        total = total + sum_channels(get_channels(sub_tab(period, name)))
    return total


def faturado_items_totals(items: List[Dict[str, Any]]) -> Totals:
    total = Totals()
    for item in items:
        total = total + Totals(to_number(item.get('quantity')), to_number(item.get('value')))
    return total


def legacy_faturado_totals(period: Mapping[str, Any], prefix: str) -> Totals:
    """Faturado en formato legacy (sub-tab ciEFaturados)."""
    channels = get_channels(sub_tab(period, 'ciEFaturados'))
    if not channels:
        return Totals()
    return Totals(
        channel_qtd(channels, f'{prefix}CiEFaturadosFaturadosQtd'),
        channel_value(channels, f'{prefix}CiEFaturadosValorHotel')
        + channel_value(channels, f'{prefix}CiEFaturadosValorFuncionario'),
    )


def channel_faturado_totals(period: Mapping[str, Any], prefix: str) -> Dict[str, float]:
    """
    Faturado cargado por canales en la sub-tab faturado.

    Returns:
        {'qtd', 'hotel', 'funcionario'}
    """
    channels = get_channels(sub_tab(period, 'faturado'))
    return {
        'qtd': channel_qtd(channels, f'{prefix}FaturadosQtd'),
        'hotel': channel_value(channels, f'{prefix}FaturadosValorHotel'),
        'funcionario': channel_value(channels, f'{prefix}FaturadosValorFuncionario'),
    }


def faturado_totals(period: Mapping[str, Any], prefix: str) -> Totals:
    """Faturado del turno: items nuevos, canales de la sub-tab y canales legacy."""
    by_channel = channel_faturado_totals(period, prefix)
    return (faturado_items_totals(faturado_items(period))
            + Totals(by_channel['qtd'], by_channel['hotel'] + by_channel['funcionario'])
            + legacy_faturado_totals(period, prefix))


def room_service_totals(period: Mapping[str, Any], prefix: str) -> Totals:
    channels = get_channels(sub_tab(period, 'roomService'))
    return Totals(
        channel_qtd(channels, f'{prefix}RoomServiceQtdPedidos'),
        channel_value(channels, f'{prefix}RoomServicePagDireto')
        + channel_value(channels, f'{prefix}RoomServiceValorServico'),
    )


def shift_frigobar_totals(period: Mapping[str, Any], prefix: str) -> Totals:
    """Frigobar cargado dentro del formulario del turno."""
    code = FRIGOBAR_CODES.get(prefix, prefix.upper())
    channels = get_channels(sub_tab(period, 'frigobar'))
    return Totals(
        channel_qtd(channels, f'frg{code}TotalQuartos'),
        channel_value(channels, f'frg{code}PagRestaurante')
        + channel_value(channels, f'frg{code}PagHotel'),
    )


def consumo_interno_totals(
    period: Mapping[str, Any],
    prefix: str,
    unit_price: float = 0.0
) -> ConsumoInternoTotals:
    """
    Consumo interno de un turno (formato nuevo + legacy).

    Formato nuevo: cada item aporta su valor. Un item sin valor se valoriza
    a cantidad × precio unitario configurado. El reajuste viene del canal
    reajusteCI de la sub-tab consumoInterno.

    Por canales y legacy (ciEFaturados): valor = TotalCI - ReajusteCI.

    Args:
        period: Registro del turno
        prefix: apt, ast o jnt
        unit_price: Precio unitario 'consumoInterno' configurado

    Returns:
        ConsumoInternoTotals(qtd, valor, reajuste)
    """
    result = ConsumoInternoTotals()

    for item in consumo_interno_items(period):
        qty = to_number(item.get('quantity'))
        raw_value = item.get('value')
        if raw_value is None or raw_value == '':
            value = qty * unit_price
        else:
            value = to_number(raw_value)
        result.qtd += qty
        result.valor += value
    ci_channels = get_channels(sub_tab(period, 'consumoInterno'))
    result.reajuste += channel_value(ci_channels, 'reajusteCI')

    # Variante por canales: {prefijo}ConsumoInternoQtd / TotalCI / ReajusteCI
    channel_reajuste = channel_value(ci_channels, f'{prefix}ReajusteCI')
    result.qtd += channel_qtd(ci_channels, f'{prefix}ConsumoInternoQtd')
    result.valor += channel_value(ci_channels, f'{prefix}TotalCI') - channel_reajuste
    result.reajuste += channel_reajuste

    legacy = get_channels(sub_tab(period, 'ciEFaturados'))
    if legacy:
        reajuste = channel_value(legacy, f'{prefix}CiEFaturadosReajusteCI')
        result.qtd += channel_qtd(legacy, f'{prefix}CiEFaturadosConsumoInternoQtd')
        result.valor += channel_value(legacy, f'{prefix}CiEFaturadosTotalCI') - reajuste
        result.reajuste += reajuste

    return result


# ═══════════════════════════════════════════════════════════════════════════
# ROOM SERVICE MADRUGADA
# ═══════════════════════════════════════════════════════════════════════════

def madrugada_totals(entry: Mapping[str, Any]) -> MadrugadaTotals:
    channels = get_channels(get_period(entry, 'madrugada'))
    pag_direto = channel_value(channels, 'madrugadaRoomServicePagDireto')
    valor_servico = channel_value(channels, 'madrugadaRoomServiceValorServico')
    return MadrugadaTotals(
        valor=pag_direto + valor_servico,
        qtd_pedidos=channel_qtd(channels, 'madrugadaRoomServiceQtdPedidos'),
        qtd_pratos=channel_qtd(channels, 'madrugadaRoomServiceQtdPratos'),
        pag_direto=pag_direto,
        valor_servico=valor_servico,
    )


# ═══════════════════════════════════════════════════════════════════════════
# CAFÉ DA MANHÃ
# ═══════════════════════════════════════════════════════════════════════════

def _sum_named_channels(channels: Mapping[str, Any], names) -> Totals:
    total = Totals()
    for name in names:
        total = total + channel_totals(channels, name)
    return total


def cafe_hospedes_totals(entry: Mapping[str, Any]) -> Totals:
    """Café de huéspedes: lista + no-show + sin check-in."""
    channels = get_channels(get_period(entry, 'cafeDaManha'))
    return _sum_named_channels(channels, ('cdmListaHospedes', 'cdmNoShow', 'cdmSemCheckIn'))


def cafe_avulsos_totals(entry: Mapping[str, Any]) -> Totals:
    """Café avulso: firmado + directo con tarjeta."""
    channels = get_channels(get_period(entry, 'cafeDaManha'))
    return _sum_named_channels(channels, ('cdmCafeAssinado', 'cdmDiretoCartao'))


def controle_cafe_totals(entry: Mapping[str, Any], unit_prices: Mapping[str, Any]) -> Totals:
    """Control de café: personas contadas × precio de lista de huéspedes."""
    period = get_period(entry, 'controleCafeDaManha')
    # Los contadores pueden estar en la raíz o dentro de 'channels'
    source = get_channels(period) or period
    people = 0.0
    for name in CONTROLE_CAFE_FIELDS:
        value = source.get(name)
        people += channel_qtd(source, name) if isinstance(value, dict) else to_number(value)
    price = to_number(as_dict(unit_prices).get('cdmListaHospedes'))
    return Totals(people, people * price)


def no_show_totals(entry: Mapping[str, Any], unit_prices: Mapping[str, Any]) -> Totals:
    """Cada item de no-show cuenta como una persona al precio configurado."""
    count = float(len(event_items(get_period(entry, 'cafeManhaNoShow'))))
    price = to_number(as_dict(unit_prices).get('cdmNoShow'))
    return Totals(count, count * price)


# ═══════════════════════════════════════════════════════════════════════════
# EVENTOS
# ═══════════════════════════════════════════════════════════════════════════

def eventos_totals(entry: Mapping[str, Any]) -> Dict[str, Totals]:
    """
    Eventos separados por ubicación.

    Returns:
        {'direto': Totals, 'hotel': Totals}
    """
    direto = Totals()
    hotel = Totals()
    for item in event_items(get_period(entry, 'eventos')):
        for sub_event in as_list(item.get('subEvents')):
            sub_event = as_dict(sub_event)
            amount = Totals(to_number(sub_event.get('quantity')), to_number(sub_event.get('totalValue')))
            location = sub_event.get('location')
            if location == EventLocation.DIRETO.value:
                direto = direto + amount
            elif location == EventLocation.HOTEL.value:
                hotel = hotel + amount
    return {'direto': direto, 'hotel': hotel}

