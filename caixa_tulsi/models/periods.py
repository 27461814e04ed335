# ==============================================================================
# DEFINICIÓN DE PERÍODOS Y ITEMS DEL CARD DE RESUMEN
# ==============================================================================
# El orden de PERIOD_DEFINITIONS es el orden de las columnas de los reportes.
# ==============================================================================

from collections import OrderedDict

PERIOD_DEFINITIONS = OrderedDict([
    ('madrugada', 'Madrugada'),
    ('cafeDaManha', 'Café da Manhã'),
    ('controleCafeDaManha', 'Controle Café da Manhã'),
    ('cafeManhaNoShow', 'Controle No-Show Café da Manhã'),
    ('breakfast', 'Breakfast'),
    ('almocoPrimeiroTurno', 'Almoço Primeiro Turno'),
    ('almocoSegundoTurno', 'Almoço Segundo Turno'),
    ('jantar', 'Jantar'),
    ('italianoAlmoco', 'RW Italiano Almoço'),
    ('italianoJantar', 'RW Italiano Jantar'),
    ('indianoAlmoco', 'RW Indiano Almoço'),
    ('indianoJantar', 'RW Indiano Jantar'),
    ('baliAlmoco', 'Bali Almoço'),
    ('baliHappy', 'Bali Happy Hour'),
    ('eventos', 'Eventos'),
    ('frigobar', 'Frigobar'),
])

PERIOD_IDS = list(PERIOD_DEFINITIONS.keys())

# Períodos cuyo total es la suma directa de sus canales
GENERIC_PERIOD_IDS = (
    'breakfast',
    'italianoAlmoco',
    'italianoJantar',
    'indianoAlmoco',
    'indianoJantar',
    'baliAlmoco',
    'baliHappy',
)

# Turnos con restaurante, faturados y consumo interno -> prefijo de canales
SHIFT_PREFIXES = OrderedDict([
    ('almocoPrimeiroTurno', 'apt'),
    ('almocoSegundoTurno', 'ast'),
    ('jantar', 'jnt'),
])

SHIFT_SHORT_NAMES = {
    'almocoPrimeiroTurno': 'Almoço PT',
    'almocoSegundoTurno': 'Almoço ST',
    'jantar': 'Jantar',
}

# Items que el administrador puede excluir del TOTAL FITA / total general
SUMMARY_CARD_ITEMS = OrderedDict([
    ('rsMadrugada', 'RS Madrugada'),
    ('roomService', 'Room Service'),
    ('avulsoAssinado', 'Avulsos Café da Manhã'),
    ('breakfast', 'Breakfast'),
    ('almoco', 'Almoço'),
    ('jantar', 'Jantar'),
    ('rwItalianoAlmoco', 'RW Italiano Almoço'),
    ('rwItalianoJantar', 'RW Italiano Jantar'),
    ('rwIndianoAlmoco', 'RW Indiano Almoço'),
    ('rwIndianoJantar', 'RW Indiano Jantar'),
    ('baliAlmoco', 'Bali Almoço'),
    ('baliHappy', 'Bali Happy Hour'),
    ('frigobar', 'Frigobar'),
    ('cafeHospedes', 'Café Hóspedes'),
    ('almocoCI', 'Almoço C.I.'),
    ('jantarCI', 'Jantar C.I.'),
    ('eventosDireto', 'Eventos Direto'),
    ('eventosHotel', 'Eventos Hotel'),
])
