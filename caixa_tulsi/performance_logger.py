# ==============================================================================
# SISTEMA DE PROFILING INTERNO
# ==============================================================================
# Mide cuánto tardan las rutas de la API y los cálculos de totales/reportes.
# Los reportes mensuales recorren todos los lanzamientos del rango, así que
# además del tiempo se registra cuántos lanzamientos procesó cada llamada.
#
# ARCHIVOS (en CAIXA_LOGS_DIR, por defecto caixa_tulsi/logs/):
#   performance.log     → cada petición (acción, usuario, estado, tiempo)
#   slow_routes.log     → peticiones >= 300 ms (ATENÇÃO) o >= 700 ms (CRÍTICO)
#   slow_functions.log  → generadores de reportes lentos
#
# ACTIVAR/DESACTIVAR: variable de entorno CAIXA_PROFILING (0 = desactivado)
# ==============================================================================

import os
import time
import threading
from datetime import datetime
from functools import wraps
from collections import defaultdict

ENABLE_PROFILING = os.environ.get('CAIXA_PROFILING', '1') != '0'

# Milisegundos
THRESHOLD_WARNING = 300
THRESHOLD_CRITICAL = 700

LOGS_DIR = os.environ.get(
    'CAIXA_LOGS_DIR',
    os.path.join(os.path.dirname(os.path.abspath(__file__)), 'logs')
)

LOG_FILES = {
    'performance': os.path.join(LOGS_DIR, 'performance.log'),
    'slow_routes': os.path.join(LOGS_DIR, 'slow_routes.log'),
    'slow_functions': os.path.join(LOGS_DIR, 'slow_functions.log'),
}

SEPARATOR = '─' * 40

# Acciones legibles por regla de Flask (en portugués, como la interfaz)
ROUTE_NAMES = {
    'POST /api/auth/login': 'Login',
    'POST /api/auth/logout': 'Logout',
    'GET /api/auth/session': 'Consultar sessão',
    'GET /api/daily-entry': 'Listar lançamentos',
    'GET /api/daily-entry/<date_id>': 'Ver lançamento',
    'POST /api/daily-entry/<date_id>': 'Salvar lançamento',
    'GET /api/setting/<config_id>': 'Ver configuração',
    'POST /api/setting/<config_id>': 'Salvar configuração',
    'GET /api/estornos': 'Listar estornos',
    'POST /api/estornos': 'Registrar estorno',
    'DELETE /api/estornos': 'Remover estorno',
    'POST /api/estornos/relaunch': 'Relançar estorno',
    'POST /api/rename-person': 'Renomear pessoa',
    'GET /api/users': 'Listar usuários',
    'POST /api/users': 'Criar usuário',
    'PUT /api/users/<user_id>': 'Editar usuário',
    'DELETE /api/users/<user_id>': 'Remover usuário',
    'GET /api/audit-log': 'Ver auditoria',
    'GET /api/reports': 'Gerar relatório',
    'GET /api/v1/reports': 'Relatório público (v1)',
    'GET /api/dashboard': 'Ver dashboard',
    'GET /api/admin/performance': 'Ver desempenho',
}

# Rutas cuyo costo depende de los parámetros: se registran junto al tiempo
REPORT_ROUTES = frozenset(['/api/reports', '/api/v1/reports', '/api/dashboard'])
REPORT_PARAMS = ('filterType', 'month', 'date', 'startDate', 'endDate', 'periodId', 'consumptionType')

# {nombre: {calls, total_time, max_time, max_entries}}
_function_stats = defaultdict(lambda: {'calls': 0, 'total_time': 0.0, 'max_time': 0.0, 'max_entries': 0})
_stats_lock = threading.Lock()
_log_lock = threading.Lock()


# ═══════════════════════════════════════════════════════════════════════════
# ESCRITURA DE LOGS
# ═══════════════════════════════════════════════════════════════════════════

def _format_block(title, fields):
    """
    Arma un bloque de log legible.

    Args:
        title: Primera línea, p.ej. '[CRÍTICO] 2024-07-15 10:00:00'
        fields: Lista de (etiqueta, valor); los valores None se omiten
    """
    lines = ['', title, SEPARATOR]
    lines.extend(f"{label}: {value}" for label, value in fields if value is not None)
    lines.append('')
    return '\n'.join(lines)


def _write_log(log_name, content):
    """Agrega al archivo de log (thread-safe). Un fallo de disco solo se avisa."""
    filepath = LOG_FILES[log_name]
    try:
        with _log_lock:
            os.makedirs(LOGS_DIR, exist_ok=True)
            with open(filepath, 'a', encoding='utf-8') as f:
                f.write(content)
    except OSError as e:
        print(f"[ADVERTENCIA PROFILING] No se pudo escribir {filepath}: {e}")


def _now():
    return datetime.now().strftime('%Y-%m-%d %H:%M:%S')


def _severity(time_ms):
    if time_ms >= THRESHOLD_CRITICAL:
        return 'CRÍTICO', THRESHOLD_CRITICAL
    if time_ms >= THRESHOLD_WARNING:
        return 'ATENÇÃO', THRESHOLD_WARNING
    return None, None


# ═══════════════════════════════════════════════════════════════════════════
# PROFILING DE RUTAS
# ═══════════════════════════════════════════════════════════════════════════

def route_action(method, rule):
    """Nombre legible de la acción; la regla cruda si no está en ROUTE_NAMES."""
    return ROUTE_NAMES.get(f"{method} {rule}", f"{method} {rule}")


def report_query(path, args):
    """
    Parámetros relevantes de una petición de reporte.

    Returns:
        'filterType=month&month=2024-07' o None si la ruta no es de reportes
    """
    if path not in REPORT_ROUTES:
        return None
    pairs = [f"{key}={args.get(key)}" for key in REPORT_PARAMS if args.get(key)]
    return '&'.join(pairs) or '(padrão)'


def log_request(method, path, rule, status, time_ms, user=None, query=None):
    """
    Registra una petición en performance.log y, si fue lenta, en slow_routes.log.

    Args:
        method: GET, POST, etc.
        path: Ruta solicitada
        rule: Regla de Flask (con parámetros)
        status: Código HTTP de la respuesta
        time_ms: Tiempo en milisegundos
        user: Usuario de la sesión (opcional)
        query: Parámetros del reporte (opcional)
    """
    action = route_action(method, rule)
    user = user or 'anônimo'
    _write_log('performance', _format_block(f"[PERFORMANCE] {_now()}", [
        ('Ação', action),
        ('Usuário', user),
        ('Rota', f"{method} {path}"),
        ('Parâmetros', query),
        ('Status', status),
        ('Tempo', f"{time_ms:.0f} ms"),
    ]))

    severity, threshold = _severity(time_ms)
    if severity:
        _write_log('slow_routes', _format_block(f"[{severity}] {_now()}", [
            ('Rota lenta', action),
            ('Usuário', user),
            ('Detalhe', f"{method} {path}"),
            ('Parâmetros', query),
            ('Tempo', f"{time_ms:.0f} ms (limite: {threshold} ms)"),
        ]))


def init_profiling(app):
    """
    Registra en la app los hooks que miden cada petición.
    Las peticiones OPTIONS (preflight CORS) no se registran.
    """
    if not ENABLE_PROFILING:
        return

    from flask import g, request, session

    @app.before_request
    def _start_timer():
        g.start_time = time.perf_counter()

    @app.after_request
    def _log_request(response):
        start = g.pop('start_time', None)
        if start is None or request.method == 'OPTIONS':
            return response

        elapsed = (time.perf_counter() - start) * 1000
        rule = str(request.url_rule) if request.url_rule else request.path
        log_request(
            request.method,
            request.path,
            rule,
            response.status_code,
            elapsed,
            user=(session.get('user') or {}).get('username'),
            query=report_query(request.path, request.args),
        )
        return response


# ═══════════════════════════════════════════════════════════════════════════
# DECORADOR PARA CÁLCULOS
# ═══════════════════════════════════════════════════════════════════════════

def _count_entries(args):
    """Largo del primer argumento que sea lista (los lanzamientos del rango)."""
    for arg in args:
        if isinstance(arg, list):
            return len(arg)
    return None


def profile_function(func=None, name=None):
    """
    Mide una función de cálculo y acumula estadísticas en memoria.

    Si alguno de los argumentos es la lista de lanzamientos, también se
    guarda el mayor tamaño procesado.

    Uso:
        @profile_function
        def calcular():
            ...

        @profile_function(name="Gerar relatório geral")
        def generate_general_report(self, entries, ...):
            ...
    """
    def decorator(fn):
        if not ENABLE_PROFILING:
            return fn

        func_name = name or fn.__name__

        @wraps(fn)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                return fn(*args, **kwargs)
            finally:
                elapsed_ms = (time.perf_counter() - start) * 1000
                entries = _count_entries(args)
                with _stats_lock:
                    stats = _function_stats[func_name]
                    stats['calls'] += 1
                    stats['total_time'] += elapsed_ms
                    stats['max_time'] = max(stats['max_time'], elapsed_ms)
                    if entries is not None:
                        stats['max_entries'] = max(stats['max_entries'], entries)

                severity, _ = _severity(elapsed_ms)
                if severity:
                    _write_log('slow_functions', _format_block(f"[{severity}] {_now()}", [
                        ('Função', func_name),
                        ('Lançamentos', entries),
                        ('Tempo', f"{elapsed_ms:.0f} ms"),
                    ]))

        return wrapper

    if func is not None:
        return decorator(func)
    return decorator


# ═══════════════════════════════════════════════════════════════════════════
# CONSULTA DE ESTADÍSTICAS (GET /api/admin/performance)
# ═══════════════════════════════════════════════════════════════════════════

def get_function_stats():
    """
    Returns:
        dict: {nombre: {calls, avg_time, max_time, max_entries}}
    """
    with _stats_lock:
        return {
            func_name: {
                'calls': stats['calls'],
                'avg_time': round(stats['total_time'] / stats['calls'], 2) if stats['calls'] else 0,
                'max_time': round(stats['max_time'], 2),
                'max_entries': stats['max_entries'],
            }
            for func_name, stats in _function_stats.items()
        }


def reset_stats():
    with _stats_lock:
        _function_stats.clear()


def _file_summary(path):
    if not os.path.exists(path):
        return {'exists': False, 'size_kb': 0, 'lines': 0}
    with open(path, 'r', encoding='utf-8') as f:
        lines = sum(1 for _ in f)
    return {'exists': True, 'size_kb': round(os.path.getsize(path) / 1024, 2), 'lines': lines}


def get_log_summary():
    """
    Returns:
        dict: {archivo: {exists, size_kb, lines}}
    """
    return {name: _file_summary(path) for name, path in LOG_FILES.items()}


__all__ = [
    'ENABLE_PROFILING',
    'init_profiling',
    'profile_function',
    'route_action',
    'report_query',
    'get_function_stats',
    'reset_stats',
    'get_log_summary',
]
