from flask import Flask, request, session, jsonify, make_response
from flask_cors import CORS
from functools import wraps
from datetime import date, timedelta
import uuid

# Sistema de profiling interno
from caixa_tulsi.performance_logger import init_profiling, get_function_stats, get_log_summary

# ═══════════════════════════════════════════════════════════════════════════
# CONTENEDOR DE DEPENDENCIAS - Servicios y Repositorios
# ═══════════════════════════════════════════════════════════════════════════
# Las rutas solo orquestan request → service → response.
# JSON o MySQL según CAIXA_STORAGE: las rutas no cambian.
# ═══════════════════════════════════════════════════════════════════════════
from caixa_tulsi.app_container import get_container
from caixa_tulsi.config import load_config
from caixa_tulsi.repositories import STORAGE_ERRORS
from caixa_tulsi.services import (
    AuthenticationError,
    EntryValidationError,
    EstornoNotFoundError,
    EstornoValidationError,
    InvalidConfigIdError,
    PersonValidationError,
    ReportParameterError,
)
from caixa_tulsi.services.report_service import month_range

app = Flask(__name__)

# ═══════════════════════════════════════════════════════════════════════════
# CONFIGURACIÓN DE LA APP
# ═══════════════════════════════════════════════════════════════════════════
_config = load_config()
app.secret_key = _config.secret_key
app.config.update(
    SESSION_COOKIE_HTTPONLY=True,
    SESSION_COOKIE_SAMESITE='Lax',
    SESSION_COOKIE_SECURE=_config.secure_cookies,
    PERMANENT_SESSION_LIFETIME=timedelta(hours=12),
)
app.json.sort_keys = False

# ═══════════════════════════════════════════════════════════════════════════
# INICIALIZAR SISTEMA DE PROFILING
# ═══════════════════════════════════════════════════════════════════════════
# Logs en caixa_tulsi/logs/ (o CAIXA_LOGS_DIR). Desactivar con CAIXA_PROFILING=0
init_profiling(app)

# API pública de reportes: cualquier origen
CORS(app, resources={r"/api/v1/*": {"origins": "*"}})

V1_CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Methods': 'GET,OPTIONS,PATCH,DELETE,POST,PUT',
    'Access-Control-Allow-Headers': (
        'X-CSRF-Token, X-Requested-With, Accept, Accept-Version, Content-Length, '
        'Content-MD5, Content-Type, Date, X-Api-Version, Authorization'
    ),
    'Access-Control-Allow-Credentials': 'true',
}

USER_ERROR_STATUS = {'invalid': 400, 'conflict': 409, 'not_found': 404, 'forbidden': 403}


def container():
    return get_container()


def current_username():
    return (session.get('user') or {}).get('username') or 'sistema'


def _message(text, status):
    return jsonify({'message': text}), status


def _storage_error(tag, e):
    print(f"[ERROR {tag}] {type(e).__name__}: {e}")
    return _message(str(e) or 'Erro ao acessar o armazenamento.', 500)


# ═══════════════════════════════════════════════════════════════════════════
# DECORADORES DE SEGURIDAD
# ═══════════════════════════════════════════════════════════════════════════

def login_required(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        if 'user' not in session:
            return _message('Não autorizado: você precisa estar logado.', 401)
        return f(*args, **kwargs)
    return wrapper


def admin_required(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        if 'user' not in session:
            return _message('Não autorizado: você precisa estar logado.', 401)
        if session['user'].get('role') != 'administrator':
            print(f"[SEGURIDAD] Acceso denegado a {request.path} para '{current_username()}'")
            return _message('Acesso não autorizado.', 403)
        return f(*args, **kwargs)
    return wrapper


def generate_csrf_token():
    if 'csrf_token' not in session:
        session['csrf_token'] = uuid.uuid4().hex
    return session['csrf_token']


def verify_csrf(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        if request.method in ('POST', 'PUT', 'DELETE', 'PATCH'):
            token = session.get('csrf_token')
            sent_token = request.headers.get('X-CSRF-Token') or request.headers.get('X-CSRFToken')
            if not sent_token and request.is_json:
                json_data = request.get_json(silent=True)
                if isinstance(json_data, dict):
                    sent_token = json_data.get('csrf_token')
            if not token or not sent_token or token != sent_token:
                print(f"[SEGURIDAD] CSRF inválido en {request.method} {request.path}")
                return {"ok": False, "error": "CSRF token inválido"}, 403
        return f(*args, **kwargs)
    return wrapper


@app.after_request
def set_security_headers(response):
    response.headers['X-Frame-Options'] = 'DENY'
    response.headers['X-Content-Type-Options'] = 'nosniff'
    response.headers['Referrer-Policy'] = 'no-referrer-when-downgrade'
    response.headers['Permissions-Policy'] = 'geolocation=(), microphone=()'
    if request.is_secure:
        response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
    return response


# ═══════════════════════════════════════════════════════════════════════════
# AUTENTICACIÓN
# ═══════════════════════════════════════════════════════════════════════════

@app.route('/api/auth/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    try:
        user = container().user_service.authenticate(
            str(data.get('username') or '').strip(),
            data.get('password') or '',
            data.get('selectedShift'),
        )
    except AuthenticationError as e:
        return _message(e.message, e.status)
    except STORAGE_ERRORS as e:
        print(f"[ERROR LOGIN] {type(e).__name__}: {e}")
        return _message('Ocorreu um erro no servidor durante o login.', 500)

    session.clear()
    session.permanent = True
    session['user'] = user
    return jsonify({**user, 'csrfToken': generate_csrf_token()})


@app.route('/api/auth/logout', methods=['POST'])
@login_required
@verify_csrf
def logout():
    username = current_username()
    session.clear()
    container().audit_service.log_logout(username)
    return jsonify({'message': 'Sessão encerrada com sucesso.'})


@app.route('/api/auth/session', methods=['GET'])
def auth_session():
    user = session.get('user')
    if not user:
        return jsonify({'isAuthenticated': False}), 401
    return jsonify({'isAuthenticated': True, **user, 'csrfToken': generate_csrf_token()})


# ═══════════════════════════════════════════════════════════════════════════
# LANZAMIENTOS DIARIOS
# ═══════════════════════════════════════════════════════════════════════════

@app.route('/api/daily-entry', methods=['GET'])
@login_required
def list_daily_entries():
    try:
        entries = container().entry_service.list_entries(
            request.args.get('startDate'),
            request.args.get('endDate'),
            request.args.get('fields'),
        )
    except EntryValidationError as e:
        return _message(str(e), 400)
    except STORAGE_ERRORS as e:
        return _storage_error('LANZAMIENTOS', e)
    return jsonify(entries)


@app.route('/api/daily-entry/<date_id>', methods=['GET'])
@login_required
def get_daily_entry(date_id):
    try:
        entry = container().entry_service.get_entry(date_id)
    except EntryValidationError as e:
        return _message(str(e), 400)
    except STORAGE_ERRORS as e:
        return _storage_error('LANZAMIENTOS', e)
    if not entry:
        return _message(f'Lançamento para a data {date_id} não encontrado', 404)
    return jsonify(entry)


@app.route('/api/daily-entry/<date_id>', methods=['POST'])
@login_required
@verify_csrf
def save_daily_entry(date_id):
    payload = request.get_json(silent=True)
    if payload is None:
        return _message('Payload JSON inválido.', 400)
    if isinstance(payload, dict):
        payload.pop('csrf_token', None)
    try:
        result = container().entry_service.save_entry(date_id, payload, current_username())
    except EntryValidationError as e:
        return _message(str(e), 400)
    except STORAGE_ERRORS as e:
        return _storage_error('LANZAMIENTOS', e)
    return jsonify({
        'message': f'Lançamento para {date_id} salvo com sucesso.',
        'data': result['entry'],
    })


# ═══════════════════════════════════════════════════════════════════════════
# CONFIGURACIONES
# ═══════════════════════════════════════════════════════════════════════════

@app.route('/api/setting/<config_id>', methods=['GET'])
@login_required
def get_setting(config_id):
    try:
        value = container().settings_service.get_setting(config_id)
    except InvalidConfigIdError as e:
        return _message(str(e), 400)
    except STORAGE_ERRORS as e:
        return _storage_error('CONFIGURACION', e)
    return jsonify({'config': value})


@app.route('/api/setting/<config_id>', methods=['POST'])
@admin_required
@verify_csrf
def save_setting(config_id):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return _message('Payload JSON inválido.', 400)
    if 'config' not in data:
        return _message('Payload deve conter a propriedade "config".', 400)
    try:
        container().settings_service.save_setting(config_id, data['config'], current_username())
    except InvalidConfigIdError as e:
        return _message(str(e), 400)
    except STORAGE_ERRORS as e:
        return _storage_error('CONFIGURACION', e)
    return jsonify({'message': f'Configuração {config_id} salva com sucesso.'})


# ═══════════════════════════════════════════════════════════════════════════
# ESTORNOS
# ═══════════════════════════════════════════════════════════════════════════

def _json_body():
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        data.pop('csrf_token', None)
    return data


@app.route('/api/estornos', methods=['GET'])
@login_required
def list_estornos():
    try:
        items = container().estorno_service.list_items(
            request.args.get('startDate'),
            request.args.get('endDate'),
            request.args.get('category'),
        )
    except EstornoValidationError as e:
        return _message(str(e), 400)
    except STORAGE_ERRORS as e:
        return _storage_error('ESTORNOS', e)
    return jsonify(items)


@app.route('/api/estornos', methods=['POST'])
@login_required
@verify_csrf
def create_estorno():
    try:
        container().estorno_service.create_item(_json_body(), current_username())
    except EstornoValidationError as e:
        return _message(str(e), 400)
    except STORAGE_ERRORS as e:
        return _storage_error('ESTORNOS', e)
    return _message('Estorno salvo com sucesso.', 201)


@app.route('/api/estornos', methods=['DELETE'])
@login_required
@verify_csrf
def delete_estorno():
    try:
        container().estorno_service.delete_item(_json_body(), current_username())
    except EstornoValidationError as e:
        return _message(str(e), 400)
    except EstornoNotFoundError as e:
        return _message(str(e), 404)
    except STORAGE_ERRORS as e:
        return _storage_error('ESTORNOS', e)
    return _message('Estorno removido com sucesso.', 200)


@app.route('/api/estornos/relaunch', methods=['POST'])
@login_required
@verify_csrf
def relaunch_estorno():
    try:
        container().estorno_service.relaunch_item(_json_body(), current_username())
    except EstornoValidationError as e:
        return _message(str(e), 400)
    except EstornoNotFoundError as e:
        return _message(str(e), 404)
    except STORAGE_ERRORS as e:
        return _storage_error('ESTORNOS', e)
    return _message('Estorno relançado como crédito com sucesso.', 201)


# ═══════════════════════════════════════════════════════════════════════════
# PERSONAS FATURADAS (solo administradores)
# ═══════════════════════════════════════════════════════════════════════════

@app.route('/api/rename-person', methods=['POST'])
@admin_required
@verify_csrf
def rename_person():
    try:
        result = container().person_service.rename_person(_json_body(), current_username())
    except PersonValidationError as e:
        return _message(str(e), 400)
    except STORAGE_ERRORS as e:
        print(f"[ERROR PESSOAS] {type(e).__name__}: {e}")
        return _message('Erro interno do servidor ao renomear pessoa.', 500)
    return _message(result['message'], 200)


# ═══════════════════════════════════════════════════════════════════════════
# USUARIOS (solo administradores)
# ═══════════════════════════════════════════════════════════════════════════

def _user_result(result, success_status=200):
    if not result['ok']:
        return _message(result['error'], USER_ERROR_STATUS.get(result.get('code'), 400))
    if 'user' in result:
        return jsonify(result['user']), success_status
    return jsonify({'message': 'Usuário removido com sucesso.'}), success_status


@app.route('/api/users', methods=['GET'])
@admin_required
def list_users():
    try:
        return jsonify(container().user_service.list_users())
    except STORAGE_ERRORS as e:
        return _storage_error('USUARIOS', e)


@app.route('/api/users', methods=['POST'])
@admin_required
@verify_csrf
def create_user():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return _message('Payload JSON inválido.', 400)
    try:
        result = container().user_service.create_user(data, current_username())
    except STORAGE_ERRORS as e:
        return _storage_error('USUARIOS', e)
    return _user_result(result, 201)


@app.route('/api/users/<user_id>', methods=['PUT'])
@admin_required
@verify_csrf
def update_user(user_id):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return _message('Payload JSON inválido.', 400)
    try:
        result = container().user_service.update_user(user_id, data, current_username())
    except STORAGE_ERRORS as e:
        return _storage_error('USUARIOS', e)
    return _user_result(result)


@app.route('/api/users/<user_id>', methods=['DELETE'])
@admin_required
@verify_csrf
def delete_user(user_id):
    try:
        result = container().user_service.delete_user(user_id, current_username())
    except STORAGE_ERRORS as e:
        return _storage_error('USUARIOS', e)
    return _user_result(result)


# ═══════════════════════════════════════════════════════════════════════════
# AUDITORÍA Y RENDIMIENTO (solo administradores)
# ═══════════════════════════════════════════════════════════════════════════

@app.route('/api/audit-log', methods=['GET'])
@admin_required
def audit_log():
    try:
        limit = int(request.args.get('limit', 100))
    except ValueError:
        return _message("Parâmetro 'limit' inválido.", 400)
    try:
        return jsonify(container().audit_service.get_recent(limit))
    except STORAGE_ERRORS as e:
        print(f"[ERROR AUDITORIA] {type(e).__name__}: {e}")
        return _message('Erro ao buscar o histórico de auditoria.', 500)


@app.route('/api/admin/performance', methods=['GET'])
@admin_required
def performance_stats():
    return jsonify({'functions': get_function_stats(), 'logs': get_log_summary()})


# ═══════════════════════════════════════════════════════════════════════════
# REPORTES Y DASHBOARD
# ═══════════════════════════════════════════════════════════════════════════

def _run_report(internal):
    try:
        data = container().report_service.build_report(request.args, internal=internal)
    except ReportParameterError as e:
        return _message(str(e), 400)
    except STORAGE_ERRORS as e:
        return _storage_error('REPORTES', e)
    return jsonify(data)


@app.route('/api/reports', methods=['GET'])
@login_required
def reports():
    return _run_report(internal=True)


@app.route('/api/v1/reports', methods=['GET', 'OPTIONS'])
def public_reports():
    if request.method == 'OPTIONS':
        response = make_response('', 204)
    else:
        response = make_response(_run_report(internal=False))
    response.headers.update(V1_CORS_HEADERS)
    return response


@app.route('/api/dashboard', methods=['GET'])
@login_required
def dashboard():
    month = request.args.get('month') or date.today().strftime('%Y-%m')
    bounds = month_range(month)
    if not bounds:
        return _message("Parâmetro 'month' inválido. Use AAAA-MM.", 400)
    try:
        c = container()
        entries = c.entry_repo.get_all_entries(*bounds)
        summary = c.report_service.generate_dashboard_summary(
            entries, c.settings_service.build_aggregation_config()
        )
    except STORAGE_ERRORS as e:
        return _storage_error('DASHBOARD', e)
    return jsonify({'month': month, **summary})


if __name__ == "__main__":
    # Servidor de desarrollo. En producción usar WSGI (wsgi.py con gunicorn/waitress)
    if not _config.debug:
        print(f"\n{'='*50}")
        print(f"  Servidor iniciado en http://{_config.host}:{_config.port}")
        print(f"{'='*50}\n")
    app.run(debug=_config.debug, host=_config.host, port=_config.port)
