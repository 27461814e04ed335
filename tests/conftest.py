import os
import sys

import pytest

# Entorno de prueba: debe definirse antes de importar el paquete
os.environ.setdefault('CAIXA_PROFILING', '0')
os.environ.setdefault('CAIXA_SECRET_KEY', 'test-secret-key')
os.environ['CAIXA_ADMIN_PASSWORD'] = 'admin123'
os.environ['CAIXA_STORAGE'] = 'json'

# ensure project root is on sys.path when running from tests/ folder
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from caixa_tulsi.app_container import AppContainer, get_container  # noqa: E402
from caixa_tulsi.main import app  # noqa: E402


ADMIN_PASSWORD = 'admin123'


@pytest.fixture
def container(tmp_path):
    AppContainer.reset_instance()
    c = get_container(str(tmp_path))
    yield c
    AppContainer.reset_instance()


@pytest.fixture
def client(container):
    app.config['TESTING'] = True
    with app.test_client() as c:
        yield c


@pytest.fixture
def admin_token(client):
    """Loguea al admin por defecto y devuelve el token CSRF."""
    r = client.post('/api/auth/login', json={'username': 'admin', 'password': ADMIN_PASSWORD})
    assert r.status_code == 200
    return r.get_json()['csrfToken']
