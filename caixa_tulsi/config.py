# ==============================================================================
# CONFIGURACIÓN - Variables de entorno
# ==============================================================================
# CAIXA_SECRET_KEY       Clave de sesión de Flask (obligatoria en producción)
# CAIXA_DATA_DIR         Directorio de los archivos JSON (default: caixa_tulsi/data)
# CAIXA_STORAGE          json | mysql
# CAIXA_ADMIN_PASSWORD   Contraseña del admin por defecto (solo si no hay usuarios)
# CAIXA_SECURE_COOKIES   1 para marcar la cookie de sesión como Secure (HTTPS)
# DB_HOST, DB_PORT, DB_USER, DB_PASS, DB_NAME, DB_CHARSET   (CAIXA_STORAGE=mysql)
# DB_POOL_SIZE           Conexiones del pool MySQL (default: 10)
# FLASK_DEBUG, FLASK_HOST, FLASK_PORT                       (servidor de desarrollo)
# ==============================================================================

import os
import secrets
from dataclasses import dataclass, field
from typing import Any, Dict

PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))

STORAGE_JSON = 'json'
STORAGE_MYSQL = 'mysql'


def _env_flag(name: str, default: str = '0') -> bool:
    return os.environ.get(name, default).lower() in ('1', 'true', 'yes')


@dataclass
class AppConfig:
    """Configuración leída del entorno al arrancar."""
    secret_key: str
    data_dir: str
    storage: str = STORAGE_JSON
    admin_password: str = ''
    secure_cookies: bool = False
    db: Dict[str, Any] = field(default_factory=dict)
    debug: bool = False
    host: str = '127.0.0.1'
    port: int = 5000


def load_config() -> AppConfig:
    """
    Lee la configuración del entorno.

    Returns:
        AppConfig
    """
    secret_key = os.environ.get('CAIXA_SECRET_KEY')
    if not secret_key:
        # Las sesiones se invalidan en cada reinicio
        secret_key = secrets.token_hex(32)
        print("[ADVERTENCIA] CAIXA_SECRET_KEY no definida. Se usa una clave temporal aleatoria.")

    storage = os.environ.get('CAIXA_STORAGE', STORAGE_JSON).lower()
    if storage not in (STORAGE_JSON, STORAGE_MYSQL):
        print(f"[ADVERTENCIA] CAIXA_STORAGE='{storage}' desconocido, se usa JSON")
        storage = STORAGE_JSON

    return AppConfig(
        secret_key=secret_key,
        data_dir=os.environ.get('CAIXA_DATA_DIR', os.path.join(PACKAGE_DIR, 'data')),
        storage=storage,
        admin_password=os.environ.get('CAIXA_ADMIN_PASSWORD', ''),
        secure_cookies=_env_flag('CAIXA_SECURE_COOKIES'),
        db={
            'host': os.environ.get('DB_HOST', '127.0.0.1'),
            'port': int(os.environ.get('DB_PORT', '3306')),
            'user': os.environ.get('DB_USER', 'caixa'),
            'password': os.environ.get('DB_PASS', ''),
            'database': os.environ.get('DB_NAME', 'caixa_tulsi'),
            'charset': os.environ.get('DB_CHARSET', 'utf8mb4'),
            'pool_size': int(os.environ.get('DB_POOL_SIZE', '10')),
        },
        debug=_env_flag('FLASK_DEBUG'),
        host=os.environ.get('FLASK_HOST', '127.0.0.1'),
        port=int(os.environ.get('FLASK_PORT', '5000')),
    )
