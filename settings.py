"""Server settings, read from the environment (set in docker-compose.yml).

Export settings (DIA_PATH, DIA_CACHE_DIR, DIA_BOOKS, ...) are read by
diarender.RenderConfig.from_env().
"""
import os

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_FILE = os.getenv('LOG_FILE') or None

HOST = os.getenv('HOST', '0.0.0.0')
PORT = int(os.getenv('PORT', '8080'))
# Any bottle server adapter; use a threaded one (e.g. 'waitress', 'paste') in production
SERVER = os.getenv('SERVER', 'wsgiref')
DEBUG_APP = os.getenv('DEBUG_APP', 'false').lower() == 'true'
