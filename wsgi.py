# ==============================================================================
# WSGI Entry Point - Para Gunicorn en producción
# ==============================================================================
# USO:
#   gunicorn wsgi:app --bind 0.0.0.0:$PORT
#
# ESTRUCTURA DEL PROYECTO:
#   repo_root/           <- Directorio de trabajo (en sys.path automáticamente)
#   ├── wsgi.py          <- Este archivo
#   ├── pyproject.toml
#   └── app_kasir/       <- Paquete Python
#       ├── __init__.py
#       ├── main.py
#       ├── store.py
#       ├── services/
#       └── repositories/
#
# La configuración se toma de las variables KASIR_* (ver app_kasir/config.py).
# ==============================================================================

from app_kasir.main import create_app

app = create_app()

if __name__ == '__main__':
    app.run(debug=True, host='0.0.0.0', port=5000)
