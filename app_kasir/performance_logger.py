# ==============================================================================
# SISTEMA DE PROFILING Y REGISTRO DE EVENTOS
# ==============================================================================
# Mide rendimiento de rutas y operaciones del Store sin afectar al usuario.
# Guarda logs legibles en el directorio de logs para análisis humano:
#   performance.log     → cada petición HTTP
#   slow_routes.log     → peticiones lentas
#   slow_functions.log  → operaciones lentas del Store
#   events.log          → eventos de negocio y errores de almacenamiento
#
# ACTIVAR/DESACTIVAR: KASIR_ENABLE_PROFILING (ver config.py)
# ==============================================================================

import os
import time
import threading
from datetime import datetime
from functools import wraps
from collections import defaultdict

# ═══════════════════════════════════════════════════════════════════════════
# CONFIGURACIÓN
# ═══════════════════════════════════════════════════════════════════════════

# Umbrales de tiempo (en milisegundos)
THRESHOLD_WARNING = 300
THRESHOLD_CRITICAL = 700

PERFORMANCE_LOG = 'performance.log'
SLOW_ROUTES_LOG = 'slow_routes.log'
SLOW_FUNCTIONS_LOG = 'slow_functions.log'
EVENTS_LOG = 'events.log'

_settings = {
    'enabled': True,
    'logs_dir': os.path.join(os.path.dirname(os.path.abspath(__file__)), 'logs'),
}

# Mapeo de rutas a nombres legibles
ROUTE_NAMES = {
    # Catálogo
    'GET /api/products': 'Buscar productos',
    'POST /api/products': 'Crear producto',
    'GET /api/products/<int:pid>': 'Ver producto',
    'PUT /api/products/<int:pid>': 'Editar producto',
    'DELETE /api/products/<int:pid>': 'Eliminar producto',

    # Stock
    'GET /api/stock': 'Ver stock',
    'POST /api/stock/<int:pid>': 'Ajustar stock',
    'GET /api/stock/history': 'Ver historial de stock',

    # Carrito
    'GET /api/cart': 'Ver carrito',
    'POST /api/cart/add': 'Agregar al carrito',
    'POST /api/cart/update': 'Cambiar cantidad',
    'POST /api/cart/remove': 'Eliminar del carrito',
    'POST /api/cart/clear': 'Vaciar carrito',

    # Cobro
    'POST /api/checkout/preview': 'Calcular vuelto',
    'POST /api/checkout': 'Cobrar venta',

    # Historial y reportes
    'GET /api/transactions': 'Ver historial de ventas',
    'GET /api/transactions/<int:tid>': 'Ver detalle de venta',
    'GET /api/reports/today': 'Ver ventas de hoy',
    'GET /api/reports/summary': 'Ver reporte',
    'GET /api/reports/low-stock': 'Ver stock bajo',

    # Almacenamiento
    'POST /api/storage/flush': 'Reintentar guardado',
}


def configure(logs_dir=None, enabled=None):
    """
    Ajusta directorio de logs y activación (llamado por la app factory).
    """
    if logs_dir is not None:
        _settings['logs_dir'] = logs_dir
    if enabled is not None:
        _settings['enabled'] = bool(enabled)


def is_enabled():
    return _settings['enabled']


# ═══════════════════════════════════════════════════════════════════════════
# ESTADÍSTICAS DE FUNCIONES (en memoria)
# ═══════════════════════════════════════════════════════════════════════════

# Estructura: {nombre_funcion: {calls: int, total_time: float, max_time: float}}
_function_stats = defaultdict(lambda: {'calls': 0, 'total_time': 0.0, 'max_time': 0.0})
_stats_lock = threading.Lock()
_write_lock = threading.Lock()


# ═══════════════════════════════════════════════════════════════════════════
# FUNCIONES DE LOGGING
# ═══════════════════════════════════════════════════════════════════════════

def _get_timestamp():
    """Obtiene timestamp legible"""
    return datetime.now().strftime('%Y-%m-%d %H:%M:%S')


def _write_log(filename, content, logs_dir=None):
    """
    Escribe contenido a un archivo de log (thread-safe).
    Sin logs_dir se usa el directorio configurado por init_profiling.
    """
    logs_dir = logs_dir or _settings['logs_dir']
    try:
        with _write_lock:
            os.makedirs(logs_dir, exist_ok=True)
            with open(os.path.join(logs_dir, filename), 'a', encoding='utf-8') as f:
                f.write(content)
    except OSError:
        pass  # Un log que no se puede escribir no debe afectar la app


def _get_route_name(method, path, rule=None):
    """
    Obtiene nombre legible para una ruta.
    Intenta hacer match con ROUTE_NAMES, si no, devuelve la ruta raw.
    """
    key = f"{method} {path}"
    if key in ROUTE_NAMES:
        return ROUTE_NAMES[key]

    if rule:
        rule_key = f"{method} {rule}"
        if rule_key in ROUTE_NAMES:
            return ROUTE_NAMES[rule_key]

    return f"{method} {path}"


def log_event(kind, message, logs_dir=None, **details):
    """
    Registra un evento de negocio o de error en events.log

    Args:
        kind: Categoría (STOCK, VENTA, RECHAZO, ALMACENAMIENTO, ...)
        message: Mensaje humanizado
        logs_dir: Directorio de logs del Store que registra el evento
        details: Datos adicionales (se escriben como clave=valor)
    """
    extra = ' '.join(f"{k}={v}" for k, v in details.items())
    line = f"[{_get_timestamp()}] [{kind}] {message}"
    if extra:
        line += f" | {extra}"
    _write_log(EVENTS_LOG, line + "\n", logs_dir)


# ═══════════════════════════════════════════════════════════════════════════
# 1️⃣ PROFILING DE RUTAS (Middleware Flask)
# ═══════════════════════════════════════════════════════════════════════════

def log_route_performance(method, path, rule, time_ms, status=None):
    """
    Registra el rendimiento de una ruta en performance.log

    Args:
        method: GET, POST, etc.
        path: Ruta solicitada (/api/cart/add)
        rule: Regla de Flask (/api/products/<int:pid>)
        time_ms: Tiempo en milisegundos
        status: Código HTTP de la respuesta
    """
    if not is_enabled():
        return

    action_name = _get_route_name(method, path, rule)

    log_entry = f"""
════════════════════════════════════════
[PERFORMANCE] {_get_timestamp()}
────────────────────────────────────────
Acción: {action_name}
Ruta: {method} {path}
Estado: {status}
Tiempo: {time_ms:.0f} ms
"""

    _write_log(PERFORMANCE_LOG, log_entry)


def log_slow_route(method, path, rule, time_ms, level='WARNING'):
    """
    Registra una ruta lenta en slow_routes.log

    Args:
        level: 'WARNING' (>300ms) o 'CRITICAL' (>700ms)
    """
    if not is_enabled():
        return

    action_name = _get_route_name(method, path, rule)
    severity = 'LENTA' if level == 'WARNING' else 'MUY LENTA'

    log_entry = f"""
[{level}] {_get_timestamp()}
────────────────────────────────────────
Ruta {severity}: {action_name}
Detalle: {method} {path}
Tiempo: {time_ms:.0f} ms (umbral: {THRESHOLD_WARNING if level == 'WARNING' else THRESHOLD_CRITICAL} ms)
────────────────────────────────────────
"""

    _write_log(SLOW_ROUTES_LOG, log_entry)


# ═══════════════════════════════════════════════════════════════════════════
# 2️⃣ HOOKS PARA FLASK (before/after request)
# ═══════════════════════════════════════════════════════════════════════════

def init_profiling(app):
    """
    Inicializa el sistema de profiling en una app Flask.
    Registra hooks before_request y after_request.

    Uso:
        from app_kasir.performance_logger import init_profiling
        init_profiling(app)
    """
    configure(
        logs_dir=app.config.get('LOGS_DIR'),
        enabled=app.config.get('ENABLE_PROFILING', True)
    )
    if not is_enabled():
        return

    @app.before_request
    def _start_timer():
        from flask import g
        g.start_time = time.perf_counter()

    @app.after_request
    def _log_request(response):
        from flask import g, request

        if not hasattr(g, 'start_time'):
            return response

        elapsed = (time.perf_counter() - g.start_time) * 1000  # ms

        method = request.method
        path = request.path
        rule = str(request.url_rule) if request.url_rule else path

        if path.startswith('/static'):
            return response

        log_route_performance(method, path, rule, elapsed, response.status_code)

        if elapsed >= THRESHOLD_CRITICAL:
            log_slow_route(method, path, rule, elapsed, 'CRITICAL')
        elif elapsed >= THRESHOLD_WARNING:
            log_slow_route(method, path, rule, elapsed, 'WARNING')

        return response


# ═══════════════════════════════════════════════════════════════════════════
# 3️⃣ DECORADOR PARA FUNCIONES CLAVE
# ═══════════════════════════════════════════════════════════════════════════

def profile_function(func=None, name=None):
    """
    Decorador para medir rendimiento de operaciones críticas.

    Uso:
        @profile_function
        def add_product(self, data):
            ...

        @profile_function(name="Cobrar carrito")
        def checkout(self, payment):
            ...

    Registra:
        - Cantidad de llamadas
        - Tiempo promedio
        - Tiempo máximo
    """
    def decorator(fn):
        func_name = name or fn.__name__

        @wraps(fn)
        def wrapper(*args, **kwargs):
            if not is_enabled():
                return fn(*args, **kwargs)

            start = time.perf_counter()
            try:
                return fn(*args, **kwargs)
            finally:
                elapsed_ms = (time.perf_counter() - start) * 1000

                with _stats_lock:
                    stats = _function_stats[func_name]
                    stats['calls'] += 1
                    stats['total_time'] += elapsed_ms
                    if elapsed_ms > stats['max_time']:
                        stats['max_time'] = elapsed_ms

                if elapsed_ms >= THRESHOLD_WARNING:
                    _log_slow_function_call(func_name, elapsed_ms)

        return wrapper

    # Permitir uso sin paréntesis: @profile_function
    if func is not None:
        return decorator(func)
    return decorator


def _log_slow_function_call(func_name, time_ms):
    """Registra una llamada lenta a una función"""
    severity = 'CRÍTICO' if time_ms >= THRESHOLD_CRITICAL else 'LENTO'

    log_entry = f"""
[{severity}] {_get_timestamp()}
Función: {func_name}
Tiempo: {time_ms:.0f} ms
────────────────────────────────────────
"""

    _write_log(SLOW_FUNCTIONS_LOG, log_entry)


# ═══════════════════════════════════════════════════════════════════════════
# 4️⃣ REPORTE DE ESTADÍSTICAS
# ═══════════════════════════════════════════════════════════════════════════

def get_function_stats():
    """
    Obtiene estadísticas de todas las funciones perfiladas.

    Returns:
        dict: {nombre: {calls, avg_time, max_time}}
    """
    with _stats_lock:
        result = {}
        for func_name, stats in _function_stats.items():
            calls = stats['calls']
            avg = stats['total_time'] / calls if calls > 0 else 0
            result[func_name] = {
                'calls': calls,
                'avg_time': round(avg, 2),
                'max_time': round(stats['max_time'], 2)
            }
        return result


def reset_stats():
    """Reinicia todas las estadísticas (útil para testing)"""
    with _stats_lock:
        _function_stats.clear()


__all__ = [
    'configure',
    'init_profiling',
    'profile_function',
    'log_event',
    'get_function_stats',
    'reset_stats',
]
