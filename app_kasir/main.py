from flask import Flask, request, current_app
from werkzeug.exceptions import HTTPException
import math
import os

# Sistema de profiling interno
from app_kasir.performance_logger import init_profiling

# ═══════════════════════════════════════════════════════════════════════════
# STORE - Lógica de negocio
# ═══════════════════════════════════════════════════════════════════════════
# Las rutas solo convierten/validan la entrada y delegan al Store.
# Los resultados de negocio ({'ok': False, 'error': ...}) se devuelven con 400.
# ═══════════════════════════════════════════════════════════════════════════
from app_kasir.config import load_config
from app_kasir.repositories import StorageError
from app_kasir.store import Store


# Helpers
def to_int(v, default=None):
    try:
        return int(v)
    except (TypeError, ValueError, OverflowError):
        return default


def to_float(v, default=None):
    """Número finito o default (rechaza nan e inf)."""
    try:
        value = float(v)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(value):
        return default
    return value


def get_store() -> Store:
    return current_app.extensions['kasir_store']


def product_payload(store, product):
    """Producto serializado con su nivel de stock."""
    data = product.to_dict()
    data['level'] = store.get_stock_level(product).value
    data['lowStock'] = product.is_low_stock
    return data


def transaction_payload(transaction):
    return transaction.to_dict()


def result_response(result):
    """Resultado de negocio → (json, status)."""
    return result, (200 if result.get('ok') else 400)


# ═══════════════════════════════════════════════════════════════════════════
# VALIDACIÓN DEL FORMULARIO DE PRODUCTO
# ═══════════════════════════════════════════════════════════════════════════

def validate_product_form(data, partial=False):
    """
    Convierte y valida los campos de un producto recibidos por la API.

    Args:
        data: JSON recibido
        partial: True para edición (solo se validan los campos presentes)

    Returns:
        (campos_limpios, error) - error es None si todo es válido
    """
    if not isinstance(data, dict):
        return None, "Datos inválidos"

    clean = {}

    for field in ('code', 'name'):
        if field in data or not partial:
            value = str(data.get(field) or '').strip()
            if not value:
                return None, f"El campo {field} es obligatorio"
            clean[field] = value

    if 'category' in data or not partial:
        clean['category'] = str(data.get('category') or '').strip()

    if 'price' in data or not partial:
        price = to_float(data.get('price'))
        if price is None or price < 0:
            return None, "Precio inválido"
        clean['price'] = price

    if 'stock' in data or not partial:
        stock = to_int(data.get('stock'))
        if stock is None:
            return None, "Stock inválido"
        clean['stock'] = stock

    min_key = 'minStock' if 'minStock' in data else 'min_stock'
    if min_key in data or not partial:
        min_stock = to_int(data.get(min_key))
        if min_stock is None or min_stock < 0:
            return None, "Stock mínimo inválido"
        clean['minStock'] = min_stock

    return clean, None


# ═══════════════════════════════════════════════════════════════════════════
# APP FACTORY
# ═══════════════════════════════════════════════════════════════════════════

def create_app(overrides=None, store=None):
    """
    Construye la aplicación Flask con su Store.

    Args:
        overrides: Valores de configuración (tests, despliegue)
        store: Store ya construido (opcional)
    """
    config = load_config(overrides)

    app = Flask(__name__)
    app.config.update(config)

    app.extensions['kasir_store'] = store or Store(config)

    init_profiling(app)
    register_error_handlers(app)
    register_routes(app)

    @app.after_request
    def set_security_headers(response):
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['Referrer-Policy'] = 'no-referrer-when-downgrade'
        if request.is_secure:
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
        return response

    return app


def register_error_handlers(app):

    @app.errorhandler(StorageError)
    def handle_storage_error(exc):
        # Los cambios quedan en memoria; POST /api/storage/flush reintenta
        return {"ok": False, "error": f"Almacenamiento no disponible: {exc}", "key": exc.key}, 503

    @app.errorhandler(HTTPException)
    def handle_http_error(exc):
        if request.path.startswith('/api/'):
            return {"ok": False, "error": exc.description}, exc.code
        return exc


# ═══════════════════════════════════════════════════════════════════════════
# RUTAS
# ═══════════════════════════════════════════════════════════════════════════

def register_routes(app):

    # ───────────────────────────────────────────────────────────────────────
    # API: CATÁLOGO
    # ───────────────────────────────────────────────────────────────────────

    @app.route("/api/products", methods=["GET"])
    def api_products():
        """Listar productos (filtro ?q= por nombre o código)"""
        store = get_store()
        term = (request.args.get("q") or "").strip()
        return {
            "ok": True,
            "products": [product_payload(store, p) for p in store.search_products(term)]
        }

    @app.route("/api/products", methods=["POST"])
    def api_add_product():
        store = get_store()
        fields, error = validate_product_form(request.get_json(silent=True))
        if error:
            return {"ok": False, "error": error}, 400

        product = store.add_product(fields)
        return {
            "ok": True,
            "mensaje": f"Producto {product.name} agregado",
            "product": product_payload(store, product)
        }, 201

    @app.route("/api/products/<int:pid>", methods=["GET"])
    def api_get_product(pid):
        store = get_store()
        product = store.get_product(pid)
        if product is None:
            return {"ok": False, "error": "Producto no encontrado"}, 404
        return {"ok": True, "product": product_payload(store, product)}

    @app.route("/api/products/<int:pid>", methods=["PUT"])
    def api_update_product(pid):
        store = get_store()
        fields, error = validate_product_form(request.get_json(silent=True), partial=True)
        if error:
            return {"ok": False, "error": error}, 400

        product = store.update_product(pid, fields)
        if product is None:
            return {"ok": False, "error": "Producto no encontrado"}, 404
        return {
            "ok": True,
            "mensaje": "Producto actualizado",
            "product": product_payload(store, product)
        }

    @app.route("/api/products/<int:pid>", methods=["DELETE"])
    def api_delete_product(pid):
        store = get_store()
        removed = store.delete_product(pid)
        if removed is None:
            return {"ok": False, "error": "Producto no encontrado"}, 404
        return {"ok": True, "mensaje": f"Producto {removed.name} eliminado"}

    # ───────────────────────────────────────────────────────────────────────
    # API: STOCK
    # ───────────────────────────────────────────────────────────────────────

    @app.route("/api/stock", methods=["GET"])
    def api_stock():
        """Tabla de stock con niveles y resumen"""
        store = get_store()
        return {
            "ok": True,
            "products": [product_payload(store, p) for p in store.get_all_products()],
            "summary": store.get_stock_summary()
        }

    @app.route("/api/stock/<int:pid>", methods=["POST"])
    def api_update_stock(pid):
        """Ajuste manual de stock (change con signo + nota)"""
        store = get_store()
        data = request.get_json(silent=True) or {}
        change = to_int(data.get("change"))
        note = str(data.get("note") or "").strip()

        if change is None or change == 0:
            return {"ok": False, "error": "Cambio de stock inválido"}, 400

        product = store.update_stock(pid, change, note)
        if product is None:
            return {"ok": False, "error": "Producto no encontrado"}, 404

        return {
            "ok": True,
            "mensaje": f"Stock de {product.name} actualizado",
            "product": product_payload(store, product)
        }

    @app.route("/api/stock/history", methods=["GET"])
    def api_stock_history():
        store = get_store()
        raw_pid = request.args.get("product_id")
        product_id = None
        if raw_pid not in (None, ""):
            product_id = to_int(raw_pid)
            if product_id is None:
                return {"ok": False, "error": "product_id inválido"}, 400

        entries = store.get_stock_history(product_id)
        return {"ok": True, "history": [e.to_dict() for e in entries]}

    # ───────────────────────────────────────────────────────────────────────
    # API: CARRITO
    # ───────────────────────────────────────────────────────────────────────

    @app.route("/api/cart", methods=["GET"])
    def api_cart():
        """Ver contenido actual del carrito"""
        cart = get_store().get_cart()
        cart["ok"] = True
        return cart

    @app.route("/api/cart/add", methods=["POST"])
    def api_cart_add():
        data = request.get_json(silent=True) or {}
        pid = to_int(data.get("product_id", data.get("productId")))
        if pid is None:
            return {"ok": False, "error": "ID de producto inválido"}, 400
        return result_response(get_store().add_to_cart(pid))

    @app.route("/api/cart/update", methods=["POST"])
    def api_cart_update():
        data = request.get_json(silent=True) or {}
        index = to_int(data.get("index"))
        delta = to_int(data.get("delta"))
        if index is None or delta is None:
            return {"ok": False, "error": "Índice o cantidad inválida"}, 400
        return result_response(get_store().update_cart_quantity(index, delta))

    @app.route("/api/cart/remove", methods=["POST"])
    def api_cart_remove():
        data = request.get_json(silent=True) or {}
        index = to_int(data.get("index"))
        if index is None:
            return {"ok": False, "error": "Índice inválido"}, 400
        return result_response(get_store().remove_from_cart(index))

    @app.route("/api/cart/clear", methods=["POST"])
    def api_cart_clear():
        data = request.get_json(silent=True) or {}
        confirmed = data.get("confirmed") in (True, 1, "1", "true", "si", "sí")
        return result_response(get_store().clear_cart(confirmed=confirmed))

    # ───────────────────────────────────────────────────────────────────────
    # API: COBRO
    # ───────────────────────────────────────────────────────────────────────

    @app.route("/api/checkout/preview", methods=["POST"])
    def api_checkout_preview():
        """Vuelto en vivo mientras se escribe el pago"""
        data = request.get_json(silent=True) or {}
        payment = to_float(data.get("payment"), 0.0)
        preview = get_store().preview_change(payment)
        preview["ok"] = True
        return preview

    @app.route("/api/checkout", methods=["POST"])
    def api_checkout():
        data = request.get_json(silent=True) or {}
        payment = to_float(data.get("payment"))
        if payment is None or payment < 0:
            return {"ok": False, "error": "Monto de pago inválido"}, 400

        result = get_store().checkout(payment)
        if not result.get("ok"):
            return result, 400

        return {
            "ok": True,
            "mensaje": result["mensaje"],
            "transaction": transaction_payload(result["transaction"]),
            "change": result["change"]
        }

    # ───────────────────────────────────────────────────────────────────────
    # API: HISTORIAL Y REPORTES
    # ───────────────────────────────────────────────────────────────────────

    @app.route("/api/transactions", methods=["GET"])
    def api_transactions():
        """Historial de ventas (más recientes primero)"""
        transactions = get_store().get_transaction_history()
        return {"ok": True, "transactions": [transaction_payload(t) for t in transactions]}

    @app.route("/api/transactions/<int:tid>", methods=["GET"])
    def api_transaction_detail(tid):
        transaction = get_store().get_transaction(tid)
        if transaction is None:
            return {"ok": False, "error": "Transacción no encontrada"}, 404
        return {"ok": True, "transaction": transaction_payload(transaction)}

    @app.route("/api/reports/today", methods=["GET"])
    def api_report_today():
        store = get_store()
        stats = store.get_today_stats()
        return {
            "ok": True,
            "sales": stats["sales"],
            "transactions": stats["transactions"],
            "top_products": store.get_top_products(),
            "low_stock_count": len(store.get_low_stock_products())
        }

    @app.route("/api/reports/summary", methods=["GET"])
    def api_report_summary():
        limit = to_int(request.args.get("limit"))
        if limit is not None and limit <= 0:
            return {"ok": False, "error": "limit debe ser mayor a 0"}, 400
        summary = get_store().get_report_summary(limit)
        summary["ok"] = True
        return summary

    @app.route("/api/reports/low-stock", methods=["GET"])
    def api_report_low_stock():
        store = get_store()
        return {
            "ok": True,
            "products": [product_payload(store, p) for p in store.get_low_stock_products()]
        }

    # ───────────────────────────────────────────────────────────────────────
    # API: ALMACENAMIENTO
    # ───────────────────────────────────────────────────────────────────────

    @app.route("/api/storage/flush", methods=["POST"])
    def api_storage_flush():
        """Reintenta guardar las colecciones pendientes"""
        store = get_store()
        store.flush()
        store.log_event('ALMACENAMIENTO', 'Colecciones pendientes guardadas')
        return {"ok": True, "mensaje": "Datos guardados"}


if __name__ == "__main__":
    # Configuración para desarrollo local
    # En producción usar WSGI (gunicorn wsgi:app)
    DEBUG = os.environ.get('FLASK_DEBUG', '0') == '1'
    HOST = os.environ.get('FLASK_HOST', '0.0.0.0')
    PORT = int(os.environ.get('FLASK_PORT', 5000))

    if not DEBUG:
        print(f"\n{'='*50}")
        print(f"  Kasir iniciado en http://{HOST}:{PORT}")
        print(f"  Acceso local: http://localhost:{PORT}")
        print(f"{'='*50}\n")

    create_app().run(host=HOST, port=PORT, debug=DEBUG)
