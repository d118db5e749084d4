# ==============================================================================
# APP KASIR - Punto de venta de una tienda
# ==============================================================================
# Catálogo, carrito, cobro, ajustes de stock, historial de ventas y reportes.
# Uso:
#   from app_kasir import Store
#   store = Store({'DATA_DIR': '/ruta/datos'})
# ==============================================================================

from app_kasir.store import Store

__all__ = ['Store']
