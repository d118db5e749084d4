# ==============================================================================
# CAPA DE SERVICIOS - Lógica de negocio
# ==============================================================================
# Esta capa contiene TODA la lógica de negocio de la aplicación.
#
# PRINCIPIOS:
# 1. Los servicios orquestan operaciones entre repositorios
# 2. Aplican reglas de negocio (stock, pago, carrito)
# 3. Las rutas (controllers) solo llaman al Store
# 4. Los servicios NO conocen el tipo de almacenamiento
#
# ESTRUCTURA:
# ├── inventory_service.py      → Catálogo, niveles y ajustes de stock
# ├── stock_history_service.py  → Historial de cambios de stock
# ├── sales_service.py          → Registro de transacciones
# ├── stats_service.py          → Ventas del día, ranking, reportes
# ├── cart_service.py           → Carrito en memoria
# └── checkout_service.py       → Cobro y vuelto
# ==============================================================================

from app_kasir.services.stock_history_service import StockHistoryService
from app_kasir.services.inventory_service import (
    InventoryService,
    FLOOR_ALLOW_NEGATIVE,
    FLOOR_CLAMP_ZERO,
    VALID_FLOOR_POLICIES,
)
from app_kasir.services.sales_service import SalesService
from app_kasir.services.stats_service import StatsService
from app_kasir.services.cart_service import CartService
from app_kasir.services.checkout_service import CheckoutService

__all__ = [
    'StockHistoryService',
    'InventoryService',
    'FLOOR_ALLOW_NEGATIVE',
    'FLOOR_CLAMP_ZERO',
    'VALID_FLOOR_POLICIES',
    'SalesService',
    'StatsService',
    'CartService',
    'CheckoutService',
]
