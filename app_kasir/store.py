# ==============================================================================
# STORE - Catálogo + carrito + transacciones + historial de stock
# ==============================================================================
# Punto único de acceso a la lógica de negocio. Se construye explícitamente
# (una instancia por aplicación o por test) y conecta repositorios y servicios.
#
# Después de cada operación que modifica estado notifica a los suscriptores:
#   store.subscribe(lambda event, payload: ...)
# Eventos: 'products', 'stock', 'transactions', 'cart'
#
# Errores:
#   - No encontrado          → None
#   - Regla de negocio       → {'ok': False, 'error': ...}
#   - Fallo de almacenamiento → StorageError (el estado en memoria se conserva,
#                               store.flush() reintenta la escritura)
# ==============================================================================

from functools import wraps
from typing import Any, Callable, Dict, List, Optional
from datetime import datetime

from app_kasir.config import load_config
from app_kasir.models import Product, StockHistoryEntry, StockLevel, Transaction
from app_kasir.performance_logger import log_event, profile_function
from app_kasir.repositories import (
    ProductRepository,
    TransactionRepository,
    StockHistoryRepository,
    SequenceRepository,
    StorageError,
    flush_all,
)
from app_kasir.services import (
    StockHistoryService,
    InventoryService,
    SalesService,
    StatsService,
    CartService,
    CheckoutService,
)


Listener = Callable[[str, Any], None]


def _changed(result: Any) -> bool:
    """Indica si el resultado de una operación implica un cambio de estado."""
    if result is None:
        return False
    if isinstance(result, dict):
        return bool(result.get('ok'))
    return True


def _mutation(*events: str):
    """
    Envuelve una operación que modifica estado:
    notifica a los suscriptores y registra los fallos de almacenamiento.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(self, *args, **kwargs):
            try:
                result = fn(self, *args, **kwargs)
            except StorageError as exc:
                self.log_event('ALMACENAMIENTO', f'No se pudo guardar ({fn.__name__})',
                               key=exc.key, error=exc)
                # El cambio ya está aplicado en memoria
                self._notify(events, None)
                raise
            if _changed(result):
                self._notify(events, result)
            return result
        return wrapper
    return decorator


class Store:
    """
    Store de la aplicación.

    Uso:
        store = Store({'DATA_DIR': '/ruta/datos'})
        product = store.add_product({'code': 'P100', 'name': 'Teh Pucuk', ...})
        store.add_to_cart(product.id)
        result = store.checkout(10000)
    """

    def __init__(self, config: Dict[str, Any] = None, now_func: Callable[[], datetime] = None):
        """
        Inicializa el store y carga las colecciones desde el almacenamiento.

        Args:
            config: Valores de configuración (se combinan con el entorno)
            now_func: Reloj inyectable (UTC) para tests
        """
        self.config = load_config(config)
        self._base_path = self.config['DATA_DIR']
        self._now = now_func
        self._listeners: List[Listener] = []

        # Repositorios (lazy loading)
        self._product_repo: Optional[ProductRepository] = None
        self._transaction_repo: Optional[TransactionRepository] = None
        self._stock_history_repo: Optional[StockHistoryRepository] = None
        self._sequence_repo: Optional[SequenceRepository] = None

        # Servicios (lazy loading)
        self._history_service: Optional[StockHistoryService] = None
        self._inventory_service: Optional[InventoryService] = None
        self._sales_service: Optional[SalesService] = None
        self._stats_service: Optional[StatsService] = None
        self._cart_service: Optional[CartService] = None
        self._checkout_service: Optional[CheckoutService] = None

        self.reload()

    # =========================================================================
    # REPOSITORIOS
    # =========================================================================

    @property
    def product_repo(self) -> ProductRepository:
        if self._product_repo is None:
            self._product_repo = ProductRepository(
                self._base_path,
                seed_defaults=self.config['SEED_DEFAULT_PRODUCTS']
            )
        return self._product_repo

    @property
    def transaction_repo(self) -> TransactionRepository:
        if self._transaction_repo is None:
            self._transaction_repo = TransactionRepository(self._base_path)
        return self._transaction_repo

    @property
    def stock_history_repo(self) -> StockHistoryRepository:
        if self._stock_history_repo is None:
            self._stock_history_repo = StockHistoryRepository(self._base_path)
        return self._stock_history_repo

    @property
    def sequence_repo(self) -> SequenceRepository:
        if self._sequence_repo is None:
            self._sequence_repo = SequenceRepository(self._base_path)
        return self._sequence_repo

    # =========================================================================
    # SERVICIOS
    # =========================================================================

    @property
    def history_service(self) -> StockHistoryService:
        if self._history_service is None:
            self._history_service = StockHistoryService(
                self.stock_history_repo,
                self.sequence_repo,
                now_func=self._now
            )
        return self._history_service

    @property
    def inventory_service(self) -> InventoryService:
        if self._inventory_service is None:
            self._inventory_service = InventoryService(
                self.product_repo,
                self.sequence_repo,
                self.history_service,
                stock_floor_policy=self.config['STOCK_FLOOR_POLICY']
            )
        return self._inventory_service

    @property
    def sales_service(self) -> SalesService:
        if self._sales_service is None:
            self._sales_service = SalesService(
                self.transaction_repo,
                self.sequence_repo,
                self.inventory_service,
                record_sale_history=self.config['RECORD_SALE_STOCK_HISTORY'],
                now_func=self._now
            )
        return self._sales_service

    @property
    def stats_service(self) -> StatsService:
        if self._stats_service is None:
            self._stats_service = StatsService(
                transactions_loader=self.transaction_repo.load,
                low_stock_loader=self.inventory_service.get_low_stock_products,
                now_func=self._now
            )
        return self._stats_service

    @property
    def cart_service(self) -> CartService:
        if self._cart_service is None:
            self._cart_service = CartService(self.inventory_service)
        return self._cart_service

    @property
    def checkout_service(self) -> CheckoutService:
        if self._checkout_service is None:
            self._checkout_service = CheckoutService(
                self.cart_service,
                self.sales_service,
                now_func=self._now
            )
        return self._checkout_service

    # =========================================================================
    # SUSCRIPTORES
    # =========================================================================

    def subscribe(self, listener: Listener) -> None:
        """Registra una función listener(event, payload)."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, events, payload: Any) -> None:
        for event in events:
            for listener in list(self._listeners):
                listener(event, payload)

    # =========================================================================
    # PERSISTENCIA
    # =========================================================================

    def reload(self) -> None:
        """Carga (o recarga) todas las colecciones desde el almacenamiento."""
        self.product_repo.reload()
        self.transaction_repo.reload()
        self.stock_history_repo.reload()
        self.sequence_repo.reload()

    def flush(self) -> None:
        """
        Reintenta guardar las colecciones con cambios pendientes.

        Raises:
            StorageError: Primer error si el almacenamiento sigue sin aceptar escrituras
        """
        flush_all(self._repositories())

    def has_pending_writes(self) -> bool:
        return any(repo.dirty for repo in self._repositories())

    def _repositories(self):
        return (self.sequence_repo, self.product_repo,
                self.transaction_repo, self.stock_history_repo)

    def log_event(self, kind: str, message: str, **details) -> None:
        """Registra un evento en el directorio de logs de este store."""
        log_event(kind, message, logs_dir=self.config['LOGS_DIR'], **details)

    # =========================================================================
    # CATÁLOGO
    # =========================================================================

    @property
    def products(self) -> List[Product]:
        return self.inventory_service.get_all_products()

    def get_all_products(self) -> List[Product]:
        return self.inventory_service.get_all_products()

    @_mutation('products')
    @profile_function(name='Crear producto')
    def add_product(self, data: Dict[str, Any]) -> Product:
        return self.inventory_service.add_product(data)

    @_mutation('products')
    @profile_function(name='Editar producto')
    def update_product(self, pid: int, patch: Dict[str, Any]) -> Optional[Product]:
        return self.inventory_service.update_product(pid, patch)

    @_mutation('products')
    @profile_function(name='Eliminar producto')
    def delete_product(self, pid: int) -> Optional[Product]:
        return self.inventory_service.delete_product(pid)

    def get_product(self, pid: int) -> Optional[Product]:
        return self.inventory_service.get_product(pid)

    def search_products(self, term: str = '') -> List[Product]:
        return self.inventory_service.search_products(term)

    def get_stock_level(self, product: Product) -> StockLevel:
        return self.inventory_service.get_stock_level(product)

    def get_stock_summary(self) -> Dict[str, int]:
        return self.inventory_service.get_stock_summary()

    # =========================================================================
    # STOCK
    # =========================================================================

    @_mutation('stock', 'products')
    @profile_function(name='Ajustar stock')
    def update_stock(self, pid: int, change: int, note: str = '') -> Optional[Product]:
        product = self.inventory_service.update_stock(pid, change, note)
        if product is not None:
            self.log_event('STOCK', f'Stock de {product.name} ajustado',
                           product_id=pid, change=change, stock=product.stock)
        return product

    @_mutation('stock')
    def add_stock_history(self, entry) -> StockHistoryEntry:
        return self.history_service.add_stock_history(entry)

    def get_stock_history(self, product_id: Optional[int] = None) -> List[StockHistoryEntry]:
        return self.history_service.get_stock_history(product_id)

    # =========================================================================
    # TRANSACCIONES
    # =========================================================================

    @property
    def transactions(self) -> List[Transaction]:
        return self.sales_service.get_all_transactions()

    @_mutation('transactions', 'products', 'stock')
    @profile_function(name='Registrar transacción')
    def add_transaction(self, transaction) -> Transaction:
        return self.sales_service.add_transaction(transaction)

    def get_all_transactions(self) -> List[Transaction]:
        return self.sales_service.get_all_transactions()

    def get_transaction(self, tid: int) -> Optional[Transaction]:
        return self.sales_service.get_transaction(tid)

    def get_transaction_history(self) -> List[Transaction]:
        return self.sales_service.get_transaction_history()

    # =========================================================================
    # ESTADÍSTICAS
    # =========================================================================

    def get_today_transactions(self) -> List[Transaction]:
        return self.stats_service.get_today_transactions()

    def get_today_sales(self) -> float:
        return self.stats_service.get_today_sales()

    def get_today_stats(self) -> Dict[str, Any]:
        return self.stats_service.get_today_stats()

    def get_low_stock_products(self) -> List[Product]:
        return self.stats_service.get_low_stock_products()

    def get_top_products(self, limit: int = None) -> List[Dict[str, Any]]:
        if limit is None:
            limit = self.config['TOP_PRODUCTS_LIMIT']
        return self.stats_service.get_top_products(limit)

    def get_total_revenue(self) -> float:
        return self.stats_service.get_total_revenue()

    def get_report_summary(self, limit: int = None) -> Dict[str, Any]:
        if limit is None:
            limit = self.config['REPORT_TOP_LIMIT']
        return self.stats_service.get_report_summary(limit)

    # =========================================================================
    # CARRITO
    # =========================================================================

    @property
    def cart(self):
        return self.cart_service.lines

    @_mutation('cart')
    def add_to_cart(self, pid: int) -> Dict[str, Any]:
        return self.cart_service.add_to_cart(pid)

    @_mutation('cart')
    def update_cart_quantity(self, index: int, delta: int) -> Dict[str, Any]:
        return self.cart_service.update_cart_quantity(index, delta)

    @_mutation('cart')
    def remove_from_cart(self, index: int) -> Dict[str, Any]:
        return self.cart_service.remove_from_cart(index)

    @_mutation('cart')
    def clear_cart(self, confirmed: bool = False) -> Dict[str, Any]:
        return self.cart_service.clear_cart(confirmed)

    def get_cart(self) -> Dict[str, Any]:
        return self.cart_service.get_cart()

    def get_cart_total(self) -> float:
        return self.cart_service.get_cart_total()

    # =========================================================================
    # COBRO
    # =========================================================================

    def preview_change(self, payment: float) -> Dict[str, Any]:
        return self.checkout_service.preview_change(payment)

    @_mutation('transactions', 'products', 'stock', 'cart')
    @profile_function(name='Cobrar carrito')
    def checkout(self, payment: float) -> Dict[str, Any]:
        result = self.checkout_service.checkout(payment)
        if result.get('ok'):
            transaction = result['transaction']
            self.log_event('VENTA', f"Venta {transaction.transaction_number} registrada",
                           total=transaction.total, items=len(transaction.items))
        else:
            self.log_event('RECHAZO', result.get('error', 'Cobro rechazado'))
        return result
