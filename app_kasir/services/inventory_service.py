# ==============================================================================
# SERVICIO DE INVENTARIO
# ==============================================================================
# Centraliza toda la lógica de negocio relacionada con productos y stock.
# ==============================================================================

from typing import Any, Dict, Iterable, List, Optional, Union

from app_kasir.models import Product, StockLevel, TransactionItem
from app_kasir.repositories.base import flush_all
from app_kasir.repositories.interfaces import IProductRepository, ISequenceRepository
from app_kasir.services.stock_history_service import StockHistoryService


# Políticas de piso de stock
FLOOR_ALLOW_NEGATIVE = 'allow_negative'
FLOOR_CLAMP_ZERO = 'clamp_zero'
VALID_FLOOR_POLICIES = frozenset([FLOOR_ALLOW_NEGATIVE, FLOOR_CLAMP_ZERO])


class InventoryService:
    """
    Servicio para gestión de inventario.

    Responsabilidades:
    - CRUD de productos (sin validar tipos: el llamador ya los convirtió)
    - Búsqueda y clasificación por nivel de stock
    - Ajustes de stock con registro en historial
    - Descuento de stock por ventas
    """

    SEQUENCE_NAME = 'products'

    def __init__(
        self,
        product_repo: IProductRepository,
        sequence_repo: ISequenceRepository,
        history_service: StockHistoryService = None,
        stock_floor_policy: str = FLOOR_ALLOW_NEGATIVE
    ):
        """
        Args:
            product_repo: Repositorio de productos
            sequence_repo: Contadores de identificadores
            history_service: Servicio de historial de stock (opcional)
            stock_floor_policy: 'allow_negative' o 'clamp_zero'
        """
        if stock_floor_policy not in VALID_FLOOR_POLICIES:
            raise ValueError(f"Política de stock inválida: {stock_floor_policy}")
        self.product_repo = product_repo
        self.sequence_repo = sequence_repo
        self.history_service = history_service
        self.stock_floor_policy = stock_floor_policy

    # =========================================================================
    # OPERACIONES DE PRODUCTOS
    # =========================================================================

    def get_all_products(self) -> List[Product]:
        """Catálogo completo en orden de registro."""
        return self.product_repo.load()

    def get_product(self, pid: int) -> Optional[Product]:
        """Producto por ID o None."""
        return self.product_repo.get_product(pid)

    def add_product(self, data: Union[Dict[str, Any], Product]) -> Product:
        """
        Crea un producto con el siguiente ID de la secuencia.
        No valida códigos duplicados.

        Args:
            data: Campos del producto (camelCase o snake_case)

        Returns:
            Producto guardado

        Raises:
            StorageError: Si no se pudo guardar (el producto queda en memoria)
        """
        if isinstance(data, Product):
            data = data.to_dict()

        product = Product(id=0)
        product.apply_patch(data)
        product.id = self.sequence_repo.next_id(
            self.SEQUENCE_NAME, self.product_repo.ids(), persist=False
        )

        self.product_repo.load().append(product)
        self.product_repo.mark_dirty()
        flush_all([self.sequence_repo, self.product_repo])
        return product

    def update_product(self, pid: int, patch: Dict[str, Any]) -> Optional[Product]:
        """
        Sobrescribe los campos indicados (merge superficial).

        Returns:
            Producto actualizado o None si no existe
        """
        product = self.get_product(pid)
        if product is None:
            return None

        product.apply_patch(patch)
        self.product_repo.save()
        return product

    def delete_product(self, pid: int) -> Optional[Product]:
        """
        Elimina un producto. Si no existe no hace nada.

        Returns:
            Producto eliminado o None
        """
        removed = self.product_repo.remove_product(pid)
        if removed is not None:
            self.product_repo.save()
        return removed

    def search_products(self, term: str = '') -> List[Product]:
        """Productos cuyo nombre o código contiene el texto."""
        if not term:
            return list(self.get_all_products())
        return self.product_repo.search(term)

    # =========================================================================
    # NIVELES DE STOCK
    # =========================================================================

    def get_low_stock_products(self) -> List[Product]:
        return self.product_repo.get_low_stock_products()

    def get_stock_level(self, product: Product) -> StockLevel:
        """BAJO si stock <= mínimo, MEDIO si stock <= 2 * mínimo, OK si no."""
        if product.stock <= product.min_stock:
            return StockLevel.BAJO
        if product.stock <= product.min_stock * 2:
            return StockLevel.MEDIO
        return StockLevel.OK

    def get_stock_summary(self) -> Dict[str, int]:
        return {
            'total_products': len(self.get_all_products()),
            'low_stock_count': len(self.get_low_stock_products()),
        }

    # =========================================================================
    # CONTROL DE STOCK
    # =========================================================================

    def _apply_change(self, product: Product, change: int) -> int:
        """
        Aplica un delta según la política de piso.

        Returns:
            Delta realmente aplicado
        """
        old_stock = product.stock
        new_stock = old_stock + change
        if self.stock_floor_policy == FLOOR_CLAMP_ZERO and change < 0 and new_stock < 0:
            # Nunca por debajo de cero (ni más abajo de un stock ya negativo)
            new_stock = min(old_stock, 0)
        product.stock = new_stock
        return new_stock - old_stock

    def update_stock(self, pid: int, change: int, note: str = '') -> Optional[Product]:
        """
        Ajuste manual de stock con registro en el historial.

        Args:
            pid: ID del producto
            change: Delta con signo
            note: Nota libre

        Returns:
            Producto actualizado o None si no existe
        """
        product = self.get_product(pid)
        if product is None:
            return None

        old_stock = product.stock
        self._apply_change(product, change)
        self.product_repo.mark_dirty()

        repos = [self.product_repo]
        if self.history_service:
            self.history_service.record_change(product, old_stock, note, persist=False)
            repos += [self.sequence_repo, self.history_service.history_repo]

        # Stock e historial se guardan juntos
        flush_all(repos)
        return product

    def apply_sale(
        self,
        items: Iterable[TransactionItem],
        note: str = '',
        record_history: bool = False
    ) -> List[Product]:
        """
        Descuenta el stock vendido. Solo modifica memoria y deja el catálogo
        (y el historial) pendientes de guardar; el llamador hace el flush.
        Los productos que ya no existen se omiten.

        Returns:
            Productos afectados
        """
        affected = []
        for item in items:
            product = self.get_product(item.product_id)
            if product is None:
                continue
            old_stock = product.stock
            self._apply_change(product, -item.quantity)
            affected.append(product)
            if record_history and self.history_service:
                self.history_service.record_change(product, old_stock, note, persist=False)

        self.product_repo.mark_dirty()
        return affected
