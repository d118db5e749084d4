# ==============================================================================
# INTERFACES DE REPOSITORIOS
# ==============================================================================
#
# Contratos que deben cumplir los repositorios. Permiten:
#
# 1. INDEPENDENCIA DE ALMACENAMIENTO
#    - Los servicios dependen de interfaces, NO de implementaciones concretas
#    - Cambiar archivos JSON por otra clave-valor solo requiere nueva clase
#
# 2. TESTING
#    - Fácil crear dobles que implementen estas interfaces
#
# ==============================================================================

from typing import Any, Dict, Iterable, List, Optional, Protocol, runtime_checkable

from app_kasir.models import Product, Transaction, StockHistoryEntry


# ==============================================================================
# INTERFACES BASE
# ==============================================================================

@runtime_checkable
class ICollectionRepository(Protocol):
    """
    Colección en memoria persistida como snapshot completo.
    Usado por: Productos, Transacciones, Historial de stock.
    """

    key: str
    dirty: bool

    def load(self) -> List[Any]:
        """Colección completa (desde caché)."""
        ...

    def save(self, items: Optional[List[Any]] = None) -> None:
        """Reescribe el snapshot completo."""
        ...

    def flush(self) -> None:
        """Reintenta guardar cambios pendientes."""
        ...

    def mark_dirty(self) -> None:
        """Marca cambios pendientes sin escribir."""
        ...

    def ids(self) -> Iterable[int]:
        """Identificadores presentes."""
        ...


# ==============================================================================
# INTERFACES ESPECÍFICAS POR DOMINIO
# ==============================================================================

@runtime_checkable
class IProductRepository(ICollectionRepository, Protocol):

    def get_product(self, pid: int) -> Optional[Product]:
        ...

    def remove_product(self, pid: int) -> Optional[Product]:
        ...

    def search(self, term: str) -> List[Product]:
        ...

    def get_low_stock_products(self) -> List[Product]:
        ...


@runtime_checkable
class ITransactionRepository(ICollectionRepository, Protocol):

    def get_transaction(self, tid: int) -> Optional[Transaction]:
        ...

    def newest_first(self) -> List[Transaction]:
        ...


@runtime_checkable
class IStockHistoryRepository(ICollectionRepository, Protocol):

    def get_entries(self, product_id: Optional[int] = None) -> List[StockHistoryEntry]:
        ...


@runtime_checkable
class ISequenceRepository(Protocol):
    """Contadores monotónicos de identificadores."""

    def current(self, name: str) -> int:
        ...

    def next_id(self, name: str, existing_ids: Iterable[int] = (), persist: bool = True) -> int:
        ...

    def load(self) -> Dict[str, Any]:
        ...

    def flush(self) -> None:
        ...
