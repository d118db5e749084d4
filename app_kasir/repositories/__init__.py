# ==============================================================================
# CAPA DE REPOSITORIOS - Acceso a datos
# ==============================================================================
# Esta capa encapsula todo el acceso a la persistencia (archivos JSON, uno por
# clave de almacenamiento). Las interfaces (métodos públicos) son las que usan
# los servicios.
#
# ESTRUCTURA:
# ├── interfaces.py                 → Protocolos/Interfaces
# ├── base.py                       → Clases base JSON (DictRepository, ListRepository)
# ├── product_repository.py         → Acceso a products.json
# ├── transaction_repository.py     → Acceso a transactions.json
# ├── stock_history_repository.py   → Acceso a stockHistory.json
# └── sequence_repository.py        → Acceso a sequences.json
# ==============================================================================

# Interfaces
from .interfaces import (
    ICollectionRepository,
    IProductRepository,
    ITransactionRepository,
    IStockHistoryRepository,
    ISequenceRepository,
)

# Implementaciones concretas (JSON)
from .base import BaseRepository, DictRepository, ListRepository, StorageError, flush_all
from .product_repository import ProductRepository, DEFAULT_PRODUCTS
from .transaction_repository import TransactionRepository
from .stock_history_repository import StockHistoryRepository
from .sequence_repository import SequenceRepository

__all__ = [
    # Interfaces
    'ICollectionRepository',
    'IProductRepository',
    'ITransactionRepository',
    'IStockHistoryRepository',
    'ISequenceRepository',

    # Clases base
    'BaseRepository',
    'DictRepository',
    'ListRepository',
    'StorageError',
    'flush_all',

    # Implementaciones JSON
    'ProductRepository',
    'DEFAULT_PRODUCTS',
    'TransactionRepository',
    'StockHistoryRepository',
    'SequenceRepository',
]
