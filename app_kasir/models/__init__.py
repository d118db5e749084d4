# ==============================================================================
# CAPA DE MODELOS - Estructuras de datos del sistema
# ==============================================================================
# Este módulo define todas las entidades del dominio usando dataclasses.
# Independientes del mecanismo de persistencia (archivos JSON por clave).
# ==============================================================================

from .entities import (
    # Catálogo
    Product,
    StockLevel,

    # Carrito
    CartLine,

    # Ventas
    Transaction,
    TransactionItem,

    # Historial de stock
    StockHistoryEntry,

    # Utilidades de fecha
    utc_now_iso,
    parse_iso,
)

__all__ = [
    'Product',
    'StockLevel',
    'CartLine',
    'Transaction',
    'TransactionItem',
    'StockHistoryEntry',
    'utc_now_iso',
    'parse_iso',
]
