# ==============================================================================
# REPOSITORIO DE HISTORIAL DE STOCK
# ==============================================================================
# Encapsula todo el acceso a stockHistory.json
# El historial se almacena como lista: [{entrada1}, {entrada2}, ...]
# ==============================================================================

from typing import Any, Dict, List, Optional

from app_kasir.models import StockHistoryEntry
from .base import ListRepository


class StockHistoryRepository(ListRepository):
    """
    Repositorio del historial de cambios de stock.

    Formato de datos en stockHistory.json:
    [
        {
            "id": 1,
            "date": "2024-01-01T10:00:00.000Z",
            "productId": 3,
            "productName": "Aqua 600ml",
            "change": 20,
            "oldStock": 80,
            "newStock": 100,
            "note": "Reposición proveedor"
        }
    ]
    """

    def __init__(self, base_path: str):
        super().__init__(base_path, 'stockHistory')

    def _decode(self, record: Dict[str, Any]) -> StockHistoryEntry:
        return StockHistoryEntry.from_dict(record)

    def get_entries(self, product_id: Optional[int] = None) -> List[StockHistoryEntry]:
        """
        Entradas del historial, más recientes primero.

        Args:
            product_id: Filtrar por producto (opcional)
        """
        entries = self.load()
        if product_id is not None:
            entries = [e for e in entries if e.product_id == product_id]
        return list(reversed(entries))
