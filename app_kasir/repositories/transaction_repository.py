# ==============================================================================
# REPOSITORIO DE TRANSACCIONES
# ==============================================================================
# Encapsula todo el acceso a transactions.json
# Las ventas se almacenan como lista en orden de registro (solo se agregan).
# ==============================================================================

from typing import Any, Dict, List, Optional

from app_kasir.models import Transaction
from .base import ListRepository


class TransactionRepository(ListRepository):
    """
    Repositorio de ventas completadas.

    Formato de datos en transactions.json:
    [
        {
            "id": 1,
            "date": "2024-01-01T10:00:00.000Z",
            "items": [{"productId": 1, "name": "...", "price": 3500, "quantity": 2}],
            "total": 7000,
            "payment": 10000,
            "change": 3000,
            "transactionNumber": "TRX1704103200000"
        }
    ]
    """

    def __init__(self, base_path: str):
        super().__init__(base_path, 'transactions')

    def _decode(self, record: Dict[str, Any]) -> Transaction:
        return Transaction.from_dict(record)

    def get_transaction(self, tid: int) -> Optional[Transaction]:
        return self.find_by('id', tid)

    def newest_first(self) -> List[Transaction]:
        """Ventas de la más reciente a la más antigua."""
        return list(reversed(self.load()))
