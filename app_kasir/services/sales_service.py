# ==============================================================================
# SERVICIO DE VENTAS
# ==============================================================================
# Registra transacciones completadas y descuenta el stock vendido.
# Las transacciones son inmutables: solo se agregan.
# ==============================================================================

from typing import Any, Callable, Dict, List, Optional, Union
from datetime import datetime, timezone

from app_kasir.models import Transaction, utc_now_iso
from app_kasir.repositories.base import flush_all
from app_kasir.repositories.interfaces import ITransactionRepository, ISequenceRepository
from app_kasir.services.inventory_service import InventoryService


class SalesService:
    """
    Servicio para gestión de ventas.

    Responsabilidades:
    - Registrar transacciones (ID, fecha)
    - Descontar stock de cada ítem vendido
    - Consultar historial de ventas
    """

    SEQUENCE_NAME = 'transactions'

    def __init__(
        self,
        transaction_repo: ITransactionRepository,
        sequence_repo: ISequenceRepository,
        inventory_service: InventoryService,
        record_sale_history: bool = True,
        now_func: Callable[[], datetime] = None
    ):
        """
        Args:
            transaction_repo: Repositorio de transacciones
            sequence_repo: Contadores de identificadores
            inventory_service: Servicio de inventario
            record_sale_history: Registrar en el historial de stock los
                descuentos por venta
            now_func: Reloj inyectable (UTC)
        """
        self.transaction_repo = transaction_repo
        self.sequence_repo = sequence_repo
        self.inventory_service = inventory_service
        self.record_sale_history = record_sale_history
        self._now = now_func or (lambda: datetime.now(timezone.utc))

    def add_transaction(self, transaction: Union[Transaction, Dict[str, Any]]) -> Transaction:
        """
        Registra una venta y descuenta el stock de sus ítems.

        Todos los cambios se aplican en memoria antes de escribir. Si alguna
        escritura falla se intentan las demás y luego se lanza el primer error.

        Args:
            transaction: Transacción (o diccionario con claves de persistencia)

        Returns:
            Transacción registrada

        Raises:
            StorageError: Si no se pudo persistir (la venta queda en memoria)
        """
        if isinstance(transaction, dict):
            transaction = Transaction.from_dict(transaction)

        transaction.id = self.sequence_repo.next_id(
            self.SEQUENCE_NAME, self.transaction_repo.ids(), persist=False
        )
        transaction.date = utc_now_iso(self._now())
        self.transaction_repo.load().append(transaction)
        self.transaction_repo.mark_dirty()

        self.inventory_service.apply_sale(
            transaction.items,
            note=f"Venta {transaction.transaction_number}",
            record_history=self.record_sale_history
        )

        self._flush_all()
        return transaction

    def _flush_all(self) -> None:
        """Guarda todas las colecciones pendientes; lanza el primer error."""
        repos = [
            self.sequence_repo,
            self.transaction_repo,
            self.inventory_service.product_repo,
        ]
        history_service = self.inventory_service.history_service
        if history_service:
            repos.append(history_service.history_repo)

        flush_all(repos)

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def get_transaction(self, tid: int) -> Optional[Transaction]:
        return self.transaction_repo.get_transaction(tid)

    def get_all_transactions(self) -> List[Transaction]:
        """Ventas en orden de registro."""
        return self.transaction_repo.load()

    def get_transaction_history(self) -> List[Transaction]:
        """Ventas de la más reciente a la más antigua."""
        return self.transaction_repo.newest_first()
