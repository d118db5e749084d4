# ==============================================================================
# SERVICIO DE HISTORIAL DE STOCK
# ==============================================================================
# Centraliza el registro de cambios de stock (ajustes manuales y ventas).
# El historial solo crece: las entradas nunca se editan ni eliminan.
# ==============================================================================

from typing import Any, Callable, Dict, List, Optional, Union
from datetime import datetime, timezone

from app_kasir.models import StockHistoryEntry, utc_now_iso
from app_kasir.repositories.base import flush_all
from app_kasir.repositories.interfaces import IStockHistoryRepository, ISequenceRepository


class StockHistoryService:
    """
    Servicio para registro y consulta del historial de stock.

    Invariante: new_stock == old_stock + change en cada entrada.
    """

    SEQUENCE_NAME = 'stockHistory'

    def __init__(
        self,
        history_repo: IStockHistoryRepository,
        sequence_repo: ISequenceRepository,
        now_func: Callable[[], datetime] = None
    ):
        """
        Args:
            history_repo: Repositorio del historial
            sequence_repo: Contadores de identificadores
            now_func: Reloj inyectable (UTC)
        """
        self.history_repo = history_repo
        self.sequence_repo = sequence_repo
        self._now = now_func or (lambda: datetime.now(timezone.utc))

    def add_stock_history(
        self,
        entry: Union[StockHistoryEntry, Dict[str, Any]],
        persist: bool = True
    ) -> StockHistoryEntry:
        """
        Registra una entrada con identificador y timestamp nuevos.

        Args:
            entry: Entrada (o diccionario con claves de persistencia)
            persist: Guardar de inmediato; si es False queda pendiente

        Returns:
            Entrada registrada
        """
        if isinstance(entry, dict):
            entry = StockHistoryEntry.from_dict(entry)

        entry.id = self.sequence_repo.next_id(
            self.SEQUENCE_NAME, self.history_repo.ids(), persist=False
        )
        entry.date = utc_now_iso(self._now())
        self.history_repo.load().append(entry)
        self.history_repo.mark_dirty()

        if persist:
            flush_all([self.sequence_repo, self.history_repo])
        return entry

    def record_change(
        self,
        product,
        old_stock: int,
        note: str = '',
        persist: bool = True
    ) -> StockHistoryEntry:
        """Registra el cambio ya aplicado a un producto (old_stock -> product.stock)."""
        return self.add_stock_history(
            StockHistoryEntry(
                product_id=product.id,
                product_name=product.name,
                change=product.stock - old_stock,
                old_stock=old_stock,
                new_stock=product.stock,
                note=note or ''
            ),
            persist=persist
        )

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def get_stock_history(self, product_id: Optional[int] = None) -> List[StockHistoryEntry]:
        """Entradas más recientes primero, opcionalmente de un solo producto."""
        return self.history_repo.get_entries(product_id)
