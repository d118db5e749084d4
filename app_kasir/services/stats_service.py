# ==============================================================================
# SERVICIO DE ESTADÍSTICAS DE VENTAS
# ==============================================================================
# Vistas derivadas (sin estado persistido): ventas de hoy, ingresos totales,
# productos más vendidos y resumen para reportes.
#
# "Hoy" se evalúa en la zona horaria local del proceso.
# ==============================================================================

from typing import Any, Callable, Dict, List, Optional
from datetime import date, datetime, timezone

from app_kasir.models import Product, Transaction


class StatsService:
    """
    Servicio para cálculo de estadísticas de ventas.

    Las fuentes de datos se inyectan como funciones para no acoplarse
    al almacenamiento.
    """

    def __init__(
        self,
        transactions_loader: Callable[[], List[Transaction]] = None,
        low_stock_loader: Callable[[], List[Product]] = None,
        now_func: Callable[[], datetime] = None
    ):
        """
        Args:
            transactions_loader: Función que retorna la lista de transacciones
            low_stock_loader: Función que retorna los productos con stock bajo
            now_func: Reloj inyectable (UTC)
        """
        self._transactions_loader = transactions_loader
        self._low_stock_loader = low_stock_loader
        self._now = now_func or (lambda: datetime.now(timezone.utc))

    def _load_transactions(self) -> List[Transaction]:
        if self._transactions_loader:
            return self._transactions_loader()
        return []

    def _local_date(self, moment: Optional[datetime]) -> Optional[date]:
        """Fecha de calendario en la zona horaria local."""
        if moment is None:
            return None
        return moment.astimezone().date()

    # =========================================================================
    # VENTAS DEL DÍA
    # =========================================================================

    def get_today_transactions(self) -> List[Transaction]:
        """Transacciones cuya fecha local es la de hoy."""
        today = self._local_date(self._now())
        return [
            t for t in self._load_transactions()
            if self._local_date(t.timestamp) == today
        ]

    def get_today_sales(self) -> float:
        return sum(t.total for t in self.get_today_transactions())

    def get_today_stats(self) -> Dict[str, Any]:
        transactions = self.get_today_transactions()
        return {
            'sales': sum(t.total for t in transactions),
            'transactions': len(transactions),
        }

    # =========================================================================
    # TOTALES Y RANKING
    # =========================================================================

    def get_total_revenue(self) -> float:
        return sum(t.total for t in self._load_transactions())

    def get_low_stock_products(self) -> List[Product]:
        if self._low_stock_loader:
            return self._low_stock_loader()
        return []

    def get_top_products(self, limit: int = 5) -> List[Dict[str, Any]]:
        """
        Productos más vendidos por cantidad.

        Agrupa por productId todos los ítems vendidos; los empates conservan
        el orden en que aparece cada producto por primera vez.

        Returns:
            [{productId, name, quantity, revenue}, ...] (máximo `limit`)
        """
        product_sales: Dict[int, Dict[str, Any]] = {}

        for transaction in self._load_transactions():
            for item in transaction.items:
                entry = product_sales.get(item.product_id)
                if entry is None:
                    entry = product_sales[item.product_id] = {
                        'productId': item.product_id,
                        'name': item.name,
                        'quantity': 0,
                        'revenue': 0,
                    }
                entry['quantity'] += item.quantity
                entry['revenue'] += item.price * item.quantity

        ranked = sorted(product_sales.values(), key=lambda e: e['quantity'], reverse=True)
        return ranked[:max(0, limit)]

    def get_report_summary(self, limit: int = 10) -> Dict[str, Any]:
        """Resumen para la pantalla de reportes."""
        transactions = self._load_transactions()
        total_revenue = sum(t.total for t in transactions)
        count = len(transactions)
        return {
            'total_revenue': total_revenue,
            'total_transactions': count,
            'average_transaction': total_revenue / count if count > 0 else 0,
            'top_products': self.get_top_products(limit),
        }
