# ==============================================================================
# SERVICIO DE COBRO
# ==============================================================================
# Convierte el carrito en una transacción: valida el pago, calcula el vuelto,
# registra la venta y vacía el carrito.
# ==============================================================================

from typing import Any, Callable, Dict
from datetime import datetime, timezone

from app_kasir.models import Transaction, TransactionItem
from app_kasir.repositories.base import StorageError
from app_kasir.services.cart_service import CartService
from app_kasir.services.sales_service import SalesService


class CheckoutService:
    """
    Servicio de cobro.

    Responsabilidades:
    - Validar carrito no vacío y con stock suficiente
    - Validar que el pago cubra el total
    - Crear la transacción (copia de las líneas, total, pago, vuelto)
    - Vaciar el carrito solo si la venta quedó registrada
    """

    def __init__(
        self,
        cart_service: CartService,
        sales_service: SalesService,
        now_func: Callable[[], datetime] = None
    ):
        self.cart_service = cart_service
        self.sales_service = sales_service
        self._now = now_func or (lambda: datetime.now(timezone.utc))

    def _transaction_number(self) -> str:
        """Número legible: TRX + epoch actual en milisegundos."""
        return 'TRX' + str(int(self._now().timestamp() * 1000))

    def preview_change(self, payment: float) -> Dict[str, Any]:
        """Vuelto que corresponde a un pago, sin registrar nada."""
        total = self.cart_service.get_cart_total()
        change = payment - total
        return {
            'total': total,
            'payment': payment,
            'change': change,
            'sufficient': change >= 0,
        }

    def checkout(self, payment: float) -> Dict[str, Any]:
        """
        Cobra el carrito actual.

        Args:
            payment: Monto entregado (ya convertido a número por el llamador)

        Returns:
            Dict con resultado (ok, error | transaction, change)

        Raises:
            StorageError: La venta quedó registrada en memoria pero no se pudo
                guardar; el carrito ya fue vaciado
        """
        if self.cart_service.is_empty():
            return {'ok': False, 'error': 'El carrito está vacío'}

        validation = self.cart_service.validate_cart()
        if not validation.get('ok'):
            return validation

        total = self.cart_service.get_cart_total()
        if payment < total:
            return {
                'ok': False,
                'error': 'Pago insuficiente',
                'total': total,
                'payment': payment
            }

        change = payment - total
        transaction = Transaction(
            items=[TransactionItem.from_cart_line(line) for line in self.cart_service.lines],
            total=total,
            payment=payment,
            change=change,
            transaction_number=self._transaction_number()
        )

        try:
            saved = self.sales_service.add_transaction(transaction)
        except StorageError:
            # La venta ya está aplicada en memoria
            self.cart_service.clear_cart(confirmed=True)
            raise

        self.cart_service.clear_cart(confirmed=True)

        return {
            'ok': True,
            'mensaje': f'Venta registrada. Vuelto: {change:g}',
            'transaction': saved,
            'change': change
        }
