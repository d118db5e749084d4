# ==============================================================================
# SERVICIO DE CARRITO
# ==============================================================================
# Centraliza toda la lógica de negocio relacionada con el carrito de compras.
# El carrito vive solo en memoria: nunca se persiste.
# ==============================================================================

from typing import Any, Dict, List

from app_kasir.models import CartLine
from app_kasir.services.inventory_service import InventoryService


class CartService:
    """
    Servicio para gestión del carrito de compras.

    Responsabilidades:
    - Agregar/quitar líneas del carrito
    - Validar contra el stock actual (la cantidad nunca supera el stock)
    - Calcular totales (siempre recalculados, nunca en caché)

    Los rechazos por reglas de negocio retornan {'ok': False, 'error': ...}
    y dejan el carrito sin cambios.
    """

    def __init__(self, inventory_service: InventoryService):
        """
        Args:
            inventory_service: Servicio de inventario
        """
        self.inventory_service = inventory_service
        self._lines: List[CartLine] = []

    @property
    def lines(self) -> List[CartLine]:
        return self._lines

    def is_empty(self) -> bool:
        return not self._lines

    def get_cart_total(self) -> float:
        """Suma de price * quantity de todas las líneas."""
        return sum(line.subtotal for line in self._lines)

    def _summary(self) -> Dict[str, Any]:
        return {
            'total_items': sum(line.quantity for line in self._lines),
            'total': self.get_cart_total(),
            'items_count': len(self._lines)
        }

    def get_cart(self) -> Dict[str, Any]:
        """
        Obtiene el carrito con totales calculados.

        Returns:
            Dict con items, total_items, total, items_count
        """
        cart = self._summary()
        cart['items'] = [line.to_dict() for line in self._lines]
        return cart

    def _ok(self, mensaje: str) -> Dict[str, Any]:
        return {'ok': True, 'mensaje': mensaje, 'carrito': self._summary()}

    def add_to_cart(self, product_id: int) -> Dict[str, Any]:
        """
        Agrega una unidad de un producto al carrito.

        Args:
            product_id: ID del producto

        Returns:
            Dict con resultado (ok, error, carrito)
        """
        product = self.inventory_service.get_product(product_id)
        if product is None:
            return {'ok': False, 'error': 'Producto no encontrado'}

        if product.stock <= 0:
            return {'ok': False, 'error': 'Stock agotado'}

        existing = None
        for line in self._lines:
            if line.product_id == product_id:
                existing = line
                break

        if existing:
            if existing.quantity >= product.stock:
                return {
                    'ok': False,
                    'error': f'Stock insuficiente. Disponible: {product.stock}',
                    'disponible': product.stock
                }
            existing.quantity += 1
        else:
            self._lines.append(CartLine(
                product_id=product.id,
                name=product.name,
                price=product.price,
                quantity=1
            ))

        return self._ok('Producto agregado al carrito')

    def update_cart_quantity(self, index: int, delta: int) -> Dict[str, Any]:
        """
        Cambia la cantidad de una línea. Si llega a 0 o menos, la elimina.

        Args:
            index: Posición de la línea en el carrito
            delta: Cambio de cantidad (+1 / -1 normalmente)
        """
        if not 0 <= index < len(self._lines):
            return {'ok': False, 'error': 'Línea de carrito inválida'}

        line = self._lines[index]
        nueva_cantidad = line.quantity + delta

        if nueva_cantidad <= 0:
            return self.remove_from_cart(index)

        product = self.inventory_service.get_product(line.product_id)
        if product is None:
            return {'ok': False, 'error': 'Producto no encontrado'}

        if nueva_cantidad > product.stock:
            return {
                'ok': False,
                'error': f'Stock insuficiente. Disponible: {product.stock}',
                'disponible': product.stock
            }

        line.quantity = nueva_cantidad
        return self._ok('Cantidad actualizada')

    def remove_from_cart(self, index: int) -> Dict[str, Any]:
        """Elimina una línea del carrito."""
        if not 0 <= index < len(self._lines):
            return {'ok': False, 'error': 'Línea de carrito inválida'}
        del self._lines[index]
        return self._ok('Producto eliminado del carrito')

    def clear_cart(self, confirmed: bool = False) -> Dict[str, Any]:
        """
        Vacía el carrito. Un carrito con líneas requiere confirmación.

        Args:
            confirmed: El usuario confirmó la acción
        """
        if self._lines and not confirmed:
            return {
                'ok': False,
                'requires_confirmation': True,
                'error': '¿Seguro que desea vaciar el carrito?'
            }
        self._lines = []
        return self._ok('Carrito vaciado')

    def validate_cart(self) -> Dict[str, Any]:
        """
        Valida que todas las líneas sigan teniendo stock suficiente.

        Returns:
            Dict con ok, errors si hay problemas
        """
        if not self._lines:
            return {'ok': False, 'error': 'El carrito está vacío'}

        errors = []
        for line in self._lines:
            product = self.inventory_service.get_product(line.product_id)
            if product is None:
                errors.append(f"Producto {line.name} ya no existe")
                continue
            if line.quantity > product.stock:
                errors.append(
                    f"Stock insuficiente para {product.name}. "
                    f"Solicitado: {line.quantity}, Disponible: {product.stock}"
                )

        if errors:
            return {'ok': False, 'error': errors[0], 'errors': errors}

        return {'ok': True, 'mensaje': 'Carrito válido', 'items_count': len(self._lines)}
