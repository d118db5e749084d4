# ==============================================================================
# ENTIDADES DEL DOMINIO - Definiciones de dataclasses
# ==============================================================================
# Cada entidad representa un concepto del negocio del kasir.
# Las claves de persistencia conservan el formato camelCase de los datos
# existentes (products, transactions, stockHistory).
# ==============================================================================

from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any
from enum import Enum
from datetime import datetime, timezone


# ==============================================================================
# ENUMERACIONES
# ==============================================================================

class StockLevel(str, Enum):
    """Nivel de stock mostrado en la tabla de inventario."""
    BAJO = "BAJO"      # stock <= minStock
    MEDIO = "MEDIO"    # stock <= 2 * minStock
    OK = "OK"          # Stock suficiente


def utc_now_iso(now: Optional[datetime] = None) -> str:
    """Timestamp ISO-8601 en UTC con sufijo Z (formato de los datos guardados)."""
    now = now or datetime.now(timezone.utc)
    now = now.astimezone(timezone.utc)
    return now.strftime('%Y-%m-%dT%H:%M:%S.') + f"{now.microsecond // 1000:03d}Z"


def parse_iso(date_str: str) -> Optional[datetime]:
    """
    Parsea una fecha ISO guardada.
    Retorna None si no puede parsear. Fechas sin zona se asumen UTC.
    """
    if not date_str:
        return None
    try:
        parsed = datetime.fromisoformat(date_str.replace('Z', '+00:00'))
    except (ValueError, TypeError, AttributeError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# ==============================================================================
# ENTIDADES DE CATÁLOGO
# ==============================================================================

# Campos conocidos de un producto: clave de persistencia -> atributo
PRODUCT_FIELDS = {
    'id': 'id',
    'code': 'code',
    'name': 'name',
    'category': 'category',
    'price': 'price',
    'stock': 'stock',
    'minStock': 'min_stock',
}


@dataclass
class Product:
    """
    Producto del catálogo.

    Attributes:
        id: Identificador único (asignado por secuencia, nunca reutilizado)
        code: Código visible (puede repetirse)
        name: Nombre del producto
        category: Categoría para clasificación
        price: Precio de venta (no negativo)
        stock: Cantidad disponible
        min_stock: Umbral de stock bajo
        extra: Campos desconocidos conservados tal cual
    """
    id: int
    code: str = ''
    name: str = ''
    category: str = ''
    price: float = 0.0
    stock: int = 0
    min_stock: int = 0
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_low_stock(self) -> bool:
        """Verifica si el stock está en o por debajo del mínimo."""
        return self.stock <= self.min_stock

    def apply_patch(self, patch: Dict[str, Any]) -> None:
        """
        Sobrescribe campos (merge superficial).
        Acepta claves camelCase o snake_case. El id no se modifica.
        """
        attrs = set(PRODUCT_FIELDS.values())
        for key, value in patch.items():
            attr = PRODUCT_FIELDS.get(key, key)
            if attr == 'id':
                continue
            if attr in attrs:
                setattr(self, attr, value)
            else:
                self.extra[key] = value

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para persistencia JSON."""
        d = dict(self.extra)
        d.update({
            'id': self.id,
            'code': self.code,
            'name': self.name,
            'category': self.category,
            'price': self.price,
            'stock': self.stock,
            'minStock': self.min_stock,
        })
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Product':
        """Crea instancia desde diccionario (tolera campos faltantes o nulos)."""
        extra = {k: v for k, v in data.items() if k not in PRODUCT_FIELDS}
        return cls(
            id=data.get('id') or 0,
            code=data.get('code') or '',
            name=data.get('name') or '',
            category=data.get('category') or '',
            price=data.get('price') or 0.0,
            stock=data.get('stock') or 0,
            min_stock=data.get('minStock') or 0,
            extra=extra
        )


# ==============================================================================
# ENTIDADES DE CARRITO
# ==============================================================================

@dataclass
class CartLine:
    """
    Línea del carrito (solo en memoria, nunca se persiste).
    Nombre y precio se toman al momento de agregar.
    """
    product_id: int
    name: str
    price: float
    quantity: int = 1

    @property
    def subtotal(self) -> float:
        return self.price * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        return {
            'productId': self.product_id,
            'name': self.name,
            'price': self.price,
            'quantity': self.quantity,
        }


# ==============================================================================
# ENTIDADES DE VENTA
# ==============================================================================

@dataclass(frozen=True)
class TransactionItem:
    """Ítem vendido: copia inmutable de una línea del carrito."""
    product_id: int
    name: str
    price: float
    quantity: int

    @property
    def line_total(self) -> float:
        return self.price * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        return {
            'productId': self.product_id,
            'name': self.name,
            'price': self.price,
            'quantity': self.quantity,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TransactionItem':
        return cls(
            product_id=data.get('productId') or 0,
            name=data.get('name') or '',
            price=data.get('price') or 0.0,
            quantity=data.get('quantity') or 0
        )

    @classmethod
    def from_cart_line(cls, line: CartLine) -> 'TransactionItem':
        return cls(
            product_id=line.product_id,
            name=line.name,
            price=line.price,
            quantity=line.quantity
        )


@dataclass
class Transaction:
    """
    Venta completada. Inmutable una vez registrada.

    Attributes:
        id: Identificador único (secuencia)
        date: Timestamp ISO-8601 UTC de registro
        items: Ítems vendidos (copias)
        total: Suma de price * quantity al momento de la venta
        payment: Monto pagado
        change: Vuelto (payment - total)
        transaction_number: Número legible "TRX" + epoch en ms
    """
    items: List[TransactionItem] = field(default_factory=list)
    total: float = 0.0
    payment: float = 0.0
    change: float = 0.0
    transaction_number: str = ''
    id: Optional[int] = None
    date: str = ''

    @property
    def timestamp(self) -> Optional[datetime]:
        return parse_iso(self.date)

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para persistencia JSON."""
        return {
            'id': self.id,
            'date': self.date,
            'items': [item.to_dict() for item in self.items],
            'total': self.total,
            'payment': self.payment,
            'change': self.change,
            'transactionNumber': self.transaction_number,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Transaction':
        """Crea instancia desde diccionario (formato JSON actual)."""
        items = [TransactionItem.from_dict(i) for i in data.get('items') or []]
        return cls(
            items=items,
            total=data.get('total') or 0.0,
            payment=data.get('payment') or 0.0,
            change=data.get('change') or 0.0,
            transaction_number=data.get('transactionNumber') or '',
            id=data.get('id'),
            date=data.get('date') or ''
        )


# ==============================================================================
# ENTIDADES DE HISTORIAL DE STOCK
# ==============================================================================

@dataclass
class StockHistoryEntry:
    """
    Registro de un cambio de stock (solo se agregan, nunca se editan).

    Attributes:
        product_id: ID del producto afectado
        product_name: Nombre del producto al momento del cambio
        change: Delta aplicado (con signo)
        old_stock: Stock antes del cambio
        new_stock: Stock después del cambio (old_stock + change)
        note: Nota libre
        id: Identificador (secuencia)
        date: Timestamp ISO-8601 UTC
    """
    product_id: int
    product_name: str
    change: int
    old_stock: int
    new_stock: int
    note: str = ''
    id: Optional[int] = None
    date: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'date': self.date,
            'productId': self.product_id,
            'productName': self.product_name,
            'change': self.change,
            'oldStock': self.old_stock,
            'newStock': self.new_stock,
            'note': self.note,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StockHistoryEntry':
        return cls(
            product_id=data.get('productId') or 0,
            product_name=data.get('productName') or '',
            change=data.get('change') or 0,
            old_stock=data.get('oldStock') or 0,
            new_stock=data.get('newStock') or 0,
            note=data.get('note') or '',
            id=data.get('id'),
            date=data.get('date') or ''
        )
