# ==============================================================================
# REPOSITORIO DE PRODUCTOS
# ==============================================================================
# Encapsula todo el acceso a products.json
# El catálogo se almacena como lista: [{id, code, name, ...}, ...]
# ==============================================================================

from typing import Any, Dict, List, Optional

from app_kasir.models import Product
from .base import ListRepository


# Catálogo inicial de la tienda (se usa solo si products.json no existe)
DEFAULT_PRODUCTS = [
    {'id': 1, 'code': 'P001', 'name': 'Indomie Goreng', 'category': 'Makanan', 'price': 3500, 'stock': 100, 'minStock': 10},
    {'id': 2, 'code': 'P002', 'name': 'Coca Cola 330ml', 'category': 'Minuman', 'price': 5000, 'stock': 50, 'minStock': 10},
    {'id': 3, 'code': 'P003', 'name': 'Aqua 600ml', 'category': 'Minuman', 'price': 3000, 'stock': 80, 'minStock': 15},
    {'id': 4, 'code': 'P004', 'name': 'Roti Tawar', 'category': 'Makanan', 'price': 12000, 'stock': 25, 'minStock': 5},
    {'id': 5, 'code': 'P005', 'name': 'Kopi ABC', 'category': 'Minuman', 'price': 8000, 'stock': 40, 'minStock': 10},
    {'id': 6, 'code': 'P006', 'name': 'Mie Sedaap', 'category': 'Makanan', 'price': 3000, 'stock': 120, 'minStock': 10},
    {'id': 7, 'code': 'P007', 'name': 'Teh Botol', 'category': 'Minuman', 'price': 4000, 'stock': 60, 'minStock': 10},
    {'id': 8, 'code': 'P008', 'name': 'Biskuit Roma', 'category': 'Makanan', 'price': 7000, 'stock': 35, 'minStock': 5},
]


class ProductRepository(ListRepository):
    """
    Repositorio para el catálogo de productos.

    Formato de datos en products.json:
    [
        {"id": 1, "code": "P001", "name": "Indomie Goreng",
         "category": "Makanan", "price": 3500, "stock": 100, "minStock": 10},
        ...
    ]
    """

    def __init__(self, base_path: str, seed_defaults: bool = True):
        """
        Args:
            base_path: Directorio de datos
            seed_defaults: Usar el catálogo inicial si el archivo no existe
        """
        super().__init__(base_path, 'products')
        self.seed_defaults = seed_defaults

    def _decode(self, record: Dict[str, Any]) -> Product:
        return Product.from_dict(record)

    def _initial_data(self) -> List[Product]:
        if not self.seed_defaults:
            return []
        return [Product.from_dict(dict(p)) for p in DEFAULT_PRODUCTS]

    def get_product(self, pid: int) -> Optional[Product]:
        """Producto por ID o None."""
        return self.find_by('id', pid)

    def remove_product(self, pid: int) -> Optional[Product]:
        """
        Quita un producto de la colección en memoria.
        No persiste: el llamador decide cuándo guardar.
        """
        products = self.load()
        for index, product in enumerate(products):
            if product.id == pid:
                return products.pop(index)
        return None

    def search(self, term: str) -> List[Product]:
        """
        Busca productos por nombre o código (búsqueda parcial, sin mayúsculas).
        """
        needle = (term or '').lower()
        return self.filter(
            lambda p: needle in str(p.name).lower() or needle in str(p.code).lower()
        )

    def get_low_stock_products(self) -> List[Product]:
        """Productos con stock <= stock mínimo."""
        return self.filter(lambda p: p.is_low_stock)
