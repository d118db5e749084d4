def test_add_to_cart_refuses_missing_product(store):
    result = store.add_to_cart(123)
    assert result == {'ok': False, 'error': 'Producto no encontrado'}
    assert store.cart == []


def test_add_to_cart_refuses_out_of_stock(store, add_product):
    product = add_product(stock=0)
    result = store.add_to_cart(product.id)

    assert result['ok'] is False
    assert result['error'] == 'Stock agotado'
    assert store.cart == []

    # tras reponer se puede agregar
    store.update_stock(product.id, 1, 'Reposición')
    result = store.add_to_cart(product.id)

    assert result['ok'] is True
    assert len(store.cart) == 1
    assert store.cart[0].quantity == 1


def test_add_to_cart_increments_until_stock_limit(store, add_product):
    product = add_product(stock=2, price=3500)

    assert store.add_to_cart(product.id)['ok']
    assert store.add_to_cart(product.id)['ok']
    refused = store.add_to_cart(product.id)

    assert refused['ok'] is False
    assert refused['error'] == 'Stock insuficiente. Disponible: 2'
    assert len(store.cart) == 1
    assert store.cart[0].quantity == 2
    assert store.get_cart_total() == 7000


def test_cart_lines_keep_snapshot_of_name_and_price(store, add_product):
    product = add_product(price=3500)
    store.add_to_cart(product.id)
    store.update_product(product.id, {'price': 9999, 'name': 'Otro'})

    line = store.cart[0]
    assert (line.name, line.price) == ('Teh Pucuk', 3500)


def test_update_cart_quantity(store, add_product):
    product = add_product(stock=3)
    store.add_to_cart(product.id)

    assert store.update_cart_quantity(0, 2)['ok']
    assert store.cart[0].quantity == 3

    refused = store.update_cart_quantity(0, 1)
    assert refused['ok'] is False
    assert store.cart[0].quantity == 3

    assert store.update_cart_quantity(5, 1)['error'] == 'Línea de carrito inválida'


def test_update_cart_quantity_to_zero_removes_line(store, add_product):
    product = add_product()
    store.add_to_cart(product.id)

    result = store.update_cart_quantity(0, -1)
    assert result['ok']
    assert store.cart == []


def test_remove_from_cart(store, add_product):
    first = add_product(code='A')
    second = add_product(code='B')
    store.add_to_cart(first.id)
    store.add_to_cart(second.id)

    assert store.remove_from_cart(0)['ok']
    assert [line.product_id for line in store.cart] == [second.id]
    assert store.remove_from_cart(3)['ok'] is False


def test_clear_cart_requires_confirmation(store, add_product):
    product = add_product()
    store.add_to_cart(product.id)

    result = store.clear_cart()
    assert result['ok'] is False
    assert result['requires_confirmation'] is True
    assert len(store.cart) == 1

    assert store.clear_cart(confirmed=True)['ok']
    assert store.cart == []
    # carrito vacío: no pide confirmación
    assert store.clear_cart()['ok']


def test_get_cart_totals(store, add_product):
    first = add_product(code='A', price=3000)
    second = add_product(code='B', price=5000)
    store.add_to_cart(first.id)
    store.add_to_cart(first.id)
    store.add_to_cart(second.id)

    cart = store.get_cart()
    assert cart['total'] == 11000
    assert cart['total_items'] == 3
    assert cart['items_count'] == 2
    assert cart['items'][0] == {'productId': first.id, 'name': 'Teh Pucuk', 'price': 3000, 'quantity': 2}


def test_validate_cart_detects_stock_changes(store, add_product):
    product = add_product(stock=2)
    store.add_to_cart(product.id)
    store.add_to_cart(product.id)

    store.update_stock(product.id, -1)
    result = store.cart_service.validate_cart()

    assert result['ok'] is False
    assert 'Stock insuficiente para Teh Pucuk' in result['error']


def test_validate_cart_detects_deleted_product(store, add_product):
    product = add_product()
    store.add_to_cart(product.id)
    store.delete_product(product.id)

    result = store.cart_service.validate_cart()
    assert result['ok'] is False
    assert result['errors'] == ['Producto Teh Pucuk ya no existe']
