def test_checkout_records_sale(store, add_product):
    product = add_product(price=3500, stock=10)
    store.add_to_cart(product.id)
    store.add_to_cart(product.id)

    result = store.checkout(10000)

    assert result['ok'] is True
    transaction = result['transaction']
    assert transaction.id == 1
    assert transaction.total == 7000
    assert transaction.payment == 10000
    assert transaction.change == 3000
    assert result['change'] == 3000
    assert transaction.transaction_number == 'TRX1705320000000'
    assert transaction.date == '2024-01-15T12:00:00.000Z'
    assert [i.to_dict() for i in transaction.items] == [
        {'productId': product.id, 'name': 'Teh Pucuk', 'price': 3500, 'quantity': 2}
    ]

    assert product.stock == 8
    assert store.cart == []
    assert store.get_all_transactions() == [transaction]


def test_transaction_total_matches_items(store, add_product):
    first = add_product(code='A', price=1500)
    second = add_product(code='B', price=2500)
    store.add_to_cart(first.id)
    store.add_to_cart(second.id)
    store.add_to_cart(second.id)

    transaction = store.checkout(20000)['transaction']
    assert transaction.total == sum(i.price * i.quantity for i in transaction.items) == 6500


def test_checkout_two_products(store, add_product, make_store):
    first = add_product(code='A', name='Indomie Goreng', price=3500, stock=10)
    second = add_product(code='B', name='Kopi Kapal Api', price=5000, stock=10)
    store.add_to_cart(first.id)
    store.add_to_cart(first.id)
    store.add_to_cart(second.id)

    result = store.checkout(15000)

    assert result['ok'] is True
    transaction = result['transaction']
    assert transaction.total == 12000
    assert transaction.change == 3000
    assert [(i.product_id, i.quantity) for i in transaction.items] == [(first.id, 2), (second.id, 1)]
    assert first.stock == 8
    assert second.stock == 9
    assert store.cart == []

    restarted = make_store()
    assert restarted.get_product(first.id).stock == 8
    assert restarted.get_product(second.id).stock == 9


def test_checkout_empty_cart(store):
    result = store.checkout(5000)
    assert result == {'ok': False, 'error': 'El carrito está vacío'}
    assert store.get_all_transactions() == []


def test_checkout_insufficient_payment(store, add_product):
    product = add_product(price=3500, stock=10)
    store.add_to_cart(product.id)

    result = store.checkout(3000)

    assert result['ok'] is False
    assert result['error'] == 'Pago insuficiente'
    assert product.stock == 10
    assert len(store.cart) == 1
    assert store.get_all_transactions() == []


def test_exact_payment_gives_zero_change(store, add_product):
    product = add_product(price=3500)
    store.add_to_cart(product.id)
    assert store.checkout(3500)['change'] == 0


def test_checkout_revalidates_stock(store, add_product):
    product = add_product(stock=2)
    store.add_to_cart(product.id)
    store.add_to_cart(product.id)
    store.update_stock(product.id, -2)

    result = store.checkout(100000)

    assert result['ok'] is False
    assert product.stock == 0
    assert store.get_all_transactions() == []
    assert len(store.cart) == 1


def test_sale_records_stock_history(store, add_product):
    product = add_product(stock=10)
    store.add_to_cart(product.id)
    transaction = store.checkout(5000)['transaction']

    entry = store.get_stock_history(product.id)[0]
    assert (entry.old_stock, entry.change, entry.new_stock) == (10, -1, 9)
    assert entry.note == f'Venta {transaction.transaction_number}'


def test_sale_history_can_be_disabled(make_store):
    store = make_store(RECORD_SALE_STOCK_HISTORY=False)
    product = store.add_product({'code': 'A', 'name': 'Aqua', 'price': 3000, 'stock': 5})
    store.add_to_cart(product.id)
    store.checkout(3000)

    assert product.stock == 4
    assert store.get_stock_history() == []


def test_add_transaction_skips_unknown_products(store, add_product):
    product = add_product(stock=5)
    transaction = store.add_transaction({
        'items': [
            {'productId': product.id, 'name': 'Teh Pucuk', 'price': 3500, 'quantity': 2},
            {'productId': 999, 'name': 'Fantasma', 'price': 1000, 'quantity': 1},
        ],
        'total': 8000,
        'payment': 10000,
        'change': 2000,
        'transactionNumber': 'TRX1',
    })

    assert transaction.id == 1
    assert product.stock == 3
    assert len(store.get_stock_history()) == 1


def test_transaction_history_newest_first(store, add_product, clock):
    product = add_product(stock=10)
    for _ in range(3):
        store.add_to_cart(product.id)
        store.checkout(5000)
        clock.advance(minutes=1)

    assert [t.id for t in store.get_transaction_history()] == [3, 2, 1]
    assert store.get_transaction(2).id == 2
    assert store.get_transaction(9) is None


def test_preview_change(store, add_product):
    product = add_product(price=3500)
    store.add_to_cart(product.id)

    assert store.preview_change(5000) == {'total': 3500, 'payment': 5000, 'change': 1500, 'sufficient': True}
    assert store.preview_change(1000)['sufficient'] is False
