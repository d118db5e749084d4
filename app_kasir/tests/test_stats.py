def sell(store, *product_ids, payment=100000):
    for pid in product_ids:
        assert store.add_to_cart(pid)['ok']
    result = store.checkout(payment)
    assert result['ok']
    return result['transaction']


def test_today_transactions_use_current_day(store, add_product, clock):
    product = add_product(price=2000, stock=20)
    sell(store, product.id)
    sell(store, product.id, product.id)

    clock.advance(days=1)
    today = sell(store, product.id)

    assert store.get_today_transactions() == [today]
    assert store.get_today_sales() == 2000
    assert store.get_today_stats() == {'sales': 2000, 'transactions': 1}
    assert store.get_total_revenue() == 8000


def test_today_without_sales(store):
    assert store.get_today_transactions() == []
    assert store.get_today_sales() == 0
    assert store.get_total_revenue() == 0


def test_top_products_order_and_ties(store, add_product):
    a = add_product(code='A', name='Aqua', price=3000, stock=20)
    b = add_product(code='B', name='Biskuit', price=7000, stock=20)
    c = add_product(code='C', name='Coca Cola', price=5000, stock=20)

    sell(store, a.id, b.id)
    sell(store, a.id, b.id, c.id)
    sell(store, c.id, c.id)

    top = store.get_top_products()
    assert [t['name'] for t in top] == ['Coca Cola', 'Aqua', 'Biskuit']
    assert top[0] == {'productId': c.id, 'name': 'Coca Cola', 'quantity': 3, 'revenue': 15000}
    assert top[1]['revenue'] == 6000
    assert [t['productId'] for t in store.get_top_products(limit=1)] == [c.id]


def test_top_products_default_limit_from_config(make_store):
    store = make_store(TOP_PRODUCTS_LIMIT=2)
    for i in range(4):
        product = store.add_product({'code': f'P{i}', 'name': f'Prod {i}', 'price': 1000, 'stock': 5})
        sell(store, product.id)

    assert len(store.get_top_products()) == 2


def test_report_summary(store, add_product):
    product = add_product(price=2500, stock=10)
    sell(store, product.id)
    sell(store, product.id, product.id, product.id)

    summary = store.get_report_summary()
    assert summary['total_revenue'] == 10000
    assert summary['total_transactions'] == 2
    assert summary['average_transaction'] == 5000
    assert summary['top_products'][0]['quantity'] == 4


def test_report_summary_without_transactions(store):
    summary = store.get_report_summary()
    assert summary == {
        'total_revenue': 0,
        'total_transactions': 0,
        'average_transaction': 0,
        'top_products': [],
    }


def test_low_stock_report(store, add_product):
    add_product(code='A', stock=50, min_stock=5)
    low = add_product(code='B', stock=1, min_stock=5)
    assert store.get_low_stock_products() == [low]
