import json
import os
import pytest

from app_kasir.repositories import StorageError
from app_kasir.store import Store


def fail_writes(monkeypatch, repo):
    def _fail(data):
        raise StorageError(repo.key, 'Disco lleno')
    monkeypatch.setattr(repo, '_write_raw', _fail)


def test_store_round_trip(store, add_product, make_store, read_json):
    product = add_product(stock=10)
    store.update_stock(product.id, 5, 'Reposición')
    store.add_to_cart(product.id)
    transaction = store.checkout(5000)['transaction']

    restarted = make_store()
    assert [p.to_dict() for p in restarted.get_all_products()] == [product.to_dict()]
    assert restarted.get_transaction(transaction.id).to_dict() == transaction.to_dict()
    assert [e.to_dict() for e in restarted.get_stock_history()] == [e.to_dict() for e in store.get_stock_history()]
    # el carrito nunca se guarda
    assert restarted.cart == []

    assert read_json('products')[0]['minStock'] == 2
    assert read_json('transactions')[0]['transactionNumber'] == transaction.transaction_number
    assert read_json('stockHistory')[0]['productName'] == 'Teh Pucuk'
    assert read_json('sequences') == {'products': 1, 'stockHistory': 2, 'transactions': 1}


def test_existing_data_without_sequences(config, make_store):
    os.makedirs(config['DATA_DIR'])
    with open(os.path.join(config['DATA_DIR'], 'products.json'), 'w', encoding='utf-8') as f:
        json.dump([{'id': 1, 'code': 'A', 'name': 'Aqua'}, {'id': 5, 'code': 'B', 'name': 'Biskuit'}], f)

    store = make_store()
    # campos faltantes con valores por defecto
    assert store.get_product(1).stock == 0
    assert store.get_product(1).min_stock == 0
    assert store.add_product({'code': 'C', 'name': 'Coca Cola'}).id == 6


def test_null_fields_read_as_defaults(config, make_store):
    os.makedirs(config['DATA_DIR'])
    with open(os.path.join(config['DATA_DIR'], 'products.json'), 'w', encoding='utf-8') as f:
        json.dump([{'id': 1, 'code': 'A', 'name': 'Aqua', 'price': None, 'stock': None, 'minStock': None},
                   {'id': 2, 'code': 'B', 'name': None, 'price': 2000, 'stock': 5, 'minStock': 1}], f)

    store = make_store()
    aqua = store.get_product(1)
    assert (aqua.price, aqua.stock, aqua.min_stock) == (0.0, 0, 0)
    assert store.get_product(2).name == ''
    assert [p.id for p in store.get_low_stock_products()] == [1]
    assert store.get_stock_summary() == {'total_products': 2, 'low_stock_count': 1}

    store.update_stock(1, 3)
    assert store.get_product(1).stock == 3


def test_unknown_product_fields_are_preserved(config, make_store, read_json):
    os.makedirs(config['DATA_DIR'])
    with open(os.path.join(config['DATA_DIR'], 'products.json'), 'w', encoding='utf-8') as f:
        json.dump([{'id': 1, 'code': 'A', 'name': 'Aqua', 'stock': 3, 'barcode': '899100'}], f)

    store = make_store()
    store.update_stock(1, 2)

    assert read_json('products')[0]['barcode'] == '899100'
    assert read_json('products')[0]['stock'] == 5


def test_corrupt_file_reads_as_empty(config, make_store):
    os.makedirs(config['DATA_DIR'])
    with open(os.path.join(config['DATA_DIR'], 'transactions.json'), 'w', encoding='utf-8') as f:
        f.write('{no es json')

    store = make_store()
    assert store.get_all_transactions() == []


def test_storage_failure_keeps_memory_and_flush_retries(store, monkeypatch, make_store, logs_dir):
    fail_writes(monkeypatch, store.product_repo)

    with pytest.raises(StorageError) as exc_info:
        store.add_product({'code': 'A', 'name': 'Aqua', 'stock': 1})

    assert exc_info.value.key == 'products'
    assert [p.name for p in store.get_all_products()] == ['Aqua']
    assert store.has_pending_writes()

    with open(os.path.join(logs_dir, 'events.log'), encoding='utf-8') as f:
        assert '[ALMACENAMIENTO]' in f.read()

    # sigue fallando
    with pytest.raises(StorageError):
        store.flush()

    monkeypatch.undo()
    store.flush()
    assert not store.has_pending_writes()
    assert [p.name for p in make_store().get_all_products()] == ['Aqua']


def test_checkout_storage_failure_still_clears_cart(store, add_product, monkeypatch, make_store):
    product = add_product(stock=4)
    store.add_to_cart(product.id)
    fail_writes(monkeypatch, store.transaction_repo)

    with pytest.raises(StorageError):
        store.checkout(5000)

    # la venta quedó aplicada en memoria
    assert store.cart == []
    assert product.stock == 3
    assert len(store.get_all_transactions()) == 1
    # catálogo e historial sí se guardaron
    assert make_store().get_product(product.id).stock == 3

    monkeypatch.undo()
    store.flush()
    assert len(make_store().get_all_transactions()) == 1


def test_storage_error_from_real_filesystem(tmp_path, make_store):
    # DATA_DIR apunta a un archivo: no se puede crear el directorio
    blocker = tmp_path / 'blocker'
    blocker.write_text('x')
    store = make_store(DATA_DIR=str(blocker / 'data'))

    with pytest.raises(StorageError):
        store.add_product({'code': 'A', 'name': 'Aqua'})
    assert len(store.get_all_products()) == 1


def test_each_store_logs_to_its_own_dir(tmp_path, clock, logs_dir):
    for name in ('a', 'b'):
        store = Store({
            'DATA_DIR': str(tmp_path / name / 'data'),
            'LOGS_DIR': str(tmp_path / name / 'logs'),
            'SEED_DEFAULT_PRODUCTS': False,
        }, now_func=clock)
        product = store.add_product({'code': name.upper(), 'name': f'Producto {name}', 'stock': 1})
        store.update_stock(product.id, 2, 'Reposición')

    for name in ('a', 'b'):
        with open(tmp_path / name / 'logs' / 'events.log', encoding='utf-8') as f:
            content = f.read()
        assert f'Producto {name}' in content
        assert f"Producto {'b' if name == 'a' else 'a'}" not in content

    # el directorio global no recibe eventos de estos stores
    assert not os.path.exists(os.path.join(logs_dir, 'events.log'))
