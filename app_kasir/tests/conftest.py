import json
import os
import pytest
from datetime import datetime, timedelta, timezone

from app_kasir import performance_logger
from app_kasir.main import create_app
from app_kasir.store import Store


class FakeClock:
    """Reloj controlable para fijar 'hoy' y los números de transacción."""

    def __init__(self, start):
        self.current = start

    def __call__(self):
        return self.current

    def advance(self, **kwargs):
        self.current = self.current + timedelta(**kwargs)


@pytest.fixture(autouse=True)
def logs_dir(tmp_path):
    # logs of every test go to its own tmp dir
    path = str(tmp_path / 'logs')
    performance_logger.configure(logs_dir=path, enabled=True)
    performance_logger.reset_stats()
    return path


@pytest.fixture
def config(tmp_path, logs_dir):
    return {
        'DATA_DIR': str(tmp_path / 'data'),
        'LOGS_DIR': logs_dir,
        'SEED_DEFAULT_PRODUCTS': False,
        'ENABLE_PROFILING': True,
    }


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def store(config, clock):
    return Store(config, now_func=clock)


@pytest.fixture
def make_store(config, clock):
    """Construye otro Store sobre el mismo directorio (simula reinicio)."""
    def _make(**overrides):
        return Store(dict(config, **overrides), now_func=clock)
    return _make


@pytest.fixture
def add_product(store):
    def _add(code='P100', name='Teh Pucuk', price=3500, stock=10, min_stock=2, category='Minuman'):
        return store.add_product({
            'code': code,
            'name': name,
            'category': category,
            'price': price,
            'stock': stock,
            'minStock': min_stock,
        })
    return _add


@pytest.fixture
def app(config, store):
    app = create_app(config, store=store)
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c


@pytest.fixture
def read_json(config):
    """Lee el snapshot guardado de una clave."""
    def _read(key):
        with open(os.path.join(config['DATA_DIR'], f'{key}.json'), 'r', encoding='utf-8') as f:
            return json.load(f)
    return _read
