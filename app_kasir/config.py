# ==============================================================================
# CONFIGURACIÓN
# ==============================================================================
# Todos los valores se leen de variables de entorno (con valores por defecto).
# Ejemplo:
#   export KASIR_DATA_DIR="/var/lib/kasir"
#   export KASIR_STOCK_FLOOR_POLICY="clamp_zero"
# ==============================================================================

import os
from typing import Any, Dict

from app_kasir.services.inventory_service import VALID_FLOOR_POLICIES, FLOOR_ALLOW_NEGATIVE


BASE_DIR = os.path.dirname(os.path.abspath(__file__))

_TRUE_VALUES = ('1', 'true', 'yes', 'on', 'si', 'sí')


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None or value.strip() == '':
        return default
    return value.strip().lower() in _TRUE_VALUES


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None or value.strip() == '':
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} debe ser un entero, no '{value}'")


def load_config(overrides: Dict[str, Any] = None) -> Dict[str, Any]:
    """
    Construye la configuración desde el entorno.

    Args:
        overrides: Valores que reemplazan a los del entorno (tests, factory)

    Returns:
        Diccionario usable como app.config de Flask y para el Store

    Raises:
        ValueError: Si algún valor es inválido
    """
    data_dir = os.environ.get('KASIR_DATA_DIR') or os.path.join(BASE_DIR, 'data')
    config = {
        'DATA_DIR': data_dir,
        'LOGS_DIR': os.environ.get('KASIR_LOGS_DIR') or os.path.join(BASE_DIR, 'logs'),
        'SEED_DEFAULT_PRODUCTS': _env_bool('KASIR_SEED_DEFAULT_PRODUCTS', True),
        'STOCK_FLOOR_POLICY': os.environ.get('KASIR_STOCK_FLOOR_POLICY') or FLOOR_ALLOW_NEGATIVE,
        'RECORD_SALE_STOCK_HISTORY': _env_bool('KASIR_RECORD_SALE_STOCK_HISTORY', True),
        'TOP_PRODUCTS_LIMIT': _env_int('KASIR_TOP_PRODUCTS_LIMIT', 5),
        'REPORT_TOP_LIMIT': _env_int('KASIR_REPORT_TOP_LIMIT', 10),
        'ENABLE_PROFILING': _env_bool('KASIR_ENABLE_PROFILING', True),
    }
    if overrides:
        config.update(overrides)

    if config['STOCK_FLOOR_POLICY'] not in VALID_FLOOR_POLICIES:
        raise ValueError(
            f"KASIR_STOCK_FLOOR_POLICY inválida: {config['STOCK_FLOOR_POLICY']} "
            f"(opciones: {', '.join(sorted(VALID_FLOOR_POLICIES))})"
        )
    for key in ('TOP_PRODUCTS_LIMIT', 'REPORT_TOP_LIMIT'):
        if int(config[key]) <= 0:
            raise ValueError(f"{key} debe ser mayor a 0")

    return config
