# ==============================================================================
# REPOSITORIO BASE - Funcionalidad común para acceso a archivos JSON
# ==============================================================================
# Cada repositorio corresponde a una clave de almacenamiento y se guarda como
# un único archivo <clave>.json con la colección completa.
# ==============================================================================

import json
import os
from typing import Any, Callable, Dict, Iterable, List, Optional
from abc import ABC, abstractmethod
import threading


class StorageError(Exception):
    """
    Error de persistencia: el almacenamiento no está disponible o la escritura
    falló. Los datos en memoria se conservan y la colección queda pendiente
    de guardar.
    """

    def __init__(self, key: str, message: str):
        super().__init__(f"[{key}] {message}")
        self.key = key


def flush_all(repos: Iterable[Any]) -> None:
    """
    Guarda todas las colecciones pendientes, aunque alguna falle.

    Raises:
        StorageError: El primer error encontrado
    """
    first_error = None
    for repo in repos:
        try:
            repo.flush()
        except StorageError as exc:
            if first_error is None:
                first_error = exc
    if first_error is not None:
        raise first_error


class BaseRepository(ABC):
    """
    Clase base abstracta para todos los repositorios.
    Proporciona lectura/escritura atómica de un archivo JSON por clave.
    """

    # Lock global para evitar escrituras concurrentes a archivos
    _file_lock = threading.RLock()

    def __init__(self, base_path: str, key: str):
        """
        Inicializa el repositorio.

        Args:
            base_path: Directorio de datos
            key: Clave de almacenamiento (nombre del archivo sin .json)
        """
        self.key = key
        self.file_path = os.path.join(base_path, f'{key}.json')

    @abstractmethod
    def _empty_data(self) -> Any:
        """Estructura de datos vacía para este repositorio."""
        pass

    def exists(self) -> bool:
        """Verifica si la clave ya fue escrita alguna vez."""
        return os.path.exists(self.file_path)

    def _read_raw(self) -> Any:
        """
        Lee los datos crudos del archivo JSON.
        Si el archivo no existe o está corrupto retorna datos vacíos.
        """
        with self._file_lock:
            try:
                with open(self.file_path, 'r', encoding='utf-8') as f:
                    return json.load(f)
            except (json.JSONDecodeError, FileNotFoundError):
                return self._empty_data()

    def _write_raw(self, data: Any) -> None:
        """
        Escribe datos al archivo JSON (temporal + reemplazo atómico).

        Raises:
            StorageError: Si el almacenamiento no acepta la escritura
        """
        with self._file_lock:
            temp_path = self.file_path + '.tmp'
            try:
                os.makedirs(os.path.dirname(self.file_path) or '.', exist_ok=True)
                with open(temp_path, 'w', encoding='utf-8') as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                os.replace(temp_path, self.file_path)
            except (OSError, TypeError, ValueError) as exc:
                if os.path.exists(temp_path):
                    try:
                        os.remove(temp_path)
                    except OSError:
                        pass
                raise StorageError(self.key, str(exc)) from exc


class DictRepository(BaseRepository):
    """
    Repositorio para datos almacenados como diccionario.

    Ejemplo: sequences.json -> {"products": 8, "transactions": 3}
    """

    def __init__(self, base_path: str, key: str):
        super().__init__(base_path, key)
        self._cache: Optional[Dict[str, Any]] = None
        self.dirty = False

    def _empty_data(self) -> Dict:
        return {}

    def load(self) -> Dict[str, Any]:
        """Carga el diccionario (con caché en memoria)."""
        if self._cache is None:
            raw = self._read_raw() if self.exists() else {}
            self._cache = raw if isinstance(raw, dict) else {}
        return self._cache

    def save(self) -> None:
        """
        Guarda el diccionario completo.

        Raises:
            StorageError: Si la escritura falla (queda 'dirty')
        """
        self.dirty = True
        self._write_raw(self.load())
        self.dirty = False

    def mark_dirty(self) -> None:
        self.load()
        self.dirty = True

    def flush(self) -> None:
        """Reintenta guardar si hay cambios pendientes."""
        if self.dirty:
            self.save()

    def reload(self) -> Dict[str, Any]:
        """Fuerza recarga desde archivo ignorando caché."""
        self._cache = None
        self.dirty = False
        return self.load()


class ListRepository(BaseRepository):
    """
    Repositorio base para colecciones almacenadas como lista.
    Mantiene la colección en memoria y reescribe el snapshot completo
    después de cada mutación.

    Ejemplo: transactions.json -> [{...}, {...}]
    """

    def __init__(self, base_path: str, key: str):
        super().__init__(base_path, key)
        self._cache: Optional[List[Any]] = None
        self.dirty = False

    def _empty_data(self) -> List:
        return []

    def _decode(self, record: Dict[str, Any]) -> Any:
        """Convierte un registro JSON a entidad. Las subclases lo sobrescriben."""
        return record

    def _encode(self, item: Any) -> Dict[str, Any]:
        """Convierte una entidad a registro JSON."""
        return item.to_dict() if hasattr(item, 'to_dict') else item

    def _initial_data(self) -> List[Any]:
        """Colección inicial cuando la clave nunca fue escrita."""
        return []

    def load(self) -> List[Any]:
        """
        Carga la colección.
        Usa caché para evitar lecturas repetidas.
        """
        if self._cache is None:
            if not self.exists():
                self._cache = self._initial_data()
            else:
                raw = self._read_raw()
                records = raw if isinstance(raw, list) else []
                self._cache = [self._decode(r) for r in records if isinstance(r, dict)]
        return self._cache

    def reload(self) -> List[Any]:
        """Fuerza recarga desde archivo ignorando caché."""
        self._cache = None
        self.dirty = False
        return self.load()

    def save(self, items: Optional[List[Any]] = None) -> None:
        """
        Guarda la colección completa.
        La caché se actualiza antes de escribir, así un fallo de escritura
        no pierde el estado en memoria.

        Raises:
            StorageError: Si la escritura falla (la colección queda 'dirty')
        """
        if items is not None:
            self._cache = items
        data = [self._encode(item) for item in self.load()]
        self.dirty = True
        self._write_raw(data)
        self.dirty = False

    def mark_dirty(self) -> None:
        """Marca la colección como pendiente de guardar."""
        self.load()
        self.dirty = True

    def flush(self) -> None:
        """Reintenta guardar si hay cambios pendientes."""
        if self.dirty:
            self.save()

    def find_by(self, attr: str, value: Any) -> Optional[Any]:
        """Primer elemento cuyo atributo coincide, o None."""
        for item in self.load():
            if getattr(item, attr, None) == value:
                return item
        return None

    def filter(self, predicate: Callable[[Any], bool]) -> List[Any]:
        """Elementos que cumplen el predicado."""
        return [item for item in self.load() if predicate(item)]

    def ids(self) -> Iterable[int]:
        """Identificadores presentes en la colección."""
        return [item.id for item in self.load() if isinstance(getattr(item, 'id', None), int)]
