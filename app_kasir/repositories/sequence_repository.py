# ==============================================================================
# REPOSITORIO DE SECUENCIAS
# ==============================================================================
# Encapsula el acceso a sequences.json
# Guarda el último identificador emitido por colección: {"products": 8, ...}
# ==============================================================================

from typing import Iterable

from .base import DictRepository


class SequenceRepository(DictRepository):
    """
    Contadores monotónicos por colección.

    Un identificador nunca se reutiliza aunque se eliminen registros.
    Si no hay contador guardado (datos anteriores a este archivo) se continúa
    desde el máximo identificador existente.
    """

    def __init__(self, base_path: str):
        super().__init__(base_path, 'sequences')

    def current(self, name: str) -> int:
        """Último identificador emitido para la colección."""
        try:
            return int(self.load().get(name, 0) or 0)
        except (TypeError, ValueError):
            return 0

    def next_id(self, name: str, existing_ids: Iterable[int] = (), persist: bool = True) -> int:
        """
        Emite el siguiente identificador.

        Args:
            name: Nombre de la colección
            existing_ids: Identificadores ya presentes en la colección
            persist: Guardar de inmediato (si no, queda pendiente para flush)

        Returns:
            max(último emitido, máximo existente) + 1
        """
        new_id = max(self.current(name), max(existing_ids, default=0)) + 1
        self.load()[name] = new_id
        if persist:
            self.save()
        else:
            self.mark_dirty()
        return new_id
