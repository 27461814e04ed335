# ==============================================================================
# REPOSITORIO DE LANZAMIENTOS DIARIOS
# ==============================================================================
# Encapsula el acceso a daily_entries.json
# Formato: {"2024-07-01": {"id": "2024-07-01", "date": ..., "madrugada": {...}}}
# ==============================================================================

import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .base import DictRepository


def now_iso() -> str:
    """Marca de tiempo ISO-8601 en UTC (createdAt / lastModifiedAt)."""
    return datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%S.%f')[:-3] + 'Z'


def merge_entry(existing: Optional[Dict[str, Any]], date_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge superficial de un lanzamiento: los períodos enviados reemplazan
    a los guardados, los omitidos se conservan.

    Args:
        existing: Lanzamiento guardado (o None si es nuevo)
        date_id: Fecha AAAA-MM-DD
        data: Payload recibido

    Returns:
        Lanzamiento completo listo para persistir
    """
    timestamp = now_iso()
    incoming = {k: v for k, v in data.items() if k not in ('createdAt', 'lastModifiedAt')}
    if existing:
        merged = {**existing, **incoming}
    else:
        merged = {**incoming, 'createdAt': timestamp}
    merged['id'] = date_id
    merged.setdefault('date', date_id)
    merged['lastModifiedAt'] = timestamp
    return merged


class EntryRepository(DictRepository):
    """Lanzamientos diarios en JSON, indexados por fecha."""

    def __init__(self, base_path: str):
        """
        Args:
            base_path: Directorio de datos
        """
        super().__init__(os.path.join(base_path, 'daily_entries.json'))

    def get_all_entries(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """
        Lanzamientos del rango [start_date, end_date], ordenados por fecha.

        Sin end_date el rango es abierto hacia adelante. Las fechas AAAA-MM-DD
        se comparan como texto.
        """
        entries = []
        for date_id, entry in self.get_all().items():
            if not isinstance(entry, dict):
                continue
            if start_date and date_id < start_date:
                continue
            if end_date and date_id > end_date:
                continue
            entries.append({**entry, 'id': entry.get('id', date_id)})
        return sorted(entries, key=lambda e: e['id'])

    def get_entry(self, date_id: str) -> Optional[Dict[str, Any]]:
        entry = self.get_by_id(date_id)
        return entry if isinstance(entry, dict) else None

    def save_entry(self, date_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Guarda (merge) el lanzamiento de una fecha.

        Returns:
            Lanzamiento resultante
        """
        with self._file_lock:
            merged = merge_entry(self.get_entry(date_id), date_id, data)
            self.update(date_id, merged)
        return merged
