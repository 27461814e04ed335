# ==============================================================================
# REPOSITORIO DE ESTORNOS
# ==============================================================================
# Encapsula el acceso a estornos.json
# Formato: {"2024-07-15": [{"id": ..., "date": "2024-07-15", "reason": ...,
#                           "valorEstorno": -30.0, "category": "frigobar"}]}
# ==============================================================================

import os
from typing import Any, Callable, Dict, List, Optional

from .base import DictRepository


class EstornoRepository(DictRepository):
    """Estornos en JSON, agrupados por fecha."""

    def __init__(self, base_path: str):
        super().__init__(os.path.join(base_path, 'estornos.json'))

    @staticmethod
    def _items(data: Dict[str, Any], date_id: str) -> List[Dict[str, Any]]:
        items = data.get(date_id)
        if not isinstance(items, list):
            return []
        return [item for item in items if isinstance(item, dict)]

    def get_items(self, start_date: str, end_date: str) -> List[Dict[str, Any]]:
        """
        Items de todas las fechas del rango [start_date, end_date], en orden
        de fecha y, dentro de cada fecha, en orden de registro.
        """
        data = self.get_all()
        items = []
        for date_id in sorted(data):
            if start_date <= date_id <= end_date:
                items.extend(self._items(data, date_id))
        return items

    def get_items_for_date(self, date_id: str) -> Optional[List[Dict[str, Any]]]:
        """
        Returns:
            Items de la fecha, o None si la fecha no tiene registro
        """
        data = self.get_all()
        if date_id not in data:
            return None
        return self._items(data, date_id)

    def _append(self, data: Dict[str, Any], item: Dict[str, Any]) -> None:
        items = self._items(data, item['date'])
        items.append(item)
        data[item['date']] = items

    def add_item(self, item: Dict[str, Any]) -> Dict[str, Any]:
        with self._file_lock:
            data = self._read_raw()
            self._append(data, item)
            self._write_raw(data)
        return item

    def delete_item(self, date_id: str, item_id: str) -> Optional[Dict[str, Any]]:
        """
        Returns:
            Item eliminado o None si no existía
        """
        with self._file_lock:
            data = self._read_raw()
            items = self._items(data, date_id)
            removed = next((item for item in items if item.get('id') == item_id), None)
            if removed is None:
                return None
            data[date_id] = [item for item in items if item.get('id') != item_id]
            self._write_raw(data)
        return removed

    def relaunch_item(
        self,
        original_date: str,
        original_id: str,
        build_credit: Callable[[Dict[str, Any]], Dict[str, Any]]
    ) -> Optional[Dict[str, Any]]:
        """
        Guarda como crédito el item original (armado por build_credit) bajo
        la fecha del crédito.

        Returns:
            Crédito guardado o None si el item original no existe
        """
        with self._file_lock:
            data = self._read_raw()
            original = next(
                (item for item in self._items(data, original_date) if item.get('id') == original_id),
                None
            )
            if original is None:
                return None
            credit = build_credit(original)
            self._append(data, credit)
            self._write_raw(data)
        return credit
