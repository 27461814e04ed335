# ==============================================================================
# REPOSITORIO BASE - Almacenamiento en archivos JSON
# ==============================================================================
# Lectura/escritura atómica de los archivos de datos (lanzamientos, settings,
# usuarios, auditoría). Los repositorios MySQL implementan los mismos métodos
# públicos en mysql_repository.py.
# ==============================================================================

import json
import os
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class BaseRepository(ABC):
    """
    Clase base para los repositorios JSON.

    Un único RLock de clase serializa el acceso a todos los archivos:
    el volumen de escrituras es bajo (un operador por turno).
    """

    _file_lock = threading.RLock()

    def __init__(self, file_path: str):
        """
        Args:
            file_path: Ruta absoluta al archivo JSON de datos
        """
        self.file_path = file_path
        directory = os.path.dirname(file_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        self._ensure_file_exists()

    def _ensure_file_exists(self) -> None:
        """Crea el archivo con datos vacíos si no existe."""
        with self._file_lock:
            if not os.path.exists(self.file_path):
                self._write_raw(self._empty_data())

    @abstractmethod
    def _empty_data(self) -> Any:
        """Estructura vacía del archivo ({} o [])."""
        pass

    def _read_raw(self) -> Any:
        """
        Lee el archivo JSON.

        Un archivo corrupto o ausente se trata como vacío: los cálculos
        degradan a cero en lugar de fallar.
        """
        with self._file_lock:
            try:
                with open(self.file_path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
            except (json.JSONDecodeError, FileNotFoundError):
                return self._empty_data()
        if not isinstance(data, type(self._empty_data())):
            print(f"[ADVERTENCIA] Formato inesperado en {self.file_path}, se usa estructura vacía")
            return self._empty_data()
        return data

    def _write_raw(self, data: Any) -> None:
        """
        Escribe el archivo de forma atómica (temporal + os.replace).

        Raises:
            OSError: Si hay error de escritura
        """
        with self._file_lock:
            temp_path = self.file_path + '.tmp'
            try:
                with open(temp_path, 'w', encoding='utf-8') as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                os.replace(temp_path, self.file_path)
            except (OSError, TypeError, ValueError):
                if os.path.exists(temp_path):
                    os.remove(temp_path)
                raise


class DictRepository(BaseRepository):
    """Datos almacenados como diccionario {id: registro}."""

    def _empty_data(self) -> Dict:
        return {}

    def get_all(self) -> Dict[str, Any]:
        return self._read_raw()

    def get_by_id(self, record_id: Any) -> Optional[Dict[str, Any]]:
        """
        Args:
            record_id: ID del registro (se normaliza a str)

        Returns:
            Registro o None si no existe
        """
        return self._read_raw().get(str(record_id))

    def update(self, record_id: Any, record_data: Dict[str, Any]) -> None:
        """Reemplaza (o crea) un registro."""
        with self._file_lock:
            data = self._read_raw()
            data[str(record_id)] = record_data
            self._write_raw(data)

    def delete(self, record_id: Any) -> Optional[Dict[str, Any]]:
        """
        Returns:
            Registro eliminado o None si no existía
        """
        with self._file_lock:
            data = self._read_raw()
            removed = data.pop(str(record_id), None)
            if removed is not None:
                self._write_raw(data)
            return removed


class ListRepository(BaseRepository):
    """Datos almacenados como lista [registro, ...]."""

    def _empty_data(self) -> List:
        return []

    def get_all(self) -> List[Dict[str, Any]]:
        return self._read_raw()

    def insert_first(self, record: Dict[str, Any], max_records: Optional[int] = None) -> None:
        """
        Inserta un registro al principio (más reciente primero).

        Args:
            record: Registro nuevo
            max_records: Tope de registros conservados (los más viejos se descartan)
        """
        with self._file_lock:
            data = self._read_raw()
            data.insert(0, record)
            if max_records is not None and len(data) > max_records:
                data = data[:max_records]
            self._write_raw(data)
