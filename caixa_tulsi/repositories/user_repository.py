# ==============================================================================
# REPOSITORIO DE USUARIOS
# ==============================================================================
# Encapsula el acceso a users.json
# Formato: {"1": {"id": "1", "username": "admin", "password": "<hash>", ...}}
# ==============================================================================

import os
from typing import Any, Dict, List, Optional

from .base import DictRepository


class UserRepository(DictRepository):
    """Usuarios en JSON, indexados por id."""

    def __init__(self, base_path: str):
        super().__init__(os.path.join(base_path, 'users.json'))

    def get_all_users(self) -> List[Dict[str, Any]]:
        """Usuarios ordenados por id."""
        users = [u for u in self.get_all().values() if isinstance(u, dict)]
        return sorted(users, key=lambda u: str(u.get('id', '')))

    def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        return self.get_by_id(user_id)

    def get_user_by_username(self, username: str) -> Optional[Dict[str, Any]]:
        """
        Busca por nombre sin distinguir mayúsculas.

        Returns:
            Usuario o None
        """
        wanted = (username or '').strip().lower()
        for user in self.get_all_users():
            if str(user.get('username', '')).lower() == wanted:
                return user
        return None

    def save_user(self, user: Dict[str, Any]) -> None:
        self.update(user['id'], user)

    def delete_user(self, user_id: str) -> bool:
        return self.delete(user_id) is not None
