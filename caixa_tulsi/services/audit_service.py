# ==============================================================================
# SERVICIO DE AUDITORÍA
# ==============================================================================
# Registra quién hizo qué y cuándo: logins, lanzamientos, configuraciones y
# gestión de usuarios. Los mensajes quedan en portugués, como la interfaz.
# ==============================================================================

import uuid
from typing import Any, Dict, List

from caixa_tulsi.models import AuditAction, AuditLog
from caixa_tulsi.repositories import STORAGE_ERRORS, now_iso


class AuditService:
    """
    Servicio para registro y consulta de auditoría.

    Un fallo al auditar (disco o MySQL) nunca cancela la operación auditada:
    se informa por consola y la operación sigue. Los timestamps son ISO-8601
    UTC con milisegundos, como los de los lanzamientos, y ordenan como texto.
    """

    DEFAULT_LIMIT = 100

    def __init__(self, audit_repo):
        """
        Args:
            audit_repo: Repositorio de auditoría (JSON o MySQL)
        """
        self.audit_repo = audit_repo

    def log(self, action: str, username: str, details: str = '') -> Dict[str, Any]:
        """
        Registra un evento.

        Args:
            action: Valor de AuditAction
            username: Usuario que realizó la acción
            details: Mensaje legible

        Returns:
            El registro creado
        """
        entry = AuditLog(
            id=uuid.uuid4().hex,
            timestamp=now_iso(),
            username=username or 'sistema',
            action=action.value if isinstance(action, AuditAction) else str(action),
            details=details,
        ).to_dict()
        try:
            self.audit_repo.add_log(entry)
        except STORAGE_ERRORS as e:
            print(f"[ERROR AUDITORIA] {type(e).__name__}: {e}")
        return entry

    def log_login(self, username: str) -> None:
        self.log(AuditAction.LOGIN_SUCCESS, username, f"Usuário '{username}' logado com sucesso.")

    def log_logout(self, username: str) -> None:
        self.log(AuditAction.LOGOUT, username, f"Usuário '{username}' saiu do sistema.")

    def log_entry_saved(self, username: str, date_id: str, created: bool) -> None:
        action = AuditAction.CREATE_ENTRY if created else AuditAction.UPDATE_ENTRY
        verb = 'criado' if created else 'atualizado'
        self.log(action, username, f"Lançamento para {date_id} foi {verb}.")

    def log_setting_saved(self, username: str, config_id: str) -> None:
        self.log(AuditAction.SAVE_SETTING, username, f"Configuração '{config_id}' foi salva.")

    def log_estorno_created(self, username: str, item: Dict[str, Any]) -> None:
        self.log(
            AuditAction.CREATE_ESTORNO,
            username,
            f"Estorno adicionado em {item['date']}: {item['reason']} (R$ {_number(item['valorEstorno'])})",
        )

    def log_estorno_deleted(self, username: str, item: Dict[str, Any]) -> None:
        self.log(AuditAction.DELETE_ESTORNO, username, f"Estorno removido: {item.get('reason')} (ID: {item.get('id')})")

    def log_estorno_relaunched(self, username: str, original_id: str, credit: Dict[str, Any]) -> None:
        self.log(
            AuditAction.RELAUNCH_ESTORNO,
            username,
            f"Estorno ID {original_id} relançado como crédito de {_number(credit['valorEstorno'])}",
        )

    def log_person_renamed(self, username: str, old_name: str, new_name: str, updated: int) -> None:
        self.log(
            AuditAction.RENAME_PERSON,
            username,
            f"Pessoa '{old_name}' renomeada para '{new_name}' em {updated} registro(s).",
        )

    def get_recent(self, limit: int = DEFAULT_LIMIT) -> List[Dict[str, Any]]:
        """
        Args:
            limit: Cantidad máxima (más recientes primero)
        """
        return self.audit_repo.get_recent(limit)


def _number(value: float):
    """-30.0 → -30, -30.5 → -30.5 (como se muestra en la interfaz)."""
    value = float(value)
    return int(value) if value.is_integer() else value
