# ==============================================================================
# SERVICIO DE USUARIOS
# ==============================================================================
# Autenticación y gestión de usuarios (solo administradores).
#
# REGLAS:
# - El usuario con id '1' es el administrador principal: NO puede eliminarse
# - Los nombres de usuario son únicos sin distinguir mayúsculas
# - Los operadores deben loguearse en uno de sus turnos permitidos
# - Las contraseñas se guardan con hash de werkzeug
# ==============================================================================

import uuid
from typing import Any, Dict, List, Optional

from werkzeug.security import generate_password_hash, check_password_hash

from caixa_tulsi.models import User, UserRole, OperatorShift, ALL_PAGES
from caixa_tulsi.repositories import now_iso
from caixa_tulsi.services.audit_service import AuditService


class AuthenticationError(Exception):
    """Login rechazado. Lleva el código HTTP que corresponde."""

    def __init__(self, message: str, status: int = 401):
        super().__init__(message)
        self.message = message
        self.status = status


class UserService:
    """
    Servicio para gestión de usuarios.

    Las operaciones de CRUD devuelven dicts {'ok': bool, 'error': str, 'code': str}
    donde code es 'invalid', 'conflict', 'not_found' o 'forbidden'.
    """

    MAIN_ADMIN_ID = '1'
    DEFAULT_ADMIN_USERNAME = 'admin'

    VALID_ROLES = frozenset(r.value for r in UserRole)
    VALID_SHIFTS = frozenset(s.value for s in OperatorShift)

    def __init__(self, user_repo, audit_service: Optional[AuditService] = None):
        """
        Args:
            user_repo: Repositorio de usuarios (JSON o MySQL)
            audit_service: Servicio de auditoría (opcional)
        """
        self.user_repo = user_repo
        self.audit_service = audit_service

    # =========================================================================
    # INICIALIZACIÓN
    # =========================================================================

    def ensure_default_admin(self, password: Optional[str]) -> bool:
        """
        Crea el administrador principal si no hay ningún usuario.

        Args:
            password: Contraseña inicial (CAIXA_ADMIN_PASSWORD)

        Returns:
            True si se creó
        """
        if self.user_repo.get_all_users():
            return False
        if not password:
            print("[SEGURIDAD] No hay usuarios y CAIXA_ADMIN_PASSWORD no está definida: "
                  "no se crea el administrador por defecto")
            return False
        admin = User(
            id=self.MAIN_ADMIN_ID,
            username=self.DEFAULT_ADMIN_USERNAME,
            password_hash=generate_password_hash(password),
            role=UserRole.ADMINISTRATOR,
            allowed_pages=list(ALL_PAGES),
            created_at=now_iso(),
        )
        self.user_repo.save_user(admin.to_dict())
        print(f"[SEGURIDAD] Administrador por defecto '{self.DEFAULT_ADMIN_USERNAME}' creado")
        return True

    # =========================================================================
    # AUTENTICACIÓN
    # =========================================================================

    def authenticate(self, username: str, password: str, selected_shift: Optional[str] = None) -> Dict[str, Any]:
        """
        Valida credenciales y turno.

        Args:
            username: Nombre de usuario (sin distinguir mayúsculas)
            password: Contraseña en texto plano
            selected_shift: Turno elegido (obligatorio para operadores)

        Returns:
            Datos públicos de la sesión: {id, username, role, shift, allowedPages}

        Raises:
            AuthenticationError: Con el mensaje y el código HTTP
        """
        if not username or not password:
            raise AuthenticationError('Usuário e senha são obrigatórios.', 400)

        data = self.user_repo.get_user_by_username(username)
        if not data or not check_password_hash(data.get('password') or '', password):
            raise AuthenticationError('Usuário ou senha inválidos.', 401)

        user = User.from_dict(data)
        session_user = {
            'id': user.id,
            'username': user.username,
            'role': user.role.value,
            'allowedPages': user.allowed_pages or (list(ALL_PAGES) if user.is_admin() else []),
        }

        if not user.is_admin():
            if not selected_shift:
                raise AuthenticationError('Turno é obrigatório para operadores.', 400)
            if selected_shift not in user.shifts:
                raise AuthenticationError('Operador não tem permissão para este turno.', 403)
            session_user['shift'] = selected_shift

        if self.audit_service:
            self.audit_service.log_login(user.username)
        return session_user

    # =========================================================================
    # CRUD
    # =========================================================================

    def list_users(self) -> List[Dict[str, Any]]:
        """Usuarios sin contraseña."""
        return [User.from_dict(u).to_dict(include_password=False) for u in self.user_repo.get_all_users()]

    def _validate(self, role: Any, shifts: Any, allowed_pages: Any) -> Optional[str]:
        if role not in self.VALID_ROLES:
            return f'Função inválida: {role}.'
        if not isinstance(shifts, list) or any(s not in self.VALID_SHIFTS for s in shifts):
            return 'Turnos inválidos.'
        if not isinstance(allowed_pages, list) or any(p not in ALL_PAGES for p in allowed_pages):
            return 'Páginas permitidas inválidas.'
        if role == UserRole.OPERATOR.value and (not shifts or not allowed_pages):
            return 'Dados do operador incompletos. Todas as permissões são necessárias.'
        return None

    def create_user(self, data: Dict[str, Any], actor: str = 'sistema') -> Dict[str, Any]:
        """
        Crea un usuario.

        Args:
            data: {username, password, role, shifts, allowedPages}
            actor: Usuario que realiza la acción

        Returns:
            {'ok': True, 'user': {...}} o {'ok': False, 'error': str, 'code': str}
        """
        username = str(data.get('username') or '').strip()
        password = data.get('password') or ''
        role = data.get('role')
        if not username or not password or not role:
            return {'ok': False, 'error': 'Nome de usuário, senha e função são obrigatórios.', 'code': 'invalid'}

        shifts = data.get('shifts') or []
        allowed_pages = data.get('allowedPages')
        if allowed_pages is None and role == UserRole.ADMINISTRATOR.value:
            allowed_pages = list(ALL_PAGES)
        error = self._validate(role, shifts, allowed_pages or [])
        if error:
            return {'ok': False, 'error': error, 'code': 'invalid'}

        if self.user_repo.get_user_by_username(username):
            return {'ok': False, 'error': f'Usuário "{username}" já existe.', 'code': 'conflict'}

        user = User(
            id=uuid.uuid4().hex[:12],
            username=username,
            password_hash=generate_password_hash(password),
            role=UserRole(role),
            shifts=shifts if role == UserRole.OPERATOR.value else [],
            allowed_pages=allowed_pages or [],
            created_at=now_iso(),
        )
        self.user_repo.save_user(user.to_dict())
        if self.audit_service:
            self.audit_service.log('CREATE_USER', actor, f"Usuário '{username}' foi criado.")
        return {'ok': True, 'user': user.to_dict(include_password=False)}

    def update_user(self, user_id: str, data: Dict[str, Any], actor: str = 'sistema') -> Dict[str, Any]:
        """
        Actualiza un usuario. Una contraseña vacía conserva la actual.

        Returns:
            {'ok': True, 'user': {...}} o {'ok': False, 'error': str, 'code': str}
        """
        current = self.user_repo.get_user(user_id)
        if not current:
            return {'ok': False, 'error': 'Usuário não encontrado.', 'code': 'not_found'}
        user = User.from_dict(current)

        username = str(data.get('username') or user.username).strip()
        role = data.get('role') or user.role.value
        shifts = data.get('shifts', user.shifts) or []
        allowed_pages = data.get('allowedPages', user.allowed_pages) or []

        if user.id == self.MAIN_ADMIN_ID and role != UserRole.ADMINISTRATOR.value:
            return {'ok': False, 'error': 'O administrador principal não pode mudar de função.', 'code': 'forbidden'}

        error = self._validate(role, shifts, allowed_pages)
        if error:
            return {'ok': False, 'error': error, 'code': 'invalid'}

        other = self.user_repo.get_user_by_username(username)
        if other and str(other.get('id')) != user.id:
            return {'ok': False, 'error': f'Usuário "{username}" já existe.', 'code': 'conflict'}

        user.username = username
        user.role = UserRole(role)
        user.shifts = shifts if role == UserRole.OPERATOR.value else []
        user.allowed_pages = allowed_pages
        if data.get('password'):
            user.password_hash = generate_password_hash(data['password'])

        self.user_repo.save_user(user.to_dict())
        if self.audit_service:
            self.audit_service.log('UPDATE_USER', actor, f"Usuário '{username}' foi atualizado.")
        return {'ok': True, 'user': user.to_dict(include_password=False)}

    def delete_user(self, user_id: str, actor: str = 'sistema') -> Dict[str, Any]:
        """
        Elimina un usuario. El administrador principal está protegido.

        Returns:
            {'ok': True} o {'ok': False, 'error': str, 'code': str}
        """
        if str(user_id) == self.MAIN_ADMIN_ID:
            return {'ok': False, 'error': 'Não é possível remover a conta de administrador original.',
                    'code': 'forbidden'}
        current = self.user_repo.get_user(user_id)
        if not current or not self.user_repo.delete_user(user_id):
            return {'ok': False, 'error': 'Usuário não encontrado.', 'code': 'not_found'}
        if self.audit_service:
            self.audit_service.log('DELETE_USER', actor, f"Usuário '{current.get('username')}' foi removido.")
        return {'ok': True}