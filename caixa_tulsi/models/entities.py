# ==============================================================================
# ENTIDADES DEL DOMINIO - Definiciones de dataclasses
# ==============================================================================
# Cada entidad representa un concepto del negocio (lanzamientos diarios,
# usuarios, auditoría, totales agregados).
# Diseñadas para ser independientes del mecanismo de persistencia.
# ==============================================================================

from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any
from enum import Enum


# ==============================================================================
# ENUMERACIONES - Roles, turnos y tipos válidos
# ==============================================================================

class UserRole(str, Enum):
    """Roles de usuario disponibles en el sistema."""
    ADMINISTRATOR = "administrator"
    OPERATOR = "operator"


class OperatorShift(str, Enum):
    """Turnos que puede cubrir un operador."""
    FIRST = "first"
    SECOND = "second"


class PageId(str, Enum):
    """Páginas a las que se puede dar acceso."""
    DASHBOARD = "dashboard"
    ENTRY = "entry"
    REPORTS = "reports"
    CONTROLS = "controls"


class FaturadoType(str, Enum):
    """Categoría del cliente de un item faturado."""
    HOTEL = "hotel"
    FUNCIONARIO = "funcionario"
    OUTROS = "outros"


class EventLocation(str, Enum):
    """Ubicación de un sub-evento (venta directa u hotel)."""
    DIRETO = "DIRETO"
    HOTEL = "HOTEL"


class AuditAction(str, Enum):
    """Acciones registradas en la auditoría."""
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGOUT = "LOGOUT"
    CREATE_ENTRY = "CREATE_ENTRY"
    UPDATE_ENTRY = "UPDATE_ENTRY"
    SAVE_SETTING = "SAVE_SETTING"
    CREATE_USER = "CREATE_USER"
    UPDATE_USER = "UPDATE_USER"
    DELETE_USER = "DELETE_USER"
    CREATE_ESTORNO = "CREATE_ESTORNO"
    DELETE_ESTORNO = "DELETE_ESTORNO"
    RELAUNCH_ESTORNO = "RELAUNCH_ESTORNO"
    RENAME_PERSON = "RENAME_PERSON"


class EstornoReason(str, Enum):
    """Motivo de un estorno. Solo RELANCAMENTO es un crédito (valor positivo)."""
    DUPLICIDADE = "duplicidade"
    ERRO_DE_LANCAMENTO = "erro de lancamento"
    PAGAMENTO_DIRETO = "pagamento direto"
    NAO_CONSUMIDO = "nao consumido"
    ASSINATURA_DIVERGENTE = "assinatura divergente"
    CORTESIA = "cortesia"
    RELANCAMENTO = "relancamento"


ALL_PAGES = [p.value for p in PageId]


# ==============================================================================
# TOTALES - Resultado de cualquier cálculo {qtd, valor}
# ==============================================================================

@dataclass
class Totals:
    """
    Par cantidad/valor producido por las calculadoras.

    Los totales nunca se persisten: se derivan siempre al leer el lanzamiento.
    """
    qtd: float = 0.0
    valor: float = 0.0

    def __add__(self, other: 'Totals') -> 'Totals':
        return Totals(self.qtd + other.qtd, self.valor + other.valor)

    def __sub__(self, other: 'Totals') -> 'Totals':
        return Totals(self.qtd - other.qtd, self.valor - other.valor)

    def is_zero(self) -> bool:
        return self.qtd == 0 and self.valor == 0

    def to_dict(self) -> Dict[str, float]:
        """Serializa redondeando a centavos."""
        return {'qtd': round(self.qtd, 2), 'valor': round(self.valor, 2)}


@dataclass
class MadrugadaTotals:
    """Room service de madrugada: valor y dos contadores distintos."""
    valor: float = 0.0
    qtd_pedidos: float = 0.0
    qtd_pratos: float = 0.0
    pag_direto: float = 0.0
    valor_servico: float = 0.0

    @property
    def as_totals(self) -> Totals:
        return Totals(self.qtd_pedidos, self.valor)

    def to_dict(self) -> Dict[str, float]:
        return {
            'valor': round(self.valor, 2),
            'qtdPedidos': round(self.qtd_pedidos, 2),
            'qtdPratos': round(self.qtd_pratos, 2),
        }


@dataclass
class ConsumoInternoTotals:
    """Consumo interno de un turno: total valorizado más el reajuste."""
    qtd: float = 0.0
    valor: float = 0.0
    reajuste: float = 0.0

    @property
    def as_totals(self) -> Totals:
        return Totals(self.qtd, self.valor)


# ==============================================================================
# ENTIDADES DE USUARIO
# ==============================================================================

@dataclass
class User:
    """
    Representa un usuario del sistema.

    Attributes:
        id: Identificador (el '1' es el administrador principal)
        username: Nombre de login (único, sin distinguir mayúsculas)
        password_hash: Hash werkzeug de la contraseña
        role: administrator u operator
        shifts: Turnos permitidos (solo operadores)
        allowed_pages: Páginas visibles para el usuario
    """
    id: str
    username: str
    password_hash: str = ''
    role: UserRole = UserRole.OPERATOR
    shifts: List[str] = field(default_factory=list)
    allowed_pages: List[str] = field(default_factory=list)
    created_at: Optional[str] = None

    def is_admin(self) -> bool:
        """Verifica si el usuario tiene permisos de administrador."""
        return self.role == UserRole.ADMINISTRATOR

    def to_dict(self, include_password: bool = True) -> Dict[str, Any]:
        """Convierte a diccionario para persistencia o respuesta API."""
        d = {
            'id': self.id,
            'username': self.username,
            'role': self.role.value if isinstance(self.role, Enum) else self.role,
            'shifts': list(self.shifts),
            'allowedPages': list(self.allowed_pages),
        }
        if self.created_at:
            d['createdAt'] = self.created_at
        if include_password:
            d['password'] = self.password_hash
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'User':
        """Crea instancia desde diccionario."""
        try:
            role = UserRole(data.get('role', 'operator'))
        except ValueError:
            role = UserRole.OPERATOR
        return cls(
            id=str(data.get('id', '')),
            username=data.get('username', ''),
            password_hash=data.get('password', ''),
            role=role,
            shifts=list(data.get('shifts') or []),
            allowed_pages=list(data.get('allowedPages') or []),
            created_at=data.get('createdAt'),
        )


# ==============================================================================
# ENTIDADES DE AUDITORÍA
# ==============================================================================

@dataclass
class AuditLog:
    """Registro de auditoría (solo se agrega, nunca se modifica)."""
    id: str
    timestamp: str
    username: str
    action: str
    details: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'timestamp': self.timestamp,
            'username': self.username,
            'action': self.action,
            'details': self.details,
        }
