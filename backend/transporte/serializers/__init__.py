from .identity import (
    MotoristaSerializer,
    UsuarioSerializer,
    ConfiguracaoMotoristaSerializer,
    WhatsappInstanciaSerializer,
)
from .cadastro import (
    EscolaSerializer,
    VeiculoSerializer,
    PassageiroSerializer,
    PrePassageiroSerializer,
    FinalizarPrePassageiroSerializer,
)
from .cobranca import (
    CobrancaSerializer,
    CobrancaNotificacaoSerializer,
    RegistrarPagamentoSerializer,
    GerarMesSerializer,
)
from .expense import GastoSerializer
from .subscription import (
    PlanoSerializer,
    SubPlanoSerializer,
    AssinaturaMotoristaSerializer,
    AssinaturaCobrancaSerializer,
)

__all__ = [
    'MotoristaSerializer',
    'UsuarioSerializer',
    'ConfiguracaoMotoristaSerializer',
    'WhatsappInstanciaSerializer',
    'EscolaSerializer',
    'VeiculoSerializer',
    'PassageiroSerializer',
    'PrePassageiroSerializer',
    'FinalizarPrePassageiroSerializer',
    'CobrancaSerializer',
    'CobrancaNotificacaoSerializer',
    'RegistrarPagamentoSerializer',
    'GerarMesSerializer',
    'GastoSerializer',
    'PlanoSerializer',
    'SubPlanoSerializer',
    'AssinaturaMotoristaSerializer',
    'AssinaturaCobrancaSerializer',
]
