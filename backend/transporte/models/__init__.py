from .identity import Motorista, Usuario
from .cadastro import Escola, Veiculo, Passageiro, PrePassageiro
from .cobranca import Cobranca, CobrancaNotificacao
from .expense import Gasto
from .subscription import Plano, AssinaturaMotorista, AssinaturaCobranca, WebhookLog
from .configuracoes import ConfiguracaoMotorista, WhatsappInstancia

__all__ = [
    'Motorista',
    'Usuario',
    'Escola',
    'Veiculo',
    'Passageiro',
    'PrePassageiro',
    'Cobranca',
    'CobrancaNotificacao',
    'Gasto',
    'Plano',
    'AssinaturaMotorista',
    'AssinaturaCobranca',
    'WebhookLog',
    'ConfiguracaoMotorista',
    'WhatsappInstancia',
]
