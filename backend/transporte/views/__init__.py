from .mixins import MotoristaScopedViewSetMixin
from .identity import MotoristaViewSet, UsuarioViewSet, ConfiguracaoViewSet, password_reset_request, password_reset_confirm, verify_email
from .cadastro import EscolaViewSet, VeiculoViewSet, PassageiroViewSet, PrePassageiroViewSet, pre_cadastro_publico
from .cobranca import CobrancaViewSet
from .expense import GastoViewSet
from .whatsapp import WhatsappViewSet
from .subscription import PlanoViewSet, AssinaturaViewSet, AssinaturaCobrancaViewSet, calcular_preco_preview, register_view, asaas_webhook
from .reports.dashboard import dashboard_view
from .reports.relatorios import relatorio_mensal_view
