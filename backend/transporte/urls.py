from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import (
    MotoristaViewSet, UsuarioViewSet, ConfiguracaoViewSet,
    EscolaViewSet, VeiculoViewSet, PassageiroViewSet, PrePassageiroViewSet,
    CobrancaViewSet, GastoViewSet, WhatsappViewSet,
    PlanoViewSet, AssinaturaViewSet, AssinaturaCobrancaViewSet,
    password_reset_request, password_reset_confirm, verify_email,
    pre_cadastro_publico, calcular_preco_preview, register_view, asaas_webhook,
    dashboard_view, relatorio_mensal_view,
)
from .pdf_views import recibo_cobranca, relatorio_mensal_pdf

router = DefaultRouter()
router.register(r'motoristas', MotoristaViewSet, basename='motorista')
router.register(r'usuarios', UsuarioViewSet, basename='usuario')
router.register(r'configuracoes', ConfiguracaoViewSet, basename='configuracao')
router.register(r'escolas', EscolaViewSet, basename='escola')
router.register(r'veiculos', VeiculoViewSet, basename='veiculo')
router.register(r'passageiros', PassageiroViewSet, basename='passageiro')
router.register(r'pre-passageiros', PrePassageiroViewSet, basename='pre-passageiro')
router.register(r'cobrancas', CobrancaViewSet, basename='cobranca')
router.register(r'gastos', GastoViewSet, basename='gasto')
router.register(r'planos', PlanoViewSet, basename='plano')
router.register(r'assinatura', AssinaturaViewSet, basename='assinatura')
router.register(r'assinatura-cobrancas', AssinaturaCobrancaViewSet, basename='assinatura-cobranca')
router.register(r'whatsapp', WhatsappViewSet, basename='whatsapp')

urlpatterns = [
    # Rotas fixas antes do router para não colidirem com <pk>
    path('planos/calcular-preco-preview/', calcular_preco_preview, name='calcular-preco-preview'),
    path('cobrancas/<int:pk>/recibo/', recibo_cobranca, name='cobranca-recibo'),

    path('', include(router.urls)),

    # Cadastro e autenticação
    path('register/', register_view, name='register'),
    path('verify-email/', verify_email, name='verify-email'),
    path('password-reset/', password_reset_request, name='password-reset'),
    path('password-reset/confirm/', password_reset_confirm, name='password-reset-confirm'),

    # Link público de pré-cadastro
    path('pre-cadastro/<int:motorista_id>/', pre_cadastro_publico, name='pre-cadastro'),

    # Relatórios
    path('dashboard/', dashboard_view, name='dashboard'),
    path('relatorios/', relatorio_mensal_view, name='relatorio-mensal'),
    path('relatorios/pdf/', relatorio_mensal_pdf, name='relatorio-mensal-pdf'),

    # Webhooks
    path('asaas/webhook/', asaas_webhook, name='asaas-webhook'),
]
