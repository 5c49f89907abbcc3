import logging
import json
import secrets
from rest_framework import viewsets, permissions, status
from rest_framework.decorators import action, api_view, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from django.conf import settings as django_settings
from django.db import transaction
from django.db.models import Prefetch
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST
from requests.exceptions import RequestException
from resend.exceptions import ResendError

from .mixins import AuthThrottle, PaymentRateThrottle, parse_int, resposta_erro_gateway
from ..asaas_service import consultar_cobranca_asaas
from ..helpers.emails import enviar_verificacao_email
from ..models import (
    AssinaturaCobranca, AssinaturaMotorista, Cobranca, Motorista, Plano, Usuario, WebhookLog,
)
from ..serializers import AssinaturaCobrancaSerializer, AssinaturaMotoristaSerializer, PlanoSerializer
from ..services import assinatura as assinatura_service
from ..services import billing, entitlements
from ..services.validators import is_valid_cpf_cnpj, is_valid_telefone, normalize_digits

logger = logging.getLogger(__name__)

EVENTOS_PAGAMENTO = ('PAYMENT_RECEIVED', 'PAYMENT_CONFIRMED')
STATUS_PAGO_GATEWAY = ('RECEIVED', 'CONFIRMED', 'RECEIVED_IN_CASH')


# ──────────────────────────────────────────────
# Planos
# ──────────────────────────────────────────────

class PlanoViewSet(viewsets.ReadOnlyModelViewSet):
    """Public endpoint - planos base com as faixas de franquia. No auth required."""
    queryset = Plano.objects.filter(ativo=True, tipo='base').prefetch_related(
        Prefetch('sub_planos', queryset=Plano.objects.order_by('franquia_cobrancas_mes'))
    ).order_by('ordem')
    serializer_class = PlanoSerializer
    permission_classes = []
    pagination_class = None


@api_view(['GET'])
@permission_classes([AllowAny])
def calcular_preco_preview(request):
    """GET /api/planos/calcular-preco-preview/?quantidade=60 - preço do Plano Sob Medida."""
    quantidade = parse_int(request.query_params.get('quantidade'))
    if not quantidade or quantidade <= 0:
        return Response({'detail': 'Informe uma quantidade válida.'}, status=400)
    if quantidade > entitlements.QUANTIDADE_MAXIMA_PASSAGEIROS_CADASTRO:
        return Response(
            {'detail': f'Quantidade máxima é {entitlements.QUANTIDADE_MAXIMA_PASSAGEIROS_CADASTRO} passageiros.'},
            status=400,
        )

    faixas = assinatura_service.sub_planos_profissional()
    if not faixas:
        return Response({'detail': 'Nenhuma faixa de franquia disponível.'}, status=400)

    preco = entitlements.calcular_preco_personalizado(faixas, quantidade)
    preco['quantidade_minima'] = entitlements.quantidade_minima_personalizada(faixas)
    return Response(preco)


# ──────────────────────────────────────────────
# Assinatura do motorista
# ──────────────────────────────────────────────

class AssinaturaViewSet(viewsets.GenericViewSet):
    """Subscription management for the authenticated motorista."""
    serializer_class = AssinaturaMotoristaSerializer
    permission_classes = [permissions.IsAuthenticated]
    # Sem IsSubscriptionActive: o motorista precisa chegar aqui para regularizar

    def _get_assinatura(self):
        return AssinaturaMotorista.objects.select_related('plano', 'pending_plano').get(
            motorista=self.request.user.motorista
        )

    def _resposta_troca(self, assinatura, cobranca):
        assinatura.refresh_from_db()
        data = {
            'assinatura': self.get_serializer(assinatura).data,
            'cobranca': AssinaturaCobrancaSerializer(cobranca).data if cobranca else None,
        }
        return Response(data, status=status.HTTP_201_CREATED if cobranca else status.HTTP_200_OK)

    def _plano_do_body(self, request):
        slug = request.data.get('plano_slug')
        return Plano.objects.filter(slug=slug, ativo=True).first() if slug else None

    @action(detail=False, methods=['get'], url_path='status')
    def status_assinatura(self, request):
        """GET /api/assinatura/status/ - assinatura atual, cobrança pendente e ações liberadas."""
        try:
            assinatura = self._get_assinatura()
        except AssinaturaMotorista.DoesNotExist:
            return Response({'detail': 'Assinatura não encontrada.'}, status=404)

        pendente = assinatura.cobrancas.filter(status='pendente_pagamento').first()
        data = self.get_serializer(assinatura).data
        data['cobranca_pendente'] = AssinaturaCobrancaSerializer(pendente).data if pendente else None
        data['acoes'] = billing.resumo_acoes(assinatura.motorista)
        return Response(data)

    @action(detail=False, methods=['post'])
    def upgrade(self, request):
        """
        POST /api/assinatura/upgrade/
        Body: { "plano_slug": "profissional-50" } ou { "plano_slug": "profissional", "quantidade": 50 }
        """
        plano = self._plano_do_body(request)
        if plano is None:
            return Response({'detail': 'Plano não encontrado.'}, status=400)
        try:
            assinatura = self._get_assinatura()
            cobranca = assinatura_service.solicitar_troca_plano(
                assinatura, plano, parse_int(request.data.get('quantidade'))
            )
        except AssinaturaMotorista.DoesNotExist:
            return Response({'detail': 'Assinatura não encontrada.'}, status=404)
        except (assinatura_service.TrocaPlanoInvalida, ValueError) as e:
            return Response({'detail': str(e)}, status=400)
        return self._resposta_troca(assinatura, cobranca)

    @action(detail=False, methods=['post'])
    def downgrade(self, request):
        """POST /api/assinatura/downgrade/ - Body: { "plano_slug": "essencial" }. Aplicado na hora."""
        plano = self._plano_do_body(request)
        if plano is None:
            return Response({'detail': 'Plano não encontrado.'}, status=400)
        try:
            assinatura = self._get_assinatura()
            assinatura_service.reduzir_plano(assinatura, plano)
        except AssinaturaMotorista.DoesNotExist:
            return Response({'detail': 'Assinatura não encontrada.'}, status=404)
        except assinatura_service.TrocaPlanoInvalida as e:
            return Response({'detail': str(e)}, status=400)
        return self._resposta_troca(assinatura, None)

    @action(detail=False, methods=['post'], url_path='trocar-subplano')
    def trocar_subplano(self, request):
        """POST /api/assinatura/trocar-subplano/ - Body: { "sub_plano_id": 3 }"""
        sub_plano = Plano.objects.filter(
            pk=parse_int(request.data.get('sub_plano_id')), tipo='sub', ativo=True
        ).first()
        if sub_plano is None:
            return Response({'detail': 'Faixa de franquia não encontrada.'}, status=400)
        try:
            assinatura = self._get_assinatura()
            cobranca = assinatura_service.trocar_subplano(assinatura, sub_plano)
        except AssinaturaMotorista.DoesNotExist:
            return Response({'detail': 'Assinatura não encontrada.'}, status=404)
        except assinatura_service.TrocaPlanoInvalida as e:
            return Response({'detail': str(e)}, status=400)
        return self._resposta_troca(assinatura, cobranca)

    @action(detail=False, methods=['post'])
    def personalizado(self, request):
        """POST /api/assinatura/personalizado/ - Body: { "quantidade": 120 }"""
        quantidade = parse_int(request.data.get('quantidade'))
        if not quantidade or quantidade <= 0:
            return Response({'detail': 'Informe uma quantidade válida.'}, status=400)
        try:
            assinatura = self._get_assinatura()
            cobranca = assinatura_service.contratar_personalizado(assinatura, quantidade)
        except AssinaturaMotorista.DoesNotExist:
            return Response({'detail': 'Assinatura não encontrada.'}, status=404)
        except (assinatura_service.TrocaPlanoInvalida, ValueError) as e:
            return Response({'detail': str(e)}, status=400)
        return self._resposta_troca(assinatura, cobranca)

    @action(detail=False, methods=['post'])
    def cancelar(self, request):
        """POST /api/assinatura/cancelar/ - acesso mantido até o fim da vigência."""
        try:
            assinatura = self._get_assinatura()
            assinatura_service.cancelar(assinatura)
        except AssinaturaMotorista.DoesNotExist:
            return Response({'detail': 'Assinatura não encontrada.'}, status=404)
        except assinatura_service.TrocaPlanoInvalida as e:
            return Response({'detail': str(e)}, status=400)
        logger.info(f'Assinatura cancelada pelo motorista {assinatura.motorista_id}')
        return Response(self.get_serializer(assinatura).data)


class AssinaturaCobrancaViewSet(viewsets.ReadOnlyModelViewSet):
    """Faturas da plataforma para o motorista autenticado."""
    serializer_class = AssinaturaCobrancaSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        queryset = AssinaturaCobranca.objects.select_related('plano', 'assinatura')
        if self.request.user.is_superuser:
            return queryset
        return queryset.filter(assinatura__motorista=self.request.user.motorista)

    @action(detail=True, methods=['post'], url_path='gerar-pix', throttle_classes=[PaymentRateThrottle])
    def gerar_pix(self, request, pk=None):
        cobranca = self.get_object()
        if cobranca.status != 'pendente_pagamento':
            return Response({'detail': 'Cobrança não está pendente.'}, status=400)
        try:
            assinatura_service.gerar_pix(cobranca)
        except RequestException as e:
            return resposta_erro_gateway(e, f'(assinatura-cobranca {cobranca.id})')
        return Response(self.get_serializer(cobranca).data)

    @action(detail=True, methods=['get'], url_path='status', throttle_classes=[PaymentRateThrottle])
    def status_pagamento(self, request, pk=None):
        """Consulta o gateway e dá baixa se o PIX já foi pago (fallback do webhook)."""
        cobranca = self.get_object()
        if cobranca.status == 'pendente_pagamento' and cobranca.asaas_payment_id:
            try:
                payment = consultar_cobranca_asaas(cobranca.asaas_payment_id)
            except RequestException as e:
                return resposta_erro_gateway(e, f'(assinatura-cobranca {cobranca.id})')
            if payment.get('status') in STATUS_PAGO_GATEWAY:
                assinatura_service.confirmar_pagamento(cobranca)
        return Response(self.get_serializer(cobranca).data)


# ──────────────────────────────────────────────
# Cadastro público
# ──────────────────────────────────────────────

@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([AuthThrottle])
def register_view(request):
    """
    POST /api/register/
    Cria motorista + usuário, inicia o plano escolhido e envia email de verificação.
    Body: { nome, cpf_cnpj, email, telefone, senha, plano_slug?, quantidade? }
    """
    nome       = (request.data.get('nome') or '').strip()
    cpf_cnpj   = (request.data.get('cpf_cnpj') or '').strip()
    email      = (request.data.get('email') or '').strip().lower()
    telefone   = (request.data.get('telefone') or '').strip()
    senha      = (request.data.get('senha') or '').strip()
    plano_slug = (request.data.get('plano_slug') or entitlements.PLANO_GRATUITO).strip()
    quantidade = parse_int(request.data.get('quantidade'))

    errors = {}
    if not nome:
        errors['nome'] = 'Nome é obrigatório.'
    cpf_cnpj_digits = normalize_digits(cpf_cnpj)
    if not cpf_cnpj_digits:
        errors['cpf_cnpj'] = 'CPF ou CNPJ é obrigatório.'
    elif not is_valid_cpf_cnpj(cpf_cnpj_digits):
        errors['cpf_cnpj'] = 'CPF/CNPJ inválido.'
    if not email:
        errors['email'] = 'E-mail é obrigatório.'
    elif Usuario.objects.filter(email__iexact=email).exists():
        errors['email'] = 'Este e-mail já está cadastrado.'
    if not is_valid_telefone(telefone):
        errors['telefone'] = 'Telefone deve ter 11 dígitos com DDD.'
    if not senha:
        errors['senha'] = 'Senha é obrigatória.'
    elif len(senha) < 8:
        errors['senha'] = 'A senha deve ter pelo menos 8 caracteres.'
    plano = Plano.objects.filter(slug=plano_slug, ativo=True).first()
    if plano is None:
        errors['plano_slug'] = 'Plano não encontrado.'
    if errors:
        return Response(errors, status=400)

    try:
        with transaction.atomic():
            motorista = Motorista.objects.create(
                nome=nome,
                cpf_cnpj=cpf_cnpj_digits,
                email=email,
                telefone=normalize_digits(telefone),
            )
            partes = nome.split()
            user = Usuario.objects.create_user(
                username=email,
                email=email,
                password=senha,
                motorista=motorista,
                first_name=partes[0],
                last_name=' '.join(partes[1:]),
                is_email_verified=False,
            )
            cobranca = assinatura_service.iniciar_plano(motorista.assinatura, plano, quantidade)
    except (assinatura_service.TrocaPlanoInvalida, ValueError) as e:
        return Response({'quantidade': str(e)}, status=400)

    try:
        enviar_verificacao_email(user)
    except (ResendError, RequestException) as e:
        logger.error(f'Erro ao enviar email de verificação para o usuário {user.pk}: {e}')

    logger.info(f'Motorista {motorista.id} cadastrado no plano {plano.slug}')
    return Response({
        'detail': 'Conta criada! Verifique seu email para ativar o acesso.',
        'cobranca_id': cobranca.id if cobranca else None,
    }, status=201)


# ──────────────────────────────────────────────
# Webhook do Asaas
# ──────────────────────────────────────────────

def _cobranca_da_assinatura(payment):
    payment_id = payment.get('id')
    cobranca = None
    if payment_id:
        cobranca = AssinaturaCobranca.objects.select_for_update().filter(asaas_payment_id=payment_id).first()
    referencia = payment.get('externalReference') or ''
    if cobranca is None and referencia.startswith('assinatura-cobranca-'):
        cobranca_id = parse_int(referencia.rsplit('-', 1)[-1])
        cobranca = AssinaturaCobranca.objects.select_for_update().filter(pk=cobranca_id).first()
    return cobranca


def _cobranca_do_passageiro(payment):
    payment_id = payment.get('id')
    if not payment_id:
        return None
    return Cobranca.objects.select_for_update().filter(asaas_payment_id=payment_id).first()


@csrf_exempt
@require_POST
def asaas_webhook(request):
    """
    POST /api/asaas/webhook/
    Recebe eventos do Asaas: baixa de faturas da plataforma e de mensalidades dos passageiros.
    """
    token = (
        request.headers.get('asaas-access-token')
        or request.headers.get('x-asaas-access-token')
        or request.GET.get('token', '')
    )
    configured_token = (django_settings.ASAAS_WEBHOOK_TOKEN or '').strip()
    # Fail closed when webhook secret is not configured.
    if not configured_token:
        logger.error('Asaas webhook rejected: ASAAS_WEBHOOK_TOKEN not configured.')
        return JsonResponse({'detail': 'Unauthorized'}, status=401)
    if not token or not secrets.compare_digest(str(token), configured_token):
        return JsonResponse({'detail': 'Unauthorized'}, status=401)

    try:
        payload = json.loads(request.body)
    except json.JSONDecodeError:
        return JsonResponse({'detail': 'Invalid JSON'}, status=400)
    if not isinstance(payload, dict) or not isinstance(payload.get('payment') or {}, dict):
        return JsonResponse({'detail': 'Invalid payload'}, status=400)

    event_type = payload.get('event', '')
    event_id = payload.get('id', '') or ''
    payment = payload.get('payment') or {}
    payment_id = payment.get('id', '') or ''

    try:
        with transaction.atomic():
            already_processed = WebhookLog.objects.filter(
                event_type=event_type,
                asaas_payment_id=payment_id,
                processed=True,
            ).exists()
            if already_processed:
                return JsonResponse({'detail': 'already processed'}, status=200)

            log = WebhookLog.objects.create(
                event_type=event_type,
                event_id=event_id,
                asaas_payment_id=payment_id,
                payload=payload,
            )

            fatura = _cobranca_da_assinatura(payment)
            if fatura is not None:
                if event_type in EVENTOS_PAGAMENTO:
                    assinatura_service.confirmar_pagamento(fatura)
                elif event_type == 'PAYMENT_OVERDUE':
                    assinatura_service.marcar_atraso(fatura)
            else:
                cobranca = _cobranca_do_passageiro(payment)
                if cobranca is not None and event_type in EVENTOS_PAGAMENTO:
                    billing.confirmar_pagamento_gateway(cobranca, payment)
                elif cobranca is None:
                    logger.info(f'Asaas webhook {event_type} for unknown payment {payment_id}')

            log.processed = True
            log.save(update_fields=['processed'])
    except Exception as e:
        logger.error(f'Asaas webhook processing error: {e}')
        WebhookLog.objects.create(
            event_type=event_type,
            event_id=event_id,
            asaas_payment_id=payment_id,
            payload=payload,
            error=str(e),
        )

    return JsonResponse({'received': True})
