import logging

from rest_framework import viewsets, permissions, status
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from django.db.models import Count, Q, Sum
from django.utils import timezone
from requests.exceptions import RequestException

from .mixins import MotoristaScopedViewSetMixin, PaymentRateThrottle, parse_int, resposta_erro_gateway
from ..asaas_service import cancelar_cobranca_asaas
from ..models import Cobranca, WhatsappInstancia
from ..pagination import DynamicPageSizePagination
from ..permissions import HasFeature, IsSubscriptionActive
from ..serializers import (
    CobrancaSerializer, CobrancaNotificacaoSerializer,
    RegistrarPagamentoSerializer, GerarMesSerializer,
)
from ..services import billing, cobranca_rules, entitlements, reminders

logger = logging.getLogger(__name__)


class CobrancaViewSet(MotoristaScopedViewSetMixin, viewsets.ModelViewSet):
    queryset = Cobranca.objects.all()
    serializer_class = CobrancaSerializer
    pagination_class = DynamicPageSizePagination

    ORDERING_FIELDS = {
        'data_vencimento', '-data_vencimento', 'data_pagamento', '-data_pagamento',
        'valor', '-valor', 'passageiro__nome', '-passageiro__nome',
    }

    def _filtrar(self, queryset, incluir_status=True):
        params = self.request.query_params
        hoje = timezone.localdate()

        search = params.get('search')
        if search:
            queryset = queryset.filter(
                Q(passageiro__nome__icontains=search) | Q(passageiro__nome_responsavel__icontains=search)
            )

        passageiro_id = params.get('passageiro_id')
        if passageiro_id:
            queryset = queryset.filter(passageiro_id=passageiro_id)

        mes = parse_int(params.get('mes'))
        if mes:
            queryset = queryset.filter(mes=mes)
        ano = parse_int(params.get('ano'))
        if ano:
            queryset = queryset.filter(ano=ano)

        origem = params.get('origem')
        if origem:
            queryset = queryset.filter(origem=origem)

        if incluir_status:
            status_param = params.get('status')
            if status_param == cobranca_rules.STATUS_ATRASADO:
                queryset = queryset.filter(status='pendente', data_vencimento__lt=hoje)
            elif status_param == 'a_vencer':
                queryset = queryset.filter(status='pendente', data_vencimento__gte=hoje)
            elif status_param:
                queryset = queryset.filter(status=status_param)
        return queryset

    def get_queryset(self):
        queryset = super().get_queryset().select_related('passageiro', 'motorista')
        if self.action != 'list':
            return queryset

        queryset = self._filtrar(queryset)
        ordering = self.request.query_params.get('ordering')
        if ordering in self.ORDERING_FIELDS:
            queryset = queryset.order_by(ordering, 'id')
        return queryset

    def perform_destroy(self, instance):
        if cobranca_rules.permissoes(instance)['disable_excluir']:
            raise ValidationError({'detail': 'Cobrança paga pelo gateway não pode ser excluída.'})

        if instance.asaas_payment_id and instance.status == 'pendente':
            try:
                cancelar_cobranca_asaas(instance.asaas_payment_id)
            except RequestException as e:
                logger.warning(f'Could not cancel payment {instance.asaas_payment_id} in Asaas: {e}')
        instance.delete()

    @action(detail=True, methods=['post'], url_path='registrar-pagamento')
    def registrar_pagamento(self, request, pk=None):
        """
        POST /api/cobrancas/{id}/registrar-pagamento/
        Body: { data_pagamento?, valor_pago?, tipo_pagamento? }
        """
        cobranca = self.get_object()
        serializer = RegistrarPagamentoSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            billing.registrar_pagamento_manual(cobranca, **serializer.validated_data)
        except ValueError as e:
            return Response({'detail': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(self.get_serializer(cobranca).data)

    @action(detail=True, methods=['post'], url_path='desfazer-pagamento')
    def desfazer_pagamento(self, request, pk=None):
        cobranca = self.get_object()
        try:
            billing.desfazer_pagamento(cobranca)
        except ValueError as e:
            return Response({'detail': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(self.get_serializer(cobranca).data)

    @action(detail=False, methods=['get'], url_path='anos-disponiveis')
    def anos_disponiveis(self, request):
        anos = set(self.get_queryset().values_list('ano', flat=True).distinct())
        anos.add(timezone.localdate().year)
        return Response(sorted(anos, reverse=True))

    @action(detail=False, methods=['get'])
    def contagem(self, request):
        """Quantidade e valores por status, respeitando os filtros da listagem."""
        hoje = timezone.localdate()
        queryset = self._filtrar(self.get_queryset(), incluir_status=False)
        filtros = {
            'pago': Q(status='pago'),
            'pendente': Q(status='pendente', data_vencimento__gte=hoje),
            'atrasado': Q(status='pendente', data_vencimento__lt=hoje),
            'cancelada': Q(status='cancelada'),
        }
        agregados = {}
        for nome, filtro in filtros.items():
            agregados[f'{nome}_quantidade'] = Count('id', filter=filtro)
            agregados[f'{nome}_valor'] = Sum('valor', filter=filtro)
        totais = queryset.aggregate(total=Count('id'), **agregados)

        return Response({
            'total': totais['total'],
            **{
                nome: {
                    'quantidade': totais[f'{nome}_quantidade'],
                    'valor': totais[f'{nome}_valor'] or 0,
                }
                for nome in filtros
            },
        })

    @action(detail=True, methods=['get'])
    def notificacoes(self, request, pk=None):
        cobranca = self.get_object()
        historico = cobranca.notificacoes.all()
        return Response(CobrancaNotificacaoSerializer(historico, many=True).data)

    @action(
        detail=True, methods=['post'], url_path='enviar-notificacao',
        permission_classes=[
            permissions.IsAuthenticated, IsSubscriptionActive,
            HasFeature.for_feature(entitlements.FEATURE_NOTIFICACOES),
        ],
    )
    def enviar_notificacao(self, request, pk=None):
        cobranca = self.get_object()
        if not cobranca_rules.permissoes(cobranca)['can_send_notification']:
            return Response(
                {'detail': 'Só é possível notificar cobranças pendentes com PIX gerado.'},
                status=status.HTTP_400_BAD_REQUEST,
            )
        if not cobranca.passageiro.telefone_responsavel:
            return Response({'detail': 'Responsável sem telefone cadastrado.'}, status=status.HTTP_400_BAD_REQUEST)

        instancia = WhatsappInstancia.objects.filter(motorista=cobranca.motorista).first()
        if not instancia or not instancia.conectado:
            return Response({'detail': 'Conecte o WhatsApp para enviar notificações.'}, status=status.HTTP_400_BAD_REQUEST)

        try:
            reminders.enviar_notificacao_manual(cobranca)
        except RequestException as e:
            logger.warning(f'WhatsApp send failed for cobranca {cobranca.id}: {e}')
            return Response({'detail': 'Serviço de WhatsApp indisponível. Tente novamente.'}, status=503)
        return Response({'detail': 'Notificação enviada.'})

    @action(
        detail=True, methods=['post'], url_path='gerar-pix',
        permission_classes=[
            permissions.IsAuthenticated, IsSubscriptionActive,
            HasFeature.for_feature(entitlements.FEATURE_COBRANCA_AUTOMATICA),
        ],
        throttle_classes=[PaymentRateThrottle],
    )
    def gerar_pix(self, request, pk=None):
        """
        POST /api/cobrancas/{id}/gerar-pix/
        Emite o PIX que ficou pendente na geração do mês. Se o pagamento já foi
        criado no gateway, só o QR Code é buscado de novo.
        """
        cobranca = self.get_object()
        if cobranca.status != 'pendente':
            return Response({'detail': 'Cobrança não está pendente.'}, status=status.HTTP_400_BAD_REQUEST)
        if cobranca.qr_code_payload:
            return Response(self.get_serializer(cobranca).data)
        try:
            billing.emitir_pix(cobranca)
        except RequestException as e:
            return resposta_erro_gateway(e, f'(cobranca {cobranca.id})')
        return Response(self.get_serializer(cobranca).data)

    @action(detail=True, methods=['post'], url_path='toggle-lembretes')
    def toggle_lembretes(self, request, pk=None):
        cobranca = self.get_object()
        cobranca.desativar_lembretes = not cobranca.desativar_lembretes
        cobranca.save(update_fields=['desativar_lembretes', 'atualizado_em'])
        return Response(self.get_serializer(cobranca).data)

    @action(detail=False, methods=['post'], url_path='gerar-mes')
    def gerar_mes(self, request):
        """
        POST /api/cobrancas/gerar-mes/
        Body: { mes?, ano?, passageiro_ids? } - padrão: mês corrente, todos os ativos
        """
        motorista = self.get_motorista()
        if not motorista:
            return Response({'detail': 'Usuário não vinculado a um motorista.'}, status=status.HTTP_400_BAD_REQUEST)

        serializer = GerarMesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dados = serializer.validated_data

        passageiros = None
        if dados.get('passageiro_ids'):
            passageiros = motorista.passageiros.filter(ativo=True, id__in=dados['passageiro_ids'])

        resultado = billing.gerar_cobrancas_mes(
            motorista, mes=dados.get('mes'), ano=dados.get('ano'), passageiros=passageiros
        )
        return Response(resultado, status=status.HTTP_201_CREATED if resultado['criadas'] else status.HTTP_200_OK)
