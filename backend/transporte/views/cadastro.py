import logging
from dataclasses import asdict

from rest_framework import viewsets, mixins, permissions, status
from rest_framework.decorators import action, api_view, permission_classes, throttle_classes
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle
from django.db import transaction
from django.db.models import Count, Q
from django.shortcuts import get_object_or_404

from .mixins import MotoristaScopedViewSetMixin
from ..models import Escola, Veiculo, Passageiro, PrePassageiro, Motorista
from ..pagination import DynamicPageSizePagination
from ..permissions import FeatureIndisponivel
from ..serializers import (
    EscolaSerializer, VeiculoSerializer, PassageiroSerializer,
    PrePassageiroSerializer, FinalizarPrePassageiroSerializer, CobrancaSerializer,
)
from ..services import billing, entitlements
from ..services.assinatura import sub_planos_profissional
from ..services.validators import is_valid_cpf, normalize_digits, normalizar_placa

logger = logging.getLogger(__name__)

CAMPOS_DADOS_PASSAGEIRO = (
    'nome', 'periodo', 'genero', 'observacoes',
    'nome_responsavel', 'email_responsavel', 'cpf_responsavel', 'telefone_responsavel',
    'logradouro', 'numero', 'bairro', 'cidade', 'estado', 'cep', 'referencia',
)


def _bool_param(value):
    if value is None:
        return None
    return str(value).lower() in ('1', 'true', 'sim')


def _verificar_limite_passageiros(motorista):
    plano = billing.plano_do_motorista(motorista)
    decisao = entitlements.pode_cadastrar_passageiro(plano, billing.total_passageiros(motorista))
    if not decisao.permitido:
        raise FeatureIndisponivel.from_decisao(decisao)
    return plano


def _verificar_automacao(motorista, plano, passageiro_ja_automatico=False):
    decisao = entitlements.validar_automacao(
        plano, True, billing.usados_franquia(motorista), passageiro_ja_automatico
    )
    if not decisao.permitido:
        raise FeatureIndisponivel.from_decisao(decisao)


class EscolaViewSet(MotoristaScopedViewSetMixin, viewsets.ModelViewSet):
    queryset = Escola.objects.all()
    serializer_class = EscolaSerializer
    pagination_class = DynamicPageSizePagination

    ORDERING_FIELDS = {'nome', '-nome', 'criado_em', '-criado_em'}

    def get_queryset(self):
        queryset = super().get_queryset()
        params = self.request.query_params

        search = params.get('search')
        if search:
            queryset = queryset.filter(
                Q(nome__icontains=search) | Q(bairro__icontains=search) | Q(cidade__icontains=search)
            )

        ativo = _bool_param(params.get('ativo'))
        if ativo is not None:
            queryset = queryset.filter(ativo=ativo)

        ordering = params.get('ordering')
        if ordering in self.ORDERING_FIELDS:
            queryset = queryset.order_by(ordering, 'id')
        return queryset

    @action(detail=False, methods=['get'], url_path='com-contagem')
    def com_contagem(self, request):
        queryset = self.get_queryset().annotate(
            passageiros_ativos_count=Count('passageiros', filter=Q(passageiros__ativo=True))
        )
        page = self.paginate_queryset(queryset)
        if page is not None:
            return self.get_paginated_response(self.get_serializer(page, many=True).data)
        return Response(self.get_serializer(queryset, many=True).data)

    @action(detail=True, methods=['post'], url_path='toggle-ativo')
    def toggle_ativo(self, request, pk=None):
        escola = self.get_object()
        escola.ativo = not escola.ativo
        escola.save(update_fields=['ativo', 'atualizado_em'])
        return Response(self.get_serializer(escola).data)


class VeiculoViewSet(MotoristaScopedViewSetMixin, viewsets.ModelViewSet):
    queryset = Veiculo.objects.all()
    serializer_class = VeiculoSerializer
    pagination_class = DynamicPageSizePagination

    ORDERING_FIELDS = {'placa', '-placa', 'modelo', '-modelo', 'criado_em', '-criado_em'}

    def get_queryset(self):
        queryset = super().get_queryset()
        params = self.request.query_params

        search = params.get('search')
        if search:
            queryset = queryset.filter(
                Q(placa__icontains=normalizar_placa(search))
                | Q(marca__icontains=search)
                | Q(modelo__icontains=search)
            )

        ativo = _bool_param(params.get('ativo'))
        if ativo is not None:
            queryset = queryset.filter(ativo=ativo)

        ordering = params.get('ordering')
        if ordering in self.ORDERING_FIELDS:
            queryset = queryset.order_by(ordering, 'id')
        return queryset

    @action(detail=False, methods=['get'], url_path='com-contagem')
    def com_contagem(self, request):
        queryset = self.get_queryset().annotate(
            passageiros_ativos_count=Count('passageiros', filter=Q(passageiros__ativo=True))
        )
        page = self.paginate_queryset(queryset)
        if page is not None:
            return self.get_paginated_response(self.get_serializer(page, many=True).data)
        return Response(self.get_serializer(queryset, many=True).data)

    @action(detail=True, methods=['post'], url_path='toggle-ativo')
    def toggle_ativo(self, request, pk=None):
        veiculo = self.get_object()
        veiculo.ativo = not veiculo.ativo
        veiculo.save(update_fields=['ativo', 'atualizado_em'])
        return Response(self.get_serializer(veiculo).data)


class PassageiroViewSet(MotoristaScopedViewSetMixin, viewsets.ModelViewSet):
    queryset = Passageiro.objects.all()
    serializer_class = PassageiroSerializer
    pagination_class = DynamicPageSizePagination

    ORDERING_FIELDS = {
        'nome', '-nome', 'valor_cobranca', '-valor_cobranca',
        'dia_vencimento', '-dia_vencimento', 'criado_em', '-criado_em', 'escola__nome', '-escola__nome',
    }

    def _filtrar(self, queryset, incluir_ativo=True):
        params = self.request.query_params

        search = params.get('search')
        if search:
            queryset = queryset.filter(
                Q(nome__icontains=search)
                | Q(nome_responsavel__icontains=search)
                | Q(escola__nome__icontains=search)
            )

        escola_id = params.get('escola_id')
        if escola_id:
            queryset = queryset.filter(escola_id=escola_id)

        veiculo_id = params.get('veiculo_id')
        if veiculo_id:
            queryset = queryset.filter(veiculo_id=veiculo_id)

        periodos = params.getlist('periodo')
        if periodos:
            queryset = queryset.filter(periodo__in=periodos)

        automatica = _bool_param(params.get('cobranca_automatica'))
        if automatica is not None:
            queryset = queryset.filter(enviar_cobranca_automatica=automatica)

        if incluir_ativo:
            ativo = _bool_param(params.get('ativo'))
            if ativo is not None:
                queryset = queryset.filter(ativo=ativo)
        return queryset

    def get_queryset(self):
        queryset = super().get_queryset().select_related('escola', 'veiculo')
        if self.action != 'list':
            return queryset

        queryset = self._filtrar(queryset)
        ordering = self.request.query_params.get('ordering')
        if ordering in self.ORDERING_FIELDS:
            queryset = queryset.order_by(ordering, 'id')
        return queryset

    def perform_create(self, serializer):
        motorista = self.get_motorista()
        if not motorista:
            return super().perform_create(serializer)

        plano = _verificar_limite_passageiros(motorista)
        if serializer.validated_data.get('enviar_cobranca_automatica'):
            _verificar_automacao(motorista, plano)

        emitir = serializer.validated_data.get('emitir_cobranca_mes_atual', False)
        passageiro = serializer.save(motorista=motorista)
        if emitir:
            billing.gerar_cobrancas_mes(motorista, passageiros=[passageiro])

    def perform_update(self, serializer):
        instance = serializer.instance
        ativar = serializer.validated_data.get('enviar_cobranca_automatica')
        if ativar and not instance.enviar_cobranca_automatica:
            plano = billing.plano_do_motorista(instance.motorista)
            _verificar_automacao(instance.motorista, plano)
        serializer.save()

    @action(detail=False, methods=['get'], url_path='responsavel/lookup')
    def responsavel_lookup(self, request):
        """
        GET /api/passageiros/responsavel/lookup/?cpf=52998224725
        Responsável já cadastrado pelo motorista com este CPF: dados de contato
        do cadastro mais recente, passageiros vinculados e as cobranças de cada um.
        """
        cpf = normalize_digits(request.query_params.get('cpf') or '')
        if not is_valid_cpf(cpf):
            return Response({'detail': 'CPF inválido.'}, status=status.HTTP_400_BAD_REQUEST)

        passageiros = list(
            self.get_queryset()
            .filter(cpf_responsavel=cpf)
            .prefetch_related('cobrancas')
            .order_by('-criado_em', '-id')
        )
        if not passageiros:
            return Response({'detail': 'Responsável não encontrado.'}, status=status.HTTP_404_NOT_FOUND)

        recente = passageiros[0]
        return Response({
            'cpf_responsavel': cpf,
            'nome_responsavel': recente.nome_responsavel,
            'email_responsavel': recente.email_responsavel,
            'telefone_responsavel': recente.telefone_responsavel,
            'passageiros': [
                {
                    **PassageiroSerializer(passageiro, context=self.get_serializer_context()).data,
                    'cobrancas': CobrancaSerializer(
                        sorted(passageiro.cobrancas.all(), key=lambda c: (c.ano, c.mes), reverse=True),
                        many=True,
                    ).data,
                }
                for passageiro in passageiros
            ],
        })

    @action(detail=False, methods=['get'])
    def contagem(self, request):
        queryset = self._filtrar(super().get_queryset(), incluir_ativo=False)
        totais = queryset.aggregate(
            total=Count('id'),
            ativos=Count('id', filter=Q(ativo=True)),
            inativos=Count('id', filter=Q(ativo=False)),
            cobranca_automatica=Count('id', filter=Q(ativo=True, enviar_cobranca_automatica=True)),
        )
        return Response(totais)

    @action(detail=True, methods=['get'], url_path='numero-cobrancas')
    def numero_cobrancas(self, request, pk=None):
        passageiro = self.get_object()
        totais = passageiro.cobrancas.aggregate(
            total=Count('id'),
            pagas=Count('id', filter=Q(status='pago')),
            pendentes=Count('id', filter=Q(status='pendente')),
            canceladas=Count('id', filter=Q(status='cancelada')),
        )
        return Response(totais)

    @action(detail=True, methods=['post'], url_path='toggle-ativo')
    def toggle_ativo(self, request, pk=None):
        """
        POST /api/passageiros/{id}/toggle-ativo/
        Body opcional: { "desativar_automacao": true } reativa sem a cobrança automática.
        """
        passageiro = self.get_object()

        if passageiro.ativo:
            passageiro.ativo = False
            passageiro.save(update_fields=['ativo', 'atualizado_em'])
            return Response(self.get_serializer(passageiro).data)

        motorista = passageiro.motorista
        plano = _verificar_limite_passageiros(motorista)

        if _bool_param(request.data.get('desativar_automacao')):
            passageiro.enviar_cobranca_automatica = False
        else:
            decisao = entitlements.validar_ativacao(
                plano, False, passageiro.enviar_cobranca_automatica, billing.usados_franquia(motorista)
            )
            if not decisao.permitido:
                raise FeatureIndisponivel.from_decisao(decisao)

        passageiro.ativo = True
        passageiro.save(update_fields=['ativo', 'enviar_cobranca_automatica', 'atualizado_em'])
        return Response(self.get_serializer(passageiro).data)

    @action(detail=True, methods=['post'], url_path='toggle-cobranca-automatica')
    def toggle_cobranca_automatica(self, request, pk=None):
        passageiro = self.get_object()
        ativar = not passageiro.enviar_cobranca_automatica
        if ativar:
            _verificar_automacao(passageiro.motorista, billing.plano_do_motorista(passageiro.motorista))

        passageiro.enviar_cobranca_automatica = ativar
        passageiro.save(update_fields=['enviar_cobranca_automatica', 'atualizado_em'])
        return Response(self.get_serializer(passageiro).data)

    @action(detail=False, methods=['get'])
    def limites(self, request):
        """Resumo de features, limite de passageiros e franquia do plano atual."""
        motorista = self.get_motorista()
        if not motorista:
            return Response({'detail': 'Usuário não vinculado a um motorista.'}, status=404)

        resumo = billing.resumo_acoes(motorista)
        resumo['opcoes_upgrade'] = [
            asdict(opcao)
            for opcao in entitlements.opcoes_upgrade(
                sub_planos_profissional(), resumo['passageiros']['total']
            )
        ]
        return Response(resumo)


class PrePassageiroViewSet(MotoristaScopedViewSetMixin,
                           mixins.ListModelMixin,
                           mixins.RetrieveModelMixin,
                           mixins.DestroyModelMixin,
                           viewsets.GenericViewSet):
    queryset = PrePassageiro.objects.select_related('escola')
    serializer_class = PrePassageiroSerializer
    pagination_class = DynamicPageSizePagination

    def get_queryset(self):
        queryset = super().get_queryset()
        search = self.request.query_params.get('search')
        if search:
            queryset = queryset.filter(Q(nome__icontains=search) | Q(nome_responsavel__icontains=search))
        return queryset

    @action(detail=True, methods=['post'])
    def finalizar(self, request, pk=None):
        """Converte o pré-cadastro em passageiro."""
        pre = self.get_object()
        serializer = FinalizarPrePassageiroSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dados = serializer.validated_data

        valor = dados.get('valor_cobranca') or pre.valor_cobranca
        if not valor:
            return Response({'valor_cobranca': 'Informe o valor da cobrança.'}, status=status.HTTP_400_BAD_REQUEST)

        motorista = pre.motorista
        escola = pre.escola
        if 'escola_id' in dados:
            escola = get_object_or_404(Escola, pk=dados['escola_id'], motorista=motorista) \
                if dados['escola_id'] else None
        veiculo = None
        if dados.get('veiculo_id'):
            veiculo = get_object_or_404(Veiculo, pk=dados['veiculo_id'], motorista=motorista)

        plano = _verificar_limite_passageiros(motorista)
        if dados.get('enviar_cobranca_automatica'):
            _verificar_automacao(motorista, plano)

        with transaction.atomic():
            passageiro = Passageiro.objects.create(
                motorista=motorista,
                escola=escola,
                veiculo=veiculo,
                valor_cobranca=valor,
                dia_vencimento=dados.get('dia_vencimento') or pre.dia_vencimento or 10,
                enviar_cobranca_automatica=dados.get('enviar_cobranca_automatica', False),
                **{campo: getattr(pre, campo) for campo in CAMPOS_DADOS_PASSAGEIRO},
            )
            pre.delete()

        if dados.get('emitir_cobranca_mes_atual'):
            billing.gerar_cobrancas_mes(motorista, passageiros=[passageiro])

        logger.info(f'Pré-cadastro convertido no passageiro {passageiro.id}')
        return Response(
            PassageiroSerializer(passageiro, context=self.get_serializer_context()).data,
            status=status.HTTP_201_CREATED,
        )


@api_view(['GET', 'POST'])
@permission_classes([permissions.AllowAny])
@throttle_classes([AnonRateThrottle])
def pre_cadastro_publico(request, motorista_id):
    """
    GET  /api/pre-cadastro/{motorista_id}/ - dados para o formulário (nome e escolas)
    POST /api/pre-cadastro/{motorista_id}/ - responsável envia o pré-cadastro
    """
    motorista = get_object_or_404(Motorista, pk=motorista_id)
    plano = billing.plano_do_motorista(motorista)

    if not entitlements.tem_acesso(plano, entitlements.FEATURE_PRE_PASSAGEIRO):
        return Response({'detail': 'Link de cadastro indisponível.'}, status=status.HTTP_404_NOT_FOUND)

    if request.method == 'GET':
        escolas = motorista.escolas.filter(ativo=True).values('id', 'nome')
        return Response({'motorista': motorista.nome, 'escolas': list(escolas)})

    decisao = entitlements.pode_cadastrar_passageiro(plano, billing.total_passageiros(motorista))
    if not decisao.permitido:
        return Response(
            {'detail': 'Este motorista não está aceitando novos cadastros no momento.'},
            status=status.HTTP_403_FORBIDDEN,
        )

    serializer = PrePassageiroSerializer(data=request.data, context={'motorista': motorista})
    serializer.is_valid(raise_exception=True)
    serializer.save(motorista=motorista)
    logger.info(f'Pré-cadastro recebido para o motorista {motorista.id}')
    return Response({'detail': 'Cadastro enviado! O motorista entrará em contato.'}, status=status.HTTP_201_CREATED)
