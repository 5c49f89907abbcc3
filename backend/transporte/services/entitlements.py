"""
Regras de acesso por plano (entitlements).

Funções puras: recebem o plano, o status da assinatura e contagens de uso e
devolvem o que o motorista pode fazer. Não consultam o banco; views,
serializers e comandos montam as entradas e consomem o resultado.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP

from django.utils import timezone


PLANO_GRATUITO = 'gratuito'
PLANO_ESSENCIAL = 'essencial'
PLANO_PROFISSIONAL = 'profissional'

FEATURE_PRE_PASSAGEIRO = 'pre_passageiro'
FEATURE_GASTOS = 'gastos'
FEATURE_RELATORIOS = 'relatorios'
FEATURE_COBRANCA_AUTOMATICA = 'cobranca_automatica'
FEATURE_NOTIFICACOES = 'notificacoes'

# Motivos de bloqueio que não são features do plano
FEATURE_LIMITE_FRANQUIA = 'limite_franquia'
FEATURE_LIMITE_PASSAGEIROS = 'limite_passageiros'

QUANTIDADE_MAXIMA_PASSAGEIROS_CADASTRO = 500
DIAS_CICLO = 30

PLAN_FEATURES = {
    PLANO_GRATUITO: frozenset({FEATURE_PRE_PASSAGEIRO}),
    PLANO_ESSENCIAL: frozenset({FEATURE_PRE_PASSAGEIRO, FEATURE_GASTOS, FEATURE_RELATORIOS}),
    PLANO_PROFISSIONAL: frozenset({
        FEATURE_PRE_PASSAGEIRO,
        FEATURE_GASTOS,
        FEATURE_RELATORIOS,
        FEATURE_COBRANCA_AUTOMATICA,
        FEATURE_NOTIFICACOES,
    }),
}

NOME_PLANO_SOB_MEDIDA = 'Plano Sob Medida'


def _hoje(agora: datetime) -> date:
    if timezone.is_aware(agora):
        return timezone.localdate(agora)
    return agora.date()


@dataclass(frozen=True)
class PlanoInfo:
    """Fotografia do plano do motorista em um instante."""
    slug: str | None
    status: str | None
    ativo: bool = False
    trial_end_at: datetime | None = None
    vigencia_fim: date | None = None
    limite_passageiros: int | None = None
    franquia_contratada: int = 0
    agora: datetime = field(default_factory=timezone.now)

    @property
    def is_trial(self) -> bool:
        return self.status == 'trial'

    @property
    def is_trial_valido(self) -> bool:
        return self.is_trial and self.trial_end_at is not None and self.trial_end_at >= self.agora

    @property
    def is_ativo(self) -> bool:
        return self.status == 'ativa' and bool(self.ativo)

    @property
    def is_cancelado(self) -> bool:
        return self.status == 'cancelada'

    @property
    def is_cancelado_valido(self) -> bool:
        return (
            self.is_cancelado
            and self.vigencia_fim is not None
            and self.vigencia_fim >= _hoje(self.agora)
        )

    @property
    def is_valid_plan(self) -> bool:
        return self.is_ativo or self.is_trial_valido or self.is_cancelado_valido

    @property
    def is_free_plan(self) -> bool:
        return self.slug == PLANO_GRATUITO

    @property
    def is_profissional(self) -> bool:
        return self.slug == PLANO_PROFISSIONAL

    @property
    def is_pendente(self) -> bool:
        return self.status == 'pendente_pagamento'

    @property
    def is_suspensa(self) -> bool:
        return self.status == 'suspensa'

    @property
    def features(self) -> frozenset:
        return PLAN_FEATURES.get(self.slug, frozenset())


@dataclass(frozen=True)
class LimitePassageiros:
    limite: int | None
    total: int
    restantes: int | None
    atingido: bool

    @property
    def ilimitado(self) -> bool:
        return self.limite is None


@dataclass(frozen=True)
class Franquia:
    limite: int
    usados: int
    restantes: int
    pode_ativar: bool


@dataclass(frozen=True)
class Decisao:
    """Resultado de uma validação: permitido ou bloqueado com motivo e saídas possíveis."""
    permitido: bool
    motivo: str | None = None
    mensagem: str = ''
    opcoes: tuple = ()


@dataclass(frozen=True)
class OpcaoUpgrade:
    nome: str
    quantidade: int
    preco: Decimal | None
    plano_id: int | None = None
    recomendado: bool = False
    personalizado: bool = False


def extrair_plano(assinatura, agora: datetime | None = None) -> PlanoInfo:
    """
    Monta o PlanoInfo a partir de uma assinatura (qualquer objeto com os
    atributos de AssinaturaMotorista). Sub-planos herdam slug e limite do pai.
    """
    agora = agora or timezone.now()
    if assinatura is None:
        return PlanoInfo(slug=None, status=None, agora=agora)

    plano = assinatura.plano
    slug = None
    limite = None
    if plano is not None:
        base = plano.parent if plano.parent_id else plano
        slug = base.slug
        limite = base.limite_passageiros

    return PlanoInfo(
        slug=slug,
        status=assinatura.status,
        ativo=assinatura.ativo,
        trial_end_at=assinatura.trial_end_at,
        vigencia_fim=assinatura.vigencia_fim,
        limite_passageiros=limite,
        franquia_contratada=assinatura.franquia_contratada_cobrancas or 0,
        agora=agora,
    )


def tem_acesso(plano: PlanoInfo | None, feature: str) -> bool:
    if plano is None or not plano.is_valid_plan:
        return False
    return feature in plano.features


def limite_passageiros(plano: PlanoInfo, total: int) -> LimitePassageiros:
    limite = plano.limite_passageiros
    if limite is None:
        return LimitePassageiros(limite=None, total=total, restantes=None, atingido=False)
    restantes = max(0, limite - total)
    return LimitePassageiros(limite=limite, total=total, restantes=restantes, atingido=restantes <= 0)


def pode_cadastrar_passageiro(plano: PlanoInfo, total: int) -> Decisao:
    if total >= QUANTIDADE_MAXIMA_PASSAGEIROS_CADASTRO:
        return Decisao(
            permitido=False,
            motivo=FEATURE_LIMITE_PASSAGEIROS,
            mensagem=f'Limite máximo de {QUANTIDADE_MAXIMA_PASSAGEIROS_CADASTRO} passageiros atingido.',
        )
    limite = limite_passageiros(plano, total)
    if limite.atingido:
        return Decisao(
            permitido=False,
            motivo=FEATURE_LIMITE_PASSAGEIROS,
            mensagem=f'Seu plano permite até {limite.limite} passageiros. Faça upgrade para cadastrar mais.',
            opcoes=('upgrade',),
        )
    return Decisao(permitido=True)


def franquia(plano: PlanoInfo, usados: int, passageiro_ja_automatico: bool = False) -> Franquia:
    """
    usados: passageiros com cobrança automática. O passageiro em edição não
    conta contra a própria vaga quando já é automático.
    """
    if passageiro_ja_automatico and usados > 0:
        usados -= 1
    limite = plano.franquia_contratada or 0
    restantes = max(0, limite - usados)
    return Franquia(limite=limite, usados=usados, restantes=restantes, pode_ativar=restantes > 0)


def validar_automacao(plano: PlanoInfo, ativar: bool, usados: int,
                      passageiro_ja_automatico: bool = False) -> Decisao:
    if not ativar:
        return Decisao(permitido=True)

    status_franquia = franquia(plano, usados, passageiro_ja_automatico)
    if status_franquia.pode_ativar and tem_acesso(plano, FEATURE_COBRANCA_AUTOMATICA):
        return Decisao(permitido=True)

    if status_franquia.limite == 0 or not tem_acesso(plano, FEATURE_COBRANCA_AUTOMATICA):
        return Decisao(
            permitido=False,
            motivo=FEATURE_COBRANCA_AUTOMATICA,
            mensagem='Cobrança automática disponível apenas no Plano Profissional.',
            opcoes=('upgrade',),
        )
    return Decisao(
        permitido=False,
        motivo=FEATURE_LIMITE_FRANQUIA,
        mensagem=f'Você já usa {status_franquia.usados} de {status_franquia.limite} cobranças automáticas.',
        opcoes=('upgrade',),
    )


def validar_ativacao(plano: PlanoInfo, ativo_atual: bool, cobranca_automatica: bool,
                     usados: int) -> Decisao:
    """Reativar um passageiro automático consome uma vaga da franquia."""
    if ativo_atual:
        return Decisao(permitido=True)
    if not cobranca_automatica:
        return Decisao(permitido=True)

    if franquia(plano, usados).pode_ativar:
        return Decisao(permitido=True)
    return Decisao(
        permitido=False,
        motivo=FEATURE_LIMITE_FRANQUIA,
        mensagem=(
            'Limite de automação atingido. Aumente sua franquia ou reative o '
            'passageiro sem a cobrança automática.'
        ),
        opcoes=('upgrade', 'reativar_sem_automacao'),
    )


def _ordenar_faixas(sub_planos):
    return sorted(sub_planos, key=lambda p: p.franquia_cobrancas_mes)


def quantidade_minima_personalizada(sub_planos) -> int:
    faixas = _ordenar_faixas(sub_planos)
    if not faixas:
        return 1
    return faixas[-1].franquia_cobrancas_mes + 1


def calcular_preco_personalizado(sub_planos, quantidade: int) -> dict:
    """
    Faixas existentes são cobradas pelo preço da faixa; acima da maior faixa
    o preço é proporcional ao valor por cobrança da maior faixa.
    """
    faixas = _ordenar_faixas(sub_planos)
    if not faixas:
        raise ValueError('Nenhuma faixa de franquia cadastrada.')

    for faixa in faixas:
        if faixa.franquia_cobrancas_mes >= quantidade:
            preco = Decimal(faixa.preco_aplicado)
            break
    else:
        maior = faixas[-1]
        por_cobranca = Decimal(maior.preco_aplicado) / Decimal(maior.franquia_cobrancas_mes)
        preco = por_cobranca * quantidade

    preco = preco.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
    valor_por_cobranca = (preco / quantidade).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP) if quantidade else Decimal('0.00')
    return {'quantidade': quantidade, 'preco': preco, 'valor_por_cobranca': valor_por_cobranca}


def opcoes_upgrade(sub_planos, total_passageiros: int) -> list:
    """Faixas que comportam o total de passageiros; a primeira é a recomendada."""
    faixas = [p for p in _ordenar_faixas(sub_planos) if p.franquia_cobrancas_mes >= total_passageiros]
    opcoes = [
        OpcaoUpgrade(
            nome=p.nome,
            quantidade=p.franquia_cobrancas_mes,
            preco=Decimal(p.preco_aplicado),
            plano_id=p.pk,
            recomendado=(i == 0),
        )
        for i, p in enumerate(faixas)
    ]
    if not opcoes:
        todas = list(sub_planos)
        quantidade = max(total_passageiros, quantidade_minima_personalizada(todas))
        preco = calcular_preco_personalizado(todas, quantidade)['preco'] if todas else None
        opcoes.append(OpcaoUpgrade(
            nome=NOME_PLANO_SOB_MEDIDA,
            quantidade=quantidade,
            preco=preco,
            recomendado=True,
            personalizado=True,
        ))
    return opcoes


def calcular_prorata(valor_atual, valor_novo, data_vencimento: date | None,
                     hoje: date | None = None) -> dict:
    """
    Valor a cobrar hoje ao trocar de plano no meio do ciclo.
    Sem mensalidade atual cobra o valor cheio do novo plano; sem vencimento
    conhecido considera o ciclo inteiro pela frente.
    """
    valor_atual = Decimal(valor_atual or 0)
    valor_novo = Decimal(valor_novo or 0)
    hoje = hoje or timezone.localdate()

    if valor_atual <= 0:
        return {'valor_hoje': valor_novo.quantize(Decimal('0.01')), 'dias_restantes': DIAS_CICLO}

    if data_vencimento is None:
        dias_restantes = DIAS_CICLO
    else:
        dias = (data_vencimento - hoje).days
        dias_restantes = min(DIAS_CICLO, max(0, dias))
    diferenca = max(Decimal('0'), valor_novo - valor_atual)
    valor_hoje = (diferenca / DIAS_CICLO * dias_restantes).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
    return {'valor_hoje': valor_hoje, 'dias_restantes': dias_restantes}


def acoes_permitidas(plano: PlanoInfo, total_passageiros: int, usados_franquia: int) -> dict:
    """Resumo consumido pela API: features liberadas, limites e flags do plano."""
    limite = limite_passageiros(plano, total_passageiros)
    status_franquia = franquia(plano, usados_franquia)
    return {
        'plano': plano.slug,
        'status': plano.status,
        'plano_valido': plano.is_valid_plan,
        'trial_valido': plano.is_trial_valido,
        'pendente': plano.is_pendente,
        'suspensa': plano.is_suspensa,
        'features': {
            feature: tem_acesso(plano, feature)
            for feature in PLAN_FEATURES[PLANO_PROFISSIONAL]
        },
        'passageiros': {
            'limite': limite.limite,
            'total': limite.total,
            'restantes': limite.restantes,
            'atingido': limite.atingido,
        },
        'franquia': {
            'limite': status_franquia.limite,
            'usados': status_franquia.usados,
            'restantes': status_franquia.restantes,
            'pode_ativar': status_franquia.pode_ativar and tem_acesso(plano, FEATURE_COBRANCA_AUTOMATICA),
        },
        'pode_cadastrar_passageiro': pode_cadastrar_passageiro(plano, total_passageiros).permitido,
    }
