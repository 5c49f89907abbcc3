"""
Ciclo de vida da assinatura do motorista na plataforma.

Trocas de plano que geram valor a pagar criam uma AssinaturaCobranca pendente
e guardam o plano escolhido em pending_*; o plano só muda quando o pagamento
é confirmado (webhook). Trocas sem valor a pagar são aplicadas na hora.
"""

import logging
from datetime import timedelta
from decimal import Decimal

from django.db import transaction
from django.utils import timezone
from requests.exceptions import RequestException

from . import entitlements
from ..helpers.datas import add_one_month_safe
from ..models import AssinaturaCobranca, AssinaturaMotorista, Passageiro, Plano
from ..asaas_service import (
    criar_cliente_asaas, criar_cobranca_pix_asaas, cancelar_cobranca_asaas,
    obter_qr_code_pix_asaas,
)

logger = logging.getLogger(__name__)

DIAS_VENCIMENTO_COBRANCA = 3
DIAS_ANTECEDENCIA_RENOVACAO = 5


class TrocaPlanoInvalida(Exception):
    pass


def sub_planos_profissional():
    return list(
        Plano.objects.filter(
            parent__slug=entitlements.PLANO_PROFISSIONAL, tipo='sub', ativo=True
        ).order_by('franquia_cobrancas_mes')
    )


def _plano_base(plano):
    return plano.parent if plano.parent_id else plano


def _cobranca_pendente(assinatura, plano, franquia, valor, billing_type):
    assinatura.cobrancas.filter(status='pendente_pagamento').exclude(
        billing_type='renewal'
    ).update(status='cancelada')
    return AssinaturaCobranca.objects.create(
        assinatura=assinatura,
        plano=plano,
        franquia=franquia,
        valor=valor,
        billing_type=billing_type,
        data_vencimento=timezone.localdate() + timedelta(days=DIAS_VENCIMENTO_COBRANCA),
    )


def _aplicar_plano(assinatura, plano, franquia, valor_mensal):
    assinatura.plano = plano
    assinatura.franquia_contratada_cobrancas = franquia or 0
    assinatura.valor_mensal = valor_mensal
    assinatura.status = 'ativa'
    assinatura.ativo = True
    assinatura.trial_end_at = None
    assinatura.pending_plano = None
    assinatura.pending_franquia = None
    assinatura.pending_valor_mensal = None
    if assinatura.vigencia_fim is None or assinatura.vigencia_fim < timezone.localdate():
        assinatura.vigencia_fim = add_one_month_safe(timezone.localdate()) if valor_mensal else None
    assinatura.save()


def _desativar_automacao_excedente(motorista, franquia):
    """Mantém no máximo `franquia` passageiros com cobrança automática."""
    automaticos = Passageiro.objects.filter(
        motorista=motorista, enviar_cobranca_automatica=True
    ).order_by('ativo', '-criado_em')
    excedentes = max(0, automaticos.count() - franquia)
    if excedentes:
        ids = list(automaticos.values_list('id', flat=True)[:excedentes])
        Passageiro.objects.filter(id__in=ids).update(enviar_cobranca_automatica=False)
        logger.info(f'Automação desativada em {len(ids)} passageiros do motorista {motorista.id}')
    return excedentes


def iniciar_plano(assinatura, plano, quantidade=None):
    """Plano escolhido no cadastro."""
    base = _plano_base(plano)
    if base.slug == entitlements.PLANO_GRATUITO:
        _aplicar_plano(assinatura, plano, 0, Decimal('0.00'))
        return None

    if plano.trial_days:
        assinatura.plano = plano
        assinatura.status = 'trial'
        assinatura.ativo = True
        assinatura.trial_end_at = timezone.now() + timedelta(days=plano.trial_days)
        assinatura.valor_mensal = plano.preco_aplicado
        assinatura.franquia_contratada_cobrancas = plano.franquia_cobrancas_mes
        assinatura.save()
        return None

    return solicitar_troca_plano(assinatura, plano, quantidade)


def _valores_destino(plano, quantidade=None):
    """(plano efetivo, franquia, valor mensal) para o plano/quantidade escolhidos."""
    base = _plano_base(plano)
    if base.slug != entitlements.PLANO_PROFISSIONAL:
        return plano, 0, Decimal(plano.preco_aplicado)

    faixas = sub_planos_profissional()
    if quantidade:
        if quantidade > entitlements.QUANTIDADE_MAXIMA_PASSAGEIROS_CADASTRO:
            raise TrocaPlanoInvalida(
                f'Quantidade máxima é {entitlements.QUANTIDADE_MAXIMA_PASSAGEIROS_CADASTRO} passageiros.'
            )
        escolhido = next((f for f in faixas if f.franquia_cobrancas_mes == quantidade), None)
        if escolhido is None:
            minimo = entitlements.quantidade_minima_personalizada(faixas)
            if quantidade < minimo:
                raise TrocaPlanoInvalida(f'Quantidade personalizada deve ser no mínimo {minimo}.')
            preco = entitlements.calcular_preco_personalizado(faixas, quantidade)['preco']
            return base, quantidade, preco
        plano = escolhido

    if plano.tipo != 'sub':
        if not faixas:
            raise TrocaPlanoInvalida('Nenhuma faixa de franquia disponível.')
        plano = faixas[0]
    return plano, plano.franquia_cobrancas_mes, Decimal(plano.preco_aplicado)


def _billing_type(plano_atual, franquia_atual, base_destino, franquia_nova):
    if plano_atual is None or plano_atual.is_free_plan or not plano_atual.is_valid_plan:
        return 'activation'
    if plano_atual.slug != base_destino.slug:
        return 'upgrade_plan'
    if franquia_nova > franquia_atual:
        return 'upgrade'
    return 'expansion'


@transaction.atomic
def solicitar_troca_plano(assinatura, plano, quantidade=None):
    """
    Upgrade de plano ou franquia. Retorna a AssinaturaCobranca pendente ou
    None quando a troca foi aplicada sem custo.
    """
    plano_destino, franquia_nova, valor_novo = _valores_destino(plano, quantidade)
    base_destino = _plano_base(plano_destino)
    atual = entitlements.extrair_plano(assinatura)

    if atual.slug == base_destino.slug and franquia_nova <= assinatura.franquia_contratada_cobrancas \
            and atual.is_ativo:
        raise TrocaPlanoInvalida('Use a redução de plano para diminuir a franquia.')

    valor_atual = assinatura.valor_mensal if atual.is_ativo else Decimal('0')
    prorata = entitlements.calcular_prorata(valor_atual, valor_novo, assinatura.vigencia_fim)

    if prorata['valor_hoje'] <= 0:
        _aplicar_plano(assinatura, plano_destino, franquia_nova, valor_novo)
        logger.info(f'Plano {plano_destino.slug} aplicado sem custo para motorista {assinatura.motorista_id}')
        return None

    assinatura.pending_plano = plano_destino
    assinatura.pending_franquia = franquia_nova
    assinatura.pending_valor_mensal = valor_novo
    assinatura.save(update_fields=['pending_plano', 'pending_franquia', 'pending_valor_mensal', 'atualizado_em'])

    cobranca = _cobranca_pendente(
        assinatura, plano_destino, franquia_nova, prorata['valor_hoje'],
        _billing_type(atual, assinatura.franquia_contratada_cobrancas, base_destino, franquia_nova),
    )
    logger.info(
        f'Troca para {plano_destino.slug} ({franquia_nova}) aguardando pagamento: '
        f'cobrança {cobranca.id} R$ {cobranca.valor}'
    )
    return cobranca


@transaction.atomic
def trocar_subplano(assinatura, sub_plano):
    if sub_plano.tipo != 'sub':
        raise TrocaPlanoInvalida('Plano informado não é uma faixa de franquia.')
    if sub_plano.franquia_cobrancas_mes > assinatura.franquia_contratada_cobrancas:
        return solicitar_troca_plano(assinatura, sub_plano)
    if sub_plano.franquia_cobrancas_mes == assinatura.franquia_contratada_cobrancas:
        raise TrocaPlanoInvalida('Você já está nesta faixa de franquia.')

    # redução de faixa: imediata
    _desativar_automacao_excedente(assinatura.motorista, sub_plano.franquia_cobrancas_mes)
    _aplicar_plano(assinatura, sub_plano, sub_plano.franquia_cobrancas_mes, Decimal(sub_plano.preco_aplicado))
    return None


def contratar_personalizado(assinatura, quantidade):
    """Plano Sob Medida: profissional com franquia acima da maior faixa."""
    profissional = Plano.objects.filter(slug=entitlements.PLANO_PROFISSIONAL, ativo=True).first()
    if profissional is None:
        raise TrocaPlanoInvalida('Plano Profissional indisponível.')
    return solicitar_troca_plano(assinatura, profissional, quantidade)


@transaction.atomic
def reduzir_plano(assinatura, plano):
    """Downgrade imediato; cobranças automáticas acima da nova franquia são desligadas."""
    base = _plano_base(plano)
    atual = entitlements.extrair_plano(assinatura)
    ordem = [entitlements.PLANO_GRATUITO, entitlements.PLANO_ESSENCIAL, entitlements.PLANO_PROFISSIONAL]
    if atual.slug in ordem and base.slug in ordem and ordem.index(base.slug) >= ordem.index(atual.slug):
        raise TrocaPlanoInvalida('O plano escolhido não é inferior ao atual.')

    assinatura.cobrancas.filter(status='pendente_pagamento').update(status='cancelada')
    _desativar_automacao_excedente(assinatura.motorista, 0)
    _aplicar_plano(assinatura, plano, 0, Decimal(plano.preco_aplicado))
    logger.info(f'Motorista {assinatura.motorista_id} reduziu para o plano {plano.slug}')


def cancelar(assinatura):
    if assinatura.status not in ('ativa', 'trial'):
        raise TrocaPlanoInvalida('Sem assinatura ativa para cancelar.')

    for cobranca in assinatura.cobrancas.filter(status='pendente_pagamento'):
        if cobranca.asaas_payment_id:
            try:
                cancelar_cobranca_asaas(cobranca.asaas_payment_id)
            except RequestException as e:
                logger.warning(f'Could not cancel payment {cobranca.asaas_payment_id}: {e}')
        cobranca.status = 'cancelada'
        cobranca.save(update_fields=['status'])

    if assinatura.status == 'trial':
        assinatura.vigencia_fim = timezone.localdate(assinatura.trial_end_at) if assinatura.trial_end_at else None
    assinatura.status = 'cancelada'
    assinatura.pending_plano = None
    assinatura.pending_franquia = None
    assinatura.pending_valor_mensal = None
    assinatura.save()


def gerar_pix(cobranca):
    """
    Emite o PIX da cobrança da assinatura (reaproveita se já emitido).
    Com o id já gravado e sem QR Code, só o QR Code é buscado de novo.
    """
    if cobranca.asaas_payment_id and cobranca.qr_code_payload:
        return cobranca

    if not cobranca.asaas_payment_id:
        assinatura = cobranca.assinatura
        if not assinatura.asaas_customer_id:
            assinatura.asaas_customer_id = criar_cliente_asaas(assinatura.motorista)
            assinatura.save(update_fields=['asaas_customer_id'])

        descricao = f'Van Escolar - {cobranca.get_billing_type_display()}'
        if cobranca.plano:
            descricao = f'{descricao} ({cobranca.plano.nome})'
        result = criar_cobranca_pix_asaas(
            assinatura.asaas_customer_id,
            cobranca.valor,
            cobranca.data_vencimento,
            descricao,
            f'assinatura-cobranca-{cobranca.id}',
        )
        cobranca.asaas_payment_id = result['id']
        cobranca.invoice_url = result['invoiceUrl'] or None
        cobranca.save(update_fields=['asaas_payment_id', 'invoice_url'])

    qr_code = obter_qr_code_pix_asaas(cobranca.asaas_payment_id)
    cobranca.qr_code_payload = qr_code.get('payload') or None
    cobranca.save(update_fields=['qr_code_payload'])
    return cobranca


@transaction.atomic
def confirmar_pagamento(cobranca):
    """Baixa da cobrança da assinatura: aplica o plano pendente e estende a vigência."""
    if cobranca.status == 'pago':
        return cobranca

    hoje = timezone.localdate()
    cobranca.status = 'pago'
    cobranca.data_pagamento = hoje
    cobranca.save(update_fields=['status', 'data_pagamento'])

    assinatura = cobranca.assinatura
    if assinatura.status == 'cancelada':
        logger.warning(
            f'Pagamento da cobrança {cobranca.id} recebido com assinatura cancelada '
            f'(motorista {assinatura.motorista_id}). Mantendo cancelamento.'
        )
        return cobranca

    inicio = assinatura.vigencia_fim if assinatura.vigencia_fim and assinatura.vigencia_fim >= hoje else hoje
    if cobranca.billing_type in ('subscription', 'renewal', 'activation'):
        assinatura.vigencia_fim = add_one_month_safe(inicio)
    elif assinatura.vigencia_fim is None or assinatura.vigencia_fim < hoje:
        assinatura.vigencia_fim = add_one_month_safe(hoje)

    if cobranca.plano_id and (assinatura.pending_plano_id or cobranca.billing_type != 'renewal'):
        assinatura.plano = cobranca.plano
        assinatura.franquia_contratada_cobrancas = cobranca.franquia or 0
        if assinatura.pending_valor_mensal is not None:
            assinatura.valor_mensal = assinatura.pending_valor_mensal

    assinatura.status = 'ativa'
    assinatura.ativo = True
    assinatura.trial_end_at = None
    assinatura.pending_plano = None
    assinatura.pending_franquia = None
    assinatura.pending_valor_mensal = None
    assinatura.save()
    logger.info(f'Assinatura do motorista {assinatura.motorista_id} ativa até {assinatura.vigencia_fim}')
    return cobranca


def marcar_atraso(cobranca):
    assinatura = cobranca.assinatura
    if assinatura.status == 'cancelada':
        logger.info(f'PAYMENT_OVERDUE ignored for cancelled assinatura {assinatura.id}.')
        return
    if cobranca.billing_type in ('renewal', 'subscription') and assinatura.status == 'ativa':
        assinatura.status = 'suspensa'
        assinatura.save(update_fields=['status', 'atualizado_em'])


def processar_renovacoes(hoje=None):
    """
    Rotina diária: abre a cobrança de renovação perto do fim da vigência e
    suspende assinaturas com vigência vencida e renovação não paga.
    """
    hoje = hoje or timezone.localdate()
    renovacoes = 0
    suspensas = 0

    ativas = AssinaturaMotorista.objects.filter(
        status='ativa', valor_mensal__gt=0, vigencia_fim__isnull=False
    ).select_related('plano')
    for assinatura in ativas:
        if assinatura.vigencia_fim < hoje:
            if assinatura.cobrancas.filter(billing_type='renewal', status='pendente_pagamento').exists():
                assinatura.status = 'suspensa'
                assinatura.save(update_fields=['status', 'atualizado_em'])
                suspensas += 1
            continue

        if assinatura.vigencia_fim - hoje > timedelta(days=DIAS_ANTECEDENCIA_RENOVACAO):
            continue
        ja_existe = assinatura.cobrancas.filter(
            billing_type='renewal', data_vencimento=assinatura.vigencia_fim
        ).exclude(status='cancelada').exists()
        if ja_existe:
            continue
        AssinaturaCobranca.objects.create(
            assinatura=assinatura,
            plano=assinatura.plano,
            franquia=assinatura.franquia_contratada_cobrancas,
            valor=assinatura.valor_mensal,
            billing_type='renewal',
            data_vencimento=assinatura.vigencia_fim,
        )
        renovacoes += 1

    return {'renovacoes': renovacoes, 'suspensas': suspensas}
