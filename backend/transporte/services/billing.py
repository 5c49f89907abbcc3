"""
Serviço de cobranças (mensalidades dos passageiros).

Geração mensal idempotente, emissão de PIX para passageiros com cobrança
automática e registro/estorno de pagamentos manuais.
"""

import logging
from decimal import Decimal

from django.db import transaction
from django.utils import timezone
from requests.exceptions import RequestException

from . import entitlements
from ..helpers.datas import vencimento_no_mes, nome_mes
from ..models import AssinaturaMotorista, Cobranca, Passageiro
from ..asaas_service import (
    criar_cliente_responsavel_asaas, criar_cobranca_pix_asaas, mapear_tipo_pagamento,
    obter_qr_code_pix_asaas,
)

logger = logging.getLogger(__name__)


def plano_do_motorista(motorista, agora=None):
    try:
        assinatura = motorista.assinatura
    except AssinaturaMotorista.DoesNotExist:
        assinatura = None
    return entitlements.extrair_plano(assinatura, agora)


def total_passageiros(motorista):
    return Passageiro.objects.filter(motorista=motorista, ativo=True).count()


def usados_franquia(motorista):
    return Passageiro.objects.filter(
        motorista=motorista, ativo=True, enviar_cobranca_automatica=True
    ).count()


def resumo_acoes(motorista):
    plano = plano_do_motorista(motorista)
    return entitlements.acoes_permitidas(
        plano, total_passageiros(motorista), usados_franquia(motorista)
    )


def emitir_pix(cobranca):
    """
    Cria (ou reaproveita) o cliente do responsável e a cobrança PIX no Asaas.
    O id do pagamento é gravado antes de buscar o QR Code; se a cobrança já
    tem id, só o QR Code é buscado de novo.
    """
    passageiro = cobranca.passageiro
    if not cobranca.asaas_payment_id:
        if not passageiro.asaas_customer_id:
            passageiro.asaas_customer_id = criar_cliente_responsavel_asaas(passageiro)
            passageiro.save(update_fields=['asaas_customer_id'])

        result = criar_cobranca_pix_asaas(
            passageiro.asaas_customer_id,
            cobranca.valor,
            cobranca.data_vencimento,
            f'Transporte escolar de {passageiro.nome} - {nome_mes(cobranca.mes)}/{cobranca.ano}',
            f'cobranca-{cobranca.id}',
        )
        cobranca.asaas_payment_id = result['id']
        cobranca.location_url = result['invoiceUrl'] or None
        cobranca.save(update_fields=['asaas_payment_id', 'location_url', 'atualizado_em'])

    qr_code = obter_qr_code_pix_asaas(cobranca.asaas_payment_id)
    cobranca.qr_code_payload = qr_code.get('payload') or None
    cobranca.save(update_fields=['qr_code_payload', 'atualizado_em'])
    return cobranca


def criar_cobranca_mes(passageiro, mes, ano, origem='manual', valor=None):
    return Cobranca.objects.create(
        motorista=passageiro.motorista,
        passageiro=passageiro,
        mes=mes,
        ano=ano,
        valor=valor if valor is not None else passageiro.valor_cobranca,
        data_vencimento=vencimento_no_mes(ano, mes, passageiro.dia_vencimento),
        origem=origem,
        status='pendente',
    )


def gerar_cobrancas_mes(motorista, mes=None, ano=None, passageiros=None):
    """
    Gera as cobranças do mês para os passageiros ativos. Passageiros que já têm
    cobrança não cancelada no mês são ignorados. Quem tem cobrança automática
    recebe PIX quando o plano permite; falha no gateway não desfaz a cobrança.
    """
    hoje = timezone.localdate()
    mes = mes or hoje.month
    ano = ano or hoje.year

    plano = plano_do_motorista(motorista)
    automatica_liberada = entitlements.tem_acesso(plano, entitlements.FEATURE_COBRANCA_AUTOMATICA)

    if passageiros is None:
        passageiros = Passageiro.objects.filter(motorista=motorista, ativo=True)

    existentes = set(
        Cobranca.objects.filter(motorista=motorista, mes=mes, ano=ano)
        .exclude(status='cancelada')
        .values_list('passageiro_id', flat=True)
    )

    criadas = 0
    ignoradas = 0
    detalhes = []

    for passageiro in passageiros:
        if passageiro.id in existentes:
            ignoradas += 1
            detalhes.append({'passageiro': passageiro.nome, 'status': 'ignorada', 'motivo': 'Já existe'})
            continue

        automatica = automatica_liberada and passageiro.enviar_cobranca_automatica
        with transaction.atomic():
            cobranca = criar_cobranca_mes(
                passageiro, mes, ano, origem='automatica' if automatica else 'manual'
            )
        criadas += 1
        detalhe = {'passageiro': passageiro.nome, 'status': 'criada', 'cobranca_id': cobranca.id}

        if automatica:
            try:
                emitir_pix(cobranca)
            except RequestException as e:
                logger.warning(f'Falha ao emitir PIX da cobrança {cobranca.id}: {e}')
                detalhe['pix'] = 'pendente'

        detalhes.append(detalhe)

    logger.info(
        f'Cobranças {mes:02d}/{ano} do motorista {motorista.id}: '
        f'{criadas} criadas, {ignoradas} ignoradas'
    )
    return {'criadas': criadas, 'ignoradas': ignoradas, 'detalhes': detalhes}


def registrar_pagamento_manual(cobranca, data_pagamento=None, valor_pago=None, tipo_pagamento=None):
    if cobranca.status == 'pago':
        raise ValueError('Cobrança já está paga.')
    if cobranca.status == 'cancelada':
        raise ValueError('Cobrança cancelada não pode ser paga.')

    cobranca.status = 'pago'
    cobranca.pagamento_manual = True
    cobranca.data_pagamento = data_pagamento or timezone.localdate()
    cobranca.valor_pago = Decimal(str(valor_pago)) if valor_pago is not None else cobranca.valor
    cobranca.tipo_pagamento = tipo_pagamento or 'dinheiro'
    cobranca.save(update_fields=[
        'status', 'pagamento_manual', 'data_pagamento', 'valor_pago', 'tipo_pagamento', 'atualizado_em',
    ])
    logger.info(f'Pagamento manual registrado na cobrança {cobranca.id}')
    return cobranca


def desfazer_pagamento(cobranca):
    if cobranca.status != 'pago' or not cobranca.pagamento_manual:
        raise ValueError('Apenas pagamentos registrados manualmente podem ser desfeitos.')

    cobranca.status = 'pendente'
    cobranca.pagamento_manual = False
    cobranca.data_pagamento = None
    cobranca.valor_pago = None
    cobranca.tipo_pagamento = None
    cobranca.recibo_url = None
    cobranca.save(update_fields=[
        'status', 'pagamento_manual', 'data_pagamento', 'valor_pago',
        'tipo_pagamento', 'recibo_url', 'atualizado_em',
    ])
    logger.info(f'Pagamento desfeito na cobrança {cobranca.id}')
    return cobranca


def confirmar_pagamento_gateway(cobranca, payment: dict):
    """Baixa de cobrança paga pelo gateway (webhook)."""
    if cobranca.status == 'pago':
        return cobranca

    cobranca.status = 'pago'
    cobranca.pagamento_manual = False
    cobranca.data_pagamento = timezone.localdate()
    valor = payment.get('value')
    cobranca.valor_pago = Decimal(str(valor)) if valor is not None else cobranca.valor
    cobranca.tipo_pagamento = mapear_tipo_pagamento(payment.get('billingType')) or 'PIX'
    cobranca.recibo_url = payment.get('transactionReceiptUrl') or None
    cobranca.save(update_fields=[
        'status', 'pagamento_manual', 'data_pagamento', 'valor_pago',
        'tipo_pagamento', 'recibo_url', 'atualizado_em',
    ])
    logger.info(f'Cobrança {cobranca.id} paga via gateway ({payment.get("id")})')
    return cobranca
