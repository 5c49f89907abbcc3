"""
Matriz de ações da cobrança e texto de status.

Funções puras sobre uma cobrança (qualquer objeto com status,
pagamento_manual, data_vencimento, qr_code_payload e recibo_url).
"""

from django.utils import timezone


STATUS_PAGO = 'pago'
STATUS_PENDENTE = 'pendente'
STATUS_CANCELADA = 'cancelada'
STATUS_ATRASADO = 'atrasado'


def is_atrasada(cobranca, hoje=None):
    hoje = hoje or timezone.localdate()
    return cobranca.status == STATUS_PENDENTE and cobranca.data_vencimento < hoje


def status_efetivo(cobranca, hoje=None):
    """Pendente vencida vira 'atrasado' para exibição e filtros."""
    if is_atrasada(cobranca, hoje):
        return STATUS_ATRASADO
    return cobranca.status


def status_texto(cobranca, hoje=None):
    hoje = hoje or timezone.localdate()
    if cobranca.status == STATUS_PAGO:
        return 'Pago'
    if cobranca.status == STATUS_CANCELADA:
        return 'Cancelada'
    if cobranca.data_vencimento < hoje:
        return 'Em atraso'
    if cobranca.data_vencimento == hoje:
        return 'Vence hoje'
    return 'A vencer'


def permissoes(cobranca, hoje=None):
    pago = cobranca.status == STATUS_PAGO
    manual = bool(cobranca.pagamento_manual)
    bloqueada_gateway = pago and not manual
    return {
        'disable_registrar_pagamento': pago,
        'disable_desfazer_pagamento': not pago or not manual,
        'disable_excluir': bloqueada_gateway,
        'disable_editar': bloqueada_gateway,
        'can_send_notification': (
            status_efetivo(cobranca, hoje) in (STATUS_PENDENTE, STATUS_ATRASADO)
            and bool(cobranca.qr_code_payload)
        ),
        'can_view_receipt': pago and bool(cobranca.recibo_url),
    }
