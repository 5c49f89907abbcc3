import requests
import logging
from django.conf import settings

from .services.validators import normalize_digits

logger = logging.getLogger(__name__)

ASAAS_BILLING_TYPE_MAP = {
    'PIX': 'PIX',
    'BOLETO': 'boleto',
    'CREDIT_CARD': 'cartao-credito',
    'DEBIT_CARD': 'cartao-debito',
}


def _base_url() -> str:
    return getattr(settings, 'ASAAS_BASE_URL', 'https://sandbox.asaas.com/api/v3')


def _headers() -> dict:
    return {
        'access_token': settings.ASAAS_API_KEY,
        'Content-Type': 'application/json',
    }


def _payload_cliente(nome, cpf_cnpj, email, telefone, external_reference) -> dict:
    payload = {
        'name': nome,
        'email': email or '',
        'mobilePhone': normalize_digits(telefone),
        'externalReference': external_reference,
        'notificationDisabled': True,
    }
    cpf_cnpj = normalize_digits(cpf_cnpj)
    if cpf_cnpj:
        payload['cpfCnpj'] = cpf_cnpj
    return payload


def criar_cliente_asaas(motorista) -> str:
    """
    Cria no Asaas o cliente que paga a assinatura da plataforma.
    Retorna o ID do cliente no Asaas.
    """
    payload = _payload_cliente(
        motorista.nome, motorista.cpf_cnpj, motorista.email, motorista.telefone,
        f'motorista-{motorista.id}',
    )
    resp = requests.post(
        f'{_base_url()}/customers',
        json=payload,
        headers=_headers(),
        timeout=15,
    )
    if not resp.ok:
        logger.error(f'Asaas customer creation error: HTTP {resp.status_code}')
        logger.debug(f'Asaas customer creation response body: {resp.text}')
        resp.raise_for_status()
    data = resp.json()
    logger.info(f'Asaas customer created: {data["id"]} for motorista {motorista.id}')
    return data['id']


def criar_cliente_responsavel_asaas(passageiro) -> str:
    """Cria no Asaas o responsável que paga as mensalidades do passageiro."""
    payload = _payload_cliente(
        passageiro.nome_responsavel, passageiro.cpf_responsavel,
        passageiro.email_responsavel, passageiro.telefone_responsavel,
        f'passageiro-{passageiro.id}',
    )
    resp = requests.post(
        f'{_base_url()}/customers',
        json=payload,
        headers=_headers(),
        timeout=15,
    )
    if not resp.ok:
        logger.error(f'Asaas responsavel creation error: HTTP {resp.status_code}')
        logger.debug(f'Asaas responsavel creation response body: {resp.text}')
        resp.raise_for_status()
    data = resp.json()
    logger.info(f'Asaas customer created: {data["id"]} for passageiro {passageiro.id}')
    return data['id']


def atualizar_cliente_asaas(asaas_customer_id: str, motorista) -> None:
    """Atualiza o cliente com os dados mais recentes do motorista (ex.: CPF/CNPJ)."""
    payload = _payload_cliente(
        motorista.nome, motorista.cpf_cnpj, motorista.email, motorista.telefone,
        f'motorista-{motorista.id}',
    )
    resp = requests.put(
        f'{_base_url()}/customers/{asaas_customer_id}',
        json=payload,
        headers=_headers(),
        timeout=15,
    )
    if not resp.ok:
        logger.error(f'Asaas customer update error: HTTP {resp.status_code}')
        logger.debug(f'Asaas customer update response body: {resp.text}')
        resp.raise_for_status()
    logger.info(f'Asaas customer updated: {asaas_customer_id}')


def criar_cobranca_pix_asaas(
    asaas_customer_id: str,
    valor,
    data_vencimento,
    descricao: str,
    external_reference: str,
) -> dict:
    """
    Cria uma cobrança avulsa via PIX. O QR Code é buscado à parte
    (obter_qr_code_pix_asaas) depois que o id já foi gravado localmente.
    Retorna { id, invoiceUrl, status }.
    """
    payload = {
        'customer': asaas_customer_id,
        'billingType': 'PIX',
        'value': float(valor),
        'dueDate': data_vencimento.strftime('%Y-%m-%d'),
        'description': descricao,
        'externalReference': external_reference,
    }
    resp = requests.post(
        f'{_base_url()}/payments',
        json=payload,
        headers=_headers(),
        timeout=15,
    )
    if not resp.ok:
        logger.error(f'Asaas PIX payment error: HTTP {resp.status_code}')
        logger.debug(f'Asaas PIX payment response body: {resp.text}')
        resp.raise_for_status()
    data = resp.json()
    logger.info(f'Asaas PIX payment created: {data["id"]} ({external_reference})')
    return {
        'id': data['id'],
        'invoiceUrl': data.get('invoiceUrl', ''),
        'status': data.get('status'),
    }


def obter_qr_code_pix_asaas(asaas_payment_id: str) -> dict:
    """Retorna { encodedImage, payload, expirationDate } do PIX da cobrança."""
    resp = requests.get(
        f'{_base_url()}/payments/{asaas_payment_id}/pixQrCode',
        headers=_headers(),
        timeout=15,
    )
    if not resp.ok:
        logger.error(f'Asaas PIX QR code error: HTTP {resp.status_code}')
        logger.debug(f'Asaas PIX QR code response body: {resp.text}')
        resp.raise_for_status()
    return resp.json()


def consultar_cobranca_asaas(asaas_payment_id: str) -> dict:
    """
    Status atual de uma cobrança.
    Retorna { id, status, value, paymentDate, billingType, transactionReceiptUrl }.
    """
    resp = requests.get(
        f'{_base_url()}/payments/{asaas_payment_id}',
        headers=_headers(),
        timeout=15,
    )
    resp.raise_for_status()
    p = resp.json()
    return {
        'id': p.get('id'),
        'status': p.get('status'),
        'value': p.get('value'),
        'paymentDate': p.get('paymentDate') or p.get('confirmedDate'),
        'billingType': p.get('billingType'),
        'transactionReceiptUrl': p.get('transactionReceiptUrl'),
    }


def cancelar_cobranca_asaas(asaas_payment_id: str) -> None:
    """Remove uma cobrança pendente no Asaas."""
    resp = requests.delete(
        f'{_base_url()}/payments/{asaas_payment_id}',
        headers=_headers(),
        timeout=15,
    )
    resp.raise_for_status()
    logger.info(f'Asaas payment cancelled: {asaas_payment_id}')


def mapear_tipo_pagamento(billing_type: str):
    return ASAAS_BILLING_TYPE_MAP.get((billing_type or '').upper())
