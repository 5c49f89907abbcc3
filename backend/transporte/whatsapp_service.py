"""
Cliente da Evolution API (WhatsApp).

Cada motorista tem uma instância própria, identificada por instance_name.
Os estados do provedor são normalizados para WhatsappInstancia.STATUS_CHOICES.
"""

import requests
import logging
from django.conf import settings

from .services.validators import normalize_digits

logger = logging.getLogger(__name__)

STATUS_MAP = {
    'open': 'CONNECTED',
    'connected': 'CONNECTED',
    'paired': 'CONNECTED',
    'close': 'DISCONNECTED',
    'closed': 'DISCONNECTED',
    'disconnected': 'DISCONNECTED',
    'connecting': 'CONNECTING',
    'error': 'UNKNOWN',
}


def _base_url() -> str:
    return settings.EVOLUTION_API_URL.rstrip('/')


def _headers() -> dict:
    return {
        'apikey': settings.EVOLUTION_API_KEY,
        'Content-Type': 'application/json',
    }


def normalizar_status(estado: str) -> str:
    return STATUS_MAP.get(str(estado or '').lower(), 'UNKNOWN')


def formatar_numero(telefone: str) -> str:
    """11 dígitos nacionais recebem o DDI 55."""
    digits = normalize_digits(telefone)
    if len(digits) == 11:
        return f'55{digits}'
    return digits


def criar_instancia(instance_name: str) -> dict:
    resp = requests.post(
        f'{_base_url()}/instance/create',
        json={'instanceName': instance_name, 'qrcode': True, 'integration': 'WHATSAPP-BAILEYS'},
        headers=_headers(),
        timeout=15,
    )
    if not resp.ok:
        logger.error(f'Evolution instance creation error: HTTP {resp.status_code}')
        logger.debug(f'Evolution instance creation response body: {resp.text}')
        resp.raise_for_status()
    logger.info(f'Evolution instance created: {instance_name}')
    return resp.json()


def obter_status(instance_name: str) -> str:
    """Estado normalizado da conexão; NOT_FOUND quando a instância não existe."""
    resp = requests.get(
        f'{_base_url()}/instance/connectionState/{instance_name}',
        headers=_headers(),
        timeout=15,
    )
    if resp.status_code == 404:
        return 'NOT_FOUND'
    if not resp.ok:
        logger.error(f'Evolution connection state error: HTTP {resp.status_code}')
        logger.debug(f'Evolution connection state response body: {resp.text}')
        resp.raise_for_status()
    data = resp.json()
    estado = (data.get('instance') or {}).get('state') or data.get('state')
    return normalizar_status(estado)


def conectar(instance_name: str, telefone: str = None) -> dict:
    """
    Inicia a conexão. Com telefone a Evolution devolve também o pairing code.
    Retorna { qr_code, pairing_code }.
    """
    params = {'number': formatar_numero(telefone)} if telefone else None
    resp = requests.get(
        f'{_base_url()}/instance/connect/{instance_name}',
        params=params,
        headers=_headers(),
        timeout=15,
    )
    if not resp.ok:
        logger.error(f'Evolution connect error: HTTP {resp.status_code}')
        logger.debug(f'Evolution connect response body: {resp.text}')
        resp.raise_for_status()
    data = resp.json()
    return {
        'qr_code': data.get('base64') or data.get('code'),
        'pairing_code': data.get('pairingCode'),
    }


def desconectar(instance_name: str) -> None:
    resp = requests.delete(
        f'{_base_url()}/instance/logout/{instance_name}',
        headers=_headers(),
        timeout=15,
    )
    if resp.status_code == 404:
        logger.info(f'Evolution instance {instance_name} already gone on logout')
        return
    resp.raise_for_status()
    logger.info(f'Evolution instance disconnected: {instance_name}')


def enviar_texto(instance_name: str, telefone: str, texto: str) -> dict:
    resp = requests.post(
        f'{_base_url()}/message/sendText/{instance_name}',
        json={'number': formatar_numero(telefone), 'text': texto},
        headers=_headers(),
        timeout=15,
    )
    if not resp.ok:
        logger.error(f'Evolution send message error: HTTP {resp.status_code}')
        logger.debug(f'Evolution send message response body: {resp.text}')
        resp.raise_for_status()
    return resp.json()
