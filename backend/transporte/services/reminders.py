"""
Lembretes de cobrança por WhatsApp.

Eventos por cobrança pendente, contados a partir do vencimento:
  AVISO_ANTECIPADO   vencimento - dias_antes_vencimento
  AVISO_VENCIMENTO   no dia do vencimento
  LEMBRETE_ATRASO_n  a cada dias_apos_vencimento dias depois (n <= 3)
Cada evento é enviado uma única vez; envios com falha ficam registrados
e podem ser tentados de novo na próxima execução.
"""

import logging
import re

from django.utils import timezone
from requests.exceptions import RequestException

from . import entitlements
from .billing import plano_do_motorista
from ..helpers.datas import nome_mes
from ..helpers.pdf import format_currency, format_date
from ..models import Cobranca, CobrancaNotificacao, ConfiguracaoMotorista, WhatsappInstancia
from .. import whatsapp_service

logger = logging.getLogger(__name__)

EVENTO_ANTECIPADO = 'AVISO_ANTECIPADO'
EVENTO_VENCIMENTO = 'AVISO_VENCIMENTO'
EVENTO_ATRASO = 'LEMBRETE_ATRASO_{}'
EVENTO_MANUAL = 'REENVIO_MANUAL'
MAX_LEMBRETES_ATRASO = 3
PLACEHOLDERS = ('responsavel', 'passageiro', 'mes', 'valor', 'vencimento', 'pix', 'motorista')
PLACEHOLDER_RE = re.compile(r'\{(\w+)\}')


def placeholders_desconhecidos(template: str) -> list:
    return sorted({nome for nome in PLACEHOLDER_RE.findall(template or '') if nome not in PLACEHOLDERS})


def renderizar_mensagem(template: str, cobranca) -> str:
    """
    Troca só os {placeholders} conhecidos. Chaves soltas e nomes
    desconhecidos ficam como estão no texto.
    """
    passageiro = cobranca.passageiro
    motorista = cobranca.motorista
    valores = {
        'responsavel': passageiro.nome_responsavel or '',
        'passageiro': passageiro.nome,
        'mes': f'{nome_mes(cobranca.mes)}/{cobranca.ano}',
        'valor': format_currency(cobranca.valor),
        'vencimento': format_date(cobranca.data_vencimento),
        'pix': cobranca.qr_code_payload or motorista.chave_pix or '',
        'motorista': motorista.nome,
    }
    return PLACEHOLDER_RE.sub(lambda m: valores.get(m.group(1), m.group(0)), template or '')


def tipo_evento_do_dia(data_vencimento, config, hoje):
    """Evento devido hoje para a cobrança, ou None."""
    dias = (data_vencimento - hoje).days
    if dias > 0:
        if config.dias_antes_vencimento and dias == config.dias_antes_vencimento:
            return EVENTO_ANTECIPADO
        return None
    if dias == 0:
        return EVENTO_VENCIMENTO

    atraso = -dias
    intervalo = config.dias_apos_vencimento
    if not intervalo or atraso % intervalo:
        return None
    n = atraso // intervalo
    if n > MAX_LEMBRETES_ATRASO:
        return None
    return EVENTO_ATRASO.format(n)


def template_do_evento(tipo_evento, config):
    if tipo_evento == EVENTO_ANTECIPADO:
        return config.mensagem_lembrete_antecipada
    if tipo_evento == EVENTO_VENCIMENTO:
        return config.mensagem_lembrete_dia
    if tipo_evento == EVENTO_MANUAL:
        return config.mensagem_lembrete_dia
    return config.mensagem_lembrete_atraso


def _registrar_envio(cobranca, tipo_evento, sucesso, erro=''):
    CobrancaNotificacao.objects.create(
        cobranca=cobranca,
        tipo_evento=tipo_evento,
        sucesso=sucesso,
        erro=erro,
    )
    if sucesso:
        cobranca.data_envio_ultima_notificacao = timezone.now()
        cobranca.save(update_fields=['data_envio_ultima_notificacao', 'atualizado_em'])


def enviar(cobranca, tipo_evento, instancia, config) -> bool:
    texto = renderizar_mensagem(template_do_evento(tipo_evento, config), cobranca)
    try:
        whatsapp_service.enviar_texto(
            instancia.instance_name, cobranca.passageiro.telefone_responsavel, texto
        )
    except RequestException as e:
        logger.warning(f'Falha ao enviar {tipo_evento} da cobrança {cobranca.id}: {e}')
        _registrar_envio(cobranca, tipo_evento, False, str(e))
        return False

    _registrar_envio(cobranca, tipo_evento, True)
    return True


def enviar_notificacao_manual(cobranca) -> bool:
    """Reenvio pedido pelo motorista. Levanta RequestException se o provedor falhar."""
    instancia = WhatsappInstancia.objects.get(motorista=cobranca.motorista)
    config, _ = ConfiguracaoMotorista.objects.get_or_create(motorista=cobranca.motorista)
    texto = renderizar_mensagem(template_do_evento(EVENTO_MANUAL, config), cobranca)
    try:
        whatsapp_service.enviar_texto(
            instancia.instance_name, cobranca.passageiro.telefone_responsavel, texto
        )
    except RequestException as e:
        _registrar_envio(cobranca, EVENTO_MANUAL, False, str(e))
        raise
    _registrar_envio(cobranca, EVENTO_MANUAL, True)
    logger.info(f'Notificação manual enviada para a cobrança {cobranca.id}')
    return True


def cobrancas_elegiveis(motorista):
    return (
        Cobranca.objects.filter(
            motorista=motorista,
            status='pendente',
            desativar_lembretes=False,
            passageiro__ativo=True,
            passageiro__enviar_cobranca_automatica=True,
            passageiro__telefone_responsavel__isnull=False,
        )
        .exclude(passageiro__telefone_responsavel='')
        .select_related('passageiro', 'motorista')
    )


def processar_lembretes(hoje=None, agora=None, respeitar_horario=False) -> dict:
    """
    Passada diária. Com respeitar_horario só processa motoristas cujo
    horario_envio já passou (execução de hora em hora).
    """
    agora = agora or timezone.localtime()
    hoje = hoje or agora.date()
    resultado = {'enviados': 0, 'falhas': 0, 'ignorados': 0}

    instancias = WhatsappInstancia.objects.filter(status='CONNECTED').select_related('motorista')
    for instancia in instancias:
        motorista = instancia.motorista
        if not entitlements.tem_acesso(plano_do_motorista(motorista), entitlements.FEATURE_NOTIFICACOES):
            continue

        config, _ = ConfiguracaoMotorista.objects.get_or_create(motorista=motorista)
        if respeitar_horario and agora.time() < config.horario_envio:
            continue

        for cobranca in cobrancas_elegiveis(motorista):
            tipo_evento = tipo_evento_do_dia(cobranca.data_vencimento, config, hoje)
            if tipo_evento is None:
                continue

            ja_enviado = CobrancaNotificacao.objects.filter(
                cobranca=cobranca, tipo_evento=tipo_evento, sucesso=True
            ).exists()
            if ja_enviado:
                resultado['ignorados'] += 1
                continue

            try:
                enviado = enviar(cobranca, tipo_evento, instancia, config)
            except Exception as e:
                # uma cobrança com erro não interrompe a passada dos outros motoristas
                logger.exception(f'Erro ao processar {tipo_evento} da cobrança {cobranca.id}')
                _registrar_envio(cobranca, tipo_evento, False, str(e))
                enviado = False

            if enviado:
                resultado['enviados'] += 1
            else:
                resultado['falhas'] += 1

    logger.info(
        f"Lembretes {hoje}: {resultado['enviados']} enviados, "
        f"{resultado['falhas']} falhas, {resultado['ignorados']} ignorados"
    )
    return resultado
