import logging

from rest_framework import viewsets, permissions, status
from rest_framework.decorators import action
from rest_framework.response import Response
from requests.exceptions import RequestException

from .. import whatsapp_service
from ..models import WhatsappInstancia
from ..permissions import HasFeature, IsSubscriptionActive
from ..serializers import WhatsappInstanciaSerializer
from ..services import entitlements
from ..services.validators import is_valid_telefone, normalize_digits

logger = logging.getLogger(__name__)

MSG_WHATSAPP_INDISPONIVEL = 'Serviço de WhatsApp indisponível. Tente novamente.'

PERMISSOES_CONEXAO = [
    permissions.IsAuthenticated,
    IsSubscriptionActive,
    HasFeature.for_feature(entitlements.FEATURE_NOTIFICACOES),
]


def nome_instancia(motorista):
    return f'vanescolar-motorista-{motorista.id}'


class WhatsappViewSet(viewsets.GenericViewSet):
    """Conexão do WhatsApp do motorista (Evolution API)."""
    serializer_class = WhatsappInstanciaSerializer
    permission_classes = [permissions.IsAuthenticated]

    def _get_instancia(self):
        motorista = self.request.user.motorista
        instancia, _ = WhatsappInstancia.objects.get_or_create(
            motorista=motorista,
            defaults={'instance_name': nome_instancia(motorista)},
        )
        return instancia

    def _atualizar_status(self, instancia):
        novo = whatsapp_service.obter_status(instancia.instance_name)
        if novo != instancia.status:
            instancia.status = novo
            instancia.save(update_fields=['status', 'atualizado_em'])
        return instancia

    def _garantir_instancia_remota(self, instancia):
        if whatsapp_service.obter_status(instancia.instance_name) == 'NOT_FOUND':
            whatsapp_service.criar_instancia(instancia.instance_name)

    @action(detail=False, methods=['get'], url_path='status')
    def status_conexao(self, request):
        if not request.user.motorista:
            return Response({'detail': 'Usuário não vinculado a um motorista.'}, status=status.HTTP_404_NOT_FOUND)
        instancia = self._get_instancia()
        try:
            self._atualizar_status(instancia)
        except RequestException as e:
            logger.warning(f'Evolution status check failed for {instancia.instance_name}: {e}')
            return Response({'detail': MSG_WHATSAPP_INDISPONIVEL}, status=503)
        return Response(self.get_serializer(instancia).data)

    @action(detail=False, methods=['post'], permission_classes=PERMISSOES_CONEXAO)
    def conectar(self, request):
        """POST /api/whatsapp/conectar/ - devolve o QR Code para leitura no celular."""
        instancia = self._get_instancia()
        try:
            self._garantir_instancia_remota(instancia)
            conexao = whatsapp_service.conectar(instancia.instance_name)
        except RequestException as e:
            logger.warning(f'Evolution connect failed for {instancia.instance_name}: {e}')
            return Response({'detail': MSG_WHATSAPP_INDISPONIVEL}, status=503)

        instancia.status = 'CONNECTING'
        instancia.save(update_fields=['status', 'atualizado_em'])
        return Response({'qr_code': conexao['qr_code'], 'status': instancia.status})

    @action(detail=False, methods=['post'], url_path='pairing-code', permission_classes=PERMISSOES_CONEXAO)
    def pairing_code(self, request):
        """
        POST /api/whatsapp/pairing-code/
        Body: { "telefone": "11999999999" } - código para conectar sem QR Code
        """
        telefone = request.data.get('telefone', '')
        if not is_valid_telefone(telefone):
            return Response({'telefone': 'Telefone deve ter 11 dígitos com DDD.'}, status=status.HTTP_400_BAD_REQUEST)

        instancia = self._get_instancia()
        try:
            self._garantir_instancia_remota(instancia)
            conexao = whatsapp_service.conectar(instancia.instance_name, telefone)
        except RequestException as e:
            logger.warning(f'Evolution pairing code failed for {instancia.instance_name}: {e}')
            return Response({'detail': MSG_WHATSAPP_INDISPONIVEL}, status=503)

        if not conexao['pairing_code']:
            return Response({'detail': 'Não foi possível gerar o código. Tente pelo QR Code.'}, status=503)

        instancia.status = 'CONNECTING'
        instancia.telefone = normalize_digits(telefone)
        instancia.save(update_fields=['status', 'telefone', 'atualizado_em'])
        return Response({'pairing_code': conexao['pairing_code'], 'status': instancia.status})

    @action(detail=False, methods=['post'])
    def desconectar(self, request):
        if not request.user.motorista:
            return Response({'detail': 'Usuário não vinculado a um motorista.'}, status=status.HTTP_404_NOT_FOUND)
        instancia = self._get_instancia()
        try:
            whatsapp_service.desconectar(instancia.instance_name)
        except RequestException as e:
            logger.warning(f'Evolution logout failed for {instancia.instance_name}: {e}')
            return Response({'detail': MSG_WHATSAPP_INDISPONIVEL}, status=503)

        instancia.status = 'DISCONNECTED'
        instancia.save(update_fields=['status', 'atualizado_em'])
        return Response(self.get_serializer(instancia).data)
