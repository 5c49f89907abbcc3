import logging

from rest_framework import permissions
from rest_framework.exceptions import PermissionDenied
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle, UserRateThrottle
from requests.exceptions import HTTPError, RequestException

from ..permissions import IsSubscriptionActive

logger = logging.getLogger(__name__)

MSG_GATEWAY_INDISPONIVEL = 'Serviço de pagamento temporariamente indisponível. Tente novamente.'


class PaymentRateThrottle(UserRateThrottle):
    scope = 'payment'


class AuthThrottle(AnonRateThrottle):
    scope = 'auth'


def resposta_erro_gateway(exc, contexto=''):
    """HTTPError 4xx vira 400 com a descrição do gateway; o resto vira 503."""
    if isinstance(exc, HTTPError) and exc.response is not None and 400 <= exc.response.status_code < 500:
        try:
            errors = exc.response.json().get('errors', [])
            msg = errors[0]['description'] if errors else 'Dados inválidos.'
        except (ValueError, KeyError, IndexError, AttributeError):
            msg = 'Dados inválidos.'
        logger.warning(f'Gateway rejected request {contexto}: {msg}')
        return Response({'detail': msg}, status=400)
    logger.error(f'Gateway unavailable {contexto}: {exc}')
    return Response({'detail': MSG_GATEWAY_INDISPONIVEL}, status=503)


def parse_int(value, default=None):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


class MotoristaScopedViewSetMixin:
    """Scopes querysets and creation to the user's motorista."""
    permission_classes = [permissions.IsAuthenticated, IsSubscriptionActive]

    def get_motorista(self):
        return getattr(self.request.user, 'motorista', None)

    def get_queryset(self):
        user = self.request.user
        if user.is_superuser:
            return self.queryset.all()
        motorista = self.get_motorista()
        if motorista:
            return self.queryset.filter(motorista=motorista)
        return self.queryset.none()

    def perform_create(self, serializer):
        motorista = self.get_motorista()
        if not motorista:
            raise PermissionDenied('Usuário precisa estar vinculado a um motorista.')
        serializer.save(motorista=motorista)
