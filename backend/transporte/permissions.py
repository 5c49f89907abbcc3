from rest_framework.permissions import BasePermission
from rest_framework.exceptions import APIException

from .models import AssinaturaMotorista
from .services import entitlements


class PaymentRequired(APIException):
    status_code = 402
    default_detail = 'Sua assinatura está inativa ou expirada. Acesse /assinatura para continuar.'
    default_code = 'subscription_required'


class FeatureIndisponivel(APIException):
    """
    402 com o motivo do bloqueio e as saídas possíveis:
    { detail, feature, opcoes }.
    """
    status_code = 402
    default_detail = 'Recurso não disponível no seu plano.'
    default_code = 'feature_unavailable'

    def __init__(self, feature, detail=None, opcoes=None):
        body = {
            'detail': detail or self.default_detail,
            'feature': feature,
        }
        if opcoes:
            body['opcoes'] = opcoes
        super().__init__(body)

    @classmethod
    def from_decisao(cls, decisao, opcoes=None):
        return cls(decisao.motivo, decisao.mensagem, opcoes if opcoes is not None else list(decisao.opcoes))


class IsSubscriptionActive(BasePermission):
    """
    Blocks access (HTTP 402) when the motorista's trial has expired or the
    subscription is suspended/pending/cancelled past its vigência.

    Superusers and unauthenticated requests (handled by IsAuthenticated) bypass this check.
    """
    message = 'Sua assinatura está inativa ou expirada.'

    def has_permission(self, request, view):
        user = request.user

        if not user or not user.is_authenticated:
            return True

        if user.is_superuser:
            return True

        motorista = getattr(user, 'motorista', None)
        if not motorista:
            return True

        try:
            assinatura = motorista.assinatura
        except AssinaturaMotorista.DoesNotExist:
            raise PaymentRequired()

        if assinatura.acesso_permitido:
            return True

        raise PaymentRequired()


def plano_do_usuario(user):
    motorista = getattr(user, 'motorista', None)
    if motorista is None:
        return entitlements.extrair_plano(None)
    try:
        assinatura = motorista.assinatura
    except AssinaturaMotorista.DoesNotExist:
        assinatura = None
    return entitlements.extrair_plano(assinatura)


class HasFeature(BasePermission):
    """Use via HasFeature.for_feature('gastos')."""
    feature = None

    @classmethod
    def for_feature(cls, feature):
        return type(f'HasFeature_{feature}', (cls,), {'feature': feature})

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated or user.is_superuser:
            return True
        if entitlements.tem_acesso(plano_do_usuario(user), self.feature):
            return True
        raise FeatureIndisponivel(
            self.feature,
            'Recurso não disponível no seu plano. Faça upgrade para continuar.',
            ['upgrade'],
        )
