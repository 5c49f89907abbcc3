import logging

from rest_framework import viewsets, permissions, status
from rest_framework.decorators import action, api_view, permission_classes, throttle_classes
from rest_framework.response import Response
from rest_framework_simplejwt.tokens import RefreshToken
from django.contrib.auth.password_validation import validate_password
from django.contrib.auth.tokens import default_token_generator
from django.core.exceptions import ValidationError as DjangoValidationError
from django.utils.http import urlsafe_base64_decode
from django.utils.encoding import force_str
from requests.exceptions import RequestException

from .mixins import AuthThrottle
from ..asaas_service import atualizar_cliente_asaas
from ..helpers.emails import email_verification_token, enviar_reset_senha
from ..models import Motorista, Usuario, ConfiguracaoMotorista
from ..serializers import MotoristaSerializer, UsuarioSerializer, ConfiguracaoMotoristaSerializer

logger = logging.getLogger(__name__)


class MotoristaViewSet(viewsets.ModelViewSet):
    """Gestão de motoristas (superusuários) e o perfil do próprio motorista em /me."""
    queryset = Motorista.objects.all()
    serializer_class = MotoristaSerializer
    permission_classes = [permissions.IsAdminUser]

    @action(detail=False, methods=['get', 'patch'], permission_classes=[permissions.IsAuthenticated])
    def me(self, request):
        """
        GET /api/motoristas/me/
        PATCH /api/motoristas/me/ - valida a chave PIX conforme o tipo
        """
        motorista = request.user.motorista
        if not motorista:
            return Response({"detail": "Usuário não vinculado a um motorista."}, status=status.HTTP_404_NOT_FOUND)

        if request.method == 'GET':
            return Response(self.get_serializer(motorista).data)

        serializer = self.get_serializer(motorista, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        motorista = serializer.save()

        # mantém o cliente do gateway em dia para a cobrança da assinatura
        assinatura = getattr(motorista, 'assinatura', None)
        if assinatura and assinatura.asaas_customer_id:
            try:
                atualizar_cliente_asaas(assinatura.asaas_customer_id, motorista)
            except RequestException as e:
                logger.warning(f'Could not sync Asaas customer for motorista {motorista.id}: {e}')

        return Response(serializer.data)


class UsuarioViewSet(viewsets.ReadOnlyModelViewSet):
    """Usuários do mesmo motorista. Superusuários veem todos."""
    queryset = Usuario.objects.none()
    serializer_class = UsuarioSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        user = self.request.user
        if user.is_superuser:
            return Usuario.objects.all().order_by('id')
        if user.motorista_id:
            return Usuario.objects.filter(motorista_id=user.motorista_id).order_by('id')
        return Usuario.objects.filter(pk=user.pk)

    @action(detail=False, methods=['get'])
    def me(self, request):
        return Response(self.get_serializer(request.user).data)

    @action(detail=False, methods=['post'], url_path='alterar-senha', throttle_classes=[AuthThrottle])
    def alterar_senha(self, request):
        """
        POST /api/usuarios/alterar-senha/
        Body: { "senha_atual": "...", "nova_senha": "..." }
        """
        senha_atual = request.data.get('senha_atual', '')
        nova_senha = request.data.get('nova_senha', '')

        if not senha_atual or not nova_senha:
            return Response({"detail": "Dados incompletos."}, status=status.HTTP_400_BAD_REQUEST)
        if not request.user.check_password(senha_atual):
            return Response({"senha_atual": "Senha atual incorreta."}, status=status.HTTP_400_BAD_REQUEST)
        if len(nova_senha) < 8:
            return Response({"nova_senha": "A senha deve ter pelo menos 8 caracteres."}, status=status.HTTP_400_BAD_REQUEST)
        try:
            validate_password(nova_senha, request.user)
        except DjangoValidationError as e:
            return Response({"nova_senha": e.messages}, status=status.HTTP_400_BAD_REQUEST)

        request.user.set_password(nova_senha)
        request.user.save(update_fields=['password'])
        return Response({"detail": "Senha alterada com sucesso."})


class ConfiguracaoViewSet(viewsets.GenericViewSet):
    """Configurações de lembretes do motorista."""
    serializer_class = ConfiguracaoMotoristaSerializer
    permission_classes = [permissions.IsAuthenticated]

    @action(detail=False, methods=['get', 'patch'])
    def me(self, request):
        motorista = request.user.motorista
        if not motorista:
            return Response({"detail": "Usuário não vinculado a um motorista."}, status=status.HTTP_404_NOT_FOUND)

        config, _ = ConfiguracaoMotorista.objects.get_or_create(motorista=motorista)
        if request.method == 'GET':
            return Response(self.get_serializer(config).data)

        serializer = self.get_serializer(config, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data)


@api_view(['POST'])
@permission_classes([permissions.AllowAny])
@throttle_classes([AuthThrottle])
def password_reset_request(request):
    """
    POST /api/password-reset/
    Body: { "email": "user@example.com" }
    Sempre retorna 200 para não revelar se o email existe.
    """
    email = request.data.get('email', '').strip().lower()
    if email:
        user = Usuario.objects.filter(email__iexact=email, is_active=True).first()
        if user:
            enviar_reset_senha(user)

    return Response({"detail": "Se esse email estiver cadastrado, você receberá um link em breve."}, status=status.HTTP_200_OK)


def _usuario_do_uid(uid):
    try:
        pk = force_str(urlsafe_base64_decode(uid))
        return Usuario.objects.get(pk=pk)
    except (Usuario.DoesNotExist, ValueError, TypeError):
        return None


@api_view(['POST'])
@permission_classes([permissions.AllowAny])
@throttle_classes([AuthThrottle])
def password_reset_confirm(request):
    """
    POST /api/password-reset/confirm/
    Body: { "uid": "...", "token": "...", "password": "novasenha" }
    """
    uid = request.data.get('uid', '')
    token = request.data.get('token', '')
    password = request.data.get('password', '')

    if not uid or not token or not password:
        return Response({"detail": "Dados incompletos."}, status=status.HTTP_400_BAD_REQUEST)

    if len(password) < 8:
        return Response({"detail": "A senha deve ter pelo menos 8 caracteres."}, status=status.HTTP_400_BAD_REQUEST)

    user = _usuario_do_uid(uid)
    if user is None or not default_token_generator.check_token(user, token):
        return Response({"detail": "Link inválido ou expirado."}, status=status.HTTP_400_BAD_REQUEST)

    user.set_password(password)
    user.is_email_verified = True
    user.save()
    return Response({"detail": "Senha redefinida com sucesso."}, status=status.HTTP_200_OK)


@api_view(['POST'])
@permission_classes([permissions.AllowAny])
@throttle_classes([AuthThrottle])
def verify_email(request):
    """
    POST /api/verify-email/
    Body: { "uid": "...", "token": "..." }
    Marca o email como verificado e já devolve o par de tokens JWT.
    """
    uid = request.data.get('uid', '')
    token = request.data.get('token', '')

    if not uid or not token:
        return Response({"detail": "Dados incompletos."}, status=status.HTTP_400_BAD_REQUEST)

    user = _usuario_do_uid(uid)
    if user is None or not email_verification_token.check_token(user, token):
        return Response({"detail": "Link inválido ou expirado."}, status=status.HTTP_400_BAD_REQUEST)

    if not user.is_email_verified:
        user.is_email_verified = True
        user.save(update_fields=['is_email_verified'])

    refresh = RefreshToken.for_user(user)
    return Response(
        {
            "detail": "Email confirmado com sucesso.",
            "access": str(refresh.access_token),
            "refresh": str(refresh),
        },
        status=status.HTTP_200_OK,
    )
