"""E-mails transacionais enviados via Resend."""

import logging

import resend
from django.conf import settings
from django.contrib.auth.tokens import default_token_generator, PasswordResetTokenGenerator
from django.utils.encoding import force_bytes
from django.utils.http import urlsafe_base64_encode

logger = logging.getLogger(__name__)


class EmailVerificationTokenGenerator(PasswordResetTokenGenerator):
    """
    Não inclui a senha no hash, então um reset de senha não invalida o link
    de verificação. Inclui is_email_verified para o token expirar após o uso.
    """
    def _make_hash_value(self, user, timestamp):
        return f"{user.pk}{timestamp}{user.is_email_verified}"


email_verification_token = EmailVerificationTokenGenerator()


def _layout(titulo, texto, url, botao, rodape):
    return f"""
    <div style="font-family: sans-serif; max-width: 520px; margin: 0 auto; padding: 32px;">
      <h2 style="color: #1a1a2e; margin-bottom: 8px;">{titulo}</h2>
      <p style="color: #444; line-height: 1.6;">{texto}</p>
      <a href="{url}"
         style="display: inline-block; margin: 24px 0; padding: 12px 28px;
                background-color: #f2b705; color: #1a1a2e; text-decoration: none;
                border-radius: 6px; font-weight: 600;">
        {botao}
      </a>
      <p style="color: #888; font-size: 13px;">{rodape}</p>
      <hr style="border: none; border-top: 1px solid #eee; margin: 24px 0;" />
      <p style="color: #aaa; font-size: 12px;">Van Escolar — Gestão do seu transporte escolar</p>
    </div>
    """


def _enviar(destinatario, assunto, html):
    resend.api_key = settings.RESEND_API_KEY
    resend.Emails.send({
        "from": settings.EMAIL_FROM,
        "to": [destinatario],
        "subject": assunto,
        "html": html,
    })


def enviar_verificacao_email(user):
    uid = urlsafe_base64_encode(force_bytes(user.pk))
    token = email_verification_token.make_token(user)
    verify_url = f"{settings.FRONTEND_URL}/verificar-email?uid={uid}&token={token}"
    _enviar(
        user.email,
        "Confirme seu email — Van Escolar",
        _layout(
            "Bem-vindo ao Van Escolar!",
            "Sua conta foi criada. Clique no botão abaixo para confirmar seu email e ativar o acesso.",
            verify_url,
            "Confirmar email",
            "Se você não criou uma conta no Van Escolar, ignore este email.",
        ),
    )
    logger.info(f'Verification email sent to user {user.pk}')


def enviar_reset_senha(user):
    uid = urlsafe_base64_encode(force_bytes(user.pk))
    token = default_token_generator.make_token(user)
    reset_url = f"{settings.FRONTEND_URL}/redefinir-senha?uid={uid}&token={token}"
    _enviar(
        user.email,
        "Redefinição de senha — Van Escolar",
        _layout(
            "Redefinição de senha",
            "Recebemos uma solicitação para redefinir a senha da sua conta. "
            "Clique no botão abaixo para criar uma nova senha.",
            reset_url,
            "Redefinir senha",
            "Se você não solicitou a redefinição, ignore este email.",
        ),
    )
    logger.info(f'Password reset email sent to user {user.pk}')
