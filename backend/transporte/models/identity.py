from django.db import models
from django.contrib.auth.models import AbstractUser


class Motorista(models.Model):
    TIPO_CHAVE_PIX_CHOICES = (
        ('CPF', 'CPF'),
        ('CNPJ', 'CNPJ'),
        ('EMAIL', 'E-mail'),
        ('TELEFONE', 'Telefone'),
        ('ALEATORIA', 'Chave Aleatória'),
    )

    nome = models.CharField(max_length=255)

    # 🔹 Identificação legal
    cpf_cnpj = models.CharField(max_length=18, blank=True, null=True)

    # 🔹 Contato
    email = models.EmailField(blank=True, null=True)
    telefone = models.CharField(max_length=20, blank=True, null=True)

    # 🔹 Recebimento
    chave_pix = models.CharField(max_length=140, blank=True, null=True)
    tipo_chave_pix = models.CharField(
        max_length=10, choices=TIPO_CHAVE_PIX_CHOICES, blank=True, null=True
    )

    criado_em = models.DateTimeField(auto_now_add=True)
    atualizado_em = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['nome']

    def __str__(self):
        return self.nome


class Usuario(AbstractUser):
    ROLE_CHOICES = (
        ('admin', 'Administrador'),
        ('motorista', 'Motorista'),
    )

    motorista = models.ForeignKey(
        Motorista, on_delete=models.CASCADE, null=True, blank=True, related_name='usuarios'
    )
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='motorista')
    is_email_verified = models.BooleanField(default=False)

    groups = models.ManyToManyField(
        'auth.Group',
        verbose_name='groups',
        blank=True,
        help_text='The groups this user belongs to. A user will get all permissions granted to each of their groups.',
        related_name="usuario_set",
        related_query_name="usuario",
    )
    user_permissions = models.ManyToManyField(
        'auth.Permission',
        verbose_name='user permissions',
        blank=True,
        help_text='Specific permissions for this user.',
        related_name="usuario_set",
        related_query_name="usuario",
    )

    def __str__(self):
        return self.username
