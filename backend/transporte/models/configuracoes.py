from datetime import time

from django.db import models
from django.db.models.signals import post_save
from django.dispatch import receiver
from .identity import Motorista


MENSAGEM_ANTECIPADA_PADRAO = (
    'Olá, {responsavel}! Passando para lembrar que a mensalidade do transporte de '
    '{passageiro} ({mes}) no valor de {valor} vence em {vencimento}. Chave PIX: {pix}'
)
MENSAGEM_DIA_PADRAO = (
    'Olá, {responsavel}! A mensalidade do transporte de {passageiro} ({mes}) no valor de '
    '{valor} vence hoje. Chave PIX: {pix}'
)
MENSAGEM_ATRASO_PADRAO = (
    'Olá, {responsavel}! A mensalidade do transporte de {passageiro} ({mes}) no valor de '
    '{valor} venceu em {vencimento}. Se já pagou, desconsidere. {motorista}'
)


class ConfiguracaoMotorista(models.Model):
    motorista = models.OneToOneField(
        Motorista, on_delete=models.CASCADE, related_name='configuracao'
    )
    horario_envio = models.TimeField(default=time(9, 0))
    mensagem_lembrete_antecipada = models.TextField(default=MENSAGEM_ANTECIPADA_PADRAO)
    mensagem_lembrete_dia = models.TextField(default=MENSAGEM_DIA_PADRAO)
    mensagem_lembrete_atraso = models.TextField(default=MENSAGEM_ATRASO_PADRAO)
    dias_antes_vencimento = models.PositiveSmallIntegerField(default=3)
    dias_apos_vencimento = models.PositiveSmallIntegerField(default=3)
    criado_em = models.DateTimeField(auto_now_add=True)
    atualizado_em = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Configuração do Motorista'
        verbose_name_plural = 'Configurações dos Motoristas'

    def __str__(self):
        return f'Configurações de {self.motorista.nome}'


class WhatsappInstancia(models.Model):
    STATUS_CHOICES = (
        ('CONNECTED', 'Conectado'),
        ('DISCONNECTED', 'Desconectado'),
        ('CONNECTING', 'Conectando'),
        ('UNKNOWN', 'Desconhecido'),
        ('NOT_FOUND', 'Não encontrado'),
    )

    motorista = models.OneToOneField(
        Motorista, on_delete=models.CASCADE, related_name='whatsapp'
    )
    instance_name = models.CharField(max_length=100, unique=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='DISCONNECTED')
    telefone = models.CharField(max_length=20, blank=True, null=True)
    atualizado_em = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Instância de WhatsApp'
        verbose_name_plural = 'Instâncias de WhatsApp'

    def __str__(self):
        return f'{self.instance_name} — {self.status}'

    @property
    def conectado(self):
        return self.status == 'CONNECTED'


@receiver(post_save, sender=Motorista)
def criar_configuracao_padrao(sender, instance, created, **kwargs):
    if created:
        ConfiguracaoMotorista.objects.get_or_create(motorista=instance)
