from django.db import models
from django.utils import timezone
from .identity import Motorista
from .cadastro import Passageiro


class Cobranca(models.Model):
    STATUS_CHOICES = (
        ('pago', 'Pago'),
        ('pendente', 'Pendente'),
        ('cancelada', 'Cancelada'),
    )
    ORIGEM_CHOICES = (
        ('manual', 'Manual'),
        ('automatica', 'Automática'),
    )
    TIPO_PAGAMENTO_CHOICES = (
        ('PIX', 'PIX'),
        ('dinheiro', 'Dinheiro'),
        ('cartao-debito', 'Cartão de Débito'),
        ('cartao-credito', 'Cartão de Crédito'),
        ('transferencia', 'Transferência'),
        ('boleto', 'Boleto'),
    )

    motorista = models.ForeignKey(Motorista, on_delete=models.CASCADE, related_name='cobrancas')
    passageiro = models.ForeignKey(Passageiro, on_delete=models.CASCADE, related_name='cobrancas')
    mes = models.PositiveSmallIntegerField()
    ano = models.PositiveSmallIntegerField()
    valor = models.DecimalField(max_digits=10, decimal_places=2)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='pendente')
    data_vencimento = models.DateField()
    data_pagamento = models.DateField(blank=True, null=True)
    tipo_pagamento = models.CharField(max_length=20, choices=TIPO_PAGAMENTO_CHOICES, blank=True, null=True)
    valor_pago = models.DecimalField(max_digits=10, decimal_places=2, blank=True, null=True)
    pagamento_manual = models.BooleanField(default=False)
    origem = models.CharField(max_length=10, choices=ORIGEM_CHOICES, default='manual')
    desativar_lembretes = models.BooleanField(default=False)

    # 🔹 Gateway (cobrança automática via PIX)
    asaas_payment_id = models.CharField(max_length=100, blank=True, null=True)
    qr_code_payload = models.TextField(blank=True, null=True)
    location_url = models.URLField(max_length=500, blank=True, null=True)
    recibo_url = models.URLField(max_length=500, blank=True, null=True)

    data_envio_ultima_notificacao = models.DateTimeField(blank=True, null=True)
    criado_em = models.DateTimeField(auto_now_add=True)
    atualizado_em = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['data_vencimento', 'id']

    def __str__(self):
        return f'{self.passageiro.nome} - {self.mes:02d}/{self.ano}'

    @property
    def atrasada(self):
        return self.status == 'pendente' and self.data_vencimento < timezone.localdate()


class CobrancaNotificacao(models.Model):
    TIPO_EVENTO_LABELS = {
        'AVISO_ANTECIPADO': 'Lembrete antecipado',
        'AVISO_VENCIMENTO': 'Lembrete de vencimento',
        'REENVIO_MANUAL': 'Envio manual de cobrança',
    }

    cobranca = models.ForeignKey(Cobranca, on_delete=models.CASCADE, related_name='notificacoes')
    tipo_evento = models.CharField(max_length=30)
    canal = models.CharField(max_length=20, default='whatsapp')
    sucesso = models.BooleanField(default=True)
    erro = models.TextField(blank=True)
    data_envio = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = 'Notificação de Cobrança'
        verbose_name_plural = 'Notificações de Cobrança'
        ordering = ['-data_envio']

    def __str__(self):
        return f'{self.tipo_evento} — {self.data_envio}'

    @property
    def descricao(self):
        if self.tipo_evento.startswith('LEMBRETE_ATRASO_'):
            return f"{self.tipo_evento.rsplit('_', 1)[-1]}º lembrete de atraso"
        return self.TIPO_EVENTO_LABELS.get(self.tipo_evento, self.tipo_evento)
