from django.db import models
from django.utils import timezone
from django.db.models.signals import post_save
from django.dispatch import receiver
from .identity import Motorista
from ..services import entitlements


class Plano(models.Model):
    TIPO_CHOICES = (
        ('base', 'Plano base'),
        ('sub', 'Sub-plano (faixa de franquia)'),
    )

    nome = models.CharField(max_length=100)
    slug = models.SlugField(unique=True)
    tipo = models.CharField(max_length=4, choices=TIPO_CHOICES, default='base')
    parent = models.ForeignKey(
        'self', on_delete=models.CASCADE, null=True, blank=True, related_name='sub_planos'
    )
    descricao_curta = models.CharField(max_length=255, blank=True)
    preco = models.DecimalField(max_digits=8, decimal_places=2, default=0)
    preco_promocional = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    promocao_ativa = models.BooleanField(default=False)
    beneficios = models.JSONField(default=list, blank=True)
    limite_passageiros = models.PositiveIntegerField(
        null=True, blank=True, help_text='Vazio = ilimitado'
    )
    franquia_cobrancas_mes = models.PositiveIntegerField(default=0)
    permite_cobrancas = models.BooleanField(default=False)
    trial_days = models.PositiveIntegerField(default=0)
    ativo = models.BooleanField(default=True)
    ordem = models.IntegerField(default=0)

    class Meta:
        verbose_name = 'Plano'
        verbose_name_plural = 'Planos'
        ordering = ['ordem', 'franquia_cobrancas_mes']

    def __str__(self):
        return f'{self.nome} — R$ {self.preco_aplicado}/mês'

    @property
    def preco_aplicado(self):
        if self.promocao_ativa and self.preco_promocional is not None:
            return self.preco_promocional
        return self.preco

    @property
    def slug_base(self):
        return self.parent.slug if self.parent_id else self.slug


class AssinaturaMotorista(models.Model):
    STATUS_CHOICES = (
        ('ativa', 'Ativa'),
        ('trial', 'Período de Teste'),
        ('suspensa', 'Suspensa'),
        ('pendente_pagamento', 'Pendente de Pagamento'),
        ('cancelada', 'Cancelada'),
    )

    motorista = models.OneToOneField(
        Motorista, on_delete=models.CASCADE, related_name='assinatura'
    )
    plano = models.ForeignKey(
        Plano, on_delete=models.SET_NULL, null=True, blank=True, related_name='assinaturas'
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='ativa')
    ativo = models.BooleanField(default=True)
    franquia_contratada_cobrancas = models.PositiveIntegerField(default=0)
    valor_mensal = models.DecimalField(max_digits=8, decimal_places=2, default=0)
    trial_end_at = models.DateTimeField(null=True, blank=True)
    vigencia_fim = models.DateField(null=True, blank=True)
    pending_plano = models.ForeignKey(
        Plano, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='assinaturas_pendentes',
        help_text='Plano escolhido aguardando pagamento'
    )
    pending_franquia = models.PositiveIntegerField(null=True, blank=True)
    pending_valor_mensal = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    asaas_customer_id = models.CharField(max_length=100, blank=True, null=True)
    criado_em = models.DateTimeField(auto_now_add=True)
    atualizado_em = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Assinatura do Motorista'
        verbose_name_plural = 'Assinaturas dos Motoristas'

    def __str__(self):
        return f'{self.motorista.nome} — {self.get_status_display()}'

    @property
    def trial_ativo(self):
        return entitlements.extrair_plano(self).is_trial_valido

    @property
    def dias_trial_restantes(self):
        if self.status != 'trial' or not self.trial_end_at:
            return 0
        delta = self.trial_end_at - timezone.now()
        return max(0, delta.days)

    @property
    def acesso_permitido(self):
        return entitlements.extrair_plano(self).is_valid_plan


class AssinaturaCobranca(models.Model):
    STATUS_CHOICES = (
        ('pago', 'Pago'),
        ('pendente_pagamento', 'Pendente de Pagamento'),
        ('cancelada', 'Cancelada'),
    )
    BILLING_TYPE_CHOICES = (
        ('subscription', 'Mensalidade'),
        ('upgrade_plan', 'Troca de plano'),
        ('upgrade', 'Aumento de franquia'),
        ('downgrade', 'Redução de franquia'),
        ('activation', 'Ativação'),
        ('expansion', 'Expansão'),
        ('renewal', 'Renovação'),
    )

    assinatura = models.ForeignKey(
        AssinaturaMotorista, on_delete=models.CASCADE, related_name='cobrancas'
    )
    plano = models.ForeignKey(Plano, on_delete=models.SET_NULL, null=True, blank=True)
    franquia = models.PositiveIntegerField(null=True, blank=True)
    valor = models.DecimalField(max_digits=8, decimal_places=2)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pendente_pagamento')
    billing_type = models.CharField(max_length=20, choices=BILLING_TYPE_CHOICES, default='subscription')
    data_vencimento = models.DateField()
    data_pagamento = models.DateField(null=True, blank=True)
    asaas_payment_id = models.CharField(max_length=100, blank=True, null=True)
    qr_code_payload = models.TextField(blank=True, null=True)
    invoice_url = models.URLField(max_length=500, blank=True, null=True)
    criado_em = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = 'Cobrança da Assinatura'
        verbose_name_plural = 'Cobranças da Assinatura'
        ordering = ['-data_vencimento', '-id']

    def __str__(self):
        return f'{self.assinatura.motorista.nome} — {self.get_billing_type_display()} R$ {self.valor}'


class WebhookLog(models.Model):
    event_type = models.CharField(max_length=100)
    event_id = models.CharField(max_length=100, blank=True)
    asaas_payment_id = models.CharField(max_length=100, blank=True)
    payload = models.JSONField()
    processed = models.BooleanField(default=False)
    error = models.TextField(blank=True)
    recebido_em = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = 'Log de Webhook'
        ordering = ['-recebido_em']

    def __str__(self):
        return f'{self.event_type} — {self.recebido_em}'


@receiver(post_save, sender=Motorista)
def criar_assinatura_inicial(sender, instance, created, **kwargs):
    if created:
        plano_gratuito = Plano.objects.filter(slug=entitlements.PLANO_GRATUITO, ativo=True).first()
        AssinaturaMotorista.objects.create(
            motorista=instance,
            plano=plano_gratuito,
            status='ativa',
            ativo=True,
        )
