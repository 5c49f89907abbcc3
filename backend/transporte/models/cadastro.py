from django.db import models
from .identity import Motorista


class Endereco(models.Model):
    logradouro = models.CharField(max_length=255, blank=True, null=True)
    numero = models.CharField(max_length=20, blank=True, null=True)
    bairro = models.CharField(max_length=100, blank=True, null=True)
    cidade = models.CharField(max_length=100, blank=True, null=True)
    estado = models.CharField(max_length=2, blank=True, null=True)
    cep = models.CharField(max_length=9, blank=True, null=True)
    referencia = models.CharField(max_length=255, blank=True, null=True)

    class Meta:
        abstract = True


class Escola(Endereco):
    motorista = models.ForeignKey(Motorista, on_delete=models.CASCADE, related_name='escolas')
    nome = models.CharField(max_length=255)
    telefone = models.CharField(max_length=20, blank=True, null=True)
    ativo = models.BooleanField(default=True)
    criado_em = models.DateTimeField(auto_now_add=True)
    atualizado_em = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['nome']

    def __str__(self):
        return self.nome


class Veiculo(models.Model):
    motorista = models.ForeignKey(Motorista, on_delete=models.CASCADE, related_name='veiculos')
    placa = models.CharField(max_length=7)
    marca = models.CharField(max_length=50, blank=True)
    modelo = models.CharField(max_length=50, blank=True)
    ano_fabricacao = models.PositiveIntegerField(null=True, blank=True)
    ano_modelo = models.PositiveIntegerField(null=True, blank=True)
    capacidade = models.PositiveIntegerField(null=True, blank=True)
    ativo = models.BooleanField(default=True)
    criado_em = models.DateTimeField(auto_now_add=True)
    atualizado_em = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['placa']
        constraints = [
            models.UniqueConstraint(fields=['motorista', 'placa'], name='veiculo_placa_unica_por_motorista'),
        ]

    def __str__(self):
        return f'{self.placa} - {self.modelo}' if self.modelo else self.placa


class DadosPassageiro(Endereco):
    """Campos comuns entre o passageiro e o pré-cadastro feito pelo responsável."""

    PERIODO_CHOICES = (
        ('integral', 'Integral'),
        ('manha', 'Manhã'),
        ('almoco', 'Almoço'),
        ('tarde', 'Tarde'),
        ('noite', 'Noite'),
    )
    GENERO_CHOICES = (
        ('masculino', 'Masculino'),
        ('feminino', 'Feminino'),
        ('prefiro_nao_informar', 'Prefiro não informar'),
    )

    nome = models.CharField(max_length=255)
    periodo = models.CharField(max_length=10, choices=PERIODO_CHOICES, blank=True, null=True)
    genero = models.CharField(max_length=25, choices=GENERO_CHOICES, blank=True, null=True)
    observacoes = models.TextField(blank=True, null=True)

    nome_responsavel = models.CharField(max_length=255)
    email_responsavel = models.EmailField(blank=True, null=True)
    cpf_responsavel = models.CharField(max_length=14, blank=True, null=True)
    telefone_responsavel = models.CharField(max_length=20, blank=True, null=True)

    class Meta:
        abstract = True


class Passageiro(DadosPassageiro):
    motorista = models.ForeignKey(Motorista, on_delete=models.CASCADE, related_name='passageiros')
    escola = models.ForeignKey(
        Escola, on_delete=models.SET_NULL, null=True, blank=True, related_name='passageiros'
    )
    veiculo = models.ForeignKey(
        Veiculo, on_delete=models.SET_NULL, null=True, blank=True, related_name='passageiros'
    )
    valor_cobranca = models.DecimalField(max_digits=10, decimal_places=2)
    dia_vencimento = models.PositiveSmallIntegerField(default=10, help_text="Dia do mês para vencimento (1-31)")
    ativo = models.BooleanField(default=True)
    enviar_cobranca_automatica = models.BooleanField(default=False)
    asaas_customer_id = models.CharField(max_length=100, blank=True, null=True)
    criado_em = models.DateTimeField(auto_now_add=True)
    atualizado_em = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['nome']

    def __str__(self):
        return self.nome


class PrePassageiro(DadosPassageiro):
    motorista = models.ForeignKey(Motorista, on_delete=models.CASCADE, related_name='pre_passageiros')
    escola = models.ForeignKey(
        Escola, on_delete=models.SET_NULL, null=True, blank=True, related_name='pre_passageiros'
    )
    valor_cobranca = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    dia_vencimento = models.PositiveSmallIntegerField(null=True, blank=True)
    criado_em = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = 'Pré-passageiro'
        verbose_name_plural = 'Pré-passageiros'
        ordering = ['-criado_em']

    def __str__(self):
        return f'{self.nome} (pré-cadastro)'
