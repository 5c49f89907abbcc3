from django.db import models
from .identity import Motorista
from .cadastro import Veiculo


class Gasto(models.Model):
    CATEGORIA_CHOICES = (
        ('combustivel', 'Combustível'),
        ('manutencao', 'Manutenção'),
        ('salario', 'Salário'),
        ('vistorias', 'Vistorias'),
        ('documentacao', 'Documentação'),
        ('administrativa', 'Administrativa'),
        ('outros', 'Outros'),
    )

    motorista = models.ForeignKey(Motorista, on_delete=models.CASCADE, related_name='gastos')
    veiculo = models.ForeignKey(
        Veiculo, on_delete=models.SET_NULL, null=True, blank=True, related_name='gastos'
    )
    valor = models.DecimalField(max_digits=10, decimal_places=2)
    data = models.DateField()
    categoria = models.CharField(max_length=20, choices=CATEGORIA_CHOICES)
    descricao = models.TextField(blank=True, null=True)
    criado_em = models.DateTimeField(auto_now_add=True)
    atualizado_em = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-data', '-id']

    def __str__(self):
        return f'{self.get_categoria_display()} - {self.valor}'
