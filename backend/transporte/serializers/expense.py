from rest_framework import serializers
from ..models import Gasto, Veiculo


class GastoSerializer(serializers.ModelSerializer):
    veiculo_id = serializers.PrimaryKeyRelatedField(
        queryset=Veiculo.objects.all(), source='veiculo', required=False, allow_null=True
    )
    veiculo_placa = serializers.CharField(source='veiculo.placa', read_only=True, default=None)
    categoria_display = serializers.CharField(source='get_categoria_display', read_only=True)

    class Meta:
        model = Gasto
        exclude = ('motorista', 'veiculo')
        read_only_fields = ('criado_em', 'atualizado_em')

    def validate_valor(self, value):
        if value <= 0:
            raise serializers.ValidationError('Valor deve ser maior que zero.')
        return value

    def validate_veiculo_id(self, veiculo):
        request = self.context.get('request')
        motorista = getattr(getattr(request, 'user', None), 'motorista', None)
        if veiculo and motorista and veiculo.motorista_id != motorista.id:
            raise serializers.ValidationError('Veículo não encontrado.')
        return veiculo
