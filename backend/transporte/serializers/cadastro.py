from rest_framework import serializers
from ..models import Escola, Veiculo, Passageiro, PrePassageiro
from ..services.validators import (
    is_valid_cpf, is_valid_telefone, normalize_digits,
    normalizar_placa, is_valid_placa, formatar_placa, validar_endereco,
)

CAMPOS_ENDERECO = ('logradouro', 'numero', 'bairro', 'cidade', 'estado', 'cep', 'referencia')


class EnderecoSerializerMixin:
    """Valida o endereço considerando os valores já salvos em updates parciais."""

    def validar_endereco(self, data):
        dados = {
            campo: data.get(campo, getattr(self.instance, campo, None))
            for campo in CAMPOS_ENDERECO
        }
        errors = validar_endereco(dados)
        if errors:
            raise serializers.ValidationError(errors)
        if data.get('estado'):
            data['estado'] = data['estado'].upper()
        return data


class EscolaSerializer(EnderecoSerializerMixin, serializers.ModelSerializer):
    passageiros_ativos_count = serializers.IntegerField(read_only=True, required=False)

    class Meta:
        model = Escola
        exclude = ('motorista',)
        read_only_fields = ('criado_em', 'atualizado_em')

    def validate_telefone(self, value):
        if value and not is_valid_telefone(value):
            raise serializers.ValidationError('Telefone deve ter 11 dígitos com DDD.')
        return normalize_digits(value) if value else value

    def validate(self, data):
        return self.validar_endereco(data)


class VeiculoSerializer(serializers.ModelSerializer):
    placa_formatada = serializers.SerializerMethodField()
    passageiros_ativos_count = serializers.IntegerField(read_only=True, required=False)

    class Meta:
        model = Veiculo
        exclude = ('motorista',)
        read_only_fields = ('criado_em', 'atualizado_em')

    def get_placa_formatada(self, obj):
        return formatar_placa(obj.placa)

    def validate_placa(self, value):
        placa = normalizar_placa(value)
        if not is_valid_placa(placa):
            raise serializers.ValidationError('Placa inválida. Use AAA-9999 ou AAA9A99.')

        request = self.context.get('request')
        motorista = getattr(getattr(request, 'user', None), 'motorista', None)
        if motorista:
            qs = Veiculo.objects.filter(motorista=motorista, placa=placa)
            if self.instance:
                qs = qs.exclude(pk=self.instance.pk)
            if qs.exists():
                raise serializers.ValidationError('Já existe um veículo com esta placa.')
        return placa

    def validate(self, data):
        fabricacao = data.get('ano_fabricacao', getattr(self.instance, 'ano_fabricacao', None))
        modelo = data.get('ano_modelo', getattr(self.instance, 'ano_modelo', None))
        if fabricacao and modelo and modelo < fabricacao:
            raise serializers.ValidationError({'ano_modelo': 'Ano do modelo não pode ser anterior ao de fabricação.'})
        return data


class DadosPassageiroSerializerMixin(EnderecoSerializerMixin):

    def validate_cpf_responsavel(self, value):
        if value and not is_valid_cpf(value):
            raise serializers.ValidationError('CPF inválido.')
        return normalize_digits(value) if value else value

    def validate_telefone_responsavel(self, value):
        if value and not is_valid_telefone(value):
            raise serializers.ValidationError('Telefone deve ter 11 dígitos com DDD.')
        return normalize_digits(value) if value else value

    def validate_dia_vencimento(self, value):
        if value is not None and not 1 <= value <= 31:
            raise serializers.ValidationError('Dia de vencimento deve estar entre 1 e 31.')
        return value

    def validate_valor_cobranca(self, value):
        if value is not None and value <= 0:
            raise serializers.ValidationError('Valor deve ser maior que zero.')
        return value


def _motorista_do_contexto(serializer):
    request = serializer.context.get('request')
    return getattr(getattr(request, 'user', None), 'motorista', None)


class PassageiroSerializer(DadosPassageiroSerializerMixin, serializers.ModelSerializer):
    escola_id = serializers.PrimaryKeyRelatedField(
        queryset=Escola.objects.all(), source='escola', required=False, allow_null=True
    )
    veiculo_id = serializers.PrimaryKeyRelatedField(
        queryset=Veiculo.objects.all(), source='veiculo', required=False, allow_null=True
    )
    escola_nome = serializers.CharField(source='escola.nome', read_only=True, default=None)
    veiculo_placa = serializers.CharField(source='veiculo.placa', read_only=True, default=None)
    periodo_display = serializers.CharField(source='get_periodo_display', read_only=True)
    emitir_cobranca_mes_atual = serializers.BooleanField(write_only=True, required=False, default=False)

    class Meta:
        model = Passageiro
        exclude = ('motorista', 'escola', 'veiculo')
        read_only_fields = ('ativo', 'asaas_customer_id', 'criado_em', 'atualizado_em')

    def validate_escola_id(self, escola):
        motorista = _motorista_do_contexto(self)
        if escola and motorista and escola.motorista_id != motorista.id:
            raise serializers.ValidationError('Escola não encontrada.')
        return escola

    def validate_veiculo_id(self, veiculo):
        motorista = _motorista_do_contexto(self)
        if veiculo and motorista and veiculo.motorista_id != motorista.id:
            raise serializers.ValidationError('Veículo não encontrado.')
        return veiculo

    def validate(self, data):
        return self.validar_endereco(data)

    def create(self, validated_data):
        validated_data.pop('emitir_cobranca_mes_atual', None)
        return super().create(validated_data)

    def update(self, instance, validated_data):
        validated_data.pop('emitir_cobranca_mes_atual', None)
        return super().update(instance, validated_data)


class PrePassageiroSerializer(DadosPassageiroSerializerMixin, serializers.ModelSerializer):
    escola_id = serializers.PrimaryKeyRelatedField(
        queryset=Escola.objects.all(), source='escola', required=False, allow_null=True
    )
    escola_nome = serializers.CharField(source='escola.nome', read_only=True, default=None)

    class Meta:
        model = PrePassageiro
        exclude = ('motorista', 'escola')
        read_only_fields = ('criado_em',)

    def validate_escola_id(self, escola):
        motorista = self.context.get('motorista')
        if escola and motorista and escola.motorista_id != motorista.id:
            raise serializers.ValidationError('Escola não encontrada.')
        return escola

    def validate(self, data):
        return self.validar_endereco(data)


class FinalizarPrePassageiroSerializer(serializers.Serializer):
    valor_cobranca = serializers.DecimalField(max_digits=10, decimal_places=2, required=False)
    dia_vencimento = serializers.IntegerField(min_value=1, max_value=31, required=False)
    escola_id = serializers.IntegerField(required=False, allow_null=True)
    veiculo_id = serializers.IntegerField(required=False, allow_null=True)
    enviar_cobranca_automatica = serializers.BooleanField(required=False, default=False)
    emitir_cobranca_mes_atual = serializers.BooleanField(required=False, default=False)

    def validate_valor_cobranca(self, value):
        if value <= 0:
            raise serializers.ValidationError('Valor deve ser maior que zero.')
        return value
