from rest_framework import serializers
from ..models import Motorista, Usuario, ConfiguracaoMotorista, WhatsappInstancia
from ..services.reminders import PLACEHOLDERS, placeholders_desconhecidos
from ..services.validators import is_valid_cpf_cnpj, is_valid_telefone, normalize_digits, validar_chave_pix


class MotoristaSerializer(serializers.ModelSerializer):
    tipo_chave_pix_display = serializers.CharField(source='get_tipo_chave_pix_display', read_only=True)

    class Meta:
        model = Motorista
        fields = (
            'id', 'nome', 'cpf_cnpj', 'email', 'telefone',
            'chave_pix', 'tipo_chave_pix', 'tipo_chave_pix_display',
            'criado_em', 'atualizado_em',
        )
        read_only_fields = ('id', 'criado_em', 'atualizado_em')

    def validate_cpf_cnpj(self, value):
        if value and not is_valid_cpf_cnpj(value):
            raise serializers.ValidationError('CPF/CNPJ inválido.')
        return normalize_digits(value) if value else value

    def validate_telefone(self, value):
        if value and not is_valid_telefone(value):
            raise serializers.ValidationError('Telefone deve ter 11 dígitos com DDD.')
        return normalize_digits(value) if value else value

    def validate(self, data):
        tipo = data.get('tipo_chave_pix', getattr(self.instance, 'tipo_chave_pix', None))
        chave = data.get('chave_pix', getattr(self.instance, 'chave_pix', None))
        if 'chave_pix' in data or 'tipo_chave_pix' in data:
            if chave and not tipo:
                raise serializers.ValidationError({'tipo_chave_pix': 'Informe o tipo da chave PIX.'})
            if chave:
                try:
                    data['chave_pix'] = validar_chave_pix(tipo, chave)
                except ValueError as e:
                    raise serializers.ValidationError({'chave_pix': str(e)})
        return data


class UsuarioSerializer(serializers.ModelSerializer):
    motorista = MotoristaSerializer(read_only=True)

    class Meta:
        model = Usuario
        fields = ('id', 'username', 'email', 'first_name', 'last_name', 'role', 'is_email_verified', 'motorista')
        read_only_fields = fields


class ConfiguracaoMotoristaSerializer(serializers.ModelSerializer):
    class Meta:
        model = ConfiguracaoMotorista
        fields = (
            'id', 'horario_envio',
            'mensagem_lembrete_antecipada', 'mensagem_lembrete_dia', 'mensagem_lembrete_atraso',
            'dias_antes_vencimento', 'dias_apos_vencimento', 'atualizado_em',
        )
        read_only_fields = ('id', 'atualizado_em')

    def _validar_template(self, value):
        desconhecidos = placeholders_desconhecidos(value)
        if desconhecidos:
            nomes = ', '.join('{' + nome + '}' for nome in desconhecidos)
            permitidos = ', '.join('{' + nome + '}' for nome in PLACEHOLDERS)
            raise serializers.ValidationError(f'Campos desconhecidos: {nomes}. Use {permitidos}.')
        return value

    def validate_mensagem_lembrete_antecipada(self, value):
        return self._validar_template(value)

    def validate_mensagem_lembrete_dia(self, value):
        return self._validar_template(value)

    def validate_mensagem_lembrete_atraso(self, value):
        return self._validar_template(value)

    def validate_dias_antes_vencimento(self, value):
        if value > 30:
            raise serializers.ValidationError('Máximo de 30 dias.')
        return value

    def validate_dias_apos_vencimento(self, value):
        if not 1 <= value <= 30:
            raise serializers.ValidationError('Informe entre 1 e 30 dias.')
        return value


class WhatsappInstanciaSerializer(serializers.ModelSerializer):
    conectado = serializers.BooleanField(read_only=True)

    class Meta:
        model = WhatsappInstancia
        fields = ('instance_name', 'status', 'telefone', 'conectado', 'atualizado_em')
        read_only_fields = fields
