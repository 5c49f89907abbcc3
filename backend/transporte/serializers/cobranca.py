from rest_framework import serializers
from ..models import Cobranca, CobrancaNotificacao, Passageiro
from ..services import cobranca_rules
from ..helpers.datas import vencimento_no_mes


class CobrancaNotificacaoSerializer(serializers.ModelSerializer):
    descricao = serializers.CharField(read_only=True)

    class Meta:
        model = CobrancaNotificacao
        fields = ('id', 'tipo_evento', 'descricao', 'canal', 'sucesso', 'erro', 'data_envio')
        read_only_fields = fields


class CobrancaSerializer(serializers.ModelSerializer):
    passageiro_id = serializers.PrimaryKeyRelatedField(
        queryset=Passageiro.objects.all(), source='passageiro'
    )
    passageiro_nome = serializers.CharField(source='passageiro.nome', read_only=True)
    nome_responsavel = serializers.CharField(source='passageiro.nome_responsavel', read_only=True)
    status_efetivo = serializers.SerializerMethodField()
    status_texto = serializers.SerializerMethodField()
    permissoes = serializers.SerializerMethodField()
    tipo_pagamento_display = serializers.CharField(source='get_tipo_pagamento_display', read_only=True)

    class Meta:
        model = Cobranca
        exclude = ('motorista', 'passageiro')
        read_only_fields = (
            'data_pagamento', 'valor_pago', 'tipo_pagamento', 'pagamento_manual', 'origem',
            'asaas_payment_id', 'qr_code_payload', 'location_url', 'recibo_url',
            'data_envio_ultima_notificacao', 'criado_em', 'atualizado_em',
        )
        extra_kwargs = {'data_vencimento': {'required': False}}

    def get_status_efetivo(self, obj):
        return cobranca_rules.status_efetivo(obj)

    def get_status_texto(self, obj):
        return cobranca_rules.status_texto(obj)

    def get_permissoes(self, obj):
        return cobranca_rules.permissoes(obj)

    def validate_passageiro_id(self, passageiro):
        request = self.context.get('request')
        motorista = getattr(getattr(request, 'user', None), 'motorista', None)
        if motorista and passageiro.motorista_id != motorista.id:
            raise serializers.ValidationError('Passageiro não encontrado.')
        if self.instance and self.instance.passageiro_id != passageiro.id:
            raise serializers.ValidationError('Não é possível trocar o passageiro de uma cobrança.')
        return passageiro

    def validate_mes(self, value):
        if not 1 <= value <= 12:
            raise serializers.ValidationError('Mês deve estar entre 1 e 12.')
        return value

    def validate_valor(self, value):
        if value <= 0:
            raise serializers.ValidationError('Valor deve ser maior que zero.')
        return value

    def validate_status(self, value):
        if value == 'pago' and getattr(self.instance, 'status', None) != 'pago':
            raise serializers.ValidationError('Use registrar-pagamento para marcar como paga.')
        if self.instance and self.instance.status == 'pago' and value != 'pago':
            raise serializers.ValidationError('Use desfazer-pagamento para reabrir a cobrança.')
        return value

    def validate(self, data):
        if self.instance and cobranca_rules.permissoes(self.instance)['disable_editar']:
            raise serializers.ValidationError('Cobrança paga pelo gateway não pode ser editada.')

        passageiro = data.get('passageiro', getattr(self.instance, 'passageiro', None))
        mes = data.get('mes', getattr(self.instance, 'mes', None))
        ano = data.get('ano', getattr(self.instance, 'ano', None))

        if not data.get('data_vencimento') and not self.instance and passageiro and mes and ano:
            data['data_vencimento'] = vencimento_no_mes(ano, mes, passageiro.dia_vencimento)
        if not self.instance and not data.get('data_vencimento'):
            raise serializers.ValidationError({'data_vencimento': 'Informe a data de vencimento.'})

        if passageiro and mes and ano:
            duplicada = Cobranca.objects.filter(
                passageiro=passageiro, mes=mes, ano=ano
            ).exclude(status='cancelada')
            if self.instance:
                duplicada = duplicada.exclude(pk=self.instance.pk)
            if duplicada.exists():
                raise serializers.ValidationError('Já existe cobrança deste passageiro para o mês.')
        return data


class RegistrarPagamentoSerializer(serializers.Serializer):
    data_pagamento = serializers.DateField(required=False)
    valor_pago = serializers.DecimalField(max_digits=10, decimal_places=2, required=False)
    tipo_pagamento = serializers.ChoiceField(choices=Cobranca.TIPO_PAGAMENTO_CHOICES, required=False)

    def validate_valor_pago(self, value):
        if value <= 0:
            raise serializers.ValidationError('Valor pago deve ser maior que zero.')
        return value


class GerarMesSerializer(serializers.Serializer):
    mes = serializers.IntegerField(min_value=1, max_value=12, required=False)
    ano = serializers.IntegerField(min_value=2000, max_value=2100, required=False)
    passageiro_ids = serializers.ListField(child=serializers.IntegerField(), required=False)
