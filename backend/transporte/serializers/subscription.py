from rest_framework import serializers
from ..models import Plano, AssinaturaMotorista, AssinaturaCobranca


class SubPlanoSerializer(serializers.ModelSerializer):
    preco_aplicado = serializers.DecimalField(max_digits=8, decimal_places=2, read_only=True)

    class Meta:
        model = Plano
        fields = (
            'id', 'nome', 'slug', 'franquia_cobrancas_mes',
            'preco', 'preco_promocional', 'promocao_ativa', 'preco_aplicado',
        )


class PlanoSerializer(serializers.ModelSerializer):
    preco_aplicado = serializers.DecimalField(max_digits=8, decimal_places=2, read_only=True)
    sub_planos = serializers.SerializerMethodField()

    class Meta:
        model = Plano
        fields = (
            'id', 'nome', 'slug', 'tipo', 'descricao_curta',
            'preco', 'preco_promocional', 'promocao_ativa', 'preco_aplicado',
            'beneficios', 'limite_passageiros', 'franquia_cobrancas_mes',
            'permite_cobrancas', 'trial_days', 'ordem', 'sub_planos',
        )

    def get_sub_planos(self, obj):
        subs = [p for p in obj.sub_planos.all() if p.ativo]
        return SubPlanoSerializer(subs, many=True).data


class AssinaturaMotoristaSerializer(serializers.ModelSerializer):
    plano = SubPlanoSerializer(read_only=True)
    plano_base = serializers.CharField(source='plano.slug_base', read_only=True, default=None)
    pending_plano = SubPlanoSerializer(read_only=True)
    trial_ativo = serializers.BooleanField(read_only=True)
    dias_trial_restantes = serializers.IntegerField(read_only=True)
    acesso_permitido = serializers.BooleanField(read_only=True)

    class Meta:
        model = AssinaturaMotorista
        fields = (
            'id', 'plano', 'plano_base', 'status', 'ativo',
            'franquia_contratada_cobrancas', 'valor_mensal',
            'trial_end_at', 'trial_ativo', 'dias_trial_restantes', 'acesso_permitido',
            'vigencia_fim', 'pending_plano', 'pending_franquia', 'pending_valor_mensal',
            'criado_em', 'atualizado_em',
        )
        read_only_fields = fields


class AssinaturaCobrancaSerializer(serializers.ModelSerializer):
    plano_nome = serializers.CharField(source='plano.nome', read_only=True, default=None)
    billing_type_display = serializers.CharField(source='get_billing_type_display', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = AssinaturaCobranca
        fields = (
            'id', 'plano', 'plano_nome', 'franquia', 'valor', 'status', 'status_display',
            'billing_type', 'billing_type_display', 'data_vencimento', 'data_pagamento',
            'qr_code_payload', 'invoice_url', 'criado_em',
        )
        read_only_fields = fields
