from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from .models import (
    Motorista,
    Usuario,
    Escola,
    Veiculo,
    Passageiro,
    PrePassageiro,
    Cobranca,
    CobrancaNotificacao,
    Gasto,
    Plano,
    AssinaturaMotorista,
    AssinaturaCobranca,
    WebhookLog,
    ConfiguracaoMotorista,
    WhatsappInstancia,
)

# =========================
# MOTORISTA
# =========================
@admin.register(Motorista)
class MotoristaAdmin(admin.ModelAdmin):
    list_display = ('nome', 'cpf_cnpj', 'email', 'telefone', 'criado_em')
    search_fields = ('nome', 'cpf_cnpj', 'email')


# =========================
# USUÁRIO
# =========================
@admin.register(Usuario)
class UsuarioAdmin(UserAdmin):

    fieldsets = UserAdmin.fieldsets + (
        ('Motorista', {'fields': ('motorista', 'role', 'is_email_verified')}),
    )

    add_fieldsets = UserAdmin.add_fieldsets + (
        ('Motorista', {'fields': ('motorista', 'role')}),
    )

    list_display = ('username', 'email', 'motorista', 'role', 'is_email_verified', 'is_active')
    list_filter = ('role', 'is_email_verified', 'is_active')
    search_fields = ('username', 'email')


# =========================
# CADASTROS
# =========================
@admin.register(Escola)
class EscolaAdmin(admin.ModelAdmin):
    list_display = ('nome', 'motorista', 'cidade', 'ativo')
    list_filter = ('ativo', 'estado')
    search_fields = ('nome', 'motorista__nome')


@admin.register(Veiculo)
class VeiculoAdmin(admin.ModelAdmin):
    list_display = ('placa', 'motorista', 'marca', 'modelo', 'capacidade', 'ativo')
    list_filter = ('ativo',)
    search_fields = ('placa', 'motorista__nome')


@admin.register(Passageiro)
class PassageiroAdmin(admin.ModelAdmin):
    list_display = (
        'nome',
        'motorista',
        'escola',
        'nome_responsavel',
        'valor_cobranca',
        'dia_vencimento',
        'ativo',
        'enviar_cobranca_automatica'
    )
    list_filter = ('ativo', 'enviar_cobranca_automatica', 'periodo')
    search_fields = ('nome', 'nome_responsavel', 'motorista__nome')


@admin.register(PrePassageiro)
class PrePassageiroAdmin(admin.ModelAdmin):
    list_display = ('nome', 'motorista', 'nome_responsavel', 'criado_em')
    search_fields = ('nome', 'nome_responsavel')


# =========================
# COBRANÇAS
# =========================
class CobrancaNotificacaoInline(admin.TabularInline):
    model = CobrancaNotificacao
    extra = 0
    readonly_fields = ('tipo_evento', 'canal', 'sucesso', 'erro', 'data_envio')


@admin.register(Cobranca)
class CobrancaAdmin(admin.ModelAdmin):
    list_display = (
        'passageiro',
        'motorista',
        'mes',
        'ano',
        'valor',
        'status',
        'data_vencimento',
        'origem'
    )
    list_filter = ('status', 'origem', 'ano', 'mes')
    search_fields = ('passageiro__nome', 'asaas_payment_id')
    date_hierarchy = 'data_vencimento'
    inlines = [CobrancaNotificacaoInline]


# =========================
# GASTOS
# =========================
@admin.register(Gasto)
class GastoAdmin(admin.ModelAdmin):
    list_display = ('descricao', 'motorista', 'categoria', 'valor', 'data', 'veiculo')
    list_filter = ('categoria',)
    search_fields = ('descricao', 'motorista__nome')
    date_hierarchy = 'data'


# =========================
# ASSINATURA
# =========================
@admin.register(Plano)
class PlanoAdmin(admin.ModelAdmin):
    list_display = ('nome', 'slug', 'tipo', 'parent', 'preco', 'franquia_cobrancas_mes', 'ativo', 'ordem')
    list_filter = ('tipo', 'ativo')
    prepopulated_fields = {'slug': ('nome',)}


@admin.register(AssinaturaMotorista)
class AssinaturaMotoristaAdmin(admin.ModelAdmin):
    list_display = (
        'motorista',
        'plano',
        'status',
        'franquia_contratada_cobrancas',
        'valor_mensal',
        'vigencia_fim',
        'trial_end_at'
    )
    list_filter = ('status', 'plano')
    search_fields = ('motorista__nome', 'asaas_customer_id')


@admin.register(AssinaturaCobranca)
class AssinaturaCobrancaAdmin(admin.ModelAdmin):
    list_display = ('id', 'assinatura', 'billing_type', 'valor', 'status', 'data_vencimento', 'data_pagamento')
    list_filter = ('status', 'billing_type')
    search_fields = ('assinatura__motorista__nome', 'asaas_payment_id')


@admin.register(WebhookLog)
class WebhookLogAdmin(admin.ModelAdmin):
    list_display = ('event_type', 'asaas_payment_id', 'processed', 'recebido_em')
    list_filter = ('event_type', 'processed')
    search_fields = ('asaas_payment_id', 'event_id')
    readonly_fields = ('payload', 'recebido_em')


# =========================
# NOTIFICAÇÕES
# =========================
@admin.register(ConfiguracaoMotorista)
class ConfiguracaoMotoristaAdmin(admin.ModelAdmin):
    list_display = ('motorista', 'horario_envio', 'dias_antes_vencimento', 'dias_apos_vencimento')


@admin.register(WhatsappInstancia)
class WhatsappInstanciaAdmin(admin.ModelAdmin):
    list_display = ('motorista', 'instance_name', 'status', 'telefone', 'atualizado_em')
    list_filter = ('status',)
