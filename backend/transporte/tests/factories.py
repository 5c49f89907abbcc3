from itertools import count
from datetime import date, timedelta
from decimal import Decimal

from django.utils import timezone

from transporte.models import (
    Motorista,
    Usuario,
    Escola,
    Veiculo,
    Passageiro,
    PrePassageiro,
    Cobranca,
    Gasto,
    Plano,
    AssinaturaCobranca,
    WhatsappInstancia,
)

_seq = count(1)


def _n(prefix: str) -> str:
    return f"{prefix}-{next(_seq)}"


def make_motorista(nome=None):
    return Motorista.objects.create(
        nome=nome or _n("Motorista"),
        cpf_cnpj=f"{next(_seq):011d}",
        email=f"{_n('motorista')}@test.com",
        telefone="11987654321",
    )


def make_usuario(motorista, username=None, password="Senha@1234"):
    return Usuario.objects.create_user(
        username=username or _n("user"),
        email=f"{_n('mail')}@test.com",
        password=password,
        motorista=motorista,
    )


def set_plano(motorista, slug, status="ativa", franquia=None, valor_mensal=None,
              trial_end_at=None, vigencia_fim=None):
    """Coloca o motorista num plano do seed (gratuito, essencial, profissional ou faixas)."""
    plano = Plano.objects.get(slug=slug)
    assinatura = motorista.assinatura
    assinatura.plano = plano
    assinatura.status = status
    assinatura.ativo = True
    if franquia is None:
        franquia = plano.franquia_cobrancas_mes
    assinatura.franquia_contratada_cobrancas = franquia
    assinatura.valor_mensal = Decimal(str(valor_mensal)) if valor_mensal is not None else plano.preco
    assinatura.trial_end_at = trial_end_at
    assinatura.vigencia_fim = vigencia_fim
    assinatura.save()
    return assinatura


def make_escola(motorista, nome=None, ativo=True):
    return Escola.objects.create(motorista=motorista, nome=nome or _n("Escola"), ativo=ativo)


def make_veiculo(motorista, placa=None, modelo="Sprinter"):
    if placa is None:
        placa = f"ABC{next(_seq) % 10000:04d}"
    return Veiculo.objects.create(motorista=motorista, placa=placa, marca="Mercedes", modelo=modelo, capacidade=15)


def make_passageiro(motorista, nome=None, valor="300.00", dia_vencimento=10, escola=None,
                    ativo=True, automatica=False, telefone="11912345678"):
    return Passageiro.objects.create(
        motorista=motorista,
        nome=nome or _n("Passageiro"),
        nome_responsavel=_n("Responsavel"),
        telefone_responsavel=telefone,
        escola=escola,
        valor_cobranca=Decimal(str(valor)),
        dia_vencimento=dia_vencimento,
        ativo=ativo,
        enviar_cobranca_automatica=automatica,
    )


def make_pre_passageiro(motorista, nome=None, valor=None):
    return PrePassageiro.objects.create(
        motorista=motorista,
        nome=nome or _n("Pre"),
        nome_responsavel=_n("Responsavel"),
        telefone_responsavel="11912345678",
        valor_cobranca=Decimal(str(valor)) if valor is not None else None,
    )


def make_cobranca(passageiro, mes=None, ano=None, valor=None, vencimento=None, status="pendente", **extra):
    hoje = timezone.localdate()
    mes = mes or hoje.month
    ano = ano or hoje.year
    return Cobranca.objects.create(
        motorista=passageiro.motorista,
        passageiro=passageiro,
        mes=mes,
        ano=ano,
        valor=Decimal(str(valor)) if valor is not None else passageiro.valor_cobranca,
        data_vencimento=vencimento or (hoje + timedelta(days=5)),
        status=status,
        **extra,
    )


def make_gasto(motorista, valor="100.00", categoria="combustivel", data=None, veiculo=None):
    return Gasto.objects.create(
        motorista=motorista,
        veiculo=veiculo,
        valor=Decimal(str(valor)),
        categoria=categoria,
        data=data or date.today(),
        descricao=_n("Gasto"),
    )


def make_assinatura_cobranca(assinatura, valor="99.90", billing_type="activation", plano=None,
                             franquia=None, status="pendente_pagamento", **extra):
    return AssinaturaCobranca.objects.create(
        assinatura=assinatura,
        plano=plano,
        franquia=franquia,
        valor=Decimal(str(valor)),
        billing_type=billing_type,
        status=status,
        data_vencimento=timezone.localdate() + timedelta(days=3),
        **extra,
    )


def make_whatsapp(motorista, status="CONNECTED"):
    return WhatsappInstancia.objects.create(
        motorista=motorista,
        instance_name=f"vanescolar-motorista-{motorista.id}",
        status=status,
    )
