"""
Consolidação de dados para dashboard, relatório mensal e resumo de gastos.
"""

import calendar
from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from django.db.models import Count, Sum, Q
from django.utils import timezone

from ..models import Cobranca, Gasto, Passageiro

ZERO = Decimal('0.00')


def _q(valor):
    return Decimal(valor or 0).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)


def _dias_no_periodo(mes, ano, hoje=None):
    """Dias corridos do mês; no mês corrente conta só até hoje."""
    hoje = hoje or timezone.localdate()
    if (ano, mes) == (hoje.year, hoje.month):
        return hoje.day
    return calendar.monthrange(ano, mes)[1]


def resumo_gastos(queryset, mes=None, ano=None):
    """Total, categoria principal, por categoria, por veículo e média diária."""
    total = queryset.aggregate(total=Sum('valor'))['total'] or ZERO
    labels = dict(Gasto.CATEGORIA_CHOICES)

    por_categoria = [
        {
            'categoria': row['categoria'],
            'label': labels.get(row['categoria'], row['categoria']),
            'total': _q(row['total']),
            'quantidade': row['quantidade'],
        }
        for row in queryset.values('categoria')
        .annotate(total=Sum('valor'), quantidade=Count('id'))
        .order_by('-total')
    ]
    por_veiculo = [
        {
            'veiculo_id': row['veiculo_id'],
            'placa': row['veiculo__placa'] or 'Sem veículo',
            'total': _q(row['total']),
        }
        for row in queryset.values('veiculo_id', 'veiculo__placa')
        .annotate(total=Sum('valor'))
        .order_by('-total')
    ]

    if mes and ano:
        dias = _dias_no_periodo(mes, ano)
    else:
        dias = queryset.values('data').distinct().count()
    media_diaria = _q(total / dias) if dias else ZERO

    return {
        'total': _q(total),
        'quantidade': queryset.count(),
        'categoria_principal': por_categoria[0] if por_categoria else None,
        'por_categoria': por_categoria,
        'por_veiculo': por_veiculo,
        'media_diaria': media_diaria,
    }


def dashboard(motorista, hoje=None):
    hoje = hoje or timezone.localdate()
    cobrancas_mes = Cobranca.objects.filter(motorista=motorista, mes=hoje.month, ano=hoje.year)

    totais = cobrancas_mes.aggregate(
        recebido=Sum('valor_pago', filter=Q(status='pago')),
        pendente=Sum('valor', filter=Q(status='pendente', data_vencimento__gte=hoje)),
        atrasado=Sum('valor', filter=Q(status='pendente', data_vencimento__lt=hoje)),
        quantidade_pagas=Count('id', filter=Q(status='pago')),
        quantidade_pendentes=Count('id', filter=Q(status='pendente')),
    )

    ultimas_atrasadas = (
        Cobranca.objects.filter(motorista=motorista, status='pendente', data_vencimento__lt=hoje)
        .select_related('passageiro')
        .order_by('data_vencimento')[:5]
    )

    return {
        'mes': hoje.month,
        'ano': hoje.year,
        'recebido': _q(totais['recebido']),
        'pendente': _q(totais['pendente']),
        'atrasado': _q(totais['atrasado']),
        'quantidade_pagas': totais['quantidade_pagas'],
        'quantidade_pendentes': totais['quantidade_pendentes'],
        'passageiros_ativos': Passageiro.objects.filter(motorista=motorista, ativo=True).count(),
        'ultimas_atrasadas': [
            {
                'id': c.id,
                'passageiro': c.passageiro.nome,
                'valor': _q(c.valor),
                'data_vencimento': c.data_vencimento,
                'dias_atraso': (hoje - c.data_vencimento).days,
            }
            for c in ultimas_atrasadas
        ],
    }


def relatorio_mensal(motorista, mes, ano, hoje=None):
    """Entradas, saídas, lucro e indicadores operacionais do mês."""
    hoje = hoje or timezone.localdate()
    cobrancas = Cobranca.objects.filter(motorista=motorista, mes=mes, ano=ano).exclude(status='cancelada')

    entradas = cobrancas.aggregate(
        previsto=Sum('valor'),
        recebido=Sum('valor_pago', filter=Q(status='pago')),
        pendente=Sum('valor', filter=Q(status='pendente')),
        atrasado=Sum('valor', filter=Q(status='pendente', data_vencimento__lt=hoje)),
        quantidade=Count('id'),
        quantidade_pagas=Count('id', filter=Q(status='pago')),
        quantidade_atrasadas=Count('id', filter=Q(status='pendente', data_vencimento__lt=hoje)),
    )
    previsto = entradas['previsto'] or ZERO
    recebido = entradas['recebido'] or ZERO
    taxa = _q(Decimal(entradas['quantidade_pagas']) * 100 / entradas['quantidade']) \
        if entradas['quantidade'] else ZERO

    formas_pagamento = [
        {'tipo_pagamento': row['tipo_pagamento'], 'total': _q(row['total']), 'quantidade': row['quantidade']}
        for row in cobrancas.filter(status='pago')
        .values('tipo_pagamento')
        .annotate(total=Sum('valor_pago'), quantidade=Count('id'))
        .order_by('-total')
    ]

    inicio = date(ano, mes, 1)
    fim = date(ano, mes, calendar.monthrange(ano, mes)[1])
    gastos = Gasto.objects.filter(motorista=motorista, data__range=(inicio, fim))
    saidas = resumo_gastos(gastos, mes, ano)

    passageiros = Passageiro.objects.filter(motorista=motorista, ativo=True)
    ativos = passageiros.count()
    ticket_medio = _q(previsto / entradas['quantidade']) if entradas['quantidade'] else ZERO
    custo_por_passageiro = _q(saidas['total'] / ativos) if ativos else ZERO
    periodos = dict(Passageiro.PERIODO_CHOICES)

    return {
        'mes': mes,
        'ano': ano,
        'entradas': {
            'previsto': _q(previsto),
            'recebido': _q(recebido),
            'pendente': _q(entradas['pendente']),
            'atrasado': _q(entradas['atrasado']),
            'quantidade_atrasadas': entradas['quantidade_atrasadas'],
            'taxa_recebimento': taxa,
            'formas_pagamento': formas_pagamento,
        },
        'saidas': saidas,
        'lucro': _q(recebido - saidas['total']),
        'operacional': {
            'passageiros_ativos': ativos,
            'custo_por_passageiro': custo_por_passageiro,
            'ticket_medio': ticket_medio,
            'por_escola': [
                {'escola': row['escola__nome'] or 'Sem escola', 'quantidade': row['quantidade']}
                for row in passageiros.values('escola__nome')
                .annotate(quantidade=Count('id')).order_by('-quantidade')
            ],
            'por_periodo': [
                {
                    'periodo': row['periodo'],
                    'label': periodos.get(row['periodo'], 'Não informado'),
                    'quantidade': row['quantidade'],
                }
                for row in passageiros.values('periodo')
                .annotate(quantidade=Count('id')).order_by('-quantidade')
            ],
        },
    }
