"""
Views de PDF do Van Escolar: recibo de mensalidade e relatório mensal.
"""

from django.http import HttpResponse
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from reportlab.pdfgen import canvas
from reportlab.lib.pagesizes import A4, portrait

from .helpers.datas import nome_mes
from .helpers.pdf import PDFReportBase, format_currency, format_date
from .models import Cobranca
from .permissions import HasFeature, IsSubscriptionActive
from .services import entitlements
from .services.reports import relatorio_mensal
from .views.reports.relatorios import periodo_do_request


def get_motorista_from_request(request):
    """Extrai o motorista do usuário autenticado."""
    if getattr(request.user, 'motorista', None):
        return request.user.motorista
    raise PermissionError("Usuário não possui motorista associado")


def _pdf_response(filename):
    response = HttpResponse(content_type="application/pdf")
    response["Content-Disposition"] = f"inline; filename={filename}"
    return response


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def recibo_cobranca(request, pk):
    """GET /api/cobrancas/{id}/recibo/ - recibo de mensalidade paga."""
    try:
        motorista = get_motorista_from_request(request)
    except PermissionError as e:
        return Response({"detail": str(e)}, status=403)

    try:
        cobranca = Cobranca.objects.select_related(
            'passageiro', 'passageiro__escola', 'motorista'
        ).get(pk=pk, motorista=motorista)
    except Cobranca.DoesNotExist:
        return Response({"detail": "Cobrança não encontrada."}, status=404)

    if cobranca.status != 'pago':
        return Response({"detail": "Recibo disponível apenas para cobranças pagas."}, status=400)

    response = _pdf_response(f"recibo_{cobranca.id}.pdf")
    pdf = canvas.Canvas(response, pagesize=portrait(A4))
    width, height = portrait(A4)

    report = PDFReportBase("RECIBO DE PAGAMENTO", motorista.nome)
    y = report.draw_header(
        pdf, width, height,
        subtitle=f"Transporte escolar — {nome_mes(cobranca.mes)}/{cobranca.ano}",
    )

    passageiro = cobranca.passageiro
    valor = cobranca.valor_pago if cobranca.valor_pago is not None else cobranca.valor
    y = report.draw_label_value(pdf, y, "Recebemos de", passageiro.nome_responsavel)
    y = report.draw_label_value(pdf, y, "Passageiro", passageiro.nome)
    y = report.draw_label_value(pdf, y, "Escola", passageiro.escola.nome if passageiro.escola else "")
    y = report.draw_label_value(pdf, y, "Referente a", f"Mensalidade de {nome_mes(cobranca.mes)}/{cobranca.ano}")
    y = report.draw_label_value(pdf, y, "Vencimento", format_date(cobranca.data_vencimento))
    y = report.draw_label_value(pdf, y, "Data do pagamento", format_date(cobranca.data_pagamento))
    y = report.draw_label_value(pdf, y, "Forma de pagamento", cobranca.get_tipo_pagamento_display() or "")
    y -= 10
    report.draw_total_row(pdf, y, "VALOR RECEBIDO", valor, report.margin, 200)

    y -= 80
    pdf.line(width / 2 - 120, y, width / 2 + 120, y)
    pdf.setFont("Helvetica", 9)
    pdf.drawCentredString(width / 2, y - 12, motorista.nome)
    if motorista.cpf_cnpj:
        pdf.drawCentredString(width / 2, y - 24, f"CPF/CNPJ: {motorista.cpf_cnpj}")

    report.draw_footer(pdf, width)
    pdf.showPage()
    pdf.save()
    return response


@api_view(["GET"])
@permission_classes([
    IsAuthenticated,
    IsSubscriptionActive,
    HasFeature.for_feature(entitlements.FEATURE_RELATORIOS),
])
def relatorio_mensal_pdf(request):
    """GET /api/relatorios/pdf/?mes=&ano= - versão impressa do relatório mensal."""
    try:
        motorista = get_motorista_from_request(request)
    except PermissionError as e:
        return Response({"detail": str(e)}, status=403)

    try:
        mes, ano = periodo_do_request(request)
    except ValueError:
        return Response({"detail": "Mês e/ou ano inválidos."}, status=400)

    dados = relatorio_mensal(motorista, mes, ano)
    entradas = dados['entradas']
    saidas = dados['saidas']
    operacional = dados['operacional']

    response = _pdf_response(f"relatorio_{ano}_{mes:02d}.pdf")
    pdf = canvas.Canvas(response, pagesize=portrait(A4))
    width, height = portrait(A4)
    margin = 40

    report = PDFReportBase("Relatório Mensal", motorista.nome)
    y = report.draw_header(pdf, width, height, date_range=f"{nome_mes(mes)}/{ano}")

    y = report.draw_section_title(pdf, y, "Entradas", width)
    y = report.draw_label_value(pdf, y, "Previsto", format_currency(entradas['previsto']))
    y = report.draw_label_value(pdf, y, "Recebido", format_currency(entradas['recebido']))
    y = report.draw_label_value(pdf, y, "Pendente", format_currency(entradas['pendente']))
    y = report.draw_label_value(
        pdf, y, "Em atraso",
        f"{format_currency(entradas['atrasado'])} ({entradas['quantidade_atrasadas']} mensalidades)",
    )
    y = report.draw_label_value(pdf, y, "Taxa de recebimento", f"{entradas['taxa_recebimento']}%")

    y = report.draw_section_title(pdf, y, "Operacional", width)
    y = report.draw_label_value(pdf, y, "Passageiros ativos", str(operacional['passageiros_ativos']))
    y = report.draw_label_value(pdf, y, "Ticket médio", format_currency(operacional['ticket_medio']))
    y = report.draw_label_value(pdf, y, "Custo por passageiro", format_currency(operacional['custo_por_passageiro']))

    y = report.draw_section_title(pdf, y, "Saídas por categoria", width)
    columns = [
        {"label": "Categoria", "key": "label", "x": margin, "max_length": 40},
        {"label": "Lançamentos", "key": "quantidade", "x": margin + 250},
        {"label": "Total", "key": "total", "x": width - 140},
    ]
    y = report.draw_table_header(pdf, y, columns, width)
    for row in saidas['por_categoria']:
        y = report.check_page_break(pdf, y, width, height, columns)
        y = report.draw_row(pdf, y, row, columns)

    if len(saidas['por_veiculo']) > 1:
        y = report.check_page_break(pdf, y - 10, width, height)
        y = report.draw_section_title(pdf, y, "Saídas por veículo", width)
        columns = [
            {"label": "Veículo", "key": "placa", "x": margin},
            {"label": "Total", "key": "total", "x": width - 140},
        ]
        y = report.draw_table_header(pdf, y, columns, width)
        for row in saidas['por_veiculo']:
            y = report.check_page_break(pdf, y, width, height, columns)
            y = report.draw_row(pdf, y, row, columns)

    y = report.check_page_break(pdf, y - 10, width, height)
    y = report.draw_total_row(pdf, y, "TOTAL DE GASTOS", saidas['total'], margin + 250, width - 140)
    report.draw_total_row(pdf, y, "LUCRO", dados['lucro'], margin + 250, width - 140)

    report.draw_footer(pdf, width)
    pdf.showPage()
    pdf.save()
    return response
