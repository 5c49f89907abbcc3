from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from django.utils import timezone

from ...permissions import HasFeature, IsSubscriptionActive
from ...services import entitlements
from ...services.reports import relatorio_mensal


def periodo_do_request(request):
    """(mes, ano) da query string; mês corrente quando ausentes. ValueError se inválidos."""
    hoje = timezone.localdate()
    mes = int(request.query_params.get('mes', hoje.month))
    ano = int(request.query_params.get('ano', hoje.year))
    if not 1 <= mes <= 12 or not 2000 <= ano <= 2100:
        raise ValueError('Período inválido.')
    return mes, ano


@api_view(['GET'])
@permission_classes([
    IsAuthenticated,
    IsSubscriptionActive,
    HasFeature.for_feature(entitlements.FEATURE_RELATORIOS),
])
def relatorio_mensal_view(request):
    """GET /api/relatorios/?mes=&ano= - entradas, saídas, lucro e indicadores operacionais."""
    motorista = request.user.motorista
    if not motorista:
        return Response({'detail': 'Usuário não vinculado a um motorista.'}, status=404)

    try:
        mes, ano = periodo_do_request(request)
    except ValueError:
        return Response({'detail': 'Mês e/ou ano inválidos.'}, status=400)

    return Response(relatorio_mensal(motorista, mes, ano))
