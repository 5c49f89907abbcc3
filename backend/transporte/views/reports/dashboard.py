from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ...permissions import IsSubscriptionActive
from ...services import billing
from ...services.reports import dashboard


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsSubscriptionActive])
def dashboard_view(request):
    """
    Dados consolidados do mês corrente para o motorista autenticado,
    junto com o resumo do plano (features e limites).
    """
    motorista = request.user.motorista
    if not motorista:
        return Response({'detail': 'Usuário não vinculado a um motorista.'}, status=404)

    data = dashboard(motorista)
    data['plano'] = billing.resumo_acoes(motorista)
    return Response(data)
