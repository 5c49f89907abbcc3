from rest_framework import viewsets, permissions
from rest_framework.decorators import action
from rest_framework.response import Response
from django.db.models import Q

from .mixins import MotoristaScopedViewSetMixin, parse_int
from ..models import Gasto
from ..pagination import DynamicPageSizePagination
from ..permissions import HasFeature, IsSubscriptionActive
from ..serializers import GastoSerializer
from ..services import entitlements
from ..services.reports import resumo_gastos


class GastoViewSet(MotoristaScopedViewSetMixin, viewsets.ModelViewSet):
    queryset = Gasto.objects.all()
    serializer_class = GastoSerializer
    pagination_class = DynamicPageSizePagination
    permission_classes = [
        permissions.IsAuthenticated,
        IsSubscriptionActive,
        HasFeature.for_feature(entitlements.FEATURE_GASTOS),
    ]

    ORDERING_FIELDS = {'data', '-data', 'valor', '-valor', 'categoria', '-categoria'}

    def _filtrar(self, queryset):
        params = self.request.query_params

        search = params.get('search')
        if search:
            queryset = queryset.filter(
                Q(descricao__icontains=search) | Q(veiculo__placa__icontains=search)
            )

        mes = parse_int(params.get('mes'))
        ano = parse_int(params.get('ano'))
        if mes:
            queryset = queryset.filter(data__month=mes)
        if ano:
            queryset = queryset.filter(data__year=ano)

        categorias = params.getlist('categoria')
        if categorias:
            queryset = queryset.filter(categoria__in=categorias)

        veiculo_id = params.get('veiculo_id')
        if veiculo_id:
            queryset = queryset.filter(veiculo_id=veiculo_id)

        start_date = params.get('start_date')
        end_date = params.get('end_date')
        if start_date:
            queryset = queryset.filter(data__gte=start_date)
        if end_date:
            queryset = queryset.filter(data__lte=end_date)
        return queryset

    def get_queryset(self):
        queryset = super().get_queryset().select_related('veiculo')
        if self.action not in ('list', 'resumo'):
            return queryset

        queryset = self._filtrar(queryset)
        ordering = self.request.query_params.get('ordering')
        if ordering in self.ORDERING_FIELDS:
            queryset = queryset.order_by(ordering, 'id')
        return queryset

    @action(detail=False, methods=['get'])
    def resumo(self, request):
        """GET /api/gastos/resumo/?mes=&ano= - total, categoria principal, por categoria e veículo."""
        params = request.query_params
        return Response(resumo_gastos(
            self.get_queryset(), parse_int(params.get('mes')), parse_int(params.get('ano'))
        ))
