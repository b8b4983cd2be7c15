from django.utils.dateparse import parse_datetime, parse_date
from rest_framework import mixins, status, viewsets
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView
import datetime

from .models import Sale
from .serializers import (
    ProfitSummarySerializer,
    SaleCreateSerializer,
    SaleSerializer,
    SellerPerformanceSerializer,
)
from .services import SaleLine, SaleService, profit_summary, seller_performance


def _parse_bound(value, name, end_of_day=False):
    if not value:
        return None
    try:
        parsed = parse_datetime(value)
        day = None if parsed else parse_date(value)
    except ValueError:
        raise ValidationError({name: 'Not a valid date'})
    if parsed is None:
        if day is None:
            raise ValidationError({name: 'Expected YYYY-MM-DD or an ISO datetime'})
        parsed = datetime.datetime.combine(day, datetime.time.max if end_of_day else datetime.time.min)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.timezone.utc)
    return parsed


# ====================================
# REST API VIEWSETS
# ====================================

class SaleViewSet(mixins.CreateModelMixin,
                  mixins.RetrieveModelMixin,
                  mixins.ListModelMixin,
                  viewsets.GenericViewSet):
    """
    API endpoint for sales.

    Sales are immutable once recorded: no update, no delete.
    """
    queryset = Sale.objects.all()
    serializer_class = SaleSerializer

    def get_queryset(self):
        queryset = Sale.objects.select_related('seller').prefetch_related('items__product')

        seller_id = self.request.query_params.get('seller', None)
        if seller_id:
            queryset = queryset.filter(seller_id=seller_id)

        return queryset

    def create(self, request, *args, **kwargs):
        serializer = SaleCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        lines = [
            SaleLine(
                product_id=item['product'],
                quantity=item['quantity'],
                unit_price=item.get('unit_price'),
            )
            for item in serializer.validated_data['items']
        ]
        sale = SaleService().record_sale(
            request.user,
            lines,
            buyer_name=serializer.validated_data.get('buyer_name', ''),
        )

        sale = self.get_queryset().get(pk=sale.pk)
        return Response(SaleSerializer(sale).data, status=status.HTTP_201_CREATED)


class ProfitSummaryView(APIView):
    """Revenue / cost / gross profit over an optional date range (?start=&end=&seller=)."""

    def get(self, request):
        start = _parse_bound(request.query_params.get('start'), 'start')
        end = _parse_bound(request.query_params.get('end'), 'end', end_of_day=True)
        seller = request.query_params.get('seller')
        if seller:
            try:
                seller = int(seller)
            except ValueError:
                raise ValidationError({'seller': 'Must be an integer'})
        else:
            seller = None
        return Response(ProfitSummarySerializer(profit_summary(start, end, seller=seller)).data)


class SellerPerformanceView(APIView):
    """Sales count, revenue and profit per seller over an optional date range."""

    def get(self, request):
        start = _parse_bound(request.query_params.get('start'), 'start')
        end = _parse_bound(request.query_params.get('end'), 'end', end_of_day=True)
        rows = seller_performance(start, end)
        return Response(SellerPerformanceSerializer(rows, many=True).data)
