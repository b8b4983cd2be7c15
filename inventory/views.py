from django.db.models import ProtectedError, Q
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView, exception_handler
import logging

from .exceptions import (
    CostingConfigurationError,
    CostingError,
    CostingIntegrityError,
    CostingValidationError,
    ProductNotFound,
)
from .models import Category, CostingPolicyChange, InventoryLot, Product
from .serializers import (
    CategorySerializer,
    CategoryValuationSerializer,
    CostingPolicyChangeSerializer,
    CostingPolicySerializer,
    InventoryLotSerializer,
    ProductSerializer,
    ProductValuationSerializer,
    RestockSerializer,
)
from .services import DatabasePolicySwitch, StockService, ValuationCalculator


logger = logging.getLogger(__name__)


# ====================================
# ERROR TRANSLATION
# ====================================

def costing_exception_handler(exc, context):
    """Turn typed costing failures into HTTP responses; defer the rest to DRF."""
    if isinstance(exc, ProtectedError):
        return Response(
            {'error': 'protected', 'detail': 'Still referenced by other records; deactivate or move them first'},
            status=status.HTTP_409_CONFLICT,
        )

    if not isinstance(exc, CostingError):
        return exception_handler(exc, context)

    if isinstance(exc, ProductNotFound):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, CostingValidationError):
        status_code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, CostingIntegrityError):
        status_code = status.HTTP_409_CONFLICT
        logger.error(f"Integrity failure: {exc}")
    elif isinstance(exc, CostingConfigurationError):
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        logger.critical(f"Configuration failure: {exc}")
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    return Response({'error': exc.code, 'detail': str(exc)}, status=status_code)


def _optional_int(request, name):
    value = request.query_params.get(name)
    if value in (None, ''):
        return None
    try:
        return int(value)
    except ValueError:
        raise ValidationError({name: 'Must be an integer'})


# ====================================
# REST API VIEWSETS
# ====================================

class CategoryViewSet(viewsets.ModelViewSet):
    """API endpoint for categories"""
    queryset = Category.objects.all()
    serializer_class = CategorySerializer


class ProductViewSet(mixins.CreateModelMixin,
                     mixins.RetrieveModelMixin,
                     mixins.UpdateModelMixin,
                     mixins.ListModelMixin,
                     viewsets.GenericViewSet):
    """
    API endpoint for products.

    No delete: products with lot history are kept for audit; deactivate
    them with is_active instead.
    """
    queryset = Product.objects.all()
    serializer_class = ProductSerializer

    def get_queryset(self):
        """Filter products based on query parameters"""
        queryset = Product.objects.select_related('category', 'owner').all()

        # Filter by category
        category_id = self.request.query_params.get('category', None)
        if category_id:
            queryset = queryset.filter(category_id=category_id)

        # Filter by status
        status_filter = self.request.query_params.get('status', None)
        if status_filter:
            queryset = queryset.filter(status=status_filter)

        # Search by name or code
        search = self.request.query_params.get('search', None)
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search) |
                Q(product_code__icontains=search)
            )

        return queryset

    def perform_create(self, serializer):
        data = serializer.validated_data
        serializer.instance = StockService().create_product(
            product_code=data['product_code'],
            name=data['name'],
            category=data['category'],
            quantity=data.get('quantity', 0),
            buying_price=data.get('buying_price', 0),
            selling_price=data.get('selling_price', 0),
            owner=self.request.user,
        )

    @action(detail=True, methods=['post'])
    def restock(self, request, pk=None):
        """Add stock at a given unit cost (records a new lot)."""
        product = self.get_object()
        serializer = RestockSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        lot = StockService().receive_stock(
            product.pk,
            serializer.validated_data['quantity'],
            unit_cost=serializer.validated_data.get('unit_cost'),
            selling_price=serializer.validated_data.get('selling_price'),
            actor=request.user,
            note=serializer.validated_data.get('note') or 'Restock',
        )
        product.refresh_from_db()

        return Response({
            'success': True,
            'message': f'Successfully added {lot.quantity_received} units to {product.name}',
            'product': ProductSerializer(product).data,
            'lot': InventoryLotSerializer(lot).data,
        }, status=status.HTTP_201_CREATED)


class InventoryLotViewSet(viewsets.ReadOnlyModelViewSet):
    """API endpoint for lots (read-only; lots change only through sales)"""
    queryset = InventoryLot.objects.all()
    serializer_class = InventoryLotSerializer

    def get_queryset(self):
        queryset = InventoryLot.objects.select_related('product', 'received_by').all()

        product_id = self.request.query_params.get('product', None)
        if product_id:
            queryset = queryset.filter(product_id=product_id)

        if self.request.query_params.get('open') in ('1', 'true', 'yes'):
            queryset = queryset.filter(remaining_quantity__gt=0)

        return queryset.order_by('product_id', 'received_at', 'id')


# ====================================
# VALUATION & COSTING POLICY
# ====================================

class ValuationView(APIView):
    """
    Current value of remaining stock under the active costing policy.

    Query params: product, category, group_by=category
    """

    def get(self, request):
        product_id = _optional_int(request, 'product')
        category_id = _optional_int(request, 'category')
        calculator = ValuationCalculator()

        if request.query_params.get('group_by') == 'category':
            rows = calculator.by_category(category_id=category_id)
            results = CategoryValuationSerializer(rows, many=True).data
        else:
            rows = calculator.valuation(product_id=product_id, category_id=category_id)
            results = ProductValuationSerializer(rows, many=True).data

        total = sum((row.total_value for row in rows), 0)
        return Response({
            'policy': rows[0].policy_used.value if rows else calculator.policy_switch.get_policy().value,
            'total_value': f"{total:.2f}",
            'results': results,
        })


class CostingPolicyView(APIView):
    """Read or switch the active costing policy."""

    def get(self, request):
        switch = DatabasePolicySwitch()
        history = CostingPolicyChange.objects.select_related('changed_by')[:20]
        return Response({
            'policy': switch.get_policy().value,
            'history': CostingPolicyChangeSerializer(history, many=True).data,
        })

    def put(self, request):
        serializer = CostingPolicySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        switch = DatabasePolicySwitch()
        switch.set_policy(serializer.validated_data['policy'], actor=request.user)
        return Response({'policy': switch.get_policy().value})
