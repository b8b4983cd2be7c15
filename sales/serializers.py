from rest_framework import serializers
from .models import Sale, SaleItem


class SaleItemSerializer(serializers.ModelSerializer):
    product_code = serializers.CharField(source='product.product_code', read_only=True)
    product_name = serializers.CharField(source='product.name', read_only=True)
    profit = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = SaleItem
        fields = [
            'id',
            'product',
            'product_code',
            'product_name',
            'quantity',
            'unit_price',
            'total_price',
            'cost_price',
            'cost_total',
            'costing_policy',
            'profit',
        ]
        read_only_fields = fields


class SaleSerializer(serializers.ModelSerializer):
    seller_username = serializers.CharField(source='seller.username', read_only=True)
    gross_profit = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    items = SaleItemSerializer(many=True, read_only=True)

    class Meta:
        model = Sale
        fields = [
            'id',
            'sale_id',
            'sale_date',
            'seller',
            'seller_username',
            'buyer_name',
            'total_amount',
            'total_cost',
            'gross_profit',
            'items',
        ]
        read_only_fields = fields


class SaleLineInputSerializer(serializers.Serializer):
    product = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)


class SaleCreateSerializer(serializers.Serializer):
    """Input for recording a sale"""

    buyer_name = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
    items = SaleLineInputSerializer(many=True)

    def validate_items(self, value):
        """Validate items list is not empty"""
        if not value:
            raise serializers.ValidationError("At least one item is required")
        return value


class ProfitSummarySerializer(serializers.Serializer):
    total_revenue = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_cost = serializers.DecimalField(max_digits=14, decimal_places=2)
    gross_profit = serializers.DecimalField(max_digits=14, decimal_places=2)
    profit_margin = serializers.DecimalField(max_digits=7, decimal_places=2)
    units_sold = serializers.IntegerField()


class SellerPerformanceSerializer(serializers.Serializer):
    seller_id = serializers.IntegerField(allow_null=True)
    seller_username = serializers.CharField()
    total_sales = serializers.IntegerField()
    total_revenue = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_cost = serializers.DecimalField(max_digits=14, decimal_places=2)
    gross_profit = serializers.DecimalField(max_digits=14, decimal_places=2)
    average_sale_value = serializers.DecimalField(max_digits=14, decimal_places=2)
