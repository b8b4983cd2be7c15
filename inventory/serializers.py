from rest_framework import serializers
from .models import Category, CostingPolicy, CostingPolicyChange, InventoryLot, Product


class CategorySerializer(serializers.ModelSerializer):
    """Serializer for Category model"""

    product_count = serializers.SerializerMethodField()

    class Meta:
        model = Category
        fields = ['id', 'name', 'description', 'product_count', 'created_at']
        read_only_fields = ['id', 'created_at']

    def get_product_count(self, obj):
        """Count active products in this category"""
        return obj.products.filter(is_active=True).count()


class ProductSerializer(serializers.ModelSerializer):
    """
    Product details.

    `quantity` is writable only on create (it becomes the opening lot);
    afterwards stock changes through restock and sales.
    """

    category_name = serializers.CharField(source='category.name', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    owner_username = serializers.CharField(source='owner.username', read_only=True)
    profit_margin = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    quantity = serializers.IntegerField(min_value=0, required=False)

    class Meta:
        model = Product
        fields = [
            'id',
            'product_code',
            'name',
            'category',
            'category_name',
            'quantity',
            'buying_price',
            'selling_price',
            'profit_margin',
            'status',
            'status_display',
            'owner',
            'owner_username',
            'is_active',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'status', 'owner', 'created_at', 'updated_at']

    def validate_buying_price(self, value):
        if value < 0:
            raise serializers.ValidationError('Buying price cannot be negative')
        return value

    def update(self, instance, validated_data):
        if 'quantity' in validated_data and validated_data['quantity'] != instance.quantity:
            raise serializers.ValidationError({
                'quantity': 'Stock changes go through restock or sales, not product edits'
            })
        validated_data.pop('quantity', None)
        return super().update(instance, validated_data)


class InventoryLotSerializer(serializers.ModelSerializer):
    """Read-only view of a lot"""

    product_code = serializers.CharField(source='product.product_code', read_only=True)
    received_by_username = serializers.CharField(source='received_by.username', read_only=True)
    consumed_quantity = serializers.IntegerField(read_only=True)
    remaining_value = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = InventoryLot
        fields = [
            'id',
            'product',
            'product_code',
            'quantity_received',
            'remaining_quantity',
            'consumed_quantity',
            'unit_cost',
            'remaining_value',
            'received_at',
            'received_by',
            'received_by_username',
            'note',
        ]
        read_only_fields = fields


class RestockSerializer(serializers.Serializer):
    """Input for a restock operation"""

    quantity = serializers.IntegerField(min_value=1)
    unit_cost = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    selling_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    note = serializers.CharField(max_length=255, required=False, allow_blank=True, default='Restock')


class ProductValuationSerializer(serializers.Serializer):
    product_id = serializers.IntegerField()
    product_code = serializers.CharField()
    product_name = serializers.CharField()
    category_id = serializers.IntegerField()
    category_name = serializers.CharField()
    remaining_quantity = serializers.IntegerField()
    averaged_unit_value = serializers.DecimalField(max_digits=14, decimal_places=4)
    total_value = serializers.DecimalField(max_digits=14, decimal_places=2)
    policy_used = serializers.CharField()


class CategoryValuationSerializer(serializers.Serializer):
    category_id = serializers.IntegerField()
    category_name = serializers.CharField()
    product_count = serializers.IntegerField()
    remaining_quantity = serializers.IntegerField()
    total_value = serializers.DecimalField(max_digits=14, decimal_places=2)
    policy_used = serializers.CharField()


class CostingPolicySerializer(serializers.Serializer):
    policy = serializers.ChoiceField(choices=CostingPolicy.choices)


class CostingPolicyChangeSerializer(serializers.ModelSerializer):
    changed_by_username = serializers.CharField(source='changed_by.username', read_only=True)

    class Meta:
        model = CostingPolicyChange
        fields = ['id', 'previous_policy', 'new_policy', 'changed_by', 'changed_by_username', 'changed_at']
        read_only_fields = fields
