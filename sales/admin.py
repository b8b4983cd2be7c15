from django.contrib import admin
from django.utils.html import format_html

from .models import Sale, SaleItem


# ============================================
# INLINE ADMIN FOR SALE ITEMS
# ============================================

class SaleItemInline(admin.TabularInline):
    model = SaleItem
    extra = 0
    can_delete = False

    fields = [
        'product',
        'quantity',
        'unit_price',
        'total_price',
        'cost_price',
        'cost_total',
        'costing_policy',
    ]
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


# ============================================
# SALE ADMIN (read-only; sales go through SaleService)
# ============================================

@admin.register(Sale)
class SaleAdmin(admin.ModelAdmin):
    inlines = [SaleItemInline]

    list_display = [
        'sale_id',
        'seller_name',
        'item_count_display',
        'total_amount',
        'total_cost',
        'profit_display',
        'buyer_name',
        'sale_date',
    ]
    list_filter = ['sale_date', 'seller']
    search_fields = ['sale_id', 'buyer_name', 'seller__username', 'items__product__product_code']
    date_hierarchy = 'sale_date'

    def get_readonly_fields(self, request, obj=None):
        return [field.name for field in self.model._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def seller_name(self, obj):
        return obj.seller.username if obj.seller else 'System'
    seller_name.short_description = 'Seller'

    def item_count_display(self, obj):
        return obj.items.count()
    item_count_display.short_description = 'Items'

    def profit_display(self, obj):
        profit = obj.gross_profit
        color = '#28a745' if profit >= 0 else '#dc3545'
        return format_html('<span style="color: {};">{}</span>', color, '{:,.2f}'.format(profit))
    profit_display.short_description = 'Gross Profit'
