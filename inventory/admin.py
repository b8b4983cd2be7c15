from django.contrib import admin, messages
from django.utils.html import format_html
from django.urls import reverse
from django.http import HttpResponse
import csv

from .models import Category, CostingPolicyChange, CostingSetting, InventoryLot, Product
from .services import DatabasePolicySwitch, StockService, ValuationCalculator

# ============================================
# CUSTOM ACTIONS
# ============================================

def export_to_csv(modeladmin, request, queryset):
    """Export selected items to CSV"""
    opts = modeladmin.model._meta
    response = HttpResponse(content_type='text/csv')
    response['Content-Disposition'] = f'attachment; filename={opts.verbose_name_plural}.csv'

    writer = csv.writer(response)
    fields = [field for field in opts.get_fields() if not field.many_to_many and not field.one_to_many]

    # Write headers
    writer.writerow([field.verbose_name for field in fields])

    # Write data
    for obj in queryset:
        writer.writerow([getattr(obj, field.name) for field in fields])

    return response
export_to_csv.short_description = "Export to CSV"


def check_ledger_consistency(modeladmin, request, queryset):
    """Compare each selected product's stock with its lot ledger"""
    service = StockService()
    drifted = []
    for product in queryset:
        drifted.extend(service.check_consistency(product_id=product.pk))

    if drifted:
        for drift in drifted:
            modeladmin.message_user(
                request,
                f"{drift.product_code}: stock {drift.product_quantity}, ledger {drift.ledger_quantity}",
                level=messages.ERROR,
            )
    else:
        modeladmin.message_user(request, "Stock and ledger agree for all selected products")
check_ledger_consistency.short_description = "Check stock against lot ledger"


# ============================================
# INLINE ADMINS
# ============================================

class InventoryLotInline(admin.TabularInline):
    model = InventoryLot
    extra = 0
    can_delete = False
    fields = [
        'received_at',
        'quantity_received',
        'remaining_quantity',
        'unit_cost',
        'received_by',
        'note',
    ]
    readonly_fields = fields
    ordering = ['received_at', 'id']

    def has_add_permission(self, request, obj=None):
        return False


# ============================================
# CATEGORY ADMIN
# ============================================

@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'product_count', 'inventory_value']
    search_fields = ['name']
    actions = [export_to_csv]

    def product_count(self, obj):
        count = obj.products.filter(is_active=True).count()
        url = reverse('admin:inventory_product_changelist') + f'?category__id__exact={obj.id}'
        return format_html('<a href="{}">{} products</a>', url, count)
    product_count.short_description = 'Products'

    def inventory_value(self, obj):
        total = ValuationCalculator().total(category_id=obj.pk)
        formatted_value = '{:,.2f}'.format(total)
        return format_html('<strong>{}</strong>', formatted_value)
    inventory_value.short_description = 'Inventory Value'


# ============================================
# PRODUCT ADMIN
# ============================================

@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = [
        'product_code',
        'name',
        'category',
        'quantity',
        'buying_price',
        'selling_price',
        'status_badge',
        'is_active',
    ]
    list_filter = ['status', 'is_active', 'category']
    search_fields = ['product_code', 'name']
    readonly_fields = ['quantity', 'status', 'created_at', 'updated_at']
    inlines = [InventoryLotInline]
    actions = [export_to_csv, check_ledger_consistency]

    def has_add_permission(self, request):
        # Opening stock must go through StockService so it gets a lot
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def status_badge(self, obj):
        colors = {
            'available': '#28a745',
            'lowstock': '#ffc107',
            'outofstock': '#dc3545',
        }
        return format_html(
            '<span style="background-color: {}; color: white; padding: 3px 10px; border-radius: 3px;">{}</span>',
            colors.get(obj.status, '#6c757d'),
            obj.get_status_display()
        )
    status_badge.short_description = 'Status'


# ============================================
# INVENTORY LOT ADMIN (read-only)
# ============================================

@admin.register(InventoryLot)
class InventoryLotAdmin(admin.ModelAdmin):
    list_display = [
        'id',
        'product',
        'received_at',
        'quantity_received',
        'remaining_quantity',
        'unit_cost',
        'received_by',
    ]
    list_filter = ['received_at']
    search_fields = ['product__product_code', 'product__name', 'note']
    date_hierarchy = 'received_at'
    actions = [export_to_csv]

    def get_readonly_fields(self, request, obj=None):
        return [field.name for field in self.model._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# ============================================
# COSTING POLICY ADMIN
# ============================================

@admin.register(CostingSetting)
class CostingSettingAdmin(admin.ModelAdmin):
    list_display = ['policy', 'updated_by', 'updated_at']
    readonly_fields = ['updated_by', 'updated_at']

    def has_add_permission(self, request):
        return not CostingSetting.objects.exists()

    def has_delete_permission(self, request, obj=None):
        return False

    def save_model(self, request, obj, form, change):
        # Route through the switch so the change is audited
        DatabasePolicySwitch().set_policy(obj.policy, actor=request.user)
        obj.pk = CostingSetting.SINGLETON_PK
        obj.refresh_from_db()


@admin.register(CostingPolicyChange)
class CostingPolicyChangeAdmin(admin.ModelAdmin):
    list_display = ['changed_at', 'previous_policy', 'new_policy', 'changed_by']
    readonly_fields = ['changed_at', 'previous_policy', 'new_policy', 'changed_by']

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
