from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

# REST API Router
router = DefaultRouter()
router.register(r'categories', views.CategoryViewSet, basename='category-api')
router.register(r'products', views.ProductViewSet, basename='product-api')
router.register(r'lots', views.InventoryLotViewSet, basename='lot-api')

app_name = 'inventory'

urlpatterns = [
    path('', include(router.urls)),

    # ============================================
    # COSTING
    # ============================================
    path('valuation/', views.ValuationView.as_view(), name='valuation'),
    path('costing-policy/', views.CostingPolicyView.as_view(), name='costing-policy'),
]
