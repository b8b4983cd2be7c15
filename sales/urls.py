from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

router = DefaultRouter()
router.register(r'sales', views.SaleViewSet, basename='sale-api')

app_name = 'sales'

urlpatterns = [
    path('', include(router.urls)),
    path('profit/', views.ProfitSummaryView.as_view(), name='profit-summary'),
    path('profit/by-seller/', views.SellerPerformanceView.as_view(), name='seller-performance'),
]
