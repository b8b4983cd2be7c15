from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "MobiERP Administration"
admin.site.site_title = "MobiERP Admin Portal"

urlpatterns = [
    path('admin/', admin.site.urls),

    # REST API
    path('api/inventory/', include('inventory.urls')),
    path('api/sales/', include('sales.urls')),
    path('api-auth/', include('rest_framework.urls')),
]
