"""
URL configuration for the carebase project.

Routes the Django admin, the API routes provided by the clinical app and
the OpenAPI documentation exposed at ``/swagger/`` and ``/redoc/``.
"""
from django.contrib import admin
from django.urls import path, include

from rest_framework import permissions
from drf_yasg.views import get_schema_view
from drf_yasg import openapi

api_info = openapi.Info(
    title="Carebase API",
    default_version='v1',
    description="Clinical workspace backend: patients, tasks, handoffs, calculators and notifications.",
)

schema_view = get_schema_view(
    api_info,
    public=True,
    permission_classes=(permissions.AllowAny,),
)

urlpatterns = [
    path('admin/', admin.site.urls),
    path('', include('clinical.routers')),
    path('swagger/', schema_view.with_ui('swagger', cache_timeout=0), name='schema-swagger-ui'),
    path('redoc/', schema_view.with_ui('redoc', cache_timeout=0), name='schema-redoc'),
]
