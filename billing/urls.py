# billing/urls.py
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from . import views

router = DefaultRouter()
router.register(r'receipts', views.ReceiptViewSet, basename='receipt')

app_name = 'billing'
urlpatterns = [
    path('', include(router.urls)),
]
