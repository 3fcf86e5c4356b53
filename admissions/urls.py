# admissions/urls.py
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from . import views

router = DefaultRouter()
router.register(r'applications', views.ApplicationViewSet, basename='application')
router.register(r'enrollment', views.EnrollmentViewSet, basename='enrollment')

app_name = 'admissions'
urlpatterns = [
    path('', include(router.urls)),
    path('pending-actions/', views.PendingActionsView.as_view(), name='pending_actions'),
]
