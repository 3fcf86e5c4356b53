# students/urls.py
from django.urls import include, path
from rest_framework.routers import SimpleRouter

from . import views

router = SimpleRouter()
router.register(r'', views.StudentViewSet, basename='student')

app_name = 'students'
urlpatterns = [
    path('', include(router.urls)),
]
