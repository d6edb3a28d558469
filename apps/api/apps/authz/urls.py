"""
Authz URLs - Psychologist directory
"""
from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import PsychologistViewSet

router = DefaultRouter()
router.register(r'psychologists', PsychologistViewSet, basename='psychologist')

urlpatterns = [
    path('', include(router.urls)),
]
