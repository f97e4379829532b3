"""
Article API URLs.
"""

from django.urls import path, include
from config.routers import SafeDefaultRouter
from .views import DiscussionViewSet, PostViewSet, TagViewSet

app_name = 'articles'

router = SafeDefaultRouter()
router.register(r'posts', PostViewSet, basename='post')
router.register(r'discussions', DiscussionViewSet, basename='discussion')
router.register(r'tags', TagViewSet, basename='tag')

urlpatterns = [
    path('', include(router.urls)),
]
