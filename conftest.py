"""
Shared pytest fixtures.
"""

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from apps.articles.models import Tag


User = get_user_model()


@pytest.fixture
def user(db):
    """Create a test user."""
    return User.objects.create_user(
        username='author',
        email='author@example.com',
        password='authorpass123'
    )


@pytest.fixture
def api_client():
    """Create an API client."""
    return APIClient()


@pytest.fixture
def auth_client(api_client, user):
    """API client authenticated as ``user``."""
    api_client.force_authenticate(user=user)
    return api_client


@pytest.fixture
def tags(db):
    """Create a small tag catalog with ids in creation order."""
    return [
        Tag.objects.create(name=name, slug=name.lower())
        for name in ('Python', 'Django', 'Databases')
    ]
