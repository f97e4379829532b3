"""
Article API output serializers.

Workflow results are plain dicts; these serializers render them as JSON.
Input validation lives in ``apps.articles.validation``.
"""

from rest_framework import serializers
from .models import Tag


class TagSerializer(serializers.ModelSerializer):

    class Meta:
        model = Tag
        fields = ['id', 'name', 'slug']


class ArticleSummarySerializer(serializers.Serializer):
    """Fields shared by every article kind."""

    article_id = serializers.CharField(read_only=True)
    article_uuid = serializers.SerializerMethodField()
    type = serializers.CharField(read_only=True)
    owner_id = serializers.ReadOnlyField()
    title = serializers.CharField(read_only=True)
    slug = serializers.CharField(read_only=True)
    lead = serializers.CharField(read_only=True)
    published_at = serializers.DateTimeField(read_only=True, allow_null=True)
    created_at = serializers.DateTimeField(read_only=True)
    updated_at = serializers.DateTimeField(read_only=True)

    def get_article_uuid(self, obj):
        # Binary identity rendered as hex for transport
        return bytes(obj['article_uuid']).hex()


class PostSummarySerializer(ArticleSummarySerializer):
    body = serializers.CharField(read_only=True)
    is_featured = serializers.BooleanField(read_only=True)
    featured_img = serializers.CharField(read_only=True)
    main_img = serializers.CharField(read_only=True)


class PostDetailSerializer(PostSummarySerializer):
    tags = serializers.ListField(child=serializers.IntegerField(), read_only=True)


class DiscussionSummarySerializer(ArticleSummarySerializer):
    body = serializers.CharField(read_only=True)
    is_locked = serializers.BooleanField(read_only=True)


class DiscussionDetailSerializer(DiscussionSummarySerializer):
    tags = serializers.ListField(child=serializers.IntegerField(), read_only=True)
