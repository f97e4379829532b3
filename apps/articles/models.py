"""
Article models for the publisher project.

An article is split over a shared base row (``Article``) and exactly one
kind-specific extension row (``PostArticle`` or ``DiscussionArticle``) that
shares its primary key. Tags are linked through ``ArticleTag``.
"""

from django.conf import settings
from django.db import models

from apps.core.models import TimestampedModel
from .identity import ArticleIdentity


class ArticleType(models.TextChoices):
    """Kind discriminator stored on the base row."""
    POST = 'post', 'Post'
    DISCUSSION = 'discussion', 'Discussion'


class Tag(TimestampedModel):
    """
    Tag catalog entry.
    """

    name = models.CharField(
        max_length=100,
        verbose_name='Name',
        help_text='Display name of the tag'
    )

    slug = models.SlugField(
        max_length=100,
        unique=True,
        verbose_name='Slug',
        help_text='URL-safe unique tag identifier'
    )

    class Meta:
        db_table = 'tags'
        verbose_name = 'Tag'
        verbose_name_plural = 'Tags'
        ordering = ['name']

    def __str__(self):
        return self.name


class Article(TimestampedModel):
    """
    Base record shared by every article kind.

    ``article_uuid`` is the time-ordered binary form of the identity and the
    physical key; ``article_id`` is the text form exposed to clients.
    """

    article_uuid = models.BinaryField(
        primary_key=True,
        max_length=16,
        editable=False,
        verbose_name='Article UUID',
        help_text='Time-ordered binary identity (join key)'
    )

    article_id = models.CharField(
        max_length=36,
        unique=True,
        editable=False,
        verbose_name='Article ID',
        help_text='Text identity used at the API boundary'
    )

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='articles',
        verbose_name='Owner',
        help_text='User who created the article'
    )

    type = models.CharField(
        max_length=20,
        choices=ArticleType.choices,
        db_index=True,
        editable=False,
        verbose_name='Type',
        help_text='Article kind, fixed at creation'
    )

    title = models.CharField(
        max_length=255,
        verbose_name='Title'
    )

    slug = models.SlugField(
        max_length=255,
        unique=True,
        verbose_name='Slug',
        help_text='Unique URL slug'
    )

    lead = models.TextField(
        blank=True,
        default='',
        verbose_name='Lead',
        help_text='Short summary of the body'
    )

    published_at = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        verbose_name='Published At'
    )

    class Meta:
        db_table = 'articles'
        verbose_name = 'Article'
        verbose_name_plural = 'Articles'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.title} ({self.type})"

    @property
    def identity(self) -> ArticleIdentity:
        return ArticleIdentity.from_binary(self.article_uuid)


class PostArticle(models.Model):
    """
    Post extension: body and two optional image references.
    """

    article = models.OneToOneField(
        Article,
        primary_key=True,
        on_delete=models.CASCADE,
        related_name='post',
        db_column='article_uuid',
    )

    body = models.TextField(
        blank=True,
        default='',
        verbose_name='Body'
    )

    is_featured = models.BooleanField(
        default=False,
        verbose_name='Featured',
        help_text='Whether the post is highlighted in listings'
    )

    # Storage references, empty string when no image is attached
    featured_img = models.CharField(
        max_length=255,
        blank=True,
        default='',
        verbose_name='Featured Image'
    )

    main_img = models.CharField(
        max_length=255,
        blank=True,
        default='',
        verbose_name='Main Image'
    )

    class Meta:
        db_table = 'article_posts'
        verbose_name = 'Post'
        verbose_name_plural = 'Posts'


class DiscussionArticle(models.Model):
    """
    Discussion extension.
    """

    article = models.OneToOneField(
        Article,
        primary_key=True,
        on_delete=models.CASCADE,
        related_name='discussion',
        db_column='article_uuid',
    )

    body = models.TextField(
        blank=True,
        default='',
        verbose_name='Body'
    )

    is_locked = models.BooleanField(
        default=False,
        verbose_name='Locked',
        help_text='Locked discussions accept no new replies'
    )

    class Meta:
        db_table = 'article_discussions'
        verbose_name = 'Discussion'
        verbose_name_plural = 'Discussions'


class ArticleTag(models.Model):
    """Association between an article and a catalog tag."""

    article = models.ForeignKey(
        Article,
        on_delete=models.CASCADE,
        related_name='article_tags',
        db_column='article_uuid',
    )

    tag = models.ForeignKey(
        Tag,
        on_delete=models.CASCADE,
        related_name='article_tags',
    )

    class Meta:
        db_table = 'article_tags'
        verbose_name = 'Article Tag'
        verbose_name_plural = 'Article Tags'
        constraints = [
            models.UniqueConstraint(
                fields=['article', 'tag'],
                name='article_tags_article_tag_uniq',
            ),
        ]

    def __str__(self):
        return f"{self.article_id!r} -> {self.tag_id}"
