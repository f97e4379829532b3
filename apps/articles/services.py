"""
Article publish workflow.

One generic ``ArticleWorkflow`` drives create/update/delete/fetch/list for
every article kind. Kinds differ only through their ``ArticleKind``
capability record: the extension model, the kind validator, the media
fields and whether slug lookup is offered.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Type

from django.conf import settings
from django.core.paginator import EmptyPage, Paginator
from django.db import models, transaction
from django.utils.text import slugify
from rest_framework import serializers

from apps.core.exceptions import NotFoundError, ValidationError
from .identity import ArticleIdentity, allocate
from .media import MediaAttacher
from .models import Article, ArticleTag, ArticleType, DiscussionArticle, PostArticle
from .tags import TagAssociator
from .validation import DiscussionFieldsSerializer, PostFieldsSerializer, validate_input

logger = logging.getLogger(__name__)

BASE_FIELDS = ('title', 'slug', 'lead', 'published_at', 'created_at', 'updated_at')


@dataclass(frozen=True)
class ArticleKind:
    """Capabilities that specialize the workflow for one article kind."""
    type: ArticleType
    extension_model: Type[models.Model]
    serializer_class: Type[serializers.Serializer]
    extension_fields: Tuple[str, ...]
    media_fields: Tuple[str, ...] = ()
    slug_lookup: bool = False

    @property
    def related_name(self) -> str:
        return self.type.value

    @property
    def label(self) -> str:
        return self.type.label


POST = ArticleKind(
    type=ArticleType.POST,
    extension_model=PostArticle,
    serializer_class=PostFieldsSerializer,
    extension_fields=('body', 'is_featured', 'featured_img', 'main_img'),
    media_fields=('featured_img', 'main_img'),
    slug_lookup=True,
)

DISCUSSION = ArticleKind(
    type=ArticleType.DISCUSSION,
    extension_model=DiscussionArticle,
    serializer_class=DiscussionFieldsSerializer,
    extension_fields=('body', 'is_locked'),
)

KINDS = {kind.type: kind for kind in (POST, DISCUSSION)}


@dataclass
class ArticlePage:
    """One page of article summaries."""
    items: List[Dict[str, Any]] = field(default_factory=list)
    page: int = 1
    limit: int = 10
    total: int = 0

    @property
    def num_pages(self) -> int:
        return max(1, -(-self.total // self.limit)) if self.limit else 1

    @property
    def has_next(self) -> bool:
        return self.page < self.num_pages


class ArticleWorkflow:
    """
    Create, update, delete, fetch and list articles of a single kind.

    Every write runs inside one database transaction covering the base row,
    the extension row and the tag associations. Uploads are stored before
    the transaction opens and removed again if the write fails.
    """

    def __init__(
        self,
        kind: ArticleKind,
        media: Optional[MediaAttacher] = None,
        tags: Optional[TagAssociator] = None,
    ):
        self.kind = kind
        self.media = media if media is not None else (MediaAttacher() if kind.media_fields else None)
        self.tags = tags or TagAssociator()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _queryset(self):
        related = self.kind.related_name
        return (
            Article.objects
            .filter(type=self.kind.type, **{f'{related}__isnull': False})
            .select_related(related)
        )

    def _serialize(self, article: Article) -> Dict[str, Any]:
        extension = getattr(article, self.kind.related_name)
        data = {
            'article_id': article.article_id,
            'article_uuid': bytes(article.article_uuid),
            'type': article.type,
            'owner_id': article.owner_id,
        }
        for name in BASE_FIELDS:
            data[name] = getattr(article, name)
        for name in self.kind.extension_fields:
            data[name] = getattr(extension, name)
        return data

    def list(self, page: int = 1, limit: Optional[int] = None) -> ArticlePage:
        """
        Return one page of summaries, newest first.

        Raises:
            ValidationError: If page or limit is not a positive integer.
        """
        if limit is None:
            limit = getattr(settings, 'ARTICLES_DEFAULT_PAGE_SIZE', 10)

        errors = {}
        if not isinstance(page, int) or page < 1:
            errors['page'] = ['Must be a positive integer.']
        if not isinstance(limit, int) or limit < 1:
            errors['limit'] = ['Must be a positive integer.']
        if errors:
            raise ValidationError("Invalid pagination parameters", details=errors)

        limit = min(limit, getattr(settings, 'ARTICLES_MAX_PAGE_SIZE', 100))
        queryset = self._queryset().order_by('-created_at', '-article_uuid')
        paginator = Paginator(queryset, limit)

        try:
            items = [self._serialize(article) for article in paginator.page(page).object_list]
        except EmptyPage:
            items = []

        return ArticlePage(items=items, page=page, limit=limit, total=paginator.count)

    def _find(self, article_id: str) -> Optional[Article]:
        try:
            identity = ArticleIdentity.from_text(article_id)
        except ValueError:
            return None
        return self._queryset().filter(article_uuid=identity.binary).first()

    def _detail(self, article: Optional[Article]) -> Optional[Dict[str, Any]]:
        if article is None:
            return None
        detail = self._serialize(article)
        detail['tags'] = self.tags.tag_ids_for(article.article_uuid)
        return detail

    def get(self, article_id: str) -> Optional[Dict[str, Any]]:
        """Fetch one article with its tag ids, or None if it does not exist."""
        return self._detail(self._find(article_id))

    def get_by_slug(self, slug: str) -> Optional[Dict[str, Any]]:
        if not self.kind.slug_lookup:
            raise NotImplementedError(f"{self.kind.label} articles cannot be fetched by slug")
        return self._detail(self._queryset().filter(slug=slug).first())

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _load_extension(self, article_id: str):
        try:
            identity = ArticleIdentity.from_text(article_id)
        except ValueError:
            identity = None

        extension = None
        if identity is not None:
            extension = (
                self.kind.extension_model.objects
                .select_related('article')
                .filter(article_id=identity.binary)
                .first()
            )
        if extension is None:
            raise NotFoundError(f"{self.kind.label} {article_id} not found")
        return extension

    def _lock_article(self, article_uuid: bytes, article_id: str) -> Article:
        article = (
            Article.objects
            .select_for_update()
            .filter(article_uuid=article_uuid, type=self.kind.type)
            .first()
        )
        if article is None:
            raise NotFoundError(f"{self.kind.label} {article_id} not found")
        return article

    def _discard(self, references: List[str]) -> None:
        for reference in references:
            self.media.discard(reference)

    def _default_slug(self, title: str, identity: ArticleIdentity) -> str:
        base = slugify(title)[:200] or self.kind.related_name
        return f"{base}-{identity.text[:8]}"

    def create(self, actor, data) -> ArticleIdentity:
        """
        Validate and persist a new article owned by ``actor``.

        Returns:
            The newly allocated identity.
        """
        fields = validate_input(self.kind, data)
        identity = allocate()

        article_values = dict(fields.article)
        if not article_values.get('slug'):
            article_values['slug'] = self._default_slug(article_values['title'], identity)

        extension_values = dict(fields.extension)
        stored: List[str] = []
        try:
            # A rejected upload must not leave earlier fields' files behind
            for name in self.kind.media_fields:
                reference = self.media.resolve(data, name)
                extension_values[name] = reference
                if reference:
                    stored.append(reference)

            with transaction.atomic():
                article = Article.objects.create(
                    article_uuid=identity.binary,
                    article_id=identity.text,
                    owner=actor,
                    type=self.kind.type,
                    **article_values,
                )
                self.kind.extension_model.objects.create(article=article, **extension_values)
                if fields.tags:
                    self.tags.associate(article, fields.tags)
        except Exception:
            self._discard(stored)
            raise

        logger.info(f"Created {self.kind.related_name} {identity.text}")
        return identity

    def update(self, data, article_id: str) -> None:
        """
        Validate and apply ``data`` to an existing article.

        The tag set is always replaced, so omitting tags clears them. Image
        fields keep their stored reference unless a new file is uploaded.

        Raises:
            NotFoundError: If no article of this kind has ``article_id``.
            ValidationError: If either validator rejects the input.
        """
        extension = self._load_extension(article_id)
        fields = validate_input(self.kind, data)

        extension_values = dict(fields.extension)
        stored: List[str] = []
        try:
            for name in self.kind.media_fields:
                previous = getattr(extension, name)
                reference = self.media.resolve(data, name, previous)
                if reference != previous:
                    extension_values[name] = reference
                    stored.append(reference)

            with transaction.atomic():
                article = self._lock_article(extension.article_id, article_id)

                for name, value in fields.article.items():
                    setattr(article, name, value)
                article.save(update_fields=[*fields.article, 'updated_at'])

                if extension_values:
                    for name, value in extension_values.items():
                        setattr(extension, name, value)
                    extension.save(update_fields=list(extension_values))

                self.tags.replace(article, fields.tags)
        except Exception:
            self._discard(stored)
            raise

        logger.info(f"Updated {self.kind.related_name} {article_id}")

    def delete(self, article_id: str) -> None:
        """
        Remove the article, its extension row and its tag associations.

        Raises:
            NotFoundError: If no article of this kind has ``article_id``.
        """
        extension = self._load_extension(article_id)

        with transaction.atomic():
            article = self._lock_article(extension.article_id, article_id)
            ArticleTag.objects.filter(article=article).delete()
            self.kind.extension_model.objects.filter(article=article).delete()
            Article.objects.filter(article_uuid=article.article_uuid).delete()

        logger.info(f"Deleted {self.kind.related_name} {article_id}")


def workflow_for(article_type) -> ArticleWorkflow:
    """Build the workflow for ``article_type`` ('post', 'discussion' or ArticleType)."""
    try:
        kind = KINDS[ArticleType(article_type)]
    except (KeyError, ValueError) as exc:
        raise ValueError(f"Unknown article type: {article_type!r}") from exc
    return ArticleWorkflow(kind)
