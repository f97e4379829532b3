"""
Tag association for articles.

Requested tag ids are resolved against the catalog; ids that do not exist
are dropped rather than rejected. All writes happen in the caller's
transaction.
"""

import logging
from typing import Iterable, List, Optional

from .models import Article, ArticleTag, Tag

logger = logging.getLogger(__name__)


class TagAssociator:
    """Replace-all management of an article's tag set."""

    def resolve(self, tag_ids: Optional[Iterable[int]]) -> List[Tag]:
        """Return catalog tags matching ``tag_ids``; unknown ids are dropped."""
        requested = set(tag_ids or [])
        if not requested:
            return []

        tags = list(Tag.objects.filter(id__in=requested).order_by('id'))
        unknown = requested - {tag.id for tag in tags}
        if unknown:
            logger.debug("Dropping unknown tag ids: %s", sorted(unknown))
        return tags

    def associate(self, article: Article, tag_ids: Optional[Iterable[int]]) -> List[int]:
        """Insert associations for a freshly created article. No-op when empty."""
        tags = self.resolve(tag_ids)
        if tags:
            ArticleTag.objects.bulk_create(
                [ArticleTag(article=article, tag=tag) for tag in tags]
            )
        return [tag.id for tag in tags]

    def replace(self, article: Article, tag_ids: Optional[Iterable[int]]) -> List[int]:
        """
        Replace the association set of ``article`` with ``tag_ids``.

        An empty or missing list clears every association.
        """
        ArticleTag.objects.filter(article=article).delete()
        return self.associate(article, tag_ids)

    def tag_ids_for(self, article_uuid: bytes) -> List[int]:
        return list(
            ArticleTag.objects
            .filter(article_id=article_uuid)
            .order_by('tag_id')
            .values_list('tag_id', flat=True)
        )
