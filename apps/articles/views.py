"""
Article API views.

Thin HTTP layer over ``ArticleWorkflow``:

GET    /api/posts/                     - List posts (?page=&limit=)
POST   /api/posts/                     - Create post (JSON or multipart)
GET    /api/posts/{article_id}/        - Post detail with tag ids
PUT    /api/posts/{article_id}/        - Update post (tags replaced)
DELETE /api/posts/{article_id}/        - Delete post
GET    /api/posts/slug/{slug}/         - Post detail by slug
       /api/discussions/...            - Same, without slug lookup
GET    /api/tags/                      - Tag catalog
"""

from django.conf import settings
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.core.exceptions import NotFoundError, ValidationError, created_response

from .models import Tag
from .serializers import (
    DiscussionDetailSerializer,
    DiscussionSummarySerializer,
    PostDetailSerializer,
    PostSummarySerializer,
    TagSerializer,
)
from .services import DISCUSSION, POST, ArticleWorkflow


class ArticleViewSet(viewsets.ViewSet):
    """
    Base viewset; subclasses pick the article kind and output serializers.
    """

    permission_classes = [IsAuthenticated]
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    kind = None
    summary_serializer_class = None
    detail_serializer_class = None

    def get_workflow(self) -> ArticleWorkflow:
        return ArticleWorkflow(self.kind)

    def _int_param(self, request, name, default):
        value = request.query_params.get(name)
        if value in (None, ''):
            return default
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ValidationError(
                "Invalid pagination parameters",
                details={name: ['Must be an integer.']},
            )

    def _detail_response(self, detail, lookup):
        if detail is None:
            raise NotFoundError(f"{self.kind.label} {lookup} not found")
        return Response(self.detail_serializer_class(detail).data)

    def list(self, request):
        page = self._int_param(request, 'page', 1)
        limit = self._int_param(
            request, 'limit', getattr(settings, 'ARTICLES_DEFAULT_PAGE_SIZE', 10)
        )
        result = self.get_workflow().list(page, limit)
        return Response({
            'count': result.total,
            'page': result.page,
            'limit': result.limit,
            'num_pages': result.num_pages,
            'has_next': result.has_next,
            'results': self.summary_serializer_class(result.items, many=True).data,
        })

    def retrieve(self, request, pk=None):
        return self._detail_response(self.get_workflow().get(pk), pk)

    def create(self, request):
        identity = self.get_workflow().create(request.user, request.data)
        return created_response({
            'article_id': identity.text,
            'article_uuid': identity.binary.hex(),
        })

    def update(self, request, pk=None):
        workflow = self.get_workflow()
        workflow.update(request.data, pk)
        return self._detail_response(workflow.get(pk), pk)

    def destroy(self, request, pk=None):
        self.get_workflow().delete(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


class PostViewSet(ArticleViewSet):
    kind = POST
    summary_serializer_class = PostSummarySerializer
    detail_serializer_class = PostDetailSerializer

    @action(detail=False, methods=['get'], url_path=r'slug/(?P<slug>[-\w]+)')
    def by_slug(self, request, slug=None):
        return self._detail_response(self.get_workflow().get_by_slug(slug), slug)


class DiscussionViewSet(ArticleViewSet):
    kind = DISCUSSION
    summary_serializer_class = DiscussionSummarySerializer
    detail_serializer_class = DiscussionDetailSerializer


class TagViewSet(viewsets.ReadOnlyModelViewSet):
    """Read-only tag catalog."""

    permission_classes = [IsAuthenticated]
    queryset = Tag.objects.order_by('name')
    serializer_class = TagSerializer
