"""
Tests for the article publish workflow.

Tests cover:
- Create/update/delete across base, extension and tag rows
- Replace-all tag semantics, including the empty case
- Image preservation on update
- Rollback of every row when a step fails
- Kind filtering, pagination and slug lookup
"""

from datetime import datetime, timezone as dt_timezone
from unittest.mock import patch

import pytest
from django.core.files.storage import FileSystemStorage
from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import DatabaseError, IntegrityError
from django.http import QueryDict

from apps.articles.identity import ArticleIdentity
from apps.articles.media import ImageUploader, MediaAttacher
from apps.articles.models import Article, ArticleTag, DiscussionArticle, PostArticle, Tag
from apps.articles.services import (
    DISCUSSION,
    POST,
    ArticleWorkflow,
    workflow_for,
)
from apps.articles.tags import TagAssociator
from apps.core.exceptions import NotFoundError, UploadError, ValidationError


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def storage(tmp_path):
    """File storage rooted in a temporary directory."""
    return FileSystemStorage(location=str(tmp_path), base_url='/media/')


@pytest.fixture
def post_workflow(storage):
    return ArticleWorkflow(POST, media=MediaAttacher(ImageUploader(storage=storage)))


@pytest.fixture
def discussion_workflow():
    return ArticleWorkflow(DISCUSSION)


@pytest.fixture
def hello_post(post_workflow, user, tags):
    """The Hello/World post tagged with the first two tags."""
    return post_workflow.create(user, {
        'title': 'Hello',
        'body': 'World',
        'tags': [tags[0].id, tags[1].id],
    })


def make_image(name='photo.png'):
    return SimpleUploadedFile(name, b'\x89PNG\r\n\x1a\n' + b'0' * 64, content_type='image/png')


def stored_files(storage):
    if not storage.exists('articles'):
        return []
    return storage.listdir('articles')[1]


# ============================================================================
# Create
# ============================================================================

class TestCreate:
    """Creating articles writes base, extension and tag rows together."""

    @pytest.mark.django_db
    def test_post_without_images(self, post_workflow, hello_post, tags):
        """Base row has kind post, extension has empty image refs, tags resolve."""
        article = Article.objects.get(article_id=hello_post.text)
        assert article.type == 'post'

        post = PostArticle.objects.get(article=article)
        assert post.body == 'World'
        assert post.featured_img == ''
        assert post.main_img == ''

        page = post_workflow.list(1, 10)
        assert hello_post.text in [item['article_id'] for item in page.items]

        detail = post_workflow.get(hello_post.text)
        assert detail['tags'] == [tags[0].id, tags[1].id]

    @pytest.mark.django_db
    def test_both_identity_forms_decode_to_same_value(self, post_workflow, hello_post):
        detail = post_workflow.get(hello_post.text)

        assert detail['article_id'] == hello_post.text
        assert detail['article_uuid'] == hello_post.binary
        assert ArticleIdentity.from_binary(detail['article_uuid']).text == detail['article_id']
        assert Article.objects.get(article_id=hello_post.text).identity == hello_post

    @pytest.mark.django_db
    def test_fields_round_trip(self, post_workflow, user):
        identity = post_workflow.create(user, {
            'title': 'Release notes',
            'slug': 'release-notes',
            'lead': 'What changed',
            'published_at': '2024-05-01T10:00:00Z',
            'body': 'Everything',
            'is_featured': True,
        })

        detail = post_workflow.get(identity.text)
        assert detail['title'] == 'Release notes'
        assert detail['slug'] == 'release-notes'
        assert detail['lead'] == 'What changed'
        assert detail['published_at'] == datetime(2024, 5, 1, 10, 0, tzinfo=dt_timezone.utc)
        assert detail['body'] == 'Everything'
        assert detail['is_featured'] is True
        assert detail['owner_id'] == user.pk
        assert detail['type'] == 'post'
        assert detail['tags'] == []

    @pytest.mark.django_db
    def test_slug_generated_from_title_and_identity(self, post_workflow, user):
        identity = post_workflow.create(user, {'title': 'Hello World'})
        article = Article.objects.get(article_id=identity.text)
        assert article.slug == f"hello-world-{identity.text[:8]}"

    @pytest.mark.django_db
    def test_same_title_twice_gets_distinct_slugs(self, post_workflow, user):
        first = post_workflow.create(user, {'title': 'Hello'})
        second = post_workflow.create(user, {'title': 'Hello'})
        slugs = set(Article.objects.filter(
            article_id__in=[first.text, second.text]
        ).values_list('slug', flat=True))
        assert len(slugs) == 2

    @pytest.mark.django_db
    def test_no_tags_creates_no_associations(self, post_workflow, user):
        identity = post_workflow.create(user, {'title': 'Untagged'})
        assert not ArticleTag.objects.filter(article_id=identity.binary).exists()

    @pytest.mark.django_db
    def test_unknown_tag_ids_are_dropped(self, post_workflow, user, tags):
        identity = post_workflow.create(user, {'title': 'Hi', 'tags': [tags[2].id, 999999]})
        assert post_workflow.get(identity.text)['tags'] == [tags[2].id]

    @pytest.mark.django_db
    def test_validation_failure_writes_nothing(self, post_workflow, user):
        with pytest.raises(ValidationError):
            post_workflow.create(user, {'body': 'no title', 'is_featured': 'perhaps'})

        assert Article.objects.count() == 0
        assert PostArticle.objects.count() == 0

    @pytest.mark.django_db
    def test_images_are_stored(self, post_workflow, user, storage):
        identity = post_workflow.create(user, {
            'title': 'Pictures',
            'featured_img': make_image('cover.png'),
            'main_img': make_image('main.JPG'),
        })

        post = PostArticle.objects.get(article_id=identity.binary)
        assert post.featured_img.startswith('articles/')
        assert post.featured_img.endswith('.png')
        assert post.main_img.endswith('.jpg')
        assert storage.exists(post.featured_img)
        assert storage.exists(post.main_img)

    @pytest.mark.django_db
    def test_unsupported_image_type_writes_nothing(self, post_workflow, user, storage):
        with pytest.raises(UploadError):
            post_workflow.create(user, {
                'title': 'Bad upload',
                'featured_img': SimpleUploadedFile('script.exe', b'MZ'),
            })

        assert Article.objects.count() == 0
        assert stored_files(storage) == []

    @pytest.mark.django_db
    def test_rejected_second_image_removes_first(self, post_workflow, user, storage):
        """A valid featured image is not left behind when main_img is refused."""
        with pytest.raises(UploadError):
            post_workflow.create(user, {
                'title': 'Half uploaded',
                'featured_img': make_image('cover.png'),
                'main_img': SimpleUploadedFile('payload.exe', b'MZ'),
            })

        assert Article.objects.count() == 0
        assert stored_files(storage) == []

    @pytest.mark.django_db
    def test_write_failure_rolls_back_all_rows(self, post_workflow, user, tags, storage):
        """A failing tag write leaves no base or extension row and no stored file."""
        with patch.object(TagAssociator, 'associate', side_effect=DatabaseError('boom')):
            with pytest.raises(DatabaseError):
                post_workflow.create(user, {
                    'title': 'Doomed',
                    'featured_img': make_image(),
                    'tags': [tags[0].id],
                })

        assert Article.objects.count() == 0
        assert PostArticle.objects.count() == 0
        assert ArticleTag.objects.count() == 0
        assert stored_files(storage) == []

    @pytest.mark.django_db
    def test_duplicate_slug_is_a_storage_failure(self, post_workflow, user):
        post_workflow.create(user, {'title': 'One', 'slug': 'taken'})

        with pytest.raises(IntegrityError):
            post_workflow.create(user, {'title': 'Two', 'slug': 'taken'})

        assert Article.objects.count() == 1
        assert PostArticle.objects.count() == 1

    @pytest.mark.django_db
    def test_discussion_create(self, discussion_workflow, user, tags):
        identity = discussion_workflow.create(user, {
            'title': 'Ask me anything',
            'body': 'Go',
            'is_locked': True,
            'tags': [tags[1].id],
        })

        article = Article.objects.get(article_id=identity.text)
        assert article.type == 'discussion'
        assert DiscussionArticle.objects.get(article=article).is_locked is True
        assert not PostArticle.objects.filter(article=article).exists()
        assert discussion_workflow.get(identity.text)['tags'] == [tags[1].id]


# ============================================================================
# Fetch & list
# ============================================================================

class TestFetch:
    """Single-article lookups."""

    @pytest.mark.django_db
    def test_unknown_identity_returns_none(self, post_workflow):
        assert post_workflow.get('6ccd780c-baba-1026-9564-5b8c656024db') is None

    @pytest.mark.django_db
    def test_malformed_identity_returns_none(self, post_workflow):
        assert post_workflow.get('not-an-id') is None

    @pytest.mark.django_db
    def test_other_kind_is_not_visible(self, post_workflow, discussion_workflow, user):
        identity = discussion_workflow.create(user, {'title': 'A discussion'})
        assert post_workflow.get(identity.text) is None

    @pytest.mark.django_db
    def test_get_by_slug(self, post_workflow, user, tags):
        identity = post_workflow.create(user, {'title': 'Slugged', 'slug': 'slugged', 'tags': [tags[0].id]})

        detail = post_workflow.get_by_slug('slugged')
        assert detail['article_id'] == identity.text
        assert detail['tags'] == [tags[0].id]
        assert post_workflow.get_by_slug('missing') is None

    @pytest.mark.django_db
    def test_discussions_have_no_slug_lookup(self, discussion_workflow):
        with pytest.raises(NotImplementedError):
            discussion_workflow.get_by_slug('anything')


class TestList:
    """Paginated, kind-filtered listings."""

    @pytest.fixture
    def posts(self, post_workflow, user):
        return [post_workflow.create(user, {'title': f'Post {i}'}) for i in range(3)]

    @pytest.mark.django_db
    def test_newest_first(self, post_workflow, posts):
        page = post_workflow.list(1, 10)
        assert [item['article_id'] for item in page.items] == [p.text for p in reversed(posts)]
        assert page.total == 3

    @pytest.mark.django_db
    def test_pages(self, post_workflow, posts):
        first = post_workflow.list(1, 2)
        second = post_workflow.list(2, 2)

        assert len(first.items) == 2
        assert first.has_next is True
        assert first.num_pages == 2
        assert len(second.items) == 1
        assert second.has_next is False

    @pytest.mark.django_db
    def test_page_past_end_is_empty(self, post_workflow, posts):
        page = post_workflow.list(5, 2)
        assert page.items == []
        assert page.total == 3

    @pytest.mark.django_db
    def test_summary_contains_extension_fields(self, post_workflow, posts):
        item = post_workflow.list(1, 1).items[0]
        assert {'title', 'slug', 'body', 'featured_img', 'main_img', 'is_featured'} <= set(item)
        assert 'tags' not in item

    @pytest.mark.django_db
    def test_kind_filtered(self, post_workflow, discussion_workflow, user, posts):
        discussion_workflow.create(user, {'title': 'Discussion'})

        assert post_workflow.list(1, 10).total == 3
        assert discussion_workflow.list(1, 10).total == 1

    @pytest.mark.django_db
    @pytest.mark.parametrize('page,limit', [(0, 10), (-1, 10), (1, 0), (1, -5)])
    def test_non_positive_bounds_rejected(self, post_workflow, page, limit):
        with pytest.raises(ValidationError):
            post_workflow.list(page, limit)

    @pytest.mark.django_db
    def test_limit_clamped_to_maximum(self, post_workflow, posts, settings):
        settings.ARTICLES_MAX_PAGE_SIZE = 2
        page = post_workflow.list(1, 50)
        assert page.limit == 2
        assert len(page.items) == 2

    @pytest.mark.django_db
    def test_default_limit(self, post_workflow, posts, settings):
        settings.ARTICLES_DEFAULT_PAGE_SIZE = 1
        assert len(post_workflow.list(1).items) == 1


# ============================================================================
# Update
# ============================================================================

class TestUpdate:
    """Updates rewrite base and extension rows and replace tags."""

    @pytest.mark.django_db
    def test_hello2_scenario(self, post_workflow, hello_post):
        """Empty tag list clears associations; title changes; images untouched."""
        post_workflow.update({'title': 'Hello2', 'tags': []}, hello_post.text)

        detail = post_workflow.get(hello_post.text)
        assert detail['tags'] == []
        assert detail['title'] == 'Hello2'
        assert detail['body'] == 'World'
        assert detail['featured_img'] == ''
        assert detail['main_img'] == ''

    @pytest.mark.django_db
    def test_omitting_tags_clears_associations(self, post_workflow, hello_post):
        post_workflow.update({'title': 'Hello'}, hello_post.text)

        assert post_workflow.get(hello_post.text)['tags'] == []
        assert not ArticleTag.objects.filter(article_id=hello_post.binary).exists()

    @pytest.mark.django_db
    def test_tags_replaced_not_merged(self, post_workflow, hello_post, tags):
        post_workflow.update({'title': 'Hello', 'tags': [tags[2].id]}, hello_post.text)
        assert post_workflow.get(hello_post.text)['tags'] == [tags[2].id]

    @pytest.mark.django_db
    def test_image_kept_without_new_upload(self, post_workflow, user, storage):
        identity = post_workflow.create(user, {
            'title': 'Pictures',
            'featured_img': make_image(),
            'main_img': make_image(),
        })
        before = PostArticle.objects.get(article_id=identity.binary)

        post_workflow.update({'title': 'Pictures, edited'}, identity.text)

        after = PostArticle.objects.get(article_id=identity.binary)
        assert after.featured_img == before.featured_img
        assert after.main_img == before.main_img

    @pytest.mark.django_db
    def test_new_upload_overwrites_only_that_image(self, post_workflow, user):
        identity = post_workflow.create(user, {
            'title': 'Pictures',
            'featured_img': make_image(),
            'main_img': make_image(),
        })
        before = PostArticle.objects.get(article_id=identity.binary)

        post_workflow.update(
            {'title': 'Pictures', 'featured_img': make_image('new.webp')},
            identity.text,
        )

        after = PostArticle.objects.get(article_id=identity.binary)
        assert after.featured_img != before.featured_img
        assert after.featured_img.endswith('.webp')
        assert after.main_img == before.main_img

    @pytest.mark.django_db
    def test_kind_and_identity_are_immutable(self, post_workflow, hello_post):
        post_workflow.update({
            'title': 'Hello',
            'type': 'discussion',
            'article_id': '00000000-0000-1000-8000-000000000000',
        }, hello_post.text)

        article = Article.objects.get(article_uuid=hello_post.binary)
        assert article.type == 'post'
        assert article.article_id == hello_post.text

    @pytest.mark.django_db
    def test_missing_article_raises_not_found(self, post_workflow):
        with pytest.raises(NotFoundError):
            post_workflow.update({'title': 'Ghost'}, '6ccd780c-baba-1026-9564-5b8c656024db')

    @pytest.mark.django_db
    def test_malformed_identity_raises_not_found(self, post_workflow):
        with pytest.raises(NotFoundError):
            post_workflow.update({'title': 'Ghost'}, 'garbage')

    @pytest.mark.django_db
    def test_other_kind_raises_not_found(self, post_workflow, discussion_workflow, user):
        identity = discussion_workflow.create(user, {'title': 'A discussion'})
        with pytest.raises(NotFoundError):
            post_workflow.update({'title': 'Hijack'}, identity.text)

    @pytest.mark.django_db
    def test_not_found_checked_before_validation(self, post_workflow):
        with pytest.raises(NotFoundError):
            post_workflow.update({}, '6ccd780c-baba-1026-9564-5b8c656024db')

    @pytest.mark.django_db
    def test_validation_failure_changes_nothing(self, post_workflow, hello_post, tags):
        with pytest.raises(ValidationError):
            post_workflow.update({'title': '', 'tags': []}, hello_post.text)

        detail = post_workflow.get(hello_post.text)
        assert detail['title'] == 'Hello'
        assert detail['tags'] == [tags[0].id, tags[1].id]

    @pytest.mark.django_db
    def test_write_failure_rolls_back(self, post_workflow, hello_post, tags, storage):
        with patch.object(TagAssociator, 'replace', side_effect=DatabaseError('boom')):
            with pytest.raises(DatabaseError):
                post_workflow.update(
                    {'title': 'Never', 'body': 'Never', 'featured_img': make_image()},
                    hello_post.text,
                )

        detail = post_workflow.get(hello_post.text)
        assert detail['title'] == 'Hello'
        assert detail['body'] == 'World'
        assert detail['featured_img'] == ''
        assert detail['tags'] == [tags[0].id, tags[1].id]
        assert stored_files(storage) == []

    @pytest.mark.django_db
    def test_rejected_second_image_keeps_previous_state(self, post_workflow, user, storage):
        identity = post_workflow.create(user, {'title': 'Pictures', 'main_img': make_image()})
        before = PostArticle.objects.get(article_id=identity.binary)

        with pytest.raises(UploadError):
            post_workflow.update({
                'title': 'Pictures',
                'featured_img': make_image('new.png'),
                'main_img': SimpleUploadedFile('payload.exe', b'MZ'),
            }, identity.text)

        after = PostArticle.objects.get(article_id=identity.binary)
        assert after.featured_img == ''
        assert after.main_img == before.main_img
        assert stored_files(storage) == [before.main_img.split('/')[-1]]

    @pytest.mark.django_db
    def test_multipart_update_without_boolean_keeps_it(self, post_workflow, user):
        identity = post_workflow.create(user, {'title': 'Featured', 'is_featured': True})

        data = QueryDict(mutable=True)
        data['title'] = 'Featured, renamed'
        post_workflow.update(data, identity.text)

        detail = post_workflow.get(identity.text)
        assert detail['title'] == 'Featured, renamed'
        assert detail['is_featured'] is True

    @pytest.mark.django_db
    def test_discussion_update(self, discussion_workflow, user, tags):
        identity = discussion_workflow.create(user, {'title': 'Q', 'tags': [tags[0].id]})

        discussion_workflow.update({'title': 'Q2', 'is_locked': True, 'tags': [tags[1].id]}, identity.text)

        detail = discussion_workflow.get(identity.text)
        assert detail['title'] == 'Q2'
        assert detail['is_locked'] is True
        assert detail['tags'] == [tags[1].id]


# ============================================================================
# Delete
# ============================================================================

class TestDelete:
    """Deletes remove every row belonging to the article."""

    @pytest.mark.django_db
    def test_missing_article_leaves_storage_unmodified(self, post_workflow, hello_post):
        with pytest.raises(NotFoundError):
            post_workflow.delete('6ccd780c-baba-1026-9564-5b8c656024db')

        assert Article.objects.count() == 1
        assert PostArticle.objects.count() == 1
        assert ArticleTag.objects.count() == 2

    @pytest.mark.django_db
    def test_removes_base_extension_and_associations(self, post_workflow, user, hello_post, tags):
        survivor = post_workflow.create(user, {'title': 'Survivor', 'tags': [tags[0].id]})

        post_workflow.delete(hello_post.text)

        assert post_workflow.get(hello_post.text) is None
        assert not Article.objects.filter(article_uuid=hello_post.binary).exists()
        assert not PostArticle.objects.filter(article_id=hello_post.binary).exists()
        assert not ArticleTag.objects.filter(article_id=hello_post.binary).exists()

        assert post_workflow.get(survivor.text)['tags'] == [tags[0].id]
        assert Tag.objects.count() == 3

    @pytest.mark.django_db
    def test_second_delete_raises_not_found(self, post_workflow, hello_post):
        post_workflow.delete(hello_post.text)
        with pytest.raises(NotFoundError):
            post_workflow.delete(hello_post.text)

    @pytest.mark.django_db
    def test_delete_discussion(self, discussion_workflow, user):
        identity = discussion_workflow.create(user, {'title': 'Bye'})
        discussion_workflow.delete(identity.text)

        assert not Article.objects.filter(article_uuid=identity.binary).exists()
        assert not DiscussionArticle.objects.exists()

    @pytest.mark.django_db
    def test_other_kind_raises_not_found(self, post_workflow, discussion_workflow, user):
        identity = discussion_workflow.create(user, {'title': 'Keep me'})

        with pytest.raises(NotFoundError):
            post_workflow.delete(identity.text)
        assert discussion_workflow.get(identity.text) is not None


class TestWorkflowFor:

    def test_builds_workflow_for_each_kind(self):
        assert workflow_for('post').kind is POST
        assert workflow_for('discussion').kind is DISCUSSION

    def test_only_posts_get_media_attacher(self):
        assert workflow_for('post').media is not None
        assert workflow_for('discussion').media is None

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValueError):
            workflow_for('video')
