# Initial schema for articles, kind extensions and tags

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Tag',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, editable=False, help_text='Timestamp when record was created', verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when record was last updated', verbose_name='Updated At')),
                ('name', models.CharField(help_text='Display name of the tag', max_length=100, verbose_name='Name')),
                ('slug', models.SlugField(help_text='URL-safe unique tag identifier', max_length=100, unique=True, verbose_name='Slug')),
            ],
            options={
                'verbose_name': 'Tag',
                'verbose_name_plural': 'Tags',
                'db_table': 'tags',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Article',
            fields=[
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, editable=False, help_text='Timestamp when record was created', verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when record was last updated', verbose_name='Updated At')),
                ('article_uuid', models.BinaryField(editable=False, help_text='Time-ordered binary identity (join key)', max_length=16, primary_key=True, serialize=False, verbose_name='Article UUID')),
                ('article_id', models.CharField(editable=False, help_text='Text identity used at the API boundary', max_length=36, unique=True, verbose_name='Article ID')),
                ('type', models.CharField(choices=[('post', 'Post'), ('discussion', 'Discussion')], db_index=True, editable=False, help_text='Article kind, fixed at creation', max_length=20, verbose_name='Type')),
                ('title', models.CharField(max_length=255, verbose_name='Title')),
                ('slug', models.SlugField(help_text='Unique URL slug', max_length=255, unique=True, verbose_name='Slug')),
                ('lead', models.TextField(blank=True, default='', help_text='Short summary of the body', verbose_name='Lead')),
                ('published_at', models.DateTimeField(blank=True, db_index=True, null=True, verbose_name='Published At')),
                ('owner', models.ForeignKey(help_text='User who created the article', on_delete=django.db.models.deletion.CASCADE, related_name='articles', to=settings.AUTH_USER_MODEL, verbose_name='Owner')),
            ],
            options={
                'verbose_name': 'Article',
                'verbose_name_plural': 'Articles',
                'db_table': 'articles',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='PostArticle',
            fields=[
                ('article', models.OneToOneField(db_column='article_uuid', on_delete=django.db.models.deletion.CASCADE, primary_key=True, related_name='post', serialize=False, to='articles.article')),
                ('body', models.TextField(blank=True, default='', verbose_name='Body')),
                ('is_featured', models.BooleanField(default=False, help_text='Whether the post is highlighted in listings', verbose_name='Featured')),
                ('featured_img', models.CharField(blank=True, default='', max_length=255, verbose_name='Featured Image')),
                ('main_img', models.CharField(blank=True, default='', max_length=255, verbose_name='Main Image')),
            ],
            options={
                'verbose_name': 'Post',
                'verbose_name_plural': 'Posts',
                'db_table': 'article_posts',
            },
        ),
        migrations.CreateModel(
            name='DiscussionArticle',
            fields=[
                ('article', models.OneToOneField(db_column='article_uuid', on_delete=django.db.models.deletion.CASCADE, primary_key=True, related_name='discussion', serialize=False, to='articles.article')),
                ('body', models.TextField(blank=True, default='', verbose_name='Body')),
                ('is_locked', models.BooleanField(default=False, help_text='Locked discussions accept no new replies', verbose_name='Locked')),
            ],
            options={
                'verbose_name': 'Discussion',
                'verbose_name_plural': 'Discussions',
                'db_table': 'article_discussions',
            },
        ),
        migrations.CreateModel(
            name='ArticleTag',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('article', models.ForeignKey(db_column='article_uuid', on_delete=django.db.models.deletion.CASCADE, related_name='article_tags', to='articles.article')),
                ('tag', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='article_tags', to='articles.tag')),
            ],
            options={
                'verbose_name': 'Article Tag',
                'verbose_name_plural': 'Article Tags',
                'db_table': 'article_tags',
            },
        ),
        migrations.AddConstraint(
            model_name='articletag',
            constraint=models.UniqueConstraint(fields=('article', 'tag'), name='article_tags_article_tag_uniq'),
        ),
    ]
