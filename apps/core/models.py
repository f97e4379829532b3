"""
Shared abstract models.
"""

from django.db import models
from django.utils import timezone


class TimestampedModel(models.Model):
    """
    Creation and modification timestamps.

    Concrete models choose their own primary key; articles use a binary one.
    """

    created_at = models.DateTimeField(
        default=timezone.now,
        editable=False,
        db_index=True,
        verbose_name='Created At',
        help_text='Timestamp when record was created'
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        verbose_name='Updated At',
        help_text='Timestamp when record was last updated'
    )

    class Meta:
        abstract = True
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.__class__.__name__} ({self.pk})"
