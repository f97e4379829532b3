"""
Two-stage input validation for article writes.

The base article fields and the kind-specific fields are validated by two
independent serializers against the same raw input. A write proceeds only
when both pass; otherwise the caller receives the union of both error sets.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Type

from rest_framework import serializers

from apps.core.exceptions import ValidationError


class ArticleFieldsSerializer(serializers.Serializer):
    """Fields shared by every article kind."""

    title = serializers.CharField(max_length=255)
    slug = serializers.SlugField(max_length=255, required=False)
    lead = serializers.CharField(required=False, allow_blank=True)
    published_at = serializers.DateTimeField(required=False, allow_null=True)
    tags = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        required=False,
        allow_empty=True,
    )


class PostFieldsSerializer(serializers.Serializer):
    body = serializers.CharField(required=False, allow_blank=True)
    is_featured = serializers.BooleanField(required=False)


class DiscussionFieldsSerializer(serializers.Serializer):
    body = serializers.CharField(required=False, allow_blank=True)
    is_locked = serializers.BooleanField(required=False)


@dataclass
class ValidatedFields:
    """
    Typed result of a successful validation.

    ``tags`` is None when the input did not mention tags at all.
    """
    article: Dict[str, Any] = field(default_factory=dict)
    extension: Dict[str, Any] = field(default_factory=dict)
    tags: Optional[List[int]] = None


def _errors_to_dict(errors) -> Dict[str, List[str]]:
    result = {}
    for name, messages in errors.items():
        if isinstance(messages, dict):
            # ListField reports child errors keyed by index
            flat = []
            for index, child_messages in messages.items():
                flat.extend(f"[{index}] {message}" for message in child_messages)
            result[name] = flat
        else:
            result[name] = [str(message) for message in messages]
    return result


def merge_errors(*error_sets: Dict[str, List[str]]) -> Dict[str, List[str]]:
    """Union of several field -> messages maps, keeping every message."""
    merged: Dict[str, List[str]] = {}
    for errors in error_sets:
        for name, messages in errors.items():
            bucket = merged.setdefault(name, [])
            bucket.extend(m for m in messages if m not in bucket)
    return merged


def _run(serializer_classes: Tuple[Type[serializers.Serializer], ...], data):
    bound = [cls(data=data if data is not None else {}) for cls in serializer_classes]
    # Evaluate every serializer so each one reports its own errors
    results = [serializer.is_valid() for serializer in bound]
    return bound, all(results)


def _supplied(validated_data, data) -> Dict[str, Any]:
    """
    Keep only the validated fields that appear in the raw input.

    DRF reads a BooleanField missing from form/multipart input as False;
    such a value was never sent and must not overwrite the stored one.
    """
    keys = set(data or {})
    return {
        name: value for name, value in validated_data.items()
        if name in keys or any(key.startswith(f"{name}[") for key in keys)
    }


def collect_errors(kind, data) -> Dict[str, List[str]]:
    """
    Validate ``data`` for ``kind`` and return the union of field errors.

    Returns an empty dict when the input is valid. Never raises.
    """
    bound, _ = _run((ArticleFieldsSerializer, kind.serializer_class), data)
    return merge_errors(*(_errors_to_dict(serializer.errors) for serializer in bound))


def validate_input(kind, data) -> ValidatedFields:
    """
    Validate ``data`` for ``kind`` and map it to typed field sets.

    Only fields present in the input appear in the result, so an update
    writes only what the caller supplied.

    Raises:
        ValidationError: With the union of both validators' messages.
    """
    bound, valid = _run((ArticleFieldsSerializer, kind.serializer_class), data)
    if not valid:
        errors = merge_errors(*(_errors_to_dict(serializer.errors) for serializer in bound))
        raise ValidationError(details=errors)

    article_serializer, kind_serializer = bound
    article_fields = _supplied(article_serializer.validated_data, data)
    tags = article_fields.pop('tags', None)

    return ValidatedFields(
        article=article_fields,
        extension=_supplied(kind_serializer.validated_data, data),
        tags=list(tags) if tags is not None else None,
    )
