"""
Project router for the article API.

DefaultRouter wraps its patterns in format_suffix_patterns, which registers
the 'drf_format_suffix' path converter. Including more than one such router
raises "Converter 'drf_format_suffix' is already registered", so suffixes
are turned off here.
"""

from rest_framework.routers import DefaultRouter


class SafeDefaultRouter(DefaultRouter):
    """DefaultRouter with an API root view but no ``.json`` style suffixes."""
    include_format_suffixes = False
