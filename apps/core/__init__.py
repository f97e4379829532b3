"""
Core app for the publisher project.

Provides shared base models, error handling and request tracing.
"""
