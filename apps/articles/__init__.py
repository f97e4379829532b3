"""
Articles app.

Provides the polymorphic post/discussion publish workflow.
"""
