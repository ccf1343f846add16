"""
HTTP boundary to the campus events backend.
"""

from .client import ApiClient

__all__ = ['ApiClient']
