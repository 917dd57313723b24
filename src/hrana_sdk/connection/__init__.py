"""
Hrana SDK Connection Module.

Provides the pipeline transport interface and its HTTP implementation.
"""

from .base import BaseTransport
from .http import HTTPTransport

__all__ = [
    "BaseTransport",
    "HTTPTransport",
]
