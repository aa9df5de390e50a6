"""Adapters - I/O implementations of ports."""

from .rest_api import RestTaskAdapter

__all__ = [
    "RestTaskAdapter",
]
