"""Ports - interfaces/protocols for external dependencies."""

from .task_gateway import PaginationMeta, RemoteTaskGateway

__all__ = [
    "PaginationMeta",
    "RemoteTaskGateway",
]
