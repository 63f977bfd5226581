"""Shared request dependencies."""

from fastapi import Request

from lognorm.logtypes.registry import Registry


def get_registry(request: Request) -> Registry:
    """The registry built at application startup."""
    return request.app.state.registry
