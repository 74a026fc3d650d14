"""FastAPI dependencies for route handlers."""

from fastapi import Request

from filegate.gateway import Gateway

__all__ = ["get_gateway"]


def get_gateway(request: Request) -> Gateway:
    """Get the shared gateway from app state.

    The gateway is built once in the lifespan (or injected by tests) and
    never mutated afterwards.
    """
    return request.app.state.gateway
