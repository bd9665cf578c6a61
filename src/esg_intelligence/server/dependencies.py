"""FastAPI dependencies."""

from fastapi import Request

from esg_intelligence.bootstrap import ServiceContainer


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container
