"""FastAPI dependencies shared by the routers."""

from fastapi import Request

from tutorcast.services import Services


def get_services(request: Request) -> Services:
    """Services built once in the app lifespan."""
    return request.app.state.services
