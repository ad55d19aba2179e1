from fastapi import Request

from marzan_loyalty.services.email_service import EmailBackend
from marzan_loyalty.services.image_host import ImgurImageHost
from marzan_loyalty.services.postal_service import PostalLookup
from marzan_loyalty.services.session_events import SessionEventBus


def get_email_backend(request: Request) -> EmailBackend:
    return request.app.state.email_backend


def get_session_events(request: Request) -> SessionEventBus:
    return request.app.state.session_events


def get_postal_lookup(request: Request) -> PostalLookup:
    return request.app.state.postal_lookup


def get_image_host(request: Request) -> ImgurImageHost:
    return request.app.state.image_host
