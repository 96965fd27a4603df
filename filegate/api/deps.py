"""Accessors for the components create_app() attaches to `app.state`."""
from __future__ import annotations

from fastapi import Request

from ..config import Settings
from ..service.authorizer import RequestAuthorizer
from ..service.storage import StorageEngine
from ..service.tokens import TokenService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage(request: Request) -> StorageEngine:
    return request.app.state.storage


def get_tokens(request: Request) -> TokenService:
    return request.app.state.tokens


def get_authorizer(request: Request) -> RequestAuthorizer:
    return request.app.state.authorizer
