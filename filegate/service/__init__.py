"""Use-cases composed from the domain layer: tokens, storage, authorization."""
from .authorizer import Allowed, AuthDecision, Denied, DenialReason, RequestAuthorizer
from .storage import StorageEngine, StorageItem
from .tokens import SigningDisabledError, TokenService

__all__ = [
    "Allowed",
    "AuthDecision",
    "Denied",
    "DenialReason",
    "RequestAuthorizer",
    "SigningDisabledError",
    "StorageEngine",
    "StorageItem",
    "TokenService",
]
