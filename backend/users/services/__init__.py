from .identity_service import Actor, IdentityService

__all__ = [
    "Actor",
    "IdentityService",
]
