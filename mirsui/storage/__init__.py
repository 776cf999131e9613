"""Backend-as-a-service access layer."""

from mirsui.storage.base import Backend, BackendError, IdentityError

__all__ = [
    'Backend',
    'BackendError',
    'IdentityError',
]
