from .provider import (
    IdentityProvider,
    LocalIdentityProvider,
    FirebaseIdentityProvider,
    IdentityError,
    AuthUser,
    get_identity_provider,
)

__all__ = [
    "IdentityProvider",
    "LocalIdentityProvider",
    "FirebaseIdentityProvider",
    "IdentityError",
    "AuthUser",
    "get_identity_provider",
]
