from .identity_provider import HttpIdentityProvider, IdentityProvider, StaticIdentityProvider, build_identity_provider

__all__ = ["IdentityProvider", "StaticIdentityProvider", "HttpIdentityProvider", "build_identity_provider"]
