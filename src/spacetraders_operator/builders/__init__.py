"""Builders for objects the operator creates."""

from .secret import access_token_secret_name, build_access_token_secret, build_owner_reference

__all__ = [
    "access_token_secret_name",
    "build_access_token_secret",
    "build_owner_reference",
]
