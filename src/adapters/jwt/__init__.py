"""Access token adapters - JWT implementation."""

from .codec import JwtTokenCodec

__all__ = ["JwtTokenCodec"]
