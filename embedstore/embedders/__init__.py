"""Embedder implementations."""

from .builtin import BuiltinSmallEmbedder

__all__ = ["BuiltinSmallEmbedder"]
