"""Data blocks and the client and server hello information."""

__all__ = ["info", "block"]