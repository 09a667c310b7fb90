"""Code delivery adapters."""

from .console import ConsoleCodeSender

__all__ = ["ConsoleCodeSender"]
