"""Shared helpers: cancellation and event plumbing."""
from .cancellation import CancellationToken
from .events import EventEmitter

__all__ = ["CancellationToken", "EventEmitter"]
