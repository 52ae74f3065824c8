"""Event bus adapters - In-process delivery."""

from .thread_pool import ThreadPoolEventBus

__all__ = ["ThreadPoolEventBus"]
