"""Optional ping injection applied after classification."""

from .injector import HELPER_HEADER, PING_CALL, Instrumenter

__all__ = ["HELPER_HEADER", "PING_CALL", "Instrumenter"]
