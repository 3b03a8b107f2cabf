"""Counting listener for instrumented programs."""

from .server import PingCounter, PingListener

__all__ = ["PingCounter", "PingListener"]
