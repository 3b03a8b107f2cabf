"""Centralized version constants for report artifacts."""
from __future__ import annotations

REPORT_FORMAT_VERSION = "1.0.0"
