"""Marked-block scanning: per-file line classification and tree aggregation."""

from .aggregator import TreeAggregator
from .classifier import LineClassifier, compile_block_pattern

__all__ = ["LineClassifier", "TreeAggregator", "compile_block_pattern"]
