"""Report persistence providers (JSON / Parquet)."""

from .json_store import (
	deserialize_node,
	load_report,
	save_report,
	serialize_node,
)
from .parquet_store import flatten_report, report_to_table, save_report_parquet

__all__ = [
	"deserialize_node",
	"flatten_report",
	"load_report",
	"report_to_table",
	"save_report",
	"save_report_parquet",
	"serialize_node",
]
