"""Reporting utilities for FedDeep."""

from .artifacts import write_manifest
from .log import get_logger, init_logging
from .metrics import CsvSink, JsonlSink
from .plots import PlotAdapter
from .progress import ProgressPrinter
from .summary import write_summary

__all__ = [
    "CsvSink",
    "JsonlSink",
    "PlotAdapter",
    "ProgressPrinter",
    "get_logger",
    "init_logging",
    "write_manifest",
    "write_summary",
]
