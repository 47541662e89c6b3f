"""Trace dataloaders."""
from .swf import load_data, TraceLoadError, TraceReadError, TraceParseError

__all__ = [
    "load_data",
    "TraceLoadError", "TraceReadError", "TraceParseError",
]
