"""
Record sinks.
"""

from .csv_sink import CsvRecordSink

__all__ = ["CsvRecordSink"]
