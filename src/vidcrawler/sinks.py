"""
Record sinks: where accepted pages are written.
"""
from __future__ import annotations

import csv
import json
import sys
from abc import ABC, abstractmethod
from pathlib import Path
from typing import IO, List, Optional, Protocol, Union

from vidcrawler.extract import Record

TAB_DELIMITER = "\t"
NEW_LINE_SEPARATOR = "\n"


class RecordSink(Protocol):
    def write(self, record: Record) -> None:
        ...

    def close(self) -> None:
        ...


class _StreamSink(ABC):
    """Base for sinks writing lines to a file path or an open text stream."""

    def __init__(self, target: Union[str, Path, IO[str]]) -> None:
        if isinstance(target, (str, Path)):
            if str(target) == "-":
                self._stream: Optional[IO[str]] = sys.stdout
                self._owns_stream = False
            else:
                path = Path(target)
                path.parent.mkdir(parents=True, exist_ok=True)
                self._stream = path.open("w", encoding="utf-8", newline="")
                self._owns_stream = True
        else:
            self._stream = target
            self._owns_stream = False

    def write(self, record: Record) -> None:
        """Append one record to the stream."""
        if self._stream is None:
            raise ValueError("write to closed sink")
        self._write(self._stream, record)

    @abstractmethod
    def _write(self, stream: IO[str], record: Record) -> None:
        """Write ``record`` as exactly one line."""

    def close(self) -> None:
        """Flush, and close the stream if this sink opened it."""
        if self._stream is None:
            return
        self._stream.flush()
        if self._owns_stream:
            self._stream.close()
        self._stream = None


class TsvRecordSink(_StreamSink):
    """
    Tab-delimited rows: url, title, description, tags, view count.

    Fields holding a tab, a line break or a double quote are quoted CSV style,
    so every record reads back as one row of five columns.
    """

    def _write(self, stream: IO[str], record: Record) -> None:
        writer = csv.writer(stream, delimiter=TAB_DELIMITER, lineterminator=NEW_LINE_SEPARATOR)
        writer.writerow(record.fields())


class JsonLinesRecordSink(_StreamSink):
    """One JSON object per record."""

    def _write(self, stream: IO[str], record: Record) -> None:
        payload = {
            "url": record.url,
            "title": record.title,
            "description": record.description,
            "tags": record.tags,
            "view_count": record.view_count,
        }
        stream.write(json.dumps(payload, ensure_ascii=False) + NEW_LINE_SEPARATOR)


class MemoryRecordSink:
    """Keep records in memory."""

    def __init__(self) -> None:
        self.records: List[Record] = []
        self.close_count = 0

    def write(self, record: Record) -> None:
        """Store ``record``."""
        self.records.append(record)

    def close(self) -> None:
        """Count the close; records stay readable."""
        self.close_count += 1


SINK_FORMATS = {
    "tsv": TsvRecordSink,
    "jsonl": JsonLinesRecordSink,
}


def open_sink(target: Union[str, Path, IO[str]], fmt: str = "tsv") -> RecordSink:
    """Open a file sink in the given output format."""
    try:
        sink_cls = SINK_FORMATS[fmt]
    except KeyError:
        raise ValueError(f"Unknown output format: {fmt}") from None
    return sink_cls(target)
