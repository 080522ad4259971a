"""flowsync logging.

Every message is a logfire log record. logfire's console exporter
prints them; the run log file is written by RunLogExporter, which keeps
the records at or above the file sink's level.

Level names, most verbose first: spew, trace, debug, info, warn, error,
fatal. spew is for subprocess chatter.
"""

from __future__ import annotations

import contextlib
import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, TextIO

import logfire
from logfire import ConsoleOptions
from opentelemetry.proto.logs.v1 import logs_pb2
from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    SpanExporter,
    SpanExportResult,
)
from pydantic import Field, PrivateAttr, model_validator

from flowsync.core.base import BaseConfig

SEVERITIES = {
    "spew": logs_pb2.SEVERITY_NUMBER_TRACE,
    "trace": logs_pb2.SEVERITY_NUMBER_TRACE3,
    "debug": logs_pb2.SEVERITY_NUMBER_DEBUG,
    "info": logs_pb2.SEVERITY_NUMBER_INFO,
    "warn": logs_pb2.SEVERITY_NUMBER_WARN,
    "error": logs_pb2.SEVERITY_NUMBER_ERROR,
    "fatal": logs_pb2.SEVERITY_NUMBER_FATAL,
}


def severity(level: str | None) -> int:
    """Severity number of a level name. Unknown names count as info."""
    return SEVERITIES.get((level or "info").lower(), SEVERITIES["info"])


def level_name(number: int) -> str:
    name = "spew"
    for candidate, threshold in SEVERITIES.items():
        if number >= threshold:
            name = candidate
    return name


_active: Logger | None = None


def _ignore(*args, **kwargs):
    return None


class _LoggerProxy:
    """Module-level handle on the Logger installed by setup_logger().

    Until a logger is installed, logging calls do nothing and span()
    returns an empty context.
    """

    def __getattr__(self, name):
        if _active is not None:
            return getattr(_active, name)
        if name == "span":
            return lambda *args, **kwargs: contextlib.nullcontext()
        return _ignore

    def __enter__(self):
        return self if _active is None else _active.__enter__()

    def __exit__(self, *exc_info):
        return False if _active is None else _active.__exit__(*exc_info)


logger = _LoggerProxy()


class RunLogExporter(SpanExporter):
    """Writes log records to a text stream, one line each.

    Lines are "<time> <LEVEL> <message> | key='value' ..." or, with
    as_json, one JSON object per record.
    """

    # Attributes logfire and OpenTelemetry attach to every record
    INTERNAL_PREFIXES = (
        "code.", "logfire.", "otel.", "telemetry.", "service.", "process.",
    )

    def __init__(
        self, stream: TextIO, min_level: str | None, as_json: bool = False
    ):
        self.stream = stream
        self.min_severity = severity(min_level)
        self.as_json = as_json

    def export(self, spans: list[ReadableSpan]) -> SpanExportResult:
        for span in spans:
            attributes = dict(span.attributes or {})
            number = attributes.get("logfire.level_num", SEVERITIES["info"])
            if number >= self.min_severity:
                self.stream.write(
                    self.render(span, level_name(number), attributes)
                )
        return SpanExportResult.SUCCESS

    def render(
        self, span: ReadableSpan, level: str, attributes: dict[str, Any]
    ) -> str:
        stamp = datetime.fromtimestamp((span.start_time or 0) / 1e9, tz=UTC)
        message = attributes.get("logfire.msg", span.name)
        extra = {
            key: value for key, value in sorted(attributes.items())
            if not key.startswith(self.INTERNAL_PREFIXES)
        }

        if self.as_json:
            record = {
                "time": stamp.isoformat(),
                "level": level,
                "message": message,
                **extra,
            }
            return json.dumps(record, default=str) + "\n"

        line = f"{stamp:%Y-%m-%d %H:%M:%S} {level.upper():<5} {message}"
        if extra:
            line += " | " + " ".join(f"{k}={v!r}" for k, v in extra.items())
        return line + "\n"

    def shutdown(self) -> None:
        pass

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        if not self.stream.closed:
            self.stream.flush()
        return True


class Sink(BaseConfig):
    """One log destination with its own level."""

    enabled: bool = Field(default=True, description="Enable this sink")
    level: str | None = Field(
        default=None,
        description=(
            "Minimum level for this sink (default: the logger's level). "
            "Valid: spew, trace, debug, info, warn, error, fatal"
        ),
    )


class ConsoleSink(Sink):
    """Records printed by logfire's console exporter."""

    verbose: bool = Field(
        default=False,
        description="Print record attributes under each message",
    )
    colors: str = Field(
        default="auto",
        description="Color mode: auto, always, never",
    )

    def options(self) -> ConsoleOptions | bool:
        if not self.enabled:
            return False
        # logfire has no spew level
        level = "trace" if self.level == "spew" else (self.level or "info")
        return ConsoleOptions(
            min_log_level=level,
            verbose=self.verbose,
            colors=self.colors,
            include_timestamps=True,
        )


class FileSink(Sink):
    """Run log file, appended to by every invocation."""

    enabled: bool = Field(default=False, description="Write a run log")
    path: str = Field(
        default="{log_root}/{run_name}/flowsync.log",
        description="Log file path; {log_root} and {run_name} are expanded",
    )
    json_lines: bool = Field(
        default=False,
        description="Write one JSON object per record instead of text",
    )

    _stream: TextIO | None = PrivateAttr(default=None)
    _processor: BatchSpanProcessor | None = PrivateAttr(default=None)

    @property
    def is_open(self) -> bool:
        return self._stream is not None and not self._stream.closed

    def open(self, log_root: Path, run_name: str) -> BatchSpanProcessor:
        """Open the log file and return the processor that feeds it."""
        target = Path(self.path.format(log_root=log_root, run_name=run_name))
        target.parent.mkdir(parents=True, exist_ok=True)
        # Line buffered; stays open until close()
        self._stream = open(target, "a", buffering=1, encoding="utf-8")  # noqa: SIM115
        self._processor = BatchSpanProcessor(
            RunLogExporter(self._stream, self.level, as_json=self.json_lines)
        )
        return self._processor

    def close(self):
        """Flush queued records, then close the file."""
        if self._processor is not None:
            self._processor.shutdown()
            self._processor = None
        if self.is_open:
            self._stream.close()


class Logger(BaseConfig):
    """The console and file sinks plus the logging calls used by flowsync.

    Closing the logger closes its sinks through the BaseCloseable
    cascade.
    """

    level: str = Field(
        default="info",
        description="Level for sinks that do not set their own",
    )
    console: ConsoleSink = Field(default_factory=ConsoleSink)
    file: FileSink = Field(default_factory=FileSink)

    @model_validator(mode="after")
    def _inherit_level(self) -> Logger:
        for sink in (self.console, self.file):
            if sink.level is None:
                sink.level = self.level
        return self

    def setup(self, log_root: Path, run_name: str):
        processors = []
        if self.file.enabled:
            processors.append(self.file.open(log_root, run_name))

        logfire.configure(
            service_name=f"flowsync-{run_name}",
            send_to_logfire=False,
            console=self.console.options(),
            additional_span_processors=processors or None,
        )

    def log(self, level: str, msg: str, **attributes):
        logfire.log(severity(level), msg, attributes=attributes or None)

    def spew(self, msg: str, **attributes):
        self.log("spew", msg, **attributes)

    def trace(self, msg: str, **attributes):
        self.log("trace", msg, **attributes)

    def debug(self, msg: str, **attributes):
        self.log("debug", msg, **attributes)

    def info(self, msg: str, **attributes):
        self.log("info", msg, **attributes)

    def warn(self, msg: str, **attributes):
        self.log("warn", msg, **attributes)

    def error(self, msg: str, **attributes):
        self.log("error", msg, **attributes)

    def span(self, msg: str, **attributes):
        """Group the records logged inside a with block.

            with logger.span("sync", with_branch="main"):
                ...
        """
        return logfire.span(msg, **attributes)


def setup_logger(
    log_root: Path,
    run_name: str,
    console: ConsoleSink | None = None,
    file: FileSink | None = None,
    level: str = "info",
) -> Logger:
    """Install the Logger behind the module-level `logger`.

    Called by Config once it has loaded, and by tests.
    """
    global _active

    _active = Logger(
        level=level,
        console=console or ConsoleSink(),
        file=file or FileSink(),
    )
    _active.setup(log_root, run_name)
    return _active
