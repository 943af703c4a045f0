"""JSON-lines request/response models for the launcher host.

Only the subset of the pop-launcher plugin protocol this plugin needs is
modelled. Requests arrive one JSON value per line on stdin, responses are
written the same way on stdout.
"""

from __future__ import annotations

import asyncio
import sys
from enum import Enum
from typing import Any, AsyncIterator, ClassVar, Literal, Protocol, TextIO, Union

from pydantic import BaseModel, ConfigDict, Field, StrictStr, TypeAdapter, ValidationError

from stackoverflow_plugin.logging import logger
from stackoverflow_plugin.services.exceptions import ProtocolError

STDIN_LINE_LIMIT = 1024 * 1024


class RequestKind(str, Enum):
    SEARCH = "Search"
    ACTIVATE = "Activate"
    INTERRUPT = "Interrupt"
    EXIT = "Exit"
    # Known to the host but not handled by this plugin.
    ACTIVATE_CONTEXT = "ActivateContext"
    COMPLETE = "Complete"
    CONTEXT = "Context"
    QUIT = "Quit"


class LauncherRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: RequestKind
    query: str | None = None
    index: int | None = None


class IconSource(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(serialization_alias="Name")


class SearchEntry(BaseModel):
    """Payload of an ``Append`` response."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    description: str
    keywords: list[str] | None = None
    icon: IconSource | None = None
    exec: str | None = None
    window: tuple[int, int] | None = None


class ResponseKind(str, Enum):
    APPEND = "Append"
    FINISHED = "Finished"
    CLOSE = "Close"


class PluginResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: ResponseKind
    entry: SearchEntry | None = None

    @classmethod
    def append(cls, entry: SearchEntry) -> "PluginResponse":
        return cls(kind=ResponseKind.APPEND, entry=entry)

    @classmethod
    def finished(cls) -> "PluginResponse":
        return cls(kind=ResponseKind.FINISHED)

    @classmethod
    def close(cls) -> "PluginResponse":
        return cls(kind=ResponseKind.CLOSE)


class AppendEnvelope(BaseModel):
    entry: SearchEntry = Field(serialization_alias="Append")


_RESPONSE_KIND_ADAPTER = TypeAdapter(ResponseKind)


def encode_response(response: PluginResponse) -> str:
    if response.kind is ResponseKind.APPEND:
        if response.entry is None:
            raise ProtocolError("Append response requires an entry.")
        envelope = AppendEnvelope(entry=response.entry)
        return envelope.model_dump_json(by_alias=True, exclude_none=True)
    return _RESPONSE_KIND_ADAPTER.dump_json(response.kind).decode()


class _TaggedRequest(BaseModel):
    """Externally tagged request such as ``{"Search": "..."}``."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: ClassVar[RequestKind]

    def to_request(self) -> LauncherRequest:
        return LauncherRequest(kind=self.kind)


class SearchRequest(_TaggedRequest):
    kind: ClassVar[RequestKind] = RequestKind.SEARCH

    query: StrictStr = Field(alias="Search")

    def to_request(self) -> LauncherRequest:
        return LauncherRequest(kind=self.kind, query=self.query)


class ActivateRequest(_TaggedRequest):
    kind: ClassVar[RequestKind] = RequestKind.ACTIVATE

    index: int = Field(alias="Activate", strict=True, ge=0)

    def to_request(self) -> LauncherRequest:
        return LauncherRequest(kind=self.kind, index=self.index)


# Payloads of the requests below are accepted but not used.
class ActivateContextRequest(_TaggedRequest):
    kind: ClassVar[RequestKind] = RequestKind.ACTIVATE_CONTEXT

    payload: Any = Field(alias="ActivateContext")


class CompleteRequest(_TaggedRequest):
    kind: ClassVar[RequestKind] = RequestKind.COMPLETE

    payload: Any = Field(alias="Complete")


class ContextRequest(_TaggedRequest):
    kind: ClassVar[RequestKind] = RequestKind.CONTEXT

    payload: Any = Field(alias="Context")


class QuitRequest(_TaggedRequest):
    kind: ClassVar[RequestKind] = RequestKind.QUIT

    payload: Any = Field(alias="Quit")


RequestEnvelope = Union[
    Literal["Interrupt", "Exit"],
    SearchRequest,
    ActivateRequest,
    ActivateContextRequest,
    CompleteRequest,
    ContextRequest,
    QuitRequest,
]

_REQUEST_ADAPTER: TypeAdapter[RequestEnvelope] = TypeAdapter(RequestEnvelope)


def parse_request(line: str | bytes) -> LauncherRequest:
    """Decode one request line; raises ``ProtocolError`` on anything unrecognised."""

    try:
        envelope = _REQUEST_ADAPTER.validate_json(line)
    except ValidationError as exc:
        raise ProtocolError(f"Unrecognised request ({exc.error_count()} validation errors).") from exc

    if isinstance(envelope, str):
        return LauncherRequest(kind=RequestKind(envelope))
    return envelope.to_request()


class ResponseSink(Protocol):
    async def send(self, response: PluginResponse) -> None: ...


class StdoutSink:
    """Writes responses as JSON lines and flushes after each one."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream or sys.stdout

    async def send(self, response: PluginResponse) -> None:
        self._stream.write(encode_response(response) + "\n")
        self._stream.flush()


async def open_stdin_reader(limit: int = STDIN_LINE_LIMIT) -> asyncio.StreamReader:
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=limit)
    protocol = asyncio.StreamReaderProtocol(reader)
    await loop.connect_read_pipe(lambda: protocol, sys.stdin)
    return reader


async def iter_requests(reader: asyncio.StreamReader) -> AsyncIterator[LauncherRequest]:
    """Yield parsed requests until EOF; malformed lines are logged and skipped."""

    while True:
        try:
            line = await reader.readline()
        except ValueError as exc:
            # Raised for lines over the reader limit; the oversized chunk is already consumed.
            logger.error("invalid_request", error=str(exc))
            continue
        if not line:
            return
        if not line.strip():
            continue
        try:
            request = parse_request(line)
        except ProtocolError as exc:
            logger.error("invalid_request", error=str(exc), line=line[:200].decode("utf-8", "replace"))
            continue
        yield request


__all__ = [
    "ActivateRequest",
    "IconSource",
    "LauncherRequest",
    "PluginResponse",
    "RequestKind",
    "ResponseKind",
    "ResponseSink",
    "STDIN_LINE_LIMIT",
    "SearchEntry",
    "SearchRequest",
    "StdoutSink",
    "encode_response",
    "iter_requests",
    "open_stdin_reader",
    "parse_request",
]
