"""Content-Length message framing over a byte stream.

Frame layout::

    Content-Length: <n>\\r\\n
    <Other-Header>: <value>\\r\\n      (optional, ignored)
    \\r\\n
    <n raw payload bytes>             (no trailing delimiter)

- Header lines are ``key: value`` terminated by ``\\n`` (a trailing ``\\r``
  is stripped)
- Only ``Content-Length`` is interpreted; the key match is case-sensitive
- The body length is a byte count, not a character count

The codec knows nothing about JSON. Reading distinguishes a clean end of
input (``None``) from a frame cut short by the peer (:class:`TruncatedFrameError`)
and from a header block that cannot be used (:class:`FrameError`).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import BinaryIO

CONTENT_LENGTH = "Content-Length"
HEADER_ENCODING = "ascii"
PAYLOAD_ENCODING = "utf-8"
READ_CHUNK_SIZE = 65536


class FrameError(Exception):
    """The header block of a frame could not be interpreted."""


class TruncatedFrameError(FrameError):
    """The stream ended in the middle of a frame."""


@dataclass
class Frame:
    """A single payload read off the wire."""

    payload: bytes
    headers: dict[str, str] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.payload)

    def __repr__(self) -> str:
        preview = self.payload[:40]
        suffix = "..." if len(self.payload) > 40 else ""
        return f"Frame(length={len(self.payload)}, payload={preview!r}{suffix})"


def build_frame(payload: str | bytes) -> bytes:
    """Build the wire representation of one frame.

    Args:
        payload: Already-serialized message. ``str`` is encoded as UTF-8.

    Returns:
        Header block, blank line and payload as one ``bytes`` object.
    """
    if isinstance(payload, str):
        payload = payload.encode(PAYLOAD_ENCODING)
    header = f"{CONTENT_LENGTH}: {len(payload)}\r\n\r\n".encode(HEADER_ENCODING)
    return header + payload


def write_frame(stream: BinaryIO, payload: str | bytes) -> None:
    """Write one frame and flush so the peer sees it immediately."""
    stream.write(build_frame(payload))
    stream.flush()


def _parse_length(value: str) -> int:
    # Plain ASCII digits only; int() would also take "+5" and "1_0"
    if not (value.isascii() and value.isdigit()):
        raise FrameError(f"Invalid {CONTENT_LENGTH} value: {value!r}")
    return int(value)


def _read_headers(stream: BinaryIO) -> dict[str, str] | None:
    """Read the header block, returning ``None`` on a clean end of input."""
    headers: dict[str, str] = {}
    saw_header = False
    while True:
        raw = stream.readline()
        if not raw:
            if saw_header:
                raise TruncatedFrameError("Stream ended inside a header block")
            return None

        line = raw.decode(HEADER_ENCODING, errors="replace").rstrip("\n")
        if line.endswith("\r"):
            line = line[:-1]

        if not line:
            if saw_header:
                return headers
            # Blank lines between frames
            continue

        saw_header = True
        key, sep, value = line.partition(":")
        if not sep:
            continue
        headers[key.strip()] = value.strip()


def _read_exact(stream: BinaryIO, length: int) -> bytes:
    chunks: list[bytes] = []
    remaining = length
    while remaining > 0:
        chunk = stream.read(min(remaining, READ_CHUNK_SIZE))
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def read_frame(stream: BinaryIO) -> Frame | None:
    """Read the next frame from a binary stream.

    Args:
        stream: Readable binary stream positioned at a frame boundary.

    Returns:
        The next :class:`Frame`, or ``None`` if the stream ended cleanly
        between frames.

    Raises:
        TruncatedFrameError: The stream ended inside the header block or
            before the declared number of body bytes arrived.
        FrameError: The header block has no usable ``Content-Length``.
    """
    headers = _read_headers(stream)
    if headers is None:
        return None

    if CONTENT_LENGTH not in headers:
        raise FrameError(f"Missing {CONTENT_LENGTH} header")
    length = _parse_length(headers[CONTENT_LENGTH])

    payload = _read_exact(stream, length)
    if len(payload) != length:
        raise TruncatedFrameError(
            f"Expected {length} payload bytes, got {len(payload)}"
        )
    return Frame(payload=payload, headers=headers)
