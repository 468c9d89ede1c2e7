"""
Source buffers and byte-offset spans for the TALA syntax layer.

Classes:
    SourceFile: An immutable, named source buffer. Stands in for the source map owned by
        the diagnostics layer; it only knows how to convert character indexes into UTF-8
        byte offsets and to slice text back out of a span.
    Span: A `(lo, hi)` byte range into a `SourceFile`.

Line/column rendering belongs to the diagnostics layer that consumes these spans.
"""

from __future__ import annotations

from typing import Any


class SourceFile:
    """An immutable source buffer.

    Attributes:
        name (str): Display name, e.g. a path or `<input>`.
        text (str): The full source text.
    """

    def __init__(self, text: str, name: str = "<input>") -> None:
        self.name = name
        self.text = text
        self._encoded = text.encode("utf-8")
        # None means the text is pure ASCII and char index == byte offset
        self._offsets: list[int] | None = None
        if len(self._encoded) != len(text):
            offsets = [0]
            for ch in text:
                offsets.append(offsets[-1] + len(ch.encode("utf-8")))
            self._offsets = offsets

    def __repr__(self) -> str:
        return f"SourceFile({self.name!r}, {len(self._encoded)} bytes)"

    def __len__(self) -> int:
        return len(self._encoded)

    def byte_offset(self, index: int) -> int:
        """Converts a character index into a UTF-8 byte offset."""
        if self._offsets is None:
            return index
        return self._offsets[index]

    def span(self, start: int, end: int) -> Span:
        """Builds a span from character indexes `[start, end)`."""
        return Span(self.byte_offset(start), self.byte_offset(end), self)

    def full_span(self) -> Span:
        return Span(0, len(self._encoded), self)

    def slice(self, span: Span) -> str:
        """Returns the source text covered by `span`."""
        return self._encoded[span.lo : span.hi].decode("utf-8", errors="replace")


class Span:
    """A byte-offset range into a source buffer.

    Equality and hashing only consider `(lo, hi)`, so trees parsed from two
    separate buffers with identical text compare equal.

    Attributes:
        lo (int): Inclusive start byte offset.
        hi (int): Exclusive end byte offset.
        source (SourceFile | None): The buffer the offsets refer to.
    """

    __slots__ = ("lo", "hi", "source")

    def __init__(self, lo: int, hi: int, source: SourceFile | None = None) -> None:
        if lo > hi:
            raise ValueError(f"Span start {lo} is after its end {hi}")
        object.__setattr__(self, "lo", lo)
        object.__setattr__(self, "hi", hi)
        object.__setattr__(self, "source", source)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Span is immutable")

    def __repr__(self) -> str:
        return f"Span({self.lo}, {self.hi})"

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, Span) and (self.lo, self.hi) == (other.lo, other.hi)

    def __hash__(self) -> int:
        return hash((self.lo, self.hi))

    def __len__(self) -> int:
        return self.hi - self.lo

    def to(self, other: Span) -> Span:
        """Returns the smallest span covering both `self` and `other`."""
        return Span(min(self.lo, other.lo), max(self.hi, other.hi), self.source)

    def text(self) -> str:
        if self.source is None:
            return ""
        return self.source.slice(self)


__all__ = ["SourceFile", "Span"]
