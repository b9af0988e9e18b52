"""Container stack tracking where a value is being converted."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from scriptag.language.spec import Container, Frame


class Stack:
    """LIFO stack of container frames.

    The top frame decides which kinds may be converted next. Container
    conversions should enter frames through :meth:`frame` so the pop happens
    even when the conversion is abandoned part way.
    """

    def __init__(self, root: Container | None = None):
        self._frames: list[Frame] = []
        if root is not None:
            self.push(root)

    @property
    def top(self) -> Frame | None:
        return self._frames[-1] if self._frames else None

    def __len__(self) -> int:
        return len(self._frames)

    def __iter__(self) -> Iterator[Frame]:
        return iter(self._frames)

    def push(self, type: Container, indent: str | None = None) -> Frame:
        """Push a frame, inheriting the current indent unless given."""
        if indent is None:
            indent = self.top.indent if self.top else ""
        frame = Frame(Container(type), indent)
        self._frames.append(frame)
        return frame

    def pop(self) -> Frame | None:
        return self._frames.pop() if self._frames else None

    @contextmanager
    def frame(self, type: Container, indent: str | None = None) -> Iterator[Frame]:
        frame = self.push(type, indent)
        try:
            yield frame
        finally:
            self.pop()
