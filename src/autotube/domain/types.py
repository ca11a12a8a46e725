"""Domain types — NewType aliases for type-safe identifiers."""

from typing import NewType

RunId = NewType("RunId", str)
EventId = NewType("EventId", str)
VideoId = NewType("VideoId", str)
