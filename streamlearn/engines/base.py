# streamlearn/engines/base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, Iterable, Iterator, List, Optional, TypeVar


InEvent = TypeVar("InEvent")
OutEvent = TypeVar("OutEvent")


class BaseEngine(ABC, Generic[InEvent, OutEvent]):
    """
    Engine base (row-stream state machine):

    - no I/O (no reading / writing files)
    - input row -> zero or more output rows
    - ``None`` is the end-of-stream event
    """

    @abstractmethod
    def process(self, event: Optional[InEvent]) -> List[OutEvent]:
        """
        Handle one row (or end-of-stream when ``event`` is None).
        """
        raise NotImplementedError

    def process_stream(self, events: Iterable[InEvent]) -> Iterator[OutEvent]:
        """
        Feed every row, then end-of-stream; yields output rows as produced.
        """
        for ev in events:
            yield from self.process(ev)
        yield from self.process(None)
