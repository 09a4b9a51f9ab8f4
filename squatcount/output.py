"""Output sink interface and the implementations shipped with the package.

The counting core never touches a display directly. Everything a user sees
(counter, depth slider, status colour, countdown text, instruction image)
goes through an :class:`OutputSink`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Protocol, Tuple


class PhaseIndicator(str, Enum):
    """Status colour shown next to the counter."""

    NEUTRAL = "neutral"
    CALIBRATING = "calibrating"
    READY = "ready"


class OutputSink(Protocol):
    def show_counter(self, count: int) -> None: ...

    def move_slider(self, value: float) -> None: ...

    def set_indicator(self, indicator: PhaseIndicator) -> None: ...

    def show_message(self, text: str) -> None: ...

    def show_instruction_image(self, path: Optional[str]) -> None: ...


class FanoutSink:
    """Forward every update to each wrapped sink, in order."""

    def __init__(self, *sinks: OutputSink) -> None:
        self.sinks = sinks

    def show_counter(self, count: int) -> None:
        for sink in self.sinks:
            sink.show_counter(count)

    def move_slider(self, value: float) -> None:
        for sink in self.sinks:
            sink.move_slider(value)

    def set_indicator(self, indicator: PhaseIndicator) -> None:
        for sink in self.sinks:
            sink.set_indicator(indicator)

    def show_message(self, text: str) -> None:
        for sink in self.sinks:
            sink.show_message(text)

    def show_instruction_image(self, path: Optional[str]) -> None:
        for sink in self.sinks:
            sink.show_instruction_image(path)


@dataclass
class RecordingSink:
    """Sink that keeps the latest displayed values and an event history.

    With ``keep_events=False`` only the latest values are kept, which is what
    long-running sessions use to build their per-frame reports.
    """

    counter: int = 0
    slider: float = 0.0
    indicator: PhaseIndicator = PhaseIndicator.NEUTRAL
    message: str = ""
    instruction_image: Optional[str] = None
    keep_events: bool = True
    events: List[Tuple[str, Any]] = field(default_factory=list)

    def _record(self, kind: str, value: Any) -> None:
        if self.keep_events:
            self.events.append((kind, value))

    def show_counter(self, count: int) -> None:
        self.counter = count
        self._record("counter", count)

    def move_slider(self, value: float) -> None:
        self.slider = value
        self._record("slider", value)

    def set_indicator(self, indicator: PhaseIndicator) -> None:
        self.indicator = indicator
        self._record("indicator", indicator)

    def show_message(self, text: str) -> None:
        self.message = text
        self._record("message", text)

    def show_instruction_image(self, path: Optional[str]) -> None:
        self.instruction_image = path
        self._record("image", path)

    def of_kind(self, kind: str) -> List[Any]:
        """Return the values of every recorded event of ``kind``."""
        return [value for event_kind, value in self.events if event_kind == kind]
