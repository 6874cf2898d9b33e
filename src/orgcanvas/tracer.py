"""
Debug tracing for the interaction state machine.

When an InteractionController is created with ``debug=True`` it records every
event it handles: which state it was in, which state it moved to, and which
intents it applied. This is primarily useful for:

1. Debugging gesture handling (why did this release not create a connection?)
2. Writing targeted tests (asserting on the exact transition sequence)

Usage:
    >>> controller = InteractionController(session, debug=True)
    >>> controller.pointer_down(10, 10, HitTarget.empty())
    >>> controller.pointer_up(10, 10)
    >>> print(controller.trace.summary())
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple


@dataclass
class TransitionRecord:
    """
    Record of one handled event.

    Attributes:
        event: Event name (e.g. "pointer_down", "pointer_move").
        args: Event arguments as passed by the host.
        before: Name of the state before the event.
        after: Name of the state after the event.
        intents: Intents applied while handling the event.
    """

    event: str
    args: Tuple[Any, ...]
    before: str
    after: str
    intents: List[Any] = field(default_factory=list)

    @property
    def changed_state(self) -> bool:
        return self.before != self.after

    def __str__(self) -> str:
        head = f"{self.event}{self.args}: {self.before}"
        if self.changed_state:
            head += f" -> {self.after}"
        if self.intents:
            head += " [" + ", ".join(repr(i) for i in self.intents) + "]"
        return head


@dataclass
class InteractionTrace:
    """
    Complete trace of the events handled by one controller.

    Attributes:
        records: Handled events in order.
    """

    records: List[TransitionRecord] = field(default_factory=list)

    def add(self, record: TransitionRecord) -> None:
        self.records.append(record)

    def get_transitions(self) -> List[Tuple[str, str]]:
        """(before, after) pairs for events that changed state."""
        return [(r.before, r.after) for r in self.records if r.changed_state]

    def get_intents(self) -> List[Any]:
        return [i for r in self.records for i in r.intents]

    def get_records_by_event(self, event: str) -> List[TransitionRecord]:
        return [r for r in self.records if r.event == event]

    def clear(self) -> None:
        self.records.clear()

    def summary(self) -> str:
        """Human-readable overview: counts by event and intent type."""
        lines = [
            "=" * 60,
            "INTERACTION TRACE SUMMARY",
            "=" * 60,
            "",
            f"Events handled: {len(self.records)}",
            f"State transitions: {len(self.get_transitions())}",
            "",
        ]

        event_counts: Dict[str, int] = {}
        for r in self.records:
            event_counts[r.event] = event_counts.get(r.event, 0) + 1
        lines.append("Events:")
        for event, count in sorted(event_counts.items(), key=lambda x: -x[1]):
            lines.append(f"  {event}: {count}")

        intent_counts: Dict[str, int] = {}
        for intent in self.get_intents():
            name = type(intent).__name__
            intent_counts[name] = intent_counts.get(name, 0) + 1
        lines.append("")
        lines.append("Intents:")
        for name, count in sorted(intent_counts.items(), key=lambda x: -x[1]):
            lines.append(f"  {name}: {count}")

        return "\n".join(lines)

    def dump(self) -> str:
        """Summary followed by every record."""
        lines = [self.summary(), "", "-" * 40]
        lines.extend(str(r) for r in self.records)
        return "\n".join(lines)

    def dump_to_file(self, filename: str) -> None:
        """Write the complete trace dump to a file."""
        with open(filename, "w", encoding="utf-8") as f:
            f.write(self.dump())
