"""Slot generation.

Pure functions: they take the weekly rules for the weekday, the date
exception (if any) and the set of reserved start minutes, and return the free
slots. Nothing here touches the database, so two calls with the same inputs
always return the same, identically ordered list.
"""
from dataclasses import dataclass
from typing import Iterable, Sequence


@dataclass(frozen=True, order=True)
class Slot:
    start_minute: int
    end_minute: int


@dataclass(frozen=True)
class Window:
    start_minute: int
    end_minute: int
    slot_minutes: int


def partition(window: Window) -> list[Slot]:
    """Cut a window into back-to-back slots; a trailing partial slot is dropped."""
    slots = []
    cur = window.start_minute
    while cur + window.slot_minutes <= window.end_minute:
        slots.append(Slot(cur, cur + window.slot_minutes))
        cur += window.slot_minutes
    return slots


def effective_windows(rules: Sequence, exception, default_slot_minutes: int) -> list[Window]:
    # a day off wins over everything; the weekly template is never consulted
    if exception is not None and not exception.is_available:
        return []
    if exception is not None:
        slot_minutes = exception.slot_minutes or (rules[0].slot_minutes if rules else default_slot_minutes)
        return [Window(exception.start_minute, exception.end_minute, slot_minutes)]
    return [Window(r.start_minute, r.end_minute, r.slot_minutes) for r in rules if r.active]


def template_slots(rules: Sequence, exception, default_slot_minutes: int) -> list[Slot]:
    slots: list[Slot] = []
    for w in effective_windows(rules, exception, default_slot_minutes):
        slots.extend(partition(w))
    return sorted(slots)


def generate_slots(rules: Sequence, exception, occupied: Iterable[int], default_slot_minutes: int) -> list[Slot]:
    taken = set(occupied)
    return [s for s in template_slots(rules, exception, default_slot_minutes) if s.start_minute not in taken]
