from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from .cognitive_core import LogEntry
from .rating import apply_rating


@dataclass(frozen=True, slots=True)
class SessionSummary:
    """Aggregate view of a session log, shown on the feedback panel."""

    attempted: int
    correct: int
    accuracy: float
    repair_turns: int
    timeouts: int
    mean_rt_ms: float | None
    median_rt_ms: float | None
    final_rating: int | None


def summarize_log(log: Sequence[LogEntry]) -> SessionSummary:
    """Summarise a newest-first session log."""

    attempted = len(log)
    correct = sum(1 for e in log if e.is_correct)
    answered = [e for e in log if not e.timed_out]
    rts_ms = sorted(int(round(e.reaction_time_s * 1000.0)) for e in answered)

    mean_ms: float | None
    median_ms: float | None
    if not rts_ms:
        mean_ms = None
        median_ms = None
    else:
        mean_ms = float(sum(rts_ms)) / float(len(rts_ms))
        mid = len(rts_ms) // 2
        if len(rts_ms) % 2 == 1:
            median_ms = float(rts_ms[mid])
        else:
            median_ms = float(rts_ms[mid - 1] + rts_ms[mid]) / 2.0

    return SessionSummary(
        attempted=attempted,
        correct=correct,
        accuracy=0.0 if attempted == 0 else correct / attempted,
        repair_turns=sum(1 for e in log if e.is_repair),
        timeouts=sum(1 for e in log if e.timed_out),
        mean_rt_ms=mean_ms,
        median_rt_ms=median_ms,
        final_rating=_final_rating(log),
    )


def _final_rating(log: Sequence[LogEntry]) -> int | None:
    # Entries carry the rating a turn was played at.
    if not log:
        return None
    last = log[0]
    if last.is_repair:
        return last.rating
    return apply_rating(last.rating, last.is_correct)
