from __future__ import annotations

import pytest

from cognitive_flux.cognitive_core import LogEntry, SeededRng
from cognitive_flux.puzzles import generate_puzzle
from cognitive_flux.results import summarize_log
from cognitive_flux.stimulus import Family, HistoryItem


def _entry(i: int, *, correct: bool, rt: float, timed_out: bool = False, repair: bool = False) -> LogEntry:
    stim = generate_puzzle(Family.FEATURE, None, False, 1, SeededRng(i)).stimulus
    item = HistoryItem(result="EXACT", stimulus=stim)
    return LogEntry(
        id=i,
        timestamp="2026-01-01T00:00:00+00:00",
        rating=1000 + i,
        n_back_item=None if repair else item,
        current_item=item,
        user_answer=None if timed_out else True,
        is_match=True,
        is_correct=correct,
        reaction_time_s=rt,
        is_repair=repair,
        timed_out=timed_out,
    )


def test_empty_log() -> None:
    s = summarize_log(())
    assert s.attempted == 0
    assert s.accuracy == 0.0
    assert s.mean_rt_ms is None and s.median_rt_ms is None
    assert s.final_rating is None


def test_summary_counts_and_reaction_times() -> None:
    log = (
        _entry(4, correct=True, rt=0.4, repair=True),
        _entry(3, correct=False, rt=10.0, timed_out=True),
        _entry(2, correct=True, rt=0.8),
        _entry(1, correct=False, rt=0.6),
    )
    s = summarize_log(log)
    assert s.attempted == 4
    assert s.correct == 2
    assert s.accuracy == 0.5
    assert s.repair_turns == 1
    assert s.timeouts == 1
    assert s.mean_rt_ms == 600.0
    assert s.median_rt_ms == 600.0
    assert s.final_rating == 1004


@pytest.mark.parametrize("correct, expected", [(True, 1007), (False, 997)])
def test_final_rating_applies_the_newest_scored_turn(correct: bool, expected: int) -> None:
    log = (_entry(2, correct=correct, rt=0.5), _entry(1, correct=True, rt=0.5))
    assert summarize_log(log).final_rating == expected
