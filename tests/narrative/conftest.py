from datetime import datetime, timezone

import pytest

from rpg_supreme.narrative.models import ChapterState, NarrativeState


class FakeClock:
    """Stand-in for time.time() that only moves when told to."""

    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, minutes: float) -> None:
        self.now += minutes * 60


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_state():
    def _make(phase="HOOK", phase_progress=0.0, tension=35, template_id="chapter_tutorial", **kw):
        chapter = ChapterState(
            number=1,
            type="ACTION",
            title="Prueba",
            main_conflict="",
            setting="",
            started_at=datetime.now(timezone.utc),
            template_id=template_id,
        )
        return NarrativeState(
            chapter=chapter,
            phase=phase,
            phase_progress=phase_progress,
            tension_level=tension,
            **kw,
        )
    return _make
