"""
Shared fixtures for the test suite.

Centralizes sample sources and diffs so individual test files don't need to
repeat them.
"""

import pytest

from core.sonification.types import (
    Composition,
    CompositionMetadata,
    Instrument,
    Note,
    Track,
)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

ADD_FUNCTION_JS: str = "function add(a, b) { return a + b; }"
"""One-line JavaScript function used by the end-to-end scenarios."""

SMALL_DIFF: str = "--- a\n+++ b\n@@ -1 +1 @@\n+hello\n-world\n"
"""One addition, one removal, trailing newline."""

NESTED_JS: str = """\
// sum the positive values
function total(items) {
  let sum = 0;
  for (const item of items) {
    if (item > 0) {
      sum = sum + item;
    }
  }
  return sum;
}
"""


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def add_function_source() -> str:
    return ADD_FUNCTION_JS


@pytest.fixture
def nested_source() -> str:
    return NESTED_JS


@pytest.fixture
def small_diff() -> str:
    return SMALL_DIFF


@pytest.fixture
def single_quarter_note_composition() -> Composition:
    """One melody track with a single full-velocity C4 quarter note at t=0, 120 BPM."""
    note = Note(
        pitch="C4",
        duration="4n",
        velocity=1.0,
        start_time=0.0,
        instrument=Instrument.MELODY,
    )
    track = Track(
        name="Lead",
        instrument=Instrument.MELODY,
        waveform="sine",
        volume=0.5,
        notes=(note,),
    )
    return Composition(
        title="Test",
        tempo=120,
        time_signature=(4, 4),
        key="C",
        scale="major",
        duration=1.0,
        tracks=(track,),
        metadata=CompositionMetadata(
            source_language="unknown",
            lines_analyzed=1,
            complexity=0,
            content_hash="0" * 16,
            interpretation="test",
        ),
    )
