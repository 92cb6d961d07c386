"""
Tests for the medication sequencing rules.

The advisor is a pure function, so most cases are plain table checks; the
non-shockable rule is covered with property-based testing.
"""

from datetime import UTC, datetime

import pytest
from hypothesis import given
from hypothesis import strategies as st

from arrest_assist.domain.models import (
    InterventionKind,
    InterventionRecord,
    MedicationCategory,
    Rhythm,
)
from arrest_assist.services.intervention_log import InterventionLog
from arrest_assist.services.medication_advisor import (
    AMIODARONE_150MG,
    AMIODARONE_300MG,
    EPINEPHRINE_1MG,
    recommend_from_log,
    recommend_medication,
)


@pytest.mark.parametrize(
    "epinephrine_count,amiodarone_count,expected",
    [
        (0, 0, EPINEPHRINE_1MG),
        (0, 3, EPINEPHRINE_1MG),
        (1, 0, AMIODARONE_300MG),
        (1, 1, EPINEPHRINE_1MG),
        (2, 1, AMIODARONE_150MG),
        (2, 2, EPINEPHRINE_1MG),
        (5, 2, EPINEPHRINE_1MG),
        (2, 0, EPINEPHRINE_1MG),
    ],
)
def test_shockable_sequence(epinephrine_count: int, amiodarone_count: int, expected) -> None:
    assert recommend_medication(Rhythm.SHOCKABLE, epinephrine_count, amiodarone_count) == expected


@given(
    rhythm=st.sampled_from([Rhythm.NON_SHOCKABLE, Rhythm.UNSET]),
    epinephrine_count=st.integers(min_value=0, max_value=50),
    amiodarone_count=st.integers(min_value=0, max_value=50),
)
def test_non_shockable_always_gets_epinephrine(
    rhythm: Rhythm, epinephrine_count: int, amiodarone_count: int
) -> None:
    assert recommend_medication(rhythm, epinephrine_count, amiodarone_count) == EPINEPHRINE_1MG


@given(
    epinephrine_count=st.integers(min_value=0, max_value=20),
    amiodarone_count=st.integers(min_value=0, max_value=20),
)
def test_lidocaine_is_never_recommended(epinephrine_count: int, amiodarone_count: int) -> None:
    recommendation = recommend_medication(Rhythm.SHOCKABLE, epinephrine_count, amiodarone_count)
    assert recommendation.medication != InterventionKind.LIDOCAINE


def test_recommendation_labels() -> None:
    assert EPINEPHRINE_1MG.label == "Epinephrine 1 mg"
    assert AMIODARONE_300MG.label == "Amiodarone 300 mg"
    assert AMIODARONE_150MG.label == "Amiodarone 150 mg"
    assert AMIODARONE_300MG.category == MedicationCategory.ANTIARRHYTHMIC


def test_recommend_from_log_counts_doses() -> None:
    log = InterventionLog()
    for kind in (
        InterventionKind.EPINEPHRINE,
        InterventionKind.SHOCK,
        InterventionKind.LIDOCAINE,
    ):
        log.append(
            InterventionRecord(
                kind=kind, elapsed_at_recording="01:00", wall_clock_time=datetime.now(UTC)
            )
        )

    # Lidocaine does not count as an amiodarone dose
    assert recommend_from_log(Rhythm.SHOCKABLE, log) == AMIODARONE_300MG
    # Reading the log never appends to it
    assert len(log) == 3
