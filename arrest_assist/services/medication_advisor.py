"""
Medication sequencing for the cardiac-arrest algorithm.

Shockable rhythms alternate vasopressor and antiarrhythmic:
epinephrine > amiodarone 300 mg > epinephrine > amiodarone 150 mg > epinephrine...
Non-shockable rhythms only ever receive epinephrine. The advisor is a pure
function of the rhythm and the dose counts; it never writes to the log.
"""

from arrest_assist.domain.models import (
    InterventionKind,
    MedicationCategory,
    MedicationRecommendation,
    Rhythm,
)
from arrest_assist.services.intervention_log import InterventionLog

EPINEPHRINE_1MG = MedicationRecommendation(
    category=MedicationCategory.EPINEPHRINE,
    medication=InterventionKind.EPINEPHRINE,
    dose_mg=1,
)
AMIODARONE_300MG = MedicationRecommendation(
    category=MedicationCategory.ANTIARRHYTHMIC,
    medication=InterventionKind.AMIODARONE,
    dose_mg=300,
)
AMIODARONE_150MG = MedicationRecommendation(
    category=MedicationCategory.ANTIARRHYTHMIC,
    medication=InterventionKind.AMIODARONE,
    dose_mg=150,
)


def recommend_medication(
    rhythm: Rhythm, epinephrine_count: int, amiodarone_count: int
) -> MedicationRecommendation:
    """Return the next recommended drug for the given rhythm and dose counts."""
    if rhythm != Rhythm.SHOCKABLE:
        return EPINEPHRINE_1MG

    # First match wins
    if epinephrine_count == 0:
        return EPINEPHRINE_1MG
    if epinephrine_count == 1 and amiodarone_count == 0:
        return AMIODARONE_300MG
    if epinephrine_count == 1 and amiodarone_count == 1:
        return EPINEPHRINE_1MG
    if epinephrine_count == 2 and amiodarone_count == 1:
        return AMIODARONE_150MG
    return EPINEPHRINE_1MG


def recommend_from_log(rhythm: Rhythm, log: InterventionLog) -> MedicationRecommendation:
    return recommend_medication(
        rhythm,
        epinephrine_count=log.count_of(InterventionKind.EPINEPHRINE),
        amiodarone_count=log.count_of(InterventionKind.AMIODARONE),
    )
