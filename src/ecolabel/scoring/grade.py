"""EcoScore to letter grade classification."""

from ..models import EcoLabel, Grade

# (minimum score, label), highest band first
GRADE_BANDS: list[tuple[int, EcoLabel]] = [
    (80, EcoLabel(Grade.A, "Excellent", "#00852e")),
    (65, EcoLabel(Grade.B, "Good", "#6cae3a")),
    (50, EcoLabel(Grade.C, "Fair", "#b0cc33")),
    (35, EcoLabel(Grade.D, "Poor", "#fdd835")),
    (20, EcoLabel(Grade.E, "Very Poor", "#ff9800")),
]
LOWEST_BAND = EcoLabel(Grade.F, "Critical", "#ff5722")


def classify(score: float) -> EcoLabel:
    """Get the grade, label and color for an EcoScore."""
    for minimum, label in GRADE_BANDS:
        if score >= minimum:
            return label
    return LOWEST_BAND
