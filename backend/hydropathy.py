"""Kyte-Doolittle hydropathy over a sliding window."""
from Bio.SeqUtils.ProtParamData import kd

from schemas import HydropathyResult
from translation import translate_protein

WINDOW_SIZE = 9

# Plot axis bounds: the extremes of the Kyte-Doolittle scale
MAX_SCORE = 4.5
MIN_SCORE = -4.5


class InsufficientLengthError(ValueError):
    def __init__(self, length: int):
        self.length = length
        super().__init__(
            f"Protein sequence too short for hydropathy plot "
            f"({length} aa, need at least {WINDOW_SIZE})."
        )


def window_scores(protein: str, window: int = WINDOW_SIZE) -> list[float]:
    """Mean hydropathy of each window; residues off the scale count as 0."""
    if len(protein) < window:
        raise InsufficientLengthError(len(protein))

    values = [kd.get(residue, 0.0) for residue in protein]
    return [
        sum(values[i:i + window]) / window
        for i in range(len(protein) - window + 1)
    ]


def plot_points(
    scores: list[float], width: float = 600, height: float = 200
) -> tuple[list[tuple[float, float]], float]:
    """Map scores onto an SVG-style canvas with y growing downwards."""
    span = MAX_SCORE - MIN_SCORE

    def to_y(score: float) -> float:
        return round(height - (score - MIN_SCORE) / span * height, 3)

    step = width / (len(scores) - 1) if len(scores) > 1 else 0.0
    points = [(round(i * step, 3), to_y(score)) for i, score in enumerate(scores)]
    return points, to_y(0.0)


def hydropathy(sequence: str) -> HydropathyResult:
    """Translate `sequence` and compute its hydropathy profile."""
    protein = translate_protein(sequence)
    scores = window_scores(protein)
    points, zero_y = plot_points(scores)
    return HydropathyResult(
        window_size=WINDOW_SIZE,
        protein_length=len(protein),
        scores=scores,
        points=points,
        zero_y=zero_y,
    )
