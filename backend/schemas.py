"""Data models for the sequence analyzer."""
from enum import Enum
from typing import Optional

from pydantic import BaseModel

# --- Requests ---

class SequenceRequest(BaseModel):
    text: str  # raw user input, FASTA or bare sequence

class MotifRequest(BaseModel):
    text: str
    motif: str

# --- Analyses ---

class CleanedSequence(BaseModel):
    sequence: str
    is_valid: bool
    invalid_chars: str = ""

    @property
    def length(self) -> int:
        return len(self.sequence)

    @property
    def warning(self) -> Optional[str]:
        if self.is_valid:
            return None
        return f"Invalid characters detected ({self.invalid_chars})."

class CompositionStats(BaseModel):
    length: int
    gc_percent: float
    count_a: int
    count_t: int
    count_g: int
    count_c: int

class ReverseComplementResult(BaseModel):
    original: str
    reverse_complement: str

class TranslationResult(BaseModel):
    start: int  # 1-based position of the start codon
    protein: str
    length: int
    stop_codon_found: bool
    coding_length: int  # bases consumed, stop codon included when found
    molecular_weight_kda: float
    composition: dict[str, int]  # side-chain class -> residue count

class HydropathyResult(BaseModel):
    window_size: int
    protein_length: int
    scores: list[float]
    points: list[tuple[float, float]]  # polyline coordinates for the plot
    zero_y: float

class MotifResult(BaseModel):
    motif: str
    positions: list[int]  # 1-based
    count: int

class GuideCandidate(BaseModel):
    position: int  # 1-based start of the protospacer
    protospacer: str
    pam: str

class GuideScanResult(BaseModel):
    pam: str = "NGG"
    strand: str = "forward"
    count: int
    candidates: list[GuideCandidate]

# --- Identification ---

class BlastHit(BaseModel):
    id: str
    name: str
    description: str
    image: Optional[str] = None
    wiki_url: str = ""

class IdentificationResult(BaseModel):
    hits: list[BlastHit]
    database: str
    database_label: str
    transport: str
    request_id: str
    attempts: int

class BlastStep(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    WAITING = "waiting"
    PARSING = "parsing"
    FETCHING_IMAGES = "fetching_images"
    COMPLETE = "complete"
    ERROR = "error"

class BlastStatus(BaseModel):
    step: BlastStep = BlastStep.IDLE
    message: str = ""
    invocation: int = 0

# --- Envelope ---

class AnalysisResponse(BaseModel):
    """Any analysis result plus the invalid-character warning, if any."""
    sequence: CleanedSequence
    warning: Optional[str] = None
    result: Optional[
        CompositionStats
        | ReverseComplementResult
        | TranslationResult
        | HydropathyResult
        | MotifResult
        | GuideScanResult
        | IdentificationResult
    ] = None
