"""FastAPI application for the DNA sequence analyzer."""
import logging

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from blast import AllAttemptsFailedError, BlastOrchestrator, StatusBoard
from config import settings
from hydropathy import InsufficientLengthError, hydropathy
from scanning import InvalidMotifError, scan_guides, search_motif
from schemas import (
    AnalysisResponse, BlastStatus, CleanedSequence, MotifRequest,
    ReverseComplementResult, SequenceRequest,
)
from sequences import (
    EmptySequenceError, SequenceTooShortError, clean_sequence, composition,
    require_sequence, reverse_complement,
)
from translation import NoStartCodonError, translate

logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_methods=["*"],
    allow_headers=["*"],
)

orchestrator = BlastOrchestrator(settings)
status_board = StatusBoard()


def _prepare(text: str, minimum: int = 1) -> tuple[CleanedSequence, str]:
    """Clean raw input; empty or short input becomes a 400."""
    cleaned = clean_sequence(text)
    try:
        sequence = require_sequence(cleaned, minimum)
    except (EmptySequenceError, SequenceTooShortError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not cleaned.is_valid:
        logger.info("Analyzing sequence with invalid characters: %s", cleaned.invalid_chars)
    return cleaned, sequence


def _respond(cleaned: CleanedSequence, result=None) -> AnalysisResponse:
    return AnalysisResponse(sequence=cleaned, warning=cleaned.warning, result=result)


@app.get("/api/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}

# --- Sequence endpoints ---

@app.post("/api/clean")
async def clean(request: SequenceRequest) -> AnalysisResponse:
    """Normalize pasted text and report invalid residues."""
    return _respond(clean_sequence(request.text))

@app.post("/api/composition")
async def composition_endpoint(request: SequenceRequest) -> AnalysisResponse:
    cleaned, sequence = _prepare(request.text)
    return _respond(cleaned, composition(sequence))

@app.post("/api/reverse-complement")
async def reverse_complement_endpoint(request: SequenceRequest) -> AnalysisResponse:
    cleaned, sequence = _prepare(request.text)
    result = ReverseComplementResult(
        original=sequence, reverse_complement=reverse_complement(sequence)
    )
    return _respond(cleaned, result)

# --- Protein endpoints ---

@app.post("/api/translate")
async def translate_endpoint(request: SequenceRequest) -> AnalysisResponse:
    """Translate from the first ATG."""
    cleaned, sequence = _prepare(request.text)
    try:
        return _respond(cleaned, translate(sequence))
    except NoStartCodonError as e:
        raise HTTPException(status_code=422, detail=str(e))

@app.post("/api/hydropathy")
async def hydropathy_endpoint(request: SequenceRequest) -> AnalysisResponse:
    """Kyte-Doolittle profile of the translated protein."""
    cleaned, sequence = _prepare(request.text)
    try:
        return _respond(cleaned, hydropathy(sequence))
    except (NoStartCodonError, InsufficientLengthError) as e:
        raise HTTPException(status_code=422, detail=str(e))

# --- Search endpoints ---

@app.post("/api/motifs")
async def motifs(request: MotifRequest) -> AnalysisResponse:
    """Find every (overlapping) occurrence of a motif."""
    cleaned, sequence = _prepare(request.text)
    try:
        return _respond(cleaned, search_motif(sequence, request.motif))
    except InvalidMotifError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.post("/api/guides")
async def guides(request: SequenceRequest) -> AnalysisResponse:
    """SpCas9 (NGG) guide-RNA candidates on the forward strand."""
    cleaned, sequence = _prepare(request.text)
    return _respond(cleaned, scan_guides(sequence))

# --- Identification endpoints ---

@app.post("/api/identify")
async def identify(request: SequenceRequest) -> AnalysisResponse:
    """Identify the source organism via NCBI BLAST."""
    cleaned, sequence = _prepare(request.text, settings.MIN_BLAST_LENGTH)
    ticket = status_board.begin()
    try:
        result = await orchestrator.identify(sequence, on_status=status_board.observer(ticket))
    except AllAttemptsFailedError as e:
        raise HTTPException(status_code=503, detail=f"Service Unavailable: {e}")
    return _respond(cleaned, result)

@app.get("/api/identify/status")
async def identify_status() -> BlastStatus:
    """Status of the most recent identification."""
    return status_board.current


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=settings.LOG_LEVEL.upper())
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL)
