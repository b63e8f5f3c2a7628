"""Exact motif search and SpCas9 guide-RNA site discovery."""
import re

from schemas import GuideCandidate, GuideScanResult, MotifResult

PROTOSPACER_LENGTH = 20
PAM_LENGTH = 3


class InvalidMotifError(ValueError):
    def __init__(self):
        super().__init__("Invalid motif. Only A, T, G, C allowed.")


def clean_motif(motif: str) -> str:
    cleaned = re.sub(r"[^ATGC]", "", (motif or "").upper())
    if not cleaned:
        raise InvalidMotifError()
    return cleaned


def find_motif(sequence: str, motif: str) -> list[int]:
    """1-based start of every occurrence of `motif`, overlaps included."""
    positions = []
    pos = sequence.find(motif)
    while pos != -1:
        positions.append(pos + 1)
        pos = sequence.find(motif, pos + 1)
    return positions


def search_motif(sequence: str, motif: str) -> MotifResult:
    motif = clean_motif(motif)
    positions = find_motif(sequence, motif)
    return MotifResult(motif=motif, positions=positions, count=len(positions))


def find_guides(sequence: str) -> list[GuideCandidate]:
    """Forward-strand NGG sites with a full 20 bp protospacer upstream.

    The reverse strand is not scanned.
    """
    candidates = []
    for i in range(PROTOSPACER_LENGTH, len(sequence) - 2):
        if sequence[i + 1:i + PAM_LENGTH] == "GG":
            candidates.append(GuideCandidate(
                position=i - PROTOSPACER_LENGTH + 1,
                protospacer=sequence[i - PROTOSPACER_LENGTH:i],
                pam=sequence[i:i + PAM_LENGTH],
            ))
    return candidates


def scan_guides(sequence: str) -> GuideScanResult:
    candidates = find_guides(sequence)
    return GuideScanResult(count=len(candidates), candidates=candidates)
