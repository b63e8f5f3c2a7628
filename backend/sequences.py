"""Sequence cleaning, composition and reverse complement."""
import re

from schemas import CleanedSequence, CompositionStats

NON_SEQUENCE = re.compile(r"[\s0-9]")
INVALID_BASES = re.compile(r"[^ATGC]")

COMPLEMENT = str.maketrans("ATGC", "TACG")


class EmptySequenceError(ValueError):
    """Raised when an analysis is requested on an empty sequence."""

    def __init__(self):
        super().__init__("Please enter a DNA sequence first.")


class SequenceTooShortError(ValueError):
    def __init__(self, length: int, minimum: int):
        self.length = length
        self.minimum = minimum
        super().__init__(
            f"Sequence too short ({length} bp). Minimum {minimum} nucleotides required."
        )


def clean_sequence(raw: str) -> CleanedSequence:
    """Strip a FASTA header, whitespace and digits, and upper-case the rest.

    Characters other than A/T/G/C are kept in the sequence and reported in
    `invalid_chars`, in order and with duplicates.
    """
    text = raw or ""
    if text.strip().startswith(">"):
        text = "\n".join(text.strip().split("\n")[1:])

    sequence = NON_SEQUENCE.sub("", text).upper()
    invalid = "".join(INVALID_BASES.findall(sequence))
    return CleanedSequence(sequence=sequence, is_valid=not invalid, invalid_chars=invalid)


def require_sequence(cleaned: CleanedSequence, minimum: int = 1) -> str:
    """Return the cleaned sequence or raise if it is empty or shorter than `minimum`."""
    if cleaned.length == 0:
        raise EmptySequenceError()
    if cleaned.length < minimum:
        raise SequenceTooShortError(cleaned.length, minimum)
    return cleaned.sequence


def composition(sequence: str) -> CompositionStats:
    """Count each base and derive GC percentage (2 decimals)."""
    length = len(sequence)
    a, t = sequence.count("A"), sequence.count("T")
    g, c = sequence.count("G"), sequence.count("C")
    gc = round((g + c) / length * 100, 2) if length else 0.0
    return CompositionStats(
        length=length, gc_percent=gc, count_a=a, count_t=t, count_g=g, count_c=c
    )


def reverse_complement(sequence: str) -> str:
    """Watson-Crick complement in reverse order; other residues pass through."""
    return sequence.translate(COMPLEMENT)[::-1]
