"""Codon translation from the first start codon."""
from Bio.Data import CodonTable

from schemas import TranslationResult

START_CODON = "ATG"
STOP = "*"
UNKNOWN = "X"

_standard = CodonTable.unambiguous_dna_by_id[1]

# All 64 codons; stops map to STOP
GENETIC_CODE: dict[str, str] = {
    **_standard.forward_table,
    **{codon: STOP for codon in _standard.stop_codons},
}

AMINO_ACIDS: dict[str, tuple[str, str]] = {
    "F": ("Phenylalanine", "Hydrophobic"),
    "L": ("Leucine", "Hydrophobic"),
    "I": ("Isoleucine", "Hydrophobic"),
    "M": ("Methionine", "Hydrophobic"),
    "V": ("Valine", "Hydrophobic"),
    "A": ("Alanine", "Hydrophobic"),
    "W": ("Tryptophan", "Hydrophobic"),
    "S": ("Serine", "Polar"),
    "T": ("Threonine", "Polar"),
    "Y": ("Tyrosine", "Polar"),
    "Q": ("Glutamine", "Polar"),
    "N": ("Asparagine", "Polar"),
    "H": ("Histidine", "Charged"),
    "K": ("Lysine", "Charged"),
    "D": ("Aspartate", "Charged"),
    "E": ("Glutamate", "Charged"),
    "R": ("Arginine", "Charged"),
    "P": ("Proline", "Special"),
    "C": ("Cysteine", "Special"),
    "G": ("Glycine", "Special"),
}

CLASSES = ("Hydrophobic", "Polar", "Charged", "Special")

AVERAGE_RESIDUE_DA = 110


class NoStartCodonError(ValueError):
    def __init__(self):
        super().__init__("No start codon (ATG) found.")


def read_frame(sequence: str) -> tuple[int, str, bool]:
    """Translate from the first ATG.

    Returns (0-based start index, protein, stop codon found). Reading stops
    at the first stop codon, which is not emitted, or when fewer than three
    bases remain.
    """
    start = sequence.find(START_CODON)
    if start == -1:
        raise NoStartCodonError()

    residues = []
    for i in range(start, len(sequence) - 2, 3):
        amino_acid = GENETIC_CODE.get(sequence[i:i + 3], UNKNOWN)
        if amino_acid == STOP:
            return start, "".join(residues), True
        residues.append(amino_acid)
    return start, "".join(residues), False


def translate_protein(sequence: str) -> str:
    return read_frame(sequence)[1]


def classify(protein: str) -> dict[str, int]:
    """Count residues per side-chain class; unknown residues are not counted."""
    counts = dict.fromkeys(CLASSES, 0)
    for residue in protein:
        if residue in AMINO_ACIDS:
            counts[AMINO_ACIDS[residue][1]] += 1
    return counts


def translate(sequence: str) -> TranslationResult:
    """Translate the first open reading frame into a protein report."""
    start, protein, stop_found = read_frame(sequence)
    coding_length = len(protein) * 3 + (3 if stop_found else 0)
    return TranslationResult(
        start=start + 1,
        protein=protein,
        length=len(protein),
        stop_codon_found=stop_found,
        coding_length=coding_length,
        molecular_weight_kda=round(len(protein) * AVERAGE_RESIDUE_DA / 1000, 2),
        composition=classify(protein),
    )
