"""
HTTP surface tests: each analysis endpoint plus error mapping.
"""
from urllib.parse import unquote

import httpx
from fastapi.testclient import TestClient

import main
from blast import BlastOrchestrator
from config import BlastDatabase, Settings

client = TestClient(main.app)

IDENTIFY_INPUT = ">query\nATGAAAGCACTGATTCTATTGCTGAAAAAGATAAT\n"


def post(path: str, **body):
    return client.post(path, json=body)


def test_health():
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_clean_never_fails():
    r = post("/api/clean", text="")
    assert r.status_code == 200
    assert r.json()["sequence"]["sequence"] == ""
    assert r.json()["warning"] is None


def test_composition_with_warning():
    r = post("/api/composition", text=">s\natgcgcnn")
    assert r.status_code == 200
    data = r.json()
    assert data["result"]["length"] == 8
    assert data["result"]["gc_percent"] == 50.0
    assert data["warning"] == "Invalid characters detected (NN)."


def test_empty_sequence_is_rejected():
    r = post("/api/composition", text="  \n 123 ")
    assert r.status_code == 400
    assert r.json()["detail"] == "Please enter a DNA sequence first."


def test_reverse_complement():
    r = post("/api/reverse-complement", text="ATGC")
    assert r.json()["result"] == {"original": "ATGC", "reverse_complement": "GCAT"}


def test_translate():
    r = post("/api/translate", text="ccATGTTTTAAgg")
    result = r.json()["result"]
    assert result["protein"] == "MF"
    assert result["start"] == 3
    assert result["stop_codon_found"] is True


def test_translate_without_start_codon():
    r = post("/api/translate", text="GGGCCC")
    assert r.status_code == 422
    assert "No start codon" in r.json()["detail"]


def test_hydropathy():
    r = post("/api/hydropathy", text="ATG" + "GCT" * 10)
    result = r.json()["result"]
    assert result["protein_length"] == 11
    assert len(result["scores"]) == 3
    assert len(result["points"]) == 3


def test_hydropathy_too_short():
    r = post("/api/hydropathy", text="ATGGCTGCTTAA")
    assert r.status_code == 422
    assert "too short" in r.json()["detail"]


def test_motifs():
    r = post("/api/motifs", text="AAAA", motif="aa")
    assert r.json()["result"] == {"motif": "AA", "positions": [1, 2, 3], "count": 3}


def test_invalid_motif():
    r = post("/api/motifs", text="AAAA", motif="123")
    assert r.status_code == 400


def test_guides():
    r = post("/api/guides", text="A" * 20 + "AGG")
    result = r.json()["result"]
    assert result["count"] == 1
    assert result["candidates"][0] == {"position": 1, "protospacer": "A" * 20, "pam": "AGG"}


def test_identify_requires_minimum_length():
    r = post("/api/identify", text="ATGCATGC")
    assert r.status_code == 400
    assert "Minimum 20" in r.json()["detail"]


def _orchestrator(handler) -> BlastOrchestrator:
    settings = Settings(
        BLAST_TRANSPORTS=[""],
        BLAST_DATABASES=[BlastDatabase(name="nt", label="Nucleotide Collection")],
        POLL_INTERVAL=0,
        POLL_BUDGET=1.0,
        FETCH_IMAGES=False,
    )
    return BlastOrchestrator(settings, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


def test_identify(monkeypatch):
    def handler(request):
        url = unquote(str(request.url))
        if "CMD=Put" in url:
            return httpx.Response(200, text="RID = XYZ9")
        if "SearchInfo" in url:
            return httpx.Response(200, text="Status=READY")
        return httpx.Response(200, text=">NC_000913.3 Escherichia coli str. K-12, complete genome\n")

    monkeypatch.setattr(main, "orchestrator", _orchestrator(handler))
    r = post("/api/identify", text=IDENTIFY_INPUT)
    assert r.status_code == 200
    result = r.json()["result"]
    assert result["request_id"] == "XYZ9"
    assert result["hits"][0]["name"] == "Escherichia coli"

    status = client.get("/api/identify/status").json()
    assert status["step"] == "complete"
    assert status["invocation"] == main.status_board.current.invocation


def test_identify_service_unavailable(monkeypatch):
    def handler(request):
        raise httpx.ConnectError("down", request=request)

    monkeypatch.setattr(main, "orchestrator", _orchestrator(handler))
    r = post("/api/identify", text=IDENTIFY_INPUT)
    assert r.status_code == 503
    assert r.json()["detail"].startswith("Service Unavailable")
    assert client.get("/api/identify/status").json()["step"] == "error"
