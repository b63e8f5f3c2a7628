"""Organism identification through NCBI BLAST.

The service is slow and rate limited, and from a browser it is only
reachable through CORS relays. `BlastOrchestrator` walks every
(database, transport) pair in order, outer loop over databases, and runs a
three stage pipeline for each one:

1. submit the query and read back a request id (RID),
2. poll the job status until READY or the poll budget runs out,
3. download the pairwise text report.

Any stage failure skips to the next pair. Only when every pair has failed
does the caller see an error (`AllAttemptsFailedError`). Attempts never
overlap.
"""
import asyncio
import itertools
import logging
import re
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterator, Optional
from urllib.parse import quote, urlencode

import httpx

from config import BlastDatabase, Settings
from config import settings as default_settings
from images import attach_images, wiki_page_url
from schemas import BlastHit, BlastStatus, BlastStep, IdentificationResult

logger = logging.getLogger(__name__)

RID_PATTERN = re.compile(r"RID = (\S+)")
RTOE_PATTERN = re.compile(r"RTOE = (\d+)")
STATUS_PATTERN = re.compile(r"Status=(\w+)")
HIT_DELIMITER = re.compile(r"^>", re.MULTILINE)

ORGANISM_TAG = re.compile(r"\[([^\]]+)\]")
QUALIFIER_SUFFIX = re.compile(r"\s+(str\.|strain|isolate|substr\.|subsp\.).*$", re.IGNORECASE)
GENOMIC_SUFFIX = re.compile(
    r",?\s*\b(complete genome|genome|sequence|partial|chromosome|scaffold|plasmid)\b.*$",
    re.IGNORECASE,
)

StatusCallback = Callable[[BlastStatus], None]


class AttemptFailed(Exception):
    """One (database, transport) pipeline failed; try the next pair."""


class AllAttemptsFailedError(RuntimeError):
    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(
            "All NCBI mirrors are currently busy or unreachable. "
            "Please try again in a few minutes."
        )


class JobStatus(str, Enum):
    SUBMITTING = "submitting"
    WAITING = "waiting"
    READY = "ready"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


@dataclass
class SearchJob:
    database: BlastDatabase
    transport: str
    started_at: float = field(default_factory=time.monotonic)
    request_id: Optional[str] = None
    estimated_wait: Optional[int] = None  # RTOE, seconds
    status: JobStatus = JobStatus.SUBMITTING

    @property
    def transport_label(self) -> str:
        return self.transport or "direct"


class Deadline:
    """A wall-clock budget that starts counting on creation."""

    def __init__(self, seconds: float, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self.expires_at = clock() + seconds

    def remaining(self) -> float:
        return max(0.0, self.expires_at - self._clock())

    @property
    def expired(self) -> bool:
        return self._clock() >= self.expires_at


class StatusBoard:
    """Latest identification status, owned by the newest invocation.

    Each identification call takes a ticket from `begin()`. Updates carrying
    an older ticket are dropped so a slow, superseded search cannot
    overwrite the status of the current one.
    """

    def __init__(self):
        self._latest = 0
        self.current = BlastStatus()

    def begin(self) -> int:
        self._latest += 1
        self.current = BlastStatus(invocation=self._latest)
        return self._latest

    def publish(self, ticket: int, status: BlastStatus) -> bool:
        if ticket != self._latest:
            return False
        self.current = status.model_copy(update={"invocation": ticket})
        return True

    def observer(self, ticket: int) -> StatusCallback:
        return lambda status: self.publish(ticket, status)


def derive_name(accession: str, description: str) -> str:
    """Short organism name from a hit description."""
    tagged = ORGANISM_TAG.search(description)
    if tagged:
        name = tagged.group(1)
    else:
        words = description.split()
        name = " ".join(words[:2]) if len(words) >= 2 else description

    name = QUALIFIER_SUFFIX.sub("", name)
    name = GENOMIC_SUFFIX.sub("", name).strip()
    return name or accession


def parse_report(text: str, limit: int) -> list[BlastHit]:
    """Split a pairwise text report into hits, unique by organism name.

    Keeps the first `limit` names in report order.
    """
    hits: list[BlastHit] = []
    seen: set[str] = set()

    for chunk in HIT_DELIMITER.split(text)[1:]:
        if len(hits) >= limit:
            break
        first_line = chunk.split("\n", 1)[0].strip()
        accession, _, description = first_line.partition(" ")
        description = description.strip()
        if not accession or not description:
            continue

        name = derive_name(accession, description)
        if name in seen:
            continue
        seen.add(name)
        hits.append(BlastHit(id=accession, name=name, description=description))

    return hits


class BlastOrchestrator:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or default_settings
        self._client = client

    def attempts(self) -> Iterator[tuple[BlastDatabase, str]]:
        """Every (database, transport) pair, databases in the outer loop."""
        return itertools.product(self.settings.BLAST_DATABASES, self.settings.BLAST_TRANSPORTS)

    async def identify(
        self, sequence: str, on_status: Optional[StatusCallback] = None
    ) -> IdentificationResult:
        """Identify the organism `sequence` most likely comes from."""
        report = on_status or (lambda status: None)
        if self._client is not None:
            return await self._identify(self._client, sequence, report)
        # Calls are bounded by wait_for and the poll budget, not httpx defaults
        async with httpx.AsyncClient(follow_redirects=True, timeout=None) as client:
            return await self._identify(client, sequence, report)

    async def _identify(
        self, client: httpx.AsyncClient, sequence: str, report: StatusCallback
    ) -> IdentificationResult:
        report(BlastStatus(step=BlastStep.SUBMITTING, message="Initializing..."))

        attempt = 0
        for attempt, (database, transport) in enumerate(self.attempts(), start=1):
            job = SearchJob(database=database, transport=transport)
            report(BlastStatus(step=BlastStep.SUBMITTING, message=f"Trying {database.label}..."))
            try:
                text = await self.run_pipeline(client, job, sequence, report)
            except (
                AttemptFailed, httpx.HTTPError, httpx.InvalidURL, asyncio.TimeoutError
            ) as e:
                if job.status != JobStatus.TIMED_OUT:
                    job.status = JobStatus.FAILED
                logger.warning(
                    "BLAST attempt %d failed on %s via %s (%s): %s",
                    attempt, database.name, job.transport_label, job.status.value,
                    str(e) or type(e).__name__,
                )
                continue

            logger.info(
                "BLAST %s ready on %s via %s after %.1fs",
                job.request_id, database.name, job.transport_label,
                time.monotonic() - job.started_at,
            )
            hits = await self._collect_hits(client, text, report)
            report(BlastStatus(step=BlastStep.COMPLETE, message="Done"))
            return IdentificationResult(
                hits=hits,
                database=database.name,
                database_label=database.label,
                transport=job.transport_label,
                request_id=job.request_id,
                attempts=attempt,
            )

        report(BlastStatus(step=BlastStep.ERROR, message="All attempts failed."))
        raise AllAttemptsFailedError(attempt)

    async def run_pipeline(
        self,
        client: httpx.AsyncClient,
        job: SearchJob,
        sequence: str,
        report: StatusCallback,
    ) -> str:
        """Submit, poll and fetch for one pair; raises AttemptFailed on any stage."""
        await self.submit(client, job, sequence)
        await self.poll(client, job, report)
        report(BlastStatus(step=BlastStep.PARSING, message="Downloading..."))
        return await self.fetch(client, job)

    async def submit(self, client: httpx.AsyncClient, job: SearchJob, sequence: str) -> str:
        params = {
            "CMD": "Put",
            "PROGRAM": self.settings.BLAST_PROGRAM,
            "DATABASE": job.database.name,
            "QUERY": sequence,
        }
        text = await asyncio.wait_for(
            self._get(client, job.transport, params),
            timeout=self.settings.SUBMIT_TIMEOUT,
        )

        rid = RID_PATTERN.search(text)
        if not rid:
            raise AttemptFailed("no RID in submit response")
        job.request_id = rid.group(1)

        rtoe = RTOE_PATTERN.search(text)
        if rtoe:
            job.estimated_wait = int(rtoe.group(1))
        logger.debug(
            "Submitted RID %s to %s (estimated %ss)",
            job.request_id, job.database.name, job.estimated_wait,
        )
        return job.request_id

    async def poll(self, client: httpx.AsyncClient, job: SearchJob, report: StatusCallback) -> None:
        """Wait for READY; a single failed status request is ignored."""
        job.status = JobStatus.WAITING
        params = {"CMD": "Get", "RID": job.request_id, "FORMAT_OBJECT": "SearchInfo"}
        deadline = Deadline(self.settings.POLL_BUDGET)

        while not deadline.expired:
            report(BlastStatus(step=BlastStep.WAITING, message=f"Scanning {job.database.name}..."))
            await asyncio.sleep(min(self.settings.POLL_INTERVAL, deadline.remaining()))
            try:
                text = await asyncio.wait_for(
                    self._get(client, job.transport, params),
                    timeout=deadline.remaining() or self.settings.POLL_INTERVAL,
                )
            except (httpx.HTTPError, asyncio.TimeoutError) as e:
                logger.debug("Status check for %s failed: %s", job.request_id, e)
                continue

            status = STATUS_PATTERN.search(text)
            state = status.group(1) if status else "WAITING"
            if state == "READY":
                job.status = JobStatus.READY
                return
            if state in ("FAILED", "UNKNOWN"):
                job.status = JobStatus.FAILED
                raise AttemptFailed(f"search {job.request_id} reported {state}")

        job.status = JobStatus.TIMED_OUT
        raise AttemptFailed(f"search {job.request_id} not ready after {self.settings.POLL_BUDGET}s")

    async def fetch(self, client: httpx.AsyncClient, job: SearchJob) -> str:
        params = {
            "CMD": "Get",
            "RID": job.request_id,
            "FORMAT_TYPE": "Text",
            "ALIGNMENT_VIEW": "Pairwise",
        }
        text = await asyncio.wait_for(
            self._get(client, job.transport, params),
            timeout=self.settings.FETCH_TIMEOUT,
        )
        if not text.strip():
            raise AttemptFailed(f"empty report for {job.request_id}")
        return text

    async def _collect_hits(
        self, client: httpx.AsyncClient, text: str, report: StatusCallback
    ) -> list[BlastHit]:
        hits = [
            hit.model_copy(update={"wiki_url": wiki_page_url(hit.name, self.settings)})
            for hit in parse_report(text, self.settings.RESULT_LIMIT)
        ]
        if hits and self.settings.FETCH_IMAGES:
            report(BlastStatus(step=BlastStep.FETCHING_IMAGES, message="Fetching images..."))
            hits = await attach_images(client, hits, self.settings)
        return hits

    def _url(self, transport: str, params: dict) -> str:
        target = f"{self.settings.BLAST_URL}?{urlencode(params)}"
        # Relays that take the target as a query parameter need it escaped
        if transport.endswith("="):
            target = quote(target, safe="")
        return f"{transport}{target}"

    async def _get(self, client: httpx.AsyncClient, transport: str, params: dict) -> str:
        resp = await client.get(self._url(transport, params))
        resp.raise_for_status()
        return resp.text
