"""Best-effort organism thumbnails from Wikipedia."""
import asyncio
import logging
from typing import Optional
from urllib.parse import quote

import httpx

from config import Settings
from schemas import BlastHit

logger = logging.getLogger(__name__)


def wiki_page_url(name: str, settings: Settings) -> str:
    return f"{settings.WIKI_PAGE_URL}{quote(name)}"


async def fetch_wiki_image(
    client: httpx.AsyncClient, name: str, settings: Settings
) -> Optional[str]:
    """Fetch a page thumbnail URL for `name`, or None on any failure."""
    params = {
        "action": "query",
        "titles": name,
        "prop": "pageimages",
        "format": "json",
        "pithumbsize": settings.IMAGE_SIZE,
        "origin": "*",
    }
    try:
        resp = await asyncio.wait_for(
            client.get(settings.WIKI_API_URL, params=params),
            timeout=settings.IMAGE_TIMEOUT,
        )
        resp.raise_for_status()
        data = resp.json()
    except (httpx.HTTPError, asyncio.TimeoutError, ValueError) as e:
        logger.debug("No image for %s: %s", name, e)
        return None

    if not isinstance(data, dict):
        return None
    pages = data.get("query", {}).get("pages", {})
    for page_id, page in pages.items():
        if page_id == "-1":
            return None
        return page.get("thumbnail", {}).get("source")
    return None


async def attach_images(
    client: httpx.AsyncClient, hits: list[BlastHit], settings: Settings
) -> list[BlastHit]:
    """Look up all thumbnails concurrently and wait for the whole batch."""
    images = await asyncio.gather(
        *(fetch_wiki_image(client, hit.name, settings) for hit in hits)
    )
    return [hit.model_copy(update={"image": image}) for hit, image in zip(hits, images)]
