"""
Search API — GET /search?query=...

Brings the conversation cache up to date (subject to its TTL) and returns
matching summaries in cache order.
"""

import logging

from fastapi import APIRouter, HTTPException

from switchboard.dependencies import provider_http_error, require_cache

logger = logging.getLogger("switchboard.api.search")

router = APIRouter(tags=["search"])


@router.get("/search")
async def search(query: str = ""):
    if not query:
        logger.warning("Empty search query received")
        raise HTTPException(status_code=400, detail="Search query is required")

    cache = require_cache()
    try:
        await cache.update_cache()
    except Exception as exc:
        raise provider_http_error(exc, action="perform search")

    results = cache.search_conversations(query)
    logger.info("Search completed query=%r results=%d", query, len(results))
    return [r.model_dump(mode="json", by_alias=True) for r in results]
