from __future__ import annotations

import json
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from feeds.core.extractor import close_extractor, get_extractor
from feeds.core.feed_proxy import FeedFetchError, FeedProxy, FetchErrorType
from feeds.core.settings import Settings
from feeds.core.storage import get_store, init_store
from feeds.core.read_state import ReadState
from feeds.core.sync import (
    LAST_VISIT_KEY,
    READ_ARTICLES_KEY,
    SOURCES_KEY,
    SyncSnapshot,
    load_snapshot,
)
from feeds.providers.content_types import ExtractionRequest, InvalidRequestError

logger = logging.getLogger(__name__)

app = FastAPI(title="feeds")
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(Settings.from_env().cors_origins),
    allow_methods=["GET", "POST", "PUT", "OPTIONS"],
    allow_headers=["Content-Type"],
)

_proxy: FeedProxy | None = None


def get_feed_proxy() -> FeedProxy:
    global _proxy
    if _proxy is None:
        s = Settings.from_env()
        _proxy = FeedProxy(retries=s.feed_fetch_retries)
    return _proxy


@app.on_event("startup")
def _startup() -> None:
    init_store()


@app.on_event("shutdown")
async def _shutdown() -> None:
    await close_extractor()
    if _proxy is not None:
        await _proxy.close()


@app.post("/api/extract")
async def api_extract(request: Request):
    """Extract readable text for one piece of content.

    Body: {url, source, title}. Content that cannot be extracted still
    returns success with ``text: null`` and an ``error`` message.
    """
    try:
        payload = json.loads(await request.body())
        extraction_request = ExtractionRequest.from_payload(payload)
    except InvalidRequestError as e:
        return JSONResponse({"success": False, "error": str(e)}, status_code=400)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning(f"Unparseable extract request body: {e}")
        return JSONResponse({"success": False, "error": str(e)}, status_code=500)

    result = await get_extractor().extract(extraction_request)
    return {"success": True, **result.to_dict()}


@app.get("/api/proxy")
async def api_proxy(url: str | None = None):
    """Pass a feed document through, retrying timeouts."""
    if not url:
        return JSONResponse({"error": "Missing url parameter"}, status_code=400)

    logger.info(f"Fetching feed: {url}")
    try:
        document = await get_feed_proxy().fetch(url)
    except FeedFetchError as e:
        logger.error(f"Error fetching feed {url}: {e}")
        if e.error_type is FetchErrorType.TIMEOUT:
            return JSONResponse({"error": "Request timeout"}, status_code=504)
        if e.error_type is FetchErrorType.TRANSPORT:
            return JSONResponse({"error": str(e)}, status_code=502)
        return JSONResponse({"error": str(e)}, status_code=500)

    if not document.ok:
        return JSONResponse(
            {"error": f"Failed to fetch feed: {document.status}"},
            status_code=document.status,
        )

    return Response(
        content=document.body,
        media_type=document.content_type,
        headers={"Cache-Control": "public, max-age=300"},
    )


@app.get("/api/sync")
def api_sync_get():
    """Return the server copy of the sync snapshot."""
    try:
        return load_snapshot(get_store()).to_payload()
    except Exception as e:
        logger.exception("Sync GET error")
        return JSONResponse({"error": str(e)}, status_code=500)


@app.put("/api/sync")
async def api_sync_put(request: Request):
    """Overwrite whichever snapshot fields are present in the body.

    Clients merge before pushing, so the server stores what it is given.
    Read marks with unusable timestamps and sources without a URL are
    dropped before writing.
    """
    try:
        payload = json.loads(await request.body())
        if not isinstance(payload, dict):
            raise ValueError("Request body must be a JSON object")

        snapshot = SyncSnapshot.from_payload(payload)
        store = get_store()
        if "readArticles" in payload:
            store.set(READ_ARTICLES_KEY, json.dumps(snapshot.read_articles))
        if snapshot.last_visit is not None:
            store.set(LAST_VISIT_KEY, str(snapshot.last_visit))
        if snapshot.sources is not None:
            store.set(SOURCES_KEY, json.dumps([s.to_dict() for s in snapshot.sources]))
    except Exception as e:
        logger.exception("Sync PUT error")
        return JSONResponse({"error": str(e)}, status_code=500)

    return {"ok": True}


@app.post("/api/read/{article_id}")
def api_mark_read(article_id: str):
    ReadState(get_store()).mark_as_read(article_id)
    return {"read": True}


@app.delete("/api/read/{article_id}")
def api_mark_unread(article_id: str):
    ReadState(get_store()).mark_as_unread(article_id)
    return {"read": False}


@app.post("/api/last-visit")
def api_last_visit():
    """Record a visit now and return its timestamp."""
    return {"lastVisit": ReadState(get_store()).update_last_visit()}
