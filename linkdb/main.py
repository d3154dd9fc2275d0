import json
from datetime import datetime, timedelta
from typing import List, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse, Response

from .cache import PageCache
from .config import Settings, get_settings
from .errors import CorruptStoreError, LinkValidationError, NotAuthorizedError
from .metadata import fetch_title
from .models import Link, LinkIn, TagCount
from .storage import LinkDB
from .utils import check_day, linkdate_from

app = FastAPI(title="LinkDB")


def get_cache(settings: Settings = Depends(get_settings)) -> PageCache:
    return PageCache(settings.cache_dir)


def get_db(
    settings: Settings = Depends(get_settings),
    cache: PageCache = Depends(get_cache),
    x_auth_token: Optional[str] = Header(default=None),
) -> LinkDB:
    authorized = settings.api_token is not None and x_auth_token == settings.api_token
    return LinkDB(
        authorized,
        settings.hide_public_links,
        settings.datastore,
        on_save=cache.purge,
    )


@app.exception_handler(NotAuthorizedError)
async def not_authorized_handler(request: Request, exc: NotAuthorizedError):
    return JSONResponse(status_code=403, content={"detail": str(exc)})


@app.exception_handler(LinkValidationError)
async def validation_handler(request: Request, exc: LinkValidationError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(CorruptStoreError)
async def corrupt_store_handler(request: Request, exc: CorruptStoreError):
    return JSONResponse(status_code=500, content={"detail": "Datastore is corrupt"})


def _require_login(db: LinkDB):
    if not db.authorized:
        raise NotAuthorizedError("You are not authorized to change the database.")


def _new_linkdate(db: LinkDB) -> str:
    now = datetime.now().replace(microsecond=0)
    key = linkdate_from(now)
    while db.contains(key):
        now += timedelta(seconds=1)
        key = linkdate_from(now)
    return key


def _get_or_404(db: LinkDB, linkdate: str) -> Link:
    link = db.get(linkdate)
    if link is None:
        raise HTTPException(404, "Link not found")
    return link


@app.get("/api/links", response_model=List[Link])
def list_links(searchterm: str = "", searchtags: str = "", db: LinkDB = Depends(get_db)):
    if searchterm:
        return db.search_fulltext(searchterm)
    if searchtags:
        return db.filter_tags(searchtags)
    return list(db.iterate())


@app.get("/api/links/{linkdate}", response_model=Link)
def get_link(linkdate: str, db: LinkDB = Depends(get_db)):
    return _get_or_404(db, linkdate)


@app.post("/api/links")
def add_link(
    body: LinkIn,
    db: LinkDB = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    _require_login(db)
    url = body.url.strip()
    if not url:
        raise LinkValidationError("URL required")

    existing = db.find_by_url(url)
    if existing:
        return {"link": existing, "duplicate": True}

    title = body.title
    if not title and settings.fetch_titles:
        title = fetch_title(url) or ""

    link = Link(
        linkdate=_new_linkdate(db),
        url=url,
        title=title,
        description=body.description,
        tags=" ".join(body.tags.replace(",", " ").split()),
        private=body.private,
    )
    db.set(link.linkdate, link)
    db.save()
    return {"link": link, "duplicate": False}


@app.put("/api/links/{linkdate}", response_model=Link)
def update_link(linkdate: str, body: LinkIn, db: LinkDB = Depends(get_db)):
    _require_login(db)
    _get_or_404(db, linkdate)
    link = Link(
        linkdate=linkdate,
        url=body.url.strip(),
        title=body.title,
        description=body.description,
        tags=" ".join(body.tags.replace(",", " ").split()),
        private=body.private,
    )
    db.set(linkdate, link)
    db.save()
    return link


@app.delete("/api/links/{linkdate}")
def delete_link(linkdate: str, db: LinkDB = Depends(get_db)):
    _require_login(db)
    _get_or_404(db, linkdate)
    db.delete(linkdate)
    db.save()
    return {"ok": True}


@app.get("/api/url", response_model=Link)
def link_for_url(url: str, db: LinkDB = Depends(get_db)):
    link = db.find_by_url(url)
    if link is None:
        raise HTTPException(404, "Link not found")
    return link


@app.get("/api/h/{small_hash}", response_model=Link)
def permalink(small_hash: str, db: LinkDB = Depends(get_db)):
    link = db.filter_small_hash(small_hash)
    if link is None:
        raise HTTPException(404, "Link not found")
    return link


def _cached_json(name: str, db: LinkDB, cache: PageCache, build) -> Response:
    # Only the anonymous view is shared between visitors
    if not db.authorized:
        cached = cache.get(name)
        if cached is not None:
            return Response(cached, media_type="application/json")
    content = json.dumps(build())
    if not db.authorized:
        cache.put(name, content)
    return Response(content, media_type="application/json")


@app.get("/api/tags", response_model=List[TagCount])
def all_tags(db: LinkDB = Depends(get_db), cache: PageCache = Depends(get_cache)):
    return _cached_json(
        "tags", db, cache,
        lambda: [{"tag": tag, "count": count} for tag, count in db.all_tags()],
    )


@app.get("/api/days", response_model=List[str])
def days(db: LinkDB = Depends(get_db), cache: PageCache = Depends(get_cache)):
    return _cached_json("days", db, cache, db.days)


@app.get("/api/days/{day}", response_model=List[Link])
def links_of_day(day: str, db: LinkDB = Depends(get_db)):
    return db.filter_day(check_day(day))
