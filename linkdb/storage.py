import logging
import os
import tempfile
from collections import Counter
from pathlib import Path
from typing import Callable, Iterator, Optional

from . import codec
from .errors import LinkValidationError, NotAuthorizedError
from .models import Link
from .utils import check_day, escape_markup, sanitize_link, small_hash, split_tags

logger = logging.getLogger(__name__)

SEED_LINKS = [
    Link(
        linkdate="20110914_190000",
        url="http://sebsauvage.net/wiki/doku.php?id=php:shaarli",
        title="Shaarli - sebsauvage.net",
        description="Welcome to Shaarli! This is a bookmark. To edit or delete me, you must first login.",
        tags="opensource software",
        private=0,
    ),
    Link(
        linkdate="20110914_074522",
        url="http://sebsauvage.net/paste/?8434b27936c09649#bR7XsXhoTiLcqCpQbmOpBi3rq2zzQUC5hBI7ZT1O3x8=",
        title="My secret stuff... - Pastebin.com",
        description="SShhhh!!  I'm a private link only YOU can see. You can delete me too.",
        tags="secretstuff",
        private=1,
    ),
]


def write_atomic(path: Path, content: str) -> None:
    """Replace `path` with `content`; readers see the old or the new file, never half of it."""
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except BaseException:
        try:
            os.unlink(tmp)
        except FileNotFoundError:
            pass
        raise


class LinkDB:
    """
    Datastore for links, loaded from a single file.

    Links are keyed by their linkdate (YYYYMMDD_HHMMSS). A secondary index maps
    each url to its linkdate. Anonymous sessions never see private links, and
    see nothing at all when `hide_public_links` is set.

    The whole file is read at construction and rewritten by `save()`; there is
    no locking, the last save wins.
    """

    def __init__(
        self,
        authorized: bool,
        hide_public_links: bool,
        path: str | os.PathLike,
        on_save: Optional[Callable[[], object]] = None,
    ):
        self.authorized = authorized
        self.hide_public_links = hide_public_links
        self.path = Path(path)
        self.on_save = on_save
        self._links: dict[str, Link] = {}
        self._urls: dict[str, str] = {}
        self._check_db()
        self._read_db()

    # -- persistence ---------------------------------------------------------

    def _check_db(self) -> None:
        if self.path.exists():
            return
        logger.info("No datastore at %s, creating one with example links", self.path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        seed = {link.linkdate: link.model_copy() for link in SEED_LINKS}
        write_atomic(self.path, codec.encode(seed))

    def _read_db(self) -> None:
        # Public links are hidden and nobody is logged in: nothing to show
        if self.hide_public_links and not self.authorized:
            self._links = {}
            self._urls = {}
            return

        try:
            links = codec.decode(self.path.read_bytes())
        except Exception:
            logger.error("Could not load datastore %s", self.path)
            raise

        if not self.authorized:
            links = {key: link for key, link in links.items() if not link.is_private}

        for link in links.values():
            sanitize_link(link)

        self._links = links
        self._urls = {link.url: key for key, link in links.items()}
        logger.debug(
            "Loaded %d links from %s (authorized=%s)", len(links), self.path, self.authorized
        )

    def save(self) -> None:
        if not self.authorized:
            raise NotAuthorizedError("You are not authorized to change the database.")
        write_atomic(self.path, codec.encode(self._links))
        logger.info("Saved %d links to %s", len(self._links), self.path)
        if self.on_save is not None:
            self.on_save()

    # -- associative access --------------------------------------------------

    def get(self, linkdate: str) -> Optional[Link]:
        return self._links.get(linkdate)

    def contains(self, linkdate: str) -> bool:
        return linkdate in self._links

    def count(self) -> int:
        return len(self._links)

    def set(self, linkdate: str, link: Link) -> None:
        if not self.authorized:
            raise NotAuthorizedError("You are not authorized to add a link.")
        if not linkdate:
            raise LinkValidationError("You must specify a key.")
        if not link.linkdate or not link.url:
            raise LinkValidationError("A link should always have a linkdate and URL.")
        if link.linkdate != linkdate:
            raise LinkValidationError(
                f"Key {linkdate!r} does not match the link date {link.linkdate!r}."
            )

        previous = self._links.get(linkdate)
        self._links[linkdate] = link
        if previous is not None and previous.url != link.url:
            self._release_url(previous.url, linkdate)
        self._urls[link.url] = linkdate

    def delete(self, linkdate: str) -> None:
        if not self.authorized:
            raise NotAuthorizedError("You are not authorized to delete a link.")
        link = self._links.get(linkdate)
        if link is None:
            return
        del self._links[linkdate]
        self._release_url(link.url, linkdate)

    def _release_url(self, url: str, linkdate: str) -> None:
        # Hand the url back to the newest remaining link that still uses it
        if self._urls.get(url) != linkdate:
            return
        del self._urls[url]
        owners = [key for key, link in self._links.items() if link.url == url]
        if owners:
            self._urls[url] = max(owners)

    def find_by_url(self, url: str) -> Optional[Link]:
        key = self._urls.get(url)
        if key is None:
            key = self._urls.get(escape_markup(url.strip()))
        return self._links.get(key) if key is not None else None

    __contains__ = contains
    __len__ = count

    def __iter__(self) -> Iterator[Link]:
        return self.iterate()

    # -- iteration -----------------------------------------------------------

    def iterate(self) -> Iterator[Link]:
        """
        Yield links newest first.

        The key set is sorted when iteration starts. Links deleted meanwhile
        are skipped, links added meanwhile are not seen.
        """
        for key in sorted(self._links, reverse=True):
            link = self._links.get(key)
            if link is not None:
                yield link

    def _sorted(self, keys, reverse: bool = True) -> list[Link]:
        return [self._links[k] for k in sorted(keys, reverse=reverse)]

    # -- queries -------------------------------------------------------------

    def search_fulltext(self, query: str) -> list[Link]:
        """
        Links whose title, description, url or tags contain `query`,
        case-insensitively. The query is matched as a single string.
        """
        search = query.lower()
        found = [
            key for key, link in self._links.items()
            if any(
                search in field.lower()
                for field in (link.title, link.description, link.url, link.tags)
            )
        ]
        return self._sorted(found)

    def filter_tags(self, tags: str, case_sensitive: bool = False) -> list[Link]:
        """
        Links carrying every tag of `tags` (separated by spaces or commas),
        e.g. filter_tags("linux programming").
        """
        if not case_sensitive:
            tags = tags.lower()
        wanted = set(split_tags(tags))
        found = []
        for key, link in self._links.items():
            link_tags = link.tags if case_sensitive else link.tags.lower()
            if wanted <= set(link_tags.split()):
                found.append(key)
        return self._sorted(found)

    def filter_day(self, day: str) -> list[Link]:
        """Links posted on `day` (YYYYMMDD), oldest first."""
        check_day(day)
        return self._sorted((k for k in self._links if k.startswith(day)), reverse=False)

    def filter_small_hash(self, hash_: str) -> Optional[Link]:
        for link in self.iterate():
            if small_hash(link.linkdate) == hash_:
                return link
        return None

    def all_tags(self) -> list[tuple[str, int]]:
        """Tags with their usage count, most used first."""
        counts: Counter[str] = Counter()
        for link in self.iterate():
            counts.update(link.tag_list)
        # most_common keeps insertion order among equal counts
        return counts.most_common()

    def days(self) -> list[str]:
        """Days (YYYYMMDD) holding at least one link, oldest first."""
        return sorted({key[:8] for key in self._links})
