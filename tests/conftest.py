"""
Shared pytest fixtures for linkdb tests.

Datastores are written to tmp_path; nothing touches the network.
"""

from pathlib import Path

import pytest

from linkdb import codec
from linkdb.models import Link
from linkdb.storage import LinkDB


def sample_links() -> dict[str, Link]:
    links = [
        Link(linkdate="20120101_100000", url="http://example.com/x-y", title="First",
             description="Tagged x and y", tags="x y", private=0),
        Link(linkdate="20120102_100000", url="http://example.com/private", title="Second",
             description="Private one", tags="x", private=1),
    ]
    return {link.linkdate: link for link in links}


def write_store(path: Path, links: dict[str, Link]) -> Path:
    path.write_text(codec.encode(links), encoding="utf-8")
    return path


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    """A datastore holding the two sample links."""
    return write_store(tmp_path / "datastore.php", sample_links())


@pytest.fixture
def open_db(store_path: Path):
    """Factory opening the sample datastore with the given authorization."""

    def _open(authorized: bool = True, hide_public_links: bool = False, on_save=None) -> LinkDB:
        return LinkDB(authorized, hide_public_links, store_path, on_save=on_save)

    return _open
