import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class PageCache:
    """Rendered responses kept on disk as <name>.cache files."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def _path(self, name: str) -> Path:
        return self.directory / f"{name}.cache"

    def get(self, name: str) -> Optional[str]:
        path = self._path(name)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def put(self, name: str, content: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        self._path(name).write_text(content, encoding="utf-8")

    def purge(self) -> int:
        """Drop every cached page. Called after each save."""
        if not self.directory.is_dir():
            return 0
        removed = 0
        for path in self.directory.glob("*.cache"):
            path.unlink(missing_ok=True)
            removed += 1
        logger.debug("Purged %d cached pages from %s", removed, self.directory)
        return removed
