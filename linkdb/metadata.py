import html
import re
from typing import Optional

import requests

TITLE_RE = re.compile(r"<title[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL)
HEADERS = {"User-Agent": "linkdb/0.1 (+title fetch)"}


def fetch_title(url: str) -> Optional[str]:
    """Best-effort page title for a new link; None when it cannot be had."""
    if not url.lower().startswith(("http://", "https://")):
        return None
    try:
        resp = requests.get(url, headers=HEADERS, timeout=5)
    except requests.RequestException:
        return None
    if resp.status_code != 200:
        return None
    match = TITLE_RE.search(resp.text)
    if not match:
        return None
    title = " ".join(html.unescape(match.group(1)).split())
    return title or None
