"""
Encoding of the whole link mapping into the datastore blob.

The blob is PREFIX + base64(deflate(json)) + SUFFIX. The markers make the
file a harmless script if it ever ends up under a web root, and let decode
ignore stray bytes around the payload.
"""
import base64
import binascii
import json
import zlib
from typing import Mapping

from pydantic import ValidationError

from .errors import CorruptStoreError
from .models import Link

PREFIX = "<?php /* "
SUFFIX = " */ ?>"


def _deflate(data: bytes) -> bytes:
    # Raw deflate stream, no zlib header
    compressor = zlib.compressobj(9, zlib.DEFLATED, -zlib.MAX_WBITS)
    return compressor.compress(data) + compressor.flush()


def _inflate(data: bytes) -> bytes:
    decompressor = zlib.decompressobj(-zlib.MAX_WBITS)
    out = decompressor.decompress(data) + decompressor.flush()
    if not decompressor.eof:
        raise CorruptStoreError("Datastore payload is truncated")
    return out


def encode(links: Mapping[str, Link]) -> str:
    payload = json.dumps(
        {key: link.model_dump(mode="json") for key, link in links.items()},
        ensure_ascii=False,
        separators=(",", ":"),
    )
    packed = base64.b64encode(_deflate(payload.encode("utf-8"))).decode("ascii")
    return PREFIX + packed + SUFFIX


def decode(blob: str | bytes) -> dict[str, Link]:
    if isinstance(blob, bytes):
        try:
            blob = blob.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CorruptStoreError("Datastore is not valid UTF-8") from e

    start = blob.find(PREFIX)
    end = blob.rfind(SUFFIX)
    if start < 0 or end < start + len(PREFIX):
        raise CorruptStoreError("Datastore markers not found")
    packed = blob[start + len(PREFIX):end]

    try:
        raw = _inflate(base64.b64decode(packed, validate=True))
        data = json.loads(raw.decode("utf-8"))
    except (binascii.Error, zlib.error, UnicodeDecodeError, ValueError) as e:
        raise CorruptStoreError(f"Datastore payload is corrupt: {e}") from e

    if not isinstance(data, dict):
        raise CorruptStoreError("Datastore payload is not a mapping")
    try:
        links = {str(key): Link.model_validate(value) for key, value in data.items()}
    except ValidationError as e:
        raise CorruptStoreError(f"Datastore holds an invalid link: {e}") from e
    for key, link in links.items():
        if key != link.linkdate:
            raise CorruptStoreError(f"Datastore key {key!r} does not match its link {link.linkdate!r}")
    return links
