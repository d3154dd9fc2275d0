from .errors import CorruptStoreError, LinkDBError, LinkValidationError, NotAuthorizedError
from .models import Link
from .storage import LinkDB

__all__ = [
    "CorruptStoreError",
    "Link",
    "LinkDB",
    "LinkDBError",
    "LinkValidationError",
    "NotAuthorizedError",
]
