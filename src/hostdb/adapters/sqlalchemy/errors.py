"""Translation of driver errors into the domain storage errors."""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Final

from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from hostdb.domain.errors import FatalStorageError, TransientStorageError

if TYPE_CHECKING:
    from collections.abc import Iterator

# MySQL / MariaDB: lock wait timeout, deadlock
TRANSIENT_MYSQL_CODES: Final[frozenset[int]] = frozenset({1205, 1213})
TRANSIENT_MESSAGES: Final[tuple[str, ...]] = ("database is locked", "database table is locked")


def is_transient(error: DBAPIError) -> bool:
    original = error.orig
    args = getattr(original, "args", ())
    if args and isinstance(args[0], int) and args[0] in TRANSIENT_MYSQL_CODES:
        return True
    message = str(original).lower()
    return any(fragment in message for fragment in TRANSIENT_MESSAGES)


@contextmanager
def storage_errors(action: str) -> Iterator[None]:
    """Re-raise SQLAlchemy failures inside the block as storage errors."""

    try:
        yield
    except DBAPIError as exc:
        if is_transient(exc):
            raise TransientStorageError(f"{action}: {exc.orig}") from exc
        raise FatalStorageError(f"{action}: {exc.orig}") from exc
    except SQLAlchemyError as exc:
        raise FatalStorageError(f"{action}: {exc}") from exc
