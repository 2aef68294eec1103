"""
Local price override store.

Holds the last manually entered price for teachers whose row in the
teachers table has no ``price_per_student``. The whole map lives in one
durable slot (a JSON file named after OVERRIDE_NAMESPACE) and every write
rewrites the full map. There is no locking: the last writer wins.

Reading never fails. ``read()`` reports what went wrong through
``StoreRead.error``; ``get()`` and ``get_all()`` fall back to the default
price and to an empty map respectively.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import NamedTuple

from .config import DEFAULT_PRICE, OVERRIDE_FILE
from .loaders.utils import is_valid_price

logger = logging.getLogger(__name__)

# StoreRead.error values
MISSING = "missing"
CORRUPT = "corrupt"
UNREADABLE = "unreadable"


class StoreRead(NamedTuple):
    """Result of reading the override slot.

    ``values`` is always a usable map (empty on failure); ``error`` is None
    on success or one of MISSING, CORRUPT, UNREADABLE.
    """

    values: dict[str, float]
    error: str | None = None


def parse_overrides(raw: str) -> StoreRead:
    """Parse the slot contents, keeping only valid non-negative prices."""
    try:
        obj = json.loads(raw)
    except (ValueError, TypeError):
        logger.warning("Price override slot is not valid JSON; ignoring it")
        return StoreRead({}, CORRUPT)

    if not isinstance(obj, dict):
        logger.warning("Price override slot holds %s, expected an object", type(obj).__name__)
        return StoreRead({}, CORRUPT)

    values = {}
    for key, value in obj.items():
        if key and is_valid_price(value):
            values[str(key)] = float(value)
        else:
            logger.debug("Dropping invalid override entry %r=%r", key, value)
    return StoreRead(values)


class PriceOverrideStore:
    """JSON-file backed override map.

    Parameters
    ----------
    path : Location of the slot. Defaults to config.OVERRIDE_FILE.
    default_price : Returned by get() when no override exists.
    """

    def __init__(self, path: Path | str | None = None, default_price: float = DEFAULT_PRICE):
        self.path = Path(path) if path is not None else OVERRIDE_FILE
        self.default_price = default_price

    # -- raw slot access -------------------------------------------------

    def _read_raw(self) -> str | None:
        if not self.path.exists():
            return None
        return self.path.read_text(encoding="utf-8")

    def _write_raw(self, raw: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".overrides-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(raw)
            os.replace(tmp_name, self.path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    # -- public API ------------------------------------------------------

    def read(self) -> StoreRead:
        """Read the whole map, reporting any failure explicitly."""
        try:
            raw = self._read_raw()
        except OSError as exc:
            logger.warning("Could not read price overrides: %s", exc)
            return StoreRead({}, UNREADABLE)
        except UnicodeDecodeError as exc:
            logger.warning("Price overrides are not valid UTF-8: %s", exc)
            return StoreRead({}, CORRUPT)

        if raw is None or not raw.strip():
            return StoreRead({}, MISSING)
        return parse_overrides(raw)

    def get(self, teacher_id: str | None, default: float | None = None) -> float:
        """Return the override for teacher_id, or the default price."""
        fallback = self.default_price if default is None else default
        if not teacher_id:
            return fallback
        return self.read().values.get(teacher_id, fallback)

    def get_all(self) -> dict[str, float]:
        """Shallow copy of the full map (empty on any failure)."""
        return dict(self.read().values)

    def set(self, teacher_id: str | None, value: float) -> bool:
        """Merge {teacher_id: value} into the slot.

        Ignored when teacher_id is empty or value is not a finite
        non-negative number. Returns True if the map was written.
        """
        if not teacher_id or not is_valid_price(value):
            return False

        values = self.read().values
        values[teacher_id] = float(value)
        return self._write(values)

    def _write(self, values: dict[str, float]) -> bool:
        try:
            self._write_raw(json.dumps(values, sort_keys=True))
        except OSError as exc:
            logger.warning("Could not persist price overrides: %s", exc)
            return False
        return True


class MemoryPriceOverrideStore(PriceOverrideStore):
    """Override store whose slot is an in-process string.

    Behaves exactly like the file store (including JSON round-tripping),
    which makes it a drop-in replacement for tests and for sessions that
    must not touch the filesystem.
    """

    def __init__(self, initial: dict[str, float] | None = None, default_price: float = DEFAULT_PRICE):
        super().__init__(path=os.devnull, default_price=default_price)
        self._slot: str | None = None
        if initial:
            for teacher_id, value in initial.items():
                self.set(teacher_id, value)

    def _read_raw(self) -> str | None:
        return self._slot

    def _write_raw(self, raw: str) -> None:
        self._slot = raw
