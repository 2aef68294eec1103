"""
Price-per-student resolution.

Resolution order (first match wins):

1. the teacher's own ``price_per_student`` when it is a finite number >= 0
   (0 counts: it is a free tier, not "unset");
2. the local override store;
3. the default price (config.DEFAULT_PRICE).

Resolution is total: it never raises, whatever the inputs.
"""

from typing import Any, Mapping

import pandas as pd

from .config import DEFAULT_PRICE
from .loaders.utils import is_valid_price
from .overrides import PriceOverrideStore


class PriceResolver:
    """Resolves unit prices against an injected override store.

    Parameters
    ----------
    store : Tier-2 fallback. None disables the override tier.
    default_price : Tier-3 fallback.
    """

    def __init__(self, store: PriceOverrideStore | None = None, default_price: float = DEFAULT_PRICE):
        self.store = store
        self.default_price = default_price

    def overrides(self) -> dict[str, float]:
        """Snapshot of the override map (empty without a store)."""
        if self.store is None:
            return {}
        return self.store.get_all()

    def resolve(
        self,
        teacher_id: str | None,
        authoritative_price: Any = None,
        overrides: Mapping[str, float] | None = None,
    ) -> float:
        """Resolve one price.

        ``overrides`` lets a caller that resolves many teachers read the
        store once and pass the snapshot in.
        """
        if is_valid_price(authoritative_price):
            return float(authoritative_price)
        if not teacher_id:
            return self.default_price
        if overrides is not None:
            return overrides.get(teacher_id, self.default_price)
        if self.store is None:
            return self.default_price
        return self.store.get(teacher_id, default=self.default_price)

    def price_table(self, dim_teacher: pd.DataFrame | None) -> dict[str, float]:
        """Map teacher_id -> resolved price for every teacher with an id.

        When a teacher id appears more than once the first row wins.
        """
        prices: dict[str, float] = {}
        if dim_teacher is None or dim_teacher.empty:
            return prices

        overrides = self.overrides()
        for teacher_id, price in zip(dim_teacher["teacher_id"], dim_teacher["price_per_student"]):
            if not teacher_id or teacher_id in prices:
                continue
            prices[teacher_id] = self.resolve(teacher_id, price, overrides)
        return prices


def resolve_price(
    teacher_id: str | None,
    authoritative_price: Any = None,
    store: PriceOverrideStore | None = None,
    default_price: float = DEFAULT_PRICE,
) -> float:
    """Resolve a single price without building a PriceResolver."""
    return PriceResolver(store, default_price).resolve(teacher_id, authoritative_price)


def has_authoritative_price(teacher: Mapping[str, Any] | None) -> bool:
    """True if the teacher row carries its own valid price."""
    if not teacher:
        return False
    return is_valid_price(teacher.get("price_per_student"))
