"""
Label records for retail price labels.

A label is described by a product name, a price and up to three feature
lines. Two types share that shape:

- LabelDraft: transient form/preview state. Has no id and never enters a queue.
- QueuedLabel: a committed label with a stable id, created by LabelDraft.commit().
"""

import math
import threading
import time
import uuid
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Iterable, Union

MAX_FEATURES = 3


class LabelPrinterError(Exception):
    """Base exception for all zpl-labels errors."""

    pass


class LabelError(LabelPrinterError, ValueError):
    """A label record is malformed or a draft cannot be committed."""

    pass


PriceLike = Union[Decimal, float, int, str]

_clock_lock = threading.Lock()
_last_timestamp = 0


def _next_timestamp() -> int:
    """Return a nanosecond timestamp strictly greater than the previous one."""
    global _last_timestamp
    with _clock_lock:
        _last_timestamp = max(time.time_ns(), _last_timestamp + 1)
        return _last_timestamp


def to_decimal(price: PriceLike) -> Decimal:
    """
    Convert a price to Decimal.

    Floats go through str() so 19.99 stays 19.99 rather than its binary
    expansion.

    Raises:
        LabelError: If the value is not a finite, non-negative number
    """
    if isinstance(price, bool):
        raise LabelError(f"Invalid price: {price!r}")
    if isinstance(price, float) and not math.isfinite(price):
        raise LabelError(f"Price must be finite, got {price!r}")

    try:
        value = price if isinstance(price, Decimal) else Decimal(str(price).strip())
    except (InvalidOperation, ValueError):
        raise LabelError(f"Invalid price: {price!r}") from None

    if not value.is_finite():
        raise LabelError(f"Price must be finite, got {price!r}")
    if value < 0:
        raise LabelError(f"Price must not be negative, got {price!r}")
    # -0 would otherwise format as "-0.00"
    return value.copy_abs()


def clean_features(features: Iterable[str]) -> tuple[str, ...]:
    """Drop blank feature lines, keeping the order of the rest."""
    return tuple(f for f in features if f and f.strip())


@dataclass(frozen=True)
class LabelDraft:
    """
    Uncommitted label content, as typed into a form.

    Blank feature slots are allowed here (they stand for empty form fields)
    and are dropped on commit.
    """

    product_name: str = ""
    price: PriceLike = Decimal("0")
    features: tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "price", to_decimal(self.price))
        object.__setattr__(self, "features", tuple(self.features))
        if len(clean_features(self.features)) > MAX_FEATURES:
            raise LabelError(f"At most {MAX_FEATURES} features are allowed")

    def commit(self) -> "QueuedLabel":
        """
        Validate the draft and turn it into a queued label with a new id.

        Raises:
            LabelError: If the product name is blank or the price is not positive
        """
        if not self.product_name.strip():
            raise LabelError("Product name is required")
        if self.price <= 0:
            raise LabelError("Price must be greater than zero")

        return QueuedLabel(
            id=uuid.uuid4().hex,
            product_name=self.product_name,
            price=self.price,
            features=clean_features(self.features),
            created_at=_next_timestamp(),
        )


@dataclass(frozen=True)
class QueuedLabel:
    """A committed label. Identity is the id; created_at only orders display."""

    id: str
    product_name: str
    price: PriceLike
    features: tuple[str, ...] = ()
    created_at: int = field(default_factory=_next_timestamp)

    def __post_init__(self):
        if not self.id:
            raise LabelError("Label id must not be empty")
        object.__setattr__(self, "price", to_decimal(self.price))
        object.__setattr__(self, "features", clean_features(self.features))
        if len(self.features) > MAX_FEATURES:
            raise LabelError(f"At most {MAX_FEATURES} features are allowed")

    def to_draft(self) -> LabelDraft:
        """Return a draft with the same content and no identity."""
        return LabelDraft(
            product_name=self.product_name,
            price=self.price,
            features=self.features,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_name": self.product_name,
            "price": str(self.price),
            "features": list(self.features),
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "QueuedLabel":
        """
        Rebuild a label from to_dict() output.

        Raises:
            LabelError: If a field is missing or malformed
        """
        try:
            return cls(
                id=data["id"],
                product_name=data["product_name"],
                price=data["price"],
                features=tuple(data.get("features", ())),
                created_at=int(data["created_at"]),
            )
        except LabelError:
            raise
        except (KeyError, TypeError, ValueError) as e:
            raise LabelError(f"Invalid stored label: {e}") from e


Label = Union[LabelDraft, QueuedLabel]
