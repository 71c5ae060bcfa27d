"""Catalog value types shared by pricing and coupon resolution."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, Mapping, Sequence


@dataclass(frozen=True)
class ExtraLine:
    """One priced add-on on a booking: unit price times quantity."""

    extra_id: str
    price: Decimal
    quantity: int
    code: str = ""
    name: str = ""

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity


def extras_total(lines: Iterable[ExtraLine]) -> Decimal:
    return sum((line.subtotal for line in lines), Decimal("0"))


def price_extras(quantities: Mapping[str, int], catalog: Mapping[str, Any]) -> list[ExtraLine]:
    """
    Turn ``{extra_id: quantity}`` into priced lines using catalog rows.

    Zero quantities are dropped. Unknown ids raise ``KeyError`` so the caller
    can report which extra is missing instead of silently pricing it at 0.
    """
    lines = []
    for extra_id, quantity in quantities.items():
        if quantity <= 0:
            continue
        row = catalog[str(extra_id)]
        lines.append(
            ExtraLine(
                extra_id=str(extra_id),
                price=Decimal(row.price),
                quantity=int(quantity),
                code=row.code or "",
                name=row.name or "",
            )
        )
    return lines


def package_lines(package_extras: Sequence[Any]) -> list[ExtraLine]:
    """Priced lines for the extras bundled in a package."""
    return [
        ExtraLine(
            extra_id=str(link.extra_id),
            price=Decimal(link.extra.price),
            quantity=link.quantity or 1,
            code=link.extra.code or "",
            name=link.extra.name or "",
        )
        for link in package_extras
    ]
