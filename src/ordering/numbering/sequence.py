"""Order Numbering Authority — a per-year counter aggregate.

Order numbers look like ``CBW-2025-000042``. Rather than scanning for the
highest existing number and adding one, each (prefix, year) pair owns an
``OrderSequence`` record whose counter is incremented in place. The
increment happens inside the unit of work that places the order, so a
rolled-back order rolls its number back too; callers are serialised by the
transaction boundary, so two orders can never draw the same value.
"""

from datetime import UTC, datetime

from protean.exceptions import ObjectNotFoundError
from protean.fields import Integer, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.shared import settings

SEQUENCE_WIDTH = 6


@ordering.aggregate
class OrderSequence:
    """Monotonic counter of orders placed under one prefix in one calendar year."""

    key = String(identifier=True, required=True, max_length=30)  # PREFIX-YYYY
    prefix = String(required=True, max_length=10)
    year = Integer(required=True, min_value=2000)
    last_value = Integer(default=0, min_value=0)

    @classmethod
    def start(cls, prefix, year):
        return cls(key=sequence_key(prefix, year), prefix=prefix, year=year, last_value=0)

    def advance(self):
        """Increment the counter and return the formatted order number."""
        self.last_value = (self.last_value or 0) + 1
        return format_order_number(self.prefix, self.year, self.last_value)


def sequence_key(prefix, year):
    return f"{prefix}-{year}"


def format_order_number(prefix, year, value):
    return f"{prefix}-{year}-{value:0{SEQUENCE_WIDTH}d}"


def next_order_number(year=None, prefix=None):
    """Allocate the next order number for ``year`` (default: the current UTC year).

    Must be called inside the unit of work that persists the order.
    """
    prefix = prefix or settings.ORDER_NUMBER_PREFIX
    year = year or datetime.now(UTC).year

    repo = current_domain.repository_for(OrderSequence)
    try:
        sequence = repo.get(sequence_key(prefix, year))
    except ObjectNotFoundError:
        sequence = OrderSequence.start(prefix, year)

    order_no = sequence.advance()
    repo.add(sequence)
    return order_no
