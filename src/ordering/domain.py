"""Ordering bounded context — Catalogue stock, Orders and Order numbering.

Hosts the order placement transaction: products and their variants, the
per-year order number counter and the Order aggregate live in one domain so
that a single unit of work can decrement stock, allocate a number and persist
the order together.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
