"""Repository for the Order aggregate — listing and lookup queries."""

from datetime import datetime

from ordering.domain import ordering

from .order import Order

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def _window(page, limit):
    page = max(int(page or 1), 1)
    limit = min(max(int(limit or DEFAULT_PAGE_SIZE), 1), MAX_PAGE_SIZE)
    return page, limit, (page - 1) * limit


def _matches(order, term):
    """True when ``term`` appears in the order number or any ordered product name."""
    if term in order.order_no.lower():
        return True
    return any(term in item.product_name.lower() for item in order.items)


@ordering.repository(part_of=Order)
class OrderRepository:
    """Order queries used by the customer and back-office listings.

    Each listing returns ``(orders, total)`` with orders newest first.
    """

    def find_by_order_no(self, order_no: str) -> Order | None:
        return self._dao.query.filter(order_no=order_no).all().first

    def for_customer(self, customer_id: str, page: int = 1, limit: int = DEFAULT_PAGE_SIZE) -> tuple[list[Order], int]:
        page, limit, offset = _window(page, limit)
        results = (
            self._dao.query.filter(customer_id=str(customer_id))
            .order_by("-created_at")
            .offset(offset)
            .limit(limit)
            .all()
        )
        return results.items, results.total

    def search(
        self,
        status: str | None = None,
        search: str | None = None,
        created_from: datetime | None = None,
        created_to: datetime | None = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> tuple[list[Order], int]:
        """Back-office listing.

        Filters by status and an inclusive creation-date range. ``search``
        matches, case-insensitively, a fragment of the order number or of any
        ordered product's name as it was snapshotted at placement.
        """
        page, limit, offset = _window(page, limit)
        criteria = {}
        if status:
            criteria["status"] = status
        if created_from:
            criteria["created_at__gte"] = created_from
        if created_to:
            criteria["created_at__lte"] = created_to

        query = self._dao.query.filter(**criteria) if criteria else self._dao.query
        query = query.order_by("-created_at")

        term = search.strip().lower() if search else ""
        if not term:
            results = query.offset(offset).limit(limit).all()
            return results.items, results.total

        # Product names live on the line items, so the text match runs in memory
        matched = [order for order in query.all().items if _matches(order, term)]
        return matched[offset : offset + limit], len(matched)
