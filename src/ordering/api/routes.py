"""FastAPI routes for the Ordering domain — customer and back-office orders.

Identity is established upstream by the authentication collaborator and
arrives as headers: ``X-Customer-Id`` on customer routes, ``X-Admin-Id`` and
``X-Admin-Role`` on back-office routes.
"""

import math
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Header, Query, Request
from protean.utils.globals import current_domain

from ordering.api.errors import ApiError
from ordering.api.schemas import (
    AdminRoleSchema,
    CreateOrderRequest,
    OrderEnvelope,
    OrderListEnvelope,
    OrderResponse,
    OrderStatusSchema,
    PageMeta,
    RecordPaymentRequest,
    UpdateAdminNotesRequest,
    UpdateStatusRequest,
)
from ordering.audit.audit_log import record_admin_action
from ordering.errors import OrderNotFound
from ordering.order import operations
from ordering.order.order import Order, PaymentMethod
from ordering.order.repository import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ordering.order.status import load_order


# ---------------------------------------------------------------------------
# Identity dependencies
# ---------------------------------------------------------------------------
def require_customer(x_customer_id: str | None = Header(default=None)) -> str:
    if not x_customer_id:
        raise ApiError(401, "UNAUTHORIZED", "Authentication required")
    return x_customer_id


class AdminIdentity:
    def __init__(self, admin_id: str, role: str):
        self.admin_id = admin_id
        self.role = role


def require_admin(
    x_admin_id: str | None = Header(default=None),
    x_admin_role: AdminRoleSchema | None = Header(default=None),
) -> AdminIdentity:
    if not x_admin_id or x_admin_role is None:
        raise ApiError(401, "UNAUTHORIZED", "Admin authentication required")
    return AdminIdentity(x_admin_id, x_admin_role.value)


def _page(orders, total, page, limit) -> OrderListEnvelope:
    return OrderListEnvelope(
        data=[OrderResponse.from_order(order) for order in orders],
        meta=PageMeta(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit)),
    )


# ---------------------------------------------------------------------------
# Customer Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderEnvelope)
async def create_order(body: CreateOrderRequest, customer_id: str = Depends(require_customer)) -> OrderEnvelope:
    if body.payment.method.value == PaymentMethod.CARD.value:
        raise ApiError(400, "CARD_NOT_SUPPORTED", "Card payment coming soon. Please use Cash on Delivery.")

    order = operations.create_order(
        customer_id=customer_id,
        items=[line.model_dump() for line in body.items],
        fulfillment=body.fulfillment.model_dump(mode="json", exclude_none=True),
        payment=body.payment.model_dump(mode="json"),
    )
    return OrderEnvelope(data=OrderResponse.from_order(order))


@order_router.get("", response_model=OrderListEnvelope)
async def list_my_orders(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    customer_id: str = Depends(require_customer),
) -> OrderListEnvelope:
    orders, total = current_domain.repository_for(Order).for_customer(customer_id, page=page, limit=limit)
    return _page(orders, total, page, limit)


@order_router.get("/{order_id}", response_model=OrderEnvelope)
async def get_my_order(order_id: str, customer_id: str = Depends(require_customer)) -> OrderEnvelope:
    order = load_order(order_id)
    if not order.belongs_to(customer_id):
        raise OrderNotFound("Order not found", order_id=order_id)
    return OrderEnvelope(data=OrderResponse.from_order(order))


@order_router.post("/{order_id}/cancel", response_model=OrderEnvelope)
async def cancel_my_order(order_id: str, customer_id: str = Depends(require_customer)) -> OrderEnvelope:
    order = operations.cancel_order(customer_id, order_id)
    return OrderEnvelope(data=OrderResponse.from_order(order), message="Order cancelled successfully")


# ---------------------------------------------------------------------------
# Admin Order Router
# ---------------------------------------------------------------------------
admin_router = APIRouter(prefix="/admin/orders", tags=["admin"])


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _client_details(request: Request) -> dict:
    return {
        "ip_address": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent"),
    }


@admin_router.get("", response_model=OrderListEnvelope)
async def list_orders(
    status: OrderStatusSchema | None = None,
    search: str | None = None,
    created_from: datetime | None = Query(default=None, alias="from"),
    created_to: datetime | None = Query(default=None, alias="to"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    admin: AdminIdentity = Depends(require_admin),
) -> OrderListEnvelope:
    orders, total = current_domain.repository_for(Order).search(
        status=status.value if status else None,
        search=search,
        created_from=_as_utc(created_from),
        created_to=_as_utc(created_to),
        page=page,
        limit=limit,
    )
    return _page(orders, total, page, limit)


@admin_router.get("/{order_id}", response_model=OrderEnvelope)
async def get_order(order_id: str, admin: AdminIdentity = Depends(require_admin)) -> OrderEnvelope:
    order = load_order(order_id)
    return OrderEnvelope(data=OrderResponse.from_order(order, include_admin_notes=True))


@admin_router.patch("/{order_id}/status", response_model=OrderEnvelope)
async def update_status(
    order_id: str,
    body: UpdateStatusRequest,
    request: Request,
    admin: AdminIdentity = Depends(require_admin),
) -> OrderEnvelope:
    order = operations.advance_status(
        order_id,
        body.status.value,
        actor_role=admin.role,
        actor_id=admin.admin_id,
        note=body.note,
    )
    record_admin_action(
        admin.admin_id,
        "ORDER_STATUS_CHANGED",
        order_id,
        before={"status": order.previous_status},
        after={"status": order.status, "note": body.note},
        description=f"Order status changed from {order.previous_status} to {order.status}",
        **_client_details(request),
    )
    return OrderEnvelope(data=OrderResponse.from_order(order, include_admin_notes=True))


@admin_router.patch("/{order_id}/admin-notes", response_model=OrderEnvelope)
async def update_admin_notes(
    order_id: str,
    body: UpdateAdminNotesRequest,
    request: Request,
    admin: AdminIdentity = Depends(require_admin),
) -> OrderEnvelope:
    result = operations.update_admin_notes(order_id, body.admin_notes)
    record_admin_action(
        admin.admin_id,
        "ORDER_NOTES_UPDATED",
        order_id,
        before={"admin_notes": result["previous_notes"]},
        after={"admin_notes": result["admin_notes"]},
        **_client_details(request),
    )
    order = load_order(order_id)
    return OrderEnvelope(data=OrderResponse.from_order(order, include_admin_notes=True))


@admin_router.patch("/{order_id}/payment", response_model=OrderEnvelope)
async def record_payment(
    order_id: str,
    body: RecordPaymentRequest,
    request: Request,
    admin: AdminIdentity = Depends(require_admin),
) -> OrderEnvelope:
    result = operations.record_payment(
        order_id,
        body.status.value,
        provider=body.provider,
        transaction_id=body.transaction_id,
    )
    record_admin_action(
        admin.admin_id,
        "ORDER_PAYMENT_RECORDED",
        order_id,
        before={"payment_status": result["previous_status"]},
        after={"payment_status": result["status"]},
        **_client_details(request),
    )
    order = load_order(order_id)
    return OrderEnvelope(data=OrderResponse.from_order(order, include_admin_notes=True))
