"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands and aggregates.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from ordering.shared import settings


class FulfillmentTypeSchema(str, Enum):
    DELIVERY = "DELIVERY"
    PICKUP = "PICKUP"


class PaymentMethodSchema(str, Enum):
    COD = "COD"
    CARD = "CARD"


class OrderStatusSchema(str, Enum):
    PENDING_CONFIRMATION = "PENDING_CONFIRMATION"
    CONFIRMED = "CONFIRMED"
    PREPARING = "PREPARING"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


class RecordablePaymentStatus(str, Enum):
    PAID = "PAID"
    FAILED = "FAILED"


class AdminRoleSchema(str, Enum):
    OWNER = "OWNER"
    MANAGER = "MANAGER"
    STAFF = "STAFF"


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    name: str
    phone: str
    street: str
    city: str
    emirate: str
    building: str | None = None
    apartment: str | None = None
    instructions: str | None = None


class OrderLineRequest(BaseModel):
    product_id: str
    variant_id: str
    quantity: int = Field(ge=1, le=settings.MAX_LINE_QUANTITY)


class FulfillmentRequest(BaseModel):
    type: FulfillmentTypeSchema
    address: AddressSchema | None = None
    notes: str | None = Field(default=None, max_length=1000)


class PaymentRequest(BaseModel):
    method: PaymentMethodSchema


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class CreateOrderRequest(BaseModel):
    items: list[OrderLineRequest] = Field(min_length=1)
    fulfillment: FulfillmentRequest
    payment: PaymentRequest

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "items": [{"product_id": "prod-001", "variant_id": "var-250g", "quantity": 2}],
                    "fulfillment": {
                        "type": "DELIVERY",
                        "address": {
                            "name": "Layla Haddad",
                            "phone": "+971500000000",
                            "street": "Al Wasl Road",
                            "city": "Dubai",
                            "emirate": "Dubai",
                        },
                    },
                    "payment": {"method": "COD"},
                }
            ]
        }
    }


class UpdateStatusRequest(BaseModel):
    status: OrderStatusSchema
    note: str | None = Field(default=None, max_length=500)


class UpdateAdminNotesRequest(BaseModel):
    admin_notes: str = Field(max_length=5000)


class RecordPaymentRequest(BaseModel):
    status: RecordablePaymentStatus
    provider: str | None = None
    transaction_id: str | None = None


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class OrderItemResponse(BaseModel):
    product_id: str
    variant_id: str
    product_name: str
    variant_label: str
    weight_grams: int
    sku: str
    unit_price: float
    quantity: int
    line_total: float


class PricingResponse(BaseModel):
    subtotal: float
    discount: float
    delivery_fee: float
    vat: float
    grand_total: float
    currency: str


class PaymentResponse(BaseModel):
    method: str
    status: str
    provider: str | None = None
    transaction_id: str | None = None


class FulfillmentResponse(BaseModel):
    type: str
    notes: str | None = None
    address: AddressSchema | None = None


class StatusChangeResponse(BaseModel):
    status: str
    changed_at: datetime
    actor_role: str
    actor_id: str | None = None
    note: str | None = None


class OrderResponse(BaseModel):
    id: str
    order_no: str
    customer_id: str
    status: str
    items: list[OrderItemResponse]
    pricing: PricingResponse
    payment: PaymentResponse
    fulfillment: FulfillmentResponse
    history: list[StatusChangeResponse]
    admin_notes: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_order(cls, order, include_admin_notes=False) -> "OrderResponse":
        address = order.delivery_address
        return cls(
            id=str(order.id),
            order_no=order.order_no,
            customer_id=str(order.customer_id),
            status=order.status,
            items=[
                OrderItemResponse(
                    product_id=str(item.product_id),
                    variant_id=str(item.variant_id),
                    product_name=item.product_name,
                    variant_label=item.variant_label,
                    weight_grams=item.weight_grams,
                    sku=item.sku,
                    unit_price=item.unit_price,
                    quantity=item.quantity,
                    line_total=item.line_total,
                )
                for item in order.items
            ],
            pricing=PricingResponse(**order.pricing.to_dict()),
            payment=PaymentResponse(**order.payment.to_dict()),
            fulfillment=FulfillmentResponse(
                type=order.fulfillment.type,
                notes=order.fulfillment.notes or None,
                address=AddressSchema(**address.to_dict()) if address else None,
            ),
            history=[
                StatusChangeResponse(
                    status=entry.status,
                    changed_at=entry.changed_at,
                    actor_role=entry.actor_role,
                    actor_id=entry.actor_id,
                    note=entry.note,
                )
                for entry in order.timeline
            ],
            admin_notes=order.admin_notes if include_admin_notes else None,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class PageMeta(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class OrderEnvelope(BaseModel):
    success: bool = True
    data: OrderResponse
    message: str | None = None


class OrderListEnvelope(BaseModel):
    success: bool = True
    data: list[OrderResponse]
    meta: PageMeta


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    code: str
    details: Any = None
