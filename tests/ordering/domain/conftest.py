import pytest
from ordering.order.order import Order


def _make_order(quantity=2, unit_price=26.0, fulfillment_type="PICKUP", delivery_address=None):
    line_total = round(unit_price * quantity, 2)
    fee = 15.0 if fulfillment_type == "DELIVERY" else 0.0
    vat = round((line_total + fee) * 0.05, 2)
    return Order.place(
        order_no="CBW-2025-000001",
        customer_id="cust-001",
        lines=[
            {
                "product_id": "prod-001",
                "variant_id": "var-001",
                "product_name": "Ethiopia Yirgacheffe",
                "variant_label": "250g",
                "weight_grams": 250,
                "sku": "ETH-YIR-250",
                "unit_price": unit_price,
                "quantity": quantity,
                "line_total": line_total,
            }
        ],
        pricing={
            "subtotal": line_total,
            "discount": 0.0,
            "delivery_fee": fee,
            "vat": vat,
            "grand_total": round(line_total + fee + vat, 2),
            "currency": "AED",
        },
        payment_method="COD",
        fulfillment_type=fulfillment_type,
        delivery_address=delivery_address,
    )


@pytest.fixture()
def order_factory():
    """Factory for placed orders: quantity, unit_price, fulfillment_type, delivery_address."""
    return _make_order


@pytest.fixture()
def order():
    order = _make_order()
    order._events.clear()
    return order
