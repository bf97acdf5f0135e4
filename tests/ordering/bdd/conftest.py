"""Shared BDD fixtures and step definitions for the Ordering domain."""

import pytest
from ordering.order.operations import create_order
from ordering.order.order import Order
from ordering.product.product import Product
from protean import current_domain
from pytest_bdd import given, parsers, then


@pytest.fixture()
def context():
    """Mutable scenario state shared between steps."""
    return {"orders": [], "error": None}


@pytest.fixture()
def place_order(context, delivery_address):
    """Place an order for the seeded variant and remember it on the context."""

    def _place(quantity, fulfillment_type="PICKUP"):
        fulfillment = {"type": fulfillment_type}
        if fulfillment_type == "DELIVERY":
            fulfillment["address"] = delivery_address
        order = create_order(
            customer_id="cust-001",
            items=[{"product_id": context["product_id"], "variant_id": context["variant_id"], "quantity": quantity}],
            fulfillment=fulfillment,
            payment={"method": "COD"},
        )
        context["orders"].append(order)
        return order

    return _place


def latest_order(context):
    return current_domain.repository_for(Order).get(context["orders"][-1].id)


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse("a coffee variant priced at {price:f} with {stock:d} units in stock"))
def _(context, seed_product, price, stock):
    context["product_id"], context["variant_id"] = seed_product(price=price, stock_qty=stock)


@given(parsers.cfparse("the customer has placed an order for {quantity:d} units"))
def _(place_order, quantity):
    place_order(quantity)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the variant has {stock:d} units in stock"))
def _(context, stock):
    product = current_domain.repository_for(Product).get(context["product_id"])
    assert product.variant_index[context["variant_id"]].stock_qty == stock


@then(parsers.cfparse('the order status is "{status}"'))
def _(context, status):
    assert latest_order(context).status == status


@then(parsers.cfparse('the payment status is "{status}"'))
def _(context, status):
    assert latest_order(context).payment.status == status
