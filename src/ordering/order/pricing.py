"""Server-side order pricing.

Client-supplied prices are never trusted: line totals come from the variant
price captured during placement, and every derived amount is rounded to cents.

    delivery_fee = DELIVERY_FEE for deliveries, 0 for pickup
    vat          = round((subtotal + delivery_fee) * VAT_RATE, 2)
    grand_total  = subtotal - discount + delivery_fee + vat
"""

from ordering.order.order import FulfillmentType
from ordering.shared import settings
from ordering.shared.money import round_money


def line_total(unit_price, quantity):
    return round_money(unit_price * quantity)


def delivery_fee_for(fulfillment_type):
    if FulfillmentType(fulfillment_type) == FulfillmentType.DELIVERY:
        return round_money(settings.DELIVERY_FEE)
    return 0.0


def calculate_pricing(line_totals, fulfillment_type, discount=0.0):
    """Return the pricing breakdown for an order as a dict."""
    subtotal = round_money(sum(line_totals))
    discount = round_money(discount)
    delivery_fee = delivery_fee_for(fulfillment_type)
    vat = round_money((subtotal + delivery_fee) * settings.VAT_RATE)
    grand_total = round_money(subtotal - discount + delivery_fee + vat)

    return {
        "subtotal": subtotal,
        "discount": discount,
        "delivery_fee": delivery_fee,
        "vat": vat,
        "grand_total": grand_total,
        "currency": settings.CURRENCY,
    }
