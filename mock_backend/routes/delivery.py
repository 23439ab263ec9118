"""Delivery API routes for the mock storefront"""

from datetime import date, timedelta

from fastapi import APIRouter, Depends

from ..models.order import ShipmentRequest, ShippingRequest
from ..database.delivery import FREE_SHIPPING_THRESHOLD, Zone, delivery_rates
from ..database.orders import order_db
from ..security.auth import Shopper, require_user
from .envelope import ok, fail

router = APIRouter(prefix="/api/v2/delivery", tags=["Delivery"])


def estimated_delivery(zone: Zone) -> dict:
    today = date.today()
    return {
        "minDays": zone.min_days,
        "maxDays": zone.max_days,
        "from": (today + timedelta(days=zone.min_days)).isoformat(),
        "to": (today + timedelta(days=zone.max_days)).isoformat(),
    }


@router.get("/check/{pincode}")
async def check_delivery(pincode: str):
    """Quick serviceability check"""
    if not delivery_rates.is_valid_pincode(pincode):
        return fail("Invalid pincode")

    zone = delivery_rates.zone_for(pincode)
    if not zone.serviceable:
        return ok(
            {
                "pincode": pincode,
                "isServiceable": False,
                "codAvailable": False,
                "message": f"Delivery not available for pincode {pincode}",
            }
        )

    return ok(
        {
            "pincode": pincode,
            "isServiceable": True,
            "codAvailable": zone.cod_available,
            "estimatedDelivery": estimated_delivery(zone),
            "delivery": {"message": zone.partner},
        }
    )


@router.post("/calculate-shipping")
async def calculate_shipping(request: ShippingRequest):
    """Priced shipping quote"""
    if not delivery_rates.is_valid_pincode(request.pincode):
        return fail("Invalid pincode")

    zone = delivery_rates.zone_for(request.pincode)
    if not zone.serviceable:
        return fail(f"Delivery not available for pincode {request.pincode}")

    quote = delivery_rates.quote(request.pincode, request.cart_total, request.weight, request.cod)
    return ok(
        {
            "shippingCharges": quote.shipping_charges,
            "codCharges": quote.cod_charges,
            "totalShipping": quote.total_shipping,
            "isFreeShipping": quote.is_free_shipping,
            "codAvailable": zone.cod_available,
            "estimatedDelivery": estimated_delivery(zone),
            "deliveryPartner": zone.partner,
            "freeShippingThreshold": FREE_SHIPPING_THRESHOLD,
            "amountForFreeShipping": max(FREE_SHIPPING_THRESHOLD - request.cart_total, 0),
        }
    )


@router.post("/shipment")
async def create_shipment(
    request: ShipmentRequest,
    shopper: Shopper = Depends(require_user),
):
    """Create the shipment record for an order"""
    order = order_db.get_order(request.order_id)
    if not order or order.user_id != shopper.user_id:
        return fail("Order not found", status_code=404)

    shipment_id = order_db.create_shipment(order.order_id)
    return ok({"shipmentId": shipment_id, "orderId": order.order_id}, status_code=201)
