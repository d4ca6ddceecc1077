# tracker/app/utils.py
import logging
import random
from datetime import datetime
from .models import Device, AppUser, Order, TrackingEvent, Asset, utcnow

logger = logging.getLogger(__name__)

REFERENCE_RANGE = 100000
REFERENCE_ATTEMPTS = 5

def format_reference(prefix: str, n: int) -> str:
    return f"{prefix}-{n}"

def generate_reference(db, column, prefix: str, attempts: int = REFERENCE_ATTEMPTS) -> str:
    """
    Draw ``<prefix>-<n>`` with n in [0, 100000) until it is unused in ``column``.
    After ``attempts`` draws the last candidate is returned as-is and the
    unique constraint decides.
    """
    candidate = format_reference(prefix, random.randrange(REFERENCE_RANGE))
    for _ in range(attempts - 1):
        if db.query(Order.id).filter(column == candidate).first() is None:
            break
        candidate = format_reference(prefix, random.randrange(REFERENCE_RANGE))
    return candidate

def _iso(dt: datetime | None):
    return dt.isoformat() if dt else None

# ---------------------------
# Record -> JSON dict
# ---------------------------
def serialize_device(d: Device | None):
    if d is None:
        return None
    return {
        "id": d.id,
        "name": d.name,
        "model": d.model,
        "description": d.description,
        "color": d.color,
        "storage": d.storage,
        "price": d.price,
        "imageUrl": d.image_url,
        "quantity": d.quantity,
        "createdAt": _iso(d.created_at),
    }

def serialize_user(u: AppUser):
    return {
        "id": u.id,
        "authId": u.auth_id,
        "email": u.email,
        "name": u.name,
        "role": u.role,
        "createdAt": _iso(u.created_at),
    }

def serialize_order(o: Order):
    return {
        "id": o.id,
        "orderNumber": o.order_number,
        "trackingNumber": o.tracking_number,
        "deviceId": o.device_id,
        "userId": o.user_id,
        "customerName": o.customer_name,
        "customerEmail": o.customer_email,
        "shippingAddress": o.shipping_address,
        "waybill": o.waybill,
        "packageDimensions": o.package_dimensions,
        "senderInfo": o.sender_info,
        "receiverInfo": o.receiver_info,
        "status": o.status,
        "createdAt": _iso(o.created_at),
        "updatedAt": _iso(o.updated_at),
    }

def serialize_event(e: TrackingEvent):
    return {
        "id": e.id,
        "orderId": e.order_id,
        "packageId": e.package_id,
        "date": _iso(e.date),
        "location": e.location,
        "description": e.description,
        "createdAt": _iso(e.created_at),
    }

def serialize_asset(a: Asset):
    return {
        "id": a.id,
        "filename": a.filename,
        "url": a.url,
        "size": a.size,
        "mimeType": a.mime_type,
        "uploadedAt": _iso(a.uploaded_at),
    }

# ---------------------------
# Demo data for an empty database
# ---------------------------
def seed_demo_data(db) -> bool:
    if db.query(Device.id).first() is not None:
        return False

    macbook = Device(
        name="MacBook Pro 14-inch",
        model="M3 Pro",
        description="Supercharged by M3 Pro",
        color="Space Black",
        storage="512GB",
        price="From RM 9,999",
        quantity=10,
    )
    db.add(macbook)
    db.flush()

    order = Order(
        order_number="ORD-77821",
        tracking_number="TRK-99012",
        device_id=macbook.id,
        customer_name="John Doe",
        customer_email="john@example.com",
        shipping_address="123 Apple St, Tech City",
        status="processing",
    )
    db.add(order)
    db.flush()

    db.add(TrackingEvent(
        order_id=order.id,
        location="Shah Alam Warehouse",
        description="Order processed and ready for packing",
        date=utcnow(),
    ))
    db.commit()
    logger.info("seeded demo device and order %s", order.order_number)
    return True
