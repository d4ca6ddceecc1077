# tracker/app/crud.py
import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import HTTPException
from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .models import Device, AppUser, Order, TrackingEvent, utcnow
from .utils import generate_reference

logger = logging.getLogger(__name__)


def _commit_unique(db: Session, what: str):
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail=f"{what} already exists")


# ---------------------------
# Devices
# ---------------------------
def list_devices(db: Session) -> List[Device]:
    return db.query(Device).order_by(Device.id).all()

def get_device(db: Session, device_id: int) -> Optional[Device]:
    return db.query(Device).filter(Device.id == device_id).first()

def create_device(db: Session, fields: dict) -> Device:
    if not fields.get("name"):
        raise HTTPException(status_code=400, detail="name is required")
    if fields.get("quantity") is None:
        fields["quantity"] = 1
    device = Device(**fields)
    db.add(device)
    db.commit()
    db.refresh(device)
    return device

def update_device(db: Session, device_id: int, fields: dict) -> Device:
    device = get_device(db, device_id)
    if not device:
        raise HTTPException(status_code=404, detail="Device not found")
    if "name" in fields and not fields["name"]:
        raise HTTPException(status_code=400, detail="name is required")
    if fields:
        for key, value in fields.items():
            setattr(device, key, value)
        db.commit()
        db.refresh(device)
    return device


# ---------------------------
# Orders
# ---------------------------
def list_orders(db: Session) -> List[Order]:
    return db.query(Order).order_by(Order.created_at.desc(), Order.id.desc()).all()

def get_order(db: Session, order_id: int) -> Optional[Order]:
    return db.query(Order).filter(Order.id == order_id).first()

def create_order(db: Session, fields: dict) -> Order:
    fields.pop("status", None)
    if not fields.get("order_number"):
        fields["order_number"] = generate_reference(db, Order.order_number, "ORD")
    if not fields.get("tracking_number"):
        fields["tracking_number"] = generate_reference(db, Order.tracking_number, "TRK")

    order = Order(**fields, status="processing")
    db.add(order)
    _commit_unique(db, "Order number or tracking number")
    db.refresh(order)
    return order

def update_order(db: Session, order_id: int, fields: dict) -> bool:
    """Apply only the keys present in ``fields``; returns whether a write happened."""
    order = get_order(db, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    if not fields:
        return False
    if "order_number" in fields and not fields["order_number"]:
        raise HTTPException(status_code=400, detail="orderNumber cannot be empty")
    for key, value in fields.items():
        setattr(order, key, value)
    order.updated_at = utcnow()
    _commit_unique(db, "Order number or tracking number")
    return True


# ---------------------------
# Tracking timeline
# ---------------------------
def list_events(db: Session, order_id: int) -> List[TrackingEvent]:
    return (db.query(TrackingEvent)
            .filter(TrackingEvent.order_id == order_id)
            .order_by(TrackingEvent.date.desc(), TrackingEvent.id.desc())
            .all())

def add_event(db: Session, order_id: int, location: Optional[str], description: Optional[str],
              date: Optional[datetime] = None, update_status: Optional[str] = None) -> TrackingEvent:
    order = get_order(db, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")

    if date is None:
        date = utcnow()
    elif date.tzinfo is not None:
        date = date.astimezone(timezone.utc)

    event = TrackingEvent(order_id=order_id, package_id=0, date=date,
                          location=location, description=description)
    db.add(event)
    db.commit()
    db.refresh(event)

    # separate write: the event stays recorded even if this one fails
    if update_status:
        order.status = update_status
        db.commit()
    return event


# ---------------------------
# Public order access
# ---------------------------
def verify_order_access(db: Session, email: Optional[str], reference: Optional[str]) -> dict:
    if not email or not reference:
        raise HTTPException(status_code=400, detail="Email and Order/Tracking Number are required")

    logger.info("order access attempt for %s", email)
    order = (db.query(Order)
             .filter(and_(Order.customer_email == email,
                          or_(Order.order_number == reference, Order.tracking_number == reference)))
             .first())
    if not order:
        # same answer for unknown reference and wrong email
        logger.info("order access: no match for %s", email)
        raise HTTPException(status_code=401, detail="Order not found or email does not match")

    device = get_device(db, order.device_id) if order.device_id else None
    events = list_events(db, order.id)
    logger.info("order access granted for %s", order.order_number)
    return {"order": order, "device": device, "timeline": events}


# ---------------------------
# Users
# ---------------------------
def list_users(db: Session) -> List[AppUser]:
    return db.query(AppUser).order_by(AppUser.id).all()

def set_user_role(db: Session, user_id: int, role: str):
    user = db.query(AppUser).filter(AppUser.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    user.role = role
    db.commit()

def find_order_by_identifier(db: Session, identifier: str) -> Optional[Order]:
    conditions = [Order.order_number == identifier, Order.tracking_number == identifier]
    if identifier.isdigit():
        conditions.append(Order.id == int(identifier))
    return db.query(Order).filter(or_(*conditions)).first()

def link_order(db: Session, user_id: int, identifier: str):
    if db.query(AppUser.id).filter(AppUser.id == user_id).first() is None:
        raise HTTPException(status_code=404, detail="User not found")
    order = find_order_by_identifier(db, identifier)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    order.user_id = user_id
    db.commit()
