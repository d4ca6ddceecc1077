# tracker/app/models.py
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, JSON
from sqlalchemy.orm import relationship
from .db import Base


def utcnow():
    return datetime.now(timezone.utc)


# Catalog device shown to customers and linked from orders
class Device(Base):
    __tablename__ = "devices"
    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    model = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    color = Column(String, nullable=True)
    storage = Column(String, nullable=True)
    price = Column(String, nullable=True)  # display string, e.g. "From RM 9,999"
    image_url = Column(String, nullable=True)
    quantity = Column(Integer, default=1)
    created_at = Column(DateTime(timezone=True), default=utcnow)


class AppUser(Base):
    __tablename__ = "app_users"
    id = Column(Integer, primary_key=True)
    auth_id = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, nullable=True)
    name = Column(String, nullable=True)
    role = Column(String, default="user", nullable=False)  # 'admin' | 'user'
    created_at = Column(DateTime(timezone=True), default=utcnow)


class Order(Base):
    __tablename__ = "orders"
    id = Column(Integer, primary_key=True)
    order_number = Column(String, unique=True, index=True, nullable=False)
    tracking_number = Column(String, unique=True, index=True, nullable=True)
    device_id = Column(Integer, ForeignKey("devices.id"), nullable=True)
    user_id = Column(Integer, ForeignKey("app_users.id"), nullable=True)
    customer_name = Column(String, nullable=True)
    customer_email = Column(String, index=True, nullable=True)
    shipping_address = Column(Text, nullable=True)
    waybill = Column(String, nullable=True)
    package_dimensions = Column(String, nullable=True)
    sender_info = Column(JSON, nullable=True)
    receiver_info = Column(JSON, nullable=True)
    status = Column(String, default="processing")  # processing, shipped, delivered, ...
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow)

    device = relationship("Device")
    events = relationship("TrackingEvent", back_populates="order")


# Append-only: no update or delete path exists for events
class TrackingEvent(Base):
    __tablename__ = "tracking_events"
    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id"), index=True, nullable=False)
    package_id = Column(Integer, default=0)
    date = Column(DateTime(timezone=True), default=utcnow)
    location = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    order = relationship("Order", back_populates="events")


class Asset(Base):
    __tablename__ = "assets"
    id = Column(Integer, primary_key=True)
    filename = Column(String, nullable=False)
    url = Column(String, nullable=False)  # storage URI, s3://<bucket>/<key>
    size = Column(Integer, nullable=True)
    mime_type = Column(String, nullable=True)
    uploaded_at = Column(DateTime(timezone=True), default=utcnow)
