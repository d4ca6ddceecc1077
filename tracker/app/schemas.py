# tracker/app/schemas.py
"""
Request bodies for the JSON API.

Clients send camelCase keys (``orderNumber``, ``updateStatus``); the models
expose snake_case attributes that line up with the SQLAlchemy columns, so a
``model_dump(exclude_unset=True)`` can be applied to a row directly.
"""
from datetime import datetime
from typing import Any, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- public ---
class OrderAccessIn(CamelModel):
    email: Optional[str] = None
    reference: Optional[str] = None


# --- devices ---
class DeviceIn(CamelModel):
    name: str
    model: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None
    storage: Optional[str] = None
    price: Optional[str] = None
    image_url: Optional[str] = None
    quantity: Optional[int] = None


class DeviceUpdate(CamelModel):
    name: Optional[str] = None
    model: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None
    storage: Optional[str] = None
    price: Optional[str] = None
    image_url: Optional[str] = None
    quantity: Optional[int] = None


# --- orders ---
class OrderIn(CamelModel):
    order_number: Optional[str] = None
    tracking_number: Optional[str] = None
    device_id: Optional[int] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    shipping_address: Optional[str] = None
    waybill: Optional[str] = None
    package_dimensions: Optional[str] = None
    sender_info: Optional[Any] = None
    receiver_info: Optional[Any] = None
    status: Optional[str] = None  # accepted but ignored, new orders start as processing


class OrderUpdate(CamelModel):
    # Only keys present in the request body are applied; absent is not null.
    order_number: Optional[str] = None
    tracking_number: Optional[str] = None
    device_id: Optional[int] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    shipping_address: Optional[str] = None
    waybill: Optional[str] = None
    package_dimensions: Optional[str] = None
    sender_info: Optional[Any] = None
    receiver_info: Optional[Any] = None
    status: Optional[str] = None


class TrackingEventIn(CamelModel):
    location: Optional[str] = None
    description: Optional[str] = None
    date: Optional[datetime] = None
    update_status: Optional[str] = None


# --- users ---
class RoleUpdate(CamelModel):
    role: Literal["admin", "user"]


class LinkOrderIn(CamelModel):
    user_id: int
    order_identifier: Union[int, str]  # numeric ids may arrive as JSON numbers
