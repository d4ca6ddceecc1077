# tracker/app/api.py
import logging
from typing import Optional

from fastapi import FastAPI, Depends, HTTPException, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import crud
from .assets import AssetManager
from .auth import Principal, get_current_principal, get_current_user, require_admin
from .config import settings, default_secrets
from .db import SessionLocal, get_db, init_db
from .models import AppUser
from .schemas import (
    OrderAccessIn, DeviceIn, DeviceUpdate, OrderIn, OrderUpdate,
    TrackingEventIn, RoleUpdate, LinkOrderIn,
)
from .storage import BlobStore, get_blob_store
from .utils import (
    seed_demo_data, serialize_device, serialize_user, serialize_order,
    serialize_event, serialize_asset,
)

logger = logging.getLogger(__name__)

app = FastAPI(title="Order Tracker API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Startup: init DB, seed an empty catalog
@app.on_event("startup")
def on_startup():
    for name in default_secrets(settings):
        logger.warning("%s is using its default value; set it in the environment", name)
    init_db()
    if settings.SEED_DEMO_DATA:
        db = SessionLocal()
        try:
            seed_demo_data(db)
        finally:
            db.close()


# ---------------------------
# Error responses: always {"error": ...}
# ---------------------------
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    problems = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        problems.append(f"{field}: {err.get('msg')}" if field else err.get("msg"))
    return JSONResponse(status_code=400, content={"error": "; ".join(problems) or "Invalid request"})

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.get("/health")
def health_check():
    return {"status": "healthy"}


# ---------------------------
# Public endpoints
# ---------------------------
@app.get("/api/public/devices")
def public_devices(db: Session = Depends(get_db)):
    return {"data": [serialize_device(d) for d in crud.list_devices(db)]}

@app.post("/api/public/order-access")
def order_access(body: OrderAccessIn, db: Session = Depends(get_db)):
    result = crud.verify_order_access(db, body.email, body.reference)
    order = serialize_order(result["order"])
    order["device"] = serialize_device(result["device"])
    return {"order": order, "timeline": [serialize_event(e) for e in result["timeline"]]}


# ---------------------------
# Users
# ---------------------------
@app.post("/api/users/sync")
def sync_user(user: AppUser = Depends(get_current_user)):
    return {"user": serialize_user(user)}

@app.get("/api/users")
def list_users(admin: AppUser = Depends(require_admin), db: Session = Depends(get_db)):
    return {"data": [serialize_user(u) for u in crud.list_users(db)]}

@app.put("/api/users/{user_id}/role")
def update_user_role(user_id: int, body: RoleUpdate,
                     admin: AppUser = Depends(require_admin), db: Session = Depends(get_db)):
    crud.set_user_role(db, user_id, body.role)
    return {"success": True}

@app.post("/api/users/link-order")
def link_order(body: LinkOrderIn, principal: Principal = Depends(get_current_principal),
               db: Session = Depends(get_db)):
    crud.link_order(db, body.user_id, str(body.order_identifier))
    return {"success": True}


# ---------------------------
# Assets
# ---------------------------
@app.post("/api/assets/upload")
def upload_asset(file: Optional[UploadFile] = File(None),
                 admin: AppUser = Depends(require_admin),
                 db: Session = Depends(get_db), store: BlobStore = Depends(get_blob_store)):
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")
    data = file.file.read()
    asset = AssetManager(db, store).upload(file.filename, data, file.content_type)
    return {"data": serialize_asset(asset)}

@app.get("/api/assets")
def list_assets(admin: AppUser = Depends(require_admin),
                db: Session = Depends(get_db), store: BlobStore = Depends(get_blob_store)):
    return {"data": AssetManager(db, store).list()}

@app.get("/api/assets/files/{key:path}")
def download_asset(key: str, token: str = "", store: BlobStore = Depends(get_blob_store)):
    if not token or not store.verify_download_token(key, token):
        raise HTTPException(status_code=403, detail="Invalid or expired download link")
    if not store.exists(key):
        raise HTTPException(status_code=404, detail="Not found")
    return FileResponse(str(store.path_for(key)))

@app.delete("/api/assets/{asset_id}")
def delete_asset(asset_id: int, admin: AppUser = Depends(require_admin),
                 db: Session = Depends(get_db), store: BlobStore = Depends(get_blob_store)):
    AssetManager(db, store).delete(asset_id)
    return {"success": True}


# ---------------------------
# Devices (admin)
# ---------------------------
@app.get("/api/devices")
def list_devices(admin: AppUser = Depends(require_admin), db: Session = Depends(get_db)):
    return {"data": [serialize_device(d) for d in crud.list_devices(db)]}

@app.post("/api/devices")
def create_device(body: DeviceIn, admin: AppUser = Depends(require_admin),
                  db: Session = Depends(get_db)):
    device = crud.create_device(db, body.model_dump(exclude_unset=True))
    return {"data": serialize_device(device)}

@app.put("/api/devices/{device_id}")
def update_device(device_id: int, body: DeviceUpdate, admin: AppUser = Depends(require_admin),
                  db: Session = Depends(get_db)):
    device = crud.update_device(db, device_id, body.model_dump(exclude_unset=True))
    return {"data": serialize_device(device)}


# ---------------------------
# Orders (admin)
# ---------------------------
@app.get("/api/orders")
def list_orders(admin: AppUser = Depends(require_admin), db: Session = Depends(get_db)):
    return {"data": [serialize_order(o) for o in crud.list_orders(db)]}

@app.post("/api/orders")
def create_order(body: OrderIn, admin: AppUser = Depends(require_admin),
                 db: Session = Depends(get_db)):
    order = crud.create_order(db, body.model_dump(exclude_unset=True))
    return {"data": serialize_order(order)}

@app.put("/api/orders/{order_id}")
def update_order(order_id: int, body: OrderUpdate, admin: AppUser = Depends(require_admin),
                 db: Session = Depends(get_db)):
    crud.update_order(db, order_id, body.model_dump(exclude_unset=True))
    return {"success": True}

@app.get("/api/orders/{order_id}/events")
def list_order_events(order_id: int, admin: AppUser = Depends(require_admin),
                      db: Session = Depends(get_db)):
    return {"data": [serialize_event(e) for e in crud.list_events(db, order_id)]}

@app.post("/api/orders/{order_id}/events")
def add_order_event(order_id: int, body: TrackingEventIn, admin: AppUser = Depends(require_admin),
                    db: Session = Depends(get_db)):
    event = crud.add_event(db, order_id, body.location, body.description,
                           date=body.date, update_status=body.update_status)
    return {"data": serialize_event(event)}
# EOF
