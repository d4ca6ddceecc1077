import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tracker.app.api import app
from tracker.app.db import get_db, init_db
from tracker.app.models import Device, Order
from tracker.app.storage import BlobStore, get_blob_store

from tests.helpers import make_user, bearer


@pytest.fixture
def engine():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def store(tmp_path):
    return BlobStore(tmp_path / "storage", "assets", "http://testserver", "test-secret")


@pytest.fixture
def client(session_factory, store):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_blob_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers(db):
    make_user(db, "admin-1", role="admin", name="Admin User")
    return bearer("admin-1")


@pytest.fixture
def user_headers(db):
    make_user(db, "user-1", role="user", name="Plain User")
    return bearer("user-1")


@pytest.fixture
def device(db):
    d = Device(name="iPhone 15", model="A3090", color="Blue", storage="128GB", price="From RM 4,299", quantity=3)
    db.add(d)
    db.commit()
    db.refresh(d)
    return d


@pytest.fixture
def order(db, device):
    o = Order(order_number="ORD-100", tracking_number="TRK-200", device_id=device.id,
              customer_name="Jane Roe", customer_email="jane@example.com",
              shipping_address="1 Main Rd", waybill="WB-1", status="processing")
    db.add(o)
    db.commit()
    db.refresh(o)
    return o
