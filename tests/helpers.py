from tracker.app.auth import create_principal_token
from tracker.app.models import AppUser


def make_user(db, auth_id, role="user", email=None, name=None):
    user = AppUser(auth_id=auth_id, role=role, email=email or f"{auth_id}@example.com", name=name)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def bearer(auth_id, email=None, name=None):
    return {"Authorization": f"Bearer {create_principal_token(auth_id, email=email, name=name)}"}
