from unittest.mock import AsyncMock, patch

from showmart.database import models

EMAIL = "new.user@example.com"


def _register(client, fake_redis, role="customer", city=None, full_name="New User"):
    with patch("showmart.services.account_service.send_email", new=AsyncMock(return_value=({}, "OK"))):
        assert client.post("/api/auth/send-otp", json={"email": EMAIL}).status_code == 200
    otp = fake_redis.store[f"reg_otp:{EMAIL}"]
    assert client.post("/api/auth/verify-otp", json={"email": EMAIL, "otp": otp}).status_code == 200
    payload = {"email": EMAIL, "password": "secret123", "role": role, "full_name": full_name}
    if city is not None:
        payload["city"] = city
    return client.post("/api/auth/signup", json=payload)


def test_send_otp_stores_code_with_ttl(client, fake_redis):
    mocked = AsyncMock(return_value=({}, "OK"))
    with patch("showmart.services.account_service.send_email", new=mocked):
        resp = client.post("/api/auth/send-otp", json={"email": EMAIL})

    assert resp.status_code == 200
    otp = fake_redis.store[f"reg_otp:{EMAIL}"]
    assert len(otp) == 6 and otp.isdigit()
    assert fake_redis.ttls[f"reg_otp:{EMAIL}"] == 600 * 1000
    assert otp in mocked.call_args.args[2]


def test_send_otp_reports_mail_failure_without_erroring(client, fake_redis):
    with patch("showmart.services.account_service.send_email", new=AsyncMock(return_value=None)):
        resp = client.post("/api/auth/send-otp", json={"email": EMAIL})
    assert resp.status_code == 200
    assert "could not be sent" in resp.json()["detail"]


def test_send_otp_for_registered_email_conflicts(client, make_user):
    user, _ = make_user(email="taken@example.com")
    resp = client.post("/api/auth/send-otp", json={"email": user.email})
    assert resp.status_code == 409


def test_wrong_otp_is_rejected(client, fake_redis):
    fake_redis.store[f"reg_otp:{EMAIL}"] = "123456"
    resp = client.post("/api/auth/verify-otp", json={"email": EMAIL, "otp": "654321"})
    assert resp.status_code == 400
    assert f"reg_verified:{EMAIL}" not in fake_redis.store


def test_signup_requires_verified_email(client):
    resp = client.post(
        "/api/auth/signup",
        json={"email": EMAIL, "password": "secret123", "role": "customer"},
    )
    assert resp.status_code == 400
    assert "not verified" in resp.json()["detail"]


def test_signup_without_redis_is_unavailable(no_redis_client):
    resp = no_redis_client.post(
        "/api/auth/signup",
        json={"email": EMAIL, "password": "secret123", "role": "customer"},
    )
    assert resp.status_code == 503


def test_full_customer_signup(client, fake_redis, db):
    resp = _register(client, fake_redis, role="customer", city="  Pune ")
    assert resp.status_code == 201
    body = resp.json()
    assert body["roles"] == ["customer"]
    assert f"reg_verified:{EMAIL}" not in fake_redis.store

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"}).json()
    assert me["email"] == EMAIL
    assert me["home"] == "shop"
    assert me["profile"]["full_name"] == "New User"
    assert me["profile"]["city"] == "Pune"


def test_wholesaler_city_is_not_stored(client, fake_redis):
    token = _register(client, fake_redis, role="wholesaler", city="Pune").json()["access_token"]
    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"}).json()
    assert me["home"] == "dashboard"
    assert me["profile"]["city"] is None


def test_blank_full_name_defaults_to_user(client, fake_redis):
    token = _register(client, fake_redis, full_name="   ").json()["access_token"]
    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"}).json()
    assert me["profile"]["full_name"] == "User"


def test_signup_rejects_admin_role_and_short_password(client, fake_redis):
    fake_redis.store[f"reg_verified:{EMAIL}"] = "true"
    resp = client.post("/api/auth/signup", json={"email": EMAIL, "password": "secret123", "role": "admin"})
    assert resp.status_code == 422
    resp = client.post("/api/auth/signup", json={"email": EMAIL, "password": "123", "role": "customer"})
    assert resp.status_code == 422


def test_login_and_logout(client, make_user):
    user, _ = make_user(role="retailer", email="shop@example.com")

    bad = client.post("/api/auth/login", data={"username": user.email, "password": "wrong-pass"})
    assert bad.status_code == 401
    assert bad.json()["detail"] == "Invalid credentials"

    resp = client.post("/api/auth/login", data={"username": user.email, "password": "secret123"})
    assert resp.status_code == 200
    token = resp.json()["access_token"]
    headers = {"Authorization": f"Bearer {token}"}
    assert resp.json()["roles"] == ["retailer"]

    assert client.get("/api/auth/me", headers=headers).status_code == 200
    assert client.post("/api/auth/logout", headers=headers).json()["message"] == "Logged out successfully"
    assert client.post("/api/auth/logout", headers=headers).json()["message"] == "Already logged out"
    assert client.get("/api/auth/me", headers=headers).status_code == 401


def test_login_normalises_email_domain(client, make_user):
    make_user(email="buyer@example.com")

    resp = client.post("/api/auth/login", data={"username": "buyer@EXAMPLE.com", "password": "secret123"})
    assert resp.status_code == 200
    assert resp.json()["roles"] == ["customer"]

    malformed = client.post("/api/auth/login", data={"username": "not-an-email", "password": "secret123"})
    assert malformed.status_code == 401
    assert malformed.json()["detail"] == "Invalid credentials"


def test_admin_home_is_cinema(client, db, make_user):
    user, headers = make_user(role="admin")
    assert client.get("/api/auth/me", headers=headers).json()["home"] == "cinema"


def test_update_profile_and_location(client, db, make_user):
    user, headers = make_user()

    resp = client.put(
        "/api/auth/me/profile",
        json={"phone": "9876543210", "address": "12 MG Road", "pincode": "411001"},
        headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json()["phone"] == "9876543210"

    assert client.put("/api/auth/me/profile", json={"phone": "12"}, headers=headers).status_code == 422

    assert client.put("/api/auth/me/location", json={"city": "   "}, headers=headers).status_code == 400
    resp = client.put("/api/auth/me/location", json={"city": " Mumbai "}, headers=headers)
    assert resp.json()["city"] == "Mumbai"


def test_location_creates_missing_profile(client, db, make_user):
    user, headers = make_user()
    db.delete(user.profile)
    db.commit()

    resp = client.put("/api/auth/me/location", json={"city": "Delhi"}, headers=headers)
    assert resp.status_code == 200
    db.expire_all()
    assert db.get(models.Profile, user.id).city == "Delhi"
    assert db.get(models.Profile, user.id).full_name == "User"


def test_create_admin_grants_role_to_existing_user(db, make_user):
    from showmart.services import account_service

    user, _ = make_user(email="promote@example.com")
    admin = account_service.create_admin(db, "promote@example.com", "ignored-password")
    assert admin.id == user.id
    assert admin.role_names == ["admin", "customer"]
