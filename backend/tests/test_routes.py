"""
HTTP surface tests.

Verifies:
- Protected endpoints return 401 without a token
- Service errors map to 400/401/404/409 with an "error" body
- Login/logout round trip over HTTP
- Public catalog endpoints need no token
"""

import pytest

from app.extensions import mailer
from conftest import ADMIN_EMAIL, ADMIN_PASSWORD


# =============================================================================
# UNAUTHENTICATED ACCESS (401)
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/auth/profile"),
            ("POST", "/api/auth/logout"),
            ("GET", "/api/orders"),
            ("POST", "/api/orders"),
            ("POST", "/api/orders/complete"),
            ("GET", "/api/orders/1"),
            ("PUT", "/api/orders/1/status?status=x"),
            ("GET", "/api/products"),
            ("POST", "/api/products"),
            ("GET", "/api/categories"),
            ("POST", "/api/categories"),
            ("GET", "/api/suppliers"),
            ("DELETE", "/api/suppliers/1-9"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_garbage_token(self, client, db_session):
        resp = client.get("/api/auth/profile", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401


# =============================================================================
# AUTH
# =============================================================================


class TestAuthRoutes:

    def test_login_logout_round_trip(self, client, admin_user):
        resp = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
        assert resp.status_code == 200
        token = resp.json["access_token"]
        headers = {"Authorization": f"Bearer {token}"}

        assert client.get("/api/auth/profile", headers=headers).json["email"] == ADMIN_EMAIL

        resp = client.post("/api/auth/logout", headers=headers)
        assert resp.status_code == 200
        assert resp.json["user_id"] == admin_user.id

        assert client.get("/api/auth/profile", headers=headers).status_code == 401

    def test_wrong_password(self, client, admin_user):
        resp = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": "bad-password"})
        assert resp.status_code == 401
        assert "error" in resp.json
        assert "access_token" not in resp.json

    def test_missing_fields(self, client, db_session):
        assert client.post("/api/auth/login", json={}).status_code == 400

    def test_register(self, client, db_session):
        resp = client.post("/api/auth/register", json={
            "email": "nuevo@example.com",
            "password": "secret123",
            "rut": "15555555-5",
        })
        assert resp.status_code == 201
        assert resp.json["token_type"] == "Bearer"

    def test_register_duplicate(self, client, admin_user):
        resp = client.post("/api/auth/register", json={
            "email": ADMIN_EMAIL,
            "password": "secret123",
            "rut": "15555555-5",
        })
        assert resp.status_code == 409


# =============================================================================
# ORDERS
# =============================================================================


class TestOrderRoutes:

    def test_create_and_fetch(self, client, admin_headers, product_p):
        resp = client.post("/api/orders", headers=admin_headers, json={
            "rut": "12345678-9",
            "shipping_address": "Calle 1",
            "order_details": [{"product_id": product_p.id, "quantity": 2}],
        })
        assert resp.status_code == 201
        order_id = resp.json["order_id"]
        assert resp.json["total_amount"] == 2000

        resp = client.get(f"/api/orders/{order_id}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["order_details"][0]["product"]["name"] == product_p.name

    def test_insufficient_stock_is_400(self, client, admin_headers, product_p):
        resp = client.post("/api/orders", headers=admin_headers, json={
            "rut": "12345678-9",
            "shipping_address": "Calle 1",
            "order_details": [{"product_id": product_p.id, "quantity": 10}],
        })
        assert resp.status_code == 400
        assert resp.json["items"][0]["stock"] == 5

    def test_unknown_order_is_404(self, client, admin_headers):
        assert client.get("/api/orders/999", headers=admin_headers).status_code == 404

    def test_update_status(self, client, admin_headers, product_p):
        created = client.post("/api/orders", headers=admin_headers, json={
            "rut": "12345678-9",
            "shipping_address": "Calle 1",
            "order_details": [{"product_id": product_p.id, "quantity": 1}],
        }).json

        resp = client.put(f"/api/orders/{created['order_id']}/status?status=shipped", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["status"] == "shipped"

        listed = client.get("/api/orders?status=shipped&limit=5", headers=admin_headers).json
        assert listed["total"] == 1
        assert listed["limit"] == 5

    def test_customer_may_not_order(self, client, customer_user, product_p):
        login = client.post("/api/auth/login", json={"email": "ana@example.com", "password": "secret123"})
        headers = {"Authorization": f"Bearer {login.json['access_token']}"}

        resp = client.post("/api/orders", headers=headers, json={
            "rut": "22222222-2",
            "shipping_address": "Calle 1",
            "order_details": [{"product_id": product_p.id, "quantity": 1}],
        })
        assert resp.status_code == 400

    def test_complete_order(self, client, admin_headers, product_p):
        resp = client.post("/api/orders/complete", headers=admin_headers, json={
            "customer": {
                "rut": "18765432-1",
                "name": "Juan Pérez",
                "email": "juan.perez@email.com",
                "address": "Calle Principal 123",
                "password": "prueba123",
            },
            "shipping_address": "Calle Principal 123",
            "order_details": [{"product_id": product_p.id, "quantity": 1}],
            "notification": {"channel_id": 1, "message": "Su orden ha sido creada"},
        })
        assert resp.status_code == 201
        assert resp.json["order_number"] == "ORD-001"
        assert resp.json["total"] == "$1.000"


# =============================================================================
# CATALOG
# =============================================================================


class TestCatalogRoutes:

    def test_duplicate_category_is_409(self, client, admin_headers, category):
        resp = client.post("/api/categories", headers=admin_headers, json={"name": category.name})
        assert resp.status_code == 409

    def test_unknown_supplier_is_404(self, client, admin_headers):
        assert client.get("/api/suppliers/0-0", headers=admin_headers).status_code == 404

    def test_product_crud(self, client, admin_headers, supplier, category):
        resp = client.post("/api/products", headers=admin_headers, json={
            "name": "Té Verde",
            "price": 2000,
            "stock": 4,
            "rut_supplier": supplier.rut,
            "category_id": category.id,
        })
        assert resp.status_code == 201
        product_id = resp.json["product_id"]

        resp = client.put(f"/api/products/{product_id}", headers=admin_headers, json={"stock": 6})
        assert resp.json["stock"] == 10

        listed = client.get("/api/products?search=té", headers=admin_headers).json
        assert listed["total"] == 1

        assert client.delete(f"/api/products/{product_id}", headers=admin_headers).status_code == 200
        assert client.get(f"/api/products/{product_id}", headers=admin_headers).status_code == 404

    def test_invalid_product_payload_is_400(self, client, admin_headers, supplier, category):
        resp = client.post("/api/products", headers=admin_headers, json={"name": "Sin precio"})
        assert resp.status_code == 400

    def test_public_catalog(self, client, db_session, product_p):
        assert client.get("/api/catalog/products").json["total"] == 1
        assert client.get(f"/api/catalog/products/{product_p.id}").status_code == 200
        assert client.get(f"/api/catalog/products/category/{product_p.category_id}").status_code == 200
        assert client.get("/api/catalog/categories").json[0]["name"] == "Bebidas"

    def test_public_catalog_hides_inactive(self, client, admin_headers, product_p):
        client.put(f"/api/products/{product_p.id}", headers=admin_headers, json={"status": False})

        assert client.get("/api/catalog/products").json["total"] == 0
        assert client.get(f"/api/catalog/products/{product_p.id}").status_code == 404


# =============================================================================
# OTP AND SYSTEM
# =============================================================================


class TestOtpRoutes:

    def test_send_and_verify(self, client, admin_user):
        resp = client.post("/api/otp/send", json={"email": ADMIN_EMAIL})
        assert resp.status_code == 200
        code = mailer.outbox[-1].context["otp_code"]

        resp = client.post("/api/otp/verify", json={"email": ADMIN_EMAIL, "code": code})
        assert resp.status_code == 200
        assert resp.json["is_valid"] is True

    def test_send_to_unknown_email_is_404(self, client, db_session):
        assert client.post("/api/otp/send", json={"email": "nobody@example.com"}).status_code == 404


def test_health(client, db_session):
    resp = client.get("/api/system/health")
    assert resp.status_code == 200
    assert resp.json["status"] == "healthy"
