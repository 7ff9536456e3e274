"""
HTTP API tests.

Verifies:
- Unauthenticated requests return 401
- Staff are limited to viewing and adjusting stock (403 elsewhere)
- Ledger-backed flows over HTTP (create, adjust, delete, history, exports)
- Error mapping: 400 / 404 / 409
"""

import pytest

from conftest import TEST_PIN


@pytest.fixture
def rice(make_item):
    return make_item(name="Rice", category="Grains", quantity=10, low_stock_threshold=5)


# =============================================================================
# AUTH
# =============================================================================


class TestAuth:

    def test_login_returns_token_and_permissions(self, client, users):
        resp = client.post("/api/auth/login", json={"username": "sam", "pin": TEST_PIN})
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["user"]["username"] == "sam"
        assert "pin_hash" not in body["user"]
        assert set(body["permissions"]) == {"VIEW_INVENTORY", "ADD_STOCK", "REMOVE_STOCK"}

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
        assert me.status_code == 200
        assert me.get_json()["user"]["id"] == users["staff"].id

    @pytest.mark.parametrize(
        "payload",
        [{"username": "sam", "pin": "0000"}, {"username": "ghost", "pin": TEST_PIN}],
    )
    def test_bad_credentials_are_indistinguishable(self, client, users, payload):
        resp = client.post("/api/auth/login", json=payload)
        assert resp.status_code == 401
        assert resp.get_json() == {"error": "Invalid credentials"}

    def test_missing_fields(self, client):
        assert client.post("/api/auth/login", json={"username": "sam"}).status_code == 400

    def test_garbage_token(self, client):
        resp = client.get("/api/auth/me", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401

    def test_deactivated_user_token_stops_working(self, client, ledger, users, staff_headers):
        ledger.users.deactivate(users["staff"].id)
        assert client.get("/api/auth/me", headers=staff_headers).status_code == 401

    def test_permission_catalogue(self, client, manager_headers, staff_headers):
        body = client.get("/api/auth/permissions", headers=manager_headers).get_json()
        codes = [p["code"] for p in body["permissions"]]
        assert "DELETE_ITEM" in codes
        assert codes.index("CREATE_ITEM") < codes.index("VIEW_TRANSACTIONS")
        add_stock = next(p for p in body["permissions"] if p["code"] == "ADD_STOCK")
        assert add_stock["category"] == "INVENTORY"
        assert add_stock["name"] == "Add Stock"

        users_only = client.get(
            "/api/auth/permissions?category=USERS", headers=manager_headers
        ).get_json()["permissions"]
        assert users_only and all(p["category"] == "USERS" for p in users_only)

        assert client.get("/api/auth/permissions", headers=staff_headers).status_code == 403


class TestUnauthenticatedAccess:

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/items"),
            ("POST", "/api/items"),
            ("POST", "/api/items/item-1/adjust"),
            ("DELETE", "/api/items/item-1"),
            ("GET", "/api/categories"),
            ("GET", "/api/users"),
            ("GET", "/api/transactions"),
            ("GET", "/api/transactions/export.csv"),
        ],
    )
    def test_requires_auth(self, client, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_health_is_public(self, client, backend_name):
        resp = client.get("/api/system/health")
        assert resp.status_code == 200
        assert resp.get_json()["storage"]["backend"] == backend_name


# =============================================================================
# STAFF LIMITS
# =============================================================================


class TestStaffDenied:

    def test_cannot_create_item(self, client, staff_headers):
        resp = client.post(
            "/api/items", json={"name": "X", "category": "Y"}, headers=staff_headers
        )
        assert resp.status_code == 403

    def test_cannot_delete_item(self, client, staff_headers, rice):
        assert client.delete(f"/api/items/{rice.id}", headers=staff_headers).status_code == 403

    def test_cannot_view_ledger(self, client, staff_headers):
        assert client.get("/api/transactions", headers=staff_headers).status_code == 403

    def test_cannot_list_users(self, client, staff_headers):
        assert client.get("/api/users", headers=staff_headers).status_code == 403

    def test_cannot_manage_categories(self, client, staff_headers):
        resp = client.post("/api/categories", json={"name": "Snacks"}, headers=staff_headers)
        assert resp.status_code == 403

    def test_manager_cannot_delete_item(self, client, manager_headers, rice):
        assert client.delete(f"/api/items/{rice.id}", headers=manager_headers).status_code == 403


# =============================================================================
# ITEMS AND STOCK
# =============================================================================


class TestItems:

    def test_create_item_with_initial_stock(self, client, ledger, manager_headers, users):
        resp = client.post(
            "/api/items",
            json={"name": "Flour", "category": "Baking", "quantity": 6, "low_stock_threshold": 2},
            headers=manager_headers,
        )
        assert resp.status_code == 201
        item = resp.get_json()["item"]
        assert item["quantity"] == 6
        assert item["created_by"] == users["manager"].id

        entries = ledger.transactions.get_by_item_id(item["id"])
        assert [e.quantity_change for e in entries] == [6]

    def test_create_item_validation(self, client, manager_headers):
        resp = client.post(
            "/api/items", json={"name": "Flour", "category": "Baking", "quantity": -1},
            headers=manager_headers,
        )
        assert resp.status_code == 400

    def test_list_search_and_low_stock(self, client, staff_headers, make_item):
        make_item(name="Brown Rice", category="Grains", quantity=1, low_stock_threshold=5)
        make_item(name="Oats", category="Grains", quantity=50)
        make_item(name="Rice Crackers", category="Snacks", quantity=50)

        names = lambda resp: [i["name"] for i in resp.get_json()["items"]]
        assert names(client.get("/api/items", headers=staff_headers)) == [
            "Brown Rice", "Oats", "Rice Crackers",
        ]
        assert names(client.get("/api/items?q=rice", headers=staff_headers)) == [
            "Brown Rice", "Rice Crackers",
        ]
        assert names(client.get("/api/items?category=Grains&q=rice", headers=staff_headers)) == [
            "Brown Rice",
        ]
        assert names(client.get("/api/items/low-stock", headers=staff_headers)) == ["Brown Rice"]
        cats = client.get("/api/items/categories", headers=staff_headers).get_json()["categories"]
        assert cats == ["Grains", "Snacks"]

    def test_staff_adjusts_stock(self, client, ledger, staff_headers, users, rice):
        resp = client.post(
            f"/api/items/{rice.id}/adjust",
            json={"quantity": -4, "notes": "Sold"},
            headers=staff_headers,
        )
        assert resp.status_code == 200
        assert resp.get_json()["item"]["quantity"] == 6

        latest = ledger.transactions.get_by_item_id(rice.id)[0]
        assert latest.quantity_change == -4
        assert latest.user_id == users["staff"].id
        assert latest.notes == "Sold"

    def test_adjust_errors(self, client, staff_headers, rice):
        url = f"/api/items/{rice.id}/adjust"
        assert client.post(url, json={"quantity": 0}, headers=staff_headers).status_code == 400
        assert client.post(url, json={"quantity": "abc"}, headers=staff_headers).status_code == 400
        assert client.post(url, json={}, headers=staff_headers).status_code == 400

        too_many = client.post(url, json={"quantity": -11}, headers=staff_headers)
        assert too_many.status_code == 409
        assert too_many.get_json()["available"] == 10

        missing = client.post(
            "/api/items/item-missing/adjust", json={"quantity": 1}, headers=staff_headers
        )
        assert missing.status_code == 404

    def test_quantity_is_not_patchable(self, client, manager_headers, rice):
        resp = client.patch(
            f"/api/items/{rice.id}", json={"quantity": 500}, headers=manager_headers
        )
        assert resp.status_code == 400

    def test_patch_metadata(self, client, manager_headers, rice):
        resp = client.patch(
            f"/api/items/{rice.id}", json={"description": "Jasmine"}, headers=manager_headers
        )
        assert resp.status_code == 200
        assert resp.get_json()["item"]["description"] == "Jasmine"
        missing = client.patch("/api/items/item-missing", json={"name": "X"}, headers=manager_headers)
        assert missing.status_code == 404

    @pytest.mark.parametrize("field", ["item_id", "id", "created_by"])
    def test_patch_rejects_unknown_fields(self, client, manager_headers, rice, field):
        resp = client.patch(
            f"/api/items/{rice.id}", json={field: "x"}, headers=manager_headers
        )
        assert resp.status_code == 400
        assert resp.get_json()["error"] == f"Field not allowed: {field}"

    def test_owner_deletes_item_history_survives(self, client, owner_headers, rice):
        resp = client.delete(f"/api/items/{rice.id}", headers=owner_headers)
        assert resp.status_code == 200

        assert client.get(f"/api/items/{rice.id}", headers=owner_headers).status_code == 404
        history = client.get(f"/api/items/{rice.id}/transactions", headers=owner_headers)
        actions = [t["action"] for t in history.get_json()["transactions"]]
        assert actions == ["Deleted", "New Item"]

        again = client.delete(f"/api/items/{rice.id}", headers=owner_headers)
        assert again.status_code == 404

    def test_delete_with_purge(self, client, owner_headers, rice):
        client.delete(f"/api/items/{rice.id}?purge=1", headers=owner_headers)
        history = client.get(f"/api/items/{rice.id}/transactions", headers=owner_headers)
        assert [t["action"] for t in history.get_json()["transactions"]] == ["Deleted"]

    def test_audit(self, client, manager_headers, rice):
        body = client.get(f"/api/items/{rice.id}/audit", headers=manager_headers).get_json()
        assert body["consistent"] is True
        assert body["stored_quantity"] == body["reconstructed_quantity"] == 10


# =============================================================================
# CATEGORIES
# =============================================================================


class TestCategories:

    def test_crud_and_guards(self, client, manager_headers, make_item):
        created = client.post(
            "/api/categories", json={"name": "Snacks"}, headers=manager_headers
        )
        assert created.status_code == 201
        category_id = created.get_json()["category"]["id"]

        dup = client.post("/api/categories", json={"name": "Snacks"}, headers=manager_headers)
        assert dup.status_code == 409

        make_item(name="Chips", category="Snacks")
        in_use = client.delete(f"/api/categories/{category_id}", headers=manager_headers)
        assert in_use.status_code == 409

        renamed = client.patch(
            f"/api/categories/{category_id}", json={"description": "Salty"}, headers=manager_headers
        )
        assert renamed.get_json()["category"]["description"] == "Salty"

        assert client.delete("/api/categories/cat-missing", headers=manager_headers).status_code == 404

    @pytest.mark.parametrize("field", ["category_id", "is_active"])
    def test_patch_rejects_unknown_fields(self, client, manager_headers, field):
        created = client.post(
            "/api/categories", json={"name": "Snacks"}, headers=manager_headers
        )
        category_id = created.get_json()["category"]["id"]

        resp = client.patch(
            f"/api/categories/{category_id}", json={field: "x"}, headers=manager_headers
        )
        assert resp.status_code == 400
        assert resp.get_json()["error"] == f"Field not allowed: {field}"


# =============================================================================
# USERS
# =============================================================================


class TestUsers:

    def test_manager_creates_staff_only(self, client, manager_headers):
        ok = client.post(
            "/api/users",
            json={"username": "newbie", "pin": "5555", "name": "New Staff", "role": "staff"},
            headers=manager_headers,
        )
        assert ok.status_code == 201

        denied = client.post(
            "/api/users",
            json={"username": "boss", "pin": "5555", "name": "Boss", "role": "owner"},
            headers=manager_headers,
        )
        assert denied.status_code == 403

    def test_duplicate_and_bad_pin(self, client, owner_headers, users):
        dup = client.post(
            "/api/users",
            json={"username": "sam", "pin": "5555", "name": "Sam 2", "role": "staff"},
            headers=owner_headers,
        )
        assert dup.status_code == 409
        bad_pin = client.post(
            "/api/users",
            json={"username": "neo", "pin": "12", "name": "Neo", "role": "staff"},
            headers=owner_headers,
        )
        assert bad_pin.status_code == 400

    def test_owner_deletes_manager_but_not_self(self, client, owner_headers, users):
        ok = client.delete(f"/api/users/{users['manager'].id}", headers=owner_headers)
        assert ok.status_code == 200
        self_delete = client.delete(f"/api/users/{users['owner'].id}", headers=owner_headers)
        assert self_delete.status_code == 403

    def test_manager_deactivates_staff(self, client, ledger, manager_headers, users):
        resp = client.post(f"/api/users/{users['staff'].id}/deactivate", headers=manager_headers)
        assert resp.get_json() == {"deactivated": True}
        assert ledger.users.find_by_id(users["staff"].id) is None

        owner = client.post(f"/api/users/{users['owner'].id}/deactivate", headers=manager_headers)
        assert owner.status_code == 403

    def test_pin_change(self, client, ledger, manager_headers, users):
        resp = client.patch(
            f"/api/users/{users['staff'].id}", json={"pin": "7777"}, headers=manager_headers
        )
        assert resp.status_code == 200
        assert ledger.users.authenticate("sam", "7777") is not None


# =============================================================================
# TRANSACTIONS AND EXPORTS
# =============================================================================


class TestTransactions:

    def test_list_with_filters_and_paging(self, client, ledger, manager_headers, actors, rice):
        for _ in range(3):
            ledger.stock.remove_stock(rice.id, 1, actors["staff"])

        body = client.get(
            "/api/transactions?type=remove&limit=2", headers=manager_headers
        ).get_json()
        assert body["total"] == 3
        assert len(body["transactions"]) == 2
        assert all(t["action"] == "Removed" for t in body["transactions"])

        bad = client.get("/api/transactions?type=restock", headers=manager_headers)
        assert bad.status_code == 400

    def test_stats(self, client, ledger, manager_headers, actors, rice):
        ledger.stock.remove_stock(rice.id, 4, actors["staff"])
        stats = client.get("/api/transactions/stats", headers=manager_headers).get_json()
        assert stats["total_transactions"] == 2
        assert stats["stock_added"] == 10
        assert stats["stock_removed"] == 4
        assert stats["most_tracked_item"]["item_name"] == "Rice"

    def test_csv_exports(self, client, manager_headers, rice):
        export = client.get("/api/transactions/export.csv", headers=manager_headers)
        assert export.status_code == 200
        assert export.mimetype == "text/csv"
        lines = export.get_data(as_text=True).splitlines()
        assert lines[0].startswith("Item Name,Quantity Change")
        assert lines[1].startswith("Rice,10,")

        report = client.get("/api/transactions/report.csv?title=Week", headers=manager_headers)
        assert "Report Information,Title,Week" in report.get_data(as_text=True)
