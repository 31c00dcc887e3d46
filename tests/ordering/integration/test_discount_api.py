"""Integration tests for discount administration via TestClient."""


def _create(client, admin, **overrides):
    payload = {"code": "save10", "discount_type": "percentage", "value": 10, "max_uses": 50}
    payload.update(overrides)
    return client.post("/discounts", json=payload, headers=admin)


class TestDiscountCrud:
    def test_create_and_fetch(self, client, admin):
        response = _create(client, admin)

        assert response.status_code == 201
        discount_id = response.json()["discount_id"]

        body = client.get(f"/discounts/{discount_id}", headers=admin).json()
        assert body["code"] == "SAVE10"
        assert body["current_uses"] == 0
        assert body["created_by"] == "admin-1"

    def test_duplicate_code(self, client, admin):
        _create(client, admin)

        response = _create(client, admin, code="SAVE10")

        assert response.status_code == 400

    def test_invalid_type_rejected_by_schema(self, client, admin):
        assert _create(client, admin, discount_type="bogo").status_code == 422

    def test_update(self, client, admin):
        discount_id = _create(client, admin).json()["discount_id"]

        response = client.put(f"/discounts/{discount_id}", json={"value": 15, "active": False}, headers=admin)

        assert response.status_code == 200
        body = client.get(f"/discounts/{discount_id}", headers=admin).json()
        assert body["value"] == 15.0
        assert body["active"] is False

    def test_null_resets_limits_to_unlimited(self, client, admin):
        discount_id = _create(client, admin, valid_until="2099-01-01T00:00:00Z").json()["discount_id"]

        response = client.put(
            f"/discounts/{discount_id}", json={"max_uses": None, "valid_until": None}, headers=admin
        )

        assert response.status_code == 200
        body = client.get(f"/discounts/{discount_id}", headers=admin).json()
        assert body["max_uses"] is None
        assert body["valid_until"] is None
        assert body["value"] == 10.0

    def test_list(self, client, admin):
        _create(client, admin, code="FIRST")
        _create(client, admin, code="SECOND")

        codes = {d["code"] for d in client.get("/discounts", headers=admin).json()}

        assert codes == {"FIRST", "SECOND"}

    def test_delete(self, client, admin):
        discount_id = _create(client, admin).json()["discount_id"]
        client.post(f"/discounts/{discount_id}/products/prod-a", headers=admin)

        response = client.delete(f"/discounts/{discount_id}", headers=admin)

        assert response.status_code == 200
        assert client.get(f"/discounts/{discount_id}", headers=admin).status_code == 404


class TestProductLinks:
    def test_link_list_unlink(self, client, admin):
        discount_id = _create(client, admin).json()["discount_id"]

        assert client.post(f"/discounts/{discount_id}/products/prod-a", headers=admin).status_code == 201
        links = client.get(f"/discounts/{discount_id}/products", headers=admin).json()
        assert [link["product_id"] for link in links] == ["prod-a"]

        assert client.delete(f"/discounts/{discount_id}/products/prod-a", headers=admin).status_code == 200
        assert client.get(f"/discounts/{discount_id}/products", headers=admin).json() == []

    def test_linked_code_applies_automatically(self, client, admin, order_payload):
        discount_id = _create(client, admin, code="TOPI15", value=15).json()["discount_id"]
        client.post(f"/discounts/{discount_id}/products/prod-topi", headers=admin)

        response = client.post("/checkout/discount-preview", json={"lines": order_payload["lines"]})

        discount = response.json()["discount"]
        assert discount["code"] == "TOPI15"
        assert discount["source"] == "automatic"
        assert response.json()["total"] == 1700.0
