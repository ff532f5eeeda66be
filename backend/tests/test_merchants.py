"""Tests for staff merchant and fee profile administration."""

from app.models.merchant_fee_profile import MerchantFeeProfile


def _create(client, headers, **body):
    return client.post(
        "/v1/merchants/",
        json={"merchant_name": "Parks Department", **body},
        headers=headers,
    )


class TestMerchantEndpoints:
    def test_create_merchant(self, client, staff_headers):
        response = _create(
            client, staff_headers, category="GOVERNMENT", finix_merchant_id="MUparks"
        )

        assert response.status_code == 201
        data = response.json()
        assert data["merchant_name"] == "Parks Department"
        assert data["finix_merchant_id"] == "MUparks"
        assert data["verification_status"] == "pending"
        assert data["processing_enabled"] is False

    def test_gateway_id_already_linked(self, client, staff_headers, merchant):
        response = _create(client, staff_headers, finix_merchant_id="MUmerchant1")
        assert response.status_code == 409

    def test_list_and_get(self, client, staff_headers, merchant):
        _create(client, staff_headers)

        response = client.get("/v1/merchants/", headers=staff_headers)
        assert [m["merchant_name"] for m in response.json()] == ["City Clerk", "Parks Department"]

        response = client.get(f"/v1/merchants/{merchant.id}", headers=staff_headers)
        assert response.json()["finix_identity_id"] == "IDmerchant1"

    def test_patch_only_touches_given_fields(self, client, staff_headers, merchant):
        response = client.patch(
            f"/v1/merchants/{merchant.id}",
            json={"statement_descriptor": "CITY*CLERK"},
            headers=staff_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["statement_descriptor"] == "CITY*CLERK"
        assert data["merchant_name"] == "City Clerk"
        assert data["processing_enabled"] is True

    def test_patch_rejects_linked_gateway_id(self, client, staff_headers, merchant):
        other = _create(client, staff_headers).json()
        response = client.patch(
            f"/v1/merchants/{other['id']}",
            json={"finix_merchant_id": "MUmerchant1"},
            headers=staff_headers,
        )
        assert response.status_code == 409

    def test_unknown_merchant(self, client, staff_headers):
        response = client.get(
            "/v1/merchants/00000000-0000-0000-0000-00000000dead", headers=staff_headers
        )
        assert response.status_code == 404

    def test_residents_forbidden(self, client, resident_headers, merchant):
        assert client.get("/v1/merchants/", headers=resident_headers).status_code == 401
        assert _create(client, resident_headers).status_code == 401


class TestFeeProfileEndpoints:
    def test_get_fee_profile(self, client, staff_headers, merchant):
        response = client.get(f"/v1/merchants/{merchant.id}/fee_profile", headers=staff_headers)

        assert response.status_code == 200
        assert response.json()["basis_points"] == 250
        assert response.json()["fixed_fee"] == 50

    def test_missing_fee_profile(self, client, staff_headers):
        merchant_id = _create(client, staff_headers).json()["id"]
        response = client.get(f"/v1/merchants/{merchant_id}/fee_profile", headers=staff_headers)
        assert response.status_code == 404

    def test_put_creates_profile(self, client, staff_headers):
        merchant_id = _create(client, staff_headers).json()["id"]

        response = client.put(
            f"/v1/merchants/{merchant_id}/fee_profile",
            json={"basis_points": 300, "fixed_fee": 30},
            headers=staff_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["basis_points"] == 300
        assert data["fixed_fee"] == 30
        assert data["ach_basis_points"] == 20
        assert data["ach_fixed_fee"] == 50

    def test_put_updates_existing_profile(self, client, staff_headers, db_session, merchant):
        response = client.put(
            f"/v1/merchants/{merchant.id}/fee_profile",
            json={"fixed_fee": 0, "ach_basis_points_fee_limit": 500, "basis_points": None},
            headers=staff_headers,
        )

        assert response.status_code == 200
        db_session.expire_all()
        profile = db_session.query(MerchantFeeProfile).one()
        assert profile.basis_points == 250
        assert profile.fixed_fee == 0
        assert profile.ach_basis_points_fee_limit == 500

    def test_new_rates_used_for_quotes(self, client, staff_headers, resident_headers, merchant):
        client.put(
            f"/v1/merchants/{merchant.id}/fee_profile",
            json={"basis_points": 0, "fixed_fee": 100},
            headers=staff_headers,
        )

        response = client.post(
            "/v1/fees/quote",
            json={"merchant_id": str(merchant.id), "base_amount_cents": 10000},
            headers=resident_headers,
        )

        assert response.json()["service_fee_cents"] == 100

    def test_rate_out_of_range(self, client, staff_headers, merchant):
        response = client.put(
            f"/v1/merchants/{merchant.id}/fee_profile",
            json={"basis_points": 10000},
            headers=staff_headers,
        )
        assert response.status_code == 400
