"""Tests for the agency claim workflow."""

from __future__ import annotations

from unittest.mock import MagicMock, call

import pytest

from tests.conftest import ADMIN_ID, USER_ID, db_error, make_supabase


@pytest.fixture()
def claim_payload(sample_agency):
    return {
        "agency_id": sample_agency["id"],
        "business_email": "  Pat@AcmeStaffing.com ",
        "phone_number": "(555) 123-4567",
        "position_title": "Operations Manager",
        "verification_method": "email",
        "additional_notes": "   ",
    }


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------


def test_submit_requires_login(client, login, claim_payload):
    login(None)
    response = client.post("/api/claims/request", json=claim_payload)
    assert response.status_code == 401


def test_submit_claim(client, as_user, use_supabase, sample_agency, sample_claim, claim_payload):
    mock = use_supabase(make_supabase({
        "agencies": ([sample_agency], 1),
        "agency_claim_requests": [([], 0), ([sample_claim], 1)],
    }))
    response = client.post("/api/claims/request", json=claim_payload)

    assert response.status_code == 201
    data = response.json()["data"]
    assert data == {
        "id": sample_claim["id"],
        "agency_id": sample_agency["id"],
        "user_id": USER_ID,
        "status": "pending",
        "email_domain_verified": True,
        "created_at": sample_claim["created_at"],
    }
    inserted = mock.tables["agency_claim_requests"].insert.call_args.args[0]
    assert inserted["business_email"] == "pat@acmestaffing.com"
    assert inserted["email_domain_verified"] is True
    assert inserted["additional_notes"] is None
    assert inserted["status"] == "pending"

    audit = mock.tables["agency_claim_audit_log"].insert.call_args.args[0]
    assert audit["action"] == "submitted"
    assert audit["admin_id"] is None


def test_free_mail_claim_is_not_domain_verified(
    client, as_user, use_supabase, sample_agency, sample_claim, claim_payload
):
    agency = {**sample_agency, "website": "https://www.gmail.com"}
    mock = use_supabase(make_supabase({
        "agencies": ([agency], 1),
        "agency_claim_requests": [([], 0), ([{**sample_claim, "email_domain_verified": False}], 1)],
    }))
    response = client.post(
        "/api/claims/request", json={**claim_payload, "business_email": "pat@gmail.com"}
    )

    assert response.status_code == 201
    inserted = mock.tables["agency_claim_requests"].insert.call_args.args[0]
    assert inserted["email_domain_verified"] is False


def test_open_claim_lookup_filters_active_statuses(
    client, as_user, use_supabase, sample_agency, sample_claim, claim_payload
):
    mock = use_supabase(make_supabase({
        "agencies": ([sample_agency], 1),
        "agency_claim_requests": [([], 0), ([sample_claim], 1)],
    }))
    client.post("/api/claims/request", json=claim_payload)

    chain = mock.tables["agency_claim_requests"]
    chain.in_.assert_called_once_with("status", ["pending", "under_review"])
    chain.eq.assert_any_call("agency_id", sample_agency["id"])
    chain.eq.assert_any_call("user_id", USER_ID)


def _claims_with_existing(mock, existing, created):
    """Serve the open-claim lookup by applying its status filter to one existing row."""
    chain = mock.table("agency_claim_requests")

    def execute():
        if chain.insert.called:
            return MagicMock(data=[created], count=1)
        column, statuses = chain.in_.call_args.args
        rows = [existing] if existing[column] in statuses else []
        return MagicMock(data=rows, count=len(rows))

    chain.execute.side_effect = execute
    return chain


@pytest.mark.parametrize(
    ("previous", "expected_status"),
    [("approved", 201), ("rejected", 201), ("pending", 409), ("under_review", 409)],
)
def test_resubmit_depends_on_earlier_claim_status(
    client, as_user, use_supabase, sample_agency, sample_claim, claim_payload,
    previous, expected_status,
):
    mock = use_supabase(make_supabase({"agencies": ([sample_agency], 1)}))
    existing = {**sample_claim, "id": "earlier-claim", "status": previous}
    chain = _claims_with_existing(mock, existing, sample_claim)

    response = client.post("/api/claims/request", json=claim_payload)

    assert response.status_code == expected_status
    if expected_status == 201:
        assert response.json()["data"]["id"] == sample_claim["id"]
        chain.insert.assert_called_once()
    else:
        assert response.json()["error"]["details"]["existing_claim_id"] == "earlier-claim"
        chain.insert.assert_not_called()


def test_submit_unknown_agency(client, as_user, claim_payload):
    response = client.post("/api/claims/request", json=claim_payload)
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "AGENCY_NOT_FOUND"


def test_submit_already_claimed(client, as_user, use_supabase, sample_agency, claim_payload):
    claimed = {**sample_agency, "is_claimed": True, "claimed_by": "someone-else"}
    use_supabase(make_supabase({"agencies": ([claimed], 1)}))
    response = client.post("/api/claims/request", json=claim_payload)
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "AGENCY_ALREADY_CLAIMED"


def test_submit_with_open_claim(client, as_user, use_supabase, sample_agency, claim_payload):
    use_supabase(make_supabase({
        "agencies": ([sample_agency], 1),
        "agency_claim_requests": ([{"id": "c1", "status": "under_review"}], 1),
    }))
    response = client.post("/api/claims/request", json=claim_payload)
    assert response.status_code == 409
    assert response.json()["error"] == {
        "code": "PENDING_CLAIM_EXISTS",
        "message": "You already have a pending claim request for this agency",
        "details": {"existing_claim_id": "c1", "status": "under_review"},
    }


def test_submit_race_on_unique_index(client, as_user, use_supabase, sample_agency, claim_payload):
    use_supabase(make_supabase({
        "agencies": ([sample_agency], 1),
        "agency_claim_requests": [([], 0), db_error("duplicate key", "23505")],
    }))
    response = client.post("/api/claims/request", json=claim_payload)
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "PENDING_CLAIM_EXISTS"


def test_submit_validation_details(client, as_user, claim_payload):
    response = client.post(
        "/api/claims/request",
        json={**claim_payload, "phone_number": "call me", "verification_method": "fax"},
    )
    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert set(error["details"]) == {"phone_number", "verification_method"}


def test_submit_survives_audit_failure(client, as_user, use_supabase, sample_agency, sample_claim, claim_payload):
    use_supabase(make_supabase({
        "agencies": ([sample_agency], 1),
        "agency_claim_requests": [([], 0), ([sample_claim], 1)],
        "agency_claim_audit_log": [db_error()],
    }))
    response = client.post("/api/claims/request", json=claim_payload)
    assert response.status_code == 201


def test_my_requests(client, as_user, use_supabase, sample_claim):
    mock = use_supabase(make_supabase({"agency_claim_requests": ([sample_claim], 1)}))
    response = client.get("/api/claims/my-requests")
    assert response.status_code == 200
    assert response.json()["data"] == [sample_claim]
    chain = mock.tables["agency_claim_requests"]
    chain.eq.assert_called_with("user_id", USER_ID)
    chain.order.assert_called_with("created_at", desc=True)


# ---------------------------------------------------------------------------
# Admin review
# ---------------------------------------------------------------------------


def test_admin_list_claims(client, as_admin, use_supabase, sample_claim):
    mock = use_supabase(make_supabase({"agency_claim_requests": ([sample_claim], 31)}))
    response = client.get("/api/admin/claims?status=pending&page=2&limit=10&search=acme")
    assert response.status_code == 200
    body = response.json()
    assert body["pagination"] == {
        "total": 31, "limit": 10, "offset": 10, "hasMore": True, "page": 2, "totalPages": 4,
    }
    chain = mock.tables["agency_claim_requests"]
    chain.eq.assert_called_with("status", "pending")
    chain.ilike.assert_called_with("business_email", "%acme%")
    chain.range.assert_called_with(10, 19)


def test_admin_list_claims_rejects_unknown_status(client, as_admin):
    response = client.get("/api/admin/claims?status=archived")
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_PARAMS"


def test_approve_claim(client, as_admin, use_supabase, sample_agency, sample_claim):
    approved = {**sample_claim, "status": "approved", "reviewed_by": ADMIN_ID}
    mock = use_supabase(make_supabase({
        "agency_claim_requests": [([sample_claim], 1), ([approved], 1)],
        "agencies": ([sample_agency], 1),
        "profiles": ([{"id": USER_ID, "role": "user", "email": "pat@acmestaffing.com"}], 1),
    }))
    response = client.post(f"/api/admin/claims/{sample_claim['id']}/approve")

    assert response.status_code == 200
    body = response.json()
    assert body["data"]["status"] == "approved"
    assert body["message"] == "Claim approved successfully. User role updated to agency_owner."

    claim_update = mock.tables["agency_claim_requests"].update.call_args.args[0]
    assert claim_update["status"] == "approved"
    assert claim_update["reviewed_by"] == ADMIN_ID

    agency_update = mock.tables["agencies"].update.call_args.args[0]
    assert agency_update["is_claimed"] is True
    assert agency_update["claimed_by"] == USER_ID

    mock.tables["profiles"].update.assert_called_once_with({"role": "agency_owner"})
    audit = mock.tables["agency_claim_audit_log"].insert.call_args.args[0]
    assert audit["action"] == "approved"
    assert audit["admin_id"] == ADMIN_ID


def test_approve_keeps_admin_role(client, as_admin, use_supabase, sample_agency, sample_claim):
    mock = use_supabase(make_supabase({
        "agency_claim_requests": ([sample_claim], 1),
        "agencies": ([sample_agency], 1),
        "profiles": ([{"id": USER_ID, "role": "admin", "email": "pat@acmestaffing.com"}], 1),
    }))
    response = client.post(f"/api/admin/claims/{sample_claim['id']}/approve")
    assert response.status_code == 200
    mock.tables["profiles"].update.assert_not_called()


def test_approve_missing_claim(client, as_admin):
    response = client.post("/api/admin/claims/nope/approve")
    assert response.status_code == 404
    assert response.json()["error"]["message"] == "Claim not found"


@pytest.mark.parametrize("status", ["approved", "rejected"])
def test_approve_terminal_claim_is_409(client, as_admin, use_supabase, sample_claim, status):
    use_supabase(make_supabase({"agency_claim_requests": ([{**sample_claim, "status": status}], 1)}))
    response = client.post(f"/api/admin/claims/{sample_claim['id']}/approve")
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_approve_restores_claim_when_agency_update_fails(
    client, as_admin, use_supabase, sample_agency, sample_claim
):
    mock = use_supabase(make_supabase({
        "agency_claim_requests": ([sample_claim], 1),
        "agencies": [([sample_agency], 1), db_error()],
        "profiles": ([{"id": USER_ID, "role": "user"}], 1),
    }))
    response = client.post(f"/api/admin/claims/{sample_claim['id']}/approve")

    assert response.status_code == 500
    assert response.json()["error"]["code"] == "DATABASE_ERROR"
    updates = mock.tables["agency_claim_requests"].update.call_args_list
    assert updates[-1] == call({"status": "pending", "reviewed_by": None, "reviewed_at": None})
    mock.tables["profiles"].update.assert_not_called()


def test_approve_restores_agency_and_claim_when_role_update_fails(
    client, as_admin, use_supabase, sample_agency, sample_claim
):
    mock = use_supabase(make_supabase({
        "agency_claim_requests": ([sample_claim], 1),
        "agencies": ([sample_agency], 1),
        "profiles": [([{"id": USER_ID, "role": "user"}], 1), db_error()],
    }))
    response = client.post(f"/api/admin/claims/{sample_claim['id']}/approve")

    assert response.status_code == 500
    agency_updates = mock.tables["agencies"].update.call_args_list
    assert agency_updates[-1] == call({"is_claimed": False, "claimed_by": None, "claimed_at": None})
    claim_updates = mock.tables["agency_claim_requests"].update.call_args_list
    assert claim_updates[-1].args[0]["status"] == "pending"


def test_reject_claim(client, as_admin, use_supabase, sample_agency, sample_claim):
    reason = "Business email does not match the agency website."
    mock = use_supabase(make_supabase({
        "agency_claim_requests": ([sample_claim], 1),
        "agencies": ([sample_agency], 1),
    }))
    response = client.post(
        f"/api/admin/claims/{sample_claim['id']}/reject",
        json={"rejection_reason": f"  {reason}  "},
    )
    assert response.status_code == 200
    assert response.json()["message"] == "Claim rejected successfully."
    update = mock.tables["agency_claim_requests"].update.call_args.args[0]
    assert update["status"] == "rejected"
    assert update["rejection_reason"] == reason
    assert update["reviewed_by"] == ADMIN_ID


def test_reject_needs_twenty_characters(client, as_admin, use_supabase, sample_claim):
    mock = use_supabase(make_supabase({"agency_claim_requests": ([sample_claim], 1)}))
    response = client.post(
        f"/api/admin/claims/{sample_claim['id']}/reject",
        json={"rejection_reason": "too short"},
    )
    assert response.status_code == 400
    assert "rejection_reason" in response.json()["error"]["details"]
    mock.tables["agency_claim_requests"].update.assert_not_called()
