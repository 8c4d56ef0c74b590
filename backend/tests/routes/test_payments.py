# backend/tests/routes/test_payments.py
"""Payment routes under /api/v1/payments and /api/v1/users."""

from decimal import Decimal

from fastapi import status

from app.core.config import settings
from app.core.enums import BookingStatus, PaymentStatus
from app.core.ulid_helper import generate_ulid
from app.models import Payment, TourBooking

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64

BASE = "/api/v1/payments"


def _form(booking, amount=None):
    return {
        "amount": amount or str(booking.amount),
        "payable_type": "tour_bookings",
        "payable_id": booking.id,
        "payment_method": "bank_transfer",
        "transaction_id": "TX-1001",
    }


class TestCreatePayment:
    def test_with_receipt(self, client, booking, auth_headers_tourist, receipt_storage):
        response = client.post(
            BASE,
            data=_form(booking),
            files={"receipt_image": ("receipt.png", PNG_BYTES, "image/png")},
            headers=auth_headers_tourist,
        )

        assert response.status_code == status.HTTP_201_CREATED
        body = response.json()
        assert body["next_step"] == "wait_for_approval"
        payment = body["payment"]
        assert payment["status"] == "pending"
        assert payment["amount"] == "300.00"
        assert payment["payable"]["id"] == booking.id
        assert payment["payer"]["email"] == "tourist@example.com"
        assert payment["receipt_url"].startswith("receipts/")
        assert (receipt_storage.root / payment["receipt_image"]).read_bytes() == PNG_BYTES
        assert payment["permissions"]["can_approve"] is False

    def test_without_receipt(self, client, booking, auth_headers_tourist):
        response = client.post(BASE, data=_form(booking), headers=auth_headers_tourist)
        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["payment"]["receipt_url"] is None

    def test_amount_mismatch(self, client, db, booking, auth_headers_tourist):
        response = client.post(BASE, data=_form(booking, "250.00"), headers=auth_headers_tourist)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        detail = response.json()["detail"]
        assert detail["message"] == "amount mismatch"
        assert detail["code"] == "AMOUNT_MISMATCH"
        assert db.query(Payment).count() == 0

    def test_sub_cent_amount_is_not_rounded_into_a_match(
        self, client, db, booking, auth_headers_tourist
    ):
        response = client.post(BASE, data=_form(booking, "299.995"), headers=auth_headers_tourist)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"]["code"] == "INVALID_AMOUNT"
        assert db.query(Payment).count() == 0

    def test_duplicate_pending_payment(self, client, booking, auth_headers_tourist):
        assert client.post(BASE, data=_form(booking), headers=auth_headers_tourist).status_code == 201
        response = client.post(BASE, data=_form(booking), headers=auth_headers_tourist)
        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["detail"]["code"] == "DUPLICATE_PENDING_PAYMENT"

    def test_someone_elses_booking(self, client, booking, auth_headers_other_tourist):
        response = client.post(BASE, data=_form(booking), headers=auth_headers_other_tourist)
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_unknown_booking(self, client, auth_headers_tourist):
        data = {"amount": "10.00", "payable_type": "tour_bookings", "payable_id": generate_ulid()}
        response = client.post(BASE, data=data, headers=auth_headers_tourist)
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_rejects_pdf_receipt(self, client, booking, auth_headers_tourist):
        response = client.post(
            BASE,
            data=_form(booking),
            files={"receipt_image": ("receipt.pdf", b"%PDF-1.4", "application/pdf")},
            headers=auth_headers_tourist,
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"]["code"] == "INVALID_RECEIPT_TYPE"

    def test_oversized_receipt_is_read_only_past_the_limit(
        self, client, db, booking, auth_headers_tourist, monkeypatch
    ):
        monkeypatch.setattr(settings, "receipt_max_bytes", 16)
        response = client.post(
            BASE,
            data=_form(booking),
            files={"receipt_image": ("receipt.png", PNG_BYTES, "image/png")},
            headers=auth_headers_tourist,
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        detail = response.json()["detail"]
        assert detail["code"] == "RECEIPT_TOO_LARGE"
        assert detail["details"]["size"] == 17
        assert db.query(Payment).count() == 0

    def test_overlong_notes_are_a_field_error(self, client, booking, auth_headers_tourist):
        data = dict(_form(booking), notes="x" * 501)
        response = client.post(BASE, data=data, headers=auth_headers_tourist)
        assert response.status_code == 422

    def test_plan_payment(self, client, plan, auth_headers_tourist):
        data = {"amount": "49.99", "payable_type": "plans", "payable_id": plan.id}
        response = client.post(BASE, data=data, headers=auth_headers_tourist)
        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["payment"]["payable"]["title"] == plan.title


class TestModeration:
    def test_approve_cascades_to_booking(
        self, client, db, booking, make_payment, tourist_user, auth_headers_admin
    ):
        payment = make_payment(tourist_user, booking)

        response = client.post(f"{BASE}/{payment.id}/approve", headers=auth_headers_admin)

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["booking_updated"] is True
        assert body["payment"]["status"] == "approved"
        assert db.get(TourBooking, booking.id).status == BookingStatus.APPROVED.value

    def test_second_approve_is_invalid_state(
        self, client, booking, make_payment, tourist_user, auth_headers_admin
    ):
        payment = make_payment(tourist_user, booking)
        client.post(f"{BASE}/{payment.id}/approve", headers=auth_headers_admin)

        response = client.post(f"{BASE}/{payment.id}/approve", headers=auth_headers_admin)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"]["code"] == "PAYMENT_ALREADY_APPROVED"

    def test_reject_rejects_booking(
        self, client, db, booking, make_payment, tourist_user, auth_headers_admin
    ):
        payment = make_payment(tourist_user, booking)

        response = client.post(f"{BASE}/{payment.id}/reject", headers=auth_headers_admin)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["payment"]["status"] == "failed"
        assert db.get(TourBooking, booking.id).status == BookingStatus.REJECTED.value

    def test_only_admins_moderate(
        self, client, booking, make_payment, tourist_user, auth_headers_guide
    ):
        payment = make_payment(tourist_user, booking)
        assert client.post(f"{BASE}/{payment.id}/approve", headers=auth_headers_guide).status_code == 403
        assert client.post(f"{BASE}/{payment.id}/reject", headers=auth_headers_guide).status_code == 403

    def test_bulk_approve(
        self, client, tour, make_booking, make_payment, tourist_user, other_tourist, auth_headers_admin
    ):
        p1 = make_payment(tourist_user, make_booking(tour, tourist_user))
        p2 = make_payment(other_tourist, make_booking(tour, other_tourist), status=PaymentStatus.APPROVED)
        missing = generate_ulid()

        response = client.post(
            f"{BASE}/bulk-approve",
            json={"payment_ids": [p1.id, p2.id, missing]},
            headers=auth_headers_admin,
        )

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["approved"] == 1
        assert body["failed"] == 2
        assert {e["payment_id"]: e["code"] for e in body["errors"]} == {
            p2.id: "PAYMENT_ALREADY_APPROVED",
            missing: "NOT_FOUND",
        }

    def test_bulk_approve_requires_ids(self, client, auth_headers_admin):
        response = client.post(f"{BASE}/bulk-approve", json={"payment_ids": []}, headers=auth_headers_admin)
        assert response.status_code == 422


class TestUpdateAndDelete:
    def test_payer_updates_pending_payment(
        self, client, booking, make_payment, tourist_user, auth_headers_tourist
    ):
        payment = make_payment(tourist_user, booking)

        response = client.patch(
            f"{BASE}/{payment.id}",
            data={"notes": "Paid at the branch office"},
            files={"receipt_image": ("new.jpg", PNG_BYTES, "image/jpeg")},
            headers=auth_headers_tourist,
        )

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["notes"] == "Paid at the branch office"
        assert body["receipt_image"].endswith(".jpg")

    def test_approved_payment_is_locked_for_payer(
        self, client, booking, make_payment, tourist_user, auth_headers_tourist
    ):
        payment = make_payment(tourist_user, booking, status=PaymentStatus.APPROVED)
        response = client.patch(
            f"{BASE}/{payment.id}", data={"notes": "late edit"}, headers=auth_headers_tourist
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_delete_reopens_booking(
        self, client, db, make_booking, make_payment, tour, tourist_user, auth_headers_admin
    ):
        booking = make_booking(tour, tourist_user, status=BookingStatus.APPROVED)
        payment = make_payment(tourist_user, booking, status=PaymentStatus.APPROVED)

        response = client.delete(f"{BASE}/{payment.id}", headers=auth_headers_admin)

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert db.get(TourBooking, booking.id).status == BookingStatus.PENDING.value

    def test_payer_cannot_delete_approved_payment(
        self, client, booking, make_payment, tourist_user, auth_headers_tourist
    ):
        payment = make_payment(tourist_user, booking, status=PaymentStatus.APPROVED)
        response = client.delete(f"{BASE}/{payment.id}", headers=auth_headers_tourist)
        assert response.status_code == status.HTTP_403_FORBIDDEN


class TestListings:
    def test_admin_lists_all(self, client, booking, make_payment, tourist_user, auth_headers_admin):
        make_payment(tourist_user, booking)
        body = client.get(BASE, headers=auth_headers_admin).json()
        assert body["total"] == 1
        assert body["items"][0]["permissions"]["can_approve"] is True

    def test_tourist_cannot_list_all(self, client, auth_headers_tourist):
        assert client.get(BASE, headers=auth_headers_tourist).status_code == 403

    def test_my_payments(self, client, booking, make_payment, tourist_user, auth_headers_tourist):
        make_payment(tourist_user, booking, status=PaymentStatus.APPROVED)
        body = client.get(f"{BASE}/my-payments", headers=auth_headers_tourist).json()
        assert len(body["payments"]) == 1
        assert body["stats"]["approved"] == 1
        assert body["stats"]["total_amount"] == "300.00"
        assert (body["total"], body["page"], body["has_next"], body["has_prev"]) == (1, 1, False, False)

    def test_my_payments_filters_by_status_and_pages(
        self, client, booking, make_payment, tourist_user, auth_headers_tourist
    ):
        make_payment(tourist_user, booking, status=PaymentStatus.FAILED)
        make_payment(tourist_user, booking, status=PaymentStatus.FAILED)
        make_payment(tourist_user, booking, status=PaymentStatus.APPROVED)

        approved = client.get(
            f"{BASE}/my-payments", params={"status": "approved"}, headers=auth_headers_tourist
        ).json()
        assert approved["total"] == 1
        assert [p["status"] for p in approved["payments"]] == ["approved"]
        assert approved["stats"]["total"] == 3

        first = client.get(
            f"{BASE}/my-payments",
            params={"status": "failed", "per_page": 1},
            headers=auth_headers_tourist,
        ).json()
        assert (first["total"], len(first["payments"]), first["has_next"], first["has_prev"]) == (
            2,
            1,
            True,
            False,
        )

        second = client.get(
            f"{BASE}/my-payments",
            params={"status": "failed", "per_page": 1, "page": 2},
            headers=auth_headers_tourist,
        ).json()
        assert (second["has_next"], second["has_prev"]) == (False, True)
        assert second["payments"][0]["id"] != first["payments"][0]["id"]

    def test_my_payments_rejects_unknown_status(self, client, auth_headers_tourist):
        response = client.get(
            f"{BASE}/my-payments", params={"status": "refunded"}, headers=auth_headers_tourist
        )
        assert response.status_code == 422

    def test_statistics(self, client, booking, make_payment, tourist_user, auth_headers_admin):
        make_payment(tourist_user, booking)
        make_payment(tourist_user, booking, status=PaymentStatus.FAILED, amount=Decimal("50.00"))
        body = client.get(f"{BASE}/statistics", headers=auth_headers_admin).json()

        assert body["pending"] == 1
        assert body["by_status"] == {
            "pending": {"count": 1, "amount": "300.00"},
            "approved": {"count": 0, "amount": "0.00"},
            "failed": {"count": 1, "amount": "50.00"},
        }
        assert body["by_payable_type"] == {
            "tour_bookings": {"count": 2, "amount": "350.00"},
            "plans": {"count": 0, "amount": "0.00"},
        }

    def test_user_payments(
        self, client, booking, make_payment, tourist_user, auth_headers_tourist, auth_headers_other_tourist
    ):
        make_payment(tourist_user, booking)
        url = f"/api/v1/users/{tourist_user.id}/payments"

        assert client.get(url, headers=auth_headers_tourist).json()["stats"]["pending"] == 1
        assert client.get(url, headers=auth_headers_other_tourist).status_code == 403

    def test_user_payments_unknown_user(self, client, auth_headers_admin):
        response = client.get(f"/api/v1/users/{generate_ulid()}/payments", headers=auth_headers_admin)
        assert response.status_code == status.HTTP_404_NOT_FOUND
