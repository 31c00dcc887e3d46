"""Checkout load test scenarios.

Stateful SequentialTaskSet journeys covering deferred-payment checkout
through delivery and QR checkout with evidence upload and admin approval.
Admin steps send the X-Admin-Id header the admin routes require.
"""

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import evidence_data, order_data, shipment_data, transaction_ref
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import OrderState

ADMIN_HEADERS = {"X-Admin-Id": "loadtest-admin"}


class PartnerOrderJourney(SequentialTaskSet):
    """Preview -> Checkout -> Mark Paid -> Ship -> Deliver.

    The happy path for a deferred-payment order. Produces five status
    history entries per order.
    """

    def on_start(self):
        self.state = OrderState()
        self.payload = order_data("partner")

    @task
    def preview_discount(self):
        with self.client.post(
            "/checkout/discount-preview",
            json={"lines": self.payload["lines"]},
            catch_response=True,
            name="POST /checkout/discount-preview",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Preview failed: {resp.status_code} - {extract_error_detail(resp)}")

    @task
    def submit_order(self):
        with self.client.post(
            "/checkout/orders",
            json=self.payload,
            catch_response=True,
            name="POST /checkout/orders",
        ) as resp:
            if resp.status_code == 201:
                self.state.order_id = resp.json()["order_id"]
            else:
                resp.failure(f"Checkout failed: {resp.status_code} - {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def mark_paid(self):
        self._transition("payment/status", {"payment_status": "paid"}, "PUT /orders/{id}/payment/status")

    @task
    def ship(self):
        self._transition("status", shipment_data(), "PUT /orders/{id}/status")

    @task
    def deliver(self):
        self._transition("status", {"status": "delivered"}, "PUT /orders/{id}/status")

    @task
    def done(self):
        self.interrupt()

    def _transition(self, path, body, name):
        with self.client.put(
            f"/orders/{self.state.order_id}/{path}",
            json={**body, "expected_revision": self.state.revision},
            headers=ADMIN_HEADERS,
            catch_response=True,
            name=name,
        ) as resp:
            if resp.status_code == 200:
                self.state.revision = resp.json()["revision"]
            else:
                resp.failure(f"{name} failed: {resp.status_code} - {extract_error_detail(resp)}")
                self.interrupt()


class QrOrderJourney(SequentialTaskSet):
    """Upload Screenshot -> Checkout -> Approve Payment -> Ship.

    Exercises evidence storage and the verification gate before fulfillment.
    """

    def on_start(self):
        self.state = OrderState()

    @task
    def upload_evidence(self):
        with self.client.post(
            "/checkout/evidence",
            json=evidence_data(),
            catch_response=True,
            name="POST /checkout/evidence",
        ) as resp:
            if resp.status_code == 201:
                self.state.evidence_ref = resp.json()["evidence_ref"]
            else:
                resp.failure(f"Upload failed: {resp.status_code} - {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def submit_order(self):
        payload = order_data("qr", transaction_ref=transaction_ref(), evidence_ref=self.state.evidence_ref)
        with self.client.post(
            "/checkout/orders",
            json=payload,
            catch_response=True,
            name="POST /checkout/orders",
        ) as resp:
            if resp.status_code == 201:
                self.state.order_id = resp.json()["order_id"]
            else:
                resp.failure(f"Checkout failed: {resp.status_code} - {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def approve_payment(self):
        with self.client.put(
            f"/orders/{self.state.order_id}/payment/approve",
            json={"notes": "Matched bank statement", "expected_revision": self.state.revision},
            headers=ADMIN_HEADERS,
            catch_response=True,
            name="PUT /orders/{id}/payment/approve",
        ) as resp:
            if resp.status_code == 200:
                self.state.revision = resp.json()["revision"]
                self.state.current_status = "confirmed"
            else:
                resp.failure(f"Approve failed: {resp.status_code} - {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def ship(self):
        with self.client.put(
            f"/orders/{self.state.order_id}/status",
            json={**shipment_data(), "expected_revision": self.state.revision},
            headers=ADMIN_HEADERS,
            catch_response=True,
            name="PUT /orders/{id}/status",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Ship failed: {resp.status_code} - {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class CheckoutUser(HttpUser):
    """Customers checking out, two deferred-payment orders for every QR order."""

    wait_time = between(0.5, 2.0)
    tasks = {PartnerOrderJourney: 2, QrOrderJourney: 1}
