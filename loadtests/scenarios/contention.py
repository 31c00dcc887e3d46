"""Discount usage contention scenario.

Many users race to redeem the same capped discount code. The cap must hold:
once ``max_uses`` orders carry the code, every further checkout with it is
rejected with ``discount_rejected`` and no order is created. Rejections are
counted as successes here; anything else is a failure.

The shared code is created once per Locust process on test start.
"""

import requests
from locust import HttpUser, between, events, task

from loadtests.data_generators import discount_data, order_data
from loadtests.helpers.response import error_code, extract_error_detail

ADMIN_HEADERS = {"X-Admin-Id": "loadtest-admin"}
CAP = 50

_shared = {"code": None}


@events.test_start.add_listener
def create_shared_code(environment, **_kwargs):
    payload = discount_data(max_uses=CAP)
    resp = requests.post(f"{environment.host}/discounts", json=payload, headers=ADMIN_HEADERS, timeout=10)
    resp.raise_for_status()
    _shared["code"] = payload["code"]
    print(f"[LOADTEST] Contended discount code {payload['code']} capped at {CAP} uses")


class DiscountContentionUser(HttpUser):
    wait_time = between(0.1, 0.5)

    @task
    def checkout_with_shared_code(self):
        with self.client.post(
            "/checkout/orders",
            json=order_data("partner", discount_code=_shared["code"]),
            catch_response=True,
            name="POST /checkout/orders [contended code]",
        ) as resp:
            if resp.status_code == 201:
                resp.success()
            elif resp.status_code == 422 and error_code(resp) == "discount_rejected":
                resp.success()
            else:
                resp.failure(f"Unexpected: {resp.status_code} - {extract_error_detail(resp)}")
