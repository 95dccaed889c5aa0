"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Test double booking
  locust -f locustfile.py --tags throughput   # Test listing cache
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests

Sessions are cookie based: each simulated user logs in once and its HTTP
client keeps the session cookies.
"""

import random
import string
from datetime import date, timedelta

from locust import HttpUser, task, between, tag, events

# Shared state
PROPERTY_IDS = []
CONTESTED_PROPERTY_ID = None

# Far enough ahead that every stay is in the future
CONTESTED_CHECK_IN = date.today() + timedelta(days=60)


def random_email():
    return f"load_{random.randint(100000, 999999)}@example.com"


def random_name():
    return "User " + "".join(random.choices(string.ascii_lowercase, k=8))


def sign_in(client):
    """Register and log in a fresh account. Returns True when the session cookies are set."""
    email = random_email()
    client.post("/api/auth/register", json={
        "name": random_name(),
        "email": email,
        "password": "test123",
    })
    resp = client.post("/api/auth/login", json={"email": email, "password": "test123"})
    return resp.status_code == 200


def stay(start, nights):
    return {
        "check_in_date": start.isoformat(),
        "check_out_date": (start + timedelta(days=nights)).isoformat(),
    }


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "=" * 60)
    print(f"Contested stay starts {CONTESTED_CHECK_IN.isoformat()}")
    print("=" * 60)


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - many users, one property, the same two nights

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT COUNT(*) FROM bookings WHERE property_id = X;
    Should be exactly 1
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        self.signed_in = sign_in(self.client)
        if not self.signed_in or CONTESTED_PROPERTY_ID:
            return

        resp = self.client.post("/api/properties", json={
            "name": f"Contested Cabin {random.randint(1, 10**6)}",
            "location": "Test",
            "price_per_night": 1000,
        })
        if resp.status_code == 201:
            globals()["CONTESTED_PROPERTY_ID"] = resp.json()["property"]["id"]
            print(f"\nCreated property {CONTESTED_PROPERTY_ID}\n")

    @tag("concurrency")
    @task
    def book_contested_dates(self):
        """Everyone asks for the same stay; one booking wins."""
        if not CONTESTED_PROPERTY_ID or not self.signed_in:
            return

        with self.client.post(
            "/api/bookings",
            json={"property_id": CONTESTED_PROPERTY_ID, **stay(CONTESTED_CHECK_IN, 2)},
            catch_response=True,
        ) as resp:
            if resp.status_code in (201, 400):
                # 400: taken, own property or already holding that week
                resp.success()
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 2: Throughput - Cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. Without Redis: REDIS_ENABLED=false, run again

    Compare:
      - Avg response time
      - Requests/sec
      - P95/P99 latency
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def list_properties_cached(self):
        self.client.get("/api/properties", name="/api/properties [cached]")

    @tag("throughput", "read")
    @task(3)
    def get_property_detail(self):
        if PROPERTY_IDS:
            self.client.get(f"/api/properties/{random.choice(PROPERTY_IDS)}", name="/api/properties/{id}")

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def on_start(self):
        self.signed_in = sign_in(self.client)

    def expect(self, resp, codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_property(self):
        with self.client.post(
            "/api/bookings",
            json={"property_id": "00000000-0000-0000-0000-000000000000", **stay(CONTESTED_CHECK_IN, 1)},
            catch_response=True,
        ) as resp:
            self.expect(resp, (404,))

    @tag("edge")
    @task
    def past_dates(self):
        with self.client.post(
            "/api/bookings",
            json={"property_id": "00000000-0000-0000-0000-000000000000", **stay(date(2020, 1, 1), 2)},
            catch_response=True,
        ) as resp:
            self.expect(resp, (400,))

    @tag("edge")
    @task
    def inverted_dates(self):
        with self.client.post(
            "/api/bookings",
            json={"property_id": "00000000-0000-0000-0000-000000000000", **stay(CONTESTED_CHECK_IN, -3)},
            catch_response=True,
        ) as resp:
            self.expect(resp, (400,))

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post("/api/bookings", data="not json at all", catch_response=True) as resp:
            self.expect(resp, (400,))

    @tag("edge")
    @task
    def non_image_upload(self):
        with self.client.post(
            "/api/properties/upload-image",
            files={"file": ("notes.txt", b"hello", "text/plain")},
            catch_response=True,
        ) as resp:
            self.expect(resp, (400,))

    @tag("edge")
    @task
    def someone_elses_booking(self):
        with self.client.get(
            "/api/bookings/00000000-0000-0000-0000-000000000000",
            name="/api/bookings/{id}",
            catch_response=True,
        ) as resp:
            self.expect(resp, (401, 404))


class RealisticUser(HttpUser):
    """
    TEST 4: Realistic mixed workload

    Run: locust -f locustfile.py -u 200 -r 20 --run-time 120s

    Simulates real traffic:
      - Mostly browsing
      - Some bookings
      - Rare new listings
    """
    wait_time = between(1, 3)

    def on_start(self):
        self.signed_in = sign_in(self.client)

    @task(50)
    def browse_properties(self):
        resp = self.client.get("/api/properties")
        if resp.status_code == 200:
            for prop in resp.json().get("properties", []):
                if prop["id"] not in PROPERTY_IDS:
                    PROPERTY_IDS.append(prop["id"])

    @task(20)
    def view_property(self):
        if PROPERTY_IDS:
            self.client.get(f"/api/properties/{random.choice(PROPERTY_IDS)}", name="/api/properties/{id}")

    @task(10)
    def book_stay(self):
        if PROPERTY_IDS and self.signed_in:
            start = date.today() + timedelta(days=random.randint(1, 365))
            self.client.post(
                "/api/bookings",
                json={"property_id": random.choice(PROPERTY_IDS), **stay(start, random.randint(1, 4))},
            )

    @task(5)
    def my_bookings(self):
        if self.signed_in:
            self.client.get("/api/bookings")

    @task(3)
    def create_property(self):
        if self.signed_in:
            resp = self.client.post("/api/properties", json={
                "name": f"Listing {random.randint(1, 10**6)}",
                "description": "Load test listing",
                "location": "Venue",
                "price_per_night": random.randint(300, 3000),
            })
            if resp.status_code == 201:
                PROPERTY_IDS.append(resp.json()["property"]["id"])
