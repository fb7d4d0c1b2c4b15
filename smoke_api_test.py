#!/usr/bin/env python3
"""
Smoke test for a running dashboard API.

Logs in as each demo account (see ``manage.py ensure_demo_users``), calls
the endpoints that role may use and reports every unexpected status.
"""
import os
import sys
import time
from dataclasses import dataclass
from typing import Dict, Optional

import requests

BASE_URL = os.getenv("API_BASE_URL", "http://127.0.0.1:8000")
API = "/api/v1"

# Demo accounts
TEST_USERS = {
    "admin": {"email": "admin@hospital2035.com", "password": "Admin123!"},
    "physician": {"email": "sarah.johnson@hospital2035.com", "password": "Password123!"},
    "nurse": {"email": "patricia.williams@hospital2035.com", "password": "Password123!"},
    "receptionist": {"email": "rachel.green@hospital2035.com", "password": "Password123!"},
    "billing": {"email": "brian.lee@hospital2035.com", "password": "Password123!"},
}


@dataclass
class TestResult:
    success: bool
    endpoint: str
    method: str
    status_code: int
    response_time: float
    error_message: str = ""
    description: str = ""
    user_role: str = ""


class SmokeAPITester:
    def __init__(self):
        self.session = requests.Session()
        self.headers = {}
        self.current_role = None
        self.test_results = []
        self.error_results = []

    def _record(self, result: TestResult):
        self.test_results.append(result)
        if not result.success:
            self.error_results.append(result)
        return result

    def login(self, role: str) -> bool:
        """Log in as the demo user for ``role`` and keep its access token."""
        user = TEST_USERS[role]
        endpoint = f"{API}/auth/login"
        print(f"Logging in as {user['email']} ({role})...")
        start_time = time.time()
        try:
            response = self.session.post(f"{BASE_URL}{endpoint}", json=user)
        except requests.RequestException as e:
            self._record(TestResult(False, endpoint, "POST", 0, 0, str(e), "login", role))
            print(f"FAIL login: {e}")
            return False
        response_time = time.time() - start_time

        if response.status_code != 200:
            self._record(TestResult(False, endpoint, "POST", response.status_code, response_time,
                                    response.text[:200], "login", role))
            print(f"FAIL login: {response.status_code} - {response.text[:100]}")
            return False

        token = response.json()["data"]["accessToken"]
        self.headers = {"Authorization": f"Bearer {token}"}
        self.current_role = role
        self._record(TestResult(True, endpoint, "POST", 200, response_time, description="login", user_role=role))
        print(f"OK   login ({response_time:.2f}s)")
        return True

    def test_endpoint(self, method: str, endpoint: str, data: Optional[Dict] = None,
                      expected_status: int = 200, description: str = "") -> TestResult:
        url = f"{BASE_URL}{endpoint}"
        start_time = time.time()
        try:
            response = self.session.request(method, url, json=data, headers=self.headers)
        except requests.RequestException as e:
            print(f"FAIL {method} {endpoint}: {e}")
            return self._record(TestResult(False, endpoint, method, 0, time.time() - start_time,
                                           str(e), description, self.current_role))
        response_time = time.time() - start_time

        if response.status_code == expected_status:
            print(f"OK   {method} {endpoint} ({response_time:.2f}s)")
            return self._record(TestResult(True, endpoint, method, response.status_code, response_time,
                                           description=description, user_role=self.current_role))
        print(f"FAIL {method} {endpoint}: {response.status_code}, expected {expected_status}")
        return self._record(TestResult(False, endpoint, method, response.status_code, response_time,
                                       response.text[:200], description, self.current_role))

    def test_all_apis_for_role(self, role: str):
        if not self.login(role):
            return
        print(f"\nChecking endpoints for {role}...")

        test_cases = [
            ("GET", "/healthz", None, 200, "health check"),
            ("GET", f"{API}/auth/me", None, 200, "current user"),
            ("GET", f"{API}/dashboard", None, 200, "dashboard stats"),
            ("GET", f"{API}/patients?limit=5", None, 200, "patient list"),
            ("GET", f"{API}/patients/search?q=a", None, 200, "patient search"),
            ("GET", f"{API}/appointments", None, 200, "appointments"),
            ("GET", f"{API}/referrals", None, 200, "referrals"),
            ("GET", f"{API}/vaccinations/due", None, 200, "due vaccinations"),
            ("GET", f"{API}/hubs", None, 200, "hubs"),
            ("GET", f"{API}/users/providers", None, 200, "providers"),
            ("GET", f"{API}/calculators", None, 200, "calculators"),
            ("POST", f"{API}/calculators/bmi", {"weight": 70, "height": 175}, 200, "BMI"),
            ("GET", f"{API}/billing/invoices", None, 200, "invoices"),
            ("GET", f"{API}/billing/currencies", None, 200, "currencies"),
        ]

        if role == "admin":
            test_cases.extend([
                ("GET", f"{API}/users", None, 200, "user list"),
                ("GET", f"{API}/audit", None, 200, "audit log"),
                ("GET", f"{API}/billing/summary", None, 200, "billing summary"),
                ("GET", f"{API}/billing/settings", None, 200, "billing settings"),
            ])
        else:
            test_cases.extend([
                ("GET", f"{API}/users", None, 403, "user list is admin only"),
                ("GET", f"{API}/audit", None, 403, "audit log is admin only"),
            ])

        if role in ("receptionist", "billing"):
            test_cases.append(("POST", f"{API}/patients", {"name": "Smoke Test"}, 403, "cannot create patients"))
        if role in ("physician", "nurse"):
            test_cases.append(("POST", f"{API}/billing/invoices", {}, 403, "cannot create invoices"))

        for method, endpoint, data, expected_status, description in test_cases:
            self.test_endpoint(method, endpoint, data, expected_status, description)

        self.test_endpoint("POST", f"{API}/auth/logout", None, 200, "logout")
        print(f"Finished {role}")

    def run_comprehensive_test(self):
        print("Physician dashboard API smoke test")
        print("=" * 50)
        for role in TEST_USERS:
            self.test_all_apis_for_role(role)
            self.session = requests.Session()
            self.headers = {}
            self.current_role = None
        self.generate_reports()
        return len(self.error_results) == 0

    def generate_reports(self):
        total_tests = len(self.test_results)
        successful_tests = sum(1 for r in self.test_results if r.success)
        success_rate = (successful_tests / total_tests) * 100 if total_tests > 0 else 0

        print("\nSummary:")
        print(f"  total:   {total_tests}")
        print(f"  passed:  {successful_tests}")
        print(f"  failed:  {len(self.error_results)}")
        print(f"  rate:    {success_rate:.1f}%")

        if self.error_results:
            print(f"\nFailures ({len(self.error_results)}):")
            print("=" * 80)
            for i, error in enumerate(self.error_results, 1):
                print(f"{i}. [{error.user_role}] {error.method} {error.endpoint}")
                print(f"   status: {error.status_code}")
                print(f"   error:  {error.error_message}")
                print(f"   check:  {error.description}")
                print("-" * 80)


def main():
    tester = SmokeAPITester()
    if tester.run_comprehensive_test():
        print("\nAll endpoints responded as expected")
        sys.exit(0)
    print(f"\n{len(tester.error_results)} problem(s) found, see above")
    sys.exit(1)


if __name__ == "__main__":
    main()
