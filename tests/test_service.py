"""End-to-end tests for the user directory HTTP API."""

from __future__ import annotations

import json
import unittest

from fastapi.testclient import TestClient

from directory.config import Settings
from directory.service import create_app
from directory.store import UserStore


class _ExplodingStore(UserStore):
    def list_all(self):
        raise RuntimeError("backend exploded with secret detail")

    def get(self, user_id):
        raise RuntimeError("backend exploded with secret detail")

    def create(self, fields):
        raise RuntimeError("backend exploded with secret detail")

    def update(self, user_id, changes):
        raise RuntimeError("backend exploded with secret detail")

    def delete(self, user_id):
        raise RuntimeError("backend exploded with secret detail")


class UserDirectoryServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = UserStore()
        self.app = create_app(store=self.store, settings=Settings(seed_sample_users=False))

    def _create(self, client: TestClient, **extra) -> dict:
        payload = {"firstName": "Dave", "lastName": "Richards", "email": "dave@mail.com"}
        payload.update(extra)
        response = client.post("/api/users", json=payload)
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def test_user_lifecycle(self) -> None:
        with TestClient(self.app) as client:
            created = self._create(client)
            user_id = created["id"]
            self.assertTrue(user_id)
            self.assertEqual(created["firstName"], "Dave")
            self.assertEqual(created["lastName"], "Richards")
            self.assertEqual(created["email"], "dave@mail.com")
            self.assertIsNone(created["phone"])
            self.assertIsNone(created["workExperience"])

            patched = client.patch(f"/api/users/{user_id}", json={"skills": "Go, Rust"})
            self.assertEqual(patched.status_code, 200, patched.text)
            patched_payload = patched.json()
            self.assertEqual(patched_payload["skills"], "Go, Rust")
            self.assertEqual(patched_payload["firstName"], "Dave")
            self.assertEqual(patched_payload["lastName"], "Richards")
            self.assertEqual(patched_payload["email"], "dave@mail.com")

            deleted = client.delete(f"/api/users/{user_id}")
            self.assertEqual(deleted.status_code, 204, deleted.text)
            self.assertEqual(deleted.content, b"")

            missing = client.get(f"/api/users/{user_id}")
            self.assertEqual(missing.status_code, 404)
            self.assertEqual(missing.json(), {"message": "User not found"})

    def test_get_returns_created_record(self) -> None:
        with TestClient(self.app) as client:
            created = self._create(client, phone="8332883854", linkedIn="linkedin.com/in/dave")
            fetched = client.get(f"/api/users/{created['id']}")
            self.assertEqual(fetched.status_code, 200, fetched.text)
            self.assertEqual(fetched.json(), created)

    def test_list_returns_users_in_insertion_order(self) -> None:
        with TestClient(self.app) as client:
            empty = client.get("/api/users")
            self.assertEqual(empty.status_code, 200)
            self.assertEqual(empty.json(), [])

            first = self._create(client)
            second = self._create(client, firstName="Nishta", lastName="Gupta", email="nishta@mail.com")

            listing = client.get("/api/users")
            self.assertEqual([user["id"] for user in listing.json()], [first["id"], second["id"]])

    def test_create_reports_every_invalid_field(self) -> None:
        with TestClient(self.app) as client:
            response = client.post(
                "/api/users",
                json={"firstName": "", "lastName": "X", "email": "not-an-email"},
            )
            self.assertEqual(response.status_code, 400, response.text)
            message = response.json()["message"]
            self.assertIn('"firstName"', message)
            self.assertIn('"email"', message)
            self.assertIn("First name is required", message)
            self.assertEqual(self.store.list_all(), [])

    def test_email_must_be_a_plain_address(self) -> None:
        with TestClient(self.app) as client:
            response = client.post(
                "/api/users",
                json={"firstName": "Dave", "lastName": "Richards", "email": "Dave <Dave@MAIL.com>"},
            )
            self.assertEqual(response.status_code, 400, response.text)
            self.assertIn("without a display name", response.json()["message"])
            self.assertEqual(self.store.list_all(), [])

            created = self._create(client, email="Dave@MAIL.com")
            self.assertEqual(created["email"], "Dave@mail.com")

            patched = client.patch(
                f"/api/users/{created['id']}",
                json={"email": "Dave <dave@mail.com>"},
            )
            self.assertEqual(patched.status_code, 400, patched.text)
            self.assertEqual(self.store.get(created["id"]).email, "Dave@mail.com")

    def test_empty_work_experience_is_returned_as_empty_array(self) -> None:
        with TestClient(self.app) as client:
            created = self._create(client, workExperience="")
            self.assertEqual(created["workExperience"], "[]")

    def test_create_reports_missing_fields(self) -> None:
        with TestClient(self.app) as client:
            response = client.post("/api/users", json={"phone": "123"})
            self.assertEqual(response.status_code, 400, response.text)
            message = response.json()["message"]
            for field in ("firstName", "lastName", "email"):
                self.assertIn(f'"{field}"', message)

    def test_create_rejects_malformed_json(self) -> None:
        with TestClient(self.app) as client:
            response = client.post(
                "/api/users",
                content=b"{not json",
                headers={"content-type": "application/json"},
            )
            self.assertEqual(response.status_code, 400, response.text)
            self.assertIn("message", response.json())

    def test_create_rejects_duplicate_email(self) -> None:
        with TestClient(self.app) as client:
            self._create(client)
            duplicate = client.post(
                "/api/users",
                json={"firstName": "David", "lastName": "R", "email": "dave@mail.com"},
            )
            self.assertEqual(duplicate.status_code, 400, duplicate.text)
            self.assertIn("dave@mail.com", duplicate.json()["message"])
            self.assertEqual(len(self.store), 1)

    def test_client_supplied_id_is_ignored(self) -> None:
        with TestClient(self.app) as client:
            created = self._create(client, id="my-own-id")
            self.assertNotEqual(created["id"], "my-own-id")

            patched = client.patch(f"/api/users/{created['id']}", json={"id": "other"})
            self.assertEqual(patched.status_code, 200, patched.text)
            self.assertEqual(patched.json()["id"], created["id"])

    def test_patch_validates_supplied_fields(self) -> None:
        with TestClient(self.app) as client:
            created = self._create(client)

            response = client.patch(
                f"/api/users/{created['id']}",
                json={"lastName": "", "email": "broken", "skills": "Go"},
            )
            self.assertEqual(response.status_code, 400, response.text)
            message = response.json()["message"]
            self.assertIn('"lastName"', message)
            self.assertIn('"email"', message)

            unchanged = client.get(f"/api/users/{created['id']}").json()
            self.assertIsNone(unchanged["skills"])
            self.assertEqual(unchanged["lastName"], "Richards")

    def test_patch_rejects_null_required_field(self) -> None:
        with TestClient(self.app) as client:
            created = self._create(client)
            response = client.patch(f"/api/users/{created['id']}", json={"firstName": None})
            self.assertEqual(response.status_code, 400, response.text)
            self.assertIn("First name must not be null", response.json()["message"])

    def test_patch_distinguishes_empty_from_absent(self) -> None:
        with TestClient(self.app) as client:
            created = self._create(client, phone="8332883854", grade="A")

            response = client.patch(f"/api/users/{created['id']}", json={"phone": "", "grade": None})
            self.assertEqual(response.status_code, 200, response.text)
            payload = response.json()
            self.assertEqual(payload["phone"], "")
            self.assertIsNone(payload["grade"])

    def test_patch_unknown_user_returns_404(self) -> None:
        with TestClient(self.app) as client:
            self._create(client)
            before = client.get("/api/users").json()

            response = client.patch("/api/users/missing", json={"skills": "Go"})
            self.assertEqual(response.status_code, 404)
            self.assertEqual(response.json(), {"message": "User not found"})
            self.assertEqual(client.get("/api/users").json(), before)

    def test_delete_unknown_user_returns_404(self) -> None:
        with TestClient(self.app) as client:
            response = client.delete("/api/users/missing")
            self.assertEqual(response.status_code, 404)
            self.assertEqual(response.json(), {"message": "User not found"})

    def test_work_experience_round_trips_as_text(self) -> None:
        entries = [
            {"domain": "Technology", "subdomain": "MERN Stack", "experience": "3-5"},
            {"domain": "Finance", "subdomain": "Risk", "experience": "1-3"},
        ]
        with TestClient(self.app) as client:
            created = self._create(client)

            as_text = client.patch(
                f"/api/users/{created['id']}",
                json={"workExperience": json.dumps(entries)},
            )
            self.assertEqual(as_text.status_code, 200, as_text.text)
            self.assertEqual(json.loads(as_text.json()["workExperience"]), entries)

            as_array = client.patch(
                f"/api/users/{created['id']}",
                json={"workExperience": entries[:1]},
            )
            self.assertEqual(as_array.status_code, 200, as_array.text)
            self.assertEqual(json.loads(as_array.json()["workExperience"]), entries[:1])

    def test_work_experience_rejects_more_than_two_entries(self) -> None:
        entry = {"domain": "Technology", "subdomain": "Web", "experience": "0-1"}
        with TestClient(self.app) as client:
            created = self._create(client)
            response = client.patch(
                f"/api/users/{created['id']}",
                json={"workExperience": json.dumps([entry, entry, entry])},
            )
            self.assertEqual(response.status_code, 400, response.text)
            self.assertIn('"workExperience"', response.json()["message"])

    def test_work_experience_rejects_malformed_text(self) -> None:
        with TestClient(self.app) as client:
            created = self._create(client)
            response = client.patch(
                f"/api/users/{created['id']}",
                json={"workExperience": "not json"},
            )
            self.assertEqual(response.status_code, 400, response.text)

    def test_internal_failures_hide_details(self) -> None:
        app = create_app(store=_ExplodingStore(), settings=Settings(seed_sample_users=False))
        with TestClient(app) as client:
            listing = client.get("/api/users")
            self.assertEqual(listing.status_code, 500)
            self.assertEqual(listing.json(), {"message": "Failed to fetch users"})

            created = client.post(
                "/api/users",
                json={"firstName": "Dave", "lastName": "Richards", "email": "dave@mail.com"},
            )
            self.assertEqual(created.status_code, 500)
            self.assertEqual(created.json(), {"message": "Failed to create user"})

            fetched = client.get("/api/users/some-id")
            self.assertEqual(fetched.status_code, 500)
            self.assertEqual(fetched.json(), {"message": "Failed to fetch user"})

            patched = client.patch("/api/users/some-id", json={"skills": "Go"})
            self.assertEqual(patched.status_code, 500)
            self.assertEqual(patched.json(), {"message": "Failed to update user"})

            deleted = client.delete("/api/users/some-id")
            self.assertEqual(deleted.status_code, 500)
            self.assertEqual(deleted.json(), {"message": "Failed to delete user"})
            self.assertNotIn("secret", deleted.text)

    def test_default_store_is_seeded(self) -> None:
        app = create_app(settings=Settings())
        with TestClient(app) as client:
            listing = client.get("/api/users")
            self.assertEqual(listing.status_code, 200)
            emails = [user["email"] for user in listing.json()]
            self.assertEqual(emails, ["dave@mail.com", "hari@mail.com", "nishta@mail.com"])
            dave = listing.json()[0]
            self.assertEqual(
                json.loads(dave["workExperience"]),
                [{"domain": "Technology", "subdomain": "MERN Stack", "experience": "3-5"}],
            )

    def test_healthcheck(self) -> None:
        with TestClient(self.app) as client:
            response = client.get("/healthz")
            self.assertEqual(response.status_code, 200)
            self.assertEqual(response.json(), {"status": "ok"})


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
