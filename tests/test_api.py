"""
HTTP surface tests

The app runs without its lifespan; repositories, mailer and broadcaster are
swapped for the in-memory fakes through dependency overrides.
"""
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from zordon_hub.config import TicketStatus
from zordon_hub.main import create_app
from zordon_hub.shared.api import dependencies
from zordon_hub.tickets.domain import Ticket

API = "/api/v1"


@pytest.fixture
def client(user_repo, ticket_repo, comment_repo, mailer, broadcaster, people):
    app = create_app()
    app.dependency_overrides[dependencies.get_user_repository] = lambda: user_repo
    app.dependency_overrides[dependencies.get_ticket_repository] = lambda: ticket_repo
    app.dependency_overrides[dependencies.get_comment_repository] = lambda: comment_repo
    app.dependency_overrides[dependencies.get_mailer] = lambda: mailer
    app.dependency_overrides[dependencies.get_broadcaster] = lambda: broadcaster
    return TestClient(app)


def as_user(user):
    return {"X-User-Id": user.id}


class TestEnvelopeAndErrors:

    def test_root_and_docs_metadata(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["api"] == API

    def test_missing_identity_is_401(self, client):
        response = client.get(f"{API}/tickets/my-tickets")
        assert response.status_code == 401
        assert response.json() == {
            "success": False,
            "message": "User not authenticated",
            "error": "unauthenticated",
        }

    def test_unknown_identity_is_401(self, client, people):
        response = client.get(f"{API}/tickets/my-tickets", headers={"X-User-Id": "nobody"})
        assert response.status_code == 401

    def test_malformed_body_is_invalid_input(self, client, people):
        response = client.post(f"{API}/tickets", json={"priority": "HIGH"}, headers=as_user(people.jason))
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_input"


class TestUsersApi:

    def test_register_is_always_ranger(self, client, user_repo):
        response = client.post(f"{API}/users", json={
            "name": "Tommy", "email": "Tommy@Command-Center.test", "department": "GREEN", "role": "ADMIN"
        })

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["data"]["role"] == "RANGER"
        assert body["data"]["email"] == "tommy@command-center.test"
        assert "password_hash" not in body["data"]

    def test_duplicate_email_conflicts(self, client, people):
        response = client.post(f"{API}/users", json={"name": "Fake Jason", "email": people.jason.email})
        assert response.status_code == 409
        assert response.json()["error"] == "conflict"

    def test_me(self, client, people):
        response = client.get(f"{API}/users/me", headers=as_user(people.kim))
        assert response.json()["data"]["name"] == "Kimberly"

    def test_admin_views(self, client, people):
        assert client.get(f"{API}/users", headers=as_user(people.jason)).status_code == 403

        users = client.get(f"{API}/users", headers=as_user(people.admin)).json()["data"]
        assert len(users) == 5

        engineers = client.get(f"{API}/users/engineers", headers=as_user(people.admin)).json()["data"]
        assert {e["name"] for e in engineers} == {"Billy", "Trini"}

        stats = client.get(f"{API}/users/dashboard-stats", headers=as_user(people.admin)).json()["data"]
        assert stats["total_engineers"] == 2

    def test_role_change_and_workload_override(self, client, user_repo, people):
        response = client.patch(
            f"{API}/users/{people.kim.id}/role", json={"role": "ENGINEER"}, headers=as_user(people.admin)
        )
        assert response.status_code == 200
        assert response.json()["data"]["role"] == "ENGINEER"

        response = client.patch(
            f"{API}/users/{people.billy.id}/workload",
            json={"workload_score": 3, "is_online": False},
            headers=as_user(people.admin),
        )
        assert response.json()["data"]["workload_score"] == 3
        assert user_repo.users[people.billy.id].is_online is False

    def test_demoting_busy_engineer_conflicts(self, client, ticket_repo, user_repo, people, now):
        ticket_repo.seed(Ticket(id="t-7", title="Power coins dim", reporter_id=people.jason.id,
                                assignee_id=people.billy.id, status=TicketStatus.IN_PROGRESS,
                                due_date=now + timedelta(hours=4)))

        response = client.patch(
            f"{API}/users/{people.billy.id}/role", json={"role": "RANGER"}, headers=as_user(people.admin)
        )

        assert response.status_code == 409
        assert response.json()["error"] == "invalid_transition"
        assert user_repo.users[people.billy.id].role.value == "ENGINEER"

    def test_sync_workload(self, client, user_repo, people):
        user_repo.users[people.trini.id].workload_score = 9

        response = client.post(f"{API}/users/sync-workload", headers=as_user(people.admin))

        assert response.status_code == 200
        assert response.json()["data"]["updated_engineers"] == 1
        assert user_repo.users[people.trini.id].workload_score == 0


class TestTicketsApi:

    def test_full_flow(self, client, user_repo, broadcaster, mailer, people):
        created = client.post(
            f"{API}/tickets",
            json={"title": "Power Chamber lights out", "priority": "CRITICAL", "category": "Facilities"},
            headers=as_user(people.jason),
        )
        assert created.status_code == 201
        ticket = created.json()["data"]
        assert ticket["status"] == "OPEN"
        assert ticket["reporter"]["name"] == "Jason"
        assert ticket["sla"]["urgency"] == "warning"

        assigned = client.patch(
            f"{API}/tickets/{ticket['id']}/assign",
            json={"assigneeId": people.billy.id},
            headers=as_user(people.admin),
        )
        assert assigned.status_code == 200
        assert assigned.json()["data"]["assignee"]["name"] == "Billy"
        assert user_repo.users[people.billy.id].workload_score == 1
        assert people.billy.email in mailer.recipients()

        mine = client.get(f"{API}/tickets/assigned", headers=as_user(people.billy)).json()["data"]
        assert [t["id"] for t in mine] == [ticket["id"]]

        posted = client.post(
            f"{API}/tickets/{ticket['id']}/comments", json={"content": "Replacing the fuse"},
            headers=as_user(people.billy),
        )
        assert posted.status_code == 201
        assert broadcaster.events[-1]["channel"] == f"ticket_{ticket['id']}"

        resolved = client.patch(
            f"{API}/tickets/{ticket['id']}/status", json={"status": "RESOLVED"}, headers=as_user(people.billy)
        )
        assert resolved.json()["data"]["status"] == "RESOLVED"
        assert user_repo.users[people.billy.id].workload_score == 0

        thread = client.get(f"{API}/tickets/{ticket['id']}/comments", headers=as_user(people.jason)).json()["data"]
        assert thread[0]["author"]["role"] == "ENGINEER"

    def test_error_kinds_map_to_status_codes(self, client, ticket_repo, people, now):
        ticket_repo.seed(Ticket(id="t-1", title="Globe", reporter_id=people.jason.id,
                                due_date=now + timedelta(hours=4)))

        assert client.get(f"{API}/tickets/t-404", headers=as_user(people.admin)).status_code == 404
        assert client.get(f"{API}/tickets/t-1", headers=as_user(people.kim)).status_code == 403

        bad_status = client.patch(f"{API}/tickets/t-1/status", json={"status": "DONE"}, headers=as_user(people.admin))
        assert bad_status.status_code == 400
        assert bad_status.json()["error"] == "invalid_input"

        no_assignee = client.patch(f"{API}/tickets/t-1/status", json={"status": "ASSIGNED"}, headers=as_user(people.admin))
        assert no_assignee.status_code == 409
        assert no_assignee.json()["error"] == "invalid_transition"

        ranger_assignee = client.patch(
            f"{API}/tickets/t-1/assign", json={"assignee_id": people.kim.id}, headers=as_user(people.admin)
        )
        assert ranger_assignee.status_code == 400
        assert ranger_assignee.json()["error"] == "invalid_assignee"

    def test_fixed_paths_are_not_ids(self, client, ticket_repo, people, now):
        ticket_repo.seed(Ticket(id="t-1", title="Globe", reporter_id=people.jason.id,
                                due_date=now + timedelta(hours=4)))

        response = client.get(f"{API}/tickets/my-tickets", headers=as_user(people.jason))
        assert response.status_code == 200
        assert [t["id"] for t in response.json()["data"]] == ["t-1"]

    def test_notify_deadlines(self, client, ticket_repo, mailer, people, now):
        ticket_repo.seed(Ticket(id="t-1", title="Globe", reporter_id=people.jason.id,
                                assignee_id=people.trini.id, status=TicketStatus.ASSIGNED,
                                due_date=now + timedelta(hours=3)))

        response = client.post(f"{API}/tickets/notify-deadlines", json={"hours": 6}, headers=as_user(people.admin))

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["notified"] == 1
        assert data["results"][0]["recipient"] == people.trini.email

        # No body falls back to the configured window
        again = client.post(f"{API}/tickets/notify-deadlines", headers=as_user(people.admin))
        assert again.json()["data"]["checked"] == 0

    def test_delete_ticket(self, client, ticket_repo, people, now):
        ticket_repo.seed(Ticket(id="t-1", title="Globe", reporter_id=people.jason.id,
                                due_date=now + timedelta(hours=4)))

        response = client.delete(f"{API}/tickets/t-1", headers=as_user(people.jason))
        assert response.status_code == 200
        assert "t-1" not in ticket_repo.tickets


class TestCommentsApi:

    def test_edit_and_delete(self, client, ticket_repo, people, now):
        ticket_repo.seed(Ticket(id="t-1", title="Globe", reporter_id=people.jason.id,
                                due_date=now + timedelta(hours=4)))
        posted = client.post(f"{API}/tickets/t-1/comments", json={"content": "Hello"}, headers=as_user(people.jason))
        comment_id = posted.json()["data"]["id"]

        forbidden = client.patch(f"{API}/comments/{comment_id}", json={"content": "Hijack"}, headers=as_user(people.admin))
        assert forbidden.status_code == 403

        edited = client.patch(f"{API}/comments/{comment_id}", json={"content": "Hello again"}, headers=as_user(people.jason))
        assert edited.json()["data"]["content"] == "Hello again"

        empty = client.patch(f"{API}/comments/{comment_id}", json={"content": "  "}, headers=as_user(people.jason))
        assert empty.status_code == 400

        deleted = client.delete(f"{API}/comments/{comment_id}", headers=as_user(people.admin))
        assert deleted.json()["data"] == {"comment_id": comment_id, "ticket_id": "t-1"}
