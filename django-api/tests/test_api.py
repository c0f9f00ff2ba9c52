"""Integration tests for the planner HTTP API.

Run with: pytest tests/test_api.py -v
"""

import uuid

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

EVENT_BODY = {
    "title": "Cabin weekend",
    "start_date": "2030-01-01",
    "end_date": "2030-01-07",
    "vote_deadline": "2099-12-20T00:00:00Z",
    "quorum": 2,
    "attendee_names": [
        {"label": "Alice", "slug": "alice"},
        {"label": "Bob", "slug": "bob"},
        {"label": "Carol", "slug": "carol"},
    ],
}


@pytest.fixture
def host_user():
    return get_user_model().objects.create_user(username="host")


@pytest.fixture
def host_client(host_user) -> APIClient:
    client = APIClient()
    client.force_authenticate(host_user)
    return client


@pytest.fixture
def event_id(host_client) -> str:
    response = host_client.post("/api/events", EVENT_BODY, format="json")
    assert response.status_code == 201
    return response.data["id"]


def joined_client(event_id: str, slug: str) -> APIClient:
    client = APIClient()
    response = client.post(f"/api/events/{event_id}/join", {"slug": slug}, format="json")
    assert response.status_code == 201
    return client


def reach_pick_days(event_id: str) -> list[APIClient]:
    clients = [joined_client(event_id, slug) for slug in ("alice", "bob")]
    for client in clients:
        assert client.put(f"/api/events/{event_id}/vote", {"is_in": True}, format="json").status_code == 200
    return clients


@pytest.mark.django_db
class TestCreateEvent:
    """Tests for POST /api/events"""

    def test_create_event(self, host_client, host_user):
        """Creating an event returns it in VOTE with the caller as host."""
        response = host_client.post("/api/events", EVENT_BODY, format="json")
        assert response.status_code == 201
        assert response.data["phase"] == "VOTE"
        assert response.data["host_id"] == str(host_user.pk)
        assert response.data["start_date"] == "2030-01-01"
        assert response.data["quorum"] == 2

    def test_create_event_requires_login(self, api_client):
        """Anonymous callers cannot create events."""
        response = api_client.post("/api/events", EVENT_BODY, format="json")
        assert response.status_code == 403
        assert response.data["error"]["code"] == "FORBIDDEN"

    def test_create_event_rejects_reversed_window(self, host_client):
        """An end date before the start date is rejected."""
        body = {**EVENT_BODY, "start_date": "2030-01-07", "end_date": "2030-01-01"}
        response = host_client.post("/api/events", body, format="json")
        assert response.status_code == 400
        assert response.data["error"]["code"] == "INVALID_RANGE"

    def test_create_event_rejects_missing_fields(self, host_client):
        """Missing required fields return a validation error."""
        response = host_client.post("/api/events", {"title": "x"}, format="json")
        assert response.status_code == 400
        assert response.data["error"]["code"] == "VALIDATION_FAILED"


@pytest.mark.django_db
class TestEventDetail:
    """Tests for GET /api/events/{id}"""

    def test_get_event_returns_details(self, api_client, event_id):
        """Event detail lists the invited names."""
        response = api_client.get(f"/api/events/{event_id}")
        assert response.status_code == 200
        assert response.data["event"]["title"] == "Cabin weekend"
        assert [name["slug"] for name in response.data["attendee_names"]] == ["alice", "bob", "carol"]
        assert response.data["viewer"]["session"] is None

    def test_get_event_shows_viewer_session(self, event_id):
        """Event detail includes the caller's own session and vote."""
        client = joined_client(event_id, "alice")
        client.put(f"/api/events/{event_id}/vote", {"is_in": True}, format="json")
        viewer = client.get(f"/api/events/{event_id}").data["viewer"]
        assert viewer["session"]["display_name"] == "Alice"
        assert viewer["vote"] is True

    def test_get_event_not_found(self, api_client):
        """Unknown event ids return 404."""
        response = api_client.get(f"/api/events/{uuid.uuid4()}")
        assert response.status_code == 404
        assert response.data["error"]["code"] == "EVENT_NOT_FOUND"

    def test_get_event_invalid_id_format(self, api_client):
        """Malformed event ids return 400."""
        response = api_client.get("/api/events/not-a-uuid")
        assert response.status_code == 400


@pytest.mark.django_db
class TestAttendeeFlow:
    """Tests for join, vote, blocks and leave."""

    def test_join_sets_session_cookie(self, api_client, event_id):
        """Joining stores the session key in a per-event cookie."""
        response = api_client.post(f"/api/events/{event_id}/join", {"slug": "alice"}, format="json")
        assert response.status_code == 201
        assert response.data["mode"] == "created"
        assert response.cookies[f"planner_session_{event_id}"].value == response.data["session_key"]

    def test_vote_without_joining(self, api_client, event_id):
        """Voting without a session returns 404."""
        response = api_client.put(f"/api/events/{event_id}/vote", {"is_in": True}, format="json")
        assert response.status_code == 404
        assert response.data["error"]["code"] == "ATTENDEE_SESSION_NOT_FOUND"

    def test_quorum_moves_to_pick_days(self, api_client, event_id):
        """Reaching quorum moves the event to PICK_DAYS."""
        reach_pick_days(event_id)
        assert api_client.get(f"/api/events/{event_id}").data["event"]["phase"] == "PICK_DAYS"

    def test_session_header_identifies_caller(self, event_id):
        """The session header identifies a caller without a cookie."""
        join = APIClient().post(f"/api/events/{event_id}/join", {"slug": "carol"}, format="json")
        client = APIClient()
        response = client.put(
            f"/api/events/{event_id}/vote",
            {"is_in": False},
            format="json",
            HTTP_X_PLANNER_SESSION=join.data["session_key"],
        )
        assert response.status_code == 200
        assert response.data["is_in"] is False

    def test_blocks_only_in_pick_days(self, event_id):
        """Blocks are rejected while the event is in VOTE."""
        client = joined_client(event_id, "alice")
        response = client.put(f"/api/events/{event_id}/blocks", {"dates": ["2030-01-02"]}, format="json")
        assert response.status_code == 409
        assert response.data["error"]["code"] == "PHASE_CLOSED"

    def test_blocks_saved(self, event_id):
        """Saved blocks come back sorted."""
        alice, _ = reach_pick_days(event_id)
        response = alice.put(f"/api/events/{event_id}/blocks", {"dates": ["2030-01-03", "2030-01-02"]}, format="json")
        assert response.status_code == 200
        assert response.data["blocked_dates"] == ["2030-01-02", "2030-01-03"]
        assert response.data["session"]["has_saved_availability"] is True

    def test_blocks_outside_window(self, event_id):
        """Blocks outside the event window are rejected."""
        alice, _ = reach_pick_days(event_id)
        response = alice.put(f"/api/events/{event_id}/blocks", {"dates": ["2030-02-01"]}, format="json")
        assert response.status_code == 400

    def test_name_claimed_by_user(self, event_id):
        """A name held by a logged-in user cannot be taken anonymously."""
        user = get_user_model().objects.create_user(username="alice")
        client = APIClient()
        client.force_authenticate(user)
        assert client.post(f"/api/events/{event_id}/join", {"slug": "alice"}, format="json").status_code == 201

        response = APIClient().post(f"/api/events/{event_id}/join", {"slug": "alice"}, format="json")
        assert response.status_code == 409
        assert response.data["error"]["code"] == "NAME_CLAIMED"

    def test_switch_name(self, event_id):
        """Switching name renames the caller's session."""
        client = joined_client(event_id, "alice")
        response = client.post(f"/api/events/{event_id}/switch-name", {"slug": "carol"}, format="json")
        assert response.status_code == 200
        assert response.data["mode"] == "switched"
        assert response.data["session"]["display_name"] == "Carol"

    def test_leave(self, event_id):
        """Leaving ends the caller's session."""
        client = joined_client(event_id, "alice")
        assert client.post(f"/api/events/{event_id}/leave").status_code == 204
        response = client.put(f"/api/events/{event_id}/vote", {"is_in": True}, format="json")
        assert response.status_code == 404


@pytest.mark.django_db
class TestResultsAndPhases:
    """Tests for results visibility and host phase changes."""

    def test_results_hidden_from_guests(self, event_id):
        """Guests cannot see results until they are shared."""
        alice, _ = reach_pick_days(event_id)
        response = alice.get(f"/api/events/{event_id}/results")
        assert response.status_code == 403

    def test_results_for_host(self, host_client, event_id):
        """The host sees per-day availability and top dates."""
        alice, bob = reach_pick_days(event_id)
        alice.put(f"/api/events/{event_id}/blocks", {"dates": ["2030-01-01"]}, format="json")
        response = host_client.get(f"/api/events/{event_id}/results")
        assert response.status_code == 200
        assert response.data["viewer_is_host"] is True
        assert response.data["total_eligible"] == 2
        assert response.data["days"][0]["available"] == 1
        assert response.data["earliest_all"]["date"] == "2030-01-02"
        assert len(response.data["top_dates"]) == 3

    def test_results_shared_with_everyone(self, host_client, event_id):
        """Shared results are visible to guests."""
        alice, _ = reach_pick_days(event_id)
        host_client.put(f"/api/events/{event_id}/show-results", {"show": True}, format="json")
        response = alice.get(f"/api/events/{event_id}/results")
        assert response.status_code == 200
        assert response.data["viewer_is_host"] is False

    def test_only_host_changes_phase(self, event_id):
        """Guests cannot change the phase."""
        alice, _ = reach_pick_days(event_id)
        response = alice.post(f"/api/events/{event_id}/phase", {"phase": "RESULTS"}, format="json")
        assert response.status_code == 403

    def test_host_finalizes(self, host_client, event_id):
        """The host moves to RESULTS and finalizes a date in the window."""
        alice, _ = reach_pick_days(event_id)
        response = host_client.post(f"/api/events/{event_id}/phase", {"phase": "RESULTS"}, format="json")
        assert response.status_code == 200
        assert response.data["phase"] == "RESULTS"

        response = host_client.post(f"/api/events/{event_id}/final", {"date": "2030-01-09"}, format="json")
        assert response.status_code == 400
        assert host_client.get(f"/api/events/{event_id}").data["event"]["phase"] == "RESULTS"

        response = host_client.post(f"/api/events/{event_id}/final", {"date": "2030-01-04"}, format="json")
        assert response.status_code == 200
        assert response.data["phase"] == "FINALIZED"
        assert response.data["final_date"] == "2030-01-04"

        response = alice.put(f"/api/events/{event_id}/vote", {"is_in": False}, format="json")
        assert response.status_code == 409
        assert response.data["error"]["code"] == "PHASE_CLOSED"
        assert alice.get(f"/api/events/{event_id}/results").status_code == 200

    def test_illegal_phase_request(self, host_client, event_id):
        """Skipping phases returns an illegal transition."""
        response = host_client.post(f"/api/events/{event_id}/phase", {"phase": "FINALIZED"}, format="json")
        assert response.status_code == 409
        assert response.data["error"]["code"] == "ILLEGAL_TRANSITION"
