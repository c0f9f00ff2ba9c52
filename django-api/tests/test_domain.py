"""Unit tests for domain primitives.

These test invariants that must hold at construction time.
Run with: pytest tests/test_domain.py -v
"""

import uuid
from datetime import date, datetime, timedelta, timezone

import pytest

from planner.domain import DateWindow, EventId, Phase, Quorum, SessionKey, Slug
from planner.domain.dates import each_day_inclusive, parse_day, to_utc_day
from planner.domain.errors import (
    ErrorCode,
    IllegalTransitionError,
    InvalidRangeError,
    NameClaimedError,
    PhaseClosedError,
    ValidationError,
)
from planner.domain.phases import (
    can_transition,
    decide_automatic_transition,
    ensure_host_transition,
    ensure_open,
)

DEADLINE = datetime(2029, 12, 20, tzinfo=timezone.utc)


class TestQuorum:
    """Tests for Quorum value object."""

    def test_quorum_accepts_range(self):
        """Quorum accepts 1 through 100."""
        assert Quorum(1).value == 1
        assert Quorum(100).value == 100

    @pytest.mark.parametrize("value", [0, -3, 101])
    def test_quorum_rejects_out_of_range(self, value):
        """Quorum outside 1..100 is rejected."""
        with pytest.raises(ValidationError):
            Quorum(value)

    def test_quorum_rejects_bool_and_str(self):
        """Quorum must be an int."""
        with pytest.raises(ValidationError):
            Quorum(True)
        with pytest.raises(ValidationError):
            Quorum("2")

    def test_is_met_by(self):
        """Quorum is met at or above its value."""
        assert Quorum(2).is_met_by(2)
        assert not Quorum(2).is_met_by(1)


class TestSlug:
    """Tests for Slug value object."""

    def test_slug_accepts_url_safe_text(self):
        """Letters, digits, dashes and underscores are valid."""
        assert str(Slug("alice_b-2")) == "alice_b-2"

    @pytest.mark.parametrize("value", ["", "has space", "é", "x" * 51, "alice\n"])
    def test_slug_rejects_invalid(self, value):
        """Empty, long or non URL-safe slugs are rejected."""
        with pytest.raises(ValidationError):
            Slug(value)


class TestEventId:
    """Tests for EventId value object."""

    def test_from_string_parses_uuid(self):
        """from_string parses a UUID."""
        raw = uuid.uuid4()
        assert EventId.from_string(str(raw)).value == raw

    def test_from_string_rejects_garbage(self):
        """from_string raises ValidationError for non-UUIDs."""
        with pytest.raises(ValidationError) as exc:
            EventId.from_string("not-a-uuid")
        assert exc.value.code is ErrorCode.VALIDATION_FAILED

    def test_prefix_is_first_eight_hex_digits(self):
        """prefix is the first eight hex digits."""
        raw = uuid.UUID("12345678-1234-5678-1234-567812345678")
        assert EventId(raw).prefix == "12345678"


class TestSessionKey:
    """Tests for SessionKey value object."""

    def test_generated_key_embeds_mode_and_event_prefix(self):
        """Generated keys carry the mode and event prefix."""
        event_id = EventId(uuid.uuid4())
        anon = SessionKey.generate(event_id)
        user = SessionKey.generate(event_id, "42")
        assert str(anon).startswith(f"anon_{event_id.prefix}_")
        assert str(user).startswith(f"user_{event_id.prefix}_")

    def test_generated_keys_are_unique(self):
        """Each generated key is different."""
        event_id = EventId(uuid.uuid4())
        assert SessionKey.generate(event_id) != SessionKey.generate(event_id)

    def test_belongs_to_checks_event_prefix(self):
        """A key belongs only to the event it was issued for."""
        event_id = EventId(uuid.UUID("aaaaaaaa-0000-0000-0000-000000000000"))
        other = EventId(uuid.UUID("bbbbbbbb-0000-0000-0000-000000000000"))
        key = SessionKey.generate(event_id)
        assert key.belongs_to(event_id)
        assert not key.belongs_to(other)
        assert not SessionKey("garbage").belongs_to(event_id)


class TestDates:
    """Tests for UTC day arithmetic."""

    def test_parse_day_is_strict(self):
        """parse_day only accepts real YYYY-MM-DD days."""
        assert parse_day("2030-01-05") == date(2030, 1, 5)
        for bad in ("2030-1-5", "2030-02-30", "05/01/2030", "2030-01-05T00:00:00Z", "2030-01-05\n"):
            with pytest.raises(ValidationError):
                parse_day(bad)

    def test_to_utc_day_uses_utc_calendar_day(self):
        """Instants map to their UTC calendar day."""
        late_evening_west = datetime(2030, 1, 1, 22, 0, tzinfo=timezone(timedelta(hours=-5)))
        assert to_utc_day(late_evening_west) == date(2030, 1, 2)
        assert to_utc_day("2030-01-01T23:30:00Z") == date(2030, 1, 1)
        assert to_utc_day(datetime(2030, 1, 1, 23, 59)) == date(2030, 1, 1)

    def test_each_day_inclusive(self):
        """Both ends of the range are included."""
        days = each_day_inclusive("2030-01-01", "2030-01-03")
        assert days == [date(2030, 1, 1), date(2030, 1, 2), date(2030, 1, 3)]
        assert each_day_inclusive("2030-01-01", "2030-01-01") == [date(2030, 1, 1)]

    def test_each_day_inclusive_crosses_month_and_leap_day(self):
        """Ranges cross month ends and leap days."""
        days = each_day_inclusive("2028-02-28", "2028-03-01")
        assert days == [date(2028, 2, 28), date(2028, 2, 29), date(2028, 3, 1)]

    def test_reversed_range_raises(self):
        """A reversed range raises InvalidRangeError."""
        with pytest.raises(InvalidRangeError) as exc:
            each_day_inclusive("2030-01-05", "2030-01-01")
        assert exc.value.code is ErrorCode.INVALID_RANGE

    def test_date_window(self):
        """DateWindow checks membership and lists its days."""
        window = DateWindow.between("2030-01-01", "2030-01-07")
        assert len(window) == 7
        assert window.contains("2030-01-07")
        assert not window.contains(date(2030, 1, 8))
        with pytest.raises(InvalidRangeError):
            DateWindow.between("2030-01-07", "2030-01-01")


class TestPhaseRules:
    """Tests for the transition table and the automatic rule."""

    def test_transition_table(self):
        """Only the documented edges are allowed."""
        assert can_transition(Phase.VOTE, Phase.PICK_DAYS)
        assert can_transition(Phase.VOTE, Phase.FAILED)
        assert can_transition(Phase.PICK_DAYS, Phase.RESULTS)
        assert can_transition(Phase.RESULTS, Phase.FINALIZED)
        assert not can_transition(Phase.VOTE, Phase.RESULTS)
        assert not can_transition(Phase.PICK_DAYS, Phase.VOTE)
        assert not can_transition(Phase.FAILED, Phase.VOTE)
        assert not can_transition(Phase.FINALIZED, Phase.RESULTS)

    def test_terminal_phases(self):
        """FINALIZED and FAILED are terminal."""
        assert Phase.FINALIZED.is_terminal
        assert Phase.FAILED.is_terminal
        assert not Phase.RESULTS.is_terminal

    def test_host_transition_rejects_automatic_edges(self):
        """Hosts cannot trigger automatic edges."""
        with pytest.raises(IllegalTransitionError):
            ensure_host_transition(Phase.VOTE, Phase.PICK_DAYS)
        with pytest.raises(IllegalTransitionError):
            ensure_host_transition(Phase.PICK_DAYS, Phase.FINALIZED)

    def test_host_transition_from_terminal_is_closed(self):
        """Terminal phases reject host transitions as closed."""
        with pytest.raises(PhaseClosedError):
            ensure_host_transition(Phase.FAILED, Phase.RESULTS)

    def test_ensure_open(self):
        """ensure_open raises only for terminal phases."""
        ensure_open(Phase.VOTE, frozenset({Phase.VOTE}), "Voting")
        with pytest.raises(PhaseClosedError) as exc:
            ensure_open(Phase.RESULTS, frozenset({Phase.VOTE}), "Voting")
        assert exc.value.code is ErrorCode.PHASE_CLOSED

    def test_quorum_reached_before_deadline(self):
        """Quorum before the deadline moves to PICK_DAYS."""
        before = DEADLINE - timedelta(days=1)
        assert decide_automatic_transition(Phase.VOTE, 2, Quorum(2), DEADLINE, before) is Phase.PICK_DAYS

    def test_quorum_outranks_expired_deadline(self):
        """Quorum wins over an expired deadline."""
        after = DEADLINE + timedelta(seconds=1)
        assert decide_automatic_transition(Phase.VOTE, 3, Quorum(2), DEADLINE, after) is Phase.PICK_DAYS

    def test_expired_without_quorum_fails(self):
        """An expired deadline without quorum fails the event."""
        after = DEADLINE + timedelta(seconds=1)
        assert decide_automatic_transition(Phase.VOTE, 1, Quorum(2), DEADLINE, after) is Phase.FAILED

    def test_deadline_instant_itself_is_not_expired(self):
        """The deadline instant itself has not expired."""
        assert decide_automatic_transition(Phase.VOTE, 0, Quorum(2), DEADLINE, DEADLINE) is None

    def test_no_automatic_rule_outside_vote(self):
        """No automatic transition outside VOTE."""
        after = DEADLINE + timedelta(days=1)
        for phase in (Phase.PICK_DAYS, Phase.RESULTS, Phase.FINALIZED, Phase.FAILED):
            assert decide_automatic_transition(phase, 0, Quorum(2), DEADLINE, after) is None


class TestErrors:
    """Tests for domain error codes and messages."""

    def test_str_includes_code(self):
        """str() of an error includes its code."""
        assert str(ValidationError("bad input")) == "VALIDATION_FAILED: bad input"

    def test_name_claimed_is_a_conflict_with_its_own_code(self):
        """NameClaimedError is a conflict with its own code."""
        exc = NameClaimedError("Alice")
        assert exc.code is ErrorCode.NAME_CLAIMED
        assert "Alice" in exc.message
