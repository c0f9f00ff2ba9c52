"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Resolve the caller's identity and pass it explicitly to services
- Call services for business logic
- Map domain errors to HTTP responses
- Never contain business logic
- Never expose internal error details
"""

import logging

from django.core.cache import cache
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from planner import conf
from planner.domain import EventId
from planner.domain.errors import (
    ConflictError,
    DomainError,
    ForbiddenError,
    IllegalTransitionError,
    NotFoundError,
    PhaseClosedError,
    ValidationError,
)
from planner.handlers.serializers import (
    BlocksSerializer,
    EventCreateSerializer,
    EventSerializer,
    FinalDateSerializer,
    JoinSerializer,
    NameClaimSerializer,
    PhaseSerializer,
    ShowResultsSerializer,
    VoteSerializer,
    results_payload,
    session_payload,
)
from planner.signals import event_cache_key, results_cache_key
from planner.wiring import get_planner

logger = logging.getLogger(__name__)

SESSION_HEADER = "X-Planner-Session"
SESSION_COOKIE_MAX_AGE = 60 * 60 * 24 * 365

ERROR_STATUS = [
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ForbiddenError, status.HTTP_403_FORBIDDEN),
    (IllegalTransitionError, status.HTTP_409_CONFLICT),
    (PhaseClosedError, status.HTTP_409_CONFLICT),
    (ConflictError, status.HTTP_409_CONFLICT),
]


def error_response(exc: DomainError) -> Response:
    """Map a domain error to its HTTP response."""
    code = next((status_code for kind, status_code in ERROR_STATUS if isinstance(exc, kind)), None)
    if code is None:
        logger.error("Unmapped domain error", exc_info=exc)
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return Response({"error": {"code": exc.code.value, "message": exc.message}}, status=code)


def _first_error(errors) -> str:
    if isinstance(errors, dict):
        for field, nested in errors.items():
            if nested:
                return f"{field}: {_first_error(nested)}"
    if isinstance(errors, list):
        for nested in errors:
            if nested:
                return _first_error(nested)
    return str(errors)


def parse_body(serializer_class, data) -> dict:
    serializer = serializer_class(data=data)
    if not serializer.is_valid():
        raise ValidationError(_first_error(serializer.errors))
    return dict(serializer.validated_data)


def caller_user_id(request: Request) -> str | None:
    user = getattr(request, "user", None)
    if user is not None and user.is_authenticated:
        return str(user.pk)
    return None


def session_cookie_name(event_id: str) -> str:
    return f"{conf.session_cookie_prefix()}{EventId.from_string(event_id)}"


def caller_session_key(request: Request, event_id: str) -> str | None:
    return request.COOKIES.get(session_cookie_name(event_id)) or request.headers.get(SESSION_HEADER)


def caller(request: Request, event_id: str) -> dict:
    return {"session_key": caller_session_key(request, event_id), "user_id": caller_user_id(request)}


class PlannerView(APIView):
    """Base view translating domain errors into error responses."""

    def handle_exception(self, exc):
        if isinstance(exc, DomainError):
            return error_response(exc)
        return super().handle_exception(exc)


class EventListView(PlannerView):
    """Handler for POST /api/events"""

    def post(self, request: Request) -> Response:
        body = parse_body(EventCreateSerializer, request.data)
        event = get_planner().events.create_event(
            host_id=caller_user_id(request),
            title=body["title"],
            start_date=body["start_date"],
            end_date=body["end_date"],
            vote_deadline=body["vote_deadline"],
            quorum=body["quorum"],
            attendee_names=body["attendee_names"],
            description=body.get("description"),
            require_login_to_attend=body["require_login_to_attend"],
            show_results_to_everyone=body["show_results_to_everyone"],
        )
        return Response(EventSerializer(event).data, status=status.HTTP_201_CREATED)


class EventDetailView(PlannerView):
    """Handler for GET /api/events/{event_id}"""

    def get(self, request: Request, event_id: str) -> Response:
        planner = get_planner()
        key = event_cache_key(EventId.from_string(event_id))
        data = cache.get(key)
        if data is None:
            event = planner.events.get_event(event_id)
            data = {
                "event": EventSerializer(event).data,
                "attendee_names": NameClaimSerializer(planner.identity.name_claims(event.id), many=True).data,
                "count_in": planner.votes.count_in(event.id),
                "total_voters": planner.votes.count_total_voters(event.id),
            }
            cache.set(key, data, conf.results_cache_timeout())

        ids = caller(request, event_id)
        session = planner.identity.resolve(event_id, **ids)
        data = dict(data)
        data["viewer"] = {
            "is_host": data["event"]["host_id"] == ids["user_id"],
            "session": session_payload(session),
            "vote": planner.votes.vote_of(session) if session else None,
            "blocked_dates": [day.isoformat() for day in planner.availability.blocks_of(session)] if session else [],
        }
        return Response(data)


class JoinView(PlannerView):
    """Handler for POST /api/events/{event_id}/join"""

    def post(self, request: Request, event_id: str) -> Response:
        body = parse_body(JoinSerializer, request.data)
        result = get_planner().identity.join(event_id, **body, **caller(request, event_id))
        response = Response(
            {
                "mode": result.mode,
                "session": session_payload(result.session),
                "session_key": str(result.session.session_key),
            },
            status=status.HTTP_201_CREATED if result.mode in ("created", "merged") else status.HTTP_200_OK,
        )
        response.set_cookie(
            session_cookie_name(event_id),
            str(result.session.session_key),
            max_age=SESSION_COOKIE_MAX_AGE,
            httponly=True,
            samesite="Lax",
        )
        return response


class SwitchNameView(PlannerView):
    """Handler for POST /api/events/{event_id}/switch-name"""

    def post(self, request: Request, event_id: str) -> Response:
        body = parse_body(JoinSerializer, request.data)
        body.pop("time_zone", None)
        result = get_planner().identity.switch_name(event_id, **body, **caller(request, event_id))
        return Response({"mode": result.mode, "session": session_payload(result.session)})


class LeaveView(PlannerView):
    """Handler for POST /api/events/{event_id}/leave"""

    def post(self, request: Request, event_id: str) -> Response:
        get_planner().identity.leave(event_id, **caller(request, event_id))
        response = Response(status=status.HTTP_204_NO_CONTENT)
        response.delete_cookie(session_cookie_name(event_id))
        return response


class VoteView(PlannerView):
    """Handler for PUT /api/events/{event_id}/vote"""

    def put(self, request: Request, event_id: str) -> Response:
        body = parse_body(VoteSerializer, request.data)
        planner = get_planner()
        outcome = planner.votes.cast_vote(event_id, body["is_in"], **caller(request, event_id))
        return Response(
            {
                "is_in": outcome.vote.is_in,
                "phase": outcome.transitioned_to.value if outcome.transitioned_to else None,
                "count_in": planner.votes.count_in(event_id),
            }
        )


class BlocksView(PlannerView):
    """Handler for PUT /api/events/{event_id}/blocks"""

    def put(self, request: Request, event_id: str) -> Response:
        body = parse_body(BlocksSerializer, request.data)
        planner = get_planner()
        session = planner.availability.submit_blocks(
            event_id,
            body["dates"],
            anonymous=body.get("anonymous"),
            **caller(request, event_id),
        )
        return Response(
            {
                "session": session_payload(session),
                "blocked_dates": [day.isoformat() for day in planner.availability.blocks_of(session)],
            }
        )


class ResultsView(PlannerView):
    """Handler for GET /api/events/{event_id}/results"""

    def get(self, request: Request, event_id: str) -> Response:
        planner = get_planner()
        ids = caller(request, event_id)
        event = planner.availability.visible_event(event_id, ids["user_id"])

        key = results_cache_key(event.id)
        data = cache.get(key)
        if data is None:
            data = results_payload(planner.availability.results(event.id, **ids))
            cache.set(key, data, conf.results_cache_timeout())
        return Response({**data, "viewer_is_host": event.is_host(ids["user_id"])})


class PhaseView(PlannerView):
    """Handler for POST /api/events/{event_id}/phase"""

    def post(self, request: Request, event_id: str) -> Response:
        body = parse_body(PhaseSerializer, request.data)
        event = get_planner().phases.request_transition(
            event_id,
            caller_user_id(request),
            body["phase"],
            body.get("final_date"),
        )
        return Response(EventSerializer(event).data)


class FinalDateView(PlannerView):
    """Handler for POST /api/events/{event_id}/final"""

    def post(self, request: Request, event_id: str) -> Response:
        body = parse_body(FinalDateSerializer, request.data)
        event = get_planner().phases.finalize(event_id, caller_user_id(request), body["date"])
        return Response(EventSerializer(event).data)


class ShowResultsView(PlannerView):
    """Handler for PUT /api/events/{event_id}/show-results"""

    def put(self, request: Request, event_id: str) -> Response:
        body = parse_body(ShowResultsSerializer, request.data)
        event = get_planner().events.set_show_results(event_id, caller_user_id(request), body["show"])
        return Response(EventSerializer(event).data)
