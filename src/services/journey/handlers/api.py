import json

from aws_lambda_powertools import Logger
from aws_lambda_powertools.event_handler import (
    APIGatewayRestResolver,
    Response,
    content_types,
)
from aws_lambda_powertools.event_handler.exceptions import UnauthorizedError
from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.utilities.typing import LambdaContext
from pydantic import ValidationError

from services.journey.applications.exceptions import PartialBookingFailureException
from services.journey.handlers.dependencies import get_facade
from services.journey.handlers.request_models import (
    AddSegmentRequest,
    BookJourneyRequest,
    CancelSegmentBookingRequest,
    ListJourneysQuery,
    PlanJourneyRequest,
    ReplaceSegmentRequest,
    UpdateJourneyRequest,
    UpdateSegmentRequest,
)
from services.journey.handlers.response_models import (
    SuccessResponse,
    to_error_response,
    to_journey_data,
    to_list_response,
    to_recalculation_response,
    to_response,
    to_segment_data,
    to_service_data,
)
from services.shared.domain import (
    AccessDeniedException,
    DomainException,
    InvalidInputException,
    InvalidStateException,
    LimitExceededException,
    OptimisticLockException,
    ResourceNotFoundException,
)
from services.shared.utils.lambda_invoke import RemoteInvocationException

logger = Logger()
app = APIGatewayRestResolver()


def _json(status_code: int, body: dict) -> Response:
    return Response(
        status_code=status_code,
        content_type=content_types.APPLICATION_JSON,
        body=json.dumps(body, default=str),
    )


def _current_user_id() -> str:
    """Lambda オーソライザーが requestContext.authorizer に入れたユーザーID"""
    request_context = app.current_event.raw_event.get("requestContext") or {}
    authorizer = request_context.get("authorizer") or {}
    user_id = authorizer.get("userId") or authorizer.get("principalId")
    if not user_id:
        raise UnauthorizedError("Missing authenticated user")
    return str(user_id)


def _segment_patch(request: UpdateSegmentRequest) -> dict:
    """notes だけは null で消去できる"""
    return {
        key: value
        for key, value in request.model_dump(exclude_unset=True).items()
        if value is not None or key == "notes"
    }


def _body() -> dict:
    if not app.current_event.body:
        return {}
    return app.current_event.json_body or {}


# --- ジャーニー ---


@app.post("/journeys")
def plan_journey():
    request = PlanJourneyRequest.model_validate(_body())
    journey = get_facade().plan_journey(
        _current_user_id(),
        {
            "origin_location_id": request.origin_location_id,
            "destination_location_id": request.destination_location_id,
            "start_date": request.start_date,
            "end_date": request.end_date,
            "travelers": request.travelers,
            "name": request.name,
            "currency_code": request.currency,
            "preferences": request.preferences,
        },
    )
    return _json(
        201, SuccessResponse(data=to_journey_data(journey).model_dump()).model_dump()
    )


@app.get("/journeys")
def list_journeys():
    query = ListJourneysQuery.model_validate(
        {
            "page": app.current_event.get_query_string_value("page", "1"),
            "limit": app.current_event.get_query_string_value("limit", "10"),
        }
    )
    views = get_facade().list_journeys(
        _current_user_id(), page=query.page, limit=query.limit
    )
    return _json(200, to_list_response(views, query.page, query.limit))


@app.post("/journeys/recalculate-status")
def recalculate_all_journey_statuses():
    result = get_facade().recalculate_all_journey_statuses(_current_user_id())
    return _json(200, to_recalculation_response(result))


@app.get("/journeys/<journey_id>")
def get_journey(journey_id: str):
    view = get_facade().get_journey(journey_id, _current_user_id())
    return _json(200, to_response(view))


@app.patch("/journeys/<journey_id>")
def update_journey(journey_id: str):
    request = UpdateJourneyRequest.model_validate(_body())
    view = get_facade().update_journey(
        journey_id, _current_user_id(), request.model_dump(exclude_none=True)
    )
    return _json(200, to_response(view))


@app.delete("/journeys/<journey_id>")
def delete_journey(journey_id: str):
    get_facade().delete_journey(journey_id, _current_user_id())
    return Response(status_code=204)


@app.post("/journeys/<journey_id>/book")
def book_journey(journey_id: str):
    request = BookJourneyRequest.model_validate(_body())
    view = get_facade().book_journey(
        journey_id,
        _current_user_id(),
        {"notes": request.notes, "guest_details": request.guest_details},
    )
    return _json(200, to_response(view))


@app.post("/journeys/<journey_id>/complete")
def complete_journey(journey_id: str):
    view = get_facade().complete_journey(journey_id, _current_user_id())
    return _json(200, to_response(view))


@app.post("/journeys/<journey_id>/recalculate-status")
def recalculate_journey_status(journey_id: str):
    view = get_facade().recalculate_journey_status(journey_id, _current_user_id())
    return _json(200, to_response(view))


# --- セグメント ---


@app.post("/journeys/<journey_id>/segments")
def add_segment(journey_id: str):
    request = AddSegmentRequest.model_validate(_body())
    view = get_facade().add_segment(
        journey_id,
        _current_user_id(),
        {
            "segment_type": request.segment_type,
            "service_id": request.service_id,
            "departure_location_id": request.departure_location_id,
            "arrival_location_id": request.arrival_location_id,
            "departure_time": request.departure_time,
            "arrival_time": request.arrival_time,
            "price": request.price,
            "currency_code": request.currency,
            "notes": request.notes,
            "metadata": request.segment_metadata(),
        },
        insert_after_order=request.insert_after_order,
    )
    return _json(201, to_response(view))


@app.patch("/journeys/<journey_id>/segments/<segment_id>")
def update_segment(journey_id: str, segment_id: str):
    request = UpdateSegmentRequest.model_validate(_body())
    view = get_facade().update_segment(
        journey_id,
        segment_id,
        _current_user_id(),
        _segment_patch(request),
    )
    return _json(200, to_response(view))


@app.delete("/journeys/<journey_id>/segments/<segment_id>")
def delete_segment(journey_id: str, segment_id: str):
    view = get_facade().delete_segment(journey_id, segment_id, _current_user_id())
    return _json(200, to_response(view))


@app.post("/journeys/<journey_id>/segments/<segment_id>/cancel")
def cancel_segment_booking(journey_id: str, segment_id: str):
    request = CancelSegmentBookingRequest.model_validate(_body())
    view = get_facade().cancel_segment_booking(
        journey_id, segment_id, _current_user_id(), request.reason
    )
    return _json(200, to_response(view))


# --- 差し替え ---


@app.get("/journeys/<journey_id>/cancelled-segments")
def get_cancelled_segments(journey_id: str):
    segments = get_facade().get_cancelled_segments(journey_id, _current_user_id())
    return _json(
        200,
        SuccessResponse(
            data=[to_segment_data(s).model_dump() for s in segments]
        ).model_dump(),
    )


@app.get("/journeys/<journey_id>/segments/<segment_id>/replacements")
def find_replacement_services(journey_id: str, segment_id: str):
    services = get_facade().find_replacement_services(
        journey_id, segment_id, _current_user_id()
    )
    return _json(
        200,
        SuccessResponse(
            data=[to_service_data(s).model_dump() for s in services]
        ).model_dump(),
    )


@app.post("/journeys/<journey_id>/segments/<segment_id>/replace")
def replace_segment(journey_id: str, segment_id: str):
    request = ReplaceSegmentRequest.model_validate(_body())
    view = get_facade().replace_segment(
        journey_id, segment_id, request.service_id, _current_user_id()
    )
    return _json(200, to_response(view))


# --- 例外 → HTTP ステータス ---


@app.exception_handler(ValidationError)
def handle_validation_error(e: ValidationError):
    return _json(
        400,
        to_error_response(
            "VALIDATION_ERROR",
            "Invalid request",
            {"errors": e.errors(include_url=False, include_context=False)},
        ),
    )


@app.exception_handler(InvalidInputException)
def handle_invalid_input(e: InvalidInputException):
    return _json(400, to_error_response("INVALID_INPUT", str(e)))


@app.exception_handler(AccessDeniedException)
def handle_access_denied(e: AccessDeniedException):
    return _json(403, to_error_response("FORBIDDEN", str(e)))


@app.exception_handler(ResourceNotFoundException)
def handle_not_found(e: ResourceNotFoundException):
    return _json(404, to_error_response("NOT_FOUND", str(e)))


@app.exception_handler(InvalidStateException)
def handle_invalid_state(e: InvalidStateException):
    return _json(409, to_error_response("INVALID_STATE", str(e)))


@app.exception_handler(OptimisticLockException)
def handle_conflict(e: OptimisticLockException):
    return _json(409, to_error_response("CONFLICT", str(e)))


@app.exception_handler(LimitExceededException)
def handle_limit_exceeded(e: LimitExceededException):
    return _json(429, to_error_response("LIMIT_EXCEEDED", str(e)))


@app.exception_handler(PartialBookingFailureException)
def handle_partial_booking_failure(e: PartialBookingFailureException):
    return _json(
        502,
        to_error_response(
            "PARTIAL_BOOKING_FAILURE",
            str(e),
            {
                "journey": to_journey_data(e.view.journey, e.view.segments).model_dump(),
                "created_booking_ids": e.created_booking_ids,
                "failed_groups": [
                    {
                        "segment_ids": list(f.segment_ids),
                        "service_id": f.service_id,
                        "reason": f.reason,
                    }
                    for f in e.failed
                ],
            },
        ),
    )


@app.exception_handler(RemoteInvocationException)
def handle_remote_invocation_error(e: RemoteInvocationException):
    logger.exception("Downstream service call failed")
    return _json(502, to_error_response("UPSTREAM_ERROR", str(e)))


@app.exception_handler(DomainException)
def handle_domain_error(e: DomainException):
    logger.exception("Unhandled domain error")
    return _json(422, to_error_response("BUSINESS_RULE_VIOLATION", str(e)))


@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
def lambda_handler(event: dict, context: LambdaContext) -> dict:
    """ジャーニー API Lambda Handler"""
    return app.resolve(event, context)
