"""
Subscription endpoints.

CRUD over ``/subscriptions`` plus ``/subscriptions/summary``, which
totals the monthly price of every subscription active during a range
of months.  Handlers only translate between HTTP and the store: the
payload and query parsing lives in ``schemas`` and the SQL in
``services``.  Domain errors are turned into ``HTTPException``s here;
persistence failures get a generic message and keep the underlying error
as ``__cause__`` for the error log.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from ...core.deadline import RequestDeadline
from ...core.exceptions import DeadlineExceeded, NotFoundError, PersistenceError, ValidationError
from ...schemas.filters import parse_list_filter, parse_summary_filter
from ...schemas.subscription import (
    ErrorResponse,
    SubscriptionPayload,
    SubscriptionRead,
    SummaryRead,
    parse_uuid,
)
from ...services.subscription_service import SubscriptionService
from ..dependencies import get_deadline, get_subscription_service

router = APIRouter()

NOT_FOUND_MESSAGE = "subscription not found"

ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
}


def _bad_request(exc: ValidationError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _failure(exc: PersistenceError, message: str) -> HTTPException:
    if isinstance(exc, DeadlineExceeded):
        return HTTPException(status_code=status.HTTP_504_GATEWAY_TIMEOUT, detail="request timed out")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message)


def _parse_id(raw: str):
    try:
        return parse_uuid(raw, "invalid id")
    except ValidationError as exc:
        raise _bad_request(exc) from exc


@router.get("/summary", response_model=SummaryRead, responses=ERROR_RESPONSES)
async def get_summary(
    start: Optional[str] = Query(None, description="First month, MM-YYYY"),
    end: Optional[str] = Query(None, description="Last month, MM-YYYY"),
    user_id: Optional[str] = Query(None),
    service_name: Optional[str] = Query(None),
    service: SubscriptionService = Depends(get_subscription_service),
    deadline: RequestDeadline = Depends(get_deadline),
) -> SummaryRead:
    """Total price of subscriptions active in any month of ``[start, end]``.

    Open-ended subscriptions (no ``end_date``) count as active from their
    start month onwards.
    """
    try:
        filters = parse_summary_filter(start, end, user_id, service_name)
    except ValidationError as exc:
        raise _bad_request(exc) from exc
    try:
        total = await service.get_summary(filters, deadline)
    except PersistenceError as exc:
        raise _failure(exc, "unable to calculate total") from exc
    return SummaryRead(total_price=total)


@router.get(
    "",
    response_model=List[SubscriptionRead],
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
)
async def list_subscriptions(
    user_id: Optional[str] = Query(None),
    service_name: Optional[str] = Query(None, description="Case-insensitive substring"),
    limit: Optional[str] = Query(None, description="Maximum rows; zero or negative means no limit"),
    offset: Optional[str] = Query(None, description="Rows to skip"),
    service: SubscriptionService = Depends(get_subscription_service),
    deadline: RequestDeadline = Depends(get_deadline),
) -> List[SubscriptionRead]:
    """List subscriptions, newest first."""
    try:
        filters = parse_list_filter(user_id, service_name, limit, offset)
    except ValidationError as exc:
        raise _bad_request(exc) from exc
    try:
        subs = await service.list_subscriptions(filters, deadline)
    except PersistenceError as exc:
        raise _failure(exc, "unable to fetch subscriptions") from exc
    return [SubscriptionRead.from_record(sub) for sub in subs]


@router.post(
    "",
    response_model=SubscriptionRead,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def create_subscription(
    payload: SubscriptionPayload,
    service: SubscriptionService = Depends(get_subscription_service),
    deadline: RequestDeadline = Depends(get_deadline),
) -> SubscriptionRead:
    """Create a subscription; ``id`` and ``created_at`` are assigned by the server."""
    try:
        record = payload.to_record()
    except ValidationError as exc:
        raise _bad_request(exc) from exc
    try:
        created = await service.create_subscription(record, deadline)
    except PersistenceError as exc:
        raise _failure(exc, "unable to persist subscription") from exc
    return SubscriptionRead.from_record(created)


@router.get(
    "/{sub_id}",
    response_model=SubscriptionRead,
    response_model_exclude_none=True,
    responses={**ERROR_RESPONSES, status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}},
)
async def get_subscription(
    sub_id: str,
    service: SubscriptionService = Depends(get_subscription_service),
    deadline: RequestDeadline = Depends(get_deadline),
) -> SubscriptionRead:
    """Retrieve a single subscription by its ID."""
    subscription_id = _parse_id(sub_id)
    try:
        sub = await service.get_subscription(subscription_id, deadline)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND_MESSAGE) from exc
    except PersistenceError as exc:
        raise _failure(exc, "failed to load subscription") from exc
    return SubscriptionRead.from_record(sub)


@router.put(
    "/{sub_id}",
    response_model=SubscriptionRead,
    response_model_exclude_none=True,
    responses={**ERROR_RESPONSES, status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}},
)
async def update_subscription(
    sub_id: str,
    payload: SubscriptionPayload,
    service: SubscriptionService = Depends(get_subscription_service),
    deadline: RequestDeadline = Depends(get_deadline),
) -> SubscriptionRead:
    """Replace every mutable field of a subscription.

    The id comes from the path; the body has the same shape as for create.
    """
    subscription_id = _parse_id(sub_id)
    try:
        record = payload.to_record()
    except ValidationError as exc:
        raise _bad_request(exc) from exc
    record.id = subscription_id
    try:
        updated = await service.update_subscription(record, deadline)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND_MESSAGE) from exc
    except PersistenceError as exc:
        raise _failure(exc, "unable to update subscription") from exc
    return SubscriptionRead.from_record(updated)


@router.delete(
    "/{sub_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={**ERROR_RESPONSES, status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}},
)
async def delete_subscription(
    sub_id: str,
    service: SubscriptionService = Depends(get_subscription_service),
    deadline: RequestDeadline = Depends(get_deadline),
) -> Response:
    """Delete a subscription."""
    subscription_id = _parse_id(sub_id)
    try:
        await service.delete_subscription(subscription_id, deadline)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND_MESSAGE) from exc
    except PersistenceError as exc:
        raise _failure(exc, "unable to remove subscription") from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
