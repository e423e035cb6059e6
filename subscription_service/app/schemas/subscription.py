"""
Pydantic models for subscription payloads.

``SubscriptionPayload`` is the body accepted by create and update.  Its
fields are deliberately loose (missing values default to empty) so that
``to_record`` can apply the business checks in a fixed order and report
the first failure with a readable message.  ``SubscriptionRead`` is the
response shape; months are rendered as ``MM-YYYY`` and ``end_date`` is
left out entirely when the subscription is open-ended.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, StrictInt, StrictStr

from ..core.exceptions import ValidationError
from ..models.subscription import Subscription
from ..utils.periods import format_month_token, parse_month_token, start_of_month


def parse_uuid(value: str, message: str) -> UUID:
    """Parse ``value`` as a UUID or raise ``ValidationError(message)``."""
    try:
        return UUID(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(message) from exc


class SubscriptionPayload(BaseModel):
    """Body of ``POST /subscriptions`` and ``PUT /subscriptions/{id}``.

    ``id`` and ``created_at`` are not accepted; unknown keys are ignored.
    Values of the wrong JSON type (``"400"`` or ``true`` for ``price``) are
    rejected rather than coerced.
    """

    service_name: StrictStr = Field("", examples=["Yandex Plus"])
    price: StrictInt = Field(0, examples=[400])
    user_id: StrictStr = Field("", examples=["60601fee-2bf1-4721-ae6f-7636e79a0cba"])
    start_date: StrictStr = Field("", examples=["07-2025"])
    end_date: Optional[StrictStr] = Field(None, examples=["12-2025"])

    model_config = {"extra": "ignore"}

    def to_record(self) -> Subscription:
        """Validate the payload and build a domain record.

        Checks run in order and the first failure is raised as
        ``ValidationError`` (``InvalidFormat`` for bad month tokens).
        """
        if not self.service_name.strip():
            raise ValidationError("service_name is required")
        if self.price < 0:
            raise ValidationError("price must be non-negative")
        user_id = parse_uuid(self.user_id, "invalid user_id")
        if not self.start_date.strip():
            raise ValidationError("start_date is required")
        start = parse_month_token(self.start_date)

        end = None
        if self.end_date is not None:
            end = start_of_month(parse_month_token(self.end_date))

        return Subscription(
            service_name=self.service_name,
            price=self.price,
            user_id=user_id,
            start_date=start_of_month(start),
            end_date=end,
        )


class SubscriptionRead(BaseModel):
    """Subscription as returned by the API."""

    id: str
    service_name: str
    price: int
    user_id: str
    start_date: str
    end_date: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, sub: Subscription) -> "SubscriptionRead":
        return cls(
            id=str(sub.id),
            service_name=sub.service_name,
            price=sub.price,
            user_id=str(sub.user_id),
            start_date=format_month_token(sub.start_date),
            end_date=format_month_token(sub.end_date) if sub.end_date is not None else None,
            created_at=sub.created_at,
        )


class SummaryRead(BaseModel):
    total_price: int


class ErrorResponse(BaseModel):
    error: str
