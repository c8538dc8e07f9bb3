"""
referral_genie.api.schemas

Request/response building blocks shared by several routers.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict


def _to_naive_utc(value: datetime) -> datetime:
    # Timestamps are stored as naive UTC.
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


UtcDatetime = Annotated[datetime, AfterValidator(_to_naive_utc)]


class ReferralSourceRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
