"""Authorization schemas for request/response validation."""
from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator, model_validator

from permauto.models.authorization import AuthorizationStatus
from permauto.schemas.base import CamelModel, to_naive_utc


class AuthorizationBase(CamelModel):
    """Fields the requester supplies on create and update."""
    company_name: str = Field(min_length=1)
    ruc: str = Field(min_length=1, pattern=r"^\d{11}$")
    reason: str = Field(min_length=1)
    user_id: str = Field(min_length=1)
    start_date: datetime
    end_date: datetime

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_dates(cls, value: datetime) -> datetime:
        return to_naive_utc(value)

    @model_validator(mode="after")
    def check_validity_window(self):
        if self.end_date <= self.start_date:
            raise ValueError("endDate must be after startDate")
        return self


class AuthorizationCreate(AuthorizationBase):
    """Schema for creating an authorization.

    Status and approver are assigned by the server; client values are ignored.
    """
    pass


class AuthorizationUpdate(AuthorizationBase):
    """Schema for updating an authorization.

    Omitted status or approvedBy leave the stored values unchanged.
    """
    status: Optional[AuthorizationStatus] = None
    approved_by: Optional[str] = None


class AuthorizationResponse(CamelModel):
    id: str
    company_name: str
    ruc: str
    reason: str
    user_id: str
    status: AuthorizationStatus
    approved_by: str
    start_date: datetime
    end_date: datetime
    timestamp: datetime


class AuthorizationEnvelope(CamelModel):
    success: bool = True
    message: Optional[str] = None
    authorization: AuthorizationResponse


class AuthorizationListEnvelope(CamelModel):
    success: bool = True
    authorizations: List[AuthorizationResponse]
