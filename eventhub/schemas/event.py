from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from eventhub.utils.helpers import as_utc

LocationType = Literal['PHYSICAL', 'VIRTUAL', 'HYBRID']


class EventCreate(BaseModel):
    """Event payload; eligibility lists are empty when unrestricted"""
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., min_length=1, max_length=191)
    description: str = ''
    location_type: LocationType = Field('PHYSICAL', alias='locationType')
    location_text: str = Field('', alias='locationText')
    category: Optional[str] = None
    speaker: Optional[str] = None
    image_url: Optional[str] = Field(None, alias='imageUrl')
    tags: List[str] = Field(default_factory=list)
    start_at: datetime = Field(..., alias='startAt')
    end_at: datetime = Field(..., alias='endAt')
    capacity: int = Field(..., ge=0)
    requires_approval: bool = Field(False, alias='requiresApproval')
    eligible_levels: List[str] = Field(default_factory=list, alias='eligibleLevels')
    eligible_programs: List[str] = Field(default_factory=list, alias='eligiblePrograms')

    @field_validator('start_at', 'end_at')
    @classmethod
    def normalize_utc(cls, value):
        return as_utc(value)

    @model_validator(mode='after')
    def check_window(self):
        if self.end_at <= self.start_at:
            raise ValueError('endAt must be after startAt')
        return self


class EventUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = Field(None, min_length=1, max_length=191)
    description: Optional[str] = None
    location_type: Optional[LocationType] = Field(None, alias='locationType')
    location_text: Optional[str] = Field(None, alias='locationText')
    category: Optional[str] = None
    speaker: Optional[str] = None
    image_url: Optional[str] = Field(None, alias='imageUrl')
    tags: Optional[List[str]] = None
    start_at: Optional[datetime] = Field(None, alias='startAt')
    end_at: Optional[datetime] = Field(None, alias='endAt')
    capacity: Optional[int] = Field(None, ge=0)
    requires_approval: Optional[bool] = Field(None, alias='requiresApproval')
    eligible_levels: Optional[List[str]] = Field(None, alias='eligibleLevels')
    eligible_programs: Optional[List[str]] = Field(None, alias='eligiblePrograms')
    is_cancelled: Optional[bool] = Field(None, alias='isCancelled')

    @field_validator('start_at', 'end_at')
    @classmethod
    def normalize_utc(cls, value):
        return as_utc(value)


class CheckInRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    qr_token: str = Field(..., min_length=1, alias='qrToken')


class ReviewRequest(BaseModel):
    comment: Optional[str] = None


class RejectRequest(BaseModel):
    reason: Optional[str] = None
