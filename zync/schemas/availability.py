from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List, Literal
from datetime import datetime
from zync.schemas.common import DateStr, TimeStr, check_time_range, reject_nulls

CurrencyCode = Literal["MYR", "USD", "EUR", "GBP", "JPY", "CAD", "AUD", "SGD", "CNY", "INR"]

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"

# --- Time slots ---

class TimeSlotCreate(BaseModel):
    date: DateStr
    start_time: TimeStr
    end_time: TimeStr
    duration_minutes: int = Field(..., gt=0, le=24 * 60)
    buffer_time_minutes: int = Field(0, ge=0, le=24 * 60)

    @model_validator(mode="after")
    def check_range(self):
        check_time_range(self.start_time, self.end_time)
        return self

class TimeSlotUpdate(BaseModel):
    start_time: Optional[TimeStr] = None
    end_time: Optional[TimeStr] = None
    duration_minutes: Optional[int] = Field(None, gt=0, le=24 * 60)
    buffer_time_minutes: Optional[int] = Field(None, ge=0, le=24 * 60)
    is_available: Optional[bool] = None

    @model_validator(mode="before")
    @classmethod
    def no_nulls(cls, data):
        return reject_nulls(data)

    @model_validator(mode="after")
    def check_range(self):
        check_time_range(self.start_time, self.end_time)
        return self

class TimeSlotResponse(BaseModel):
    id: str
    user_id: str
    date: str
    start_time: str
    end_time: str
    duration_minutes: int
    buffer_time_minutes: int = 0
    is_available: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

# --- Recurring availability ---

class RecurringAvailabilityCreate(BaseModel):
    day_of_week: int = Field(..., ge=0, le=6, description="0 = Sunday ... 6 = Saturday")
    start_time: TimeStr
    end_time: TimeStr
    duration_minutes: int = Field(..., gt=0, le=24 * 60)
    buffer_time_minutes: int = Field(0, ge=0, le=24 * 60)

    @model_validator(mode="after")
    def check_range(self):
        check_time_range(self.start_time, self.end_time)
        return self

class RecurringAvailabilityUpdate(BaseModel):
    start_time: Optional[TimeStr] = None
    end_time: Optional[TimeStr] = None
    duration_minutes: Optional[int] = Field(None, gt=0, le=24 * 60)
    buffer_time_minutes: Optional[int] = Field(None, ge=0, le=24 * 60)
    is_active: Optional[bool] = None

    @model_validator(mode="before")
    @classmethod
    def no_nulls(cls, data):
        return reject_nulls(data)

    @model_validator(mode="after")
    def check_range(self):
        check_time_range(self.start_time, self.end_time)
        return self

class RecurringAvailabilityResponse(BaseModel):
    id: str
    user_id: str
    day_of_week: int
    start_time: str
    end_time: str
    duration_minutes: int
    buffer_time_minutes: int
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

class GenerateSlotsRequest(BaseModel):
    start_date: DateStr
    end_date: DateStr

class GenerateSlotsResponse(BaseModel):
    created_slots: int

# --- Freelancer profile ---

class FreelancerProfileCreate(BaseModel):
    business_name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    services_offered: Optional[List[str]] = None
    hourly_rate: Optional[float] = Field(None, ge=0)
    currency: CurrencyCode = "USD"
    time_zone: str = "UTC"
    booking_url_slug: str = Field(..., min_length=3, max_length=64, pattern=SLUG_PATTERN)
    booking_advance_days: int = Field(30, ge=0, le=365)
    cancellation_policy: Optional[str] = None

    @field_validator("booking_url_slug", mode="before")
    @classmethod
    def normalize_slug(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

class FreelancerProfileUpdate(BaseModel):
    business_name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    services_offered: Optional[List[str]] = None
    hourly_rate: Optional[float] = Field(None, ge=0)
    currency: Optional[CurrencyCode] = None
    time_zone: Optional[str] = None
    booking_url_slug: Optional[str] = Field(None, min_length=3, max_length=64, pattern=SLUG_PATTERN)
    is_public: Optional[bool] = None
    booking_advance_days: Optional[int] = Field(None, ge=0, le=365)
    cancellation_policy: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def no_nulls(cls, data):
        # only the optional descriptive fields can be cleared
        return reject_nulls(data, nullable=("description", "services_offered", "hourly_rate", "cancellation_policy"))

    @field_validator("booking_url_slug", mode="before")
    @classmethod
    def normalize_slug(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

class FreelancerProfileResponse(BaseModel):
    id: str
    user_id: str
    business_name: str
    description: Optional[str] = None
    services_offered: Optional[List[str]] = None
    hourly_rate: Optional[float] = None
    currency: str
    time_zone: str
    booking_url_slug: str
    is_public: bool
    booking_advance_days: int
    cancellation_policy: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

# --- Aggregated responses ---

class FreelancerAvailabilityResponse(BaseModel):
    time_slots: List[TimeSlotResponse]
    recurring_availability: List[RecurringAvailabilityResponse]
    total_slots: int

class PublicAvailabilityResponse(BaseModel):
    freelancer: FreelancerProfileResponse
    available_slots: List[TimeSlotResponse]
    next_available_date: Optional[str] = None
