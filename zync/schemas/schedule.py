from pydantic import BaseModel, EmailStr, Field, model_validator
from typing import Optional, List, Literal, Union, Annotated
from datetime import datetime
from zync.schemas.common import DateStr, TimeStr, check_time_range, reject_nulls

class CandidateSlot(BaseModel):
    date: DateStr
    startTime: TimeStr
    endTime: TimeStr

    @model_validator(mode="after")
    def check_range(self):
        check_time_range(self.startTime, self.endTime)
        return self

# Schedule ownership is either a registered user or a free-text guest

class OwnedBy(BaseModel):
    kind: Literal["user"] = "user"
    userId: str

class GuestCreator(BaseModel):
    kind: Literal["guest"] = "guest"
    name: str
    email: Optional[str] = None

ScheduleOwner = Annotated[Union[OwnedBy, GuestCreator], Field(discriminator="kind")]

class ScheduleCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    availableSlots: List[CandidateSlot] = []
    duration: int = Field(..., gt=0, le=24 * 60)
    timeZone: str = "UTC"
    # Guest creator info (used when the caller is not authenticated)
    creatorName: Optional[str] = Field(None, max_length=100)
    creatorEmail: Optional[EmailStr] = None

class ScheduleUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    availableSlots: Optional[List[CandidateSlot]] = None
    duration: Optional[int] = Field(None, gt=0, le=24 * 60)
    timeZone: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def no_nulls(cls, data):
        return reject_nulls(data, nullable=("description",))

class ScheduleResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    availableSlots: List[CandidateSlot]
    duration: int
    timeZone: str
    owner: ScheduleOwner
    userId: Optional[str] = None
    creatorName: Optional[str] = None
    creatorEmail: Optional[str] = None
    createdAt: datetime
    updatedAt: datetime

class SelectedSlot(BaseModel):
    start: TimeStr
    end: TimeStr

    @model_validator(mode="after")
    def check_range(self):
        check_time_range(self.start, self.end)
        return self

class DateSelection(BaseModel):
    date: DateStr
    slots: List[SelectedSlot] = []

class AvailabilitySubmit(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    availability: List[DateSelection] = []

class AvailabilityResponseOut(BaseModel):
    id: str
    scheduleId: str
    name: str
    availability: List[DateSelection]
    submittedAt: datetime

class PublicScheduleResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    availableSlots: List[CandidateSlot]
    duration: int
    timeZone: str
    createdBy: str
    createdAt: datetime
    responses: List[AvailabilityResponseOut]
