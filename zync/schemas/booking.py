from pydantic import BaseModel, EmailStr, Field
from typing import Optional, Literal
from datetime import datetime
from enum import Enum

class AppointmentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"

# Statuses that hold a time slot
ACTIVE_STATUSES = [AppointmentStatus.PENDING.value, AppointmentStatus.CONFIRMED.value]
# Statuses that count towards revenue
BILLABLE_STATUSES = [AppointmentStatus.CONFIRMED.value, AppointmentStatus.COMPLETED.value]

# Allowed source statuses for each target status
ALLOWED_TRANSITIONS = {
    AppointmentStatus.CONFIRMED: [AppointmentStatus.PENDING.value],
    AppointmentStatus.CANCELLED: ACTIVE_STATUSES,
    AppointmentStatus.COMPLETED: ACTIVE_STATUSES,
}

class AppointmentCreate(BaseModel):
    time_slot_id: str
    customer_name: str = Field(..., min_length=1, max_length=200)
    customer_email: EmailStr
    customer_phone: Optional[str] = Field(None, max_length=50)
    customer_message: Optional[str] = Field(None, max_length=2000)

class AppointmentStatusUpdate(BaseModel):
    status: Literal["confirmed", "cancelled"]

class AppointmentResponse(BaseModel):
    id: str
    time_slot_id: str
    freelancer_id: str
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    customer_message: Optional[str] = None
    appointment_date: str
    start_time: str
    end_time: str
    status: AppointmentStatus
    booking_reference: str
    created_at: datetime
    updated_at: Optional[datetime] = None

class BookingConfirmationResponse(BaseModel):
    appointment: AppointmentResponse
    booking_reference: str
    message: str
