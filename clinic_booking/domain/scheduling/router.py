"""Scheduling router - public availability and booking endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ...database import get_db
from .availability_service import AvailabilityService
from .schemas import AvailabilityResponse, BookingCreate, BookingCreateResponse, BookingSummary
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Scheduling"])


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    """Dependency injection for AvailabilityService"""
    return AvailabilityService(db)


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


@router.get("/availability", response_model=AvailabilityResponse, response_model_exclude_none=True)
async def get_availability(
    date: str = Query(..., description="Day to check, YYYY-MM-DD"),
    serviceId: Optional[int] = Query(None, description="Service whose duration sizes the slots"),
    service: AvailabilityService = Depends(get_availability_service),
):
    """
    Free start times for a day.

    Closed days return an empty list with an advisory message rather than an error.
    """
    result = service.get_availability(date, serviceId)
    return {"slots": [slot.to_dict() for slot in result.slots], "message": result.message}


@router.post("/bookings", response_model=BookingCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    data: BookingCreate,
    service: BookingService = Depends(get_booking_service),
):
    """Book a slot (public, no authentication)"""
    booking = service.create_booking(data)
    await service.send_confirmation(booking)

    return BookingCreateResponse(
        booking=BookingSummary(
            id=booking.id,
            date=booking.date.isoformat(),
            time=booking.start_time,
            service=booking.service.title,
        )
    )
