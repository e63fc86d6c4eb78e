"""
HTTP routes for appointments and availability.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Request, status

from ..domain.exceptions import ValidationError
from ..domain.models import Service
from ..domain.query import DateRange, QueryFilters, StatusBucket
from ..services.scheduling import SchedulingService, parse_day
from .schemas import AppointmentBody

router = APIRouter(prefix="/appointments", tags=["appointments"])


def get_scheduling(request: Request) -> SchedulingService:
    return request.app.state.scheduling


def _parse_service(value: Optional[str]) -> Optional[Service]:
    if not value or value == "all":
        return None
    try:
        return Service(value)
    except ValueError:
        raise ValidationError({"service": f"unknown service {value!r}"}) from None


@router.get("")
def list_appointments(
    search: str = "",
    status_filter: StatusBucket = Query(StatusBucket.ALL, alias="status"),
    service: Optional[str] = None,
    date_range: DateRange = Query(DateRange.ALL, alias="range"),
    tz_offset: int = Query(0, alias="tzOffset"),
    scheduling: SchedulingService = Depends(get_scheduling),
) -> List[Dict[str, Any]]:
    """All appointments, most recent first. Filters are optional."""
    filters = QueryFilters(
        search=search,
        status=status_filter,
        service=_parse_service(service),
        date_range=date_range,
        tz_offset=tz_offset,
    )
    return [a.to_dict() for a in scheduling.list_appointments(filters)]


@router.get("/availability")
def get_availability(
    date: str,
    service: Optional[str] = None,
    tz_offset: int = Query(0, alias="tzOffset"),
    scheduling: SchedulingService = Depends(get_scheduling),
) -> Dict[str, List[str]]:
    try:
        day = parse_day(date)
    except ValueError:
        raise ValidationError({"date": f"expected YYYY-MM-DD, got {date!r}"}) from None

    return scheduling.availability(day, tz_offset, _parse_service(service)).to_dict()


@router.post("", status_code=status.HTTP_201_CREATED)
def create_appointment(
    body: AppointmentBody,
    scheduling: SchedulingService = Depends(get_scheduling),
) -> Dict[str, Any]:
    return scheduling.book(body.to_draft()).to_dict()


@router.patch("/{appointment_id}")
def update_appointment(
    appointment_id: str,
    body: AppointmentBody,
    scheduling: SchedulingService = Depends(get_scheduling),
) -> Dict[str, Any]:
    return scheduling.reschedule(appointment_id, body.to_draft()).to_dict()


@router.delete("/{appointment_id}")
def delete_appointment(
    appointment_id: str,
    scheduling: SchedulingService = Depends(get_scheduling),
) -> Dict[str, str]:
    scheduling.cancel(appointment_id)
    return {"message": "Appointment deleted"}
