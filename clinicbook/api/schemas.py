"""
Request bodies of the appointments HTTP API.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..domain.models import AppointmentDraft


class AppointmentBody(BaseModel):
    """
    Body of POST and PATCH ``/appointments``.

    Fields are optional at this layer; the repository decides which are
    required and reports field-level errors.
    """
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    phone_number: Optional[str] = Field(default=None, alias="phoneNumber")
    service: Optional[str] = None
    start: Optional[str] = None
    tz_offset: Optional[int] = Field(default=None, alias="tzOffset")

    def to_draft(self) -> AppointmentDraft:
        return AppointmentDraft(
            name=self.name,
            phone_number=self.phone_number,
            service=self.service,
            start=self.start,
            tz_offset=self.tz_offset,
        )
