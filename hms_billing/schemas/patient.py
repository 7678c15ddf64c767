# hms_billing/schemas/patient.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import AliasChoices, Field, field_validator

from hms_billing.schemas.common import CamelModel


class Patient(CamelModel):
    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    gender: Optional[str] = None
    date_of_birth: Optional[str] = None
    address: Optional[str] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None
    medical_history: Optional[str] = None
    allergies: Optional[str] = None
    blood_group: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_str(cls, v: Any) -> Any:
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("first_name", "last_name", "email", "phone", mode="before")
    @classmethod
    def _none_as_blank(cls, v: Any) -> Any:
        return "" if v is None else v

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
