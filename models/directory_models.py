"""
Patient directory API models.
"""
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class DirectoryRoleEnum(str, Enum):
    ADMIN = "ADMIN"
    DOCTOR = "DOCTOR"
    PATIENT = "PATIENT"


class DirectoryUser(BaseModel):
    """
    Model for a user record returned by the directory.
    """
    model_config = ConfigDict(populate_by_name=True)

    userId: int = Field(description="User ID")
    firstName: Optional[str] = Field(default=None, description="First name")
    lastName: Optional[str] = Field(default=None, description="Last name")
    role: Optional[DirectoryRoleEnum] = Field(default=None, description="Role of the user")


class DoctorAssignment(BaseModel):
    """
    Model for a patient's assigned doctor.
    """
    patientId: Optional[int] = Field(default=None, description="Patient ID")
    doctorId: Optional[int] = Field(default=None, description="Assigned doctor ID")


class DirectoryEnvelope(BaseModel):
    """
    Standard response envelope of the directory service.
    """
    code: Optional[int] = Field(default=None, description="Service status code")
    msg: Optional[str] = Field(default=None, description="Service message")
    data: Any = Field(default=None, description="Response payload")
