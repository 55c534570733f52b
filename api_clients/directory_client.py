"""
Patient directory API client backed by the user-management service.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import TypeAdapter

from models.directory_models import (
    DirectoryEnvelope,
    DirectoryRoleEnum,
    DirectoryUser,
    DoctorAssignment,
)
from monitoring_alerts import config
from monitoring_alerts.exceptions import DirectoryApiError

ACTIVE_PATIENTS_ENDPOINT = "/patients"
ASSIGNED_DOCTOR_ENDPOINT = "/patients/{patient_id}/doctor"
USER_ENDPOINT = "/users/{user_id}"

_USERS = TypeAdapter(List[DirectoryUser])


class DirectoryApiClient:
    """
    ``PatientDirectory`` implementation that queries the directory service.

    User records seen while listing patients are cached for display names.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        *,
        client: Optional[httpx.Client] = None,
        timeout: float | httpx.Timeout = httpx.Timeout(30.0, connect=10.0),
    ):
        self.base_url = base_url or config.DIRECTORY_API_BASE_URL
        self.token = token or config.DIRECTORY_API_TOKEN
        if not self.base_url or not self.token:
            raise ValueError("###### [directory] base URL/token not set (MONITORING_DIRECTORY_API_*)")
        self.headers = {
            "accept": "application/json",
            "authorization": f"Bearer {self.token}",
        }
        self._client = client or httpx.Client(timeout=timeout, follow_redirects=True)
        self._names: Dict[int, Optional[str]] = {}

    def close(self) -> None:
        self._client.close()

    def _get(self, endpoint: str, params: Optional[dict] = None) -> Any:
        url = f"{self.base_url.rstrip('/')}/{endpoint.lstrip('/')}"
        try:
            response = self._client.get(url, params=params, headers=self.headers)
            logging.info(f"Request {url} completed with status: {response.status_code}")
            response.raise_for_status()
        except httpx.TimeoutException as e:
            logging.error(f"Timeout error calling directory API GET {url}: {e}")
            raise
        except httpx.RequestError as e:
            logging.error(f"Request error calling directory API GET {url}: {e}")
            raise
        except httpx.HTTPStatusError as e:
            logging.error(f"HTTP error calling directory API GET {url}: {e}")
            logging.error(f"Response text: {e.response.text}")
            raise

        envelope = DirectoryEnvelope(**(response.json() if response.text else {}))
        if envelope.code not in (0, 200):
            logging.error(f"Directory API failed: code={envelope.code}, endpoint={endpoint}, msg={envelope.msg!r}")
            raise DirectoryApiError(f"Directory API error (code={envelope.code}) for {endpoint}")
        return envelope.data

    def list_active_patients(self) -> List[int]:
        payload = self._get(ACTIVE_PATIENTS_ENDPOINT, params={"active": "true"})
        users = _USERS.validate_python(payload or [])
        patient_ids: List[int] = []
        for user in users:
            self._names[user.userId] = _full_name(user)
            if user.role in (None, DirectoryRoleEnum.PATIENT):
                patient_ids.append(user.userId)
        return patient_ids

    def get_assigned_doctor(self, patient_id: int) -> Optional[int]:
        payload = self._get(ASSIGNED_DOCTOR_ENDPOINT.format(patient_id=patient_id))
        if not payload:
            return None
        assignment = DoctorAssignment(**payload)
        return assignment.doctorId or None

    def display_name(self, user_id: int) -> Optional[str]:
        if user_id not in self._names:
            payload = self._get(USER_ENDPOINT.format(user_id=user_id))
            self._names[user_id] = _full_name(DirectoryUser(**payload)) if payload else None
        return self._names[user_id]


def _full_name(user: DirectoryUser) -> Optional[str]:
    name = f"{user.firstName or ''} {user.lastName or ''}".strip()
    return name or None
