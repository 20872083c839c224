"""In-memory fakes and sample payloads shared by the test suites."""

import copy
from typing import Any

from tes_forms.application.interfaces import ApplicationRepository, PdfRenderer
from tes_forms.domain.entities import ApplicationRecord, FormType
from tes_forms.domain.exceptions import EntityNotFoundError, PdfRenderError

SIGNATURE = "data:image/png;base64,iVBORw0KGgo="
FAKE_PDF = b"%PDF-1.4\n% fake\n%%EOF"


class FakeApplicationRepository(ApplicationRepository):
    """In-memory fake repository; stores copies so callers can't mutate rows."""

    def __init__(self):
        self._records: dict[str, ApplicationRecord] = {}

    async def get_by_id(self, record_id: str) -> ApplicationRecord | None:
        record = self._records.get(record_id)
        return copy.deepcopy(record) if record else None

    async def list_by_type(self, form_type: FormType) -> list[ApplicationRecord]:
        records = [copy.deepcopy(r) for r in self._records.values() if r.type is form_type]
        return sorted(records, key=lambda r: (r.created_at, r.id), reverse=True)

    async def create(self, record: ApplicationRecord) -> ApplicationRecord:
        self._records[record.id] = copy.deepcopy(record)
        return copy.deepcopy(record)

    async def update(self, record: ApplicationRecord) -> ApplicationRecord:
        if record.id not in self._records:
            raise EntityNotFoundError("Application", record.id)
        self._records[record.id] = copy.deepcopy(record)
        return copy.deepcopy(record)

    def stored(self, record_id: str) -> ApplicationRecord:
        return self._records[record_id]

    def put(self, record: ApplicationRecord) -> ApplicationRecord:
        self._records[record.id] = record
        return record


class FakePdfRenderer(PdfRenderer):
    """Records calls instead of launching a browser."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls: list[tuple[FormType, dict[str, Any]]] = []

    async def render(self, form_type: FormType, data: dict[str, Any]) -> bytes:
        self.calls.append((form_type, data))
        if self.fail:
            raise PdfRenderError("browser engine failed (launch timeout)")
        return FAKE_PDF


def complete_rejoining(**overrides: Any) -> dict[str, Any]:
    data = {
        "name": "Ahmed Al Balushi",
        "wrokId": "TES-1042",
        "mobileNo": "+968 9123 4567",
        "designation": "Site Engineer",
        "leaveType": "Annual",
        "dateOfLeaving": "2024-06-01",
        "dateOfJoining": "2024-06-30",
        "totalLeave": "30",
        "allowedLeave": "30",
        "extraLeave": "0",
        "passportNo": "P1234567",
        "passportHandedOver": "Yes",
        "employeeSignature": SIGNATURE,
        "employeeSignatureDate": "2024-06-30",
    }
    data.update(overrides)
    return data


def complete_leave(**overrides: Any) -> dict[str, Any]:
    data = {
        "employeeName": "Maria Santos",
        "employeeId": "TES-2001",
        "formDate": "2024-05-10",
        "position": "Accountant",
        "site": "Muscat HQ",
        "mobileNo": "+968 9000 1111",
        "leaveType": "Annual",
        "commenceLeave": "2024-06-01",
        "totalDays": "21",
        "lastDayLeave": "2024-06-21",
        "airportName": "Muscat International",
        "employeeSignature": SIGNATURE,
        "employeeSignatureDate": "2024-05-10",
    }
    data.update(overrides)
    return data


