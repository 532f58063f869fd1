from __future__ import annotations

import io
from datetime import date, datetime

import pytest
from werkzeug.datastructures import FileStorage

from src.pg_manager.pg_manager.common.uploads import UploadStore
from src.pg_manager.pg_manager.core.enums import PgType, RentType
from src.pg_manager.pg_manager.core.exceptions import ConflictError, ValidationError
from src.pg_manager.pg_manager.members.model import RegisteredMember
from src.pg_manager.pg_manager.members.registration_service import RegistrationService
from src.pg_manager.pg_manager.pgs.model import PG
from src.pg_manager.pg_manager.pgs.service import PgService


NOW = datetime(2026, 4, 2, 9, 30, 0)


class FakePgRepo:
    def __init__(self):
        self._pgs = [
            PG(pg_id=3, name="Sunrise", pg_type=PgType.MENS, location="Velachery"),
            PG(pg_id=4, name="Lotus", pg_type=PgType.WOMENS, location="Adyar"),
        ]

    def find_by_location(self, *, location, pg_type):
        return next((p for p in self._pgs if p.location == location and p.pg_type == pg_type), None)


class FakeRegisteredRepo:
    def __init__(self):
        self.rows: dict[int, RegisteredMember] = {}

    def find_duplicate(self, *, email, phone):
        for r in self.rows.values():
            if r.email == email:
                return "email"
            if r.phone == phone:
                return "phone"
        return None

    def create(self, **fields):
        registration_id = len(self.rows) + 1
        self.rows[registration_id] = RegisteredMember(registration_id=registration_id, **fields)
        return registration_id

    def get_by_id(self, registration_id):
        return self.rows.get(int(registration_id))


class FakeMembersRepo:
    def __init__(self, *taken):
        self._taken = list(taken)

    def find_duplicate(self, *, email, phone, exclude_id=None):
        for taken_email, taken_phone in self._taken:
            if taken_email == email:
                return "email"
            if taken_phone == phone:
                return "phone"
        return None


def _payload(**overrides) -> dict:
    base = {
        "name": "Arun",
        "dob": "1999-08-12",
        "gender": "MALE",
        "location": "Madurai",
        "pgLocation": "Velachery",
        "pgType": "MENS",
        "email": "arun@example.com",
        "phone": "9000000001",
        "work": "Analyst",
        "rentType": "LONG_TERM",
    }
    base.update(overrides)
    return base


def _image(name="photo.jpg"):
    return FileStorage(stream=io.BytesIO(b"\xff\xd8\xff"), filename=name, content_type="image/jpeg")


def _service(tmp_path, *taken):
    registered = FakeRegisteredRepo()
    svc = RegistrationService(
        registered, FakeMembersRepo(*taken), PgService(FakePgRepo()), uploads=UploadStore(tmp_path)
    )
    return svc, registered


def test_register_stores_registration_with_both_images(tmp_path):
    svc, registered = _service(tmp_path)

    reg = svc.register(_payload(), profile_image=_image(), document_image=_image("id.pdf"), now=NOW)

    assert reg.rent_type == RentType.LONG_TERM
    assert reg.dob == date(1999, 8, 12)
    assert reg.photo_url.startswith("/uploads/profile/")
    assert reg.document_url.startswith("/uploads/documents/")
    assert len(list((tmp_path / "profile").iterdir())) == 1


@pytest.mark.parametrize("missing", ["profile", "document"])
def test_both_images_are_required(tmp_path, missing):
    svc, registered = _service(tmp_path)
    files = {"profile_image": _image(), "document_image": _image("id.pdf")}
    files[f"{missing}_image"] = None

    with pytest.raises(ValidationError):
        svc.register(_payload(), now=NOW, **files)
    assert registered.rows == {}


@pytest.mark.parametrize(
    "taken, field",
    [
        (("arun@example.com", "9111111111"), "email"),
        (("other@example.com", "9000000001"), "phone"),
    ],
)
def test_duplicate_of_existing_member_is_conflict(tmp_path, taken, field):
    svc, _ = _service(tmp_path, taken)

    with pytest.raises(ConflictError) as exc:
        svc.validate(_payload(), now=NOW)
    assert exc.value.field == field


def test_duplicate_of_pending_registration_is_conflict(tmp_path):
    svc, _ = _service(tmp_path)
    svc.register(_payload(), profile_image=_image(), document_image=_image(), now=NOW)

    with pytest.raises(ConflictError) as exc:
        svc.validate(_payload(email="new@example.com"), now=NOW)
    assert exc.value.field == "phone"

    with pytest.raises(ConflictError) as exc:
        svc.validate(_payload(phone="9222222222"), now=NOW)
    assert exc.value.field == "email"


def test_short_term_needs_future_relieving_date(tmp_path):
    svc, _ = _service(tmp_path)

    with pytest.raises(ValidationError):
        svc.validate(_payload(rentType="SHORT_TERM"), now=NOW)
    with pytest.raises(ValidationError):
        svc.validate(_payload(rentType="SHORT_TERM", dateOfRelieving="2026-04-02"), now=NOW)

    assert svc.validate(_payload(rentType="SHORT_TERM", dateOfRelieving="2026-04-20"), now=NOW) == {"valid": True}


def test_unknown_pg_location_or_type_is_rejected(tmp_path):
    svc, _ = _service(tmp_path)

    with pytest.raises(ValidationError):
        svc.validate(_payload(pgLocation="Guindy"), now=NOW)
    with pytest.raises(ValidationError):
        svc.validate(_payload(pgType="WOMENS"), now=NOW)


def test_bad_contact_details_are_rejected(tmp_path):
    svc, _ = _service(tmp_path)

    for bad in ({"phone": "12345"}, {"email": "not-an-email"}, {"dob": "2027-01-01"}, {"gender": "X"}):
        with pytest.raises(ValidationError):
            svc.validate(_payload(**bad), now=NOW)
