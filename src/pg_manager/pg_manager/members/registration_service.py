from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from werkzeug.datastructures import FileStorage

from ..common.datetime_utils import now_local
from ..common.uploads import UploadStore
from ..common.validators import (
    optional_date,
    require_date,
    require_email,
    require_enum,
    require_length,
    require_phone,
)
from ..core.enums import Gender, PgType, RentType
from ..core.exceptions import ConflictError, ValidationError
from ..pgs.service import PgService
from .model import RegisteredMember
from .repository import MemberRepository, RegisteredMemberRepository

logger = logging.getLogger(__name__)


class RegistrationService:
    """Public self-registration; rows wait in RegisteredMember until an admin decides."""

    def __init__(
        self,
        registered: RegisteredMemberRepository,
        members: MemberRepository,
        pg_service: PgService,
        *,
        uploads: Optional[UploadStore] = None,
    ):
        self._registered = registered
        self._members = members
        self._pgs = pg_service
        self._uploads = uploads

    def _validated(self, payload: dict, *, today: date) -> dict:
        data = {
            "name": require_length(payload.get("name"), "name", 2, 100),
            "dob": require_date(payload.get("dob"), "dob"),
            "gender": require_enum(payload.get("gender"), Gender, "gender"),
            "location": require_length(payload.get("location"), "location", 2, 191),
            "pg_location": require_length(payload.get("pgLocation"), "pgLocation", 2, 191),
            "pg_type": require_enum(payload.get("pgType"), PgType, "pgType"),
            "email": require_email(payload.get("email")),
            "phone": require_phone(payload.get("phone")),
            "work": require_length(payload.get("work"), "work", 2, 100),
            "rent_type": require_enum(payload.get("rentType"), RentType, "rentType"),
            "date_of_relieving": optional_date(payload.get("dateOfRelieving"), "dateOfRelieving"),
        }
        if data["dob"] >= today:
            raise ValidationError("dob must be in the past")
        if data["rent_type"] == RentType.SHORT_TERM:
            if data["date_of_relieving"] is None:
                raise ValidationError("dateOfRelieving is required for short term stays")
            if data["date_of_relieving"] <= today:
                raise ValidationError("dateOfRelieving must be in the future")

        if not self._pgs.find_for_registration(location=data["pg_location"], pg_type=data["pg_type"]):
            raise ValidationError(f"No {data['pg_type'].value} PG found at {data['pg_location']}")

        duplicate = self._members.find_duplicate(email=data["email"], phone=data["phone"])
        if duplicate:
            raise ConflictError(f"A member with this {duplicate} already exists", field=duplicate)
        duplicate = self._registered.find_duplicate(email=data["email"], phone=data["phone"])
        if duplicate:
            raise ConflictError(f"A registration with this {duplicate} is already pending", field=duplicate)
        return data

    def validate(self, payload: dict, *, now: Optional[datetime] = None) -> dict:
        self._validated(payload, today=(now or now_local()).date())
        return {"valid": True}

    def register(
        self,
        payload: dict,
        *,
        profile_image: Optional[FileStorage],
        document_image: Optional[FileStorage],
        now: Optional[datetime] = None,
    ) -> RegisteredMember:
        data = self._validated(payload, today=(now or now_local()).date())
        if profile_image is None or not profile_image.filename:
            raise ValidationError("profileImage is required")
        if document_image is None or not document_image.filename:
            raise ValidationError("documentImage is required")

        photo_url = self._uploads.save(profile_image, "profile") if self._uploads else None
        document_url = self._uploads.save(document_image, "documents") if self._uploads else None

        registration_id = self._registered.create(photo_url=photo_url, document_url=document_url, **data)
        logger.info("New %s registration %s for %s", data["pg_type"].value, registration_id, data["pg_location"])
        created = self._registered.get_by_id(registration_id)
        if created is None:
            raise ValidationError("Registration could not be saved")
        return created
