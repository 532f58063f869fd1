from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol, Sequence

from ..core.enums import PgType, RentType
from .model import Member, NewMember, RegisteredMember


@dataclass(frozen=True)
class MemberFilter:
    pg_ids: Sequence[int]
    month: int
    year: int
    search: Optional[str] = None
    rent_type: Optional[RentType] = None
    pg_id: Optional[int] = None
    room_id: Optional[int] = None
    payment_status: Optional[str] = None
    is_active: Optional[bool] = None
    sort_by: str = "createdAt"
    sort_order: str = "desc"


class MemberRepository(Protocol):
    def get_by_id(self, member_pk: int, *, tx: Any = None) -> Optional[Member]:
        """Member joined with its PG and room."""

        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[Member]:
        raise NotImplementedError

    def member_id_exists(self, member_id: str) -> bool:
        raise NotImplementedError

    def find_duplicate(self, *, email: str, phone: str, exclude_id: Optional[int] = None) -> Optional[str]:
        """Name of the first field ('email' / 'phone') already used by another member."""

        raise NotImplementedError

    def create(self, new: NewMember, *, tx: Any = None) -> int:
        raise NotImplementedError

    def set_password(self, *, member_pk: int, password_hash: str) -> bool:
        raise NotImplementedError

    def update_profile(self, *, member_pk: int, location: str, work: str, phone: str) -> bool:
        raise NotImplementedError

    def deactivate(self, member_pk: int, *, tx: Any = None) -> bool:
        raise NotImplementedError

    def list_for_admin(self, flt: MemberFilter, *, offset: int, limit: int) -> tuple[list[dict], int]:
        """Rows include ``currentPaymentStatus`` for (flt.month, flt.year)."""

        raise NotImplementedError

    def list_inactive(self) -> Sequence[Member]:
        raise NotImplementedError

    def delete(self, member_pk: int) -> bool:
        raise NotImplementedError


class RegisteredMemberRepository(Protocol):
    def get_by_id(self, registration_id: int) -> Optional[RegisteredMember]:
        raise NotImplementedError

    def find_duplicate(self, *, email: str, phone: str) -> Optional[str]:
        raise NotImplementedError

    def create(
        self,
        *,
        name: str,
        dob,
        gender,
        location: str,
        pg_location: str,
        pg_type: PgType,
        email: str,
        phone: str,
        work: str,
        rent_type: RentType,
        photo_url: Optional[str],
        document_url: Optional[str],
        date_of_relieving,
    ) -> int:
        raise NotImplementedError

    def list_for_type(
        self,
        *,
        pg_type: PgType,
        search: Optional[str],
        rent_type: Optional[RentType],
        offset: int,
        limit: int,
    ) -> tuple[list[RegisteredMember], int]:
        raise NotImplementedError

    def count_for_type(self, pg_type: PgType) -> int:
        raise NotImplementedError

    def delete(self, registration_id: int, *, tx: Any = None) -> bool:
        raise NotImplementedError
