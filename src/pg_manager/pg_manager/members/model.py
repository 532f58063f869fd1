from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..auth.tokens import MemberIdentity
from ..core.enums import Gender, PgType, RentType


def age_on(dob: date, today: date) -> int:
    years = today.year - dob.year
    if (today.month, today.day) < (dob.month, dob.day):
        years -= 1
    return years


@dataclass(frozen=True)
class Member:
    id: int
    member_id: str
    name: str
    dob: date
    gender: Gender
    location: str
    email: str
    phone: str
    work: str
    rent_type: RentType
    pg_id: int
    date_of_joining: date
    room_id: Optional[int] = None
    date_of_relieving: Optional[date] = None
    advance_amount: float = 0.0
    price_per_day: Optional[float] = None
    is_active: bool = True
    is_first_time_login: bool = True
    password_hash: Optional[str] = None
    photo_url: Optional[str] = None
    document_url: Optional[str] = None
    digital_signature: Optional[str] = None
    created_at: Optional[datetime] = None
    # Joined PG / room columns.
    pg_name: Optional[str] = None
    pg_type: Optional[PgType] = None
    pg_location: Optional[str] = None
    room_no: Optional[str] = None
    room_rent: Optional[float] = None
    electricity_charge: Optional[float] = None

    def identity(self) -> MemberIdentity:
        return MemberIdentity(
            id=self.id,
            member_id=self.member_id,
            email=self.email,
            name=self.name,
            pg_id=self.pg_id,
            pg_type=self.pg_type or PgType.MENS,
        )

    def uploaded_files(self) -> list[Optional[str]]:
        return [self.photo_url, self.document_url, self.digital_signature]

    def to_dict(self, *, today: Optional[date] = None) -> dict:
        return {
            "id": self.id,
            "memberId": self.member_id,
            "name": self.name,
            "dob": self.dob,
            "age": age_on(self.dob, today or date.today()),
            "gender": self.gender.value,
            "location": self.location,
            "email": self.email,
            "phone": self.phone,
            "work": self.work,
            "rentType": self.rent_type.value,
            "advanceAmount": self.advance_amount,
            "pricePerDay": self.price_per_day,
            "dateOfJoining": self.date_of_joining,
            "dateOfRelieving": self.date_of_relieving,
            "isActive": self.is_active,
            "photoUrl": self.photo_url,
            "documentUrl": self.document_url,
            "digitalSignature": self.digital_signature,
            "pg": {
                "id": self.pg_id,
                "name": self.pg_name,
                "type": self.pg_type.value if self.pg_type else None,
                "location": self.pg_location,
            },
            "room": (
                {
                    "id": self.room_id,
                    "roomNo": self.room_no,
                    "rent": self.room_rent,
                    "electricityCharge": self.electricity_charge,
                }
                if self.room_id
                else None
            ),
            "createdAt": self.created_at,
        }


@dataclass(frozen=True)
class NewMember:
    member_id: str
    name: str
    dob: date
    gender: Gender
    location: str
    email: str
    phone: str
    work: str
    rent_type: RentType
    pg_id: int
    room_id: Optional[int]
    date_of_joining: date
    date_of_relieving: Optional[date]
    advance_amount: float
    price_per_day: Optional[float]
    photo_url: Optional[str]
    document_url: Optional[str]


@dataclass(frozen=True)
class RegisteredMember:
    """A self-registration waiting for admin approval."""

    registration_id: int
    name: str
    dob: date
    gender: Gender
    location: str
    pg_location: str
    pg_type: PgType
    email: str
    phone: str
    work: str
    rent_type: RentType
    photo_url: Optional[str] = None
    document_url: Optional[str] = None
    date_of_relieving: Optional[date] = None
    created_at: Optional[datetime] = None

    def to_dict(self, *, today: Optional[date] = None) -> dict:
        return {
            "id": self.registration_id,
            "name": self.name,
            "dob": self.dob,
            "age": age_on(self.dob, today or date.today()),
            "gender": self.gender.value,
            "location": self.location,
            "pgLocation": self.pg_location,
            "pgType": self.pg_type.value,
            "email": self.email,
            "phone": self.phone,
            "work": self.work,
            "rentType": self.rent_type.value,
            "photoUrl": self.photo_url,
            "documentUrl": self.document_url,
            "dateOfRelieving": self.date_of_relieving,
            "createdAt": self.created_at,
        }
