"""Application service for reference data, base rosters and user accounts."""

from __future__ import annotations

import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import structlog
from werkzeug.security import generate_password_hash

from shiftlog.core.auth import RequestUserContext, ensure_admin, ensure_self_or_admin
from shiftlog.core.errors import (
    ConflictError,
    IncompleteProfileError,
    InvalidInputError,
    NotFoundError,
)
from shiftlog.core.jalali import days_in_jalali_month, format_date_key, parse_date_string
from shiftlog.models.entities import (
    BaseMember,
    BaseProfile,
    BaseType,
    DriverStatus,
    EmploymentStatus,
    IranHoliday,
    Personnel,
    ProductivityStatus,
    StationBase,
    User,
    UserRole,
    WorkShift,
)
from shiftlog.repositories.reference_repository import ReferenceRepository

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class PersonnelCreateData:
    first_name: str
    last_name: str
    national_id: str
    employment_status: EmploymentStatus
    productivity_status: ProductivityStatus
    driver_status: DriverStatus


@dataclass(slots=True)
class PersonnelUpdateData:
    first_name: str | None = None
    last_name: str | None = None
    national_id: str | None = None
    employment_status: EmploymentStatus | None = None
    productivity_status: ProductivityStatus | None = None
    driver_status: DriverStatus | None = None


@dataclass(slots=True)
class GuestPersonnelData:
    first_name: str
    last_name: str
    productivity_status: ProductivityStatus = ProductivityStatus.PRODUCTIVE
    driver_status: DriverStatus = DriverStatus.NON_DRIVER


@dataclass(slots=True)
class WorkShiftCreateData:
    title: str
    equivalent_hours: int
    shift_code: str


@dataclass(slots=True)
class WorkShiftUpdateData:
    title: str | None = None
    equivalent_hours: int | None = None
    shift_code: str | None = None


@dataclass(slots=True)
class BaseCreateData:
    name: str
    number: str
    type: BaseType


@dataclass(slots=True)
class BaseUpdateData:
    name: str | None = None
    number: str | None = None
    type: BaseType | None = None


@dataclass(slots=True)
class BaseProfileData:
    supervisor_name: str
    supervisor_national_id: str
    base_name: str
    base_number: str
    base_type: BaseType
    digital_signature: str | None = None


@dataclass(slots=True)
class HolidayCreateData:
    date: str
    title: str


@dataclass(slots=True)
class UserCreateData:
    username: str
    password: str
    role: UserRole = UserRole.USER
    is_active: bool = True
    full_name: str | None = None


@dataclass(slots=True)
class UserUpdateData:
    username: str | None = None
    password: str | None = None
    role: UserRole | None = None
    is_active: bool | None = None
    full_name: str | None = None


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def profile_is_complete(profile: BaseProfile) -> bool:
    required = (
        profile.supervisor_name,
        profile.supervisor_national_id,
        profile.base_name,
        profile.base_number,
    )
    return all(value and value.strip() for value in required) and profile.base_type is not None


class ReferenceService:
    """Service implementing reference data CRUD and supervisor base setup."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = ReferenceRepository(db)

    def _persist(self, detail: str, *rows: object) -> None:
        try:
            for row in rows:
                self.repo.add(row)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError(detail) from exc

    # ---------- Serialization ----------
    @staticmethod
    def serialize_personnel(person: Personnel) -> dict[str, object]:
        return {
            "id": str(person.id),
            "first_name": person.first_name,
            "last_name": person.last_name,
            "full_name": person.full_name,
            "national_id": person.national_id,
            "employment_status": person.employment_status.value,
            "productivity_status": person.productivity_status.value,
            "driver_status": person.driver_status.value,
        }

    @staticmethod
    def serialize_work_shift(shift: WorkShift) -> dict[str, object]:
        return {
            "id": str(shift.id),
            "title": shift.title,
            "equivalent_hours": shift.equivalent_hours,
            "shift_code": shift.shift_code,
        }

    @staticmethod
    def serialize_base(base: StationBase) -> dict[str, object]:
        return {
            "id": str(base.id),
            "name": base.name,
            "number": base.number,
            "type": base.type.value,
        }

    @staticmethod
    def serialize_base_profile(profile: BaseProfile) -> dict[str, object]:
        return {
            "id": str(profile.id),
            "user_id": str(profile.user_id),
            "supervisor_name": profile.supervisor_name,
            "supervisor_national_id": profile.supervisor_national_id,
            "base_name": profile.base_name,
            "base_number": profile.base_number,
            "base_type": profile.base_type.value,
            "digital_signature": profile.digital_signature,
            "is_complete": profile.is_complete,
            "created_at": profile.created_at.isoformat(),
            "updated_at": profile.updated_at.isoformat(),
        }

    @staticmethod
    def serialize_holiday(holiday: IranHoliday) -> dict[str, object]:
        return {
            "id": str(holiday.id),
            "date": holiday.date,
            "year": holiday.year,
            "month": holiday.month,
            "day": holiday.day,
            "title": holiday.title,
        }

    @staticmethod
    def serialize_user(user: User) -> dict[str, object]:
        return {
            "id": str(user.id),
            "username": user.username,
            "role": user.role.value,
            "is_active": user.is_active,
            "full_name": user.full_name,
            "created_at": user.created_at.isoformat(),
            "updated_at": user.updated_at.isoformat(),
        }

    # ---------- Personnel ----------
    def list_personnel(
        self,
        *,
        context: RequestUserContext,
        employment_status: EmploymentStatus | None = None,
        productivity_status: ProductivityStatus | None = None,
        search: str | None = None,
    ) -> list[Personnel]:
        if search and search.strip():
            rows = self.repo.search_personnel(search)
            return [
                person
                for person in rows
                if (employment_status is None or person.employment_status is employment_status)
                and (productivity_status is None or person.productivity_status is productivity_status)
            ]
        return self.repo.list_personnel(
            employment_status=employment_status,
            productivity_status=productivity_status,
        )

    def get_personnel(self, personnel_id: UUID) -> Personnel:
        person = self.repo.get_personnel(personnel_id)
        if person is None:
            raise NotFoundError("Personnel not found.")
        return person

    def create_personnel(self, *, context: RequestUserContext, data: PersonnelCreateData) -> Personnel:
        ensure_admin(context)
        national_id = data.national_id.strip()
        if self.repo.get_personnel_by_national_id(national_id) is not None:
            raise ConflictError("National id is already registered.")

        person = Personnel(
            first_name=data.first_name.strip(),
            last_name=data.last_name.strip(),
            national_id=national_id,
            employment_status=data.employment_status,
            productivity_status=data.productivity_status,
            driver_status=data.driver_status,
        )
        self._persist("National id is already registered.", person)
        self.db.refresh(person)
        logger.info("personnel_created", personnel_id=str(person.id), username=context.username)
        return person

    def update_personnel(
        self,
        *,
        context: RequestUserContext,
        personnel_id: UUID,
        data: PersonnelUpdateData,
    ) -> Personnel:
        ensure_admin(context)
        person = self.get_personnel(personnel_id)

        if data.national_id is not None:
            national_id = data.national_id.strip()
            existing = self.repo.get_personnel_by_national_id(national_id)
            if existing is not None and existing.id != person.id:
                raise ConflictError("National id is already registered.")
            person.national_id = national_id
        if data.first_name is not None:
            person.first_name = data.first_name.strip()
        if data.last_name is not None:
            person.last_name = data.last_name.strip()
        if data.employment_status is not None:
            person.employment_status = data.employment_status
        if data.productivity_status is not None:
            person.productivity_status = data.productivity_status
        if data.driver_status is not None:
            person.driver_status = data.driver_status

        self._persist("National id is already registered.")
        self.db.refresh(person)
        return person

    def delete_personnel(self, *, context: RequestUserContext, personnel_id: UUID) -> None:
        ensure_admin(context)
        person = self.get_personnel(personnel_id)
        if self.repo.personnel_reference_count(person.id) > 0:
            raise ConflictError("Cannot delete personnel with recorded performance data.")

        self.repo.delete_memberships_for_personnel(person.id)
        self.repo.delete(person)
        self.db.commit()
        logger.info("personnel_deleted", personnel_id=str(personnel_id), username=context.username)

    def create_guest_personnel(self, *, context: RequestUserContext, data: GuestPersonnelData) -> Personnel:
        """Register a temporary person and roster them under the requester's base."""

        person = Personnel(
            id=uuid.uuid4(),
            first_name=data.first_name.strip(),
            last_name=data.last_name.strip(),
            national_id=f"guest-{secrets.token_hex(8)}",
            employment_status=EmploymentStatus.TEMPORARY,
            productivity_status=data.productivity_status,
            driver_status=data.driver_status,
        )
        member = BaseMember(user_id=context.user_id, personnel_id=person.id, created_at=datetime.utcnow())
        self._persist("Could not register guest personnel.", person, member)
        self.db.refresh(person)
        logger.info("guest_personnel_created", personnel_id=str(person.id), username=context.username)
        return person

    # ---------- Work shifts ----------
    def list_work_shifts(self) -> list[WorkShift]:
        return self.repo.list_work_shifts()

    def get_work_shift(self, shift_id: UUID) -> WorkShift:
        shift = self.repo.get_work_shift(shift_id)
        if shift is None:
            raise NotFoundError("Work shift not found.")
        return shift

    def create_work_shift(self, *, context: RequestUserContext, data: WorkShiftCreateData) -> WorkShift:
        ensure_admin(context)
        shift_code = data.shift_code.strip()
        if self.repo.get_work_shift_by_code(shift_code) is not None:
            raise ConflictError("Shift code is already in use.")

        shift = WorkShift(title=data.title.strip(), equivalent_hours=data.equivalent_hours, shift_code=shift_code)
        self._persist("Shift code is already in use.", shift)
        self.db.refresh(shift)
        return shift

    def update_work_shift(
        self,
        *,
        context: RequestUserContext,
        shift_id: UUID,
        data: WorkShiftUpdateData,
    ) -> WorkShift:
        ensure_admin(context)
        shift = self.get_work_shift(shift_id)

        if data.shift_code is not None:
            shift_code = data.shift_code.strip()
            existing = self.repo.get_work_shift_by_code(shift_code)
            if existing is not None and existing.id != shift.id:
                raise ConflictError("Shift code is already in use.")
            shift.shift_code = shift_code
        if data.title is not None:
            shift.title = data.title.strip()
        if data.equivalent_hours is not None:
            shift.equivalent_hours = data.equivalent_hours

        self._persist("Shift code is already in use.")
        self.db.refresh(shift)
        return shift

    def delete_work_shift(self, *, context: RequestUserContext, shift_id: UUID) -> None:
        ensure_admin(context)
        shift = self.get_work_shift(shift_id)
        if self.repo.work_shift_reference_count(shift.id) > 0:
            raise ConflictError("Cannot delete work shift referenced by performance data.")
        self.repo.delete(shift)
        self.db.commit()

    # ---------- Bases ----------
    def list_bases(self) -> list[StationBase]:
        return self.repo.list_bases()

    def get_base(self, base_id: UUID) -> StationBase:
        base = self.repo.get_base(base_id)
        if base is None:
            raise NotFoundError("Base not found.")
        return base

    def create_base(self, *, context: RequestUserContext, data: BaseCreateData) -> StationBase:
        ensure_admin(context)
        number = data.number.strip()
        if self.repo.get_base_by_number(number) is not None:
            raise ConflictError("Base number is already registered.")

        base = StationBase(name=data.name.strip(), number=number, type=data.type)
        self._persist("Base number is already registered.", base)
        self.db.refresh(base)
        return base

    def update_base(self, *, context: RequestUserContext, base_id: UUID, data: BaseUpdateData) -> StationBase:
        ensure_admin(context)
        base = self.get_base(base_id)

        if data.number is not None:
            number = data.number.strip()
            existing = self.repo.get_base_by_number(number)
            if existing is not None and existing.id != base.id:
                raise ConflictError("Base number is already registered.")
            base.number = number
        if data.name is not None:
            base.name = data.name.strip()
        if data.type is not None:
            base.type = data.type

        self._persist("Base number is already registered.")
        self.db.refresh(base)
        return base

    def delete_base(self, *, context: RequestUserContext, base_id: UUID) -> None:
        ensure_admin(context)
        base = self.get_base(base_id)
        if self.repo.base_reference_count(base.id) > 0:
            raise ConflictError("Cannot delete base referenced by performance data.")
        self.repo.delete(base)
        self.db.commit()

    # ---------- Base profile ----------
    def get_base_profile(self, *, context: RequestUserContext, user_id: UUID | None = None) -> BaseProfile:
        target_user_id = user_id or context.user_id
        ensure_self_or_admin(context, target_user_id)
        profile = self.repo.get_base_profile(target_user_id)
        if profile is None:
            raise NotFoundError("Base profile not found.")
        return profile

    def save_base_profile(self, *, context: RequestUserContext, data: BaseProfileData) -> BaseProfile:
        now = datetime.utcnow()
        profile = self.repo.get_base_profile(context.user_id)
        if profile is None:
            profile = BaseProfile(user_id=context.user_id, created_at=now)
            self.db.add(profile)

        profile.supervisor_name = data.supervisor_name.strip()
        profile.supervisor_national_id = data.supervisor_national_id.strip()
        profile.base_name = data.base_name.strip()
        profile.base_number = data.base_number.strip()
        profile.base_type = data.base_type
        profile.digital_signature = _clean(data.digital_signature)
        profile.is_complete = profile_is_complete(profile)
        profile.updated_at = now

        self._persist("Base profile already exists for this user.")
        self.db.refresh(profile)
        logger.info("base_profile_saved", username=context.username, is_complete=profile.is_complete)
        return profile

    def resolve_profile_base(self, user_id: UUID) -> StationBase:
        """Resolve the base a supervisor logs for, registering it on first use.

        Does not commit; the caller's transaction owns the new base row.
        """

        profile = self.repo.get_base_profile(user_id)
        if profile is None or not profile.is_complete:
            raise IncompleteProfileError()

        base = self.repo.get_base_by_number(profile.base_number)
        if base is None:
            base = StationBase(name=profile.base_name, number=profile.base_number, type=profile.base_type)
            self.repo.add(base)
            logger.info("base_registered_from_profile", base_number=profile.base_number, user_id=str(user_id))
        return base

    # ---------- Base members ----------
    def list_base_members(self, *, context: RequestUserContext, user_id: UUID | None = None) -> list[Personnel]:
        target_user_id = user_id or context.user_id
        ensure_self_or_admin(context, target_user_id)
        return self.repo.list_member_personnel(target_user_id)

    def add_base_member(
        self,
        *,
        context: RequestUserContext,
        personnel_id: UUID,
        user_id: UUID | None = None,
    ) -> Personnel:
        target_user_id = user_id or context.user_id
        ensure_self_or_admin(context, target_user_id)
        person = self.repo.get_personnel(personnel_id)
        if person is None:
            raise InvalidInputError("personnel_id must reference existing personnel.")
        if self.repo.get_base_member(target_user_id, personnel_id) is not None:
            raise ConflictError("Personnel is already a member of this base.")

        member = BaseMember(user_id=target_user_id, personnel_id=personnel_id, created_at=datetime.utcnow())
        self._persist("Personnel is already a member of this base.", member)
        return person

    def remove_base_member(
        self,
        *,
        context: RequestUserContext,
        personnel_id: UUID,
        user_id: UUID | None = None,
    ) -> None:
        target_user_id = user_id or context.user_id
        ensure_self_or_admin(context, target_user_id)
        member = self.repo.get_base_member(target_user_id, personnel_id)
        if member is None:
            raise NotFoundError("Base member not found.")
        self.repo.delete(member)
        self.db.commit()

    # ---------- Holidays ----------
    def list_holidays(self, *, year: int | None = None, month: int | None = None) -> list[IranHoliday]:
        return self.repo.list_holidays(year=year, month=month)

    def create_holiday(self, *, context: RequestUserContext, data: HolidayCreateData) -> IranHoliday:
        ensure_admin(context)
        try:
            parsed = parse_date_string(data.date.strip())
            valid = 1 <= parsed.day <= days_in_jalali_month(parsed.year, parsed.month)
        except ValueError as exc:
            raise InvalidInputError("date must be a Jalali YYYY-MM-DD string.") from exc
        if not valid:
            raise InvalidInputError("date day is outside the Jalali month.")

        holiday = IranHoliday(
            date=format_date_key(parsed.year, parsed.month, parsed.day),
            year=parsed.year,
            month=parsed.month,
            day=parsed.day,
            title=data.title.strip(),
        )
        self._persist("A holiday is already registered for this date.", holiday)
        self.db.refresh(holiday)
        return holiday

    def delete_holiday(self, *, context: RequestUserContext, holiday_id: UUID) -> None:
        ensure_admin(context)
        holiday = self.repo.get_holiday(holiday_id)
        if holiday is None:
            raise NotFoundError("Holiday not found.")
        self.repo.delete(holiday)
        self.db.commit()

    # ---------- Users ----------
    def list_users(self, *, context: RequestUserContext) -> list[User]:
        ensure_admin(context)
        return self.repo.list_users()

    def create_user(self, *, context: RequestUserContext, data: UserCreateData) -> User:
        ensure_admin(context)
        username = data.username.strip()
        if self.repo.get_user_by_username(username) is not None:
            raise ConflictError("Username is already taken.")

        now = datetime.utcnow()
        user = User(
            username=username,
            password_hash=generate_password_hash(data.password),
            role=data.role,
            is_active=data.is_active,
            full_name=_clean(data.full_name),
            created_at=now,
            updated_at=now,
        )
        self._persist("Username is already taken.", user)
        self.db.refresh(user)
        logger.info("user_created", created_username=user.username, username=context.username)
        return user

    def update_user(self, *, context: RequestUserContext, user_id: UUID, data: UserUpdateData) -> User:
        ensure_admin(context)
        user = self.repo.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found.")

        if data.username is not None:
            username = data.username.strip()
            existing = self.repo.get_user_by_username(username)
            if existing is not None and existing.id != user.id:
                raise ConflictError("Username is already taken.")
            user.username = username
        if data.password is not None:
            user.password_hash = generate_password_hash(data.password)
        if data.role is not None:
            user.role = data.role
        if data.is_active is not None:
            user.is_active = data.is_active
        if data.full_name is not None:
            user.full_name = _clean(data.full_name)
        user.updated_at = datetime.utcnow()

        self._persist("Username is already taken.")
        self.db.refresh(user)
        return user

    def delete_user(self, *, context: RequestUserContext, user_id: UUID) -> None:
        ensure_admin(context)
        if user_id == context.user_id:
            raise InvalidInputError("Administrators cannot delete their own account.")
        user = self.repo.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found.")
        if self.repo.user_reference_count(user.id) > 0:
            raise ConflictError("Cannot delete user with performance logs; deactivate instead.")

        for member in self.repo.list_base_members(user.id):
            self.db.delete(member)
        profile = self.repo.get_base_profile(user.id)
        if profile is not None:
            self.db.delete(profile)
        self.repo.delete_sessions_for_user(user.id)
        self.repo.delete(user)
        self.db.commit()
        logger.info("user_deleted", user_id=str(user_id), username=context.username)
