"""Live record tables: instructors, their travel documents and contracts.

Every table has a ``*Base`` model holding the scalar columns. The trash
snapshot schemas in ``snapshots.py`` reuse those bases, so a snapshot always
has the same fields as the row it was taken from.
"""

import uuid
from datetime import date, datetime

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

from ...domain.constants import (
    MAX_CI_LENGTH,
    MAX_DOCUMENT_NUMBER_LENGTH,
    MAX_NAME_LENGTH,
)
from ...domain.entities import (
    CandidateStatus,
    ContractStatus,
    EnglishLevel,
    MaritalStatus,
    PassportType,
    Sex,
)


def new_id() -> str:
    return str(uuid.uuid4())


# Lookup tables ("catalogs") referenced by instructors and contracts


class CatalogBase(SQLModel):
    code: str = Field(index=True, max_length=20)
    name: str = Field(max_length=MAX_NAME_LENGTH)


class Province(CatalogBase, table=True):  # type: ignore[call-arg]
    __tablename__: str = "provinces"  # type: ignore[assignment]

    id: str = Field(default_factory=new_id, primary_key=True)


class Municipality(CatalogBase, table=True):  # type: ignore[call-arg]
    __tablename__: str = "municipalities"  # type: ignore[assignment]

    id: str = Field(default_factory=new_id, primary_key=True)
    province_id: str = Field(foreign_key="provinces.id", index=True)


class Country(CatalogBase, table=True):  # type: ignore[call-arg]
    __tablename__: str = "countries"  # type: ignore[assignment]

    id: str = Field(default_factory=new_id, primary_key=True)


class Position(CatalogBase, table=True):  # type: ignore[call-arg]
    __tablename__: str = "positions"  # type: ignore[assignment]

    id: str = Field(default_factory=new_id, primary_key=True)


class Specialty(CatalogBase, table=True):  # type: ignore[call-arg]
    __tablename__: str = "specialties"  # type: ignore[assignment]

    id: str = Field(default_factory=new_id, primary_key=True)


class TeachingCategory(CatalogBase, table=True):  # type: ignore[call-arg]
    __tablename__: str = "teaching_categories"  # type: ignore[assignment]

    id: str = Field(default_factory=new_id, primary_key=True)


# Instructor


class InstructorBase(SQLModel):
    ci: str = Field(index=True, unique=True, min_length=1, max_length=MAX_CI_LENGTH)
    first_name: str = Field(min_length=1, max_length=MAX_NAME_LENGTH)
    last_name: str = Field(min_length=1, max_length=MAX_NAME_LENGTH)
    age: int = Field(ge=0)
    sex: Sex
    birth_date: date | None = None
    birth_country_id: str | None = Field(default=None, foreign_key="countries.id")
    foreign_birth_city: str | None = None

    # Physical description, printed on travel paperwork
    skin_color: str | None = None
    eye_color: str | None = None
    hair_color: str | None = None
    height: float | None = None
    weight: float | None = None
    distinguishing_marks: str | None = None

    # Address
    address: str | None = None
    province_id: str | None = Field(default=None, foreign_key="provinces.id")
    municipality_id: str | None = Field(default=None, foreign_key="municipalities.id")
    street: str | None = None
    house_number: str | None = None
    between_streets: str | None = None
    apartment: str | None = None
    locality: str | None = None

    # Contact
    phone: str | None = None
    mobile_phone: str | None = None
    email: str | None = None
    emergency_contact_name: str | None = None
    emergency_contact_phone: str | None = None

    # Family
    marital_status: MaritalStatus = MaritalStatus.SINGLE
    children_count: int = Field(default=0, ge=0)
    father_name: str | None = None
    mother_name: str | None = None
    spouse_name: str | None = None

    # Professional profile
    position_id: str | None = Field(default=None, foreign_key="positions.id")
    specialty_id: str | None = Field(default=None, foreign_key="specialties.id")
    teaching_category_id: str | None = Field(
        default=None, foreign_key="teaching_categories.id"
    )
    years_experience: int = Field(default=0, ge=0)
    english_level: EnglishLevel = EnglishLevel.BASIC
    graduation_year: int | None = None
    graduation_center: str | None = None
    grade_average: float | None = None

    candidate_status: CandidateStatus = CandidateStatus.ACTIVE
    notes: str | None = None
    created_by: str | None = None


class Instructor(InstructorBase, table=True):  # type: ignore[call-arg]
    """A candidate instructor; owns passports and contracts."""

    __tablename__: str = "instructors"  # type: ignore[assignment]

    id: str = Field(default_factory=new_id, primary_key=True)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    province: Province | None = Relationship()
    municipality: Municipality | None = Relationship()
    position: Position | None = Relationship()
    specialty: Specialty | None = Relationship()
    teaching_category: TeachingCategory | None = Relationship()
    birth_country: Country | None = Relationship()

    passports: list["Passport"] = Relationship(
        back_populates="instructor",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )
    contracts: list["Contract"] = Relationship(
        back_populates="instructor",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )


# Travel documents


class PassportBase(SQLModel):
    instructor_id: str = Field(foreign_key="instructors.id", index=True)
    passport_type: PassportType = PassportType.ORDINARY
    number: str = Field(
        index=True, unique=True, min_length=1, max_length=MAX_DOCUMENT_NUMBER_LENGTH
    )
    file_number: str | None = None
    issue_date: date
    expiry_date: date
    issue_place: str | None = None
    notes: str | None = None
    active: bool = True


class Passport(PassportBase, table=True):  # type: ignore[call-arg]
    __tablename__: str = "passports"  # type: ignore[assignment]

    id: str = Field(default_factory=new_id, primary_key=True)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    instructor: Instructor | None = Relationship(back_populates="passports")
    visas: list["Visa"] = Relationship(
        back_populates="passport",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )


class VisaBase(SQLModel):
    passport_id: str = Field(foreign_key="passports.id", index=True)
    visa_type: str = Field(min_length=1, max_length=50)
    number: str | None = Field(default=None, max_length=MAX_DOCUMENT_NUMBER_LENGTH)
    issue_date: date
    expiry_date: date
    issuing_country: str
    entries: int = Field(default=1, ge=0)
    duration_days: int = Field(default=0, ge=0)
    notes: str | None = None
    active: bool = True


class Visa(VisaBase, table=True):  # type: ignore[call-arg]
    __tablename__: str = "visas"  # type: ignore[assignment]

    id: str = Field(default_factory=new_id, primary_key=True)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    passport: Passport | None = Relationship(back_populates="visas")


# Contracts


class ContractBase(SQLModel):
    sequence_number: int = Field(ge=1)
    year: int
    instructor_id: str = Field(foreign_key="instructors.id", index=True)
    country_id: str | None = Field(default=None, foreign_key="countries.id")
    start_date: date
    end_date: date
    role: str
    workplace: str
    workplace_address: str | None = None
    monthly_salary: float | None = None
    currency: str = "USD"
    status: ContractStatus = ContractStatus.ACTIVE
    signed_on: date | None = None
    received_on: date | None = None
    closed_on: date | None = None
    closing_reason: str | None = None
    document_url: str | None = None
    notes: str | None = None
    created_by: str | None = None


class Contract(ContractBase, table=True):  # type: ignore[call-arg]
    """An employment contract, numbered consecutively within its year."""

    __tablename__: str = "contracts"  # type: ignore[assignment]
    __table_args__ = (
        UniqueConstraint("sequence_number", "year", name="uq_contract_number_year"),
    )

    id: str = Field(default_factory=new_id, primary_key=True)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    instructor: Instructor | None = Relationship(back_populates="contracts")
    country: Country | None = Relationship()
    extensions: list["Extension"] = Relationship(
        back_populates="contract",
        sa_relationship_kwargs={
            "cascade": "all, delete-orphan",
            "order_by": "Extension.extension_number",
        },
    )


class ExtensionBase(SQLModel):
    contract_id: str = Field(foreign_key="contracts.id", index=True)
    extension_number: int = Field(ge=1)
    start_date: date
    end_date: date
    reason: str
    notes: str | None = None
    document_url: str | None = None
    created_by: str | None = None


class Extension(ExtensionBase, table=True):  # type: ignore[call-arg]
    """A contract extension; extensions of one contract are numbered 1, 2, ..."""

    __tablename__: str = "extensions"  # type: ignore[assignment]
    __table_args__ = (
        UniqueConstraint(
            "contract_id", "extension_number", name="uq_extension_contract_number"
        ),
    )

    id: str = Field(default_factory=new_id, primary_key=True)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    contract: Contract | None = Relationship(back_populates="extensions")
