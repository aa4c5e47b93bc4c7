from datetime import datetime
from typing import Annotated, Literal

from pydantic import EmailStr, Field, HttpUrl, StringConstraints, field_validator, model_validator

from app.schemas.common import CamelModel, Pagination

JobType = Literal["full-time", "part-time", "contract", "internship", "freelance"]
ExperienceLevel = Literal["entry", "junior", "mid", "senior", "lead", "executive"]
RemoteOption = Literal["on-site", "remote", "hybrid"]
JobSource = Literal["linkedin", "indeed", "glassdoor", "manual", "api"]
JobStatus = Literal["active", "expired", "filled", "draft"]
Currency = Literal["USD", "EUR", "GBP", "CAD", "AUD"]
SalaryPeriod = Literal["hourly", "daily", "weekly", "monthly", "yearly"]

Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=200)]
Company = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=100)]
Location = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=100)]
Description = Annotated[str, StringConstraints(strip_whitespace=True, min_length=10, max_length=5000)]
Industry = Annotated[str, StringConstraints(strip_whitespace=True, max_length=100)]
Trimmed = Annotated[str, StringConstraints(strip_whitespace=True)]
ListItem = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
ShortList = Annotated[list[ListItem], Field(max_length=50)]
SkillList = Annotated[list[ListItem], Field(max_length=100)]
TagList = Annotated[list[ListItem], Field(max_length=20)]

# Columns that are NOT NULL in storage; an update may omit them but not null them
_REQUIRED_ON_UPDATE = (
    "title", "company", "location", "description", "job_type", "source", "remote", "status", "posted_date",
)


class Salary(CamelModel):
    min: float | None = Field(default=None, ge=0)
    max: float | None = Field(default=None, ge=0)
    currency: Currency = "USD"
    period: SalaryPeriod = "yearly"

    @model_validator(mode="after")
    def _check_bounds(self):
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError("salary.min must not exceed salary.max")
        return self


class SalaryUpdate(CamelModel):
    min: float | None = Field(default=None, ge=0)
    max: float | None = Field(default=None, ge=0)
    currency: Currency | None = None
    period: SalaryPeriod | None = None


class ContactInfo(CamelModel):
    email: EmailStr | None = None
    phone: Trimmed | None = None
    website: HttpUrl | None = None


class JobCreate(CamelModel):
    title: Title
    company: Company
    location: Location
    description: Description
    requirements: ShortList = []
    responsibilities: ShortList = []
    salary: Salary | None = None
    job_type: JobType
    experience_level: ExperienceLevel | None = None
    remote: RemoteOption = "on-site"
    industry: Industry | None = None
    skills: SkillList = []
    benefits: ShortList = []
    application_url: HttpUrl | None = None
    source: JobSource
    source_id: Trimmed | None = None
    status: JobStatus = "active"
    posted_date: datetime | None = None
    expiry_date: datetime | None = None
    contact_info: ContactInfo | None = None
    tags: TagList = []


class JobUpdate(CamelModel):
    title: Title | None = None
    company: Company | None = None
    location: Location | None = None
    description: Description | None = None
    requirements: ShortList | None = None
    responsibilities: ShortList | None = None
    salary: SalaryUpdate | None = None
    job_type: JobType | None = None
    experience_level: ExperienceLevel | None = None
    remote: RemoteOption | None = None
    industry: Industry | None = None
    skills: SkillList | None = None
    benefits: ShortList | None = None
    application_url: HttpUrl | None = None
    source: JobSource | None = None
    source_id: Trimmed | None = None
    status: JobStatus | None = None
    posted_date: datetime | None = None
    expiry_date: datetime | None = None
    contact_info: ContactInfo | None = None
    tags: TagList | None = None

    @field_validator(*_REQUIRED_ON_UPDATE, mode="before")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError("may not be null")
        return value


class StatusUpdate(CamelModel):
    status: JobStatus


class SalaryResponse(CamelModel):
    min: float | None
    max: float | None
    currency: str | None
    period: str | None


class JobResponse(CamelModel):
    id: str
    title: str
    company: str
    location: str
    description: str
    requirements: list[str] = []
    responsibilities: list[str] = []
    salary: SalaryResponse | None
    job_type: str
    experience_level: str | None
    remote: str
    industry: str | None
    skills: list[str] = []
    benefits: list[str] = []
    application_url: str | None
    source: str
    source_id: str | None
    contact_info: dict | None
    status: str
    posted_date: str
    expiry_date: str | None
    tags: list[str] = []
    views: int
    applications: int
    created_at: str
    updated_at: str
    salary_range: str
    days_since_posted: int
    is_expired: bool


class JobEnvelope(CamelModel):
    success: bool = True
    data: JobResponse


class JobListEnvelope(CamelModel):
    success: bool = True
    data: list[JobResponse]
    pagination: Pagination
