import math

from sqlalchemy import JSON, Column, Float, Integer, Text

from app.database import Base
from app.utils.timestamps import parse_timestamp, utc_now


def _format_amount(amount: float) -> str:
    if float(amount).is_integer():
        return f"{int(amount):,}"
    return f"{amount:,.2f}"


class Job(Base):
    __tablename__ = "jobs"

    id = Column(Text, primary_key=True)
    title = Column(Text, nullable=False)
    company = Column(Text, nullable=False)
    location = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    requirements = Column(JSON, nullable=False, default=list)
    responsibilities = Column(JSON, nullable=False, default=list)
    skills = Column(JSON, nullable=False, default=list)
    benefits = Column(JSON, nullable=False, default=list)
    tags = Column(JSON, nullable=False, default=list)
    salary_min = Column(Float)
    salary_max = Column(Float)
    salary_currency = Column(Text)
    salary_period = Column(Text)
    job_type = Column(Text, nullable=False)
    experience_level = Column(Text)
    remote = Column(Text, nullable=False, default="on-site")
    industry = Column(Text)
    application_url = Column(Text)
    source = Column(Text, nullable=False)
    source_id = Column(Text)
    contact_info = Column(JSON(none_as_null=True))
    status = Column(Text, nullable=False, default="active")
    posted_date = Column(Text, nullable=False)
    expiry_date = Column(Text)
    views = Column(Integer, nullable=False, default=0)
    applications = Column(Integer, nullable=False, default=0)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    @property
    def salary(self) -> dict | None:
        if self.salary_min is None and self.salary_max is None and self.salary_currency is None:
            return None
        return {
            "min": self.salary_min,
            "max": self.salary_max,
            "currency": self.salary_currency,
            "period": self.salary_period,
        }

    @property
    def salary_range(self) -> str:
        if self.salary_min is None and self.salary_max is None:
            return "Not specified"
        currency = self.salary_currency or "USD"
        period = self.salary_period or "yearly"
        if self.salary_min is not None and self.salary_max is not None:
            return f"{currency} {_format_amount(self.salary_min)} - {_format_amount(self.salary_max)} {period}"
        if self.salary_min is not None:
            return f"{currency} {_format_amount(self.salary_min)}+ {period}"
        return f"{currency} Up to {_format_amount(self.salary_max)} {period}"

    @property
    def days_since_posted(self) -> int:
        posted = parse_timestamp(self.posted_date)
        if posted is None:
            return 0
        elapsed = abs((utc_now() - posted).total_seconds())
        return math.ceil(elapsed / 86400)

    @property
    def is_expired(self) -> bool:
        expiry = parse_timestamp(self.expiry_date)
        if expiry is None:
            return False
        return utc_now() > expiry
