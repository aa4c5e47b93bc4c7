from app.schemas.common import CamelModel


class CountBucket(CamelModel):
    value: str
    count: int


class StatsOverview(CamelModel):
    total_jobs: int
    active_jobs: int
    total_views: int
    total_applications: int


class JobStats(CamelModel):
    overview: StatsOverview
    job_types: list[CountBucket]
    remote_options: list[CountBucket]
    top_industries: list[CountBucket]


class JobStatsEnvelope(CamelModel):
    success: bool = True
    data: JobStats


class SalaryRangeFacet(CamelModel):
    min_salary: float = 0
    max_salary: float = 0
    avg_salary: float = 0


class FilterFacets(CamelModel):
    job_types: list[str]
    remote_options: list[str]
    experience_levels: list[str]
    industries: list[str]
    locations: list[str]
    salary_range: SalaryRangeFacet
    top_skills: list[str]


class FilterFacetsEnvelope(CamelModel):
    success: bool = True
    data: FilterFacets
