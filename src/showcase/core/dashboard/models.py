"""
Pydantic models for the statistics dashboard.

A DashboardSnapshot bundles four independently computed slices (projects,
board, users, tech stack) plus the time it was assembled. Every categorical
distribution in a slice sums to the size of its source collection.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class CountBucket(BaseModel):
    """One bucket of a categorical distribution."""

    name: str
    count: int = Field(ge=0)


class TimelinePoint(BaseModel):
    """Record count for one calendar month (``YYYY-MM``)."""

    date: str
    count: int = Field(default=0, ge=0)


class RecentProject(BaseModel):
    id: str
    title: str
    created_at: datetime | None = None
    category: str | None = None


class PopularPost(BaseModel):
    id: str
    title: str
    author_name: str
    view_count: int = 0
    like_count: int = 0


class Contributor(BaseModel):
    user_id: str
    user_name: str
    post_count: int


class RankedCount(BaseModel):
    """Top-N entry annotated with its share of all projects."""

    name: str
    count: int
    percentage: int = Field(description="Rounded share of projects using it (0-100+)")


class ProjectTechCount(BaseModel):
    project_id: str
    project_title: str
    tech_count: int


class HourlyVisits(BaseModel):
    hour: int = Field(ge=0, le=23)
    count: int = 0


class DailyActivity(BaseModel):
    date: str
    visitors: int = 0
    posts: int = 0
    comments: int = 0


class EstimatedSeries(BaseModel):
    """
    A series with no real telemetry behind it.

    No visit log exists, so these series are always reported as unavailable
    with zero counts. Consumers must label them as estimates.
    """

    available: bool = False
    note: str = "Estimated: no visit log is recorded, counts are placeholders"


class EstimatedHourlySeries(EstimatedSeries):
    points: list[HourlyVisits] = Field(default_factory=list)


class EstimatedDailySeries(EstimatedSeries):
    points: list[DailyActivity] = Field(default_factory=list)


class ProjectStatistics(BaseModel):
    total_projects: int = 0
    category_distribution: list[CountBucket] = Field(default_factory=list)
    integration_distribution: list[CountBucket] = Field(
        default_factory=list,
        description="API key requirement buckets: required, optional, none",
    )
    recent_projects: list[RecentProject] = Field(default_factory=list)
    projects_over_time: list[TimelinePoint] = Field(default_factory=list)


class BoardStatistics(BaseModel):
    total_posts: int = 0
    total_comments: int = 0
    category_distribution: list[CountBucket] = Field(
        default_factory=list,
        description="Per-category counts followed by an 'all' bucket equal to total_posts",
    )
    popular_posts: list[PopularPost] = Field(default_factory=list)
    posts_over_time: list[TimelinePoint] = Field(default_factory=list)


class UserStatistics(BaseModel):
    total_users: int = 0
    total_visitors: int = 0
    top_contributors: list[Contributor] = Field(default_factory=list)
    visits_by_hour: EstimatedHourlySeries = Field(default_factory=EstimatedHourlySeries)
    activity_by_day: EstimatedDailySeries = Field(default_factory=EstimatedDailySeries)


class TechStackStatistics(BaseModel):
    total_technologies: int = 0
    total_development_tools: int = 0
    technology_distribution: list[CountBucket] = Field(default_factory=list)
    development_tool_distribution: list[CountBucket] = Field(default_factory=list)
    top_technologies: list[RankedCount] = Field(default_factory=list)
    top_development_tools: list[RankedCount] = Field(default_factory=list)
    technologies_per_project: list[ProjectTechCount] = Field(default_factory=list)


class DashboardSnapshot(BaseModel):
    """
    Aggregated statistics at one point in time.

    ``degraded_slices`` names the slices (board, user, tech) whose collection
    could not be read and were replaced by their zero value.
    """

    project: ProjectStatistics
    board: BoardStatistics
    user: UserStatistics
    tech: TechStackStatistics
    last_updated: datetime
    degraded_slices: list[str] = Field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return bool(self.degraded_slices)
