"""Core data models for the job acquisition engine."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class OrgDetails(BaseModel):
    """Company metadata fetched by the enrichment worker, keyed by org_ref."""

    model_config = ConfigDict(frozen=True)

    website: str = ""
    description: str = ""
    address: str = ""
    employee_count: str = ""
    industries: str = ""

    @classmethod
    def empty(cls) -> "OrgDetails":
        """All-empty fallback cached when a fetch fails."""
        return cls()


class JobRecord(BaseModel):
    """A job listing extracted by the paginator.

    Frozen: enrichment is merged in with ``model_copy``, never mutated in place.
    """

    model_config = ConfigDict(frozen=True)

    platform: str = "linkedin"
    job_id: str = ""
    title: str = ""
    link: str = ""
    apply_url: str = ""
    location: str = ""
    posted_at: str = ""
    description: str = ""
    org_name: str = ""
    org_ref: str = ""
    org_website: str = ""
    org_description: str = ""
    org_address: str = ""
    org_employee_count: str = ""
    org_industries: str = ""
    found_at: datetime = Field(default_factory=datetime.now)

    def with_org_details(self, details: OrgDetails) -> "JobRecord":
        """Return a copy carrying the five enrichment fields from ``details``."""
        return self.model_copy(update={
            "org_website": details.website,
            "org_description": details.description,
            "org_address": details.address,
            "org_employee_count": details.employee_count,
            "org_industries": details.industries,
        })
