"""
Data model shared by the adapters, the scraping pipeline and the
application orchestrator.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class JobStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    APPLIED = "applied"
    FAILED = "failed"


class FormStep(str, Enum):
    CONTINUE = "continue"
    REVIEW = "review"
    SUBMIT = "submit"
    UNRECOGNIZED = "unrecognized"


def normalize_keywords(value: Union[str, List[str], None]) -> str:
    """Join a keyword list into one search string."""
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return " ".join(str(v).strip() for v in value if str(v).strip())
    return str(value).strip()


@dataclass
class SearchCriteria:
    """What to search for on a job platform."""
    keywords: str
    country: Optional[str] = None
    job_type: Optional[str] = "Remote"
    seniority: Optional[str] = None
    quantity: int = 20


@dataclass
class JobPosting:
    """A scraped job posting."""
    platform: str
    url: str
    title: str
    company: str = ""
    location: str = ""
    description: str = ""
    salary: Optional[str] = None
    external_id: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)
    id: Optional[str] = None  # store id, set once persisted
    application_status: str = JobStatus.PENDING.value
    created_at: Optional[str] = None

    @property
    def sample_title(self) -> str:
        return f"{self.title} at {self.company}" if self.company else self.title

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ApplicantProfile:
    """Applicant details used to fill application forms."""
    full_name: str = ""
    email: str = ""
    phone: str = ""
    cover_letter: str = ""
    resume_path: Optional[str] = None

    @property
    def first_name(self) -> str:
        return self.full_name.split(" ")[0] if self.full_name else ""

    @property
    def last_name(self) -> str:
        parts = self.full_name.split(" ", 1)
        return parts[1] if len(parts) > 1 else ""

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ApplicantProfile":
        data = data or {}
        name = data.get("full_name") or " ".join(
            p for p in (data.get("first_name"), data.get("last_name")) if p
        )
        return cls(
            full_name=name or "",
            email=data.get("email", "") or "",
            phone=data.get("phone", "") or "",
            cover_letter=data.get("cover_letter", "") or "",
            resume_path=data.get("resume_path"),
        )


@dataclass
class ApplicationPayload:
    """Everything an adapter needs to submit one application."""
    job: JobPosting
    profile: ApplicantProfile = field(default_factory=ApplicantProfile)


@dataclass
class ApplicationAttempt:
    """One application attempt, persisted once it is finished."""
    job_id: Optional[str]
    platform: str
    status: str = JobStatus.PENDING.value
    started_at: datetime = field(default_factory=datetime.utcnow)
    finished_at: Optional[datetime] = None
    screenshot_path: Optional[str] = None
    error_message: Optional[str] = None
    resume_used: Optional[str] = None


@dataclass
class ScrapeResult:
    platform: str
    keywords: str
    total_jobs: int = 0
    new_jobs: int = 0
    duplicates: int = 0
    failed_writes: int = 0
    sample_titles: List[str] = field(default_factory=list)
    execution_time: float = 0.0
    attempts: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "platform": self.platform,
            "keywords": self.keywords,
            "totalJobs": self.total_jobs,
            "newJobs": self.new_jobs,
            "duplicates": self.duplicates,
            "failedWrites": self.failed_writes,
            "sampleTitles": list(self.sample_titles),
            "executionTime": round(self.execution_time, 2),
            "attempts": self.attempts,
        }


@dataclass
class ApplicationResult:
    job_id: Optional[str]
    platform: Optional[str]
    status: str
    url: Optional[str] = None
    screenshot_path: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == JobStatus.APPLIED.value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "jobId": self.job_id,
            "platform": self.platform,
            "status": self.status,
            "url": self.url,
            "screenshotPath": self.screenshot_path,
            "errorMessage": self.error_message,
        }


@dataclass
class BatchResult:
    total: int = 0
    success_count: int = 0
    failed_count: int = 0
    jobs: List[ApplicationResult] = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.utcnow)
    finished_at: Optional[datetime] = None
    message: Optional[str] = None

    def add(self, result: ApplicationResult):
        self.jobs.append(result)
        self.total += 1
        if result.succeeded:
            self.success_count += 1
        else:
            self.failed_count += 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "successCount": self.success_count,
            "failedCount": self.failed_count,
            "jobs": [job.to_dict() for job in self.jobs],
            "startTime": self.started_at.isoformat(),
            "endTime": self.finished_at.isoformat() if self.finished_at else None,
            "message": self.message,
        }


@dataclass
class ProbeResult:
    platform: str
    status: str
    is_logged_in: bool = False
    screenshot_path: Optional[str] = None
    message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "platform": self.platform,
            "status": self.status,
            "isLoggedIn": self.is_logged_in,
            "screenshotPath": self.screenshot_path,
            "message": self.message,
        }


@dataclass
class JobFilter:
    platform: Optional[str] = None
    status: Optional[str] = JobStatus.PENDING.value
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    page: int = 1
    limit: int = 50


@dataclass
class JobPage:
    items: List[JobPosting]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.limit else 0
