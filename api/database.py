"""
Database module for Job Automation.
Implements SQLite persistence with async support for scraped jobs,
application attempts and daily per-platform statistics.
"""

import json
import uuid
from contextlib import asynccontextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import aiosqlite

from api.stats import analyze_trend, success_rate
from core.errors import StoreError
from core.models import ApplicationAttempt, JobFilter, JobPage, JobPosting, JobStatus

STATUS_OUTCOMES = (JobStatus.APPLIED.value, JobStatus.FAILED.value)


def _now() -> str:
    return datetime.utcnow().isoformat()


def _row_to_job(row: aiosqlite.Row) -> JobPosting:
    return JobPosting(
        id=row["id"],
        platform=row["platform"],
        url=row["url"],
        title=row["title"],
        company=row["company"] or "",
        location=row["location"] or "",
        description=row["description"] or "",
        salary=row["salary"],
        external_id=row["external_id"],
        raw=json.loads(row["raw_data"]) if row["raw_data"] else {},
        application_status=row["application_status"],
        created_at=row["created_at"],
    )


class JobStore:
    """Async SQLite store for jobs, applications and stats."""

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = Path(db_path)

    @asynccontextmanager
    async def get_db(self):
        """Get database connection; aiosqlite errors surface as StoreError."""
        try:
            async with aiosqlite.connect(self.db_path) as db:
                db.row_factory = aiosqlite.Row
                yield db
        except aiosqlite.Error as e:
            raise StoreError(f"Database error: {e}") from e

    async def init(self):
        """Initialize the database schema."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        async with self.get_db() as db:
            await db.execute("""
                CREATE TABLE IF NOT EXISTS jobs (
                    id TEXT PRIMARY KEY,
                    platform TEXT NOT NULL,
                    external_id TEXT,
                    url TEXT NOT NULL,
                    title TEXT NOT NULL,
                    company TEXT,
                    location TEXT,
                    description TEXT,
                    salary TEXT,
                    raw_data TEXT,
                    application_status TEXT NOT NULL DEFAULT 'pending',
                    application_details TEXT,
                    last_application_attempt TIMESTAMP,
                    created_at TIMESTAMP NOT NULL,
                    updated_at TIMESTAMP NOT NULL,
                    UNIQUE (platform, url)
                )
            """)

            await db.execute("""
                CREATE TABLE IF NOT EXISTS applications (
                    id TEXT PRIMARY KEY,
                    job_id TEXT,
                    platform TEXT NOT NULL,
                    status TEXT NOT NULL,
                    screenshot_path TEXT,
                    resume_used TEXT,
                    error_message TEXT,
                    started_at TIMESTAMP,
                    finished_at TIMESTAMP,
                    created_at TIMESTAMP NOT NULL,
                    FOREIGN KEY (job_id) REFERENCES jobs(id)
                )
            """)

            await db.execute("""
                CREATE TABLE IF NOT EXISTS application_stats (
                    date TEXT NOT NULL,
                    platform TEXT NOT NULL,
                    successful_count INTEGER NOT NULL DEFAULT 0,
                    failed_count INTEGER NOT NULL DEFAULT 0,
                    total_count INTEGER NOT NULL DEFAULT 0,
                    PRIMARY KEY (date, platform)
                )
            """)

            await db.execute("CREATE INDEX IF NOT EXISTS idx_jobs_platform_external ON jobs(platform, external_id)")
            await db.execute("CREATE INDEX IF NOT EXISTS idx_jobs_status ON jobs(application_status)")
            await db.execute("CREATE INDEX IF NOT EXISTS idx_applications_job ON applications(job_id)")
            await db.commit()

    async def check_connection(self) -> bool:
        try:
            async with self.get_db() as db:
                await db.execute("SELECT 1")
            return True
        except StoreError:
            return False

    # === Jobs ===

    async def find_job_by_platform_and_url(self, platform: str, url: str) -> Optional[JobPosting]:
        async with self.get_db() as db:
            async with db.execute(
                "SELECT * FROM jobs WHERE platform = ? AND url = ?", (platform, url)
            ) as cursor:
                row = await cursor.fetchone()
        return _row_to_job(row) if row else None

    async def find_job_by_platform_and_external_id(self, platform: str, external_id: str) -> Optional[JobPosting]:
        async with self.get_db() as db:
            async with db.execute(
                "SELECT * FROM jobs WHERE platform = ? AND external_id = ?", (platform, external_id)
            ) as cursor:
                row = await cursor.fetchone()
        return _row_to_job(row) if row else None

    async def get_job(self, job_id: str) -> Optional[JobPosting]:
        async with self.get_db() as db:
            async with db.execute("SELECT * FROM jobs WHERE id = ?", (job_id,)) as cursor:
                row = await cursor.fetchone()
        return _row_to_job(row) if row else None

    async def insert_job(self, job: JobPosting) -> str:
        """Insert a scraped job and return its id."""
        job_id = job.id or str(uuid.uuid4())
        now = _now()
        async with self.get_db() as db:
            await db.execute(
                """INSERT INTO jobs
                   (id, platform, external_id, url, title, company, location, description,
                    salary, raw_data, application_status, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    job_id, job.platform, job.external_id, job.url, job.title, job.company,
                    job.location, job.description, job.salary, json.dumps(job.raw, default=str),
                    job.application_status or JobStatus.PENDING.value, now, now,
                ),
            )
            await db.commit()
        job.id = job_id
        job.created_at = now
        return job_id

    async def update_job_status(self, job_id: str, status: str, details: Optional[Dict[str, Any]] = None) -> bool:
        now = _now()
        async with self.get_db() as db:
            cursor = await db.execute(
                """UPDATE jobs
                   SET application_status = ?, application_details = ?,
                       last_application_attempt = ?, updated_at = ?
                   WHERE id = ?""",
                (status, json.dumps(details or {}, default=str), now, now, job_id),
            )
            await db.commit()
            return cursor.rowcount > 0

    async def query_jobs_by_filter(self, job_filter: JobFilter) -> JobPage:
        clauses = []
        params: List[Any] = []
        if job_filter.platform:
            clauses.append("platform = ?")
            params.append(job_filter.platform)
        if job_filter.status:
            clauses.append("application_status = ?")
            params.append(job_filter.status)
        if job_filter.date_from:
            clauses.append("created_at >= ?")
            params.append(job_filter.date_from)
        if job_filter.date_to:
            clauses.append("created_at <= ?")
            params.append(f"{job_filter.date_to}T23:59:59" if len(job_filter.date_to) == 10 else job_filter.date_to)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        page = max(1, job_filter.page)
        limit = max(1, job_filter.limit)

        async with self.get_db() as db:
            async with db.execute(f"SELECT COUNT(*) FROM jobs {where}", params) as cursor:
                total = (await cursor.fetchone())[0]
            async with db.execute(
                f"SELECT * FROM jobs {where} ORDER BY created_at DESC LIMIT ? OFFSET ?",
                params + [limit, (page - 1) * limit],
            ) as cursor:
                rows = await cursor.fetchall()

        return JobPage(items=[_row_to_job(row) for row in rows], total=total, page=page, limit=limit)

    # === Applications ===

    async def insert_application_record(self, attempt: ApplicationAttempt) -> str:
        application_id = str(uuid.uuid4())
        async with self.get_db() as db:
            await db.execute(
                """INSERT INTO applications
                   (id, job_id, platform, status, screenshot_path, resume_used, error_message,
                    started_at, finished_at, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    application_id, attempt.job_id, attempt.platform, attempt.status,
                    attempt.screenshot_path, attempt.resume_used, attempt.error_message,
                    attempt.started_at.isoformat() if attempt.started_at else None,
                    attempt.finished_at.isoformat() if attempt.finished_at else None,
                    _now(),
                ),
            )
            await db.commit()
        return application_id

    async def get_applications_for_job(self, job_id: str) -> List[Dict[str, Any]]:
        async with self.get_db() as db:
            async with db.execute(
                "SELECT * FROM applications WHERE job_id = ? ORDER BY created_at", (job_id,)
            ) as cursor:
                rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    # === Stats ===

    async def increment_stats(self, platform: str, outcome: str, day: Optional[date] = None):
        """Count one finished application for today's (or day's) platform row."""
        if outcome not in STATUS_OUTCOMES:
            raise StoreError(f"Unknown application outcome: {outcome}")
        successful = 1 if outcome == JobStatus.APPLIED.value else 0
        failed = 1 - successful
        async with self.get_db() as db:
            await db.execute(
                """INSERT INTO application_stats (date, platform, successful_count, failed_count, total_count)
                   VALUES (?, ?, ?, ?, 1)
                   ON CONFLICT(date, platform) DO UPDATE SET
                       successful_count = successful_count + excluded.successful_count,
                       failed_count = failed_count + excluded.failed_count,
                       total_count = total_count + 1""",
                ((day or date.today()).isoformat(), platform, successful, failed),
            )
            await db.commit()

    async def get_application_stats(
        self,
        platform: Optional[str] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        page: int = 1,
        limit: int = 30,
    ) -> Dict[str, Any]:
        clauses = []
        params: List[Any] = []
        if platform:
            clauses.append("platform = ?")
            params.append(platform)
        if date_from:
            clauses.append("date >= ?")
            params.append(date_from)
        if date_to:
            clauses.append("date <= ?")
            params.append(date_to)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        page = max(1, page)
        limit = max(1, limit)

        async with self.get_db() as db:
            async with db.execute(
                f"""SELECT COUNT(*), COALESCE(SUM(successful_count), 0),
                           COALESCE(SUM(failed_count), 0), COALESCE(SUM(total_count), 0)
                    FROM application_stats {where}""",
                params,
            ) as cursor:
                count, successful, failed, total = await cursor.fetchone()
            async with db.execute(
                f"SELECT * FROM application_stats {where} ORDER BY date DESC, platform LIMIT ? OFFSET ?",
                params + [limit, (page - 1) * limit],
            ) as cursor:
                rows = await cursor.fetchall()
            async with db.execute(
                f"""SELECT platform, SUM(successful_count), SUM(failed_count), SUM(total_count)
                    FROM application_stats {where} GROUP BY platform ORDER BY platform""",
                params,
            ) as cursor:
                platform_rows = await cursor.fetchall()
            async with db.execute(
                f"""SELECT date, SUM(successful_count), SUM(failed_count), SUM(total_count)
                    FROM application_stats {where} GROUP BY date ORDER BY date""",
                params,
            ) as cursor:
                day_rows = await cursor.fetchall()

        # Aggregates cover every matching row, not just the current page
        platforms = {
            name: {"successful": ok, "failed": bad, "total": n, "successRate": success_rate(ok, n)}
            for name, ok, bad, n in platform_rows
        }
        daily = [
            {"date": day, "successful": ok, "failed": bad, "total": n, "successRate": success_rate(ok, n)}
            for day, ok, bad, n in day_rows
        ]

        return {
            "stats": [dict(row) for row in rows],
            "totals": {
                "successful": successful,
                "failed": failed,
                "total": total,
                "successRate": success_rate(successful, total),
            },
            "platforms": platforms,
            "daily": daily,
            "trends": analyze_trend(daily),
            "pagination": {
                "page": page,
                "limit": limit,
                "total": count,
                "pages": (count + limit - 1) // limit,
            },
        }
