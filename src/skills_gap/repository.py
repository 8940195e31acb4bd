"""SQLite-backed read side of the skills gap engine."""

import sqlite3
from contextlib import contextmanager
from datetime import date, timedelta
from functools import wraps
from pathlib import Path
from typing import Optional

import structlog

from cli.retry import storage_retry
from db import table_columns, wal_connect
from observability import metrics

from .errors import DataUnavailable, StorageError, StorageUnreachable
from .models import (
    DEFAULT_CATEGORY,
    CoverageDataset,
    DemandDataset,
    MarketTrend,
    SkillCoverage,
    SkillDemand,
    TimeWindow,
    TrendDataset,
)

logger = structlog.get_logger()

REQUIRED_COLUMNS = {
    "skills": {"id", "name", "category"},
    "resources": {"id", "name", "department_id", "role_id"},
    "resource_skills": {"resource_id", "skill_id", "proficiency_level", "is_certified"},
    "projects": {"id", "name", "department_id", "start_date", "end_date"},
    "project_skills": {"project_id", "skill_id", "importance_level"},
}

# (skill_name, category, demand_score, growth_rate)
BASELINE_TRENDS = [
    ("Cloud Computing", "Technical", 9.2, 27),
    ("Data Science", "Technical", 9.0, 35),
    ("Machine Learning", "Technical", 8.9, 32),
    ("DevOps", "Technical", 8.7, 24),
    ("Cybersecurity", "Technical", 8.6, 28),
    ("Agile Methodology", "Process", 8.5, 18),
    ("Big Data", "Technical", 8.4, 21),
    ("Artificial Intelligence", "Technical", 8.3, 30),
    ("React", "Technical", 8.2, 20),
    ("Node.js", "Technical", 8.1, 17),
]

SCHEMA = """
CREATE TABLE IF NOT EXISTS departments (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS roles (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS resources (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    department_id INTEGER REFERENCES departments(id),
    role_id INTEGER REFERENCES roles(id)
);
CREATE TABLE IF NOT EXISTS skills (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL UNIQUE,
    category TEXT
);
CREATE TABLE IF NOT EXISTS resource_skills (
    resource_id INTEGER NOT NULL REFERENCES resources(id),
    skill_id INTEGER NOT NULL REFERENCES skills(id),
    proficiency_level INTEGER NOT NULL DEFAULT 1,
    experience_years REAL,
    last_used_date TEXT,
    is_certified INTEGER NOT NULL DEFAULT 0,
    PRIMARY KEY (resource_id, skill_id)
);
CREATE TABLE IF NOT EXISTS role_skills (
    role_id INTEGER NOT NULL REFERENCES roles(id),
    skill_id INTEGER NOT NULL REFERENCES skills(id),
    importance_level INTEGER NOT NULL DEFAULT 3,
    PRIMARY KEY (role_id, skill_id)
);
CREATE TABLE IF NOT EXISTS projects (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    department_id INTEGER REFERENCES departments(id),
    start_date TEXT,
    end_date TEXT
);
CREATE TABLE IF NOT EXISTS project_skills (
    project_id INTEGER NOT NULL REFERENCES projects(id),
    skill_id INTEGER NOT NULL REFERENCES skills(id),
    importance_level INTEGER NOT NULL DEFAULT 3,
    PRIMARY KEY (project_id, skill_id)
);
CREATE TABLE IF NOT EXISTS allocations (
    resource_id INTEGER NOT NULL REFERENCES resources(id),
    project_id INTEGER NOT NULL REFERENCES projects(id),
    PRIMARY KEY (resource_id, project_id)
);
CREATE TABLE IF NOT EXISTS market_skill_trends (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    skill_name TEXT NOT NULL,
    category TEXT,
    demand_score REAL NOT NULL,
    growth_rate INTEGER NOT NULL DEFAULT 0,
    trend_date TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_trends_date ON market_skill_trends(trend_date);
CREATE INDEX IF NOT EXISTS idx_projects_window ON projects(start_date, end_date);
"""


def _translate_errors(fn):
    """Map sqlite3 failures onto the engine's error kinds."""

    @wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except sqlite3.Error as e:
            message = str(e).lower()
            if "no such table" in message or "no such column" in message:
                raise DataUnavailable(str(e)) from e
            raise StorageError(str(e)) from e

    return wrapper


def _placeholders(values) -> str:
    return ", ".join("?" for _ in values)


def _pct(part: float, whole: float) -> float:
    return part / whole * 100 if whole else 0.0


class SkillsRepository:
    """Reads skills, projects and market trends from a SQLite database."""

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path).expanduser()

    @contextmanager
    def _connect(self):
        if not self.db_path.exists():
            raise StorageUnreachable(f"Database not found: {self.db_path}")
        try:
            conn = wal_connect(self.db_path, row_factory=True)
        except sqlite3.Error as e:
            raise StorageUnreachable(f"Cannot open {self.db_path}: {e}") from e
        try:
            yield conn
        finally:
            conn.close()

    def init_schema(self):
        """Create all tables if missing."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = wal_connect(self.db_path)
        try:
            conn.executescript(SCHEMA)
            conn.commit()
        finally:
            conn.close()
        logger.info("repository.schema_ready", db_path=str(self.db_path))

    @_translate_errors
    @storage_retry()
    def check_available(self):
        """Probe the core schema; raise DataUnavailable if unusable."""
        with self._connect() as conn:
            missing = []
            for table, columns in REQUIRED_COLUMNS.items():
                absent = columns - table_columns(conn, table)
                if absent:
                    missing.append(f"{table}({', '.join(sorted(absent))})")
            if missing:
                raise DataUnavailable("Missing schema: " + "; ".join(missing))

            skills = conn.execute("SELECT COUNT(*) FROM skills").fetchone()[0]
            resources = conn.execute("SELECT COUNT(*) FROM resources").fetchone()[0]
            if not skills or not resources:
                raise DataUnavailable(
                    f"No skills data recorded (skills={skills}, resources={resources})"
                )

    @_translate_errors
    @storage_retry()
    def fetch_coverage(
        self,
        department_id: Optional[int | str] = None,
        categories: Optional[list[str]] = None,
    ) -> CoverageDataset:
        """Per-skill holder counts, optionally scoped to one department.

        Organization scope lists every catalog skill. Department scope lists
        only skills someone in the department holds, so the rest surface as
        missing.
        """
        holder_filter = ""
        holders_only = ""
        filter_params: list = []
        if department_id is not None:
            holder_filter = "AND rs.resource_id IN (SELECT id FROM resources WHERE department_id = ?)"
            holders_only = "HAVING COUNT(DISTINCT rs.resource_id) > 0"
            filter_params.append(department_id)

        category_filter = ""
        if categories:
            category_filter = f"WHERE COALESCE(s.category, ?) IN ({_placeholders(categories)})"
            filter_params.extend([DEFAULT_CATEGORY, *categories])

        with metrics.timer("repository.fetch"), self._connect() as conn:
            if department_id is not None:
                total = conn.execute(
                    "SELECT COUNT(*) FROM resources WHERE department_id = ?", (department_id,)
                ).fetchone()[0]
            else:
                total = conn.execute("SELECT COUNT(*) FROM resources").fetchone()[0]

            rows = conn.execute(
                f"""SELECT s.id, s.name, COALESCE(s.category, ?) AS category,
                       COUNT(DISTINCT rs.resource_id) AS resource_count,
                       AVG(rs.proficiency_level) AS avg_proficiency,
                       COUNT(DISTINCT CASE WHEN rs.is_certified = 1
                             THEN rs.resource_id END) AS certified_count
                FROM skills s
                LEFT JOIN resource_skills rs ON rs.skill_id = s.id {holder_filter}
                {category_filter}
                GROUP BY s.id, s.name, s.category
                {holders_only}
                ORDER BY resource_count DESC, s.name""",
                (DEFAULT_CATEGORY, *filter_params),
            ).fetchall()

        skills = [
            SkillCoverage(
                skill_id=row["id"],
                name=row["name"],
                category=row["category"],
                resource_count=row["resource_count"],
                coverage_percentage=_pct(row["resource_count"], total),
                avg_proficiency=row["avg_proficiency"] or 0.0,
                certified_count=row["certified_count"],
                certification_percentage=_pct(row["certified_count"], row["resource_count"]),
            )
            for row in rows
        ]
        logger.debug(
            "repository.coverage_fetched",
            skills=len(skills),
            total_resources=total,
            department_id=department_id,
        )
        return CoverageDataset(skills=skills, total_resources=total)

    @_translate_errors
    @storage_retry()
    def fetch_demand(
        self,
        window: TimeWindow,
        department_id: Optional[int | str] = None,
        categories: Optional[list[str]] = None,
    ) -> DemandDataset:
        """Skill demand across projects overlapping the window."""
        project_filter = "p.start_date <= ? AND (p.end_date IS NULL OR p.end_date >= ?)"
        project_params: list = [window.end_date, window.start_date]
        if department_id is not None:
            project_filter += " AND p.department_id = ?"
            project_params.append(department_id)

        category_filter = ""
        category_params: list = []
        if categories:
            category_filter = f"AND COALESCE(s.category, ?) IN ({_placeholders(categories)})"
            category_params = [DEFAULT_CATEGORY, *categories]

        with metrics.timer("repository.fetch"), self._connect() as conn:
            total = conn.execute(
                f"SELECT COUNT(*) FROM projects p WHERE {project_filter}", project_params
            ).fetchone()[0]

            rows = conn.execute(
                f"""SELECT s.id, s.name, COALESCE(s.category, ?) AS category,
                       COUNT(DISTINCT ps.project_id) AS project_count,
                       AVG(ps.importance_level) AS avg_importance
                FROM project_skills ps
                JOIN skills s ON s.id = ps.skill_id
                JOIN projects p ON p.id = ps.project_id
                WHERE {project_filter} {category_filter}
                GROUP BY s.id, s.name, s.category
                ORDER BY project_count DESC, s.name""",
                (DEFAULT_CATEGORY, *project_params, *category_params),
            ).fetchall()

        requirements = [
            SkillDemand(
                skill_id=row["id"],
                skill_name=row["name"],
                category=row["category"],
                project_count=row["project_count"],
                demand_percentage=_pct(row["project_count"], total),
                avg_importance=row["avg_importance"] or 0.0,
            )
            for row in rows
        ]
        logger.debug(
            "repository.demand_fetched",
            requirements=len(requirements),
            total_projects=total,
            start_date=window.start_date,
            end_date=window.end_date,
        )
        return DemandDataset(requirements=requirements, total_projects=total, window=window)

    @_translate_errors
    @storage_retry()
    def fetch_market_trends(self, limit: int = 50, today: Optional[date] = None) -> TrendDataset:
        """Most recent market trends; the baseline list when the table is absent."""
        today = today or date.today()
        with metrics.timer("repository.fetch"), self._connect() as conn:
            if not table_columns(conn, "market_skill_trends"):
                logger.info("repository.trends_baseline", reason="market_skill_trends missing")
                return baseline_trends(today)

            rows = conn.execute(
                """SELECT skill_name, category, demand_score, growth_rate, trend_date
                FROM market_skill_trends
                WHERE trend_date <= ?
                ORDER BY trend_date DESC, demand_score DESC
                LIMIT ?""",
                (today.isoformat(), limit),
            ).fetchall()

        return TrendDataset(
            trends=[
                MarketTrend(
                    skill_name=row["skill_name"],
                    category=row["category"] or DEFAULT_CATEGORY,
                    demand_score=row["demand_score"],
                    growth_rate=row["growth_rate"],
                    trend_date=row["trend_date"],
                )
                for row in rows
            ]
        )

    @_translate_errors
    @storage_retry()
    def get_resource(self, resource_id: int | str) -> Optional[dict]:
        with self._connect() as conn:
            row = conn.execute(
                """SELECT r.id, r.name, r.role_id, r.department_id,
                       ro.name AS role, d.name AS department
                FROM resources r
                LEFT JOIN roles ro ON ro.id = r.role_id
                LEFT JOIN departments d ON d.id = r.department_id
                WHERE r.id = ?""",
                (resource_id,),
            ).fetchone()
        return dict(row) if row else None

    @_translate_errors
    @storage_retry()
    def fetch_resource_skills(self, resource_id: int | str) -> list[dict]:
        with self._connect() as conn:
            rows = conn.execute(
                """SELECT s.id AS skill_id, s.name AS skill_name,
                       COALESCE(s.category, ?) AS category,
                       rs.proficiency_level, rs.experience_years,
                       rs.last_used_date, rs.is_certified
                FROM resource_skills rs
                JOIN skills s ON s.id = rs.skill_id
                WHERE rs.resource_id = ?
                ORDER BY rs.proficiency_level DESC, s.name""",
                (DEFAULT_CATEGORY, resource_id),
            ).fetchall()
        return [dict(row) for row in rows]

    @_translate_errors
    @storage_retry()
    def fetch_role_skills(self, role_id: Optional[int]) -> list[dict]:
        if role_id is None:
            return []
        with self._connect() as conn:
            rows = conn.execute(
                """SELECT s.id AS skill_id, s.name AS skill_name,
                       COALESCE(s.category, ?) AS category, rk.importance_level
                FROM role_skills rk
                JOIN skills s ON s.id = rk.skill_id
                WHERE rk.role_id = ?
                ORDER BY rk.importance_level DESC, s.name""",
                (DEFAULT_CATEGORY, role_id),
            ).fetchall()
        return [dict(row) for row in rows]

    @_translate_errors
    @storage_retry()
    def fetch_allocated_project_skills(
        self, resource_id: int | str, today: Optional[date] = None
    ) -> list[dict]:
        """Skills required by the resource's current and upcoming projects."""
        today = today or date.today()
        with self._connect() as conn:
            rows = conn.execute(
                """SELECT p.id AS project_id, p.name AS project_name,
                       s.id AS skill_id, s.name AS skill_name,
                       COALESCE(s.category, ?) AS category, ps.importance_level
                FROM allocations a
                JOIN projects p ON p.id = a.project_id
                JOIN project_skills ps ON ps.project_id = p.id
                JOIN skills s ON s.id = ps.skill_id
                WHERE a.resource_id = ? AND (p.end_date IS NULL OR p.end_date >= ?)
                ORDER BY p.name, ps.importance_level DESC, s.name""",
                (DEFAULT_CATEGORY, resource_id, today.isoformat()),
            ).fetchall()
        return [dict(row) for row in rows]

    @_translate_errors
    @storage_retry()
    def list_departments(self) -> list[dict]:
        with self._connect() as conn:
            rows = conn.execute("SELECT id, name FROM departments ORDER BY name").fetchall()
        return [dict(row) for row in rows]

    def seed_sample_data(self, today: Optional[date] = None) -> dict[str, int]:
        """Insert a small demo organization. Safe to run repeatedly."""
        today = today or date.today()

        def day(offset: int) -> str:
            return (today + timedelta(days=offset)).isoformat()

        projects = [
            (1, "Platform Migration", 1, day(-30), day(120)),
            (2, "Customer Portal", 1, day(10), day(90)),
            (3, "Analytics Pipeline", 3, day(-60), day(60)),
            (4, "Legacy Archive", 1, day(-400), day(-200)),
        ]
        trends = [
            (name, category, score, growth, day(-7))
            for name, category, score, growth in BASELINE_TRENDS
        ]

        self.init_schema()
        conn = wal_connect(self.db_path)
        try:
            conn.executemany(
                "INSERT OR IGNORE INTO departments (id, name) VALUES (?, ?)", _SEED_DEPARTMENTS
            )
            conn.executemany("INSERT OR IGNORE INTO roles (id, name) VALUES (?, ?)", _SEED_ROLES)
            conn.executemany(
                "INSERT OR IGNORE INTO skills (id, name, category) VALUES (?, ?, ?)", _SEED_SKILLS
            )
            conn.executemany(
                "INSERT OR IGNORE INTO resources (id, name, department_id, role_id) "
                "VALUES (?, ?, ?, ?)",
                _SEED_RESOURCES,
            )
            conn.executemany(
                "INSERT OR IGNORE INTO resource_skills "
                "(resource_id, skill_id, proficiency_level, experience_years, is_certified) "
                "VALUES (?, ?, ?, ?, ?)",
                _SEED_RESOURCE_SKILLS,
            )
            conn.executemany(
                "INSERT OR IGNORE INTO role_skills (role_id, skill_id, importance_level) "
                "VALUES (?, ?, ?)",
                _SEED_ROLE_SKILLS,
            )
            conn.executemany(
                "INSERT OR IGNORE INTO projects (id, name, department_id, start_date, end_date) "
                "VALUES (?, ?, ?, ?, ?)",
                projects,
            )
            conn.executemany(
                "INSERT OR IGNORE INTO project_skills (project_id, skill_id, importance_level) "
                "VALUES (?, ?, ?)",
                _SEED_PROJECT_SKILLS,
            )
            conn.executemany(
                "INSERT OR IGNORE INTO allocations (resource_id, project_id) VALUES (?, ?)",
                _SEED_ALLOCATIONS,
            )
            has_trends = conn.execute("SELECT COUNT(*) FROM market_skill_trends").fetchone()[0]
            if not has_trends:
                conn.executemany(
                    "INSERT INTO market_skill_trends "
                    "(skill_name, category, demand_score, growth_rate, trend_date) "
                    "VALUES (?, ?, ?, ?, ?)",
                    trends,
                )
            conn.commit()
        finally:
            conn.close()

        counts = {
            "departments": len(_SEED_DEPARTMENTS),
            "resources": len(_SEED_RESOURCES),
            "skills": len(_SEED_SKILLS),
            "projects": len(projects),
            "market_trends": len(trends),
        }
        logger.info("repository.seeded", db_path=str(self.db_path), **counts)
        return counts


def baseline_trends(today: Optional[date] = None) -> TrendDataset:
    """Built-in market trend list used when no trend table exists."""
    trend_date = (today or date.today()).isoformat()
    return TrendDataset(
        trends=[
            MarketTrend(
                skill_name=name,
                category=category,
                demand_score=score,
                growth_rate=growth,
                trend_date=trend_date,
            )
            for name, category, score, growth in BASELINE_TRENDS
        ],
        baseline=True,
    )


_SEED_DEPARTMENTS = [(1, "Engineering"), (2, "Design"), (3, "Data")]

_SEED_ROLES = [
    (1, "Backend Engineer"),
    (2, "Frontend Engineer"),
    (3, "UX Designer"),
    (4, "Data Engineer"),
]

_SEED_SKILLS = [
    (1, "Python", "Technical"),
    (2, "React", "Technical"),
    (3, "SQL", "Data"),
    (4, "Kubernetes", "Cloud"),
    (5, "Figma", "Design"),
    (6, "Machine Learning", "Data"),
    (7, "Project Management", "Business"),
    (8, "AWS", "Cloud"),
]

_SEED_RESOURCES = [
    (1, "Ada Byron", 1, 1),
    (2, "Grace Hopper", 1, 2),
    (3, "Linus Torvalds", 1, 1),
    (4, "Dieter Rams", 2, 3),
    (5, "Hedy Lamarr", 3, 4),
    (6, "Alan Turing", 3, 4),
]

# (resource_id, skill_id, proficiency, years, certified)
_SEED_RESOURCE_SKILLS = [
    (1, 1, 5, 8, 1),
    (1, 3, 4, 6, 0),
    (1, 8, 2, 1, 0),
    (2, 2, 4, 5, 0),
    (2, 1, 2, 1, 0),
    (3, 1, 3, 3, 0),
    (3, 4, 2, 1, 0),
    (4, 5, 5, 10, 1),
    (4, 2, 2, 1, 0),
    (4, 7, 3, 4, 0),
    (5, 3, 5, 7, 1),
    (5, 1, 4, 5, 0),
    (5, 6, 2, 1, 0),
    (6, 3, 3, 2, 0),
    (6, 7, 4, 6, 1),
]

_SEED_ROLE_SKILLS = [
    (1, 1, 5),
    (1, 3, 4),
    (1, 4, 4),
    (2, 2, 5),
    (2, 5, 3),
    (3, 5, 5),
    (4, 3, 5),
    (4, 1, 4),
    (4, 6, 4),
]

_SEED_PROJECT_SKILLS = [
    (1, 4, 5),
    (1, 8, 4),
    (1, 1, 4),
    (2, 2, 5),
    (2, 5, 3),
    (3, 3, 4),
    (3, 6, 5),
    (3, 1, 3),
    (4, 7, 3),
]

_SEED_ALLOCATIONS = [(1, 1), (3, 1), (2, 2), (4, 2), (5, 3), (6, 3)]
