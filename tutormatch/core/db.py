"""SQLite database layer for tutors, students, and tutor rosters."""

import json
import logging
import math
import sqlite3
import uuid
from datetime import datetime
from pathlib import Path

from tutormatch.core.schemas import (
    RatingResult,
    StudentProfile,
    StudentProfileUpdate,
    TutorCandidate,
    TutorRegistration,
)

logger = logging.getLogger(__name__)

_TUTORS_TABLE = """
CREATE TABLE IF NOT EXISTS tutors (
    id                       TEXT    PRIMARY KEY,
    name                     TEXT    NOT NULL,
    email                    TEXT    NOT NULL UNIQUE,
    is_verified              INTEGER NOT NULL DEFAULT 0,
    subject_domains          TEXT    NOT NULL DEFAULT '[]',
    teaching_languages       TEXT    NOT NULL DEFAULT '[]',
    available_slots          TEXT    NOT NULL DEFAULT '[]',
    rating                   REAL    NOT NULL DEFAULT 0.0,
    total_ratings            INTEGER NOT NULL DEFAULT 0,
    years_of_experience      REAL    NOT NULL DEFAULT 0.0,
    total_sessions_completed INTEGER NOT NULL DEFAULT 0,
    created_at               TEXT    NOT NULL
);
"""

_STUDENTS_TABLE = """
CREATE TABLE IF NOT EXISTS students (
    id                 TEXT    PRIMARY KEY,
    email              TEXT    NOT NULL UNIQUE,
    name               TEXT    NOT NULL DEFAULT '',
    grade              TEXT,
    phone_number       TEXT,
    learning_topic     TEXT,
    educational_board  TEXT,
    exams              TEXT,
    tutor_gender       TEXT,
    preferred_language TEXT,
    mode               TEXT,
    session_type       TEXT,
    days_per_week      INTEGER,
    time_of_day        TEXT,
    class_duration     TEXT,
    week_preference    TEXT,
    learning_style     TEXT,
    wants_assignments  TEXT,
    current_tutor_id   TEXT REFERENCES tutors(id),
    created_at         TEXT    NOT NULL,
    updated_at         TEXT    NOT NULL
);
"""

_ROSTER_TABLE = """
CREATE TABLE IF NOT EXISTS tutor_students (
    tutor_id    TEXT NOT NULL REFERENCES tutors(id),
    student_id  TEXT NOT NULL REFERENCES students(id),
    assigned_at TEXT NOT NULL,
    PRIMARY KEY (tutor_id, student_id)
);
"""

_LIST_COLUMNS = ("subject_domains", "teaching_languages", "available_slots")


class TutorNotFoundError(LookupError):
    """No tutor with the given id or email."""


class StudentNotFoundError(LookupError):
    """No student with the given id or email."""


class DuplicateEmailError(ValueError):
    """An account with this email already exists."""


def init_db(path: str | Path) -> sqlite3.Connection:
    """Create the database and tables, returning a connection."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    conn.execute(_TUTORS_TABLE)
    conn.execute(_STUDENTS_TABLE)
    conn.execute(_ROSTER_TABLE)
    conn.commit()
    return conn


def _new_id() -> str:
    return uuid.uuid4().hex


def _row_to_tutor(row: sqlite3.Row) -> TutorCandidate:
    data = dict(row)
    for column in _LIST_COLUMNS:
        data[column] = json.loads(data[column] or "[]")
    data["is_verified"] = bool(data["is_verified"])
    data.pop("created_at", None)
    return TutorCandidate.model_validate(data)


def _row_to_student(row: sqlite3.Row) -> StudentProfile:
    data = dict(row)
    data.pop("created_at", None)
    data.pop("updated_at", None)
    return StudentProfile.model_validate(data)


# ---------------------------------------------------------------------------
# Tutors
# ---------------------------------------------------------------------------


def insert_tutor(
    conn: sqlite3.Connection,
    registration: TutorRegistration,
    auto_verify: bool = False,
) -> str:
    """Create a tutor profile. Returns the new tutor id.

    Raises DuplicateEmailError if the email is already registered.
    """
    tutor_id = _new_id()
    try:
        conn.execute(
            """
            INSERT INTO tutors
                (id, name, email, is_verified, subject_domains, teaching_languages,
                 available_slots, years_of_experience, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                tutor_id,
                registration.name,
                registration.email,
                int(auto_verify),
                json.dumps(registration.subject_domains),
                json.dumps(registration.teaching_languages),
                json.dumps(registration.available_slots),
                registration.years_of_experience,
                datetime.now().isoformat(),
            ),
        )
        conn.commit()
    except sqlite3.IntegrityError as e:
        conn.rollback()
        msg = f"An account with email '{registration.email}' already exists"
        raise DuplicateEmailError(msg) from e
    logger.debug("Inserted tutor %s (%s)", tutor_id, registration.email)
    return tutor_id


def get_tutor(conn: sqlite3.Connection, tutor_id: str) -> TutorCandidate:
    row = conn.execute("SELECT * FROM tutors WHERE id = ?", (tutor_id,)).fetchone()
    if row is None:
        msg = f"Tutor not found: {tutor_id}"
        raise TutorNotFoundError(msg)
    return _row_to_tutor(row)


def get_tutor_by_email(conn: sqlite3.Connection, email: str) -> TutorCandidate:
    row = conn.execute("SELECT * FROM tutors WHERE email = ?", (email,)).fetchone()
    if row is None:
        msg = f"Tutor not found: {email}"
        raise TutorNotFoundError(msg)
    return _row_to_tutor(row)


def list_tutors(conn: sqlite3.Connection, verified_only: bool = False) -> list[TutorCandidate]:
    """Return tutors in insertion order, optionally only verified ones."""
    query = "SELECT * FROM tutors"
    if verified_only:
        query += " WHERE is_verified = 1"
    query += " ORDER BY rowid"
    return [_row_to_tutor(row) for row in conn.execute(query).fetchall()]


def verify_tutor(conn: sqlite3.Connection, tutor_id: str) -> TutorCandidate:
    """Mark one tutor as verified and return the updated record."""
    cursor = conn.execute("UPDATE tutors SET is_verified = 1 WHERE id = ?", (tutor_id,))
    conn.commit()
    if cursor.rowcount == 0:
        msg = f"Tutor not found: {tutor_id}"
        raise TutorNotFoundError(msg)
    return get_tutor(conn, tutor_id)


def verify_all_tutors(conn: sqlite3.Connection) -> int:
    """Verify every unverified tutor. Returns how many rows changed."""
    cursor = conn.execute("UPDATE tutors SET is_verified = 1 WHERE is_verified = 0")
    conn.commit()
    return cursor.rowcount


def _round_one_decimal(value: float) -> float:
    return math.floor(value * 10 + 0.5) / 10


def submit_rating(conn: sqlite3.Connection, tutor_id: str, rating: float) -> RatingResult:
    """Fold a new 0-5 rating into the tutor's running average.

    The read-modify-write runs under BEGIN IMMEDIATE so concurrent
    submissions for the same tutor serialize instead of losing updates.
    """
    if isinstance(rating, bool) or not 0 <= rating <= 5:
        msg = f"Invalid rating {rating!r}: must be between 0 and 5"
        raise ValueError(msg)

    if conn.in_transaction:
        conn.commit()
    conn.execute("BEGIN IMMEDIATE")
    try:
        row = conn.execute(
            "SELECT rating, total_ratings FROM tutors WHERE id = ?", (tutor_id,),
        ).fetchone()
        if row is None:
            msg = f"Tutor not found: {tutor_id}"
            raise TutorNotFoundError(msg)

        total = row["total_ratings"] + 1
        new_rating = (row["rating"] * row["total_ratings"] + rating) / total
        stored = _round_one_decimal(new_rating)
        conn.execute(
            "UPDATE tutors SET rating = ?, total_ratings = ? WHERE id = ?",
            (stored, total, tutor_id),
        )
        conn.commit()
    except Exception:
        conn.rollback()
        raise

    logger.debug("Rated tutor %s: %.1f over %d ratings", tutor_id, stored, total)
    return RatingResult(
        tutor_id=tutor_id, new_rating=new_rating, stored_rating=stored, total_ratings=total,
    )


def record_session_complete(conn: sqlite3.Connection, tutor_id: str) -> int:
    """Increment a tutor's completed-session count. Returns the new count."""
    cursor = conn.execute(
        "UPDATE tutors SET total_sessions_completed = total_sessions_completed + 1 WHERE id = ?",
        (tutor_id,),
    )
    conn.commit()
    if cursor.rowcount == 0:
        msg = f"Tutor not found: {tutor_id}"
        raise TutorNotFoundError(msg)
    return get_tutor(conn, tutor_id).total_sessions_completed


# ---------------------------------------------------------------------------
# Students
# ---------------------------------------------------------------------------


def get_student(conn: sqlite3.Connection, student_id: str) -> StudentProfile:
    row = conn.execute("SELECT * FROM students WHERE id = ?", (student_id,)).fetchone()
    if row is None:
        msg = f"Student not found: {student_id}"
        raise StudentNotFoundError(msg)
    return _row_to_student(row)


def get_student_by_email(conn: sqlite3.Connection, email: str) -> StudentProfile:
    row = conn.execute("SELECT * FROM students WHERE email = ?", (email,)).fetchone()
    if row is None:
        msg = f"Student not found: {email}"
        raise StudentNotFoundError(msg)
    return _row_to_student(row)


def list_students(conn: sqlite3.Connection) -> list[StudentProfile]:
    rows = conn.execute("SELECT * FROM students ORDER BY rowid").fetchall()
    return [_row_to_student(row) for row in rows]


def upsert_student_profile(
    conn: sqlite3.Connection,
    email: str,
    update: StudentProfileUpdate,
) -> StudentProfile:
    """Apply onboarding answers to a student, creating the record if needed.

    Only fields present in ``update`` are written.
    """
    email = email.strip()
    if not email:
        msg = "Email is required for onboarding"
        raise ValueError(msg)

    fields = update.model_dump(exclude_unset=True)
    # name is NOT NULL
    if fields.get("name") is None:
        fields.pop("name", None)
    now = datetime.now().isoformat()
    existing = conn.execute("SELECT id FROM students WHERE email = ?", (email,)).fetchone()

    if existing is None:
        columns = ["id", "email", "created_at", "updated_at", *fields]
        values = [_new_id(), email, now, now, *fields.values()]
        placeholders = ", ".join("?" for _ in columns)
        conn.execute(
            f"INSERT INTO students ({', '.join(columns)}) VALUES ({placeholders})",
            values,
        )
        logger.debug("Created student profile for %s", email)
    elif fields:
        assignments = ", ".join(f"{column} = ?" for column in fields)
        conn.execute(
            f"UPDATE students SET {assignments}, updated_at = ? WHERE email = ?",
            [*fields.values(), now, email],
        )
        logger.debug("Updated %d profile fields for %s", len(fields), email)
    conn.commit()
    return get_student_by_email(conn, email)


# ---------------------------------------------------------------------------
# Assignment / rosters
# ---------------------------------------------------------------------------


def assign_tutor(conn: sqlite3.Connection, student_id: str, tutor_id: str) -> None:
    """Link a student to a tutor. Adding to the roster is idempotent."""
    get_student(conn, student_id)
    get_tutor(conn, tutor_id)
    try:
        conn.execute(
            "UPDATE students SET current_tutor_id = ?, updated_at = ? WHERE id = ?",
            (tutor_id, datetime.now().isoformat(), student_id),
        )
        conn.execute(
            """
            INSERT OR IGNORE INTO tutor_students (tutor_id, student_id, assigned_at)
            VALUES (?, ?, ?)
            """,
            (tutor_id, student_id, datetime.now().isoformat()),
        )
        conn.commit()
    except sqlite3.Error:
        conn.rollback()
        raise
    logger.debug("Assigned student %s to tutor %s", student_id, tutor_id)


def tutor_roster(conn: sqlite3.Connection, tutor_id: str) -> list[StudentProfile]:
    """Students on a tutor's roster, in assignment order."""
    rows = conn.execute(
        """
        SELECT s.* FROM students s
        JOIN tutor_students ts ON ts.student_id = s.id
        WHERE ts.tutor_id = ?
        ORDER BY ts.assigned_at, s.rowid
        """,
        (tutor_id,),
    ).fetchall()
    return [_row_to_student(row) for row in rows]


def roster_counts(conn: sqlite3.Connection) -> dict[str, int]:
    """Number of rostered students per tutor id (tutors with none are absent)."""
    rows = conn.execute(
        "SELECT tutor_id, COUNT(*) AS n FROM tutor_students GROUP BY tutor_id",
    ).fetchall()
    return {row["tutor_id"]: row["n"] for row in rows}
