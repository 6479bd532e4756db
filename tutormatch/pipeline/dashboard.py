"""Read-only dashboard views over students, tutors, and rosters."""

import sqlite3

from tutormatch.core.db import (
    get_tutor,
    get_tutor_by_email,
    list_students,
    list_tutors,
    roster_counts,
    tutor_roster,
)
from tutormatch.core.schemas import (
    DashboardStats,
    StudentSummary,
    TutorCandidate,
    TutorDashboard,
    TutorSummary,
)


def dashboard_stats(conn: sqlite3.Connection) -> DashboardStats:
    """Totals and assigned/unassigned splits for students and tutors."""
    students = list_students(conn)
    tutors = list_tutors(conn)
    counts = roster_counts(conn)

    student_summaries = [StudentSummary.from_profile(s) for s in students]
    tutor_summaries = [
        TutorSummary(
            id=t.id,
            name=t.name,
            email=t.email,
            assigned=counts.get(t.id, 0) > 0,
            assigned_count=counts.get(t.id, 0),
            subject_domains=t.subject_domains,
            teaching_languages=t.teaching_languages,
            is_verified=t.is_verified,
        )
        for t in tutors
    ]

    assigned_students = sum(1 for s in student_summaries if s.assigned)
    assigned_tutors = sum(1 for t in tutor_summaries if t.assigned)
    return DashboardStats(
        total_students=len(students),
        total_tutors=len(tutors),
        assigned_students=assigned_students,
        unassigned_students=len(students) - assigned_students,
        assigned_tutors=assigned_tutors,
        unassigned_tutors=len(tutors) - assigned_tutors,
        students=student_summaries,
        tutors=tutor_summaries,
    )


def _dashboard_for(conn: sqlite3.Connection, tutor: TutorCandidate) -> TutorDashboard:
    roster = [StudentSummary.from_profile(s) for s in tutor_roster(conn, tutor.id)]
    return TutorDashboard(tutor=tutor, assigned_students=roster, total_assigned=len(roster))


def tutor_dashboard(
    conn: sqlite3.Connection,
    tutor_id: str | None = None,
    email: str | None = None,
) -> TutorDashboard:
    """Dashboard for one tutor, looked up by id or by email."""
    if tutor_id:
        return _dashboard_for(conn, get_tutor(conn, tutor_id))
    if email:
        return _dashboard_for(conn, get_tutor_by_email(conn, email))
    msg = "Either tutor_id or email is required"
    raise ValueError(msg)
