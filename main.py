"""CLI entry point for the tutor matching service."""

import argparse
import logging
import sqlite3
import sys

from tutormatch.core.config import Settings
from tutormatch.core.db import (
    assign_tutor,
    init_db,
    insert_tutor,
    record_session_complete,
    submit_rating,
    upsert_student_profile,
    verify_all_tutors,
    verify_tutor,
)
from tutormatch.core.schemas import MatchResult, StudentProfileUpdate, TutorRegistration
from tutormatch.pipeline.dashboard import dashboard_stats, tutor_dashboard
from tutormatch.pipeline.orchestrator import (
    export_matches_json,
    find_matches,
    find_matches_for_student,
)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Tutor matching service - register tutors, onboard students, rank matches",
    )
    parser.add_argument(
        "--config",
        default="config/settings.yaml",
        help="Path to settings YAML file (default: config/settings.yaml)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- match ---
    match_parser = subparsers.add_parser("match", help="Rank tutors for a set of preferences")
    match_parser.add_argument("--topic", help="Subject the student wants to learn")
    match_parser.add_argument("--language", help="Preferred language of instruction ('any' matches all)")
    match_parser.add_argument("--time", help="Preferred time of day, e.g. 'Evening (5-9 PM)'")
    match_parser.add_argument(
        "--student-id",
        help="Use a registered student's onboarding preferences instead of --topic/--language/--time",
    )
    match_parser.add_argument("--export", choices=["json"], help="Export results to format (json)")

    # --- add-tutor ---
    add_parser = subparsers.add_parser("add-tutor", help="Register a single tutor")
    add_parser.add_argument("--name", required=True)
    add_parser.add_argument("--email", required=True)
    add_parser.add_argument("--subjects", default="", help="Comma-separated subject domains")
    add_parser.add_argument("--languages", default="", help="Comma-separated teaching languages")
    add_parser.add_argument("--slots", default="", help="Comma-separated available time slots")
    add_parser.add_argument("--years", type=float, default=0.0, help="Years of teaching experience")
    add_parser.add_argument("--verify", action="store_true", help="Mark the tutor verified on creation")

    # --- import-tutors ---
    import_parser = subparsers.add_parser("import-tutors", help="Register tutors from a YAML file")
    import_parser.add_argument("--file", required=True, help="YAML list of tutors")
    import_parser.add_argument("--verify", action="store_true", help="Mark imported tutors verified")

    # --- verify ---
    verify_parser = subparsers.add_parser("verify", help="Verify one tutor or all tutors")
    verify_group = verify_parser.add_mutually_exclusive_group(required=True)
    verify_group.add_argument("--tutor-id")
    verify_group.add_argument("--all", action="store_true")

    # --- rate ---
    rate_parser = subparsers.add_parser("rate", help="Rate a tutor after a session (0-5)")
    rate_parser.add_argument("--tutor-id", required=True)
    rate_parser.add_argument("--rating", type=float, required=True)

    # --- assign ---
    assign_parser = subparsers.add_parser("assign", help="Assign a tutor to a student")
    assign_parser.add_argument("--student-id", required=True)
    assign_parser.add_argument("--tutor-id", required=True)

    # --- complete-session ---
    session_parser = subparsers.add_parser("complete-session", help="Record a completed session")
    session_parser.add_argument("--tutor-id", required=True)

    # --- onboard ---
    onboard_parser = subparsers.add_parser("onboard", help="Save a student's onboarding answers")
    onboard_parser.add_argument("--email", required=True)
    onboard_parser.add_argument("--file", required=True, help="YAML mapping of profile fields")

    # --- stats / tutor-dashboard ---
    subparsers.add_parser("stats", help="Show student/tutor assignment statistics")
    tutor_dash_parser = subparsers.add_parser("tutor-dashboard", help="Show a tutor's roster")
    tutor_dash_group = tutor_dash_parser.add_mutually_exclusive_group(required=True)
    tutor_dash_group.add_argument("--tutor-id")
    tutor_dash_group.add_argument("--email")

    return parser.parse_args(argv)


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def print_matches(result: MatchResult) -> None:
    print(result.message)
    for rank, m in enumerate(result.matches, start=1):
        details = m.match_details
        print(
            f"  {rank}. {m.name} <{m.email}>  score={m.score}  "
            f"language={'yes' if details.language else 'no'}  "
            f"rating={m.rating:.1f}  id={m.id}"
        )
    if result.total_candidates:
        print(f"{result.matched_count}/{result.total_candidates} verified tutors matched.")


def cmd_match(args: argparse.Namespace, conn: sqlite3.Connection, settings: Settings) -> None:
    """Handle match subcommand."""
    if args.student_id:
        result = find_matches_for_student(conn, args.student_id, settings.matching)
    else:
        criteria = {
            "learning_topic": args.topic,
            "preferred_language": args.language,
            "time_of_day": args.time,
        }
        result = find_matches(conn, criteria, settings.matching)

    if args.export == "json":
        print(export_matches_json(result))
    else:
        print_matches(result)


def cmd_add_tutor(args: argparse.Namespace, conn: sqlite3.Connection) -> None:
    registration = TutorRegistration(
        name=args.name,
        email=args.email,
        subject_domains=args.subjects,
        teaching_languages=args.languages,
        available_slots=args.slots,
        years_of_experience=args.years,
    )
    tutor_id = insert_tutor(conn, registration, auto_verify=args.verify)
    status = "verified" if args.verify else "awaiting verification"
    print(f"Tutor {registration.name} created ({status}). id={tutor_id}")


def cmd_import_tutors(args: argparse.Namespace, conn: sqlite3.Connection) -> None:
    registrations = TutorRegistration.list_from_yaml(args.file)
    print(f"Importing {len(registrations)} tutors from {args.file}...")
    for registration in registrations:
        tutor_id = insert_tutor(conn, registration, auto_verify=args.verify)
        print(f"  {registration.email}: id={tutor_id}")


def cmd_verify(args: argparse.Namespace, conn: sqlite3.Connection) -> None:
    if args.all:
        count = verify_all_tutors(conn)
        print(f"{count} tutors verified successfully.")
    else:
        tutor = verify_tutor(conn, args.tutor_id)
        print(f"Tutor {tutor.name} verified successfully.")


def cmd_rate(args: argparse.Namespace, conn: sqlite3.Connection) -> None:
    result = submit_rating(conn, args.tutor_id, args.rating)
    print(
        f"Rating submitted. New average {result.stored_rating:.1f} "
        f"over {result.total_ratings} ratings."
    )


def cmd_onboard(args: argparse.Namespace, conn: sqlite3.Connection) -> None:
    update = StudentProfileUpdate.from_yaml(args.file)
    profile = upsert_student_profile(conn, args.email, update)
    state = "Ready for tutor match." if profile.is_onboarded else "Learning topic still missing."
    print(f"Onboarding saved for {profile.email} (id={profile.id}). {state}")


def dispatch(args: argparse.Namespace, conn: sqlite3.Connection, settings: Settings) -> None:
    if args.command == "match":
        cmd_match(args, conn, settings)
    elif args.command == "add-tutor":
        cmd_add_tutor(args, conn)
    elif args.command == "import-tutors":
        cmd_import_tutors(args, conn)
    elif args.command == "verify":
        cmd_verify(args, conn)
    elif args.command == "rate":
        cmd_rate(args, conn)
    elif args.command == "assign":
        assign_tutor(conn, args.student_id, args.tutor_id)
        print("Tutor assigned successfully.")
    elif args.command == "complete-session":
        count = record_session_complete(conn, args.tutor_id)
        print(f"Session marked as complete ({count} total).")
    elif args.command == "onboard":
        cmd_onboard(args, conn)
    elif args.command == "stats":
        print(dashboard_stats(conn).model_dump_json(indent=2))
    elif args.command == "tutor-dashboard":
        print(tutor_dashboard(conn, args.tutor_id, args.email).model_dump_json(indent=2))


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = Settings.from_yaml(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    conn = init_db(settings.database.path)
    try:
        dispatch(args, conn, settings)
    except (FileNotFoundError, ValueError, LookupError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        conn.close()


if __name__ == "__main__":
    main()
