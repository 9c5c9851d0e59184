"""Maintenance commands: seed sample data, reset the database, create an
admin account and import a roster file.

Usage:
    campusvote-admin seed
    campusvote-admin reset [--yes]
    campusvote-admin create-admin [--name NAME] [--email EMAIL]
    campusvote-admin import-roster path/to/voters.xlsx
"""
import argparse
import getpass
import logging
import os
import sys

from campusvote.errors import CampusVoteError
from campusvote.roster import parse_roster
from campusvote.schemas import AdminCreate
from campusvote.services import Services, build_services

logger = logging.getLogger(__name__)

SAMPLE_ADMIN = {"name": "System Administrator", "email": "admin@votingsystem.com", "password": "admin123"}

SAMPLE_VOTERS = [
    {"reg_no": "21CS001", "name": "John Doe", "email": "john.doe@student.edu", "year": "1", "section": "A", "department": "CSE"},
    {"reg_no": "21CS002", "name": "Jane Smith", "email": "jane.smith@student.edu", "year": "1", "section": "A", "department": "CSE"},
    {"reg_no": "21CS003", "name": "Mike Johnson", "email": "mike.johnson@student.edu", "year": "1", "section": "B", "department": "CSE"},
    {"reg_no": "20IT001", "name": "Sarah Wilson", "email": "sarah.wilson@student.edu", "year": "2", "section": "A", "department": "IT"},
    {"reg_no": "20IT002", "name": "David Brown", "email": "david.brown@student.edu", "year": "2", "section": "B", "department": "IT"},
    {"reg_no": "19AD001", "name": "Lisa Davis", "email": "lisa.davis@student.edu", "year": "3", "section": "A", "department": "ADS"},
    {"reg_no": "19AD002", "name": "Tom Miller", "email": "tom.miller@student.edu", "year": "3", "section": "B", "department": "ADS"},
    {"reg_no": "18EC001", "name": "Amy Garcia", "email": "amy.garcia@student.edu", "year": "4", "section": "A", "department": "ECE"},
]

SAMPLE_POLLS = [
    {
        "title": "Class Representative Election - 1st Year A",
        "description": "Vote for your class representative for the academic year",
        "target_year": "1", "target_section": "A", "target_department": "CSE",
        "candidates": ["Alice Johnson", "Bob Smith", "Charlie Brown"],
    },
    {
        "title": "Student Council President - 2nd Year",
        "description": "Choose the student council president for 2nd year students",
        "target_year": "2", "target_section": "ALL", "target_department": "IT",
        "candidates": ["Emma Wilson", "James Davis", "Olivia Taylor"],
    },
    {
        "title": "Sports Captain Election - 3rd Year B",
        "description": "Select the sports captain for 3rd year section B",
        "target_year": "3", "target_section": "B", "target_department": "ALL",
        "candidates": ["Michael Chen", "Sofia Rodriguez", "Alex Thompson"],
    },
]


def seed(services: Services) -> None:
    services.db.reset()
    admin = services.accounts.create_admin(AdminCreate(**SAMPLE_ADMIN))
    voters = services.voters.bulk_create_voters(SAMPLE_VOTERS)
    for poll in SAMPLE_POLLS:
        services.polls.create_poll(poll, created_by=str(admin["_id"]))

    print("Database seeded successfully!")
    print(f"- Admin users: 1 ({SAMPLE_ADMIN['email']} / {SAMPLE_ADMIN['password']})")
    print(f"- Voters: {len(voters)}")
    print(f"- Polls: {len(SAMPLE_POLLS)} (all closed)")
    print("\nSample voter credentials:")
    for voter in voters[:3]:
        print(f"{voter['name']}: {voter['email']} / {voter['password']}")


def reset(services: Services, assume_yes: bool = False) -> bool:
    if not assume_yes:
        print("WARNING: This will delete ALL data in the database!")
        answer = input("Are you sure you want to continue? (yes/no): ").strip().lower()
        if answer not in ("yes", "y"):
            print("Operation cancelled.")
            return False
    services.db.reset()
    print("Database reset successfully! All collections have been cleared.")
    return True


def create_admin(services: Services, name: str = None, email: str = None, password: str = None) -> dict:
    name = name or input("Enter admin name: ")
    email = email or input("Enter admin email: ")
    password = password or os.getenv("ADMIN_PASSWORD") or getpass.getpass("Enter admin password: ")
    admin = services.accounts.create_admin(AdminCreate(name=name, email=email, password=password))
    print("Admin user created successfully!")
    print(f"Name: {admin['name']}")
    print(f"Email: {admin['email']}")
    return admin


def import_roster(services: Services, path: str) -> list:
    with open(path, "rb") as f:
        roster = parse_roster(path, f.read())
    print(f"Found {len(roster.rows)} rows in {len(roster.sheet_names) or 1} sheet(s)")
    voters = services.voters.bulk_create_voters(roster.rows)

    summary = {}
    for voter in voters:
        key = (voter["year"], voter["section"], voter["department"])
        summary[key] = summary.get(key, 0) + 1
    print(f"Voters imported successfully! Total inserted: {len(voters)}")
    for (year, section, department), count in sorted(summary.items()):
        print(f"- Year {year}, Section {section} ({department}): {count} voters")
    return voters


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="campusvote-admin", description="campusvote maintenance commands")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("seed", help="Replace all data with sample voters, polls and an admin")

    reset_parser = sub.add_parser("reset", help="Delete all voters, polls, votes and admins")
    reset_parser.add_argument("--yes", action="store_true", help="Do not ask for confirmation")

    admin_parser = sub.add_parser("create-admin", help="Create an admin account")
    admin_parser.add_argument("--name")
    admin_parser.add_argument("--email")

    import_parser = sub.add_parser("import-roster", help="Import voters from an .xlsx or .csv roster")
    import_parser.add_argument("path")
    return parser


def main(argv=None, services: Services = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.WARNING)

    if args.command == "import-roster" and not os.path.exists(args.path):
        print(f"File not found: {args.path}", file=sys.stderr)
        return 1

    services = services or build_services()
    try:
        if args.command == "seed":
            seed(services)
        elif args.command == "reset":
            reset(services, args.yes)
        elif args.command == "create-admin":
            create_admin(services, args.name, args.email)
        elif args.command == "import-roster":
            import_roster(services, args.path)
    except CampusVoteError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        for error in getattr(e, "errors", []):
            print(f"  {error}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
