"""Utility script to register a member profile and print an access token."""

from __future__ import annotations

import argparse
from datetime import timedelta

from sqlalchemy.exc import SQLAlchemyError

from matrisync.infrastructure.database import SessionLocal, initialize_database
from matrisync.infrastructure.repositories import ProfileRepository
from matrisync.infrastructure.security import create_access_token


def parse_args() -> argparse.Namespace:
    """Parse command line arguments for token issuing."""

    parser = argparse.ArgumentParser(
        description="Issue an access token for a matrisync member profile.",
    )
    parser.add_argument("--email", required=True, help="Email of the member profile")
    parser.add_argument(
        "--name",
        default=None,
        help="Display name used when the profile has to be created",
    )
    parser.add_argument(
        "--image",
        action="append",
        default=[],
        help="Profile image URL; may be given several times",
    )
    parser.add_argument(
        "--expires-minutes",
        type=int,
        default=None,
        help="Token lifetime in minutes (defaults to ACCESS_TOKEN_EXPIRE_MINUTES)",
    )
    return parser.parse_args()


def main() -> None:
    """Find or create the profile and print a bearer token for it."""

    args = parse_args()
    initialize_database()

    session = SessionLocal()
    try:
        repository = ProfileRepository(session)
        profile = repository.get_by_email(args.email)
        if profile is None:
            profile = repository.create(email=args.email, name=args.name, images=args.image)
            print(f"Created profile {profile.id} for {profile.email}")
    except ValueError as exc:
        session.rollback()
        raise SystemExit(f"Could not create the profile: {exc}") from exc
    except SQLAlchemyError as exc:
        session.rollback()
        raise SystemExit(f"Database error while saving the profile: {exc}") from exc
    finally:
        session.close()

    expires = timedelta(minutes=args.expires_minutes) if args.expires_minutes else None
    print(create_access_token({"sub": profile.id}, expires_delta=expires))


if __name__ == "__main__":
    main()
