#!/usr/bin/env python3
"""Mint a locally signed bearer token for development against the files API."""
import argparse
from datetime import timedelta

from coursefiles.core.config import get_settings
from coursefiles.core.security import create_access_token
from coursefiles.models.enums import UserType


def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("user_id", type=int)
    parser.add_argument("--role", choices=[t.value for t in UserType], default=UserType.PROFESSOR.value)
    parser.add_argument("--university-id", type=int)
    parser.add_argument("--admin", action="store_true", help="admin professor (university-wide access)")
    parser.add_argument("--email", default="")
    parser.add_argument("--name", default="")
    parser.add_argument("--minutes", type=int, help="lifetime, defaults to ACCESS_TOKEN_EXPIRE_MINUTES")
    args = parser.parse_args()

    claims = {
        "role": args.role,
        "isAdmin": args.admin,
        "email": args.email,
        "name": args.name or f"user{args.user_id}",
    }
    if args.university_id is not None:
        claims["UniversityId"] = args.university_id

    expires = timedelta(minutes=args.minutes) if args.minutes else None
    print(create_access_token(get_settings(), str(args.user_id), expires_delta=expires, extra_claims=claims))


if __name__ == "__main__":
    main()
