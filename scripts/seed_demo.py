#!/usr/bin/env python3
"""Seed the Qatrah DB with an admin profile, blood banks and campaigns."""
from __future__ import annotations

import argparse
import os
from datetime import timedelta

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import Session, SQLModel

from qatrah.app.domain.models import User, UserRole, utcnow
from qatrah.app.domain.policy import IdentityContext, ResourceKind
from qatrah.app.services.store import ResourceStore

BLOOD_BANKS = [
    {
        "name": "City Central Blood Bank",
        "location": "123 Main St, Cityville",
        "contact_phone": "555-1000",
        "operating_hours": "Mon-Fri 8am-6pm, Sat 9am-1pm",
        "website": "www.citycentralbb.org",
        "inventory": {"A+": 50, "A-": 25, "B+": 30, "B-": 15, "AB+": 10, "AB-": 5, "O+": 60, "O-": 40},
        "services_offered": ["Whole Blood", "Platelets", "Plasma"],
    },
    {
        "name": "North Regional Donor Center",
        "location": "456 North Ave, Northtown",
        "contact_phone": "555-2000",
        "operating_hours": "Tue-Sat 10am-4pm",
        "website": "www.northregionaldc.org",
        "inventory": {"A+": 35, "A-": 18, "B+": 22, "B-": 8, "AB+": 5, "AB-": 2, "O+": 45, "O-": 28},
        "services_offered": ["Whole Blood", "Power Red"],
    },
]

CAMPAIGNS = [
    {
        "title": "Summer Blood Drive",
        "description": "Help us meet the summer demand!",
        "organizer": "Community Blood Services",
        "time_details": "10:00 AM - 4:00 PM Daily",
        "location": "City Hall Plaza",
        "goal_units": 200,
        "status": "Ongoing",
        "offset_days": -2,
        "length_days": 5,
    },
    {
        "title": "University Challenge - Fall Semester",
        "description": "Support your university department and save lives!",
        "organizer": "State University & Red Cross",
        "time_details": "9:00 AM - 5:00 PM Daily",
        "location": "State University Campus - Student Union",
        "goal_units": 300,
        "status": "Upcoming",
        "required_blood_groups": ["O-", "O+", "A-"],
        "offset_days": 30,
        "length_days": 4,
    },
]


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed DB with demo facilities and campaigns")
    parser.add_argument("--admin-uid", required=True, help="subject id of the platform admin")
    parser.add_argument("--admin-email", default="admin@qatrahhayat.com")
    parser.add_argument(
        "--database-url",
        default=os.getenv("DATABASE_URL", "sqlite:///./qatrah.db"),
        help="SQLAlchemy URL (defaults to $DATABASE_URL)",
    )
    return parser.parse_args()


def ensure_admin(db: Session, uid: str, email: str) -> None:
    # admins cannot sign themselves up; the first one is provisioned here
    if db.get(User, uid):
        return
    db.add(User(uid=uid, email=email, first_name="Admin", last_name="User", role=UserRole.ADMIN))
    db.flush()


def seed(db: Session, admin_uid: str) -> int:
    store = ResourceStore(db, IdentityContext(subject_id=admin_uid, role=UserRole.ADMIN))
    now = utcnow()
    created = 0
    for bank in BLOOD_BANKS:
        store.create(ResourceKind.BLOOD_BANK, dict(bank, last_inventory_update=now))
        created += 1
    for campaign in CAMPAIGNS:
        fields = dict(campaign)
        start = now + timedelta(days=fields.pop("offset_days"))
        fields["start_date"] = start
        fields["end_date"] = start + timedelta(days=fields.pop("length_days"))
        store.create(ResourceKind.CAMPAIGN, fields)
        created += 1
    return created


def main() -> int:
    args = parse_args()
    engine = create_engine(args.database_url, future=True)
    SQLModel.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, class_=Session, autoflush=False)
    with SessionLocal() as db:
        ensure_admin(db, args.admin_uid, args.admin_email)
        created = seed(db, args.admin_uid)
        db.commit()
    print(f"Seeded {created} records.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
