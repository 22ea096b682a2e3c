"""
Backfill derived registration fields on rows created before these columns existed:
stay_days, stay_price_per_night, stay_total_amount, base_amount, ambassador_code.
For a NEW database: not needed; app.models.registration.Registration defines them (create_all creates them).
Run once on an EXISTING DB: python scripts/migrate_registration_defaults.py (from project root)
Add --dry-run to only print what would change.
"""
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from sqlalchemy import inspect, text
from app.config import get_event_config
from app.database import engine, SessionLocal
from app.models.registration import Registration

COLUMNS = {
    "stay_days": "INTEGER NOT NULL DEFAULT 0",
    "stay_price_per_night": "INTEGER NOT NULL DEFAULT 0",
    "stay_total_amount": "INTEGER NOT NULL DEFAULT 0",
    "base_amount": "INTEGER NOT NULL DEFAULT 0",
    "ambassador_code": "VARCHAR(100) NOT NULL DEFAULT ''",
}


def add_missing_columns():
    existing = {c["name"] for c in inspect(engine).get_columns("registrations")}
    with engine.begin() as conn:
        for name, ddl in COLUMNS.items():
            if name in existing:
                print(f"  skip (exists): registrations.{name}")
                continue
            conn.execute(text(f'ALTER TABLE registrations ADD COLUMN "{name}" {ddl}'))
            print(f"  added: registrations.{name}")


def backfill(dry_run: bool = False) -> int:
    config = get_event_config()
    db = SessionLocal()
    changed = 0
    try:
        for reg in db.query(Registration).all():
            dates = list(reg.stay_dates or [])
            stay_days = len(dates) if reg.has_stay else 0
            price = reg.stay_price_per_night or (config.price_per_night if reg.has_stay else 0)
            stay_total = stay_days * price
            updates = {
                "stay_days": stay_days,
                "stay_price_per_night": price,
                "stay_total_amount": stay_total,
                "base_amount": reg.base_amount or max(0, (reg.total_amount or 0) - stay_total),
                "ambassador_code": (reg.ambassador_code or "").strip(),
            }
            diff = {k: v for k, v in updates.items() if getattr(reg, k) != v}
            if not diff:
                continue
            changed += 1
            print(f"  {reg.id} {reg.email}: {diff}")
            if not dry_run:
                for k, v in diff.items():
                    setattr(reg, k, v)
        if dry_run:
            db.rollback()
        else:
            db.commit()
    finally:
        db.close()
    return changed


def main():
    dry_run = "--dry-run" in sys.argv[1:]
    if "registrations" not in inspect(engine).get_table_names():
        print("registrations table does not exist; start the app once to create it.")
        sys.exit(1)
    if not dry_run:
        add_missing_columns()
    changed = backfill(dry_run=dry_run)
    print(f"Done. {changed} registration(s) {'would be ' if dry_run else ''}updated.")


if __name__ == "__main__":
    main()
