#!/usr/bin/env python3
"""
TrainPrep — Demo Data Seed Script.

Loads demo users (one per role plus five trainers), training requests
walked through the approval workflow, calendar events and conversations.

Usage:
    python scripts/seed_demo_data.py
    python scripts/seed_demo_data.py --append
    python scripts/seed_demo_data.py --verbose
"""

import argparse
import sys

sys.path.insert(0, ".")

from trainprep import create_app
from trainprep.seed_data import DEMO_PASSWORD
from trainprep.services.demo_seed_service import seed_all


def main():
    parser = argparse.ArgumentParser(description="Seed demo data")
    parser.add_argument("--append", action="store_true")
    parser.add_argument("--verbose", "-v", action="store_true")
    args = parser.parse_args()

    app = create_app()
    print(f"🎯 DB: {app.config['SQLALCHEMY_DATABASE_URI']}\n")
    with app.app_context():
        counts = seed_all(append=args.append, verbose=args.verbose)

    print("✅ Demo data loaded")
    for name, count in counts.items():
        print(f"   {name:<20} {count}")
    print(f"   Log in with any demo code (e.g. SV-001) and password {DEMO_PASSWORD}")


if __name__ == "__main__":
    main()
