"""Demonstration residents inserted by POST /seed."""

from datetime import UTC, datetime
from typing import Any

SAMPLE_RESIDENTS: list[dict[str, Any]] = [
    {
        "name": "Rahul Kumar",
        "phone": "9876543210",
        "room": "A1",
        "join_date": datetime(2024, 1, 15, tzinfo=UTC),
        "fee_due": 5000,
        "college": "Delhi University",
        "section": "B.Tech CSE",
        "temp_address": {"street": "123 Main Street", "city": "New Delhi", "state": "Delhi", "pin": "110001"},
        "perm_address": {"street": "456 Village Road", "city": "Patna", "state": "Bihar", "pin": "800001"},
        "guardian": {"name": "Rajesh Kumar", "phone": "8765432109", "relation": "Father"},
        "notes": "Sample student data",
    },
    {
        "name": "Priya Sharma",
        "phone": "8765432109",
        "room": "B2",
        "join_date": datetime(2024, 1, 20, tzinfo=UTC),
        "fee_due": 4500,
        "college": "JNU",
        "section": "M.A. English",
        "temp_address": {"street": "789 Park Avenue", "city": "New Delhi", "state": "Delhi", "pin": "110067"},
        "perm_address": {"street": "321 Lake View", "city": "Mumbai", "state": "Maharashtra", "pin": "400001"},
        "guardian": {"name": "Sunita Sharma", "phone": "7654321098", "relation": "Mother"},
        "notes": "Another sample student",
    },
]
