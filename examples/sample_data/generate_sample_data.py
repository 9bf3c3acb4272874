"""Generate realistic lost and found phone reports."""

import json
import random
from datetime import datetime, timedelta
from pathlib import Path
from typing import List

from lostphone_search.models.record import PhoneRecord, RecordCategory, RecordStatus


DEVICES = [
    ("Apple", "iPhone 13", "smartphone"),
    ("Apple", "iPhone 15 Pro", "smartphone"),
    ("Apple", "iPad Air", "tablet"),
    ("Samsung", "Galaxy S21", "smartphone"),
    ("Samsung", "Galaxy A54", "smartphone"),
    ("Google", "Pixel 7", "smartphone"),
    ("Xiaomi", "Redmi Note 12", "smartphone"),
    ("Oppo", "Reno 8", "smartphone"),
]

PLACES = [
    ("SM Mall of Asia", "Philippines", "Metro Manila", "Manila", 14.5352, 120.9822),
    ("Quezon City Station", "Philippines", "Metro Manila", "Quezon City", 14.6760, 121.0437),
    ("Ayala Center", "Philippines", "Cebu", "Cebu City", 10.3181, 123.9050),
    ("Central Park", "USA", "New York", "New York", 40.7829, -73.9654),
    ("Union Station", "USA", "California", "Los Angeles", 34.0562, -118.2365),
]

NAMES = [
    "Maria Santos", "John Smith", "Robert Garcia", "Ana Cruz", "Jose Reyes",
    "Emily Johnson", "Mark Bautista", "Grace Lim", "Daniel Tan", "Sofia Mendoza",
]

COLORS = ["black", "white", "blue", "silver", "gold", "green"]


def _imei() -> str:
    return "35" + "".join(random.choice("0123456789") for _ in range(13))


def _phone_number() -> str:
    return f"09{random.randint(10, 99)}{random.randint(1000000, 9999999)}"


def _email(name: str) -> str:
    return name.lower().replace(" ", ".") + "@example.com"


def generate_lost_reports(count: int = 30) -> List[PhoneRecord]:
    """Generate sample lost phone reports."""
    reports = []
    now = datetime.now()

    for i in range(count):
        brand, model, device_type = random.choice(DEVICES)
        location, country, region, city, lat, lon = random.choice(PLACES)
        owner = random.choice(NAMES)
        color = random.choice(COLORS)
        created_at = now - timedelta(days=random.randint(0, 90), hours=random.randint(0, 23))

        reports.append(PhoneRecord(
            id=i + 1,
            category=RecordCategory.LOST,
            reporter_name=owner,
            reporter_contact=_phone_number(),
            phone_number=_phone_number(),
            imei=_imei() if random.random() < 0.7 else None,
            email=_email(owner) if random.random() < 0.5 else None,
            brand=brand,
            model=model,
            color=color,
            device_type=device_type,
            description=f"{color.title()} {brand} {model}, lost near {location}",
            location=location,
            country=country,
            region=region,
            city=city,
            latitude=round(lat + random.uniform(-0.02, 0.02), 6),
            longitude=round(lon + random.uniform(-0.02, 0.02), 6),
            event_date=(created_at - timedelta(days=random.randint(0, 3))).date(),
            status=random.choice([RecordStatus.LOST, RecordStatus.LOST, RecordStatus.RETURNED]),
            created_at=created_at,
        ))

    return reports


def generate_found_reports(count: int = 20) -> List[PhoneRecord]:
    """Generate sample found phone reports."""
    reports = []
    now = datetime.now()

    for i in range(count):
        brand, model, device_type = random.choice(DEVICES)
        location, country, region, city, lat, lon = random.choice(PLACES)
        finder = random.choice(NAMES)
        color = random.choice(COLORS)
        created_at = now - timedelta(days=random.randint(0, 60), hours=random.randint(0, 23))

        reports.append(PhoneRecord(
            id=i + 1,
            category=RecordCategory.FOUND,
            reporter_name=finder,
            reporter_contact=_email(finder),
            imei=_imei(),
            brand=brand,
            model=model,
            color=color,
            device_type=device_type,
            description=f"Found a {color} {brand} at {location}",
            location=location,
            country=country,
            region=region,
            city=city,
            latitude=round(lat + random.uniform(-0.02, 0.02), 6),
            longitude=round(lon + random.uniform(-0.02, 0.02), 6),
            event_date=created_at.date(),
            status=random.choice([RecordStatus.FOUND, RecordStatus.CLAIMED]),
            created_at=created_at,
        ))

    return reports


def generate_sample_reports(lost: int = 30, found: int = 20) -> List[PhoneRecord]:
    """Generate lost and found reports together."""
    return generate_lost_reports(lost) + generate_found_reports(found)


def save_sample_reports(output_dir: Path):
    """Generate and save sample reports as JSON, one file per category."""
    output_dir.mkdir(parents=True, exist_ok=True)

    lost = generate_lost_reports(30)
    found = generate_found_reports(20)

    for name, reports in [("lost_phones", lost), ("found_phones", found)]:
        with open(output_dir / f"{name}.json", "w") as f:
            json.dump([report.to_dict() for report in reports], f, indent=2)

    print(f"Generated {len(lost) + len(found)} sample reports:")
    print(f"  - {len(lost)} lost reports")
    print(f"  - {len(found)} found reports")


if __name__ == "__main__":
    save_sample_reports(Path(__file__).parent)
