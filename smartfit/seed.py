import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from smartfit.models import Facility, Faq, QueueEntry, QueueStatus, Zone

logger = logging.getLogger(__name__)

FACILITIES = [
    {
        "name": "Palladium Athletic Facility",
        "address": "140 E 14th St, New York, NY 10003",
        "capacity": 80,
        "hours_weekdays": "6:00 AM - 11:00 PM",
        "hours_weekends": "8:00 AM - 9:00 PM",
        "amenities": ["Locker rooms", "Pool", "Climbing wall"],
        "phone": "(212) 992-8500",
        "zones": [
            ("Cardio Zone", ["Treadmills", "Ellipticals", "Rowers"], 20),
            ("Weight Room", ["Squat racks", "Benches", "Dumbbells"], 30),
            ("Functional Training Zone", ["Kettlebells", "TRX", "Sleds"], 12),
        ],
    },
    {
        "name": "Paulson Athletic Facility",
        "address": "181 Mercer St, New York, NY 10012",
        "capacity": 50,
        "hours_weekdays": "6:30 AM - 11:00 PM",
        "hours_weekends": "9:00 AM - 8:00 PM",
        "amenities": ["Locker rooms", "Basketball courts"],
        "phone": "(212) 998-2020",
        "zones": [
            ("Free Weights Zone", ["Dumbbells", "Barbells"], 15),
            ("Machine Zone", ["Leg press", "Cable machines"], 18),
        ],
    },
]

FAQS = [
    ("Queue", "How do I join a queue?", "Open a facility, pick a zone and tap Join Queue.", 1),
    ("Queue", "How is my wait time estimated?", "Each person ahead of you adds about 7 minutes.", 2),
    ("Queue", "What happens when someone leaves?", "Everyone behind them moves up one spot.", 3),
    ("Account", "How do I change my password?", "Go to Settings and choose Change Password.", 4),
    ("Account", "Can I delete my account?", "Yes, from Settings. All of your data is removed.", 5),
    ("Technical", "I am not getting live updates.", "Check your connection and reload the page.", 6),
]


async def seed_reference_data(db: AsyncSession) -> bool:
    """Insert facilities, zones and FAQs into an empty database."""
    existing = (await db.execute(select(func.count(Facility.id)))).scalar_one()
    if existing:
        return False

    for spec in FACILITIES:
        fields = {k: v for k, v in spec.items() if k != "zones"}
        facility = Facility(**fields)
        db.add(facility)
        await db.flush()
        for name, equipment, capacity in spec["zones"]:
            db.add(
                Zone(
                    facility_id=facility.id,
                    name=name,
                    equipment=equipment,
                    capacity=capacity,
                )
            )

    for category, question, answer, order in FAQS:
        db.add(Faq(category=category, question=question, answer=answer, order=order))

    await db.commit()
    logger.info("Seeded %d facilities and %d FAQs", len(FACILITIES), len(FAQS))
    return True


async def load_waiting_entries(db: AsyncSession) -> list:
    result = await db.execute(
        select(QueueEntry)
        .where(QueueEntry.status == QueueStatus.ACTIVE)
        .order_by(QueueEntry.zone_id, QueueEntry.position)
    )
    return list(result.scalars().all())
