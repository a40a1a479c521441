from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from smartfit.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class QueueStatus:
    ACTIVE = "active"
    IN_USE = "in_use"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    # statuses that count towards the one-entry-per-user rule
    OPEN = (ACTIVE, IN_USE)
    CLOSED = (COMPLETED, CANCELLED)


class ZoneStatus:
    AVAILABLE = "available"
    MODERATE = "moderate"
    BUSY = "busy"


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    year = Column(String(50), default="Not specified")
    major = Column(String(100), default="Not specified")
    fitness_level = Column(String(50), default="Beginner")
    preferred_gym = Column(String(100), default="Palladium")
    bio = Column(Text, default="")
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class Facility(Base):
    __tablename__ = "facilities"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(150), nullable=False)
    address = Column(String(255), nullable=False)
    capacity = Column(Integer, nullable=False)
    hours_weekdays = Column(String(50))
    hours_weekends = Column(String(50))
    amenities = Column(JSON, default=list)
    phone = Column(String(50))
    created_at = Column(DateTime, default=utcnow)


class Zone(Base):
    __tablename__ = "zones"
    id = Column(Integer, primary_key=True, index=True)
    facility_id = Column(Integer, ForeignKey("facilities.id"), nullable=False, index=True)
    name = Column(String(150), nullable=False)
    equipment = Column(JSON, default=list)
    capacity = Column(Integer, nullable=False)
    current_occupancy = Column(Integer, default=0, nullable=False)
    queue_length = Column(Integer, default=0, nullable=False)
    average_wait_time = Column(Integer, default=0, nullable=False)
    status = Column(String(20), default=ZoneStatus.AVAILABLE, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class QueueEntry(Base):
    __tablename__ = "queue_entries"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    zone_id = Column(Integer, ForeignKey("zones.id"), nullable=False, index=True)
    facility_id = Column(Integer, ForeignKey("facilities.id"))
    position = Column(Integer, nullable=False)
    estimated_wait = Column(Integer, default=0, nullable=False)
    status = Column(String(20), default=QueueStatus.ACTIVE, nullable=False, index=True)
    joined_at = Column(DateTime, default=utcnow)
    started_at = Column(DateTime)
    completed_at = Column(DateTime)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    zone = relationship("Zone")


class Goal(Base):
    __tablename__ = "goals"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    goal = Column(String(255), nullable=False)
    progress = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class Workout(Base):
    __tablename__ = "workouts"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    facility_id = Column(Integer, ForeignKey("facilities.id"), nullable=False)
    zone_id = Column(Integer, ForeignKey("zones.id"), nullable=False)
    zone_name = Column(String(150), default="")
    exercises = Column(JSON, default=list)
    date = Column(DateTime, default=utcnow, nullable=False)
    duration = Column(Integer, nullable=False)
    type = Column(String(50), nullable=False)
    notes = Column(Text, default="")
    calories_burned = Column(Integer, default=0)
    created_at = Column(DateTime, default=utcnow)


class Notification(Base):
    __tablename__ = "notifications"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    type = Column(String(30), nullable=False)
    title = Column(String(150), nullable=False)
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    priority = Column(String(10), default="medium", nullable=False)
    related_id = Column(Integer)
    related_type = Column(String(20))
    created_at = Column(DateTime, default=utcnow)


class Faq(Base):
    __tablename__ = "faqs"
    id = Column(Integer, primary_key=True, index=True)
    category = Column(String(50), nullable=False)
    question = Column(Text, nullable=False)
    answer = Column(Text, nullable=False)
    order = Column(Integer, default=0, nullable=False)


class SupportIssue(Base):
    __tablename__ = "support_issues"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    subject = Column(String(200), default="Support request")
    description = Column(Text, nullable=False)
    category = Column(String(50), default="General")
    status = Column(String(20), default="open")
    priority = Column(String(10), default="medium")
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    resolved_at = Column(DateTime)
