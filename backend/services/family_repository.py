"""
Family Repository
Storage access for the reconciliation engine: reads everything a family snapshot
needs and performs the writes behind guardian actions.
"""

import json
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

import sqlalchemy

from core.config import settings
from core.database import database
from core.security import uuid_to_string
from db.models import (
    children,
    custody_cycles,
    custody_overrides,
    event_children,
    events,
    families,
    family_members,
    handoffs,
    users,
)
from schemas.child import Child
from schemas.custody import CustodyCycle, CustodyOverride, OverrideStatus
from schemas.event import Event
from schemas.family import GuardianMembership
from schemas.handoff import Handoff
from schemas.snapshot import FamilySnapshot
from services.errors import NotFoundError, SnapshotRefreshError
from services.redis_service import family_snapshot_cache_key, redis_service

logger = logging.getLogger(__name__)

def _id(value) -> Optional[str]:
    return uuid_to_string(value) if value is not None else None

class FamilyRepository:
    """Typed queries and mutations against the family tables."""

    @staticmethod
    async def get_family(family_id: str) -> Dict[str, Any]:
        record = await database.fetch_one(families.select().where(families.c.id == family_id))
        if record is None:
            raise NotFoundError(f"Family {family_id} not found")
        return {
            "id": _id(record["id"]),
            "timezone": record["timezone"],
            "default_handoff_location": record["default_handoff_location"],
        }

    @staticmethod
    async def get_memberships(family_id: str) -> List[GuardianMembership]:
        query = (
            sqlalchemy.select(
                family_members.c.profile_id,
                family_members.c.parent_label,
                users.c.first_name,
            )
            .select_from(family_members.join(users, family_members.c.profile_id == users.c.id))
            .where(family_members.c.family_id == family_id)
            .order_by(family_members.c.created_at.asc().nulls_last())
        )
        records = await database.fetch_all(query)
        return [
            GuardianMembership(
                profile_id=_id(r["profile_id"]),
                parent_label=r["parent_label"],
                first_name=r["first_name"],
            )
            for r in records
        ]

    @staticmethod
    async def get_cycle(family_id: str, as_of: Optional[date] = None) -> Optional[CustodyCycle]:
        """The active cycle (valid_until IS NULL), or None when the family has not set one up."""
        query = (
            custody_cycles.select()
            .where(
                (custody_cycles.c.family_id == family_id) &
                (custody_cycles.c.valid_until.is_(None))
            )
            .order_by(custody_cycles.c.version_number.desc())
            .limit(1)
        )
        record = await database.fetch_one(query)
        if record is None:
            return None

        cycle_data = record["cycle_data"]
        if isinstance(cycle_data, str):
            try:
                cycle_data = json.loads(cycle_data)
            except json.JSONDecodeError:
                logger.error(f"Invalid JSON in cycle_data for cycle {record['id']}")
                cycle_data = []

        if as_of is not None and record["valid_from"] > as_of:
            logger.info(f"Active cycle {record['id']} for family {family_id} starts after {as_of}")

        return CustodyCycle(
            id=record["id"],
            family_id=_id(record["family_id"]),
            cycle_length=record["cycle_length"],
            cycle_data=cycle_data,
            valid_from=record["valid_from"],
            valid_until=record["valid_until"],
            default_handoff_time=record["default_handoff_time"],
            version_number=record["version_number"],
        )

    @staticmethod
    async def get_overrides(
        family_id: str,
        statuses: Iterable[OverrideStatus] = (OverrideStatus.approved, OverrideStatus.pending),
    ) -> List[CustodyOverride]:
        status_values = [OverrideStatus(s).value for s in statuses]
        query = custody_overrides.select().where(
            (custody_overrides.c.family_id == family_id) &
            (custody_overrides.c.status.in_(status_values))
        ).order_by(custody_overrides.c.id.asc())
        records = await database.fetch_all(query)
        return [
            CustodyOverride(
                id=r["id"],
                family_id=_id(r["family_id"]),
                from_date=r["from_date"],
                to_date=r["to_date"],
                override_parent=r["override_parent"],
                status=r["status"],
                reason=r["reason"],
                requested_by=_id(r["requested_by"]),
                responded_by=_id(r["responded_by"]),
                responded_at=r["responded_at"],
                created_at=r["created_at"],
            )
            for r in records
        ]

    @staticmethod
    async def get_children(family_id: str) -> List[Child]:
        query = children.select().where(
            children.c.family_id == family_id
        ).order_by(children.c.date_of_birth.asc())
        records = await database.fetch_all(query)
        return [
            Child(
                id=_id(r["id"]),
                family_id=_id(r["family_id"]),
                name=r["name"],
                date_of_birth=r["date_of_birth"],
                current_status=r["current_status"] or "unknown",
                current_parent_id=_id(r["current_parent_id"]),
                status_changed_at=r["status_changed_at"],
                status_changed_by=_id(r["status_changed_by"]),
            )
            for r in records
        ]

    @staticmethod
    async def get_events(family_id: str, start: datetime, end: datetime) -> List[Event]:
        """Non-cancelled events starting inside [start, end], with their linked children."""
        query = events.select().where(
            (events.c.family_id == family_id) &
            (events.c.start_time >= start) &
            (events.c.start_time <= end) &
            (events.c.status != "cancelled")
        ).order_by(events.c.start_time.asc())
        records = await database.fetch_all(query)
        if not records:
            return []

        event_ids = [r["id"] for r in records]
        links = await database.fetch_all(
            event_children.select().where(event_children.c.event_id.in_(event_ids))
        )
        child_ids_by_event: Dict[str, List[str]] = {}
        for link in links:
            child_ids_by_event.setdefault(_id(link["event_id"]), []).append(_id(link["child_id"]))

        return [
            Event(
                id=_id(r["id"]),
                family_id=_id(r["family_id"]),
                type=r["type"],
                title=r["title"],
                description=r["description"],
                start_time=r["start_time"],
                end_time=r["end_time"],
                all_day=bool(r["all_day"]),
                location_name=r["location_name"],
                status=r["status"],
                child_ids=child_ids_by_event.get(_id(r["id"]), []),
            )
            for r in records
        ]

    @staticmethod
    async def get_last_handoff(family_id: str, child_id: str, from_parent_id: str) -> Optional[Handoff]:
        """Most recent handoff where the given guardian handed the child over."""
        query = handoffs.select().where(
            (handoffs.c.family_id == family_id) &
            (handoffs.c.child_id == child_id) &
            (handoffs.c.from_parent_id == from_parent_id)
        ).order_by(handoffs.c.actual_at.desc()).limit(1)
        record = await database.fetch_one(query)
        if record is None:
            return None
        return Handoff(
            id=record["id"],
            family_id=_id(record["family_id"]),
            child_id=_id(record["child_id"]),
            from_parent_id=_id(record["from_parent_id"]),
            to_parent_id=_id(record["to_parent_id"]),
            scheduled_at=record["scheduled_at"],
            actual_at=record["actual_at"],
            items_sent=record["items_sent"] or [],
            notes=record["notes"],
        )

    @staticmethod
    async def load_snapshot(family_id: str) -> FamilySnapshot:
        """
        Fetch everything the engine needs for a family.

        Raises:
            SnapshotRefreshError: any storage failure; callers keep their previous snapshot
        """
        cached = await redis_service.get(family_snapshot_cache_key(family_id))
        if cached is not None:
            try:
                logger.info(f"✅ Cache HIT: snapshot for family {family_id}")
                return FamilySnapshot.model_validate(cached)
            except ValueError as e:
                logger.warning(f"Discarding unreadable cached snapshot for family {family_id}: {e}")
                await redis_service.delete(family_snapshot_cache_key(family_id))

        logger.info(f"🔍 Cache MISS: loading snapshot for family {family_id} from database")
        now = datetime.now(timezone.utc)
        try:
            family = await FamilyRepository.get_family(family_id)
            memberships = await FamilyRepository.get_memberships(family_id)
            cycle = await FamilyRepository.get_cycle(family_id, now.date())
            overrides = await FamilyRepository.get_overrides(family_id)
            family_children = await FamilyRepository.get_children(family_id)
            family_events = await FamilyRepository.get_events(
                family_id,
                now - timedelta(days=settings.EVENT_WINDOW_PAST_DAYS),
                now + timedelta(days=settings.EVENT_WINDOW_FUTURE_DAYS),
            )
        except NotFoundError:
            raise
        except Exception as e:
            logger.error(f"❌ Error loading snapshot for family {family_id}: {e}", exc_info=True)
            raise SnapshotRefreshError(family_id, str(e)) from e

        snapshot = FamilySnapshot(
            family_id=family["id"],
            timezone=family["timezone"] or settings.DEFAULT_TIMEZONE,
            default_handoff_location=family["default_handoff_location"],
            memberships=memberships,
            children=family_children,
            cycle=cycle,
            overrides=overrides,
            events=family_events,
            fetched_at=now,
        )

        await redis_service.set(
            family_snapshot_cache_key(family_id),
            snapshot.model_dump(mode="json"),
            ttl=settings.CACHE_TTL_FAMILY_SNAPSHOT,
        )
        logger.info(
            f"📦 Loaded snapshot for family {family_id}: {len(family_children)} children, "
            f"{len(family_events)} events, {len(overrides)} overrides, cycle={'yes' if cycle else 'no'}"
        )
        return snapshot

    @staticmethod
    async def invalidate_snapshot(family_id: str) -> None:
        await redis_service.delete(family_snapshot_cache_key(family_id))

    @staticmethod
    async def update_child_status(
        child_id: str,
        status: str,
        current_parent_id: Optional[str],
        changed_by: str,
        changed_at: datetime,
    ) -> None:
        query = children.update().where(children.c.id == child_id).values(
            current_status=status,
            current_parent_id=current_parent_id,
            status_changed_at=changed_at,
            status_changed_by=changed_by,
        )
        await database.execute(query)

    @staticmethod
    async def insert_handoff(handoff: Handoff) -> int:
        query = handoffs.insert().values(
            family_id=handoff.family_id,
            child_id=handoff.child_id,
            from_parent_id=handoff.from_parent_id,
            to_parent_id=handoff.to_parent_id,
            scheduled_at=handoff.scheduled_at,
            actual_at=handoff.actual_at,
            items_sent=[item.model_dump() for item in handoff.items_sent],
            notes=handoff.notes,
        )
        return await database.execute(query)

    @staticmethod
    async def insert_override(override: CustodyOverride) -> int:
        query = custody_overrides.insert().values(
            family_id=override.family_id,
            from_date=override.from_date,
            to_date=override.to_date,
            override_parent=override.override_parent,
            status=OverrideStatus(override.status).value,
            reason=override.reason,
            requested_by=override.requested_by,
            created_at=override.created_at,
        )
        return await database.execute(query)

    @staticmethod
    async def update_override_status(
        override_id: int,
        status: OverrideStatus,
        responded_by: str,
        responded_at: datetime,
    ) -> None:
        query = custody_overrides.update().where(custody_overrides.c.id == override_id).values(
            status=OverrideStatus(status).value,
            responded_by=responded_by,
            responded_at=responded_at,
        )
        await database.execute(query)
