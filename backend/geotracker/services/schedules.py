"""
Schedule Trigger Adapter
Interval math and due checks for recurring audits, plus the periodic
trigger that hands due schedules to the orchestrator.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional
from uuid import uuid4

from sqlalchemy import select

from geotracker.clock import utcnow
from geotracker.exceptions import GeoTrackerError, NotFoundError
from geotracker.models import PromptSchedule
from geotracker.models.database import IntervalUnit
from geotracker.schemas import Schedule, ScheduleCreate
from geotracker.services.sql_tier import SessionFactory, row_to_dict

logger = logging.getLogger(__name__)

UNIT_SECONDS = {
    IntervalUnit.SECONDS.value: 1,
    IntervalUnit.MINUTES.value: 60,
    IntervalUnit.HOURS.value: 3600,
    IntervalUnit.DAYS.value: 86400,
}


def compute_next_run(value: int, unit, now: datetime) -> datetime:
    """now + value * unit; an unrecognised unit counts as minutes"""
    seconds = UNIT_SECONDS.get(getattr(unit, "value", unit), UNIT_SECONDS[IntervalUnit.MINUTES.value])
    return now + timedelta(seconds=value * seconds)


def is_overdue(schedule: Schedule, now: datetime) -> bool:
    return schedule.next_run_at is not None and schedule.next_run_at < now


def is_due(schedule: Schedule, now: datetime) -> bool:
    return schedule.is_active and (schedule.next_run_at is None or schedule.next_run_at <= now)


def toggle(schedule: Schedule, now: datetime) -> Schedule:
    """
    Flip a schedule on or off.

    Turning it off clears next_run_at. Turning it on schedules the next
    run one interval after `now`; runs missed while off are not replayed.
    """
    if schedule.is_active:
        return schedule.model_copy(update={"is_active": False, "next_run_at": None})
    return schedule.model_copy(update={
        "is_active": True,
        "next_run_at": compute_next_run(schedule.interval_value, schedule.interval_unit, now),
    })


def mark_ran(schedule: Schedule, now: datetime) -> Schedule:
    return schedule.model_copy(update={
        "last_run_at": now,
        "next_run_at": compute_next_run(schedule.interval_value, schedule.interval_unit, now),
        "total_runs": schedule.total_runs + 1,
    })


def new_schedule(client_id: str, data: ScheduleCreate, now: datetime) -> Schedule:
    return Schedule(
        id=str(uuid4()),
        client_id=client_id,
        prompt_id=data.prompt_id,
        name=data.name,
        interval_value=data.interval_value,
        interval_unit=data.interval_unit,
        include_enrichment=data.include_enrichment,
        models=data.models or [],
        next_run_at=compute_next_run(data.interval_value, data.interval_unit, now),
        created_at=now,
    )


def _to_row_values(schedule: Schedule) -> Dict[str, Any]:
    values = schedule.model_dump()
    values["interval_unit"] = schedule.interval_unit.value
    return values


class ScheduleService:
    """Schedule persistence and the due-schedule sweep"""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    async def list_schedules(self, client_id: str) -> List[Schedule]:
        async with self.session_factory() as session:
            rows = await session.execute(
                select(PromptSchedule)
                .where(PromptSchedule.client_id == client_id)
                .order_by(PromptSchedule.created_at)
            )
            return [Schedule.model_validate(row_to_dict(r)) for r in rows.scalars().all()]

    async def get_schedule(self, schedule_id: str) -> Schedule:
        async with self.session_factory() as session:
            row = await session.get(PromptSchedule, schedule_id)
            if row is None:
                raise NotFoundError(f"Schedule {schedule_id} not found", {"schedule_id": schedule_id})
            return Schedule.model_validate(row_to_dict(row))

    async def create(self, client_id: str, data: ScheduleCreate, now: Optional[datetime] = None) -> Schedule:
        schedule = new_schedule(client_id, data, now or utcnow())
        await self._save(schedule)
        logger.info(f"Created schedule {schedule.id} ({schedule.name}) for client {client_id}")
        return schedule

    async def toggle(self, schedule_id: str, now: Optional[datetime] = None) -> Schedule:
        schedule = toggle(await self.get_schedule(schedule_id), now or utcnow())
        await self._save(schedule)
        return schedule

    async def delete(self, schedule_id: str) -> None:
        async with self.session_factory() as session:
            row = await session.get(PromptSchedule, schedule_id)
            if row is None:
                raise NotFoundError(f"Schedule {schedule_id} not found", {"schedule_id": schedule_id})
            await session.delete(row)
            await session.commit()

    async def due_schedules(self, now: datetime) -> List[Schedule]:
        async with self.session_factory() as session:
            rows = await session.execute(
                select(PromptSchedule)
                .where(PromptSchedule.is_active.is_(True))
                .order_by(PromptSchedule.created_at)
            )
            schedules = [Schedule.model_validate(row_to_dict(r)) for r in rows.scalars().all()]
        return [s for s in schedules if is_due(s, now)]

    async def process_due(
        self,
        orchestrator,
        now: Optional[datetime] = None,
        force: bool = False,
        schedule_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Run every due schedule once.

        With `schedule_id` only that schedule is considered; `force` runs it
        even when it is not due yet (manual trigger).
        """
        now = now or utcnow()
        if schedule_id is not None:
            schedule = await self.get_schedule(schedule_id)
            candidates = [schedule] if force or is_due(schedule, now) else []
        else:
            candidates = await self.due_schedules(now)

        outcomes = []
        for schedule in candidates:
            models = schedule.models or None
            try:
                if schedule.prompt_id:
                    report = await orchestrator.run_single(
                        schedule.client_id,
                        schedule.prompt_id,
                        models=models,
                        include_enrichment=schedule.include_enrichment,
                    )
                else:
                    report = await orchestrator.run_adhoc(
                        schedule.client_id,
                        schedule.id,
                        schedule.name,
                        models=models,
                        include_enrichment=schedule.include_enrichment,
                    )
                outcome = {"schedule_id": schedule.id, **report.to_dict()}
            except NotFoundError as e:
                logger.warning(f"Schedule {schedule.id} points at a missing record: {e.message}")
                outcome = {"schedule_id": schedule.id, "status": "error", "error": e.message}
            except GeoTrackerError as e:
                logger.error(f"Schedule {schedule.id} run failed: {e.message}")
                outcome = {"schedule_id": schedule.id, "status": "error", "error": e.message}

            await self._save(mark_ran(schedule, now))
            outcomes.append(outcome)

        if outcomes:
            logger.info(f"Processed {len(outcomes)} due schedule(s)")
        return outcomes

    async def _save(self, schedule: Schedule) -> None:
        async with self.session_factory() as session:
            await session.merge(PromptSchedule(**_to_row_values(schedule)))
            await session.commit()
