"""
Schedule Routes
"""

from typing import List

from fastapi import APIRouter, Depends, Response, status

from geotracker.api.deps import TaskDispatcher, get_dispatcher, get_schedule_service, require_client
from geotracker.schemas import Client, Schedule, ScheduleCreate, TaskQueued
from geotracker.services import ScheduleService

router = APIRouter()


@router.get("/clients/{client_id}/schedules", response_model=List[Schedule])
async def list_schedules(
    client: Client = Depends(require_client),
    schedules: ScheduleService = Depends(get_schedule_service),
):
    return await schedules.list_schedules(client.id)


@router.post("/clients/{client_id}/schedules", response_model=Schedule, status_code=status.HTTP_201_CREATED)
async def create_schedule(
    data: ScheduleCreate,
    client: Client = Depends(require_client),
    schedules: ScheduleService = Depends(get_schedule_service),
):
    """Create a schedule; the first run is one interval from now"""
    return await schedules.create(client.id, data)


@router.post("/schedules/{schedule_id}/toggle", response_model=Schedule)
async def toggle_schedule(
    schedule_id: str,
    schedules: ScheduleService = Depends(get_schedule_service),
):
    return await schedules.toggle(schedule_id)


@router.delete("/schedules/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_schedule(
    schedule_id: str,
    schedules: ScheduleService = Depends(get_schedule_service),
):
    await schedules.delete(schedule_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/schedules/{schedule_id}/trigger", response_model=TaskQueued, status_code=status.HTTP_202_ACCEPTED)
async def trigger_schedule(
    schedule_id: str,
    schedules: ScheduleService = Depends(get_schedule_service),
    dispatcher: TaskDispatcher = Depends(get_dispatcher),
):
    """Run a schedule now, whether or not it is due"""
    await schedules.get_schedule(schedule_id)
    return TaskQueued(task_id=dispatcher.trigger_schedule(schedule_id))
