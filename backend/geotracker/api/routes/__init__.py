"""
API Routes
"""

from fastapi import APIRouter

from .clients import router as clients_router
from .prompts import router as prompts_router
from .audits import router as audits_router
from .analytics import router as analytics_router
from .campaigns import router as campaigns_router
from .schedules import router as schedules_router
from .export import router as export_router

api_router = APIRouter()

api_router.include_router(clients_router, prefix="/clients", tags=["Clients"])
api_router.include_router(prompts_router, prefix="/clients/{client_id}/prompts", tags=["Prompts"])
api_router.include_router(audits_router, prefix="/clients/{client_id}/audits", tags=["Audits"])
api_router.include_router(analytics_router, prefix="/clients/{client_id}", tags=["Analytics"])
api_router.include_router(campaigns_router, tags=["Campaigns"])
api_router.include_router(schedules_router, tags=["Schedules"])
api_router.include_router(export_router, prefix="/clients/{client_id}/export", tags=["Export"])
