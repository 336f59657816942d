"""
Activities API Router

Endpoints for browsing the activity catalog and completing subtopics.

Endpoints:
- GET /api/activities - List activities with subtopics
- GET /api/activities/{activity_id} - One activity with completion flags
- POST /api/activities/subtopics/{subtopic_id}/complete - Mark a subtopic complete
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from studyhub.db.base import get_db
from studyhub.dependencies import CurrentUserId
from studyhub.middleware.error_handling import handle_endpoint_errors
from studyhub.models.catalog import (
    ActivityDetail,
    CatalogActivity,
    SubtopicCompletionResponse,
)
from studyhub.services.catalog_service import CatalogService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/activities", tags=["activities"])


async def get_catalog_service(db: AsyncSession = Depends(get_db)) -> CatalogService:
    """Get catalog service."""
    return CatalogService(db)


@router.get("", response_model=list[CatalogActivity])
@handle_endpoint_errors("List activities")
async def list_activities(
    service: CatalogService = Depends(get_catalog_service),
) -> list[CatalogActivity]:
    """List every activity with its subtopics in order."""
    return await service.list_activities()


@router.get("/{activity_id}", response_model=ActivityDetail)
@handle_endpoint_errors("Get activity")
async def get_activity(
    activity_id: int,
    user_id: int = CurrentUserId,
    service: CatalogService = Depends(get_catalog_service),
) -> ActivityDetail:
    """Get one activity with the caller's completion status per subtopic."""
    return await service.get_activity(activity_id, user_id)


@router.post(
    "/subtopics/{subtopic_id}/complete", response_model=SubtopicCompletionResponse
)
@handle_endpoint_errors("Complete subtopic")
async def complete_subtopic(
    subtopic_id: int,
    user_id: int = CurrentUserId,
    service: CatalogService = Depends(get_catalog_service),
) -> SubtopicCompletionResponse:
    """Mark a subtopic complete and return the activity's progress percent."""
    return await service.complete_subtopic(user_id, subtopic_id)
