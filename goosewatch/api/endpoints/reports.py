import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from goosewatch.api.deps import get_store
from goosewatch.core.exceptions import NotFoundError, ValidationError
from goosewatch.schemas.report import CommentCreate, ReactionToggle, ReportResponse
from goosewatch.services import upload_service
from goosewatch.services.normalizer import validate_report_location
from goosewatch.storage import ReportStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["reports"])


@router.get("", response_model=list[ReportResponse])
async def list_reports(
    store: Annotated[ReportStore, Depends(get_store)],
    report_type: Annotated[str | None, Query(alias="type")] = None,
    viewer_id: Annotated[str | None, Query(alias="viewerId")] = None,
) -> list[ReportResponse]:
    """All live reports, newest first."""
    return await store.get_reports(report_type=report_type, viewer_id=viewer_id)


@router.get("/{report_id}", response_model=ReportResponse)
async def get_report(
    report_id: str,
    store: Annotated[ReportStore, Depends(get_store)],
    viewer_id: Annotated[str | None, Query(alias="viewerId")] = None,
) -> ReportResponse:
    report = await store.get_report_by_id(report_id, viewer_id=viewer_id)
    if report is None:
        raise NotFoundError("Report not found", resource="report")
    return report


@router.post("", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
async def create_report(
    store: Annotated[ReportStore, Depends(get_store)],
    report_type: Annotated[str | None, Form(alias="type")] = None,
    latitude: Annotated[str | None, Form()] = None,
    longitude: Annotated[str | None, Form()] = None,
    description: Annotated[str | None, Form()] = None,
    severity: Annotated[str | None, Form()] = None,
    user_id: Annotated[str | None, Form(alias="userId")] = None,
    user_name: Annotated[str | None, Form(alias="userName")] = None,
    image: Annotated[UploadFile | None, File()] = None,
) -> ReportResponse:
    """
    Submit a sighting.

    Multipart form with an optional `image` (JPEG, PNG, GIF or WebP, max 5MB).
    The location must fall inside the campus bounds.
    """
    validate_report_location(report_type, latitude, longitude, store.bounds)

    image_url = None
    if upload_service.has_upload(image):
        is_valid, error_msg = upload_service.validate_image_file(image)
        if not is_valid:
            raise ValidationError(error_msg, field="image")

        is_valid, error_msg = await upload_service.validate_image_file_size(image)
        if not is_valid:
            raise ValidationError(error_msg, field="image")

        image_url = await upload_service.save_report_image(image)

    report = await store.create_report({
        "type": report_type,
        "latitude": latitude,
        "longitude": longitude,
        "description": description,
        "severity": severity,
        "image_url": image_url,
        "author_id": user_id,
        "author_name": user_name,
    })

    logger.info(
        "New report submitted: %s (%s) at %.4f, %.4f",
        report.id,
        report.type.value,
        report.latitude,
        report.longitude,
    )
    return report


@router.post(
    "/{report_id}/comments",
    response_model=ReportResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    report_id: str,
    comment_data: CommentCreate,
    store: Annotated[ReportStore, Depends(get_store)],
) -> ReportResponse:
    return await store.add_comment(report_id, comment_data.model_dump())


@router.post("/{report_id}/reactions", response_model=ReportResponse)
async def toggle_reaction(
    report_id: str,
    reaction_data: ReactionToggle,
    store: Annotated[ReportStore, Depends(get_store)],
) -> ReportResponse:
    """Like/upvote a report, or take the reaction back if already given."""
    return await store.toggle_reaction(
        report_id,
        reaction_data.user_id,
        reaction_data.reaction_type,
    )
