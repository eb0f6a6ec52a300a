"""Contribution review routes: threaded listing, review actions and revisions."""

from __future__ import annotations

import uuid
from datetime import datetime  # noqa: TC003
from typing import Annotated, Any

import pydantic
from fastapi import APIRouter, Depends, File, Form, Request, UploadFile

from contribution_review.auth.middleware import (
    REVIEW_PERMISSION,
    has_permission,
    require_donor,
    require_reviewer,
)
from contribution_review.errors import NotFoundError, ValidationError
from contribution_review.events.contracts import CONTRIBUTION_UPDATED
from contribution_review.models.approval import ReviewStatus  # noqa: TC001
from contribution_review.models.contribution import Contribution  # noqa: TC001
from contribution_review.models.query import ContributionFilters
from contribution_review.review.revision import RevisionRequest
from contribution_review.review.taxonomy import all_reasons
from contribution_review.services.contributions import (
    contribution_payload,
    list_threaded,
    listing_payload,
)
from contribution_review.storage.evidence import EvidenceFile, file_too_large

router = APIRouter(tags=["contributions"])

Reviewer = Annotated[dict[str, Any], Depends(require_reviewer)]
Donor = Annotated[dict[str, Any], Depends(require_donor)]

CHANNEL_SESSION_KEY = "channel_id"


class RejectBody(pydantic.BaseModel):
    reason: str | None = None
    admin_comment: str | None = None


class ApproveBody(pydantic.BaseModel):
    admin_comment: str | None = None


class AcknowledgeBody(pydantic.BaseModel):
    donor_reply: str | None = None


def channel_id(request: Request) -> str:
    """Return this session's notification channel id, creating it on first use."""
    value = request.session.get(CHANNEL_SESSION_KEY)
    if not value:
        value = uuid.uuid4().hex
        request.session[CHANNEL_SESSION_KEY] = value
    return value


def _currency(request: Request) -> str:
    return request.app.state.settings.review.currency


async def _load(request: Request, contribution_id: str) -> Contribution:
    contribution = await request.app.state.store.get_contribution(contribution_id)
    if contribution is None:
        raise NotFoundError(contribution_id)
    return contribution


async def _load_owned(request: Request, contribution_id: str, user: dict[str, Any]) -> Contribution:
    """Load a contribution the donor owns. Reviewers may act on any."""
    contribution = await _load(request, contribution_id)
    if has_permission(user, REVIEW_PERMISSION) or contribution.donor_id == user.get("id"):
        return contribution
    raise NotFoundError(contribution_id)


async def _read_evidence(proof: UploadFile, max_bytes: int) -> EvidenceFile:
    """Read the upload, refusing it once it exceeds ``max_bytes``."""
    if proof.size is not None and proof.size > max_bytes:
        raise file_too_large(max_bytes)
    data = await proof.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise file_too_large(max_bytes)
    return EvidenceFile(
        filename=proof.filename or "",
        content_type=proof.content_type or "application/octet-stream",
        data=data,
    )


async def _updated(request: Request, contribution_id: str) -> dict[str, Any]:
    """Reload the authoritative entity, tell this session's views and return it."""
    contribution = await _load(request, contribution_id)
    payload = contribution_payload(contribution, currency=_currency(request))
    await request.app.state.channels.publish(channel_id(request), CONTRIBUTION_UPDATED, payload)
    return payload


@router.get("/contributions")
async def list_contributions(
    request: Request,
    user: Reviewer,
    status: ReviewStatus | None = None,
    search: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    page: int = 1,
    limit: int | None = None,
) -> dict[str, Any]:
    """Return one page of contributions grouped into revision threads."""
    try:
        filters = ContributionFilters(
            status=status,
            search=search,
            date_from=date_from,
            date_to=date_to,
            page=page,
            limit=limit or request.app.state.settings.review.page_size,
        )
    except pydantic.ValidationError as exc:
        raise ValidationError(
            {".".join(str(p) for p in err["loc"]): err["msg"] for err in exc.errors()}
        ) from exc
    threaded, result = await list_threaded(request.app.state.store, filters)
    return listing_payload(threaded, result, currency=_currency(request))


@router.get("/contributions/{contribution_id}")
async def get_contribution(request: Request, contribution_id: str, user: Donor) -> dict[str, Any]:
    contribution = await _load_owned(request, contribution_id, user)
    return contribution_payload(contribution, currency=_currency(request))


@router.post("/contributions/{contribution_id}/approve")
async def approve_contribution(
    request: Request,
    contribution_id: str,
    user: Reviewer,
    body: ApproveBody | None = None,
) -> dict[str, Any]:
    await request.app.state.state_machine.approve(
        contribution_id,
        admin_id=user.get("id"),
        admin_comment=body.admin_comment if body else None,
    )
    return await _updated(request, contribution_id)


@router.post("/contributions/{contribution_id}/reject")
async def reject_contribution(
    request: Request,
    contribution_id: str,
    body: RejectBody,
    user: Reviewer,
) -> dict[str, Any]:
    await request.app.state.state_machine.reject(
        contribution_id,
        body.reason,
        body.admin_comment,
        admin_id=user.get("id"),
    )
    return await _updated(request, contribution_id)


@router.post("/contributions/{contribution_id}/acknowledge")
async def acknowledge_rejection(
    request: Request,
    contribution_id: str,
    user: Donor,
    body: AcknowledgeBody | None = None,
) -> dict[str, Any]:
    await _load_owned(request, contribution_id, user)
    await request.app.state.state_machine.acknowledge(
        contribution_id,
        donor_reply=body.donor_reply if body else None,
    )
    return await _updated(request, contribution_id)


@router.post("/contributions/{contribution_id}/revise", status_code=201)
async def revise_contribution(
    request: Request,
    contribution_id: str,
    user: Donor,
    amount: Annotated[str | None, Form()] = None,
    payment_method: Annotated[str | None, Form()] = None,
    explanation: Annotated[str | None, Form()] = None,
    message: Annotated[str | None, Form()] = None,
    anonymous: Annotated[bool, Form()] = False,
    proof: Annotated[UploadFile | None, File()] = None,
) -> dict[str, Any]:
    """Submit a corrected contribution in place of a rejected one."""
    await _load_owned(request, contribution_id, user)
    evidence = None
    if proof is not None and proof.filename:
        evidence = await _read_evidence(proof, request.app.state.settings.review.max_evidence_bytes)
    created = await request.app.state.pipeline.submit(
        contribution_id,
        RevisionRequest(
            amount=amount,
            payment_method=payment_method,
            explanation=explanation,
            message=message,
            anonymous=anonymous,
            evidence=evidence,
        ),
    )
    return await _updated(request, created.id)


@router.get("/rejection-reasons")
async def rejection_reasons() -> list[dict[str, Any]]:
    """List the rejection taxonomy for reviewer forms."""
    return [
        {
            "key": info.reason.value,
            "label": info.label,
            "guidance": info.guidance,
            "requires_specific_comment": info.requires_specific_comment,
        }
        for info in all_reasons()
    ]
