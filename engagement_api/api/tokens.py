"""Admin endpoints for tracking tokens and links."""

import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException

from ..config import settings
from ..core import (
    LinkResolver,
    RevocationService,
    StorageError,
    TokenCodec,
    TokenError,
    TokenVerifier,
)
from ..models import (
    LinkRegisterRequest,
    LinkResponse,
    PruneResponse,
    RevocationResult,
    RevokeResponse,
    SubjectRevokeRequest,
    TokenIssueRequest,
    TokenIssueResponse,
    TokenRequest,
    TrackedLink,
    VerificationResult,
)
from ..telemetry import TelemetryEvents, track_event
from .deps import get_codec, get_link_resolver, get_revocations, get_verifier

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


def _tracking_url(path: str, **params: str) -> str:
    return f"{settings.tracking_base_url.rstrip('/')}{path}?{urlencode(params)}"


@router.post(
    "/tokens",
    response_model=TokenIssueResponse,
    status_code=201,
    summary="Issue a tracking token",
    description="""
Issue a signed tracking token for one newsletter recipient.

The token is registered so that revoking all tokens of the subject can find
it later. Destination URLs passed in `links` are registered for click
tracking and returned wrapped in `/track/click` URLs.
""",
)
async def issue_token(
    issue_request: TokenIssueRequest,
    codec: TokenCodec = Depends(get_codec),
    revocations: RevocationService = Depends(get_revocations),
    links: LinkResolver = Depends(get_link_resolver),
) -> TokenIssueResponse:
    """Issue a token with its pixel and click-tracking URLs."""
    token = codec.encode(
        issue_request.subject,
        issue_request.context,
        ttl=issue_request.ttl_seconds,
    )
    if not await revocations.register(token):
        raise HTTPException(status_code=503, detail="Revocation storage unavailable")

    tracked_links = []
    try:
        for url in issue_request.links:
            link_id = await links.register(url)
            tracked_links.append(
                TrackedLink(
                    original=url,
                    tracking=_tracking_url("/track/click", t=token, to=link_id),
                )
            )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StorageError as e:
        logger.error(f"Failed to register tracked links: {e}")
        raise HTTPException(status_code=503, detail="Link storage unavailable")

    payload = codec.decode(token)
    logger.info(f"Issued tracking token for subject {payload.subject}")
    track_event(
        TelemetryEvents.TOKEN_ISSUED,
        {"subject": payload.subject, "link_count": len(tracked_links)},
    )

    return TokenIssueResponse(
        token=token,
        expires_at=payload.expires_at,
        pixel_url=_tracking_url("/track/open", t=token),
        links=tracked_links,
    )


@router.post("/tokens/verify", response_model=VerificationResult)
async def verify_token(
    token_request: TokenRequest,
    verifier: TokenVerifier = Depends(get_verifier),
) -> VerificationResult:
    """Verify a token and report why it was rejected."""
    return await verifier.verify(token_request.token)


@router.post("/tokens/revoke", response_model=RevokeResponse)
async def revoke_token(
    token_request: TokenRequest,
    revocations: RevocationService = Depends(get_revocations),
) -> RevokeResponse:
    """Revoke a single token; revoking twice succeeds both times."""
    try:
        revoked = await revocations.revoke(token_request.token)
    except TokenError as e:
        raise HTTPException(status_code=400, detail=f"Cannot revoke token: {e}")

    if not revoked:
        raise HTTPException(status_code=503, detail="Revocation storage unavailable")
    return RevokeResponse(revoked=True)


@router.post("/tokens/revoke-subject", response_model=RevocationResult)
async def revoke_subject(
    revoke_request: SubjectRevokeRequest,
    revocations: RevocationService = Depends(get_revocations),
) -> RevocationResult:
    """Revoke every known, unexpired token of a subject."""
    result = await revocations.revoke_all_for_subject(revoke_request.subject)
    if result.error:
        raise HTTPException(status_code=503, detail=result.error)
    return result


@router.post("/tokens/prune", response_model=PruneResponse)
async def prune_revocations(
    revocations: RevocationService = Depends(get_revocations),
) -> PruneResponse:
    """Delete revocation rows of tokens that have expired."""
    try:
        pruned = await revocations.prune()
    except StorageError as e:
        logger.error(f"Revocation prune failed: {e}")
        raise HTTPException(status_code=503, detail="Revocation storage unavailable")

    logger.info(f"Pruned {pruned} expired revocation rows")
    return PruneResponse(pruned=pruned)


@router.post("/links", response_model=LinkResponse, status_code=201)
async def register_link(
    link_request: LinkRegisterRequest,
    links: LinkResolver = Depends(get_link_resolver),
) -> LinkResponse:
    """Register a destination URL for click tracking."""
    try:
        link_id = await links.register(link_request.url)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StorageError as e:
        logger.error(f"Failed to register link: {e}")
        raise HTTPException(status_code=503, detail="Link storage unavailable")

    return LinkResponse(link_id=link_id, url=link_request.url)
