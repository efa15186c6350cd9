"""Game-master grant issuing, grant inspection, and acknowledgement endpoints.

Handlers are ``async`` so every queue mutation runs on the event loop,
alongside the websocket channel that delivers grants.
"""

from fastapi import APIRouter, Request
from pydantic import Field, RootModel

from engine.grants import GrantDeliveryRegistry
from models.base import CamelModel
from models.grants import Grant, GrantKind

router = APIRouter()


class GrantBody(RootModel[Grant]):
    """A grant of any kind; ``kind`` picks the payload shape."""


class GrantIssued(CamelModel):
    """Response after queueing a grant."""
    success: bool = True
    grant: Grant
    pending: int                        # Queue length for this kind, including the new grant
    delivered: bool                     # Whether a push was sent as a result


class AckRequest(CamelModel):
    """Optional acknowledgement body; ``grant_id`` pins the ack to one grant."""
    grant_id: str | None = None


class AckResponse(CamelModel):
    success: bool = True
    acknowledged: Grant | None = None
    remaining: int


class ResyncRequest(CamelModel):
    level: int = Field(ge=1)            # Level the client currently shows


class ResyncResponse(CamelModel):
    success: bool = True
    queued: list[Grant]


def _get_registry(request: Request) -> GrantDeliveryRegistry:
    """Get the process-wide grant registry from app state."""
    return request.app.state.grants


@router.post("/gm/grants", response_model=GrantIssued)
async def issue_grant(body: GrantBody, request: Request) -> GrantIssued:
    """Queue a grant for a character and push it if their client is connected."""
    grant = body.root
    registry = _get_registry(request)
    delivered = registry.enqueue(grant.character_id, grant)
    return GrantIssued(
        grant=grant,
        pending=len(registry.pending(grant.character_id, GrantKind(grant.kind))),
        delivered=delivered,
    )


@router.get("/characters/{character_id}/grants")
async def get_grants(character_id: str, request: Request) -> dict:
    """Pending queues, their delivery states, and confirmed records."""
    registry = _get_registry(request)
    spren = registry.confirmed_spren(character_id)
    return {
        "characterId": character_id,
        "connected": registry.is_connected(character_id),
        "queues": {
            kind.value: {
                "state": registry.state(character_id, kind).value,
                "pending": [g.to_json() for g in registry.pending(character_id, kind)],
            }
            for kind in GrantKind
        },
        "confirmed": {
            "level": registry.confirmed_level(character_id),
            "spren": spren.to_json() if spren else None,
            "expertises": sorted(registry.confirmed_expertise(character_id)),
        },
    }


@router.post("/characters/{character_id}/grants/resync", response_model=ResyncResponse)
async def resync_levels(
    character_id: str,
    body: ResyncRequest,
    request: Request,
) -> ResyncResponse:
    """Queue any level-ups the client missed since its reported level."""
    queued = _get_registry(request).resync_level(character_id, body.level)
    return ResyncResponse(queued=queued)


@router.post("/characters/{character_id}/grants/{kind}/ack", response_model=AckResponse)
async def acknowledge_grant(
    character_id: str,
    kind: GrantKind,
    request: Request,
    body: AckRequest | None = None,
) -> AckResponse:
    """Acknowledge the head grant of a kind; the next one is pushed if connected."""
    registry = _get_registry(request)
    grant_id = body.grant_id if body else None
    acknowledged = registry.on_acknowledge(character_id, kind, grant_id=grant_id)
    return AckResponse(
        acknowledged=acknowledged,
        remaining=len(registry.pending(character_id, kind)),
    )
