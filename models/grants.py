"""Grant records queued for delivery to a character's client."""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Literal, Union
from uuid import uuid4

from pydantic import Field

from models.base import CamelModel


class GrantKind(str, Enum):
    """Kinds of asynchronous award a game master can issue."""
    LEVEL_UP = "level-up"
    SPREN = "spren"
    EXPERTISE = "expertise"
    ITEM = "item"

    @property
    def event_type(self) -> str:
        """Name of the push event announcing a grant of this kind."""
        return f"{self.value}-granted"


class GrantQueueState(str, Enum):
    """Delivery state of one (character, kind) queue."""
    EMPTY = "empty"
    PENDING = "pending"                 # Has grants, head not yet sent
    DELIVERED = "delivered"             # Head sent, awaiting acknowledgement


def _new_grant_id() -> str:
    return uuid4().hex


def _now() -> datetime:
    return datetime.now(timezone.utc)


class GrantBase(CamelModel):
    """Fields shared by every grant kind."""
    grant_id: str = Field(default_factory=_new_grant_id)
    character_id: str
    granted_by: str = "GM"
    timestamp: datetime = Field(default_factory=_now)


class LevelUpGrant(GrantBase):
    kind: Literal["level-up"] = "level-up"
    new_level: int = Field(ge=1)


class SprenGrant(GrantBase):
    kind: Literal["spren"] = "spren"
    order: str                          # Radiant order, e.g. "Windrunner"
    spren_type: str | None = None       # e.g. "Honorspren"
    surge_pair: list[str] = []
    philosophy: str | None = None


class ExpertiseGrant(GrantBase):
    kind: Literal["expertise"] = "expertise"
    expertise_name: str


class ItemGrant(GrantBase):
    kind: Literal["item"] = "item"
    item_id: str
    quantity: int = Field(default=1, ge=1)


Grant = Annotated[
    Union[LevelUpGrant, SprenGrant, ExpertiseGrant, ItemGrant],
    Field(discriminator="kind"),
]
