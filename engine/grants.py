"""At-least-once delivery of game-master grants to connected clients.

Each (character, grant kind) pair has its own FIFO queue. Only the head of
a queue is ever in flight: it is sent to the character's connected client
and stays at the head until the client acknowledges it. A reconnecting
client is sent the head again, so a flaky client may see a grant twice but
never sees grants out of order or loses one. Queues for different kinds
are independent.

All mutations go through :class:`GrantDeliveryRegistry` and are expected
to run on a single event loop thread.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Any, Protocol

from models.grants import (
    Grant,
    GrantKind,
    GrantQueueState,
    LevelUpGrant,
    SprenGrant,
)

logger = logging.getLogger("stormsheet.grants")


class ClientHandle(Protocol):
    """A connected client that can be handed push events.

    ``deliver`` must not block; sending happens fire-and-forget.
    """

    def deliver(self, message: dict[str, Any]) -> None: ...


class GrantQueue:
    """Pending grants of one kind, per character, in delivery order."""

    def __init__(self, kind: GrantKind) -> None:
        self.kind = kind
        self._queues: dict[str, deque[Grant]] = {}
        self._in_flight: set[str] = set()

    def append(self, character_id: str, grant: Grant) -> None:
        self._queues.setdefault(character_id, deque()).append(grant)

    def head(self, character_id: str) -> Grant | None:
        queue = self._queues.get(character_id)
        return queue[0] if queue else None

    def pop(self, character_id: str) -> Grant | None:
        """Remove and return the head. Clears the in-flight mark."""
        self._in_flight.discard(character_id)
        queue = self._queues.get(character_id)
        return queue.popleft() if queue else None

    def pending(self, character_id: str) -> list[Grant]:
        return list(self._queues.get(character_id, ()))

    def is_in_flight(self, character_id: str) -> bool:
        return character_id in self._in_flight

    def mark_in_flight(self, character_id: str) -> None:
        self._in_flight.add(character_id)

    def clear_in_flight(self, character_id: str) -> None:
        self._in_flight.discard(character_id)

    def state(self, character_id: str) -> GrantQueueState:
        if not self._queues.get(character_id):
            return GrantQueueState.EMPTY
        if character_id in self._in_flight:
            return GrantQueueState.DELIVERED
        return GrantQueueState.PENDING


class GrantDeliveryRegistry:
    """Owns every pending-grant queue and the connected-client map.

    Create one per process and share it between the game-master surface
    and the push channel.
    """

    def __init__(self) -> None:
        self._queues: dict[GrantKind, GrantQueue] = {
            kind: GrantQueue(kind) for kind in GrantKind
        }
        self._clients: dict[str, ClientHandle] = {}
        self._confirmed_levels: dict[str, int] = {}
        self._confirmed_spren: dict[str, SprenGrant] = {}
        self._confirmed_expertise: dict[str, set[str]] = {}

    # --- events ---

    def enqueue(self, character_id: str, grant: Grant) -> bool:
        """Queue a grant behind any older ones of the same kind.

        If the character's client is connected and nothing of this kind is
        awaiting acknowledgement, the head is sent right away. The head may
        be an older grant; the new one never jumps the queue.

        Args:
            character_id: Character receiving the grant.
            grant: The grant; its ``character_id`` must match.

        Returns:
            True if a delivery was sent as a result of this call.

        Raises:
            ValueError: If the grant belongs to a different character.
        """
        if grant.character_id != character_id:
            raise ValueError(
                f"Grant is for '{grant.character_id}', not '{character_id}'"
            )
        kind = GrantKind(grant.kind)
        queue = self._queues[kind]
        queue.append(character_id, grant)
        logger.info(
            f"Queued {kind.value} grant {grant.grant_id} for {character_id} "
            f"({len(queue.pending(character_id))} pending)"
        )
        if queue.is_in_flight(character_id):
            return False
        return self._deliver_head(character_id, kind)

    def on_client_connected(self, character_id: str, client: ClientHandle) -> int:
        """Record the character's client and (re)send every pending head.

        A head that was sent to a previous connection but never acknowledged
        is sent again.

        Returns:
            Number of grants delivered.
        """
        self._clients[character_id] = client
        logger.info(f"Client connected for {character_id}")
        delivered = 0
        for kind, queue in self._queues.items():
            queue.clear_in_flight(character_id)
            if self._deliver_head(character_id, kind):
                delivered += 1
        return delivered

    def on_client_disconnected(
        self,
        character_id: str,
        client: ClientHandle | None = None,
    ) -> None:
        """Forget the character's client. Queued grants are kept.

        If ``client`` is given and a newer connection has since replaced it,
        the newer connection is left in place.
        """
        current = self._clients.get(character_id)
        if current is None:
            return
        if client is not None and current is not client:
            logger.debug(f"Ignoring stale disconnect for {character_id}")
            return
        del self._clients[character_id]
        for queue in self._queues.values():
            queue.clear_in_flight(character_id)
        logger.info(f"Client disconnected for {character_id}")

    def on_acknowledge(
        self,
        character_id: str,
        kind: GrantKind,
        grant_id: str | None = None,
    ) -> Grant | None:
        """Remove the head grant of a kind and send the next one.

        Args:
            character_id: Character acknowledging.
            kind: Which queue the acknowledgement is for.
            grant_id: If given, the ack only applies when it matches the
                head; a late ack for an older grant is ignored.

        Returns:
            The acknowledged grant, or None if nothing was removed.
        """
        kind = GrantKind(kind)
        queue = self._queues[kind]
        head = queue.head(character_id)
        if head is None:
            return None
        if grant_id is not None and head.grant_id != grant_id:
            logger.info(
                f"Ignoring {kind.value} ack for {character_id}: "
                f"{grant_id} is not the head ({head.grant_id})"
            )
            return None

        queue.pop(character_id)
        self._confirm(head)
        logger.info(f"Acknowledged {kind.value} grant {head.grant_id} for {character_id}")
        self._deliver_head(character_id, kind)
        return head

    def resync_level(self, character_id: str, client_level: int) -> list[LevelUpGrant]:
        """Queue level-ups a client missed, based on the last confirmed level.

        When the server has confirmed a higher level than the client
        reports, one level-up per missing level is queued in ascending
        order. Levels already pending are not queued twice.

        Returns:
            The newly queued grants.

        Raises:
            ValueError: If ``client_level`` is below 1.
        """
        if client_level < 1:
            raise ValueError(f"Client level must be at least 1, got {client_level}")
        confirmed = self._confirmed_levels.get(character_id)
        if confirmed is None or confirmed <= client_level:
            return []

        already_pending = {
            g.new_level for g in self._queues[GrantKind.LEVEL_UP].pending(character_id)
        }
        queued = []
        for level in range(client_level + 1, confirmed + 1):
            if level in already_pending:
                continue
            grant = LevelUpGrant(character_id=character_id, new_level=level, granted_by="RESYNC")
            self.enqueue(character_id, grant)
            queued.append(grant)
        logger.info(
            f"Resynced {character_id} from level {client_level} to {confirmed}: "
            f"{len(queued)} level-ups queued"
        )
        return queued

    # --- inspection ---

    def is_connected(self, character_id: str) -> bool:
        return character_id in self._clients

    def pending(self, character_id: str, kind: GrantKind) -> list[Grant]:
        """Copy of the character's queue for a kind, oldest first."""
        return self._queues[GrantKind(kind)].pending(character_id)

    def state(self, character_id: str, kind: GrantKind) -> GrantQueueState:
        return self._queues[GrantKind(kind)].state(character_id)

    def confirmed_level(self, character_id: str) -> int | None:
        return self._confirmed_levels.get(character_id)

    def confirmed_spren(self, character_id: str) -> SprenGrant | None:
        return self._confirmed_spren.get(character_id)

    def confirmed_expertise(self, character_id: str) -> set[str]:
        return set(self._confirmed_expertise.get(character_id, ()))

    # --- internals ---

    def _deliver_head(self, character_id: str, kind: GrantKind) -> bool:
        client = self._clients.get(character_id)
        queue = self._queues[kind]
        head = queue.head(character_id)
        if client is None or head is None:
            return False
        client.deliver({"type": kind.event_type, "grant": head.to_json()})
        queue.mark_in_flight(character_id)
        logger.info(f"Delivered {kind.value} grant {head.grant_id} to {character_id}")
        return True

    def _confirm(self, grant: Grant) -> None:
        cid = grant.character_id
        if grant.kind == GrantKind.LEVEL_UP:
            self._confirmed_levels[cid] = max(self._confirmed_levels.get(cid, 0), grant.new_level)
        elif grant.kind == GrantKind.SPREN:
            self._confirmed_spren[cid] = grant
        elif grant.kind == GrantKind.EXPERTISE:
            self._confirmed_expertise.setdefault(cid, set()).add(grant.expertise_name)
