from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

logger = logging.getLogger(__name__)

COLLAB_COLORS = (
    "#6366f1",
    "#ec4899",
    "#f59e0b",
    "#10b981",
    "#3b82f6",
    "#8b5cf6",
    "#ef4444",
    "#14b8a6",
    "#f97316",
    "#06b6d4",
)
REMOTE_SAVE_TYPE = "bloxx:remote-save"


class RoomSocket(Protocol):
    async def send_text(self, data: str) -> None: ...


@dataclass(frozen=True)
class RoomMember:
    name: str
    color: str


class CollabRoom:
    """
    Live editors of one ``(site, page)``.

    The roster is owned by the room and only changes through attach, detach and failed sends.
    Colors are handed out round-robin and never reused while the room lives.
    """

    def __init__(self, site: str, page: str) -> None:
        self.site = site
        self.page = page
        self._members: dict[RoomSocket, RoomMember] = {}
        self._next_color = 0

    @property
    def is_empty(self) -> bool:
        return not self._members

    def __len__(self) -> int:
        return len(self._members)

    def roster(self) -> list[dict[str, str]]:
        return [{"name": member.name, "color": member.color} for member in self._members.values()]

    def _roster_message(self) -> str:
        return json.dumps({"type": "users", "users": self.roster()})

    async def attach(self, socket: RoomSocket, user_name: Optional[str] = None) -> RoomMember:
        member = RoomMember(
            name=(user_name or "").strip() or f"User {len(self._members) + 1}",
            color=COLLAB_COLORS[self._next_color % len(COLLAB_COLORS)],
        )
        self._next_color += 1
        self._members[socket] = member
        logger.info(
            "Editor joined",
            extra={"site": self.site, "page": self.page, "user": member.name, "members": len(self._members)},
        )

        # Snapshot for the joiner first, then the roster change for everyone.
        await self._send(socket, self._roster_message())
        await self._fan_out(self._roster_message(), exclude=None)
        return member

    async def detach(self, socket: RoomSocket) -> None:
        member = self._members.pop(socket, None)
        if member is None:
            return
        logger.info(
            "Editor left",
            extra={"site": self.site, "page": self.page, "user": member.name, "members": len(self._members)},
        )
        await self._fan_out(self._roster_message(), exclude=None)

    async def relay_from(self, socket: RoomSocket, raw: str) -> int:
        """Stamp a client event with its sender and forward it to everyone else. Malformed input is dropped."""
        member = self._members.get(socket)
        if member is None:
            return 0
        try:
            message = json.loads(raw)
        except ValueError:
            return 0
        if not isinstance(message, dict):
            return 0
        message["user"] = member.name
        message["color"] = member.color
        return await self._fan_out(json.dumps(message), exclude=socket)

    async def broadcast(self, raw: str) -> int:
        return await self._fan_out(raw, exclude=None)

    async def _send(self, socket: RoomSocket, data: str) -> bool:
        try:
            await socket.send_text(data)
        except Exception as exc:  # noqa: BLE001
            logger.info(
                "Dropping unreachable editor socket",
                extra={"site": self.site, "page": self.page, "reason": str(exc)},
            )
            self._members.pop(socket, None)
            return False
        return True

    async def _fan_out(self, data: str, *, exclude: Optional[RoomSocket]) -> int:
        delivered = 0
        dropped = False
        for socket in list(self._members):
            if socket is exclude:
                continue
            if await self._send(socket, data):
                delivered += 1
            else:
                dropped = True
        if dropped and self._members:
            await self._fan_out(self._roster_message(), exclude=None)
        return delivered


class RoomRegistry:
    """One room per ``(site, page)``; a room disappears as soon as its last editor leaves."""

    def __init__(self) -> None:
        self._rooms: dict[tuple[str, str], CollabRoom] = {}

    def room_for(self, site: str, page: str) -> CollabRoom:
        key = (site, page)
        room = self._rooms.get(key)
        if room is None:
            room = CollabRoom(site, page)
            self._rooms[key] = room
        return room

    def get(self, site: str, page: str) -> Optional[CollabRoom]:
        return self._rooms.get((site, page))

    def release(self, site: str, page: str) -> None:
        room = self._rooms.get((site, page))
        if room is not None and room.is_empty:
            del self._rooms[(site, page)]

    async def broadcast(self, site: str, page: str, raw: str) -> int:
        room = self._rooms.get((site, page))
        if room is None:
            return 0
        delivered = await room.broadcast(raw)
        self.release(site, page)
        return delivered

    def __len__(self) -> int:
        return len(self._rooms)


def remote_save_message(*, site: str, page: str, version_tag: str) -> dict[str, Any]:
    return {"type": REMOTE_SAVE_TYPE, "site": site, "page": page, "versionTag": version_tag}


room_registry = RoomRegistry()
