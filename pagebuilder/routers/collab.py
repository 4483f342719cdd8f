import logging

from fastapi import APIRouter, Depends, Query, Request, WebSocket, WebSocketDisconnect

from pagebuilder.deps import get_room_registry
from pagebuilder.errors import InvalidRequestError
from pagebuilder.schemas import BroadcastResponse
from pagebuilder.security import require_internal_api_token
from pagebuilder.services.collab import RoomRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/collab", tags=["collab"])


@router.websocket("")
async def collab_socket(
    websocket: WebSocket,
    site: str = Query(min_length=1),
    page: str = Query(min_length=1),
    user: str | None = None,
    rooms: RoomRegistry = Depends(get_room_registry),
) -> None:
    await websocket.accept()
    room = rooms.room_for(site, page)
    await room.attach(websocket, user)
    try:
        while True:
            raw = await websocket.receive_text()
            await room.relay_from(websocket, raw)
    except WebSocketDisconnect:
        pass
    finally:
        await room.detach(websocket)
        rooms.release(site, page)


@router.post(
    "/broadcast",
    response_model=BroadcastResponse,
    dependencies=[Depends(require_internal_api_token)],
)
async def broadcast(
    request: Request,
    site: str = Query(min_length=1),
    page: str = Query(min_length=1),
    rooms: RoomRegistry = Depends(get_room_registry),
) -> BroadcastResponse:
    try:
        raw = (await request.body()).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InvalidRequestError(message="Broadcast body must be UTF-8 text") from exc
    delivered = await rooms.broadcast(site, page, raw)
    logger.info("Room broadcast relayed", extra={"site": site, "page": page, "delivered": delivered})
    return BroadcastResponse(delivered=delivered)
