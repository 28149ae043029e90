"""Push channel endpoint — one websocket per dashboard, scoped to a form."""

from __future__ import annotations

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

router = APIRouter()


@router.websocket("/ws")
async def live(websocket: WebSocket, formId: str = "") -> None:  # noqa: N803
    """Hold the socket open and register it with the hub until it closes.

    Inbound messages are read and discarded; the socket is push-only.
    """
    await websocket.accept()
    if not formId:
        await websocket.send_json({"error": "missing formId"})
        await websocket.close()
        return

    hub = websocket.app.state.hub
    hub.subscribe(formId, websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        hub.unsubscribe(formId, websocket)
