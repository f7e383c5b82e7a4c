import json
import logging
from datetime import datetime
from typing import Optional
from fastapi import FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, Response

from . import __version__
from .core.config import CORS_ORIGINS, LOG_LEVEL
from .core.security import decode_user_id
from .db import Base, SessionLocal, engine
from .middleware import RateLimitMiddleware
from .middleware.rate_limit import add_cors_headers
from .models import ChatMessage, User
from .routes import chat, game_lists, games, recommendations, steam
from .services.catalog_store import StoreError
from .services.registry import build_services
from .services.steam_client import SteamUpstreamError
from .websocket import manager

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="GameHub API", version=__version__)
app.state.services = build_services()


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    response = JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )
    return add_cors_headers(response, request)


@app.exception_handler(SteamUpstreamError)
async def steam_upstream_error_handler(request: Request, exc: SteamUpstreamError):
    logger.warning(f"Steam upstream failure on {request.url.path}: {exc}")
    response = JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": str(exc)},
    )
    return add_cors_headers(response, request)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.error(f"Store failure on {request.url.path}: {exc}")
    response = JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )
    return add_cors_headers(response, request)


# Middleware runs in reverse order of addition: RateLimit -> CORS -> GZip
app.add_middleware(RateLimitMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(GZipMiddleware, minimum_size=1000)


@app.on_event("startup")
def on_startup() -> None:
    Base.metadata.create_all(bind=engine)
    logger.info("GameHub API started")


@app.on_event("shutdown")
def on_shutdown() -> None:
    app.state.services.client.close()


@app.get("/health")
def health_check():
    return {"status": "ok", "version": __version__}


@app.head("/health")
def health_check_head():
    return Response(status_code=200)


app.include_router(steam.router, prefix="/steam", tags=["steam"])
app.include_router(games.router, prefix="/games", tags=["games"])
app.include_router(recommendations.router, tags=["recommendations"])
app.include_router(game_lists.router, prefix="/me/games", tags=["lists"])
app.include_router(chat.router, prefix="/users", tags=["chat"])


def _save_direct_message(sender_id: str, recipient_id: str, body: str):
    with SessionLocal() as db:
        if db.query(User).filter(User.id == recipient_id).first() is None:
            return None
        message = ChatMessage(sender_id=sender_id, recipient_id=recipient_id, body=body)
        db.add(message)
        db.commit()
        db.refresh(message)
        return {
            "id": message.id,
            "sender_id": message.sender_id,
            "recipient_id": message.recipient_id,
            "body": message.body,
            "created_at": message.created_at.isoformat(),
        }


def _decode_frame(raw: str) -> Optional[dict]:
    try:
        data = json.loads(raw)
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, token: str):
    user_id = decode_user_id(token)
    if not user_id:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await manager.connect(websocket, user_id)
    try:
        while True:
            data = _decode_frame(await websocket.receive_text())
            if data is None:
                await websocket.send_json({"type": "error", "detail": "Frame must be a JSON object"})
                continue
            event = data.get("type")
            if event == "heartbeat":
                await websocket.send_json({"type": "pong"})
            elif event == "join_community":
                manager.join(websocket)
                await websocket.send_json({"type": "joined", "room": "community"})
            elif event == "community_message":
                text = data.get("text")
                if text:
                    await manager.broadcast_room(
                        {
                            "type": "community_message",
                            "from": user_id,
                            "text": text,
                            "created_at": datetime.utcnow().isoformat(),
                        }
                    )
            elif event == "direct_message":
                to_id = data.get("to_id")
                text = data.get("text")
                if not isinstance(to_id, str) or not isinstance(text, str) or not to_id or not text:
                    continue
                message = _save_direct_message(user_id, to_id, text)
                if message is None:
                    await websocket.send_json({"type": "error", "detail": "Recipient not found"})
                    continue
                payload = {"type": "direct_message", "message": message}
                await manager.send_to_user(to_id, payload)
                if to_id != user_id:
                    await manager.send_to_user(user_id, payload)
    except WebSocketDisconnect:
        logger.debug(f"WebSocket closed for user {user_id}")
    finally:
        manager.disconnect(websocket, user_id)
