from typing import Dict, Set

from fastapi import WebSocket

COMMUNITY_ROOM = "community"


class ConnectionManager:
    def __init__(self) -> None:
        self.active_connections: Dict[str, Set[WebSocket]] = {}
        self.rooms: Dict[str, Set[WebSocket]] = {}

    async def connect(self, websocket: WebSocket, user_id: str) -> None:
        await websocket.accept()
        self.active_connections.setdefault(user_id, set()).add(websocket)

    def disconnect(self, websocket: WebSocket, user_id: str) -> None:
        if user_id in self.active_connections:
            self.active_connections[user_id].discard(websocket)
            if not self.active_connections[user_id]:
                del self.active_connections[user_id]
        for room in list(self.rooms):
            self.rooms[room].discard(websocket)
            if not self.rooms[room]:
                del self.rooms[room]

    def join(self, websocket: WebSocket, room: str = COMMUNITY_ROOM) -> None:
        self.rooms.setdefault(room, set()).add(websocket)

    async def send_to_user(self, user_id: str, message: dict) -> None:
        for connection in list(self.active_connections.get(user_id, set())):
            await connection.send_json(message)

    async def broadcast_room(self, message: dict, room: str = COMMUNITY_ROOM) -> None:
        for connection in list(self.rooms.get(room, set())):
            await connection.send_json(message)


manager = ConnectionManager()
