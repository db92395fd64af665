"""
FastAPI server for the live auction.

Provides HTTP endpoints for player submission, snapshot polling and result
export, plus the /ws WebSocket that auctioneer, team and audience clients use.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Query, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from .api_serializers import (
    EnqueuePlayerRequest,
    EnqueuePlayerResponse,
    PendingPlayersResponse,
    QueuedPlayer,
)
from .connection_manager import ConnectionManager
from .context import AuctionContext
from .errors import AuctionError, ValidationError
from .results_export import export_csv, export_json, team_summary

logger = logging.getLogger(__name__)


def create_app(context: Optional[AuctionContext] = None) -> FastAPI:
    """
    Build the FastAPI application around an auction context.

    Args:
        context: Auction to serve (default: built from live_auction.config)

    Returns:
        FastAPI app; the context is available as app.state.context
    """
    context = context or AuctionContext.from_config()
    manager = ConnectionManager()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        manager.start(asyncio.get_running_loop())
        subscription = context.coordinator.subscribe(manager.publish_threadsafe)
        context.start()
        logger.info("Live auction API server started")
        try:
            yield
        finally:
            logger.info("Live auction API server shutting down")
            context.coordinator.unsubscribe(subscription)
            context.shutdown()
            await manager.stop()

    app = FastAPI(
        title="Live Auction API",
        description="Real-time multi-team player auction",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.context = context
    app.state.connections = manager

    # CORS middleware for web UI access
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ===== API Endpoints =====

    @app.get("/health")
    def health_check():
        """Simple health check endpoint."""
        return {"ok": True, "service": "Live Auction API", "version": "1.0.0"}

    @app.post("/api/players", response_model=EnqueuePlayerResponse)
    def enqueue_player(request: EnqueuePlayerRequest):
        """
        Submit a player to the back of the auction queue.

        Raises:
            400 Bad Request: Empty name or out-of-range base price
        """
        try:
            position = context.engine.enqueue_player(request.name, request.base_price)
            return EnqueuePlayerResponse(
                queued=QueuedPlayer(name=request.name.strip(), position=position)
            )

        except AuctionError as e:
            logger.warning(f"Rejected player submission: {e.message}")
            raise HTTPException(status_code=400, detail=e.message)

        except Exception as e:
            logger.error(f"Failed to enqueue player: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail=f"Failed to enqueue player: {e}")

    @app.get("/api/players/pending", response_model=PendingPlayersResponse)
    def get_pending_players():
        """List queued players, front first (bounded)."""
        return PendingPlayersResponse(
            pending=context.engine.pending_players(context.pending_list_limit)
        )

    @app.get("/api/state")
    def get_state():
        """Pull the current public snapshot (for polling clients)."""
        return context.engine.get_snapshot()

    @app.get("/api/export")
    def export_results(format: str = Query('json', description="json, csv or teams")):
        """
        Export auction results.

        Returns:
            JSON history and team balances, results CSV, or a per-team CSV summary

        Raises:
            400 Bad Request: Unknown format
        """
        fmt = (format or 'json').lower()
        snapshot = context.engine.get_snapshot()

        if fmt == 'json':
            return export_json(snapshot)

        if fmt == 'csv':
            return Response(
                content=export_csv(snapshot),
                media_type='text/csv; charset=utf-8',
                headers={'Content-Disposition': 'attachment; filename="auction_results.csv"'}
            )

        if fmt == 'teams':
            return Response(
                content=team_summary(snapshot).to_csv(index=False),
                media_type='text/csv; charset=utf-8',
                headers={'Content-Disposition': 'attachment; filename="auction_teams.csv"'}
            )

        raise HTTPException(status_code=400, detail=f"Unknown export format: {format}")

    # ===== WebSocket =====

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """Session channel: login, auctioneer actions, bids and team actions."""
        await manager.connect(websocket)
        session = context.authority.open_session()

        try:
            await manager.send(websocket, {'type': 'hello', 'payload': {'message': 'connected'}})
            while True:
                message = await websocket.receive()
                if message['type'] == 'websocket.disconnect':
                    break

                raw = message.get('text')
                if raw is None:
                    # Binary frames carry UTF-8 JSON
                    try:
                        raw = (message.get('bytes') or b'').decode('utf-8')
                    except UnicodeDecodeError:
                        await manager.send(websocket, ValidationError('Invalid JSON').to_dict())
                        continue

                for reply in context.handler.handle_raw(session, raw):
                    await manager.send(websocket, reply)

        except WebSocketDisconnect:
            logger.debug(f"Session {session.session_id} disconnected")

        finally:
            manager.disconnect(websocket)

    return app
