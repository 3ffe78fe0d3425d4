"""
FastAPI server for the live auction.

Exposes the mutation surface (create auction, place bid, settle) and the
observation surface (entity lookups, activity feed, dashboard metrics and a
Server-Sent Events stream per auction).
"""

import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse

from .. import config
from .api_serializers import (
    ActivityResponse,
    AuctionResponse,
    CreateAuctionRequest,
    DashboardMetricsResponse,
    EligibleBidder,
    MutationResponse,
    PlaceBidRequest,
    PlayerResponse,
    TeamPurseSummary,
    TeamResponse,
    error_detail,
    serialize_activity,
    serialize_auction,
    serialize_player,
    serialize_result,
    serialize_team,
)
from .dashboard import eligible_bidders, filter_players, get_dashboard_metrics, team_purse_summary
from .models import NotificationKind, PlayerRole, PlayerStatus
from .notifications import format_sse, snapshot_for
from .results import EngineResult, ErrorCategory
from .session import AuctionSession

logger = logging.getLogger(__name__)

STATUS_BY_CATEGORY = {
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.INVALID_STATE: 409,
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.CONTENTION: 429,
}


def _raise_for(result: EngineResult) -> None:
    """Convert a failed engine result to an HTTPException."""
    if result.success:
        return
    headers = None
    if result.error.category == ErrorCategory.CONTENTION:
        headers = {'Retry-After': '1'}
    raise HTTPException(
        status_code=STATUS_BY_CATEGORY[result.error.category],
        detail=error_detail(result),
        headers=headers,
    )


def create_app(session: Optional[AuctionSession] = None, start_driver: bool = True) -> FastAPI:
    """
    Build the API around an explicitly constructed auction session.

    Args:
        session: Session to serve (a freshly seeded one if None)
        start_driver: Run the countdown driver for the app's lifetime

    Returns:
        Configured FastAPI application
    """
    session = session or AuctionSession()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Auction API server started")
        if start_driver:
            session.start()
        yield
        logger.info("Auction API server shutting down")
        if start_driver:
            session.stop()

    app = FastAPI(
        title=config.API_TITLE,
        description="Live player auction with sealed countdown timers",
        version=config.API_VERSION,
        lifespan=lifespan,
    )
    app.state.session = session

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    store = session.store

    # ===== Teams =====

    @app.get("/teams", response_model=List[TeamResponse])
    def list_teams():
        return [serialize_team(t) for t in store.list_teams()]

    @app.get("/teams/summary", response_model=List[TeamPurseSummary])
    def get_team_summary():
        """Purse and roster summary per team, richest first."""
        df = team_purse_summary(store)
        return [TeamPurseSummary(**row) for row in df.to_dict('records')]

    @app.get("/teams/{team_id}", response_model=TeamResponse)
    def get_team(team_id: str):
        team = store.get_team(team_id)
        if team is None:
            raise HTTPException(status_code=404, detail=f"Team {team_id} not found")
        return serialize_team(team)

    # ===== Players =====

    @app.get("/players", response_model=List[PlayerResponse])
    def list_players(
        role: Optional[PlayerRole] = Query(None, description="Filter by role"),
        status: Optional[PlayerStatus] = Query(None, description="Filter by status"),
        min_price: Optional[float] = Query(None, ge=0, description="Minimum base price"),
        max_price: Optional[float] = Query(None, gt=0, description="Maximum base price"),
        search: Optional[str] = Query(None, description="Fuzzy name search"),
    ):
        players = filter_players(
            store,
            role=role,
            status=status,
            min_price=min_price,
            max_price=max_price,
            search=search,
        )
        return [serialize_player(p) for p in players]

    @app.get("/players/{player_id}", response_model=PlayerResponse)
    def get_player(player_id: str):
        player = store.get_player(player_id)
        if player is None:
            raise HTTPException(status_code=404, detail=f"Player {player_id} not found")
        return serialize_player(player)

    # ===== Auctions =====

    @app.get("/auctions", response_model=List[AuctionResponse])
    def list_auctions(live_only: bool = Query(False, description="Only live auctions")):
        auctions = store.list_live_auctions() if live_only else store.list_auctions()
        now = session.clock()
        return [serialize_auction(a, now) for a in auctions]

    @app.post("/auctions", response_model=MutationResponse, status_code=201)
    def create_auction(request: CreateAuctionRequest):
        """
        Open a live auction for an unsold player.

        Raises:
            404 Not Found: Unknown player
            409 Conflict: Player is live or already sold
        """
        result = session.controller.create_auction(
            request.player_id, timer_duration=request.timer_duration
        )
        _raise_for(result)
        return serialize_result(result, "Auction created successfully", session.clock())

    @app.get("/auctions/{auction_id}", response_model=AuctionResponse)
    def get_auction(auction_id: str):
        auction = store.get_auction(auction_id)
        if auction is None:
            raise HTTPException(status_code=404, detail=f"Auction {auction_id} not found")
        return serialize_auction(auction, session.clock())

    @app.get("/auctions/{auction_id}/bidders", response_model=List[EligibleBidder])
    def get_eligible_bidders(auction_id: str):
        """Teams that can still top the current bid."""
        auction = store.get_auction(auction_id)
        if auction is None:
            raise HTTPException(status_code=404, detail=f"Auction {auction_id} not found")
        return [EligibleBidder(**b) for b in eligible_bidders(store, auction)]

    @app.post("/auctions/{auction_id}/bids", response_model=MutationResponse)
    def place_bid(auction_id: str, request: PlaceBidRequest):
        """
        Place a bid.

        Raises:
            400 Bad Request: Bid too low, insufficient purse or full roster
            404 Not Found: Unknown auction or team
            409 Conflict: Auction no longer live
            429 Too Many Requests: Another bid on this auction is in progress
        """
        result = session.engine.place_bid(auction_id, request.team_id, request.amount)
        _raise_for(result)
        return serialize_result(result, "Bid placed successfully", session.clock())

    @app.post("/auctions/{auction_id}/settle", response_model=MutationResponse)
    def settle_auction(auction_id: str):
        """
        Close an auction now, selling to the leading bidder if any.

        Raises:
            404 Not Found: Unknown auction
            409 Conflict: Auction already completed
        """
        result = session.controller.close_auction(auction_id)
        _raise_for(result)
        player = store.get_player(result.auction.player_id)
        if player.status == PlayerStatus.SOLD:
            message = "Player sold successfully"
        else:
            message = "Player marked as unsold"
        return serialize_result(result, message, session.clock())

    @app.get("/auctions/{auction_id}/events")
    def stream_auction_events(auction_id: str):
        """
        Server-Sent Events stream of one auction's updates.

        Sends the current state and reconstructed countdown first, then every
        auction_update / timer_update until auction_end.
        """
        auction = store.get_auction(auction_id)
        if auction is None:
            raise HTTPException(status_code=404, detail=f"Auction {auction_id} not found")

        subscription = session.channel.subscribe(auction_id)
        initial = snapshot_for(auction, session.clock())

        def event_stream():
            try:
                for notification in initial:
                    yield format_sse(notification)
                if initial[-1].kind == NotificationKind.AUCTION_END:
                    return
                for notification in session.channel.stream(subscription):
                    if notification is None:
                        yield ": keep-alive\n\n"
                    else:
                        yield format_sse(notification)
            finally:
                session.channel.unsubscribe(subscription)

        return StreamingResponse(
            event_stream(),
            media_type="text/event-stream",
            headers={
                'Cache-Control': 'no-cache, no-transform',
                'Connection': 'keep-alive',
                'X-Accel-Buffering': 'no',
            },
        )

    # ===== Activity & dashboard =====

    @app.get("/activities", response_model=List[ActivityResponse])
    def list_activities(
        limit: int = Query(config.RECENT_ACTIVITY_LIMIT, ge=1, le=config.ACTIVITY_LOG_CAPACITY)
    ):
        return [serialize_activity(a) for a in store.recent_activities(limit)]

    @app.get("/dashboard/metrics", response_model=DashboardMetricsResponse)
    def get_metrics():
        return DashboardMetricsResponse(**get_dashboard_metrics(store))

    @app.get("/health")
    def health_check():
        """Simple health check endpoint."""
        return {
            "status": "ok",
            "service": config.API_TITLE,
            "version": config.API_VERSION,
            "live_auctions": len(store.list_live_auctions()),
            "countdown_running": session.driver.running,
        }

    return app
