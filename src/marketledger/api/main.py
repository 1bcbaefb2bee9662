"""FastAPI backend over one in-process ledger engine."""

from __future__ import annotations

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from marketledger.api.schemas import (
    BalanceResponse,
    BetDetailResponse,
    BetStatusResponse,
    ClaimRequest,
    ClaimResponse,
    CreateMarketRequest,
    DepositRequest,
    ErrorResponse,
    EventsStatsResponse,
    HealthResponse,
    MarketResponse,
    MarketsListResponse,
    PlaceBetRequest,
    ResolveRequest,
    WithdrawRequest,
    WithdrawResponse,
)
from marketledger.config import configure_logging, get_settings
from marketledger.errors import LedgerError
from marketledger.ledger.engine import MarketLedgerEngine
from marketledger.replay.engine import replay_from_log
from marketledger.storage.db import get_connection, init_schema
from marketledger.storage.event_log import EventJournal, log_stats
from marketledger.storage.markets import save_snapshot
from marketledger.units import format_amount, parse_amount

log = structlog.get_logger(__name__)

# Set by run_api() before uvicorn imports the app.
_config_profile: str | None = None

_STATUS_BY_CODE = {
    "invalid_argument": 422,
    "not_found": 404,
    "invalid_state": 409,
    "unauthorized": 403,
    "already_exists": 409,
    "already_claimed": 409,
    "not_a_winner": 409,
    "transfer_failed": 502,
}

_ERROR_RESPONSES = {
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Tests inject a ready engine; otherwise rebuild from the journal and keep appending to it.
    conn = None
    if getattr(app.state, "engine", None) is None:
        settings = get_settings(_config_profile)
        configure_logging(settings)
        conn = get_connection(settings.db_path)
        init_schema(conn)
        engine = replay_from_log(conn, settings=settings, go_live=True)
        engine.subscribe(EventJournal(conn))
        app.state.engine = engine
        app.state.conn = conn
        log.info("api_ledger_loaded", markets=engine.get_total_markets(), db_path=settings.db_path)

    yield

    if conn is not None:
        try:
            save_snapshot(conn, app.state.engine)
        finally:
            conn.close()
            app.state.engine = None
            app.state.conn = None


def create_app(engine: MarketLedgerEngine | None = None) -> FastAPI:
    app = FastAPI(title="Market Ledger API", version="0.1.0", lifespan=lifespan)
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])
    app.state.engine = engine
    app.state.conn = None
    app.add_exception_handler(LedgerError, _ledger_error_handler)
    _register_routes(app)
    return app


def _error_json(code: str, message: str, status_code: int = 404) -> JSONResponse:
    """Return consistent error JSON: { detail, code }."""
    return JSONResponse(
        status_code=status_code,
        content={"detail": message, "code": code},
    )


async def _ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    status_code = _STATUS_BY_CODE.get(exc.code, status.HTTP_400_BAD_REQUEST)
    log.info("api_request_rejected", path=request.url.path, code=exc.code, detail=exc.message)
    return _error_json(exc.code, exc.message, status_code)


def _engine(request: Request) -> MarketLedgerEngine:
    return request.app.state.engine


def _register_routes(app: FastAPI) -> None:
    @app.get("/health", response_model=HealthResponse)
    def health(request: Request) -> HealthResponse:
        return HealthResponse(status="ok", markets=_engine(request).get_total_markets())

    @app.get("/markets", response_model=MarketsListResponse)
    def markets_list(
        request: Request,
        limit: int = Query(100, ge=1, le=500),
        offset: int = Query(0, ge=0),
    ) -> MarketsListResponse:
        """List markets in id order with limit/offset."""
        engine = _engine(request)
        now = engine.clock.now()
        all_markets = engine.list_markets()
        page = all_markets[offset : offset + limit]
        return MarketsListResponse(
            markets=[MarketResponse.from_market(m, now) for m in page],
            total=len(all_markets),
        )

    @app.post(
        "/markets",
        response_model=MarketResponse,
        status_code=status.HTTP_201_CREATED,
        responses=_ERROR_RESPONSES,
    )
    def market_create(body: CreateMarketRequest, request: Request) -> MarketResponse:
        engine = _engine(request)
        market_id = engine.create_market(body.question, body.duration, body.creator)
        return MarketResponse.from_market(engine.get_market(market_id), engine.clock.now())

    @app.get("/markets/{market_id}", response_model=MarketResponse, responses=_ERROR_RESPONSES)
    def market_detail(market_id: int, request: Request) -> MarketResponse:
        engine = _engine(request)
        return MarketResponse.from_market(engine.get_market(market_id), engine.clock.now())

    @app.post(
        "/markets/{market_id}/bets",
        response_model=BetStatusResponse,
        status_code=status.HTTP_201_CREATED,
        responses=_ERROR_RESPONSES,
    )
    def bet_place(market_id: int, body: PlaceBetRequest, request: Request) -> BetStatusResponse:
        engine = _engine(request)
        bet = engine.place_bet(market_id, body.prediction, parse_amount(body.amount), body.participant)
        return BetStatusResponse(market_id=market_id, participant=bet.participant, exists=True, claimed=bet.claimed)

    @app.get("/markets/{market_id}/bets/{participant}", response_model=BetStatusResponse)
    def bet_status(market_id: int, participant: str, request: Request) -> BetStatusResponse:
        """Public view: whether a bet exists and is claimed. Never 404s."""
        exists, claimed = _engine(request).get_bet(market_id, participant)
        return BetStatusResponse(market_id=market_id, participant=participant, exists=exists, claimed=claimed)

    @app.get(
        "/markets/{market_id}/bets/{participant}/details",
        response_model=BetDetailResponse,
        responses=_ERROR_RESPONSES,
    )
    def bet_details(market_id: int, participant: str, request: Request, viewer: str = Query(...)):
        """Private view of amount and side, for viewers the bet has been granted to."""
        bet = _engine(request).reveal_bet(market_id, participant, viewer)
        return BetDetailResponse(
            market_id=bet.market_id,
            participant=bet.participant,
            amount=format_amount(bet.amount),
            prediction=bet.prediction,
            placed_at=bet.placed_at,
            claimed=bet.claimed,
        )

    @app.post("/markets/{market_id}/resolve", response_model=MarketResponse, responses=_ERROR_RESPONSES)
    def market_resolve(market_id: int, body: ResolveRequest, request: Request) -> MarketResponse:
        engine = _engine(request)
        market = engine.resolve_market(market_id, body.outcome, body.caller)
        return MarketResponse.from_market(market, engine.clock.now())

    @app.post("/markets/{market_id}/claim", response_model=ClaimResponse, responses=_ERROR_RESPONSES)
    def market_claim(market_id: int, body: ClaimRequest, request: Request) -> ClaimResponse:
        instruction = _engine(request).claim_winnings(market_id, body.participant)
        return ClaimResponse(
            market_id=market_id,
            participant=instruction.recipient,
            payout=format_amount(instruction.amount),
        )

    @app.post(
        "/markets/{market_id}/emergency-withdraw",
        response_model=WithdrawResponse,
        responses=_ERROR_RESPONSES,
    )
    def market_emergency_withdraw(market_id: int, body: WithdrawRequest, request: Request) -> WithdrawResponse:
        amount = _engine(request).emergency_withdraw(market_id, body.caller)
        return WithdrawResponse(market_id=market_id, recipient=body.caller, amount=format_amount(amount))

    @app.post("/wallet/deposit", response_model=BalanceResponse, responses=_ERROR_RESPONSES)
    def wallet_deposit(body: DepositRequest, request: Request) -> BalanceResponse:
        balance = _engine(request).deposit(body.account, parse_amount(body.amount))
        return BalanceResponse(account=body.account, balance=format_amount(balance))

    @app.get("/wallet/{account}", response_model=BalanceResponse)
    def wallet_balance(account: str, request: Request) -> BalanceResponse:
        return BalanceResponse(account=account, balance=format_amount(_engine(request).balance_of(account)))

    @app.get("/events/stats", response_model=EventsStatsResponse, responses={404: {"model": ErrorResponse}})
    def events_stats(request: Request):
        """Event log stats. 404 when the API runs without a journal."""
        conn = request.app.state.conn
        if conn is None:
            return _error_json("no_journal", "API is running without an event journal")
        cursor = conn.cursor()
        try:
            s = log_stats(cursor)
        finally:
            cursor.close()
        return EventsStatsResponse(
            total_events=s["total_events"],
            min_ts=s["min_ts"],
            max_ts=s["max_ts"],
            by_type=s["by_type"],
        )


app = create_app()


def run_api(
    host: str = "127.0.0.1",
    port: int = 8000,
    profile: str | None = None,
) -> None:
    global _config_profile
    _config_profile = profile
    import uvicorn

    uvicorn.run("marketledger.api.main:app", host=host, port=port, reload=False)
