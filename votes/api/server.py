"""
Vote Tally API Server
=====================

HTTP surface over one VoteService.

Endpoints:
- GET    /health            -> Service status
- GET    /api/v1/results    -> Tally rows, totals and scale maximum
- GET    /api/v1/votes      -> Current deduplicated snapshot
- GET    /api/v1/export     -> Snapshot as a downloadable text table
- POST   /api/v1/votes      -> Record a vote
- POST   /api/v1/import     -> Merge a text table (raw request body)
- POST   /api/v1/refresh    -> Pull from the remote endpoint
- DELETE /api/v1/votes      -> Clear local votes

Usage:
    uvicorn votes.api.server:app --reload
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from ..log import get_logger
from ..service import VoteService, create_service

logger = get_logger("votes.api")

EXPORT_FILENAME = "autonomy-demo.csv"


class VoteSubmission(BaseModel):
    variant: str
    choice: str
    user_agent: Optional[str] = None


def create_app(service: Optional[VoteService] = None) -> FastAPI:
    """
    Build the API app.

    Without an explicit service, one is created on startup from config and
    environment, with the local store loaded.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, 'service', None) is None:
            app.state.service = create_service()
            logger.info(f"Vote service initialized at {app.state.service.settings.store_dir}")
        yield
        logger.info("Shutting down vote service.")

    app = FastAPI(
        title="Vote Tally API",
        version="0.1.0",
        description="Reconciled vote counts across local, remote and imported sources",
        lifespan=lifespan
    )
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )

    def _service() -> VoteService:
        current = getattr(app.state, 'service', None)
        if current is None:
            raise HTTPException(status_code=503, detail="Service not initialized")
        return current

    # =========================================================================
    # ENDPOINTS
    # =========================================================================

    @app.get("/health")
    async def health_check():
        return {"status": "online", **_service().get_stats()}

    @app.get("/api/v1/results")
    async def get_results():
        """Tally in render-table form."""
        table = _service().tally()
        return {
            "rows": [row.to_dict() for row in table.rows()],
            "totals": {variant.value: n for variant, n in table.totals.items()},
            "max_count": table.max_count
        }

    @app.get("/api/v1/votes")
    async def get_votes():
        votes = _service().votes
        return {"count": len(votes), "votes": [vote.to_record() for vote in votes]}

    @app.get("/api/v1/export")
    async def export_votes():
        return PlainTextResponse(
            _service().export(),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'}
        )

    @app.post("/api/v1/votes", status_code=201)
    async def submit_vote(submission: VoteSubmission, request: Request):
        user_agent = submission.user_agent
        if user_agent is None:
            user_agent = request.headers.get("user-agent", "")
        try:
            backup = _service().submit(submission.variant, submission.choice, user_agent)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))
        return {"status": "recorded", "backup": backup}

    @app.post("/api/v1/import")
    async def import_table(request: Request):
        """Merge a text table sent as the raw request body."""
        body = await request.body()
        text = body.decode('utf-8-sig', errors='replace')
        added = _service().import_texts([text])
        return {"added": added, "count": len(_service().votes)}

    @app.post("/api/v1/refresh")
    async def refresh():
        result = await _service().refresh_remote_async()
        return result.to_dict()

    @app.delete("/api/v1/votes")
    async def clear_votes():
        _service().clear()
        return {"status": "cleared"}

    return app


app = create_app()
