"""FastAPI application factory."""

import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Header, Request, status
from fastapi.responses import JSONResponse, StreamingResponse

from attendance_tracker.api.admin import router as admin_router
from attendance_tracker.api.payloads import (
    MarkAttendanceRequest,
    serialize_change,
    serialize_majors,
    serialize_overview,
    serialize_period,
    serialize_record,
    serialize_slot,
)
from attendance_tracker.app_logging import configure_logging
from attendance_tracker.config import parse_subject_list
from attendance_tracker.containers import AppContainer
from attendance_tracker.domain.errors import (
    InvalidDateError,
    InvalidStatusError,
    InvalidSubjectError,
    NotAuthenticatedError,
    TransactionConflictError,
)
from attendance_tracker.services.identity import require_user


async def current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """Return the identity supplied by the upstream auth proxy."""
    return require_user(x_user_id)


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await app.state.container.start_resources()
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.exception_handler(NotAuthenticatedError)
    async def not_authenticated(
        _request: Request, exc: NotAuthenticatedError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED, content={"detail": str(exc)}
        )

    @app.exception_handler(InvalidStatusError)
    @app.exception_handler(InvalidDateError)
    @app.exception_handler(InvalidSubjectError)
    async def invalid_input(_request: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"detail": str(exc)},
        )

    @app.exception_handler(TransactionConflictError)
    async def conflict(
        _request: Request, exc: TransactionConflictError
    ) -> JSONResponse:
        logger.warning("Attendance write failed after retries: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={
                "detail": "Attendance changed on another device. Please retry.",
            },
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.put("/attendance/{day}")
    async def mark_attendance(
        day: str,
        body: MarkAttendanceRequest,
        request: Request,
        user_id: str = Depends(current_user_id),
    ) -> dict[str, object]:
        """Mark or edit one subject's status for a day."""
        state_container: AppContainer = request.app.state.container
        change = await state_container.ledger_service.mark_or_edit_attendance(
            user_id, day, body.subject, body.status, body.remark
        )
        return serialize_change(change)

    @app.get("/attendance/{day}")
    async def get_attendance(
        day: str, request: Request, user_id: str = Depends(current_user_id)
    ) -> dict[str, object]:
        """Return the record for a day."""
        state_container: AppContainer = request.app.state.container
        record = state_container.stats_service.get_daily_record(user_id, day)
        return serialize_record(record)

    @app.get("/attendance/{day}/events")
    async def attendance_events(
        day: str, request: Request, user_id: str = Depends(current_user_id)
    ) -> StreamingResponse:
        """Stream full snapshots of a day's record as server-sent events."""
        state_container: AppContainer = request.app.state.container
        feed = state_container.live_service.watch(user_id, day)
        first = await anext(feed)

        async def events() -> AsyncIterator[str]:
            yield _sse(serialize_record(first))
            try:
                async for record in feed:
                    if await request.is_disconnected():
                        break
                    yield _sse(serialize_record(record))
            finally:
                await feed.aclose()

        return StreamingResponse(events(), media_type="text/event-stream")

    @app.get("/summary")
    async def summary(
        request: Request, user_id: str = Depends(current_user_id)
    ) -> dict[str, object]:
        """Return overall attendance including the imported baseline."""
        state_container: AppContainer = request.app.state.container
        overview = state_container.overview_service.get_overview(user_id)
        return serialize_overview(overview)

    @app.get("/stats/period")
    async def period_stats(
        start: str,
        end: str,
        request: Request,
        include_catalog: bool = False,
        user_id: str = Depends(current_user_id),
    ) -> dict[str, object]:
        """Return attendance recomputed from records in a date range."""
        state_container: AppContainer = request.app.state.container
        subjects = (
            state_container.catalog_service.subject_names(user_id)
            if include_catalog
            else None
        )
        stats = state_container.stats_service.compute_period_stats(
            user_id, start, end, subjects
        )
        return serialize_period(stats)

    @app.get("/stats/majors")
    async def major_stats(
        subjects: str,
        request: Request,
        start: str | None = None,
        end: str | None = None,
        user_id: str = Depends(current_user_id),
    ) -> dict[str, object]:
        """Return combined figures for selected major subjects."""
        state_container: AppContainer = request.app.state.container
        stats = state_container.overview_service.major_subjects(
            user_id, parse_subject_list(subjects), start, end
        )
        return serialize_majors(stats)

    @app.get("/schedule/{day}")
    async def day_schedule(
        day: str,
        request: Request,
        section: str | None = None,
        college_id: str | None = None,
        class_id: str | None = None,
        user_id: str = Depends(current_user_id),
    ) -> dict[str, object]:
        """Return the classes scheduled on a day for the user's section."""
        state_container: AppContainer = request.app.state.container
        slots = await state_container.schedule_service.get_day_schedule(
            user_id,
            day,
            section=section,
            college_id=college_id,
            class_id=class_id,
        )
        return {"date": day, "slots": [serialize_slot(slot) for slot in slots]}

    return app


def _sse(payload: dict[str, object]) -> str:
    return f"data: {json.dumps(payload)}\n\n"
