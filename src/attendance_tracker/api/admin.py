"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from attendance_tracker.api.payloads import serialize_reconciliation

if TYPE_CHECKING:
    from attendance_tracker.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.get("/users/{user_id}/reconciliation", dependencies=[Depends(require_admin)])
async def user_reconciliation(user_id: str, request: Request) -> dict[str, object]:
    """Compare a user's running summary with their full record history."""
    container: AppContainer = request.app.state.container
    report = container.reconciliation_service.check(user_id)
    return serialize_reconciliation(report)
