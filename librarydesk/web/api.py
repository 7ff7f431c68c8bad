from __future__ import annotations

import contextlib
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from librarydesk.core.auth_service import MISSING_CREDENTIALS_MESSAGE, SESSION_STORAGE_MESSAGE
from librarydesk.core.errors import (
    HTTP_STATUS_BY_CODE,
    InvalidCredentialsError,
    LibraryError,
    SessionStorageError,
    ValidationError,
)
from librarydesk.core.identity.models import Role, User
from librarydesk.core.logger import get_logger
from librarydesk.core.members.models import MemberForm, MemberUpdate
from librarydesk.core.permissions.models import PermissionSet
from librarydesk.core.services import Services
from librarydesk.core.session.monitor import MonitorState
from librarydesk.core.session.store import format_session_time
from librarydesk.web.gate import require_view
from librarydesk.web.middleware import TraceMiddleware
from librarydesk.web.models import (
    LoginRequest,
    LoginResponse,
    MemberListResponse,
    OkResponse,
    RoleChangeRequest,
    SessionInfoResponse,
    UserListResponse,
)


def _error_body(exc: LibraryError) -> Dict[str, Any]:
    body: Dict[str, Any] = {"detail": exc.user_message, "code": exc.code}
    errors = (exc.context or {}).get("errors")
    if errors:
        body["errors"] = errors
    return body


def create_app(services: Services, *, logger=None) -> FastAPI:  # noqa: ANN001
    """
    View host for one local browser context: the process holds a single
    session slot, so every request acts as the same signed-in user.
    """
    logger = logger or get_logger("web")

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if services.auth.is_loading:
            await services.auth.initialize()
        try:
            yield
        finally:
            services.shutdown()

    app = FastAPI(title="LibraryDesk", version="0.1.0", lifespan=lifespan)
    app.middleware("http")(TraceMiddleware(event_logger=services.event_logger, logger=logger))

    staff_view = require_view(services, Role.librarian)
    admin_view = require_view(services, Role.admin)

    @app.exception_handler(LibraryError)
    async def library_error_handler(request: Request, exc: LibraryError):
        code = HTTP_STATUS_BY_CODE.get(exc.code, 500)
        if code >= 500:
            logger.error(f"{exc.code}: {exc.user_message}")
        return JSONResponse(status_code=code, content=_error_body(exc))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"detail": "Invalid request.", "code": "validation_error"})

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    # ---- auth ----
    @app.post("/auth/login", response_model=LoginResponse)
    async def login(req: LoginRequest):
        result = await services.auth.login(req.username, req.password, remember_me=req.remember_me)
        if not result.success:
            if result.error == MISSING_CREDENTIALS_MESSAGE:
                raise ValidationError(result.error)
            if result.error == SESSION_STORAGE_MESSAGE:
                raise SessionStorageError()
            raise InvalidCredentialsError()
        return LoginResponse(success=True, user=result.user)

    @app.post("/auth/logout", response_model=OkResponse)
    async def logout():
        await services.auth.logout()
        return OkResponse(ok=True)

    @app.get("/auth/session", response_model=SessionInfoResponse)
    async def session_info():
        await services.auth.refresh_session()
        snap = services.auth.snapshot()
        session = services.monitor.session
        remaining = services.monitor.remaining_time()
        return SessionInfoResponse(
            authenticated=snap.is_authenticated,
            user=snap.user,
            remember_me=bool(session.remember_me) if session is not None else False,
            expires_at=session.expires_at if session is not None else None,
            remaining_seconds=remaining,
            remaining_text=format_session_time(remaining),
            expiring=services.monitor.state == MonitorState.AUTHENTICATED_EXPIRING,
            session_expired=snap.session_expired,
            last_logout_reason=snap.last_logout_reason,
            error=services.auth.error,
        )

    @app.get("/permissions", response_model=PermissionSet)
    async def permissions():
        await services.auth.refresh_session()
        return services.resolver.permissions_for(services.auth.user)

    # ---- members (librarian or admin) ----
    @app.get("/members", response_model=MemberListResponse)
    async def list_members(user: User = Depends(staff_view)):
        return MemberListResponse(members=[m.model_dump(mode="json") for m in services.members.list_members(user)])

    @app.post("/members", status_code=201)
    async def create_member(form: MemberForm, user: User = Depends(staff_view)):
        return services.members.create_member(user, form).model_dump(mode="json")

    @app.patch("/members/{member_id}")
    async def update_member(member_id: str, changes: MemberUpdate, user: User = Depends(staff_view)):
        return services.members.update_member(user, member_id, changes).model_dump(mode="json")

    @app.patch("/members/{member_id}/status")
    async def toggle_status(member_id: str, user: User = Depends(staff_view)):
        return services.members.toggle_status(user, member_id).model_dump(mode="json")

    @app.delete("/members/{member_id}", response_model=OkResponse)
    async def delete_member(member_id: str, user: User = Depends(staff_view)):
        services.members.delete_member(user, member_id)
        return OkResponse(ok=True)

    # ---- admin ----
    @app.get("/admin/users", response_model=UserListResponse)
    async def list_users(user: User = Depends(admin_view)):
        return UserListResponse(users=services.directory.list_accounts())

    @app.patch("/members/{member_id}/role")
    async def change_role(member_id: str, req: RoleChangeRequest, user: User = Depends(admin_view)):
        return services.members.change_role(user, member_id, req.role).model_dump(mode="json")

    @app.get("/admin/audit")
    async def audit_tail(n: Optional[int] = 50, user: User = Depends(admin_view)):
        return {"events": services.audit.recent(n or 50)}

    return app
