from __future__ import annotations

from typing import Callable, Optional

from fastapi import HTTPException, Request

from librarydesk.core.auth_service import LOADING_MESSAGE
from librarydesk.core.errors import PermissionDeniedError
from librarydesk.core.gate import AuthenticationGate, GateState
from librarydesk.core.identity.models import Role, User
from librarydesk.core.services import Services
from librarydesk.core.trace import resolve_trace_id


def require_view(services: Services, required_role: Optional[Role] = None) -> Callable[..., object]:
    """
    FastAPI dependency guarding a protected view.

    LOADING -> 503, REDIRECT -> 303 to the login path, ACCESS_DENIED -> 403,
    RENDER -> the authenticated User.
    """
    web_cfg = services.cfg.web
    gate = AuthenticationGate(required_role, fallback_path=web_cfg.login_path, denied_path=web_cfg.denied_path)

    async def dep(request: Request) -> User:
        # An expired session must not render between monitor polls.
        await services.auth.refresh_session()
        decision = gate.evaluate(services.auth.snapshot())

        if decision.state == GateState.LOADING:
            raise HTTPException(status_code=503, detail=LOADING_MESSAGE, headers={"Retry-After": "1"})
        if decision.state == GateState.ACCESS_DENIED:
            user = decision.user
            services.audit.log(
                trace_id=resolve_trace_id(getattr(request.state, "trace_id", None)),
                severity="WARN",
                event="web.access_denied",
                actor=user.username if user is not None else None,
                endpoint=request.url.path,
                outcome="denied",
                details={"required_role": required_role.value if required_role else None, "role": user.role.value if user else None},
            )
            raise PermissionDeniedError(str(decision.message), redirect_to=decision.redirect_to)
        if decision.state == GateState.REDIRECT or decision.user is None:
            location = decision.redirect_to or web_cfg.login_path
            raise HTTPException(status_code=303, detail="authentication required", headers={"Location": location})
        return decision.user

    return dep
