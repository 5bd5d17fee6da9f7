"""HTTP basic-auth guard for /admin routes (static credential pair, not real auth)."""
import logging
import secrets

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from phxradio.api.state import AppState, get_state
from phxradio.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

_basic = HTTPBasic(realm="PHX02 Radio Admin", auto_error=False)


def require_admin(
    credentials: HTTPBasicCredentials | None = Depends(_basic),
    state: AppState = Depends(get_state),
) -> str:
    """Dependency: 401 with a WWW-Authenticate challenge unless the pair matches."""
    if not state.admin_password:
        raise ConfigurationError("ADMIN_PASSWORD is not configured")
    if credentials is not None:
        user_ok = secrets.compare_digest(
            credentials.username.encode("utf-8"), state.admin_username.encode("utf-8")
        )
        pass_ok = secrets.compare_digest(
            credentials.password.encode("utf-8"), state.admin_password.encode("utf-8")
        )
        if user_ok and pass_ok:
            return credentials.username
        logger.warning("Rejected admin credentials for user %r", credentials.username)
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Admin authentication required",
        headers={"WWW-Authenticate": 'Basic realm="PHX02 Radio Admin"'},
    )
