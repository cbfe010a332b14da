# app/core/security.py
from fastapi import Depends, HTTPException, Query, status

from surveyhub.app.services.links import verify_token
from surveyhub.app.services.surveys import get_store
from surveyhub.db.store import SurveyStore


def require_owner(t: str = Query(...), store: SurveyStore = Depends(get_store)) -> str:
    """Resolve the signed owner token in `t` to a user id.

    Errors:
        401: The token is invalid, expired, not an owner token, or names an
            unknown user.
    """
    payload = verify_token(t)
    if not payload or payload.get("role") != "owner" or not payload.get("sub"):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    if store.get_user(payload["sub"]) is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    return payload["sub"]
