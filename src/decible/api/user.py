"""
Per-user routes.

    GET /api/user/history?limit=N                      - caller's generations, newest first
    GET /api/credits?history=true&limit=N&offset=M     - balance, tier and credit transactions

Authentication is resolved before the backend client, so an anonymous call
is answered with 401 without any backend access.
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from decible.api.auth import require_user
from decible.api.dependencies import get_credit_service, get_history_service
from decible.api.routes import error_response, internal_error_response, new_request_id
from decible.services.credits import CreditService
from decible.services.errors import DecibleError
from decible.services.history import HistoryService
from decible.services.models import UserIdentity

router = APIRouter()


@router.get("/api/user/history")
def history(
    limit: Optional[str] = None,
    user: UserIdentity = Depends(require_user),
    service: HistoryService = Depends(get_history_service),
):
    rid = new_request_id()
    try:
        items = service.list_for_user(user, limit)
        return {"history": [item.to_dict() for item in items]}
    except DecibleError as e:
        return error_response(e, rid)
    except Exception as e:
        return internal_error_response(rid, e)


@router.get("/api/credits")
def credits(
    history: Optional[str] = None,
    limit: Optional[str] = None,
    offset: Optional[str] = None,
    user: UserIdentity = Depends(require_user),
    service: CreditService = Depends(get_credit_service),
):
    """Only ``history=true`` adds transactions and pagination."""
    rid = new_request_id()
    try:
        balance = service.balance(user, include_history=history == "true", limit=limit, offset=offset)
        return balance.to_dict()
    except DecibleError as e:
        return error_response(e, rid)
    except Exception as e:
        return internal_error_response(rid, e)
