"""Superadmin account lifecycle actions.

None of these actions span a transaction across the store and the identity
directory. If the identity call fails after the profile write succeeded,
the profile change stays applied and the caller sees an InternalError.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from .config import DEFAULT_PLAN, PLAN_LIMITS, ServiceConfig
from .errors import (
    ConflictError,
    ForbiddenError,
    InternalError,
    MapLeadsError,
    ValidationError,
)
from .models import (
    LEADS,
    PROFILES,
    SEARCHES,
    SUBSCRIPTIONS,
    DocumentStore,
    Identity,
    IdentityDirectory,
    UserSummary,
)
from .persistence import delete_owned_documents, now_iso, timestamp_to_iso
from .validation import clamp_limit, require_string

DEFAULT_LIST_LIMIT = 200
MAX_LIST_LIMIT = 1000

ACTIONS = ("list_users", "set_plan", "suspend_user", "restore_user", "delete_user")


def require_superadmin(requester: Identity, config: ServiceConfig) -> Identity:
    if (requester.email or "").lower() != config.superadmin_email.lower():
        raise ForbiddenError("Forbidden")
    return requester


def _or_default(value: Any, default: Any) -> Any:
    return default if value is None else value


def _summarize(doc_id: str, data: Mapping[str, Any]) -> UserSummary:
    return UserSummary(
        id=doc_id,
        email=data.get("email") or "",
        full_name=data.get("full_name"),
        plan=data.get("plan") or DEFAULT_PLAN,
        leads_used=_or_default(data.get("leads_used"), 0),
        leads_limit=_or_default(data.get("leads_limit"), PLAN_LIMITS[DEFAULT_PLAN]),
        is_suspended=bool(data.get("is_suspended", False)),
        suspended_at=data.get("suspended_at"),
        created_at=timestamp_to_iso(data.get("created_at")),
        updated_at=timestamp_to_iso(data.get("updated_at")),
    )


def list_users(
    store: DocumentStore, query: str | None = None, limit: Any = DEFAULT_LIST_LIMIT
) -> list[UserSummary]:
    """Newest profiles first, optionally filtered on email or full name."""
    page_size = clamp_limit(limit, default=DEFAULT_LIST_LIMIT, minimum=1, maximum=MAX_LIST_LIMIT)
    needle = (query or "").strip().lower()
    documents = store.query(PROFILES, order_by="created_at", descending=True, limit=page_size)
    users = [_summarize(document.id, document.data) for document in documents]
    if not needle:
        return users
    return [
        user
        for user in users
        if needle in user.email.lower() or needle in (user.full_name or "").lower()
    ]


def set_plan(store: DocumentStore, user_id: str, plan: Any, *, logger: logging.Logger) -> None:
    """Move an account to a plan and reset its limit to the plan ceiling."""
    if not isinstance(plan, str) or plan not in PLAN_LIMITS:
        raise ValidationError("Valid plan is required")
    now = now_iso()
    store.set(
        PROFILES,
        user_id,
        {"plan": plan, "leads_limit": PLAN_LIMITS[plan], "updated_at": now},
        merge=True,
    )
    store.set(
        SUBSCRIPTIONS,
        user_id,
        {"user_id": user_id, "plan": plan, "status": "active", "created_at": now, "updated_at": now},
        merge=True,
    )
    logger.info("Set plan %s (limit %d) for %s", plan, PLAN_LIMITS[plan], user_id)


def suspend_user(
    store: DocumentStore,
    identities: IdentityDirectory,
    requester: Identity,
    user_id: str,
    *,
    logger: logging.Logger,
) -> None:
    if user_id == requester.uid:
        raise ConflictError("You cannot suspend your own account")
    now = now_iso()
    store.set(
        PROFILES, user_id, {"is_suspended": True, "suspended_at": now, "updated_at": now}, merge=True
    )
    identities.set_disabled(user_id, True)
    logger.info("Suspended %s", user_id)


def restore_user(
    store: DocumentStore, identities: IdentityDirectory, user_id: str, *, logger: logging.Logger
) -> None:
    store.set(
        PROFILES,
        user_id,
        {"is_suspended": False, "suspended_at": None, "updated_at": now_iso()},
        merge=True,
    )
    identities.set_disabled(user_id, False)
    logger.info("Restored %s", user_id)


def delete_user(
    store: DocumentStore,
    identities: IdentityDirectory,
    requester: Identity,
    user_id: str,
    *,
    logger: logging.Logger,
    page_size: int = 400,
) -> None:
    """Delete an account and everything it owns.

    Leads and searches go before the profile so no orphan stays reachable
    from a live profile. The identity is removed last.
    """
    if user_id == requester.uid:
        raise ConflictError("You cannot delete your own account")

    leads = delete_owned_documents(store, LEADS, user_id, page_size=page_size)
    searches = delete_owned_documents(store, SEARCHES, user_id, page_size=page_size)
    for collection in (SUBSCRIPTIONS, PROFILES):
        try:
            store.delete(collection, user_id)
        except Exception as exc:
            logger.warning("Could not delete %s/%s: %s", collection, user_id, exc)
    identities.delete_user(user_id)
    logger.info("Deleted %s (%d leads, %d searches)", user_id, leads, searches)


def handle_admin_action(
    payload: Mapping[str, Any],
    *,
    requester: Identity,
    store: DocumentStore,
    identities: IdentityDirectory,
    config: ServiceConfig,
    logger: logging.Logger,
) -> dict[str, Any]:
    """Dispatch one admin request body to its action.

    Collaborator failures other than MapLeadsError surface as InternalError.
    """
    require_superadmin(requester, config)
    try:
        return _dispatch(
            payload,
            requester=requester,
            store=store,
            identities=identities,
            config=config,
            logger=logger,
        )
    except MapLeadsError:
        raise
    except Exception as exc:
        logger.error("Admin action %s failed: %s", payload.get("action"), exc)
        raise InternalError(str(exc) or "Unexpected error") from exc


def _dispatch(
    payload: Mapping[str, Any],
    *,
    requester: Identity,
    store: DocumentStore,
    identities: IdentityDirectory,
    config: ServiceConfig,
    logger: logging.Logger,
) -> dict[str, Any]:
    action = payload.get("action")
    if not action:
        raise ValidationError("action is required")

    if action == "list_users":
        users = list_users(store, payload.get("query"), payload.get("limit"))
        return {"users": [user.to_dict() for user in users]}

    user_id = require_string(payload.get("user_id"), "Valid user_id is required")

    if action == "set_plan":
        set_plan(store, user_id, payload.get("plan"), logger=logger)
    elif action == "suspend_user":
        suspend_user(store, identities, requester, user_id, logger=logger)
    elif action == "restore_user":
        restore_user(store, identities, user_id, logger=logger)
    elif action == "delete_user":
        delete_user(
            store, identities, requester, user_id, logger=logger, page_size=config.batch_size
        )
    else:
        raise ValidationError("Unknown action")
    return {"success": True}
