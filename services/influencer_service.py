"""
Influencer Service - Tracks callers and the calls they make.

Deleting an influencer removes every call it made; deleting a trade
only unlinks the calls that referenced it.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from db import get_db, Influencer, InfluencerCall
from db.repositories import InfluencerCallRepository, InfluencerRepository, TradeRepository
from services.trade_service import parse_date


logger = logging.getLogger(__name__)

INFLUENCER_FIELDS = ("name", "platform", "handle", "link", "notes")
CALL_FIELDS = ("trade_id", "call_date", "call_content", "source_link", "your_result")


@dataclass
class InfluencerResult:
    """Result object for influencer operations."""
    influencer: Influencer | None
    success: bool
    message: str
    errors: list[str] = field(default_factory=list)


@dataclass
class CallResult:
    """Result object for influencer call operations."""
    call: InfluencerCall | None
    success: bool
    message: str
    errors: list[str] = field(default_factory=list)


# ──────────────────────────────────────────────────────────────────────────────
# Influencers
# ──────────────────────────────────────────────────────────────────────────────


def create_influencer(
    name: str,
    platform: str,
    handle: str | None = None,
    link: str | None = None,
    notes: str | None = None,
) -> InfluencerResult:
    """
    Register an influencer.

    Example:
        >>> result = create_influencer("Ansem", "twitter", handle="@blknoiz06")
        >>> print(result.message)
        "✅ Influencer 'Ansem' added"
    """
    name = name.strip()
    platform = platform.strip()

    errors = []
    if not name:
        errors.append("Influencer name is required")
    if not platform:
        errors.append("Platform is required")
    if errors:
        return InfluencerResult(
            influencer=None, success=False, message=f"❌ {errors[0]}", errors=errors
        )

    db = get_db()
    with db.session() as session:
        influencer = InfluencerRepository(session).create(
            name=name, platform=platform, handle=handle, link=link, notes=notes
        )

        logger.info(f"Created influencer {influencer.id}: {name} ({platform})")
        return InfluencerResult(
            influencer=influencer,
            success=True,
            message=f"✅ Influencer '{name}' added",
        )


def get_influencer(influencer_id: int) -> Influencer | None:
    """Get an influencer by ID."""
    db = get_db()
    with db.session() as session:
        return InfluencerRepository(session).get_by_id(influencer_id)


def get_all_influencers() -> list[Influencer]:
    """All influencers ordered by name."""
    db = get_db()
    with db.session() as session:
        return list(InfluencerRepository(session).get_all())


def update_influencer(influencer_id: int, **updates) -> InfluencerResult:
    """Update influencer fields (name, platform, handle, link, notes)."""
    fields = {k: v for k, v in updates.items() if k in INFLUENCER_FIELDS}
    for key in ("name", "platform"):
        if key in fields and not (fields[key] or "").strip():
            return InfluencerResult(
                influencer=None,
                success=False,
                message=f"❌ {key.capitalize()} cannot be empty",
                errors=[f"{key} is required"],
            )

    db = get_db()
    with db.session() as session:
        influencer = InfluencerRepository(session).update(influencer_id, **fields)
        if not influencer:
            return InfluencerResult(
                influencer=None,
                success=False,
                message=f"❌ Influencer #{influencer_id} not found",
                errors=["Influencer not found"],
            )

        logger.info(f"Updated influencer {influencer_id}")
        return InfluencerResult(
            influencer=influencer,
            success=True,
            message=f"✅ Influencer '{influencer.name}' updated",
        )


def delete_influencer(influencer_id: int) -> InfluencerResult:
    """Delete an influencer together with all of its calls."""
    db = get_db()
    with db.session() as session:
        repo = InfluencerRepository(session)

        influencer = repo.get_by_id(influencer_id)
        if not influencer:
            return InfluencerResult(
                influencer=None,
                success=False,
                message=f"❌ Influencer #{influencer_id} not found",
                errors=["Influencer not found"],
            )

        name = influencer.name
        repo.delete(influencer_id)

        logger.info(f"Deleted influencer {influencer_id} and its calls")
        return InfluencerResult(
            influencer=None,
            success=True,
            message=f"✅ Influencer '{name}' deleted",
        )


# ──────────────────────────────────────────────────────────────────────────────
# Calls
# ──────────────────────────────────────────────────────────────────────────────


def _check_call_links(session, influencer_id: int | None, trade_id: int | None) -> list[str]:
    errors = []
    if influencer_id is not None and not InfluencerRepository(session).get_by_id(influencer_id):
        errors.append(f"Influencer {influencer_id} not found")
    if trade_id is not None and not TradeRepository(session).get_by_id(trade_id):
        errors.append(f"Trade {trade_id} not found")
    return errors


def create_call(
    influencer_id: int,
    call_date: datetime | str | None = None,
    call_content: str | None = None,
    trade_id: int | None = None,
    source_link: str | None = None,
    your_result: str | None = None,
) -> CallResult:
    """Record a call made by an influencer, optionally linked to a trade."""
    try:
        call_date = parse_date(call_date) or datetime.now()
    except ValueError as e:
        return CallResult(call=None, success=False, message="❌ Invalid date", errors=[str(e)])

    db = get_db()
    with db.session() as session:
        errors = _check_call_links(session, influencer_id, trade_id)
        if errors:
            return CallResult(call=None, success=False, message=f"❌ {errors[0]}", errors=errors)

        call = InfluencerCallRepository(session).create(
            influencer_id=influencer_id,
            trade_id=trade_id,
            call_date=call_date,
            call_content=call_content,
            source_link=source_link,
            your_result=your_result,
        )

        logger.info(f"Recorded call {call.id} for influencer {influencer_id}")
        return CallResult(call=call, success=True, message=f"✅ Call #{call.id} recorded")


def list_influencer_calls(influencer_id: int | None = None) -> list[InfluencerCall]:
    """All calls, or those of a single influencer, newest first."""
    db = get_db()
    with db.session() as session:
        return list(InfluencerCallRepository(session).list_calls(influencer_id))


def update_call(call_id: int, **updates) -> CallResult:
    """Update call fields (trade link, date, content, source, result)."""
    fields = {k: v for k, v in updates.items() if k in CALL_FIELDS}
    if "call_date" in fields:
        try:
            fields["call_date"] = parse_date(fields["call_date"]) or datetime.now()
        except ValueError as e:
            return CallResult(call=None, success=False, message="❌ Invalid date", errors=[str(e)])

    db = get_db()
    with db.session() as session:
        errors = _check_call_links(session, None, fields.get("trade_id"))
        if errors:
            return CallResult(call=None, success=False, message=f"❌ {errors[0]}", errors=errors)

        call = InfluencerCallRepository(session).update(call_id, **fields)
        if not call:
            return CallResult(
                call=None,
                success=False,
                message=f"❌ Call #{call_id} not found",
                errors=["Call not found"],
            )

        logger.info(f"Updated call {call_id}")
        return CallResult(call=call, success=True, message=f"✅ Call #{call_id} updated")


def delete_call(call_id: int) -> CallResult:
    """Delete a single call."""
    db = get_db()
    with db.session() as session:
        if not InfluencerCallRepository(session).delete(call_id):
            return CallResult(
                call=None,
                success=False,
                message=f"❌ Call #{call_id} not found",
                errors=["Call not found"],
            )

    logger.info(f"Deleted call {call_id}")
    return CallResult(call=None, success=True, message=f"✅ Call #{call_id} deleted")
