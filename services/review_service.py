"""
Review Service - Weekly, monthly and custom-period trading reviews.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from db import get_db, Review, ReviewType
from db.repositories import ReviewRepository
from services.trade_service import parse_date


logger = logging.getLogger(__name__)

REVIEW_FIELDS = ("type", "date_range_start", "date_range_end", "content", "key_learnings")


@dataclass
class ReviewResult:
    """Result object for review operations."""
    review: Review | None
    success: bool
    message: str
    errors: list[str] = field(default_factory=list)


def _validate_review_fields(fields: dict) -> list[str]:
    errors = []
    if "type" in fields:
        try:
            fields["type"] = ReviewType(fields["type"])
        except ValueError:
            errors.append(f"Invalid review type: {fields['type']}")
    for key in ("date_range_start", "date_range_end"):
        if key in fields:
            try:
                fields[key] = parse_date(fields[key])
            except ValueError:
                errors.append(f"Invalid date for {key}: {fields[key]}")
    return errors


def _check_range(start: datetime | None, end: datetime | None) -> list[str]:
    if start is None or end is None:
        return ["Review needs a start and end date"]
    if start > end:
        return ["Review start date is after its end date"]
    return []


def create_review(
    review_type: ReviewType | str,
    date_range_start: datetime | str,
    date_range_end: datetime | str,
    content: str | None = None,
    key_learnings: str | None = None,
) -> ReviewResult:
    """Create a review covering an inclusive date range."""
    fields = {
        "type": review_type,
        "date_range_start": date_range_start,
        "date_range_end": date_range_end,
        "content": content,
        "key_learnings": key_learnings,
    }
    errors = _validate_review_fields(fields)
    if not errors:
        errors = _check_range(fields["date_range_start"], fields["date_range_end"])
    if errors:
        return ReviewResult(review=None, success=False, message=f"❌ {errors[0]}", errors=errors)

    db = get_db()
    with db.session() as session:
        review = ReviewRepository(session).create(**fields)

        logger.info(f"Created {review.type.value} review {review.id}")
        return ReviewResult(review=review, success=True, message=f"✅ Review #{review.id} saved")


def get_review(review_id: int) -> Review | None:
    """Get a review by ID."""
    db = get_db()
    with db.session() as session:
        return ReviewRepository(session).get_by_id(review_id)


def get_reviews(review_type: ReviewType | str | None = None) -> list[Review]:
    """Reviews, newest period first, optionally of a single type."""
    db = get_db()
    with db.session() as session:
        return list(
            ReviewRepository(session).get_all(ReviewType(review_type) if review_type else None)
        )


def update_review(review_id: int, **updates) -> ReviewResult:
    """Update review fields."""
    fields = {k: v for k, v in updates.items() if k in REVIEW_FIELDS}
    errors = _validate_review_fields(fields)
    if errors:
        return ReviewResult(review=None, success=False, message=f"❌ {errors[0]}", errors=errors)

    db = get_db()
    with db.session() as session:
        repo = ReviewRepository(session)
        review = repo.get_by_id(review_id)
        if not review:
            return ReviewResult(
                review=None,
                success=False,
                message=f"❌ Review #{review_id} not found",
                errors=["Review not found"],
            )

        errors = _check_range(
            fields.get("date_range_start", review.date_range_start),
            fields.get("date_range_end", review.date_range_end),
        )
        if errors:
            return ReviewResult(review=review, success=False, message=f"❌ {errors[0]}", errors=errors)

        repo.update(review_id, **fields)

        logger.info(f"Updated review {review_id}")
        return ReviewResult(review=review, success=True, message=f"✅ Review #{review_id} updated")


def delete_review(review_id: int) -> ReviewResult:
    """Delete a review."""
    db = get_db()
    with db.session() as session:
        if not ReviewRepository(session).delete(review_id):
            return ReviewResult(
                review=None,
                success=False,
                message=f"❌ Review #{review_id} not found",
                errors=["Review not found"],
            )

    logger.info(f"Deleted review {review_id}")
    return ReviewResult(review=None, success=True, message=f"✅ Review #{review_id} deleted")
