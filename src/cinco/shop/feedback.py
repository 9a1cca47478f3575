import uuid
from datetime import datetime
from typing import List, Optional

from cinco.db import crud
from cinco.db.models import FeedbackEntry
from cinco.db.storage import LocalStorage
from cinco.shop.errors import ValidationError
from cinco.shop.validation import (
    sanitize_input,
    validate_email,
    validate_name,
    validate_textarea,
)
from cinco.utils.logger import get_logger

_logger = get_logger(__name__)


async def submit_feedback(
    storage: LocalStorage,
    name: str,
    email: str,
    subject: str,
    message: str,
    now: Optional[datetime] = None,
) -> FeedbackEntry:
    """Validate a contact-form message and append it to the feedback log."""
    name, email, subject, message = (
        (v or "").strip() for v in (name, email, subject, message)
    )
    if not name or not email or not subject or not message:
        raise ValidationError("Please fill in all required fields.")

    name = sanitize_input(name)
    subject = sanitize_input(subject)
    message = sanitize_input(message)

    if not validate_name(name):
        raise ValidationError(
            "Name must be 2-100 characters (letters, spaces, hyphens, apostrophes only)."
        )
    if not validate_email(email):
        raise ValidationError("Please enter a valid email address.")
    if not validate_textarea(subject, 5, 200):
        raise ValidationError("Subject must be 5-200 characters with no HTML tags.")
    if not validate_textarea(message, 10, 1000):
        raise ValidationError("Message must be 10-1000 characters with no HTML tags.")

    entry = FeedbackEntry(
        id=uuid.uuid4().hex,
        name=name,
        email=email,
        subject=subject,
        message=message,
        timestamp=now or datetime.now(),
    )
    await crud.append_feedback(storage, entry)
    _logger.info(f"Feedback {entry.id} received from {email}")
    return entry


async def list_feedback(storage: LocalStorage) -> List[FeedbackEntry]:
    return await crud.list_feedback(storage)
