from dataclasses import dataclass
from typing import Optional

from cinco.shop.errors import BotCheckFailed
from cinco.utils import config


@dataclass(frozen=True)
class BotCheck:
    """
    Output of the external bot-detection challenge for one form submission.
    The token is opaque and cannot be verified here; score is optional.
    """

    token: str
    score: Optional[float] = None


def require_human(check: Optional[BotCheck], min_score: float = config.MIN_BOT_SCORE) -> None:
    """Gate a login or signup on the challenge result."""
    if check is None or not check.token:
        raise BotCheckFailed()
    if check.score is not None and check.score < min_score:
        raise BotCheckFailed("Bot check failed. Please try again.")
