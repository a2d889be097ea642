"""
Platform bonus: one token per distinct chat platform the user built for,
when there are at least two, never lifting the user above the per-run cap.
"""
from typing import Iterable

MIN_PLATFORMS_FOR_BONUS = 2


def platform_bonus(base_tokens: int, platforms: list[str], max_tokens: int) -> int:
    if len(platforms) < MIN_PLATFORMS_FOR_BONUS:
        return 0
    headroom = max(0, max_tokens - base_tokens)
    return min(len(platforms), headroom)


def submission_text(records: Iterable[tuple[str | None, str | None]]) -> str:
    """Text sent to the classifier: Description / Playable URL of every submission."""
    blocks = []
    for description, playable_url in records:
        lines = []
        if description:
            lines.append(f"Description: {description}")
        if playable_url:
            lines.append(f"Playable URL: {playable_url}")
        if lines:
            blocks.append("\n".join(lines))
    return "\n\n".join(blocks)
