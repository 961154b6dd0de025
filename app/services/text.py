"""
Slug and excerpt generation for posts.
"""

import random
import re
import string
from datetime import datetime, timezone
from typing import Optional

SLUG_BASE_MAX_LENGTH = 80
SLUG_MAX_LENGTH = 100
SLUG_RANDOM_LENGTH = 4
SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")

EXCERPT_LENGTH = 160
EXCERPT_SUFFIX = "..."

BASE36_ALPHABET = string.digits + string.ascii_lowercase

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_TAG = re.compile(r"<[^>]*>")

_system_random = random.SystemRandom()


def to_base36(number: int) -> str:
    """Encode a non-negative integer in lowercase base 36."""
    if number < 0:
        raise ValueError("number must be non-negative")
    if number == 0:
        return "0"

    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def slugify(title: str) -> str:
    """Lower-case, hyphenate and trim a title to the slug base length."""
    base = _NON_ALNUM.sub("-", (title or "").lower()).strip("-")
    # Truncating can leave a trailing hyphen behind
    return base[:SLUG_BASE_MAX_LENGTH].rstrip("-")


def generate_slug(
    title: str,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
) -> str:
    """
    Build a URL-safe, statistically unique slug from a title.

    The suffix is the current time in milliseconds plus four random
    characters, both base 36, e.g. ``my-post-title-lq2x9k1c-a1b2``.
    Pass ``now`` and ``rng`` for deterministic output.
    """
    now = now or datetime.now(timezone.utc)
    rng = rng or _system_random

    timestamp = to_base36(int(now.timestamp() * 1000))
    noise = "".join(rng.choice(BASE36_ALPHABET) for _ in range(SLUG_RANDOM_LENGTH))
    suffix = f"{timestamp}-{noise}"

    base = slugify(title)
    slug = f"{base}-{suffix}" if base else suffix
    return slug[:SLUG_MAX_LENGTH]


def strip_tags(content: str) -> str:
    return _TAG.sub("", content or "")


def generate_excerpt(content: str) -> str:
    """
    Summarize content into at most 160 characters plus an ellipsis.

    Markup tags are removed first. Longer text is cut at the last space
    before the limit so words stay whole; text without any such space is
    cut hard at the limit.
    """
    text = strip_tags(content)
    if len(text) <= EXCERPT_LENGTH:
        return text

    cut = text.rfind(" ", 0, EXCERPT_LENGTH + 1)
    if cut <= 0:
        cut = EXCERPT_LENGTH

    return text[:cut].rstrip() + EXCERPT_SUFFIX
