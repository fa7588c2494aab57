"""Input validation helpers."""

from __future__ import annotations

import re
from typing import Callable, List, Optional

DOI_PATTERN = re.compile(r"10\.\d{4,9}/[-._;()/:A-Z0-9]+$", re.IGNORECASE)

# person IDs may carry the "$" permanent or "." temporary prefix; the
# lookbehind keeps e-mail addresses from reading as mentions
MENTION_PATTERN = re.compile(r"(?<![\w.])@([$.]?[\w-]+)")


def sanitize_doi(value: Optional[str]) -> Optional[str]:
    """Extract the bare DOI from a DOI string or resolver URL."""

    if not value:
        return None
    match = DOI_PATTERN.search(value.strip())
    return match.group(0) if match else None


def extract_mentions(*texts: Optional[str]) -> List[str]:
    """Return the distinct `@id` mentions in order of first appearance."""

    mentions: List[str] = []
    for text in texts:
        if not text:
            continue
        for mention in MENTION_PATTERN.findall(text):
            if mention not in mentions:
                mentions.append(mention)
    return mentions


def rewrite_mentions(text: Optional[str], resolve: Callable[[str], str]) -> Optional[str]:
    """Replace every `@id` mention with `@resolve(id)`."""

    if not text:
        return text
    return MENTION_PATTERN.sub(lambda match: f"@{resolve(match.group(1))}", text)
