"""Static glyph lookup for the closed Icon set."""

from __future__ import annotations

import logging
from typing import Dict, Optional, Union

from labdb.models.enums import Icon

logger = logging.getLogger(__name__)

FALLBACK_GLYPH = "question"

ICON_GLYPHS: Dict[Icon, str] = {
    Icon.link: "paper-plane",
    Icon.pdf: "file-pdf",
    Icon.video: "video",
    Icon.github: "github",
    Icon.website: "globe",
    Icon.gscholar: "google-scholar",
    Icon.orcid: "orcid",
    Icon.linkedin: "linkedin",
    Icon.twitter: "x-twitter",
    Icon.instagram: "instagram",
    Icon.facebook: "facebook",
    Icon.youtube: "youtube",
    Icon.chip: "microchip",
    Icon.medal: "medal",
    Icon.calendar: "calendar",
    Icon.document: "file-lines",
    Icon.smiley: "face-smile",
    Icon.graduation: "graduation-cap",
    Icon.userplus: "user-plus",
}

ICON_NAMES = tuple(sorted(icon.name for icon in Icon))


def glyph_for(icon: Optional[Union[Icon, str]]) -> str:
    """Return the glyph name for an icon member or icon name.

    Unknown names resolve to `FALLBACK_GLYPH`.
    """

    if isinstance(icon, Icon):
        return ICON_GLYPHS[icon]
    if icon in Icon.__members__:
        return ICON_GLYPHS[Icon[icon]]
    logger.warning("Unknown icon name %r, using fallback", icon)
    return FALLBACK_GLYPH
