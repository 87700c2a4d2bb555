from __future__ import annotations

from typing import Optional

from callrelay.constants.automation import CHAT_LINK_PLACEHOLDER, GENERATING_LINK_TEXT
from callrelay.schemas.automation import AutomationConfigSnapshot


def compose(template: str, link: Optional[str]) -> str:
    """
    Render the outgoing message text.

    The first placeholder is replaced by the link and any further copies are
    dropped, so the text carries exactly one link. An unresolved link renders
    as the "generating" notice. A template without the placeholder gets the
    link appended as its own paragraph.
    """
    rendered_link = link or GENERATING_LINK_TEXT
    if CHAT_LINK_PLACEHOLDER in template:
        head, _, tail = template.partition(CHAT_LINK_PLACEHOLDER)
        return head + rendered_link + tail.replace(CHAT_LINK_PLACEHOLDER, "")
    body = template.rstrip()
    if not body:
        return rendered_link
    return f"{body}\n\n{rendered_link}"


def preview(config: AutomationConfigSnapshot, link: Optional[str]) -> str:
    return compose(config.message, link)
