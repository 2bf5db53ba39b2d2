"""Domain identity scheme for the unified calendar.

Every canonical event id carries a domain tag (``spa-42``, ``task-7``...) so a
flat id coming back from the rendering layer can be decomposed into the
originating domain and the record's own identifier without looking at the
event payload.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class Domain(StrEnum):
    """Source record families merged into the calendar."""

    AGENDA = "agenda"
    SPA = "spa"
    CRM_LEAD = "crm_lead"
    TASK = "task"
    GROUP_STAY = "group_stay"


# Aggregation and dedup order.
DOMAIN_ORDER: tuple[Domain, ...] = (
    Domain.AGENDA,
    Domain.SPA,
    Domain.CRM_LEAD,
    Domain.TASK,
    Domain.GROUP_STAY,
)

# No tag may be a prefix of another one.
DOMAIN_TAGS: dict[Domain, str] = {
    Domain.AGENDA: "agenda-",
    Domain.SPA: "spa-",
    Domain.CRM_LEAD: "lead-",
    Domain.TASK: "task-",
    Domain.GROUP_STAY: "group-",
}


@dataclass(frozen=True, slots=True)
class EventRef:
    """Structured ``(domain, raw_id)`` pair behind a prefixed id."""

    domain: Domain
    raw_id: str

    @property
    def event_id(self) -> str:
        return prefix_id(self.domain, self.raw_id)


def _raw_id_text(raw_id: object) -> str:
    if isinstance(raw_id, str):
        return raw_id.strip()
    return str(raw_id)


def prefix_id(domain: Domain, raw_id: object) -> str:
    """Return ``<tag><raw_id>``, leaving an already-tagged id untouched."""
    tag = DOMAIN_TAGS[domain]
    text = _raw_id_text(raw_id)
    if text.startswith(tag):
        return text
    return f"{tag}{text}"


def parse_id(event_id: object) -> EventRef | None:
    """Split a prefixed id back into its domain and raw id.

    Returns ``None`` when no known tag matches; callers then fall back to
    structural detection on the raw records.
    """
    if not isinstance(event_id, str):
        return None
    text = event_id.strip()
    for domain in DOMAIN_ORDER:
        tag = DOMAIN_TAGS[domain]
        if text.startswith(tag) and len(text) > len(tag):
            return EventRef(domain=domain, raw_id=text[len(tag) :])
    return None
