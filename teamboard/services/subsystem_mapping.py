"""
Legacy subsystem text -> team slug resolution

Cards created before teams existed carry a free-text ``subsystem``. This
lookup turns that text into the slug of the team that now owns the work.
"""
from typing import Optional

SUBSYSTEM_TEAM_SLUGS = (
    ("electronics-team", ("electronics", "electronics team", "propulsion", "avionics")),
    ("aerodynamics-team", ("aero", "aerodynamics", "aerodynamics team")),
    ("controls-team", ("controls", "controls team")),
    ("wings-25-26", ("wings", "wings team", "wings 25-26")),
    ("fuselage-25-26", ("fuselage", "fuselage team", "fuselage 25-26", "structures")),
    ("cfd-25-26", ("cfd", "cfd team", "cfd 25-26")),
    ("landing-gear-25-26", ("landing gear", "landing gear team", "landing gear 25-26")),
)


def normalize_subsystem(subsystem: str) -> str:
    return " ".join(subsystem.strip().lower().split())


def resolve_subsystem_team(subsystem: Optional[str]) -> Optional[str]:
    """Team slug for a subsystem label, or None when the label is unmapped"""
    if not subsystem:
        return None
    key = normalize_subsystem(subsystem)
    for slug, aliases in SUBSYSTEM_TEAM_SLUGS:
        if key in aliases:
            return slug
    return None
