from __future__ import annotations

DEFAULT_CATEGORY = "owner-reservation"

OWNER_COLOR = "#9C27B0"
AVAILABLE_COLOR = "#84fab0"
EMPTY_COLOR = "#e5e7eb"

# Checked in order: "Owner Referral" must win over plain "Owner".
_COLOR_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("guest",), "#1976d2"),
    (("golf",), "#8BC34A"),
    (("ota",), "#FF9800"),
    (("owner", "referral"), "#E91E63"),
    (("owner",), OWNER_COLOR),
    (("complimentary",), "#FFC107"),
)


def category_slug(category: str | None) -> str:
    """'Guest Reservation' -> 'guest-reservation'; missing category is an owner block."""
    if not category or not category.strip():
        return DEFAULT_CATEGORY
    return category.strip().lower().replace(" ", "-")


def category_color(category: str | None) -> str:
    if not category:
        return OWNER_COLOR

    lowered = category.lower()
    for needles, color in _COLOR_RULES:
        if all(n in lowered for n in needles):
            return color
    return AVAILABLE_COLOR
