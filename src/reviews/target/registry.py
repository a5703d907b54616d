"""Target Registry — the closed set of things a customer can review.

Every review is parameterized by a ``TargetType`` tag; the registry maps the
tag to the owner concept and the detailed-rating categories that are legal
for it. Pure lookup, no state.
"""

from dataclasses import dataclass
from enum import Enum

from reviews.errors import ReviewValidationError, UnknownTargetType


class TargetType(Enum):
    GUIDE = "guide"
    HOTEL = "hotel"
    VEHICLE = "vehicle"
    TOUR = "tour"
    CUSTOM_TRIP = "customTrip"


@dataclass(frozen=True)
class TargetDescriptor:
    target_type: TargetType
    owner_role_name: str
    detailed_categories: tuple[str, ...] = ()


_REGISTRY = {
    TargetType.GUIDE: TargetDescriptor(
        TargetType.GUIDE,
        owner_role_name="guide",
        detailed_categories=("knowledge", "communication", "punctuality"),
    ),
    TargetType.HOTEL: TargetDescriptor(
        TargetType.HOTEL,
        owner_role_name="hotel",
        detailed_categories=("cleanliness", "location", "service", "value", "amenities"),
    ),
    TargetType.VEHICLE: TargetDescriptor(
        TargetType.VEHICLE,
        owner_role_name="driver",
        detailed_categories=("comfort", "cleanliness", "punctuality"),
    ),
    TargetType.TOUR: TargetDescriptor(
        TargetType.TOUR,
        owner_role_name="tour_operator",
        detailed_categories=("itinerary", "value_for_money", "organisation"),
    ),
    TargetType.CUSTOM_TRIP: TargetDescriptor(
        TargetType.CUSTOM_TRIP,
        owner_role_name="trip_planner",
        detailed_categories=(
            "guide_service",
            "accommodation",
            "transportation",
            "itinerary",
            "value_for_money",
        ),
    ),
}


def resolve(target_type) -> TargetDescriptor:
    """Return the descriptor for a target type tag or enum member.

    Raises ``UnknownTargetType`` for anything outside the enum.
    """
    if isinstance(target_type, TargetType):
        return _REGISTRY[target_type]
    try:
        return _REGISTRY[TargetType(target_type)]
    except ValueError:
        valid = ", ".join(t.value for t in TargetType)
        raise UnknownTargetType(f"Unknown target type '{target_type}'. Expected one of: {valid}") from None


def validate_detailed_ratings(target_type, detailed_ratings) -> dict:
    """Check a category → score mapping against the target's categories.

    Categories are optional; unknown categories and scores outside 1–5 are
    rejected. Returns a normalized copy with integer scores.
    """
    descriptor = resolve(target_type)
    if not detailed_ratings:
        return {}
    if not isinstance(detailed_ratings, dict):
        raise ReviewValidationError("Detailed ratings must map category names to scores", field="detailed_ratings")

    normalized = {}
    for category, score in detailed_ratings.items():
        if category not in descriptor.detailed_categories:
            allowed = ", ".join(descriptor.detailed_categories)
            raise ReviewValidationError(
                f"'{category}' is not a rating category for {descriptor.target_type.value} reviews. "
                f"Allowed categories: {allowed}",
                field="detailed_ratings",
            )
        if isinstance(score, bool) or not isinstance(score, int) or not 1 <= score <= 5:
            raise ReviewValidationError(
                f"Rating for '{category}' must be a whole number between 1 and 5",
                field="detailed_ratings",
            )
        normalized[category] = score
    return normalized
