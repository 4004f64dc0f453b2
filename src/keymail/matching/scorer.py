"""
Rule-based match score between a client's preferences and a listing.

Each criterion has a fixed weight. A criterion takes part in the score
only when the client specified it and the listing carries the attribute;
the final score is the weight earned divided by the weight in play, so
unspecified criteria never drag the score down.
"""

from keymail.models import ClientPreferences, Listing, MatchResult

PRICE_WEIGHT = 0.30
PROPERTY_TYPE_WEIGHT = 0.20
NEIGHBORHOOD_WEIGHT = 0.20
BEDROOM_WEIGHT = 0.15
BATHROOM_WEIGHT = 0.15

# Partial credit for near misses
PRICE_TOLERANCE = 0.10
PRICE_PARTIAL_FACTOR = 0.5
BEDROOM_TOLERANCE = 1
BATHROOM_TOLERANCE = 0.5
ROOM_PARTIAL_FACTOR = 0.7

SPECIAL_FEATURE_KEYWORDS = ("luxury", "updated", "modern")
MAX_SPECIAL_FEATURES = 2


def _price_fit(price: int, low: int, high: int) -> float:
    """1.0 inside the range, 0.5 within 10% outside it, else 0.0."""
    if low <= price <= high:
        return 1.0
    if low * (1 - PRICE_TOLERANCE) <= price < low:
        return PRICE_PARTIAL_FACTOR
    if high < price <= high * (1 + PRICE_TOLERANCE):
        return PRICE_PARTIAL_FACTOR
    return 0.0


def _range_fit(value: float, low: float, high: float, tolerance: float) -> float:
    if low <= value <= high:
        return 1.0
    if low - tolerance <= value <= high + tolerance:
        return ROOM_PARTIAL_FACTOR
    return 0.0


def _format_count(value: float) -> str:
    # 2.0 -> "2", 2.5 -> "2.5"
    return f"{value:g}"


def special_features(features: list[str]) -> list[str]:
    """Features worth highlighting, at most two, in listing order."""
    found = [
        feature
        for feature in features
        if any(keyword in feature.lower() for keyword in SPECIAL_FEATURE_KEYWORDS)
    ]
    return found[:MAX_SPECIAL_FEATURES]


def score_listing(preferences: ClientPreferences, listing: Listing) -> MatchResult:
    """
    Score how well a listing fits a client's preferences.

    Args:
        preferences: The client's property preferences
        listing: Candidate listing

    Returns:
        MatchResult with a score in [0, 1] and the reasons behind it
    """
    score = 0.0
    total_weight = 0.0
    reasons: list[str] = []

    # Price
    low, high = preferences.price_range_min, preferences.price_range_max
    if low is not None and high is not None and listing.price is not None:
        total_weight += PRICE_WEIGHT
        fit = _price_fit(listing.price, low, high)
        score += PRICE_WEIGHT * fit
        if fit == 1.0:
            reasons.append("Perfect price range match")
        elif fit > 0:
            reasons.append("Close to your price range")

    # Property type
    if preferences.preferred_property_types and listing.property_type is not None:
        total_weight += PROPERTY_TYPE_WEIGHT
        if listing.property_type in preferences.preferred_property_types:
            score += PROPERTY_TYPE_WEIGHT
            reasons.append(
                f"Matches your preferred property type: {listing.property_type}"
            )

    # Neighborhood
    if preferences.preferred_neighborhoods and listing.neighborhood is not None:
        total_weight += NEIGHBORHOOD_WEIGHT
        if listing.neighborhood in preferences.preferred_neighborhoods:
            score += NEIGHBORHOOD_WEIGHT
            reasons.append(f"In your preferred neighborhood: {listing.neighborhood}")

    # Bedrooms: near misses earn partial credit but no reason
    low, high = preferences.min_bedrooms, preferences.max_bedrooms
    if low is not None and high is not None and listing.bedrooms is not None:
        total_weight += BEDROOM_WEIGHT
        fit = _range_fit(listing.bedrooms, low, high, BEDROOM_TOLERANCE)
        score += BEDROOM_WEIGHT * fit
        if fit == 1.0:
            reasons.append(f"Perfect bedroom count: {listing.bedrooms}")

    # Bathrooms: same rule as bedrooms
    low, high = preferences.min_bathrooms, preferences.max_bathrooms
    if low is not None and high is not None and listing.bathrooms is not None:
        total_weight += BATHROOM_WEIGHT
        fit = _range_fit(listing.bathrooms, low, high, BATHROOM_TOLERANCE)
        score += BATHROOM_WEIGHT * fit
        if fit == 1.0:
            reasons.append(f"Perfect bathroom count: {_format_count(listing.bathrooms)}")

    highlights = special_features(listing.features)
    if highlights:
        reasons.append(f"Special features: {', '.join(highlights)}")

    if total_weight == 0:
        return MatchResult(score=0.0, reasons=reasons)

    return MatchResult(score=score / total_weight, reasons=reasons)
