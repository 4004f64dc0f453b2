"""Tests for the listing match scorer."""

import pytest

from keymail.matching import score_listing
from keymail.matching.scorer import special_features
from keymail.models import ClientPreferences, Listing, MatchResult


def make_listing(**overrides) -> Listing:
    data = {
        "id": "l-1",
        "user_id": "agent-1",
        "address": "1 Main St",
        "price": 750000,
        "property_type": "condo",
        "neighborhood": "Midtown",
        "bedrooms": 2,
        "bathrooms": 2,
        "features": [],
    }
    data.update(overrides)
    return Listing(**data)


def test_price_and_type_exact_match() -> None:
    prefs = ClientPreferences(
        price_range_min=500000,
        price_range_max=800000,
        preferred_property_types=["condo"],
    )
    result = score_listing(prefs, make_listing(price=750000, property_type="condo"))
    assert result.score == 1.0
    assert result.reasons == [
        "Perfect price range match",
        "Matches your preferred property type: condo",
    ]


def test_price_within_ten_percent_above_max_gets_half_weight() -> None:
    prefs = ClientPreferences(price_range_min=500000, price_range_max=600000)
    result = score_listing(prefs, make_listing(price=650000))
    assert result.score == pytest.approx(0.5)
    assert result.reasons == ["Close to your price range"]


def test_price_within_ten_percent_below_min_gets_half_weight() -> None:
    prefs = ClientPreferences(price_range_min=500000, price_range_max=600000)
    result = score_listing(prefs, make_listing(price=460000))
    assert result.score == pytest.approx(0.5)
    assert result.reasons == ["Close to your price range"]


@pytest.mark.parametrize("price", [440000, 700000])
def test_price_far_outside_range_scores_zero(price: int) -> None:
    prefs = ClientPreferences(price_range_min=500000, price_range_max=600000)
    result = score_listing(prefs, make_listing(price=price))
    assert result.score == 0.0
    assert result.reasons == []


def test_bedroom_one_outside_range_gets_partial_credit_without_reason() -> None:
    prefs = ClientPreferences(min_bedrooms=2, max_bedrooms=3)
    result = score_listing(prefs, make_listing(bedrooms=4))
    assert result.score == pytest.approx(0.7)
    assert result.reasons == []


def test_bedroom_two_outside_range_scores_zero() -> None:
    prefs = ClientPreferences(min_bedrooms=2, max_bedrooms=3)
    assert score_listing(prefs, make_listing(bedrooms=5)).score == 0.0


def test_bathroom_half_unit_outside_range_gets_partial_credit() -> None:
    prefs = ClientPreferences(min_bathrooms=1, max_bathrooms=2)
    result = score_listing(prefs, make_listing(bathrooms=2.5))
    assert result.score == pytest.approx(0.7)
    assert result.reasons == []

    assert score_listing(prefs, make_listing(bathrooms=3)).score == 0.0


def test_room_reasons_for_full_match() -> None:
    prefs = ClientPreferences(min_bedrooms=2, max_bedrooms=3, min_bathrooms=1, max_bathrooms=2)
    result = score_listing(prefs, make_listing(bedrooms=3, bathrooms=1.5))
    assert result.score == 1.0
    assert result.reasons == ["Perfect bedroom count: 3", "Perfect bathroom count: 1.5"]


def test_whole_bathroom_count_has_no_decimal() -> None:
    prefs = ClientPreferences(min_bathrooms=1, max_bathrooms=2)
    result = score_listing(prefs, make_listing(bathrooms=2))
    assert result.reasons == ["Perfect bathroom count: 2"]


def test_neighborhood_match() -> None:
    prefs = ClientPreferences(preferred_neighborhoods=["Midtown", "Old Town"])
    result = score_listing(prefs, make_listing(neighborhood="Old Town"))
    assert result.score == 1.0
    assert result.reasons == ["In your preferred neighborhood: Old Town"]


def test_no_preferences_scores_zero() -> None:
    result = score_listing(ClientPreferences(), make_listing())
    assert result.score == 0.0
    assert result.reasons == []


def test_nothing_matching_scores_zero() -> None:
    prefs = ClientPreferences(
        price_range_min=100000,
        price_range_max=200000,
        preferred_property_types=["land"],
        preferred_neighborhoods=["Uptown"],
        min_bedrooms=6,
        max_bedrooms=8,
        min_bathrooms=5,
        max_bathrooms=6,
    )
    result = score_listing(prefs, make_listing())
    assert result.score == 0.0
    assert result.reasons == []


def test_half_specified_range_is_ignored() -> None:
    prefs = ClientPreferences(
        price_range_min=500000,
        preferred_property_types=["condo"],
        min_bedrooms=4,
    )
    result = score_listing(prefs, make_listing(price=10, bedrooms=1))
    assert result.score == 1.0
    assert result.reasons == ["Matches your preferred property type: condo"]


def test_zero_lower_bound_counts_as_set() -> None:
    prefs = ClientPreferences(price_range_min=0, price_range_max=100000)
    result = score_listing(prefs, make_listing(price=90000))
    assert result.score == 1.0


def test_missing_listing_attribute_does_not_penalize() -> None:
    prefs = ClientPreferences(
        price_range_min=500000,
        price_range_max=800000,
        preferred_neighborhoods=["Midtown"],
    )
    result = score_listing(prefs, make_listing(price=None, neighborhood="Midtown"))
    assert result.score == 1.0
    assert result.reasons == ["In your preferred neighborhood: Midtown"]


def test_weights_are_combined_over_criteria_in_play() -> None:
    prefs = ClientPreferences(
        price_range_min=500000,
        price_range_max=800000,
        preferred_property_types=["condo"],
    )
    # price 0.30 earned of 0.50 in play
    result = score_listing(prefs, make_listing(property_type="townhouse"))
    assert result.score == pytest.approx(0.6)
    assert result.reasons == ["Perfect price range match"]


def test_special_features_note_lists_first_two() -> None:
    prefs = ClientPreferences(preferred_property_types=["condo"])
    listing = make_listing(
        features=["Pool", "Luxury finishes", "Updated bath", "Modern kitchen"]
    )
    result = score_listing(prefs, listing)
    assert result.reasons[-1] == "Special features: Luxury finishes, Updated bath"
    assert len(result.reasons) == 2


def test_special_features_helper_is_case_insensitive() -> None:
    assert special_features(["MODERN lighting", "garage"]) == ["MODERN lighting"]
    assert special_features([]) == []


def test_result_unpacks_and_scales_to_percent() -> None:
    prefs = ClientPreferences(min_bedrooms=2, max_bedrooms=3)
    score, reasons = score_listing(prefs, make_listing(bedrooms=4))
    assert score == pytest.approx(0.7)
    assert reasons == []
    assert score_listing(prefs, make_listing(bedrooms=4)).percent == 70


def test_percent_rounds_half_up() -> None:
    prefs = ClientPreferences(
        price_range_min=500000,
        price_range_max=600000,
        preferred_property_types=["land"],
        preferred_neighborhoods=["Midtown"],
        min_bedrooms=2,
        max_bedrooms=3,
        min_bathrooms=1,
        max_bathrooms=2,
    )
    # 0.15 price near miss + 0.20 neighborhood + 0.105 bedrooms + 0.15 bathrooms
    result = score_listing(prefs, make_listing(price=650000, bedrooms=4, bathrooms=2))
    assert result.score == pytest.approx(0.605)
    assert result.percent == 61


@pytest.mark.parametrize(
    ("score", "percent"),
    [(0.125, 13), (0.375, 38), (0.0, 0), (1.0, 100), (0.714, 71)],
)
def test_percent_scale(score: float, percent: int) -> None:
    assert MatchResult(score=score, reasons=[]).percent == percent
