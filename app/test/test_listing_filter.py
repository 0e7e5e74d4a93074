import pytest
from app.models.listing import Listing, ListingFilter
from app.utils.listing_filter import filter_listings


def make_listing(listing_id, price, city, country="Netherlands", property_type="apartment"):
    return Listing(
        id=listing_id,
        owner_id="owner",
        title=f"Listing {listing_id}",
        property_type=property_type,
        bedrooms=1,
        bathrooms=1,
        total_area=40,
        address="Some street 1",
        city=city,
        country=country,
        postal_code="1000 AA",
        rent_price=price,
    )


@pytest.fixture
def fixture_listings():
    return [
        make_listing("a", 500, "Amsterdam"),
        make_listing("b", 1000, "amsterdam", property_type="house"),
        make_listing("c", 750, "Rotterdam"),
        make_listing("d", 1001, "Amsterdam"),
        make_listing("e", 499, "AMSTERDAM", property_type="studio"),
    ]


def ids(listings):
    return [listing.id for listing in listings]


def test_empty_filter_returns_everything(fixture_listings):
    assert filter_listings(fixture_listings, ListingFilter()) == fixture_listings


def test_blank_strings_mean_match_all(fixture_listings):
    filters = ListingFilter(min_price="", max_price="", property_type="", location="  ")
    assert filter_listings(fixture_listings, filters) == fixture_listings


def test_amsterdam_price_window(fixture_listings):
    filters = ListingFilter(min_price="500", max_price="1000", property_type="", location="Amsterdam")
    assert ids(filter_listings(fixture_listings, filters)) == ["a", "b"]


def test_price_bounds_are_inclusive(fixture_listings):
    assert ids(filter_listings(fixture_listings, ListingFilter(min_price=1000))) == ["b", "d"]
    assert ids(filter_listings(fixture_listings, ListingFilter(max_price=500))) == ["a", "e"]


def test_property_type_ignores_case(fixture_listings):
    assert ids(filter_listings(fixture_listings, ListingFilter(property_type="HOUSE"))) == ["b"]


def test_location_matches_country_substring(fixture_listings):
    listings = fixture_listings + [make_listing("f", 800, "Antwerp", country="Belgium")]
    assert ids(filter_listings(listings, ListingFilter(location="belg"))) == ["f"]
    assert ids(filter_listings(listings, ListingFilter(location="rotter"))) == ["c"]


def test_date_range_does_not_filter(fixture_listings):
    assert filter_listings(fixture_listings, ListingFilter(date_range="2024-01-01/2024-02-01")) == fixture_listings


def test_filters_compose(fixture_listings):
    first = ListingFilter(location="amsterdam")
    second = ListingFilter(min_price=600)
    combined = ListingFilter(location="amsterdam", min_price=600)

    assert filter_listings(filter_listings(fixture_listings, first), second) == filter_listings(fixture_listings, combined)
    assert ids(filter_listings(fixture_listings, combined)) == ["b", "d"]


def test_filter_does_not_mutate_input(fixture_listings):
    before = list(fixture_listings)
    filter_listings(fixture_listings, ListingFilter(max_price=600))
    assert fixture_listings == before


def test_non_numeric_price_is_rejected():
    with pytest.raises(ValueError):
        ListingFilter(min_price="cheap")
