from butler.catalog.data_store import area_mask, get_dataframe, get_restaurant, get_restaurants, search
from butler.catalog.models import PriceLevel, RestaurantSearch
from butler.catalog.vocabulary import (
    list_areas,
    list_cuisines,
    match_value,
    scan_values,
    tag_matches_vibe,
    vibe_category,
)


# ── Loading ──────────────────────────────────────────────────────────────


class TestCatalogLoading:
    def test_loads_every_row(self):
        assert len(get_restaurants()) == 20
        assert len(get_dataframe()) == 20

    def test_list_columns_are_split(self):
        restaurant = get_restaurant("b11")
        assert restaurant.cuisines == ["Italian", "Seafood"]
        assert restaurant.vibe == ["elegant", "quiet"]

    def test_missing_discount_code_is_none(self):
        assert get_restaurant("b1").discount_code is None
        assert get_restaurant("b2").discount_code == "NONNA10"

    def test_booking_flag_is_boolean(self):
        assert get_restaurant("b1").booking_available is True
        assert get_restaurant("b4").booking_available is False

    def test_price_symbol(self):
        assert get_restaurant("b2").price_symbol == "$"
        assert get_restaurant("d1").price_symbol == "$$$"

    def test_unknown_id(self):
        assert get_restaurant("nope") is None


# ── Search ───────────────────────────────────────────────────────────────


class TestSearch:
    def test_area_matches_city(self):
        results = search(RestaurantSearch(area="Dubai"))
        assert len(results) == 8
        assert all(r.city == "Dubai" for r in results)

    def test_area_named_after_city_stays_in_area(self):
        df = get_dataframe()
        assert set(df.loc[area_mask(df, "Dubai Marina"), "area"]) == {"Dubai Marina"}
        assert set(df.loc[area_mask(df, "Downtown Beirut"), "area"]) == {"Downtown Beirut"}

    def test_sorted_by_rating(self):
        results = search(RestaurantSearch(area="Beirut"))
        ratings = [r.rating for r in results]
        assert ratings == sorted(ratings, reverse=True)

    def test_combined_filters(self):
        results = search(RestaurantSearch(area="Hamra", price=PriceLevel.low, dietary="vegan"))
        assert [r.id for r in results] == ["b4"]

    def test_min_rating(self):
        results = search(RestaurantSearch(min_rating=4.7))
        assert {r.id for r in results} == {"b3", "d1", "d8"}

    def test_cuisine_filter(self):
        results = search(RestaurantSearch(cuisine="seafood"))
        assert {r.id for r in results} == {"b6", "b11", "d8"}


# ── Vocabulary ───────────────────────────────────────────────────────────


class TestVocabulary:
    def test_areas_longest_first_then_cities(self):
        areas = list_areas()
        assert areas[0] == "Downtown Beirut"
        assert areas[-2:] == ["Beirut", "Dubai"]

    def test_cuisines_are_distinct(self):
        cuisines = list_cuisines()
        assert len(cuisines) == len(set(cuisines))
        assert "Italian" in cuisines

    def test_scan_prefers_specific_area(self):
        assert scan_values("sushi in dubai marina", list_areas())[0] == "Dubai Marina"

    def test_match_value_exact_and_partial(self):
        assert match_value("hamra", list_areas()) == "Hamra"
        assert match_value("marina", list_areas()) == "Dubai Marina"
        assert match_value("ham", list_areas()) == "Hamra"

    def test_match_value_does_not_match_inside_words(self):
        assert match_value("food", list_cuisines()) is None

    def test_match_value_empty(self):
        assert match_value("", list_areas()) is None
        assert match_value(None, list_areas()) is None

    def test_vibe_category(self):
        assert vibe_category("intimate") == "romantic"
        assert vibe_category("family-friendly") == "family"
        assert vibe_category("candlelit") is None

    def test_tag_matches_vibe(self):
        assert tag_matches_vibe("elegant", "romantic")
        assert not tag_matches_vibe("lively", "quiet")
