import pytest
from datetime import datetime, time, timedelta, timezone

from src.domain.common import ParkingStatus
from src.domain.search import SearchFilters

NOW = datetime(2026, 3, 3, 12, 0, tzinfo=timezone.utc)

ORIGIN = (36.8065, 10.1815)


def names(result):
    return [item["name"] for item in result["parkings"]["items"]]


class TestGeoSearch:

    async def test_radius_keeps_near_and_drops_far(self, search_service, make_parking):
        """5 km away is in a 10 km radius, 15 km away is not; nearest first by default."""
        await make_parking(name="Five km", latitude=ORIGIN[0] + 0.045, longitude=ORIGIN[1])
        await make_parking(name="Fifteen km", latitude=ORIGIN[0] + 0.135, longitude=ORIGIN[1])
        await make_parking(name="Two km", latitude=ORIGIN[0] + 0.018, longitude=ORIGIN[1])

        result = await search_service.search(
            SearchFilters(latitude=ORIGIN[0], longitude=ORIGIN[1], radius=10), now=NOW
        )

        assert names(result) == ["Two km", "Five km"]
        five = result["parkings"]["items"][1]
        assert five["distance"] == pytest.approx(5.0, abs=0.05)
        assert five["distance_text"] == "5.0 km"
        assert result["parkings"]["total"] == 2

    async def test_zero_radius_includes_parking_at_same_point(self, search_service, make_parking):
        await make_parking(name="Right here", latitude=ORIGIN[0], longitude=ORIGIN[1])
        await make_parking(name="Next street", latitude=ORIGIN[0] + 0.002, longitude=ORIGIN[1])

        result = await search_service.search(
            SearchFilters(latitude=ORIGIN[0], longitude=ORIGIN[1], radius=0), now=NOW
        )

        assert names(result) == ["Right here"]
        assert result["parkings"]["items"][0]["distance"] == 0
        assert result["parkings"]["items"][0]["distance_text"] == "0 m"

    async def test_default_radius_is_ten_km(self, search_service, make_parking):
        await make_parking(name="Nine km", latitude=ORIGIN[0] + 0.081, longitude=ORIGIN[1])
        await make_parking(name="Eleven km", latitude=ORIGIN[0] + 0.099, longitude=ORIGIN[1])

        result = await search_service.search(SearchFilters(latitude=ORIGIN[0], longitude=ORIGIN[1]), now=NOW)

        assert names(result) == ["Nine km"]

    async def test_explicit_sort_overrides_distance(self, search_service, make_parking):
        await make_parking(name="Near but pricey", latitude=ORIGIN[0] + 0.01, longitude=ORIGIN[1], price_per_hour=9)
        await make_parking(name="Far but cheap", latitude=ORIGIN[0] + 0.05, longitude=ORIGIN[1], price_per_hour=1)

        result = await search_service.search(
            SearchFilters(latitude=ORIGIN[0], longitude=ORIGIN[1], sort="price_per_hour"), now=NOW
        )

        assert names(result) == ["Far but cheap", "Near but pricey"]

    async def test_radius_reaches_across_the_antimeridian(self, search_service, make_parking):
        """Fiji: 179.97 E and 179.98 W are about 5 km apart."""
        await make_parking(name="Taveuni East", latitude=-16.5, longitude=-179.98)
        await make_parking(name="Far west", latitude=-16.5, longitude=179.5)

        result = await search_service.search(SearchFilters(latitude=-16.5, longitude=179.97, radius=10), now=NOW)

        assert names(result) == ["Taveuni East"]
        assert result["parkings"]["items"][0]["distance"] == pytest.approx(5.33, abs=0.01)

    async def test_radius_near_the_pole_spans_wide_longitudes(self, search_service, make_parking):
        await make_parking(name="Arctic station", latitude=88.6, longitude=70.0)

        result = await search_service.search(SearchFilters(latitude=88.0, longitude=10.0, radius=200), now=NOW)

        assert names(result) == ["Arctic station"]
        assert result["parkings"]["items"][0]["distance"] < 200

    async def test_geo_sort_options_start_with_distance(self, search_service, make_parking):
        await make_parking()

        result = await search_service.search(SearchFilters(latitude=ORIGIN[0], longitude=ORIGIN[1]), now=NOW)

        assert result["sort_options"][0]["value"] == "distance"


class TestFilters:

    async def test_only_active_parkings(self, search_service, make_parking):
        await make_parking(name="Open for business")
        await make_parking(name="Under maintenance", status=ParkingStatus.INACTIVE)

        result = await search_service.search(SearchFilters(), now=NOW)

        assert names(result) == ["Open for business"]

    async def test_free_text_matches_any_field(self, search_service, make_parking):
        await make_parking(name="Marina", description="Covered garage by the port")
        await make_parking(name="Downtown", address_label="Rue de Rome, Tunis, Tunisia")
        await make_parking(name="Airport", address_label="Carthage Airport, Tunis, Tunisia")

        assert names(await search_service.search(SearchFilters(q="GARAGE"), now=NOW)) == ["Marina"]
        assert names(await search_service.search(SearchFilters(q="rome"), now=NOW)) == ["Downtown"]

    async def test_city_matches_city_or_address(self, search_service, make_parking):
        await make_parking(name="Sousse Centre", city="Sousse", address_label="Boulevard 7 Novembre")
        await make_parking(name="Sousse Port", address_label="Port El Kantaoui, Sousse, Tunisia")
        await make_parking(name="Tunis", city="Tunis")

        result = await search_service.search(SearchFilters(city="sousse", sort="name"), now=NOW)

        assert names(result) == ["Sousse Centre", "Sousse Port"]

    async def test_price_and_spot_filters(self, search_service, make_parking):
        await make_parking(name="Cheap", price_per_hour=1.0, total_spots=5, available_spots=5)
        await make_parking(name="Mid", price_per_hour=3.0, total_spots=5, available_spots=2)
        await make_parking(name="Full", price_per_hour=3.5, total_spots=5, available_spots=0)
        await make_parking(name="Expensive", price_per_hour=8.0, total_spots=5, available_spots=5)

        result = await search_service.search(
            SearchFilters(min_price=2, max_price=5, sort="price_per_hour"), now=NOW
        )
        assert names(result) == ["Mid", "Full"]

        result = await search_service.search(SearchFilters(min_spots=3, sort="name"), now=NOW)
        assert names(result) == ["Cheap", "Expensive"]

        result = await search_service.search(SearchFilters(available_only=True, max_price=4, sort="name"), now=NOW)
        assert names(result) == ["Cheap", "Mid"]

    async def test_open_now(self, search_service, make_parking):
        await make_parking(name="Always", is_24h=True)
        await make_parking(name="Office hours", is_24h=False, opening_time=time(8, 0), closing_time=time(18, 0))
        await make_parking(name="Night", is_24h=False, opening_time=time(22, 0), closing_time=time(6, 0))
        await make_parking(name="No hours", is_24h=False)

        at_noon = await search_service.search(SearchFilters(open_now=True, sort="name"), now=NOW)
        assert names(at_noon) == ["Always", "Office hours"]

        at_night = await search_service.search(
            SearchFilters(open_now=True, sort="name"), now=NOW.replace(hour=23)
        )
        assert names(at_night) == ["Always", "Night"]

        at_closing = await search_service.search(
            SearchFilters(open_now=True, sort="name"), now=NOW.replace(hour=18)
        )
        assert names(at_closing) == ["Always"]

    async def test_is_open_now_in_records(self, search_service, make_parking, closed_hours):
        await make_parking(name="Closed", **closed_hours)

        item = (await search_service.search(SearchFilters(), now=NOW))["parkings"]["items"][0]

        assert item["is_open_now"] is False
        assert item["opening_hours"] == "18:00 - 23:00"


class TestSortingAndPages:

    async def test_default_is_newest_first(self, search_service, make_parking):
        await make_parking(name="Oldest", created_at=NOW - timedelta(days=3))
        await make_parking(name="Newest", created_at=NOW - timedelta(days=1))
        await make_parking(name="Middle", created_at=NOW - timedelta(days=2))

        result = await search_service.search(SearchFilters(), now=NOW)

        assert names(result) == ["Newest", "Middle", "Oldest"]

    async def test_unknown_sort_falls_back_to_newest(self, search_service, make_parking):
        await make_parking(name="Old", created_at=NOW - timedelta(days=2))
        await make_parking(name="New", created_at=NOW - timedelta(days=1))

        result = await search_service.search(SearchFilters(sort="owner_id; DROP TABLE", order="asc"), now=NOW)

        assert names(result) == ["New", "Old"]

    async def test_distance_sort_without_coordinates(self, search_service, make_parking):
        await make_parking(name="Old", created_at=NOW - timedelta(days=2))
        await make_parking(name="New", created_at=NOW - timedelta(days=1))

        result = await search_service.search(SearchFilters(sort="distance"), now=NOW)

        assert names(result) == ["New", "Old"]
        assert all(option["value"] != "distance" for option in result["sort_options"])

    async def test_available_spots_default_descending(self, search_service, make_parking):
        await make_parking(name="Few", total_spots=10, available_spots=2)
        await make_parking(name="Many", total_spots=10, available_spots=9)

        result = await search_service.search(SearchFilters(sort="available_spots"), now=NOW)

        assert names(result) == ["Many", "Few"]

    async def test_twelve_per_page(self, search_service, make_parking):
        for i in range(13):
            await make_parking(name=f"Parking {i:02d}")

        first = await search_service.search(SearchFilters(sort="name"), now=NOW)
        second = await search_service.search(SearchFilters(sort="name", page=2), now=NOW)

        assert len(first["parkings"]["items"]) == 12
        assert first["parkings"]["total"] == 13
        assert first["parkings"]["last_page"] == 2
        assert names(second) == ["Parking 12"]

    async def test_empty_result(self, search_service):
        result = await search_service.search(SearchFilters(q="nothing"), now=NOW)

        assert result["parkings"]["items"] == []
        assert result["parkings"]["total"] == 0
        assert result["parkings"]["last_page"] == 1


class TestSideOutputs:

    async def test_cities_parsed_from_addresses(self, search_service, make_parking):
        await make_parking(address_label="Avenue Habib Bourguiba, Tunis, Tunisia")
        await make_parking(address_label="Corniche, La Marsa, Tunisia")
        await make_parking(address_label="Rue X, El, Tunisia")

        assert await search_service.available_cities() == ["La Marsa", "Tunis"]

    async def test_explicit_cities_win(self, search_service, make_parking):
        await make_parking(city="Sfax")
        await make_parking(address_label="Corniche, La Marsa, Tunisia")

        assert await search_service.available_cities() == ["Sfax"]

    async def test_price_range(self, search_service, make_parking):
        await make_parking(price_per_hour=1.5)
        await make_parking(price_per_hour=6.0)
        await make_parking(price_per_hour=50.0, status=ParkingStatus.INACTIVE)

        assert await search_service.price_range() == {"min": 1.5, "max": 6.0}

    async def test_price_range_defaults(self, search_service):
        assert await search_service.price_range() == {"min": 0.0, "max": 100.0}

    async def test_owner_name_prefers_company(self, search_service, make_parking):
        await make_parking()

        item = (await search_service.search(SearchFilters(), now=NOW))["parkings"]["items"][0]

        assert item["owner_name"] == "Sami Parkings"
        assert item["city"] == "Tunis"
        assert item["occupancy_percent"] == 0


class TestSuggestions:

    async def test_short_term_gives_nothing(self, search_service, make_parking):
        await make_parking()

        assert await search_service.suggestions("T") == []

    async def test_cities_before_parkings(self, search_service, make_parking):
        await make_parking(name="Tunis Marine", address_label="Port, Tunis, Tunisia")
        await make_parking(name="Lac", address_label="Rue du Lac, Tunis, Tunisia")

        suggestions = await search_service.suggestions("tun")

        assert suggestions[0] == {"type": "city", "label": "Tunis", "sublabel": "City"}
        assert [s["label"] for s in suggestions[1:]] == ["Lac", "Tunis Marine"]
        assert all(s["type"] == "parking" for s in suggestions[1:])

    async def test_at_most_ten(self, search_service, make_parking):
        for i in range(12):
            await make_parking(name=f"Garage {i:02d}", city=f"Garageville {i}")

        suggestions = await search_service.suggestions("garage")

        assert len(suggestions) == 10
        assert [s["type"] for s in suggestions[:3]] == ["city"] * 3
