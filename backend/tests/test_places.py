import json

import httpx
import pytest

from staybook.errors import ConfigurationError, NotFound, UpstreamError, UpstreamTimeout
from staybook.services.content_filter import content_filter
from staybook.services.places_adapter import (
    adapt_legacy_autocomplete,
    adapt_legacy_details,
    adapt_new_autocomplete,
    adapt_new_details,
    PlacePrediction,
)
from staybook.services.places_client import PlacesClient
from staybook.services.predictions import process_predictions

NEW_AUTOCOMPLETE = {
    "suggestions": [
        {
            "placePrediction": {
                "placeId": "cairo",
                "text": {"text": "Cairo, Egypt"},
                "structuredFormat": {"mainText": {"text": "Cairo"}, "secondaryText": {"text": "Egypt"}},
                "types": ["locality", "political"],
            }
        },
        {"queryPrediction": {"text": {"text": "cairo hotels"}}},
    ]
}

LEGACY_AUTOCOMPLETE = {
    "status": "OK",
    "predictions": [
        {
            "place_id": "cairo",
            "description": "Cairo, Egypt",
            "structured_formatting": {"main_text": "Cairo", "secondary_text": "Egypt"},
            "types": ["locality", "political"],
        }
    ],
}


def test_both_autocomplete_generations_adapt_to_the_same_shape():
    new = adapt_new_autocomplete(NEW_AUTOCOMPLETE)
    legacy = adapt_legacy_autocomplete(LEGACY_AUTOCOMPLETE)

    assert len(new) == 1
    assert (new[0].place_id, new[0].description, new[0].main_text, new[0].secondary_text) == (
        legacy[0].place_id, legacy[0].description, legacy[0].main_text, legacy[0].secondary_text,
    )
    assert new[0].types == legacy[0].types
    assert [p.to_dict() for p in process_predictions(new)] == [p.to_dict() for p in process_predictions(legacy)]


# Same predictions, clean and restricted, as each Places generation returns them
PARITY_PREDICTIONS = [
    ("cairo", "Cairo, Egypt", "Cairo", "Egypt", ["locality", "political"]),
    ("ChIJH3w7GaZMHRURkD-WwKJy-8E", "Tel Aviv-Yafo", "Tel Aviv-Yafo", "", ["locality", "political"]),
    ("haifa-text", "Haifa, Israel", "Haifa", "Israel", ["locality", "political"]),
    ("jerusalem-he", "ירושלים, ישראל", "ירושלים", "ישראל", ["locality", "political"]),
    ("jerusalem-ar", "القدس، إسرائيل", "القدس", "إسرائيل", ["locality", "political"]),
    ("giza", "Giza, Egypt", "Giza", "Egypt", ["locality", "political"]),
    ("museum", "Egyptian Museum, Cairo, Egypt", "Egyptian Museum", "Cairo, Egypt", ["museum"]),
]


def _new_autocomplete_payload(rows):
    return {"suggestions": [
        {"placePrediction": {
            "placeId": place_id,
            "text": {"text": description},
            "structuredFormat": {"mainText": {"text": main}, "secondaryText": {"text": secondary}},
            "types": types,
        }}
        for place_id, description, main, secondary, types in rows
    ]}


def _legacy_autocomplete_payload(rows):
    return {"status": "OK", "predictions": [
        {
            "place_id": place_id,
            "description": description,
            "structured_formatting": {"main_text": main, "secondary_text": secondary},
            "types": types,
        }
        for place_id, description, main, secondary, types in rows
    ]}


@pytest.mark.asyncio
async def test_restrictions_apply_identically_to_both_generations(settings, upstream):
    upstream.add("POST", "/v1/places:autocomplete", _new_autocomplete_payload(PARITY_PREDICTIONS))
    upstream.add("GET", "/maps/api/place/autocomplete/json", _legacy_autocomplete_payload(PARITY_PREDICTIONS))
    new_client = PlacesClient(settings, transport=upstream.transport)
    legacy_client = PlacesClient(
        settings.model_copy(update={"use_legacy_google_places": True}), transport=upstream.transport,
    )

    new = process_predictions(await new_client.autocomplete("cai"))
    legacy = process_predictions(await legacy_client.autocomplete("cai"))

    assert [p.place_id for p in new] == ["cairo", "giza", "museum"]
    assert [p.to_dict() for p in new] == [p.to_dict() for p in legacy]
    await new_client.close()
    await legacy_client.close()


def test_restricted_details_are_caught_for_both_generations():
    new = adapt_new_details({
        "id": "haifa",
        "displayName": {"text": "Haifa"},
        "formattedAddress": "Haifa, IL",
        "location": {"latitude": 32.79, "longitude": 34.99},
        "addressComponents": [{"longText": "Israel", "shortText": "IL", "types": ["country", "political"]}],
        "types": ["locality", "political"],
        "primaryType": "locality",
    })
    legacy = adapt_legacy_details({
        "place_id": "haifa",
        "name": "Haifa",
        "formatted_address": "Haifa, IL",
        "geometry": {"location": {"lat": 32.79, "lng": 34.99}},
        "address_components": [{"long_name": "Israel", "short_name": "IL", "types": ["country", "political"]}],
        "types": ["locality", "political"],
    })

    assert new.to_dict() == legacy.to_dict()
    for details in (new, legacy):
        assert details.country_code == "IL"
        assert content_filter.should_filter_place(place_id=details.place_id, country_code=details.country_code)
        assert content_filter.is_location_restricted(details.latitude, details.longitude)


def test_legacy_non_ok_status_means_no_predictions():
    assert adapt_legacy_autocomplete({"status": "ZERO_RESULTS", "predictions": []}) == []
    assert adapt_legacy_autocomplete({"status": "REQUEST_DENIED"}) == []


def test_new_details():
    details = adapt_new_details({
        "id": "cairo",
        "displayName": {"text": "Cairo", "languageCode": "en"},
        "formattedAddress": "Cairo, Egypt",
        "location": {"latitude": 30.04, "longitude": 31.24},
        "addressComponents": [
            {"longText": "Egypt", "shortText": "EG", "types": ["country", "political"]},
        ],
        "types": ["locality", "political"],
        "primaryType": "locality",
    })
    assert details.display_name == "Cairo"
    assert details.country_code == "EG"
    assert details.country_name == "Egypt"
    assert details.place_type == "city"
    assert details.to_dict()["latitude"] == 30.04


def test_legacy_details():
    details = adapt_legacy_details({
        "place_id": "hotel-1",
        "name": "Nile Hotel",
        "geometry": {"location": {"lat": 30.0, "lng": 31.2}},
        "address_components": [{"long_name": "Egypt", "short_name": "EG", "types": ["country"]}],
        "types": ["lodging", "point_of_interest"],
    })
    assert details.place_type == "hotel"
    assert details.country_code == "EG"
    assert (details.latitude, details.longitude) == (30.0, 31.2)


def test_details_without_country_component():
    details = adapt_new_details({"id": "x", "types": ["country"]})
    assert details.country_code is None
    assert details.place_type == "country"


# --- ranking ---

def _prediction(place_id, types, secondary="Egypt"):
    return PlacePrediction(place_id, f"{place_id}, {secondary}", place_id, secondary, types)


def test_ranking_by_type_then_egypt_first():
    predictions = [
        _prediction("museum", ["museum"]),
        _prediction("dubai", ["locality"], secondary="United Arab Emirates"),
        _prediction("egypt", ["country"]),
        _prediction("cairo", ["locality"]),
        _prediction("giza", ["locality"], secondary="Giza Governorate, مصر"),
    ]
    ranked = process_predictions(predictions)
    assert [p.place_id for p in ranked] == ["egypt", "cairo", "giza", "dubai", "museum"]
    assert ranked[0].primary_type == "country"


def test_disallowed_types_are_dropped_and_results_truncated():
    predictions = [_prediction("route", ["route"])] + [_prediction(f"c{i}", ["locality"]) for i in range(15)]
    ranked = process_predictions(predictions, max_results=10)
    assert len(ranked) == 10
    assert "route" not in [p.place_id for p in ranked]


def test_primary_type_is_best_ranked_of_all_types():
    ranked = process_predictions([_prediction("hotel", ["point_of_interest", "lodging", "airport"])])
    assert ranked[0].primary_type == "airport"


# --- client ---

@pytest.mark.asyncio
async def test_new_autocomplete_request_and_filtering(settings, upstream):
    payload = {"suggestions": NEW_AUTOCOMPLETE["suggestions"] + [{
        "placePrediction": {
            "placeId": "tlv",
            "text": {"text": "Tel Aviv-Yafo, Israel"},
            "types": ["locality"],
        }
    }]}
    upstream.add("POST", "/v1/places:autocomplete", payload)
    client = PlacesClient(settings, transport=upstream.transport)

    predictions = await client.autocomplete("cai", session_token="tok-1", language="ar")

    assert [p.place_id for p in predictions] == ["cairo"]
    request = upstream.requests[0]
    assert request.headers["X-Goog-Api-Key"] == "google-test-key"
    body = json.loads(request.content)
    assert body["sessionToken"] == "tok-1"
    assert body["languageCode"] == "ar"
    assert body["locationBias"]["circle"]["radius"] == 50_000
    await client.close()


@pytest.mark.asyncio
async def test_legacy_autocomplete_request(settings, upstream):
    upstream.add("GET", "/maps/api/place/autocomplete/json", LEGACY_AUTOCOMPLETE)
    client = PlacesClient(settings.model_copy(update={"use_legacy_google_places": True}), transport=upstream.transport)

    predictions = await client.autocomplete("cairo")

    assert predictions[0].place_id == "cairo"
    params = upstream.requests[0].url.params
    assert params["key"] == "google-test-key"
    assert params["radius"] == "2000000"
    assert params["language"] == "en"


@pytest.mark.asyncio
async def test_short_input_makes_no_request(settings, upstream):
    client = PlacesClient(settings, transport=upstream.transport)
    assert await client.autocomplete(" c ") == []
    assert upstream.requests == []


@pytest.mark.asyncio
async def test_missing_google_key(settings, upstream):
    client = PlacesClient(settings.model_copy(update={"google_maps_api_key": ""}), transport=upstream.transport)
    with pytest.raises(ConfigurationError):
        await client.autocomplete("cairo")


@pytest.mark.asyncio
async def test_new_details_sends_field_mask(settings, upstream):
    upstream.add("GET", "/v1/places/cairo", {"id": "cairo", "types": ["locality"]})
    client = PlacesClient(settings, transport=upstream.transport)

    details = await client.details("cairo", session_token="tok-1")

    assert details.place_id == "cairo"
    headers = upstream.requests[0].headers
    assert "addressComponents" in headers["X-Goog-FieldMask"]
    assert headers["X-Goog-Session-Token"] == "tok-1"


@pytest.mark.asyncio
async def test_new_details_encodes_the_place_id(settings, upstream):
    upstream.add("GET", "/v1/places/a/b?c#d", {"id": "a/b?c#d", "types": ["locality"]})
    client = PlacesClient(settings, transport=upstream.transport)

    details = await client.details("a/b?c#d", language="en")

    assert details.place_id == "a/b?c#d"
    request = upstream.requests[0]
    assert request.url.raw_path.split(b"?")[0] == b"/v1/places/a%2Fb%3Fc%23d"
    assert dict(request.url.params) == {"languageCode": "en"}
    await client.close()


@pytest.mark.asyncio
async def test_legacy_details_not_ok_is_not_found(settings, upstream):
    upstream.add("GET", "/maps/api/place/details/json", {"status": "NOT_FOUND"})
    client = PlacesClient(settings.model_copy(update={"use_legacy_google_places": True}), transport=upstream.transport)
    with pytest.raises(NotFound):
        await client.details("nowhere")


@pytest.mark.asyncio
async def test_upstream_error_status_is_propagated(settings, upstream):
    upstream.add("GET", "/v1/places/cairo", {"error": "quota"}, status=429)
    client = PlacesClient(settings, transport=upstream.transport)
    with pytest.raises(UpstreamError) as exc:
        await client.details("cairo")
    assert exc.value.status_code == 429


@pytest.mark.asyncio
async def test_reverse_geocode(settings, upstream):
    upstream.add("GET", "/maps/api/geocode/json", {
        "status": "OK",
        "results": [{"address_components": [{"short_name": "EG", "types": ["country", "political"]}]}],
    })
    client = PlacesClient(settings, transport=upstream.transport)
    assert await client.reverse_geocode(30.0, 31.2) == "EG"
    assert upstream.requests[0].url.params["latlng"] == "30.0,31.2"


@pytest.mark.asyncio
async def test_reverse_geocode_zero_results(settings, upstream):
    upstream.add("GET", "/maps/api/geocode/json", {"status": "ZERO_RESULTS", "results": []})
    client = PlacesClient(settings, transport=upstream.transport)
    assert await client.reverse_geocode(0.0, 0.0) is None


@pytest.mark.asyncio
async def test_timeout_maps_to_upstream_timeout(settings):
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    client = PlacesClient(settings, transport=httpx.MockTransport(handler))
    with pytest.raises(UpstreamTimeout):
        await client.details("cairo")
