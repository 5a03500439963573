from garden_alerts.schemas import WeatherSnapshot
from garden_alerts.services.change_detector import (WeatherTransition,
                                                    active_event, has_changed,
                                                    serialize_payload,
                                                    weather_transition)

from conftest import weather_payload


def test_structurally_equal_payloads_are_unchanged():
    first = {"seed_stock": [{"item_id": "carrot", "quantity": 3}], "gear_stock": []}
    second = {"gear_stock": [], "seed_stock": [{"quantity": 3, "item_id": "carrot"}]}

    assert not has_changed(serialize_payload(first), serialize_payload(second))


def test_any_difference_is_a_change():
    first = {"seed_stock": [{"item_id": "carrot", "quantity": 3}]}
    second = {"seed_stock": [{"item_id": "carrot", "quantity": 4}]}

    assert has_changed(serialize_payload(first), serialize_payload(second))


def test_first_payload_is_a_change():
    assert has_changed(None, serialize_payload({}))


def test_active_event_takes_first_active():
    snapshot = WeatherSnapshot.from_payload(
        weather_payload(("rain", False), ("thunder", True), ("frost", True))
    )

    assert active_event(snapshot).weather_id == "thunder"
    assert active_event(None) is None


def test_weather_transitions():
    none = WeatherSnapshot.from_payload(weather_payload(("rain", False)))
    rain = WeatherSnapshot.from_payload(weather_payload(("rain", True)))
    rain_longer = WeatherSnapshot.from_payload(weather_payload(("rain", True), duration=900))
    frost = WeatherSnapshot.from_payload(weather_payload(("frost", True)))

    assert weather_transition(None, rain) is WeatherTransition.STARTED
    assert weather_transition(none, rain) is WeatherTransition.STARTED
    assert weather_transition(rain, frost) is WeatherTransition.STARTED
    assert weather_transition(rain, rain_longer) is WeatherTransition.UNCHANGED
    assert weather_transition(rain, none) is WeatherTransition.ENDED
    assert weather_transition(None, none) is WeatherTransition.NONE
