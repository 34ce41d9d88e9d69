"""Unit tests for reliability scoring and leg labels."""

from __future__ import annotations

import pytest

from app.services.reliability import (
    MAX_VARIABILITY,
    ReliabilityLevel,
    classify_alert,
    clamp_score,
    compute_reliability,
    duration_variability,
    level_for,
    summarize_leg,
)
from app.services.transit_mapping import map_trip_plan


def _transit_leg(departures=(), alerts=(), **route):
    return {
        "leg_mode": "transit",
        "departures": [{"is_real_time": flag} for flag in departures],
        "routes": [{**route, "alerts": list(alerts)}],
    }


def test_no_candidates_only_pays_real_time_penalty():
    result = compute_reliability([])

    assert result.variability == 0
    assert result.real_time_rate == 0
    assert result.alert_count == 0
    assert result.score == 70
    assert result.level is ReliabilityLevel.MEDIUM
    assert result.reasons == ["Limited real-time coverage"]


def test_cancellation_alert_with_half_real_time_coverage():
    candidates = [
        {"duration": 1800, "legs": [_transit_leg(departures=[True])]},
        {
            "duration": 1800,
            "legs": [
                _transit_leg(
                    departures=[False],
                    alerts=[{"header_text": "Trips cancelled after 9pm"}],
                )
            ],
        },
    ]

    result = compute_reliability(candidates)

    assert result.real_time_rate == 0.5
    assert result.alert_count == 1
    assert result.score == 62
    assert result.level is ReliabilityLevel.MEDIUM
    assert result.reasons == ["Service alerts indicate delays or disruptions"]


def test_low_real_time_coverage_and_alert_reasons_combine():
    candidates = [
        {
            "duration": 1200,
            "legs": [
                _transit_leg(
                    departures=[True, False, False],
                    alerts=[{"description_text": "Major signal problem"}],
                )
            ],
        }
    ]

    result = compute_reliability(candidates)

    assert result.real_time_rate == pytest.approx(1 / 3)
    assert result.reasons == [
        "Limited real-time coverage",
        "Service alerts indicate delays or disruptions",
    ]


def test_fully_live_consistent_options_score_high():
    leg = _transit_leg(departures=[True, True])
    result = compute_reliability(
        [{"duration": 900, "legs": [leg]}, {"duration": 900, "legs": [leg]}]
    )

    assert result.score == 90
    assert result.level is ReliabilityLevel.HIGH
    assert result.reasons == ["Stable schedule and consistent ETAs"]


def test_eta_spread_penalty_is_capped():
    result = compute_reliability(
        [
            {"duration": 100, "legs": [_transit_leg(departures=[True])]},
            {"duration": 10000, "legs": []},
        ]
    )

    assert result.variability > 0.15
    assert result.score == 45
    assert result.level is ReliabilityLevel.LOW
    assert result.reasons[0] == "ETAs vary across options"


def test_alert_penalty_is_capped_and_severity_reason_is_exclusive():
    alerts = [{"summary": "Minor slowdowns expected"}] * 5
    result = compute_reliability(
        [{"duration": 600, "legs": [_transit_leg(departures=[True], alerts=alerts)]}]
    )

    assert result.alert_count == 5
    assert result.score == 50
    assert result.reasons == ["Service alerts indicate minor slowdowns"]


def test_unclassified_alert_counts_as_low():
    result = compute_reliability(
        [
            {
                "duration": 600,
                "legs": [_transit_leg(departures=[True], alerts=[{"text": "Elevator info"}, {}])],
            }
        ]
    )

    assert result.alert_count == 2
    assert result.score == 82
    assert result.reasons == ["Service alerts posted"]


def test_non_transit_legs_are_ignored():
    walk = {
        "leg_mode": "walk",
        "departures": [{"is_real_time": True}],
        "routes": [{"alerts": [{"header_text": "Sidewalk closed"}]}],
    }

    result = compute_reliability([{"duration": 300, "legs": [walk]}])

    assert result.alert_count == 0
    assert result.real_time_rate == 0


def test_malformed_input_never_raises():
    candidates = [
        None,
        "garbage",
        {"duration": "fast", "legs": "none"},
        {"duration": float("nan"), "legs": [None, {"leg_mode": "transit", "routes": [None]}]},
        {"duration": 600, "legs": [{"leg_mode": "transit", "departures": [None, 5]}]},
    ]

    result = compute_reliability(candidates)

    assert result.variability == 0
    assert result.real_time_rate == 0
    assert 0 <= result.score <= 100


def test_huge_float_durations_do_not_overflow():
    result = compute_reliability([{"duration": 1e200}, {"duration": 1}])

    assert result.variability == pytest.approx(1.0)
    assert result.score == 25
    assert "ETAs vary across options" in result.reasons


def test_durations_beyond_float_range_are_ignored():
    result = compute_reliability([{"duration": 10**400}, {"duration": 600}])

    assert result.variability == 0
    assert result.score == 70


def test_unrepresentable_spread_saturates():
    assert duration_variability([1e200, -1e200, 1e-200]) == MAX_VARIABILITY


def test_accepts_mapped_trip_plans():
    plan = map_trip_plan({"duration": 600, "legs": [_transit_leg(departures=[True])]})

    assert compute_reliability([plan]).score == 90


def test_scoring_is_deterministic():
    candidates = [
        {"duration": 700, "legs": [_transit_leg(departures=[True, False])]},
        {"duration": 900, "legs": []},
    ]

    assert compute_reliability(candidates) == compute_reliability(candidates)


def test_to_dict_is_plain_data():
    payload = compute_reliability([]).to_dict()

    assert payload == {
        "score": 70,
        "level": "Medium",
        "variability": 0.0,
        "real_time_rate": 0.0,
        "alert_count": 0,
        "reasons": ["Limited real-time coverage"],
    }


@pytest.mark.parametrize(
    ("text", "severity"),
    [
        ("Expect DELAYS on Line 1", "high"),
        ("Service suspended", "high"),
        ("Reduced service this weekend", "medium"),
        ("Track work overnight", "medium"),
        ("New accessible entrance", "low"),
        (None, "low"),
        ("", "low"),
    ],
)
def test_classify_alert(text, severity):
    assert classify_alert(text) == severity


def test_duration_variability():
    assert duration_variability([]) == 0
    assert duration_variability([0, 0]) == 0
    assert duration_variability([10, 10]) == 0
    assert duration_variability([10, 30]) == pytest.approx(0.5)


def test_clamp_score_rounds_half_up():
    assert clamp_score(62.5) == 63
    assert clamp_score(-4) == 0
    assert clamp_score(130) == 100


def test_level_boundaries():
    assert level_for(80) is ReliabilityLevel.HIGH
    assert level_for(79) is ReliabilityLevel.MEDIUM
    assert level_for(60) is ReliabilityLevel.MEDIUM
    assert level_for(59) is ReliabilityLevel.LOW


@pytest.mark.parametrize(
    ("leg", "label"),
    [
        ({"leg_mode": "transit", "routes": [{"route_long_name": "King Street"}]}, "King Street"),
        (
            {
                "leg_mode": "transit",
                "routes": [{"route_short_name": "504", "route_mode_name": "Streetcar"}],
            },
            "Streetcar 504",
        ),
        ({"leg_mode": "transit", "routes": [{"route_short_name": "7"}]}, "Line 7"),
        ({"leg_mode": "transit", "routes": [{"route_short_name": "7A"}]}, "Route 7A"),
        ({"leg_mode": "transit", "routes": [{"real_time_route_id": "12"}]}, "Line 12"),
        ({"leg_mode": "transit", "routes": [{"route_mode_name": "Subway"}]}, "Subway"),
        ({"leg_mode": "transit", "routes": []}, "Transit"),
        ({"leg_mode": "walk", "routes": [{"route_long_name": "King Street"}]}, "Walk"),
        ({"leg_mode": "personal_bike"}, "Bike"),
        ({"leg_mode": "shared_mobility"}, "Shared"),
        ({"leg_mode": "microtransit"}, "Microtransit"),
        ({"leg_mode": "ferry"}, "Transit"),
        (None, "Leg"),
    ],
)
def test_summarize_leg(leg, label):
    assert summarize_leg(leg) == label
