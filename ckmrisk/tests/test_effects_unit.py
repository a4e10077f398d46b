import math

from ckmrisk.risk.results import KdigoResult, KfreResult, PreventResult, ResultSet
from ckmrisk.therapy.effects import apply_effect, compose_effects
from ckmrisk.therapy.hazard_ratios import HazardRatioTable


def _results() -> ResultSet:
    return ResultSet(
        source="calculated",
        kfre=KfreResult(two_year=10.0, five_year=20.0, risk_level="Low", equation="4-variable"),
        prevent=PreventResult(cvd=8.0, ascvd=5.0, heart_failure=4.0),
        kdigo=None,
    )


def test_apply_effect_is_multiplicative_and_none_for_missing_ratio() -> None:
    assert apply_effect(10.0, 0.5) == 5.0
    assert apply_effect(10.0, None) is None


def test_compose_effects_maps_figures_to_outcomes() -> None:
    figures = compose_effects(_results(), HazardRatioTable())
    keyed = {(item.model, item.figure): item for item in figures}
    assert set(keyed) == {
        ("kfre", "two_year"),
        ("kfre", "five_year"),
        ("prevent", "cvd"),
        ("prevent", "ascvd"),
        ("prevent", "heart_failure"),
    }

    two_year = {item.medication: item for item in keyed[("kfre", "two_year")].estimates}
    assert math.isclose(two_year["sglt2i"].treated, 10.0 * 0.63)
    assert math.isclose(two_year["glp1ra"].treated, 10.0 * 0.79)
    assert math.isclose(two_year["nsmra"].treated, 10.0 * 0.77)

    heart_failure = {item.medication: item for item in keyed[("prevent", "heart_failure")].estimates}
    assert heart_failure["glp1ra"].treated is None
    assert not heart_failure["glp1ra"].applicable
    assert math.isclose(heart_failure["sglt2i"].treated, 4.0 * 0.7)


def test_each_medication_applies_to_untreated_baseline() -> None:
    figures = compose_effects(_results(), HazardRatioTable())
    cvd = next(item for item in figures if item.figure == "cvd")
    assert cvd.baseline == 8.0
    for estimate in cvd.estimates:
        assert math.isclose(estimate.treated, 8.0 * estimate.hazard_ratio)


def test_override_is_flagged_custom() -> None:
    table = HazardRatioTable()
    table.set_override("sglt2i", "cvd", "0.5")
    figures = compose_effects(_results(), table)
    ascvd = next(item for item in figures if item.figure == "ascvd")
    sglt2i = next(item for item in ascvd.estimates if item.medication == "sglt2i")
    assert sglt2i.custom_hazard_ratio
    assert sglt2i.treated == 2.5


def test_kdigo_figures_use_cvd_and_ckd_outcomes() -> None:
    results = ResultSet(
        source="manual",
        kdigo=KdigoResult(cvd_mortality=12.6, ckd_progression=18.988, egfr_category="45-60", acr_category="30-300"),
    )
    figures = {item.figure: item for item in compose_effects(results, HazardRatioTable())}
    assert figures["cvd_mortality"].outcome == "cvd"
    assert figures["ckd_progression"].outcome == "ckd"
