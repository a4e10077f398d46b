from dataclasses import replace

from ckmrisk.risk.covariates import CovariateSet
from ckmrisk.risk.prevent import compute_prevent

BASE = CovariateSet(age=55, sex="female", sbp=130, total_cholesterol=200, hdl_cholesterol=50)


def test_prevent_requires_minimum_covariates() -> None:
    assert compute_prevent(replace(BASE, hdl_cholesterol=None)) is None
    assert compute_prevent(replace(BASE, sex=None)) is None
    assert compute_prevent(replace(BASE, sbp=None)) is None


def test_prevent_reference_female_cvd() -> None:
    result = compute_prevent(BASE)
    assert result is not None
    assert abs(result.cvd - 1.097) < 0.01


def test_prevent_defaults_egfr_and_bmi() -> None:
    assert compute_prevent(BASE) == compute_prevent(replace(BASE, egfr=90, bmi=25))
    assert compute_prevent(BASE) != compute_prevent(replace(BASE, egfr=40))
    heavy = compute_prevent(replace(BASE, bmi=35))
    assert heavy.cvd == compute_prevent(BASE).cvd
    assert heavy.heart_failure > compute_prevent(BASE).heart_failure


def test_prevent_is_sex_specific() -> None:
    female = compute_prevent(BASE)
    male = compute_prevent(replace(BASE, sex="male"))
    assert female.cvd != male.cvd
    assert female.ascvd != male.ascvd
    assert female.heart_failure != male.heart_failure


def test_prevent_flags_raise_risk_and_statin_only_touches_lipid_models() -> None:
    base = compute_prevent(BASE)
    flagged = compute_prevent(replace(BASE, diabetes=True, smoking=True))
    assert flagged.cvd > base.cvd
    assert flagged.heart_failure > base.heart_failure

    statin = compute_prevent(replace(BASE, on_statin=True))
    assert statin.cvd < base.cvd
    assert statin.heart_failure == base.heart_failure


def test_prevent_outputs_stay_in_percent_bounds_for_extreme_inputs() -> None:
    extreme = CovariateSet(
        age=120,
        sex="male",
        sbp=250,
        total_cholesterol=500,
        hdl_cholesterol=10,
        egfr=1,
        bmi=70,
        diabetes=True,
        smoking=True,
        on_antihypertensive=True,
    )
    for covariates in (extreme, replace(extreme, sex="female"), replace(BASE, age=18, sbp=60)):
        result = compute_prevent(covariates)
        for value in (result.cvd, result.ascvd, result.heart_failure):
            assert 0.0 <= value <= 100.0
