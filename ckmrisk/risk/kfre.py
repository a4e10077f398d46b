from __future__ import annotations

"""
Kidney Failure Risk Equation (KFRE), 2-year and 5-year horizons.

Design intent:
- The 4-variable equation needs age, sex, eGFR and uACR.
- Supplying calcium, phosphate, albumin and bicarbonate as well silently
  selects the 8-variable equation; there is no separate switch.
"""

import math

from ckmrisk.risk.covariates import CovariateSet
from ckmrisk.risk.results import KfreResult, kfre_risk_level

_FOUR_VAR_BASELINE_2Y = 0.929
_FOUR_VAR_BASELINE_5Y = 0.772
_EIGHT_VAR_BASELINE_2Y = 0.976
_EIGHT_VAR_BASELINE_5Y = 0.925

_EIGHT_VAR_COEFFICIENTS = {
    "male": 0.16117,
    "age": -0.19883,
    "egfr": -0.4936,
    "acr": 0.35066,
    "calcium": -0.22129,
    "phosphate": 0.3204,
    "albumin": -0.0805,
    "bicarbonate": -0.03852,
}

_EIGHT_VAR_MEANS = {
    "male": 0.56422,
    "age": 7.0355,
    "egfr": 7.2216,
    "acr": 5.2774,
    "calcium": 9.351,
    "phosphate": 4.445,
    "albumin": 38.3,
    "bicarbonate": 23.3,
}


def compute_kfre(covariates: CovariateSet) -> KfreResult | None:
    if not _has_four_variable_inputs(covariates):
        return None

    if _has_eight_variable_inputs(covariates):
        lp = eight_variable_linear_predictor(covariates)
        two_year = _survival_risk(_EIGHT_VAR_BASELINE_2Y, lp)
        five_year = _survival_risk(_EIGHT_VAR_BASELINE_5Y, lp)
        equation = "8-variable"
    else:
        lp = four_variable_linear_predictor(covariates)
        two_year = _survival_risk(_FOUR_VAR_BASELINE_2Y, lp)
        five_year = _survival_risk(_FOUR_VAR_BASELINE_5Y, lp)
        equation = "4-variable"

    return KfreResult(
        two_year=_clamp_fraction(two_year) * 100.0,
        five_year=_clamp_fraction(five_year) * 100.0,
        risk_level=kfre_risk_level(two_year),
        equation=equation,
    )


def four_variable_linear_predictor(covariates: CovariateSet) -> float:
    male = 1.0 if covariates.sex == "male" else 0.0
    log_acr = math.log(max(float(covariates.uacr), 0.1))
    return (
        -3.0
        + 0.067 * (float(covariates.age) - 50.0)
        + 0.36 * male
        - 0.065 * (float(covariates.egfr) - 30.0)
        + 0.45 * (log_acr - 3.0)
    )


def eight_variable_linear_predictor(covariates: CovariateSet) -> float:
    transformed = {
        "male": 1.0 if covariates.sex == "male" else 0.0,
        "age": float(covariates.age) / 10.0,
        "egfr": float(covariates.egfr) / 5.0,
        "acr": _log_or_negative_infinity(float(covariates.uacr)),
        "calcium": float(covariates.calcium),
        "phosphate": float(covariates.phosphate),
        "albumin": float(covariates.albumin) * 10.0,
        "bicarbonate": float(covariates.bicarbonate),
    }
    return sum(
        coefficient * (transformed[name] - _EIGHT_VAR_MEANS[name])
        for name, coefficient in _EIGHT_VAR_COEFFICIENTS.items()
    )


def _has_four_variable_inputs(covariates: CovariateSet) -> bool:
    return (
        covariates.age is not None
        and covariates.egfr is not None
        and covariates.uacr is not None
        and covariates.sex is not None
    )


def _has_eight_variable_inputs(covariates: CovariateSet) -> bool:
    return _has_four_variable_inputs(covariates) and all(
        value is not None
        for value in (
            covariates.calcium,
            covariates.phosphate,
            covariates.albumin,
            covariates.bicarbonate,
        )
    )


def _log_or_negative_infinity(value: float) -> float:
    # uACR of 0 is a permitted input; its log drives the predicted risk to 0.
    if value <= 0.0:
        return -math.inf
    return math.log(value)


def _survival_risk(baseline_survival: float, linear_predictor: float) -> float:
    return 1.0 - baseline_survival ** math.exp(linear_predictor)


def _clamp_fraction(value: float) -> float:
    return max(0.0, min(1.0, value))
