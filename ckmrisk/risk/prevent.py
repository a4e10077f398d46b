from __future__ import annotations

"""
PREVENT 10-year risk equations: total CVD, ASCVD and heart failure.

Design intent:
- Each outcome is a sex-specific logistic model over a shared term vector.
- eGFR and BMI fall back to assumed-normal values (90, 25) when absent.
- Once the minimum covariates are present all three outcomes are returned.
"""

import math
from typing import Mapping

import numpy as np

from ckmrisk.risk.covariates import CovariateSet, Sex
from ckmrisk.risk.results import PreventResult

DEFAULT_EGFR = 90.0
DEFAULT_BMI = 25.0
MGDL_TO_MMOLL = 0.02586

# Term order for the CVD and ASCVD models.
_LIPID_TERMS: tuple[str, ...] = (
    "intercept",
    "age",
    "non_hdl",
    "hdl",
    "sbp_high",
    "sbp_low",
    "diabetes",
    "smoking",
    "egfr_low",
    "egfr_high",
    "antihypertensive",
    "statin",
)

# Heart failure swaps the lipid terms for BMI terms and has no statin term.
_HF_TERMS: tuple[str, ...] = (
    "intercept",
    "age",
    "sbp_high",
    "sbp_low",
    "diabetes",
    "smoking",
    "bmi_high",
    "bmi_low",
    "egfr_low",
    "egfr_high",
    "antihypertensive",
)

_CVD_COEFFICIENTS: Mapping[Sex, tuple[float, ...]] = {
    "female": (
        -3.307728, 0.7939329, 0.0305239, -0.1606857, 0.360078, -0.2394,
        0.8667604, 0.5360739, 0.6045917, -0.285859, 0.3151672, -0.1477655,
    ),
    "male": (
        -3.031168, 0.7688528, 0.0736174, -0.0954431, 0.3362658, -0.1896749,
        0.7692857, 0.4386871, 0.5378979, -0.219842, 0.288879, -0.1337349,
    ),
}

_ASCVD_COEFFICIENTS: Mapping[Sex, tuple[float, ...]] = {
    "female": (
        -3.819975, 0.719883, 0.1176967, -0.151185, 0.3592852, -0.198971,
        0.8348585, 0.4831078, 0.4864619, -0.222378, 0.2265309, -0.0592374,
    ),
    "male": (
        -3.500655, 0.7099847, 0.1658663, -0.1144285, 0.3239977, -0.138406,
        0.7189597, 0.3956973, 0.3690075, -0.165844, 0.2036522, -0.0865581,
    ),
}

_HF_COEFFICIENTS: Mapping[Sex, tuple[float, ...]] = {
    "female": (
        -4.310409, 0.8998235, 0.3576505, -0.203102, 1.038346, 0.583916,
        0.2997706, -0.231922, 0.7451638, -0.384594, 0.3534442,
    ),
    "male": (
        -3.946391, 0.8972642, 0.3634461, -0.145789, 0.923776, 0.5023736,
        0.3726929, -0.217743, 0.6926917, -0.315512, 0.2980922,
    ),
}


def compute_prevent(covariates: CovariateSet) -> PreventResult | None:
    if (
        covariates.age is None
        or covariates.sbp is None
        or covariates.total_cholesterol is None
        or covariates.hdl_cholesterol is None
        or covariates.sex is None
    ):
        return None

    terms = build_terms(covariates)
    sex = covariates.sex
    return PreventResult(
        cvd=_clamp_percent(_logistic_percent(_log_odds(terms, _LIPID_TERMS, _CVD_COEFFICIENTS[sex]))),
        ascvd=_clamp_percent(_logistic_percent(_log_odds(terms, _LIPID_TERMS, _ASCVD_COEFFICIENTS[sex]))),
        heart_failure=_clamp_percent(_logistic_percent(_log_odds(terms, _HF_TERMS, _HF_COEFFICIENTS[sex]))),
    )


def build_terms(covariates: CovariateSet) -> dict[str, float]:
    age = float(covariates.age)
    sbp = float(covariates.sbp)
    tc = float(covariates.total_cholesterol)
    hdl = float(covariates.hdl_cholesterol)
    egfr = DEFAULT_EGFR if covariates.egfr is None else float(covariates.egfr)
    bmi = DEFAULT_BMI if covariates.bmi is None else float(covariates.bmi)

    return {
        "intercept": 1.0,
        "age": (age - 55.0) / 10.0,
        "non_hdl": (tc - hdl) * MGDL_TO_MMOLL - 3.5,
        "hdl": (hdl * MGDL_TO_MMOLL - 1.3) / 0.3,
        "sbp_high": (max(sbp, 110.0) - 130.0) / 20.0,
        "sbp_low": (min(sbp, 110.0) - 110.0) / 20.0,
        "diabetes": 1.0 if covariates.diabetes else 0.0,
        "smoking": 1.0 if covariates.smoking else 0.0,
        "egfr_low": min(0.0, (egfr - 60.0) / -15.0),
        "egfr_high": max(0.0, (egfr - 90.0) / 15.0),
        "bmi_high": max(0.0, (bmi - 30.0) / 5.0),
        "bmi_low": min(0.0, (bmi - 25.0) / -5.0),
        "antihypertensive": 1.0 if covariates.on_antihypertensive else 0.0,
        "statin": 1.0 if covariates.on_statin else 0.0,
    }


def _log_odds(terms: Mapping[str, float], order: tuple[str, ...], coefficients: tuple[float, ...]) -> float:
    vector = np.array([terms[name] for name in order], dtype=float)
    return float(np.dot(vector, np.asarray(coefficients, dtype=float)))


def _logistic_percent(log_odds: float) -> float:
    # Numerically stable form of exp(L) / (1 + exp(L)).
    if log_odds >= 0:
        return 100.0 / (1.0 + math.exp(-log_odds))
    odds = math.exp(log_odds)
    return 100.0 * odds / (1.0 + odds)


def _clamp_percent(value: float) -> float:
    return max(0.0, min(100.0, value))
