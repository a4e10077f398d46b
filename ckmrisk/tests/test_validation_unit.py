import pytest

from ckmrisk.risk.covariates import CovariateForm
from ckmrisk.validation.tiers import (
    HARD_MESSAGE,
    SOFT_HIGH_MESSAGE,
    SOFT_LOW_MESSAGE,
    VALIDATION_RANGES,
    FieldValidationResult,
    ValidationRange,
    accepts_draft,
    check_all,
    check_field,
    has_hard_error,
)


def test_check_field_returns_none_for_empty_or_unconfigured_input() -> None:
    assert check_field("age", "") is None
    assert check_field("age", None) is None
    assert check_field("diabetes", "1") is None
    assert check_field("age", "abc") is None


@pytest.mark.parametrize("name", sorted(VALIDATION_RANGES))
def test_hard_boundaries_are_inclusive_and_one_unit_beyond_is_hard(name: str) -> None:
    config = VALIDATION_RANGES[name]
    at_min = check_field(name, str(config.hard_min))
    at_max = check_field(name, str(config.hard_max))
    assert at_min is None or at_min.severity == "soft"
    assert at_max is None or at_max.severity == "soft"

    below = check_field(name, str(config.hard_min - 1))
    above = check_field(name, str(config.hard_max + 1))
    assert below == FieldValidationResult(severity="hard", message=HARD_MESSAGE)
    assert above == FieldValidationResult(severity="hard", message=HARD_MESSAGE)


def test_soft_tier_messages_distinguish_low_and_high() -> None:
    assert check_field("sbp", "70") == FieldValidationResult(severity="soft", message=SOFT_LOW_MESSAGE)
    assert check_field("sbp", "200") == FieldValidationResult(severity="soft", message=SOFT_HIGH_MESSAGE)
    assert check_field("sbp", "90") is None
    assert check_field("sbp", "180") is None
    assert check_field("sbp", "130") is None


def test_custom_ranges_can_be_injected() -> None:
    ranges = {"widget": ValidationRange(hard_min=0, soft_min=1, soft_max=2, hard_max=3, unit="u")}
    assert check_field("widget", "2.5", ranges=ranges).severity == "soft"
    assert check_field("age", "500", ranges=ranges) is None


def test_accepts_draft_only_allows_sign_free_decimals() -> None:
    assert accepts_draft("")
    assert accepts_draft("1")
    assert accepts_draft("12.")
    assert accepts_draft("12.5")
    assert accepts_draft(".5")
    assert not accepts_draft("-1")
    assert not accepts_draft("1.2.3")
    assert not accepts_draft("12a")
    assert not accepts_draft("1e3")
    assert not accepts_draft("65\n")
    assert not accepts_draft(" 65")


def test_check_all_and_hard_gate_predicate() -> None:
    results = check_all({"age": "65", "sbp": "300", "egfr": ""})
    assert results["age"] is None
    assert results["egfr"] is None
    assert results["sbp"].severity == "hard"
    assert has_hard_error(results)
    assert not has_hard_error(check_all({"age": "95"}))


def test_form_edit_rejects_trailing_newline_and_keeps_previous_draft() -> None:
    form = CovariateForm()
    assert form.edit("age", "65") is True
    assert form.edit("age", "65\n") is False
    assert form.draft_text()["age"] == "65"
