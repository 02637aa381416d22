import json

import pytest

from lifevault.errors import ErrorKind, MalformedInputError
from lifevault.validator import StateValidator, ValidatorLimits, validate, validate_json


def doc(wallet=100, bank=50, **profile):
    base = {"level": 10, "xp": 500}
    base.update(profile)
    return {"wallet": wallet, "bank": bank, "profile": base}


def test_plausible_state_passes():
    assert validate({"wallet": 100, "bank": 50, "profile": {"level": 10, "xp": 500}}) is True


def test_negative_money_rejected():
    assert validate({"wallet": -1, "bank": 50, "profile": {"level": 10, "xp": 500}}) is False
    assert validate(doc(bank=-5)) is False


def test_level_out_of_range_rejected():
    assert validate({"wallet": 100, "bank": 50, "profile": {"level": 0, "xp": 500}}) is False
    assert validate({"wallet": 100, "bank": 50, "profile": {"level": 101, "xp": 999999}}) is False
    assert validate(doc(level=1)) is True
    assert validate(doc(level=100)) is True


def test_xp_bounds():
    assert validate(doc(xp=0)) is True
    assert validate(doc(xp=1_000_000)) is True
    assert validate(doc(xp=1_000_001)) is False
    assert validate(doc(xp=-1)) is False


def test_total_earnings_optional_and_bounded():
    assert validate(doc(totalEarnings=10_000_000)) is True
    assert validate(doc(totalEarnings=10_000_001)) is False
    assert validate(doc(totalEarnings=-1)) is False
    # Non-integer earnings count as absent
    assert validate(doc(totalEarnings="lots")) is True
    assert validate(doc(totalEarnings=None)) is True


def test_missing_xp_is_an_error_not_a_verdict():
    with pytest.raises(MalformedInputError) as excinfo:
        validate({"wallet": 100, "bank": 50, "profile": {"level": 10}})
    assert excinfo.value.kind is ErrorKind.MALFORMED_INPUT
    assert "xp" in str(excinfo.value)


@pytest.mark.parametrize(
    "document",
    [
        {"bank": 50, "profile": {"level": 10, "xp": 500}},
        {"wallet": 100, "profile": {"level": 10, "xp": 500}},
        {"wallet": 100, "bank": 50},
        {"wallet": "100", "bank": 50, "profile": {"level": 10, "xp": 500}},
        {"wallet": 100.5, "bank": 50, "profile": {"level": 10, "xp": 500}},
        {"wallet": True, "bank": 50, "profile": {"level": 10, "xp": 500}},
        {"wallet": 100, "bank": 50, "profile": "level 10"},
        [1, 2, 3],
        "not a document",
    ],
)
def test_malformed_documents_raise(document):
    with pytest.raises(MalformedInputError):
        validate(document)


def test_presence_checked_before_ranges():
    # Out-of-range wallet AND missing level: the structural error wins
    with pytest.raises(MalformedInputError):
        validate({"wallet": -1000, "bank": 50, "profile": {"xp": 500}})


def test_unknown_fields_ignored():
    state = doc()
    state["inventory"] = [{"id": "fishing_rod"}]
    state["profile"]["username"] = "Sam"
    assert validate(state) is True


def test_validate_json():
    assert validate_json(json.dumps(doc())) is True
    assert validate_json(json.dumps(doc(wallet=-1))) is False
    with pytest.raises(MalformedInputError):
        validate_json("{ nope")


def test_check_reports_every_violation():
    report = StateValidator().check(doc(wallet=-1, bank=-2, level=0, xp=2_000_000, totalEarnings=-3))
    assert not report.ok
    assert [v.field for v in report.violations] == [
        "wallet",
        "bank",
        "profile.level",
        "profile.xp",
        "profile.totalEarnings",
    ]


def test_custom_limits():
    strict = StateValidator(ValidatorLimits(max_level=50))
    assert strict.validate(doc(level=51)) is False
    assert validate(doc(level=51)) is True


def test_snake_case_earnings_key_is_not_read():
    state = doc()
    state["profile"]["total_earnings"] = 99_000_000
    assert validate(state) is True
