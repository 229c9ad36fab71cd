import pytest

from src.outcomes.errors import NotFoundError
from src.outcomes.services.formtemplates.plugins.base import parse_answer, round_half_up
from src.outcomes.services.formtemplates.plugins.efas import efas_plugin
from src.outcomes.services.formtemplates.plugins.registry import all_plugins, calculate_form_score, get_plugin
from src.outcomes.services.formtemplates.plugins.vas import vas_plugin
from src.outcomes.services.formtemplates.plugins.visa_a import visa_a_plugin


# Helpers


@pytest.mark.parametrize(
    "value, expected",
    [(3, 3.0), ("2.5", 2.5), (True, None), ("abc", None), (float("nan"), None), (None, None), ([1], None)],
)
def test_parse_answer(value, expected):
    assert parse_answer(value) == expected


def test_round_half_up():
    assert round_half_up(12.5) == 13
    assert round_half_up(0.125, 2) == pytest.approx(0.13)


# EFAS


def test_efas_sections_and_total():
    data = efas_plugin.generate_mock_data()
    result = efas_plugin.calculate_score(data)

    standard = result.subscales["standardfragebogen"]
    sport = result.subscales["sportfragebogen"]
    assert standard.raw_score == 21
    assert standard.max_possible_score == 30
    assert standard.normalized_score == 70
    assert sport.raw_score == 12
    assert sport.max_possible_score == 20
    assert sport.normalized_score == 60
    assert result.total.name == "EFAS Total"
    assert result.total.raw_score == 33
    assert result.total.max_possible_score == 50
    assert result.total.normalized_score == 66


def test_efas_missing_sport_section():
    result = efas_plugin.calculate_score({"standardfragebogen": {"q1": 5, "q2": 5}})

    assert result.subscales["sportfragebogen"] is None
    assert result.subscales["standardfragebogen"].normalized_score == 100
    assert result.total.total_questions == 2


def test_efas_section_without_answers():
    result = efas_plugin.calculate_score({"standardfragebogen": {"q1": None, "q2": None}})

    standard = result.subscales["standardfragebogen"]
    assert standard.raw_score is None
    assert standard.normalized_score is None
    assert standard.max_possible_score == 10
    assert result.total is None


# VAS


def test_vas_score_is_the_rating():
    result = vas_plugin.calculate_score({"vas": {"pain": 7}})

    assert result.total.name == "VAS Total"
    assert result.total.raw_score == 7
    assert result.total.normalized_score == 7
    assert result.total.is_complete is True
    assert result.subscales["vas"] == result.total


def test_vas_falls_back_to_first_section_and_handles_missing_answer():
    assert vas_plugin.calculate_score({"other": {"pain": 2}}).total.raw_score == 2

    empty = vas_plugin.calculate_score({"vas": {}})
    assert empty.total.raw_score is None
    assert empty.total.completion_percentage == 0
    assert empty.total.is_complete is False


def test_vas_validation_range():
    assert vas_plugin.validate_form_data({"vas": {"pain": 10}})
    assert not vas_plugin.validate_form_data({"vas": {"pain": 11}})


# VISA-A


def test_visa_a_complete_submission():
    result = visa_a_plugin.calculate_score(visa_a_plugin.generate_mock_data())

    assert result.total.name == "Total VISA-A Score"
    assert result.total.raw_score == 74
    assert result.total.normalized_score == 74
    assert result.total.is_complete is True
    assert result.subscales["symptoms"].raw_score == 18
    assert result.subscales["symptoms"].normalized_score == 60
    assert result.subscales["dailyFunction"].raw_score == 7
    assert result.subscales["sportFunction"].raw_score == 23
    assert result.subscales["sportFunction"].max_possible_score == 40
    assert result.subscales["activity"].raw_score == 26


def test_visa_a_incomplete_total_is_not_normalized():
    result = visa_a_plugin.calculate_score({"q1": 10, "q2": 10, "q3": 10})

    assert result.total.raw_score == 30
    assert result.total.normalized_score is None
    assert result.total.completion_percentage == 38
    assert result.subscales["symptoms"].is_complete is True
    assert result.subscales["activity"] is None


def test_visa_a_heel_raise_item_allows_thirty():
    assert visa_a_plugin.validate_form_data({"visaa": {"q5": 30}})
    assert not visa_a_plugin.validate_form_data({"visaa": {"q1": 11}})


# Registry


def test_registry_ids_are_unique_and_resolvable():
    plugins = all_plugins()
    ids = [plugin.template_id for plugin in plugins]
    assert len(plugins) == 8
    assert len(set(ids)) == len(ids)
    for template_id in ids:
        assert get_plugin(template_id) is not None


def test_calculate_form_score_unknown_template():
    with pytest.raises(NotFoundError):
        calculate_form_score("000000000000000000000000", {})
