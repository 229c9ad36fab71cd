import pytest

from src.outcomes.services.formtemplates.plugins.moxfq import moxfq_plugin


def _answers(value):
    return {f"q{i}": value for i in range(1, 17)}


def test_all_answers_zero_scores_zero():
    result = moxfq_plugin.calculate_score({"moxfq": _answers(0)})

    assert result.total.raw_score == 0
    assert result.total.normalized_score == 0
    assert result.total.is_complete is True
    assert result.subscales["walkingStanding"].max_possible_score == 32
    assert result.subscales["pain"].max_possible_score == 16
    assert result.subscales["socialInteraction"].max_possible_score == 16


def test_all_answers_four_scores_hundred():
    result = moxfq_plugin.calculate_score({"moxfq": _answers(4)})

    assert result.total.raw_score == 64
    assert result.total.normalized_score == 100
    for subscale in result.subscales.values():
        assert subscale.normalized_score == 100


def test_partial_answers_keep_full_maximum():
    data = {"moxfq": {"q1": 4, "q2": 2}}
    result = moxfq_plugin.calculate_score(data)

    walking = result.subscales["walkingStanding"]
    assert walking.raw_score == 6
    assert walking.answered_questions == 2
    assert walking.total_questions == 8
    assert walking.completion_percentage == 25
    assert walking.normalized_score == pytest.approx(18.75)
    assert walking.is_complete is False
    # No answer in these subscales at all.
    assert result.subscales["pain"] is None
    assert result.subscales["socialInteraction"] is None
    assert result.total.answered_questions == 2


def test_flat_answers_are_accepted():
    result = moxfq_plugin.calculate_score(_answers(1))
    assert result.total.raw_score == 16


def test_unparsable_values_count_as_unanswered():
    data = {"moxfq": {"q1": "3", "q2": "n/a", "q3": True, "q4": float("nan")}}
    result = moxfq_plugin.calculate_score(data)

    walking = result.subscales["walkingStanding"]
    assert walking.raw_score == 3
    assert walking.answered_questions == 1


def test_empty_submission_has_no_total():
    result = moxfq_plugin.calculate_score({})
    assert result.total is None


def test_validate_rejects_out_of_range_answers():
    assert moxfq_plugin.validate_form_data({"moxfq": {"q1": 2}}) is True
    assert moxfq_plugin.validate_form_data({"moxfq": {"q1": 5}}) is False
    assert moxfq_plugin.validate_form_data("not a mapping") is False


def test_mock_data_is_valid_and_complete():
    mock = moxfq_plugin.generate_mock_data()
    assert moxfq_plugin.validate_form_data(mock)
    assert moxfq_plugin.calculate_score(mock).total.is_complete


def test_form_template_carries_schema_for_every_question():
    template = moxfq_plugin.form_template()
    assert template.id == moxfq_plugin.template_id
    questions = template.form_schema["properties"]["moxfq"]["properties"]
    assert len(questions) == 16
    assert questions["q1"]["enum"] == [0, 1, 2, 3, 4]
