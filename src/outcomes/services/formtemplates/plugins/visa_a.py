from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Sequence

from src.outcomes.domain.models.scoring import ScoringData, SubscaleScore
from src.outcomes.services.formtemplates.plugins.base import (
    Question,
    ScoringPlugin,
    Section,
    build_score,
    round_half_up,
    valid_answers,
)

# key -> (questions, name, description, max score)
SUBSCALES = {
    "symptoms": (("q1", "q2", "q3"), "Symptoms", "Achilles tendon pain and stiffness", 30),
    "dailyFunction": (("q4",), "Daily Function", "Walking downstairs with normal gait", 10),
    "sportFunction": (("q5", "q6"), "Sport Function", "Sport-specific functional tests", 40),
    "activity": (("q7", "q8"), "Activity", "Physical activity and sport participation", 40),
}

TOTAL_MAX = 100


def _subscale(
    answers: Mapping[str, Any], keys: Sequence[str], name: str, description: str, max_score: float
) -> Optional[SubscaleScore]:
    values = valid_answers(answers, keys)
    if not values:
        return None
    return build_score(
        name=name,
        description=description,
        answers=values,
        total_questions=len(keys),
        max_score=max_score,
    )


class VisaAPlugin(ScoringPlugin):
    """Victorian Institute of Sports Assessment - Achilles (0-100, higher is better)."""

    template_id = "67b4e612d0feb4ad99ae2e8a"
    name = "VISA-A Questionnaire"
    description = (
        "Victorian Institute of Sports Assessment - Achilles (VISA-A): "
        "Assessment of Achilles tendon pain and functional limitations"
    )
    sections = (
        Section(
            key="visaa",
            title="VISA-A",
            questions=(
                Question("q1", "Minutes of stiffness in the Achilles region on first getting up", 0, 10),
                Question("q2", "Pain when stretching the Achilles tendon fully over the edge of a step", 0, 10),
                Question("q3", "Pain after walking on flat ground for 30 minutes", 0, 10),
                Question("q4", "Pain walking downstairs with a normal gait cycle", 0, 10),
                Question("q5", "Pain during or immediately after 10 single-leg heel raises", 0, 30),
                Question("q6", "Number of single-leg hops without pain", 0, 10),
                Question("q7", "Current participation in sport or other physical activity", 0, 10),
                Question("q8", "Training or practice duration with Achilles symptoms", 0, 30),
            ),
        ),
    )

    def section_answers(self, data: Mapping[str, Any], section: Section) -> Mapping[str, Any]:
        nested = data.get("visaa")
        return nested if isinstance(nested, Mapping) else data

    def calculate_score(self, data: Mapping[str, Any]) -> ScoringData:
        answers = self.section_answers(data, self.sections[0])
        subscales = {
            key: _subscale(answers, keys, name, description, max_score)
            for key, (keys, name, description, max_score) in SUBSCALES.items()
        }

        all_keys = [key for keys, _, _, _ in SUBSCALES.values() for key in keys]
        values = valid_answers(answers, all_keys)
        total = None
        if values:
            raw_score = sum(values)
            complete = len(values) == len(all_keys)
            # The raw sum is already on the 0-100 scale, but only meaningful
            # once every question is answered.
            total = SubscaleScore(
                name="Total VISA-A Score",
                description="Overall Achilles tendon pain and function assessment (0-100, higher is better)",
                raw_score=raw_score,
                normalized_score=raw_score if complete else None,
                max_possible_score=TOTAL_MAX,
                answered_questions=len(values),
                total_questions=len(all_keys),
                completion_percentage=int(round_half_up(len(values) / len(all_keys) * 100)),
                is_complete=complete,
            )
        return ScoringData(raw_data=dict(data), subscales=subscales, total=total)

    def generate_mock_data(self) -> Dict[str, Any]:
        return {"visaa": {"q1": 7, "q2": 6, "q3": 5, "q4": 7, "q5": 15, "q6": 8, "q7": 6, "q8": 20}}


visa_a_plugin = VisaAPlugin()
