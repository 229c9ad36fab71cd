from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from src.outcomes.domain.models.scoring import ScoringData, SubscaleScore
from src.outcomes.services.formtemplates.plugins.base import (
    Question,
    ScoringPlugin,
    Section,
    build_score,
    valid_answers,
)

MAX_PER_QUESTION = 5

_LABELS = {
    "standardfragebogen": ("Standard Questions", "Daily activity questions"),
    "sportfragebogen": ("Sport Questions", "Sports-specific questions"),
}


def _question(key: str, title: str) -> Question:
    return Question(key=key, title=title, minimum=0, maximum=MAX_PER_QUESTION)


class EfasPlugin(ScoringPlugin):
    """European Foot and Ankle Society score.

    Two sections: daily activities and sport. Questions are scored 0-5 and
    each section is normalized over the questions present in the submission.
    """

    template_id = "67b4e612d0feb4ad99ae2e83"
    name = "EFAS Score"
    description = "European Foot and Ankle Society patient-reported outcome measure"
    sections = (
        Section(
            key="standardfragebogen",
            title="Standard Questions",
            questions=(
                _question("q1", "Pain during the day"),
                _question("q2", "Pain when walking on uneven ground"),
                _question("q3", "Stiffness of the foot/ankle"),
                _question("q4", "Walking distance"),
                _question("q5", "Running"),
                _question("q6", "Jumping"),
            ),
        ),
        Section(
            key="sportfragebogen",
            title="Sport Questions",
            questions=(
                _question("q1", "Sports with quick changes of direction"),
                _question("q2", "Pain during sport"),
                _question("q3", "Jumping during sport"),
                _question("q4", "Landing during sport"),
            ),
        ),
    )

    def _section_score(self, section_key: str, answers: Mapping[str, Any]) -> Optional[SubscaleScore]:
        if not answers:
            return None
        name, description = _LABELS[section_key]
        keys = list(answers.keys())
        values = valid_answers(answers, keys)
        if not values:
            return SubscaleScore(
                name=name,
                description=description,
                raw_score=None,
                normalized_score=None,
                max_possible_score=len(keys) * MAX_PER_QUESTION,
                answered_questions=0,
                total_questions=len(keys),
                completion_percentage=0,
                is_complete=False,
            )
        return build_score(
            name=name,
            description=description,
            answers=values,
            total_questions=len(keys),
            max_score=len(keys) * MAX_PER_QUESTION,
        )

    def calculate_score(self, data: Mapping[str, Any]) -> ScoringData:
        subscales: Dict[str, Optional[SubscaleScore]] = {}
        all_values: List[float] = []
        question_count = 0
        for section in self.sections:
            answers = self.section_answers(data, section)
            subscales[section.key] = self._section_score(section.key, answers)
            question_count += len(answers)
            all_values.extend(valid_answers(answers, answers.keys()))

        total = None
        if all_values:
            total = build_score(
                name="EFAS Total",
                description="European Foot and Ankle Society Score",
                answers=all_values,
                total_questions=question_count,
                max_score=question_count * MAX_PER_QUESTION,
            )
        return ScoringData(raw_data=dict(data), subscales=subscales, total=total)

    def generate_mock_data(self) -> Dict[str, Any]:
        return {
            "standardfragebogen": {"q1": 4, "q2": 3, "q3": 4, "q4": 5, "q5": 2, "q6": 3},
            "sportfragebogen": {"q1": 3, "q2": 4, "q3": 2, "q4": 3},
        }


efas_plugin = EfasPlugin()
