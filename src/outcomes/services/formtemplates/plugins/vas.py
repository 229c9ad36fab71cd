from __future__ import annotations

from typing import Any, Dict, Mapping

from src.outcomes.domain.models.scoring import ScoringData, SubscaleScore
from src.outcomes.services.formtemplates.plugins.base import Question, ScoringPlugin, Section, parse_answer


class VasPlugin(ScoringPlugin):
    """Visual analog scale: a single 0-10 pain rating, already normalized."""

    template_id = "67b4e612d0feb4ad99ae2e86"
    name = "Visual Analog Scale"
    description = "A simple 0-10 scale for pain assessment"
    sections = (
        Section(
            key="vas",
            title="VAS",
            questions=(Question(key="pain", title="How strong is your pain right now?", minimum=0, maximum=10),),
        ),
    )

    def section_answers(self, data: Mapping[str, Any], section: Section) -> Mapping[str, Any]:
        answers = data.get("vas")
        if answers is None:
            answers = next(iter(data.values()), None)
        return answers if isinstance(answers, Mapping) else {}

    def calculate_score(self, data: Mapping[str, Any]) -> ScoringData:
        raw_score = parse_answer(self.section_answers(data, self.sections[0]).get("pain"))
        answered = raw_score is not None
        total = SubscaleScore(
            name="VAS Total",
            description="Visual Analog Scale",
            raw_score=raw_score,
            normalized_score=raw_score,
            max_possible_score=10,
            answered_questions=1 if answered else 0,
            total_questions=1,
            completion_percentage=100 if answered else 0,
            is_complete=answered,
        )
        return ScoringData(raw_data=dict(data), subscales={"vas": total}, total=total)

    def generate_mock_data(self) -> Dict[str, Any]:
        return {"vas": {"pain": 3}}


vas_plugin = VasPlugin()
