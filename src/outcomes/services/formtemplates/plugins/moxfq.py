from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from src.outcomes.domain.models.scoring import ScoringData, SubscaleScore
from src.outcomes.services.formtemplates.plugins.base import (
    Question,
    ScoringPlugin,
    Section,
    build_score,
    valid_answers,
)

_QUESTION_TITLES = (
    "I have pain in my foot/ankle",
    "I avoid walking long distances because of pain in my foot/ankle",
    "I change the way I walk due to pain in my foot/ankle",
    "I walk slowly because of pain in my foot/ankle",
    "I have to stop and rest my foot/ankle because of pain",
    "I avoid some hard or rough surfaces because of pain in my foot/ankle",
    "I avoid standing for a long time because of pain in my foot/ankle",
    "I catch the bus or use the car instead of walking, because of pain in my foot/ankle",
    "I feel self-conscious about my foot/ankle",
    "I feel self-conscious about the shoes I have to wear",
    "The pain in my foot/ankle is more painful in the evening",
    "I get shooting pains in my foot/ankle",
    "The pain in my foot/ankle prevents me from carrying out my work/everyday activities",
    "I am unable to do all my social or recreational activities because of pain in my foot",
    "During the past 4 weeks how would you describe the pain you usually have in your foot/ankle?",
    "During the past 4 weeks have you been troubled by pain from your foot/ankle in bed at night?",
)

SUBSCALES = {
    "walkingStanding": (
        ("q1", "q2", "q3", "q4", "q5", "q6", "q7", "q8"),
        "Walking & Standing",
        "Assesses difficulties in walking and standing.",
    ),
    "pain": (("q9", "q11", "q12", "q15"), "Pain", "Evaluates pain levels and impact."),
    "socialInteraction": (
        ("q10", "q13", "q14", "q16"),
        "Social Interaction",
        "Measures social engagement and interaction.",
    ),
}


def _subscale(answers: Mapping[str, Any], keys: Sequence[str], name: str, description: str) -> Optional[SubscaleScore]:
    values = valid_answers(answers, keys)
    if not values:
        return None
    return build_score(
        name=name,
        description=description,
        answers=values,
        total_questions=len(keys),
        max_score=len(keys) * 4,
    )


class MoxfqPlugin(ScoringPlugin):
    """Manchester-Oxford Foot Questionnaire: 16 items scored 0 (none) to 4."""

    template_id = "67b4e612d0feb4ad99ae2e85"
    name = "Manchester-Oxford Foot Questionnaire"
    description = "A standardized questionnaire to assess foot and ankle pain and its impact on daily activities"
    sections = (
        Section(
            key="moxfq",
            title="MOXFQ",
            questions=tuple(
                Question(key=f"q{index}", title=title, minimum=0, maximum=4, options=(0, 1, 2, 3, 4))
                for index, title in enumerate(_QUESTION_TITLES, start=1)
            ),
        ),
    )

    def section_answers(self, data: Mapping[str, Any], section: Section) -> Mapping[str, Any]:
        # Answers may be nested under "moxfq" or submitted flat.
        nested = data.get("moxfq")
        return nested if isinstance(nested, Mapping) else data

    def calculate_score(self, data: Mapping[str, Any]) -> ScoringData:
        answers = self.section_answers(data, self.sections[0])
        subscales = {
            key: _subscale(answers, keys, name, description)
            for key, (keys, name, description) in SUBSCALES.items()
        }
        all_keys = [key for keys, _, _ in SUBSCALES.values() for key in keys]
        total = _subscale(answers, all_keys, "Total", "Measures overall health status.")
        return ScoringData(raw_data=dict(data), subscales=subscales, total=total)


moxfq_plugin = MoxfqPlugin()
