from __future__ import annotations

from typing import Any, Mapping, Tuple

from src.outcomes.domain.models.scoring import ScoringData, SubscaleScore
from src.outcomes.services.formtemplates.plugins.base import (
    Question,
    ScoringPlugin,
    Section,
    build_score,
    valid_answers,
)

MAX_SCORE = 100

# Items shared by the AOFAS rating systems. Options list points, best first.
PAIN = Question("pain", "Pain", 0, 40, (40, 30, 20, 0))
ACTIVITY_LIMITATIONS = Question("activity_limitations", "Activity limitations", 0, 10, (10, 7, 4, 0))
FOOTWEAR = Question("footwear", "Footwear requirements", 0, 10, (10, 5, 0))
MTP_MOTION = Question("mtp_motion", "MTP joint motion (dorsiflexion plus plantarflexion)", 0, 10, (10, 5, 0))
IP_MOTION = Question("ip_motion", "IP joint motion (plantarflexion)", 0, 5, (5, 0))
MTP_IP_STABILITY = Question("mtp_ip_stability", "MTP-IP stability (all directions)", 0, 5, (5, 0))
CALLUS = Question("callus", "Callus related to MTP-IP", 0, 5, (5, 0))
ALIGNMENT = Question("alignment", "Alignment", 0, 15, (15, 8, 0))

FOREFOOT_ITEMS = (PAIN, ACTIVITY_LIMITATIONS, FOOTWEAR, MTP_MOTION, IP_MOTION, MTP_IP_STABILITY, CALLUS, ALIGNMENT)

HINDFOOT_ITEMS = (
    PAIN,
    ACTIVITY_LIMITATIONS,
    Question("walking_distance", "Maximum walking distance, blocks", 0, 5, (5, 4, 2, 0)),
    Question("walking_surfaces", "Walking surfaces", 0, 5, (5, 3, 0)),
    Question("gait_abnormality", "Gait abnormality", 0, 8, (8, 4, 0)),
    Question("sagittal_motion", "Sagittal motion (flexion plus extension)", 0, 8, (8, 4, 0)),
    Question("hindfoot_motion", "Hindfoot motion (inversion plus eversion)", 0, 6, (6, 3, 0)),
    Question("ankle_hindfoot_stability", "Ankle-hindfoot stability", 0, 8, (8, 0)),
    Question("alignment", "Alignment", 0, 10, (10, 5, 0)),
)

MIDFOOT_ITEMS = (
    PAIN,
    ACTIVITY_LIMITATIONS,
    Question("footwear", "Footwear requirements", 0, 5, (5, 3, 0)),
    Question("walking_distance", "Maximum walking distance, blocks", 0, 10, (10, 7, 4, 0)),
    Question("walking_surfaces", "Walking surfaces", 0, 10, (10, 5, 0)),
    Question("gait_abnormality", "Gait abnormality", 0, 10, (10, 5, 0)),
    ALIGNMENT,
)


class AofasPlugin(ScoringPlugin):
    """One AOFAS clinical rating system (0-100 points, higher is better).

    All variants share the same scoring: the answers of the first section in
    the submitted map are summed. There are no real subscales, the single
    subscale entry mirrors the total.
    """

    def __init__(
        self,
        *,
        template_id: str,
        subscale_key: str,
        label: str,
        name: str,
        description: str,
        section_key: str,
        items: Tuple[Question, ...],
    ) -> None:
        self.template_id = template_id
        self.subscale_key = subscale_key
        self.label = label
        self.name = name
        self.description = description
        self.sections = (Section(key=section_key, title=label, questions=items),)

    @property
    def total_questions(self) -> int:
        return len(self.sections[0].questions)

    def section_answers(self, data: Mapping[str, Any], section: Section) -> Mapping[str, Any]:
        # The section name differs between exports; the first one is used.
        for value in data.values():
            return value if isinstance(value, Mapping) else {}
        return {}

    def calculate_score(self, data: Mapping[str, Any]) -> ScoringData:
        answers = self.section_answers(data, self.sections[0])
        if not answers:
            return ScoringData(raw_data=dict(data), subscales={}, total=None)

        values = valid_answers(answers, self.sections[0].question_keys)
        if not values:
            total = SubscaleScore(
                name=f"{self.label} Total",
                description=self.description,
                raw_score=0,
                normalized_score=0,
                max_possible_score=MAX_SCORE,
                answered_questions=0,
                total_questions=self.total_questions,
                completion_percentage=0,
                is_complete=False,
            )
        else:
            total = build_score(
                name=f"{self.label} Total",
                description=self.description,
                answers=values,
                total_questions=self.total_questions,
                max_score=MAX_SCORE,
            )
        return ScoringData(raw_data=dict(data), subscales={self.subscale_key: total}, total=total)


aofas_forefoot_plugin = AofasPlugin(
    template_id="67b4e612d0feb4ad99ae2e84",
    subscale_key="aofas-forefoot",
    label="AOFAS Forefoot",
    name="AOFAS Forefoot Score",
    description="American Orthopedic Foot & Ankle Society clinical rating system for forefoot",
    section_key="forefoot",
    items=FOREFOOT_ITEMS,
)

aofas_lesser_toes_plugin = AofasPlugin(
    template_id="67b4e612d0feb4ad99ae2e87",
    subscale_key="aofas-lesser-toes",
    label="AOFAS Lesser Toes",
    name="AOFAS Lesser Toes Score",
    description="American Orthopedic Foot & Ankle Society clinical rating system for lesser toes (MTP-IP)",
    section_key="lesser_toes",
    items=FOREFOOT_ITEMS,
)

aofas_hindfoot_plugin = AofasPlugin(
    template_id="67b4e612d0feb4ad99ae2e88",
    subscale_key="aofas-hindfoot",
    label="AOFAS Hindfoot",
    name="AOFAS Ankle-Hindfoot Score",
    description="American Orthopedic Foot & Ankle Society clinical rating system for ankle and hindfoot",
    section_key="hindfoot",
    items=HINDFOOT_ITEMS,
)

aofas_midfoot_plugin = AofasPlugin(
    template_id="67b4e612d0feb4ad99ae2e89",
    subscale_key="aofas-midfoot",
    label="AOFAS Midfoot",
    name="AOFAS Midfoot Score",
    description="American Orthopedic Foot & Ankle Society clinical rating system for midfoot",
    section_key="midfoot",
    items=MIDFOOT_ITEMS,
)
