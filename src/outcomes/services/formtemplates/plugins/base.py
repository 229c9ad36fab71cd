from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from src.outcomes.domain.models.form_template import FormTemplate
from src.outcomes.domain.models.scoring import ScoringData, SubscaleScore


def parse_answer(value: Any) -> Optional[float]:
    """Return a numeric answer, or None when the question counts as unanswered.

    Numbers are taken as-is and numeric strings are parsed. NaN, booleans and
    anything else are treated as unanswered.
    """

    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        parsed = float(value)
    elif isinstance(value, str):
        try:
            parsed = float(value)
        except ValueError:
            return None
    else:
        return None
    return None if math.isnan(parsed) else parsed


def valid_answers(answers: Mapping[str, Any], keys: Iterable[str]) -> List[float]:
    parsed = (parse_answer(answers.get(key)) for key in keys)
    return [value for value in parsed if value is not None]


def round_half_up(value: float, digits: int = 0) -> float:
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def build_score(
    *,
    name: str,
    description: str,
    answers: List[float],
    total_questions: int,
    max_score: float,
) -> SubscaleScore:
    """Aggregate answered values into a SubscaleScore on a 0-100 scale."""

    raw_score = sum(answers)
    completion = len(answers) / total_questions if total_questions else 0.0
    return SubscaleScore(
        name=name,
        description=description,
        raw_score=raw_score,
        normalized_score=round_half_up(raw_score / max_score * 100, 2),
        max_possible_score=max_score,
        answered_questions=len(answers),
        total_questions=total_questions,
        completion_percentage=int(round_half_up(completion * 100)),
        is_complete=len(answers) == total_questions,
    )


@dataclass(frozen=True)
class Question:
    key: str
    title: str
    minimum: float = 0
    maximum: float = 4
    # Allowed values, best outcome first. Empty means any value in range.
    options: Tuple[float, ...] = ()

    def schema(self) -> Dict[str, Any]:
        schema: Dict[str, Any] = {
            "type": "number",
            "title": self.title,
            "minimum": self.minimum,
            "maximum": self.maximum,
        }
        if self.options:
            schema["enum"] = list(self.options)
        return schema

    def accepts(self, value: float) -> bool:
        if self.options:
            return value in self.options
        return self.minimum <= value <= self.maximum


@dataclass(frozen=True)
class Section:
    key: str
    title: str
    questions: Tuple[Question, ...] = field(default_factory=tuple)

    @property
    def question_keys(self) -> List[str]:
        return [question.key for question in self.questions]


def build_form_schema(sections: Iterable[Section]) -> Dict[str, Any]:
    """Render questionnaire sections as a JSON schema for the form renderer."""

    return {
        "type": "object",
        "properties": {
            section.key: {
                "type": "object",
                "title": section.title,
                "properties": {question.key: question.schema() for question in section.questions},
            }
            for section in sections
        },
    }


class ScoringPlugin:
    """Base class for questionnaire plugins.

    A plugin describes one form template (its id, schema and sample answers)
    and scores submitted answers. Scoring is a pure function of the answer
    map, shaped ``{section: {question: value}}``.
    """

    template_id: str = ""
    name: str = ""
    description: str = ""
    sections: Tuple[Section, ...] = ()

    def calculate_score(self, data: Mapping[str, Any]) -> ScoringData:  # pragma: no cover - interface
        raise NotImplementedError

    def generate_mock_data(self) -> Dict[str, Any]:
        """Sample answers: the best option (or the minimum) for every question."""

        return {
            section.key: {
                question.key: question.options[0] if question.options else question.minimum
                for question in section.questions
            }
            for section in self.sections
        }

    def section_answers(self, data: Mapping[str, Any], section: Section) -> Mapping[str, Any]:
        answers = data.get(section.key)
        return answers if isinstance(answers, Mapping) else {}

    def validate_form_data(self, data: Any) -> bool:
        """True when every answered question holds an allowed value."""

        if not isinstance(data, Mapping):
            return False
        for section in self.sections:
            answers = self.section_answers(data, section)
            for question in section.questions:
                value = answers.get(question.key)
                if value is None:
                    continue
                parsed = parse_answer(value)
                if parsed is None or not question.accepts(parsed):
                    return False
        return True

    def form_template(self) -> FormTemplate:
        return FormTemplate(
            id=self.template_id,
            title=self.name,
            description=self.description,
            form_schema=build_form_schema(self.sections),
            form_data=self.generate_mock_data(),
        )
