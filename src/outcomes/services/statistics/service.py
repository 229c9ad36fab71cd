from __future__ import annotations

import logging
from typing import List

from src.outcomes.domain.models.statistics import CaseStatistics, ConsultationScores, PromScores
from src.outcomes.errors import NotFoundError
from src.outcomes.infra.db import inmemory as repos

logger = logging.getLogger(__name__)


class StatisticsService:
    def get_case_statistics(self, case_id: str) -> CaseStatistics:
        """Score series of a case: every consultation in date order with its form scores."""

        case = repos.patient_case_repository.get(case_id)
        if case is None or case.is_deleted:
            raise NotFoundError("Case not found")

        consultations = sorted(
            repos.consultation_repository.list(lambda c: c.patient_case_id == case_id),
            key=lambda c: c.date_and_time,
        )
        series: List[ConsultationScores] = []
        for consultation in consultations:
            proms: List[PromScores] = []
            for form_id in consultation.proms:
                form = repos.form_repository.get(form_id)
                if form is None or form.is_deleted:
                    logger.warning("Form %s of consultation %s is missing", form_id, consultation.id)
                    continue
                data = form.patient_form_data
                proms.append(
                    PromScores(
                        form_id=form.id,
                        form_template_id=form.form_template_id,
                        title=form.title,
                        subscales=data.subscales if data else {},
                        total=data.total if data else None,
                        created_at=form.created_at,
                        completed_at=data.completed_at if data else None,
                        completion_time_seconds=form.completion_time_seconds,
                    )
                )
            series.append(
                ConsultationScores(consultation_id=consultation.id, date=consultation.date_and_time, proms=proms)
            )

        surgeries = [repos.surgery_repository.get(surgery_id) for surgery_id in case.surgeries]
        surgery_dates = [s.surgery_date for s in surgeries if s is not None]
        return CaseStatistics(
            case_id=case_id,
            total_consultations=len(series),
            consultations=series,
            surgery_date=surgery_dates[0] if surgery_dates else None,
            case_created_at=case.created_at,
        )


statistics_service = StatisticsService()
