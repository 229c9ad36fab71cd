from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from src.outcomes.domain.models.scoring import ScoringData
from src.outcomes.errors import BadRequestError, NotFoundError
from src.outcomes.security import get_api_key
from src.outcomes.services.formtemplates.plugins.base import ScoringPlugin
from src.outcomes.services.formtemplates.plugins.registry import all_plugins, calculate_form_score, get_plugin

router = APIRouter(
    prefix="/scoring",
    tags=["scoring"],
    dependencies=[Depends(get_api_key)],
)


class ScoringPluginInfo(BaseModel):
    template_id: str
    name: str
    description: str
    sections: List[str]


def _info(plugin: ScoringPlugin) -> ScoringPluginInfo:
    return ScoringPluginInfo(
        template_id=plugin.template_id,
        name=plugin.name,
        description=plugin.description,
        sections=[section.key for section in plugin.sections],
    )


def _plugin_or_404(template_id: str) -> ScoringPlugin:
    plugin = get_plugin(template_id)
    if plugin is None:
        raise NotFoundError(f"No scoring plugin registered for template {template_id}")
    return plugin


@router.get("/plugins", response_model=List[ScoringPluginInfo])
async def list_scoring_plugins() -> List[ScoringPluginInfo]:
    return [_info(plugin) for plugin in all_plugins()]


@router.get("/plugins/{template_id}/mock")
async def get_mock_answers(template_id: str) -> Dict[str, Any]:
    return _plugin_or_404(template_id).generate_mock_data()


@router.post("/{template_id}", response_model=ScoringData)
async def calculate_score(template_id: str, payload: Dict[str, Any]) -> ScoringData:
    """Score an answer map without storing anything."""

    plugin = _plugin_or_404(template_id)
    if not plugin.validate_form_data(payload):
        raise BadRequestError("Form data contains invalid answers")
    return calculate_form_score(template_id, payload)
