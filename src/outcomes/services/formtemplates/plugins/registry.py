from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from src.outcomes.domain.models.scoring import ScoringData
from src.outcomes.errors import NotFoundError
from src.outcomes.services.formtemplates.plugins.aofas import (
    aofas_forefoot_plugin,
    aofas_hindfoot_plugin,
    aofas_lesser_toes_plugin,
    aofas_midfoot_plugin,
)
from src.outcomes.services.formtemplates.plugins.base import ScoringPlugin
from src.outcomes.services.formtemplates.plugins.efas import efas_plugin
from src.outcomes.services.formtemplates.plugins.moxfq import moxfq_plugin
from src.outcomes.services.formtemplates.plugins.vas import vas_plugin
from src.outcomes.services.formtemplates.plugins.visa_a import visa_a_plugin

ALL_PLUGINS: List[ScoringPlugin] = [
    efas_plugin,
    aofas_forefoot_plugin,
    moxfq_plugin,
    vas_plugin,
    aofas_lesser_toes_plugin,
    aofas_hindfoot_plugin,
    aofas_midfoot_plugin,
    visa_a_plugin,
]

_REGISTRY: Dict[str, ScoringPlugin] = {plugin.template_id: plugin for plugin in ALL_PLUGINS}

if len(_REGISTRY) != len(ALL_PLUGINS):  # pragma: no cover - import-time guard
    raise RuntimeError("Scoring plugins must have unique template ids")


def all_plugins() -> List[ScoringPlugin]:
    return list(ALL_PLUGINS)


def get_plugin(template_id: str) -> Optional[ScoringPlugin]:
    return _REGISTRY.get(template_id)


def calculate_form_score(template_id: str, data: Mapping[str, Any]) -> ScoringData:
    plugin = get_plugin(template_id)
    if plugin is None:
        raise NotFoundError(f"No scoring plugin registered for template {template_id}")
    return plugin.calculate_score(data)
