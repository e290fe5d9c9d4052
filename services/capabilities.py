"""Bind LLM routes from the JSON config to the capability registry keys."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional, Type

from pydantic import BaseModel

from agents.types import AnswerOut, FollowUpOut, QualityVerdict
from config import FOLLOW_UP_KEY, QUALITY_KEY, RESPONDER_KEY, bind_model, load_config, resolve_registry
from llm_gateway import HttpClient, model_fn

logger = logging.getLogger(__name__)

CAPABILITY_SCHEMAS: Dict[str, Type[BaseModel]] = {
    QUALITY_KEY: QualityVerdict,
    FOLLOW_UP_KEY: FollowUpOut,
    RESPONDER_KEY: AnswerOut,
}


def bind_capabilities(config_path: Path, *, client: Optional[HttpClient] = None) -> List[str]:
    """Load the routing config and bind every capability to its gateway route.

    Raises:
        KeyError: If the config does not route one of the capabilities.
    """

    cfg = load_config(config_path)
    resolved = resolve_registry(cfg, CAPABILITY_SCHEMAS)
    for key, (route, schema) in resolved.items():
        bind_model(key, model_fn(route, schema, client=client))
        logger.info("Bound capability %s to route=%s model=%s", key, route.name, route.model)
    return sorted(resolved)


__all__ = ["CAPABILITY_SCHEMAS", "bind_capabilities"]
