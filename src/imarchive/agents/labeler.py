"""
Turn a multimodal agent into the ``image -> label`` function used when
metadata is generated by AI.
"""

import logging
from pathlib import Path
from typing import Optional

import requests

from imarchive.agents.base.multimodal_agent import BaseMultimodalAgent
from imarchive.agents.manager import AgentManager
from imarchive.core.config import Settings
from imarchive.core.errors import LabelingFailed
from imarchive.metadata.resolver import ImageLabeler

logger = logging.getLogger(__name__)


def agent_labeler(agent: BaseMultimodalAgent, prompt: Optional[str] = None) -> ImageLabeler:
    """Wrap ``agent`` so that it maps an image path to a one-line label."""

    def label(image_path: Path) -> str:
        logger.info("Labeling %s with %s (%s)", Path(image_path).name, agent.agent_name, agent.provider)
        try:
            return agent.label_image(str(image_path), prompt=prompt)
        except (requests.RequestException, OSError, ValueError, RuntimeError) as e:
            raise LabelingFailed(image_path, str(e)) from e

    return label


def labeler_from_settings(settings: Settings) -> Optional[ImageLabeler]:
    """The labeler configured by ``multimodal_provider``; None when disabled."""
    agent = AgentManager(settings).get_multimodal_agent()
    if agent is None:
        return None
    return agent_labeler(agent, prompt=settings.label_prompt)
