"""
Agents package: pluggable AI labeling for image metadata.
"""

from imarchive.agents.base.agent import BaseAgent
from imarchive.agents.base.multimodal_agent import BaseMultimodalAgent
from imarchive.agents.labeler import agent_labeler, labeler_from_settings
from imarchive.agents.manager import AgentManager
