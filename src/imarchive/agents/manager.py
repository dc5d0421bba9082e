# imarchive/src/imarchive/agents/manager.py

from typing import Optional

from imarchive.agents.base.multimodal_agent import BaseMultimodalAgent
from imarchive.agents.providers.ollama.multimodal_agent import OllamaMultimodalAgent
from imarchive.agents.providers.openai.multimodal_agent import OpenAIMultimodalAgent
from imarchive.core.config import Settings, get_settings

NO_PROVIDER = "none"


class AgentManager:
    """
    Factory class for creating multimodal agents from settings.
    """
    def __init__(self, settings: Optional[Settings] = None):
        """Initialize agent manager with configuration."""
        self.settings = settings or get_settings()

        # Provider configurations
        self.provider_config = {
            "openai": {
                "vision_model": self.settings.openai_vision_model,
            },
            "ollama": {
                "base_url": self.settings.ollama_url,
                "vision_model": self.settings.vision_model_name,
            },
        }

        # Agent class mappings
        self.agent_classes = {
            "multimodal": {
                "openai": OpenAIMultimodalAgent,
                "ollama": OllamaMultimodalAgent,
            }
        }

    def get_multimodal_agent(self, provider: Optional[str] = None) -> Optional[BaseMultimodalAgent]:
        """
        Get a multimodal agent for the specified provider.

        Args:
            provider: Provider name ("ollama", "openai" or "none")
                     If None, uses the provider from settings

        Returns:
            An instance of BaseMultimodalAgent, or None when labeling is disabled
        """
        provider = (provider or self.settings.multimodal_provider).lower()
        if provider == NO_PROVIDER:
            return None

        if provider not in self.agent_classes["multimodal"]:
            raise ValueError(f"Multimodal agent not available for provider: {provider}")

        agent_class = self.agent_classes["multimodal"][provider]
        config = self.provider_config[provider]

        if provider == "openai":
            return agent_class(
                api_key=self.settings.get_secure_value("OPENAI_API_KEY"),
                model_name=config["vision_model"]
            )
        return agent_class(
            model_name=config["vision_model"],
            base_url=config["base_url"]
        )

    def available_providers(self, agent_type: str = "multimodal") -> list:
        """
        Get a list of available providers for a given agent type.
        """
        if agent_type not in self.agent_classes:
            raise ValueError(f"Unknown agent type: {agent_type}")
        return list(self.agent_classes[agent_type].keys())
