"""
Ollama implementation of multimodal agent.
"""

import json
import logging
from typing import List

import requests

from imarchive.agents.base.multimodal_agent import BaseMultimodalAgent

logger = logging.getLogger(__name__)


class OllamaMultimodalAgent(BaseMultimodalAgent):
    """Ollama implementation of multimodal capabilities."""

    def __init__(
        self,
        model_name: str,
        base_url: str = "http://localhost:11434",
        timeout: float = 120.0,
        **kwargs
    ):
        """Initialize the Ollama multimodal agent.

        Args:
            model_name: Name of the vision model to use (e.g., "llava")
            base_url: URL of the Ollama server
            timeout: Seconds to wait for one answer
            **kwargs: Additional configuration options
        """
        super().__init__(**kwargs)

        self._model_name = model_name
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    @property
    def provider(self) -> str:
        """Get the provider name for this agent."""
        return "ollama"

    def chat_with_images(self, prompt: str, image_paths: List[str]) -> str:
        images = [self._encode_image(image_path) for image_path in image_paths]
        payload = {
            "model": self._model_name,
            "messages": [{"role": "user", "content": prompt, "images": images}],
            "stream": False  # Ensure we get a complete response, not streamed
        }

        url = f"{self._base_url}/api/chat"
        response = requests.post(url, json=payload, timeout=self._timeout)
        response.raise_for_status()

        try:
            data = response.json()
        except requests.exceptions.JSONDecodeError:
            # streamed answer: one JSON object per line, the content is split across them
            data = {"message": {"content": ""}}
            for line in response.text.strip().splitlines():
                chunk = json.loads(line)
                data["message"]["content"] += chunk.get("message", {}).get("content", "")

        # Ollama may have different response formats
        return data.get("response") or data.get("message", {}).get("content", "")
