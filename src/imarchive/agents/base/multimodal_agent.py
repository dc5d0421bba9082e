"""
Base class for multimodal (image + text) capabilities.
"""

import base64
from abc import abstractmethod
from typing import List, Optional

from imarchive.agents.base.agent import BaseAgent

DEFAULT_LABEL_PROMPT = (
    "Give a short label (a few words) for the main subject of this image. "
    "Reply with the label only."
)


class BaseMultimodalAgent(BaseAgent):
    """Base class for multimodal capabilities."""

    @abstractmethod
    def chat_with_images(self, prompt: str, image_paths: List[str]) -> str:
        """Generate a response for the given prompt and images.

        Args:
            prompt: The instruction sent along with the images
            image_paths: List of paths to image files

        Returns:
            Generated response text
        """
        raise NotImplementedError("Multimodal functionality not implemented")

    def label_image(self, image_path: str, prompt: Optional[str] = None) -> str:
        """Return a short text label for a single image.

        Only the first non-empty line of the model's answer is kept.
        """
        response = self.chat_with_images(prompt or DEFAULT_LABEL_PROMPT, [str(image_path)])
        for line in (response or "").splitlines():
            if line.strip():
                return line.strip()
        return ""

    @staticmethod
    def _encode_image(image_path: str) -> str:
        """Encode image to base64 string."""
        with open(image_path, "rb") as image_file:
            return base64.b64encode(image_file.read()).decode("utf-8")
