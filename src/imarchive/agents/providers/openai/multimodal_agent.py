"""
OpenAI implementation of multimodal agent.
"""

try:
    import openai
except ImportError:
    openai = None  # installed with the "openai" extra

import mimetypes
from typing import List

from imarchive.agents.base.multimodal_agent import BaseMultimodalAgent


class OpenAIMultimodalAgent(BaseMultimodalAgent):
    """OpenAI implementation of multimodal capabilities."""

    def __init__(
        self,
        api_key: str,
        model_name: str = "gpt-4o-mini",
        temperature: float = 0.2,
        max_tokens: int = 50,
        **kwargs
    ):
        """Initialize the OpenAI multimodal agent.

        Args:
            api_key: OpenAI API key
            model_name: Name of the vision model to use
            temperature: Temperature for generation
            max_tokens: Maximum tokens to generate
            **kwargs: Additional configuration options
        """
        super().__init__(**kwargs)

        if openai is None:
            raise ImportError("The 'openai' library is not installed. Please install it to use OpenAIMultimodalAgent.")

        self._model_name = model_name
        self._temperature = temperature
        self._max_tokens = max_tokens
        self.client = openai.OpenAI(api_key=api_key)

    @property
    def provider(self) -> str:
        """Get the provider name for this agent."""
        return "openai"

    def chat_with_images(self, prompt: str, image_paths: List[str]) -> str:
        content = [{"type": "text", "text": prompt}]
        for image_path in image_paths:
            mime_type = mimetypes.guess_type(image_path)[0] or "image/png"
            content.append({
                "type": "image_url",
                "image_url": {"url": f"data:{mime_type};base64,{self._encode_image(image_path)}"}
            })

        try:
            response = self.client.chat.completions.create(
                model=self._model_name,
                messages=[{"role": "user", "content": content}],
                temperature=self._temperature,
                max_tokens=self._max_tokens
            )
        except openai.OpenAIError as e:
            raise RuntimeError(f"OpenAI request failed: {e}") from e
        return response.choices[0].message.content or ""
