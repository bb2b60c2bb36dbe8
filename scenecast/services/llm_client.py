"""LLM Client - centralized OpenAI client for text-generation operations."""

from typing import Any

from scenecast.core.config import Settings

SCENE_DELIMITER = "|||"


class LLMClient:
    """Centralized LLM client for OpenAI operations."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize LLM client.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self._client = None

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.openai_api_key)

    def _get_client(self):
        """Get or create OpenAI client."""
        if self._client is None:
            from openai import OpenAI

            if not self.settings.openai_api_key:
                raise ValueError("OpenAI API key not configured")
            self._client = OpenAI(api_key=self.settings.openai_api_key, timeout=self.settings.llm_timeout_seconds)
        return self._client

    def split_into_scenes(self, text: str, target_count: int) -> list[str]:
        """
        Ask the model to split a script into a fixed number of sections.

        Args:
            text: Cleaned script text
            target_count: Number of sections requested

        Returns:
            Non-empty trimmed sections, in the order returned by the model
            (the count may differ from ``target_count``)

        Raises:
            Exception: If the API call fails
        """
        self.logger.debug(f"Requesting semantic split into {target_count} sections")

        prompt = (
            "Think as a professional short-form vertical video editor. "
            f"Split this text into exactly {target_count} logical sections. "
            "Keep each section short enough that a viewer can follow it in a few seconds, "
            "avoid long sentences, and do not rewrite, add or drop any words. "
            f'Return only the split text separated by "{SCENE_DELIMITER}":\n\n{text}'
        )

        client = self._get_client()
        response = client.chat.completions.create(
            model=self.settings.openai_model,
            messages=[
                {
                    "role": "system",
                    "content": "You split narration scripts into scenes for short vertical videos.",
                },
                {"role": "user", "content": prompt},
            ],
            temperature=0.3,
            max_tokens=1000,
        )

        content = response.choices[0].message.content or ""
        sections = [s.strip() for s in content.split(SCENE_DELIMITER)]
        sections = [s for s in sections if s]
        self.logger.debug(f"LLM returned {len(sections)} sections")
        return sections
