"""
PromptGenerator — top artists in, text-to-image prompt out.
"""

from __future__ import annotations

import logging
from typing import List

from core.prompts import PosterPrompts
from utils.llm_providers import BaseLLMProvider

logger = logging.getLogger(__name__)

TOP_ARTIST_COUNT = 2


def pick_top_artists(artist_names: List[str], count: int = TOP_ARTIST_COUNT) -> List[str]:
    """First ``count`` names in the order the provider returned them."""
    return list(artist_names[:count])


class PromptGenerator:
    def __init__(self, llm: BaseLLMProvider, *, temperature: float = 0.7):
        self.llm = llm
        self.temperature = temperature

    async def generate(self, artist_names: List[str]) -> str:
        poster_prompt = PosterPrompts.poster_prompt(artist_names)
        text = await self.llm.generate(
            PosterPrompts.image_request(poster_prompt),
            temperature=self.temperature,
        )
        logger.debug("Generated prompt for %s (%d chars)", artist_names, len(text))
        return text
