"""Idea similarity agent: asks Gemini whether an idea duplicates a known company."""

import json
import re
from typing import Any, Dict

from agents.base import BaseAgent
from agents.registry import register_agent
from agents.review.prompts import (
    COMPANY_TEMPLATE,
    SIMILARITY_ANALYSIS_PROMPT,
    SIMILARITY_SYSTEM_PROMPT,
)
from core.exceptions import RemoteJudgeError

# Models sometimes wrap the JSON object in prose or markdown fences
JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def extract_json(text: str) -> Dict[str, Any]:
    """Parse the first JSON object found in a model response.

    Raises:
        RemoteJudgeError: If no JSON object can be parsed
    """
    match = JSON_OBJECT.search(text or "")
    if not match:
        raise RemoteJudgeError("Response contains no JSON object")
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise RemoteJudgeError(f"Response is not valid JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise RemoteJudgeError("Response JSON is not an object")
    return parsed


@register_agent("idea_similarity")
class IdeaSimilarityAgent(BaseAgent):
    """Agent comparing an application with a corpus of existing companies."""

    def __init__(self):
        super().__init__(
            name="idea_similarity",
            instructions=SIMILARITY_SYSTEM_PROMPT,
            response_mime_type="application/json",
        )

    @staticmethod
    def build_prompt(application: Dict[str, Any], corpus: list[Dict[str, Any]]) -> str:
        companies = "\n".join(
            COMPANY_TEMPLATE.format(
                name=entry.get("name", ""),
                one_liner=entry.get("one_liner") or "Not specified",
                description=entry.get("description", ""),
                industry=entry.get("industry") or "Not specified",
                tags=", ".join(entry.get("tags") or []) or "None",
            )
            for entry in corpus
        )
        return SIMILARITY_ANALYSIS_PROMPT.format(
            title=application.get("title", ""),
            description=application.get("description", ""),
            problem=application.get("problem_statement") or "Not specified",
            solution=application.get("solution") or "Not specified",
            business_model=application.get("business_model") or "Not specified",
            companies=companies or "None",
        )

    async def process(self, input_data: Dict[str, Any]) -> Dict[str, Any]:
        """Judge an application against the corpus.

        Args:
            input_data: Dictionary with 'application' and 'corpus'

        Returns:
            Parsed similarity verdict as returned by the model
        """
        prompt = self.build_prompt(
            input_data.get("application", {}),
            input_data.get("corpus", []),
        )
        response = await self.run(prompt)
        return extract_json(response)
