"""Base agent class for Gemini-backed review agents."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from google.genai import types


class BaseAgent(ABC):
    """Base class for all AI agents using the Gemini API."""

    def __init__(
        self,
        name: str,
        instructions: str,
        model: Optional[str] = None,
        tools: Optional[list] = None,
        response_mime_type: Optional[str] = None,
    ):
        """Initialize the agent.

        Args:
            name: Agent name
            instructions: System instructions for the agent
            model: Gemini model to use, defaults to GOOGLE_MODEL
            tools: List of tool functions
            response_mime_type: Requested response format, e.g. application/json
        """
        from core.config import settings

        self.name = name
        self.instructions = instructions
        self.model = model or settings.google_model
        self.tools = tools or []
        self.response_mime_type = response_mime_type
        self._client = None

    def _get_client(self):
        """Get or create the Gemini client."""
        if self._client is None:
            from google import genai
            from core.config import settings

            self._client = genai.Client(
                api_key=settings.google_api_key,
            )
        return self._client

    @abstractmethod
    async def process(self, input_data: Dict[str, Any]) -> Dict[str, Any]:
        """Process input data and return results.

        Args:
            input_data: Input data for the agent

        Returns:
            Processing results
        """
        pass

    async def run(
        self,
        prompt: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Run the agent with a prompt.

        Args:
            prompt: User prompt
            context: Optional context data

        Returns:
            Agent response text
        """
        client = self._get_client()

        text = prompt
        if context:
            text = f"Context: {context}\n\n{prompt}"

        response = await client.aio.models.generate_content(
            model=self.model,
            contents=[types.Content(role="user", parts=[types.Part(text=text)])],
            config=types.GenerateContentConfig(
                system_instruction=self.instructions,
                tools=self.tools or None,
                response_mime_type=self.response_mime_type,
            ),
        )

        return response.text or ""
