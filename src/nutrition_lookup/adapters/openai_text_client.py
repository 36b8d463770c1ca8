"""OpenAI Responses API client for generated nutrition facts."""

from dataclasses import dataclass

from openai import AsyncOpenAI, OpenAIError

from nutrition_lookup.domain.errors import UpstreamError
from nutrition_lookup.services.sources import TextGenerationClient


@dataclass
class OpenAITextClient(TextGenerationClient):
    """Text generation client backed by OpenAI Responses API."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str) -> "OpenAITextClient":
        """Create an OpenAI text client."""
        return cls(client=AsyncOpenAI(api_key=api_key))

    async def generate(self, *, model: str, prompt: str, temperature: float) -> str:
        """Call OpenAI Responses API and return the output text."""
        try:
            response = await self.client.responses.create(
                model=model,
                input=prompt,
                temperature=temperature,
            )
        except OpenAIError as exc:
            raise UpstreamError(f"OpenAI request failed: {exc}") from exc
        output_text = response.output_text
        if not output_text:
            raise UpstreamError("OpenAI returned an empty response")
        return output_text

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()
