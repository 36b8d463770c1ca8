"""External nutrition sources: catalog search or generated nutrition facts."""

import json
import logging
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError

from nutrition_lookup.adapters.open_food_facts_client import CatalogClient
from nutrition_lookup.domain.errors import NotFoundError, UpstreamError
from nutrition_lookup.domain.nutrition import NutritionRecord
from nutrition_lookup.services.nutrient_mapper import map_to_nutrition_record

_logger = logging.getLogger(__name__)

NUTRITION_PROMPT_TEMPLATE = """
First, determine if "{term}" is a food item that would have nutritional information.
If it is NOT a food item, respond with ONLY this exact JSON: {{"isFood": false}}

If it IS a food item, generate accurate nutrition information in this JSON format:
{{
  "isFood": true,
  "calories": number,
  "totalWeight": number,
  "dietLabels": ["LABEL1", "LABEL2"],
  "healthLabels": ["LABEL1", "LABEL2"],
  "nutrients": {{
    "NUTRIENT_CODE": {{
      "label": "Nutrient Name",
      "quantity": number,
      "unit": "g/mg/µg"
    }}
  }}
}}

Include these nutrients at minimum:
- ENERC_KCAL (Energy)
- PROCNT (Protein)
- FAT (Fat)
- CHOCDF (Carbs)
- FIBTG (Fiber)
- CA (Calcium)
- FE (Iron)
- VITC (Vitamin C)

Return ONLY valid JSON with no explanations or additional text.
"""


@dataclass(frozen=True)
class SourceResult:
    """Outcome of a source lookup: a record, or an explicit not-food judgment."""

    record: NutritionRecord | None
    is_food: bool
    product_id: str | None = None


class NutritionSource(Protocol):
    """Strategy that turns a normalized term into nutrition data."""

    async def lookup(self, term: str) -> SourceResult:
        """Resolve a term; raise NotFoundError or UpstreamError on failure."""


class TextGenerationClient(Protocol):
    """Interface for LLM text generation."""

    async def generate(self, *, model: str, prompt: str, temperature: float) -> str:
        """Return the raw generated text."""


@dataclass
class CatalogNutritionSource(NutritionSource):
    """Looks terms up in the Open Food Facts product catalog."""

    client: CatalogClient
    page_size: int = 5

    async def lookup(self, term: str) -> SourceResult:
        """Search the catalog and map the most relevant product."""
        payload = await self.client.search_products(term, page_size=self.page_size)
        products = payload.get("products") if isinstance(payload, dict) else None
        if not isinstance(products, list) or not products:
            raise NotFoundError(term)
        record = map_to_nutrition_record(products[0])
        return SourceResult(record=record, is_food=True, product_id=record.product_id)


@dataclass
class GenerativeNutritionSource(NutritionSource):
    """Asks a text-generation model for nutrition facts."""

    client: TextGenerationClient
    model: str
    temperature: float = 0.2

    async def lookup(self, term: str) -> SourceResult:
        """Prompt the model and parse its JSON answer."""
        text = await self.client.generate(
            model=self.model,
            prompt=NUTRITION_PROMPT_TEMPLATE.format(term=term),
            temperature=self.temperature,
        )
        return parse_generated_nutrition(text)


def parse_generated_nutrition(text: str) -> SourceResult:
    """Parse a model answer into a SourceResult."""
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        _logger.warning("Generated nutrition is not valid JSON: %r", text[:200])
        raise UpstreamError("Failed to generate valid nutrition data") from exc
    if not isinstance(payload, dict):
        raise UpstreamError("Generated nutrition is not a JSON object")
    if not payload.get("isFood"):
        return SourceResult(record=None, is_food=False)
    try:
        record = NutritionRecord.model_validate(payload)
    except ValidationError as exc:
        raise UpstreamError("Generated nutrition has an invalid shape") from exc
    return SourceResult(record=record, is_food=True)
