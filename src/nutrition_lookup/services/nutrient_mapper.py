"""Transform Open Food Facts products into normalized nutrition records."""

import math
import re
from collections.abc import Mapping

from nutrition_lookup.domain.nutrition import (
    DEFAULT_TOTAL_WEIGHT_G,
    NutrientEntry,
    NutritionRecord,
    ProductSummary,
)

# Source nutrient name -> (code, label, default unit)
NUTRIENT_FIELDS: dict[str, tuple[str, str, str]] = {
    "energy": ("ENERC_KCAL", "Energy", "kcal"),
    "proteins": ("PROCNT", "Protein", "g"),
    "fat": ("FAT", "Fat", "g"),
    "carbohydrates": ("CHOCDF", "Carbs", "g"),
    "fiber": ("FIBTG", "Fiber", "g"),
    "calcium": ("CA", "Calcium", "mg"),
    "iron": ("FE", "Iron", "mg"),
    "vitamin-c": ("VITC", "Vitamin C", "mg"),
    "sugars": ("SUGAR", "Sugars", "g"),
    "sodium": ("NA", "Sodium", "mg"),
    "salt": ("SALT", "Salt", "mg"),
    "potassium": ("K", "Potassium", "mg"),
    "magnesium": ("MG", "Magnesium", "mg"),
    "saturated-fat": ("FASAT", "Saturated Fat", "g"),
}

_ENERGY_KCAL_FALLBACKS = ("energy-kcal", "energy_kcal")

# (source field, comparison, threshold, label); thresholds are strict.
DIET_LABEL_RULES: tuple[tuple[str, str, float, str], ...] = (
    ("fat", "<", 3.0, "LOW_FAT"),
    ("sugars", "<", 5.0, "LOW_SUGAR"),
    ("salt", "<", 0.3, "LOW_SODIUM"),
    ("proteins", ">", 20.0, "HIGH_PROTEIN"),
    ("carbohydrates", "<", 5.0, "LOW_CARB"),
    ("fiber", ">", 6.0, "HIGH_FIBER"),
)

# (needle, label, also matched against categories)
HEALTH_LABEL_RULES: tuple[tuple[str, str, bool], ...] = (
    ("vegan", "VEGAN", True),
    ("vegetarian", "VEGETARIAN", True),
    ("gluten-free", "GLUTEN_FREE", False),
    ("dairy-free", "DAIRY_FREE", False),
    ("organic", "ORGANIC", False),
)

_LEADING_DECIMAL = re.compile(r"^\s*([+-]?(?:\d+(?:[.,]\d*)?|[.,]\d+))")


def map_to_nutrition_record(product: object) -> NutritionRecord:
    """Build a NutritionRecord from a raw catalog product.

    Never raises: missing or malformed fields fall back to defaults, so a
    product without nutriments maps to zero calories, 100 g and no nutrients.
    """
    if not isinstance(product, Mapping):
        return NutritionRecord()
    nutriments = product.get("nutriments")
    if not isinstance(nutriments, Mapping):
        nutriments = {}

    nutrients = _extract_nutrients(nutriments)
    energy = nutrients.get("ENERC_KCAL")
    return NutritionRecord(
        calories=energy.quantity if energy else 0.0,
        total_weight=parse_quantity_grams(product.get("quantity")),
        diet_labels=diet_labels(nutriments),
        health_labels=health_labels(
            _tags(product.get("categories_tags")), _tags(product.get("labels_tags"))
        ),
        nutrients=nutrients,
        product_name=_text(product.get("product_name"))
        or _text(product.get("generic_name")),
        brand=_text(product.get("brands")),
        image=_text(product.get("image_url")) or _text(product.get("image_small_url")),
        categories=_text(product.get("categories")),
        nutri_score=_grade(product),
        product_id=_text(product.get("code")),
    )


def map_to_product_summary(product: Mapping[str, object]) -> ProductSummary:
    """Build the short search-result view of a catalog product."""
    return ProductSummary(
        id=_text(product.get("code")) or _text(product.get("_id")) or "",
        name=_text(product.get("product_name"))
        or _text(product.get("generic_name"))
        or "",
        brand=_text(product.get("brands")),
        image=_text(product.get("image_small_url")) or _text(product.get("image_url")),
        quantity=_text(product.get("quantity")),
        categories=_text(product.get("categories")),
        nutri_score=_grade(product),
    )


def diet_labels(nutriments: Mapping[str, object]) -> list[str]:
    """Derive diet labels from per-100g nutriment values."""
    labels: list[str] = []
    for field, comparison, threshold, label in DIET_LABEL_RULES:
        value = as_float(nutriments.get(field))
        if value is None:
            continue
        if comparison == "<" and value < threshold:
            labels.append(label)
        elif comparison == ">" and value > threshold:
            labels.append(label)
    return labels


def health_labels(categories: list[str], labels: list[str]) -> list[str]:
    """Derive health labels from label tags, and categories for diet styles."""
    category_tags = [tag.lower() for tag in categories]
    label_tags = [tag.lower() for tag in labels]
    return [
        label
        for needle, label, use_categories in HEALTH_LABEL_RULES
        if any(needle in tag for tag in label_tags)
        or (use_categories and any(needle in tag for tag in category_tags))
    ]


def parse_quantity_grams(raw: object) -> float:
    """Parse the leading decimal of a declared quantity such as '500 g'."""
    value = as_float(raw)
    if value is not None:
        return value
    if isinstance(raw, str):
        match = _LEADING_DECIMAL.match(raw)
        if match:
            parsed = float(match.group(1).replace(",", "."))
            if math.isfinite(parsed):
                return parsed
    return DEFAULT_TOTAL_WEIGHT_G


def as_float(value: object) -> float | None:
    """Return a float for numeric values and numeric strings."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        try:
            number = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _extract_nutrients(nutriments: Mapping[str, object]) -> dict[str, NutrientEntry]:
    nutrients: dict[str, NutrientEntry] = {}
    for name, (code, label, default_unit) in NUTRIENT_FIELDS.items():
        quantity = as_float(nutriments.get(name))
        if quantity is None:
            continue
        unit = _text(nutriments.get(f"{name}_unit")) or default_unit
        nutrients[code] = NutrientEntry(label=label, quantity=quantity, unit=unit)

    if "ENERC_KCAL" not in nutrients:
        for name in _ENERGY_KCAL_FALLBACKS:
            quantity = as_float(nutriments.get(name))
            if quantity is not None:
                nutrients["ENERC_KCAL"] = NutrientEntry(
                    label="Energy", quantity=quantity, unit="kcal"
                )
                break
    return nutrients


def _tags(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    return [tag for tag in value if isinstance(tag, str)]


def _text(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _grade(product: Mapping[str, object]) -> str | None:
    for key in ("nutriscore_grade", "nutrition_grades"):
        grade = _text(product.get(key))
        if grade and len(grade) == 1 and grade.isalpha():
            return grade.lower()
    return None
