"""Prompt builders for the tagging and outfit models."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

WEATHER_UNAVAILABLE = "Weather data not available"

TAG_GUIDELINES: List[str] = [
    "Focus only on the clothing item, ignore background",
    "Use common color names and convert to hex codes",
    "Be specific with subCategory (e.g., 'crew neck t-shirt' not just 't-shirt')",
    "Include style, material, and occasion tags",
    "If no pattern, set hasPattern to false and patternDescription to empty string",
    "Consider gender-specific terminology and categories when applicable",
]

WEATHER_RULES: List[str] = [
    "If it's RAINY/STORMY and user has no raincoat/umbrella: Suggest what they have but warn about missing rain protection",
    "If it's SUNNY/HOT and user has t-shirt but no shorts (only long pants): Suggest t-shirt + pants but recommend shorts for comfort",
    "If it's COLD and user has no warm jacket: Suggest layers but warn about missing warm outerwear",
    "Always prioritize user's existing items but be honest about what's missing",
]

_TAG_SCHEMA = """{
  "category": "The main category (top, bottom, shoes, accessory, outerwear)",
  "subCategory": "Specific item type (e.g., t-shirt, jeans, sneakers, blouse)",
  "tags": ["array", "of", "descriptive", "tags", "like", "casual", "cotton", "summer", "formal"],
  "dominantColors": ["#HEXCODE1", "#HEXCODE2"],
  "hasPattern": true/false,
  "patternDescription": "Description of pattern if present (e.g., 'stripes', 'floral', 'geometric')"
}"""

_OUTFIT_SCHEMA = """{
  "outfitDescription": "2-3 sentence description with weather, color theory, and fashion trend considerations",
  "itemIds": ["id1", "id2", ...],
  "missingItems": [
    { "name": "item1", "description": "Short description", "imageUrl": "https://..." }
  ],
  "weatherWarnings": ["warning1", "warning2", ...],
  "alternativeOutfits": [
    {
      "outfitDescription": "Alternative description",
      "itemIds": ["id1", "id3"],
      "reason": "Why this alternative works"
    }
  ]
}"""


def _bullets(lines: Sequence[str], prefix: str = "- ") -> str:
    return "\n".join(f"{prefix}{line}" for line in lines)


def gender_context(gender: Optional[str]) -> str:
    if gender and gender != "prefer-not-to-say":
        return f"User Gender: {gender} - Please consider {gender}-specific clothing categories and styles."
    return "User Gender: Not specified - Use general clothing categories."


def tagging_prompt(gender: Optional[str] = None) -> str:
    """Instruction sent alongside the photo to the vision model."""

    return (
        "You are an expert fashion analyst. Analyze this clothing item image and provide detailed information.\n\n"
        f"Image: [The clothing item image]\n{gender_context(gender)}\n\n"
        "Please analyze the image and return a JSON object with the following structure:\n\n"
        f"{_TAG_SCHEMA}\n\n"
        "Guidelines:\n"
        f"{_bullets(TAG_GUIDELINES)}\n\n"
        "Return ONLY the JSON object, no other text."
    )


def describe_catalog_item(item: Mapping[str, Any]) -> str:
    line = f"- ID: {item.get('id')}, Category: {item.get('category')}"
    if item.get("subCategory"):
        line += f", Item: {item['subCategory']}"
    tags = ", ".join(item.get("tags") or [])
    colors = ", ".join(item.get("dominantColors") or []) or "N/A"
    return f"{line}, Tags: {tags}, Colors: {colors}"


def _closet_task(closet_items: Sequence[Mapping[str, Any]]) -> str:
    inventory = "\n".join(describe_catalog_item(item) for item in closet_items)
    requirements = [
        "Your 'outfitDescription' should be 2-3 sentences explaining the choice, any weather considerations, "
        "and the color theory or fashion trend applied",
        "Your 'itemIds' array MUST contain the IDs of the chosen items from their closet",
        "Your 'missingItems' array should list specific items they should add (e.g., \"raincoat\", \"shorts\", "
        "\"warm jacket\"). If you recommend an item not in the closet, prefer common daily-wear items and provide "
        "a short description (and a generic image URL if possible).",
        "Your 'weatherWarnings' array should contain specific weather-related warnings (e.g., \"It's raining but "
        "you don't have a raincoat - consider adding one!\")",
        "Your 'alternativeOutfits' array should contain 2-3 alternative combinations using their existing items",
    ]
    numbered_rules = "\n".join(f"{index}. {rule}" for index, rule in enumerate(WEATHER_RULES, start=1))
    return (
        "## TASK: CREATE WEATHER-AWARE, COLOR-COORDINATED, AND TRENDY OUTFIT FROM CLOSET\n\n"
        f"### Available Items\n{inventory}\n\n"
        f"### WEATHER-AWARE LOGIC:\n{numbered_rules}\n\n"
        f"### REQUIREMENTS:\n{_bullets(requirements)}\n"
    )


def _general_task() -> str:
    return (
        "## TASK: CREATE GENERAL OUTFIT\n"
        "Your 'outfitDescription' should be stylish, helpful, and concise (2-3 sentences), and mention the color "
        "theory or fashion trend used.\n"
        "Your 'itemIds' array MUST be empty.\n"
        "Your 'missingItems' array should suggest basic wardrobe essentials, and for each, provide a short "
        "description and a generic image URL if possible.\n"
    )


def outfit_prompt(
    weather: Optional[str],
    occasion: Optional[str] = None,
    closet_items: Optional[Sequence[Mapping[str, Any]]] = None,
    inspirations: Optional[Sequence[Mapping[str, Any]]] = None,
) -> str:
    """Build the single outfit request.

    ``closet_items`` and ``inspirations`` are sanitised snapshots (no image
    payloads). An empty or missing closet switches the task to general
    wardrobe-essentials advice.
    """

    context: List[str] = [f"Weather: {weather or WEATHER_UNAVAILABLE}"]
    if occasion:
        context.append(f"Occasion: {occasion}")
    if inspirations:
        descriptions = ", ".join(str(entry.get("description", "")) for entry in inspirations)
        context.append(f"Style Inspiration: {descriptions}")

    task = _closet_task(closet_items) if closet_items else _general_task()

    sections: Dict[str, str] = {
        "STYLE": _bullets(
            [
                "Your answer should be direct, clear, and pleasant to read.",
                "When recommending items not in the user's closet, suggest common daily-wear items (e.g., white "
                "t-shirt, blue jeans, sneakers, black dress, etc.) that are easy to find and versatile.",
            ]
        ),
        "CONTEXT": _bullets(context),
        "COLOR THEORY": _bullets(
            [
                "When selecting items, use professional color theory principles (such as complementary, analogous, "
                "or monochromatic color schemes) to create visually appealing and harmonious outfits. If possible, "
                "explain your color choices in the outfit description."
            ]
        ),
        "DAILY FASHION": _bullets(
            [
                "Consider current daily fashion trends and modern street style when making outfit suggestions. "
                "Prioritize combinations that are both stylish and practical for everyday wear."
            ]
        ),
        "TASK": "Create a weather-appropriate outfit with intelligent suggestions for missing items.\n\n" + task,
        "OUTPUT FORMAT": f"Return ONLY a JSON object with this exact structure:\n{_OUTFIT_SCHEMA}",
    }
    header = (
        "You are an expert personal stylist. Generate a comprehensive outfit suggestion with weather awareness, "
        "professional color theory, and daily fashion trends as a JSON object."
    )
    body = "\n\n".join(f"# {title}\n{content}" for title, content in sections.items())
    return f"{header}\n\n{body}"


__all__ = [
    "WEATHER_UNAVAILABLE",
    "describe_catalog_item",
    "gender_context",
    "outfit_prompt",
    "tagging_prompt",
]
