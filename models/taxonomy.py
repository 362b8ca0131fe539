"""Gender-aware clothing taxonomy.

The tables below drive closet organisation and gap analysis. Tagging itself
is free-text, so these labels are matched by substring against the
category and sub-category the vision model returned.
"""

from typing import Dict, List, Optional

CATEGORY_GROUPS = ("tops", "bottoms", "shoes", "accessories", "outerwear")

CLOTHING_CATEGORIES: Dict[str, Dict[str, List[str]]] = {
    "male": {
        "tops": [
            "t-shirt", "polo shirt", "dress shirt", "button-down shirt", "sweater", "hoodie",
            "cardigan", "tank top", "turtleneck", "blazer", "jacket", "sweatshirt",
        ],
        "bottoms": [
            "jeans", "pants", "shorts", "dress pants", "chinos", "khakis", "joggers",
            "sweatpants", "cargo pants", "slacks", "trousers",
        ],
        "shoes": [
            "sneakers", "boots", "dress shoes", "loafers", "oxfords", "athletic shoes",
            "sandals", "slides", "mules", "chelsea boots",
        ],
        "accessories": [
            "hat", "scarf", "belt", "bag", "jewelry", "watch", "sunglasses", "tie", "bow tie",
        ],
        "outerwear": [
            "coat", "jacket", "blazer", "vest", "raincoat", "winter coat", "leather jacket",
        ],
    },
    "female": {
        "tops": [
            "t-shirt", "blouse", "sweater", "cardigan", "tank top", "crop top", "turtleneck",
            "dress shirt", "polo shirt", "hoodie", "sweatshirt", "bodysuit",
        ],
        "bottoms": [
            "jeans", "pants", "shorts", "skirt", "dress pants", "leggings", "joggers",
            "sweatpants", "culottes", "palazzo pants", "skinny jeans",
        ],
        "shoes": [
            "sneakers", "boots", "sandals", "flats", "heels", "loafers", "mules",
            "slides", "pumps", "ankle boots", "athletic shoes",
        ],
        "accessories": [
            "hat", "scarf", "belt", "bag", "jewelry", "watch", "sunglasses", "hair accessories",
        ],
        "outerwear": [
            "coat", "jacket", "blazer", "vest", "raincoat", "winter coat", "leather jacket",
        ],
    },
    "unisex": {
        "tops": ["t-shirt", "sweater", "hoodie", "cardigan", "tank top", "sweatshirt"],
        "bottoms": ["jeans", "pants", "shorts", "joggers", "sweatpants"],
        "shoes": ["sneakers", "boots", "sandals", "slides", "athletic shoes"],
        "accessories": ["hat", "scarf", "belt", "bag", "jewelry", "watch", "sunglasses"],
        "outerwear": ["coat", "jacket", "vest", "raincoat", "winter coat"],
    },
}

# Singular keyword the tagging model tends to use for each group's category.
GROUP_KEYWORDS: Dict[str, str] = {
    "tops": "top",
    "bottoms": "bottom",
    "shoes": "shoe",
    "accessories": "accessory",
    "outerwear": "outerwear",
}


def get_gender_specific_categories(gender: Optional[str] = None) -> Dict[str, List[str]]:
    """Return the category table for ``gender``, falling back to unisex."""

    if not gender or gender in {"prefer-not-to-say", "non-binary"}:
        return CLOTHING_CATEGORIES["unisex"]
    return CLOTHING_CATEGORIES.get(gender, CLOTHING_CATEGORIES["unisex"])


def all_subcategories(group: str) -> List[str]:
    """Union of a group's sub-categories across every gender table."""

    seen: List[str] = []
    for table in CLOTHING_CATEGORIES.values():
        for sub in table.get(group, []):
            if sub not in seen:
                seen.append(sub)
    return seen


__all__ = [
    "CATEGORY_GROUPS",
    "CLOTHING_CATEGORIES",
    "GROUP_KEYWORDS",
    "all_subcategories",
    "get_gender_specific_categories",
]
