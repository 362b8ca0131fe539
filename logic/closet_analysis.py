"""Closet organisation and gap analysis over the taxonomy tables."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from models.clothing_item import ClothingItem
from models.taxonomy import CATEGORY_GROUPS, GROUP_KEYWORDS, all_subcategories, get_gender_specific_categories

OTHER_GROUP = "other"
ITEMS_PER_COMPLETE_GROUP = 5
MAX_MISSING = 3


def _matches_group(item: ClothingItem, group: str, subcategories: Sequence[str]) -> bool:
    category = item.category.lower()
    sub_category = item.sub_category.lower()
    if GROUP_KEYWORDS[group] in category:
        return True
    return any(sub in sub_category for sub in subcategories)


def group_for(item: ClothingItem) -> str:
    """First group whose keyword or sub-category matches ``item``."""

    for group in CATEGORY_GROUPS:
        if _matches_group(item, group, all_subcategories(group)):
            return group
    return OTHER_GROUP


def organize_closet(items: Sequence[ClothingItem]) -> Dict[str, Dict[str, List[ClothingItem]]]:
    """Group items by main group and then by lower-cased sub-category.

    Groups and sub-categories are sorted alphabetically; empty groups are
    dropped.
    """

    organized: Dict[str, Dict[str, List[ClothingItem]]] = {
        group: {} for group in (*CATEGORY_GROUPS, OTHER_GROUP)
    }
    for item in items:
        organized[group_for(item)].setdefault(item.sub_category.lower(), []).append(item)
    return {
        group: {sub: organized[group][sub] for sub in sorted(organized[group])}
        for group in sorted(organized)
        if organized[group]
    }


@dataclass
class SubCategoryCount:
    name: str
    count: int
    examples: List[str] = field(default_factory=list)


@dataclass
class GroupGap:
    name: str
    total_items: int
    completion: float
    missing: List[str]
    sub_categories: List[SubCategoryCount] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["totalItems"] = payload.pop("total_items")
        payload["subCategories"] = payload.pop("sub_categories")
        return payload


def analyze_closet_gaps(items: Sequence[ClothingItem], gender: Optional[str] = None) -> List[GroupGap]:
    """Per-group counts, completion and up to three missing essentials.

    A group counts as complete at five items. Results are sorted by item
    count, largest first; ties keep table order.
    """

    gaps: List[GroupGap] = []
    for group, subcategories in get_gender_specific_categories(gender).items():
        members = [item for item in items if _matches_group(item, group, subcategories)]
        counts = []
        for sub in subcategories:
            matching = [item.sub_category for item in members if sub in item.sub_category.lower()]
            counts.append(SubCategoryCount(name=sub, count=len(matching), examples=matching))
        missing = [entry.name for entry in counts if entry.count == 0][:MAX_MISSING]
        gaps.append(
            GroupGap(
                name=group.capitalize(),
                total_items=len(members),
                completion=min(len(members) / ITEMS_PER_COMPLETE_GROUP * 100.0, 100.0),
                missing=missing,
                sub_categories=counts,
            )
        )
    return sorted(gaps, key=lambda gap: gap.total_items, reverse=True)


def overall_completion(items: Sequence[ClothingItem]) -> float:
    """Whole-closet completion; 25 items counts as complete."""

    return min(len(items) / (ITEMS_PER_COMPLETE_GROUP * len(CATEGORY_GROUPS)) * 100.0, 100.0)


__all__ = [
    "GroupGap",
    "OTHER_GROUP",
    "SubCategoryCount",
    "analyze_closet_gaps",
    "group_for",
    "organize_closet",
    "overall_completion",
]
