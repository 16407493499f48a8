"""
Fragment categories and their visual treatment.

The map marker layer, the AR overlay and the detail/discovery panels all read colors and
icons from this one table. Unknown category strings are legal fragment data; they get
`DEFAULT_STYLE` instead of an error.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum


class Category(str, Enum):
    STORY = "story"
    MEMORY = "memory"
    LORE = "lore"
    MYSTERY = "mystery"
    HISTORY = "history"


@dataclass(frozen=True)
class CategoryStyle:
    """Presentation attributes shared by every renderer."""

    label: str
    color: str
    badge_class: str
    icon_class: str
    icon: str

    def as_dict(self) -> dict[str, str]:
        return asdict(self)


DEFAULT_STYLE = CategoryStyle(
    label="Other",
    color="#6B7280",
    badge_class="bg-gray-100 text-gray-800",
    icon_class="bg-gray-500",
    icon="book-open",
)

CATEGORY_STYLES: dict[Category, CategoryStyle] = {
    Category.STORY: CategoryStyle(
        label="Stories",
        color="#F59E0B",
        badge_class="bg-amber-100 text-amber-800",
        icon_class="bg-amber-500",
        icon="book-open",
    ),
    Category.MEMORY: CategoryStyle(
        label="Memories",
        color="#0F766E",
        badge_class="bg-teal-100 text-teal-800",
        icon_class="bg-teal-500",
        icon="camera",
    ),
    Category.LORE: CategoryStyle(
        label="Lore",
        color="#1E3A8A",
        badge_class="bg-blue-100 text-blue-800",
        icon_class="bg-blue-500",
        icon="eye",
    ),
    Category.MYSTERY: CategoryStyle(
        label="Mystery",
        color="#7C3AED",
        badge_class="bg-purple-100 text-purple-800",
        icon_class="bg-purple-500",
        icon="zap",
    ),
    Category.HISTORY: CategoryStyle(
        label="History",
        color="#DC2626",
        badge_class="bg-red-100 text-red-800",
        icon_class="bg-red-500",
        icon="heart",
    ),
}


def parse_category(value: str | None) -> Category | None:
    """Map a raw category string onto the enum; None when unrecognized."""
    if not value:
        return None
    try:
        return Category(value.strip().lower())
    except ValueError:
        return None


def same_category(value: str | None, wanted: str | None) -> bool:
    """Category filter match; ignores case and surrounding whitespace like `style_for`."""
    if not wanted:
        return True
    return (value or "").strip().lower() == wanted.strip().lower()


def style_for(category: str | Category | None) -> CategoryStyle:
    if isinstance(category, Category):
        return CATEGORY_STYLES[category]
    parsed = parse_category(category)
    if parsed is None:
        return DEFAULT_STYLE
    return CATEGORY_STYLES[parsed]


def color_for(category: str | Category | None) -> str:
    return style_for(category).color
