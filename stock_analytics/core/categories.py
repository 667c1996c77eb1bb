from enum import Enum

from stock_analytics.core.constants import ALL_FILTER_TOKEN


class ProductCategory(str, Enum):
    EDEL = "EDEL"
    HOME_AND_KITCHEN = "HOME_AND_KITCHEN"
    ELECTRONICS = "ELECTRONICS"
    HEALTH_AND_PERSONAL_CARE = "HEALTH_AND_PERSONAL_CARE"
    AUTOMOTIVE_AND_TOOLS = "AUTOMOTIVE_AND_TOOLS"
    TOYS_AND_GAMES = "TOYS_AND_GAMES"
    BRAND_PRIVATE_LABEL = "BRAND_PRIVATE_LABEL"
    OTHERS = "OTHERS"


CATEGORY_LABELS = {
    ProductCategory.EDEL: "Edel",
    ProductCategory.HOME_AND_KITCHEN: "Home & Kitchen",
    ProductCategory.ELECTRONICS: "Electronics",
    ProductCategory.HEALTH_AND_PERSONAL_CARE: "Health & Personal Care",
    ProductCategory.AUTOMOTIVE_AND_TOOLS: "Automotive & Tools",
    ProductCategory.TOYS_AND_GAMES: "Toys & Games",
    ProductCategory.BRAND_PRIVATE_LABEL: "Brand / Private Label",
    ProductCategory.OTHERS: "Others",
}

CATEGORY_ORDER = tuple(ProductCategory)

# Checked in order; the first keyword hit wins.
_KEYWORD_RULES = (
    (("edel",), ProductCategory.EDEL),
    (("kitchen", "dining", "home", "garden", "lawn", "pack"), ProductCategory.HOME_AND_KITCHEN),
    (("electronic", "innovation", "smart", "device", "thrasio"), ProductCategory.ELECTRONICS),
    (("health", "care", "fitness", "sport", "baby"), ProductCategory.HEALTH_AND_PERSONAL_CARE),
    (("mechanic", "auto", "spare", "cycle", "pca"), ProductCategory.AUTOMOTIVE_AND_TOOLS),
    (("toy",), ProductCategory.TOYS_AND_GAMES),
    (("sha",), ProductCategory.BRAND_PRIVATE_LABEL),
)


def _token_key(value):
    return " ".join(str(value).strip().lower().replace("_", " ").split())


_TOKEN_LOOKUP = {}
for _category in ProductCategory:
    _TOKEN_LOOKUP[_token_key(_category.value)] = _category
    _TOKEN_LOOKUP[_token_key(CATEGORY_LABELS[_category])] = _category


def classify_item_group(item_group):
    """Map a free-text item group onto the closed category enum."""
    text = str(item_group or "").strip().lower()
    for keywords, category in _KEYWORD_RULES:
        if any(keyword in text for keyword in keywords):
            return category
    return ProductCategory.OTHERS


def parse_category_token(value):
    """Resolve an enum value or display label; ``None`` for blank/ALL.

    Raises ``ValueError`` for unknown tokens.
    """
    if value is None:
        return None
    if isinstance(value, ProductCategory):
        return value
    text = str(value).strip()
    if not text or text.upper() == ALL_FILTER_TOKEN:
        return None
    category = _TOKEN_LOOKUP.get(_token_key(text))
    if category is None:
        raise ValueError(f"unknown product category: {text!r}")
    return category


def category_label(value):
    try:
        return CATEGORY_LABELS[ProductCategory(value)]
    except ValueError:
        return CATEGORY_LABELS[ProductCategory.OTHERS]


def sorted_category_labels(values):
    present = {ProductCategory(value) for value in values if value}
    return [CATEGORY_LABELS[category] for category in CATEGORY_ORDER if category in present]


__all__ = [
    "CATEGORY_LABELS",
    "CATEGORY_ORDER",
    "ProductCategory",
    "category_label",
    "classify_item_group",
    "parse_category_token",
    "sorted_category_labels",
]
