"""Slug handling for CMS pages and the vendor directory.

Vendor pages live in page_contents with slugs shaped
``vendors-{category}-{identifier}``, where the identifier is always derived
from the vendor's title. The public URL shape is
``/vendors/{category}/{identifier}``.

Categories may themselves contain hyphens ("home-services"), so turning a
stored slug back into (category, identifier) needs the list of known compound
categories. Callers pass in the categories from the vendor_categories table;
the built-in list covers categories seen in older data.
"""

import logging
import re
from collections.abc import Iterable
from urllib.parse import unquote

logger = logging.getLogger(__name__)

VENDOR_PREFIX = "vendors-"

COMPOUND_CATEGORIES = [
    "home-services",
    "food-and-dining",
    "health-and-medical",
    "professional-services",
    "real-estate-and-senior-living",
    "real-estate",
    "anchor-and-vapor-barrier",
    "hvac-and-air-quality",
    "funeral-and-religious-services",
    "moving-and-transportation",
    "insurance-and-financial-services",
    "technology-and-electronics",
    "retail-and-shops",
    "beauty-and-personal-care",
    "automotive-and-golf-carts",
    "new-homes-installation",
]

_NON_WORD = re.compile(r"[^\w\s-]")
_WHITESPACE = re.compile(r"\s+")
_HYPHENS = re.compile(r"-+")


def slugify(text: str) -> str:
    """Lowercase, '&' -> 'and', drop punctuation, hyphenate whitespace."""
    if not text:
        return ""
    value = text.lower().replace("&", " and ")
    value = _NON_WORD.sub("", value)
    value = _WHITESPACE.sub("-", value.strip())
    value = _HYPHENS.sub("-", value)
    return value.strip("-")


def normalize_page_slug(raw: str) -> str:
    """Canonical form used to look pages up by slug.

    URL-decodes, trims, lowercases and treats path separators as hyphens,
    so "/Vendors/Home-Services/ABC" and "vendors-home-services-abc" match.
    """
    value = unquote(raw or "").strip().lower().strip("/")
    value = value.replace("/", "-")
    return _HYPHENS.sub("-", value)


def _known_categories(categories: Iterable[str] = ()) -> list[str]:
    """Known category slugs, longest first so 'real-estate-and-senior-living'
    wins over 'real-estate'."""
    known = set(COMPOUND_CATEGORIES)
    known.update(c for c in categories if c)
    return sorted(known, key=len, reverse=True)


def generate_vendor_slug(title: str, category: str) -> str:
    """Build the stored slug for a vendor from its title and category."""
    if not title or not category:
        return ""
    return f"{VENDOR_PREFIX}{slugify(category)}-{slugify(title)}"


def split_vendor_slug(slug: str, categories: Iterable[str] = ()) -> tuple[str, str] | None:
    """Split a stored vendor slug into (category, identifier).

    Returns None for slugs that are not vendor slugs.
    """
    if not slug or not slug.startswith(VENDOR_PREFIX):
        return None
    remainder = slug[len(VENDOR_PREFIX):]
    for category in _known_categories(categories):
        if remainder.startswith(f"{category}-"):
            return category, remainder[len(category) + 1:]
        if remainder == category:
            return category, ""
    category, _, identifier = remainder.partition("-")
    return category, identifier


def vendor_slug_to_url(slug: str, categories: Iterable[str] = ()) -> str:
    """Stored slug -> public URL path."""
    parts = split_vendor_slug(slug, categories)
    if parts is None:
        return f"/vendors/{slug}" if slug else "/vendors"
    category, identifier = parts
    if not identifier:
        return f"/vendors/{category}"
    return f"/vendors/{category}/{identifier}"


def url_to_vendor_slug(category: str, identifier: str) -> str:
    """Public URL segments -> stored slug."""
    category = normalize_page_slug(category)
    identifier = normalize_page_slug(identifier)
    if not category or not identifier:
        return ""
    return f"{VENDOR_PREFIX}{category}-{identifier}"


def _duplicate_prefixes(category: str) -> list[str]:
    """Segments that must not repeat at the start of an identifier."""
    prefixes = [f"{category}-"]
    tokens = category.split("-")
    if len(tokens) > 1:
        prefixes.append(f"{tokens[-1]}-")
        if len(tokens) > 2 and tokens[-2] == "and":
            prefixes.append(f"and-{tokens[-1]}-")
    return prefixes


def needs_slug_repair(slug: str, categories: Iterable[str] = ()) -> bool:
    """True for vendor slugs whose shape is inconsistent.

    Flags a missing "vendors-" prefix, doubled hyphens, stray edge hyphens
    and category segments repeated at the start of the identifier
    (vendors-technology-and-electronics-electronics-computer-guy).
    """
    if not slug:
        return False
    if not slug.startswith(VENDOR_PREFIX):
        return True
    if "--" in slug or slug.endswith("-"):
        return True
    category, identifier = split_vendor_slug(slug, categories)
    if not identifier:
        return False
    return any(identifier.startswith(prefix) for prefix in _duplicate_prefixes(category))


def repair_vendor_slug(slug: str, category: str, title: str | None = None) -> str:
    """Rebuild a well-formed vendor slug.

    With a title the slug is regenerated from title and category, which keeps
    the identifier in step with the title. Without one, the identifier is
    salvaged from the existing slug.
    """
    if title:
        return generate_vendor_slug(title, category)
    if not slug:
        return ""
    if not slug.startswith(VENDOR_PREFIX):
        return generate_vendor_slug(slug, category)

    category_slug = slugify(category)
    remainder = _HYPHENS.sub("-", slug[len(VENDOR_PREFIX):]).strip("-")
    if remainder.startswith(f"{category_slug}-"):
        identifier = remainder[len(category_slug) + 1:]
    else:
        identifier = split_vendor_slug(f"{VENDOR_PREFIX}{remainder}", [category_slug])[1]

    prefixes = _duplicate_prefixes(category_slug)
    stripped = True
    while stripped:
        stripped = False
        for prefix in prefixes:
            if identifier.startswith(prefix) and len(identifier) > len(prefix):
                identifier = identifier[len(prefix):]
                stripped = True

    repaired = f"{VENDOR_PREFIX}{category_slug}-{identifier}"
    if repaired != slug:
        logger.debug("Repaired vendor slug %s -> %s", slug, repaired)
    return repaired
