"""Best-effort splitting of unlabeled listing text into brand/generic/maker.

Used when an entry has no structured row to read from. The manufacturer is
peeled off the end first; the remainder then goes through a chain of
strategies and the first one that produces a result wins outright. Results
from different strategies are never combined.
"""

import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from ..dom import clean

MANUFACTURER_KEYWORDS = (
    "ltd", "limited", "plc", "llp", "corporation", "corp", "co", "company",
    "pharma", "pharmaceuticals", "pharmaceutical", "laboratories", "bd", "bangladesh",
)

COMPANY_SUFFIX = re.compile(r"(Ltd|Limited|PLC|Pharma|Laboratories|Ltd\.)", re.IGNORECASE)

_SEPARATOR = re.compile(r"\s[-–—:]\s")
_DOSAGE = re.compile(r"\b(\d+(?:\.\d+)?\s*(?:mg|mcg|g|IU|ml))\b", re.IGNORECASE)
_LEADING_PUNCT = re.compile(r"^[-:–—]+")


@dataclass
class SplitResult:
    strategy: str
    brand: Optional[str]
    generic: Optional[str] = None
    strength: Optional[str] = None
    manufacturer: Optional[str] = None


def find_manufacturer(text: str) -> Tuple[Optional[str], str]:
    """Return ``(manufacturer, rest)`` by scanning tokens from the end."""
    tokens = text.split(" ")

    def is_keyword(token: str) -> bool:
        return token.rstrip(",.").lower() in MANUFACTURER_KEYWORDS

    last = next((i for i in range(len(tokens) - 1, -1, -1) if is_keyword(tokens[i])), None)
    if last is None:
        return None, text

    start = last
    while start > 0 and is_keyword(tokens[start - 1]):
        start -= 1
    # One proper-name token in front of the suffix run ("Beximco Pharmaceuticals Ltd.")
    if start > 1 and tokens[start - 1][:1].isupper():
        start -= 1
    return " ".join(tokens[start:]), " ".join(tokens[:start])


def _by_separator(text: str) -> Optional[SplitResult]:
    parts = _SEPARATOR.split(text)
    if len(parts) < 2:
        return None
    return SplitResult("separator", parts[0].strip(), " ".join(parts[1:]).strip() or None)


def _by_dosage_anchor(text: str) -> Optional[SplitResult]:
    match = _DOSAGE.search(text)
    if not match:
        return None
    before = text[:match.start()].strip()
    after = text[match.end():].strip()
    if "," in before:
        parts = before.split(",")
        return SplitResult("dosage_anchor", parts[0].strip(), ", ".join(p.strip() for p in parts[1:]) or None,
                           strength=match.group(1))
    return SplitResult("dosage_anchor", before or None, after or None, strength=match.group(1))


def _by_comma(text: str) -> Optional[SplitResult]:
    parts = [p.strip() for p in text.split(",") if p.strip()]
    if len(parts) < 2:
        return None
    return SplitResult("comma", parts[0], ", ".join(parts[1:]))


def _plain(text: str) -> Optional[SplitResult]:
    return SplitResult("plain", text or None)


STRATEGIES: List[Callable[[str], Optional[SplitResult]]] = [
    _by_separator,
    _by_dosage_anchor,
    _by_comma,
    _plain,
]


def _strip_lead(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    return _LEADING_PUNCT.sub("", value).strip() or None


def split_listing_text(raw: str) -> Optional[SplitResult]:
    text = clean(raw)
    if not text:
        return None

    manufacturer, rest = find_manufacturer(text)
    for strategy in STRATEGIES:
        result = strategy(rest)
        if result is not None:
            result.brand = _strip_lead(result.brand)
            result.generic = _strip_lead(result.generic)
            result.manufacturer = manufacturer
            return result
    return None
