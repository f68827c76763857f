"""
Recognized receipt text -> ParsedItem list.

1) Line gate: trim, drop very short/long lines and receipt metadata.
2) Shape patterns, most specific first; the first one that matches a line wins.
3) Keyword fallback for lines no pattern understood (confidence "medium").
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional

from pantry_ocr.categories import OTHER, CategoryClassifier
from pantry_ocr.models import ParsedItem
from pantry_ocr.normalizer import normalize

logger = logging.getLogger(__name__)

MIN_LINE_LENGTH = 3
MAX_LINE_LENGTH = 100

SKIP_KEYWORDS: tuple[str, ...] = (
    "TOTAL", "TAX", "SUBTOTAL", "CHANGE", "CASH", "CARD", "RECEIPT", "STORE",
    "THANK", "WELCOME", "DATE", "TIME", "REGISTER", "TRANSACTION", "BALANCE",
    "PAYMENT", "METHOD", "REFUND", "DISCOUNT", "COUPON", "SALE", "CLEARANCE",
    "DUE", "AMOUNT", "CREDIT", "DEBIT", "CHECK",
)

GROCERY_KEYWORDS: tuple[str, ...] = (
    "milk", "bread", "eggs", "banana", "apple", "orange", "lettuce", "tomato",
    "chicken", "beef", "pork", "fish", "salmon", "turkey", "cheese", "yogurt",
    "butter", "cream", "rice", "pasta", "flour", "sugar", "oil", "juice",
    "soda", "water", "coffee", "tea", "beer", "wine", "chip", "crack",
    "cookie", "candy", "popcorn", "nut", "frozen", "pizza", "ice cream",
    "onion", "potato", "carrot", "cucumber", "pepper", "broccoli", "spinach",
    "ham", "bacon", "sausage", "steak", "ground", "sauce", "soup", "can",
    "bean", "cereal", "oat", "drink", "bottle", "snack", "bar", "pretzel",
)

UNIT_WORDS: tuple[str, ...] = (
    "fl oz", "gallon", "gal", "lbs", "lb", "pound", "pounds", "oz", "ounce",
    "ct", "count", "dozen", "doz", "dz", "pk", "pack", "pkg", "qt", "quart",
    "pt", "pint", "ea", "each", "kg", "g", "l", "ltr", "loaf", "bunch",
    "box", "bag", "bottle", "btl", "can", "jar",
)

# ---------------- SHAPE PATTERNS ----------------

_NAME = r"(?P<name>[A-Z][A-Z&'./\- ]*?)"
_PRICE = r"\$?(?P<price>\d+\.\d{2})"
_UNIT_PRICE = r"\$?(?P<unit_price>\d+\.\d{2})"
_QTY_UNIT = r"(?P<quantity>\d+(?:/\d+)?\s*[A-Z]+)"
_COUNT = r"(?P<count>\d{1,3})"
_TAX_FLAG = r"(?:\s+[A-Z]{1,2})?"

PRICE_RE = re.compile(r"(\d+\.\d{2})")
QUANTITY_RE = re.compile(
    r"\b(\d+(?:[./]\d+)?)\s*("
    + "|".join(re.escape(u) for u in sorted(UNIT_WORDS, key=len, reverse=True))
    + r")\b",
    re.IGNORECASE,
)
NUMERIC_RE = re.compile(r"^[\d\s.,/$%-]+$")
_WS_RE = re.compile(r"\s+")


def _format_quantity(raw: str) -> str:
    m = re.match(r"^(\d+(?:[./]\d+)?)\s*(.*)$", raw.strip())
    if not m:
        return _WS_RE.sub(" ", raw.strip()).lower()
    number, unit = m.group(1), m.group(2).strip().lower()
    return f"{number} {unit}" if unit else number


def _quantity_with_unit(m: re.Match[str]) -> tuple[str, float]:
    return _format_quantity(m.group("quantity")), float(m.group("price"))


def _count_at_unit_price(m: re.Match[str]) -> tuple[str, float]:
    return m.group("count"), float(m.group("price"))


def _at_unit_price(m: re.Match[str]) -> tuple[str, float]:
    unit_price = float(m.group("unit_price"))
    price = float(m.group("price"))
    quantity = "1"
    if unit_price > 0:
        ratio = price / unit_price
        if abs(ratio - round(ratio)) < 0.01 and round(ratio) >= 1:
            quantity = str(int(round(ratio)))
    return quantity, price


def _count_then_price(m: re.Match[str]) -> tuple[str, float]:
    return m.group("count"), float(m.group("price"))


def _price_only(m: re.Match[str]) -> tuple[str, float]:
    return "1", float(m.group("price"))


@dataclass(frozen=True)
class LinePattern:
    name: str
    regex: re.Pattern[str]
    extract: Callable[[re.Match[str]], tuple[str, float]]


def _pattern(name: str, body: str, extract: Callable[[re.Match[str]], tuple[str, float]]) -> LinePattern:
    return LinePattern(name, re.compile(body, re.IGNORECASE), extract)


LINE_PATTERNS: list[LinePattern] = [
    # MILK 1/2 GAL 3.49 | EGGS 12 CT 4.99
    _pattern(
        "quantity_with_unit_and_price",
        rf"^{_NAME}\s+{_QTY_UNIT}\s+{_PRICE}{_TAX_FLAG}\s*$",
        _quantity_with_unit,
    ),
    # LIMES 3 @ 0.50 1.50
    _pattern(
        "count_at_unit_price",
        rf"^{_NAME}\s+{_COUNT}\s*@\s*{_UNIT_PRICE}\s+{_PRICE}{_TAX_FLAG}\s*$",
        _count_at_unit_price,
    ),
    # BANANA @ 0.59 1.18
    _pattern(
        "at_unit_price",
        rf"^{_NAME}\s+@\s*{_UNIT_PRICE}\s+{_PRICE}{_TAX_FLAG}\s*$",
        _at_unit_price,
    ),
    # YOGURT 2 5.98
    _pattern(
        "count_and_price",
        rf"^{_NAME}\s+{_COUNT}\s+{_PRICE}{_TAX_FLAG}\s*$",
        _count_then_price,
    ),
    # BANANA 2.99 1
    _pattern(
        "price_then_count",
        rf"^{_NAME}\s+{_PRICE}\s+{_COUNT}\s*$",
        _count_then_price,
    ),
    # MILK 3.99 | MILK 3.99 F
    _pattern(
        "price_only",
        rf"^{_NAME}\s+{_PRICE}{_TAX_FLAG}\s*$",
        _price_only,
    ),
]


# ---------------- LINE GATE ----------------

def _is_skip_line(line: str) -> bool:
    upper = line.upper()
    return any(k in upper for k in SKIP_KEYWORDS)


def receipt_lines(raw_text: str) -> list[str]:
    """Candidate item lines in receipt order."""
    out: list[str] = []
    for ln in (raw_text or "").splitlines():
        ln = ln.strip()
        if len(ln) < MIN_LINE_LENGTH or len(ln) > MAX_LINE_LENGTH:
            continue
        if _is_skip_line(ln):
            continue
        out.append(ln)
    return out


def _usable_name(name: str) -> bool:
    return len(name) >= 2 and not NUMERIC_RE.match(name)


# ---------------- PARSER ----------------

class ReceiptParser:
    def __init__(
        self,
        classifier: Optional[CategoryClassifier] = None,
        patterns: Optional[list[LinePattern]] = None,
    ):
        self.classifier = classifier or CategoryClassifier()
        self.patterns = patterns if patterns is not None else LINE_PATTERNS

    def parse(self, raw_text: str) -> list[ParsedItem]:
        lines = receipt_lines(raw_text)
        items: list[ParsedItem] = []
        for line in lines:
            item = self.parse_line(line)
            if item is not None:
                items.append(item)
        logger.info("Parsed %d items from %d candidate lines", len(items), len(lines))
        return items

    def parse_line(self, line: str) -> Optional[ParsedItem]:
        return self._match_patterns(line) or self._keyword_fallback(line)

    def _match_patterns(self, line: str) -> Optional[ParsedItem]:
        for pattern in self.patterns:
            m = pattern.regex.match(line)
            if not m:
                continue
            name = normalize(m.group("name"))
            if not _usable_name(name):
                logger.debug("Discarding %s match with unusable name: %r", pattern.name, line)
                return None
            quantity, price = pattern.extract(m)
            logger.debug("Line %r matched %s", line, pattern.name)
            return ParsedItem(
                name=name,
                quantity=quantity,
                price=price,
                category=self.classifier.classify(name),
                confidence="high",
            )
        return None

    def _keyword_fallback(self, line: str) -> Optional[ParsedItem]:
        lower = line.lower()
        keyword = next((k for k in GROCERY_KEYWORDS if k in lower), None)
        if keyword is None:
            return None

        price_match = PRICE_RE.search(line)
        price = float(price_match.group(1)) if price_match else None

        qty_match = QUANTITY_RE.search(line)
        quantity = _format_quantity(f"{qty_match.group(1)} {qty_match.group(2)}") if qty_match else "1"

        # Name: first three words once prices and quantities are removed.
        rest = PRICE_RE.sub(" ", line)
        rest = QUANTITY_RE.sub(" ", rest)
        rest = re.sub(r"[$@]", " ", rest)
        words = [w for w in rest.split() if re.search(r"[A-Za-z]", w)]
        name = normalize(" ".join(words[:3]))
        if not _usable_name(name):
            name = normalize(keyword)

        category = self.classifier.classify(name)
        if category == OTHER:
            category = self.classifier.classify(keyword)

        return ParsedItem(
            name=name,
            quantity=quantity,
            price=price,
            category=category,
            confidence="medium",
        )


_DEFAULT = ReceiptParser()


def parse_receipt_text(raw_text: str) -> list[ParsedItem]:
    return _DEFAULT.parse(raw_text)
