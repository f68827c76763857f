"""
Receipt item name normalization.

Turns store-coded receipt strings ("PUB DICED TOMATOES", "PEPPERS GREEN BELL",
"HNZ KETCH") into readable ingredient names ("Diced Tomatoes",
"Green Bell Peppers", "Ketchup").

Stages, in order:
1) NFKC fold, upper-case, split glued units (12CT -> 12 CT), collapse whitespace
2) strip leading store-brand and marketing prefixes
3) exact brand-code lookup (short-circuits everything after it)
4) first matching reorder / plural rewrite rule
5) unit + word abbreviation expansion (word-boundary only)
6) title casing

normalize() is idempotent. Parser output gets normalized again by callers, so
every table here is kept closed under the pipeline: expansions never produce
abbreviation keys or prefixes, rewrite rules never match another rule's output,
and rewrite rule tokens also accept their abbreviated spellings (so expanding
first or last gives the same answer). Title casing only lower-cases characters
that upper-case back to themselves, so step 1 undoes step 6 exactly.
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from typing import Optional

# ---------------- PREFIXES ----------------

# Checked in order; multi-word prefixes first.
STORE_PREFIXES: tuple[str, ...] = (
    "GREAT VALUE ",
    "KIRKLAND SIGNATURE ",
    "MARKET PANTRY ",
    "GOOD & GATHER ",
    "SIMPLE TRUTH ",
    "STORE BRAND ",
    "365 ",
    "PUB ",
    "GV ",
    "KS ",
    "MM ",
    "HT ",
    "TJ ",
    "KRO ",
    "ORGANIC ",
    "ORG ",
    "NATURAL ",
    "NAT ",
    "FRESH ",
)

# ---------------- ABBREVIATIONS ----------------

UNIT_ABBREVIATIONS: dict[str, str] = {
    "FL OZ": "FLUID OUNCE",
    "CT": "COUNT",
    "LBS": "POUNDS",
    "LB": "POUND",
    "OZ": "OUNCE",
    "GAL": "GALLON",
    "DOZ": "DOZEN",
    "DZ": "DOZEN",
    "PKG": "PACKAGE",
    "PK": "PACK",
    "QT": "QUART",
    "PT": "PINT",
    "EA": "EACH",
    "KG": "KILOGRAM",
    "LTR": "LITER",
    "BTL": "BOTTLE",
    "BX": "BOX",
}

# One token in, one token out.
WORD_ABBREVIATIONS: dict[str, str] = {
    # dairy
    "CHS": "CHEESE",
    "CHED": "CHEDDAR",
    "CHDR": "CHEDDAR",
    "MOZZ": "MOZZARELLA",
    "PARM": "PARMESAN",
    "CRM": "CREAM",
    "CR": "CREAM",
    "SR": "SOUR",
    "HVY": "HEAVY",
    "WHP": "WHIPPING",
    "BTR": "BUTTER",
    "BTTR": "BUTTER",
    "MARG": "MARGARINE",
    "YOG": "YOGURT",
    "GRK": "GREEK",
    "MLK": "MILK",
    "SHRD": "SHREDDED",
    # protein
    "CHKN": "CHICKEN",
    "CHK": "CHICKEN",
    "BRST": "BREAST",
    "BNLS": "BONELESS",
    "SKNLS": "SKINLESS",
    "GRD": "GROUND",
    "BF": "BEEF",
    # produce / pantry
    "BNS": "BEANS",
    "TOMS": "TOMATOES",
    "PEPS": "PEPPERS",
    "BLK": "BLACK",
    "GRN": "GREEN",
    "RD": "RED",
    "YLW": "YELLOW",
    "WHL": "WHOLE",
    "WHT": "WHITE",
    "VEG": "VEGETABLE",
    "BRD": "BREAD",
    "SCE": "SAUCE",
    "FRZ": "FROZEN",
    "NDL": "NOODLE",
    "NDLS": "NOODLES",
    # baking
    "FLR": "FLOUR",
    "PDR": "POWDERED",
    "SUG": "SUGAR",
    "BRN": "BROWN",
    "GRAN": "GRANULATED",
    "EXT": "EXTRACT",
    "VNGR": "VINEGAR",
}

_ABBREVIATED_FORMS: dict[str, list[str]] = {}
for _abbr, _word in WORD_ABBREVIATIONS.items():
    _ABBREVIATED_FORMS.setdefault(_word, []).append(_abbr)

_ALL_ABBREVIATIONS = {**UNIT_ABBREVIATIONS, **WORD_ABBREVIATIONS}

_UNIT_KEYS = sorted((k for k in UNIT_ABBREVIATIONS if " " not in k), key=len, reverse=True)
_GLUED_UNIT_RE = re.compile(r"\b(\d+(?:[./]\d+)?)(" + "|".join(_UNIT_KEYS) + r")\b")

_ABBREVIATION_RE = re.compile(
    r"\b("
    + "|".join(
        k.replace(" ", r"\s+")
        for k in sorted(_ALL_ABBREVIATIONS, key=len, reverse=True)
    )
    + r")\b"
)

# ---------------- BRAND CODES ----------------

BRAND_CODES: dict[str, str] = {
    "HNZ KETCH": "Ketchup",
    "HNZ KTCHP": "Ketchup",
    "HEINZ KETCHUP": "Ketchup",
    "FRNCH MSTRD": "Yellow Mustard",
    "FRENCHS MUSTARD": "Yellow Mustard",
    "HELLMN MAYO": "Mayonnaise",
    "HLMNS MAYO": "Mayonnaise",
    "KFT MAC CHS": "Macaroni And Cheese",
    "PHIL CRM CHS": "Cream Cheese",
    "CHOB GRK YOG": "Greek Yogurt",
    "BRYRS VAN ICE CRM": "Vanilla Ice Cream",
    "TROP OJ": "Orange Juice",
    "TROP OJ NO PULP": "Orange Juice",
    "GM CHEERIOS": "Cheerios",
    "CAMP CHKN NDL": "Chicken Noodle Soup",
    "BSH BKD BNS": "Baked Beans",
    "PREGO TRAD": "Pasta Sauce",
    "EVOO": "Extra Virgin Olive Oil",
    "BERTOLLI EVOO": "Extra Virgin Olive Oil",
    "JIF CRMY PB": "Creamy Peanut Butter",
    "LAWRYS SSND SALT": "Seasoned Salt",
    "DOMINO GRAN SUGAR": "Granulated Sugar",
    "GM AP FLOUR": "All-purpose Flour",
}

# ---------------- REWRITE RULES ----------------


@dataclass(frozen=True)
class Rewrite:
    pattern: re.Pattern[str]
    replacement: str

    def apply(self, text: str) -> Optional[str]:
        if self.pattern.fullmatch(text):
            return self.replacement
        return None


def _alt(phrase: str) -> str:
    """Regex for a phrase where each word may also appear abbreviated."""
    parts = []
    for word in phrase.split():
        forms = [word, *sorted(_ABBREVIATED_FORMS.get(word, ()))]
        parts.append("(?:" + "|".join(re.escape(f) for f in forms) + ")")
    return r"\s+".join(parts)


def _rule(receipt_form: str, readable: str) -> Rewrite:
    return Rewrite(re.compile(r"[\s,]+".join(_alt(w) for w in receipt_form.split())), readable)


# Receipt order -> natural order. Checked before the generic noun rules.
EXPLICIT_REWRITES: list[tuple[str, str]] = [
    ("CHICKEN BREAST BONELESS SKINLESS", "BONELESS SKINLESS CHICKEN BREAST"),
    ("CHICKEN BREAST BONELESS", "BONELESS CHICKEN BREAST"),
    ("BEEF GROUND", "GROUND BEEF"),
    ("TURKEY GROUND", "GROUND TURKEY"),
    ("CREAM SOUR", "SOUR CREAM"),
    ("CREAM HEAVY WHIPPING", "HEAVY WHIPPING CREAM"),
    ("CREAM HEAVY", "HEAVY CREAM"),
    ("OIL OLIVE EXTRA VIRGIN", "EXTRA VIRGIN OLIVE OIL"),
    ("OIL OLIVE", "OLIVE OIL"),
    ("OIL VEGETABLE", "VEGETABLE OIL"),
    ("JUICE ORANGE", "ORANGE JUICE"),
    ("JUICE APPLE", "APPLE JUICE"),
    ("EGGS LARGE", "LARGE EGGS"),
    ("YOGURT GREEK", "GREEK YOGURT"),
    # VAN only before EXTRACT; VAN CAMPS is a brand
    ("VAN EXTRACT", "VANILLA EXTRACT"),
]

# (receipt spellings of the noun, readable noun, modifiers that follow it on a receipt)
NOUN_FIRST_REWRITES: list[tuple[tuple[str, ...], str, tuple[str, ...]]] = [
    (("PEPPERS", "PEPPER"), "PEPPERS",
     ("GREEN BELL", "RED BELL", "YELLOW BELL", "ORANGE BELL", "BELL", "JALAPENO", "POBLANO")),
    (("TOMATOES", "TOMATO"), "TOMATOES",
     ("DICED", "CRUSHED", "STEWED", "WHOLE", "ROMA", "CHERRY", "GRAPE")),
    (("BEANS", "BEAN"), "BEANS",
     ("BLACK", "KIDNEY", "PINTO", "GREEN", "NAVY", "REFRIED", "GARBANZO")),
    (("CHEESE",), "CHEESE",
     ("SHREDDED CHEDDAR", "SHREDDED MOZZARELLA", "CHEDDAR", "MOZZARELLA", "SWISS",
      "PARMESAN", "AMERICAN", "CREAM", "COTTAGE")),
    (("MILK",), "MILK", ("WHOLE", "SKIM", "2%", "1%", "ALMOND", "OAT", "CHOCOLATE")),
    (("BREAD",), "BREAD", ("WHOLE WHEAT", "WHEAT", "WHITE", "SOURDOUGH", "RYE")),
    (("SAUCE",), "SAUCE", ("TOMATO", "PASTA", "SOY", "HOT", "BBQ", "ALFREDO")),
    (("BROTH",), "BROTH", ("CHICKEN", "BEEF", "VEGETABLE")),
    (("ONIONS", "ONION"), "ONIONS", ("YELLOW", "RED", "WHITE", "SWEET")),
    (("POTATOES", "POTATO"), "POTATOES", ("YUKON GOLD", "RUSSET", "RED", "SWEET")),
    (("APPLES", "APPLE"), "APPLES", ("GRANNY SMITH", "GALA", "FUJI", "HONEYCRISP")),
    (("SUGAR",), "SUGAR", ("BROWN", "POWDERED", "GRANULATED")),
]

# Receipts print the singular for produce sold by weight.
PLURAL_FIXES: dict[str, str] = {
    "BANANA": "BANANAS",
    "EGG": "EGGS",
    "AVOCADO": "AVOCADOS",
    "LEMON": "LEMONS",
    "LIME": "LIMES",
    "APPLE": "APPLES",
    "ORANGE": "ORANGES",
    "ONION": "ONIONS",
    "POTATO": "POTATOES",
    "TOMATO": "TOMATOES",
    "CARROT": "CARROTS",
    "PEACH": "PEACHES",
    "MANGO": "MANGOES",
    "CUCUMBER": "CUCUMBERS",
}


def _build_rewrites() -> list[Rewrite]:
    rules = [_rule(src, dst) for src, dst in EXPLICIT_REWRITES]
    for nouns, readable, modifiers in NOUN_FIRST_REWRITES:
        noun_re = "(?:" + "|".join(_alt(n) for n in nouns) + ")"
        for mod in modifiers:
            pattern = re.compile(noun_re + r"[\s,]+" + _alt(mod))
            rules.append(Rewrite(pattern, f"{mod} {readable}"))
    rules.extend(_rule(src, dst) for src, dst in PLURAL_FIXES.items())
    return rules


REWRITE_RULES: list[Rewrite] = _build_rewrites()

_WS_RE = re.compile(r"\s+")


# ---------------- STAGES ----------------

def _collapse(text: str) -> str:
    return _WS_RE.sub(" ", text).strip()


def strip_prefixes(text: str) -> str:
    """Drop leading store/marketing prefixes, never down to an empty name."""
    while True:
        for prefix in STORE_PREFIXES:
            if text.startswith(prefix) and text[len(prefix):].strip():
                text = text[len(prefix):].lstrip()
                break
        else:
            return text


def expand_abbreviations(text: str) -> str:
    text = _GLUED_UNIT_RE.sub(r"\1 \2", text)
    return _ABBREVIATION_RE.sub(
        lambda m: _ALL_ABBREVIATIONS[_collapse(m.group(1))], text
    )


_BRAND_INDEX: dict[str, str] = {}
for _code, _readable in BRAND_CODES.items():
    _BRAND_INDEX[_code] = _readable
    _BRAND_INDEX.setdefault(expand_abbreviations(_code), _readable)


def lookup_brand_code(text: str) -> Optional[str]:
    return _BRAND_INDEX.get(text) or _BRAND_INDEX.get(expand_abbreviations(text))


def apply_rewrites(text: str) -> str:
    for rule in REWRITE_RULES:
        out = rule.apply(text)
        if out is not None:
            return out
    return text


def canonical(text: str) -> str:
    """Stage 1 form: NFKC, upper-case, glued units split, single spaces."""
    text = unicodedata.normalize("NFKC", unicodedata.normalize("NFKC", text or "").upper())
    return _collapse(_GLUED_UNIT_RE.sub(r"\1 \2", text))


def _lower_char(ch: str) -> str:
    low = ch.lower()
    # İ lowers to two code points; leave such letters upper-case
    return low if len(low) == 1 and low.upper() == ch else ch


def title_case(text: str) -> str:
    words = _collapse(text).upper().split(" ")
    return " ".join(w[:1] + "".join(_lower_char(c) for c in w[1:]) for w in words if w)


def normalize(raw_name: str) -> str:
    text = canonical(raw_name)
    if not text:
        return ""

    text = strip_prefixes(text)

    brand = lookup_brand_code(text)
    if brand:
        return brand

    text = apply_rewrites(text)
    text = expand_abbreviations(text)
    return title_case(text)
