"""
Grocery category assignment.

Plain ordered keyword table, first category wins. Multi-word keywords are
tried across the whole table before single words, so "peanut butter" beats
"butter" and "ice cream" beats "cream". Keywords of three letters or fewer only
match at the start of a word ("ham" is not in "Graham", "oil" is not in
"Foil"); longer ones match anywhere.

A keyword may legitimately appear under more than one category ("tomato" is
both fresh produce and a canned staple); the table order settles it.
"""

from __future__ import annotations

import re
from typing import Iterable, Sequence

OTHER = "Other"

SHORT_KEYWORD_LENGTH = 3

CATEGORY_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("Produce", (
        "banana", "apple", "orange", "lemon", "lime", "grape", "berry", "berries",
        "avocado", "peach", "pear", "plum", "mango", "pineapple", "melon",
        "watermelon", "lettuce", "tomato", "carrot", "onion", "potato",
        "cucumber", "bell pepper", "jalapeno", "broccoli", "spinach", "kale",
        "celery", "garlic", "ginger", "mushroom", "zucchini", "cabbage",
        "cilantro", "parsley", "eggplant", "squash", "sweet corn",
    )),
    ("Dairy & Eggs", (
        "milk", "cheese", "yogurt", "egg", "butter", "sour cream",
        "heavy cream", "whipping cream", "creamer", "half and half",
        "half-and-half", "cottage",
    )),
    ("Meat & Seafood", (
        "chicken", "beef", "pork", "fish", "salmon", "tuna", "shrimp", "turkey",
        "ham", "bacon", "sausage", "steak", "tilapia", "cod",
    )),
    ("Grains & Bread", (
        "bread", "bagel", "tortilla", "bun", "roll", "rice", "pasta",
        "spaghetti", "penne", "macaroni", "noodle", "cereal", "oat", "quinoa",
        "macaroni and cheese", "mac and cheese",
    )),
    ("Baking", (
        "flour", "sugar", "baking soda", "baking powder", "yeast", "vanilla",
        "cocoa", "chocolate chip", "cornstarch", "cornmeal",
    )),
    ("Canned & Jarred Goods", (
        "canned", "tomato paste", "soup", "noodle soup", "broth",
        "chicken broth", "beef broth", "vegetable broth", "stock",
        "chicken stock", "bean", "tomato", "chickpea", "peanut butter", "jam",
        "jelly",
    )),
    ("Oils & Vinegars", (
        "olive oil", "vegetable oil", "canola", "oil", "vinegar", "cooking spray",
    )),
    ("Condiments & Sauces", (
        "ketchup", "mustard", "mayo", "mayonnaise", "sauce", "salsa",
        "dressing", "relish", "syrup", "honey", "hot sauce", "tomato sauce",
        "pasta sauce",
    )),
    ("Spices & Seasonings", (
        "salt", "black pepper", "peppercorn", "cinnamon", "paprika", "cumin",
        "oregano", "basil", "chili powder", "seasoning", "spice",
    )),
    ("Beverages", (
        "juice", "orange juice", "apple juice", "grape juice", "soda", "water",
        "coffee", "tea", "beer", "wine", "drink", "bottle", "cola", "lemonade",
    )),
    ("Snacks", (
        "chip", "cracker", "cookie", "candy", "popcorn", "nut", "peanut",
        "almond", "cashew", "walnut", "pecan", "pistachio", "snack", "bar",
        "pretzel",
    )),
    ("Frozen", (
        "frozen", "ice cream", "pizza", "ice", "waffle",
    )),
]

CATEGORIES: tuple[str, ...] = tuple(name for name, _ in CATEGORY_KEYWORDS) + (OTHER,)


def _keyword_re(keyword: str) -> re.Pattern[str]:
    if len(keyword) <= SHORT_KEYWORD_LENGTH:
        return re.compile(r"\b" + re.escape(keyword))
    return re.compile(re.escape(keyword))


class CategoryClassifier:
    """Ordered keyword classifier. Build with a different table to change priority."""

    def __init__(self, table: Iterable[tuple[str, Sequence[str]]] = CATEGORY_KEYWORDS):
        self.table = [(name, tuple(k.lower() for k in keywords)) for name, keywords in table]
        self._compound = self._compile(lambda k: " " in k)
        self._single = self._compile(lambda k: " " not in k)

    def _compile(self, keep) -> list[tuple[str, list[re.Pattern[str]]]]:
        return [
            (name, [_keyword_re(k) for k in keywords if keep(k)])
            for name, keywords in self.table
        ]

    @property
    def categories(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self.table) + (OTHER,)

    def classify(self, name: str) -> str:
        text = " ".join((name or "").lower().split())
        if not text:
            return OTHER
        for passes in (self._compound, self._single):
            for category, patterns in passes:
                if any(p.search(text) for p in patterns):
                    return category
        return OTHER

    def reordered(self, first: Sequence[str]) -> "CategoryClassifier":
        """Copy of this classifier with the named categories moved to the front."""
        lookup = dict(self.table)
        missing = [c for c in first if c not in lookup]
        if missing:
            raise KeyError(f"unknown categories: {', '.join(missing)}")
        head = [(c, lookup[c]) for c in first]
        tail = [(c, kws) for c, kws in self.table if c not in first]
        return CategoryClassifier(head + tail)


_DEFAULT = CategoryClassifier()


def classify(name: str) -> str:
    return _DEFAULT.classify(name)
