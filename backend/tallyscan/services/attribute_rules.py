"""
Taxonomy-driven attribute rules.

Which optional product attributes a count form asks for is decided from
the *names* of the chosen category and subcategory, not from a stored flag.
The whole rule set is the ATTRIBUTE_RULES table below.

MATCHING:
A token matches when it is a substring of the lower-cased name, or of the
lower-cased name with hyphens removed ("E-Liquid 60ml" -> "eliquid 60ml").
"""
from __future__ import annotations

import enum
from dataclasses import dataclass


class AttributeRequirement(enum.Enum):
    FLAVOR = "flavor"
    NICOTINE = "nicotine"
    NONE = "none"


# Which taxonomy name a rule reads
SOURCE_CATEGORY = "category"
SOURCE_SUBCATEGORY = "subcategory"


@dataclass(frozen=True)
class AttributeRule:
    attribute: AttributeRequirement
    source: str
    tokens: tuple[str, ...]


ATTRIBUTE_RULES: tuple[AttributeRule, ...] = (
    AttributeRule(
        attribute=AttributeRequirement.FLAVOR,
        source=SOURCE_CATEGORY,
        tokens=("vape", "disposable", "pod", "eliquid", "ejuice", "e-juice", "juice"),
    ),
    AttributeRule(
        attribute=AttributeRequirement.NICOTINE,
        source=SOURCE_SUBCATEGORY,
        tokens=("eliquid", "ejuice", "e-juice", "pod", "pods"),
    ),
)


def _name_matches(name: str | None, tokens: tuple[str, ...]) -> bool:
    if not name:
        return False
    lowered = name.lower()
    dehyphenated = lowered.replace("-", "")
    return any(token in lowered or token in dehyphenated for token in tokens)


def _rule_for(attribute: AttributeRequirement) -> AttributeRule:
    for rule in ATTRIBUTE_RULES:
        if rule.attribute is attribute:
            return rule
    raise KeyError(attribute)


def requires_flavor(category_name: str | None) -> bool:
    return _name_matches(category_name, _rule_for(AttributeRequirement.FLAVOR).tokens)


def requires_nicotine(subcategory_name: str | None) -> bool:
    return _name_matches(subcategory_name, _rule_for(AttributeRequirement.NICOTINE).tokens)


def requirements_for(category_name: str | None, subcategory_name: str | None) -> frozenset[AttributeRequirement]:
    """
    All attributes the taxonomy asks for. Returns {NONE} when nothing extra
    is required.
    """
    names = {SOURCE_CATEGORY: category_name, SOURCE_SUBCATEGORY: subcategory_name}
    required = {
        rule.attribute
        for rule in ATTRIBUTE_RULES
        if _name_matches(names[rule.source], rule.tokens)
    }
    return frozenset(required or {AttributeRequirement.NONE})
