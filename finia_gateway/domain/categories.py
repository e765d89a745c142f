"""Default category sets and correction menus per profile kind"""

import re
from dataclasses import dataclass
from typing import List, Optional

from finia_gateway.domain.models import BusinessContext, Nature, ProfileKind
from finia_gateway.domain.vocabulary import CATEGORY_HINTS, EXPENSE_CATEGORY_TERMS, INCOME_CATEGORY_TERMS


@dataclass(frozen=True)
class Category:
    name: str
    business_context: BusinessContext
    nature: Nature


@dataclass(frozen=True)
class TypeOption:
    """One entry of the "what kind of transaction is this?" correction menu"""

    label: str
    nature: Nature
    business_context: BusinessContext


def _build(context: BusinessContext, expenses: List[str], incomes: List[str]) -> List[Category]:
    return [Category(name, context, Nature.EXPENSE) for name in expenses] + [
        Category(name, context, Nature.INCOME) for name in incomes
    ]


PERSONAL_PROFILE_CATEGORIES = _build(
    BusinessContext.PERSONAL,
    ["Alimentação", "Transporte", "Moradia", "Saúde", "Lazer", "Educação", "Compras", "Outros"],
    ["Salário", "Freelance", "Rendimentos", "Outros Ganhos"],
)

BUSINESS_CATEGORIES = _build(
    BusinessContext.BUSINESS,
    [
        "Alimentação PJ",
        "Marketing",
        "Material de Escritório",
        "Software/Assinaturas",
        "Serviços Terceiros",
        "Impostos",
        "Equipamentos",
        "Outros PJ",
    ],
    ["Vendas", "Prestação de Serviços", "Consultoria", "Comissões", "Outros Ganhos PJ"],
)

BUSINESS_PROFILE_PERSONAL_CATEGORIES = _build(
    BusinessContext.PERSONAL,
    ["Alimentação PF", "Transporte", "Moradia", "Saúde", "Lazer", "Educação", "Outros PF"],
    ["Salário", "Rendimentos", "Outros Ganhos PF"],
)

PERSONAL_TYPE_OPTIONS = [
    TypeOption("Despesa", Nature.EXPENSE, BusinessContext.PERSONAL),
    TypeOption("Receita", Nature.INCOME, BusinessContext.PERSONAL),
]

BUSINESS_TYPE_OPTIONS = [
    TypeOption("Despesa empresarial (PJ)", Nature.EXPENSE, BusinessContext.BUSINESS),
    TypeOption("Receita empresarial (PJ)", Nature.INCOME, BusinessContext.BUSINESS),
    TypeOption("Despesa pessoal (PF)", Nature.EXPENSE, BusinessContext.PERSONAL),
    TypeOption("Receita pessoal (PF)", Nature.INCOME, BusinessContext.PERSONAL),
]

_SCOPE_SUFFIX = re.compile(r"\s+(?:PJ|PF)$")


def default_categories(
    profile_kind: ProfileKind, business_context: Optional[BusinessContext] = None
) -> List[Category]:
    """Suggested categories for a profile, optionally limited to one context"""
    if profile_kind == ProfileKind.PERSONAL:
        return list(PERSONAL_PROFILE_CATEGORIES)
    if business_context == BusinessContext.BUSINESS:
        return list(BUSINESS_CATEGORIES)
    if business_context == BusinessContext.PERSONAL:
        return list(BUSINESS_PROFILE_PERSONAL_CATEGORIES)
    return BUSINESS_CATEGORIES + BUSINESS_PROFILE_PERSONAL_CATEGORIES


def correction_type_options(profile_kind: ProfileKind) -> List[TypeOption]:
    """Two options for personal profiles, four for business individuals"""
    if profile_kind == ProfileKind.BUSINESS_INDIVIDUAL:
        return list(BUSINESS_TYPE_OPTIONS)
    return list(PERSONAL_TYPE_OPTIONS)


def category_options(
    profile_kind: ProfileKind,
    nature: Nature,
    business_context: BusinessContext,
    saved: Optional[List[Category]] = None,
) -> List[str]:
    """Category names offered in the correction menu; saved categories win over defaults"""
    scoped = [c.name for c in saved or [] if c.nature == nature and c.business_context == business_context]
    if scoped:
        return scoped
    return [
        c.name
        for c in default_categories(profile_kind, business_context)
        if c.nature == nature and c.business_context == business_context
    ]


def fallback_category(profile_kind: ProfileKind, nature: Nature, business_context: BusinessContext) -> str:
    """The "Outros" bucket for a scope"""
    names = category_options(profile_kind, nature, business_context)
    for name in reversed(names):
        if name.startswith("Outros"):
            return name
    return "Outros"


def guess_category(
    text: str, profile_kind: ProfileKind, nature: Nature, business_context: BusinessContext
) -> str:
    """Pick a default category whose hint words appear in the text"""
    lowered = (text or "").lower()
    for name in category_options(profile_kind, nature, business_context):
        base = _SCOPE_SUFFIX.sub("", name)
        for hint in CATEGORY_HINTS.get(base, []):
            if re.search(r"\b" + re.escape(hint) + r"\b", lowered):
                return name
    return fallback_category(profile_kind, nature, business_context)


def infer_category_nature(name: str) -> Nature:
    """Custom categories are income when their name reads like income ("Vendas online")"""
    lowered = name.lower()
    if any(term in lowered for term in INCOME_CATEGORY_TERMS) and not any(
        term in lowered for term in EXPENSE_CATEGORY_TERMS
    ):
        return Nature.INCOME
    return Nature.EXPENSE


def custom_categories(names: List[str], business_context: BusinessContext) -> List[Category]:
    """User-typed names -> categories with inferred nature, duplicates dropped"""
    unique: List[str] = []
    for raw in names:
        name = raw.strip()
        if name and name.lower() not in [n.lower() for n in unique]:
            unique.append(name)
    return [Category(name, business_context, infer_category_nature(name)) for name in unique]


def parse_choice(text: str, option_count: int) -> Optional[int]:
    """1-based numeric menu choice -> 0-based index, None when out of range or not a number"""
    stripped = (text or "").strip().rstrip(".")
    if not re.fullmatch(r"[0-9]+", stripped):
        return None
    index = int(stripped) - 1
    if 0 <= index < option_count:
        return index
    return None

