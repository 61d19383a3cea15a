"""Reputation lexicon for Russian-language search snippets.

Stems are matched against lowercased tokens by exact or prefix match, in
dictionary order. Weights: 3 = strong, 2 = moderate, 1 = weak.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

import orjson

# =============================================================================
# Keyword stems
# =============================================================================

POSITIVE_STEMS: dict[str, int] = {
    # Strong
    "выдающийся": 3,
    "великолепный": 3,
    "блестящий": 3,
    "гениальный": 3,
    "легендарный": 3,
    "феноменальный": 3,
    "триумф": 3,
    "прорыв": 3,
    # Moderate
    "успех": 2,
    "успешн": 2,
    "победа": 2,
    "победител": 2,
    "талант": 2,
    "достижение": 2,
    "награда": 2,
    "награжден": 2,
    "признание": 2,
    "звезда": 2,
    "профессионал": 2,
    "эксперт": 2,
    "мастер": 2,
    "лидер": 2,
    "рекорд": 2,
    "лауреат": 2,
    "чемпион": 2,
    # Weak
    "хороший": 1,
    "хорош": 1,
    "отличн": 1,
    "прекрасн": 1,
    "замечательн": 1,
    "популярн": 1,
    "известн": 1,
    "любим": 1,
    "уважаем": 1,
    "почетн": 1,
    "красив": 1,
    "интересн": 1,
    "полезн": 1,
    "качествен": 1,
    "рекомендуем": 1,
    "рекомендую": 1,
    "советую": 1,
    "нравится": 1,
    "радость": 1,
    "счастье": 1,
    "счастлив": 1,
    "позитив": 1,
    "вдохновля": 1,
    "восхища": 1,
    "впечатля": 1,
}

NEGATIVE_STEMS: dict[str, int] = {
    # Strong
    "мошенник": 3,
    "мошенничество": 3,
    "афера": 3,
    "аферист": 3,
    "преступник": 3,
    "преступлен": 3,
    "арест": 3,
    "арестован": 3,
    "тюрьма": 3,
    "заключен": 3,
    "убийство": 3,
    "убийца": 3,
    "насилие": 3,
    "насильник": 3,
    "педофил": 3,
    "изнасилов": 3,
    "наркотик": 3,
    "наркоман": 3,
    "коррупц": 3,
    "взятк": 3,
    "разоблач": 3,
    "компромат": 3,
    # Moderate
    "скандал": 2,
    "провал": 2,
    "банкрот": 2,
    "банкротств": 2,
    "обман": 2,
    "обманул": 2,
    "ложь": 2,
    "лжец": 2,
    "врет": 2,
    "воровств": 2,
    "украл": 2,
    "кража": 2,
    "хищение": 2,
    "обвинен": 2,
    "обвиня": 2,
    "подозрева": 2,
    "подозрение": 2,
    "суд": 2,
    "судим": 2,
    "штраф": 2,
    "иск": 2,
    "увольн": 2,
    "уволен": 2,
    "отставк": 2,
    "трагедия": 2,
    "трагическ": 2,
    "гибель": 2,
    "смерть": 2,
    "жертв": 2,
    "катастроф": 2,
    "авария": 2,
    # Weak
    "критик": 1,
    "критику": 1,
    "негатив": 1,
    "проблем": 1,
    "конфликт": 1,
    "спор": 1,
    "ссора": 1,
    "скандальн": 1,
    "жалоб": 1,
    "претензи": 1,
    "недовольн": 1,
    "возмущен": 1,
    "плох": 1,
    "ужасн": 1,
    "кошмар": 1,
    "отвратительн": 1,
    "разочаров": 1,
    "неудач": 1,
    "провальн": 1,
    "ошибк": 1,
    "кризис": 1,
    "долг": 1,
    "задолжен": 1,
    "развод": 1,
    "измен": 1,
    "неверн": 1,
    "алкогол": 1,
    "пьян": 1,
    "запой": 1,
    "болезн": 1,
    "болен": 1,
    "диагноз": 1,
}

NEGATIONS: frozenset[str] = frozenset(
    {"не", "нет", "без", "ни", "никак", "никогда", "нигде", "никто", "ничто", "отсутств"}
)

# Tokens this far back can negate a match
NEGATION_WINDOW = 3

# =============================================================================
# Source domains
# =============================================================================

DOMAIN_BIAS: dict[str, float] = {
    # Compromising-material sites
    "kompromatwiki.org": -2,
    "compromat.ru": -2,
    "rucriminal.info": -2,
    "kompromat.ru": -2,
    "anticompromat.org": -1,
    "scandal.ru": -1,
    # Business press
    "forbes.ru": 0.5,
}

DOMAIN_CATEGORIES: dict[str, tuple[str, str]] = {
    # domain: (category, editorial stance)
    "24smi.org": ("tabloid", "mixed"),
    "wikipedia.org": ("encyclopedia", "neutral"),
    "instagram.com": ("social", "mixed"),
    "vk.com": ("social", "mixed"),
    "youtube.com": ("video", "mixed"),
    "tiktok.com": ("social", "mixed"),
    "eksmo.ru": ("publisher", "neutral"),
    "litres.ru": ("bookstore", "neutral"),
    "labirint.ru": ("bookstore", "neutral"),
    "ozon.ru": ("marketplace", "neutral"),
    "wildberries.ru": ("marketplace", "neutral"),
    "avito.ru": ("classifieds", "neutral"),
    "hh.ru": ("jobs", "neutral"),
    "dzen.ru": ("blog", "mixed"),
    "pikabu.ru": ("forum", "mixed"),
    "habr.com": ("tech", "neutral"),
    "vc.ru": ("business", "neutral"),
    "forbes.ru": ("business", "neutral"),
    "rbc.ru": ("news", "neutral"),
    "lenta.ru": ("news", "mixed"),
    "ria.ru": ("news", "official"),
    "tass.ru": ("news", "official"),
    "kommersant.ru": ("business", "neutral"),
    "vedomosti.ru": ("business", "neutral"),
    "kp.ru": ("tabloid", "mixed"),
    "5-tv.ru": ("tv", "official"),
    "ntv.ru": ("tv", "official"),
    "1tv.ru": ("tv", "official"),
    "otzovik.com": ("reviews", "mixed"),
    "irecommend.ru": ("reviews", "mixed"),
    "flamp.ru": ("reviews", "mixed"),
}


def _freeze(mapping: Mapping[str, object]) -> MappingProxyType:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class Lexicon:
    """Keyword, negation and domain tables used by the lexical classifier.

    Instances are immutable so one lexicon can be shared by every job.
    Use ``Lexicon.default()`` for the built-in Russian tables or pass
    synthetic dictionaries in tests.
    """

    positive: Mapping[str, int]
    negative: Mapping[str, int]
    negations: frozenset[str] = NEGATIONS
    domain_bias: Mapping[str, float] = field(default_factory=dict)
    domain_categories: Mapping[str, tuple[str, str]] = field(default_factory=dict)
    negation_window: int = NEGATION_WINDOW

    def __post_init__(self) -> None:
        for name in ("positive", "negative"):
            table = getattr(self, name)
            bad = {stem: w for stem, w in table.items() if w not in (1, 2, 3)}
            if bad:
                raise ValueError(f"{name} weights must be 1, 2 or 3, got {bad}")
            object.__setattr__(self, name, _freeze(table))
        object.__setattr__(self, "domain_bias", _freeze(self.domain_bias))
        object.__setattr__(self, "domain_categories", _freeze(self.domain_categories))
        object.__setattr__(self, "negations", frozenset(self.negations))

    @classmethod
    def default(cls) -> Lexicon:
        return cls(
            positive=POSITIVE_STEMS,
            negative=NEGATIVE_STEMS,
            negations=NEGATIONS,
            domain_bias=DOMAIN_BIAS,
            domain_categories=DOMAIN_CATEGORIES,
        )

    @classmethod
    def from_json_file(cls, path: Path) -> Lexicon:
        """Load a lexicon from JSON; missing sections fall back to the defaults.

        Expected keys: ``positive``, ``negative``, ``negations``,
        ``domain_bias``, ``domain_categories`` (domain -> [category, stance]).
        """
        data = orjson.loads(path.read_bytes())
        categories = data.get("domain_categories")
        return cls(
            positive=data.get("positive", POSITIVE_STEMS),
            negative=data.get("negative", NEGATIVE_STEMS),
            negations=frozenset(data.get("negations", NEGATIONS)),
            domain_bias=data.get("domain_bias", DOMAIN_BIAS),
            domain_categories=(
                {d: (c[0], c[1]) for d, c in categories.items()}
                if categories is not None
                else DOMAIN_CATEGORIES
            ),
        )

    def bias_for(self, domain: str) -> float:
        return float(self.domain_bias.get(domain, 0.0))

    def category_for(self, domain: str) -> tuple[str, str] | None:
        return self.domain_categories.get(domain)
