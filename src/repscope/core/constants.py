"""Application-wide constants.

These are fixed values that don't change between environments.
For configurable values, see config.py Settings.
"""

from dataclasses import dataclass


# ─────────────────────────────────────────────────────────────
# Search engines
# ─────────────────────────────────────────────────────────────
SUPPORTED_ENGINES = ("google", "yandex")
ENGINE_DISPLAY_NAMES = {"google": "Google", "yandex": "Yandex"}
VALID_DEPTHS = (10, 20, 50, 100)
BULK_SEARCH_ENGINE = "yandex"

# Only the first page of results is shown to most users
TOP_POSITIONS = 10


# ─────────────────────────────────────────────────────────────
# Regions
# ─────────────────────────────────────────────────────────────
@dataclass(frozen=True, slots=True)
class Region:
    code: str
    name: str
    google_gl: str
    yandex_lr: str


REGIONS: dict[str, Region] = {
    "ru": Region("ru", "Россия", "ru", "225"),
    "ru-msk": Region("ru-msk", "Москва", "ru", "213"),
    "ru-spb": Region("ru-spb", "Санкт-Петербург", "ru", "2"),
    "ru-krd": Region("ru-krd", "Краснодар", "ru", "35"),
    "ru-nsk": Region("ru-nsk", "Новосибирск", "ru", "65"),
    "ru-ekb": Region("ru-ekb", "Екатеринбург", "ru", "54"),
    "ua": Region("ua", "Украина", "ua", "187"),
    "by": Region("by", "Беларусь", "by", "149"),
    "kz": Region("kz", "Казахстан", "kz", "159"),
    "us": Region("us", "США", "us", "84"),
    "de": Region("de", "Германия", "de", "96"),
    "world": Region("world", "Весь мир", "", "0"),
}
DEFAULT_REGION = "ru"


def get_region(code: str | None) -> Region:
    """Look up a region, falling back to Russia for unknown codes."""
    return REGIONS.get(code or DEFAULT_REGION, REGIONS[DEFAULT_REGION])


# ─────────────────────────────────────────────────────────────
# HTTP
# ─────────────────────────────────────────────────────────────
USER_AGENTS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
)
MAX_SNIPPET_LENGTH = 300
