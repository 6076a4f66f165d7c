"""Language token normalization.

Maps a user-supplied language (ISO 639-1 code, English name, or ``auto``)
to the two-letter code whisper.cpp expects. The catalog is the ISO 639
table shipped with pycountry, restricted to languages that have a
two-letter code.
"""

from __future__ import annotations

import re
from functools import lru_cache

import pycountry

from wisp._types import AUTO_LANGUAGE
from wisp.exceptions import InvalidLanguageError
from wisp.logging import get_logger

logger = get_logger("pipeline.language")

_PARENTHETICAL = re.compile(r"\s*\([^)]*\)")


def _name_variants(name: str) -> list[str]:
    """Lower-cased spellings accepted for a catalog name.

    ``"Spanish; Castilian"`` yields both alternatives, and
    ``"Modern Greek (1453-)"`` also yields ``"modern greek"``.
    """
    variants: list[str] = []
    for part in name.lower().split(";"):
        part = part.strip()
        if not part:
            continue
        variants.append(part)
        bare = _PARENTHETICAL.sub("", part).strip()
        if bare and bare != part:
            variants.append(bare)
    return variants


@lru_cache(maxsize=1)
def _code_by_name() -> dict[str, str]:
    index: dict[str, str] = {}
    coded = [lang for lang in pycountry.languages if getattr(lang, "alpha_2", None)]
    # Full names first so a variant never shadows another language's full name.
    for lang in coded:
        index.setdefault(lang.name.lower(), lang.alpha_2)
    for lang in coded:
        for variant in _name_variants(lang.name):
            index.setdefault(variant, lang.alpha_2)
    return index


@lru_cache(maxsize=1)
def _name_by_code() -> dict[str, str]:
    return {
        lang.alpha_2: lang.name.lower()
        for lang in pycountry.languages
        if getattr(lang, "alpha_2", None)
    }


def normalize_language(raw: str) -> str:
    """Return the canonical two-letter code for *raw*, or ``"auto"``.

    A two-character token is first resolved as an ISO 639-1 code; when that
    fails it is looked up as a name, which cannot match, so unknown codes
    fail validation like any other unknown token.

    Raises:
        InvalidLanguageError: If *raw* matches no catalog language.
    """
    token = raw.strip().lower()
    if token == AUTO_LANGUAGE:
        return AUTO_LANGUAGE

    resolved_code: str | None = None
    name = token
    if len(token) == 2:
        resolved_name = _name_by_code().get(token)
        if resolved_name is not None:
            resolved_code = token
            name = resolved_name

    code = _code_by_name().get(name)
    if code is None:
        logger.warning("invalid_language", language=raw)
        raise InvalidLanguageError(raw.strip())

    return resolved_code or code
