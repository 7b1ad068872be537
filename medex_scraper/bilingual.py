"""Bilingual field helper around an external translation callable.

The translator is any ``translate(text, source_lang, target_lang)`` function.
It may raise or return nothing; either way the original text is kept.

Library-only: no CLI command calls this, since the project ships no
translation backend. Callers apply :func:`translate_fields` to exported
records with a translator of their own.
"""

import logging
from typing import Callable, Iterable, Optional

logger = logging.getLogger("medex_scraper")

Translator = Callable[[str, str, str], Optional[str]]

DEFAULT_FIELDS = ("name", "strength", "generic", "company", "medicine_type")


def translate_text(text: Optional[str], translate: Translator,
                   source_lang: str = "en", target_lang: str = "bn") -> Optional[str]:
    if not text:
        return text
    try:
        translated = translate(text, source_lang, target_lang)
    except Exception as e:
        logger.warning(f"Translation failed for {text!r}: {e}")
        return text
    return translated or text


def translate_fields(record: dict, translate: Translator, fields: Iterable[str] = DEFAULT_FIELDS,
                     source_lang: str = "en", target_lang: str = "bn") -> dict:
    """Return a copy of *record* with each present field split into two languages.

    ``name`` becomes ``name_en`` / ``name_bn`` (for the default languages);
    empty fields are left untouched.
    """
    out = dict(record)
    for field_name in fields:
        value = record.get(field_name)
        if not value:
            continue
        out.pop(field_name, None)
        out[f"{field_name}_{source_lang}"] = value
        out[f"{field_name}_{target_lang}"] = translate_text(value, translate, source_lang, target_lang)
    return out
