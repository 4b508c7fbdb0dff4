# medscan/services/languages.py
from typing import List, NamedTuple, Optional


class Language(NamedTuple):
    label: str
    code: str  # BCP-47 tag
    prompt_name: str  # how the language is named to the model


LANGUAGES: List[Language] = [
    Language("English", "en-US", "English"),
    Language("Filipino (Tagalog)", "fil-PH", "Filipino/Tagalog"),
    Language("Bisaya / Cebuano", "fil-PH", "Cebuano/Bisaya dialect"),
    Language("Ilocano", "fil-PH", "Ilocano dialect"),
    Language("Waray", "fil-PH", "Waray dialect"),
    Language("Hiligaynon / Ilonggo", "fil-PH", "Hiligaynon/Ilonggo dialect"),
    Language("Kapampangan", "fil-PH", "Kapampangan dialect"),
    Language("Spanish", "es-ES", "Spanish"),
    Language("Chinese (Mandarin)", "zh-CN", "Mandarin Chinese"),
    Language("Japanese", "ja-JP", "Japanese"),
    Language("Korean", "ko-KR", "Korean"),
    Language("Arabic", "ar-SA", "Arabic"),
    Language("French", "fr-FR", "French"),
    Language("German", "de-DE", "German"),
    Language("Hindi", "hi-IN", "Hindi"),
]

# synthesis voices missing on most devices -> nearest supported tag
_SPEECH_FALLBACK = {"fil-PH": "en-US"}


def find_language(name: str) -> Optional[Language]:
    """Match by prompt name, label, or (first) BCP-47 code, case-insensitively."""
    key = (name or "").strip().lower()
    if not key:
        return None
    for lang in LANGUAGES:
        if key in (lang.prompt_name.lower(), lang.label.lower()):
            return lang
    for lang in LANGUAGES:
        if key == lang.code.lower():
            return lang
    return None


def speech_language_tag(language_name: str) -> str:
    lang = find_language(language_name)
    if lang is None:
        return "en-US"
    return _SPEECH_FALLBACK.get(lang.code, lang.code)
