"""Flesch reading-ease and grade-level estimates."""
import re
from typing import Dict, Optional


_VOWEL_GROUPS = re.compile(r"[aeiouy]{1,2}")
_SILENT_ENDINGS = re.compile(r"(?:[^laeiouy]es|ed|[^laeiouy]e)$")


def count_syllables(word: str) -> int:
    """Heuristic syllable count for an English word."""
    word = re.sub(r"[^a-z]", "", word.lower())
    if len(word) <= 3:
        return 1
    word = _SILENT_ENDINGS.sub("", word)
    word = re.sub(r"^y", "", word)
    groups = _VOWEL_GROUPS.findall(word)
    return len(groups) if groups else 1


def _round(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return int(value * factor + 0.5) / factor


def compute_readability(text: str, word_count: int) -> Dict[str, Optional[float]]:
    """
    Flesch reading ease (0-100) and Flesch-Kincaid grade level.

    Texts under 30 words yield null scores.
    """
    if not text or word_count < 30:
        return {
            "flesch_ease": None,
            "grade_level": None,
            "avg_sentence_length": 0,
            "avg_syllables_per_word": 0,
        }

    sentences = [s for s in re.split(r"[.!?]+", text) if len(s.strip()) > 5]
    sentence_count = max(1, len(sentences))
    syllables = sum(count_syllables(w) for w in text.split())
    avg_sentence_len = word_count / sentence_count
    avg_syllables = syllables / max(1, word_count)

    ease = 206.835 - 1.015 * avg_sentence_len - 84.6 * avg_syllables
    grade = 0.39 * avg_sentence_len + 11.8 * avg_syllables - 15.59

    return {
        "flesch_ease": int(_round(max(0.0, min(100.0, ease)))),
        "grade_level": _round(max(0.0, grade), 1),
        "avg_sentence_length": _round(avg_sentence_len, 1),
        "avg_syllables_per_word": _round(avg_syllables, 2),
    }
