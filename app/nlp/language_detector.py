"""Lightweight Arabic/English language detection.

Used only to parameterize the generative call and the static default reply.
Rule-based (Unicode script counting), deterministic, no I/O.
"""

import re

ARABIC = "ar"
ENGLISH = "en"
SUPPORTED_LANGUAGES = (ARABIC, ENGLISH)

# Arabic, Arabic Supplement, Arabic Extended-A, presentation forms.
ARABIC_CHAR_PATTERN = re.compile(
    "[\u0600-\u06FF\u0750-\u077F\u08A0-\u08FF\uFB50-\uFDFF\uFE70-\uFEFF]"
)

ARABIC_RATIO_THRESHOLD = 0.3
SHORT_MESSAGE_LETTERS = 3


def detect(text: str) -> str:
    """Return `"ar"` for predominantly Arabic-script text, otherwise `"en"`.

    Edge cases:
        - Empty/blank input -> `"en"`.
        - Very short messages (fewer than 3 letters) are Arabic when any Arabic
          letter is present, since code-switched greetings are common.
    """
    if not text or not text.strip():
        return ENGLISH

    letters = [ch for ch in text if ch.isalpha()]
    if not letters:
        return ENGLISH

    arabic_count = sum(1 for ch in letters if ARABIC_CHAR_PATTERN.match(ch))
    if arabic_count == 0:
        return ENGLISH

    if len(letters) < SHORT_MESSAGE_LETTERS:
        return ARABIC

    if arabic_count / len(letters) >= ARABIC_RATIO_THRESHOLD:
        return ARABIC
    return ENGLISH
