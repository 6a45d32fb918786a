"""Prompt assembly helpers for the generative fallback.

This module only builds prompt payload pieces from already routed inputs.
Route selection, timeouts and model invocation happen outside this module.

Design constraints:
    - Deterministic construction for identical inputs.
    - Fixed ordering of chat messages: system persona first, user text last.
    - No I/O, no global state mutation.

Prompt safety model:
    User text is passed through as the raw user message. The persona prompt is
    the only instruction layer; upstream layers own any sanitization.
"""

from app.nlp.language_detector import ARABIC


COMPANY_NAME_EN = "Etjahh Real Estate Company"
COMPANY_NAME_AR = "شركة إتجاه العقارية"


# =========================================================
# SYSTEM PERSONA
# =========================================================
# One persona per supported language. Any language other than Arabic uses the
# English persona.

SYSTEM_PROMPT_EN = (
    f'You are an intelligent assistant for "{COMPANY_NAME_EN}" in Saudi Arabia. '
    "You are a professional real estate broker specializing in the Saudi market.\n\n"
    "Company information:\n"
    f"- Name: {COMPANY_NAME_EN}\n"
    "- Specialization: real estate brokerage in Saudi Arabia\n"
    "- Services: property sales, purchases, rentals, consultations and valuations\n\n"
    "Response guidelines:\n"
    "- Provide accurate, useful and practical information.\n"
    "- Help clients find properties that fit their needs.\n"
    "- Be polite, friendly and professional at all times.\n"
    "- Keep answers short enough for a WhatsApp chat.\n"
    "- Use appropriate emojis sparingly.\n"
)

SYSTEM_PROMPT_AR = (
    f'أنت مساعد ذكي لـ "{COMPANY_NAME_AR}" في المملكة العربية السعودية. '
    "أنت وسيط عقاري محترف ومتخصص في السوق السعودي.\n\n"
    "معلومات الشركة:\n"
    f"- الاسم: {COMPANY_NAME_AR}\n"
    "- التخصص: الوساطة العقارية في المملكة العربية السعودية\n"
    "- الخدمات: بيع وشراء وإيجار العقارات، استشارات عقارية، تقييم العقارات\n\n"
    "إرشادات الاستجابة:\n"
    "- قدم معلومات دقيقة ومفيدة وعملية.\n"
    "- ساعد العملاء في العثور على العقارات المناسبة لاحتياجاتهم.\n"
    "- كن مهذباً وودوداً ومحترفاً في جميع الأوقات.\n"
    "- اجعل الردود قصيرة ومناسبة لمحادثة واتساب.\n"
    "- استخدم الرموز التعبيرية المناسبة باعتدال.\n"
    "- أجب باللغة العربية.\n"
)


def build_system_prompt(language: str) -> str:
    """Return the brokerage persona prompt for `language`."""
    if language == ARABIC:
        return SYSTEM_PROMPT_AR
    return SYSTEM_PROMPT_EN


def build_chat_messages(message: str, language: str) -> list[dict]:
    """Build the OpenAI-style `messages` list for one inbound message.

    Edge cases:
        - `message` is stripped before insertion.
    """
    return [
        {"role": "system", "content": build_system_prompt(language)},
        {"role": "user", "content": message.strip()},
    ]


# =========================================================
# RELATED TOPIC HINT
# =========================================================

HINT_TEMPLATE = "\n\n💡 *Related topic*: {question}"


def build_related_topic_hint(question: str) -> str:
    """Return the suffix appended to generative answers for mid-band matches."""
    return HINT_TEMPLATE.format(question=question.strip())
