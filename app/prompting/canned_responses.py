"""Static and rule-based replies.

Two groups of fixed texts live here:
    - `build_default_response`: the static-default reply of the router. It is
      phrased as a welcome/help menu so that total failure reads like an
      ordinary "how can I help" message.
    - `build_rule_based_response`: keyword-triggered answers for price and
      appointment questions, used by the generative fallback when no model is
      available.

Rule matching is lexical substring matching on the lower-cased message, in
Arabic and English, evaluated in a fixed order (price before appointment).
"""

from app.nlp.language_detector import ARABIC


DEFAULT_RESPONSE_EN = (
    "Welcome to *Etjahh Real Estate Company*! 👋\n\n"
    "I'm your intelligent assistant specializing in Saudi real estate. I can help you with:\n\n"
    "🏠 *Property Search* for buying or renting\n"
    "💰 *Property Valuation* and price analysis\n"
    "📅 *Booking Viewing Appointments* and consultations\n"
    "📊 *Market Analysis* and real estate trends\n"
    "💡 *Specialized Real Estate Consultations*\n\n"
    "How can I help you today?\n\n"
    "*Etjahh Real Estate Company - Your Trusted Real Estate Partner* 🏢✨"
)

DEFAULT_RESPONSE_AR = (
    "مرحباً بك في *شركة إتجاه العقارية*! 👋\n\n"
    "أنا مساعدك الذكي المتخصص في العقارات السعودية. يمكنني مساعدتك في:\n\n"
    "🏠 *البحث عن عقارات* للشراء أو الإيجار\n"
    "💰 *تقييم العقارات* وتحليل الأسعار\n"
    "📅 *حجز مواعيد المعاينة* والاستشارات\n"
    "📊 *تحليل السوق* والاتجاهات العقارية\n"
    "💡 *الاستشارات العقارية* المتخصصة\n\n"
    "كيف يمكنني مساعدتك اليوم؟\n\n"
    "*شركة إتجاه العقارية - شريكك الموثوق في العقارات* 🏢✨"
)


def build_default_response(language: str) -> str:
    """Return the static welcome/help reply for `language`."""
    if language == ARABIC:
        return DEFAULT_RESPONSE_AR
    return DEFAULT_RESPONSE_EN


# =========================================================
# RULE-BASED REPLIES
# =========================================================

PRICE_TRIGGERS = ("price", "cost", "سعر", "تكلفة")
APPOINTMENT_TRIGGERS = ("appointment", "meeting", "موعد", "اجتماع")

PRICE_RESPONSE_EN = (
    "Welcome to *Etjahh Real Estate Company* 🏢\n\n"
    "I understand you're asking about pricing. Our prices vary based on:\n\n"
    "📍 *Location*: Riyadh, Jeddah, Dammam, Mecca, Medina\n"
    "📐 *Size*: From 100 to 1000+ sqm\n"
    "🏠 *Property Type*: Apartments, Villas, Townhouses, Land, Offices\n"
    "💎 *Finishing Level*: Standard, Luxury, Super Luxury\n"
    "🎯 *Purpose*: Residential, Commercial, Investment\n\n"
    "💡 *For an accurate estimate, tell me:*\n"
    "• Preferred location?\n"
    "• Required size?\n"
    "• Property type?\n"
    "• Approximate budget?\n\n"
    "*Etjahh Real Estate - Your Trusted Real Estate Partner* 🏠✨"
)

PRICE_RESPONSE_AR = (
    "مرحباً بك في *شركة إتجاه العقارية* 🏢\n\n"
    "أفهم أنك تسأل عن الأسعار. تختلف أسعارنا حسب:\n\n"
    "📍 *الموقع*: الرياض، جدة، الدمام، مكة، المدينة\n"
    "📐 *المساحة*: من 100 إلى 1000+ متر مربع\n"
    "🏠 *نوع العقار*: شقق، فيلل، تاون هاوس، أراضي، مكاتب\n"
    "💎 *مستوى التشطيب*: عادي، فاخر، سوبر لوكس\n"
    "🎯 *الغرض*: سكني، تجاري، استثماري\n\n"
    "💡 *للحصول على تقييم دقيق، أخبرني:*\n"
    "• الموقع المطلوب؟\n"
    "• المساحة المطلوبة؟\n"
    "• نوع العقار؟\n"
    "• الميزانية التقريبية؟\n\n"
    "*إتجاه العقارية - شريكك الموثوق في العقارات* 🏠✨"
)

APPOINTMENT_RESPONSE_EN = (
    "Of course! I can help you schedule an appointment.\n\n"
    "📅 When would be convenient for you?\n"
    "⏰ Our available hours:\n"
    "   • Sunday - Thursday: 9 AM - 6 PM\n"
    "   • Saturday: 10 AM - 4 PM\n\n"
    "🏢 The appointment can be:\n"
    "   • At our office\n"
    "   • At the property location\n"
    "   • Via video call\n\n"
    "What would you prefer?\n\n"
    "*Etjahh Real Estate Company* 🏢"
)

APPOINTMENT_RESPONSE_AR = (
    "بالطبع! يمكنني مساعدتك في حجز موعد.\n\n"
    "📅 متى يناسبك؟\n"
    "⏰ أوقاتنا المتاحة:\n"
    "   • الأحد - الخميس: 9 صباحاً - 6 مساءً\n"
    "   • السبت: 10 صباحاً - 4 مساءً\n\n"
    "🏢 يمكن أن يكون الموعد:\n"
    "   • في مكتبنا\n"
    "   • في موقع العقار\n"
    "   • عبر الفيديو\n\n"
    "ما الذي تفضل؟\n\n"
    "*شركة إتجاه العقارية* 🏢"
)


def build_rule_based_response(message: str, language: str) -> str | None:
    """Return a canned answer for price/appointment questions, else `None`."""
    if not message:
        return None

    text = message.lower()
    arabic = language == ARABIC

    if any(trigger in text for trigger in PRICE_TRIGGERS):
        return PRICE_RESPONSE_AR if arabic else PRICE_RESPONSE_EN

    if any(trigger in text for trigger in APPOINTMENT_TRIGGERS):
        return APPOINTMENT_RESPONSE_AR if arabic else APPOINTMENT_RESPONSE_EN

    return None
