"""
Language selection and message lookup
"""

from typing import Callable, Dict, List

from jinja2 import Environment, StrictUndefined, Template, TemplateError

from config import UI_CONFIG
from core.logging_config import get_logger
from events import event_bus, EventTypes

logger = get_logger(__name__)

# Messages raised by the flows; values are jinja2 templates
MESSAGES: Dict[str, Dict[str, str]] = {
    "en": {
        "error": "Error",
        "success": "Success",
        "notice": "Notice",
        "connectionProblem": "Connection Problem",
        "retry": "Retry",
        "cancel": "Cancel",
        "enterEmail": "Please enter your email",
        "enterNameAndEmail": "Please enter your name and email",
        "enter4DigitOtp": "Please enter a {{ length }}-digit OTP",
        "enterEmailAndPassword": "Please enter your email and password",
        "otpSentSuccessfully": "OTP sent successfully to {{ email }}",
        "loginSuccessful": "Welcome back, {{ name }}!",
        "signupSuccessful": "Your account is ready, {{ name }}!",
        "loggedOut": "You have been logged out",
        "noMedicinesFound": "No medicines found",
        "noMedicinesFoundFor": "No medicines found for \"{{ query }}\"",
        "medicinesFound": "Found {{ count }} medicine{{ 's' if count != 1 else '' }}",
        "imageUnavailable": "Could not read the selected image",
        "profileUpdated": "Personal information updated successfully",
        "nothingToUpdate": "There is nothing to update",
        "profileImageUpdated": "Profile picture updated",
        "profileImageRemoved": "Profile picture removed",
        "themeChanged": "Switched to {{ theme }} mode",
        "languageChanged": "Language changed to English",
    },
    "bn": {
        "error": "ত্রুটি",
        "success": "সফল",
        "notice": "বিজ্ঞপ্তি",
        "connectionProblem": "সংযোগ সমস্যা",
        "retry": "আবার চেষ্টা করুন",
        "cancel": "বাতিল",
        "enterEmail": "দয়া করে আপনার ইমেইল লিখুন",
        "enterNameAndEmail": "দয়া করে আপনার নাম এবং ইমেইল লিখুন",
        "enter4DigitOtp": "দয়া করে {{ length }} ডিজিটের OTP প্রদান করুন",
        "enterEmailAndPassword": "দয়া করে আপনার ইমেইল এবং পাসওয়ার্ড লিখুন",
        "otpSentSuccessfully": "{{ email }} এ OTP সফলভাবে পাঠানো হয়েছে",
        "loginSuccessful": "আবার স্বাগতম, {{ name }}!",
        "signupSuccessful": "আপনার অ্যাকাউন্ট প্রস্তুত, {{ name }}!",
        "loggedOut": "আপনি লগআউট হয়েছেন",
        "noMedicinesFound": "কোনো ওষুধ পাওয়া যায়নি",
        "noMedicinesFoundFor": "\"{{ query }}\" এর জন্য কোনো ওষুধ পাওয়া যায়নি",
        "medicinesFound": "{{ count }}টি ওষুধ পাওয়া গেছে",
        "imageUnavailable": "নির্বাচিত ছবিটি পড়া যায়নি",
        "profileUpdated": "ব্যক্তিগত তথ্য সফলভাবে আপডেট হয়েছে",
        "nothingToUpdate": "আপডেট করার কিছু নেই",
        "profileImageUpdated": "প্রোফাইল ছবি আপডেট হয়েছে",
        "profileImageRemoved": "প্রোফাইল ছবি সরানো হয়েছে",
        "themeChanged": "{{ theme }} মোডে পরিবর্তন করা হয়েছে",
        "languageChanged": "ভাষা বাংলায় পরিবর্তন করা হয়েছে",
    },
}


class LanguageManager:
    """Current language plus templated message lookup"""

    def __init__(self, default_language: str = UI_CONFIG["default_language"],
                 messages: Dict[str, Dict[str, str]] = MESSAGES):
        if default_language not in messages:
            raise ValueError(f"Unsupported language: {default_language}")
        self.language = default_language
        self.messages = messages
        self.is_language_selected = False
        self._env = Environment(autoescape=False, undefined=StrictUndefined)
        self._templates: Dict[str, Template] = {}
        self._listeners: List[Callable[[str], None]] = []

    @property
    def available_languages(self) -> List[str]:
        return list(self.messages.keys())

    def add_listener(self, listener: Callable[[str], None]):
        self._listeners.append(listener)

    def set_language(self, language: str):
        if language not in self.messages:
            raise ValueError(f"Unsupported language: {language}")

        self.language = language
        self.is_language_selected = True
        event_bus.emit(EventTypes.LANGUAGE_CHANGED, {"language": language}, source="language")
        for listener in self._listeners:
            try:
                listener(language)
            except Exception:
                logger.exception("Error in language listener")

    def t(self, key: str, **params) -> str:
        """Message for key in the current language, then English, then the key itself"""
        source = self.messages[self.language].get(key)
        if source is None:
            source = self.messages.get("en", {}).get(key)
        if source is None:
            logger.debug(f"Missing message key {key!r}")
            return key

        template_key = f"{self.language}:{key}:{source}"
        template = self._templates.get(template_key)
        if template is None:
            template = self._env.from_string(source)
            self._templates[template_key] = template

        try:
            return template.render(**params)
        except TemplateError as e:
            logger.warning(f"Could not render message {key!r}: {e}")
            return source
