import pytest

from api import ApiResponse, ErrorKind
from core.exceptions import StorageError
from core.state_manager import SessionState
from ui import ActionStyle, AlertAction, AlertManager, AlertType, LanguageManager, ThemeManager, create_app_context


class BrokenStore:
    def get_item(self, key):
        raise StorageError("/tmp/kv.json", "could not be read")

    def set_item(self, key, value):
        raise StorageError("/tmp/kv.json", "could not be written")


# Alerts

def test_show_and_hide_alert():
    alerts = AlertManager()
    rendered = []
    alerts.add_listener(lambda options, visible: rendered.append((options.title, visible)))

    alerts.show_alert("Error", "Something failed", AlertType.ERROR)
    alerts.hide_alert()
    alerts.hide_alert()

    assert rendered == [("Error", True), ("Error", False)]
    assert not alerts.visible


def test_new_alert_replaces_visible_one():
    alerts = AlertManager()

    alerts.show_alert("First", "one")
    alerts.show_alert("Second", "two", AlertType.SUCCESS)

    assert alerts.current.title == "Second"
    assert [a.title for a in alerts.history] == ["First", "Second"]


def test_pressing_an_action_closes_then_runs_it():
    alerts = AlertManager()
    pressed = []
    alerts.show_alert("Error", "Network", AlertType.WARNING, [
        AlertAction("Retry", on_press=lambda: pressed.append(alerts.visible)),
        AlertAction("Cancel", style=ActionStyle.CANCEL),
    ])

    alerts.press(0)

    assert pressed == [False]


def test_pressing_missing_action_raises():
    alerts = AlertManager()
    alerts.show_alert("Notice", "No actions here")

    with pytest.raises(IndexError):
        alerts.press(3)


def test_show_error_classifies_response():
    alerts = AlertManager()

    alerts.show_error(ApiResponse.failure("offline", ErrorKind.NETWORK), "Error")
    assert alerts.current.type == AlertType.WARNING

    alerts.show_error(ApiResponse.failure("Bad request", ErrorKind.SERVER, 400), "Error")
    assert alerts.current.type == AlertType.ERROR
    assert alerts.current.message == "Bad request"


# Theme

def test_theme_toggle_is_persisted(store):
    theme = ThemeManager(store)
    changes = []
    theme.add_listener(changes.append)

    assert theme.toggle_theme() == "dark"
    assert theme.is_dark_mode
    assert store.get_item("theme") == "dark"
    assert changes == ["dark"]

    restored = ThemeManager(store)
    assert restored.load() == "dark"


def test_unknown_stored_theme_is_ignored(store):
    store.set_item("theme", "sepia")

    assert ThemeManager(store).load() == "light"


def test_unknown_theme_is_rejected(store):
    with pytest.raises(ValueError):
        ThemeManager(store).set_theme("sepia")


def test_storage_failures_do_not_escape():
    theme = ThemeManager(BrokenStore())

    assert theme.load() == "light"
    assert theme.set_theme("dark") == "dark"
    assert theme.is_dark_mode


def test_context_starts_from_unreadable_storage(tmp_path):
    path = tmp_path / "medivision.json"
    path.write_text("{not json", encoding="utf-8")

    context = create_app_context(base_url="http://127.0.0.1:1", storage_path=str(path)).initialize()

    assert context.theme.theme == "light"
    assert not context.api.is_authenticated()
    assert context.api.session_state.get_state() == SessionState.ANONYMOUS


# Language

def test_messages_follow_selected_language():
    language = LanguageManager("en")

    assert language.t("error") == "Error"
    language.set_language("bn")
    assert language.t("error") == "ত্রুটি"
    assert language.is_language_selected


def test_message_parameters_are_rendered():
    language = LanguageManager("en")

    assert language.t("medicinesFound", count=1) == "Found 1 medicine"
    assert language.t("medicinesFound", count=3) == "Found 3 medicines"
    assert language.t("enter4DigitOtp", length=6) == "Please enter a 6-digit OTP"


def test_missing_keys_fall_back_to_english_then_key():
    messages = {"en": {"hello": "Hello"}, "bn": {}}
    language = LanguageManager("bn", messages=messages)

    assert language.t("hello") == "Hello"
    assert language.t("goodbye") == "goodbye"


def test_missing_parameter_returns_template_source():
    language = LanguageManager("en")

    assert language.t("loginSuccessful") == "Welcome back, {{ name }}!"


def test_unsupported_language_is_rejected():
    with pytest.raises(ValueError):
        LanguageManager("fr")
    with pytest.raises(ValueError):
        LanguageManager("en").set_language("fr")
