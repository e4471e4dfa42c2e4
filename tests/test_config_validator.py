import pytest

import config
from core.config_validator import ConfigValidator, validate_startup_config
from core.exceptions import ConfigValidationError


def make_validator(tmp_path, **overrides):
    sections = {
        "api_config": dict(config.API_CONFIG, base_url="http://localhost:3000"),
        "auth_config": dict(config.AUTH_CONFIG),
        "search_config": dict(config.SEARCH_CONFIG),
        "storage_config": {"path": str(tmp_path / "kv.json")},
        "ui_config": dict(config.UI_CONFIG, default_language="en"),
        "logging_config": dict(config.LOGGING_CONFIG, log_level="INFO", max_log_size_mb=10, backup_count=5),
    }
    for section, values in overrides.items():
        sections[section].update(values)
    return ConfigValidator(**sections)


def test_defaults_are_valid(tmp_path):
    is_valid, errors, warnings = make_validator(tmp_path).validate_all()

    assert is_valid
    assert errors == []
    assert warnings == []


@pytest.mark.parametrize("section,values,fragment", [
    ("api_config", {"base_url": "localhost:3000"}, "base URL"),
    ("api_config", {"request_timeout": 0}, "timeout"),
    ("auth_config", {"otp_length": 0}, "OTP length"),
    ("search_config", {"debounce_ms": 0}, "debounce"),
    ("search_config", {"max_suggestions": 0}, "suggestions"),
    ("ui_config", {"default_language": "fr"}, "language"),
    ("ui_config", {"default_theme": "sepia"}, "theme"),
    ("logging_config", {"log_level": "LOUD"}, "log level"),
])
def test_invalid_settings_are_errors(tmp_path, section, values, fragment):
    is_valid, errors, _ = make_validator(tmp_path, **{section: values}).validate_all()

    assert not is_valid
    assert any(fragment in error for error in errors)


def test_slow_debounce_is_a_warning(tmp_path):
    is_valid, _, warnings = make_validator(tmp_path, search_config={"debounce_ms": 5000}).validate_all()

    assert is_valid
    assert any("sluggish" in w for w in warnings)


def test_storage_path_that_is_a_directory(tmp_path):
    (tmp_path / "kv.json").mkdir()

    is_valid, errors, _ = make_validator(tmp_path).validate_all()

    assert not is_valid
    assert any("is a directory" in e for e in errors)


def test_startup_validation_raises_with_details(tmp_path):
    validator = make_validator(tmp_path, api_config={"base_url": "ftp://files"})

    with pytest.raises(ConfigValidationError) as exc_info:
        validate_startup_config(validator)
    assert exc_info.value.details["errors"]


def test_startup_validation_returns_warnings(tmp_path):
    validator = make_validator(tmp_path, logging_config={"backup_count": 100})

    assert validate_startup_config(validator)
