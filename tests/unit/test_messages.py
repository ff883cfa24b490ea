"""Unit tests for message lookup"""

import pytest

from displayables_auth.core.messages import MESSAGES, MessageKey, describe, supported_locales


@pytest.mark.unit
class TestDescribe:
    """Test localized descriptions"""

    def test_english_default(self):
        assert describe(MessageKey.INCORRECT_PASSWORD) == "The password provided is incorrect."

    def test_german(self):
        assert describe(MessageKey.INCORRECT_PASSWORD, "de") == "Das angegebene Passwort ist falsch."

    def test_unknown_locale_falls_back_to_english(self):
        assert describe(MessageKey.INVALID_TOKEN, "fr") == describe(MessageKey.INVALID_TOKEN, "en")

    def test_locale_is_case_insensitive(self):
        assert describe(MessageKey.INVALID_TOKEN, "DE") == describe(MessageKey.INVALID_TOKEN, "de")

    def test_formats_parameters(self):
        message = describe(MessageKey.INVALID_USERNAME_LENGTH, "en", min=3, max=20)

        assert message == "Usernames must be between 3 and 20 characters long."

    def test_missing_parameters_leave_template(self):
        message = describe(MessageKey.AUTHENTICATED, "en")

        assert "{name}" in message

    def test_every_key_is_translated(self):
        for locale in supported_locales():
            missing = [key.value for key in MessageKey if key.value not in MESSAGES[locale]]
            assert missing == [], f"{locale} is missing {missing}"
