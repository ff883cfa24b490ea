"""Localized message lookup.

Error and success descriptions are resolved through ``describe``, a pure function
of (message key, locale). Callers receive it as an injected collaborator so that
no module keeps request-scoped language state.
"""

from enum import Enum
from typing import Callable, Optional


DEFAULT_LOCALE = "en"


class MessageKey(str, Enum):
    """Keys into the message catalogue."""

    # Validation
    LOGIN_DETAILS_REQUIRED = "login_details_required"
    INVALID_USERNAME_LENGTH = "invalid_username_length"
    INVALID_PASSWORD_LENGTH = "invalid_password_length"
    INVALID_PASSWORD_CHARACTERS = "invalid_password_characters"
    INVALID_USERNAME_RESTRICTED = "invalid_username_restricted"
    USERNAME_DOES_NOT_EXIST = "username_does_not_exist"
    USERNAME_ALREADY_EXISTS = "username_already_exists"
    PASSWORD_UPDATE_DETAILS_REQUIRED = "password_update_details_required"

    # Authentication
    INCORRECT_PASSWORD = "incorrect_password"
    EXTERNAL_ACCOUNT = "external_account"
    INVALID_TOKEN = "invalid_token"
    TOKEN_SESSION_EXPIRED = "token_session_expired"
    TOKEN_MALFORMED = "token_malformed"
    INVALID_MISSING_SIGNATURE = "invalid_missing_signature"
    FAILED_TOKEN_VALIDATION = "failed_token_validation"
    PROVIDER_MISMATCH = "provider_mismatch"
    ACCOUNT_NOT_PROVISIONED = "account_not_provisioned"

    # Success
    AUTHENTICATED = "authenticated"
    TOKEN_REFRESH = "token_refresh"
    USER_CREATED = "user_created"
    PASSWORD_UPDATED = "password_updated"

    # Internal
    FAILED_USER_AUTHENTICATE = "failed_user_authenticate"
    FAILED_USER_CREATION = "failed_user_creation"
    FAILED_PASSWORD_UPDATE = "failed_password_update"
    SOMETHING_WRONG = "something_wrong"


MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        "login_details_required": "A username and password are required to log in.",
        "invalid_username_length": "Usernames must be between {min} and {max} characters long.",
        "invalid_password_length": "Passwords must be between {min} and {max} characters long.",
        "invalid_password_characters": "The password contains characters that are not allowed.",
        "invalid_username_restricted": "That username contains a restricted word.",
        "username_does_not_exist": "The username {username} does not exist.",
        "username_already_exists": "The username {username} already exists.",
        "password_update_details_required": "Both the current and the new password are required.",
        "incorrect_password": "The password provided is incorrect.",
        "external_account": "This account signs in through an external provider.",
        "invalid_token": "The authentication token is invalid.",
        "token_session_expired": "Your session has expired, please log in again.",
        "token_malformed": "The authentication token is malformed.",
        "invalid_missing_signature": "The authentication token signature is invalid or missing.",
        "failed_token_validation": "Failed to validate the authentication token.",
        "provider_mismatch": "This account is registered with a different provider.",
        "account_not_provisioned": "No account exists for this identity, please log in first.",
        "authenticated": "User {name} authenticated.",
        "token_refresh": "Session refreshed for {name}.",
        "user_created": "User {username} created.",
        "password_updated": "Password updated.",
        "failed_user_authenticate": "Failed to authenticate the user.",
        "failed_user_creation": "Failed to create the user {username}.",
        "failed_password_update": "Failed to update the password.",
        "something_wrong": "Something went wrong, please try again later.",
    },
    "de": {
        "login_details_required": "Benutzername und Passwort sind erforderlich.",
        "invalid_username_length": "Benutzernamen müssen zwischen {min} und {max} Zeichen lang sein.",
        "invalid_password_length": "Passwörter müssen zwischen {min} und {max} Zeichen lang sein.",
        "invalid_password_characters": "Das Passwort enthält unzulässige Zeichen.",
        "invalid_username_restricted": "Der Benutzername enthält ein gesperrtes Wort.",
        "username_does_not_exist": "Der Benutzername {username} existiert nicht.",
        "username_already_exists": "Der Benutzername {username} existiert bereits.",
        "password_update_details_required": "Das aktuelle und das neue Passwort sind erforderlich.",
        "incorrect_password": "Das angegebene Passwort ist falsch.",
        "external_account": "Dieses Konto meldet sich über einen externen Anbieter an.",
        "invalid_token": "Das Authentifizierungstoken ist ungültig.",
        "token_session_expired": "Die Sitzung ist abgelaufen, bitte erneut anmelden.",
        "token_malformed": "Das Authentifizierungstoken ist fehlerhaft.",
        "invalid_missing_signature": "Die Signatur des Tokens ist ungültig oder fehlt.",
        "failed_token_validation": "Das Authentifizierungstoken konnte nicht geprüft werden.",
        "provider_mismatch": "Dieses Konto ist bei einem anderen Anbieter registriert.",
        "account_not_provisioned": "Für diese Identität existiert kein Konto, bitte zuerst anmelden.",
        "authenticated": "Benutzer {name} angemeldet.",
        "token_refresh": "Sitzung für {name} erneuert.",
        "user_created": "Benutzer {username} angelegt.",
        "password_updated": "Passwort aktualisiert.",
        "failed_user_authenticate": "Der Benutzer konnte nicht angemeldet werden.",
        "failed_user_creation": "Der Benutzer {username} konnte nicht angelegt werden.",
        "failed_password_update": "Das Passwort konnte nicht aktualisiert werden.",
        "something_wrong": "Etwas ist schiefgelaufen, bitte später erneut versuchen.",
    },
}


Describe = Callable[..., str]


def describe(key: MessageKey, locale: Optional[str] = None, **params) -> str:
    """Resolve a message for the given locale.

    Falls back to the default locale for unknown locales or missing keys, and to
    the raw key when neither catalogue has it. Missing format parameters leave
    the template unformatted rather than raising.
    """
    name = key.value if isinstance(key, MessageKey) else str(key)
    catalogue = MESSAGES.get((locale or DEFAULT_LOCALE).lower(), MESSAGES[DEFAULT_LOCALE])
    template = catalogue.get(name) or MESSAGES[DEFAULT_LOCALE].get(name, name)

    try:
        return template.format(**params)
    except (KeyError, IndexError):
        return template


def supported_locales() -> list[str]:
    return sorted(MESSAGES)
