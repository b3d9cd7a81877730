import secrets
import string

from flask import current_app
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_registration_code():
    # e.g. 'UCAO-7K2Q-M9XD'
    def block():
        return "".join(secrets.choice(_CODE_ALPHABET) for _ in range(4))

    return f"UCAO-{block()}-{block()}"


def _session_serializer():
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"])


def generate_session_token(user):
    return _session_serializer().dumps(
        {"uid": user.id, "role": user.role}, salt="account-session"
    )


def verify_session_token(token, max_age=None):
    if max_age is None:
        max_age = current_app.config.get("ACCOUNT_TOKEN_MAX_AGE", 8 * 3600)
    try:
        payload = _session_serializer().loads(token, salt="account-session", max_age=max_age)
    except (BadSignature, SignatureExpired):
        return None
    if not isinstance(payload, dict) or "uid" not in payload:
        return None
    return payload
