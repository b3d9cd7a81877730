from functools import wraps

from flask import request
from flask_login import current_user, login_required

from campus_vote.errors import Forbidden, ValidationError


def admin_required(view):
    @wraps(view)
    @login_required
    def wrapped(*args, **kwargs):
        if not current_user.is_admin:
            raise Forbidden()
        return view(*args, **kwargs)

    return wrapped


def json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def clean_str(value):
    if value is None:
        return ""
    return str(value).strip()


def parse_int(value, field, required=True):
    if value is None or value == "":
        if required:
            raise ValidationError(f"{field} requis")
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field} invalide")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} invalide") from None
