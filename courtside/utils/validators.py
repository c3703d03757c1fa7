from typing import Iterable, Optional, Tuple
from courtside.models.availability import PrivacyLevel

SCOPES = ('single', 'all')


def validate_required_fields(data: dict, fields: Iterable[str]) -> Tuple[bool, Optional[str]]:
    """Check that a request payload carries every required field"""
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object"
    missing = [field for field in fields if data.get(field) in (None, '')]
    if missing:
        return False, f"Missing required fields: {', '.join(missing)}"
    return True, None


def validate_privacy_level(value: Optional[str]) -> Tuple[bool, Optional[str]]:
    """Validate privacy level"""
    if value is None:
        return True, None
    if value not in [level.value for level in PrivacyLevel]:
        return False, "Privacy level must be one of: public, friends_only, private"
    return True, None


def validate_scope(value: Optional[str]) -> Tuple[bool, Optional[str]]:
    """Validate edit/delete scope for recurring availability"""
    if value is None or value in SCOPES:
        return True, None
    return False, "Scope must be 'single' or 'all'"
