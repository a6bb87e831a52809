"""
Redirect target selection for successful submissions.
"""

from typing import Optional

from .models import FormFields, Settings, REDIRECT_URL_FIELD


def resolve_redirect_url(fields: FormFields, settings: Settings) -> Optional[str]:
    """
    Pick the URL a successful submission should be sent on to.

    Priority: redirectUrl form field (if allowed) > configured URL > None

    Args:
        fields: Form fields read from the request
        settings: Function settings

    Returns:
        str: Redirect target, or None if there isn't one
    """
    if settings.allow_user_redirect_urls:
        user_url = fields.get(REDIRECT_URL_FIELD)
        if user_url:
            return user_url

    if settings.success_redirect_url:
        return settings.success_redirect_url

    return None
