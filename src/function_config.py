"""
Function configuration loaded from environment variables.

Settings are read once per cold start and shared (read-only) by every
invocation. Invalid or missing required values raise ConfigurationError
so the function fails at init rather than on the first request.
"""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from domain.models import Settings, ResponseMode

logger = logging.getLogger(__name__)

SMTP_TRANSPORT = 'smtp'
SES_TRANSPORT = 'ses'

_TRUE_VALUES = ('true', '1', 'yes')
_FALSE_VALUES = ('false', '0', 'no')


class ConfigurationError(Exception):
    """Raised when function configuration is invalid or missing."""
    pass


@dataclass(frozen=True)
class MailConfig:
    """
    Outbound mail transport configuration.

    Attributes:
        transport: 'smtp' or 'ses'
        smtp_host: SMTP relay host
        smtp_port: SMTP relay port
        smtp_username: Login name (empty to skip login)
        smtp_password: Login password
        smtp_starttls: Upgrade plain connections with STARTTLS
        smtp_use_ssl: Connect with implicit TLS instead
        smtp_timeout: Seconds allowed for SMTP operations
        ses_from_address: Verified SES identity used as the sender
        ses_configuration_set: Optional SES configuration set name
        ses_connect_timeout: Seconds allowed to connect to SES
        ses_timeout: Seconds allowed for the SES response
    """
    transport: str = SMTP_TRANSPORT
    smtp_host: str = ''
    smtp_port: int = 587
    smtp_username: str = ''
    smtp_password: str = ''
    smtp_starttls: bool = True
    smtp_use_ssl: bool = False
    smtp_timeout: float = 20.0
    ses_from_address: str = ''
    ses_configuration_set: str = ''
    ses_connect_timeout: float = 10.0
    ses_timeout: float = 20.0


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Read function settings from the environment.

    Args:
        environ: Variables to read (defaults to os.environ)

    Returns:
        Settings: Validated settings

    Raises:
        ConfigurationError: If RECIPIENT is missing or a value is malformed
    """
    env = os.environ if environ is None else environ

    recipient = env.get('RECIPIENT', '').strip()
    if not recipient:
        raise ConfigurationError(
            "RECIPIENT environment variable is required but not set. "
            "Please configure this in your SAM template or Lambda environment."
        )

    response_mode = (
        ResponseMode.REDIRECT
        if _read_bool(env, 'USE_REDIRECT_RESPONSE', False)
        else ResponseMode.OK
    )

    settings = Settings(
        recipient_address=recipient,
        subject_required=_read_bool(env, 'IS_SUBJECT_REQUIRED', False),
        fallback_subject=env.get('FALLBACK_SUBJECT') or "Email received",
        response_mode=response_mode,
        allow_user_redirect_urls=_read_bool(env, 'ALLOW_USER_REDIRECT_URLS', False),
        success_redirect_url=env.get('SUCCESS_REDIRECT_URL', ''),
        verification_secret=env.get('RECAPTCHA_V2_KEY', ''),
        recipient_name=env.get('RECIPIENT_NAME', ''),
        verification_timeout=_read_float(env, 'RECAPTCHA_TIMEOUT', 10.0),
        cors_allow_origin=env.get('CORS_ALLOW_ORIGIN', '')
    )

    logger.info(
        f"Settings loaded: response_mode={settings.response_mode.value}, "
        f"subject_required={settings.subject_required}, "
        f"user_redirects={settings.allow_user_redirect_urls}, "
        f"success_redirect={'set' if settings.success_redirect_url else 'none'}, "
        f"recaptcha={'enabled' if settings.verification_required else 'disabled'}"
    )
    return settings


def load_mail_config(environ: Optional[Mapping[str, str]] = None) -> MailConfig:
    """
    Read outbound mail transport settings from the environment.

    Args:
        environ: Variables to read (defaults to os.environ)

    Returns:
        MailConfig: Validated transport configuration

    Raises:
        ConfigurationError: If the transport is unknown or its required
                            values are missing
    """
    env = os.environ if environ is None else environ

    transport = env.get('MAIL_TRANSPORT', SMTP_TRANSPORT).strip().lower()
    if transport not in (SMTP_TRANSPORT, SES_TRANSPORT):
        raise ConfigurationError(
            f"MAIL_TRANSPORT must be '{SMTP_TRANSPORT}' or '{SES_TRANSPORT}', got: '{transport}'"
        )

    config = MailConfig(
        transport=transport,
        smtp_host=env.get('SMTP_HOST', '').strip(),
        smtp_port=_read_int(env, 'SMTP_PORT', 587),
        smtp_username=env.get('SMTP_USERNAME', ''),
        smtp_password=env.get('SMTP_PASSWORD', ''),
        smtp_starttls=_read_bool(env, 'SMTP_STARTTLS', True),
        smtp_use_ssl=_read_bool(env, 'SMTP_USE_SSL', False),
        smtp_timeout=_read_float(env, 'SMTP_TIMEOUT', 20.0),
        ses_from_address=env.get('SES_FROM_ADDRESS', '').strip(),
        ses_configuration_set=env.get('SES_CONFIGURATION_SET', '').strip(),
        ses_connect_timeout=_read_float(env, 'SES_CONNECT_TIMEOUT', 10.0),
        ses_timeout=_read_float(env, 'SES_TIMEOUT', 20.0)
    )

    if transport == SMTP_TRANSPORT and not config.smtp_host:
        raise ConfigurationError("SMTP_HOST environment variable is required for the smtp transport")
    if transport == SES_TRANSPORT and not config.ses_from_address:
        raise ConfigurationError("SES_FROM_ADDRESS environment variable is required for the ses transport")

    if transport == SMTP_TRANSPORT:
        logger.info(
            f"Mail transport: smtp host={config.smtp_host}:{config.smtp_port}, "
            f"ssl={config.smtp_use_ssl}, starttls={config.smtp_starttls}, "
            f"login={'yes' if config.smtp_username else 'no'}, timeout={config.smtp_timeout}s"
        )
    else:
        logger.info(
            f"Mail transport: ses from={config.ses_from_address}, "
            f"connect_timeout={config.ses_connect_timeout}s, timeout={config.ses_timeout}s"
        )

    return config


def _read_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name, '').strip().lower()
    if not raw:
        return default
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be true or false, got: '{env.get(name)}'")


def _read_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name, '').strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got: '{raw}'")


def _read_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name, '').strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number of seconds, got: '{raw}'")
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got: '{raw}'")
    return value
