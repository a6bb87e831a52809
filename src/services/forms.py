"""
Form reading utilities for API Gateway proxy events.

This module turns the body of a form POST into a flat field mapping.
Both application/x-www-form-urlencoded and multipart/form-data bodies
are supported, base64-encoded or not.
"""

import base64
import binascii
import logging
from email import errors as email_errors
from email import policy
from email.parser import BytesParser
from typing import Dict, Any, Optional
from urllib.parse import parse_qsl

logger = logging.getLogger(__name__)

URLENCODED_MEDIA_TYPE = 'application/x-www-form-urlencoded'
MULTIPART_MEDIA_TYPE = 'multipart/form-data'


class FormReadError(Exception):
    """Raised when the request body cannot be read as a form."""
    pass


def read_form(event: Dict[str, Any]) -> Dict[str, str]:
    """
    Read form fields from an API Gateway proxy event.

    Field names are kept exactly as submitted. Empty values are kept (an
    empty field is not the same as a missing one). When a field is
    repeated, the first value wins.

    Args:
        event: API Gateway proxy event (REST or HTTP API)

    Returns:
        Dict mapping field name to value

    Raises:
        FormReadError: If the content type is not a form type or the
                       body is malformed

    Example:
        >>> read_form({
        ...     'headers': {'Content-Type': 'application/x-www-form-urlencoded'},
        ...     'body': 'name=Captain+Test&email=test%40test.com'
        ... })
        {'name': 'Captain Test', 'email': 'test@test.com'}
    """
    headers = _lower_case_headers(event.get('headers'))
    content_type = headers.get('content-type', '')
    media_type = content_type.split(';', 1)[0].strip().lower()

    body = _read_body(event)

    if media_type == URLENCODED_MEDIA_TYPE:
        fields = parse_urlencoded(body)
    elif media_type == MULTIPART_MEDIA_TYPE:
        fields = parse_multipart(body, content_type)
    else:
        raise FormReadError(f"Unsupported content type: '{content_type}'")

    logger.info(f"Read form: content_type={media_type}, fields={sorted(fields.keys())}")
    return fields


def parse_urlencoded(body: bytes) -> Dict[str, str]:
    """
    Parse an application/x-www-form-urlencoded body.

    Args:
        body: Raw body bytes

    Returns:
        Dict mapping field name to value

    Raises:
        FormReadError: If the body is not valid UTF-8
    """
    try:
        text = body.decode('utf-8')
        pairs = parse_qsl(text, keep_blank_values=True, errors='strict')
    except (UnicodeDecodeError, ValueError) as e:
        raise FormReadError(f"Malformed url-encoded body: {e}")

    fields = {}
    for name, value in pairs:
        fields.setdefault(name, value)
    return fields


def parse_multipart(body: bytes, content_type: str) -> Dict[str, str]:
    """
    Parse a multipart/form-data body.

    File parts are skipped; only plain fields are returned.

    Args:
        body: Raw body bytes
        content_type: Full Content-Type header, including the boundary

    Returns:
        Dict mapping field name to value

    Raises:
        FormReadError: If the boundary is missing or the body is malformed
    """
    # Parse as a MIME document: prepend the Content-Type header to the body
    header = f"Content-Type: {content_type}\r\nMIME-Version: 1.0\r\n\r\n".encode('utf-8')
    msg = BytesParser(policy=policy.default).parsebytes(header + body)

    if msg.get_boundary() is None:
        raise FormReadError("Multipart body has no boundary")

    for defect in msg.defects:
        if isinstance(defect, (email_errors.NoBoundaryInMultipartDefect,
                               email_errors.StartBoundaryNotFoundDefect)):
            raise FormReadError(f"Malformed multipart body: {defect.__class__.__name__}")

    if not msg.is_multipart():
        raise FormReadError("Malformed multipart body")

    fields = {}
    for part in msg.iter_parts():
        name = part.get_param('name', header='content-disposition')
        if not name:
            logger.warning("Skipping multipart part without a field name")
            continue

        if part.get_filename():
            logger.info(f"Skipping file part: {name}")
            continue

        payload = part.get_payload(decode=True) or b''
        charset = part.get_content_charset() or 'utf-8'
        try:
            value = payload.decode(charset)
        except (UnicodeDecodeError, LookupError) as e:
            raise FormReadError(f"Could not decode field '{name}': {e}")

        fields.setdefault(name, value)

    return fields


def get_source_ip(event: Dict[str, Any]) -> Optional[str]:
    """
    Get the caller's IP address from the request context, if present.

    Handles both REST API (v1) and HTTP API (v2) payload formats.
    """
    request_context = event.get('requestContext') or {}

    identity = request_context.get('identity') or {}
    if identity.get('sourceIp'):
        return identity['sourceIp']

    http = request_context.get('http') or {}
    return http.get('sourceIp') or None


def _read_body(event: Dict[str, Any]) -> bytes:
    body = event.get('body')
    if body is None:
        return b''

    if event.get('isBase64Encoded'):
        try:
            return base64.b64decode(body, validate=True)
        except (binascii.Error, ValueError) as e:
            raise FormReadError(f"Body is not valid base64: {e}")

    return body.encode('utf-8') if isinstance(body, str) else body


def _lower_case_headers(headers: Optional[Dict[str, str]]) -> Dict[str, str]:
    # Header names are case-insensitive (HTTP API lower-cases them, REST API doesn't)
    return {k.lower(): v for k, v in (headers or {}).items() if v is not None}
