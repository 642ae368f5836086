"""
Input Sanitization Module

Sanitizes user-supplied text (comments, names, notes) before it is stored
and later rendered by the frontend.
"""

import html
import re

CONTROL_CHARS = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]')


def sanitize_text(text, max_length=10000):
    """
    Sanitize text by HTML-escaping special characters.

    Control characters are removed but newlines and tabs are kept so
    multi-line comments survive.

    Args:
        text: The text to sanitize (can be None)
        max_length: Maximum allowed length (default 10000)

    Returns:
        Sanitized string, truncated if necessary
    """
    if text is None:
        return ''

    if not isinstance(text, str):
        text = str(text)

    text = text.strip()
    text = CONTROL_CHARS.sub('', text)
    text = html.escape(text)

    if len(text) > max_length:
        text = text[:max_length]

    return text


def sanitize_name(name, max_length=200, default=''):
    """
    Sanitize a short single-line name (family, member, recipe, ingredient).

    Args:
        name: The name to sanitize
        max_length: Maximum allowed length (default 200)
        default: Returned when nothing is left after cleaning

    Returns:
        Sanitized name
    """
    if not name:
        return default

    if not isinstance(name, str):
        name = str(name)

    name = re.sub(r'[\x00-\x1f\x7f-\x9f]', '', name.strip())
    name = html.escape(name)
    name = re.sub(r'\s+', ' ', name)

    if len(name) > max_length:
        name = name[:max_length - 3] + '...'

    return name or default
