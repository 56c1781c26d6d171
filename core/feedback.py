# core/feedback.py
"""
Feedback messages across redirects

A redirect cannot carry a response body, so status text is either placed
in the `message` query parameter as URL-safe base64 of its UTF-8 bytes,
or stored in the session flash store, depending on FEEDBACK_TRANSPORT.

The encoding is reversible and unauthenticated. Anyone can read or forge
the query parameter, so decoded text is only ever shown as plain,
autoescaped text.
"""

import base64
import binascii
import logging
from typing import Optional

from flask import current_app, flash, get_flashed_messages, redirect, request, url_for

logger = logging.getLogger(__name__)


def encode_message(message: str) -> str:
    """Encode a message for the query string"""
    return base64.urlsafe_b64encode(message.encode('utf-8')).decode('ascii')


def decode_message(token: Optional[str]) -> Optional[str]:
    """Reverse encode_message; returns None when absent or undecodable"""
    if token is None:
        return None
    try:
        raw = base64.b64decode(token.encode('ascii'), altchars=b'-_', validate=True)
        return raw.decode('utf-8')
    except (binascii.Error, UnicodeError, ValueError):
        logger.debug("Ignoring undecodable feedback message %r", token[:50])
        return None


def redirect_with_message(endpoint: str, message: str, category: str = 'error', **params):
    """Redirect to an endpoint carrying a feedback message"""
    if current_app.config.get('FEEDBACK_TRANSPORT', 'query') == 'flash':
        flash(message, category)
    else:
        params['message'] = encode_message(message)
    return redirect(url_for(endpoint, **params))


def pending_message() -> Optional[str]:
    """The message meant for the page being rendered, from either transport"""
    flashed = get_flashed_messages()
    if flashed:
        return flashed[-1]
    return decode_message(request.args.get('message'))
