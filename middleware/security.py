# middleware/security.py
"""
Security Middleware for Request Processing

Every view is protected unless it is tagged with @public_route. The
auth gate runs before dispatch, resolves the session principal from the
cookie token and turns away anonymous requests for protected views.
require_auth guards individual sensitive views on its own as well.
"""

from flask import current_app, g, redirect, request, session, url_for
from functools import wraps
import logging

logger = logging.getLogger(__name__)

SESSION_TOKEN_KEY = 'session_token'


def security_headers(response):
    """Add security headers to all responses"""
    headers = current_app.config.get('SECURITY_HEADERS', {})
    for name, value in headers.items():
        response.headers.setdefault(name, value)

    csp = current_app.config.get('CSP_POLICY')
    if csp:
        response.headers.setdefault(
            'Content-Security-Policy',
            '; '.join(f"{directive} {value}" for directive, value in csp.items())
        )
    return response


def public_route(f):
    """Mark a view as reachable without a session"""
    f.is_public = True
    return f


def is_public_endpoint(endpoint):
    """Look up the access tag of the view registered for an endpoint"""
    if endpoint is None or endpoint == 'static' or endpoint.endswith('.static'):
        return True
    view = current_app.view_functions.get(endpoint)
    return view is None or getattr(view, 'is_public', False)


def load_principal():
    """Resolve the session principal for this request onto g.principal"""
    g.principal = None
    token = session.get(SESSION_TOKEN_KEY)
    if not token:
        return None

    store = current_app.extensions['session_store']
    principal = store.get(token)
    if principal is None:
        # Unknown or expired token: forget it client-side too
        session.pop(SESSION_TOKEN_KEY, None)
        return None

    g.principal = principal
    return principal


def _security_manager():
    return current_app.extensions['security_manager']


def auth_gate():
    """Global before-request interceptor"""
    principal = load_principal()

    if principal is not None or is_public_endpoint(request.endpoint):
        return None

    _security_manager().log_security_event('unauthorized_access_attempt', {
        'endpoint': request.endpoint,
        'path': request.path,
        'guard': 'gate'
    })
    return redirect(url_for('auth_routes.login_page'))


def require_auth(f):
    """Decorator to require an authenticated session"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if 'principal' not in g:
            load_principal()

        if g.principal is None:
            _security_manager().log_security_event('unauthorized_access_attempt', {
                'endpoint': request.endpoint,
                'path': request.path,
                'guard': 'route'
            })
            return redirect(url_for('auth_routes.login_page'))

        return f(*args, **kwargs)
    return decorated_function


def current_user_id():
    """Identity of the session principal, or None"""
    principal = g.get('principal')
    return principal.user_id if principal is not None else None
