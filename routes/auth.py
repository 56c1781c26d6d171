from flask import Blueprint, current_app, g, render_template, request, redirect, session, url_for

from core.errors import AuthError, StoreError, ValidationError
from middleware.security import SESSION_TOKEN_KEY, public_route
from services import user_service

auth_routes_bp = Blueprint('auth_routes', __name__)


def _security_manager():
    return current_app.extensions['security_manager']


@auth_routes_bp.route('/signup')
@public_route
def signup():
    return render_template('signup.html', message=None, error=None)


@auth_routes_bp.route('/register', methods=['POST'])
@public_route
def register():
    try:
        user_service.register_user(
            request.form.get('name'),
            request.form.get('email'),
            request.form.get('password'),
        )
    except (ValidationError, StoreError) as e:
        return render_template('signup.html', message=None, error=e.user_message)

    return render_template('login.html',
                           message='User registered successfully! Please log in.',
                           error=None)


@auth_routes_bp.route('/login', methods=['GET'])
@public_route
def login_page():
    return render_template('login.html', message=None, error=None)


@auth_routes_bp.route('/login', methods=['POST'])
@public_route
def login():
    email = request.form.get('email', '')
    security_manager = _security_manager()

    try:
        user = user_service.authenticate(email, request.form.get('password', ''))
    except AuthError as e:
        security_manager.log_security_event('login_failed', {'reason': e.user_message})
        return render_template('login.html', message=None, error=e.user_message)
    except StoreError as e:
        return render_template('login.html', message=None, error=e.user_message)

    store = current_app.extensions['session_store']
    old_token = session.get(SESSION_TOKEN_KEY)
    if old_token:
        store.destroy(old_token)

    # Fresh cookie session so a pre-login session id is never reused
    session.clear()
    token = security_manager.generate_session_token()
    store.create(token, user.id)
    session[SESSION_TOKEN_KEY] = token
    session.permanent = True

    security_manager.log_security_event('login_success', user_id=user.id)
    return redirect(url_for('blogs.home'))


@auth_routes_bp.route('/logout')
@public_route
def logout():
    token = session.get(SESSION_TOKEN_KEY)
    principal = g.get('principal')
    if token:
        current_app.extensions['session_store'].destroy(token)
    session.clear()

    if principal is not None:
        _security_manager().log_security_event('logout', user_id=principal.user_id)
    return redirect(url_for('blogs.home'))
