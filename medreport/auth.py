"""
Authentication routes and bearer-token loading
"""
from flask import Blueprint, current_app, g, jsonify, request
from medreport import db, login_manager
from medreport.errors import AuthError, InvalidToken, MissingToken
from medreport.models import User

auth_bp = Blueprint('auth', __name__)


def credential_gate():
    return current_app.extensions['credential_gate']


def request_payload():
    """JSON body or form fields, whichever the client sent"""
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        return payload
    return request.form.to_dict()


@login_manager.request_loader
def load_user_from_request(req):
    """Resolve the caller from the Authorization header"""
    try:
        user_id = credential_gate().verify_token(req.headers.get('Authorization'))
    except AuthError as e:
        g.auth_error = e
        return None
    user = db.session.get(User, user_id)
    if user is None:
        g.auth_error = InvalidToken()
    return user


@login_manager.unauthorized_handler
def unauthorized():
    error = g.pop('auth_error', None) or MissingToken()
    return jsonify(error.to_dict()), error.status_code


@auth_bp.route('/signup', methods=['POST'])
def signup():
    """User registration"""
    payload = request_payload()
    user = credential_gate().signup(payload.get('name'), payload.get('password'))
    current_app.logger.info(f'User {user.id} signed up')
    return jsonify({'success': True, 'message': 'Signup successful'}), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    """User login - returns a bearer token valid for 24 hours"""
    payload = request_payload()
    try:
        token, user = credential_gate().login(payload.get('name'), payload.get('password'))
    except AuthError as e:
        current_app.logger.info(f'Login failed: {e.message}')
        raise
    return jsonify({
        'success': True,
        'message': 'Login successful',
        'token': token,
        'name': user.name,
    })


@auth_bp.route('/forgot', methods=['POST'])
def forgot():
    """Issue a password reset code"""
    payload = request_payload()
    code = credential_gate().forgot_password(payload.get('name'))
    body = {'success': True, 'message': 'OTP generated'}
    if current_app.config.get('EXPOSE_RESET_OTP'):
        # No delivery channel yet: the code goes back to the caller
        current_app.logger.warning('Reset OTP returned in response body (EXPOSE_RESET_OTP is on)')
        body['otp'] = code
    return jsonify(body)


@auth_bp.route('/reset-password', methods=['POST'])
def reset_password():
    """Replace the password using a reset code"""
    payload = request_payload()
    new_password = payload.get('newPassword') or payload.get('new_password')
    credential_gate().reset_password(payload.get('name'), payload.get('otp'), new_password)
    return jsonify({'success': True, 'message': 'Password reset successful'})
