"""
Authentication Route Tests
"""
import json
from datetime import datetime, timedelta, timezone

from medreport import db
from medreport.models import User


def post_json(client, url, body, headers=None):
    return client.post(url, data=json.dumps(body), content_type='application/json', headers=headers or {})


class TestSignup:
    """Test user registration"""

    def test_signup_success(self, client, app):
        """Signup should create the user with a hashed password"""
        response = post_json(client, '/signup', {'name': 'alice', 'password': 'pw1'})
        assert response.status_code == 201

        data = json.loads(response.data)
        assert data['success'] == True

        with app.app_context():
            user = User.query.filter_by(name='alice').first()
            assert user is not None
            assert user.password_hash != 'pw1'

    def test_signup_duplicate_name(self, client):
        """Second signup with the same name should be rejected"""
        post_json(client, '/signup', {'name': 'alice', 'password': 'pw1'})
        response = post_json(client, '/signup', {'name': 'alice', 'password': 'pw2'})
        assert response.status_code == 409

        data = json.loads(response.data)
        assert data == {'success': False, 'message': 'Name already taken'}

    def test_signup_accepts_form_data(self, client):
        """Form posts should work like JSON posts"""
        response = client.post('/signup', data={'name': 'bob', 'password': 'pw'})
        assert response.status_code == 201

    def test_signup_requires_fields(self, client):
        """Missing password should be a validation error"""
        response = post_json(client, '/signup', {'name': 'carol'})
        assert response.status_code == 400

        data = json.loads(response.data)
        assert data['success'] == False
        assert 'Password' in data['message']


class TestLogin:
    """Test user login"""

    def test_login_success(self, client):
        """Login should return a token and display name"""
        post_json(client, '/signup', {'name': 'alice', 'password': 'pw1'})
        response = post_json(client, '/login', {'name': 'alice', 'password': 'pw1'})
        assert response.status_code == 200

        data = json.loads(response.data)
        assert data['success'] == True
        assert data['name'] == 'alice'
        assert data['token'].count('.') == 2

    def test_login_incorrect_password(self, client):
        """Wrong password should fail with Incorrect password"""
        post_json(client, '/signup', {'name': 'alice', 'password': 'pw1'})
        response = post_json(client, '/login', {'name': 'alice', 'password': 'wrong'})
        assert response.status_code == 401

        data = json.loads(response.data)
        assert data == {'success': False, 'message': 'Incorrect password'}

    def test_login_unknown_user(self, client):
        """Unknown name should fail with User not found"""
        response = post_json(client, '/login', {'name': 'nobody', 'password': 'pw'})
        assert response.status_code == 404

        data = json.loads(response.data)
        assert data['message'] == 'User not found'

    def test_token_unlocks_protected_route(self, client):
        """Token from login should authorize my-reports"""
        post_json(client, '/signup', {'name': 'alice', 'password': 'pw1'})
        token = json.loads(post_json(client, '/login', {'name': 'alice', 'password': 'pw1'}).data)['token']

        response = client.get('/my-reports', headers={'Authorization': token})
        assert response.status_code == 200


class TestPasswordReset:
    """Test forgot / reset-password flow"""

    def test_forgot_returns_code(self, client, test_user):
        """Forgot should issue a six digit code"""
        response = post_json(client, '/forgot', {'name': 'testuser'})
        assert response.status_code == 200

        data = json.loads(response.data)
        assert data['success'] == True
        assert len(data['otp']) == 6
        assert data['otp'].isdigit()

    def test_forgot_hides_code_when_disabled(self, client, app, test_user):
        """Code should stay out of the response when EXPOSE_RESET_OTP is off"""
        app.config['EXPOSE_RESET_OTP'] = False
        response = post_json(client, '/forgot', {'name': 'testuser'})

        data = json.loads(response.data)
        assert data['success'] == True
        assert 'otp' not in data

    def test_forgot_unknown_user(self, client):
        """Forgot for an unknown name should fail"""
        response = post_json(client, '/forgot', {'name': 'nobody'})
        assert response.status_code == 404

    def test_reset_password_flow(self, client, test_user):
        """Reset with the issued code should change the password"""
        otp = json.loads(post_json(client, '/forgot', {'name': 'testuser'}).data)['otp']

        response = post_json(client, '/reset-password', {
            'name': 'testuser',
            'otp': otp,
            'newPassword': 'brand-new-pw',
        })
        assert response.status_code == 200
        assert json.loads(response.data)['success'] == True

        old = post_json(client, '/login', {'name': 'testuser', 'password': 'testpassword123'})
        assert old.status_code == 401
        new = post_json(client, '/login', {'name': 'testuser', 'password': 'brand-new-pw'})
        assert new.status_code == 200

    def test_reset_with_wrong_code(self, client, test_user):
        """Mismatched code should fail with Invalid OTP"""
        otp = json.loads(post_json(client, '/forgot', {'name': 'testuser'}).data)['otp']
        wrong = '000000' if otp != '000000' else '111111'

        response = post_json(client, '/reset-password', {
            'name': 'testuser',
            'otp': wrong,
            'newPassword': 'x',
        })
        assert response.status_code == 400
        assert json.loads(response.data)['message'] == 'Invalid OTP'

    def test_reset_with_expired_code(self, client, app, test_user):
        """Correct code past its expiry should fail with OTP expired"""
        otp = json.loads(post_json(client, '/forgot', {'name': 'testuser'}).data)['otp']

        with app.app_context():
            user = db.session.get(User, test_user)
            user.reset_otp_expires_at = datetime.now(timezone.utc) - timedelta(seconds=1)
            db.session.commit()

        response = post_json(client, '/reset-password', {
            'name': 'testuser',
            'otp': otp,
            'newPassword': 'x',
        })
        assert response.status_code == 400
        assert json.loads(response.data)['message'] == 'OTP expired'


class TestProtectedRoutes:
    """Test bearer token protection"""

    def test_missing_token(self, client):
        """No Authorization header should be rejected"""
        response = client.get('/my-reports')
        assert response.status_code == 401

        data = json.loads(response.data)
        assert data == {'success': False, 'message': 'No token provided'}

    def test_garbage_token(self, client):
        """Malformed token should be rejected"""
        response = client.get('/my-reports', headers={'Authorization': 'Bearer not-a-jwt'})
        assert response.status_code == 401
        assert json.loads(response.data)['message'] == 'Invalid token'

    def test_expired_token(self, client, gate, test_user):
        """Token older than 24 hours should be rejected"""
        token = gate.issue_token(test_user, now=datetime.now(timezone.utc) - timedelta(hours=25))
        response = client.get('/my-reports', headers={'Authorization': f'Bearer {token}'})
        assert response.status_code == 401
        assert json.loads(response.data)['message'] == 'Invalid token'

    def test_token_for_deleted_user(self, client, gate):
        """Valid signature for a user that no longer exists should be rejected"""
        token = gate.issue_token(9999)
        response = client.get('/my-reports', headers={'Authorization': f'Bearer {token}'})
        assert response.status_code == 401
        assert json.loads(response.data)['message'] == 'Invalid token'

    def test_unauthorized_requests_do_not_leak(self, client, auth_headers):
        """An authorized request should not authorize the next one"""
        assert client.get('/my-reports', headers=auth_headers).status_code == 200
        assert client.get('/my-reports').status_code == 401
