"""
Test Configuration and Fixtures
"""
import pytest
from medreport import create_app, db
from medreport.errors import GenerationFailed
from medreport.services.gemini_service import GeminiClient


class FakeGeminiClient(GeminiClient):
    """Records prompts instead of calling Gemini"""

    def __init__(self):
        super().__init__(api_key="test-gemini-key")
        self.prompts = []
        self.reply = "1. Key Findings\n- Hemoglobin 13.5 g/dL (normal)"
        self.fail = False

    def generate(self, prompt):
        self.prompts.append(prompt)
        if self.fail:
            raise GenerationFailed("Gemini request failed: ConnectTimeout")
        return self.reply


@pytest.fixture(scope='function')
def app(tmp_path):
    """Create application for testing"""
    app = create_app('testing')
    app.config['UPLOAD_FOLDER'] = str(tmp_path / 'uploads')

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client"""
    return app.test_client()


@pytest.fixture(scope='function')
def gate(app):
    return app.extensions['credential_gate']


@pytest.fixture(scope='function')
def fake_gemini(app):
    fake = FakeGeminiClient()
    app.extensions['gemini_client'] = fake
    return fake


@pytest.fixture(scope='function')
def test_user(app, gate):
    """Create test user"""
    with app.app_context():
        user = gate.signup('testuser', 'testpassword123')
        return user.id


@pytest.fixture(scope='function')
def auth_headers(app, gate, test_user):
    """Authorization header for the test user"""
    return {'Authorization': f'Bearer {gate.issue_token(test_user)}'}
