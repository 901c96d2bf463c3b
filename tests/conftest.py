"""
publisher-service 단위 테스트를 위한 pytest fixtures
"""
import os
import sys
import tempfile
from datetime import datetime, timedelta, timezone

import pytest

# 환경변수 설정 (서비스 모듈 import 전에 설정해야 함)
os.environ['JWT_SECRET'] = 'test-secret-key-for-publisher-service-tests'
os.environ['SEED_DEMO_DATA'] = 'false'
os.environ['LOGIN_RATE_LIMIT'] = '1000/minute'
os.environ['CATEGORY_DELETE_POLICY'] = 'restrict'
os.environ['ALLOWED_ORIGINS'] = 'http://localhost:3000'
os.environ['UPLOAD_DIR'] = tempfile.mkdtemp(prefix='publisher-uploads-')
os.environ['MAX_UPLOAD_BYTES'] = '1024'

# 프로젝트 루트를 path에 추가
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from publisher.repositories import ArticleRepository, CategoryRepository, UserRepository  # noqa: E402


class FakeClock:
    """호출할 때마다 1초씩 증가하는 테스트용 시계"""

    def __init__(self, start=None, step=timedelta(seconds=1)):
        self.now = start or datetime(2025, 5, 29, 16, 9, 5, tzinfo=timezone.utc)
        self.step = step

    def __call__(self):
        current = self.now
        self.now = self.now + self.step
        return current


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def categories(clock):
    """테스트용 카테고리 저장소"""
    return CategoryRepository(clock)


@pytest.fixture
def articles(categories, clock):
    """테스트용 게시글 저장소 (카테고리 저장소 공유)"""
    return ArticleRepository(categories, clock)


@pytest.fixture
def users(clock):
    return UserRepository(clock)


@pytest.fixture
def sample_article():
    """테스트용 게시글 데이터"""
    return {
        'title': 'Test Article Title',
        'content': '<p>This is the content of the test article.</p>',
        'author_id': 'author-1',
    }


@pytest.fixture
def sample_credentials():
    """테스트용 자격증명"""
    return {
        'username': 'testuser',
        'password': 'TestPassword123!',
    }


@pytest.fixture
def client():
    """초기화된 in-memory store를 사용하는 TestClient"""
    from fastapi.testclient import TestClient
    from publisher.store import store
    from publisher_service import app

    store.reset()
    with TestClient(app) as test_client:
        yield test_client
    store.reset()


def _register_and_login(client, username, password, role):
    resp = client.post('/api/auth', json={
        'action': 'register', 'username': username, 'password': password, 'role': role,
    })
    assert resp.status_code == 201, resp.text
    resp = client.post('/api/auth', json={
        'action': 'login', 'username': username, 'password': password,
    })
    assert resp.status_code == 200, resp.text
    return {'Authorization': f"Bearer {resp.json()['token']}"}


@pytest.fixture
def admin_headers(client):
    """admin 권한 토큰 헤더"""
    return _register_and_login(client, 'admin_user', 'AdminPassword123!', 'Admin')


@pytest.fixture
def user_headers(client):
    """일반 사용자 토큰 헤더"""
    return _register_and_login(client, 'plain_user', 'UserPassword123!', 'user')
