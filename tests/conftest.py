"""
Shared pytest fixtures for all test files
"""
import copy
import json
import os
from types import SimpleNamespace

import pytest

from threadfed.activitypub.exceptions import RemoteUnreachable

ASSETS = os.path.join(os.path.dirname(__file__), 'assets')


class TestConfig:
    """Standard test configuration"""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}  # SQLite doesn't support pool settings
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SERVER_NAME = 'test.localhost'
    SECRET_KEY = 'test-secret-key'
    HTTP_PROTOCOL = 'https'
    LOG_ACTIVITYPUB_TO_DB = True
    LOG_ACTIVITYPUB_TO_FILE = False
    SLUR_FILTER_REGEX = r'\bfrobnicat\w*'
    HTTP_FETCH_LIMIT = 25
    HTTP_FETCH_TIMEOUT = 5
    PRIVATE_KEY = ''
    PUBLIC_KEY = ''
    MAX_URI_LENGTH = 2048
    URI_BLOCKED_HOSTS = []
    URI_RESOLVE_DNS = False
    REQUIRE_HTTPS_ACTIVITYPUB = True
    MAX_JSON_SIZE = 1_000_000
    MAX_JSON_DEPTH = 50


class OtherInstanceConfig(TestConfig):
    SERVER_NAME = 'other.localhost'


class FakeTransport:
    """Serves objects from a dict keyed by id, counting every fetch. Unknown urls are a 404."""

    def __init__(self, *objects):
        self.objects = {}
        self.fetched = []
        self.add(*objects)

    def add(self, *objects):
        for object_json in objects:
            self.objects[object_json['id']] = object_json

    def fetch_and_verify(self, kind, url):
        self.fetched.append(url)
        if url not in self.objects:
            raise RemoteUnreachable(f'{url} returned 404', url=url, status_code=404)
        return copy.deepcopy(self.objects[url])

    @property
    def fetch_count(self):
        return len(self.fetched)


def load_asset(name):
    with open(os.path.join(ASSETS, name), encoding='utf-8') as f:
        return json.load(f)


@pytest.fixture
def test_app():
    """Create and configure a test application instance"""
    from threadfed import create_app, db

    app = create_app(TestConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def app(test_app):
    """Alias for test_app for compatibility"""
    return test_app


@pytest.fixture
def client(test_app):
    """Create test client"""
    return test_app.test_client()


@pytest.fixture
def other_app():
    """A second instance with its own database. Push its app context inside the test."""
    from threadfed import create_app

    return create_app(OtherInstanceConfig)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def federation(app, transport):
    from threadfed.activitypub import build_federation

    federation = build_federation(app.config, transport)
    app.extensions['threadfed'] = federation
    return federation


@pytest.fixture
def asset():
    """Loader for the JSON files in tests/assets, a fresh copy each call"""
    return load_asset


@pytest.fixture
def remote_thread(app):
    """lemmy.world's alice, her community and the post tests/assets/lemmy/note.json replies to, already known"""
    from threadfed import db
    from threadfed.models import User, Community, Post

    alice = User(user_name='alice', title='Alice', ap_id='https://lemmy.world/u/alice', ap_domain='lemmy.world')
    community = Community(name='technology', title='Technology', ap_id='https://lemmy.world/c/technology',
                          ap_domain='lemmy.world')
    db.session.add_all([alice, community])
    db.session.flush()
    post = Post(title='Show us your workbench', body='Mine is a *mess*', user_id=alice.id,
                community_id=community.id, ap_id='https://lemmy.world/post/10', ap_domain='lemmy.world')
    db.session.add(post)
    db.session.commit()
    return SimpleNamespace(author=alice, community=community, post=post)


@pytest.fixture
def local_thread(app):
    """A local user, community and post, for replies written on this instance"""
    from threadfed import db
    from threadfed.models import User, Community, Post

    dave = User(user_name='dave', title='Dave', ap_id='https://test.localhost/u/dave', ap_domain='test.localhost',
                local=True)
    community = Community(name='workshop', title='Workshop', ap_id='https://test.localhost/c/workshop',
                          ap_domain='test.localhost', local=True)
    db.session.add_all([dave, community])
    db.session.flush()
    post = Post(title='Bench vices', body='Which one do you use?', user_id=dave.id, community_id=community.id,
                ap_domain='test.localhost', local=True)
    db.session.add(post)
    db.session.flush()
    post.ap_id = f'https://test.localhost/post/{post.id}'
    db.session.commit()
    return SimpleNamespace(author=dave, community=community, post=post)
