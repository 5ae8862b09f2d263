import os

from dotenv import load_dotenv

basedir = os.path.abspath(os.path.dirname(__file__))
load_dotenv(os.path.join(basedir, '.env'))


class Config(object):
    SERVER_NAME = (os.environ.get('SERVER_NAME') or 'localhost').lower()
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guesss'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
                              'sqlite:///' + os.path.join(basedir, 'threadfed.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = False     # set to true to see SQL in console
    HTTP_PROTOCOL = os.environ.get('HTTP_PROTOCOL') or 'https'  # useful during development

    DB_POOL_SIZE = int(os.environ.get('DB_POOL_SIZE') or 10)
    DB_MAX_OVERFLOW = int(os.environ.get('DB_MAX_OVERFLOW') or 30)
    # sqlite does not accept pool settings
    if SQLALCHEMY_DATABASE_URI.startswith('postgresql'):
        SQLALCHEMY_ENGINE_OPTIONS = {'pool_size': DB_POOL_SIZE, 'max_overflow': DB_MAX_OVERFLOW, 'pool_recycle': 3600}
    else:
        SQLALCHEMY_ENGINE_OPTIONS = {}

    LOG_ACTIVITYPUB_TO_DB = os.environ.get('LOG_ACTIVITYPUB_TO_DB') or False
    LOG_ACTIVITYPUB_TO_FILE = os.environ.get('LOG_ACTIVITYPUB_TO_FILE') or False

    # Comments matching this regex have the matching words replaced with *removed*
    SLUR_FILTER_REGEX = os.environ.get('SLUR_FILTER_REGEX') or ''

    # Maximum number of remote fetches one incoming object may trigger
    HTTP_FETCH_LIMIT = int(os.environ.get('HTTP_FETCH_LIMIT') or 25)
    HTTP_FETCH_TIMEOUT = int(os.environ.get('HTTP_FETCH_TIMEOUT') or 10)

    # PEM encoded instance key used to sign outgoing GETs. Unsigned when empty.
    PRIVATE_KEY = os.environ.get('PRIVATE_KEY') or ''
    PUBLIC_KEY = os.environ.get('PUBLIC_KEY') or ''

    # URI validation
    MAX_URI_LENGTH = int(os.environ.get('MAX_URI_LENGTH') or 2048)
    URI_BLOCKED_HOSTS = [host.strip() for host in (os.environ.get('URI_BLOCKED_HOSTS') or '').split(',') if host.strip()]
    URI_RESOLVE_DNS = os.environ.get('URI_RESOLVE_DNS', '1') in ('1', 'true', 'True')
    REQUIRE_HTTPS_ACTIVITYPUB = os.environ.get('REQUIRE_HTTPS_ACTIVITYPUB', '1') in ('1', 'true', 'True')

    # Limits applied when decoding fetched objects
    MAX_JSON_SIZE = int(os.environ.get('MAX_JSON_SIZE') or 1_000_000)
    MAX_JSON_DEPTH = int(os.environ.get('MAX_JSON_DEPTH') or 50)
