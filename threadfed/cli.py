# if these commands can't be found, set FLASK_APP, e.g. export FLASK_APP=threadfed
import click
from flask import json

from threadfed import db
from threadfed.activitypub import get_federation
from threadfed.activitypub.exceptions import FederationError
from threadfed.activitypub.signature import RsaKeys
from threadfed.activitypub.types import ObjectKind
from threadfed.utils import domain_from_url


def register(app):
    @app.cli.command("init-db")
    def init_db():
        """Create all tables."""
        db.create_all()
        print('Tables created')

    @app.cli.command("keys")
    def keys():
        """Print a new RSA keypair, for PRIVATE_KEY / PUBLIC_KEY."""
        private_key, public_key = RsaKeys.generate_keypair()
        print(private_key)
        print(public_key)

    @app.cli.command("resolve-comment")
    @click.argument('url')
    def resolve_comment(url):
        """Fetch a remote comment, and everything it depends on, and save it."""
        federation = get_federation()
        reply = federation.resolver.find_local(ObjectKind.COMMENT, url)
        if reply is None:
            try:
                object_json = federation.transport.fetch_and_verify(ObjectKind.COMMENT, url)
                reply = federation.comments.receive(object_json, domain_from_url(url))
            except FederationError as e:
                raise click.ClickException(f'{type(e).__name__}: {e}')
        if reply is None:
            print(f'{url} has been deleted')
            return
        print(json.dumps(federation.comments.serve(reply), indent=2))
