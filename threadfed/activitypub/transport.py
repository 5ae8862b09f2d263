from __future__ import annotations

import httpx
from flask import current_app

from threadfed.activitypub.exceptions import RemoteUnreachable, InvalidObjectSignature, MalformedPayload, \
    ValidationFailure
from threadfed.activitypub.signature import HttpSignature
from threadfed.activitypub.types import ObjectKind, ObjectJson
from threadfed.constants import AP_CONTENT_TYPE, VERSION
from threadfed.security import URIValidator, SafeJSONParser


class HttpTransport:
    """
    Fetches single objects from other servers.

    The url is checked against SSRF first, the GET is signed with the instance key when one is configured (servers
    running in authorized fetch mode refuse unsigned fetches), and the object that comes back must have an id on the
    host it was fetched from. Anything else is a TransportFailure.
    """

    def __init__(self, client: httpx.Client, private_key: str = '', key_id: str = '', timeout: int = 10):
        self.client = client
        self.private_key = private_key
        self.key_id = key_id
        self.timeout = timeout

    @classmethod
    def from_config(cls, config, client: httpx.Client) -> HttpTransport:
        return cls(client, private_key=config.get('PRIVATE_KEY', ''),
                   key_id=f"{config['HTTP_PROTOCOL']}://{config['SERVER_NAME']}/actor#main-key",
                   timeout=config.get('HTTP_FETCH_TIMEOUT', 10))

    def fetch_and_verify(self, kind: ObjectKind, url: str) -> ObjectJson:
        try:
            URIValidator().validate(url, context='activitypub')
        except ValueError as e:
            raise ValidationFailure(f'Refusing to fetch {url}: {e}') from e

        current_app.logger.debug(f'Fetching {kind.value} {url}')
        try:
            response = self._get(url)
        except httpx.HTTPError as e:
            raise RemoteUnreachable(f'Could not fetch {url}: {e}', url=url) from e

        try:
            if response.status_code != 200:
                raise RemoteUnreachable(f'{url} returned {response.status_code}', url=url,
                                        status_code=response.status_code)
            try:
                object_json = SafeJSONParser().parse(response.content)
            except ValueError as e:
                raise MalformedPayload(f'{url} did not return an object: {e}', url=url) from e
        finally:
            response.close()

        object_id = object_json.get('id')
        if not isinstance(object_id, str) or not URIValidator.is_same_host(object_id, url):
            raise InvalidObjectSignature(f'{url} returned an object with id {object_id!r} from another host',
                                         url=url)
        return object_json

    def _get(self, url: str) -> httpx.Response:
        if self.private_key:
            return HttpSignature.signed_get(url, self.private_key, self.key_id, timeout=self.timeout,
                                            client=self.client)
        return self.client.get(url, headers={
            'Accept': AP_CONTENT_TYPE,
            'User-Agent': f'threadfed/{VERSION}; +https://{current_app.config["SERVER_NAME"]}',
        }, timeout=self.timeout, follow_redirects=False)
