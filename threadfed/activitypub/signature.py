# code in this file is from Takahe https://github.com/jointakahe/takahe
#
# Copyright 2022 Andrew Godwin
#
# Redistribution and use in source and binary forms, with or without modification,
# are permitted provided that the following conditions are met:
#
# 1. Redistributions of source code must retain the above copyright notice, this
# list of conditions and the following disclaimer.
#
# 2. Redistributions in binary form must reproduce the above copyright notice,
# this list of conditions and the following disclaimer in the documentation and/or
# other materials provided with the distribution.
#
# 3. Neither the name of the copyright holder nor the names of its contributors
# may be used to endorse or promote products derived from this software without
# specific prior written permission.
#
# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS" AND
# ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE IMPLIED
# WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE
# DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE LIABLE FOR
# ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES
# (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES;
# LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON
# ANY THEORY OF LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY, OR TORT
# (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE OF THIS
# SOFTWARE, EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.


from __future__ import annotations

import base64
from email.utils import formatdate
from typing import TypedDict
from urllib.parse import urlparse

import arrow
import httpx
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from flask import current_app

from threadfed.constants import VERSION, AP_CONTENT_TYPE

SIGNATURE_ALGORITHM = 'rsa-sha256'


class VerificationError(Exception):
    """The signature does not match the signed headers"""
    pass


class VerificationFormatError(VerificationError):
    """The Signature header could not be parsed"""
    pass


class HttpSignatureDetails(TypedDict):
    keyid: str
    algorithm: str
    headers: list[str]
    signature: bytes


def http_date() -> str:
    # mastodon wants the RFC 7231 form: 'Sun, 06 Nov 1994 08:49:37 GMT'
    return formatdate(arrow.utcnow().timestamp(), usegmt=True)


class RsaKeys:
    @classmethod
    def generate_keypair(cls) -> tuple[str, str]:
        """A new 2048 bit keypair as (private PKCS8 PEM, public SubjectPublicKeyInfo PEM)"""
        key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        private_pem = key.private_bytes(encoding=serialization.Encoding.PEM,
                                        format=serialization.PrivateFormat.PKCS8,
                                        encryption_algorithm=serialization.NoEncryption())
        public_pem = key.public_key().public_bytes(encoding=serialization.Encoding.PEM,
                                                   format=serialization.PublicFormat.SubjectPublicKeyInfo)
        return private_pem.decode('ascii'), public_pem.decode('ascii')


class HttpSignature:
    """
    draft-cavage HTTP signatures, as used between fediverse servers.

    Only GETs are ever signed here. There is no body, so no Digest header either.
    """

    @classmethod
    def signed_string(cls, headers: dict[str, str]) -> str:
        return '\n'.join(f'{name.lower()}: {value}' for name, value in headers.items())

    @classmethod
    def compile_signature(cls, details: HttpSignatureDetails) -> str:
        header_names = ' '.join(name.lower() for name in details['headers'])
        encoded = base64.b64encode(details['signature']).decode('ascii')
        return (f'keyId="{details["keyid"]}",headers="{header_names}",'
                f'signature="{encoded}",algorithm="{details["algorithm"]}"')

    @classmethod
    def parse_signature(cls, signature: str) -> HttpSignatureDetails:
        parts = {}
        for item in signature.split(','):
            if '=' not in item:
                raise VerificationFormatError(f'Unparseable signature item {item!r}')
            name, value = item.split('=', 1)
            parts[name.strip().lower()] = value.strip().strip('"')
        missing = {'keyid', 'headers', 'signature', 'algorithm'} - parts.keys()
        if missing:
            raise VerificationFormatError(f'Signature is missing {", ".join(sorted(missing))}')
        return {'keyid': parts['keyid'], 'algorithm': parts['algorithm'], 'headers': parts['headers'].split(),
                'signature': base64.b64decode(parts['signature'])}

    @classmethod
    def verify_signature(cls, signature: bytes, cleartext: str, public_key: str) -> None:
        key = serialization.load_pem_public_key(public_key.encode('ascii'))
        try:
            key.verify(signature, cleartext.encode('ascii'), padding.PKCS1v15(), hashes.SHA256())
        except InvalidSignature:
            raise VerificationError('Signature mismatch')

    @classmethod
    def signed_get(cls, uri: str, private_key: str, key_id: str, accept: str = AP_CONTENT_TYPE, timeout: int = 10,
                   client: httpx.Client | None = None) -> httpx.Response:
        """GET uri signed as key_id. Redirects are returned as-is, the caller only validated uri itself."""
        parsed = urlparse(uri)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError(f'Not an absolute uri: {uri}')
        if client is None:
            from threadfed import httpx_client
            client = httpx_client

        target = parsed.path or '/'
        if parsed.query:
            target += f'?{parsed.query}'
        signed_headers = {
            '(request-target)': f'get {target}',
            'Host': parsed.netloc,
            'Date': http_date(),
            'Accept': accept,
        }
        key = serialization.load_pem_private_key(private_key.encode('ascii'), password=None)
        signature = key.sign(cls.signed_string(signed_headers).encode('ascii'), padding.PKCS1v15(), hashes.SHA256())

        headers = {name: value for name, value in signed_headers.items() if name != '(request-target)'}
        headers['Signature'] = cls.compile_signature({'keyid': key_id, 'algorithm': SIGNATURE_ALGORITHM,
                                                      'headers': list(signed_headers), 'signature': signature})
        headers['User-Agent'] = f'threadfed/{VERSION}; +https://{current_app.config["SERVER_NAME"]}'
        return client.get(uri, headers=headers, timeout=timeout, follow_redirects=False)
