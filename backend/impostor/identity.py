"""Verification of externally issued sign-in credentials.

The provider is treated as an opaque ``verify(credential) -> {email, name}``
call. The default implementation checks a Google ID token against the
tokeninfo endpoint; tests substitute any object with a ``verify`` method.
"""
from typing import Optional

import requests

from impostor.errors import ExternalVerificationError


class VerifiedIdentity:
    __slots__ = ('email', 'name')

    def __init__(self, email, name):
        self.email = email
        self.name = name

    def to_dict(self):
        return {'email': self.email, 'name': self.name}


class GoogleIdentityVerifier:
    def __init__(self, client_id, url='https://oauth2.googleapis.com/tokeninfo', timeout=5.0):
        self.client_id = client_id
        self.url = url
        self.timeout = timeout

    def verify(self, credential) -> VerifiedIdentity:
        if not credential or not isinstance(credential, str):
            raise ExternalVerificationError('Missing credential')
        try:
            response = requests.get(self.url, params={'id_token': credential}, timeout=self.timeout)
        except requests.RequestException as exc:
            raise ExternalVerificationError(f'Identity provider unreachable: {exc}') from exc

        if response.status_code != 200:
            raise ExternalVerificationError('Credential rejected by identity provider')
        try:
            claims = response.json()
        except ValueError as exc:
            raise ExternalVerificationError('Malformed identity provider response') from exc

        if claims.get('aud') != self.client_id:
            raise ExternalVerificationError('Credential was issued for another application')
        email = claims.get('email')
        if not email or str(claims.get('email_verified', '')).lower() != 'true':
            raise ExternalVerificationError('Email address is not verified')
        name = claims.get('name') or email.split('@', 1)[0]
        return VerifiedIdentity(email, name)


def verifier_from_config(config) -> Optional[GoogleIdentityVerifier]:
    client_id = config.get('GOOGLE_CLIENT_ID')
    if not client_id:
        return None
    return GoogleIdentityVerifier(
        client_id,
        url=config.get('IDENTITY_VERIFY_URL', 'https://oauth2.googleapis.com/tokeninfo'),
        timeout=float(config.get('IDENTITY_TIMEOUT_SEC', 5)),
    )
