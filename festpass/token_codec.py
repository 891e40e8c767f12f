"""
Pass token format.

The string carried inside a pass QR symbol is the participant ID itself
(e.g. ``VIBABCD1234``). Owners without a participant ID yet get a fallback
token made of the namespace prefix and their account id. Passes issued by
the older code path carried a JSON blob with the owner's id, email and name;
those are still accepted at scan time through ``try_legacy_decode``.
"""

import json
import re
import secrets
import string

DEFAULT_PREFIX = 'VIB'
FALLBACK_SEPARATOR = '-'
PARTICIPANT_ID_LENGTH = 8

MIN_TOKEN_LENGTH = 3
MAX_TOKEN_LENGTH = 100

_BASE36 = string.digits + string.ascii_uppercase
_UUID = r'[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}'

TOKEN_PATTERNS = (
    re.compile(r'^[A-Z]{3}[A-Z0-9]{3,20}$', re.IGNORECASE),       # VIBABCD1234
    re.compile(rf'^VIB-{_UUID}$', re.IGNORECASE),                  # fallback token
    re.compile(rf'^USER-{_UUID}$', re.IGNORECASE),                 # first-generation passes
    re.compile(rf'^{_UUID}$', re.IGNORECASE),                      # bare account id
    re.compile(r'^[A-Za-z0-9_-]{3,50}$'),
)


class LegacyRecord:
    """Owner details recovered from a JSON-format pass."""
    kind = 'legacy'

    def __init__(self, owner_id, email=None, name=None):
        self.owner_id = owner_id
        self.email = email
        self.name = name

    def __repr__(self):
        return f'<LegacyRecord {self.owner_id}>'


class PlainToken:
    kind = 'token'

    def __init__(self, token):
        self.token = token

    def __repr__(self):
        return f'<PlainToken {self.token}>'


class InvalidToken:
    kind = 'invalid'

    def __init__(self, raw, reason):
        self.raw = raw
        self.reason = reason

    def __repr__(self):
        return f'<InvalidToken {self.reason}>'


def generate_participant_id(prefix=DEFAULT_PREFIX):
    """Random participant ID: prefix + 8 upper-case base-36 characters."""
    suffix = ''.join(secrets.choice(_BASE36) for _ in range(PARTICIPANT_ID_LENGTH))
    return f'{prefix}{suffix}'


def mint_token(participant_id=None, owner_id=None, prefix=DEFAULT_PREFIX):
    if participant_id:
        return participant_id
    if owner_id is None or str(owner_id) == '':
        raise ValueError('A participant ID or an owner ID is required to mint a token')
    return f'{prefix}{FALLBACK_SEPARATOR}{owner_id}'


def is_well_formed(token):
    if not isinstance(token, str):
        return False
    token = token.strip()
    if len(token) < MIN_TOKEN_LENGTH or len(token) > MAX_TOKEN_LENGTH:
        return False
    return any(pattern.match(token) for pattern in TOKEN_PATTERNS)


def try_legacy_decode(raw):
    if not isinstance(raw, str):
        return None
    raw = raw.strip()
    if not raw.startswith('{'):
        return None
    try:
        data = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(data, dict) or not data.get('userId'):
        return None
    return LegacyRecord(
        owner_id=data['userId'],
        email=data.get('userEmail'),
        name=data.get('userName'),
    )


def decode(raw):
    """Classify scanned text as a legacy record, a plain token or garbage."""
    if not isinstance(raw, str) or not raw.strip():
        return InvalidToken(raw, 'empty')

    legacy = try_legacy_decode(raw)
    if legacy is not None:
        return legacy

    token = raw.strip()
    if not is_well_formed(token):
        return InvalidToken(raw, 'malformed')
    return PlainToken(token)
