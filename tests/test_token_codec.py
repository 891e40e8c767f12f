"""
Pass token format tests
"""
import json
import uuid

import pytest

from festpass import token_codec
from festpass.token_codec import LegacyRecord, PlainToken, InvalidToken


class TestMintToken:

    def test_participant_id_is_returned_verbatim(self):
        assert token_codec.mint_token('VIBABCD1234', owner_id=7) == 'VIBABCD1234'

    def test_fallback_token_uses_namespace_and_owner(self):
        assert token_codec.mint_token(None, owner_id=42) == 'VIB-42'

    def test_fallback_with_uuid_owner(self):
        owner = str(uuid.uuid4())
        assert token_codec.mint_token('', owner_id=owner) == f'VIB-{owner}'

    def test_requires_some_identity(self):
        with pytest.raises(ValueError):
            token_codec.mint_token(None, owner_id=None)

    @pytest.mark.parametrize('participant_id, owner_id', [
        ('VIBABCD1234', None),
        (None, 1),
        (None, 98765),
        (None, str(uuid.uuid4())),
        (None, 'u1'),
    ])
    def test_minted_tokens_are_well_formed(self, participant_id, owner_id):
        assert token_codec.is_well_formed(token_codec.mint_token(participant_id, owner_id))

    def test_generated_participant_ids_are_well_formed(self):
        for _ in range(50):
            pid = token_codec.generate_participant_id()
            assert pid.startswith('VIB')
            assert len(pid) == 11
            assert pid[3:].isalnum() and pid[3:] == pid[3:].upper()
            assert token_codec.is_well_formed(pid)


class TestIsWellFormed:

    @pytest.mark.parametrize('token', [
        'VIBABCD1234',
        'vibabcd1234',
        f'VIB-{uuid.uuid4()}',
        f'USER-{uuid.uuid4()}',
        str(uuid.uuid4()),
        'gate_pass-01',
        '  VIBABCD1234  ',
    ])
    def test_accepts_known_shapes(self, token):
        assert token_codec.is_well_formed(token)

    @pytest.mark.parametrize('token', [
        '',
        '   ',
        'AB',
        'x' * 101,
        'has spaces inside',
        'semi;colon',
        None,
        12345,
    ])
    def test_rejects_bad_input(self, token):
        assert not token_codec.is_well_formed(token)


class TestLegacyDecode:

    def test_json_pass_yields_owner_details(self):
        raw = json.dumps({
            'userId': '17',
            'userEmail': 'old@test.com',
            'userName': 'Old Format',
            'generatedAt': '2024-01-01T00:00:00Z',
            'type': 'user',
        })
        record = token_codec.try_legacy_decode(raw)
        assert isinstance(record, LegacyRecord)
        assert record.owner_id == '17'
        assert record.email == 'old@test.com'
        assert record.name == 'Old Format'

    def test_plain_token_is_not_legacy(self):
        assert token_codec.try_legacy_decode('VIBABCD1234') is None

    def test_broken_json_is_not_legacy(self):
        assert token_codec.try_legacy_decode('{"userId": ') is None

    def test_json_without_owner_is_not_legacy(self):
        assert token_codec.try_legacy_decode('{"type": "user"}') is None


class TestDecode:

    def test_tags_plain_tokens(self):
        decoded = token_codec.decode(' VIBABCD1234 ')
        assert isinstance(decoded, PlainToken)
        assert decoded.kind == 'token'
        assert decoded.token == 'VIBABCD1234'

    def test_tags_legacy_records(self):
        decoded = token_codec.decode(json.dumps({'userId': 3, 'userEmail': 'a@b.c', 'userName': 'A'}))
        assert decoded.kind == 'legacy'
        assert decoded.owner_id == 3

    @pytest.mark.parametrize('raw', ['', '  ', 'no', 'not a token at all!'])
    def test_tags_garbage_as_invalid(self, raw):
        decoded = token_codec.decode(raw)
        assert isinstance(decoded, InvalidToken)
        assert decoded.kind == 'invalid'
