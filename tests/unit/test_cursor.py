from __future__ import annotations

import uuid
from datetime import datetime, timezone

import pytest

from dm_service.application.exceptions import ValidationError
from dm_service.infrastructure.db.repositories._cursor import decode_cursor, encode_cursor


def test_cursor_round_trip():
    ts = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)
    uid = uuid.uuid4()

    assert decode_cursor(encode_cursor(ts, uid)) == (ts, uid)


@pytest.mark.parametrize("cursor", ["garbage!", "bm90LWEtY3Vyc29y", ""])
def test_invalid_cursor_rejected(cursor):
    with pytest.raises(ValidationError, match="Invalid cursor"):
        decode_cursor(cursor)
