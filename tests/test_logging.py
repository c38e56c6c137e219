"""
Tests for log masking and the testable clock.
"""

from datetime import datetime, timezone

from talentrank.core.logging import SensitiveDataMasker, format_record
from talentrank.core.utils.datetime_utils import epoch_seconds, format_iso, set_mock_time


class TestSensitiveDataMasker:
    masker = SensitiveDataMasker()

    def test_bearer_token(self):
        assert self.masker.mask("Authorization: Bearer ghp_abcdef.123") == "Authorization: Bearer ***"

    def test_key_value_secret(self):
        assert self.masker.mask("token=abc123def456") == "token=***"

    def test_long_hash_is_shortened(self):
        assert self.masker.mask("id a1b2c3d4e5f6a7b8c9d0") == "id a1b2c3d4..."

    def test_plain_text_untouched(self):
        assert self.masker.mask("rate limit reached") == "rate limit reached"


def test_mock_time_freezes_epoch_seconds():
    frozen = datetime(2024, 1, 1, tzinfo=timezone.utc)
    set_mock_time(frozen)
    try:
        assert epoch_seconds() == frozen.timestamp()
        assert epoch_seconds() == epoch_seconds()
    finally:
        set_mock_time(None)


def test_format_iso_uses_z_suffix():
    assert format_iso(datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)) == "2024-01-15T10:30:00Z"


class TestFormatRecord:
    def test_context_is_appended(self):
        record = {"extra": {"component": "ranking", "expected": 3072, "actual": 1536}}

        template = format_record(record)

        assert "{extra[_context_line]}" in template
        assert template.endswith("{exception}")
        assert record["extra"]["_context_line"] == " | expected=3072 actual=1536"

    def test_no_context_adds_nothing(self):
        record = {"extra": {"component": "ranking"}}
        format_record(record)
        assert record["extra"]["_context_line"] == ""

    def test_missing_component_gets_default(self):
        record = {"extra": {}}
        format_record(record)
        assert record["extra"]["component"] == "talentrank"
