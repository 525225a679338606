"""Tests for repeat keys and occurrence identifiers."""

import pytest

from chronorepeat.models import RepeatOptions
from chronorepeat.scheduler import RepeatKey, digest, get_repeat_job_id, get_repeat_key


class TestRepeatKey:

    def test_encode_all_fields(self):
        opts = RepeatOptions(pattern="*/5 * * * *", job_id="abc", end_date=1700000000000, tz="Europe/Berlin")
        assert get_repeat_key("report", opts) == "report:abc:1700000000000:Europe/Berlin:*/5 * * * *"

    def test_encode_every(self):
        assert get_repeat_key("report", RepeatOptions(every=5000)) == "report::::5000"

    def test_encode_neither(self):
        assert get_repeat_key("report", RepeatOptions()) == "report::::"

    def test_pattern_wins_over_legacy_cron(self):
        opts = RepeatOptions(pattern="0 * * * *", cron="5 * * * *")
        assert get_repeat_key("report", opts).endswith(":0 * * * *")

    @pytest.mark.parametrize("opts", [
        RepeatOptions(pattern="0 0 * * *"),
        RepeatOptions(pattern="0 9 * * 1", job_id="weekly", tz="UTC"),
        RepeatOptions(every=60000, end_date=1893456000000),
    ])
    def test_decode_recovers_encoded_fields(self, opts):
        key = RepeatKey.from_options("sync", opts)
        assert RepeatKey.decode(key.encode()) == key

    def test_decode_rejoins_pattern_delimiters(self):
        key = RepeatKey.decode("sync::::a:b:c")
        assert key.pattern == "a:b:c"

    def test_decode_every_as_pattern_string(self):
        key = RepeatKey.decode("sync::::5000")
        assert key.pattern == "5000"

    def test_decode_short_key(self):
        assert RepeatKey.decode("sync") == RepeatKey(name="sync")

    def test_decode_non_numeric_end_date(self):
        assert RepeatKey.decode("sync::soon::* * * * *").end_date is None

    def test_to_dict(self):
        info = RepeatKey.decode("sync:abc:::0 * * * *").to_dict(42)
        assert info == {
            "key": "sync:abc:::0 * * * *",
            "name": "sync",
            "id": "abc",
            "end_date": None,
            "tz": None,
            "pattern": "0 * * * *",
            "next": 42
        }


class TestRepeatJobId:

    def test_format(self):
        job_id = get_repeat_job_id("report", 15000, digest("report::::5000"))
        prefix, checksum, next_millis = job_id.split(":")
        assert prefix == "repeat"
        assert len(checksum) == 32
        assert next_millis == "15000"

    def test_deterministic(self):
        namespace = digest("report:abc:::0 * * * *")
        assert get_repeat_job_id("report", 15000, namespace, "abc") == get_repeat_job_id("report", 15000, namespace, "abc")

    def test_job_id_changes_identifier(self):
        namespace = digest("report::::5000")
        assert get_repeat_job_id("report", 15000, namespace) != get_repeat_job_id("report", 15000, namespace, "x")

    def test_empty_timestamp_is_prefix(self):
        namespace = digest("report::::5000")
        prefix = get_repeat_job_id("report", "", namespace)
        assert get_repeat_job_id("report", 15000, namespace) == f"{prefix}15000"

    def test_alternate_algorithm(self):
        job_id = get_repeat_job_id("report", 1, digest("k", "sha1"), algorithm="sha1")
        assert len(job_id.split(":")[1]) == 40
