"""Tests for config.py and errors.py."""

from __future__ import annotations

import pytest

from scratchdiff.config import DEFAULT_REPORT_URL, DiffConfig
from scratchdiff.errors import (
    ErrorCode,
    RenderError,
    ScratchDiffError,
    SerializationError,
    StorageUnavailableError,
)
from scratchdiff.models import RenderStyle


class TestDiffConfig:
    def test_defaults(self):
        config = DiffConfig()
        assert config.indent == "  "
        assert config.fallback_matching == "similar"
        assert config.style is RenderStyle.SCRATCH3
        assert config.render_error_report_url == DEFAULT_REPORT_URL
        assert config.debug_dump_diff is False

    def test_style_string_coerced(self):
        assert DiffConfig(style="scratch2").style is RenderStyle.SCRATCH2

    def test_unknown_style_rejected(self):
        with pytest.raises(ValueError):
            DiffConfig(style="scratch1")

    @pytest.mark.parametrize("url", ["ftp://example.org", "example.org"])
    def test_non_http_url_rejected(self, url):
        with pytest.raises(ValueError, match="http"):
            DiffConfig(storage_base_url=url)

    def test_plain_http_remote_rejected(self):
        with pytest.raises(ValueError, match="plain HTTP"):
            DiffConfig(storage_base_url="http://example.org")

    @pytest.mark.parametrize("url", [
        "http://localhost:8000",
        "http://127.0.0.1:9000",
        "https://git.example.org",
    ])
    def test_accepted_urls(self, url):
        assert DiffConfig(storage_base_url=url).storage_base_url == url

    def test_bad_fallback(self):
        with pytest.raises(ValueError, match="fallback_matching"):
            DiffConfig(fallback_matching="fuzzy")

    @pytest.mark.parametrize("threshold", [0, -0.5, 1.5])
    def test_bad_threshold(self, threshold):
        with pytest.raises(ValueError, match="similarity_threshold"):
            DiffConfig(similarity_threshold=threshold)

    def test_threshold_of_one_allowed(self):
        assert DiffConfig(similarity_threshold=1).similarity_threshold == 1

    def test_bad_timeout(self):
        with pytest.raises(ValueError, match="timeout_seconds"):
            DiffConfig(timeout_seconds=0)

    def test_indent_must_be_whitespace(self):
        with pytest.raises(ValueError, match="indent"):
            DiffConfig(indent="->")

    def test_tab_indent(self):
        assert DiffConfig(indent="\t").indent == "\t"


class TestErrors:
    @pytest.mark.parametrize("cls, code", [
        (StorageUnavailableError, ErrorCode.STORAGE_UNAVAILABLE),
        (SerializationError, ErrorCode.SERIALIZATION_ERROR),
        (RenderError, ErrorCode.RENDER_ERROR),
    ])
    def test_codes(self, cls, code):
        err = cls("boom")
        assert isinstance(err, ScratchDiffError)
        assert err.code == code
        assert err.message == "boom"
        assert err.context == {}
        assert str(err) == "boom"

    def test_cause_is_chained(self):
        cause = OSError("disk gone")
        err = StorageUnavailableError("cannot read", cause=cause)
        assert err.cause is cause
        assert err.__cause__ is cause

    def test_repr_includes_context(self):
        err = SerializationError("bad", context={"script_index": 2})
        assert "script_index" in repr(err)
        assert repr(err).startswith("SerializationError(")

    def test_script_index(self):
        assert SerializationError("bad", context={"script_index": 4}).script_index == 4
        assert SerializationError("bad").script_index is None

    def test_error_code_is_str(self):
        assert ErrorCode.RENDER_ERROR == "RENDER_ERROR"
