"""Tests for media domain entities."""

from __future__ import annotations

import dataclasses

import pytest

from reelrelay.domain.entities import NormalizedResult


class TestNormalizedResult:
    def test_payload_shape(self) -> None:
        result = NormalizedResult(
            download_url="https://cdn.example/x.mp4",
            thumbnail=None,
            raw={"a": 1},
        )
        assert result.to_payload() == {
            "ok": True,
            "downloadUrl": "https://cdn.example/x.mp4",
            "thumbnail": None,
            "raw": {"a": 1},
        }

    def test_found(self) -> None:
        assert NormalizedResult("https://x.example", None).found is True
        assert NormalizedResult(None, "https://x.example/t.jpg").found is False

    def test_frozen(self) -> None:
        result = NormalizedResult(None, None)
        with pytest.raises(dataclasses.FrozenInstanceError):
            result.download_url = "https://x.example"  # type: ignore[misc]
