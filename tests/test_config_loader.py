"""Tests for runtime configuration loader."""
from __future__ import annotations

import json
from pathlib import Path

import pytest

from common.config import error_mode_from_policy, load_config_document, load_runtime_config
from common.errors import BackendError, ErrorCode


def test_load_default_profile() -> None:
    config = load_runtime_config("default")
    assert config.profile.chunk_size == 16
    assert config.profile.skip_header is False
    assert config.global_settings.encoding == "utf-8"
    assert config.global_settings.error_policy == "fail-fast"


def test_shipped_profiles() -> None:
    document = load_config_document()
    assert set(document.profiles) == {"default", "large_lines"}
    assert document.profiles["large_lines"].chunk_size == 4096
    assert document.profiles["large_lines"].skip_header is True


def test_overrides_apply_to_selected_profile() -> None:
    config = load_runtime_config(
        "default",
        overrides={"global": {"encoding": "cp1251"}, "profile": {"chunk_size": 64}},
    )
    assert config.global_settings.encoding == "cp1251"
    assert config.profile.chunk_size == 64


def test_error_mode_resolution() -> None:
    assert error_mode_from_policy("fail-fast") == "strict"
    assert error_mode_from_policy("replace") == "replace"


def test_missing_profile_raises_backend_error(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path, {"only": _profile_payload()})
    with pytest.raises(BackendError) as exc:
        load_runtime_config("missing", config_path=config_path)
    assert exc.value.code == ErrorCode.CONFIG_ERROR


def test_invalid_error_policy_rejected(tmp_path: Path) -> None:
    config_path = _write_config(
        tmp_path,
        {"default": _profile_payload()},
        global_section={"encoding": "utf-8", "error_policy": "panic"},
    )
    with pytest.raises(BackendError) as exc:
        load_runtime_config("default", config_path=config_path)
    assert "error_policy" in str(exc.value)


@pytest.mark.parametrize("chunk_size", [0, -4, "big", True])
def test_chunk_size_must_be_positive_int(tmp_path: Path, chunk_size) -> None:
    config_path = _write_config(tmp_path, {"default": _profile_payload(chunk_size=chunk_size)})
    with pytest.raises(BackendError) as exc:
        load_runtime_config("default", config_path=config_path)
    assert "chunk_size" in str(exc.value)


def test_skip_header_must_be_boolean(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path, {"default": _profile_payload(skip_header="yes")})
    with pytest.raises(BackendError) as exc:
        load_runtime_config("default", config_path=config_path)
    assert exc.value.code == ErrorCode.CONFIG_ERROR


def test_missing_config_file(tmp_path: Path) -> None:
    with pytest.raises(BackendError) as exc:
        load_runtime_config("default", config_path=tmp_path / "nope.json")
    assert exc.value.code == ErrorCode.CONFIG_ERROR


def test_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(BackendError) as exc:
        load_runtime_config("default", config_path=path)
    assert "not valid JSON" in str(exc.value)


def _write_config(tmp_path: Path, profiles: dict, *, global_section: dict | None = None) -> Path:
    payload = {
        "version": 1,
        "global": global_section or {"encoding": "utf-8", "error_policy": "fail-fast"},
        "profiles": profiles,
    }
    path = tmp_path / "config.json"
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return path


def _profile_payload(**changes) -> dict:
    payload = {
        "description": "tmp",
        "chunk_size": 16,
        "sample_size": 5,
        "skip_header": False,
    }
    payload.update(changes)
    return payload
