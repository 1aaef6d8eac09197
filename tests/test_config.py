"""Tests for environment-based configuration."""

from __future__ import annotations

import pytest

from faceid.config import Config

ENV_VARS = [
    "FACEID_BACKEND",
    "CTX_ID",
    "MODEL_PACK",
    "DLIB_DETECTOR",
    "CAMERA_ID",
    "FRAME_WIDTH",
    "FRAME_HEIGHT",
    "MIN_CONFIDENCE",
    "ATTEMPTS_PER_POSE",
    "SETTLE_DELAY",
    "ATTEMPT_DELAY",
    "MATCH_THRESHOLD",
    "LOGIN_CAPTURES",
    "MODEL_LOAD_TIMEOUT",
    "API_BASE_URL",
    "API_TIMEOUT",
    "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Start every test from an environment without FaceID variables."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    """Defaults match the capture and matching constants."""
    config = Config.from_env()

    assert config.backend == "dlib"
    assert config.camera_id == 0
    assert (config.frame_width, config.frame_height) == (640, 480)
    assert config.min_confidence == 0.5
    assert config.attempts_per_pose == 2
    assert config.settle_delay == 1.5
    assert config.attempt_delay == 0.5
    assert config.match_threshold == 0.6
    assert config.login_captures == 5
    assert config.model_load_timeout == 60.0
    assert config.log_level == "INFO"


def test_overrides(monkeypatch):
    """Environment variables override defaults."""
    monkeypatch.setenv("FACEID_BACKEND", "InsightFace")
    monkeypatch.setenv("ATTEMPTS_PER_POSE", "3")
    monkeypatch.setenv("MODEL_LOAD_TIMEOUT", "0")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    config = Config.from_env()

    assert config.backend == "insightface"
    assert config.attempts_per_pose == 3
    assert config.model_load_timeout is None
    assert config.log_level == "DEBUG"


@pytest.mark.parametrize(
    "name, value",
    [
        ("FACEID_BACKEND", "opencv"),
        ("MODEL_PACK", "antelope"),
        ("DLIB_DETECTOR", "mmod"),
        ("CAMERA_ID", "-1"),
        ("MIN_CONFIDENCE", "1.5"),
        ("ATTEMPTS_PER_POSE", "1"),
        ("SETTLE_DELAY", "-0.1"),
        ("MATCH_THRESHOLD", "0"),
        ("LOGIN_CAPTURES", "0"),
        ("MODEL_LOAD_TIMEOUT", "-5"),
        ("API_TIMEOUT", "0"),
        ("LOG_LEVEL", "VERBOSE"),
    ],
)
def test_invalid_values(monkeypatch, name, value):
    """Out-of-range values are rejected with ValueError."""
    monkeypatch.setenv(name, value)

    with pytest.raises(ValueError, match=name):
        Config.from_env()
