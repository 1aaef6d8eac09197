"""Tests for the backend factory and the embedding capabilities.

Model libraries are patched out, so no weights are downloaded.
"""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import Mock

import numpy as np
import pytest
import pytest_mock

from faceid.backends import create_capability_loader
from faceid.errors import ModelLoadError
from faceid.interfaces import EmbeddingCapability


@pytest.fixture
def config():
    """Create a minimal config stand-in."""
    return Mock(backend="dlib", dlib_detector="cnn", model_pack="buffalo_s", ctx_id=-1)


@pytest.fixture
def frame():
    """Create a blank 480x640 BGR frame."""
    return np.zeros((480, 640, 3), dtype=np.uint8)


# Factory


def test_unknown_backend(config):
    """Unknown backend names are rejected up front."""
    with pytest.raises(ValueError, match="Unknown backend"):
        create_capability_loader("opencv", config)


def test_loader_defers_construction(config, mocker: pytest_mock.MockerFixture):
    """Creating the loader does not load models; calling it does."""
    pytest.importorskip("face_recognition")
    capability_cls = mocker.patch("faceid.backends.dlib.capability.DlibCapability")

    loader = create_capability_loader(None, config)
    capability_cls.assert_not_called()

    capability = loader()

    capability_cls.assert_called_once_with(detector_model="cnn")
    assert capability is capability_cls.return_value


def test_insightface_loader(config, mocker: pytest_mock.MockerFixture):
    """The insightface loader builds InsightFaceCapability from the config."""
    pytest.importorskip("insightface")
    capability_cls = mocker.patch(
        "faceid.backends.insightface.capability.InsightFaceCapability"
    )

    capability = create_capability_loader("insightface", config)()

    capability_cls.assert_called_once_with(config)
    assert capability is capability_cls.return_value


# dlib


def test_dlib_picks_largest_face(frame, mocker: pytest_mock.MockerFixture):
    """The largest detected face is encoded with a fixed confidence."""
    pytest.importorskip("face_recognition")
    from faceid.backends.dlib.capability import DLIB_DETECTION_SCORE, DlibCapability

    small = (10, 60, 60, 10)
    large = (100, 400, 400, 100)
    mocker.patch(
        "faceid.backends.dlib.capability.face_recognition.face_locations",
        return_value=[small, large],
    )
    encodings = mocker.patch(
        "faceid.backends.dlib.capability.face_recognition.face_encodings",
        return_value=[np.full(128, 0.1)],
    )

    capability = DlibCapability()
    descriptor = capability.detect(frame)

    assert isinstance(capability, EmbeddingCapability)
    assert descriptor.embedding.shape == (128,)
    assert descriptor.confidence == DLIB_DETECTION_SCORE
    assert (descriptor.bbox.x1, descriptor.bbox.y1) == (100, 100)
    assert encodings.call_args.kwargs["known_face_locations"] == [large]


def test_dlib_no_face(frame, mocker: pytest_mock.MockerFixture):
    """No detection yields None."""
    pytest.importorskip("face_recognition")
    from faceid.backends.dlib.capability import DlibCapability

    mocker.patch(
        "faceid.backends.dlib.capability.face_recognition.face_locations",
        return_value=[],
    )

    assert DlibCapability().detect(frame) is None


def test_dlib_invalid_detector():
    """Only hog and cnn detectors exist."""
    pytest.importorskip("face_recognition")
    from faceid.backends.dlib.capability import DlibCapability

    with pytest.raises(ValueError):
        DlibCapability(detector_model="mmod")


# InsightFace


def _face(score, bbox, embedding):
    return SimpleNamespace(det_score=score, bbox=np.array(bbox, dtype=np.float32), embedding=embedding)


def test_insightface_picks_most_confident(config, frame, mocker: pytest_mock.MockerFixture):
    """The highest-scoring face is returned with a unit-length embedding."""
    pytest.importorskip("insightface")
    from faceid.backends.insightface.capability import InsightFaceCapability

    app = mocker.patch("faceid.backends.insightface.capability.FaceAnalysis").return_value
    app.get.return_value = [
        _face(0.62, [0, 0, 50, 50], np.ones(512)),
        _face(0.91, [100, 120, 300, 360], np.full(512, 3.0)),
    ]

    descriptor = InsightFaceCapability(config).detect(frame)

    app.prepare.assert_called_once_with(ctx_id=-1, det_size=(640, 640))
    assert descriptor.confidence == pytest.approx(0.91)
    assert abs(np.linalg.norm(descriptor.embedding) - 1.0) < 1e-5
    assert (descriptor.bbox.x1, descriptor.bbox.y2) == (100, 360)


def test_insightface_init_failure(config, mocker: pytest_mock.MockerFixture):
    """Model pack failures surface as ModelLoadError."""
    pytest.importorskip("insightface")
    from faceid.backends.insightface.capability import InsightFaceCapability

    mocker.patch(
        "faceid.backends.insightface.capability.FaceAnalysis",
        side_effect=RuntimeError("model pack not found"),
    )

    with pytest.raises(ModelLoadError, match="model pack not found"):
        InsightFaceCapability(config)
