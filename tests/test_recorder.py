"""
Tests for the bounded path recorder.
"""

import numpy as np
import pytest

from acoustic_svp.config import RecordMode
from acoustic_svp.raytracing.recorder import PathRecorder, PathSample, PathSink


class TestPathRecorder:

    def setup_method(self):
        self.recorder = PathRecorder(3)

    def test_empty(self):
        assert len(self.recorder) == 0
        assert self.recorder.as_array().shape == (0, 3)
        assert not self.recorder.full

    def test_append(self):
        self.recorder.append(PathSample(1.0, 2.0, 0.5))
        assert len(self.recorder) == 1
        assert self.recorder.samples == [PathSample(1.0, 2.0, 0.5)]

    def test_overflow_is_ignored(self):
        for k in range(5):
            self.recorder.append(PathSample(float(k), 0.0, 0.0))
        assert len(self.recorder) == 3
        assert self.recorder.full
        np.testing.assert_array_equal(self.recorder.offsets, [0.0, 1.0, 2.0])

    def test_clear(self):
        self.recorder.append(PathSample(1.0, 2.0, 0.5))
        self.recorder.clear()
        assert len(self.recorder) == 0
        self.recorder.append(PathSample(-4.0, 3.0, 1.0))
        assert list(self.recorder) == [PathSample(-4.0, 3.0, 1.0)]

    def test_views_are_copies(self):
        self.recorder.append(PathSample(1.0, 2.0, 0.5))
        depths = self.recorder.depths
        depths[0] = 99.0
        assert self.recorder.depths[0] == 2.0

    def test_as_array_columns(self):
        self.recorder.append(PathSample(-1.0, 2.0, 0.5))
        self.recorder.append(PathSample(-3.0, 4.0, 0.75))
        np.testing.assert_array_equal(
            self.recorder.as_array(), [[-1.0, 2.0, 0.5], [-3.0, 4.0, 0.75]]
        )

    def test_negative_capacity(self):
        with pytest.raises(ValueError):
            PathRecorder(-1)

    def test_mode(self):
        assert PathRecorder(1).mode is RecordMode.FULL
        assert PathRecorder(1, RecordMode.TABLE).mode is RecordMode.TABLE
        assert PathRecorder(1, "table").mode is RecordMode.TABLE
        with pytest.raises(ValueError):
            PathRecorder(1, "everything")


class ListSink(PathSink):
    """Unbounded sink used to check the tracer only relies on ``append``."""

    mode = RecordMode.TABLE

    def __init__(self):
        self.items = []

    def append(self, sample):
        self.items.append(sample)


class TestCustomSink:

    def test_custom_sink_receives_samples(self):
        from acoustic_svp.raytracing import build_model, trace

        model = build_model([(0.0, 1500.0), (100.0, 1520.0), (500.0, 1480.0)])
        sink = ListSink()
        result = trace(model, 0.0, 20.0, 10.0, recorder=sink)

        assert sink.items[0] == PathSample(0.0, 0.0, 0.0)
        assert [s.depth for s in sink.items[1:]] == [100.0, 500.0]
        assert sink.items[-1].offset == result.offset

    def test_abstract(self):
        with pytest.raises(TypeError):
            PathSink()
