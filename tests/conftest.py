import asyncio
from typing import List, Optional

import numpy as np
import pytest

from wastesort.errors import CameraAccessError, CameraErrorKind
from wastesort.scanner import ScanConfig, ScanController
from wastesort.storage import HistoryStore, KeyValueStore
from wastesort.vision import Detection, Frame


class FakeFrameSource:
    def __init__(self, open_error: Optional[CameraErrorKind] = None, ready: bool = True):
        self.open_error = open_error
        self.ready = ready
        self.opened = False
        self.open_calls = 0
        self.close_calls = 0

    def open(self):
        self.open_calls += 1
        if self.open_error is not None:
            raise CameraAccessError(self.open_error)
        self.opened = True

    def current_frame(self):
        if not self.opened or not self.ready:
            return None
        return Frame(image=np.full((16, 16, 3), 127, dtype=np.uint8))

    def close(self):
        self.close_calls += 1
        self.opened = False


class FakeDetector:
    def __init__(self, detections: Optional[List[Detection]] = None):
        self.detections = detections or []
        self.calls = 0
        self.gate: Optional[asyncio.Event] = None

    async def detect(self, frame):
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        return list(self.detections)


class FakeClassifier:
    """Returns ``result`` or raises it; can be held open with ``gate``."""

    def __init__(self, result="Nhựa Tái Chế"):
        self.result = result
        self.calls = 0
        self.in_flight = 0
        self.max_in_flight = 0
        self.gate: Optional[asyncio.Event] = None
        self.started = asyncio.Event()

    async def classify(self, image_data, mime_type="image/jpeg"):
        self.calls += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        self.started.set()
        try:
            if self.gate is not None:
                await self.gate.wait()
            if isinstance(self.result, BaseException):
                raise self.result
            return self.result
        finally:
            self.in_flight -= 1


@pytest.fixture
def history_store(tmp_path):
    return HistoryStore(KeyValueStore(str(tmp_path / "history.db"), log_dir=None), log_dir=None)


@pytest.fixture
def frame_source():
    return FakeFrameSource()


@pytest.fixture
def detector():
    return FakeDetector()


@pytest.fixture
def classifier():
    return FakeClassifier()


@pytest.fixture
def scan_config():
    return ScanConfig(scan_interval=2, classify_timeout=5, log_dir=None)


@pytest.fixture
async def controller(frame_source, detector, classifier, history_store, scan_config):
    controller = ScanController(
        frame_source=frame_source,
        classifier=classifier,
        history_store=history_store,
        config=scan_config,
        detector=detector
    )
    yield controller
    controller.shutdown()
