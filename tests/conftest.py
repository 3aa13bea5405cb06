"""Shared fixtures."""

import copy
from typing import Any, Dict

import pytest

from tests.helpers import CLUSTER_STATS, NODES_STATS, RecordingEmitter


@pytest.fixture
def cluster_body() -> Dict[str, Any]:
    return copy.deepcopy(CLUSTER_STATS)


@pytest.fixture
def nodes_body() -> Dict[str, Any]:
    return copy.deepcopy(NODES_STATS)


@pytest.fixture
def recording_emitter() -> RecordingEmitter:
    return RecordingEmitter()
