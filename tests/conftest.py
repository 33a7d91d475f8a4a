"""Shared test doubles and a stable temp directory on WSL."""

from __future__ import annotations

import os
import platform
import sys
import tempfile
from contextlib import contextmanager

import pytest

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from mc_ctrl.common.config import RconConfig  # noqa: E402
from mc_ctrl.common.errors import ProcessControlError  # noqa: E402
from mc_ctrl.core.models import ProcessResult  # noqa: E402
from mc_ctrl.core.process import ProcessController  # noqa: E402


def _is_wsl() -> bool:
    release = platform.release().lower()
    version = platform.version().lower()
    return "microsoft" in release or "microsoft" in version


if _is_wsl() and os.path.isdir("/tmp"):
    os.environ["TMPDIR"] = "/tmp"
    os.environ["TEMP"] = "/tmp"
    os.environ["TMP"] = "/tmp"
    tempfile.tempdir = "/tmp"


class FakeSessions:
    """Session factory double with canned responses per command.

    A response may be a string, an exception to raise, or a list consumed
    one item per call.
    """

    def __init__(self, responses=None, connect_error=None):
        self.responses = dict(responses or {})
        self.connect_error = connect_error
        self.sent = []
        self.opened = 0
        self.closed = 0

    @contextmanager
    def __call__(self, config):
        self.opened += 1
        try:
            if self.connect_error is not None:
                raise self.connect_error
            yield self.send
        finally:
            self.closed += 1

    def send(self, command):
        self.sent.append(command)
        response = self.responses.get(command, "")
        if isinstance(response, list):
            response = response.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeProcess(ProcessController):
    """Records verbs; fails the verbs listed in ``failures``."""

    def __init__(self, failures=None, stdout=""):
        self.failures = dict(failures or {})
        self.stdout = stdout
        self.calls = []

    def run(self, verb):
        self.calls.append(verb)
        if verb in self.failures:
            raise ProcessControlError(self.failures[verb], exit_code=1, stderr=self.failures[verb])
        return ProcessResult(exit_code=0, stdout=self.stdout, stderr="")


class FakeProbe:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = 0

    def probe(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def rcon_config():
    return RconConfig(host="127.0.0.1", port=25575, password="secret")
