"""MFA correlation gate and resolution."""

import asyncio

import pytest

from leapp_sessions.errors import DaemonCommunicationError, MissingMfaTokenError
from leapp_sessions.mfa import MfaCoordinator
from leapp_sessions.models.daemon import MfaTokenRequest

BASE = "/aws/iam-user-sessions"


class Recorder:
    def __init__(self, answer=None):
        self.answer = answer
        self.labels = []
        self.stopped = []
        self.errors = []
        self.release = asyncio.Event()
        self.block = False

    async def prompt(self, label):
        self.labels.append(label)
        if self.block:
            await self.release.wait()
        return self.answer

    async def stop(self, session_id):
        self.stopped.append(session_id)

    def on_error(self, exc):
        self.errors.append(exc)


def make_coordinator(daemon, recorder):
    return MfaCoordinator(daemon, stop_session=recorder.stop, prompt=recorder.prompt, on_error=recorder.on_error)


@pytest.mark.asyncio
async def test_code_is_confirmed(daemon):
    daemon.responses[("GET", f"{BASE}/s-1")] = {"data": {"Name": "prod"}}
    recorder = Recorder(answer="123456")
    coordinator = make_coordinator(daemon, recorder)

    assert coordinator.submit(MfaTokenRequest(session_id="s-1"))
    assert coordinator.busy
    await coordinator.wait_idle()

    assert recorder.labels == ["prod"]
    assert daemon.calls[-1] == ("POST", f"{BASE}/s-1/confirm-mfa-token", {"id": "s-1", "mfaToken": "123456"})
    assert recorder.stopped == []
    assert recorder.errors == []
    assert not coordinator.busy


@pytest.mark.asyncio
async def test_cancel_stops_session(daemon):
    daemon.responses[("GET", f"{BASE}/s-1")] = {"data": {"Name": "prod"}}
    recorder = Recorder(answer=None)
    coordinator = make_coordinator(daemon, recorder)

    coordinator.submit(MfaTokenRequest(session_id="s-1"))
    await coordinator.wait_idle()

    assert recorder.stopped == ["s-1"]
    assert len(recorder.errors) == 1
    assert isinstance(recorder.errors[0], MissingMfaTokenError)
    assert recorder.errors[0].session_id == "s-1"
    assert daemon.verbs("POST") == []
    assert not coordinator.busy


@pytest.mark.asyncio
async def test_empty_code_is_forwarded_not_cancelled(daemon):
    recorder = Recorder(answer="")
    coordinator = make_coordinator(daemon, recorder)

    coordinator.submit(MfaTokenRequest(session_id="s-1"))
    await coordinator.wait_idle()

    assert daemon.calls[-1] == ("POST", f"{BASE}/s-1/confirm-mfa-token", {"id": "s-1", "mfaToken": ""})
    assert recorder.stopped == []
    assert recorder.errors == []


@pytest.mark.asyncio
async def test_failed_confirmation_stops_session(daemon):
    daemon.failures[("POST", f"{BASE}/s-1/confirm-mfa-token")] = DaemonCommunicationError("invalid token")
    recorder = Recorder(answer="000000")
    coordinator = make_coordinator(daemon, recorder)

    coordinator.submit(MfaTokenRequest(session_id="s-1"))
    await coordinator.wait_idle()

    assert recorder.stopped == ["s-1"]
    assert isinstance(recorder.errors[0], MissingMfaTokenError)
    assert "invalid token" in str(recorder.errors[0])
    assert not coordinator.busy


@pytest.mark.asyncio
async def test_label_falls_back_to_session_id(daemon):
    recorder = Recorder(answer="1")
    coordinator = make_coordinator(daemon, recorder)
    coordinator.submit(MfaTokenRequest(session_id="s-1"))
    await coordinator.wait_idle()
    assert recorder.labels == ["s-1"]


@pytest.mark.asyncio
async def test_failed_lookup_releases_gate(daemon):
    daemon.failures[("GET", f"{BASE}/s-1")] = DaemonCommunicationError("daemon down")
    recorder = Recorder(answer="1")
    coordinator = make_coordinator(daemon, recorder)

    coordinator.submit(MfaTokenRequest(session_id="s-1"))
    await coordinator.wait_idle()

    assert recorder.labels == []
    assert recorder.stopped == ["s-1"]
    assert isinstance(recorder.errors[0], DaemonCommunicationError)
    assert not coordinator.busy


@pytest.mark.asyncio
async def test_second_request_dropped_while_prompt_open(daemon):
    daemon.responses[("GET", f"{BASE}/s-1")] = {"data": {"Name": "prod"}}
    daemon.responses[("GET", f"{BASE}/s-2")] = {"data": {"Name": "dev"}}
    recorder = Recorder(answer="123456")
    recorder.block = True
    coordinator = make_coordinator(daemon, recorder)

    assert coordinator.submit(MfaTokenRequest(session_id="s-1"))
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    assert not coordinator.submit(MfaTokenRequest(session_id="s-2"))

    recorder.release.set()
    await coordinator.wait_idle()
    assert recorder.labels == ["prod"]
    assert daemon.verbs("POST") == [f"{BASE}/s-1/confirm-mfa-token"]

    recorder.block = False
    assert coordinator.submit(MfaTokenRequest(session_id="s-2"))
    await coordinator.wait_idle()
    assert recorder.labels == ["prod", "dev"]


@pytest.mark.asyncio
async def test_gate_is_taken_before_any_await(daemon):
    recorder = Recorder(answer="1")
    coordinator = make_coordinator(daemon, recorder)
    assert coordinator.submit(MfaTokenRequest(session_id="s-1"))
    assert not coordinator.submit(MfaTokenRequest(session_id="s-1"))
    await coordinator.wait_idle()
    assert len(daemon.verbs("GET")) == 1


def test_request_needs_session_id():
    with pytest.raises(ValueError):
        MfaTokenRequest(session_id="")
