"""
Tests for panel request state.
"""

import pytest

from voicemint.errors import ServiceError, ValidationError
from voicemint.panels import UNKNOWN_ERROR, Failed, Idle, Loading, Panel, Succeeded


@pytest.mark.asyncio
async def test_success_goes_through_loading():
    panel = Panel("demo")
    seen = []
    panel.subscribe(seen.append)

    async def op():
        assert panel.is_loading
        return 42

    state = await panel.run(op)

    assert state == Succeeded(42)
    assert [type(s) for s in seen] == [Loading, Succeeded]
    assert panel.result == 42
    assert panel.error is None


@pytest.mark.asyncio
async def test_service_error_is_prefixed():
    panel = Panel("demo")

    async def op():
        raise ServiceError("quota exceeded")

    state = await panel.run(op, error_prefix="An error occurred")

    assert state == Failed("An error occurred: quota exceeded")
    assert panel.result is None


@pytest.mark.asyncio
async def test_validation_error_is_shown_as_is():
    panel = Panel("demo")

    async def op():
        raise ValidationError("Please enter some text to generate speech.")

    await panel.run(op)
    assert panel.error == "Please enter some text to generate speech."


@pytest.mark.asyncio
async def test_unexpected_error_does_not_escape():
    panel = Panel("demo")

    async def op():
        raise KeyError("surprise")

    await panel.run(op)
    assert panel.error == UNKNOWN_ERROR


def test_reset_and_fail():
    panel = Panel("demo")
    assert panel.state == Idle()
    panel.fail("nope")
    assert panel.error == "nope"
    panel.reset()
    assert isinstance(panel.state, Idle)
