from __future__ import annotations

import asyncio
import math

import pytest

from akari_client.services.commands import (
    CAMERA_MODE_PATH,
    DISPLAY_IMAGE_PATH,
    DISPLAY_PATH,
    PINOUT_PATH,
    POSITIONS_PATH,
    SERVO_PATH,
    VELOCITY_PATH,
    ACCELERATION_PATH,
    CommandAPI,
)
from akari_client.services.dispatcher import Dispatcher, FailureChannel
from akari_client.state import DeviceState, Joint, Rgb, VelocityPreset
from tests.utils.fake_transport import FakeTransport, transport_error
from tests.utils.types import Reply

pytestmark = pytest.mark.unit


# ---- Motion ----


async def test_relative_move_clamps_to_upper_limit(
    commands: CommandAPI, limited_state: DeviceState
):
    limited_state.pan_target = 80.0
    await commands.move_relative(Joint.PAN, 20)
    assert limited_state.pan_target == 90.0


async def test_absolute_move_clamps_both_directions(
    commands: CommandAPI, limited_state: DeviceState
):
    commands.move_absolute("tilt", 100)
    assert limited_state.tilt_target == 45.0
    commands.move_absolute("tilt", -100)
    assert limited_state.tilt_target == -30.0
    await commands.dispatcher.drain()


async def test_relative_then_absolute_matches_direct_absolute(
    transport: FakeTransport, limited_state: DeviceState, dispatcher: Dispatcher
):
    a = CommandAPI(transport, limited_state, dispatcher)
    limited_state.pan_target = 10.0
    a.move_relative(Joint.PAN, 25.5)
    target_after = limited_state.pan_target
    a.move_absolute(Joint.PAN, target_after)
    via_relative = limited_state.pan_target

    limited_state.pan_target = -40.0
    a.move_absolute(Joint.PAN, target_after)
    assert limited_state.pan_target == via_relative == 35.5
    await dispatcher.drain()


async def test_motion_before_limits_resolve_degenerates_to_zero(
    commands: CommandAPI, state: DeviceState, transport: FakeTransport
):
    await commands.move_absolute(Joint.PAN, 45)
    await commands.move_relative(Joint.TILT, -10)
    assert (state.pan_target, state.tilt_target) == (0.0, 0.0)
    assert transport.calls_to("POST", POSITIONS_PATH)[-1].json == {"pan": 0.0, "tilt": 0.0}


async def test_absolute_move_resends_other_joint_in_radians(
    commands: CommandAPI, limited_state: DeviceState, transport: FakeTransport
):
    limited_state.tilt_target = 30.0
    await commands.move_absolute(Joint.PAN, -45)
    (call,) = transport.calls_to("POST", POSITIONS_PATH)
    assert call.json["pan"] == pytest.approx(-math.pi / 4)
    assert call.json["tilt"] == pytest.approx(math.pi / 6)


@pytest.mark.parametrize(
    "joint,angle,pan,tilt",
    [
        (Joint.LEFT, 30, 30.0, 0.0),
        (Joint.RIGHT, 30, -30.0, 0.0),
        (Joint.UP, 20, 0.0, 20.0),
        (Joint.DOWN, 20, 0.0, -20.0),
    ],
)
async def test_viewer_relative_joint_names_invert_sign(
    commands: CommandAPI,
    limited_state: DeviceState,
    joint: Joint,
    angle: float,
    pan: float,
    tilt: float,
):
    await commands.move_absolute(joint, angle)
    assert (limited_state.pan_target, limited_state.tilt_target) == (pan, tilt)
    # Reading back through the same name yields the commanded angle
    assert commands.position(joint) == pytest.approx(angle)


async def test_relative_move_with_viewer_names(
    commands: CommandAPI, limited_state: DeviceState
):
    limited_state.pan_target = 10.0
    limited_state.tilt_target = 10.0
    commands.move_relative("right", 15)
    commands.move_relative("down", 5)
    assert limited_state.pan_target == -5.0
    assert limited_state.tilt_target == 5.0
    assert commands.position("left") == -5.0
    assert commands.position("right") == 5.0
    await commands.dispatcher.drain()


async def test_combined_moves_clamp_both_joints(
    commands: CommandAPI, limited_state: DeviceState, transport: FakeTransport
):
    await commands.move_all_absolute(120, 120)
    assert (limited_state.pan_target, limited_state.tilt_target) == (90.0, 45.0)
    await commands.move_all_relative(-200, -10)
    assert (limited_state.pan_target, limited_state.tilt_target) == (-90.0, 35.0)
    assert len(transport.calls_to("POST", POSITIONS_PATH)) == 2


async def test_invalid_joint_raises_before_any_change(
    commands: CommandAPI, limited_state: DeviceState, transport: FakeTransport
):
    with pytest.raises(ValueError):
        commands.move_absolute("roll", 10)
    with pytest.raises(ValueError):
        commands.move_relative(Joint.PAN, "far")
    assert limited_state.pan_target == 0.0
    assert transport.calls == []


async def test_servo_enable_dispatches_without_state_change(
    commands: CommandAPI, state: DeviceState, transport: FakeTransport
):
    before = (state.pan_target, state.velocity)
    await commands.set_servo_enabled(False)
    (call,) = transport.calls_to("POST", SERVO_PATH)
    assert call.params == {"enabled": False}
    assert (state.pan_target, state.velocity) == before


async def test_velocity_and_acceleration_convert_to_radians(
    commands: CommandAPI, state: DeviceState, transport: FakeTransport
):
    await commands.set_velocity(VelocityPreset.NORMAL)
    await commands.set_acceleration(90)
    assert state.velocity == 200.0
    assert state.acceleration == 90.0
    assert transport.calls_to("POST", VELOCITY_PATH)[0].params["vel"] == pytest.approx(
        math.radians(200)
    )
    assert transport.calls_to("POST", ACCELERATION_PATH)[0].params[
        "acc"
    ] == pytest.approx(math.pi / 2)


# ---- Pinout ----


async def test_digital_output_sends_combined_pinout(
    commands: CommandAPI, state: DeviceState, transport: FakeTransport
):
    state.pwm_target = 50
    await commands.set_digital_output("dout1", "High")
    assert state.dout1_target is True
    assert state.dout0_target is False
    (call,) = transport.calls_to("POST", PINOUT_PATH)
    assert call.json == {"dout0": False, "dout1": True, "pwmout0": 50}


async def test_pwm_output_is_not_clamped(
    commands: CommandAPI, state: DeviceState, transport: FakeTransport
):
    await commands.set_pwm_output("300")
    assert state.pwm_target == 300
    assert transport.calls_to("POST", PINOUT_PATH)[0].json["pwmout0"] == 300


async def test_invalid_pin_value_rejected(commands: CommandAPI, state: DeviceState):
    with pytest.raises(ValueError):
        commands.set_digital_output("dout2", "High")
    with pytest.raises(ValueError):
        commands.set_digital_output("dout0", "maybe")
    assert state.dout0_target is False


# ---- Display / camera ----


@pytest.mark.parametrize("size,stored", [(15, 11), (-3, 1), (8, 8)])
def test_font_size_clamped(commands: CommandAPI, state: DeviceState, size, stored):
    assert commands.set_font_size(size) == stored
    assert state.font_size == stored


async def test_display_text_carries_colors_and_font(
    commands: CommandAPI, state: DeviceState, transport: FakeTransport
):
    commands.set_display_color("blue")
    commands.set_foreground_color("yellow")
    commands.set_font_size(9)
    # Color and font are local until the next text write
    assert transport.calls == []
    await commands.set_display_text(42)
    (call,) = transport.calls_to("POST", DISPLAY_PATH)
    assert call.json == {
        "text": "42",
        "display_color": {"r": 0, "g": 0, "b": 255},
        "foreground_color": {"r": 255, "g": 255, "b": 0},
        "font_size": 9,
    }
    assert state.background_color == Rgb(0, 0, 255)


async def test_display_image_and_camera_mode(
    commands: CommandAPI, transport: FakeTransport
):
    await commands.set_display_image("/jpg/logo320.jpg")
    await commands.set_camera_mode("ObjectDetection")
    await commands.camera_off()
    assert transport.calls_to("POST", DISPLAY_IMAGE_PATH)[0].params == {
        "path": "/jpg/logo320.jpg"
    }
    modes = [c.json["mode"] for c in transport.calls_to("POST", CAMERA_MODE_PATH)]
    assert modes == ["ObjectDetection", "None"]


# ---- Fire-and-forget semantics ----


async def test_write_failure_is_absorbed_and_not_rolled_back(
    commands: CommandAPI,
    limited_state: DeviceState,
    transport: FakeTransport,
    failures: FailureChannel,
):
    transport.on("POST", POSITIONS_PATH, transport_error("POST", POSITIONS_PATH))
    task = commands.move_absolute(Joint.PAN, 30)
    # Optimistic update is visible before the write completes
    assert limited_state.pan_target == 30.0
    assert await task is False
    assert limited_state.pan_target == 30.0
    (rep,) = failures.drain_nowait()
    assert rep.source == "write"
    assert "move" in rep.operation
    assert commands.dispatcher.failed == 1


async def test_command_does_not_wait_for_write(
    commands: CommandAPI, limited_state: DeviceState, transport: FakeTransport
):
    transport.on("POST", POSITIONS_PATH, Reply(body={}, delay=0.2))
    task = commands.move_absolute(Joint.TILT, 10)
    assert not task.done()
    assert limited_state.tilt_target == 10.0
    await task


async def test_same_field_race_last_completion_wins(
    commands: CommandAPI, limited_state: DeviceState, transport: FakeTransport
):
    # First write is slow, second fast: the first one completes last
    transport.on(
        "POST",
        POSITIONS_PATH,
        Reply(body={}, delay=0.05),
        Reply(body={}, delay=0.0),
    )
    first = commands.move_absolute(Joint.PAN, 10)
    second = commands.move_absolute(Joint.PAN, 20)
    assert limited_state.pan_target == 20.0

    await second
    assert limited_state.pan_target == 20.0
    await first
    assert limited_state.pan_target == 10.0


async def test_same_output_race_last_completion_wins(
    commands: CommandAPI, state: DeviceState, transport: FakeTransport
):
    transport.on(
        "POST",
        PINOUT_PATH,
        Reply(body={}, delay=0.0),
        Reply(body={}, delay=0.05),
    )
    first = commands.set_pwm_output(10)
    second = commands.set_pwm_output(200)
    await asyncio.gather(first, second)
    assert state.pwm_target == 200


async def test_second_command_does_not_cancel_first(
    commands: CommandAPI, limited_state: DeviceState, transport: FakeTransport
):
    transport.on("POST", POSITIONS_PATH, Reply(body={}, delay=0.02))
    first = commands.move_absolute(Joint.PAN, 5)
    second = commands.move_absolute(Joint.PAN, 6)
    assert await first is True
    assert await second is True
    assert len(transport.calls_to("POST", POSITIONS_PATH)) == 2


# ---- Cached reads ----


def test_button_queries(commands: CommandAPI, state: DeviceState):
    assert commands.is_button_pressed("any") is False
    state.button_b = True
    assert commands.is_button_pressed("B") is True
    assert commands.is_button_pressed("A") is False
    assert commands.is_button_pressed("any") is True


def test_digital_inputs_are_active_low(commands: CommandAPI, state: DeviceState):
    assert commands.is_din_active("din0") is False
    assert commands.is_din_active("any") is False
    state.din1 = False
    assert commands.is_din_active("din1") is True
    assert commands.is_din_active("din0") is False
    assert commands.is_din_active("any") is True


def test_sensor_reads(commands: CommandAPI, state: DeviceState):
    state.ain0 = 1.25
    state.temperature, state.pressure, state.brightness = 21.5, 1002.0, 300.0
    assert commands.analog_input() == 1.25
    assert commands.sensor("temperature") == 21.5
    assert commands.sensor("pressure") == 1002.0
    assert commands.sensor("brightness") == 300.0


@pytest.mark.parametrize("bad", [math.nan, "nan", math.inf, "-inf"])
async def test_non_finite_angles_rejected_before_any_change(
    commands: CommandAPI, limited_state: DeviceState, transport: FakeTransport, bad
):
    limited_state.pan_target = 15.0
    with pytest.raises(ValueError):
        commands.move_absolute(Joint.PAN, bad)
    with pytest.raises(ValueError):
        commands.move_relative(Joint.PAN, bad)
    with pytest.raises(ValueError):
        commands.move_all_absolute(bad, 0)
    with pytest.raises(ValueError):
        commands.move_all_relative(0, bad)
    assert limited_state.pan_target == 15.0
    assert limited_state.tilt_target == 0.0
    assert transport.calls == []

    # Later relative moves still work from the last good target
    await commands.move_relative(Joint.PAN, 5)
    assert limited_state.pan_target == 20.0
    assert -90.0 <= limited_state.pan_target <= 90.0


async def test_pwm_output_truncates_numeric_text(
    commands: CommandAPI, state: DeviceState, transport: FakeTransport
):
    await commands.set_pwm_output("12.5")
    assert state.pwm_target == 12
    assert transport.calls_to("POST", PINOUT_PATH)[0].json["pwmout0"] == 12


def test_font_size_accepts_numeric_text_and_infinity(
    commands: CommandAPI, state: DeviceState
):
    assert commands.set_font_size("7.5") == 7
    assert commands.set_font_size(math.inf) == 11
    assert state.font_size == 11
