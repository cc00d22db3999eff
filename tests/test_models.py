"""Tests for tegratop data models."""

import json

from tegratop.models import (
    UNKNOWN,
    CoolingReading,
    CpuCoreReading,
    CpuReading,
    FanMode,
    Sample,
)


def test_sample_defaults():
    """Test a Sample built with no readings is fully populated with defaults."""
    sample = Sample(tick=1, timestamp=0.0)

    assert sample.cpu.usage == 0.0
    assert sample.cpu.cores == ()
    assert sample.accelerator.usage == 0.0
    assert sample.memory.ram_total == 0
    assert sample.cooling.mode is FanMode.UNKNOWN
    assert sample.board.model == UNKNOWN
    assert sample.profile.profile_id == -1
    assert sample.engines == ()


def test_sample_is_frozen():
    """Test that Sample is immutable (frozen)."""
    sample = Sample(tick=1, timestamp=0.0)

    # Attempting to modify should raise an error
    try:
        sample.tick = 2
        raise AssertionError("Should have raised FrozenInstanceError")
    except AttributeError:
        pass  # Expected behavior for frozen dataclass


def test_readings_use_slots():
    """Test that readings use __slots__."""
    core = CpuCoreReading(index=0, usage=1.0, frequency=0, governor="")
    assert not hasattr(core, "__dict__")
    assert not hasattr(Sample(tick=1, timestamp=0.0), "__dict__")


def test_to_dict_is_json_serializable():
    """Test to_dict produces plain values, with enums as their values."""
    sample = Sample(
        tick=3,
        timestamp=12.5,
        cpu=CpuReading(usage=25.0, cores=(CpuCoreReading(index=0, usage=25.0, frequency=1000, governor="x"),)),
        cooling=CoolingReading(duty=40.0, rpm=1500, mode=FanMode.MANUAL),
    )

    data = json.loads(json.dumps(sample.to_dict()))

    assert data["tick"] == 3
    assert data["cpu"]["cores"][0]["frequency"] == 1000
    assert data["cooling"]["mode"] == "Manual"
    assert data["board"]["model"] == UNKNOWN


def test_to_dict_shape_does_not_depend_on_values():
    """Test empty and populated Samples have the same keys."""
    empty = Sample(tick=1, timestamp=0.0).to_dict()
    populated = Sample(tick=2, timestamp=1.0, cooling=CoolingReading(duty=10.0, mode=FanMode.OFF)).to_dict()

    assert empty.keys() == populated.keys()
    assert empty["cooling"].keys() == populated["cooling"].keys()
