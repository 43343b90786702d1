"""Test configuration and fixtures for CHIP-8 machine tests."""

import pytest
import jax.numpy as jnp
from chip8vm import create_state, load_program, CLASSIC_QUIRKS, MODERN_QUIRKS


@pytest.fixture
def fresh_state():
    """Provide a fresh emulator state for each test."""
    return create_state()


@pytest.fixture
def modern_state():
    """Provide a fresh state with modern quirks."""
    return create_state(quirks=MODERN_QUIRKS)


@pytest.fixture
def legacy_state():
    """Provide a fresh state with COSMAC VIP quirks."""
    return create_state(quirks=CLASSIC_QUIRKS)


def setup_sprite_in_memory(state, address, sprite_bytes):
    """Helper to put sprite data in memory."""
    return state.replace(
        memory=state.memory.at[address:address+len(sprite_bytes)].set(
            jnp.array(sprite_bytes, dtype=jnp.uint8)
        )
    )


def assemble(*instructions):
    """Encode instruction words as a big-endian program image."""
    return b"".join(word.to_bytes(2, "big") for word in instructions)


def loaded_state(*instructions, state=None):
    """Fresh running state with the given instructions loaded at 0x200."""
    return load_program(state if state is not None else create_state(), assemble(*instructions))
