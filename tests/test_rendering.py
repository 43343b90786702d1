"""Tests for display rendering helpers."""

import jax.numpy as jnp
import numpy as np
import pytest
from chip8vm import chip8_display_to_rgb, create_color_scheme, batch_render


def test_rgb_shape_and_orientation(fresh_state):
    display = fresh_state.display.at[10, 2].set(True)

    rgb = chip8_display_to_rgb(display, scale=1)

    assert rgb.shape == (32, 64, 3)
    assert rgb.dtype == np.uint8
    assert rgb[2, 10].tolist() == [255, 255, 255]
    assert rgb[10, 2].tolist() == [0, 0, 0]


def test_rgb_scaling_and_colors(fresh_state):
    display = fresh_state.display.at[0, 0].set(True)
    on_color, off_color = create_color_scheme("amber")

    rgb = chip8_display_to_rgb(display, scale=4, on_color=on_color, off_color=off_color)

    assert rgb.shape == (128, 256, 3)
    assert rgb[3, 3].tolist() == list(on_color)
    assert rgb[4, 4].tolist() == list(off_color)


def test_rgb_rejects_bad_input(fresh_state):
    with pytest.raises(ValueError):
        chip8_display_to_rgb(fresh_state.display, scale=0)
    with pytest.raises(ValueError):
        chip8_display_to_rgb(jnp.zeros((32, 64), dtype=jnp.bool_))


def test_unknown_color_scheme():
    with pytest.raises(ValueError, match="Unknown color scheme"):
        create_color_scheme("neon")


def test_batch_render_grid(fresh_state):
    displays = jnp.stack([fresh_state.display] * 3)

    grid = batch_render(displays, scale=2, padding=4)

    # 3 displays -> 2x2 grid
    assert grid.shape == (2 * 64 + 4, 2 * 128 + 4, 4)
    assert grid[0, 0, 3] == 255
    assert grid[64, 0, 3] == 0  # padding stays transparent


def test_batch_render_empty():
    with pytest.raises(ValueError):
        batch_render(jnp.zeros((0, 64, 32), dtype=jnp.bool_))
