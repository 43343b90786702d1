"""CHIP-8 display buffer operations.

The buffer is a boolean ``(SCREEN_WIDTH, SCREEN_HEIGHT)`` array indexed
``[x, y]``. Nothing here knows about timing or the host window.
"""

import jax.numpy as jnp
import numpy as np

from chip8vm.constants import SCREEN_WIDTH, SCREEN_HEIGHT, SPRITE_WIDTH, MAX_SPRITE_HEIGHT

# Pre-computed coordinate grids for display operations
xx, yy = jnp.meshgrid(jnp.arange(SCREEN_WIDTH), jnp.arange(SCREEN_HEIGHT), indexing='ij')


def clear(display: jnp.ndarray) -> jnp.ndarray:
    """Turn every pixel off."""
    return jnp.zeros_like(display)


def draw_sprite(
    display: jnp.ndarray,
    sprite: jnp.ndarray,
    x: jnp.ndarray,
    y: jnp.ndarray,
    height: jnp.ndarray,
    clip: bool = True,
) -> tuple[jnp.ndarray, jnp.ndarray]:
    """XOR an 8-pixel-wide sprite into the display.

    Args:
        display: Current display buffer
        sprite: Sprite rows, one byte per row, MSB is the leftmost pixel.
            Rows at or beyond ``height`` are ignored.
        x: Horizontal start coordinate, wrapped modulo the screen width
        y: Vertical start coordinate, wrapped modulo the screen height
        height: Number of rows to draw (0-15)
        clip: Drop pixels past the right/bottom edge instead of wrapping them

    Returns:
        Tuple of (new display, collision) where collision is True if any pixel
        went from on to off.
    """
    sprite_x = jnp.astype(x, jnp.int32) % SCREEN_WIDTH
    sprite_y = jnp.astype(y, jnp.int32) % SCREEN_HEIGHT

    col_offset = xx - sprite_x
    row_offset = yy - sprite_y
    if not clip:
        col_offset = col_offset % SCREEN_WIDTH
        row_offset = row_offset % SCREEN_HEIGHT

    in_sprite = (
        (col_offset >= 0) & (col_offset < SPRITE_WIDTH)
        & (row_offset >= 0) & (row_offset < height)
    )

    sprite_rows = jnp.astype(sprite, jnp.int32)[jnp.clip(row_offset, 0, MAX_SPRITE_HEIGHT - 1)]
    shift = SPRITE_WIDTH - 1 - jnp.clip(col_offset, 0, SPRITE_WIDTH - 1)
    pixels = (((sprite_rows >> shift) & 1) == 1) & in_sprite

    collision = jnp.any(display & pixels)
    return display ^ pixels, collision


def snapshot(display: jnp.ndarray) -> np.ndarray:
    """Host-side copy of the display for a rendering frontend."""
    return np.array(display, dtype=np.bool_)
