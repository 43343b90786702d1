"""Turn the display buffer into images for a frontend.

Images are numpy arrays laid out row-major (``[y, x, channel]``), unlike
the ``[x, y]`` display buffer.
"""

from typing import Tuple

import jax.numpy as jnp
import numpy as np

from chip8vm.constants import SCREEN_WIDTH, SCREEN_HEIGHT

Color = Tuple[int, int, int]

# name -> (pixel on, pixel off)
COLOR_SCHEMES = {
    "white": ((255, 255, 255), (0, 0, 0)),
    "classic": ((0, 255, 0), (0, 0, 0)),
    "amber": ((255, 176, 0), (0, 0, 0)),
    "blue": ((0, 255, 255), (0, 0, 64)),
    "retro": ((255, 255, 0), (64, 0, 64)),
}


def create_color_scheme(scheme: str = "white") -> Tuple[Color, Color]:
    """Look up the ``(on_color, off_color)`` pair for a named scheme."""
    try:
        return COLOR_SCHEMES[scheme]
    except KeyError:
        raise ValueError(
            f"Unknown color scheme '{scheme}'. Available: {list(COLOR_SCHEMES)}"
        ) from None


def chip8_display_to_rgb(
    display: jnp.ndarray,
    scale: int = 8,
    on_color: Color = (255, 255, 255),
    off_color: Color = (0, 0, 0),
) -> np.ndarray:
    """Render a display buffer as an RGB image.

    Args:
        display: Boolean display buffer of shape (64, 32), indexed [x, y]
        scale: Size in image pixels of one CHIP-8 pixel
        on_color: RGB color of lit pixels
        off_color: RGB color of dark pixels

    Returns:
        uint8 array of shape (32 * scale, 64 * scale, 3)
    """
    if scale < 1:
        raise ValueError(f"scale must be at least 1, got {scale}")

    pixels = np.asarray(display, dtype=np.bool_)
    if pixels.shape != (SCREEN_WIDTH, SCREEN_HEIGHT):
        raise ValueError(
            f"Expected display shape ({SCREEN_WIDTH}, {SCREEN_HEIGHT}), got {pixels.shape}"
        )

    palette = np.array([off_color, on_color], dtype=np.uint8)
    image = palette[pixels.T.astype(np.intp)]
    return image.repeat(scale, axis=0).repeat(scale, axis=1)


def batch_render(
    displays: jnp.ndarray, scale: int = 4, color_scheme: str = "white", padding: int = 5
) -> np.ndarray:
    """Tile several display buffers into one RGBA image.

    Displays fill a near-square grid row by row. Gaps between tiles and
    unused cells are fully transparent.

    Args:
        displays: Array of shape (batch, 64, 32)
        scale: Size in image pixels of one CHIP-8 pixel
        color_scheme: Name passed to ``create_color_scheme``
        padding: Gap between tiles in image pixels
    """
    displays = np.asarray(displays)
    count = displays.shape[0]
    if count == 0:
        raise ValueError("batch_render needs at least one display")

    on_color, off_color = create_color_scheme(color_scheme)
    cols = int(np.ceil(np.sqrt(count)))
    rows = -(-count // cols)

    tile_h, tile_w = SCREEN_HEIGHT * scale, SCREEN_WIDTH * scale
    canvas = np.zeros(
        (rows * tile_h + (rows - 1) * padding, cols * tile_w + (cols - 1) * padding, 4),
        dtype=np.uint8,
    )

    for i, display in enumerate(displays):
        top = (i // cols) * (tile_h + padding)
        left = (i % cols) * (tile_w + padding)
        tile = canvas[top:top + tile_h, left:left + tile_w]
        tile[..., :3] = chip8_display_to_rgb(display, scale, on_color, off_color)
        tile[..., 3] = 255

    return canvas
