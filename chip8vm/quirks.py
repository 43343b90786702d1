"""Configurable CHIP-8 compatibility quirks.

Historic interpreters disagree on a handful of instructions. Each
disagreement is a named boolean here so the behavior is chosen
explicitly rather than baked into a handler.
"""

from flax.struct import dataclass


@dataclass(frozen=True)
class Quirks:
    """Interpreter behavior toggles.

    Attributes:
        shift_uses_vy: 8XY6/8XYE shift VY into VX instead of shifting VX in place
        logic_resets_flag: 8XY1/8XY2/8XY3 set VF to 0
        memory_increments_index: FX55/FX65 leave I pointing past the last register
        index_overflow_flag: FX1E sets VF when I goes past 0xFFF
        jump_with_vx: BNNN jumps to NNN + VX (X being the top nibble of NNN) instead of NNN + V0
        clip_sprites: sprite pixels past the right/bottom edge are dropped rather than wrapped
    """
    shift_uses_vy: bool = False
    logic_resets_flag: bool = False
    memory_increments_index: bool = False
    index_overflow_flag: bool = False
    jump_with_vx: bool = False
    clip_sprites: bool = True


MODERN_QUIRKS = Quirks()

CLASSIC_QUIRKS = Quirks(
    shift_uses_vy=True,
    logic_resets_flag=True,
    memory_increments_index=True,
)

SUPERCHIP_QUIRKS = Quirks(jump_with_vx=True)

QUIRK_PRESETS = {
    "modern": MODERN_QUIRKS,
    "classic": CLASSIC_QUIRKS,
    "superchip": SUPERCHIP_QUIRKS,
}


def get_quirks(preset: str = "modern") -> Quirks:
    """Get a predefined quirk set by name.

    Args:
        preset: Preset name ("modern", "classic", "superchip")

    Returns:
        The matching Quirks instance
    """
    if preset not in QUIRK_PRESETS:
        raise ValueError(
            f"Unknown quirk preset '{preset}'. Available: {list(QUIRK_PRESETS.keys())}"
        )

    return QUIRK_PRESETS[preset]
