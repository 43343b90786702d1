"""CHIP-8 display operations."""

import jax
import jax.numpy as jnp
from chip8vm.state import EmulatorState
from chip8vm.decode import DecodedInstruction
from chip8vm.constants import MEMORY_SIZE, MAX_SPRITE_HEIGHT, FLAG_REGISTER
from chip8vm.faults import FaultKind, record_fault
from chip8vm.framebuffer import draw_sprite


def execute_display(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """DXYN - Draw sprite at (VX, VY) with height N, VF = collision."""
    base = jnp.astype(state.I, jnp.int32)
    last_row = base + jnp.astype(instruction.n, jnp.int32) - 1
    out_of_bounds = (instruction.n > 0) & (last_row >= MEMORY_SIZE)

    def draw(state):
        sprite = jnp.take(state.memory, base + jnp.arange(MAX_SPRITE_HEIGHT), mode="clip")
        display, collision = draw_sprite(
            state.display,
            sprite,
            state.V[instruction.x],
            state.V[instruction.y],
            instruction.n,
            clip=state.quirks.clip_sprites,
        )
        return state.replace(
            display=display,
            V=state.V.at[FLAG_REGISTER].set(jnp.astype(collision, jnp.uint8)),
        )

    return jax.lax.cond(
        out_of_bounds,
        lambda state: record_fault(state, True, FaultKind.MEMORY_ACCESS, last_row),
        draw,
        state
    )
