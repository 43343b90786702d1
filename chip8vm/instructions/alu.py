"""CHIP-8 ALU operations (8xxx)."""

import jax
import jax.lax
import jax.numpy as jnp
from chip8vm.constants import FLAG_REGISTER
from chip8vm.state import EmulatorState
from chip8vm.decode import DecodedInstruction
from chip8vm.instructions.system import execute_unknown_opcode

NO_FLAG = jnp.zeros((), dtype=jnp.uint8)


def alu_set(vx: int, vy: int) -> tuple[int, int]:
    """8XY0 - Set: VX = VY."""
    return vy, NO_FLAG


def alu_or(vx: int, vy: int) -> tuple[int, int]:
    """8XY1 - Binary OR: VX |= VY."""
    return vx | vy, NO_FLAG


def alu_and(vx: int, vy: int) -> tuple[int, int]:
    """8XY2 - Binary AND: VX &= VY."""
    return vx & vy, NO_FLAG


def alu_xor(vx: int, vy: int) -> tuple[int, int]:
    """8XY3 - Logical XOR: VX ^= VY."""
    return vx ^ vy, NO_FLAG


def alu_add(vx: int, vy: int) -> tuple[int, int]:
    """8XY4 - Add: VX += VY, set carry flag."""
    result = jnp.astype(vx, jnp.int32) + jnp.astype(vy, jnp.int32)
    carry = jnp.astype(result > 255, jnp.uint8)
    return jnp.astype(result & 0xFF, jnp.uint8), carry


def alu_sub_xy(vx: int, vy: int) -> tuple[int, int]:
    """8XY5 - Subtract: VX -= VY, VF = 1 when no borrow."""
    no_borrow = jnp.astype(vx >= vy, jnp.uint8)
    return vx - vy, no_borrow


def alu_shift_right(vx: int, vy: int) -> tuple[int, int]:
    """8XY6 - Shift right: VX >>= 1, VF = bit shifted out."""
    return vx >> 1, vx & 1


def alu_sub_yx(vx: int, vy: int) -> tuple[int, int]:
    """8XY7 - Subtract: VX = VY - VX, VF = 1 when no borrow."""
    no_borrow = jnp.astype(vy >= vx, jnp.uint8)
    return vy - vx, no_borrow


def alu_shift_left(vx: int, vy: int) -> tuple[int, int]:
    """8XYE - Shift left: VX <<= 1, VF = bit shifted out."""
    return vx << 1, vx >> 7


def execute_alu_operation(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """8XYN - ALU operations dispatcher.

    The result lands in VX first and the flag is written to VF afterwards, so
    with X = F the flag wins.
    """
    vx = state.V[instruction.x]
    vy = state.V[instruction.y]
    quirks = state.quirks

    def _alu_shift_right(vx, vy):
        return alu_shift_right(vy if quirks.shift_uses_vy else vx, vy)

    def _alu_shift_left(vx, vy):
        return alu_shift_left(vy if quirks.shift_uses_vy else vx, vy)

    # 0-7 and E are defined; writes_flag marks operations that touch VF
    valid_ops = jnp.array([1, 1, 1, 1, 1, 1, 1, 1, 0, 0, 0, 0, 0, 0, 1, 0], dtype=bool)
    logic_flag = quirks.logic_resets_flag
    writes_flag = jnp.array(
        [0, logic_flag, logic_flag, logic_flag, 1, 1, 1, 1, 0, 0, 0, 0, 0, 0, 1, 0], dtype=bool
    )

    def apply(state):
        result, vf = jax.lax.switch(
            # Map 0,1,2,3,4,5,6,7,14 -> 0,1,2,3,4,5,6,7,8
            jnp.where(instruction.n == 14, 8, instruction.n),
            [alu_set, alu_or, alu_and, alu_xor, alu_add,
             alu_sub_xy, _alu_shift_right, alu_sub_yx, _alu_shift_left],
            vx, vy
        )
        new_V = state.V.at[instruction.x].set(result)
        new_V = new_V.at[FLAG_REGISTER].set(
            jnp.where(writes_flag[instruction.n], vf, new_V[FLAG_REGISTER])
        )
        return state.replace(V=new_V)

    return jax.lax.cond(
        valid_ops[instruction.n],
        apply,
        lambda state: execute_unknown_opcode(state, instruction),
        state
    )
