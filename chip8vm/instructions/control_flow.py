"""CHIP-8 control flow instructions."""

import jax
import jax.lax
import jax.numpy as jnp
from chip8vm.state import EmulatorState
from chip8vm.decode import DecodedInstruction
from chip8vm.faults import FaultKind, record_fault
from chip8vm.stack import push
from chip8vm.instructions.system import execute_unknown_opcode, instruction_address


def execute_jump(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """1NNN - Jump to address NNN."""
    return state.replace(pc=jnp.astype(instruction.nnn, jnp.uint16))


def execute_call(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """2NNN - Call subroutine at NNN."""
    stack, overflow = push(state.stack, state.pc)
    state = record_fault(state.replace(stack=stack), overflow, FaultKind.STACK_OVERFLOW, instruction_address(state))
    return state.replace(pc=jnp.where(overflow, state.pc, jnp.astype(instruction.nnn, jnp.uint16)))


def make_skip_instruction(condition_fn, valid_fn=None):
    """Factory for skip instructions.

    ``valid_fn`` rejects encodings that share the family nibble but name no
    operation (e.g. 5XY1).
    """
    def skip_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
        def skip(state):
            return jax.lax.cond(
                condition_fn(state, instruction),
                lambda s: s.replace(pc=s.pc + 2),
                lambda s: s,
                state
            )

        if valid_fn is None:
            return skip(state)
        return jax.lax.cond(
            valid_fn(instruction),
            skip,
            lambda s: execute_unknown_opcode(s, instruction),
            state
        )
    return skip_instruction


execute_skip_if_equal_immediate = make_skip_instruction(
    lambda state, inst: state.V[inst.x] == inst.nn
)

execute_skip_if_not_equal_immediate = make_skip_instruction(
    lambda state, inst: state.V[inst.x] != inst.nn
)

execute_skip_if_equal_register = make_skip_instruction(
    lambda state, inst: state.V[inst.x] == state.V[inst.y],
    lambda inst: inst.n == 0
)

execute_skip_if_not_equal_register = make_skip_instruction(
    lambda state, inst: state.V[inst.x] != state.V[inst.y],
    lambda inst: inst.n == 0
)


def execute_jump_with_offset_vx(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """BXNN - Jump to address XNN + VX (SUPER-CHIP behavior)."""
    jump_address = jnp.astype(instruction.nnn, jnp.uint16) + jnp.astype(state.V[instruction.x], jnp.uint16)
    return state.replace(pc=jump_address)


def execute_jump_with_offset_v0(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """BNNN - Jump to address NNN + V0 (original behavior)."""
    jump_address = jnp.astype(instruction.nnn, jnp.uint16) + jnp.astype(state.V[0], jnp.uint16)
    return state.replace(pc=jump_address)


def execute_skip_if_key(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """EX9E/EXA1 - Skip if key pressed/not pressed."""

    key_index = state.V[instruction.x] & 0xF
    key_pressed = state.keypad[key_index]
    is_not_instruction = (instruction.nn == 0xA1)
    condition = key_pressed ^ is_not_instruction
    is_defined = (instruction.nn == 0x9E) | is_not_instruction

    return jax.lax.cond(
        is_defined,
        lambda state: jax.lax.cond(
            condition,
            lambda state: state.replace(pc=state.pc + 2),
            lambda state: state,
            state
        ),
        lambda state: execute_unknown_opcode(state, instruction),
        state
    )
