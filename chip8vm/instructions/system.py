"""CHIP-8 system instructions (0x0xxx)."""

import jax
import jax.lax
import jax.numpy as jnp
from chip8vm.state import EmulatorState
from chip8vm.decode import DecodedInstruction
from chip8vm.faults import FaultKind, record_fault
from chip8vm.framebuffer import clear
from chip8vm.stack import pop


def instruction_address(state: EmulatorState) -> jnp.ndarray:
    """Address of the instruction being executed (PC already points past it)."""
    return jnp.astype(state.pc, jnp.int32) - 2


def execute_unknown_opcode(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """Any word without a defined operation halts the machine."""
    return record_fault(state, True, FaultKind.UNKNOWN_OPCODE, instruction_address(state))


def execute_clear_screen(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00E0 - Clear display."""
    return state.replace(display=clear(state.display))


def execute_return(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00EE - Return from subroutine."""
    stack, address, underflow = pop(state.stack)
    state = state.replace(stack=stack, pc=jnp.where(underflow, state.pc, address))
    return record_fault(state, underflow, FaultKind.STACK_UNDERFLOW, instruction_address(state))


def execute_system_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """Dispatch system instructions. 0NNN machine routines are not supported."""
    return jax.lax.cond(
        0x00E0 == instruction.raw,
        execute_clear_screen,
        lambda state, instruction: jax.lax.cond(
            0x00EE == instruction.raw,
            execute_return,
            execute_unknown_opcode,
            state, instruction
        ),
        state, instruction
    )
