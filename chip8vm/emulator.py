"""Main CHIP-8 emulator execution engine."""

from functools import partial
from typing import Optional

import jax
import jax.lax
import jax.numpy as jnp
from chip8vm.state import EmulatorState, MachineStatus
from chip8vm.decode import decode
from chip8vm.constants import PROGRAM_START, MEMORY_SIZE, MAX_PROGRAM_SIZE
from chip8vm.faults import FaultKind, LoadFault, record_fault
from chip8vm.logging import scan_with_progress
from chip8vm.instructions.system import execute_system_instruction
from chip8vm.instructions.control_flow import (
    execute_jump, execute_call, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register,
    execute_skip_if_not_equal_register, execute_jump_with_offset_vx,
    execute_jump_with_offset_v0, execute_skip_if_key
)
from chip8vm.instructions.alu import execute_alu_operation
from chip8vm.instructions.memory import execute_set, execute_add, execute_set_index, execute_random
from chip8vm.instructions.display import execute_display
from chip8vm.instructions.misc import execute_misc_instruction, resume_key_wait


def execute(state: EmulatorState, instruction: int) -> EmulatorState:
    """Execute single CHIP-8 instruction.

    PC is expected to point past the instruction already, as left by ``fetch``.
    """
    decoded_instruction = decode(instruction)

    return jax.lax.switch(
        decoded_instruction.opcode,
        [
            execute_system_instruction,
            execute_jump,
            execute_call,
            execute_skip_if_equal_immediate,
            execute_skip_if_not_equal_immediate,
            execute_skip_if_equal_register,
            execute_set,
            execute_add,
            execute_alu_operation,
            execute_skip_if_not_equal_register,
            execute_set_index,
            execute_jump_with_offset_vx if state.quirks.jump_with_vx else execute_jump_with_offset_v0,
            execute_random,
            execute_display,
            execute_skip_if_key,
            execute_misc_instruction,
        ],
        state, decoded_instruction
    )


def _pack_u16(high: jnp.uint8, low: jnp.uint8) -> jnp.uint16:
    """Pack two bytes into uint16."""
    return (high.astype(jnp.uint16) << 8) | low.astype(jnp.uint16)


def fetch(state: EmulatorState) -> tuple[EmulatorState, jnp.uint16]:
    """Fetch next instruction from memory.

    A PC whose second byte falls outside memory records a fetch fault and
    leaves PC where it was.
    """
    pc = jnp.astype(state.pc, jnp.int32)
    out_of_bounds = pc + 1 >= MEMORY_SIZE
    instruction = _pack_u16(
        jnp.take(state.memory, pc, mode="clip"),
        jnp.take(state.memory, pc + 1, mode="clip"),
    )
    state = record_fault(state, out_of_bounds, FaultKind.FETCH_OUT_OF_BOUNDS, pc)
    return state.replace(pc=jnp.where(out_of_bounds, state.pc, state.pc + 2)), instruction


def _run(state: EmulatorState) -> EmulatorState:
    """Fetch and execute, noting which instruction faulted."""
    instruction_pc = state.pc
    state, instruction = fetch(state)

    def run_instruction(state):
        state = execute(state, instruction)
        faulted = state.fault != FaultKind.NONE
        return state.replace(
            fault_pc=jnp.where(faulted, instruction_pc, state.fault_pc),
            fault_instruction=jnp.where(faulted, instruction, state.fault_instruction),
        )

    def fetch_failed(state):
        return state.replace(fault_pc=instruction_pc)

    return jax.lax.cond(state.fault == FaultKind.NONE, run_instruction, fetch_failed, state)


def step(state: EmulatorState) -> EmulatorState:
    """Advance the machine by one cycle.

    Idle and halted machines are left untouched, a machine waiting on FX0A
    re-checks the keypad instead of fetching.
    """
    return jax.lax.switch(
        jnp.astype(state.status, jnp.int32),
        [
            lambda s: s,
            _run,
            resume_key_wait,
            lambda s: s,
        ],
        state
    )


def tick(state: EmulatorState) -> EmulatorState:
    """Decrement delay and sound timers toward zero. Call at 60 Hz."""
    return state.replace(
        delay_timer=jnp.where(state.delay_timer > 0, state.delay_timer - 1, state.delay_timer),
        sound_timer=jnp.where(state.sound_timer > 0, state.sound_timer - 1, state.sound_timer),
    )


def run_instruction(state, _):
    state = step(state)
    return state, None


@partial(jax.jit, static_argnums=1)
def run_n_instructions(state: EmulatorState, n: int) -> EmulatorState:
    """Run ``n`` engine steps. Stops making progress once halted."""
    state, _ = jax.lax.scan(run_instruction, state, length=n)
    return state


@partial(jax.jit, static_argnums=1)
def run_frame(state: EmulatorState, instructions_per_frame: int) -> EmulatorState:
    """Run one frame: ``instructions_per_frame`` steps followed by one timer tick."""
    state, _ = jax.lax.scan(run_instruction, state, length=instructions_per_frame)
    return tick(state)


@partial(jax.jit, static_argnums=(1, 2))
def run_with_progress(state: EmulatorState, n: int, desc: Optional[str] = None) -> EmulatorState:
    """Like ``run_n_instructions`` but reports progress through a tqdm bar."""

    @scan_with_progress(n, desc=desc or f"Running ({n:,} instructions)")
    def body(state, _):
        return step(state), None

    state, _ = jax.lax.scan(body, state, jnp.arange(n))
    return state


def load_program(state: EmulatorState, program: bytes) -> EmulatorState:
    """Copy a program image into memory at 0x200 and start the machine."""
    if len(program) > MAX_PROGRAM_SIZE:
        raise LoadFault(pc=PROGRAM_START, address=PROGRAM_START + len(program))

    rom_array = jnp.array(list(program), dtype=jnp.uint8)
    new_memory = state.memory.at[PROGRAM_START:PROGRAM_START + len(program)].set(rom_array)
    return state.replace(
        memory=new_memory,
        pc=jnp.asarray(PROGRAM_START, dtype=jnp.uint16),
        status=jnp.asarray(MachineStatus.RUNNING, dtype=jnp.uint8),
    )


def read_rom(filename: str) -> bytes:
    """Read a program image from disk."""
    with open(filename, 'rb') as f:
        return f.read()


def load_rom(state: EmulatorState, filename: str) -> EmulatorState:
    """Load ROM data into CHIP-8 memory starting at 0x200."""
    return load_program(state, read_rom(filename))
