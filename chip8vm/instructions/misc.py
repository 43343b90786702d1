"""CHIP-8 miscellaneous instructions (Fxxx)."""

import jax
import jax.lax
import jax.numpy as jnp
from chip8vm.state import EmulatorState, MachineStatus
from chip8vm.decode import DecodedInstruction
from chip8vm.constants import FONT_START, FONT_HEIGHT, MEMORY_SIZE, NUM_REGISTERS, FLAG_REGISTER
from chip8vm.faults import FaultKind, record_fault
from chip8vm.instructions.system import execute_unknown_opcode


def execute_get_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX07 - Set VX to delay timer value."""
    return state.replace(V=state.V.at[instruction.x].set(state.delay_timer))


def execute_set_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX15 - Set delay timer to VX."""
    return state.replace(delay_timer=state.V[instruction.x])


def execute_set_sound_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX18 - Set sound timer to VX."""
    return state.replace(sound_timer=state.V[instruction.x])


def execute_add_to_index(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX1E - Add VX to I register (16-bit wraparound)."""
    total = jnp.astype(state.I, jnp.int32) + jnp.astype(state.V[instruction.x], jnp.int32)
    state = state.replace(I=jnp.astype(total & 0xFFFF, jnp.uint16))

    if not state.quirks.index_overflow_flag:
        return state
    overflow_flag = jnp.astype(state.I > 0xFFF, jnp.uint8)
    return state.replace(V=state.V.at[FLAG_REGISTER].set(overflow_flag))


def execute_wait_for_key(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX0A - Wait for key press.

    Only records the wait; the engine polls the keypad on following steps
    (see ``resume_key_wait``). Keys already held now do not count.
    """
    return state.replace(
        status=jnp.uint8(MachineStatus.WAITING_FOR_KEY),
        wait_register=jnp.astype(instruction.x, jnp.uint8),
        wait_keys=state.keypad,
    )


def resume_key_wait(state: EmulatorState) -> EmulatorState:
    """Finish a pending FX0A once a key goes down, otherwise keep waiting."""
    newly_pressed = state.keypad & ~state.wait_keys

    def key_pressed_action(state):
        pressed_key = jnp.astype(jnp.argmax(newly_pressed), jnp.uint8)
        return state.replace(
            V=state.V.at[state.wait_register].set(pressed_key),
            status=jnp.uint8(MachineStatus.RUNNING),
            wait_keys=jnp.zeros_like(state.wait_keys),
        )

    def wait_action(state):
        return state.replace(wait_keys=state.keypad)

    return jax.lax.cond(jnp.any(newly_pressed), key_pressed_action, wait_action, state)


def execute_font_character(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX29 - Set I to location of sprite for digit VX (low nibble)."""
    digit = jnp.astype(state.V[instruction.x] & 0xF, jnp.uint16)
    return state.replace(I=FONT_START + digit * FONT_HEIGHT)


def execute_bcd_conversion(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX33 - Store BCD representation of VX at I, I+1, I+2."""
    value = state.V[instruction.x]
    indices = jnp.astype(state.I, jnp.int32) + jnp.arange(3)

    def store(state):
        digits = jnp.array([
            value // 100,
            (value // 10) % 10,
            value % 10
        ], dtype=jnp.uint8)
        return state.replace(memory=state.memory.at[indices].set(digits))

    return jax.lax.cond(
        indices[-1] >= MEMORY_SIZE,
        lambda state: record_fault(state, True, FaultKind.MEMORY_ACCESS, indices[-1]),
        store,
        state
    )


def _register_block(state: EmulatorState, instruction: DecodedInstruction):
    """Memory indices for V0..VX starting at I, the register mask and the last index."""
    register_mask = jnp.arange(NUM_REGISTERS) <= instruction.x
    base_indices = jnp.astype(state.I, jnp.int32) + jnp.arange(NUM_REGISTERS)
    last_index = jnp.astype(state.I, jnp.int32) + jnp.astype(instruction.x, jnp.int32)
    return base_indices, register_mask, last_index


def _advance_index(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    if not state.quirks.memory_increments_index:
        return state
    return state.replace(I=state.I + jnp.astype(instruction.x, jnp.uint16) + 1)


def execute_store_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX55 - Store V0 through VX in memory starting at I."""
    base_indices, register_mask, last_index = _register_block(state, instruction)

    def store(state):
        current_memory_values = jnp.take(state.memory, base_indices, mode="clip")
        new_memory_values = jnp.where(register_mask, state.V, current_memory_values)
        new_memory = state.memory.at[base_indices].set(new_memory_values, mode="drop")
        return _advance_index(state.replace(memory=new_memory), instruction)

    return jax.lax.cond(
        last_index >= MEMORY_SIZE,
        lambda state: record_fault(state, True, FaultKind.MEMORY_ACCESS, last_index),
        store,
        state
    )


def execute_load_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX65 - Load V0 through VX from memory starting at I."""
    base_indices, register_mask, last_index = _register_block(state, instruction)

    def load(state):
        memory_values = jnp.take(state.memory, base_indices, mode="clip")
        new_V = jnp.where(register_mask, memory_values, state.V)
        return _advance_index(state.replace(V=new_V), instruction)

    return jax.lax.cond(
        last_index >= MEMORY_SIZE,
        lambda state: record_fault(state, True, FaultKind.MEMORY_ACCESS, last_index),
        load,
        state
    )


def execute_misc_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """Dispatch misc instructions using arithmetic switch."""
    nn = jnp.asarray(instruction.nn)
    is_0x07 = nn == 0x07
    is_0x0A = nn == 0x0A
    is_0x15 = nn == 0x15
    is_0x18 = nn == 0x18
    is_0x1E = nn == 0x1E
    is_0x29 = nn == 0x29
    is_0x33 = nn == 0x33
    is_0x55 = nn == 0x55
    is_0x65 = nn == 0x65

    switch_index = (
        is_0x07 * 0 +
        is_0x0A * 1 +
        is_0x15 * 2 +
        is_0x18 * 3 +
        is_0x1E * 4 +
        is_0x29 * 5 +
        is_0x33 * 6 +
        is_0x55 * 7 +
        is_0x65 * 8 +
        (~(is_0x07 | is_0x0A | is_0x15 | is_0x18 | is_0x1E | is_0x29 | is_0x33 | is_0x55 | is_0x65)) * 9
    )

    return jax.lax.switch(
        switch_index,
        [
            execute_get_delay_timer,
            execute_wait_for_key,
            execute_set_delay_timer,
            execute_set_sound_timer,
            execute_add_to_index,
            execute_font_character,
            execute_bcd_conversion,
            execute_store_registers,
            execute_load_registers,
            execute_unknown_opcode,
        ],
        state, instruction
    )
