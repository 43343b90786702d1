"""CHIP-8 fault taxonomy.

Inside traced code a fault is data: ``record_fault`` writes it into the
state and halts the machine. On the host ``raise_for_fault`` turns that
record into one of the exceptions below.
"""

from enum import IntEnum
from typing import Optional

import jax.numpy as jnp

from chip8vm.state import EmulatorState, MachineStatus


class FaultKind(IntEnum):
    """Kinds of unrecoverable machine faults."""
    NONE = 0
    LOAD = 1
    FETCH_OUT_OF_BOUNDS = 2
    UNKNOWN_OPCODE = 3
    STACK_OVERFLOW = 4
    STACK_UNDERFLOW = 5
    MEMORY_ACCESS = 6


class Chip8Fault(Exception):
    """Base class for faults that halt the machine."""
    kind = FaultKind.NONE
    description = "machine fault"

    def __init__(self, pc: int = 0, instruction: int = 0, address: int = 0):
        self.pc = pc
        self.instruction = instruction
        self.address = address
        super().__init__(
            f"{self.description} at pc={pc:#05x} "
            f"(instruction={instruction:#06x}, address={address:#05x})"
        )


class LoadFault(Chip8Fault):
    kind = FaultKind.LOAD
    description = "program image does not fit in memory"


class FetchFault(Chip8Fault):
    kind = FaultKind.FETCH_OUT_OF_BOUNDS
    description = "program counter out of memory bounds"


class UnknownOpcodeFault(Chip8Fault):
    kind = FaultKind.UNKNOWN_OPCODE
    description = "unknown opcode"


class StackOverflowFault(Chip8Fault):
    kind = FaultKind.STACK_OVERFLOW
    description = "stack overflow"


class StackUnderflowFault(Chip8Fault):
    kind = FaultKind.STACK_UNDERFLOW
    description = "stack underflow"


class MemoryAccessFault(Chip8Fault):
    kind = FaultKind.MEMORY_ACCESS
    description = "memory access out of bounds"


FAULT_TYPES = {
    cls.kind: cls
    for cls in (LoadFault, FetchFault, UnknownOpcodeFault,
                StackOverflowFault, StackUnderflowFault, MemoryAccessFault)
}


def record_fault(state: EmulatorState, condition, kind: FaultKind, address) -> EmulatorState:
    """Halt the machine with ``kind`` if ``condition`` holds and no fault is recorded yet."""
    first = jnp.asarray(condition, dtype=jnp.bool_) & (state.fault == FaultKind.NONE)
    return state.replace(
        status=jnp.where(first, jnp.uint8(MachineStatus.HALTED), state.status),
        fault=jnp.where(first, jnp.uint8(kind), state.fault),
        fault_address=jnp.where(first, jnp.asarray(address).astype(jnp.int32), state.fault_address),
    )


def fault_from_state(state: EmulatorState) -> Optional[Chip8Fault]:
    """Build the exception matching the recorded fault, or None."""
    kind = FaultKind(int(state.fault))
    if kind == FaultKind.NONE:
        return None
    return FAULT_TYPES[kind](
        pc=int(state.fault_pc),
        instruction=int(state.fault_instruction),
        address=int(state.fault_address),
    )


def raise_for_fault(state: EmulatorState) -> None:
    """Raise the recorded fault, if any."""
    fault = fault_from_state(state)
    if fault is not None:
        raise fault
