"""CHIP-8 virtual machine package."""

from chip8vm.state import EmulatorState, StackState, MachineStatus, create_state
from chip8vm.emulator import (
    execute, fetch, step, tick, load_program, load_rom, read_rom,
    run_n_instructions, run_frame, run_with_progress,
)
from chip8vm.decode import DecodedInstruction, decode
from chip8vm.quirks import Quirks, get_quirks, MODERN_QUIRKS, CLASSIC_QUIRKS, SUPERCHIP_QUIRKS
from chip8vm.faults import (
    FaultKind, Chip8Fault, LoadFault, FetchFault, UnknownOpcodeFault,
    StackOverflowFault, StackUnderflowFault, MemoryAccessFault,
    raise_for_fault, fault_from_state,
)
from chip8vm.machine import Chip8
from chip8vm.constants import *
from chip8vm.rendering import chip8_display_to_rgb, create_color_scheme, batch_render

__all__ = [
    "EmulatorState",
    "StackState",
    "MachineStatus",
    "create_state",
    "fetch",
    "execute",
    "step",
    "tick",
    "load_program",
    "load_rom",
    "read_rom",
    "run_n_instructions",
    "run_frame",
    "run_with_progress",
    "DecodedInstruction",
    "decode",
    "Quirks",
    "get_quirks",
    "MODERN_QUIRKS",
    "CLASSIC_QUIRKS",
    "SUPERCHIP_QUIRKS",
    "FaultKind",
    "Chip8Fault",
    "LoadFault",
    "FetchFault",
    "UnknownOpcodeFault",
    "StackOverflowFault",
    "StackUnderflowFault",
    "MemoryAccessFault",
    "raise_for_fault",
    "fault_from_state",
    "Chip8",
    "PROGRAM_START",
    "FONT_START",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
    "MEMORY_SIZE",
    "chip8_display_to_rgb",
    "create_color_scheme",
    "batch_render",
]
