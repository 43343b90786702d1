"""Tests for fault records, quirk presets, the stack and instruction decoding."""

import jax.numpy as jnp
import pytest
from chip8vm import (
    create_state, decode, get_quirks, raise_for_fault, fault_from_state,
    FaultKind, MachineStatus, Chip8Fault, StackOverflowFault, MemoryAccessFault,
    MODERN_QUIRKS, CLASSIC_QUIRKS, SUPERCHIP_QUIRKS,
)
from chip8vm.faults import record_fault
from chip8vm.stack import push, pop, depth


class TestFaultRecords:

    def test_clean_state_has_no_fault(self, fresh_state):
        assert fault_from_state(fresh_state) is None
        raise_for_fault(fresh_state)

    def test_record_fault_halts(self, fresh_state):
        state = record_fault(fresh_state, True, FaultKind.STACK_OVERFLOW, 0x2FE)

        assert state.status == MachineStatus.HALTED
        assert state.fault == FaultKind.STACK_OVERFLOW
        assert state.fault_address == 0x2FE

    def test_false_condition_records_nothing(self, fresh_state):
        state = record_fault(fresh_state, False, FaultKind.STACK_OVERFLOW, 0x2FE)

        assert state.status == fresh_state.status
        assert state.fault == FaultKind.NONE

    def test_first_fault_wins(self, fresh_state):
        state = record_fault(fresh_state, True, FaultKind.MEMORY_ACCESS, 0x1000)
        state = record_fault(state, True, FaultKind.STACK_UNDERFLOW, 0x300)

        assert state.fault == FaultKind.MEMORY_ACCESS
        assert state.fault_address == 0x1000

    def test_raise_for_fault(self, fresh_state):
        state = record_fault(fresh_state, True, FaultKind.MEMORY_ACCESS, 0x1002)
        state = state.replace(
            fault_pc=jnp.asarray(0x20A, dtype=jnp.uint16),
            fault_instruction=jnp.asarray(0xF255, dtype=jnp.uint16),
        )

        with pytest.raises(MemoryAccessFault) as excinfo:
            raise_for_fault(state)

        fault = excinfo.value
        assert fault.kind == FaultKind.MEMORY_ACCESS
        assert (fault.pc, fault.instruction, fault.address) == (0x20A, 0xF255, 0x1002)
        assert "pc=0x20a" in str(fault)

    def test_fault_classes(self):
        assert issubclass(StackOverflowFault, Chip8Fault)
        assert StackOverflowFault.kind == FaultKind.STACK_OVERFLOW


class TestQuirkPresets:

    def test_presets(self):
        assert get_quirks() == MODERN_QUIRKS
        assert get_quirks("classic") == CLASSIC_QUIRKS
        assert get_quirks("superchip") == SUPERCHIP_QUIRKS

    def test_modern_defaults(self):
        assert not MODERN_QUIRKS.shift_uses_vy
        assert not MODERN_QUIRKS.memory_increments_index
        assert MODERN_QUIRKS.clip_sprites

    def test_unknown_preset(self):
        with pytest.raises(ValueError):
            get_quirks("xo-chip")

    def test_state_carries_quirks(self):
        assert create_state(quirks=CLASSIC_QUIRKS).quirks == CLASSIC_QUIRKS


class TestStack:

    def test_push_pop(self, fresh_state):
        stack, overflow = push(fresh_state.stack, jnp.uint16(0x202))
        assert not overflow
        assert depth(stack) == 1

        stack, address, underflow = pop(stack)
        assert not underflow
        assert address == 0x202
        assert depth(stack) == 0

    def test_overflow_leaves_stack_unchanged(self, fresh_state):
        stack = fresh_state.stack
        for i in range(16):
            stack, overflow = push(stack, jnp.uint16(0x200 + 2 * i))
            assert not overflow

        full, overflow = push(stack, jnp.uint16(0xABC))

        assert overflow
        assert depth(full) == 16
        assert jnp.array_equal(full.data, stack.data)

    def test_underflow(self, fresh_state):
        stack, _, underflow = pop(fresh_state.stack)
        assert underflow
        assert depth(stack) == 0


class TestDecode:

    def test_fields(self):
        instruction = decode(0xD12F)
        assert instruction.opcode == 0xD
        assert instruction.x == 0x1
        assert instruction.y == 0x2
        assert instruction.n == 0xF
        assert instruction.nn == 0x2F
        assert instruction.nnn == 0x12F
        assert instruction.raw == 0xD12F

    @pytest.mark.parametrize("word", [0x0000, 0x5121, 0xFFFF])
    def test_every_word_decodes(self, word):
        assert decode(word).opcode == word >> 12
