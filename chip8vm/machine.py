"""Host-side driver around the functional CHIP-8 core.

``Chip8`` owns one ``EmulatorState``, steps it through the jitted engine
and turns recorded faults into exceptions so a frontend can react right
after the call that caused them.
"""

from typing import Optional, Sequence, Union

import jax
import jax.numpy as jnp
import numpy as np

from chip8vm.constants import MEMORY_SIZE, NUM_KEYS, TIMER_FREQUENCY
from chip8vm.emulator import step, tick, run_n_instructions, load_program, read_rom
from chip8vm.faults import Chip8Fault, fault_from_state
from chip8vm.framebuffer import snapshot
from chip8vm.logging import ConsoleLogger
from chip8vm.quirks import Quirks, get_quirks
from chip8vm.state import EmulatorState, MachineStatus, create_state

_jit_step = jax.jit(step)
_jit_tick = jax.jit(tick)


class Chip8:
    """A single CHIP-8 machine driven by a frontend.

    The frontend decides the cadence: call ``cycle`` (or ``run_frame``) as often
    as it wants instructions executed and ``tick`` at 60 Hz. Faults are raised
    from the call that hit them; afterwards the machine stays halted until
    ``reset``.
    """

    def __init__(
        self,
        quirks: Union[str, Quirks] = "modern",
        instruction_frequency: int = 700,
        fps: int = TIMER_FREQUENCY,
        seed: int = 0,
        logger: Optional[ConsoleLogger] = None,
    ):
        """Initialize the machine.

        Args:
            quirks: Quirk preset name or a Quirks instance
            instruction_frequency: Instructions per emulated second (typically 700)
            fps: Frames per second; timers still count down at 60 Hz, so a frame
                applies as many ticks as 60 / fps adds up to
            seed: Seed for the PRNG key feeding CXNN
            logger: Console logger, a default one is created when omitted
        """
        if instruction_frequency <= 0 or fps <= 0:
            raise ValueError(
                f"instruction_frequency and fps must be positive, "
                f"got {instruction_frequency} and {fps}"
            )

        self.quirks = get_quirks(quirks) if isinstance(quirks, str) else quirks
        self.instruction_frequency = instruction_frequency
        self.fps = fps
        self.seed = seed
        self.logger = logger or ConsoleLogger()

        self.program: Optional[bytes] = None
        self._tick_budget = 0
        self.state: EmulatorState = create_state(jax.random.PRNGKey(seed), self.quirks)

    @property
    def instructions_per_frame(self) -> int:
        """Number of instructions executed by ``run_frame``."""
        return max(1, self.instruction_frequency // self.fps)

    @property
    def status(self) -> MachineStatus:
        return MachineStatus(int(self.state.status))

    @property
    def sound_active(self) -> bool:
        """True while the sound timer is non-zero and a tone should play."""
        return int(self.state.sound_timer) > 0

    @property
    def registers(self) -> dict:
        """Host copy of V0..VF, I, PC and both timers."""
        registers = {f"V{i:X}": int(value) for i, value in enumerate(np.asarray(self.state.V))}
        registers.update(
            I=int(self.state.I),
            PC=int(self.state.pc),
            DT=int(self.state.delay_timer),
            ST=int(self.state.sound_timer),
        )
        return registers

    def load(self, program: bytes) -> None:
        """Load a program image and get ready to run it.

        A rejected image leaves an idle machine with no program, not the
        previously loaded one.
        """
        state = create_state(jax.random.PRNGKey(self.seed), self.quirks)
        self._tick_budget = 0
        try:
            self.state = load_program(state, program)
        except Chip8Fault as fault:
            self.state = state
            self.program = None
            self.logger.error(str(fault))
            raise
        self.program = bytes(program)
        self.logger.info(f"Loaded {len(program)} bytes")

    def load_rom(self, filename: str) -> None:
        """Load a program image from disk."""
        rom_data = read_rom(filename)
        self.logger.info(f"Emulating {filename}")
        self.load(rom_data)

    def reset(self) -> None:
        """Discard the machine state and reload the last program, if any."""
        if self.program is None:
            self.state = create_state(jax.random.PRNGKey(self.seed), self.quirks)
            self._tick_budget = 0
        else:
            self.load(self.program)

    def cycle(self) -> MachineStatus:
        """Execute one instruction (or re-check a pending key wait)."""
        self._raise_if_halted()
        if self.logger.is_enabled_for("DEBUG") and self.status == MachineStatus.RUNNING:
            pc = int(self.state.pc)
            if pc + 1 < MEMORY_SIZE:
                word = (int(self.state.memory[pc]) << 8) | int(self.state.memory[pc + 1])
                self.logger.debug(f"pc = {pc:#06x}, opcode = {word:#06x}")
        self.state = _jit_step(self.state)
        self._raise_if_halted()
        return self.status

    def tick(self) -> None:
        """Apply one 60 Hz timer decrement."""
        self.state = _jit_tick(self.state)

    def run_frame(self) -> MachineStatus:
        """Execute one frame worth of instructions, then tick the timers.

        Ticks are budgeted in 1/fps units so the timers drop at 60 Hz whatever
        ``fps`` is: at 30 fps a frame ticks twice, at 120 fps every other
        frame ticks once.
        """
        self._raise_if_halted()
        self.state = run_n_instructions(self.state, self.instructions_per_frame)
        ticks, self._tick_budget = divmod(self._tick_budget + TIMER_FREQUENCY, self.fps)
        for _ in range(ticks):
            self.state = _jit_tick(self.state)
        self._raise_if_halted()
        return self.status

    def set_keys(self, keys: Sequence[bool]) -> None:
        """Replace the whole keypad snapshot (16 booleans, index = key)."""
        keypad = np.asarray(keys, dtype=np.bool_)
        if keypad.shape != (NUM_KEYS,):
            raise ValueError(f"Expected {NUM_KEYS} key states, got shape {keypad.shape}")
        self.state = self.state.replace(keypad=jnp.asarray(keypad))

    def press_key(self, key: int) -> None:
        self._set_key(key, True)

    def release_key(self, key: int) -> None:
        self._set_key(key, False)

    def reset_keyboard(self) -> None:
        self.state = self.state.replace(keypad=jnp.zeros(NUM_KEYS, dtype=jnp.bool_))

    def _set_key(self, key: int, pressed: bool) -> None:
        if not 0 <= key < NUM_KEYS:
            raise ValueError(f"Key must be in 0..{NUM_KEYS - 1}, got {key}")
        self.state = self.state.replace(keypad=self.state.keypad.at[key].set(pressed))
        self.logger.debug(f"key {key:X} {'pressed' if pressed else 'released'}")

    def framebuffer(self) -> np.ndarray:
        """Copy of the display as a (64, 32) boolean array indexed [x, y]."""
        return snapshot(self.state.display)

    def dump_memory(self, start: int = 0, end: int = MEMORY_SIZE) -> str:
        """Hex dump of memory[start:end], 16 bytes per line."""
        if not 0 <= start <= end <= MEMORY_SIZE:
            raise ValueError(f"Invalid memory range {start:#x}..{end:#x}")

        memory = np.asarray(self.state.memory)
        lines = []
        for address in range(start - start % 16, end, 16):
            row = memory[max(address, start):min(address + 16, end)]
            lines.append(f"0x{max(address, start):04X}: " + " ".join(f"{b:02x}" for b in row))
        return "\n".join(lines)

    def _raise_if_halted(self) -> None:
        fault = fault_from_state(self.state)
        if fault is not None:
            self.logger.error(str(fault))
            raise fault
