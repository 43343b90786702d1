"""CHIP-8 instruction decoding."""

from chex import dataclass


@dataclass(frozen=True)
class DecodedInstruction:
    """Operand fields of a 16-bit instruction word.

    Every word decodes; whether it names a defined operation is decided by
    the dispatcher. Fields are Python ints or traced scalars depending on
    what was decoded.
    """
    raw: int
    opcode: int  # Instruction family (top nibble)
    x: int       # Register operand (second nibble)
    y: int       # Register operand (third nibble)
    n: int       # 4-bit immediate (low nibble, sprite height)
    nn: int      # 8-bit immediate (low byte)
    nnn: int     # 12-bit address


def decode(instruction: int) -> DecodedInstruction:
    """Split an instruction word into its operand fields."""
    return DecodedInstruction(
        raw=instruction,
        opcode=(instruction >> 12) & 0xF,
        x=(instruction >> 8) & 0xF,
        y=(instruction >> 4) & 0xF,
        n=instruction & 0xF,
        nn=instruction & 0xFF,
        nnn=instruction & 0xFFF,
    )
