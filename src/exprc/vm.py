"""
Reference Stack-Machine Interpreter
===================================

Executes the x86-64 instruction subset emitted by the code generator,
so generated code can be checked without an assembler or linker.

Machine Model
-------------
- 64-bit registers: RAX, RDI, RDX (AL is the low byte of RAX)
- Flags: ZF, SF, OF, CF, set by CMP exactly as x86 does
- An unbounded operand stack of 64-bit values

All arithmetic wraps at 64 bits (two's complement), as on hardware.
IDIV faults on a zero divisor or a quotient that does not fit, where
the CPU would raise #DE.

Supported Instructions
----------------------
push imm|reg, pop reg, add, sub, imul, cqo, idiv, cmp,
sete, setne, setl, setle, movzb, ret

Example
-------
>>> from exprc.compiler import compile_expression
>>> from exprc.vm import run_assembly
>>> run_assembly(compile_expression("(1+2)*3 == 9"))
1
"""

import logging
from dataclasses import dataclass, field
from enum import IntFlag
from typing import Callable, Iterable, Optional

from exprc.codegen import Instruction
from exprc.errors import StackMachineError

logger = logging.getLogger(__name__)


MASK64 = (1 << 64) - 1
SIGN64 = 1 << 63

REGISTERS = ("rax", "rdi", "rdx")


def to_signed(value: int) -> int:
    """Interpret a 64-bit pattern as a signed integer."""
    value &= MASK64
    return value - (1 << 64) if value & SIGN64 else value


class Flags(IntFlag):
    """Subset of RFLAGS written by CMP."""
    CF = 0x001  # Carry (unsigned borrow)
    ZF = 0x040  # Zero
    SF = 0x080  # Sign
    OF = 0x800  # Overflow


@dataclass
class MachineState:
    """
    Complete machine state.

    Register values are stored as unsigned 64-bit patterns.
    """
    rax: int = 0
    rdi: int = 0
    rdx: int = 0
    flags: int = 0
    stack: list[int] = field(default_factory=list)
    halted: bool = False


class StackMachine:
    """
    Interpreter for generated stack-machine code.

    Instrumentation:
        on_instruction(index, instruction) -> bool is called before each
        instruction executes; returning False stops execution.

    Example:
        >>> vm = StackMachine()
        >>> vm.evaluate([Instruction("push", ("7",))])
        7
    """

    def __init__(self):
        self.state = MachineState()
        self.on_instruction: Optional[Callable[[int, Instruction], bool]] = None

    def reset(self) -> None:
        """Clear registers, flags and stack."""
        self.state = MachineState()

    # ========================================
    # Register Access
    # ========================================

    def read_register(self, name: str) -> int:
        """Return a register as an unsigned 64-bit pattern."""
        if name == "al":
            return self.state.rax & 0xFF
        if name not in REGISTERS:
            raise StackMachineError(f"unknown register '{name}'")
        return getattr(self.state, name)

    def write_register(self, name: str, value: int) -> None:
        if name == "al":
            self.state.rax = (self.state.rax & ~0xFF & MASK64) | (value & 0xFF)
            return
        if name not in REGISTERS:
            raise StackMachineError(f"unknown register '{name}'")
        setattr(self.state, name, value & MASK64)

    @property
    def stack_depth(self) -> int:
        return len(self.state.stack)

    def _operand_value(self, operand: str) -> int:
        """Value of a register or immediate operand."""
        if operand in REGISTERS or operand == "al":
            return self.read_register(operand)
        try:
            return int(operand, 0) & MASK64
        except ValueError:
            raise StackMachineError(f"invalid operand '{operand}'") from None

    # ========================================
    # Stack Operations
    # ========================================

    def _push(self, value: int) -> None:
        self.state.stack.append(value & MASK64)

    def _pop(self) -> int:
        if not self.state.stack:
            raise StackMachineError("pop from empty stack")
        return self.state.stack.pop()

    # ========================================
    # Flag Helpers
    # ========================================

    def _flag(self, flag: Flags) -> bool:
        return bool(self.state.flags & flag)

    def _compare(self, a: int, b: int) -> None:
        """Set flags as CMP a, b does (computes a - b and discards it)."""
        result = (a - b) & MASK64
        flags = 0
        if result == 0:
            flags |= Flags.ZF
        if result & SIGN64:
            flags |= Flags.SF
        if a < b:
            flags |= Flags.CF
        # Signed overflow: operands of different sign, result sign differs from a
        if ((a ^ b) & (a ^ result)) & SIGN64:
            flags |= Flags.OF
        self.state.flags = flags

    def _condition(self, mnemonic: str) -> bool:
        less = self._flag(Flags.SF) != self._flag(Flags.OF)
        match mnemonic:
            case "sete":
                return self._flag(Flags.ZF)
            case "setne":
                return not self._flag(Flags.ZF)
            case "setl":
                return less
            case "setle":
                return less or self._flag(Flags.ZF)
        raise StackMachineError(f"unknown condition '{mnemonic}'")

    # ========================================
    # Instruction Execution
    # ========================================

    def step(self, instruction: Instruction) -> None:
        """Execute a single instruction."""
        ops = instruction.operands
        match instruction.mnemonic:
            case "push":
                self._push(self._operand_value(ops[0]))
            case "pop":
                self.write_register(ops[0], self._pop())
            case "add":
                self.write_register(ops[0], self.read_register(ops[0]) + self._operand_value(ops[1]))
            case "sub":
                self.write_register(ops[0], self.read_register(ops[0]) - self._operand_value(ops[1]))
            case "imul":
                product = to_signed(self.read_register(ops[0])) * to_signed(self._operand_value(ops[1]))
                self.write_register(ops[0], product)
            case "cqo":
                self.state.rdx = MASK64 if self.state.rax & SIGN64 else 0
            case "idiv":
                self._idiv(self._operand_value(ops[0]))
            case "cmp":
                self._compare(self.read_register(ops[0]), self._operand_value(ops[1]))
            case "sete" | "setne" | "setl" | "setle":
                self.write_register(ops[0], 1 if self._condition(instruction.mnemonic) else 0)
            case "movzb":
                self.write_register(ops[0], self._operand_value(ops[1]) & 0xFF)
            case "ret":
                self.state.halted = True
            case _:
                raise StackMachineError(f"unsupported instruction '{instruction.mnemonic}'")

    def _idiv(self, divisor: int) -> None:
        """Signed divide RDX:RAX by divisor; quotient to RAX, remainder to RDX."""
        divisor = to_signed(divisor)
        if divisor == 0:
            raise StackMachineError("division by zero")

        dividend = (to_signed(self.state.rdx) << 64) | self.state.rax
        # Truncate toward zero, as IDIV does
        quotient = abs(dividend) // abs(divisor)
        if (dividend < 0) != (divisor < 0):
            quotient = -quotient
        remainder = dividend - quotient * divisor

        if not -SIGN64 <= quotient < SIGN64:
            raise StackMachineError("quotient overflow")

        self.state.rax = quotient & MASK64
        self.state.rdx = remainder & MASK64

    def execute(self, program: Iterable[Instruction]) -> int:
        """
        Execute instructions in order until RET or the end of the list.

        Returns:
            Number of instructions executed
        """
        count = 0
        for index, instruction in enumerate(program):
            if self.state.halted:
                break
            if self.on_instruction is not None:
                if not self.on_instruction(index, instruction):
                    break
            try:
                self.step(instruction)
            except StackMachineError as e:
                raise StackMachineError(e.message, index) from None
            count += 1

        logger.debug(f"Executed {count} instructions, stack depth {self.stack_depth}")
        return count

    def run(self, program: Iterable[Instruction]) -> int:
        """
        Execute a complete program (body plus trailer) and return RAX.

        Returns:
            Signed value of RAX when the program returns
        """
        self.reset()
        self.execute(program)
        return to_signed(self.state.rax)

    def evaluate(self, instructions: Iterable[Instruction]) -> int:
        """
        Execute a generated body and pop its single result.

        Raises:
            StackMachineError: If the body does not leave exactly one value
        """
        self.reset()
        self.execute(instructions)
        if self.stack_depth != 1:
            raise StackMachineError(
                f"expected exactly one value on the stack, found {self.stack_depth}"
            )
        return to_signed(self._pop())


# =============================================================================
# Assembly Text Support
# =============================================================================

def parse_assembly(text: str) -> list[Instruction]:
    """
    Extract instructions from assembly text.

    Directives (".intel_syntax", ".globl") and labels ("main:") are skipped.
    """
    instructions = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith(".") or stripped.endswith(":"):
            continue
        instructions.append(Instruction.parse(stripped))
    return instructions


def run_assembly(text: str) -> int:
    """Run compiled assembly text and return the value left in RAX."""
    return StackMachine().run(parse_assembly(text))
