"""
x86-64 Stack-Machine Code Generator
===================================

This module generates x86-64 assembly (Intel syntax) from the expression
AST. It is the back end of the compiler.

Code Generation Strategy
------------------------
The generator uses the machine stack as an implicit operand stack and
walks the tree once, in post-order:

1. A literal pushes its value
2. A binary operation emits its left subtree, then its right subtree,
   so the right operand is on top of the stack
3. It pops the right operand into RDI and the left operand into RAX,
   applies the operation, and pushes RAX

Every subtree therefore leaves exactly one new value on the stack, and
the whole expression leaves its result as the only item.

Register Usage
--------------
| Register | Usage                                   |
|----------|-----------------------------------------|
| RAX      | Left operand (operand1), result         |
| RDI      | Right operand (operand2)                |
| RDX      | High half of the dividend for IDIV      |
| AL       | Comparison result before zero-extension |

Operation Encoding
------------------
| Kind | Instructions                            |
|------|-----------------------------------------|
| ADD  | add rax, rdi                            |
| SUB  | sub rax, rdi                            |
| MUL  | imul rax, rdi                           |
| DIV  | cqo / idiv rdi   (quotient in RAX)      |
| EQ   | cmp rax, rdi / sete al / movzb rax, al  |
| NE   | cmp rax, rdi / setne al / movzb rax, al |
| LT   | cmp rax, rdi / setl al / movzb rax, al  |
| LE   | cmp rax, rdi / setle al / movzb rax, al |

Usage
-----
>>> from exprc.parser import parse_source
>>> from exprc.codegen import generate
>>> for instruction in generate(parse_source("1+2")):
...     print(instruction)
  push 1
  push 2
  pop rdi
  pop rax
  add rax, rdi
  push rax
"""

import logging
from dataclasses import dataclass

from exprc.ast import Expression, Literal, BinaryOp, NodeKind, postorder

logger = logging.getLogger(__name__)


# =============================================================================
# Instruction Representation
# =============================================================================

@dataclass(frozen=True)
class Instruction:
    """
    A single target instruction.

    Attributes:
        mnemonic: Instruction name (e.g. "push", "idiv")
        operands: Operand texts in Intel order (destination first)
    """
    mnemonic: str
    operands: tuple[str, ...] = ()

    def __str__(self) -> str:
        if self.operands:
            return f"  {self.mnemonic} {', '.join(self.operands)}"
        return f"  {self.mnemonic}"

    @classmethod
    def parse(cls, line: str) -> "Instruction":
        """
        Read an instruction back from its text form.

        >>> Instruction.parse("  add rax, rdi")
        Instruction(mnemonic='add', operands=('rax', 'rdi'))
        """
        text = line.strip()
        mnemonic, _, rest = text.partition(" ")
        operands = tuple(op.strip() for op in rest.split(",")) if rest.strip() else ()
        return cls(mnemonic, operands)


# Operation bodies emitted between the operand pops and the result push
OPERATION_SEQUENCES: dict[NodeKind, tuple[Instruction, ...]] = {
    NodeKind.ADD: (Instruction("add", ("rax", "rdi")),),
    NodeKind.SUB: (Instruction("sub", ("rax", "rdi")),),
    NodeKind.MUL: (Instruction("imul", ("rax", "rdi")),),
    # Sign-extend RAX into RDX:RAX, then divide; quotient lands in RAX
    NodeKind.DIV: (
        Instruction("cqo"),
        Instruction("idiv", ("rdi",)),
    ),
    NodeKind.EQ: (
        Instruction("cmp", ("rax", "rdi")),
        Instruction("sete", ("al",)),
        Instruction("movzb", ("rax", "al")),
    ),
    NodeKind.NE: (
        Instruction("cmp", ("rax", "rdi")),
        Instruction("setne", ("al",)),
        Instruction("movzb", ("rax", "al")),
    ),
    NodeKind.LT: (
        Instruction("cmp", ("rax", "rdi")),
        Instruction("setl", ("al",)),
        Instruction("movzb", ("rax", "al")),
    ),
    NodeKind.LE: (
        Instruction("cmp", ("rax", "rdi")),
        Instruction("setle", ("al",)),
        Instruction("movzb", ("rax", "al")),
    ),
}


# =============================================================================
# Code Generator Class
# =============================================================================

class CodeGenerator:
    """
    Generates stack-machine instructions from an expression AST.

    The tree produced by the parser only ever contains Literal and
    BinaryOp nodes with known kinds, so generation cannot fail. Nodes
    are visited with an explicit post-order stack, so left-deep chains
    of any length compile.
    """

    def __init__(self):
        self._output: list[Instruction] = []

    def generate(self, root: Expression) -> list[Instruction]:
        """
        Generate instructions for a complete expression.

        Args:
            root: The root AST node

        Returns:
            Instructions that leave the expression's value as the sole
            new item on the stack
        """
        self._output = []
        for node in postorder(root):
            if isinstance(node, BinaryOp):
                self._emit_operation(node)
            else:
                self._emit_literal(node)
        logger.debug(f"Generated {len(self._output)} instructions")
        return list(self._output)

    def _emit(self, mnemonic: str, *operands: str) -> None:
        self._output.append(Instruction(mnemonic, operands))

    def _emit_literal(self, node: Literal) -> None:
        self._emit("push", str(node.value))

    def _emit_operation(self, node: BinaryOp) -> None:
        """Both operands are already on the stack, right one on top."""
        self._emit("pop", "rdi")
        self._emit("pop", "rax")
        self._output.extend(OPERATION_SEQUENCES[node.kind])
        self._emit("push", "rax")


# =============================================================================
# Convenience Functions
# =============================================================================

def generate(root: Expression) -> list[Instruction]:
    """Generate instructions for an expression tree."""
    return CodeGenerator().generate(root)
