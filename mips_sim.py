"""
MIPS Instruction-Set Simulator
============================================================
A cycle-stepped, pure-Python model of a reduced MIPS32 subset.

  Fetch      read one word from the memory image
  Decode     R / I / J shape, field extraction, operand snapshot
  Execute    ALU result, branch condition or effective address
  Update PC  jump, taken branch, jr or fall-through
  Memory     lw / sw against the data window
  Writeback  rd, rt or $ra

Supported: sll srl jr addu subu and or slt | beq bne addiu andi ori lui
lw sw | j jal.  Register $0 is an ordinary register here; writes to it
stick.

Run:
    python3 mips_sim.py                       # runs built-in demo program
    python3 mips_sim.py program.bin           # little-endian binary image
    python3 mips_sim.py --hex program.hex     # one hex word per line
    python3 mips_sim.py -i -r program.bin     # step interactively, dump all registers
"""

from __future__ import annotations
import argparse
import logging
import struct
import sys
from typing import Callable, Iterable, List, NamedTuple, Optional, Tuple

# ─────────────────────────────────────────────────────────────────────────────
# Memory map and encodings
# ─────────────────────────────────────────────────────────────────────────────

TEXT_BASE  = 0x00400000
MAX_INSTRS = 1024          # instruction segment, in words
MAX_DATA   = 3072          # data segment, in words
SP_INIT    = TEXT_BASE + 4 * (MAX_INSTRS + MAX_DATA)

# Loads and stores are only legal inside this window.
DATA_WINDOW_START = 0x00401000
DATA_WINDOW_END   = 0x00404000

REG_SP = 29
REG_RA = 31

# Primary opcodes
OP_RTYPE = 0x00
OP_J     = 0x02
OP_JAL   = 0x03
OP_BEQ   = 0x04
OP_BNE   = 0x05
OP_ADDI  = 0x08
OP_ADDIU = 0x09
OP_ANDI  = 0x0C
OP_ORI   = 0x0D
OP_LUI   = 0x0F
OP_LW    = 0x23
OP_SW    = 0x2B

# R-type function codes
FN_SLL  = 0x00
FN_SRL  = 0x02
FN_JR   = 0x08
FN_ADDU = 0x21
FN_SUBU = 0x23
FN_AND  = 0x24
FN_OR   = 0x25
FN_SLT  = 0x2A

JUMP_OPS      = (OP_J, OP_JAL)
BRANCH_OPS    = (OP_BEQ, OP_BNE)
ZERO_EXT_OPS  = (OP_ANDI, OP_ORI)
MEMORY_OPS    = (OP_LW, OP_SW)
I_TYPE_OPS    = frozenset((OP_BEQ, OP_BNE, OP_ADDI, OP_ADDIU, OP_ANDI,
                           OP_ORI, OP_LUI, OP_LW, OP_SW))
I_WRITES_RT   = frozenset((OP_ADDIU, OP_ANDI, OP_ORI, OP_LUI, OP_LW))

# ─────────────────────────────────────────────────────────────────────────────
# Utility helpers
# ─────────────────────────────────────────────────────────────────────────────

def sign_extend(value: int, bits: int) -> int:
    """Sign-extend a *bits*-wide integer to a full Python int."""
    if value & (1 << (bits - 1)):
        return value - (1 << bits)
    return value

def to_unsigned_32(value: int) -> int:
    """Clamp to unsigned 32-bit."""
    return value & 0xFFFFFFFF

def to_signed_32(value: int) -> int:
    """Interpret an unsigned 32-bit value as signed."""
    v = value & 0xFFFFFFFF
    if v & 0x80000000:
        return v - 0x100000000
    return v

# ─────────────────────────────────────────────────────────────────────────────
# Errors
# ─────────────────────────────────────────────────────────────────────────────

class SimulatorError(Exception):
    """Base for every fatal architectural condition."""

class UnsupportedInstruction(SimulatorError):
    def __init__(self, word: int, message: str = ""):
        self.word = word
        super().__init__(message or f"Unsupported instruction {word:#010x}")

class MemoryAccessFault(SimulatorError):
    def __init__(self, pc: int, address: int):
        self.pc = to_unsigned_32(pc)
        self.address = to_unsigned_32(address)
        super().__init__(f"Memory Access Exception at 0x{self.pc:08x}: "
                         f"address 0x{self.address:08x}")

class ProgramTooLarge(SimulatorError):
    def __init__(self, count: int):
        self.count = count
        super().__init__(f"Program too big: {count} instructions "
                         f"(limit {MAX_INSTRS})")

# ─────────────────────────────────────────────────────────────────────────────
# Decoded instruction record
# ─────────────────────────────────────────────────────────────────────────────

class Shape:
    R = "R"
    I = "I"
    J = "J"


class RFields:
    __slots__ = ("rs", "rt", "rd", "shamt", "funct")

    def __init__(self, rs: int, rt: int, rd: int, shamt: int, funct: int):
        self.rs = rs
        self.rt = rt
        self.rd = rd
        self.shamt = shamt
        self.funct = funct


class IFields:
    """
    I-type fields.  ``imm`` holds the sign-extended immediate, the
    zero-extended immediate (andi/ori) or the absolute branch target
    (beq/bne), always as an unsigned 32-bit value.
    """
    __slots__ = ("rs", "rt", "imm")

    def __init__(self, rs: int, rt: int, imm: int):
        self.rs = rs
        self.rt = rt
        self.imm = imm


class JFields:
    __slots__ = ("target",)

    def __init__(self, target: int):
        self.target = target


class DecodedInstruction:
    """One decoded instruction word, tagged by shape."""

    __slots__ = ("raw", "pc", "op", "shape", "fields")

    def __init__(self, raw: int, pc: int, op: int, shape: str, fields):
        self.raw    = raw
        self.pc     = pc
        self.op     = op
        self.shape  = shape
        self.fields = fields

    def __repr__(self):
        f = self.fields
        if self.shape == Shape.R:
            body = (f"rs={f.rs} rt={f.rt} rd={f.rd} sh={f.shamt} "
                    f"fn={f.funct:#04x}")
        elif self.shape == Shape.I:
            body = f"rs={f.rs} rt={f.rt} imm={f.imm:#010x}"
        else:
            body = f"target={f.target:#010x}"
        return f"Instr({self.shape} op={self.op:#04x} {body})"


class OperandSnapshot(NamedTuple):
    """Register values read at decode time; None where not read."""
    rs: Optional[int] = None
    rt: Optional[int] = None
    rd: Optional[int] = None

# ─────────────────────────────────────────────────────────────────────────────
# Machine state
# ─────────────────────────────────────────────────────────────────────────────

class MachineState:
    """
    Register file, program counter and a flat word-addressed memory image.

    ``memory[0]`` is address ``TEXT_BASE``, ``memory[1]`` is
    ``TEXT_BASE + 4`` and so on.  The image holds the instruction segment
    followed by the data segment and is never resized.
    """

    def __init__(self):
        self.registers: List[int] = [0] * 32
        self.memory: List[int] = [0] * (MAX_INSTRS + MAX_DATA)
        self.pc = TEXT_BASE
        self.program_size = 0
        self.reset()

    def reset(self):
        for k in range(32):
            self.registers[k] = 0
        self.registers[REG_SP] = SP_INIT
        for k in range(len(self.memory)):
            self.memory[k] = 0
        self.pc = TEXT_BASE
        self.program_size = 0

    def load_program(self, instructions: Iterable[int]):
        """Reset, then place instruction words starting at TEXT_BASE."""
        words = [to_unsigned_32(w) for w in instructions]
        if len(words) > MAX_INSTRS:
            raise ProgramTooLarge(len(words))
        self.reset()
        self.memory[:len(words)] = words
        self.program_size = len(words)
        logging.info("loaded %d instructions at %#010x", len(words), TEXT_BASE)

    @property
    def program_end(self) -> int:
        return TEXT_BASE + 4 * self.program_size

    @property
    def image_end(self) -> int:
        return TEXT_BASE + 4 * len(self.memory)

    def past_program(self, address: int) -> bool:
        """True for an addressable word after the last loaded instruction."""
        return self.in_image(address) and address >= self.program_end

    def in_image(self, address: int) -> bool:
        return TEXT_BASE <= address < self.image_end and address % 4 == 0

    def read_word(self, address: int) -> int:
        return self.memory[(address - TEXT_BASE) // 4]

    def write_word(self, address: int, value: int):
        self.memory[(address - TEXT_BASE) // 4] = to_unsigned_32(value)

# ─────────────────────────────────────────────────────────────────────────────
# Fetch
# ─────────────────────────────────────────────────────────────────────────────

def fetch(state: MachineState, address: int) -> int:
    """Return the instruction word at *address*."""
    if not state.in_image(address):
        raise MemoryAccessFault(address, address)
    return state.read_word(address)

# ─────────────────────────────────────────────────────────────────────────────
# Decode
# ─────────────────────────────────────────────────────────────────────────────

def decode(word: int, pc: int, registers: List[int]
           ) -> Tuple[DecodedInstruction, OperandSnapshot]:
    """
    Classify *word* and extract its fields.

    Branch targets are resolved here against *pc*, as are the high bits
    of jump targets.  The operand snapshot carries the register values
    the instruction reads.
    """
    word = to_unsigned_32(word)
    op = (word >> 26) & 0x3F
    rs = (word >> 21) & 0x1F
    rt = (word >> 16) & 0x1F

    if op == OP_RTYPE:
        fields = RFields(rs, rt,
                         rd=(word >> 11) & 0x1F,
                         shamt=(word >> 6) & 0x1F,
                         funct=word & 0x3F)
        decoded = DecodedInstruction(word, pc, op, Shape.R, fields)
        operands = OperandSnapshot(registers[rs], registers[rt],
                                   registers[fields.rd])
    elif op in JUMP_OPS:
        target = ((word & 0x03FFFFFF) << 2) | (pc & 0xF0000000)
        decoded = DecodedInstruction(word, pc, op, Shape.J, JFields(target))
        operands = OperandSnapshot()
    elif op in I_TYPE_OPS:
        imm = word & 0xFFFF
        if op in BRANCH_OPS:
            # target = (imm16 << 2) + pc + 4
            imm = to_unsigned_32((imm << 2) + pc + 4)
        elif op not in ZERO_EXT_OPS:
            imm = to_unsigned_32(sign_extend(imm, 16))
        decoded = DecodedInstruction(word, pc, op, Shape.I,
                                     IFields(rs, rt, imm))
        operands = OperandSnapshot(registers[rs], registers[rt])
    else:
        raise UnsupportedInstruction(
            word, f"Unsupported opcode {op:#04x} in {word:#010x} "
                  f"at {to_unsigned_32(pc):#010x}")

    logging.debug("decode %#010x: %r %r", pc, decoded, operands)
    return decoded, operands

# ─────────────────────────────────────────────────────────────────────────────
# Execute
# ─────────────────────────────────────────────────────────────────────────────

def execute(decoded: DecodedInstruction, operands: OperandSnapshot) -> int:
    """
    Compute the instruction's value as an unsigned 32-bit int.

    Branches return 1/0 for taken/not taken, loads and stores return the
    effective address, jal returns the link address and j/jr return 0.
    """
    f = decoded.fields

    if decoded.shape == Shape.R:
        rs, rt = to_unsigned_32(operands.rs), to_unsigned_32(operands.rt)
        fn = f.funct
        if fn == FN_SLL:
            result = rt << f.shamt
        elif fn == FN_SRL:
            result = rt >> f.shamt
        elif fn == FN_JR:
            result = 0
        elif fn == FN_ADDU:
            result = rs + rt
        elif fn == FN_SUBU:
            result = rs - rt
        elif fn == FN_AND:
            result = rs & rt
        elif fn == FN_OR:
            result = rs | rt
        elif fn == FN_SLT:
            result = 1 if to_signed_32(rs) < to_signed_32(rt) else 0
        else:
            raise UnsupportedInstruction(
                decoded.raw, f"Unsupported function code {fn:#04x} "
                             f"in {decoded.raw:#010x}")

    elif decoded.shape == Shape.I:
        rs, rt = to_unsigned_32(operands.rs), to_unsigned_32(operands.rt)
        op = decoded.op
        if op == OP_BEQ:
            result = 1 if rs == rt else 0
        elif op == OP_BNE:
            result = 1 if rs != rt else 0
        elif op == OP_ADDIU:
            result = rs + f.imm
        elif op == OP_ANDI:
            result = rs & f.imm
        elif op == OP_ORI:
            result = rs | f.imm
        elif op == OP_LUI:
            result = f.imm << 16
        elif op in MEMORY_OPS:
            result = rs + f.imm
        else:
            raise UnsupportedInstruction(
                decoded.raw, f"Unsupported opcode {op:#04x} "
                             f"in {decoded.raw:#010x}")

    else:
        result = decoded.pc + 4 if decoded.op == OP_JAL else 0

    return to_unsigned_32(result)

# ─────────────────────────────────────────────────────────────────────────────
# PC update
# ─────────────────────────────────────────────────────────────────────────────

def next_pc(decoded: DecodedInstruction, result: int, current_pc: int,
            registers: List[int]) -> int:
    """Jump, then taken branch, then jr, then fall-through."""
    if decoded.shape == Shape.J:
        return decoded.fields.target
    if decoded.shape == Shape.I and decoded.op in BRANCH_OPS and result == 1:
        return decoded.fields.imm
    if decoded.shape == Shape.R and decoded.fields.funct == FN_JR:
        # jr always returns through $ra, whatever rs names
        return to_unsigned_32(registers[REG_RA])
    return to_unsigned_32(current_pc + 4)

# ─────────────────────────────────────────────────────────────────────────────
# Memory access
# ─────────────────────────────────────────────────────────────────────────────

def in_data_window(address: int) -> bool:
    return (DATA_WINDOW_START <= address < DATA_WINDOW_END
            and address % 4 == 0)

def access_memory(decoded: DecodedInstruction, value: int,
                  state: MachineState) -> Tuple[int, Optional[int]]:
    """
    Perform lw/sw.  Returns (value, changed_address); every other
    instruction passes *value* through with no changed address.
    """
    if decoded.shape != Shape.I or decoded.op not in MEMORY_OPS:
        return value, None

    if not in_data_window(value):
        raise MemoryAccessFault(decoded.pc, value)

    if decoded.op == OP_LW:
        return state.read_word(value), None

    state.write_word(value, state.registers[decoded.fields.rt])
    return value, value

# ─────────────────────────────────────────────────────────────────────────────
# Writeback
# ─────────────────────────────────────────────────────────────────────────────

def writeback(decoded: DecodedInstruction, value: int,
              registers: List[int]) -> Optional[int]:
    """Commit *value* to the destination register; return its index."""
    if decoded.shape == Shape.R:
        if decoded.fields.funct == FN_JR:
            return None
        dest = decoded.fields.rd
    elif decoded.shape == Shape.I:
        if decoded.op not in I_WRITES_RT:
            return None
        dest = decoded.fields.rt
    else:
        if decoded.op != OP_JAL:
            return None
        dest = REG_RA

    registers[dest] = to_signed_32(value)
    return dest

# ─────────────────────────────────────────────────────────────────────────────
# Cycle driver
# ─────────────────────────────────────────────────────────────────────────────

class CycleRecord(NamedTuple):
    """What one cycle did, for the reporter."""
    pc: int
    word: int
    decoded: DecodedInstruction
    changed_reg: Optional[int]
    changed_mem: Optional[int]
    new_pc: int


class Simulator:
    """
    Owns the machine state and runs it one instruction per cycle:
    fetch, decode, execute, update PC, memory, writeback.

    A cycle either completes or raises before touching the state; the
    new PC is committed last.
    """

    def __init__(self, state: Optional[MachineState] = None):
        self.state = state if state is not None else MachineState()
        self.cycle_count = 0

    def load(self, instructions: Iterable[int]):
        self.state.load_program(instructions)
        self.cycle_count = 0

    def step(self) -> CycleRecord:
        """Execute one instruction."""
        state = self.state
        pc = state.pc

        word = fetch(state, pc)
        decoded, operands = decode(word, pc, state.registers)
        result = execute(decoded, operands)
        new_pc = next_pc(decoded, result, pc, state.registers)
        value, changed_mem = access_memory(decoded, result, state)
        changed_reg = writeback(decoded, value, state.registers)

        state.pc = new_pc
        self.cycle_count += 1
        logging.debug("cycle %d: pc %#010x -> %#010x reg=%s mem=%s",
                      self.cycle_count, pc, new_pc, changed_reg,
                      None if changed_mem is None else f"{changed_mem:#010x}")
        return CycleRecord(pc, word, decoded, changed_reg, changed_mem, new_pc)

    def run(self, max_cycles: Optional[int] = None, stop_at_end: bool = True,
            before_cycle: Optional[Callable[["Simulator"], bool]] = None,
            after_cycle: Optional[Callable[[CycleRecord], None]] = None
            ) -> int:
        """
        Step until *max_cycles* is reached, the PC runs past the loaded
        program (when *stop_at_end*), or *before_cycle* returns False.
        Faults propagate.  Returns the number of cycles executed.
        """
        executed = 0
        while max_cycles is None or executed < max_cycles:
            if stop_at_end and self.state.past_program(self.state.pc):
                logging.info("pc %#010x past end of program, stopping",
                             self.state.pc)
                break
            if before_cycle is not None and not before_cycle(self):
                logging.info("halted by user")
                break
            record = self.step()
            executed += 1
            if after_cycle is not None:
                after_cycle(record)
        return executed

# ─────────────────────────────────────────────────────────────────────────────
# Program loading
# ─────────────────────────────────────────────────────────────────────────────

def read_binary_image(data: bytes, byteorder: str = "little") -> List[int]:
    """Split raw bytes into 32-bit words; a trailing partial word is dropped."""
    fmt = "<I" if byteorder == "little" else ">I"
    usable = len(data) - len(data) % 4
    return [w for (w,) in struct.iter_unpack(fmt, data[:usable])]

def read_hex_image(lines: Iterable[str]) -> List[int]:
    """One hex word per line; blank lines and ``#`` comments are skipped."""
    instructions = []
    for line in lines:
        line = line.split("#", 1)[0].strip()
        if line:
            word = int(line, 16)
            if not 0 <= word <= 0xFFFFFFFF:
                raise ValueError(f"{line!r} is not a 32-bit word")
            instructions.append(word)
    return instructions

def load_image(path: str, hex_text: bool = False,
               byteorder: str = "little") -> List[int]:
    if hex_text:
        with open(path, "r") as f:
            return read_hex_image(f)
    with open(path, "rb") as f:
        return read_binary_image(f.read(), byteorder)

# ─────────────────────────────────────────────────────────────────────────────
# Disassembly and reporting
# ─────────────────────────────────────────────────────────────────────────────

R_NAMES = {
    FN_SLL: "sll", FN_SRL: "srl", FN_JR: "jr", FN_ADDU: "addu",
    FN_SUBU: "subu", FN_AND: "and", FN_OR: "or", FN_SLT: "slt",
}

I_NAMES = {
    OP_BEQ: "beq", OP_BNE: "bne", OP_ADDIU: "addiu", OP_ANDI: "andi",
    OP_ORI: "ori", OP_LUI: "lui", OP_LW: "lw", OP_SW: "sw",
}

def disassemble(decoded: DecodedInstruction) -> str:
    f = decoded.fields

    if decoded.shape == Shape.R:
        name = R_NAMES.get(f.funct)
        if name is None:
            raise UnsupportedInstruction(decoded.raw)
        if f.funct in (FN_SLL, FN_SRL):
            return f"{name}\t${f.rd}, ${f.rt}, {f.shamt}"
        if f.funct == FN_JR:
            return f"{name}\t${f.rs}"
        return f"{name}\t${f.rd}, ${f.rs}, ${f.rt}"

    if decoded.shape == Shape.I:
        name = I_NAMES.get(decoded.op)
        if name is None:
            raise UnsupportedInstruction(decoded.raw)
        if decoded.op in BRANCH_OPS:
            return f"{name}\t${f.rs}, ${f.rt}, 0x{f.imm:08x}"
        if decoded.op == OP_ADDIU:
            return f"{name}\t${f.rt}, ${f.rs}, {to_signed_32(f.imm)}"
        if decoded.op in ZERO_EXT_OPS:
            return f"{name}\t${f.rt}, ${f.rs}, 0x{f.imm:x}"
        if decoded.op == OP_LUI:
            return f"{name}\t${f.rt}, 0x{f.imm:x}"
        return f"{name}\t${f.rt}, {to_signed_32(f.imm)}(${f.rs})"

    name = "jal" if decoded.op == OP_JAL else "j"
    return f"{name}\t0x{f.target:08x}"

def format_cycle(record: CycleRecord, state: MachineState,
                 all_registers: bool = False, all_memory: bool = False) -> str:
    """Render one cycle the way the trace prints it."""
    lines = [
        f"Executing instruction at {record.pc:08x}: {record.word:08x}",
        disassemble(record.decoded),
        f"New pc = {record.new_pc:08x}",
    ]

    if all_registers:
        for i in range(0, 32, 4):
            lines.append("  ".join(
                f"r{i + j:02d}: {to_unsigned_32(state.registers[i + j]):08x}"
                for j in range(4)))
    elif record.changed_reg is None:
        lines.append("No register was updated.")
    else:
        value = to_unsigned_32(state.registers[record.changed_reg])
        lines.append(f"Updated r{record.changed_reg:02d} to {value:08x}")

    if all_memory:
        lines.append("Nonzero memory")
        lines.append("ADDR\t  CONTENTS")
        for addr in range(TEXT_BASE + 4 * MAX_INSTRS, state.image_end, 4):
            word = state.read_word(addr)
            if word:
                lines.append(f"{addr:08x}  {word:08x}")
    elif record.changed_mem is None:
        lines.append("No memory location was updated.")
    else:
        lines.append(f"Updated memory at address {record.changed_mem:08x} "
                     f"to {state.read_word(record.changed_mem):08x}")

    return "\n".join(lines)

# ─────────────────────────────────────────────────────────────────────────────
# Demo program
# ─────────────────────────────────────────────────────────────────────────────

def demo_program() -> List[int]:
    """
    A small program that exercises every supported instruction:

        addiu $t0, $zero, 5      # $t0 = 5
        addiu $t1, $zero, 10     # $t1 = 10
        addu  $t2, $t0, $t1      # $t2 = 15
        subu  $t3, $t1, $t0      # $t3 = 5
        and   $t4, $t2, $t3      # $t4 = 5
        or    $t5, $t0, $t1      # $t5 = 15
        slt   $t6, $t0, $t1      # $t6 = 1  (5 < 10)
        lui   $t8, 0x0040        # $t8 = 0x00400000
        ori   $t8, $t8, 0x1000   # $t8 = 0x00401000
        sw    $t2, 4($t8)        # mem[0x00401004] = 15
        lw    $t7, 4($t8)        # $t7 = 15
        sll   $t3, $t3, 2        # $t3 = 20
        jal   sub                # $ra = 0x00400034
        bne   $t0, $t1, skip     # taken
        addiu $t0, $zero, 99     # skipped
    skip:
        j     done
    sub:
        addiu $v0, $zero, 7      # $v0 = 7
        jr    $ra
    done:
        andi  $t9, $t8, 0xffff   # $t9 = 0x1000
    """
    return [
        0x24080005,  # addiu $t0, $zero, 5
        0x2409000A,  # addiu $t1, $zero, 10
        0x01095021,  # addu  $t2, $t0, $t1
        0x01285823,  # subu  $t3, $t1, $t0
        0x014B6024,  # and   $t4, $t2, $t3
        0x01096825,  # or    $t5, $t0, $t1
        0x0109702A,  # slt   $t6, $t0, $t1
        0x3C180040,  # lui   $t8, 0x0040
        0x37181000,  # ori   $t8, $t8, 0x1000
        0xAF0A0004,  # sw    $t2, 4($t8)
        0x8F0F0004,  # lw    $t7, 4($t8)
        0x000B5880,  # sll   $t3, $t3, 2
        0x0C100010,  # jal   0x00400040
        0x15090001,  # bne   $t0, $t1, 0x0040003c
        0x24080063,  # addiu $t0, $zero, 99
        0x08100012,  # j     0x00400048
        0x24020007,  # addiu $v0, $zero, 7
        0x03E00008,  # jr    $ra
        0x3319FFFF,  # andi  $t9, $t8, 0xffff
    ]

DEMO_CHECKS = [
    (8,  5,          "$t0 = 5  (addiu 99 skipped by bne)"),
    (10, 15,         "$t2 = 15 (5 + 10)"),
    (11, 20,         "$t3 = 20 ((10 - 5) << 2)"),
    (12, 5,          "$t4 = 5  (15 & 5)"),
    (13, 15,         "$t5 = 15 (5 | 10)"),
    (14, 1,          "$t6 = 1  (5 < 10)"),
    (15, 15,         "$t7 = 15 (loaded from 0x00401004)"),
    (24, 0x00401000, "$t8 = 0x00401000 (lui+ori)"),
    (25, 0x1000,     "$t9 = 0x1000 (andi)"),
    (2,  7,          "$v0 = 7  (set in subroutine)"),
    (31, 0x00400034, "$ra = 0x00400034 (jal link)"),
]

# ─────────────────────────────────────────────────────────────────────────────
# Main
# ─────────────────────────────────────────────────────────────────────────────

def _prompt(sim: Simulator) -> bool:
    try:
        line = input("> ")
    except EOFError:
        return False
    return not line.startswith("q")

def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="MIPS instruction-set simulator"
    )
    parser.add_argument("image", nargs="?", default=None,
                        help="Program image (binary words, or hex text with --hex)")
    parser.add_argument("--hex", action="store_true",
                        help="Image is text with one hex instruction per line")
    parser.add_argument("--big-endian", action="store_true",
                        help="Binary image words are big-endian")
    parser.add_argument("--registers", "-r", action="store_true",
                        help="Print every register after each cycle")
    parser.add_argument("--memory", "-m", action="store_true",
                        help="Print all non-zero data memory after each cycle")
    parser.add_argument("--interactive", "-i", action="store_true",
                        help="Wait for input before each cycle ('q' quits)")
    parser.add_argument("--cycles", "-n", type=int, default=None,
                        help="Maximum simulation cycles (default unlimited)")
    parser.add_argument("--debug", "-d", action="store_true",
                        help="Log stage internals")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.debug else logging.WARNING,
                        format="%(levelname)s: %(message)s")

    sim = Simulator()

    if args.image:
        byteorder = "big" if args.big_endian else "little"
        try:
            instructions = load_image(args.image, args.hex, byteorder)
        except OSError as e:
            parser.error(f"cannot read {args.image}: {e.strerror}")
        except ValueError as e:
            parser.error(f"bad hex image {args.image}: {e}")
        print(f"Loaded {len(instructions)} instructions from {args.image}")
    else:
        instructions = demo_program()
        print(f"Running built-in demo program ({len(instructions)} instructions)\n")

    def report(record: CycleRecord):
        print(format_cycle(record, sim.state, args.registers, args.memory))

    try:
        sim.load(instructions)
        sim.run(max_cycles=args.cycles,
                before_cycle=_prompt if args.interactive else None,
                after_cycle=report)
    except SimulatorError as e:
        logging.error("halted after %d cycles", sim.cycle_count)
        print(e)
        return 1

    print(f"\nStopped after {sim.cycle_count} cycles, pc = {sim.state.pc:08x}")

    if not args.image and args.cycles is None and not args.interactive:
        print("\n═══ Demo Assertions ═══")
        all_pass = True
        for reg, expected, desc in DEMO_CHECKS:
            actual = to_unsigned_32(sim.state.registers[reg])
            ok = actual == expected
            all_pass = all_pass and ok
            print(f"  {'✓' if ok else '✗'}  {desc}  "
                  f"(got {actual:#010x}, expected {expected:#010x})")
        stored = sim.state.read_word(0x00401004)
        ok = stored == 15
        all_pass = all_pass and ok
        print(f"  {'✓' if ok else '✗'}  mem[0x00401004] = 15  (got {stored:#010x})")
        print("\n  All checks passed" if all_pass
              else "\n  Some checks failed; rerun with --debug")
        if not all_pass:
            return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
