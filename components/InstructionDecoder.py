# Copyright 2022 Markus Lavin (https://www.zzzconsulting.se/).
#
# This source describes Open Hardware and is licensed under the CERN-OHL-P v2.
#
# You may redistribute and modify this documentation and make products using it
# under the terms of the CERN-OHL-P v2 (https:/cern.ch/cern-ohl).  This
# documentation is distributed WITHOUT ANY EXPRESS OR IMPLIED WARRANTY,
# INCLUDING OF MERCHANTABILITY, SATISFACTORY QUALITY AND FITNESS FOR A
# PARTICULAR PURPOSE. Please see the CERN-OHL-P v2 for applicable conditions.

from amaranth import *

from components.RV32I import *
from components.ControlSignals import *
from components.Utils import *


class InstructionDecoder(Elaboratable):

  def __init__(self):
    self.i_opcode = Signal(cfgOpcodeBits)
    self.i_funct3 = Signal(cfgFunct3Bits)
    self.i_funct7 = Signal(cfgFunct7Bits)
    self.i_rd = Signal(cfgRegIdxBits)
    self.o_kind = Signal(InstrKind, init=InstrKind.ILLEGAL)
    # Baseline signals, is_stall is never driven here.
    self.o_ctrl = Signal(ControlSignalsType)

  def elaborate(self, platform):
    m = Module()

    fields = Signal(DecodedFieldsType)
    m.d.comb += [
        fields.opcode.eq(self.i_opcode),
        fields.funct3.eq(self.i_funct3),
        fields.funct7.eq(self.i_funct7),
        fields.rd.eq(self.i_rd)
    ]

    # Classify. Anything not matched stays ILLEGAL.
    with m.Switch(fields.opcode):
      with m.Case(RV32I_OP_OP):
        with m.Switch(Cat(fields.funct3, fields.funct7)):
          with m.Case(0b0000000_000):  # ADD
            m.d.comb += self.o_kind.eq(InstrKind.ADD)
          with m.Case(0b0100000_000):  # SUB
            m.d.comb += self.o_kind.eq(InstrKind.SUB)
          with m.Case(0b0000000_110):  # OR
            m.d.comb += self.o_kind.eq(InstrKind.OR)
          with m.Case(0b0000000_111):  # AND
            m.d.comb += self.o_kind.eq(InstrKind.AND)
      with m.Case(RV32I_OP_LOAD):
        with m.If(fields.funct3 == RV32I_F3_WORD):
          m.d.comb += self.o_kind.eq(InstrKind.LW)
      with m.Case(RV32I_OP_STORE):
        with m.If(fields.funct3 == RV32I_F3_WORD):
          m.d.comb += self.o_kind.eq(InstrKind.SW)
      with m.Case(RV32I_OP_BRANCH):
        with m.If(fields.funct3 == RV32I_F3_BEQ):
          m.d.comb += self.o_kind.eq(InstrKind.BEQ)
      with m.Case(RV32I_OP_JAL):
        m.d.comb += self.o_kind.eq(InstrKind.JAL)

    # Look up.
    with m.Switch(self.o_kind):
      for kind, row in CONTROL_TABLE.items():
        with m.Case(kind):
          m.d.comb += driveControlSignals(self.o_ctrl, row)

    # Link to x0 is a plain jump.
    with m.If((self.o_kind == InstrKind.JAL) & (fields.rd == 0)):
      m.d.comb += self.o_ctrl.reg_write.eq(0)

    addDebugSignals(m, fields, 'dec_fields')

    return m
