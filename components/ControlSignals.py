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
from amaranth.lib import data
from amaranth.lib.enum import IntEnum

from dataclasses import dataclass, replace
from enum import unique

# Control signals for the execution, memory and writeback stages. The decision
# table below is shared by the gateware decoder and the golden model.


@unique
class ALUOp(IntEnum, shape=5):
  NOP = 0
  ADD = 1
  SUB = 2  # Also used as compare for BEQ.
  AND = 3
  OR = 4


@unique
class InstrKind(IntEnum, shape=4):
  ILLEGAL = 0
  ADD = 1
  SUB = 2
  OR = 3
  AND = 4
  LW = 5
  SW = 6
  BEQ = 7
  JAL = 8


@unique
class Direction(IntEnum, shape=2):
  NONE = 0
  NOT_TAKEN = 1
  TAKEN = 2


class ControlSignalsType(data.Struct):
  alu_src: unsigned(1)
  pc_src: unsigned(1)
  mem_write: unsigned(1)
  mem_read: unsigned(1)
  mem_to_reg: unsigned(1)
  reg_write: unsigned(1)
  alu_op: ALUOp
  is_stall: unsigned(1)


@dataclass(frozen=True)
class ControlSignals:
  alu_src: bool = False
  pc_src: bool = False
  mem_write: bool = False
  mem_read: bool = False
  mem_to_reg: bool = False
  reg_write: bool = False
  alu_op: ALUOp = ALUOp.NOP
  is_stall: bool = False


# All six enables inactive, ALU idle.
BUBBLE = ControlSignals()
STALL = replace(BUBBLE, is_stall=True)

CONTROL_TABLE = {
    InstrKind.ADD: ControlSignals(reg_write=True, alu_op=ALUOp.ADD),
    InstrKind.SUB: ControlSignals(reg_write=True, alu_op=ALUOp.SUB),
    InstrKind.OR: ControlSignals(reg_write=True, alu_op=ALUOp.OR),
    InstrKind.AND: ControlSignals(reg_write=True, alu_op=ALUOp.AND),
    InstrKind.LW: ControlSignals(alu_src=True, mem_read=True, mem_to_reg=True, reg_write=True, alu_op=ALUOp.ADD),
    InstrKind.SW: ControlSignals(alu_src=True, mem_write=True, alu_op=ALUOp.ADD),
    InstrKind.BEQ: ControlSignals(pc_src=True, alu_op=ALUOp.SUB),
    # reg_write is further qualified by rd != x0.
    InstrKind.JAL: ControlSignals(pc_src=True, reg_write=True, alu_op=ALUOp.ADD),
    InstrKind.ILLEGAL: BUBBLE,
}

# Fields of ControlSignalsType that gate the datapath (everything but alu_op and is_stall).
EXEC_ENABLES = ("alu_src", "pc_src", "mem_write", "mem_read", "mem_to_reg", "reg_write")


def driveControlSignals(sig, row):
  """Statements assigning a table row to a ControlSignalsType view."""
  stmts = [getattr(sig, name).eq(int(getattr(row, name))) for name in EXEC_ENABLES]
  stmts.append(sig.alu_op.eq(row.alu_op))
  return stmts


def controlSignalsFields(row):
  """Field values of a table row, as taken by ControlSignalsType.const() and ctx.set()."""
  fields = {name: int(getattr(row, name)) for name in EXEC_ENABLES}
  fields["alu_op"] = row.alu_op
  fields["is_stall"] = int(row.is_stall)
  return fields


# Table row from the data.Const that ctx.get() returns for a ControlSignalsType view.
def controlSignalsFromConst(const):
  return ControlSignals(alu_op=ALUOp(int(const.alu_op)),
                        is_stall=bool(const.is_stall),
                        **{name: bool(getattr(const, name)) for name in EXEC_ENABLES})
