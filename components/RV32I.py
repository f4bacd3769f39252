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

cfgOpcodeBits = 7
cfgFunct3Bits = 3
cfgFunct7Bits = 7
cfgRegIdxBits = 5


# Instruction fields as delivered by the fetch/decode stage.
class DecodedFieldsType(data.Struct):
  opcode: unsigned(cfgOpcodeBits)
  rd: unsigned(cfgRegIdxBits)
  funct3: unsigned(cfgFunct3Bits)
  funct7: unsigned(cfgFunct7Bits)


RV32I_OP_OP = 0b0110011
RV32I_OP_JAL = 0b1101111
RV32I_OP_BRANCH = 0b1100011
RV32I_OP_LOAD = 0b0000011
RV32I_OP_STORE = 0b0100011

RV32I_F7_BASE = 0b0000000
RV32I_F7_ALT = 0b0100000

RV32I_F3_ADD_SUB = 0b000
RV32I_F3_OR = 0b110
RV32I_F3_AND = 0b111
RV32I_F3_WORD = 0b010
RV32I_F3_BEQ = 0b000
