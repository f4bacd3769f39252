# Copyright 2022 Markus Lavin (https://www.zzzconsulting.se/).
#
# This source describes Open Hardware and is licensed under the CERN-OHL-P v2.
#
# You may redistribute and modify this documentation and make products using it
# under the terms of the CERN-OHL-P v2 (https:/cern.ch/cern-ohl).  This
# documentation is distributed WITHOUT ANY EXPRESS OR IMPLIED WARRANTY,
# INCLUDING OF MERCHANTABILITY, SATISFACTORY QUALITY AND FITNESS FOR A
# PARTICULAR PURPOSE. Please see the CERN-OHL-P v2 for applicable conditions.

# Glue between amaranth.sim testbenches of PipeCtrl and the golden model.

from amaranth import *

from components.RV32I import *
from components.ControlSignals import *
from components.RefillHandshake import RefillPhase
from components.GoldenModel import *

# Encodings the random stimulus picks from, besides fully random fields.
INTERESTING_FIELDS = [
    DecodedFields(opcode=RV32I_OP_OP, funct3=0b000, funct7=0b0000000, rd=1),
    DecodedFields(opcode=RV32I_OP_OP, funct3=0b000, funct7=0b0100000, rd=2),
    DecodedFields(opcode=RV32I_OP_OP, funct3=0b110, funct7=0b0000000, rd=3),
    DecodedFields(opcode=RV32I_OP_OP, funct3=0b111, funct7=0b0000000, rd=4),
    DecodedFields(opcode=RV32I_OP_LOAD, funct3=0b010, rd=5),
    DecodedFields(opcode=RV32I_OP_STORE, funct3=0b010),
    DecodedFields(opcode=RV32I_OP_BRANCH, funct3=0b000),
    DecodedFields(opcode=RV32I_OP_JAL, rd=1),
    DecodedFields(opcode=RV32I_OP_JAL, rd=0),
]


def applyInputs(ctx, dut, inputs):
  ctx.set(dut.i_start, inputs.start)
  ctx.set(dut.i_opcode, inputs.fields.opcode)
  ctx.set(dut.i_funct3, inputs.fields.funct3)
  ctx.set(dut.i_funct7, inputs.fields.funct7)
  ctx.set(dut.i_rd, inputs.fields.rd)
  ctx.set(dut.i_hit, inputs.hit)
  ctx.set(dut.i_refill_done, inputs.refill_done)
  ctx.set(dut.i_load_use, inputs.load_use)
  ctx.set(dut.i_branch_stall_cur, inputs.branch_stall_cur)
  ctx.set(dut.i_branch_stall_prev, inputs.branch_stall_prev)
  ctx.set(dut.i_branch_taken, inputs.branch_taken)
  ctx.set(dut.i_mispredict, inputs.mispredict)
  ctx.set(dut.i_prediction_made, inputs.prediction_made)
  ctx.set(dut.i_prediction_outcome, inputs.prediction_outcome)


def sampleOutputs(ctx, dut):
  return ControlUnitOutputs(ctrl=controlSignalsFromConst(ctx.get(dut.o_ctrl)),
                            kind=InstrKind(int(ctx.get(dut.o_kind))),
                            mem_read_req=bool(ctx.get(dut.o_mem_read_req)),
                            cache_retry=bool(ctx.get(dut.o_cache_retry)),
                            phase=RefillPhase(int(ctx.get(dut.o_phase))),
                            update=UpdateSignals(bht_update=bool(ctx.get(dut.o_bht_update)),
                                                 btb_update=bool(ctx.get(dut.o_btb_update)),
                                                 direction=Direction(int(ctx.get(dut.o_direction)))))


def randomFields(rng):
  if rng.random() < 0.8:
    return rng.choice(INTERESTING_FIELDS)
  return DecodedFields(opcode=rng.getrandbits(cfgOpcodeBits),
                       funct3=rng.getrandbits(cfgFunct3Bits),
                       funct7=rng.getrandbits(cfgFunct7Bits),
                       rd=rng.getrandbits(cfgRegIdxBits))


def randomInputs(rng):
  """Biased towards the quiet pipe so that instructions actually pass."""
  return ControlUnitInputs(fields=randomFields(rng),
                           start=rng.random() < 0.02,
                           hit=rng.random() < 0.85,
                           refill_done=rng.random() < 0.1,
                           load_use=rng.random() < 0.1,
                           branch_stall_cur=rng.getrandbits(2) if rng.random() < 0.15 else 0,
                           branch_stall_prev=rng.getrandbits(2) if rng.random() < 0.15 else 0,
                           branch_taken=rng.random() < 0.1,
                           mispredict=rng.random() < 0.05,
                           prediction_made=rng.random() < 0.5,
                           prediction_outcome=rng.random() < 0.5)
