# Copyright 2022 Markus Lavin (https://www.zzzconsulting.se/).
#
# This source describes Open Hardware and is licensed under the CERN-OHL-P v2.
#
# You may redistribute and modify this documentation and make products using it
# under the terms of the CERN-OHL-P v2 (https:/cern.ch/cern-ohl).  This
# documentation is distributed WITHOUT ANY EXPRESS OR IMPLIED WARRANTY,
# INCLUDING OF MERCHANTABILITY, SATISFACTORY QUALITY AND FITNESS FOR A
# PARTICULAR PURPOSE. Please see the CERN-OHL-P v2 for applicable conditions.

# PipeCtrl - Pipeline control unit
#
# yapf --in-place --recursive --style="{indent_width: 2, column_limit: 120}" pipectrl.py

from amaranth import *

from components.RV32I import *
from components.Utils import *
from components.ControlSignals import *
from components.InstructionDecoder import *
from components.RefillHandshake import *
from components.HazardController import *
from components.PredictorUpdate import *


class PipeCtrl(Elaboratable):

  def __init__(self):
    self.i_start = Signal()
    # Decoded instruction.
    self.i_opcode = Signal(cfgOpcodeBits)
    self.i_funct3 = Signal(cfgFunct3Bits)
    self.i_funct7 = Signal(cfgFunct7Bits)
    self.i_rd = Signal(cfgRegIdxBits)
    # Instruction cache.
    self.i_hit = Signal()
    self.i_refill_done = Signal()
    # Hazard flags.
    self.i_load_use = Signal()
    self.i_branch_stall_cur = Signal(2)
    self.i_branch_stall_prev = Signal(2)
    self.i_branch_taken = Signal()
    self.i_mispredict = Signal()
    # Branch prediction feedback.
    self.i_prediction_made = Signal()
    self.i_prediction_outcome = Signal()
    # To EX/MEM/WB.
    self.o_ctrl = Signal(ControlSignalsType)
    self.o_kind = Signal(InstrKind)
    # To fetch.
    self.o_mem_read_req = Signal()
    self.o_cache_retry = Signal()
    self.o_phase = Signal(RefillPhase)
    # To BHT/BTB.
    self.o_bht_update = Signal()
    self.o_btb_update = Signal()
    self.o_direction = Signal(Direction)

  def ports(self):
    return [
        self.i_start, self.i_opcode, self.i_funct3, self.i_funct7, self.i_rd, self.i_hit, self.i_refill_done,
        self.i_load_use, self.i_branch_stall_cur, self.i_branch_stall_prev, self.i_branch_taken, self.i_mispredict,
        self.i_prediction_made, self.i_prediction_outcome,
        Value.cast(self.o_ctrl), Value.cast(self.o_kind), self.o_mem_read_req, self.o_cache_retry,
        Value.cast(self.o_phase), self.o_bht_update, self.o_btb_update, Value.cast(self.o_direction)
    ]

  def elaborate(self, platform):
    m = Module()

    m.submodules.u_dec = u_dec = InstructionDecoder()
    m.submodules.u_refill = u_refill = RefillHandshake()
    m.submodules.u_hazard = u_hazard = HazardController()
    m.submodules.u_bpu_upd = u_bpu_upd = PredictorUpdate()

    #
    # DECODE
    #
    m.d.comb += [
        u_dec.i_opcode.eq(self.i_opcode),
        u_dec.i_funct3.eq(self.i_funct3),
        u_dec.i_funct7.eq(self.i_funct7),
        u_dec.i_rd.eq(self.i_rd),
        self.o_kind.eq(u_dec.o_kind)
    ]

    #
    # REFILL
    #
    m.d.comb += [
        u_refill.i_start.eq(self.i_start),
        u_refill.i_hit.eq(self.i_hit),
        u_refill.i_refill_done.eq(self.i_refill_done),
        self.o_mem_read_req.eq(u_refill.o_mem_read_req),
        self.o_cache_retry.eq(u_refill.o_cache_retry),
        self.o_phase.eq(u_refill.o_phase)
    ] # yapf: disable

    #
    # HAZARD
    #
    m.d.comb += [
        u_hazard.i_start.eq(self.i_start),
        u_hazard.i_ctrl.eq(u_dec.o_ctrl),
        u_hazard.i_load_use.eq(self.i_load_use),
        u_hazard.i_branch_stall_cur.eq(self.i_branch_stall_cur),
        u_hazard.i_branch_stall_prev.eq(self.i_branch_stall_prev),
        u_hazard.i_branch_taken.eq(self.i_branch_taken),
        u_hazard.i_mispredict.eq(self.i_mispredict),
        u_hazard.i_hit.eq(self.i_hit),
        u_hazard.i_cache_stall.eq(u_refill.o_stall),
        self.o_ctrl.eq(u_hazard.o_ctrl)
    ]

    #
    # PREDICTOR UPDATE
    #
    # Samples the settled stall of this tick, visible to the BHT/BTB next tick.
    m.d.comb += [
        u_bpu_upd.i_start.eq(self.i_start),
        u_bpu_upd.i_stall.eq(u_hazard.o_ctrl.is_stall),
        u_bpu_upd.i_prediction_made.eq(self.i_prediction_made),
        u_bpu_upd.i_prediction_outcome.eq(self.i_prediction_outcome),
        self.o_bht_update.eq(u_bpu_upd.o_bht_update),
        self.o_btb_update.eq(u_bpu_upd.o_btb_update),
        self.o_direction.eq(u_bpu_upd.o_direction)
    ]

    addDebugSignals(m, self.o_ctrl, 'ctrl')

    return m
