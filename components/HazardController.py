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

from components.ControlSignals import *


class HazardController(Elaboratable):

  def __init__(self):
    self.i_start = Signal()
    # From decoder.
    self.i_ctrl = Signal(ControlSignalsType)
    # From forwarding/branch units.
    self.i_load_use = Signal()
    self.i_branch_stall_cur = Signal(2)
    self.i_branch_stall_prev = Signal(2)
    self.i_branch_taken = Signal()
    self.i_mispredict = Signal()
    # From cache and refill handshake.
    self.i_hit = Signal()
    self.i_cache_stall = Signal()
    # To datapath.
    self.o_ctrl = Signal(ControlSignalsType)

  def elaborate(self, platform):
    m = Module()

    stall = Signal()
    clear = Signal()
    squash = Signal()

    m.d.comb += [
        stall.eq(self.i_load_use | self.i_branch_stall_cur.any() | self.i_branch_stall_prev[1] | self.i_cache_stall),
        clear.eq(~self.i_load_use & ~self.i_branch_stall_cur[0] & ~self.i_branch_stall_prev[1] & self.i_hit),
        squash.eq(self.i_branch_taken | self.i_mispredict)
    ]

    # o_ctrl defaults to the bubble pattern with is_stall low.
    with m.If(self.i_start):
      pass
    with m.Elif(stall):
      m.d.comb += self.o_ctrl.is_stall.eq(1)
    with m.Elif(clear & ~squash):
      m.d.comb += [self.o_ctrl.eq(self.i_ctrl), self.o_ctrl.is_stall.eq(0)]

    return m
