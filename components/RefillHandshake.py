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
from amaranth.lib.enum import IntEnum

from enum import unique

# Ticks between refill completion and stall release. The PC advances in the
# same cycle as the cache read so the first retry tick re-issues the read at
# the pre-advance address; releasing on refill completion would drop the first
# instruction of the new block.
cfgRetryTerminal = 2


# Decoded from the handshake registers, so it trails the combinational outputs by
# one tick: the tick that pulses o_mem_read_req still reads IDLE and the request
# shows up as AWAIT_REFILL from the next tick on. There is no separate request
# phase.
@unique
class RefillPhase(IntEnum, shape=2):
  IDLE = 0
  AWAIT_REFILL = 1
  RETRY = 2


class RefillHandshake(Elaboratable):

  def __init__(self):
    self.i_start = Signal()
    # Cache IF
    self.i_hit = Signal()
    self.i_refill_done = Signal()
    # Fetch IF
    self.o_mem_read_req = Signal()
    self.o_cache_retry = Signal()
    # To hazard controller.
    self.o_stall = Signal()
    self.o_phase = Signal(RefillPhase)

  def elaborate(self, platform):
    m = Module()

    request_pending = Signal()
    retry_cntr = Signal(range(cfgRetryTerminal + 1), init=cfgRetryTerminal)
    retry_active = Signal()

    # Values as seen this tick, after a new miss or refill pre-empts the sequence.
    new_miss = Signal()
    cntr = Signal(range(cfgRetryTerminal + 1))
    active = Signal()
    terminal = Signal()

    m.d.comb += [
        new_miss.eq(~self.i_hit & ~request_pending),
        cntr.eq(Mux(new_miss | self.i_refill_done, 0, retry_cntr)),
        active.eq(~new_miss & (self.i_refill_done | retry_active)),
        terminal.eq(cntr == cfgRetryTerminal)
    ]

    with m.If(self.i_start):
      m.d.sync += [request_pending.eq(0), retry_cntr.eq(cfgRetryTerminal), retry_active.eq(0)]
    with m.Else():
      m.d.comb += [
          self.o_mem_read_req.eq(new_miss),  # Single cycle, the latch holds it low until the refill.
          self.o_cache_retry.eq(self.i_refill_done),
          self.o_stall.eq((~self.i_hit | active) & ~terminal)
      ]
      m.d.sync += [
          request_pending.eq(new_miss | (request_pending & ~self.i_refill_done)),
          retry_cntr.eq(Mux(active & ~terminal, cntr + 1, cntr)),
          retry_active.eq(active & ~terminal)
      ]

    with m.If(retry_active):
      m.d.comb += self.o_phase.eq(RefillPhase.RETRY)
    with m.Elif(request_pending):
      m.d.comb += self.o_phase.eq(RefillPhase.AWAIT_REFILL)

    return m
