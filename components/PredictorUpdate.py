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


class PredictorUpdate(Elaboratable):

  def __init__(self):
    self.i_start = Signal()
    self.i_stall = Signal()
    # Branch unit feedback.
    self.i_prediction_made = Signal()
    self.i_prediction_outcome = Signal()
    # To BHT/BTB, registered.
    self.o_bht_update = Signal()
    self.o_btb_update = Signal()
    self.o_direction = Signal(Direction)

  def elaborate(self, platform):
    m = Module()

    with m.If(self.i_start | self.i_stall):
      m.d.sync += [self.o_bht_update.eq(0), self.o_btb_update.eq(0), self.o_direction.eq(Direction.NONE)]
    with m.Else():
      # A mispredict only trains the history, the target entry is left alone.
      m.d.sync += [
          self.o_bht_update.eq(self.i_prediction_made | self.i_prediction_outcome),
          self.o_btb_update.eq(self.i_prediction_outcome)
      ]
      with m.If(self.i_prediction_outcome):
        m.d.sync += self.o_direction.eq(Direction.TAKEN)
      with m.Elif(self.i_prediction_made):
        m.d.sync += self.o_direction.eq(Direction.NOT_TAKEN)
      with m.Else():
        m.d.sync += self.o_direction.eq(Direction.NONE)

    return m
