# Copyright 2022 Markus Lavin (https://www.zzzconsulting.se/).
#
# This source describes Open Hardware and is licensed under the CERN-OHL-P v2.
#
# You may redistribute and modify this documentation and make products using it
# under the terms of the CERN-OHL-P v2 (https:/cern.ch/cern-ohl).  This
# documentation is distributed WITHOUT ANY EXPRESS OR IMPLIED WARRANTY,
# INCLUDING OF MERCHANTABILITY, SATISFACTORY QUALITY AND FITNESS FOR A
# PARTICULAR PURPOSE. Please see the CERN-OHL-P v2 for applicable conditions.

from amaranth.sim import Simulator
import pytest


def simulate(dut, bench, clocked=True):
  sim = Simulator(dut)
  if clocked:
    sim.add_clock(1e-6)  # 1 MHz
  sim.add_testbench(bench)
  sim.run()


@pytest.fixture
def run_sim():
  return simulate
