# Copyright 2022 Markus Lavin (https://www.zzzconsulting.se/).
#
# This source describes Open Hardware and is licensed under the CERN-OHL-P v2.
#
# You may redistribute and modify this documentation and make products using it
# under the terms of the CERN-OHL-P v2 (https:/cern.ch/cern-ohl).  This
# documentation is distributed WITHOUT ANY EXPRESS OR IMPLIED WARRANTY,
# INCLUDING OF MERCHANTABILITY, SATISFACTORY QUALITY AND FITNESS FOR A
# PARTICULAR PURPOSE. Please see the CERN-OHL-P v2 for applicable conditions.

# Random co-simulation of PipeCtrl against the golden model.
#
# usage: pipectrl-tester.py [SEED...]

from amaranth import *
from amaranth.sim import Simulator
from pipectrl import PipeCtrl
import random
import sys

from components.GoldenModel import *
from components.SimDriver import *

cfgCycles = 2000


def run_test(seed, cycles=cfgCycles, vcdPath=None):

  dut = PipeCtrl()
  model = GoldenModel()
  rng = random.Random(seed)
  failed = False
  mismatch = None

  async def bench(ctx):
    nonlocal failed, mismatch
    for idx in range(cycles):
      inputs = randomInputs(rng)
      applyInputs(ctx, dut, inputs)
      expected = model.tick(inputs)
      actual = sampleOutputs(ctx, dut)
      if actual != expected:
        failed = True
        mismatch = (idx, inputs, expected, actual)
        break
      await ctx.tick()

  sim = Simulator(dut)
  sim.add_clock(1e-6)  # 1 MHz
  sim.add_testbench(bench)
  if vcdPath is not None:
    with sim.write_vcd(vcdPath):
      sim.run()
  else:
    sim.run()

  return not (failed), model.cycles, mismatch


if __name__ == "__main__":
  seeds = [int(arg, 0) for arg in sys.argv[1:]] or [0]
  total = 0
  passed = 0
  for seed in seeds:
    print('============= seed {} ============='.format(seed))
    total += 1
    test_pass, test_cycles, mismatch = run_test(seed, vcdPath="pipectrl.vcd")
    if test_pass:
      passed += 1
      print(' [PASS] cycles={}'.format(test_cycles))
    else:
      idx, inputs, expected, actual = mismatch
      print(' [FAIL] cycles={}'.format(test_cycles))
      print('  cycle    = {}'.format(idx))
      print('  inputs   = {}'.format(inputs))
      print('  expected = {}'.format(expected))
      print('  actual   = {}'.format(actual))

  print('---({}/{})---'.format(passed, total))
  sys.exit(0 if passed == total else 1)
