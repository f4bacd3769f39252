# Copyright 2022 Markus Lavin (https://www.zzzconsulting.se/).
#
# This source describes Open Hardware and is licensed under the CERN-OHL-P v2.
#
# You may redistribute and modify this documentation and make products using it
# under the terms of the CERN-OHL-P v2 (https:/cern.ch/cern-ohl).  This
# documentation is distributed WITHOUT ANY EXPRESS OR IMPLIED WARRANTY,
# INCLUDING OF MERCHANTABILITY, SATISFACTORY QUALITY AND FITNESS FOR A
# PARTICULAR PURPOSE. Please see the CERN-OHL-P v2 for applicable conditions.

from components.RefillHandshake import *
from components.GoldenModel import RefillState, refillStep

# (hit, refill_done) per tick and the expected (mem_read_req, cache_retry, stall).
# Miss at tick 0 that persists until the refill completes at tick 4.
MISS_REFILL_TRACE = [
    ((0, 0), (1, 0, 1)),
    ((0, 0), (0, 0, 1)),
    ((0, 0), (0, 0, 1)),
    ((0, 0), (0, 0, 1)),
    ((1, 1), (0, 1, 1)),  # Refill completes.
    ((1, 0), (0, 0, 1)),  # Retry tick, read re-issued at the old address.
    ((1, 0), (0, 0, 0)),  # Released two ticks after the refill.
    ((1, 0), (0, 0, 0)),
]

# Block still missing on the retry tick: a new request goes out at tick 2 and the
# retry sequence starts over from the second refill at tick 4.
PREEMPT_TRACE = [
    ((0, 0), (1, 0, 1)),
    ((0, 1), (0, 1, 1)),  # Refill completes, block evicted again.
    ((0, 0), (1, 0, 1)),  # New miss on the retry tick.
    ((0, 0), (0, 0, 1)),
    ((1, 1), (0, 1, 1)),
    ((1, 0), (0, 0, 1)),
    ((1, 0), (0, 0, 0)),
    ((1, 0), (0, 0, 0)),
]

# A second refill on the first retry tick restarts the count.
RESTART_TRACE = [
    ((0, 0), (1, 0, 1)),
    ((0, 1), (0, 1, 1)),
    ((1, 0), (0, 0, 1)),
    ((1, 1), (0, 1, 1)),  # Would have released here without the second refill.
    ((1, 0), (0, 0, 1)),
    ((1, 0), (0, 0, 0)),
    ((1, 0), (0, 0, 0)),
]


def runModel(trace, state=None):
  state = RefillState() if state is None else state
  outputs = []
  for (hit, refill_done), _ in trace:
    out, state = refillStep(state, bool(hit), bool(refill_done))
    outputs.append((int(out.mem_read_req), int(out.cache_retry), int(out.stall)))
  return outputs, state


def test_model_reset_state_is_idle():
  state = RefillState()
  assert state.phase == RefillPhase.IDLE
  assert state.retry_cntr == cfgRetryTerminal
  out, nxt = refillStep(state, True, False)
  assert not out.mem_read_req and not out.cache_retry and not out.stall
  assert nxt == state


def test_model_miss_refill_trace():
  outputs, state = runModel(MISS_REFILL_TRACE)
  assert outputs == [expected for _, expected in MISS_REFILL_TRACE]
  assert state.phase == RefillPhase.IDLE


def test_model_single_request_pulse_for_long_miss():
  state = RefillState()
  pulses = 0
  for _ in range(20):
    out, state = refillStep(state, False, False)
    pulses += out.mem_read_req
    assert out.stall
  assert pulses == 1
  assert state.phase == RefillPhase.AWAIT_REFILL


def test_model_release_exactly_two_ticks_after_refill():
  for wait in range(0, 5):
    state = RefillState()
    _, state = refillStep(state, False, False)
    for _ in range(wait):
      _, state = refillStep(state, False, False)
    out, state = refillStep(state, False, True)
    assert out.cache_retry and out.stall
    assert state.phase == RefillPhase.RETRY
    out, state = refillStep(state, True, False)
    assert out.stall and not out.cache_retry
    out, state = refillStep(state, True, False)
    assert not out.stall
    assert state.phase == RefillPhase.IDLE


def test_model_new_miss_preempts_retry():
  state = RefillState()
  _, state = refillStep(state, False, False)
  _, state = refillStep(state, False, True)
  assert state.retry_active
  # Block is still missing on the retry tick, so a fresh request goes out.
  out, state = refillStep(state, False, False)
  assert out.mem_read_req and out.stall
  assert not state.retry_active and state.retry_cntr == 0
  assert state.phase == RefillPhase.AWAIT_REFILL


def test_model_refill_restarts_running_retry():
  state = RefillState()
  _, state = refillStep(state, False, False)
  _, state = refillStep(state, False, True)
  _, state = refillStep(state, True, False)
  assert state.retry_cntr == 2
  out, state = refillStep(state, True, True)
  assert out.cache_retry and out.stall
  assert state.retry_cntr == 1


def test_model_start_resets():
  state = RefillState(request_pending=True, retry_cntr=1, retry_active=True)
  out, state = refillStep(state, False, True, start=True)
  assert not out.mem_read_req and not out.cache_retry and not out.stall
  assert state == RefillState()


def runGateware(run_sim, trace):
  dut = RefillHandshake()
  phases = []

  async def bench(ctx):
    for (hit, refill_done), expected in trace:
      ctx.set(dut.i_hit, hit)
      ctx.set(dut.i_refill_done, refill_done)
      actual = (ctx.get(dut.o_mem_read_req), ctx.get(dut.o_cache_retry), ctx.get(dut.o_stall))
      assert actual == expected
      phases.append(RefillPhase(int(ctx.get(dut.o_phase))))
      await ctx.tick()

  run_sim(dut, bench)
  return phases


def test_gateware_miss_refill_trace(run_sim):
  phases = runGateware(run_sim, MISS_REFILL_TRACE)
  # Registered, so the request tick still reads IDLE.
  assert phases[0] == RefillPhase.IDLE
  assert phases[1:5] == [RefillPhase.AWAIT_REFILL] * 4
  assert phases[5:7] == [RefillPhase.RETRY] * 2
  assert phases[7] == RefillPhase.IDLE


def test_model_preempt_and_restart_traces():
  for trace in (PREEMPT_TRACE, RESTART_TRACE):
    outputs, state = runModel(trace)
    assert outputs == [expected for _, expected in trace]
    assert state.phase == RefillPhase.IDLE


def test_gateware_new_miss_preempts_retry(run_sim):
  phases = runGateware(run_sim, PREEMPT_TRACE)
  idle, wait, retry = RefillPhase.IDLE, RefillPhase.AWAIT_REFILL, RefillPhase.RETRY
  assert phases == [idle, wait, retry, wait, wait, retry, retry, idle]


def test_gateware_refill_restarts_retry(run_sim):
  phases = runGateware(run_sim, RESTART_TRACE)
  idle, wait, retry = RefillPhase.IDLE, RefillPhase.AWAIT_REFILL, RefillPhase.RETRY
  assert phases == [idle, wait, retry, retry, retry, retry, idle]


def test_gateware_start_aborts_sequence(run_sim):
  dut = RefillHandshake()

  async def bench(ctx):
    ctx.set(dut.i_hit, 0)
    assert ctx.get(dut.o_mem_read_req)
    await ctx.tick()
    ctx.set(dut.i_start, 1)
    assert not ctx.get(dut.o_stall)
    assert not ctx.get(dut.o_mem_read_req)
    await ctx.tick()
    ctx.set(dut.i_start, 0)
    ctx.set(dut.i_hit, 1)
    assert not ctx.get(dut.o_stall)
    assert RefillPhase(int(ctx.get(dut.o_phase))) == RefillPhase.IDLE
    # Still missing after start, so a new request goes out.
    ctx.set(dut.i_hit, 0)
    assert ctx.get(dut.o_mem_read_req)

  run_sim(dut, bench)
