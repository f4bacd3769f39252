# Copyright 2022 Markus Lavin (https://www.zzzconsulting.se/).
#
# This source describes Open Hardware and is licensed under the CERN-OHL-P v2.
#
# You may redistribute and modify this documentation and make products using it
# under the terms of the CERN-OHL-P v2 (https:/cern.ch/cern-ohl).  This
# documentation is distributed WITHOUT ANY EXPRESS OR IMPLIED WARRANTY,
# INCLUDING OF MERCHANTABILITY, SATISFACTORY QUALITY AND FITNESS FOR A
# PARTICULAR PURPOSE. Please see the CERN-OHL-P v2 for applicable conditions.
"""Golden model of the pipeline control unit.

Cycle accurate reference for the gateware in this package. Every tick is one
call to `step(inputs, state)` which returns the outputs settled during that
tick together with the state to pass into the next call. Outputs are computed
from the current state only; registered values (refill handshake state and
predictor update signals) change in the returned state and become visible
on the next call.
"""

from dataclasses import dataclass, field, replace

from components.RV32I import *
from components.ControlSignals import *
from components.RefillHandshake import cfgRetryTerminal, RefillPhase


@dataclass(frozen=True)
class DecodedFields:
  opcode: int = 0
  funct3: int = 0
  funct7: int = 0
  rd: int = 0


@dataclass(frozen=True)
class ControlUnitInputs:
  """Everything sampled by the control unit in one tick."""

  fields: DecodedFields = field(default_factory=DecodedFields)
  start: bool = False
  # Cache status.
  hit: bool = True
  refill_done: bool = False
  # Hazard flags.
  load_use: bool = False
  branch_stall_cur: int = 0
  branch_stall_prev: int = 0
  branch_taken: bool = False
  mispredict: bool = False
  # Branch prediction feedback.
  prediction_made: bool = False
  prediction_outcome: bool = False


@dataclass(frozen=True)
class RefillState:
  request_pending: bool = False
  retry_cntr: int = cfgRetryTerminal
  retry_active: bool = False

  @property
  def phase(self):
    if self.retry_active:
      return RefillPhase.RETRY
    if self.request_pending:
      return RefillPhase.AWAIT_REFILL
    return RefillPhase.IDLE


@dataclass(frozen=True)
class RefillOutputs:
  mem_read_req: bool = False
  cache_retry: bool = False
  stall: bool = False


@dataclass(frozen=True)
class UpdateSignals:
  bht_update: bool = False
  btb_update: bool = False
  direction: Direction = Direction.NONE


NO_UPDATE = UpdateSignals()


@dataclass(frozen=True)
class ControlUnitState:
  refill: RefillState = field(default_factory=RefillState)
  update: UpdateSignals = NO_UPDATE


@dataclass(frozen=True)
class ControlUnitOutputs:
  ctrl: ControlSignals
  kind: InstrKind
  mem_read_req: bool
  cache_retry: bool
  phase: RefillPhase
  update: UpdateSignals


_FIELD_WIDTHS = {
    "opcode": cfgOpcodeBits,
    "funct3": cfgFunct3Bits,
    "funct7": cfgFunct7Bits,
    "rd": cfgRegIdxBits,
    "branch_stall_cur": 2,
    "branch_stall_prev": 2,
}

_R_TYPE_KINDS = {
    (RV32I_F7_BASE, RV32I_F3_ADD_SUB): InstrKind.ADD,
    (RV32I_F7_ALT, RV32I_F3_ADD_SUB): InstrKind.SUB,
    (RV32I_F7_BASE, RV32I_F3_OR): InstrKind.OR,
    (RV32I_F7_BASE, RV32I_F3_AND): InstrKind.AND,
}

# Opcodes defined for exactly one funct3 value.
_SINGLE_FUNCT3_KINDS = {
    RV32I_OP_LOAD: (RV32I_F3_WORD, InstrKind.LW),
    RV32I_OP_STORE: (RV32I_F3_WORD, InstrKind.SW),
    RV32I_OP_BRANCH: (RV32I_F3_BEQ, InstrKind.BEQ),
}


def _checkWidth(name, value):
  width = _FIELD_WIDTHS[name]
  if not 0 <= value < (1 << width):
    raise ValueError('{} = {} does not fit in {} bits'.format(name, value, width))


def checkInputs(inputs):
  for name in ("opcode", "funct3", "funct7", "rd"):
    _checkWidth(name, getattr(inputs.fields, name))
  _checkWidth("branch_stall_cur", inputs.branch_stall_cur)
  _checkWidth("branch_stall_prev", inputs.branch_stall_prev)


def classify(fields):
  if fields.opcode == RV32I_OP_OP:
    return _R_TYPE_KINDS.get((fields.funct7, fields.funct3), InstrKind.ILLEGAL)
  if fields.opcode == RV32I_OP_JAL:
    return InstrKind.JAL
  if fields.opcode in _SINGLE_FUNCT3_KINDS:
    funct3, kind = _SINGLE_FUNCT3_KINDS[fields.opcode]
    return kind if fields.funct3 == funct3 else InstrKind.ILLEGAL
  return InstrKind.ILLEGAL


def decode(fields):
  """Baseline control signals for an instruction, is_stall is always False."""
  kind = classify(fields)
  row = CONTROL_TABLE[kind]
  if kind == InstrKind.JAL and fields.rd == 0:
    row = replace(row, reg_write=False)
  return row


def refillStep(state, hit, refill_done, start=False):
  """One tick of the refill handshake.

  A miss seen while no request is outstanding raises the memory read request
  for exactly this tick and arms the pending latch, which keeps the request
  low until the refill completes. A refill completion pulses the cache retry
  and (re)starts the retry counter; the stall is held until the counter
  reaches its terminal value. A new miss or refill pre-empts a running retry
  sequence in the same tick.

  Returns (RefillOutputs, next RefillState).
  """
  if start:
    return RefillOutputs(), RefillState()

  new_miss = not hit and not state.request_pending
  cntr = 0 if (new_miss or refill_done) else state.retry_cntr
  active = not new_miss and (refill_done or state.retry_active)
  terminal = cntr == cfgRetryTerminal

  outputs = RefillOutputs(mem_read_req=new_miss,
                          cache_retry=refill_done,
                          stall=(not hit or active) and not terminal)
  next_state = RefillState(request_pending=new_miss or (state.request_pending and not refill_done),
                           retry_cntr=cntr + 1 if (active and not terminal) else cntr,
                           retry_active=active and not terminal)
  return outputs, next_state


def arbitrate(baseline, inputs, cache_stall):
  """Gate the decoder output with the hazard flags.

  A stall always wins. Otherwise the decoded instruction passes only when the
  pipe is clear and no taken branch or mispredict squashes it; a squashed
  instruction advances as a bubble without stalling.
  """
  if inputs.start:
    return BUBBLE

  stall = (inputs.load_use or inputs.branch_stall_cur != 0 or bool(inputs.branch_stall_prev & 0b10) or cache_stall)
  clear = (not inputs.load_use and not inputs.branch_stall_cur & 0b01 and not inputs.branch_stall_prev & 0b10 and
           inputs.hit)

  if stall:
    return STALL
  if clear and not (inputs.branch_taken or inputs.mispredict):
    return baseline
  return BUBBLE


def predictorNext(is_stall, prediction_made, prediction_outcome, start=False):
  if start or is_stall:
    return NO_UPDATE
  if prediction_outcome:
    return UpdateSignals(bht_update=True, btb_update=True, direction=Direction.TAKEN)
  if prediction_made:
    return UpdateSignals(bht_update=True, btb_update=False, direction=Direction.NOT_TAKEN)
  return NO_UPDATE


def step(inputs, state):
  """Evaluate one clock tick. Returns (ControlUnitOutputs, next ControlUnitState)."""
  checkInputs(inputs)

  # Combinational phase.
  kind = classify(inputs.fields)
  baseline = decode(inputs.fields)
  refill, next_refill = refillStep(state.refill, inputs.hit, inputs.refill_done, inputs.start)
  ctrl = arbitrate(baseline, inputs, refill.stall)

  outputs = ControlUnitOutputs(ctrl=ctrl,
                               kind=kind,
                               mem_read_req=refill.mem_read_req,
                               cache_retry=refill.cache_retry,
                               phase=state.refill.phase,
                               update=state.update)

  # Registered phase.
  next_state = ControlUnitState(refill=next_refill,
                                update=predictorNext(ctrl.is_stall, inputs.prediction_made, inputs.prediction_outcome,
                                                     inputs.start))
  return outputs, next_state


class GoldenModel:
  """Holds the state between ticks for test benches that prefer a stateful object."""

  def __init__(self):
    self.state = ControlUnitState()
    self.cycles = 0

  def tick(self, inputs):
    outputs, self.state = step(inputs, self.state)
    self.cycles += 1
    return outputs
