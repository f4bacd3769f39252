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


# Utility for generating debug signals for struct fields.
def addDebugSignals(mod, sig, name=None):
  # XXX: Also structs of structs etc.
  value = Value.cast(sig)
  prefix = value.name if name is None else name
  for fieldName, field in data.Layout.cast(sig.shape()):
    dbgSig = Signal(field.shape, name='{}${}'.format(prefix, fieldName))
    mod.d.comb += Value.cast(dbgSig).eq(value[field.offset:field.offset + field.width])
