# Copyright 2022 Markus Lavin (https://www.zzzconsulting.se/).
#
# This source describes Open Hardware and is licensed under the CERN-OHL-P v2.
#
# You may redistribute and modify this documentation and make products using it
# under the terms of the CERN-OHL-P v2 (https:/cern.ch/cern-ohl).  This
# documentation is distributed WITHOUT ANY EXPRESS OR IMPLIED WARRANTY,
# INCLUDING OF MERCHANTABILITY, SATISFACTORY QUALITY AND FITNESS FOR A
# PARTICULAR PURPOSE. Please see the CERN-OHL-P v2 for applicable conditions.

from amaranth.back import verilog
from pipectrl import PipeCtrl
import sys

if __name__ == "__main__":

  u_pipectrl = PipeCtrl()

  outPath = sys.argv[1] if len(sys.argv) > 1 else "pipectrl.v"
  with open(outPath, "w") as f:
    f.write(verilog.convert(u_pipectrl, name="pipectrl", ports=u_pipectrl.ports()))
