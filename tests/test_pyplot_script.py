"""
End-to-end: generate a matplotlib script, run it, and check the figure it saved.
"""

import sys

import numpy as np
import pytest

from pycall.config import ProgramConfig
from pycall.literals import Literal
from pycall.program import PythonProgram

pytest.importorskip("matplotlib")


def test_generated_pyplot_script_saves_figure(tmp_path):
    out_png = tmp_path / "figure.png"
    xs = np.linspace(0.0, 10.0, 50)
    ys = np.sin(xs)

    with PythonProgram(ProgramConfig(interpreter=sys.executable)) as prog:
        prog.import_("matplotlib").write_line("matplotlib.use('Agg')")
        prog.import_as("matplotlib.pyplot", "plt")
        prog.define_variable("xs", xs).define_variable("ys", ys)
        prog.define_variable("out_path", str(out_png))
        prog.write_line(f"plt.title({Literal('sin(x)')})")
        prog.write_line("plt.plot(xs, ys, 'r+')")
        prog.write_line("plt.savefig(out_path)")
        prog.write_line("print(len(xs))")

        script = tmp_path / "plot.py"
        prog.save_as(script)
        out = prog.run()

    assert out.success, out.stderr
    assert out.stdout.strip() == "50"
    assert out_png.stat().st_size > 0
    assert "import matplotlib.pyplot as plt\n" in script.read_text(encoding="utf-8")
