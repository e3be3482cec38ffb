from __future__ import annotations

import os
import shutil
import subprocess
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from .config import ProgramConfig
from .errors import ProgramConsumedError
from .join_guard import JoinGuard
from .literals import Value, render
from .logs import get_logger

logger = get_logger("program")

PathLike = Union[str, "os.PathLike[str]"]


@dataclass(frozen=True)
class ProgramOutput:
    args: List[str]
    returncode: int
    stdout: str
    stderr: str
    runtime_sec: float

    @property
    def success(self) -> bool:
        return self.returncode == 0


class PythonProgram:
    """
    Line-oriented builder for a Python script.

    Lines are kept in memory and are never edited once written. A durable
    temporary file is only created when the script has to exist on disk
    (save_as, run, background_run, or an explicit materialise()).
    The builder tracks indentation: block openers indent, end_block() dedents.

    Every mutator returns the program, so calls chain:

        prog = PythonProgram()
        prog.import_as("matplotlib.pyplot", "plt").define_variable("ys", [1, 4, 9])
        prog.for_("y in ys").write_line("print(y)").end_block()
    """

    def __init__(self, config: Optional[ProgramConfig] = None) -> None:
        self.config = (config or ProgramConfig()).normalised()
        self._lines: List[str] = []
        self._indents = 0
        self._path: Optional[Path] = None
        self._flushed = 0
        self._consumed = False

    # -----------------------
    # Internals
    # -----------------------

    def _check_owned(self) -> None:
        if self._consumed:
            raise ProgramConsumedError("program was moved into a background run")

    def _prefix(self) -> str:
        return self.config.indent_unit * max(0, self._indents)

    def _emit(self, text: str) -> PythonProgram:
        # Continuation lines are kept verbatim: they may sit inside a
        # multi-line string literal, where indentation would change the value.
        self._check_owned()
        first, *rest = text.split("\n")
        self._lines.append(self._prefix() + first)
        self._lines.extend(rest)
        return self

    def _shift(self, n: int) -> None:
        self._indents += int(n)
        if self._indents < 0:
            logger.warning("indentation level went negative (%d); blocks are unbalanced", self._indents)

    # -----------------------
    # Indentation
    # -----------------------

    @property
    def indent_level(self) -> int:
        return self._indents

    def indent(self, n: int) -> PythonProgram:
        """Move the indentation level by n (signed). Prefer the block helpers."""
        self._check_owned()
        self._shift(n)
        return self

    def end_block(self) -> PythonProgram:
        """Close the current block. There is no lower bound check."""
        return self.indent(-1)

    # -----------------------
    # Statements
    # -----------------------

    def write_line(self, line: str) -> PythonProgram:
        return self._emit(line)

    def write(self, text: str) -> PythonProgram:
        """Append raw text, unindented, one buffer line per line of text."""
        self._check_owned()
        parts = text.split("\n")
        if parts[-1] == "":
            parts.pop()
        self._lines.extend(parts)
        return self

    def define_variable(self, name: str, value: Value) -> PythonProgram:
        return self._emit(f"{name} = {render(value, sort_keys=self.config.sort_keys)}")

    def import_(self, module: str) -> PythonProgram:
        return self._emit(f"import {module}")

    def import_as(self, module: str, alias: str) -> PythonProgram:
        return self._emit(f"import {module} as {alias}")

    def from_import(self, module: str, *names: str) -> PythonProgram:
        return self._emit(f"from {module} import {', '.join(names)}")

    # -----------------------
    # Blocks
    # -----------------------

    def if_(self, condition: str) -> PythonProgram:
        self._emit(f"if {condition}:")
        return self.indent(1)

    def elif_(self, condition: str) -> PythonProgram:
        self.indent(-1)
        self._emit(f"elif {condition}:")
        return self.indent(1)

    def else_(self) -> PythonProgram:
        self.indent(-1)
        self._emit("else:")
        return self.indent(1)

    def for_(self, range_expr: str) -> PythonProgram:
        self._emit(f"for {range_expr}:")
        return self.indent(1)

    def while_(self, condition: str) -> PythonProgram:
        self._emit(f"while {condition}:")
        return self.indent(1)

    # -----------------------
    # Reading back
    # -----------------------

    def lines(self) -> List[str]:
        self._check_owned()
        return list(self._lines)

    def render(self) -> str:
        self._check_owned()
        return self._text()

    def _text(self) -> str:
        nl = self.config.newline
        return "".join(line + nl for line in self._lines)

    def __str__(self) -> str:
        return self.render()

    # -----------------------
    # Durable file
    # -----------------------

    @property
    def path(self) -> Optional[Path]:
        return self._path

    def materialise(self) -> Path:
        """
        Make sure the durable file exists and holds every line written so far.
        The file is replaced as a whole, so a failed write leaves the previous
        content untouched. Text the configured encoding cannot represent is
        reported as OSError.
        """
        self._check_owned()
        return self._materialise()

    def _materialise(self) -> Path:
        cfg = self.config
        if self._path is None:
            fd, name = tempfile.mkstemp(prefix=cfg.tmp_prefix, suffix=cfg.tmp_suffix, dir=cfg.tmp_dir)
            os.close(fd)
            self._path = Path(name)
            self._flushed = 0
            logger.debug("created script file %s", self._path)

        if self._flushed == len(self._lines):
            return self._path

        try:
            data = self._text().encode(cfg.encoding)
        except UnicodeEncodeError as e:
            raise OSError(f"script cannot be encoded as {cfg.encoding}: {e}") from e

        part = self._path.with_name(self._path.name + ".part")
        try:
            part.write_bytes(data)
            os.replace(part, self._path)
        except OSError:
            part.unlink(missing_ok=True)
            raise

        logger.debug("wrote %d line(s) to %s", len(self._lines) - self._flushed, self._path)
        self._flushed = len(self._lines)
        return self._path

    def flush(self) -> PythonProgram:
        """Push pending lines to the durable file, if one has been created."""
        self._check_owned()
        if self._path is not None:
            self._materialise()
        return self

    def save_as(self, destination: PathLike) -> int:
        """Copy the script byte for byte to destination; returns the byte count."""
        src = self.materialise()
        shutil.copyfile(src, destination)
        size = src.stat().st_size
        logger.debug("saved %d bytes to %s", size, destination)
        return size

    def close(self) -> None:
        path, self._path = self._path, None
        self._flushed = 0
        if path is not None:
            try:
                path.unlink()
            except FileNotFoundError:
                pass

    def __enter__(self) -> PythonProgram:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __del__(self) -> None:
        if getattr(self, "_path", None) is not None:
            self.close()

    # -----------------------
    # Execution
    # -----------------------

    def run(self) -> ProgramOutput:
        """
        Run the script with the configured interpreter and wait for it.
        A non-zero exit status is reported in the result, not raised.
        Raises OSError if the interpreter cannot be started.
        """
        self._check_owned()
        return self._run()

    def _run(self) -> ProgramOutput:
        script = self._materialise()
        args = [self.config.interpreter, str(script)]
        logger.debug("running %s", " ".join(args))

        start = time.time()
        proc = subprocess.run(
            args,
            capture_output=True,
            text=True,
            encoding=self.config.encoding,
            errors="replace",
        )
        runtime = time.time() - start

        logger.debug("%s exited with %d after %.3fs", args[0], proc.returncode, runtime)
        return ProgramOutput(
            args=args,
            returncode=proc.returncode,
            stdout=proc.stdout,
            stderr=proc.stderr,
            runtime_sec=runtime,
        )

    def background_run(self) -> JoinGuard[ProgramOutput]:
        """
        Hand the program to a worker thread that runs it and then removes its
        file. The program can no longer be used by the caller afterwards.
        """
        self._check_owned()
        self._consumed = True

        def work() -> ProgramOutput:
            try:
                return self._run()
            finally:
                self.close()

        return JoinGuard.spawn(work, name="pycall-run")
