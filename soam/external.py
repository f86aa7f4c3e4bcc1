"""Optimisers run as separate programs that exchange OpenQASM files."""

from __future__ import annotations

import subprocess
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar

from .qasm import CircuitSeq


@dataclass
class _FileOracle:
    """Writes a circuit to a file, runs a program on it and reads the result back.

    The program gets `-f <input> -o <output>` and runs in `workdir`, where the
    files `temp_<task>.qasm` and `temp_out_<task>.qasm` live while it runs.
    """

    command: tuple[str, ...] | None = None
    workdir: Path = field(default_factory=Path)

    _script: ClassVar[str] = ""

    def _default_command(self) -> list[str]:
        return [sys.executable, self._script]

    def _run(self, circ: CircuitSeq, task_id: int) -> CircuitSeq:
        command = list(self.command) if self.command is not None else self._default_command()
        workdir = Path(self.workdir)
        source_name = f"temp_{task_id}.qasm"
        target_name = f"temp_out_{task_id}.qasm"
        source = workdir / source_name
        target = workdir / target_name
        source.write_text(circ.dump(), encoding="utf-8")
        try:
            subprocess.run(
                [*command, "-f", source_name, "-o", target_name],
                cwd=workdir,
                capture_output=True,
                check=False,
            )
            output = target.read_bytes()
        finally:
            source.unlink(missing_ok=True)
            target.unlink(missing_ok=True)
        return CircuitSeq.from_source(output.decode("utf-8", errors="replace"))


@dataclass
class Qiskit(_FileOracle):
    """Circuit optimisation through a Qiskit script."""

    _script: ClassVar[str] = "resources/qiskit/run_qiskit.py"

    def run_single(self, circ: CircuitSeq, task_id: int) -> CircuitSeq:
        return self._run(circ, task_id)


@dataclass
class Tket(_FileOracle):
    """Circuit optimisation through a tket script."""

    _script: ClassVar[str] = "resources/tket/run_tket.py"

    def run_single(self, circ: CircuitSeq, task_id: int) -> CircuitSeq:
        return self._run(circ, task_id)


@dataclass
class Voqc(_FileOracle):
    """Circuit optimisation through the VOQC executable for this platform."""

    def _default_command(self) -> list[str]:
        if sys.platform.startswith("linux"):
            return ["./resources/voqc/voqc_exec_linux"]
        if sys.platform == "darwin":
            return ["./resources/voqc/voqc_exec_mac"]
        raise RuntimeError(f"Unsupported platform: {sys.platform}")

    def run_single(self, circ: CircuitSeq, task_id: int) -> CircuitSeq:
        return self._run(circ, task_id)