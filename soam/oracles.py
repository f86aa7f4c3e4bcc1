"""Choice of the optimiser that rewrites circuit segments."""

from __future__ import annotations

import threading
from typing import Protocol

from .config import OracleKind, OracleName
from .external import Qiskit, Tket, Voqc
from .qasm import CircuitSeq
from .quartz import Quartz

_QUARTZ_FUNCTION = "optimize"


class _Backend(Protocol):
    def run_single(self, circ: CircuitSeq, task_id: int) -> CircuitSeq: ...

    def shutdown(self) -> None: ...


class _External(Protocol):
    def run_single(self, circ: CircuitSeq, task_id: int) -> CircuitSeq: ...


class _QuartzBackend:
    """Quartz servers share one event loop, so calls are taken one at a time."""

    def __init__(self, quartz: Quartz) -> None:
        self._quartz = quartz
        self._lock = threading.Lock()

    def run_single(self, circ: CircuitSeq, task_id: int) -> CircuitSeq:
        with self._lock:
            return self._quartz.run_single(circ, _QUARTZ_FUNCTION)

    def shutdown(self) -> None:
        self._quartz.shutdown()


class _ExternalBackend:
    """A command-line optimiser; nothing stays running between calls."""

    def __init__(self, tool: _External) -> None:
        self._tool = tool

    def run_single(self, circ: CircuitSeq, task_id: int) -> CircuitSeq:
        return self._tool.run_single(circ, task_id)

    def shutdown(self) -> None:
        pass


class OracleRunner:
    """Runs circuit segments through one optimiser backend.

    A backend has `run_single(circ, task_id)` and `shutdown()`.
    """

    def __init__(self, backend: _Backend) -> None:
        self.backend = backend

    @classmethod
    def create(cls, oracle_name: OracleName, port: int) -> OracleRunner:
        """Start the optimiser named in a configuration; Quartz servers start at `port`."""
        match oracle_name.kind:
            case OracleKind.QUARTZ:
                return cls(_QuartzBackend(Quartz(oracle_name.quartz, port)))
            case OracleKind.VOQC:
                return cls(_ExternalBackend(Voqc()))
            case OracleKind.QISKIT:
                return cls(_ExternalBackend(Qiskit()))
            case OracleKind.TKET:
                return cls(_ExternalBackend(Tket()))
            case OracleKind.ROQC:
                raise ValueError("the Roqc oracle has no optimizer available")
        raise ValueError(f"unknown oracle {oracle_name!r}")

    def run_single(self, circ: CircuitSeq, task_id: int) -> CircuitSeq:
        """Optimise one circuit; `task_id` keeps concurrent calls apart."""
        return self.backend.run_single(circ, task_id)

    def shutdown(self) -> None:
        self.backend.shutdown()