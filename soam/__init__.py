"""Quantum circuit building blocks: QASM, layered and graph circuits, settings and optimizer oracles."""

__version__ = "0.1.0"