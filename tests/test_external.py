import sys
import textwrap

import pytest

from soam.external import Qiskit, Tket, Voqc
from soam.gate import Gate, GateKind
from soam.qasm import CircuitSeq

COPY_SCRIPT = textwrap.dedent(
    """
    import sys
    args = sys.argv[1:]
    src = args[args.index("-f") + 1]
    dst = args[args.index("-o") + 1]
    with open("args.txt", "w") as handle:
        handle.write("\\n".join(args))
    with open(src) as handle:
        text = handle.read()
    with open(dst, "w") as handle:
        handle.write(text)
    """
)

DROP_H_SCRIPT = textwrap.dedent(
    """
    import sys
    args = sys.argv[1:]
    src = args[args.index("-f") + 1]
    dst = args[args.index("-o") + 1]
    with open(src) as handle:
        lines = [line for line in handle if not line.startswith("h ")]
    with open(dst, "w") as handle:
        handle.writelines(lines)
    """
)

NOOP_SCRIPT = "pass\n"


def _script(tmp_path, name, body):
    path = tmp_path / name
    path.write_text(body, encoding="utf-8")
    return (sys.executable, str(path))


@pytest.fixture
def circuit():
    return CircuitSeq(
        [
            Gate(GateKind.H, (0,)),
            Gate(GateKind.CX, (0, 1)),
            Gate(GateKind.H, (0,)),
        ],
        2,
    )


@pytest.mark.parametrize("oracle_cls", [Qiskit, Tket, Voqc])
def test_round_trip_through_program(tmp_path, circuit, oracle_cls):
    oracle = oracle_cls(command=_script(tmp_path, "copy.py", COPY_SCRIPT), workdir=tmp_path)
    result = oracle.run_single(circuit, 0)
    assert result == circuit
    assert list(tmp_path.glob("temp_*")) == []


def test_program_receives_file_arguments(tmp_path, circuit):
    oracle = Qiskit(command=_script(tmp_path, "copy.py", COPY_SCRIPT), workdir=tmp_path)
    oracle.run_single(circuit, 7)
    args = (tmp_path / "args.txt").read_text(encoding="utf-8").splitlines()
    assert args == ["-f", "temp_7.qasm", "-o", "temp_out_7.qasm"]


def test_result_comes_from_program_output(tmp_path, circuit):
    oracle = Tket(command=_script(tmp_path, "drop.py", DROP_H_SCRIPT), workdir=tmp_path)
    result = oracle.run_single(circuit, 1)
    assert result.gates == [Gate(GateKind.CX, (0, 1))]
    assert result.num_qubits == circuit.num_qubits


def test_missing_output_raises_and_cleans_up(tmp_path, circuit):
    oracle = Qiskit(command=_script(tmp_path, "noop.py", NOOP_SCRIPT), workdir=tmp_path)
    with pytest.raises(FileNotFoundError):
        oracle.run_single(circuit, 2)
    assert list(tmp_path.glob("temp_*")) == []


def test_voqc_rejects_unsupported_platform(tmp_path, circuit, monkeypatch):
    monkeypatch.setattr(sys, "platform", "win32")
    with pytest.raises(RuntimeError, match="Unsupported platform"):
        Voqc(workdir=tmp_path).run_single(circuit, 0)
    assert list(tmp_path.glob("temp_*")) == []


def test_voqc_default_executable_missing(tmp_path, circuit, monkeypatch):
    monkeypatch.setattr(sys, "platform", "linux")
    with pytest.raises(FileNotFoundError):
        Voqc(workdir=tmp_path).run_single(circuit, 3)
    assert list(tmp_path.glob("temp_*")) == []