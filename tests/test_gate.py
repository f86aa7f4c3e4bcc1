import pytest

from soam.gate import Gate, GateKind


def test_cx_text():
    assert str(Gate(GateKind.CX, (0, 1))) == "cx q[0], q[1]"


def test_integral_parameter_has_no_fraction():
    assert str(Gate(GateKind.RZ, (2,), (1.0,))) == "rz(1) q[2]"


def test_u_parameter_order():
    gate = Gate(GateKind.U, (3,), (0.5, 0.25, 2.0))
    assert str(gate) == "u(0.5, 0.25, 2) q[3]"


@pytest.mark.parametrize("kind", [k for k in GateKind if k is not GateKind.B])
def test_every_kind_lists_its_qubits(kind):
    qubits = tuple(range(kind.num_qubits))
    params = (0.5,) * kind.num_params
    text = str(Gate(kind, qubits, params))
    assert text.startswith(kind.value)
    assert text.count("q[") == kind.num_qubits
    assert text.endswith(f"q[{kind.num_qubits - 1}]")


def test_tiny_parameter_has_no_exponent():
    text = str(Gate(GateKind.RX, (0,), (1e-7,)))
    inner = text[text.index("(") + 1 : text.index(")")]
    assert "e" not in inner
    assert float(inner) == 1e-7


def test_boundary_gate():
    boundary = Gate(GateKind.B)
    assert boundary.is_boundary() is True
    assert Gate(GateKind.H, (0,)).is_boundary() is False
    with pytest.raises(ValueError):
        str(boundary)


def test_wrong_qubit_count_rejected():
    with pytest.raises(ValueError):
        Gate(GateKind.CX, (0,))


def test_wrong_param_count_rejected():
    with pytest.raises(ValueError):
        Gate(GateKind.RZ, (0,))


def test_negative_qubit_rejected():
    with pytest.raises(ValueError):
        Gate(GateKind.H, (-1,))


def test_sequences_normalised_to_tuples():
    a = Gate(GateKind.CZ, [1, 2])
    b = Gate(GateKind.CZ, (1, 2))
    assert a == b
    assert hash(a) == hash(b)
    assert a.qubits == (1, 2)


def test_arity_table_matches_qubits():
    assert GateKind.CCZ.num_qubits == len(Gate(GateKind.CCZ, (0, 1, 2)).qubits)
    assert GateKind.U.num_params == len(Gate(GateKind.U, (0,), (1, 2, 3)).params)