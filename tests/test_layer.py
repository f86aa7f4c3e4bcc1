import pytest

from soam.config import Cost, Gateset, Layout
from soam.gate import Gate, GateKind
from soam.layer import CircuitLayer, Layer
from soam.qasm import CircuitSeq


def g(kind, *qubits):
    return Gate(kind, qubits)


def sample_gates():
    return [g(GateKind.H, 0), g(GateKind.X, 1), g(GateKind.CX, 0, 1)]


def test_layer_is_empty():
    assert Layer().is_empty()
    assert not Layer([g(GateKind.H, 0)]).is_empty()


def test_dense_packing_groups_independent_gates():
    circ = CircuitLayer.build(sample_gates(), 2, Layout.DENSE)
    assert len(circ) == 2
    assert circ.layers[0].gates == [g(GateKind.H, 0), g(GateKind.X, 1)]
    assert circ.layers[1].gates == [g(GateKind.CX, 0, 1)]
    assert circ.layout is Layout.DENSE


def test_dense_depth_matches_sequential_gates():
    gates = [g(GateKind.H, 0), g(GateKind.H, 0), g(GateKind.CX, 0, 1)]
    circ = CircuitLayer.build(gates, 2, Layout.DENSE)
    assert circ.depth() == 3
    assert circ.gate_count() == 3


def test_one_layout_one_gate_per_layer():
    circ = CircuitLayer.build(sample_gates(), 2, Layout.ONE)
    assert len(circ) == circ.gate_count() == 3
    assert all(len(layer.gates) == 1 for layer in circ.layers)


def test_dense_costs():
    circ = CircuitLayer.build(sample_gates(), 2, Layout.DENSE)
    assert circ.cost(Cost.DEPTH) == circ.depth()
    assert circ.cost(Cost.GATE) == circ.gate_count()
    assert circ.cost(Cost.MIXED) == 10 * circ.depth() + circ.gate_count()


def test_one_layout_costs():
    circ = CircuitLayer.build(sample_gates(), 2, Layout.ONE)
    assert circ.cost(Cost.DEPTH) == 0
    assert circ.cost(Cost.MIXED) == 0
    assert circ.cost(Cost.GATE) == 3


def test_seq_round_trip_keeps_gates():
    seq = CircuitSeq(sample_gates(), 2)
    circ = CircuitLayer.from_seq(seq, Layout.ONE)
    back = circ.to_seq()
    assert back.gates == seq.gates
    assert back.num_qubits == 2


def test_dense_repacking_is_stable():
    circ = CircuitLayer.build(sample_gates(), 2, Layout.DENSE)
    again = CircuitLayer.from_seq(circ.to_seq(), Layout.DENSE)
    assert [layer.gates for layer in again.layers] == [layer.gates for layer in circ.layers]
    assert [layer.gates for layer in circ.left_layout().layers] == [
        layer.gates for layer in circ.layers
    ]


def test_right_layout_moves_gates_late():
    gates = [g(GateKind.H, 0), g(GateKind.CX, 0, 1), g(GateKind.X, 2)]
    circ = CircuitLayer.build(gates, 3, Layout.DENSE)
    assert circ.layers[0].gates == [g(GateKind.H, 0), g(GateKind.X, 2)]
    right = circ.right_layout()
    assert [layer.gates for layer in right.layers] == [
        [g(GateKind.H, 0)],
        [g(GateKind.CX, 0, 1), g(GateKind.X, 2)],
    ]
    assert right.gate_count() == circ.gate_count()
    assert right.depth() == circ.depth()


def test_left_layout_closes_gaps():
    circ = CircuitLayer(
        2,
        [Layer([g(GateKind.H, 0)]), Layer(), Layer([g(GateKind.X, 1)])],
        Layout.DENSE,
    )
    left = circ.left_layout()
    assert len(left) == 1
    assert left.layers[0].gates == [g(GateKind.H, 0), g(GateKind.X, 1)]


def test_get_copies_a_slice():
    circ = CircuitLayer.build(sample_gates(), 2, Layout.DENSE)
    part = circ.get(1, 2)
    assert len(part) == 1
    assert part.get_one(0) == [g(GateKind.CX, 0, 1)]
    part.set_many([(0, [])])
    assert not circ.is_empty(1)
    assert part.layout is circ.layout


def test_get_out_of_range():
    circ = CircuitLayer.build(sample_gates(), 2, Layout.DENSE)
    with pytest.raises(IndexError):
        circ.get(0, 5)


def test_set_many_and_emptiness():
    circ = CircuitLayer.build(sample_gates(), 2, Layout.ONE)
    circ.set_many([(0, []), (2, [g(GateKind.Z, 1)])])
    assert circ.is_empty(0)
    assert circ.get_one(2) == [g(GateKind.Z, 1)]
    assert len(circ) == 3
    assert circ.depth() == 2
    with pytest.raises(IndexError):
        circ.set_many([(3, [])])


def test_is_empty_out_of_range():
    circ = CircuitLayer.build(sample_gates(), 2, Layout.DENSE)
    with pytest.raises(IndexError):
        circ.is_empty(7)


def test_gate_count_rz_counts_ccz_decomposition():
    circ = CircuitLayer.build([g(GateKind.CCZ, 0, 1, 2)], 3, Layout.DENSE)
    assert circ.gate_count_rz() == 13
    plain = CircuitLayer.build(sample_gates(), 2, Layout.DENSE)
    assert plain.gate_count_rz() == plain.gate_count()


def test_gateset_detection():
    assert CircuitLayer.build(sample_gates(), 2, Layout.DENSE).get_gateset() is Gateset.NAM
    toffoli = CircuitLayer.build([g(GateKind.CCX, 0, 1, 2)], 3, Layout.DENSE)
    assert toffoli.get_gateset() is Gateset.CLIFFORD_T


def test_boundary_gate_cannot_be_layered():
    with pytest.raises(ValueError):
        CircuitLayer.build([Gate(GateKind.B)], 1, Layout.DENSE)


def test_qubit_out_of_range_is_rejected():
    with pytest.raises(ValueError):
        CircuitLayer.build([g(GateKind.H, 3)], 2, Layout.DENSE)