# soam

`soam` holds the building blocks for optimizing quantum circuits window by
window: OpenQASM 2.0 reading and writing, circuits as flat gate lists, as
layers and as a gate graph, run settings kept in TOML, result files, and
adapters for external circuit optimizers ("oracles").

## Installation

```
pip install .
```

Tests need the `test` extra:

```
pip install ".[test]"
pytest
```

## Modules

| module          | contents                                                                 |
|-----------------|--------------------------------------------------------------------------|
| `soam.gate`     | `GateKind` and the immutable `Gate` (kind, qubits, parameters)           |
| `soam.qasm`     | `CircuitSeq`, `parse_program`, `write_program`                           |
| `soam.layer`    | `Layer` and `CircuitLayer`, with `Dense` and `One` layouts               |
| `soam.dag`      | `DAG` and `GateNode`, a gate multigraph whose indices are never reused   |
| `soam.config`   | `MultipleConfigs`, `SingleConfig` and the setting enums                  |
| `soam.results`  | `SingleResult`, `ConfigResult`, `MultipleResults`, `write_results`, `read_results` |
| `soam.scan`     | `parallel_scan`, `parallel_scan_add` (exclusive prefix scans)            |
| `soam.external` | `Qiskit`, `Tket`, `Voqc`: optimizers run as programs on QASM files       |
| `soam.quartz`   | `QuartzServer` and the server pool `Quartz`, reached over msgpack-rpc    |
| `soam.oracles`  | `OracleRunner`, which starts the optimizer named in a configuration      |

## Circuits

```python
from soam.config import Cost, Layout
from soam.layer import CircuitLayer
from soam.qasm import CircuitSeq

seq = CircuitSeq.from_source("qreg q[2];\nh q[0];\ncx q[0], q[1];\n")
circuit = CircuitLayer.from_seq(seq, Layout.DENSE)
print(circuit.cost(Cost.DEPTH), circuit.cost(Cost.GATE))  # 2 2
print(circuit.to_seq().dump())
```

`CircuitSeq.from_file` reads a QASM file and expands `$NAME` and `${NAME}` in
its path from the environment. Parameter expressions such as `rz(pi/4)` or
`rz(-PI/2)` are evaluated; negative angles are shifted up by 2π. An unknown
instruction raises `ValueError`.

In the `Dense` layout each gate goes into the earliest layer after every gate it
shares a qubit with; in `One` every gate has its own layer. `depth()` counts
non-empty layers, and `Mixed` cost in the dense layout is `10 * depth + gates`.

## Settings and results

A configuration file lists one or more values for each key; every combination
is one run:

```toml
circuit_path = ["$HOME/circuits/adder.qasm"]
use_soam = [true]
omega = [10, 20]
oracle_name = [{ Voqc = {} }]
preprocess_config = ["None"]
cost = ["Gate"]
gateset = ["Nam"]
n_threads = [4]
layout = ["Dense"]
```

A Quartz oracle carries its own settings:

```toml
oracle_name = [{ Quartz = { cost = "Gate", timeout = { PerSegment = 10.0 }, ecc_path = "resources/ecc.json", gateset = "Nam", n_threads = 4 } }]
```

```python
from soam.config import MultipleConfigs

configs = MultipleConfigs.read_config("configs/adder.toml")
for single in configs.to_single_configs():
    print(single.omega, single.oracle_name)
```

`write_results(config_path, results)` writes a `MultipleResults` as TOML to the
configuration's path with `configs` replaced by `results`, creating directories
as needed; `read_results` reads such a file back.

## Oracles

`OracleRunner.create(oracle_name, port)` starts the optimizer a configuration
names and `run_single(circ, task_id)` returns the optimized circuit:

- `Voqc`, `Qiskit` and `Tket` write `temp_<task>.qasm` in their working
  directory, run their program with `-f <input> -o <output>` and read
  `temp_out_<task>.qasm` back. By default VOQC runs
  `./resources/voqc/voqc_exec_linux` or `./resources/voqc/voqc_exec_mac`, and
  Qiskit and TKET run `resources/qiskit/run_qiskit.py` and
  `resources/tket/run_tket.py` with the current Python.
- `Quartz` starts `n_threads` servers (by default
  `./resources/quartz/build/wrapper_rpc`) on consecutive ports from `port` and
  sends each circuit to the first idle one. Call `shutdown()` when done, or use
  it as a context manager.
- `Roqc` has no optimizer here; creating it raises `ValueError`.

## What is not included

The package has no command-line program and no driver that splits a circuit at
seams, sends each window to an oracle and repeats the rounds; nor does it
summarise result files or write them as CSV. Those steps are left to code built
on the pieces above.