import pytest
import tomli_w

from soam.config import (
    Cost,
    Gateset,
    Layout,
    MultipleConfigs,
    OracleKind,
    OracleName,
    PreprocessConfig,
    QuartzConfig,
    SingleConfig,
    TimeOut,
    TimeOutKind,
)


def _quartz():
    return QuartzConfig(
        cost=Cost.DEPTH,
        timeout=TimeOut(TimeOutKind.PER_GATE, 0.1),
        ecc_path="ecc_path",
        gateset=Gateset.NAM,
        n_threads=1,
    )


def _saved_config():
    return MultipleConfigs(
        circuit_path=["circuit1"],
        use_soam=[True],
        omega=[10],
        oracle_name=[OracleName(OracleKind.QUARTZ, _quartz()), OracleName(OracleKind.QUARTZ, _quartz())],
        preprocess_config=[PreprocessConfig.NONE],
        cost=[Cost.DEPTH],
        gateset=[Gateset.NAM],
        n_threads=[1],
        layout=[Layout.DENSE],
    )


HAND_WRITTEN = """
circuit_path = ["a.qasm", "b.qasm"]
use_soam = [true]
omega = [4, 8]
oracle_name = [{Voqc = {}}]
preprocess_config = ["None"]
cost = ["Gate"]
gateset = ["Nam"]
n_threads = [2]
layout = ["One"]
"""


def test_save_config(tmp_path):
    config = _saved_config()
    path = tmp_path / "config.toml"
    path.write_text(tomli_w.dumps(config.to_dict()))
    assert MultipleConfigs.read_config(path) == config


def test_oracle_serialised_as_tagged_table():
    data = _saved_config().to_dict()
    assert data["oracle_name"][0] == {
        "Quartz": {
            "cost": "Depth",
            "timeout": {"PerGate": 0.1},
            "ecc_path": "ecc_path",
            "gateset": "Nam",
            "n_threads": 1,
        }
    }
    assert data["preprocess_config"] == ["None"]


def test_single_configs_count_and_uniqueness():
    config = _saved_config()
    singles = config.to_single_configs()
    assert len(singles) == 2
    unique = config.unique_config_elements()
    assert unique["oracle_name"] is False
    assert unique["omega"] is True


def test_hand_written_config(tmp_path):
    path = tmp_path / "grid.toml"
    path.write_text(HAND_WRITTEN)
    config = MultipleConfigs.read_config(str(path))
    assert config.oracle_name == [OracleName(OracleKind.VOQC)]
    assert config.layout == [Layout.ONE]
    singles = config.to_single_configs()
    assert [(s.circuit_path, s.omega) for s in singles] == [
        ("a.qasm", 4),
        ("a.qasm", 8),
        ("b.qasm", 4),
        ("b.qasm", 8),
    ]


def test_non_unique_elements_text():
    config = _saved_config()
    unique = config.unique_config_elements()
    text = config.to_single_configs()[0].non_unique_elements(unique)
    assert text == (
        'oracle_name: Quartz(QuartzConfig { cost: Depth, timeout: PerGate(0.1), '
        'ecc_path: "ecc_path", gateset: Nam, n_threads: 1 }), '
    )


def test_missing_unique_key_counts_as_unique():
    single = _saved_config().to_single_configs()[0]
    assert single.non_unique_elements({}) == ""
    assert single.non_unique_elements({"omega": False}) == "omega: 10, "


def test_print_unique_elements(capsys):
    _saved_config().print_unique_elements()
    out = capsys.readouterr().out
    assert 'circuit_path: "circuit1"' in out
    assert "omega: 10" in out
    assert "use_soam: true" in out
    assert "oracle_name" not in out


def test_print_non_unique_elements(capsys):
    config = _saved_config()
    config.to_single_configs()[1].print_non_unique_elements(config.unique_config_elements())
    out = capsys.readouterr().out
    assert out.startswith("oracle_name: Quartz(")
    assert "omega" not in out


def test_single_config_round_trip():
    single = _saved_config().to_single_configs()[0]
    assert SingleConfig.from_dict(single.to_dict()) == single


def test_integer_timeout_becomes_float():
    data = _saved_config().to_dict()
    data["oracle_name"][0]["Quartz"]["timeout"] = {"PerSegment": 100}
    config = MultipleConfigs.from_dict(data)
    timeout = config.oracle_name[0].quartz.timeout
    assert timeout == TimeOut(TimeOutKind.PER_SEGMENT, 100.0)
    assert str(timeout) == "100"


def test_display_forms():
    assert str(_quartz()) == "QuartzConfig(cost=Depth, timeout=0.1)"
    assert str(Gateset.NAM) == "Nam"
    assert str(Cost.GATE) == "Gate"


def test_unknown_variant_rejected():
    data = _saved_config().to_dict()
    data["cost"] = ["Fidelity"]
    with pytest.raises(ValueError):
        MultipleConfigs.from_dict(data)


def test_missing_field_rejected():
    data = _saved_config().to_dict()
    del data["layout"]
    with pytest.raises(ValueError):
        MultipleConfigs.from_dict(data)


def test_scalar_field_rejected():
    data = _saved_config().to_dict()
    data["omega"] = 10
    with pytest.raises(ValueError):
        MultipleConfigs.from_dict(data)


def test_quartz_oracle_requires_settings():
    with pytest.raises(ValueError):
        OracleName(OracleKind.QUARTZ)
    with pytest.raises(ValueError):
        OracleName(OracleKind.TKET, _quartz())


def test_empty_column_gives_no_runs():
    config = _saved_config()
    config.omega = []
    assert config.to_single_configs() == []