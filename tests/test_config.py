"""
Tests for codec configuration and its JSON/YAML round-trip.
"""

import pytest

from sepdoc.config import (
    CodecConfig,
    config_from_dict,
    config_from_json,
    config_from_yaml,
    config_to_dict,
    config_to_json,
    config_to_yaml,
    load_config,
)
from sepdoc.errors import MalformedSeparator
from sepdoc.model import SeparatorPolicy


def build_sample_config() -> CodecConfig:
    return CodecConfig(
        policy=SeparatorPolicy.LENIENT,
        max_separator_length=256,
        max_record_size=1024,
        seed=b"%%%%",
        random_length=20,
        check_collisions=False,
        read_size=512,
    )


class TestCodecConfig:

    def test_defaults(self):
        config = CodecConfig()
        assert config.policy is SeparatorPolicy.STRICT
        assert config.seed == b"===="
        assert config.max_record_size is None
        assert config.check_collisions

    def test_str_seed_normalized(self):
        assert CodecConfig(seed="##").seed == b"##"

    def test_invalid_seed(self):
        with pytest.raises(MalformedSeparator):
            CodecConfig(seed=b"a b")

    def test_seed_longer_than_ceiling(self):
        with pytest.raises(ValueError):
            CodecConfig(seed=b"====", max_separator_length=2)

    @pytest.mark.parametrize("field_name", ["max_separator_length", "random_length", "read_size"])
    def test_non_positive_limits(self, field_name):
        with pytest.raises(ValueError):
            CodecConfig(**{field_name: 0})

    def test_with_options(self):
        config = CodecConfig().with_options(max_record_size=10)
        assert config.max_record_size == 10
        assert config.seed == b"===="


class TestConfigSerialization:

    def test_json_roundtrip(self):
        config = build_sample_config()
        assert config_from_json(config_to_json(config)) == config

    def test_yaml_roundtrip(self):
        config = build_sample_config()
        assert config_from_yaml(config_to_yaml(config)) == config

    def test_dict_uses_plain_values(self):
        d = config_to_dict(build_sample_config())
        assert d["policy"] == "lenient"
        assert d["seed"] == "%%%%"

    def test_partial_dict(self):
        config = config_from_dict({"max_record_size": 99})
        assert config.max_record_size == 99
        assert config.policy is SeparatorPolicy.STRICT

    def test_empty_yaml(self):
        assert config_from_yaml("") == CodecConfig()

    def test_unknown_key(self):
        with pytest.raises(ValueError):
            config_from_dict({"compression": "zlib"})

    def test_unknown_policy(self):
        with pytest.raises(ValueError):
            config_from_dict({"policy": "sloppy"})

    def test_load_yaml_file(self, tmp_path):
        path = tmp_path / "sepdoc.yaml"
        path.write_text("policy: lenient\nseed: '++'\nmax_record_size: 64\n", encoding="utf-8")
        config = load_config(str(path))
        assert config.policy is SeparatorPolicy.LENIENT
        assert config.seed == b"++"
        assert config.max_record_size == 64

    def test_load_json_file(self, tmp_path):
        path = tmp_path / "sepdoc.json"
        path.write_text(config_to_json(build_sample_config()), encoding="utf-8")
        assert load_config(str(path)) == build_sample_config()
