"""
Codec configuration and its serialization.

Provides lossless JSON/YAML round-trip via an intermediate dict
representation, so limits can live in a settings file next to the
application that embeds the codec.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

import yaml

from sepdoc.model import SeparatorPolicy
from sepdoc.separator import DEFAULT_RANDOM_LENGTH, validate_separator

DEFAULT_SEED = b"===="
DEFAULT_MAX_SEPARATOR_LENGTH = 4096
DEFAULT_READ_SIZE = 64 * 1024


@dataclass(frozen=True)
class CodecConfig:
    """
    Settings shared by the decoder, selector and encoder.

    Properties:
        policy:
            How an invalid separator declaration is handled on decode

        max_separator_length:
            Ceiling for separators, both for the declaration line on decode
            and for iterative lengthening in the selector

        max_record_size:
            Optional bound on the bytes buffered for a single record

        seed:
            Starting candidate for the selector

        random_length:
            Characters in a randomly generated streaming separator

        check_collisions:
            Whether the encoder verifies each record before writing it

        read_size:
            Chunk size requested from file-like byte sources
    """

    policy: SeparatorPolicy = SeparatorPolicy.STRICT
    max_separator_length: int = DEFAULT_MAX_SEPARATOR_LENGTH
    max_record_size: Optional[int] = None
    seed: bytes = DEFAULT_SEED
    random_length: int = DEFAULT_RANDOM_LENGTH
    check_collisions: bool = True
    read_size: int = DEFAULT_READ_SIZE

    def __post_init__(self):
        if self.max_separator_length < 1:
            raise ValueError("max_separator_length must be positive")
        if self.max_record_size is not None and self.max_record_size < 0:
            raise ValueError("max_record_size must be non-negative")
        if self.random_length < 1:
            raise ValueError("random_length must be positive")
        if self.read_size < 1:
            raise ValueError("read_size must be positive")
        seed = validate_separator(self.seed)
        if len(seed) > self.max_separator_length:
            raise ValueError("seed is longer than max_separator_length")
        object.__setattr__(self, "seed", seed)

    def with_options(self, **changes: Any) -> CodecConfig:
        """Return a copy with some settings replaced."""
        return replace(self, **changes)


def config_to_dict(c: CodecConfig) -> Dict[str, Any]:
    return {
        "policy": c.policy.value,
        "max_separator_length": c.max_separator_length,
        "max_record_size": c.max_record_size,
        "seed": c.seed.decode("ascii"),
        "random_length": c.random_length,
        "check_collisions": c.check_collisions,
        "read_size": c.read_size,
    }


def config_from_dict(d: Dict[str, Any] | None) -> CodecConfig:
    if not d:
        return CodecConfig()
    unknown = set(d) - set(config_to_dict(CodecConfig()))
    if unknown:
        raise ValueError(f"Unknown config keys: {sorted(unknown)}")
    seed = d.get("seed", DEFAULT_SEED)
    if isinstance(seed, str):
        seed = seed.encode("ascii")
    return CodecConfig(
        policy=SeparatorPolicy(d.get("policy", SeparatorPolicy.STRICT.value)),
        max_separator_length=int(d.get("max_separator_length", DEFAULT_MAX_SEPARATOR_LENGTH)),
        max_record_size=d.get("max_record_size"),
        seed=seed,
        random_length=int(d.get("random_length", DEFAULT_RANDOM_LENGTH)),
        check_collisions=bool(d.get("check_collisions", True)),
        read_size=int(d.get("read_size", DEFAULT_READ_SIZE)),
    )


def config_to_json(c: CodecConfig) -> str:
    return json.dumps(config_to_dict(c), sort_keys=True)


def config_from_json(s: str) -> CodecConfig:
    return config_from_dict(json.loads(s))


def config_to_yaml(c: CodecConfig) -> str:
    return yaml.safe_dump(config_to_dict(c))


def config_from_yaml(s: str) -> CodecConfig:
    return config_from_dict(yaml.safe_load(s))


def load_config(filepath: str) -> CodecConfig:
    """
    Load a CodecConfig from a YAML or JSON file.

    Args:
        filepath: Path ending in .json, otherwise parsed as YAML

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If a setting is invalid
    """
    with open(filepath, "r", encoding="utf-8") as f:
        content = f.read()
    if filepath.endswith(".json"):
        return config_from_json(content)
    return config_from_yaml(content)
