"""YAML dump helpers for ledger state summaries."""

from __future__ import annotations

import yaml

from settle_spec.state import LedgerState
from tools.fixtures_io import state_to_json


class PlainDumper(yaml.SafeDumper):
    pass


def _str_representer(dumper: yaml.SafeDumper, data: str) -> yaml.ScalarNode:
    return dumper.represent_scalar("tag:yaml.org,2002:str", data, style=None)


PlainDumper.add_representer(str, _str_representer)


def dump_yaml(data: dict) -> str:
    return yaml.dump(data, Dumper=PlainDumper, sort_keys=False, width=4096)


def dump_state(state: LedgerState, include_events: bool = False) -> str:
    summary = state_to_json(state)
    if not include_events:
        summary.pop("events", None)
    return dump_yaml(summary)

