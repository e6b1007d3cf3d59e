"""Test configuration — make the hyphenated engine directory importable."""

import importlib.util
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent

# Register agent-03-place-matching as `agent_03_place_matching`.
# pytest loads conftest.py before collecting test modules, so this
# runs early enough for `from agent_03_place_matching...` imports to work.

_ALIAS = "agent_03_place_matching"

if _ALIAS not in sys.modules:
    _pkg_path = ROOT / "agent-03-place-matching"
    _alg_path = _pkg_path / "algorithms"

    _spec = importlib.util.spec_from_file_location(
        _ALIAS,
        _alg_path / "__init__.py",
        submodule_search_locations=[str(_pkg_path)],
    )
    sys.modules[_ALIAS] = importlib.util.module_from_spec(_spec)

    _alg_spec = importlib.util.spec_from_file_location(
        f"{_ALIAS}.algorithms",
        _alg_path / "__init__.py",
        submodule_search_locations=[str(_alg_path)],
    )
    _alg_mod = importlib.util.module_from_spec(_alg_spec)
    sys.modules[f"{_ALIAS}.algorithms"] = _alg_mod
    _alg_spec.loader.exec_module(_alg_mod)
