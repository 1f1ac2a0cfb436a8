#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Tests for the easycontract build metadata and public import surface.

Author: Silan Hu (silan.hu@u.nus.edu)
"""

from pathlib import Path

import pytest

from easycontract import __version__ as public_version
from easycontract._version import __version__ as internal_version


PROJECT_ROOT = Path(__file__).resolve().parents[1]
PYPROJECT_PATH = PROJECT_ROOT / "pyproject.toml"


def _load_pyproject() -> dict:
    try:
        import tomllib  # Python 3.11+
    except ModuleNotFoundError:  # pragma: no cover
        tomllib = pytest.importorskip("tomli")

    return tomllib.loads(PYPROJECT_PATH.read_text(encoding="utf-8"))


def test_version_is_single_sourced_via_version_module():
    pyproject = _load_pyproject()
    project = pyproject["project"]

    assert project.get("dynamic") == ["version"]
    assert (
        pyproject["tool"]["setuptools"]["dynamic"]["version"]["attr"]
        == "easycontract._version.__version__"
    )
    assert public_version == internal_version


def test_runtime_dependencies_cover_schema_and_logging_stack():
    deps = "\n".join(_load_pyproject()["project"]["dependencies"]).lower()

    assert "jsonschema" in deps
    assert "rich" in deps
    assert "pytest" not in deps


def test_metadata_schema_ships_as_package_data():
    pyproject = _load_pyproject()

    assert "schema.json" in pyproject["tool"]["setuptools"]["package-data"]["easycontract.metadata"]
    assert (PROJECT_ROOT / "easycontract" / "metadata" / "schema.json").is_file()


def test_test_tooling_is_declared_for_pip_and_uv():
    pyproject = _load_pyproject()
    pytest_pins = [dep for dep in pyproject["project"]["optional-dependencies"]["test"] if dep.startswith("pytest")]

    assert pytest_pins
    assert set(pyproject["dependency-groups"]) >= {"dev", "test"}
    assert set(pyproject["tool"]["uv"]["default-groups"]) == {"dev", "test"}


def test_lazy_exports_resolve():
    import easycontract

    assert easycontract.ContractChaincode.__name__ == "ContractChaincode"
    with pytest.raises(AttributeError):
        easycontract.NotAThing
