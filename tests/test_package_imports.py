"""Entry points must import in a fresh interpreter."""

import subprocess
import sys

import pytest


@pytest.mark.parametrize(
    "module",
    [
        "ledgerly.cli.main",
        "ledgerly.database.factories",
        "ledgerly.domain.import_service",
        "ledgerly.domain.account",
    ],
)
def test_module_imports_in_fresh_interpreter(module):
    result = subprocess.run(
        [sys.executable, "-c", f"import {module}"],
        capture_output=True,
        text=True,
    )

    assert result.returncode == 0, result.stderr


def test_console_script_help():
    result = subprocess.run(
        [sys.executable, "-c", "from ledgerly.cli.main import main; main()", "--help"],
        capture_output=True,
        text=True,
    )

    assert result.returncode == 0, result.stderr
    assert "import" in result.stdout
