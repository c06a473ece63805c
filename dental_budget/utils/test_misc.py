from pathlib import Path

from dental_budget.utils.misc import load_module


def test_load_module(tmp_path: Path):
    script = tmp_path / "sample_module.py"
    script.write_text("VALUE = 42\n")
    module = load_module(script, module_name="dental_budget_test_sample")
    assert module.VALUE == 42


def test_load_cli_subcommand_package():
    cli_dir = Path(__file__).parent.parent / "cli" / "budget" / "__init__.py"
    module = load_module(cli_dir, module_name="dental_budget.cli.budget")
    assert callable(module.command)
    assert module.COMMAND_DESCRIPTION
