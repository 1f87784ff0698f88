from decimal import Decimal

import main
from marinedesk.cli import run_cli


def _feed(monkeypatch, answers):
    it = iter(answers)
    monkeypatch.setattr("builtins.input", lambda _msg="": next(it))


def test_cli_debt_payment(ctx, monkeypatch, capsys):
    _feed(monkeypatch, ["4", "C002", "5000", "", "0"])
    run_cli(ctx)
    assert ctx.store.state.customers["C002"].balance == Decimal("-10000")
    assert "New balance -10,000 LYD" in capsys.readouterr().out


def test_cli_reports_validation_errors_and_continues(ctx, monkeypatch, capsys):
    # labor-only sale without a device, then exit
    _feed(monkeypatch, ["3", "C001", "n", "200", "", "", "", "0"])
    run_cli(ctx)
    assert "[INPUT ERROR]" in capsys.readouterr().out
    assert ctx.store.state.sales == {}


def test_cli_denies_actions_outside_the_users_permissions(ctx, monkeypatch, capsys):
    _feed(monkeypatch, ["9", "0"])
    run_cli(ctx, username="tech")
    assert "[DENIED]" in capsys.readouterr().out


def test_main_returns_2_without_config(tmp_path, capsys):
    assert main.main(["--config", str(tmp_path / "missing.toml")]) == 2
    assert "[CONFIG ERROR]" in capsys.readouterr().out


def test_cli_edits_customer_balance_and_keeps_blank_fields(ctx, monkeypatch, capsys):
    _feed(monkeypatch, ["15", "C002", "", "", "", "-2000", "0"])
    run_cli(ctx)
    customer = ctx.store.state.customers["C002"]
    assert customer.balance == Decimal("-2000")
    assert customer.name == "Red Sea Co"
    assert "balance=-2,000 LYD" in capsys.readouterr().out


def test_cli_edits_job_parts(ctx, monkeypatch, capsys):
    with ctx.store.transaction() as state:
        job = ctx.maintenance.create_job(state, customer_id="C001", technician="Omar", device_info="Boat", labor_cost="500")
        job = ctx.maintenance.save_job(state, ctx.maintenance.add_part(state, job, product_id="P005", quantity=2))
    _feed(monkeypatch, ["14", job.id, "", "", "", "", "", "300", "u", "0", "1", "", "", "0"])
    run_cli(ctx)
    saved = ctx.store.state.maintenance[job.id]
    assert saved.total_cost == Decimal("650")
    assert saved.remaining_amount == Decimal("350")
    assert "remaining=350 LYD" in capsys.readouterr().out


def test_cli_archive_and_view_permissions(ctx, monkeypatch, capsys):
    _feed(monkeypatch, ["19", "", "", "0"])
    run_cli(ctx)
    assert "No matching invoices." in capsys.readouterr().out

    _feed(monkeypatch, ["1", "0"])
    run_cli(ctx, username="tech")
    assert "[DENIED]" in capsys.readouterr().out
