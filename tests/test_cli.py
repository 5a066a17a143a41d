"""Tests for the command line interface."""

import json

import pytest

from payroll_core.cli import PayrollCli


@pytest.fixture
def snapshot_file(tmp_path):
    path = tmp_path / "snapshot.json"
    path.write_text(
        json.dumps(
            {
                "period_start": "2026-01-01",
                "period_end": "2026-01-31",
                "employees": [
                    {"id": "e1", "pay_rate": "50000", "country": "ZZ"},
                    {"id": "e2", "pay_rate": "250000", "country": "ZZ"},
                ],
                "custom_adjustments": {"e1": [{"name": "Loan", "amount": "1000"}]},
                "rules": {
                    "ZZ": {
                        "currency": "ZZD",
                        "deductions": [{"name": "Levy", "type": "percentage", "percentage": 5}],
                    }
                },
            }
        )
    )
    return path


class TestPayrollCli:
    """Test CLI commands."""

    def test_no_command(self, capsys):
        assert PayrollCli().run([]) == 1

    def test_calculate(self, snapshot_file, capsys):
        assert PayrollCli().run(["calculate", str(snapshot_file)]) == 0

        output = json.loads(capsys.readouterr().out)
        assert output["status"] == "draft"
        assert output["totals"]["items"] == 2
        assert output["totals"]["net_pay"] == "284000.00"
        assert [i["employee_id"] for i in output["items"]] == ["e1", "e2"]

    def test_plan_installments(self, snapshot_file, capsys):
        code = PayrollCli().run(["plan-installments", str(snapshot_file), "--months", "3"])
        assert code == 0

        rows = json.loads(capsys.readouterr().out)
        assert rows[1] == {
            "employee_id": "e2",
            "annual_liability": "10000",
            "monthly_installment": "3333",
        }

    def test_invalid_months(self, snapshot_file, capsys):
        code = PayrollCli().run(["plan-installments", str(snapshot_file), "--months", "12"])
        assert code == 1
        assert "ERROR" in capsys.readouterr().err

    def test_missing_file(self, tmp_path, capsys):
        assert PayrollCli().run(["calculate", str(tmp_path / "missing.json")]) == 1

    def test_invalid_amount_is_usage_error(self, snapshot_file, capsys):
        with pytest.raises(SystemExit) as exc_info:
            PayrollCli().run(
                ["plan-installments", str(snapshot_file), "--scope", "threshold", "--threshold", "abc"]
            )

        assert exc_info.value.code == 2
        assert "invalid amount: 'abc'" in capsys.readouterr().err
