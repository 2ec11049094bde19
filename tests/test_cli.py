"""Tests for the command-line entry point."""

from main import build_parser, main


class TestCli:
    def test_template_then_summary(self, tmp_path, capsys):
        assert main(["template", "KAM", "FY26", "--output-dir", str(tmp_path)]) == 0
        path = tmp_path / "KAM_Dashboard_FY26.xlsx"
        assert path.exists()

        assert main(["summary", str(path)]) == 0
        out = capsys.readouterr().out
        assert "ANNUAL KPIs" in out
        assert "Open pipeline" in out

    def test_template_bad_fy(self, tmp_path):
        assert main(["template", "KAM", "26", "--output-dir", str(tmp_path)]) == 1

    def test_summary_missing_file(self, tmp_path):
        assert main(["summary", str(tmp_path / "missing.xlsx")]) == 1

    def test_serve_defaults(self):
        args = build_parser().parse_args(["serve"])
        assert args.port == 3001
        assert args.func.__name__ == "cmd_serve"
