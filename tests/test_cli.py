"""
CLI tests.

Config loading, the TMDB client and the browser are patched.
"""

from contextlib import contextmanager
from datetime import date
from unittest.mock import MagicMock, patch

import pytest

from discover_parity.cli import create_parser, filters_from_args, main

from conftest import MockDiscoverPage, MockTMDBClient


@pytest.fixture
def patched_env(config, ui_records):
    """Patch config, client and browser so main() runs offline."""
    client = MockTMDBClient()
    pages = []

    def make_page(driver, cfg):
        page = MockDiscoverPage(ui_records, cfg)
        pages.append(page)
        return page

    @contextmanager
    def fake_managed_driver(cfg):
        yield MagicMock()

    with patch("discover_parity.cli.Config.from_env", return_value=config), patch(
        "discover_parity.cli.TMDBClient", return_value=client
    ), patch("discover_parity.cli.managed_driver", side_effect=fake_managed_driver), patch(
        "discover_parity.cli.DiscoverPage",
        side_effect=make_page,
    ):
        client.pages = pages
        yield client


class TestParser:
    """Flow 1: Commands and their default filters"""

    def test_compare_defaults(self):
        args = create_parser().parse_args(["compare"])

        assert args.genre == 18
        assert args.from_date == date(1990, 1, 1)
        assert args.to_date == date(2005, 12, 31)
        assert args.sort == "primary_release_date.asc"

    def test_ui_defaults(self):
        args = create_parser().parse_args(["ui"])

        assert args.genre == 28
        assert args.from_date == date(2010, 1, 1)

    def test_api_defaults(self):
        args = create_parser().parse_args(["api"])

        assert args.genre is None
        assert args.max_pages == 3

    def test_explicit_filters(self):
        args = create_parser().parse_args(
            ["compare", "--genre", "35", "--from", "2001-02-03", "--to", "2002-02-03", "--sort", "popularity.desc"]
        )

        assert args.genre == 35
        assert args.from_date == date(2001, 2, 3)
        assert args.sort == "popularity.desc"

    def test_bad_date_exits(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["compare", "--from", "03/02/2001"])

    def test_filters_from_args_uses_config_pages(self, config):
        args = create_parser().parse_args(["compare"])

        filters = filters_from_args(args, config)

        assert filters.genre_id == 18
        assert filters.max_pages == config.max_pages


class TestMain:
    """Flow 2: End-to-end command runs"""

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out.lower()

    def test_config_error(self, capsys):
        with patch("discover_parity.cli.Config.from_env", side_effect=ValueError("TMDB_API_KEY missing")):
            assert main(["sanity"]) == 1

        assert "Configuration error" in capsys.readouterr().out

    def test_sanity(self, patched_env, capsys):
        assert main(["sanity"]) == 0
        assert "/configuration" in capsys.readouterr().out

    def test_sanity_all_endpoints_down(self, patched_env):
        patched_env.endpoint_status = {"/configuration": False, "/genre/movie/list": False}

        assert main(["sanity"]) == 1

    def test_genres(self, patched_env, capsys):
        assert main(["genres"]) == 0
        assert "Drama" in capsys.readouterr().out

    def test_api_writes_report(self, patched_env, config):
        assert main(["api"]) == 0

        reports = list(config.report_dir.glob("api_date_check_*.json"))
        assert len(reports) == 1

    def test_compare(self, patched_env, config, capsys):
        assert main(["compare"]) == 0

        out = capsys.readouterr().out
        assert "Status: PASS" in out
        assert list(config.report_dir.glob("ui_vs_api_*.json"))
        assert list(config.report_dir.glob("ui_vs_api_*.txt"))

    def test_compare_failure(self, patched_env):
        patched_env.movies = []

        assert main(["compare"]) == 1

    def test_ui(self, patched_env, capsys):
        assert main(["ui"]) == 0
        assert "Goodfellas" in capsys.readouterr().out

    def test_sweep_api_only(self, patched_env, config):
        patched_env.failing_genres.add(27)

        assert main(["sweep", "--api-only"]) == 1

        tables = list(config.report_dir.glob("genre_sweep_*.txt"))
        assert "ERROR" in tables[0].read_text(encoding="utf-8")

    def test_report_dir_override(self, patched_env, tmp_path):
        target = tmp_path / "elsewhere"

        assert main(["--report-dir", str(target), "api"]) == 0
        assert list(target.glob("api_date_check_*.json"))

    def test_keyboard_interrupt(self, patched_env):
        patched_env.probe_endpoints = MagicMock(side_effect=KeyboardInterrupt)

        assert main(["sanity"]) == 130

    def test_unexpected_error(self, patched_env, capsys):
        patched_env.get_genres = MagicMock(side_effect=RuntimeError("boom"))

        assert main(["genres"]) == 1
        assert "boom" in capsys.readouterr().out

    @pytest.mark.parametrize("command", [["compare"], ["ui"], ["sweep"]])
    def test_limit_reaches_page(self, patched_env, command):
        """--limit caps the cards read for every browser command."""
        main(command + ["--limit", "2"])

        limits = [limit for page in patched_env.pages for limit in page.limits]
        assert limits
        assert set(limits) == {2}

    def test_default_limit_from_config(self, patched_env, config):
        main(["compare"])

        assert patched_env.pages[0].limits == [config.ui_card_limit]
