import logging

import pytest

from mapforge.config import DEFAULT_PALETTE_PATH, Settings, configure_logging
from mapforge.main import main, parse_args, settings_from_args


def test_parse_args_defaults() -> None:
    ns = parse_args([])

    assert ns.paths == []
    assert ns.dither in ("ordered", "floyd")
    assert ns.width >= 1 and ns.height >= 1


def test_settings_from_args_overrides(tmp_path) -> None:
    ns = parse_args(["--width", "32", "--height", "64", "--dither", "ordered", "--palette", str(tmp_path / "p.csv")])

    settings = settings_from_args(ns)

    assert settings.map_width == 32
    assert settings.map_height == 64
    assert settings.dither == "ordered"
    assert settings.palette_path == tmp_path / "p.csv"


def test_main_converts_image(write_png, palette_file) -> None:
    src = write_png("icon.png", 10, 6)

    code = main([str(src), "--palette", str(palette_file), "--width", "16", "--height", "16"])

    assert code == 0
    assert len(src.with_name("icon_map").read_bytes()) == 16 * 16


def test_main_round_trips_a_map(write_png, palette_file) -> None:
    src = write_png("icon.png", 16, 16)
    common = ["--palette", str(palette_file), "--width", "16", "--height", "16", "--dither", "ordered"]

    assert main([str(src), *common]) == 0
    assert main([str(src.with_name("icon_map")), *common]) == 0
    assert src.with_name("icon_map.png").exists()


def test_main_skips_failed_files(tmp_path, write_png, palette_file) -> None:
    good = write_png("good.png", 4, 4)

    code = main([str(tmp_path / "missing.png"), str(good), "--palette", str(palette_file)])

    assert code == 0
    assert good.with_name("good_map").exists()


def test_main_palette_failure_returns_1(tmp_path, write_png) -> None:
    src = write_png("icon.png", 4, 4)

    assert main([str(src), "--palette", str(tmp_path / "missing.csv")]) == 1
    assert not src.with_name("icon_map").exists()


def test_main_without_paths(palette_file) -> None:
    assert main(["--palette", str(palette_file)]) == 0


@pytest.mark.parametrize("args", [["--width", "0"], ["--height", "-3"]])
def test_main_rejects_bad_dimensions(args) -> None:
    assert main(args) == 2


def test_settings_from_env(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("MAPFORGE_MAP_WIDTH", "64")
    monkeypatch.setenv("MAPFORGE_MAP_HEIGHT", "32")
    monkeypatch.setenv("MAPFORGE_PALETTE", str(tmp_path / "colours.csv"))
    monkeypatch.setenv("MAPFORGE_DITHER", "Ordered")
    monkeypatch.setenv("MAPFORGE_LOG_LEVEL", "debug")

    settings = Settings.from_env()

    assert settings.map_width == 64
    assert settings.map_height == 32
    assert settings.palette_path == tmp_path / "colours.csv"
    assert settings.dither == "ordered"
    assert settings.log_level == "DEBUG"


def test_settings_defaults(monkeypatch) -> None:
    for name in ("MAPFORGE_MAP_WIDTH", "MAPFORGE_MAP_HEIGHT", "MAPFORGE_PALETTE", "MAPFORGE_DITHER", "MAPFORGE_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings.from_env()

    assert (settings.map_width, settings.map_height) == (128, 128)
    assert settings.palette_path == DEFAULT_PALETTE_PATH
    assert settings.dither == "floyd"


def test_settings_malformed_dimensions_fall_back(monkeypatch, caplog) -> None:
    monkeypatch.setenv("MAPFORGE_MAP_WIDTH", "wide")
    monkeypatch.setenv("MAPFORGE_MAP_HEIGHT", "64")

    with caplog.at_level(logging.WARNING, logger="mapforge.config"):
        settings = Settings.from_env()

    assert settings.map_width == 128
    assert settings.map_height == 64
    assert "MAPFORGE_MAP_WIDTH" in caplog.text


def test_configure_logging_returns_package_logger() -> None:
    logger = configure_logging("WARNING")

    assert isinstance(logger, logging.Logger)
    assert logger.name == "mapforge"
