from __future__ import annotations

from plotbuild.config.settings import get_settings, load_settings, reset_settings


def test_defaults(monkeypatch) -> None:
    for key in ("MODE_LINES_THRESHOLD", "SIZE_MIN", "SIZE_MAX", "NUMERIC_PALETTE"):
        monkeypatch.delenv(f"PLOTBUILD_{key}", raising=False)

    settings = load_settings()

    assert settings.mode_lines_threshold == 20
    assert settings.size_range == (10.0, 100.0)
    assert settings.numeric_palette == "Viridis"


def test_environment_overrides_and_bad_values_fall_back(monkeypatch) -> None:
    monkeypatch.setenv("PLOTBUILD_SIZE_MAX", "50")
    monkeypatch.setenv("PLOTBUILD_MODE_LINES_THRESHOLD", "many")
    monkeypatch.setenv("PLOTBUILD_NA_COLOR", "  ")

    settings = load_settings()

    assert settings.size_range == (10.0, 50.0)
    assert settings.mode_lines_threshold == 20
    assert settings.na_color == "transparent"


def test_get_settings_is_cached_until_reset(monkeypatch) -> None:
    reset_settings()
    first = get_settings()
    monkeypatch.setenv("PLOTBUILD_COLORBAR_LEN", "0.3")

    assert get_settings() is first
    reset_settings()
    assert get_settings().colorbar_len == 0.3
    reset_settings()
