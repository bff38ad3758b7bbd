# tests/test_config.py

import pytest
from pathlib import Path

from scopepost.config import load_configuration, ScopeConfig, ScopeSettings, PostProcessingSettings
from scopepost.config.models import ChannelVoltageSettings
from scopepost.enums import MathMode, WindowFunction


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Removes SCOPEPOST_* variables that could leak into the tests."""
    import os
    for key in list(os.environ):
        if key.startswith("SCOPEPOST_"):
            monkeypatch.delenv(key)


def _load(**kwargs) -> ScopeConfig:
    return load_configuration(disable_project_config=True, disable_user_config=True, **kwargs)


def test_defaults():
    config = _load()
    assert config.scope.physical_channels == 2
    assert config.scope.math_channels == 1
    assert config.scope.channel_count == 3
    assert len(config.scope.voltage) == 3
    assert len(config.scope.spectrum) == 3
    assert config.scope.math_mode is MathMode.ADD_CH1_CH2
    assert config.postprocessing.spectrum_window is WindowFunction.HANN
    assert config.postprocessing.spectrum_reference == 0.0
    assert config.postprocessing.spectrum_limit == -20.0
    assert config.logging.log_file_enabled is False


def test_scope_settings_pad_and_truncate_channel_lists():
    scope = ScopeSettings(physical_channels=4, math_channels=0,
                          voltage=[ChannelVoltageSettings(used=False)] * 6)
    assert len(scope.voltage) == 4
    assert len(scope.spectrum) == 4
    assert scope.is_voltage_used(0) is False
    assert scope.is_spectrum_used(3) is False
    assert scope.is_spectrum_used(10) is False
    assert scope.math_mode is MathMode.ADD_CH1_CH2


def test_math_mode_from_first_math_channel():
    scope = ScopeSettings(voltage=[{}, {}, {"math_mode": "sub_ch1_from_ch2"}])
    assert scope.math_mode is MathMode.SUB_CH1_FROM_CH2


def test_window_names_and_fallback():
    assert PostProcessingSettings(spectrum_window="Flat-Top").spectrum_window is WindowFunction.FLATTOP
    assert PostProcessingSettings(spectrum_window="bogus").spectrum_window is WindowFunction.RECTANGULAR


def test_toml_file(tmp_path: Path):
    config_file = tmp_path / "scopepost.toml"
    config_file.write_text(
        "[scope]\n"
        "physical_channels = 2\n"
        "math_channels = 1\n"
        "voltage = [{used = true}, {used = true}, {used = true, math_mode = 'sub_ch2_from_ch1'}]\n"
        "[postprocessing]\n"
        "spectrum_window = 'blackman_harris'\n"
        "spectrum_limit = -80.0\n"
    )
    config = _load(config_files=[config_file])
    assert config.scope.math_mode is MathMode.SUB_CH2_FROM_CH1
    assert config.postprocessing.spectrum_window is WindowFunction.BLACKMANHARRIS
    assert config.postprocessing.spectrum_limit == -80.0


def test_environment_overrides_file(tmp_path: Path, monkeypatch):
    config_file = tmp_path / "scopepost.toml"
    config_file.write_text("[postprocessing]\nspectrum_window = 'hamming'\nspectrum_reference = 3.0\n")
    monkeypatch.setenv("SCOPEPOST_POSTPROCESSING__SPECTRUM_WINDOW", "nuttall")
    monkeypatch.setenv("SCOPEPOST_SCOPE__MATH_CHANNELS", "0")
    config = _load(config_files=[config_file])
    assert config.postprocessing.spectrum_window is WindowFunction.NUTTALL
    assert config.postprocessing.spectrum_reference == 3.0
    assert config.scope.math_channels == 0


def test_invalid_values_fall_back_to_defaults(tmp_path: Path):
    config_file = tmp_path / "scopepost.toml"
    config_file.write_text("[scope]\nphysical_channels = 1\n")
    config = _load(config_files=[config_file])
    assert config.scope.physical_channels == 2


def test_broken_toml_is_skipped(tmp_path: Path):
    config_file = tmp_path / "scopepost.toml"
    config_file.write_text("[postprocessing\nspectrum_window = \n")
    config = _load(config_files=[config_file])
    assert config == ScopeConfig()


def test_invalid_log_level_rejected():
    with pytest.raises(ValueError):
        ScopeConfig(logging={"log_level_file": "LOUD"})
