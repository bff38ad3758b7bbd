# scopepost/config/models.py

"""
Pydantic models for defining the structure and validation of the scopepost configuration (scopepost.toml).
Uses Pydantic V2 syntax.
"""

from pathlib import Path
from typing import List, Union, Any

from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict

from scopepost.enums import MathMode, WindowFunction

# --- Helper Functions ---

def _resolve_path(path: Union[str, Path]) -> Path:
    """Resolves and expands user paths."""
    return Path(path).expanduser().resolve()

# --- Model Definitions ---

class ChannelVoltageSettings(BaseModel):
    """Voltage display settings of one channel."""
    used: bool = Field(True, description="Channel is shown in the voltage (time-domain) view.")
    # Only read on the first math channel; all math channels share it.
    math_mode: MathMode = Field(MathMode.ADD_CH1_CH2, description="Arithmetic used for math channels.")

    @field_validator('math_mode', mode='before')
    @classmethod
    def parse_math_mode(cls, value: Any) -> Any:
        if isinstance(value, str):
            return MathMode.from_name(value)
        return value

class ChannelSpectrumSettings(BaseModel):
    """Spectrum display settings of one channel."""
    used: bool = Field(False, description="Channel is shown in the spectrum (frequency-domain) view.")

class ScopeSettings(BaseModel):
    """Channel layout and per-channel display flags."""
    physical_channels: int = Field(2, ge=2, description="Number of hardware channels (math needs channels 0 and 1).")
    math_channels: int = Field(1, ge=0, description="Number of derived math channels.")
    voltage: List[ChannelVoltageSettings] = Field(default_factory=list)
    spectrum: List[ChannelSpectrumSettings] = Field(default_factory=list)

    @model_validator(mode='after')
    def pad_channel_lists(self) -> 'ScopeSettings':
        """Ensures there is exactly one settings entry per channel."""
        count = self.channel_count
        self.voltage = (list(self.voltage) + [ChannelVoltageSettings() for _ in range(count)])[:count]
        self.spectrum = (list(self.spectrum) + [ChannelSpectrumSettings() for _ in range(count)])[:count]
        return self

    @property
    def channel_count(self) -> int:
        return self.physical_channels + self.math_channels

    def is_voltage_used(self, channel: int) -> bool:
        return 0 <= channel < len(self.voltage) and self.voltage[channel].used

    def is_spectrum_used(self, channel: int) -> bool:
        return 0 <= channel < len(self.spectrum) and self.spectrum[channel].used

    @property
    def math_mode(self) -> MathMode:
        """Math mode of the first derived channel, used for every derived channel."""
        if self.math_channels == 0:
            return MathMode.ADD_CH1_CH2
        return self.voltage[self.physical_channels].math_mode

class PostProcessingSettings(BaseModel):
    """Spectrum window and dB scaling."""
    spectrum_window: WindowFunction = Field(WindowFunction.HANN, description="Window applied before the FFT.")
    spectrum_reference: float = Field(0.0, description="Reference level of the spectrum in dB.")
    spectrum_limit: float = Field(-20.0, description="Lower display limit of the spectrum in dB.")

    @field_validator('spectrum_window', mode='before')
    @classmethod
    def parse_window(cls, value: Any) -> Any:
        if isinstance(value, str):
            return WindowFunction.from_name(value)
        return value

class PathsConfig(BaseModel):
    """Configuration for file paths used by scopepost."""
    log_directory: Path = Field(default=Path("./scopepost_logs"), description="Directory for log files.")

    @field_validator('log_directory', mode='before')
    @classmethod
    def resolve_paths_before_validation(cls, value: Any) -> Path:
        """Resolves paths before Pydantic validates them."""
        if isinstance(value, (str, Path)):
            return _resolve_path(value)
        return value

class LoggingConfig(BaseModel):
    """Logging configuration settings."""
    log_file_enabled: bool = Field(False, description="Enable/disable persistent file logging.")
    log_filename_template: str = Field("scopepost_run_{timestamp:%Y%m%d_%H%M%S}.log", description="Naming pattern for log files.")
    log_level_file: str = Field("DEBUG", description="Minimum level for file logs (DEBUG, INFO, WARNING, ERROR, CRITICAL).")
    log_format: str = Field("%(asctime)s [%(levelname)-8s] %(name)-30s - %(message)s (%(filename)s:%(lineno)d)", description="Format string for file log entries.")

    @field_validator('log_level_file')
    @classmethod
    def check_log_level(cls, value: str) -> str:
        """Validate log level strings."""
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in allowed_levels:
            raise ValueError(f"Invalid log level '{value}'. Must be one of {allowed_levels}")
        return upper_value

class ScopeConfig(BaseModel):
    """Root configuration model for scopepost."""
    model_config = ConfigDict(
        extra='ignore',
        validate_assignment=True
    )

    scope: ScopeSettings = Field(default_factory=ScopeSettings)
    postprocessing: PostProcessingSettings = Field(default_factory=PostProcessingSettings)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
