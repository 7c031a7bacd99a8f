"""
Pipeline configuration.

A configuration fixes everything the filterbank and the DCT basis depend on,
so one ``MfccConfig`` maps to exactly one pair of (filter weights, DCT
matrix). Configurations are usually read from a YAML file:

    mfcc:
      window_size: 1024
      sample_rate: 44100
      number_filters: 36
      number_coefficients: 20
      number_wavelet_transforms: 2
      wavelet_threshold: 0.0
"""

from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from .errors import ConfigurationError

# camelCase spellings accepted for compatibility with existing config files
_ALIASES = {
    'windowSize': 'window_size',
    'sampleRate': 'sample_rate',
    'numberFilters': 'number_filters',
    'numberCoefficients': 'number_coefficients',
    'numberWaveletTransforms': 'number_wavelet_transforms',
    'waveletThreshold': 'wavelet_threshold',
}


def _coerce(key: str, value: Any, kind: type):
    """Convert a raw config value to int or float without silent truncation."""
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid value for {key}: {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid value for {key}: {value!r}") from exc

    if kind is float:
        return number
    if not number.is_integer():
        raise ConfigurationError(f"{key} must be an integer, got {value!r}")
    return int(number)


@dataclass(frozen=True)
class MfccConfig:
    """
    Configuration of an MFCC / wavelet transform pipeline.

    Attributes:
        window_size: FFT frame length in samples (spectra have window_size/2 rows)
        sample_rate: Sample rate in Hz
        number_filters: Number of Mel bands (e.g. 36, SPHINX-III uses 40)
        number_coefficients: Cepstral / wavelet rows kept (e.g. 20)
        number_wavelet_transforms: Pyramid levels of the wavelet compressor
        wavelet_threshold: Hard quantization threshold of the wavelet compressor
    """
    window_size: int = 1024
    sample_rate: int = 44100
    number_filters: int = 36
    number_coefficients: int = 20
    number_wavelet_transforms: int = 2
    wavelet_threshold: float = 0.0

    def __post_init__(self):
        self.validate()

    @property
    def number_bins(self) -> int:
        """Rows of a spectral matrix for this window size."""
        return self.window_size // 2

    def validate(self) -> None:
        if self.window_size <= 0 or self.window_size % 2 != 0:
            raise ConfigurationError(
                f"window_size must be a positive even number, got {self.window_size}"
            )
        if self.sample_rate // 2 < 20:
            raise ConfigurationError(
                f"sample_rate must be at least 40 Hz, got {self.sample_rate}"
            )
        if self.number_filters < 1:
            raise ConfigurationError(f"number_filters must be >= 1, got {self.number_filters}")
        if not 1 <= self.number_coefficients <= self.number_filters:
            raise ConfigurationError(
                f"number_coefficients must be in [1, {self.number_filters}], "
                f"got {self.number_coefficients}"
            )
        if self.number_wavelet_transforms < 0:
            raise ConfigurationError(
                f"number_wavelet_transforms must be >= 0, got {self.number_wavelet_transforms}"
            )
        if self.wavelet_threshold < 0:
            raise ConfigurationError(
                f"wavelet_threshold must be >= 0, got {self.wavelet_threshold}"
            )

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'MfccConfig':
        """
        Build a configuration from a mapping.

        Accepts snake_case keys, the camelCase aliases, and an optional
        top-level ``mfcc`` section. Unknown keys are rejected.
        """
        if config is None:
            return cls()
        if not isinstance(config, dict):
            raise ConfigurationError(f"Configuration must be a mapping, got {type(config).__name__}")

        section = config.get('mfcc', config)
        if not isinstance(section, dict):
            raise ConfigurationError("'mfcc' section must be a mapping")

        known = {f.name: f.type for f in fields(cls)}
        kwargs = {}
        for key, value in section.items():
            name = _ALIASES.get(key, key)
            if name not in known:
                raise ConfigurationError(f"Unknown configuration key: {key}")
            kwargs[name] = _coerce(key, value, float if name == 'wavelet_threshold' else int)

        return cls(**kwargs)

    @classmethod
    def from_yaml(cls, config_path: Union[str, Path]) -> 'MfccConfig':
        """Load configuration from YAML file."""
        with open(config_path, 'r') as f:
            return cls.from_dict(yaml.safe_load(f))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
