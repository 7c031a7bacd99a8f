"""
Tests for the melcepstrum command line.

Run:
    pytest tests/test_cli.py -v
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import numpy as np
import pytest

from melcepstrum import MfccPipeline
from melcepstrum.cli import main, parse_args

CONFIG = os.path.join(os.path.dirname(__file__), '..', 'configs', 'default.yaml')


@pytest.fixture
def spectral_file(tmp_path):
    rng = np.random.default_rng(1)
    path = tmp_path / "spectral.npy"
    np.save(path, np.abs(rng.normal(size=(512, 24))) * 100.0)
    return path


class TestCLI:
    """Test suite for forward/inverse runs through files."""

    def test_mfcc_round_trip(self, tmp_path, spectral_file):
        coded = tmp_path / "mfcc.npz"
        restored = tmp_path / "restored.npy"

        assert main(['--config', CONFIG, 'forward', '--mode', 'mfcc', str(spectral_file), str(coded)]) == 0
        with np.load(coded) as archive:
            assert archive['data'].shape == (20, 24)
            assert str(archive['mode']) == 'mfcc'
            expected = MfccPipeline().apply_mel_scale_dct(np.load(spectral_file))
            assert np.allclose(archive['data'], expected)

        assert main(['--config', CONFIG, 'inverse', str(coded), str(restored)]) == 0
        assert np.load(restored).shape == (512, 24)

    @pytest.mark.parametrize("mode", ['mel-log', 'mel-wavelet', 'mel-wavelet-compress'])
    def test_spectral_modes(self, tmp_path, spectral_file, mode):
        coded = tmp_path / "coded.npz"
        restored = tmp_path / "restored.npy"

        assert main(['forward', '--mode', mode, str(spectral_file), str(coded)]) == 0
        assert main(['inverse', str(coded), str(restored)]) == 0
        assert np.load(restored).shape == (512, 24)

    def test_wavelet_compress_mode(self, tmp_path):
        matrix = np.random.randn(36, 24)
        source = tmp_path / "log_mel.npy"
        coded = tmp_path / "coded.npz"
        restored = tmp_path / "restored.npy"
        np.save(source, matrix)

        assert main(['forward', '--mode', 'wavelet-compress', str(source), str(coded)]) == 0
        with np.load(coded) as archive:
            assert archive['data'].shape == (20, 24)
            assert int(archive['levels']) == 2

        assert main(['inverse', '--mode', 'wavelet-compress', str(coded), str(restored)]) == 0
        assert np.load(restored).shape == (36, 24)

    def test_dct_mode_lossless(self, tmp_path):
        config = tmp_path / "config.yaml"
        config.write_text("mfcc:\n  number_coefficients: 36\n")
        matrix = np.random.randn(36, 10)
        source = tmp_path / "log_mel.npy"
        coded = tmp_path / "coded.npz"
        restored = tmp_path / "restored.npy"
        np.save(source, matrix)

        assert main(['--config', str(config), 'forward', '--mode', 'dct', str(source), str(coded)]) == 0
        assert main(['--config', str(config), 'inverse', str(coded), str(restored)]) == 0
        assert np.allclose(np.load(restored), matrix)

    def test_info(self):
        assert main(['--config', CONFIG, 'info']) == 0

    def test_wrong_shape_fails(self, tmp_path):
        source = tmp_path / "bad.npy"
        np.save(source, np.ones((100, 4)))
        assert main(['forward', '--mode', 'mfcc', str(source), str(tmp_path / "out.npz")]) == 2

    def test_missing_file_fails(self, tmp_path):
        assert main(['forward', str(tmp_path / "missing.npy"), str(tmp_path / "out.npz")]) == 2

    def test_bad_config_fails(self, tmp_path):
        config = tmp_path / "config.yaml"
        config.write_text("mfcc:\n  number_coefficients: 99\n")
        assert main(['--config', str(config), 'info']) == 2

    def test_inverse_needs_archive(self, spectral_file, tmp_path):
        assert main(['inverse', str(spectral_file), str(tmp_path / "out.npy")]) == 2

    def test_options_after_subcommand(self, tmp_path, spectral_file):
        coded = tmp_path / "mfcc.npz"
        restored = tmp_path / "restored.npy"
        log_file = tmp_path / "logs" / "run.log"

        assert main(['forward', '--config', CONFIG, '--mode', 'mfcc', str(spectral_file), str(coded)]) == 0
        assert main(['inverse', '--config', CONFIG, '-v', '--log-file', str(log_file),
                     str(coded), str(restored)]) == 0
        assert main(['info', '--config', CONFIG]) == 0

        assert np.load(restored).shape == (512, 24)
        assert "Execution Time" in log_file.read_text()


class TestParseArgs:
    """Test suite for option placement around subcommands."""

    def test_defaults(self):
        args = parse_args(['info'])
        assert args.config is None
        assert args.verbose is False
        assert args.log_file is None

    def test_options_before_subcommand(self):
        args = parse_args(['--config', 'a.yaml', '-v', 'forward', 'in.npy', 'out.npz'])
        assert args.config == 'a.yaml'
        assert args.verbose is True
        assert args.mode == 'mfcc'

    def test_options_after_subcommand(self):
        args = parse_args(['forward', '--config', 'b.yaml', '--mode', 'dct', '--log-file', 'x.log', 'in.npy', 'out.npz'])
        assert args.config == 'b.yaml'
        assert args.log_file == 'x.log'
        assert args.mode == 'dct'
        assert args.verbose is False

    def test_subcommand_keeps_earlier_options(self):
        args = parse_args(['--config', 'a.yaml', 'inverse', 'in.npz', 'out.npy'])
        assert args.config == 'a.yaml'
        assert args.mode is None
