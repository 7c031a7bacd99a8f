#!/usr/bin/env python3
"""
Command line front end.

Reads a matrix from a ``.npy`` file, runs one forward transform and stores
the result (plus whatever the inverse needs) in a ``.npz`` file, or runs the
matching inverse on such a file.

Usage:
    melcepstrum forward --config configs/default.yaml --mode mfcc spectrogram.npy mfcc.npz
    melcepstrum inverse --config configs/default.yaml mfcc.npz approx.npy
    melcepstrum info --config configs/default.yaml
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich import box

from .compress import CompressionState
from .config import MfccConfig
from .errors import MelcepstrumError
from .matrix import as_matrix
from .mfcc import MfccPipeline
from .utils.logging import get_logger, setup_logging

console = Console()
logger = get_logger(__name__)

MODES = ['mfcc', 'mel-log', 'dct', 'mel-wavelet', 'wavelet-compress', 'mel-wavelet-compress']


def add_common_arguments(parser: argparse.ArgumentParser, defaults: bool = True) -> None:
    # subcommand copies leave options given before the subcommand alone
    def default(value):
        return value if defaults else argparse.SUPPRESS

    parser.add_argument('--config', type=str, default=default(None), help='YAML configuration file')
    parser.add_argument('-v', '--verbose', action='store_true', default=default(False), help='Log debug output (timings)')
    parser.add_argument('--log-file', type=str, default=default(None), help='Also write logs to this file')


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog='melcepstrum', description="MFCC and Haar wavelet transforms on spectral matrices")
    add_common_arguments(parser)

    subparsers = parser.add_subparsers(dest='command', required=True)

    common = argparse.ArgumentParser(add_help=False)
    add_common_arguments(common, defaults=False)

    forward = subparsers.add_parser('forward', parents=[common], help='Apply a forward transform')
    forward.add_argument('--mode', choices=MODES, default='mfcc')
    forward.add_argument('input', type=str, help='Input matrix (.npy)')
    forward.add_argument('output', type=str, help='Output archive (.npz)')

    inverse = subparsers.add_parser('inverse', parents=[common], help='Apply the inverse of a stored forward transform')
    inverse.add_argument('--mode', choices=MODES, default=None, help='Defaults to the mode stored in the input')
    inverse.add_argument('input', type=str, help='Archive written by "forward" (.npz)')
    inverse.add_argument('output', type=str, help='Output matrix (.npy)')

    subparsers.add_parser('info', parents=[common], help='Show the configuration and matrix shapes')

    return parser.parse_args(argv)


def load_config(config_path: Optional[str]) -> MfccConfig:
    if config_path is None:
        return MfccConfig()
    return MfccConfig.from_yaml(config_path)


def run_forward(pipeline: MfccPipeline, mode: str, matrix: np.ndarray) -> Dict[str, np.ndarray]:
    """Run a forward transform and collect everything the inverse needs."""
    result = {'mode': np.array(mode), 'frames': np.array(matrix.shape[1])}

    if mode == 'mfcc':
        result['data'] = pipeline.apply_mel_scale_dct(matrix)
    elif mode == 'mel-log':
        result['data'] = pipeline.apply_mel_scale_and_log(matrix)
    elif mode == 'dct':
        result['data'] = pipeline.apply_dct(matrix)
    elif mode == 'mel-wavelet':
        result['data'] = pipeline.apply_mel_scale_wavelet_padding(matrix)
    else:
        if mode == 'wavelet-compress':
            data, state = pipeline.apply_wavelet_compression(matrix)
        else:
            data, state = pipeline.apply_mel_scale_and_wavelet_compress(matrix)
        result['data'] = data
        result['rows'] = np.array(matrix.shape[0])
        result['last_height'] = np.array(state.last_height)
        result['last_width'] = np.array(state.last_width)
        result['levels'] = np.array(state.levels)

    return result


def run_inverse(pipeline: MfccPipeline, mode: str, archive) -> np.ndarray:
    data = archive['data']

    if mode == 'mfcc':
        return pipeline.inverse_mel_scale_dct(data)
    elif mode == 'mel-log':
        return pipeline.inverse_mel_scale_and_log(data)
    elif mode == 'dct':
        return pipeline.inverse_dct(data)
    elif mode == 'mel-wavelet':
        return pipeline.inverse_mel_scale_wavelet_padding(data, int(archive['frames']))

    state = CompressionState(
        last_height=int(archive['last_height']),
        last_width=int(archive['last_width']),
        levels=int(archive['levels'])
    )
    if mode == 'wavelet-compress':
        return pipeline.inverse_wavelet_compression(data, state, int(archive['rows']), data.shape[1])
    return pipeline.inverse_mel_scale_and_wavelet_compress(data, state)


def summary_table(title: str, matrices: Dict[str, np.ndarray]) -> Table:
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("Matrix", style="cyan")
    table.add_column("Shape", justify="right")
    table.add_column("Min", justify="right")
    table.add_column("Max", justify="right")
    table.add_column("Mean", justify="right")

    for name, m in matrices.items():
        if m.size:
            table.add_row(name, str(m.shape), f"{m.min():.4g}", f"{m.max():.4g}", f"{m.mean():.4g}")
        else:
            table.add_row(name, str(m.shape), "-", "-", "-")
    return table


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    setup_logging(
        log_file=args.log_file,
        level=logging.DEBUG if args.verbose else logging.INFO,
        name='melcepstrum',
        console_level=logging.DEBUG if args.verbose else logging.WARNING
    )

    try:
        config = load_config(args.config)
        pipeline = MfccPipeline(config)

        if args.command == 'info':
            params = Table(box=box.SIMPLE)
            params.add_column("Parameter", style="cyan")
            params.add_column("Value", justify="right")
            for key, value in config.to_dict().items():
                params.add_row(key, str(value))
            params.add_row("filter weights", str(pipeline.filter_weights.shape))
            params.add_row("dct matrix", str(pipeline.dct_matrix.shape))
            console.print(Panel(params, title="melcepstrum configuration"))
            return 0

        if args.command == 'forward':
            matrix = as_matrix(np.load(args.input), "input matrix")
            result = run_forward(pipeline, args.mode, matrix)
            np.savez(args.output, **result)
            logger.info(f"forward {args.mode}: {args.input} -> {args.output}")
            console.print(summary_table(f"forward: {args.mode}", {
                Path(args.input).name: matrix,
                Path(args.output).name: result['data'],
            }))
            return 0

        archive = np.load(args.input)
        if not hasattr(archive, 'files'):
            raise MelcepstrumError(f"{args.input} is not an archive written by 'forward'")

        with archive:
            stored_mode = str(archive['mode'])
            mode = args.mode or stored_mode
            if mode != stored_mode:
                logger.warning(f"Inverting '{stored_mode}' data with mode '{mode}'")
            output = run_inverse(pipeline, mode, archive)
            data = archive['data']

        np.save(args.output, output)
        logger.info(f"inverse {mode}: {args.input} -> {args.output}")
        console.print(summary_table(f"inverse: {mode}", {
            Path(args.input).name: data,
            Path(args.output).name: output,
        }))
        return 0

    except (MelcepstrumError, OSError, KeyError) as exc:
        logger.error(f"{type(exc).__name__}: {exc}")
        console.print(f"[bold red]Error:[/bold red] {exc}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
