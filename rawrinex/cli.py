#!/usr/bin/env python3
# Copyright 2024 inuex35
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Command line converter from GnssLogger logs to RINEX 3.04 observations

Usage:
    rawrinex gnss_log_2024_10_19.txt
    rawrinex gnss_log.txt -o station --leap-seconds 18 --log-level DEBUG
"""

import argparse
import sys

from .converter import ConversionError, convert_file
from .core.config import ConverterConfig
from .logger import setup_logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='rawrinex',
        description='Convert Android GnssLogger raw measurements to RINEX 3.04 observations')
    parser.add_argument('input', type=str, help='GnssLogger text log (.txt)')
    parser.add_argument('-o', '--output', type=str,
                        help='Output base name (extension becomes .YYo); defaults to the input name')
    parser.add_argument('--leap-seconds', type=int, help='GPS-UTC leap seconds')
    parser.add_argument('--max-prr-unc', type=float,
                        help='Maximum pseudorange rate uncertainty (m/s)')
    parser.add_argument('--max-tow-unc', type=float,
                        help='Maximum received satellite time uncertainty (ns)')
    parser.add_argument('--log-level', type=str, default='INFO',
                        choices=['TRACE', 'DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Console log level')
    parser.add_argument('--log-file', type=str, help='Also write the log to this file')
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logger = setup_logger(level=args.log_level, log_file=args.log_file)

    config = ConverterConfig.from_dict({
        'leap_seconds': args.leap_seconds,
        'max_prr_uncertainty': args.max_prr_unc,
        'max_tow_uncertainty_nanos': args.max_tow_unc,
    })

    try:
        path = convert_file(args.input, args.output, config)
    except OSError as e:
        logger.error("Cannot open input: %s", e)
        return 1
    except ConversionError as e:
        logger.error("%s", e)
        return 1

    logger.info("RINEX file written: %s", path)
    return 0


if __name__ == '__main__':
    sys.exit(main())
