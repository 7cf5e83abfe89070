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
rawrinex - Android GNSS raw measurements to RINEX

A Python library and command line tool that converts the raw per-satellite
measurements logged by Android devices (GnssLogger ``Raw`` records) into
RINEX 3.04 observation files: GNSS time reconstruction, epoch grouping,
pseudorange / carrier phase / Doppler derivation and fixed-column encoding.
"""

__version__ = "1.0.0"
__author__ = "rawrinex Development Team"
__title__ = "rawrinex"
__description__ = "Android GNSS raw measurement to RINEX converter"

from . import logger as _logger  # registers the TRACE level first
from .core import *
from .gnss import *
from .io import *
from .converter import (ConversionContext, ConversionError, ConversionResult,
                        convert_file, convert_measurements, write_rinex)
