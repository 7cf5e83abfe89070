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

"""Coordinate transformation utilities"""


import numpy as np

from ..core.constants import D2R, FE_WGS84, RE_WGS84


def llh2ecef(llh: np.ndarray) -> np.ndarray:
    """Convert geodetic coordinates to ECEF coordinates

    Parameters
    ----------
    llh : np.ndarray
        Geodetic coordinates [lat, lon, height] where:
        - lat: latitude in radians
        - lon: longitude in radians
        - height: height above WGS84 ellipsoid in meters

    Returns
    -------
    np.ndarray
        ECEF coordinates [x, y, z] in meters

    Notes
    -----
    Uses the WGS84 ellipsoid parameters. This transformation is exact
    (no iterations required).
    """
    lat, lon, h = llh[0], llh[1], llh[2]

    sin_lat = np.sin(lat)
    cos_lat = np.cos(lat)
    sin_lon = np.sin(lon)
    cos_lon = np.cos(lon)

    e2 = FE_WGS84 * (2.0 - FE_WGS84)
    N = RE_WGS84 / np.sqrt(1.0 - e2 * sin_lat**2)

    x = (N + h) * cos_lat * cos_lon
    y = (N + h) * cos_lat * sin_lon
    z = (N * (1.0 - e2) + h) * sin_lat

    return np.array([x, y, z])


def geodetic_deg2ecef(lat_deg: float, lon_deg: float, height: float) -> np.ndarray:
    """ECEF position (m) of a latitude/longitude in degrees and ellipsoidal height"""
    return llh2ecef(np.array([lat_deg * D2R, lon_deg * D2R, height]))
