"""Row-band partitioning for data-parallel per-pixel stages."""

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Tuple
import logging

import numpy as np

logger = logging.getLogger("texture_brew.bands")


def split_row_bands(height: int, workers: int = 1,
                    min_band_rows: int = 256) -> List[Tuple[int, int]]:
    """Partition ``[0, height)`` into contiguous ``(start, stop)`` row bands.

    At most ``workers`` bands are produced and no band is shorter than
    ``min_band_rows`` unless the whole image is.
    """
    if height <= 0:
        return []
    workers = max(int(workers), 1)
    min_band_rows = max(int(min_band_rows), 1)
    count = max(1, min(workers, height // min_band_rows))
    edges = np.linspace(0, height, count + 1).round().astype(int)
    return [(int(a), int(b)) for a, b in zip(edges[:-1], edges[1:]) if b > a]


def run_banded(fn: Callable[[np.ndarray], np.ndarray], src: np.ndarray,
               out: np.ndarray, workers: int = 1, min_band_rows: int = 256,
               halo: int = 0) -> np.ndarray:
    """Evaluate ``fn`` band by band and write the results into ``out``.

    ``fn`` receives a read-only slice of ``src`` that includes up to ``halo``
    extra rows on each side and must return an array with the same leading
    dimension. Rows belonging to the halo are discarded, so each worker
    writes a disjoint region of ``out``.
    """
    h = src.shape[0]
    bands = split_row_bands(h, workers, min_band_rows)

    def _band(bounds: Tuple[int, int]):
        y0, y1 = bounds
        lo = max(0, y0 - halo)
        hi = min(h, y1 + halo)
        res = fn(src[lo:hi])
        out[y0:y1] = res[y0 - lo:y0 - lo + (y1 - y0)]

    if len(bands) <= 1:
        for bounds in bands:
            _band(bounds)
        return out

    logger.debug("Processing %d rows in %d bands (halo=%d)", h, len(bands), halo)
    with ThreadPoolExecutor(max_workers=len(bands)) as executor:
        # list() re-raises the first worker exception in the caller.
        list(executor.map(_band, bands))
    return out
