"""
Hough 投票模块

扫描灰度栅格中“上暗下亮”的边缘像素，为每个角度分箱投票，构建 Hough 累加图。
投票是对像素的纯求和，因此可以按行分段并行累加后逐元素合并。
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from skew_toolkit.angle_map import AngleTable
from skew_toolkit.raster import GrayRaster, as_gray_raster

logger = logging.getLogger(__name__)

# 每批参与投票的像素数上限，控制 (像素数 x 角度分箱数) 临时数组的内存
_VOTE_CHUNK = 4096


@dataclass
class HoughMap:
    """Hough 累加图。

    Attributes
    ----------
    votes : ndarray
        形状为 ``(angle_bin_count, 2 * half_width)`` 的投票计数。
    half_width : int
        半径轴的中心偏移，``radius_bin - half_width`` 为相对图像中心的有符号距离。
    """

    votes: NDArray[np.int32]
    half_width: int

    @property
    def angle_bin_count(self) -> int:
        return self.votes.shape[0]

    @property
    def radius_bin_count(self) -> int:
        return self.votes.shape[1]

    @property
    def max_intensity(self) -> int:
        """图中的最大票数，空图为 0。"""
        if self.votes.size == 0:
            return 0
        return int(self.votes.max())


def hough_half_width(width: int, height: int) -> int:
    """半径轴的一半长度：图像中心到角点的距离（向下取整）。"""
    half_width = width // 2
    half_height = height // 2
    return int(math.sqrt(half_width * half_width + half_height * half_height))


def edge_mask(
    pixels: NDArray[np.uint8],
    dark_threshold: int = 100,
    darkness_ratio: float = 0.5,
) -> NDArray[np.bool_]:
    """标记参与投票的像素。

    像素本身足够暗（``< dark_threshold``），且比正下方像素的
    ``darkness_ratio`` 倍（截断为 8 位）还要暗。最后一行没有下方像素，不参与。

    Returns
    -------
    ndarray
        形状为 ``(height - 1, width)`` 的布尔掩码。
    """
    if pixels.shape[0] < 2:
        return np.zeros((0, pixels.shape[1]), dtype=bool)

    current = pixels[:-1]
    below = np.minimum(np.floor(pixels[1:] * darkness_ratio), 255)
    return (current < dark_threshold) & (current < below)


def empty_map(table: AngleTable, width: int, height: int) -> HoughMap:
    """与给定图像尺寸匹配的全零累加图。"""
    half_hough = hough_half_width(width, height)
    votes = np.zeros((table.angle_bin_count, 2 * half_hough), dtype=np.int32)
    return HoughMap(votes=votes, half_width=half_hough)


def accumulate(
    image: GrayRaster | NDArray[np.uint8],
    table: AngleTable,
    row_range: tuple[int, int] | None = None,
    dark_threshold: int = 100,
    darkness_ratio: float = 0.5,
) -> HoughMap:
    """构建 Hough 累加图。

    Parameters
    ----------
    image : GrayRaster or ndarray
        8 位单通道输入图像。
    table : AngleTable
        角度查找表。
    row_range : tuple[int, int] or None
        只扫描 ``[start, stop)`` 范围内的行；坐标原点仍是整幅图像的中心。
    dark_threshold : int
        暗像素阈值。
    darkness_ratio : float
        与下方像素比较时的比例。

    Returns
    -------
    HoughMap
        累加图。

    Raises
    ------
    InvalidFormatError
        图像不是单通道 8 位格式。
    """
    raster = as_gray_raster(image)
    pixels = raster.pixels()
    height, width = pixels.shape

    hough_map = empty_map(table, width, height)
    radius_bins = hough_map.radius_bin_count
    angle_bins = hough_map.angle_bin_count

    start, stop = 0, max(height - 1, 0)
    if row_range is not None:
        start = min(max(row_range[0], 0), stop)
        stop = min(max(row_range[1], start), stop)

    if angle_bins == 0 or radius_bins == 0 or start >= stop:
        return hough_map

    # 多取一行作为最后一行的“下方像素”
    mask = edge_mask(pixels[start : stop + 1], dark_threshold, darkness_ratio)
    rows, cols = np.nonzero(mask)
    if len(rows) == 0:
        return hough_map

    xs = (cols - width // 2).astype(np.float64)
    ys = (rows + start - height // 2).astype(np.float64)

    flat_offsets = np.arange(angle_bins, dtype=np.int64) * radius_bins
    counts = np.zeros(angle_bins * radius_bins, dtype=np.int64)

    for i in range(0, len(xs), _VOTE_CHUNK):
        x = xs[i : i + _VOTE_CHUNK, None]
        y = ys[i : i + _VOTE_CHUNK, None]
        radius = np.rint(table.cos * x - table.sin * y).astype(np.int64) + hough_map.half_width
        valid = (radius >= 0) & (radius < radius_bins)
        flat = (radius + flat_offsets)[valid]
        counts += np.bincount(flat, minlength=counts.size)

    hough_map.votes[:] = counts.reshape(angle_bins, radius_bins)
    logger.debug("Hough 投票: 行 [%d, %d) 中 %d 个边缘像素", start, stop, len(xs))
    return hough_map


def merge_maps(maps: Sequence[HoughMap]) -> HoughMap:
    """逐元素合并多张累加图。

    Raises
    ------
    ValueError
        序列为空或累加图尺寸不一致。
    """
    if not maps:
        raise ValueError("至少需要一张累加图")

    first = maps[0]
    votes = first.votes.copy()
    for other in maps[1:]:
        if other.votes.shape != votes.shape or other.half_width != first.half_width:
            raise ValueError(
                f"累加图尺寸不一致: {other.votes.shape} vs {votes.shape}"
            )
        votes += other.votes
    return HoughMap(votes=votes, half_width=first.half_width)


def split_rows(height: int, parts: int) -> list[tuple[int, int]]:
    """将可投票的行 ``[0, height - 1)`` 切分为至多 ``parts`` 段连续区间。"""
    total = max(height - 1, 0)
    parts = max(1, min(parts, total)) if total else 1
    bounds = np.linspace(0, total, parts + 1).astype(int)
    return [(int(a), int(b)) for a, b in zip(bounds[:-1], bounds[1:])]


def accumulate_parallel(
    image: GrayRaster | NDArray[np.uint8],
    table: AngleTable,
    workers: int = 2,
    dark_threshold: int = 100,
    darkness_ratio: float = 0.5,
) -> HoughMap:
    """按行分段、多线程构建累加图，结果与 :func:`accumulate` 完全一致。

    每个线程拥有独立的累加图，全部完成后逐元素求和。
    """
    raster = as_gray_raster(image)
    bands = split_rows(raster.height, workers)
    if len(bands) == 1:
        return accumulate(raster, table, bands[0], dark_threshold, darkness_ratio)

    with ThreadPoolExecutor(max_workers=len(bands)) as executor:
        futures = [
            executor.submit(accumulate, raster, table, band, dark_threshold, darkness_ratio)
            for band in bands
        ]
        maps = [future.result() for future in futures]

    logger.debug("并行累加完成: %d 个行段", len(maps))
    return merge_maps(maps)
