"""
峰值提取模块

在 Hough 累加图中寻找局部极大值，得到按强度排序的直线列表。
角度轴首尾相接：越过边界的角度对应另一侧的镜像直线（半径取反）。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from skew_toolkit.angle_map import AngleTable
from skew_toolkit.hough import HoughMap

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DetectedLine:
    """检测到的直线。

    Attributes
    ----------
    theta : float
        内部角度（度），水平直线为 90。
    radius : int
        直线到图像中心的有符号距离（像素）。
    intensity : int
        累加图中的票数。
    relative_intensity : float
        相对于累加图最大票数的强度，取值 [0, 1]。
    """

    theta: float
    radius: int
    intensity: int
    relative_intensity: float

    @property
    def skew(self) -> float:
        """该直线相对水平方向的倾斜角（度）。"""
        return self.theta - 90.0


def wrap_bin(
    angle_bin: int,
    radius_bin: int,
    angle_bin_count: int,
    max_radius: int,
) -> tuple[int, int]:
    """将越界的角度分箱折回有效范围。

    每跨越一次角度轴边界，半径坐标就镜像一次（``max_radius - radius_bin``）。
    半径轴不做环绕。

    Raises
    ------
    ValueError
        ``angle_bin_count`` 不是正数。
    """
    if angle_bin_count <= 0:
        raise ValueError(f"angle_bin_count 必须为正数: {angle_bin_count}")

    turns, wrapped = divmod(angle_bin, angle_bin_count)
    if turns % 2:
        radius_bin = max_radius - radius_bin
    return wrapped, radius_bin


def _is_local_peak(
    votes: NDArray[np.int32],
    angle_bin: int,
    radius_bin: int,
    peak_radius: int,
) -> bool:
    angle_bins, max_radius = votes.shape
    intensity = votes[angle_bin, radius_bin]

    for offset in range(-peak_radius, peak_radius + 1):
        row, center = wrap_bin(angle_bin + offset, radius_bin, angle_bins, max_radius)
        low = max(center - peak_radius, 0)
        high = min(center + peak_radius + 1, max_radius)
        if low < high and votes[row, low:high].max() > intensity:
            return False
    return True


def collect_lines(
    hough_map: HoughMap,
    table: AngleTable,
    min_intensity: int,
    peak_radius: int = 4,
) -> list[DetectedLine]:
    """收集强度不低于阈值的局部极大值。

    Parameters
    ----------
    hough_map : HoughMap
        累加图。
    table : AngleTable
        构建累加图时使用的角度查找表。
    min_intensity : int
        最低票数，至少为 1。
    peak_radius : int
        局部极大值的邻域半径（分箱数），角度轴和半径轴相同。

    Returns
    -------
    list[DetectedLine]
        按强度降序排列的直线，强度相同时保持扫描顺序。
    """
    votes = hough_map.votes
    max_intensity = hough_map.max_intensity
    min_intensity = max(int(min_intensity), 1)

    lines: list[DetectedLine] = []
    for angle_bin, radius_bin in zip(*np.nonzero(votes >= min_intensity)):
        if not _is_local_peak(votes, int(angle_bin), int(radius_bin), peak_radius):
            continue

        intensity = int(votes[angle_bin, radius_bin])
        lines.append(
            DetectedLine(
                theta=table.theta_of(int(angle_bin)),
                radius=int(radius_bin) - hough_map.half_width,
                intensity=intensity,
                relative_intensity=intensity / max_intensity if max_intensity else 0.0,
            )
        )

    lines.sort(key=lambda line: line.intensity, reverse=True)
    logger.debug("收集到 %d 条直线 (阈值 %d)", len(lines), min_intensity)
    return lines


def most_intensive_lines(lines: list[DetectedLine], count: int) -> list[DetectedLine]:
    """取强度最高的前 ``count`` 条直线（列表须已排序）。"""
    return lines[: max(count, 0)]
