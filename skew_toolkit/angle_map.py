"""
角度查找表模块

为 Hough 变换预先计算各角度分箱的正弦、余弦值。
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray


@dataclass(frozen=True)
class AngleTable:
    """角度分箱的正弦/余弦查找表。

    Attributes
    ----------
    sin, cos : ndarray
        每个角度分箱对应的正弦、余弦值，长度为 ``angle_bin_count``。
    min_theta, max_theta : float
        内部角度范围（度），``theta = 90 + beta``。
    steps_per_degree : int
        每度的分箱数。
    theta_step : float
        相邻分箱之间的角度差（弧度）。
    generation : int
        构建该表时的配置版本号，用于判断是否过期。
    """

    sin: NDArray[np.float64]
    cos: NDArray[np.float64]
    min_theta: float
    max_theta: float
    steps_per_degree: int
    theta_step: float
    generation: int = 0

    @property
    def angle_bin_count(self) -> int:
        return len(self.sin)

    def theta_of(self, angle_bin: int) -> float:
        """分箱序号对应的内部角度（度）。"""
        return self.min_theta + angle_bin / self.steps_per_degree


def build_angle_table(
    min_beta: float,
    max_beta: float,
    steps_per_degree: int,
    generation: int = 0,
) -> AngleTable:
    """根据倾斜角度范围构建查找表。

    Parameters
    ----------
    min_beta, max_beta : float
        需要检测的倾斜角范围（度），相对水平方向。
    steps_per_degree : int
        每度的分箱数。
    generation : int
        配置版本号，原样记录在结果中。

    Returns
    -------
    AngleTable
        查找表。范围为空或反向时返回长度为 0 的表。
    """
    min_theta = 90.0 + min_beta
    max_theta = 90.0 + max_beta

    count = int(round((max_theta - min_theta) * steps_per_degree))
    if count <= 0:
        empty = np.zeros(0, dtype=np.float64)
        return AngleTable(empty, empty.copy(), min_theta, max_theta, steps_per_degree, 0.0, generation)

    theta_step = (max_theta - min_theta) * math.pi / 180 / count
    angles = min_theta * math.pi / 180 + np.arange(count) * theta_step

    return AngleTable(
        sin=np.sin(angles),
        cos=np.cos(angles),
        min_theta=min_theta,
        max_theta=max_theta,
        steps_per_degree=steps_per_degree,
        theta_step=theta_step,
        generation=generation,
    )
