"""
倾斜校正模块

基于 Hough 变换检测扫描文档中文字基线的主方向，得到页面的倾斜角度并进行矫正。
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Union

import cv2
import numpy as np
from numpy.typing import NDArray
from PIL import Image

from skew_toolkit.angle_map import AngleTable, build_angle_table
from skew_toolkit.hough import HoughMap, accumulate, accumulate_parallel
from skew_toolkit.peaks import DetectedLine, collect_lines, most_intensive_lines
from skew_toolkit.raster import GrayRaster, as_gray_raster

logger = logging.getLogger(__name__)

ImageLike = Union[GrayRaster, NDArray[np.uint8], Image.Image]


def _clamp(value, low, high=None):
    value = max(low, value)
    if high is not None:
        value = min(high, value)
    return value


@dataclass
class SkewConfig:
    """倾斜检测配置参数。超出范围的值会被截断到有效范围，而不是报错。"""

    # Hough 变换精度
    steps_per_degree: int = 5
    min_beta: float = -30.0
    max_beta: float = 30.0

    # 峰值提取
    local_peak_radius: int = 4
    max_lines: int = 10

    # 边缘投票
    dark_threshold: int = 100
    darkness_ratio: float = 0.5

    # 并行累加的线程数
    workers: int = 1

    def __post_init__(self) -> None:
        self.steps_per_degree = _clamp(int(self.steps_per_degree), 1, 10)
        self.local_peak_radius = _clamp(int(self.local_peak_radius), 1, 10)
        self.max_lines = _clamp(int(self.max_lines), 1)
        self.dark_threshold = _clamp(int(self.dark_threshold), 0, 255)
        self.darkness_ratio = _clamp(float(self.darkness_ratio), 0.0)
        self.workers = _clamp(int(self.workers), 1)
        self.min_beta = float(self.min_beta)
        self.max_beta = float(self.max_beta)


@dataclass
class SkewResult:
    """倾斜检测结果。

    Attributes
    ----------
    angle : float or None
        倾斜角度（度），正值表示基线向右上方倾斜（逆时针）。
        未检测到任何直线时为 ``None``。
    lines : list[DetectedLine]
        按强度降序排列的全部候选直线。
    used_lines : int
        参与平均的直线数。
    max_intensity : int
        累加图中的最大票数。
    """

    angle: float | None
    lines: list[DetectedLine] = field(default_factory=list)
    used_lines: int = 0
    max_intensity: int = 0

    @property
    def found(self) -> bool:
        """是否检测到倾斜角度。"""
        return self.angle is not None


class DocumentSkewChecker:
    """扫描文档倾斜角度检测器。

    对每个“上暗下亮”的边缘像素在 Hough 空间投票，取强度最高的若干条直线，
    以其角度均值作为页面的倾斜角度。

    实例在两次调用之间保存上一次的直线列表，不能被多个线程同时使用。

    Examples
    --------
    >>> from skew_toolkit import DocumentSkewChecker
    >>> checker = DocumentSkewChecker()
    >>> angle = checker.get_skew_angle(gray_page)
    >>> if angle is not None:
    ...     page = correct_skew(page, angle)
    """

    def __init__(self, config: SkewConfig | None = None):
        self._config = dataclasses.replace(config) if config else SkewConfig()
        self._generation = 0
        self._table: AngleTable | None = None
        self._lines: list[DetectedLine] = []

    # ------------------------------------------------------------------
    # 配置
    # ------------------------------------------------------------------

    @property
    def config(self) -> SkewConfig:
        """当前配置的副本。"""
        return dataclasses.replace(self._config)

    @property
    def steps_per_degree(self) -> int:
        """每度的角度分箱数，[1, 10]。"""
        return self._config.steps_per_degree

    @steps_per_degree.setter
    def steps_per_degree(self, value: int) -> None:
        self._config.steps_per_degree = _clamp(int(value), 1, 10)
        self._generation += 1

    @property
    def min_beta(self) -> float:
        """检测范围的最小倾斜角（度）。"""
        return self._config.min_beta

    @min_beta.setter
    def min_beta(self, value: float) -> None:
        self._config.min_beta = float(value)
        self._generation += 1

    @property
    def max_beta(self) -> float:
        """检测范围的最大倾斜角（度）。"""
        return self._config.max_beta

    @max_beta.setter
    def max_beta(self, value: float) -> None:
        self._config.max_beta = float(value)
        self._generation += 1

    @property
    def local_peak_radius(self) -> int:
        """判断局部极大值的邻域半径，[1, 10]。"""
        return self._config.local_peak_radius

    @local_peak_radius.setter
    def local_peak_radius(self, value: int) -> None:
        self._config.local_peak_radius = _clamp(int(value), 1, 10)

    @property
    def max_lines(self) -> int:
        return self._config.max_lines

    @max_lines.setter
    def max_lines(self, value: int) -> None:
        self._config.max_lines = _clamp(int(value), 1)

    @property
    def dark_threshold(self) -> int:
        return self._config.dark_threshold

    @dark_threshold.setter
    def dark_threshold(self, value: int) -> None:
        self._config.dark_threshold = _clamp(int(value), 0, 255)

    @property
    def darkness_ratio(self) -> float:
        return self._config.darkness_ratio

    @darkness_ratio.setter
    def darkness_ratio(self, value: float) -> None:
        self._config.darkness_ratio = _clamp(float(value), 0.0)

    @property
    def workers(self) -> int:
        return self._config.workers

    @workers.setter
    def workers(self, value: int) -> None:
        self._config.workers = _clamp(int(value), 1)

    @property
    def generation(self) -> int:
        """配置版本号，每次修改角度相关参数时递增。"""
        return self._generation

    # ------------------------------------------------------------------
    # 检测
    # ------------------------------------------------------------------

    @property
    def lines(self) -> list[DetectedLine]:
        """上一次检测得到的全部直线（按强度降序）。"""
        return list(self._lines)

    def angle_table(self) -> AngleTable:
        """返回当前配置对应的角度查找表，配置变化后才重新构建。"""
        if self._table is None or self._table.generation != self._generation:
            cfg = self._config
            self._table = build_angle_table(
                cfg.min_beta, cfg.max_beta, cfg.steps_per_degree, generation=self._generation
            )
            logger.debug(
                "重建角度表: beta [%.2f, %.2f], 每度 %d 步, %d 个分箱",
                cfg.min_beta,
                cfg.max_beta,
                cfg.steps_per_degree,
                self._table.angle_bin_count,
            )
        return self._table

    def build_hough_map(self, image: ImageLike) -> HoughMap:
        """按当前配置构建 Hough 累加图。"""
        raster = as_gray_raster(image)
        table = self.angle_table()
        cfg = self._config
        if cfg.workers > 1:
            return accumulate_parallel(
                raster, table, cfg.workers, cfg.dark_threshold, cfg.darkness_ratio
            )
        return accumulate(
            raster, table, dark_threshold=cfg.dark_threshold, darkness_ratio=cfg.darkness_ratio
        )

    def detect(self, image: ImageLike) -> SkewResult:
        """检测文档图像的倾斜角度，并返回完整的诊断信息。

        Parameters
        ----------
        image : GrayRaster, ndarray or PIL.Image.Image
            8 位单通道文档图像。

        Returns
        -------
        SkewResult
            检测结果。

        Raises
        ------
        InvalidFormatError
            图像不是单通道 8 位格式。
        """
        raster = as_gray_raster(image)
        hough_map = self.build_hough_map(raster)

        self._lines = collect_lines(
            hough_map,
            self.angle_table(),
            min_intensity=round(raster.width / 10),
            peak_radius=self._config.local_peak_radius,
        )
        selected = most_intensive_lines(self._lines, self._config.max_lines)

        if not selected:
            logger.warning("未检测到任何直线 (%dx%d)", raster.width, raster.height)
            return SkewResult(angle=None, max_intensity=hough_map.max_intensity)

        angle = sum(line.theta for line in selected) / len(selected) - 90.0
        logger.info("检测到倾斜角度 %.3f° (%d 条直线)", angle, len(selected))

        return SkewResult(
            angle=angle,
            lines=list(self._lines),
            used_lines=len(selected),
            max_intensity=hough_map.max_intensity,
        )

    def get_skew_angle(self, image: ImageLike) -> float | None:
        """检测文档图像的倾斜角度。

        Returns
        -------
        float or None
            倾斜角度（度）；未检测到任何直线时为 ``None``。
        """
        return self.detect(image).angle

    def get_most_intensive_lines(self, count: int) -> list[DetectedLine]:
        """上一次检测中强度最高的 ``count`` 条直线。"""
        return most_intensive_lines(self._lines, count)


def detect_skew_angle(image: ImageLike, config: SkewConfig | None = None) -> float | None:
    """检测图像的倾斜角度。

    Parameters
    ----------
    image : GrayRaster, ndarray or PIL.Image.Image
        8 位单通道输入图像。
    config : SkewConfig or None
        检测参数，默认使用 :class:`SkewConfig` 的默认值。

    Returns
    -------
    float or None
        检测到的倾斜角度（度）。正值为逆时针，负值为顺时针；未检测到直线时为 ``None``。
    """
    return DocumentSkewChecker(config).get_skew_angle(image)


def correct_skew(
    image: NDArray[np.uint8],
    angle: float | None = None,
    border_mode: int = cv2.BORDER_REPLICATE,
    config: SkewConfig | None = None,
) -> NDArray[np.uint8]:
    """校正图像倾斜。

    Parameters
    ----------
    image : ndarray
        输入图像。
    angle : float or None
        检测到的倾斜角度。如果为 None，则自动检测（要求单通道图像）。
    border_mode : int
        边界填充模式，默认复制边界像素。
    config : SkewConfig or None
        自动检测时使用的参数。

    Returns
    -------
    ndarray
        校正后的图像。未检测到倾斜时返回原图副本。
    """
    if angle is None:
        angle = detect_skew_angle(image, config)

    if angle is None or abs(angle) < 0.1:
        return image.copy()

    h, w = image.shape[:2]
    center = (w // 2, h // 2)
    # 顺时针旋转回正
    rotation_matrix = cv2.getRotationMatrix2D(center, -angle, 1.0)
    rotated = cv2.warpAffine(
        image,
        rotation_matrix,
        (w, h),
        flags=cv2.INTER_CUBIC,
        borderMode=border_mode,
    )
    return rotated
