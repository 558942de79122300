"""
skew_toolkit - 基于 Hough 变换的扫描文档倾斜检测工具包

功能:
    - 灰度栅格封装（numpy 数组、Pillow 图像、带行填充的原始缓冲区）
    - 角度查找表（按精度与角度范围预计算正弦/余弦）
    - Hough 投票（“上暗下亮”边缘像素，支持按行分段并行累加）
    - 峰值提取（角度轴环绕的局部极大值搜索）
    - 倾斜角度检测与校正
"""

__version__ = "1.0.0"
__author__ = "Skew Toolkit Contributors"

from skew_toolkit.exceptions import InvalidFormatError, SkewToolkitError
from skew_toolkit.raster import GrayRaster, PixelFormat, as_gray_raster
from skew_toolkit.angle_map import AngleTable, build_angle_table
from skew_toolkit.hough import HoughMap, accumulate, accumulate_parallel, merge_maps
from skew_toolkit.peaks import DetectedLine, collect_lines, wrap_bin
from skew_toolkit.skew import (
    DocumentSkewChecker,
    SkewConfig,
    SkewResult,
    correct_skew,
    detect_skew_angle,
)

__all__ = [
    "InvalidFormatError",
    "SkewToolkitError",
    "GrayRaster",
    "PixelFormat",
    "as_gray_raster",
    "AngleTable",
    "build_angle_table",
    "HoughMap",
    "accumulate",
    "accumulate_parallel",
    "merge_maps",
    "DetectedLine",
    "collect_lines",
    "wrap_bin",
    "DocumentSkewChecker",
    "SkewConfig",
    "SkewResult",
    "correct_skew",
    "detect_skew_angle",
]
