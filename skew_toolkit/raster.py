"""
灰度栅格模块

以只读方式封装 8 位单通道像素缓冲区，统一 numpy 数组、Pillow 图像等输入。
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np
from numpy.typing import NDArray
from PIL import Image

from skew_toolkit.exceptions import InvalidFormatError


class PixelFormat(Enum):
    """像素格式。"""

    GRAY8 = 1
    BGR24 = 3
    BGRA32 = 4

    @property
    def channels(self) -> int:
        return self.value


# Pillow 中按单字节强度读取的模式（"P" 为 8 位索引色，直接读取索引值）
_PIL_GRAY_MODES = ("L", "P")


@dataclass(frozen=True)
class GrayRaster:
    """只读 8 位灰度栅格。

    Attributes
    ----------
    width : int
        图像宽度（像素）。
    height : int
        图像高度（像素）。
    stride : int
        每行字节数，可能因对齐填充而大于 ``width``。
    data : bytes
        像素缓冲区，长度至少为 ``stride * height``。
    pixel_format : PixelFormat
        像素格式，只有 ``GRAY8`` 可以参与倾斜检测。
    """

    width: int
    height: int
    stride: int
    data: bytes | bytearray | memoryview
    pixel_format: PixelFormat = PixelFormat.GRAY8

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError(f"图像尺寸不能为负: {self.width}x{self.height}")
        row_bytes = self.width * self.pixel_format.channels
        if self.stride < row_bytes:
            raise ValueError(f"行跨度 {self.stride} 小于行字节数 {row_bytes}")
        if len(memoryview(self.data).cast("B")) < self.stride * self.height:
            raise ValueError("像素缓冲区长度不足 stride * height")

    @classmethod
    def from_array(cls, array: NDArray[np.uint8]) -> GrayRaster:
        """由二维 uint8 数组构建栅格（不连续的数组会被复制）。"""
        if array.ndim != 2 or array.dtype != np.uint8:
            raise InvalidFormatError(f"shape={array.shape}, dtype={array.dtype}")
        contiguous = np.ascontiguousarray(array)
        height, width = contiguous.shape
        return cls(width=width, height=height, stride=width, data=contiguous.tobytes())

    def pixels(self) -> NDArray[np.uint8]:
        """返回跳过行填充的 ``(height, width)`` 只读视图。"""
        if self.pixel_format is not PixelFormat.GRAY8:
            raise InvalidFormatError(f"pixel_format={self.pixel_format.name}")
        if self.stride * self.height == 0:
            return np.zeros((self.height, self.width), dtype=np.uint8)
        buffer =np.frombuffer(self.data, dtype=np.uint8, count=self.stride * self.height)
        view = buffer.reshape(self.height, self.stride)[:, : self.width]
        view.flags.writeable = False
        return view


def as_gray_raster(image: GrayRaster | NDArray[np.uint8] | Image.Image) -> GrayRaster:
    """将输入统一转换为 :class:`GrayRaster`。

    Parameters
    ----------
    image : GrayRaster, ndarray or PIL.Image.Image
        输入图像。数组必须是二维（或单通道三维）的 uint8 数组，
        Pillow 图像必须是 ``"L"`` 或 ``"P"`` 模式。

    Returns
    -------
    GrayRaster
        只读灰度栅格。

    Raises
    ------
    InvalidFormatError
        像素格式不是单通道 8 位。
    TypeError
        输入不是可识别的图像类型。
    """
    if isinstance(image, GrayRaster):
        if image.pixel_format is not PixelFormat.GRAY8:
            raise InvalidFormatError(f"pixel_format={image.pixel_format.name}")
        return image

    if isinstance(image, Image.Image):
        if image.mode not in _PIL_GRAY_MODES:
            raise InvalidFormatError(f"mode={image.mode}")
        return GrayRaster.from_array(np.asarray(image, dtype=np.uint8))

    if isinstance(image, np.ndarray):
        if image.dtype != np.uint8:
            raise InvalidFormatError(f"dtype={image.dtype}")
        if image.ndim == 3 and image.shape[2] == 1:
            image = image[:, :, 0]
        if image.ndim != 2:
            raise InvalidFormatError(f"shape={image.shape}")
        return GrayRaster.from_array(image)

    raise TypeError(f"不支持的图像类型: {type(image).__name__}")
