"""
异常定义模块

工具包内部使用的异常类型。
"""

from __future__ import annotations


class SkewToolkitError(Exception):
    """工具包所有自定义异常的基类。

    Parameters
    ----------
    message : str
        可读的错误信息。
    details : str or None
        调试用的附加技术细节。
    """

    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} ({self.details})"
        return self.message


class InvalidFormatError(SkewToolkitError, ValueError):
    """输入图像的像素格式不受支持（仅支持单通道 8 位灰度）。"""

    def __init__(self, reason: str | None = None) -> None:
        super().__init__("Unsupported pixel format of the source image.", details=reason)
