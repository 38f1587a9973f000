"""
价格日历校验错误
"""


class RateValidationError(ValueError):
    """
    输入校验失败：负数或非数字的价格/房量、空的房型/价格方案选择、缺失的原因等。

    抛出时操作不会写入任何数据。
    """

    def __init__(self, message: str, field: str = None):
        super().__init__(message)
        self.field = field
