"""异常定义"""


class CheckinError(Exception):
    """基础异常"""


class ValidationError(CheckinError):
    """输入校验失败（在任何网络/浏览器操作之前抛出）"""


class LedgerError(CheckinError):
    """账本服务调用失败或拒绝"""

    def __init__(self, message: str, response: dict | None = None):
        super().__init__(message)
        self.message = message
        self.response = response or {}


class InsufficientBalanceError(LedgerError):
    """扣减额度超过当前余额"""

    def __init__(self, account_id: str, balance: int | None, amount: int, response: dict | None = None):
        super().__init__(f"余额不足: 账号 {account_id} 余额={balance} 变动={amount}", response)
        self.account_id = account_id
        self.balance = balance
        self.amount = amount
