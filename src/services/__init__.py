"""External programs that deliver decoded mailbox messages."""

from .matrix_commander import DeliveryError, MatrixCommander

__all__ = ["DeliveryError", "MatrixCommander"]
