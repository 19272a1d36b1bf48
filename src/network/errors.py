"""Exceptions raised by the network core."""


class ShapeError(ValueError):
    """A vector or weight table does not match the size a layer or network expects."""


class DegenerateWeightError(ZeroDivisionError):
    """
    A layer's incoming weights for some output node sum to exactly zero,
    so error cannot be distributed proportionally across them.
    """

    def __init__(self, columns):
        self.columns = list(columns)
        super().__init__(
            f"Total incoming weight is zero for output node(s) {self.columns}; "
            "cannot distribute error proportionally"
        )
