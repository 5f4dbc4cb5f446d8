"""
Adjusted predictions target.

H = f(x, β), evaluated at every row of the data grid.
"""

from typing import Callable, Optional

import pandas as pd
from torch import Tensor

from .._typing import Float64Array
from ..adapters.base import BaseAdapter
from .base import BaseTarget, as_matrix, build_index, flatten, group_labels


class Prediction(BaseTarget):
    """Target: predictions of the given type on each row."""

    estimate_name = "predicted"

    def _prepare(self, adapter: BaseAdapter, newdata: pd.DataFrame) -> None:
        pred = as_matrix(adapter.predict(newdata, self.type))
        self._index = build_index(
            rowid=self.rowid,
            groups=group_labels(adapter, pred.shape[1]),
            type=self.type,
        )

    def values(self, adapter: BaseAdapter) -> Float64Array:
        return flatten(adapter.predict(self.newdata, self.type))

    def tensor_fn(self, adapter: BaseAdapter) -> Optional[Callable[[Tensor], Tensor]]:
        columns = adapter.columns_to_tensors(self.newdata)

        def fn(coefs: Tensor) -> Tensor:
            out = adapter.predict_tensor(coefs, columns)
            out = out.unsqueeze(1) if out.dim() == 1 else out
            return out.T.reshape(-1)

        return fn
