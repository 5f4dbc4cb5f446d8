"""Tests for data grids."""

import numpy as np
import pandas as pd
import pytest


class TestTypicalGrid:
    """Typical grids: user values crossed, other variables at mean or mode."""

    def test_single_row_at_means(self, ols_formula, mixed_data):
        from meffects import datagrid

        grid = datagrid(ols_formula)
        assert len(grid) == 1
        assert set(grid.columns) == {"x1", "x2", "grp", "flag"}
        assert grid["x1"].iloc[0] == pytest.approx(mixed_data["x1"].mean())
        assert grid["grp"].iloc[0] == mixed_data["grp"].mode().iloc[0]
        assert grid["flag"].dtype == bool

    def test_integer_categorical_at_mode(self, ols_levels, level_data):
        """A numeric column wrapped in C() takes its most frequent level, not its mean."""
        from meffects import datagrid

        grid = datagrid(ols_levels)
        assert grid["level"].iloc[0] == 0
        assert grid["level"].iloc[0] != pytest.approx(level_data["level"].mean())
        assert grid["x1"].iloc[0] == pytest.approx(level_data["x1"].mean())

    def test_integer_categorical_from_spec(self, ols_levels):
        from meffects import datagrid

        grid = datagrid(x1=[0, 1]).build(ols_levels)
        assert list(grid["level"]) == [0, 0]

    def test_cartesian_product(self, ols_formula):
        from meffects import datagrid

        grid = datagrid(ols_formula, x1=[0, 1], grp=["a", "b", "c"])
        assert len(grid) == 6
        assert list(grid["x1"]) == [0, 0, 0, 1, 1, 1]
        assert list(grid["grp"]) == ["a", "b", "c"] * 2

    def test_custom_summary_functions(self, mixed_data):
        from meffects import datagrid

        grid = datagrid(newdata=mixed_data[["x1", "x2"]], FUN_numeric=np.median)
        assert grid["x2"].iloc[0] == pytest.approx(mixed_data["x2"].median())

    def test_newdata_keeps_all_columns(self, mixed_data):
        from meffects import datagrid

        grid = datagrid(newdata=mixed_data, x1=0.5)
        assert list(grid.columns) == list(mixed_data.columns)
        assert grid["x1"].iloc[0] == 0.5

    def test_categorical_dtype_preserved(self, mixed_data):
        from meffects import datagrid

        data = mixed_data.assign(grp=pd.Categorical(mixed_data["grp"], categories=["c", "b", "a"]))
        grid = datagrid(newdata=data, grp="b")
        assert isinstance(grid["grp"].dtype, pd.CategoricalDtype)
        assert list(grid["grp"].cat.categories) == ["c", "b", "a"]

    def test_typical_shortcut(self, mixed_data):
        from meffects import typical

        assert len(typical(newdata=mixed_data, x1=[1, 2, 3])) == 3


class TestCounterfactualGrid:
    """Counterfactual grids: the data replicated once per combination."""

    def test_replicates_data(self, mixed_data):
        from meffects import datagrid

        grid = datagrid(newdata=mixed_data, grid_type="counterfactual", flag=[False, True])
        n = len(mixed_data)
        assert len(grid) == 2 * n
        assert not grid["flag"].iloc[:n].any()
        assert grid["flag"].iloc[n:].all()
        np.testing.assert_array_equal(grid["rowid_original"].iloc[:n], np.arange(n))
        np.testing.assert_allclose(grid["x1"].iloc[n:].to_numpy(), mixed_data["x1"].to_numpy())

    def test_counterfactual_shortcut(self, ols_formula, mixed_data):
        from meffects import counterfactual

        grid = counterfactual(ols_formula, x1=[0, 1, 2])
        assert len(grid) == 3 * len(mixed_data)
        assert set(grid["x1"]) == {0, 1, 2}


class TestGridSpec:
    """datagrid() without a model or data defers to the estimation functions."""

    def test_returns_spec(self):
        from meffects import GridSpec, datagrid

        spec = datagrid(x1=[0, 1])
        assert isinstance(spec, GridSpec)
        assert spec.values == {"x1": [0, 1]}

    def test_build(self, ols_formula):
        from meffects import datagrid

        grid = datagrid(x1=[0, 1]).build(ols_formula)
        assert len(grid) == 2


class TestDatagridErrors:
    def test_unknown_grid_type(self, mixed_data):
        from meffects import datagrid

        with pytest.raises(ValueError, match="grid_type"):
            datagrid(newdata=mixed_data, grid_type="balanced")

    def test_unknown_variable(self, ols_formula):
        from meffects import datagrid

        with pytest.raises(ValueError, match="not found"):
            datagrid(ols_formula, z=1)

    def test_model_without_data(self, sklearn_ols):
        from meffects import datagrid

        with pytest.raises(ValueError, match="do not store their data"):
            datagrid(sklearn_ols, x1=0)
