"""Tests for comparisons()."""

import numpy as np
import pytest
from scipy.special import expit


class TestComparisons:
    """Contrasts between two values of a regressor."""

    def test_numeric_step(self, ols_array):
        from meffects import comparisons

        frame = comparisons(ols_array, variables="x1", contrast_numeric=2).to_frame()
        assert (frame["contrast"] == "+2").all()
        np.testing.assert_allclose(frame["comparison"], 2 * ols_array.params["x1"], rtol=1e-8)
        np.testing.assert_allclose(frame["std.error"], 2 * ols_array.bse["x1"], rtol=1e-6)

    def test_logit_difference(self, logit_formula, mixed_data):
        from meffects import comparisons

        frame = comparisons(logit_formula, variables="x2").to_frame()
        b = logit_formula.params
        eta = b["Intercept"] + b["x1"] * mixed_data["x1"] + b["x2"] * mixed_data["x2"]
        expected = (expit(eta + b["x2"]) - expit(eta)).to_numpy()
        np.testing.assert_allclose(frame["comparison"], expected, rtol=1e-8)

    def test_categorical_levels(self, ols_formula, mixed_data):
        from meffects import comparisons

        frame = comparisons(ols_formula, variables="grp").to_frame()
        assert list(frame["contrast"].unique()) == ["b - a", "c - a"]
        assert len(frame) == 2 * len(mixed_data)

    def test_columns(self, ols_formula):
        from meffects import comparisons, option_context

        with option_context(return_data=False):
            frame = comparisons(ols_formula, variables=["x1", "flag"]).to_frame()
        assert list(frame.columns) == ["rowid", "type", "term", "contrast", "comparison", "std.error"]
        assert list(frame["contrast"].unique()) == ["+1", "True - False"]

    def test_average_contrast(self, ols_formula):
        from meffects import comparisons

        tidy = comparisons(ols_formula, variables="flag").tidy()
        assert len(tidy) == 1
        assert tidy["estimate"].iloc[0] == pytest.approx(ols_formula.params["flag[T.True]"], rel=1e-8)
        assert tidy["std.error"].iloc[0] == pytest.approx(ols_formula.bse["flag[T.True]"], rel=1e-5)

    def test_single_level_raises(self, ols_formula, mixed_data):
        from meffects.adapters import get_adapter
        from meffects.sanity import add_rowid
        from meffects.targets import Contrast

        target = Contrast("grp", categorical=True, levels=["a"])
        with pytest.raises(ValueError, match="fewer than two levels"):
            target.prepare(get_adapter(ols_formula), add_rowid(mixed_data))

    def test_custom_model_autodiff(self, custom_logit, logit_formula):
        from meffects import comparisons

        auto = comparisons(custom_logit, variables="x1").to_frame()
        finite = comparisons(logit_formula, variables="x1").to_frame()
        np.testing.assert_allclose(auto["comparison"], finite["comparison"], rtol=1e-8)
        np.testing.assert_allclose(auto["std.error"], finite["std.error"], rtol=1e-5)
