"""Tests for marginaleffects()."""

import logging

import numpy as np
import pandas as pd
import pytest
from scipy.special import expit


def _term(frame, term, contrast=None):
    rows = frame[frame["term"] == term]
    if contrast is not None:
        rows = rows[rows["contrast"] == contrast]
    return rows


class TestLinearModels:
    """In a linear model the marginal effect is the coefficient."""

    def test_slope_equals_coefficient(self, ols_array):
        from meffects import marginaleffects

        mfx = marginaleffects(ols_array)
        frame = mfx.to_frame()
        for term in ("x1", "x2"):
            rows = _term(frame, term)
            np.testing.assert_allclose(rows["dydx"], ols_array.params[term], rtol=1e-6)
            np.testing.assert_allclose(rows["std.error"], ols_array.bse[term], rtol=1e-6)

    def test_interaction(self, ols_interaction, mixed_data):
        """dy/dx1 = b_x1 + b_x1:x2 * x2."""
        from meffects import marginaleffects

        frame = marginaleffects(ols_interaction, variables="x1").to_frame()
        b = ols_interaction.params
        expected = b["x1"] + b["x1:x2"] * mixed_data["x2"].to_numpy()
        np.testing.assert_allclose(frame["dydx"], expected, rtol=1e-6)

    def test_categorical_contrasts(self, ols_formula, mixed_data):
        """Categorical terms are contrasts with the reference level."""
        from meffects import marginaleffects

        frame = marginaleffects(ols_formula).to_frame()
        b = ols_formula.params

        np.testing.assert_allclose(_term(frame, "grp", "b - a")["dydx"], b["grp[T.b]"], rtol=1e-8)
        np.testing.assert_allclose(_term(frame, "grp", "c - a")["dydx"], b["grp[T.c]"], rtol=1e-8)
        np.testing.assert_allclose(
            _term(frame, "flag", "True - False")["dydx"], b["flag[T.True]"], rtol=1e-8
        )
        np.testing.assert_allclose(
            _term(frame, "grp", "b - a")["std.error"], ols_formula.bse["grp[T.b]"], rtol=1e-6
        )
        assert (_term(frame, "x1")["contrast"] == "").all()
        assert len(frame) == len(mixed_data) * 5

    def test_sklearn_requires_newdata(self, sklearn_ols, mixed_data):
        from meffects import marginaleffects

        with pytest.raises(ValueError, match="newdata"):
            marginaleffects(sklearn_ols)

        with pytest.warns(UserWarning, match="variance-covariance"):
            mfx = marginaleffects(sklearn_ols, newdata=mixed_data)
        frame = mfx.to_frame()
        assert "std.error" not in frame.columns
        np.testing.assert_allclose(_term(frame, "x1")["dydx"], sklearn_ols.coef_[0], rtol=1e-6)

    def test_sklearn_with_vcov(self, sklearn_ols, mixed_data):
        from meffects import marginaleffects

        V = np.diag([0.1, 0.04, 0.09])
        frame = marginaleffects(sklearn_ols, newdata=mixed_data, vcov=V).to_frame()
        np.testing.assert_allclose(_term(frame, "x1")["std.error"], 0.2, rtol=1e-6)
        np.testing.assert_allclose(_term(frame, "x2")["std.error"], 0.3, rtol=1e-6)


class TestNonlinearModels:
    """Closed-form slopes of logit and Poisson models, and statsmodels' margeff."""

    def test_logit_slope(self, logit_formula, mixed_data):
        from meffects import marginaleffects

        frame = marginaleffects(logit_formula, variables="x1").to_frame()
        b = logit_formula.params
        p = expit(b["Intercept"] + b["x1"] * mixed_data["x1"] + b["x2"] * mixed_data["x2"]).to_numpy()
        np.testing.assert_allclose(frame["dydx"], p * (1 - p) * b["x1"], rtol=1e-5)

    def test_logit_link_slope_is_coefficient(self, logit_formula):
        from meffects import marginaleffects

        frame = marginaleffects(logit_formula, variables="x2", type="link").to_frame()
        np.testing.assert_allclose(frame["dydx"], logit_formula.params["x2"], rtol=1e-6)
        assert (frame["type"] == "link").all()

    def test_logit_ame_matches_statsmodels(self, logit_formula):
        from meffects import marginaleffects

        tidy = marginaleffects(logit_formula).tidy()
        margeff = logit_formula.get_margeff(at="overall", method="dydx")
        np.testing.assert_allclose(tidy["estimate"], margeff.margeff, rtol=1e-4)
        np.testing.assert_allclose(tidy["std.error"], margeff.margeff_se, rtol=1e-3)

    def test_poisson_slope(self, poisson_glm, mixed_data):
        from meffects import marginaleffects

        frame = marginaleffects(poisson_glm, variables="x2").to_frame()
        b = poisson_glm.params
        mu = np.exp(b["Intercept"] + b["x1"] * mixed_data["x1"] + b["x2"] * mixed_data["x2"]).to_numpy()
        np.testing.assert_allclose(frame["dydx"], mu * b["x2"], rtol=1e-5)

    def test_mnlogit_slopes(self, mnlogit_formula, mixed_data):
        """One slope per outcome level; probability slopes sum to zero."""
        from meffects import marginaleffects

        mfx = marginaleffects(mnlogit_formula)
        frame = mfx.to_frame()
        groups = frame["group"].unique()
        assert len(groups) == 3
        assert len(frame) == 3 * len(mixed_data)

        by_group = np.column_stack([frame.loc[frame["group"] == g, "dydx"].to_numpy() for g in groups])
        np.testing.assert_allclose(by_group.sum(axis=1), 0.0, atol=1e-8)

        margeff = mnlogit_formula.get_margeff(at="overall", method="dydx")
        np.testing.assert_allclose(mfx.tidy()["estimate"], np.ravel(margeff.margeff), rtol=1e-4, atol=1e-7)

    def test_probit_ame_matches_statsmodels(self, mixed_data):
        import statsmodels.formula.api as smf

        from meffects import marginaleffects

        model = smf.probit("y_bin ~ x1 + x2", data=mixed_data).fit(disp=0)
        tidy = marginaleffects(model).tidy()
        margeff = model.get_margeff(at="overall", method="dydx")
        np.testing.assert_allclose(tidy["estimate"], margeff.margeff, rtol=1e-4)
        np.testing.assert_allclose(tidy["std.error"], margeff.margeff_se, rtol=1e-3)

    def test_negative_binomial_alpha(self, mixed_data):
        """alpha sits in the coefficient vector but not in the mean: zero Jacobian column."""
        import statsmodels.formula.api as smf

        from meffects import marginaleffects

        model = smf.negativebinomial("y_cnt ~ x1 + x2", data=mixed_data).fit(disp=0)
        mfx = marginaleffects(model)
        assert mfx.coef_names[-1] == "alpha"
        assert mfx.J.shape[1] == len(model.params)
        np.testing.assert_array_equal(mfx.J[:, -1], 0.0)

        margeff = model.get_margeff(at="overall", method="dydx")
        tidy = mfx.tidy()
        np.testing.assert_allclose(tidy["estimate"], margeff.margeff, rtol=1e-4)
        np.testing.assert_allclose(tidy["std.error"], margeff.margeff_se, rtol=1e-3)

    def test_exposure_slope(self, poisson_exposure):
        """d mu / d x1 = b_x1 * exposure * exp(X b) on the estimation data."""
        from meffects import marginaleffects

        frame = marginaleffects(poisson_exposure, variables="x1").to_frame()
        mu = np.asarray(poisson_exposure.predict())
        np.testing.assert_allclose(frame["dydx"], poisson_exposure.params["x1"] * mu, rtol=1e-5)
        np.testing.assert_allclose(frame["predicted"], mu, rtol=1e-10)


class TestNewdata:
    """Data grids and user-supplied newdata."""

    def test_datagrid_spec(self, logit_formula, mixed_data):
        from meffects import datagrid, marginaleffects

        frame = marginaleffects(logit_formula, newdata=datagrid(x1=[0, 1]), variables="x1").to_frame()
        assert len(frame) == 2
        b = logit_formula.params
        p = expit(b["Intercept"] + b["x1"] * np.array([0, 1]) + b["x2"] * mixed_data["x2"].mean())
        np.testing.assert_allclose(frame["dydx"], p * (1 - p) * b["x1"], rtol=1e-5)
        np.testing.assert_allclose(frame["predicted"], p, rtol=1e-10)

    def test_missing_rows_dropped(self, ols_array, mixed_data):
        from meffects import marginaleffects

        data = mixed_data[["x1", "x2"]].copy()
        data.loc[3, "x1"] = np.nan
        with pytest.warns(UserWarning, match="Dropping 1 row"):
            mfx = marginaleffects(ols_array, newdata=data, variables="x1")
        assert len(mfx) == len(mixed_data) - 1

    def test_newdata_wrong_type(self, ols_array):
        from meffects import marginaleffects

        with pytest.raises(TypeError, match="DataFrame"):
            marginaleffects(ols_array, newdata=[[1, 2]])

    def test_existing_rowid_kept(self, ols_array, mixed_data):
        from meffects import marginaleffects

        data = mixed_data[["x1", "x2"]].head(4).assign(rowid=[10, 11, 12, 13])
        frame = marginaleffects(ols_array, newdata=data, variables="x1").to_frame()
        assert list(frame["rowid"]) == [10, 11, 12, 13]

    def test_datagrid_with_integer_categorical(self, ols_levels):
        """C(int) columns sit at their mode in the grid, so contrasts run."""
        from meffects import datagrid, marginaleffects

        frame = marginaleffects(ols_levels, newdata=datagrid(x1=[0, 1])).to_frame()
        assert set(frame["level"]) == {0}
        b = ols_levels.params
        np.testing.assert_allclose(_term(frame, "level", "1 - 0")["dydx"], b["C(level)[T.1]"], rtol=1e-8)
        np.testing.assert_allclose(_term(frame, "level", "2 - 0")["dydx"], b["C(level)[T.2]"], rtol=1e-8)
        np.testing.assert_allclose(_term(frame, "x1")["dydx"], b["x1"], rtol=1e-6)

    def test_grid_without_exposure_warns_once(self, poisson_exposure):
        from meffects import datagrid, marginaleffects

        with pytest.warns(UserWarning, match="exposure") as record:
            frame = marginaleffects(poisson_exposure, newdata=datagrid(x1=[0, 1])).to_frame()
        assert sum("treat it as zero" in str(w.message) for w in record) == 1
        assert frame["std.error"].notna().all()


class TestOutputLayout:
    """Column order, dropped columns and the merged data."""

    def test_columns_without_categorical(self, ols_array):
        from meffects import marginaleffects, option_context

        with option_context(return_data=False):
            frame = marginaleffects(ols_array).to_frame()
        assert list(frame.columns) == ["rowid", "type", "term", "dydx", "std.error", "predicted"]

    def test_columns_with_categorical(self, ols_formula):
        from meffects import marginaleffects

        frame = marginaleffects(ols_formula).to_frame()
        assert list(frame.columns[:7]) == ["rowid", "type", "term", "contrast", "dydx", "std.error", "predicted"]
        assert {"x1", "x2", "grp", "flag", "y"} <= set(frame.columns)

    def test_grouped_outcome_keeps_group(self, mnlogit_formula):
        from meffects import marginaleffects

        frame = marginaleffects(mnlogit_formula).to_frame()
        assert list(frame.columns[:4]) == ["rowid", "type", "group", "term"]

    def test_row_order(self, ols_formula, mixed_data):
        """Terms in order, contrasts within a term, rows within a contrast."""
        from meffects import marginaleffects

        n = len(mixed_data)
        frame = marginaleffects(ols_formula, variables=["x1", "grp"]).to_frame()
        assert list(frame["term"]) == ["x1"] * n + ["grp"] * (2 * n)
        assert list(frame["contrast"].iloc[n:]) == ["b - a"] * n + ["c - a"] * n
        np.testing.assert_array_equal(frame["rowid"].iloc[:n], np.arange(n))

    def test_multiple_types(self, logit_formula, mixed_data):
        from meffects import marginaleffects

        frame = marginaleffects(logit_formula, variables="x1", type=["response", "link"]).to_frame()
        assert list(frame["type"].unique()) == ["response", "link"]
        assert len(frame) == 2 * len(mixed_data)

    def test_result_attributes(self, ols_formula):
        from meffects import MarginalEffects, marginaleffects

        mfx = marginaleffects(ols_formula, variables=["x1", "grp"])
        assert isinstance(mfx, MarginalEffects)
        assert mfx.model is ols_formula
        assert mfx.type == ["response"]
        assert mfx.model_type == type(ols_formula).__name__
        assert mfx.variables == ["x1", "grp"]
        assert mfx.J.shape == (len(mfx), len(ols_formula.params))
        assert list(mfx.J_mean.columns[:4]) == ["type", "group", "term", "contrast"]
        assert len(mfx.se_at_mean_gradient) == 3


class TestValidation:
    def test_unknown_variable(self, ols_formula):
        from meffects import marginaleffects

        with pytest.raises(ValueError, match="not found"):
            marginaleffects(ols_formula, variables="z")

    def test_invalid_type(self, ols_formula):
        from meffects import marginaleffects

        with pytest.raises(ValueError, match="not supported"):
            marginaleffects(ols_formula, type="probs")

    def test_unsupported_model(self):
        from meffects import marginaleffects

        with pytest.raises(TypeError):
            marginaleffects("not a model")

    def test_alias(self):
        from meffects import marginaleffects, meffects

        assert meffects is marginaleffects


class TestVcov:
    """Covariance argument."""

    def test_no_standard_errors(self, ols_array):
        from meffects import marginaleffects

        for vcov in (False, None):
            mfx = marginaleffects(ols_array, vcov=vcov)
            assert "std.error" not in mfx.columns
            assert mfx.J is None

    def test_robust(self, ols_array):
        from meffects import marginaleffects

        frame = marginaleffects(ols_array, variables="x1", vcov="HC1").to_frame()
        expected = np.sqrt(ols_array.cov_HC1[1, 1])
        np.testing.assert_allclose(frame["std.error"], expected, rtol=1e-6)

    def test_robust_refit(self, logit_formula):
        """Robust matrices of non-OLS models come from a cov_type refit."""
        from meffects import marginaleffects

        frame = marginaleffects(logit_formula, variables="x1", type="link", vcov="HC1").to_frame()
        V = logit_formula.model.fit(cov_type="HC1", disp=0).cov_params()
        np.testing.assert_allclose(frame["std.error"], np.sqrt(V.loc["x1", "x1"]), rtol=1e-5)

    def test_dataframe_reordered(self, ols_array):
        from meffects import marginaleffects

        V = ols_array.cov_params()
        shuffled = V.loc[["x2", "const", "x1"], ["x1", "x2", "const"]]
        frame = marginaleffects(ols_array, variables="x1", vcov=shuffled).to_frame()
        np.testing.assert_allclose(frame["std.error"], ols_array.bse["x1"], rtol=1e-6)

    def test_dataframe_wrong_names(self, ols_array):
        from meffects import marginaleffects

        V = pd.DataFrame(np.eye(3), index=["a", "b", "c"], columns=["a", "b", "c"])
        with pytest.raises(ValueError, match="coefficient names"):
            marginaleffects(ols_array, vcov=V)

    def test_wrong_shape(self, ols_array):
        from meffects import marginaleffects

        with pytest.raises(ValueError, match="square matrix"):
            marginaleffects(ols_array, vcov=np.eye(2))

    def test_non_finite(self, ols_array):
        from meffects import marginaleffects

        V = np.eye(3)
        V[0, 0] = np.nan
        with pytest.raises(ValueError, match="non-finite"):
            marginaleffects(ols_array, vcov=V)

    def test_wrong_type(self, ols_array):
        from meffects import marginaleffects

        with pytest.raises(TypeError, match="vcov"):
            marginaleffects(ols_array, vcov=3)


class TestLoggingAndProgress:
    def test_debug_messages(self, ols_array, caplog):
        from meffects import marginaleffects

        with caplog.at_level(logging.DEBUG, logger="meffects"):
            marginaleffects(ols_array)
        messages = [r.getMessage() for r in caplog.records]
        assert any("Computing dydx for x1" in m for m in messages)

    def test_verbose_runs(self, ols_array):
        from meffects import marginaleffects

        mfx = marginaleffects(ols_array, verbose=True)
        assert len(mfx) == 2 * len(ols_array.model.exog)
