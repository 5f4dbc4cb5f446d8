"""Pytest configuration and fixtures for meffects tests."""

import numpy as np
import pandas as pd
import pytest


@pytest.fixture
def seed():
    """Random seed for reproducibility."""
    return 42


@pytest.fixture
def mixed_data(seed):
    """Synthetic data with numeric, categorical and boolean regressors.

    y      = 1 + 0.5 x1 - 0.3 x2 + 0.8 (grp == 'b') - 0.4 (grp == 'c') + 0.6 flag + eps
    y_bin  ~ Bernoulli(sigmoid(-0.2 + 0.7 x1 - 0.5 x2 + 0.4 flag))
    y_cnt  ~ Poisson(exp(0.3 + 0.2 x1 - 0.1 x2))
    y_cat  ∈ {0, 1, 2} from a multinomial logit in x1
    """
    np.random.seed(seed)
    n = 400
    x1 = np.random.randn(n)
    x2 = np.random.uniform(0, 2, n)
    grp = np.random.choice(["a", "b", "c"], size=n)
    flag = np.random.rand(n) < 0.4

    y = (
        1.0 + 0.5 * x1 - 0.3 * x2
        + 0.8 * (grp == "b") - 0.4 * (grp == "c")
        + 0.6 * flag
        + np.random.randn(n) * 0.5
    )
    p = 1 / (1 + np.exp(-(-0.2 + 0.7 * x1 - 0.5 * x2 + 0.4 * flag)))
    y_bin = np.random.binomial(1, p)
    y_cnt = np.random.poisson(np.exp(0.3 + 0.2 * x1 - 0.1 * x2))

    eta = np.column_stack([np.zeros(n), 0.5 + 0.8 * x1, -0.3 - 0.6 * x1])
    probs = np.exp(eta) / np.exp(eta).sum(axis=1, keepdims=True)
    y_cat = np.array([np.random.choice(3, p=row) for row in probs])

    return pd.DataFrame(
        {
            "y": y,
            "y_bin": y_bin,
            "y_cnt": y_cnt,
            "y_cat": y_cat,
            "x1": x1,
            "x2": x2,
            "grp": grp,
            "flag": flag,
        }
    )


@pytest.fixture
def ols_formula(mixed_data):
    """OLS with a string categorical and a boolean regressor."""
    import statsmodels.formula.api as smf

    return smf.ols("y ~ x1 + x2 + grp + flag", data=mixed_data).fit()


@pytest.fixture
def ols_interaction(mixed_data):
    """OLS with an interaction: dy/dx1 = b_x1 + b_x1:x2 * x2."""
    import statsmodels.formula.api as smf

    return smf.ols("y ~ x1 * x2", data=mixed_data).fit()


@pytest.fixture
def ols_array(mixed_data):
    """OLS through the array API."""
    import statsmodels.api as sm

    X = sm.add_constant(mixed_data[["x1", "x2"]])
    return sm.OLS(mixed_data["y"], X).fit()


@pytest.fixture
def logit_formula(mixed_data):
    import statsmodels.formula.api as smf

    return smf.logit("y_bin ~ x1 + x2", data=mixed_data).fit(disp=0)


@pytest.fixture
def poisson_glm(mixed_data):
    import statsmodels.api as sm
    import statsmodels.formula.api as smf

    return smf.glm("y_cnt ~ x1 + x2", data=mixed_data, family=sm.families.Poisson()).fit()


@pytest.fixture
def mnlogit_formula(mixed_data):
    import statsmodels.formula.api as smf

    return smf.mnlogit("y_cat ~ x1", data=mixed_data).fit(disp=0)


@pytest.fixture
def sklearn_ols(mixed_data):
    from sklearn.linear_model import LinearRegression

    return LinearRegression().fit(mixed_data[["x1", "x2"]], mixed_data["y"])


@pytest.fixture
def sklearn_logit(mixed_data):
    from sklearn.linear_model import LogisticRegression

    return LogisticRegression().fit(mixed_data[["x1", "x2"]], mixed_data["y_bin"])


@pytest.fixture
def custom_logit(mixed_data, logit_formula):
    """Logit written as a torch prediction function, with the statsmodels fit."""
    import torch

    from meffects import model_from_fn

    def predict_fn(coefs, columns):
        return torch.sigmoid(coefs[0] + coefs[1] * columns["x1"] + coefs[2] * columns["x2"])

    return model_from_fn(
        predict_fn,
        coefs=np.asarray(logit_formula.params),
        data=mixed_data[["x1", "x2"]],
        vcov=np.asarray(logit_formula.cov_params()),
        coef_names=list(logit_formula.params.index),
    )


@pytest.fixture
def level_data(mixed_data):
    """mixed_data with an integer-coded categorical (level 0 is the most frequent)."""
    return mixed_data.assign(level=np.arange(len(mixed_data)) % 3)


@pytest.fixture
def ols_levels(level_data):
    """OLS with an integer column wrapped in C()."""
    import statsmodels.formula.api as smf

    return smf.ols("y ~ x1 + C(level)", data=level_data).fit()


@pytest.fixture
def exposure(mixed_data):
    """Positive exposure times, one per row of mixed_data."""
    rng = np.random.default_rng(7)
    return rng.uniform(0.5, 3.0, len(mixed_data))


@pytest.fixture
def poisson_exposure(mixed_data, exposure):
    """Discrete Poisson fitted with an exposure: E[y] = exposure * exp(X b)."""
    import statsmodels.formula.api as smf

    return smf.poisson("y_cnt ~ x1 + x2", data=mixed_data, exposure=exposure).fit(disp=0)
