import re

import pandas as pd
import pytest

from modelcomp import compare_models, format_model_comparison
from modelcomp.core.base import BootstrapFailure, InvalidInput, MissingCollaboratorData
from modelcomp.output.comparison import (
    DeltaR2,
    merge_coefficient_tables,
    step_statistics,
)

# ---------------------------------------------------------------------
# Building blocks
# ---------------------------------------------------------------------

def test_delta_r2_text_and_cell():
    plain = DeltaR2(value=".15")
    assert plain.text == "$\\Delta R^2 = .15$"
    assert plain.cell == "$.15$"
    with_ci = DeltaR2(value=".15", ci="[.08, .22]", level=0.9)
    assert with_ci.text == "$\\Delta R^2 = .15$, 90\\% CI [.08, .22]"
    assert with_ci.cell == "$.15$ [.08, .22]"
    assert DeltaR2(value="< .01").text == "$\\Delta R^2 < .01$"


def test_step_statistics(fake_comparison):
    texts, cells = step_statistics(fake_comparison)
    assert texts == ["$F(1, 97) = 20.50$, $p < .001$", "$F(1, 96) = 4.00$, $p = .048$"]
    assert list(cells.columns) == ["statistic", "df", "df_res", "p_value"]
    assert cells.iloc[0].tolist() == ["20.50", "1", "97", "< .001"]


def test_merge_coefficient_tables_staircase():
    def tab(*predictors):
        return pd.DataFrame(
            {
                "predictor": list(predictors),
                "estimate": ["1.00"] * len(predictors),
                "conf_int": ["[0.90, 1.10]"] * len(predictors),
            },
        )

    merged = merge_coefficient_tables(
        [tab("x1", "Intercept"), tab("Intercept", "x3", "x1"), tab("Intercept", "x1", "x2", "x3")],
        ["A", "B", "C"],
    )
    assert merged.index.tolist() == ["Intercept", "x1", "x3", "x2"]
    assert merged.loc["x2", "A"] == ""
    assert merged.loc["x3", "B"] == "$1.00$ [0.90, 1.10]"
    non_empty = (merged != "").sum(axis=1).tolist()
    assert non_empty == sorted(non_empty, reverse=True)


def test_merge_coefficient_tables_rejects_duplicate_predictors():
    tab = pd.DataFrame({"predictor": ["x1", "x1"], "estimate": ["1", "2"], "conf_int": ["", ""]})
    with pytest.raises(InvalidInput, match="unique"):
        merge_coefficient_tables([tab], ["A"])


# ---------------------------------------------------------------------
# End-to-end with deterministic models
# ---------------------------------------------------------------------

def test_format_model_comparison_strings(fake_comparison, fake_models):
    res = format_model_comparison(fake_comparison, fake_models, boot_samples=0)
    assert list(res.estimate) == ["x2", "x3"]
    assert res.estimate == {"x2": "$\\Delta R^2 = .15$", "x3": "$\\Delta R^2 = .05$"}
    assert res.statistic == {
        "x2": "$F(1, 97) = 20.50$, $p < .001$",
        "x3": "$F(1, 96) = 4.00$, $p = .048$",
    }
    assert res.full_result["x3"] == "$\\Delta R^2 = .05$, $F(1, 96) = 4.00$, $p = .048$"


def test_format_model_comparison_table(fake_comparison, fake_models):
    res = format_model_comparison(fake_comparison, fake_models, boot_samples=0)
    table = res.table
    assert table.shape == (4 + 14, 3)
    assert table.columns.tolist() == ["Baseline", "x2", "x3"]
    assert table.index[:4].tolist() == ["Intercept", "x1", "x2", "x3"]
    assert table.loc["x3", "Baseline"] == ""
    assert table.loc["x3", "x3"] == "$-0.20$ [-0.30, -0.10]"

    assert re.fullmatch(r"\$\.60\$ \[\.\d\d, \.\d\d\]", table.loc["$R^2$ [90\\% CI]", "Baseline"])
    assert table.loc["$\\Delta R^2$", :].tolist() == ["", "$.15$", "$.05$"]
    assert table.loc["$F$ ", :].tolist() == ["", "20.50", "4.00"]
    assert table.loc["$p$ ", :].tolist() == ["", "< .001", ".048"]
    assert table.loc["$df_2$", :].tolist() == ["98", "97", "96"]
    assert table.loc["$\\Delta \\mathrm{AIC}$", :].tolist() == ["", "-20.00", "-3.50"]
    assert table.loc["$\\Delta \\mathrm{BIC}$", :].tolist() == ["", "-17.40", "-0.90"]
    assert table.loc["$\\mathrm{AIC}$", "x3"] == "276.50"
    assert (table.to_numpy() != None).all()  # noqa: E711


def test_format_model_comparison_row_order(fake_comparison, fake_models):
    table = format_model_comparison(fake_comparison, fake_models, boot_samples=0).table
    assert table.index[4:].tolist() == [
        "$R^2$ [90\\% CI]",
        "$F$",
        "$df_1$",
        "$df_2$",
        "$p$",
        "$\\mathrm{AIC}$",
        "$\\mathrm{BIC}$",
        "$\\Delta R^2$",
        "$F$ ",
        "$df_1$ ",
        "$df_2$ ",
        "$p$ ",
        "$\\Delta \\mathrm{AIC}$",
        "$\\Delta \\mathrm{BIC}$",
    ]


def test_format_model_comparison_without_ci(fake_comparison, fake_models):
    res = format_model_comparison(fake_comparison, fake_models, ci=None)
    assert res.estimate["x2"] == "$\\Delta R^2 = .15$"
    assert "$R^2$" in res.table.index
    assert res.table.loc["$R^2$", :].tolist() == ["$.60$", "$.75$", "$.80$"]
    # coefficient intervals fall back to 95%
    assert res.table.loc["x1", "Baseline"] == "$0.50$ [0.40, 0.60]"


def test_format_model_comparison_in_paren(fake_comparison, fake_models):
    res = format_model_comparison(fake_comparison, fake_models, boot_samples=0, in_paren=True)
    assert res.statistic["x2"] == "($F[1, 97] = 20.50$, $p < .001$)"
    assert res.estimate["x2"] == "$\\Delta R^2 = .15$"


def test_format_model_comparison_named_models(fake_comparison, fake_models):
    named = dict(zip(["Step 0", "Step 1", "Step 2"], fake_models))
    res = format_model_comparison(fake_comparison, named, boot_samples=0)
    # names only label the table columns; report strings stay keyed by term
    assert list(res.statistic) == ["x2", "x3"]
    assert list(res.estimate) == list(res.full_result) == ["x2", "x3"]
    assert res.table.columns.tolist() == ["Step 0", "Step 1", "Step 2"]

    res = format_model_comparison(fake_comparison, fake_models, model_names=["a", "b", "c"], boot_samples=0)
    assert list(res.estimate) == ["x2", "x3"]
    assert res.table.columns.tolist() == ["a", "b", "c"]


def test_format_model_comparison_sanitizes_column_names_only(fake_comparison, fake_models):
    comparison = fake_comparison.assign(term=["log(x2)", "x3 + x4"])
    res = format_model_comparison(comparison, fake_models, boot_samples=0)
    assert list(res.estimate) == ["log(x2)", "x3 + x4"]
    assert list(res.statistic) == ["log(x2)", "x3 + x4"]
    assert res.table.columns.tolist() == ["Baseline", "logx2", "x3_x4"]


def test_format_model_comparison_exact_zero_delta(fake_comparison, fake_models):
    fake_models[2].rsquared = fake_models[1].rsquared
    res = format_model_comparison(fake_comparison, fake_models, boot_samples=0)
    assert res.estimate["x3"] == "$\\Delta R^2 = .00$"


def test_format_model_comparison_small_delta(fake_comparison, fake_models):
    fake_models[2].rsquared = fake_models[1].rsquared + 0.001
    res = format_model_comparison(fake_comparison, fake_models, boot_samples=0)
    assert res.estimate["x3"] == "$\\Delta R^2 < .01$"


# ---------------------------------------------------------------------
# Input errors
# ---------------------------------------------------------------------

def test_format_model_comparison_model_count(fake_comparison, fake_models):
    with pytest.raises(InvalidInput, match="exactly 3 models"):
        format_model_comparison(fake_comparison, fake_models[:2], boot_samples=0)


@pytest.mark.parametrize(
    ("kwargs", "pattern"),
    [
        ({"ci": 1.0}, "ci"),
        ({"ci": "0.9"}, "ci"),
        ({"boot_samples": 10.5}, "boot_samples"),
        ({"in_paren": 1}, "in_paren"),
        ({"observed_predictors": None}, "observed_predictors"),
        ({"seed": -1}, "seed"),
        ({"model_names": ["a", "a", "b"]}, "unique"),
    ],
)
def test_format_model_comparison_argument_errors(fake_comparison, fake_models, kwargs, pattern):
    kwargs = {"boot_samples": 0, **kwargs}
    with pytest.raises(InvalidInput, match=pattern):
        format_model_comparison(fake_comparison, fake_models, **kwargs)


def test_format_model_comparison_bad_comparison(fake_models):
    with pytest.raises(InvalidInput, match="missing required column"):
        format_model_comparison(pd.DataFrame({"term": ["x2", "x3"]}), fake_models, boot_samples=0)


def test_format_model_comparison_duplicate_terms(fake_comparison, fake_models):
    comparison = fake_comparison.assign(term=["x2", "x2"])
    with pytest.raises(InvalidInput, match="unique"):
        format_model_comparison(comparison, fake_models, boot_samples=0)


# ---------------------------------------------------------------------
# End-to-end with statsmodels fits
# ---------------------------------------------------------------------

def test_format_model_comparison_bootstrap(nested_models):
    from modelcomp import anova_table

    comparison = anova_table(nested_models)
    res = format_model_comparison(comparison, nested_models, boot_samples=200, seed=42)
    pattern = r"\$\\Delta R\^2 (= \.\d\d|< \.01)\$, 90\\% CI \[(\.\d\d|< \.01), (\.\d\d|< \.01)\]"
    for text in res.estimate.values():
        assert re.fullmatch(pattern, text)
    assert "$\\Delta R^2$ [90\\% CI]" in res.table.index

    again = format_model_comparison(comparison, nested_models, boot_samples=200, seed=42)
    assert again.estimate == res.estimate


def test_format_model_comparison_bootstrap_needs_data(fake_comparison, fake_models):
    with pytest.raises(MissingCollaboratorData, match="model.endog"):
        format_model_comparison(fake_comparison, fake_models, boot_samples=200)


def test_format_model_comparison_mismatched_samples(data_nested):
    import statsmodels.formula.api as smf

    from modelcomp import anova_table

    models = [smf.ols("y ~ x1", data=data_nested).fit(), smf.ols("y ~ x1 + x2", data=data_nested).fit()]
    comparison = anova_table(models)
    models[1] = smf.ols("y ~ x1 + x2", data=data_nested.iloc[:-1]).fit()
    with pytest.raises(BootstrapFailure):
        format_model_comparison(comparison, models, boot_samples=150, seed=1)


def test_compare_models(nested_models_4):
    res = compare_models(nested_models_4, boot_samples=0)
    assert list(res.statistic) == ["x2", "x3", "x4"]
    assert res.table.shape == (5 + 14, 4)
    assert res.table.index[0] == "Intercept"
    non_empty = (res.table.iloc[:5] != "").sum(axis=1).tolist()
    assert non_empty == [4, 4, 3, 2, 1]


def test_compare_models_with_names(nested_models):
    res = compare_models(nested_models, model_names=["M1", "M2", "M3"], boot_samples=0, in_paren=True)
    assert list(res.statistic) == ["M2", "M3"]
    assert res.statistic["M2"].startswith("($F[1, 117] = ")


# ---------------------------------------------------------------------
# Validation happens before any numeric work
# ---------------------------------------------------------------------

def test_format_model_comparison_rejects_string_statistics(fake_comparison, fake_models):
    comparison = fake_comparison.assign(statistic=["20.5", "4.0"])
    with pytest.raises(InvalidInput, match="statistic"):
        format_model_comparison(comparison, fake_models, boot_samples=0)


def test_format_model_comparison_rejects_out_of_range_p(fake_comparison, fake_models):
    comparison = fake_comparison.assign(p_value=[1.5, 0.04])
    with pytest.raises(InvalidInput, match=r"p_value.*offending row\(s\): 0"):
        format_model_comparison(comparison, fake_models, boot_samples=0)


@pytest.fixture
def bootstrap_calls(monkeypatch):
    from modelcomp.core import bootstrap as bt

    calls = []
    original = bt.delta_r2_ci

    def spy(*args, **kwargs):
        calls.append(1)
        return original(*args, **kwargs)

    monkeypatch.setattr(bt, "delta_r2_ci", spy)
    return calls


def test_predictor_named_like_stats_row_rejected_before_bootstrap(
    fake_comparison, fake_models, bootstrap_calls,
):
    fake_models[2].params = fake_models[2].params.rename({"x3": "$p$"})
    with pytest.raises(InvalidInput, match=r"collide with fit-statistic row labels: \$p\$"):
        format_model_comparison(fake_comparison, fake_models, boot_samples=200)
    assert bootstrap_calls == []


@pytest.mark.parametrize("alias", ["x1", "const"])
def test_duplicate_predictors_rejected_before_bootstrap(fake_comparison, fake_models, bootstrap_calls, alias):
    fake_models[1].params = fake_models[1].params.rename({"x2": alias})
    with pytest.raises(InvalidInput, match="predictors of model 'x2' must be unique"):
        format_model_comparison(fake_comparison, fake_models, boot_samples=200)
    assert bootstrap_calls == []


# ---------------------------------------------------------------------
# Edge cases
# ---------------------------------------------------------------------

def test_format_model_comparison_single_step(fake_comparison, fake_models):
    res = format_model_comparison(fake_comparison.iloc[:1], fake_models[:2], boot_samples=0)
    assert res.estimate == {"x2": "$\\Delta R^2 = .15$"}
    assert res.statistic == {"x2": "$F(1, 97) = 20.50$, $p < .001$"}
    assert list(res.full_result) == ["x2"]
    assert res.table.columns.tolist() == ["Baseline", "x2"]
    assert res.table.shape == (3 + 14, 2)
    assert res.table.loc["$\\Delta \\mathrm{AIC}$", :].tolist() == ["", "-20.00"]


def test_intercept_only_baseline_has_exact_zero_r2(data_nested):
    import statsmodels.formula.api as smf

    from modelcomp import anova_table

    models = [smf.ols("y ~ 1", data=data_nested).fit(), smf.ols("y ~ x1", data=data_nested).fit()]
    res = format_model_comparison(anova_table(models), models, boot_samples=0)
    assert res.table.loc["$R^2$ [90\\% CI]", "Baseline"] == "$.00$ [.00, .00]"
    assert res.table.loc["Intercept", "Baseline"] != ""
    assert res.table.loc["x1", "Baseline"] == ""
