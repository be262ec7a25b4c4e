"""
Constants for the fairness audit pipeline.
Central location for configuration defaults, metric definitions, and thresholds.
"""

# Supported group parity metrics. Every value is reported as a ratio
# group / privileged group.
FAIRNESS_METRICS = {
    "predictive_rate_parity": {
        "name": "Predictive Rate Parity",
        "statistic": "precision",
        "description": "Ratio of positive predictive values (precision)",
        "formula": "PPV_g / PPV_priv, PPV = TP / (TP + FP)",
        "denominator": "predicted-positive",
    },
    "equal_opportunity": {
        "name": "Equal Opportunity",
        "statistic": "tpr",
        "description": "Ratio of true positive rates",
        "formula": "TPR_g / TPR_priv, TPR = TP / (TP + FN)",
        "denominator": "actual-positive",
    },
    "statistical_parity": {
        "name": "Statistical Parity",
        "statistic": "positive_rate",
        "description": "Ratio of positive prediction rates",
        "formula": "P(Y_hat=1|A=g) / P(Y_hat=1|A=priv)",
        "denominator": "any",
    },
    "false_positive_rate_parity": {
        "name": "False Positive Rate Parity",
        "statistic": "fpr",
        "description": "Ratio of false positive rates",
        "formula": "FPR_g / FPR_priv, FPR = FP / (FP + TN)",
        "denominator": "actual-negative",
    },
    "specificity_parity": {
        "name": "Specificity Parity",
        "statistic": "tnr",
        "description": "Ratio of true negative rates",
        "formula": "TNR_g / TNR_priv, TNR = TN / (TN + FP)",
        "denominator": "actual-negative",
    },
    "negative_predictive_value_parity": {
        "name": "Negative Predictive Value Parity",
        "statistic": "npv",
        "description": "Ratio of negative predictive values",
        "formula": "NPV_g / NPV_priv, NPV = TN / (TN + FN)",
        "denominator": "predicted-negative",
    },
    "accuracy_parity": {
        "name": "Accuracy Parity",
        "statistic": "accuracy",
        "description": "Ratio of accuracies",
        "formula": "ACC_g / ACC_priv",
        "denominator": "any",
    },
}

DEFAULT_METRICS = [
    "predictive_rate_parity",
    "equal_opportunity",
    "statistical_parity",
]

# Decision threshold applied to predicted probabilities
DEFAULT_CUTOFF = 0.5

# Four-fifths (80%) rule for disparate impact
FOUR_FIFTHS_THRESHOLD = 0.8

# Train/validation split defaults
DEFAULT_TRAIN_FRACTION = 0.7
DEFAULT_SEED = 42

# Supported model families (closed set, see training_module)
MODEL_FAMILIES = {
    "logistic_regression": "sklearn.linear_model.LogisticRegression",
    "ridge": "sklearn.linear_model.Ridge",
    "decision_tree": "sklearn.tree.DecisionTreeClassifier",
    "random_forest": "sklearn.ensemble.RandomForestClassifier",
}

DEFAULT_MODEL_FAMILIES = ["logistic_regression", "random_forest"]

# Visualization defaults
VIZ_DEFAULTS = {
    "color_scheme": {
        "unfair": "#e74c3c",
        "neutral": "#95a5a6",
    },
    "dpi": 100,
}

# File paths (relative to project root)
DEFAULT_PATHS = {
    "config": "config.yml",
    "data": "data/compas_sample.csv",
    "reports": "reports",
}
