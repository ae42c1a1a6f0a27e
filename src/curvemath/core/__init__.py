"""curvemath core: expression tree, parser, evaluator and diagnostics."""
