"""Query execution: models, example library, runner and result formatting."""
