"""Config-driven runs (load tables, adjust the threshold, write outputs)."""

from .adjust import AdjustRunOutputs, feature_p_value, load_inputs, run_adjust

__all__ = ["AdjustRunOutputs", "feature_p_value", "load_inputs", "run_adjust"]
