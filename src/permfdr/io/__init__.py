"""Data I/O (intensity tables, designs, observed p-values)."""

from .tables import TableSpec, load_design, load_intensity_table, load_observed_p_values, to_unit_matrix

__all__ = ["TableSpec", "load_design", "load_intensity_table", "load_observed_p_values", "to_unit_matrix"]
