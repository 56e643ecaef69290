"""Data access layer: provider clients and keyed stores."""
