"""Terminal output rendering."""
