"""athena-tables test suite."""
