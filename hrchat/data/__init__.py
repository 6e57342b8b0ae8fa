"""Database engine, models and the employee store."""
