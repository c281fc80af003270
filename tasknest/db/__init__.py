"""Persistence layer: models, engine, repositories, migrations and seed data."""
