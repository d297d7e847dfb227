"""Billing kernel domain layer: value objects, records and DTOs."""
