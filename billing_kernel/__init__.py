"""
Billing Kernel - GST invoice computation core

Pure, deterministic building blocks for invoice computation:
- Money and currency value objects (Decimal only)
- Read-only product, customer and company records
- Typed, coded validation errors
- Structured JSON logging
"""

__version__ = "0.1.0"
