"""Core (UI-agnostic) store audit dashboard logic.

This package contains:
- spreadsheet row loading (XLSX/CSV bytes or a published sheet URL -> raw rows)
- row normalization into canonical audit records
- date-scoped filtering, aggregation and snapshot comparison
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
