"""Core (UI-agnostic) earnings dashboard logic.

This package contains:
- CSV parsing (text -> typed earning records, rejected rows on the side)
- calendar bucketing (monthly / ISO-weekly totals plus a grand total)
- filter normalization
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
