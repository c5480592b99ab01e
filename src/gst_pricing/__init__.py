"""
GST Pricing Package

Shared line-item pricing for GST documents (credit notes, delivery challans,
quotes, e-way bills). Computes taxable amount, tax and totals per line and
aggregates them into document totals with a CGST/SGST or IGST split.
"""

__version__ = "1.0.0"
