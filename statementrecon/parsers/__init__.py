"""
Statement engine stages: classification, metadata extraction, segmentation,
field extraction, reconciliation, description cleaning and ledger validation.
"""
