"""Pure text and geo helpers."""
